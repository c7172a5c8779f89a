"""Structural conversion of legacy Closure idioms.

Rules, in priority order (the first one that matches a node wins):

    var ns = {};                    -> removed
    a.b = {};                       -> removed
    a.b.C = class {...};            -> declare namespace a.b { class C {...} }
    a.b.c = value;                  -> declare namespace a.b { c = value; }
    method() {}  (class member)     -> method();
    a.b.c;                          -> declare namespace a.b { c; }
"""

from __future__ import annotations

from ..ast import Arena, split_qualified_name
from .engine import namespace_of, wrap_in_namespace


def _is_empty_object(arena: Arena, nid: int | None) -> bool:
    return arena.kind(nid) == "OBJECTLIT" and not arena[nid].children


class ExternConversion:
    """Rule set for the structural pass."""

    def visit(self, arena: Arena, nid: int, parent: int | None) -> None:
        match arena[nid].kind:
            case "VAR" | "LET" | "CONST":
                self._remove_empty_object_declaration(arena, nid)
            case "ASSIGN":
                self._visit_assign(arena, nid, parent)
            case "FUNCTION":
                self._strip_empty_member_body(arena, nid, parent)
            case "EXPR_RESULT":
                self._wrap_bare_name(arena, nid)
            case _:
                pass

    def _remove_empty_object_declaration(self, arena: Arena, nid: int) -> None:
        names = arena[nid].children
        if len(names) != 1:
            return
        if _is_empty_object(arena, arena.first_child(names[0])):
            arena.detach(nid)

    def _visit_assign(self, arena: Arena, nid: int, parent: int | None) -> None:
        lhs = arena.first_child(nid)
        rhs = arena.second_child(nid)
        if rhs is None or parent is None or arena.kind(parent) != "EXPR_RESULT":
            return
        if _is_empty_object(arena, rhs):
            if not (arena.qualified_name(lhs) or "").startswith("this."):
                arena.detach(parent)
            return
        if arena.kind(lhs) != "GETPROP":
            return
        namespace = namespace_of(arena, lhs, parent)
        if not namespace:
            return
        if arena.kind(rhs) == "CLASS":
            self._declare_class(arena, lhs, rhs, parent, namespace)
        else:
            _, leaf = split_qualified_name(arena.qualified_name(lhs))
            replacement = arena.new("NAME", leaf, pos=arena[lhs].pos, source_file=arena[lhs].source_file)
            arena.replace(lhs, replacement)
            wrap_in_namespace(arena, parent, namespace)

    def _declare_class(self, arena: Arena, lhs: int, cls: int, stmt: int, namespace: str) -> None:
        """Turn `ns.C = class {...};` into a class declaration named C."""
        _, leaf = split_qualified_name(arena.qualified_name(lhs))
        if not leaf:
            return
        old_name = arena.first_child(cls)
        name = arena.new("NAME", leaf, pos=arena[lhs].pos, source_file=arena[cls].source_file)
        if old_name is None:
            arena.append(cls, name)
        else:
            arena.replace(old_name, name)
        arena.detach(cls)
        arena.replace(stmt, cls)
        wrap_in_namespace(arena, cls, namespace)

    def _strip_empty_member_body(self, arena: Arena, nid: int, parent: int | None) -> None:
        if arena.kind(parent) != "MEMBER_FUNCTION_DEF":
            return
        body = arena.last_child(nid)
        if arena.kind(body) == "BLOCK" and not arena[body].children:
            replacement = arena.new("EMPTY", pos=arena[body].pos, source_file=arena[body].source_file)
            arena.replace(body, replacement)

    def _wrap_bare_name(self, arena: Arena, nid: int) -> None:
        expr = arena.first_child(nid)
        if arena.kind(expr) != "GETPROP":
            return
        namespace = namespace_of(arena, expr, nid)
        if not namespace:
            return
        _, leaf = split_qualified_name(arena.qualified_name(expr))
        replacement = arena.new("NAME", leaf, pos=arena[expr].pos, source_file=arena[expr].source_file)
        arena.replace(expr, replacement)
        wrap_in_namespace(arena, nid, namespace)

