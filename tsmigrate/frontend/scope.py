"""Scope normalization: unwrap `goog.scope(function() {...});` blocks.

Alias declarations (`var Foo = a.b.Foo;`) inside the scope are removed and
later references to the alias are replaced with the full dotted path. The
aliases are kept on the SCRIPT node (props["scope_aliases"]) so the type
passes can expand aliased names in JSDoc types too.
"""

from __future__ import annotations

from ..ast import DECLARATION_KINDS, Arena

# Parents under which a NAME is a binding, not a reference.
_BINDING_PARENTS: frozenset[str] = frozenset({"VAR", "LET", "CONST", "PARAM_LIST"})


def is_goog_call(arena: Arena, nid: int | None, *names: str) -> bool:
    """True for a call like `goog.provide(...)` when "goog.provide" is in names."""
    if arena.kind(nid) != "CALL":
        return False
    callee = arena.qualified_name(arena.first_child(nid))
    return callee in names


class RemoveGoogScopePass:
    def __init__(self, arena: Arena) -> None:
        self.arena = arena

    def process(self, root: int) -> None:
        for script in self.arena.children(root):
            for stmt in self.arena.children(script):
                self._maybe_unwrap(script, stmt)

    def _maybe_unwrap(self, script: int, stmt: int) -> None:
        arena = self.arena
        if arena.kind(stmt) != "EXPR_RESULT":
            return
        call = arena.first_child(stmt)
        if not is_goog_call(arena, call, "goog.scope"):
            return
        fn = arena.second_child(call)
        if arena.kind(fn) != "FUNCTION":
            return
        body = arena.last_child(fn)
        if arena.kind(body) != "BLOCK":
            return
        aliases: dict[str, str] = arena[script].props.setdefault("scope_aliases", {})
        moved: list[int] = []
        for child in arena.children(body):
            alias = self._alias(child)
            if alias is not None:
                aliases[alias[0]] = alias[1]
                arena.detach(child)
                continue
            arena.detach(child)
            arena.insert_before(stmt, child)
            moved.append(child)
        if arena[stmt].comments and moved:
            arena[moved[0]].comments[:0] = arena[stmt].comments
        arena.detach(stmt)
        for child in moved:
            self._inline(child, aliases)

    def _alias(self, stmt: int) -> tuple[str, str] | None:
        """`var Foo = a.b.Foo;` -> ("Foo", "a.b.Foo")."""
        arena = self.arena
        if arena.kind(stmt) not in DECLARATION_KINDS or len(arena[stmt].children) != 1:
            return None
        name = arena.first_child(stmt)
        value = arena.first_child(name)
        if arena.kind(value) != "GETPROP":
            return None
        target = arena.qualified_name(value)
        if target is None or target.startswith("this."):
            return None
        return (arena[name].string, target)

    def _inline(self, stmt: int, aliases: dict[str, str]) -> None:
        arena = self.arena
        for nid in arena.post_order(stmt):
            node = arena[nid]
            if node.kind != "NAME" or node.string not in aliases:
                continue
            parent = node.parent
            if parent is None or arena.kind(parent) in _BINDING_PARENTS:
                continue
            if arena.kind(parent) in ("FUNCTION", "CLASS", "DEFAULT_VALUE") and arena.first_child(parent) == nid:
                continue
            arena.replace(nid, arena.build_qualified(aliases[node.string], node.pos))
