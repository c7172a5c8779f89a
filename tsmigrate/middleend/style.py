"""Style-fix rule set, applied by a second run of the rewrite engine.

    var x = 1;  (constant)          -> const x = 1;
    var x = 1;                      -> let x = 1;
    f(function(a) { ... })          -> f((a) => { ... })
"""

from __future__ import annotations

import re

from ..ast import Arena

_THIS_OR_ARGUMENTS = re.compile(r"\b(this|arguments)\b")


def uses_own_binding(arena: Arena, fn: int) -> bool:
    """True if fn's body refers to `this` or `arguments` outside nested functions."""
    stack = list(arena[fn].children)
    while stack:
        nid = stack.pop()
        node = arena[nid]
        if node.kind == "THIS":
            return True
        if node.kind == "NAME" and node.string == "arguments":
            return True
        if node.kind == "RAW" and _THIS_OR_ARGUMENTS.search(node.string):
            return True
        for c in node.children:
            if arena[c].kind != "FUNCTION" or arena[c].props.get("arrow"):
                stack.append(c)
    return False


class StyleFix:
    def visit(self, arena: Arena, nid: int, parent: int | None) -> None:
        match arena[nid].kind:
            case "VAR":
                self._var_to_let_or_const(arena, nid)
            case "FUNCTION":
                self._callback_to_arrow(arena, nid, parent)
            case _:
                pass

    def _var_to_let_or_const(self, arena: Arena, nid: int) -> None:
        ambient = arena.enclosing(nid, "DECLARE") is not None
        names = arena[nid].children
        constant = bool(names) and all(
            arena[n].kind == "NAME"
            and arena[n].props.get("constant")
            and (arena[n].children or ambient)
            for n in names
        )
        arena[nid].kind = "CONST" if constant else "LET"

    def _callback_to_arrow(self, arena: Arena, nid: int, parent: int | None) -> None:
        node = arena[nid]
        if node.props.get("arrow") or arena.kind(parent) != "CALL":
            return
        if arena.first_child(parent) == nid:
            return
        name = arena.first_child(nid)
        if name is not None and arena[name].string:
            return
        if uses_own_binding(arena, nid):
            return
        node.props["arrow"] = True
