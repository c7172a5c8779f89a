"""Post-order rewrite engine.

A rule set is any object with `visit(arena, nid, parent)`. The engine walks
the tree once, children before parents, and calls the rule set on every
node. Child lists are snapshotted before descending, so nodes a rule creates
are not visited in the same traversal, and a node that an earlier rule
detached is skipped. Rules may therefore assume descendants are final, but
nothing about ancestors or unvisited siblings.
"""

from __future__ import annotations

from typing import Protocol

from ..ast import Arena


class RuleSet(Protocol):
    def visit(self, arena: Arena, nid: int, parent: int | None) -> None: ...


def traverse(arena: Arena, root: int, rules: RuleSet) -> None:
    """Apply rules to every node under root (inclusive), post-order."""
    stack: list[tuple[int, bool]] = [(root, False)]
    while stack:
        nid, expanded = stack.pop()
        if arena.parent(nid) is None and nid != root:
            continue
        if expanded:
            rules.visit(arena, nid, arena.parent(nid))
            continue
        stack.append((nid, True))
        for child in reversed(arena.children(nid)):
            stack.append((child, False))


def namespace_of(arena: Arena, target: int | None, stmt: int) -> str:
    """Namespace prefix for wrapping stmt, or "" when it must not be wrapped.

    Only statements directly in a file are wrapped, and only for plain
    dotted paths: `this.x`, `exports.x` in a goog.module file, prototype
    members and anything without a qualified name have no namespace.
    """
    if arena.kind(arena.parent(stmt)) != "SCRIPT":
        return ""
    qname = arena.qualified_name(target)
    if qname is None:
        return ""
    parts = qname.split(".")
    if parts[0] in ("this", "exports") or "prototype" in parts:
        return ""
    return ".".join(parts[:-1])


def wrap_in_namespace(arena: Arena, body: int, namespace: str) -> int:
    """Replace body with `declare namespace <namespace> { body }`."""
    pos = arena[body].pos
    filename = arena[body].source_file
    name = arena.new("NAME", namespace, pos=pos, source_file=filename)
    elements = arena.new("NAMESPACE_ELEMENTS", pos=pos, source_file=filename)
    ns = arena.new("NAMESPACE", "", [name, elements], pos=pos, source_file=filename)
    declare = arena.new("DECLARE", "", [ns], pos=pos, source_file=filename)
    arena.replace(body, declare)
    arena.append(elements, body)
    return declare
