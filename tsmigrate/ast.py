"""Syntax tree shared by every pass.

Nodes live in an Arena and refer to each other by integer id. A node has at
most one parent at a time: attaching a node that still has a parent raises
TreeError, so every move is an explicit detach followed by an attach.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .frontend.jsdoc import JsDocInfo


Kind = Literal[
    # structure
    "ROOT",
    "SCRIPT",
    "BLOCK",
    "EMPTY",
    "RAW",
    # statements and declarations
    "VAR",
    "LET",
    "CONST",
    "EXPR_RESULT",
    "RETURN",
    "THROW",
    "IF",
    "FUNCTION",
    "PARAM_LIST",
    "DEFAULT_VALUE",
    "CLASS",
    "CLASS_MEMBERS",
    "MEMBER_FUNCTION_DEF",
    "MEMBER_VARIABLE_DEF",
    "DECLARE",
    "NAMESPACE",
    "NAMESPACE_ELEMENTS",
    "EXPORT",
    "IMPORT",
    "TYPE_ALIAS",
    "INTERFACE",
    # expressions
    "NAME",
    "ASSIGN",
    "GETPROP",
    "CALL",
    "NEW",
    "OBJECTLIT",
    "STRING_KEY",
    "ARRAYLIT",
    "STRING",
    "NUMBER",
    "TRUE",
    "FALSE",
    "NULL",
    "THIS",
    "PAREN",
    "BINOP",
    "UNARYOP",
    "HOOK",
    "CAST",
    # types
    "NAMED_TYPE",
    "ANY_TYPE",
    "UNDEFINED_TYPE",
    "VOID_TYPE",
    "NULL_TYPE",
    "BOOLEAN_TYPE",
    "NUMBER_TYPE",
    "STRING_TYPE",
    "UNION_TYPE",
    "FUNCTION_TYPE",
    "ARRAY_TYPE",
    "RECORD_TYPE",
    "INDEX_SIGNATURE",
]

DECLARATION_KINDS: frozenset[str] = frozenset({"VAR", "LET", "CONST"})


class TreeError(Exception):
    """Raised when an edit would break the single-parent invariant."""


@dataclass
class Pos:
    """Source position: 1-indexed line, 0-indexed column. Line 0 is unknown."""

    line: int
    col: int


@dataclass
class Node:
    """One syntax node.

    `string` holds the identifier, property name, literal source text or
    operator, depending on kind. `declared_type` is the id of a type node
    owned by this node but not part of its children.
    """

    nid: int
    kind: Kind
    string: str = ""
    children: list[int] = field(default_factory=list)
    parent: int | None = None
    declared_type: int | None = None
    props: dict[str, object] = field(default_factory=dict)
    jsdoc: JsDocInfo | None = None
    comments: list[str] = field(default_factory=list)
    source_file: str = ""
    pos: Pos = field(default_factory=lambda: Pos(0, 0))


class Arena:
    """Owns every node of a compilation run."""

    def __init__(self) -> None:
        self.nodes: list[Node] = []

    def __getitem__(self, nid: int) -> Node:
        return self.nodes[nid]

    def __len__(self) -> int:
        return len(self.nodes)

    def new(
        self,
        kind: Kind,
        string: str = "",
        children: list[int] | None = None,
        pos: Pos | None = None,
        source_file: str = "",
    ) -> int:
        nid = len(self.nodes)
        node = Node(nid, kind, string, source_file=source_file)
        if pos is not None:
            node.pos = Pos(pos.line, pos.col)
        self.nodes.append(node)
        if children:
            for c in children:
                self.append(nid, c)
        return nid

    # --- navigation ---

    def parent(self, nid: int) -> int | None:
        return self.nodes[nid].parent

    def children(self, nid: int) -> list[int]:
        return list(self.nodes[nid].children)

    def first_child(self, nid: int) -> int | None:
        kids = self.nodes[nid].children
        return kids[0] if kids else None

    def second_child(self, nid: int) -> int | None:
        kids = self.nodes[nid].children
        return kids[1] if len(kids) > 1 else None

    def last_child(self, nid: int) -> int | None:
        kids = self.nodes[nid].children
        return kids[-1] if kids else None

    def previous(self, nid: int) -> int | None:
        """Sibling immediately before nid, if any."""
        parent = self.nodes[nid].parent
        if parent is None:
            return None
        siblings = self.nodes[parent].children
        i = siblings.index(nid)
        return siblings[i - 1] if i > 0 else None

    def kind(self, nid: int | None) -> str | None:
        if nid is None:
            return None
        return self.nodes[nid].kind

    def ancestors(self, nid: int) -> list[int]:
        result: list[int] = []
        current = self.nodes[nid].parent
        while current is not None:
            result.append(current)
            current = self.nodes[current].parent
        return result

    def enclosing(self, nid: int, kind: str) -> int | None:
        for a in self.ancestors(nid):
            if self.nodes[a].kind == kind:
                return a
        return None

    def post_order(self, root: int) -> list[int]:
        """All nodes under root (inclusive), children before parents."""
        result: list[int] = []
        stack: list[tuple[int, bool]] = [(root, False)]
        while stack:
            nid, expanded = stack.pop()
            if expanded:
                result.append(nid)
                continue
            stack.append((nid, True))
            for c in reversed(self.nodes[nid].children):
                stack.append((c, False))
        return result

    # --- edits ---

    def append(self, parent: int, child: int) -> None:
        self._check_detached(child)
        self.nodes[parent].children.append(child)
        self.nodes[child].parent = parent

    def insert_before(self, ref: int, new: int) -> None:
        """Insert new as the sibling right before ref."""
        self._check_detached(new)
        parent = self.nodes[ref].parent
        if parent is None:
            raise TreeError(f"node {ref} has no parent")
        siblings = self.nodes[parent].children
        siblings.insert(siblings.index(ref), new)
        self.nodes[new].parent = parent

    def detach(self, nid: int) -> int:
        parent = self.nodes[nid].parent
        if parent is not None:
            self.nodes[parent].children.remove(nid)
            self.nodes[nid].parent = None
        return nid

    def replace(self, old: int, new: int) -> None:
        """Put new in old's slot; old ends up detached."""
        self._check_detached(new)
        parent = self.nodes[old].parent
        if parent is None:
            raise TreeError(f"node {old} has no parent")
        siblings = self.nodes[parent].children
        siblings[siblings.index(old)] = new
        self.nodes[new].parent = parent
        self.nodes[old].parent = None

    def _check_detached(self, nid: int) -> None:
        if self.nodes[nid].parent is not None:
            raise TreeError(
                f"node {nid} ({self.nodes[nid].kind}) already has a parent"
            )

    # --- names ---

    def qualified_name(self, nid: int | None) -> str | None:
        """Dotted path for NAME/THIS/GETPROP chains, None for anything else."""
        if nid is None:
            return None
        node = self.nodes[nid]
        if node.kind == "NAME":
            return node.string or None
        if node.kind == "THIS":
            return "this"
        if node.kind == "GETPROP":
            obj = self.qualified_name(self.first_child(nid))
            if obj is None:
                return None
            return obj + "." + node.string
        return None

    def build_qualified(self, qname: str, pos: Pos | None = None) -> int:
        """Build a NAME/GETPROP chain for a dotted path."""
        parts = qname.split(".")
        nid = self.new("NAME", parts[0], pos=pos)
        for part in parts[1:]:
            nid = self.new("GETPROP", part, [nid], pos=pos)
        return nid


def split_qualified_name(qname: str | None) -> tuple[str, str]:
    """Split a dotted path on its last separator into (namespace, leaf)."""
    if not qname:
        return ("", "")
    namespace, _, leaf = qname.rpartition(".")
    return (namespace, leaf)


def dump(arena: Arena, nid: int) -> str:
    """Compact one-line rendering of a subtree, for tests and --debug."""
    node = arena[nid]
    label = node.kind
    if node.string:
        label += ":" + node.string
    if node.declared_type is not None:
        label += "<" + dump(arena, node.declared_type) + ">"
    if not node.children:
        return label
    return label + "(" + " ".join(dump(arena, c) for c in node.children) + ")"
