"""Comment linking: raw frontend comments -> CommentMap.

JSDoc tags that only carried Closure type information are removed, since
the TypeScript output expresses them as syntax. What remains is linked to
the node the printer should emit it in front of.
"""

from __future__ import annotations

from ..ast import Arena
from .jsdoc import is_jsdoc, jsdoc_lines, split_braced, split_tags

# Tags whose whole content becomes TypeScript syntax.
TYPE_ONLY_TAGS: frozenset[str] = frozenset(
    {
        "type",
        "const",
        "define",
        "private",
        "protected",
        "public",
        "package",
        "typedef",
        "constructor",
        "interface",
        "record",
        "extends",
        "implements",
        "override",
        "struct",
        "final",
        "template",
        "enum",
        "export",
        "nocollapse",
    }
)


class CommentMap:
    """Association from node id to the comment text printed before it."""

    def __init__(self) -> None:
        self._comments: dict[int, str] = {}

    def get_comment(self, nid: int | None) -> str | None:
        if nid is None:
            return None
        return self._comments.get(nid)

    def has_comment(self, nid: int | None) -> bool:
        return nid is not None and nid in self._comments

    def put(self, nid: int, text: str) -> None:
        self._comments[nid] = text

    def move(self, src: int, dst: int) -> None:
        """Re-home a comment when a pass replaces src with dst."""
        text = self._comments.pop(src, None)
        if text is None:
            return
        existing = self._comments.get(dst)
        self._comments[dst] = text if existing is None else existing + "\n" + text

    def __len__(self) -> int:
        return len(self._comments)


def clean_comment(comment: str) -> str | None:
    """Strip Closure type tags from a JSDoc block. None when nothing is left."""
    if not is_jsdoc(comment):
        return comment
    description, tags = split_tags(jsdoc_lines(comment))
    kept: list[str] = list(description)
    for tag, text in tags:
        if tag in TYPE_ONLY_TAGS:
            continue
        if tag in ("param", "return", "returns"):
            _, rest = split_braced(text)
            if tag != "param" and rest == "":
                continue
            kept.append("@" + tag + (" " + rest if rest else ""))
        else:
            kept.append("@" + tag + (" " + text if text else ""))
    while kept and kept[0].strip() == "":
        kept.pop(0)
    while kept and kept[-1].strip() == "":
        kept.pop()
    if not kept:
        return None
    if len(kept) == 1 and "\n" not in kept[0]:
        return "/** " + kept[0] + " */"
    lines = ["/**"]
    for entry in kept:
        for line in entry.split("\n"):
            lines.append(" * " + line if line else " *")
    lines.append(" */")
    return "\n".join(lines)


class CommentLinkingPass:
    """Builds the CommentMap for every file under a root."""

    def __init__(self, arena: Arena) -> None:
        self.arena = arena
        self.comments = CommentMap()

    def process(self, root: int) -> CommentMap:
        for nid in self.arena.post_order(root):
            node = self.arena[nid]
            if not node.comments:
                continue
            target = self._target(nid)
            if target != nid and self.arena[target].jsdoc is None:
                self.arena[target].jsdoc = node.jsdoc
            cleaned = [c for c in (clean_comment(raw) for raw in node.comments) if c is not None]
            if not cleaned:
                continue
            self.comments.put(target, "\n".join(cleaned))
        return self.comments

    def _target(self, nid: int) -> int:
        """A `a.b.C = class {...};` statement keeps its comment (and JSDoc) on the class."""
        node = self.arena[nid]
        if node.kind != "EXPR_RESULT":
            return nid
        expr = self.arena.first_child(nid)
        if self.arena.kind(expr) != "ASSIGN":
            return nid
        rhs = self.arena.second_child(expr)
        if self.arena.kind(rhs) == "CLASS" and self.arena.kind(self.arena.first_child(expr)) == "GETPROP":
            return rhs
        return nid
