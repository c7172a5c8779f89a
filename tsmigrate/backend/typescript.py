"""TypeScript override layer over the generic printer.

TypeScriptPrinter wraps a CodePrinter by delegation. For every node it
first applies the blank-line rule and prints the node's comment, then
either takes over emission for the kinds TypeScript needs special syntax
for or hands the node to the generic printer, and finally appends the
post-emission extras (field initializers, `()` on `new`, the closing
parenthesis of a function type inside a union, the break after a
namespace).
"""

from __future__ import annotations

from ..ast import Arena
from ..frontend.comments import CommentMap
from .printer import CodePrinter

# Kinds preceded by a blank line unless a comment already separates them.
BLANK_LINE_BEFORE: frozenset[str] = frozenset(
    {"CLASS", "EXPORT", "FUNCTION", "INTERFACE", "MEMBER_FUNCTION_DEF"}
)

ACCESS_MODIFIERS: tuple[str, ...] = ("private", "protected", "public")


class TypeScriptPrinter:
    def __init__(
        self,
        arena: Arena,
        comments: CommentMap,
        externs_map: dict[str, str] | None = None,
        printer: CodePrinter | None = None,
    ) -> None:
        self.arena = arena
        self.comments = comments
        self.externs_map = externs_map or {}
        self.printer = printer if printer is not None else CodePrinter(arena)

    def print_file(self, script: int) -> str:
        self.printer.reset()
        self.add(script)
        return self.printer.out.getvalue()

    def add(self, nid: int) -> None:
        arena = self.arena
        out = self.printer.out
        parent = arena.parent(nid)
        self._maybe_add_newline(nid)
        comment = self.comments.get_comment(nid)
        if comment is not None:
            if not out.fresh:
                out.write(" ")
            out.write_block_text(comment)
            out.newline()
        if self._maybe_override(nid):
            return
        self.printer.emit(nid, self.add)
        node = arena[nid]
        match node.kind:
            case "MEMBER_VARIABLE_DEF":
                if node.children:
                    out.write(" = ")
                    self.add(node.children[-1])
            case "NEW":
                if len(node.children) == 1:
                    out.write("()")
            case "FUNCTION_TYPE":
                if arena.kind(parent) == "UNION_TYPE":
                    out.write(")")
            case "NAMESPACE":
                out.newline()
            case _:
                pass

    # --- spacing ---

    def _maybe_add_newline(self, nid: int) -> None:
        parent = self.arena.parent(nid)
        has_comment = (
            self.comments.has_comment(nid)
            or self.comments.has_comment(parent)
            or self._previous_empty_has_comment(nid)
            or (parent is not None and self._previous_empty_has_comment(parent))
        )
        if not has_comment and self.arena[nid].kind in BLANK_LINE_BEFORE:
            self.printer.out.synthetic_break()

    def _previous_empty_has_comment(self, nid: int) -> bool:
        prev = self.arena.previous(nid)
        return prev is not None and self.arena[prev].kind == "EMPTY" and self.comments.has_comment(prev)

    # --- overrides ---

    def _maybe_override(self, nid: int) -> bool:
        """Emit TypeScript-only syntax. True when nothing more is needed for nid."""
        arena = self.arena
        out = self.printer.out
        node = arena[nid]
        parent = node.parent
        match node.kind:
            case "INDEX_SIGNATURE":
                key = arena.first_child(nid)
                if key is not None:
                    out.write("{[")
                    self.add(key)
                    out.write(":")
                    self._add_type(arena[key].declared_type)
                    out.write("]:")
                    self._add_type(node.declared_type)
                    out.write("}")
                return True
            case "UNDEFINED_TYPE":
                out.write("undefined")
                return True
            case "CAST":
                out.write("(")
                self.add(node.children[0])
                out.write(" as ")
                self._add_type(node.declared_type)
                out.write(")")
                return True
            case "NAME" | "DEFAULT_VALUE":
                if arena.kind(parent) == "PARAM_LIST":
                    access = node.props.get("access")
                    if access in ACCESS_MODIFIERS:
                        out.write(str(access) + " ")
                    if node.props.get("constant"):
                        out.write("readonly ")
                return False
            case "ANY_TYPE":
                alias = self.externs_map.get("any")
                if alias is not None:
                    out.write(alias)
                    return True
                return False
            case "EXPORT":
                if len(node.children) != 1 or arena.kind(node.children[0]) != "TYPE_ALIAS":
                    return False
                out.write("export ")
                self.add(node.children[0])
                return True
            case "FUNCTION_TYPE":
                if arena.kind(parent) == "UNION_TYPE":
                    out.write("(")
                return False
            case _:
                return False

    def _add_type(self, typ: int | None) -> None:
        if typ is None:
            self.printer.out.write("any")
        else:
            self.add(typ)


# ---------------------------------------------------------------------------
# leading-newline reconciliation
# ---------------------------------------------------------------------------


def count_leading_breaks(text: str) -> int:
    """Leading break units: "\\n", or " \\n" as written by a synthetic break."""
    count = 0
    i = 0
    while i < len(text):
        if text[i] == "\n":
            i += 1
        elif text.startswith(" \n", i):
            i += 2
        else:
            break
        count += 1
    return count


def _strip_leading_breaks(text: str) -> str:
    i = 0
    while i < len(text):
        if text[i] == "\n":
            i += 1
        elif text.startswith(" \n", i):
            i += 2
        else:
            break
    return text[i:]


def reconcile_leading_newlines(original: str, generated: str) -> str:
    """Never more leading breaks than the source had; survivors become plain "\\n"."""
    keep = min(count_leading_breaks(original), count_leading_breaks(generated))
    return "\n" * keep + _strip_leading_breaks(generated)
