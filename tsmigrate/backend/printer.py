"""Generic printer: arena syntax tree -> TypeScript-flavoured source text.

CodePrinter knows the default text of every node kind. It never recurses
into children by itself: emit() takes an `add` callback and calls it for
every child and declared type, so a wrapping layer sees each node before
the default emission runs.
"""

from __future__ import annotations

from typing import Callable

from ..ast import Arena

Add = Callable[[int], None]

INDENT = "  "

# Kinds that end themselves; an enclosing EXPORT adds a `;` after anything else.
SELF_TERMINATED: frozenset[str] = frozenset(
    {"VAR", "LET", "CONST", "CLASS", "FUNCTION", "INTERFACE", "DECLARE", "NAMESPACE"}
)

# Parents under which a NAME is a binding and prints its declared type.
TYPED_NAME_PARENTS: frozenset[str] = frozenset({"VAR", "LET", "CONST", "PARAM_LIST", "DEFAULT_VALUE"})

KEYWORDS: dict[str, str] = {
    "TRUE": "true",
    "FALSE": "false",
    "NULL": "null",
    "THIS": "this",
    "ANY_TYPE": "any",
    "UNDEFINED_TYPE": "void",
    "VOID_TYPE": "void",
    "NULL_TYPE": "null",
    "BOOLEAN_TYPE": "boolean",
    "NUMBER_TYPE": "number",
    "STRING_TYPE": "string",
}


class CodeBuffer:
    """Line-oriented output with indentation.

    newline() is swallowed at the start of a line. synthetic_break() asks
    for a blank line: at the very start of the output it writes the
    marker line " " (leading-newline reconciliation removes or normalises
    it), after a blank line or an opening brace it does nothing, and in
    the middle of a line it is swallowed.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.current = ""
        self.fresh = True
        self.level = 0

    def write(self, text: str) -> None:
        if not text:
            return
        if self.fresh:
            self.current = INDENT * self.level
            self.fresh = False
        self.current += text

    def newline(self) -> None:
        if not self.fresh:
            self.lines.append(self.current.rstrip())
            self.current = ""
            self.fresh = True

    def synthetic_break(self) -> None:
        if not self.fresh:
            return
        if not self.lines:
            self.lines.append(" ")
            return
        prev = self.lines[-1]
        if prev.strip() and not prev.endswith("{"):
            self.lines.append("")

    def indent(self) -> None:
        self.level += 1

    def dedent(self) -> None:
        self.level -= 1

    def write_block_text(self, text: str, col: int = 0) -> None:
        """Write multi-line text, re-indenting continuation lines.

        col is the column the text started at in its source; up to that
        much leading whitespace is removed from each continuation line.
        """
        lines = text.split("\n")
        self.write(lines[0])
        for line in lines[1:]:
            self.newline()
            stripped = line
            cut = 0
            while cut < col and cut < len(stripped) and stripped[cut] in " \t":
                cut += 1
            stripped = stripped[cut:]
            if stripped.strip():
                self.write(stripped)
            else:
                self.lines.append("")

    def getvalue(self) -> str:
        lines = list(self.lines)
        if not self.fresh:
            lines.append(self.current.rstrip())
        if not lines:
            return ""
        return "\n".join(lines) + "\n"


class CodePrinter:
    """Default emission for every node kind."""

    def __init__(self, arena: Arena) -> None:
        self.arena = arena
        self.out = CodeBuffer()

    def reset(self) -> None:
        self.out = CodeBuffer()

    def emit(self, nid: int, add: Add) -> None:
        arena = self.arena
        node = arena[nid]
        out = self.out
        kids = node.children
        match node.kind:
            case "ROOT" | "SCRIPT" | "NAMESPACE_ELEMENTS":
                self._statements(kids, add)
            case "BLOCK":
                self._braced(kids, add)
            case "EMPTY":
                pass
            case "RAW":
                out.write_block_text(node.string, int(node.props.get("col", 0)))  # type: ignore[arg-type]
            case "VAR" | "LET" | "CONST":
                out.write(node.kind.lower() + " ")
                self._join(kids, ", ", add)
                out.write(";")
            case "EXPR_RESULT":
                for c in kids:
                    add(c)
                out.write(";")
            case "RETURN" | "THROW":
                out.write(node.kind.lower())
                for c in kids:
                    out.write(" ")
                    add(c)
                out.write(";")
            case "IF":
                out.write("if (")
                add(kids[0])
                out.write(") ")
                add(kids[1])
                if len(kids) > 2:
                    if arena.kind(kids[1]) != "BLOCK":
                        out.newline()
                        out.write("else ")
                    else:
                        out.write(" else ")
                    add(kids[2])
            case "FUNCTION":
                self._function(nid, add)
            case "PARAM_LIST":
                self._join(kids, ", ", add)
            case "DEFAULT_VALUE":
                add(kids[0])
                out.write(" = ")
                add(kids[1])
            case "CLASS" | "INTERFACE":
                self._class(nid, add)
            case "CLASS_MEMBERS":
                out.write("{")
                out.newline()
                out.indent()
                for c in kids:
                    add(c)
                    if arena.kind(c) == "MEMBER_VARIABLE_DEF":
                        out.write(";")
                    out.newline()
                out.dedent()
                out.write("}")
            case "MEMBER_FUNCTION_DEF":
                self._modifiers(nid)
                fn = kids[0]
                if arena[fn].props.get("async"):
                    out.write("async ")
                accessor = node.props.get("accessor")
                if accessor:
                    out.write(str(accessor) + " ")
                out.write(node.string)
                add(fn)
            case "MEMBER_VARIABLE_DEF":
                self._modifiers(nid)
                out.write(node.string)
                if node.props.get("optional"):
                    out.write("?")
                self._type_annotation(nid, add)
            case "DECLARE":
                out.write("declare ")
                for c in kids:
                    add(c)
            case "NAMESPACE":
                out.write("namespace ")
                add(kids[0])
                out.write(" ")
                self._braced(arena.children(kids[1]), add)
            case "EXPORT":
                out.write("export ")
                for c in kids:
                    add(c)
                if not kids or arena[kids[-1]].kind not in SELF_TERMINATED:
                    out.write(";")
            case "IMPORT":
                out.write("import {")
                self._join(kids, ", ", add)
                out.write("} from '" + node.string + "';")
            case "TYPE_ALIAS":
                out.write("type " + node.string + " = ")
                if node.declared_type is not None:
                    add(node.declared_type)
                out.write(";")
            case "NAME":
                self._name(nid, add)
            case "ASSIGN":
                add(kids[0])
                out.write(" = ")
                add(kids[1])
            case "GETPROP":
                add(kids[0])
                out.write("." + node.string)
            case "CALL":
                add(kids[0])
                out.write("(")
                self._join(kids[1:], ", ", add)
                out.write(")")
            case "NEW":
                out.write("new ")
                add(kids[0])
                if len(kids) > 1:
                    out.write("(")
                    self._join(kids[1:], ", ", add)
                    out.write(")")
            case "OBJECTLIT":
                out.write("{")
                self._join(kids, ", ", add)
                out.write("}")
            case "STRING_KEY":
                out.write(node.string + ": ")
                if kids:
                    add(kids[0])
                elif node.declared_type is not None:
                    add(node.declared_type)
            case "ARRAYLIT":
                out.write("[")
                self._join(kids, ", ", add)
                out.write("]")
            case "STRING" | "NUMBER":
                out.write(node.string)
            case "TRUE" | "FALSE" | "NULL" | "THIS":
                out.write(KEYWORDS[node.kind])
            case "PAREN":
                out.write("(")
                add(kids[0])
                out.write(")")
            case "BINOP":
                add(kids[0])
                out.write(" " + node.string + " ")
                add(kids[1])
            case "UNARYOP":
                out.write(node.string + (" " if node.string.isalpha() else ""))
                add(kids[0])
            case "HOOK":
                add(kids[0])
                out.write(" ? ")
                add(kids[1])
                out.write(" : ")
                add(kids[2])
            case "CAST":
                add(kids[0])
            case "NAMED_TYPE":
                out.write(node.string)
                if kids:
                    out.write("<")
                    self._join(kids, ", ", add)
                    out.write(">")
            case (
                "ANY_TYPE" | "UNDEFINED_TYPE" | "VOID_TYPE" | "NULL_TYPE"
                | "BOOLEAN_TYPE" | "NUMBER_TYPE" | "STRING_TYPE"
            ):
                out.write(KEYWORDS[node.kind])
            case "UNION_TYPE":
                self._join(kids, "|", add)
            case "FUNCTION_TYPE":
                self._function_type(nid, add)
            case "ARRAY_TYPE":
                self._array_of(kids[0], add)
            case "RECORD_TYPE":
                out.write("{")
                self._join(kids, ", ", add)
                out.write("}")
            case "INDEX_SIGNATURE":
                key = kids[0]
                out.write("{[")
                add(key)
                out.write(": ")
                if arena[key].declared_type is not None:
                    add(arena[key].declared_type)
                out.write("]: ")
                if node.declared_type is not None:
                    add(node.declared_type)
                out.write("}")
            case _:
                raise ValueError("no default emission for " + node.kind)

    # --- helpers ---

    def _join(self, kids: list[int], sep: str, add: Add) -> None:
        for i, c in enumerate(kids):
            if i > 0:
                self.out.write(sep)
            add(c)

    def _statements(self, kids: list[int], add: Add) -> None:
        for c in kids:
            add(c)
            self.out.newline()

    def _braced(self, kids: list[int], add: Add) -> None:
        if not kids:
            self.out.write("{}")
            return
        self.out.write("{")
        self.out.newline()
        self.out.indent()
        self._statements(kids, add)
        self.out.dedent()
        self.out.write("}")

    def _type_annotation(self, nid: int, add: Add) -> None:
        typ = self.arena[nid].declared_type
        if typ is not None:
            self.out.write(": ")
            add(typ)

    def _array_of(self, elem: int, add: Add) -> None:
        wrap = self.arena[elem].kind in ("UNION_TYPE", "FUNCTION_TYPE")
        if wrap:
            self.out.write("(")
        add(elem)
        if wrap:
            self.out.write(")")
        self.out.write("[]")

    def _modifiers(self, nid: int) -> None:
        props = self.arena[nid].props
        if props.get("access"):
            self.out.write(str(props["access"]) + " ")
        if props.get("static"):
            self.out.write("static ")
        if props.get("constant"):
            self.out.write("readonly ")

    def _name(self, nid: int, add: Add) -> None:
        arena = self.arena
        node = arena[nid]
        binding = arena.kind(node.parent) in TYPED_NAME_PARENTS
        if binding and node.props.get("rest"):
            self.out.write("...")
        self.out.write(node.string)
        if binding and node.props.get("optional"):
            self.out.write("?")
        if binding and node.declared_type is not None:
            self.out.write(": ")
            if node.props.get("rest"):
                self._array_of(node.declared_type, add)
            else:
                add(node.declared_type)
        for c in node.children:
            self.out.write(" = ")
            add(c)

    def _function(self, nid: int, add: Add) -> None:
        arena = self.arena
        node = arena[nid]
        out = self.out
        name, params, body = node.children
        member = arena.kind(node.parent) == "MEMBER_FUNCTION_DEF"
        arrow = bool(node.props.get("arrow"))
        if node.props.get("async") and not member:
            out.write("async ")
        if not member and not arrow:
            out.write("function")
            if arena[name].string:
                out.write(" ")
                add(name)
        out.write("(")
        add(params)
        out.write(")")
        self._type_annotation(nid, add)
        if arrow:
            out.write(" => ")
            wrap = arena.kind(body) == "OBJECTLIT"
            if wrap:
                out.write("(")
            add(body)
            if wrap:
                out.write(")")
        elif arena.kind(body) == "EMPTY":
            out.write(";")
        else:
            out.write(" ")
            add(body)

    def _function_type(self, nid: int, add: Add) -> None:
        arena = self.arena
        out = self.out
        out.write("(")
        for i, p in enumerate(arena[nid].children):
            if i > 0:
                out.write(", ")
            rest = bool(arena[p].props.get("rest"))
            out.write(("..." if rest else "") + "p" + str(i + 1))
            if arena[p].props.get("optional"):
                out.write("?")
            out.write(": ")
            if rest:
                self._array_of(p, add)
            else:
                add(p)
        out.write(") => ")
        ret = arena[nid].declared_type
        if ret is not None:
            add(ret)
        else:
            out.write("any")

    def _class(self, nid: int, add: Add) -> None:
        arena = self.arena
        node = arena[nid]
        out = self.out
        name, superclass, members = node.children
        out.write("class" if node.kind == "CLASS" else "interface")
        if arena.kind(name) == "NAME":
            out.write(" ")
            add(name)
        templates = node.props.get("templates")
        if templates:
            out.write("<" + ", ".join(templates) + ">")  # type: ignore[arg-type]
        if arena.kind(superclass) != "EMPTY":
            out.write(" extends ")
            add(superclass)
        implements = node.props.get("implements")
        if implements and node.kind == "CLASS":
            out.write(" implements ")
            self._join(list(implements), ", ", add)  # type: ignore[arg-type]
        out.write(" ")
        if arena[members].children:
            add(members)
        else:
            out.write("{}")
