"""JSDoc tag parsing and Closure type expression conversion.

parse_jsdoc() reads a `/** ... */` block into a JsDocInfo. TypeParser turns
the Closure type strings it holds into type nodes in the arena:

    | Closure              | TypeScript node                         |
    |----------------------|-----------------------------------------|
    | * / ?                | ANY_TYPE                                |
    | ?T                   | UNION_TYPE(T, NULL_TYPE)                |
    | !T                   | T                                       |
    | T=                   | T, reported as optional                 |
    | Array<T>             | ARRAY_TYPE(T)                           |
    | Object<K, V>         | INDEX_SIGNATURE(NAME key<K>)<V>         |
    | function(A): R       | FUNCTION_TYPE(A)<R>                     |
    | {a: T}               | RECORD_TYPE(STRING_KEY:a<T>)            |
    | Foo<A>               | NAMED_TYPE:Foo(A)                       |
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from ..ast import Arena, Pos

VISIBILITY_TAGS: frozenset[str] = frozenset({"private", "protected", "public", "package"})


@dataclass
class JsDocInfo:
    """Parsed contents of one JSDoc block. Type fields hold raw Closure text."""

    description: str = ""
    params: dict[str, str] = field(default_factory=dict)
    return_type: str | None = None
    type: str | None = None
    is_const: bool = False
    visibility: str | None = None
    typedef: str | None = None
    enum_type: str | None = None
    is_interface: bool = False
    is_record: bool = False
    extends: str | None = None
    implements: list[str] = field(default_factory=list)
    templates: list[str] = field(default_factory=list)


def is_jsdoc(comment: str) -> bool:
    return comment.startswith("/**") and not comment.startswith("/***")


def jsdoc_lines(comment: str) -> list[str]:
    """Body lines of a JSDoc block with the `*` gutter removed."""
    body = comment[3:]
    if body.endswith("*/"):
        body = body[:-2]
    result: list[str] = []
    for raw in body.split("\n"):
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        result.append(line.rstrip())
    while result and result[0] == "":
        result.pop(0)
    while result and result[-1] == "":
        result.pop()
    return result


def split_braced(text: str) -> tuple[str | None, str]:
    """Split a leading `{...}` (balanced) from text. Returns (inner, rest)."""
    text = text.lstrip()
    if not text.startswith("{"):
        return (None, text)
    depth = 0
    i = 0
    while i < len(text):
        c = text[i]
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return (text[1:i].strip(), text[i + 1 :].strip())
        i += 1
    return (None, text)


def split_tags(lines: list[str]) -> tuple[list[str], list[tuple[str, str]]]:
    """Separate description lines from (tag, text) pairs; continuation lines join their tag.

    Several tags may share a line (`@private @const {number}`); only the last
    of them takes the rest of the line.
    """
    description: list[str] = []
    tags: list[tuple[str, str]] = []
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("@"):
            name, _, rest = stripped[1:].partition(" ")
            rest = rest.strip()
            while rest.startswith("@"):
                tags.append((name.strip(), ""))
                name, _, rest = rest[1:].partition(" ")
                rest = rest.strip()
            tags.append((name.strip(), rest))
        elif tags:
            name, text = tags[-1]
            tags[-1] = (name, (text + "\n" + line).strip("\n"))
        else:
            description.append(line)
    return (description, tags)


def parse_jsdoc(comment: str) -> JsDocInfo | None:
    """Parse a `/** ... */` comment. Returns None for any other comment."""
    if not is_jsdoc(comment):
        return None
    info = JsDocInfo()
    description, tags = split_tags(jsdoc_lines(comment))
    info.description = "\n".join(description).strip()
    for tag, text in tags:
        typ, rest = split_braced(text)
        if tag == "param":
            words = rest.split()
            if not words:
                continue
            name = words[0].strip("[]")
            if name.endswith("="):
                name = name[:-1]
            if "=" in name:
                name = name.split("=")[0]
                if typ is not None and not typ.endswith("="):
                    typ = typ + "="
            info.params[name] = typ if typ is not None else "?"
        elif tag == "return" or tag == "returns":
            info.return_type = typ if typ is not None else "?"
        elif tag == "type":
            info.type = typ
        elif tag == "const" or tag == "define":
            info.is_const = True
            if typ is not None and info.type is None:
                info.type = typ
        elif tag in VISIBILITY_TAGS:
            info.visibility = tag if tag != "package" else None
            if typ is not None and info.type is None:
                info.type = typ
        elif tag == "typedef":
            info.typedef = typ
        elif tag == "enum":
            info.enum_type = typ if typ is not None else "number"
        elif tag == "interface":
            info.is_interface = True
        elif tag == "record":
            info.is_record = True
        elif tag == "extends":
            info.extends = typ if typ is not None else rest.split()[0] if rest else None
        elif tag == "implements":
            target = typ if typ is not None else rest.split()[0] if rest else None
            if target:
                info.implements.append(target)
        elif tag == "template":
            for t in rest.split(","):
                if t.strip():
                    info.templates.append(t.strip())
    return info


# ---------------------------------------------------------------------------
# Closure type expressions
# ---------------------------------------------------------------------------

PRIMITIVES: dict[str, str] = {
    "number": "NUMBER_TYPE",
    "Number": "NUMBER_TYPE",
    "string": "STRING_TYPE",
    "String": "STRING_TYPE",
    "boolean": "BOOLEAN_TYPE",
    "Boolean": "BOOLEAN_TYPE",
    "undefined": "UNDEFINED_TYPE",
    "void": "VOID_TYPE",
    "null": "NULL_TYPE",
}

# Tokens that may follow a bare `?`, which then means "unknown".
_ANY_FOLLOWERS: frozenset[str] = frozenset({"", ",", ")", ">", "|", "=", "}"})


class TypeSyntaxError(Exception):
    """Malformed Closure type text."""


def tokenize_type(text: str) -> list[str]:
    tokens: list[str] = []
    i = 0
    while i < len(text):
        c = text[i]
        if c.isspace():
            i += 1
        elif text.startswith("...", i):
            tokens.append("...")
            i += 3
        elif c.isalnum() or c == "_" or c == "$":
            j = i
            while j < len(text) and (text[j].isalnum() or text[j] in "_$"):
                j += 1
            tokens.append(text[i:j])
            i = j
        elif c == "'" or c == '"':
            j = text.find(c, i + 1)
            if j < 0:
                raise TypeSyntaxError("unterminated string in type")
            tokens.append(text[i : j + 1])
            i = j + 1
        else:
            tokens.append(c)
            i += 1
    return tokens


class TypeParser:
    """Builds type nodes from Closure type text.

    resolve maps a (possibly dotted) type name to the name to emit; it is
    where scope aliases, module rewrites and externs renames are applied.
    """

    def __init__(
        self,
        arena: Arena,
        resolve: Callable[[str], str] | None = None,
        pos: Pos | None = None,
    ) -> None:
        self.arena = arena
        self.resolve = resolve
        self.pos = pos
        self.tokens: list[str] = []
        self.i = 0

    def parse(self, text: str | None) -> tuple[int, bool]:
        """Parse text into a type node. Returns (node id, is_optional)."""
        if text is None:
            return (self._new("ANY_TYPE"), False)
        try:
            self.tokens = tokenize_type(text)
            self.i = 0
            optional = False
            if self.tokens and self.tokens[-1] == "=":
                optional = True
                self.tokens.pop()
            nid = self._union()
            if self.i != len(self.tokens):
                raise TypeSyntaxError("trailing tokens in type '" + text + "'")
            return (nid, optional)
        except TypeSyntaxError:
            return (self._new("ANY_TYPE"), False)

    # --- token helpers ---

    def _peek(self, offset: int = 0) -> str:
        j = self.i + offset
        return self.tokens[j] if j < len(self.tokens) else ""

    def _next(self) -> str:
        tok = self._peek()
        if tok == "":
            raise TypeSyntaxError("unexpected end of type")
        self.i += 1
        return tok

    def _expect(self, tok: str) -> None:
        got = self._next()
        if got != tok:
            raise TypeSyntaxError("expected '" + tok + "', got '" + got + "'")

    def _new(self, kind, string: str = "", children: list[int] | None = None) -> int:
        return self.arena.new(kind, string, children, pos=self.pos)

    # --- grammar ---

    def _union(self) -> int:
        members = [self._prefixed()]
        while self._peek() == "|":
            self.i += 1
            members.append(self._prefixed())
        if len(members) == 1:
            return members[0]
        return self._make_union(members)

    def _make_union(self, members: list[int]) -> int:
        flat: list[int] = []
        for m in members:
            if self.arena[m].kind == "UNION_TYPE":
                for c in self.arena.children(m):
                    flat.append(self.arena.detach(c))
            else:
                flat.append(m)
        for m in flat:
            if self.arena[m].kind == "ANY_TYPE":
                return self._new("ANY_TYPE")
        return self._new("UNION_TYPE", "", flat)

    def _prefixed(self) -> int:
        tok = self._peek()
        if tok == "?":
            self.i += 1
            if self._peek() in _ANY_FOLLOWERS:
                return self._new("ANY_TYPE")
            inner = self._prefixed()
            if self.arena[inner].kind in ("ANY_TYPE", "NULL_TYPE"):
                return inner
            return self._make_union([inner, self._new("NULL_TYPE")])
        if tok == "!":
            self.i += 1
            return self._prefixed()
        if tok == "...":
            self.i += 1
            inner = self._prefixed()
            self.arena[inner].props["rest"] = True
            return inner
        return self._primary()

    def _primary(self) -> int:
        tok = self._next()
        if tok == "*":
            return self._new("ANY_TYPE")
        if tok == "(":
            inner = self._union()
            self._expect(")")
            return inner
        if tok == "{":
            return self._record()
        if tok == "function":
            return self._function()
        if tok[0] in "'\"":
            return self._new("NAMED_TYPE", tok)
        if not (tok[0].isalpha() or tok[0] in "_$"):
            raise TypeSyntaxError("unexpected '" + tok + "' in type")
        name = tok
        while self._peek() == "." and self._peek(1) not in ("", "<"):
            self.i += 1
            name += "." + self._next()
        args: list[int] = []
        if self._peek() == "." and self._peek(1) == "<":
            self.i += 1
        if self._peek() == "<":
            self.i += 1
            args.append(self._union())
            while self._peek() == ",":
                self.i += 1
                args.append(self._union())
            self._expect(">")
        return self._named(name, args)

    def _named(self, name: str, args: list[int]) -> int:
        if name in PRIMITIVES and not args:
            return self._new(PRIMITIVES[name])
        if name == "Array":
            elem = args[0] if args else self._new("ANY_TYPE")
            return self._new("ARRAY_TYPE", "", [elem])
        if name == "Object" and args:
            if len(args) == 1:
                key_type = self._new("STRING_TYPE")
                value_type = args[0]
            else:
                key_type, value_type = args[0], args[1]
            key = self._new("NAME", "key")
            self.arena[key].declared_type = key_type
            sig = self._new("INDEX_SIGNATURE", "", [key])
            self.arena[sig].declared_type = value_type
            return sig
        if self.resolve is not None:
            name = self.resolve(name)
        return self._new("NAMED_TYPE", name, args)

    def _record(self) -> int:
        fields: list[int] = []
        while self._peek() != "}":
            key = self._next()
            field_type: int | None = None
            if self._peek() == ":":
                self.i += 1
                field_type = self._union()
            entry = self._new("STRING_KEY", key)
            self.arena[entry].declared_type = (
                field_type if field_type is not None else self._new("ANY_TYPE")
            )
            fields.append(entry)
            if self._peek() == ",":
                self.i += 1
            elif self._peek() != "}":
                raise TypeSyntaxError("expected ',' or '}' in record type")
        self.i += 1
        return self._new("RECORD_TYPE", "", fields)

    def _function(self) -> int:
        self._expect("(")
        params: list[int] = []
        while self._peek() != ")":
            if self._peek() in ("this", "new") and self._peek(1) == ":":
                self.i += 2
                self._union()
            else:
                param = self._union()
                if self._peek() == "=":
                    self.i += 1
                    self.arena[param].props["optional"] = True
                params.append(param)
            if self._peek() == ",":
                self.i += 1
            elif self._peek() != ")":
                raise TypeSyntaxError("expected ',' or ')' in function type")
        self.i += 1
        if self._peek() == ":":
            self.i += 1
            ret = self._union()
        else:
            ret = self._new("ANY_TYPE")
        fn = self._new("FUNCTION_TYPE", "", params)
        self.arena[fn].declared_type = ret
        return fn
