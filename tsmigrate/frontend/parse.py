"""JavaScript frontend: tree-sitter parse tree -> arena SCRIPT node.

Only the shapes the later passes inspect are modelled; any other construct
becomes a RAW node holding its source text, which the printer re-emits
verbatim. Comments are collected on the statement, class member or object
property that follows them; comments closing a block become an EMPTY
placeholder carrying them.
"""

from __future__ import annotations

import tree_sitter_javascript as tsjs
from tree_sitter import Language, Node as TSNode, Parser

from ..ast import Arena, Pos
from ..errors import ParseError
from .jsdoc import is_jsdoc, jsdoc_lines, parse_jsdoc

JS_LANGUAGE = Language(tsjs.language())
_parser: Parser | None = None


def _get_parser() -> Parser:
    global _parser
    if _parser is None:
        _parser = Parser(JS_LANGUAGE)
    return _parser


def parse_file(arena: Arena, filename: str, source: str) -> int:
    """Parse source into a new SCRIPT node. Raises ParseError on syntax errors."""
    tree = _get_parser().parse(source.encode("utf-8"))
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        line, col = (bad.start_point[0] + 1, bad.start_point[1]) if bad else (0, 0)
        raise ParseError("syntax error in " + filename, line, col)
    return _Converter(arena, filename).script(root)


def _first_error(node: TSNode) -> TSNode | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _named(ts: TSNode) -> list[TSNode]:
    """Named children that are not comments."""
    return [c for c in ts.named_children if c.type != "comment"]


class _Converter:
    def __init__(self, arena: Arena, filename: str) -> None:
        self.arena = arena
        self.filename = filename

    # --- helpers ---

    def text(self, ts: TSNode) -> str:
        return ts.text.decode("utf-8")

    def new(self, kind, ts: TSNode | None, string: str = "", children: list[int] | None = None) -> int:
        pos = Pos(ts.start_point[0] + 1, ts.start_point[1]) if ts is not None else None
        return self.arena.new(kind, string, children, pos=pos, source_file=self.filename)

    def raw(self, ts: TSNode) -> int:
        nid = self.new("RAW", ts, self.text(ts))
        self.arena[nid].props["col"] = ts.start_point[1]
        return nid

    def attach_comments(self, nid: int, comments: list[str]) -> None:
        if not comments:
            return
        node = self.arena[nid]
        node.comments.extend(comments)
        for comment in reversed(comments):
            if is_jsdoc(comment):
                node.jsdoc = parse_jsdoc(comment)
                break

    def body(self, children: list[TSNode], container: int, convert) -> None:
        """Convert a run of children into container, routing comments."""
        pending: list[str] = []
        for child in children:
            if child.type == "comment":
                pending.append(self.text(child))
                continue
            if not child.is_named:
                continue
            nid = convert(child)
            if nid is None:
                continue
            self.attach_comments(nid, pending)
            pending = []
            self.arena.append(container, nid)
        if pending:
            placeholder = self.new("EMPTY", None)
            self.attach_comments(placeholder, pending)
            self.arena.append(container, placeholder)

    # --- statements ---

    def script(self, root: TSNode) -> int:
        nid = self.new("SCRIPT", root, self.filename)
        self.body(root.children, nid, self.statement)
        return nid

    def block(self, ts: TSNode) -> int:
        nid = self.new("BLOCK", ts)
        self.body(ts.children, nid, self.statement)
        return nid

    def statement(self, ts: TSNode) -> int | None:
        match ts.type:
            case "expression_statement":
                kids = _named(ts)
                if not kids:
                    return None
                return self.new("EXPR_RESULT", ts, "", [self.expression(kids[0])])
            case "variable_declaration":
                return self.declaration("VAR", ts)
            case "lexical_declaration":
                kind = "CONST" if ts.children[0].type == "const" else "LET"
                return self.declaration(kind, ts)
            case "function_declaration":
                return self.function(ts)
            case "class_declaration":
                return self.class_(ts)
            case "statement_block":
                return self.block(ts)
            case "return_statement" | "throw_statement":
                kind = "RETURN" if ts.type == "return_statement" else "THROW"
                kids = _named(ts)
                children = [self.expression(kids[0])] if kids else []
                return self.new(kind, ts, "", children)
            case "if_statement":
                return self.if_(ts)
            case "empty_statement":
                return None
            case _:
                return self.raw(ts)

    def declaration(self, kind, ts: TSNode) -> int:
        names: list[int] = []
        for d in _named(ts):
            if d.type != "variable_declarator":
                return self.raw(ts)
            name = d.child_by_field_name("name")
            if name is None or name.type != "identifier":
                return self.raw(ts)
            value = d.child_by_field_name("value")
            children = [self.expression(value)] if value is not None else []
            names.append(self.new("NAME", name, self.text(name), children))
        return self.new(kind, ts, "", names)

    def if_(self, ts: TSNode) -> int:
        cond = ts.child_by_field_name("condition")
        cons = ts.child_by_field_name("consequence")
        alt = ts.child_by_field_name("alternative")
        if cond is None or cons is None:
            return self.raw(ts)
        if cond.type == "parenthesized_expression" and _named(cond):
            cond = _named(cond)[0]
        then = self.statement(cons)
        if then is None:
            return self.raw(ts)
        children = [self.expression(cond), then]
        if alt is not None:
            alt_kids = _named(alt) if alt.type == "else_clause" else [alt]
            other = self.statement(alt_kids[0]) if alt_kids else None
            if other is None:
                return self.raw(ts)
            children.append(other)
        return self.new("IF", ts, "", children)

    # --- functions and classes ---

    def function(self, ts: TSNode) -> int:
        name_ts = ts.child_by_field_name("name")
        name = self.new("NAME", name_ts, self.text(name_ts) if name_ts else "")
        params_ts = ts.child_by_field_name("parameters")
        params = self.params(params_ts) if params_ts is not None else self.new("PARAM_LIST", ts)
        body_ts = ts.child_by_field_name("body")
        body = self.block(body_ts) if body_ts is not None else self.new("EMPTY", ts)
        nid = self.new("FUNCTION", ts, "", [name, params, body])
        self.mark_async(nid, ts)
        return nid

    def arrow(self, ts: TSNode) -> int:
        params_ts = ts.child_by_field_name("parameters")
        if params_ts is not None:
            params = self.params(params_ts)
        else:
            single = ts.child_by_field_name("parameter")
            params = self.new("PARAM_LIST", ts)
            if single is not None:
                self.arena.append(params, self.new("NAME", single, self.text(single)))
        body_ts = ts.child_by_field_name("body")
        if body_ts is None:
            return self.raw(ts)
        if body_ts.type == "statement_block":
            body = self.block(body_ts)
        else:
            body = self.expression(body_ts)
        nid = self.new("FUNCTION", ts, "", [self.new("NAME", ts), params, body])
        self.arena[nid].props["arrow"] = True
        self.mark_async(nid, ts)
        return nid

    def mark_async(self, nid: int, ts: TSNode) -> None:
        if any(c.type == "async" for c in ts.children):
            self.arena[nid].props["async"] = True

    def params(self, ts: TSNode) -> int:
        nid = self.new("PARAM_LIST", ts)
        inline_type: str | None = None
        for child in ts.children:
            if child.type == "comment":
                inline_type = _inline_type(self.text(child))
                continue
            if not child.is_named:
                continue
            if child.type == "identifier":
                param = self.new("NAME", child, self.text(child))
            elif child.type == "rest_pattern" and _named(child) and _named(child)[0].type == "identifier":
                param = self.new("NAME", child, self.text(_named(child)[0]))
                self.arena[param].props["rest"] = True
            elif child.type == "assignment_pattern":
                left = child.child_by_field_name("left")
                right = child.child_by_field_name("right")
                if left is None or right is None or left.type != "identifier":
                    param = self.raw(child)
                else:
                    name = self.new("NAME", left, self.text(left))
                    param = self.new("DEFAULT_VALUE", child, "", [name, self.expression(right)])
            else:
                param = self.raw(child)
            if inline_type is not None:
                self.arena[param].props["inline_type"] = inline_type
                inline_type = None
            self.arena.append(nid, param)
        return nid

    def class_(self, ts: TSNode) -> int:
        name_ts = ts.child_by_field_name("name")
        name = self.new("NAME", name_ts, self.text(name_ts)) if name_ts else self.new("EMPTY", ts)
        superclass = self.new("EMPTY", ts)
        for child in ts.children:
            if child.type == "class_heritage":
                kids = _named(child)
                if kids:
                    superclass = self.expression(kids[0])
        members = self.new("CLASS_MEMBERS", ts)
        body_ts = ts.child_by_field_name("body")
        if body_ts is not None:
            self.body(body_ts.children, members, self.member)
        return self.new("CLASS", ts, "", [name, superclass, members])

    def member(self, ts: TSNode) -> int | None:
        is_static = any(c.type == "static" for c in ts.children)
        if ts.type == "method_definition":
            name_ts = ts.child_by_field_name("name")
            if name_ts is None or name_ts.type != "property_identifier":
                return self.raw(ts)
            fn = self.function(ts)
            fn_name = self.arena.first_child(fn)
            self.arena[fn_name].string = ""
            nid = self.new("MEMBER_FUNCTION_DEF", ts, self.text(name_ts), [fn])
            for c in ts.children:
                if c.type in ("get", "set"):
                    self.arena[nid].props["accessor"] = c.type
        elif ts.type == "field_definition":
            prop = ts.child_by_field_name("property")
            if prop is None or prop.type != "property_identifier":
                return self.raw(ts)
            value = ts.child_by_field_name("value")
            children = [self.expression(value)] if value is not None else []
            nid = self.new("MEMBER_VARIABLE_DEF", ts, self.text(prop), children)
        else:
            return self.raw(ts)
        if is_static:
            self.arena[nid].props["static"] = True
        return nid

    # --- expressions ---

    def expression(self, ts: TSNode) -> int:
        match ts.type:
            case "identifier" | "undefined":
                return self.new("NAME", ts, self.text(ts))
            case "this":
                return self.new("THIS", ts)
            case "true" | "false" | "null":
                return self.new(ts.type.upper(), ts)
            case "string":
                return self.new("STRING", ts, self.text(ts))
            case "number":
                return self.new("NUMBER", ts, self.text(ts))
            case "member_expression":
                obj = ts.child_by_field_name("object")
                prop = ts.child_by_field_name("property")
                optional = any(c.type == "optional_chain" for c in ts.children)
                if obj is None or prop is None or optional or prop.type != "property_identifier":
                    return self.raw(ts)
                return self.new("GETPROP", ts, self.text(prop), [self.expression(obj)])
            case "call_expression":
                fn = ts.child_by_field_name("function")
                args = ts.child_by_field_name("arguments")
                if fn is None or args is None or args.type != "arguments":
                    return self.raw(ts)
                return self.new("CALL", ts, "", [self.expression(fn)] + self.arguments(args))
            case "new_expression":
                ctor = ts.child_by_field_name("constructor")
                if ctor is None:
                    return self.raw(ts)
                args = ts.child_by_field_name("arguments")
                rest = self.arguments(args) if args is not None else []
                return self.new("NEW", ts, "", [self.expression(ctor)] + rest)
            case "assignment_expression":
                left = ts.child_by_field_name("left")
                right = ts.child_by_field_name("right")
                if left is None or right is None:
                    return self.raw(ts)
                return self.new("ASSIGN", ts, "", [self.expression(left), self.expression(right)])
            case "object":
                nid = self.new("OBJECTLIT", ts)
                self.body(ts.children, nid, self.property)
                return nid
            case "array":
                return self.new("ARRAYLIT", ts, "", [self.expression(c) for c in _named(ts)])
            case "parenthesized_expression":
                return self.paren(ts)
            case "binary_expression":
                return self.operator("BINOP", ts, ["left", "right"])
            case "unary_expression":
                return self.operator("UNARYOP", ts, ["argument"])
            case "ternary_expression":
                parts = [ts.child_by_field_name(f) for f in ("condition", "consequence", "alternative")]
                if any(p is None for p in parts):
                    return self.raw(ts)
                return self.new("HOOK", ts, "", [self.expression(p) for p in parts])
            case "function_expression" | "function":
                return self.function(ts)
            case "arrow_function":
                return self.arrow(ts)
            case "class":
                return self.class_(ts)
            case _:
                return self.raw(ts)

    def arguments(self, ts: TSNode) -> list[int]:
        return [self.expression(c) for c in _named(ts)]

    def operator(self, kind, ts: TSNode, fields: list[str]) -> int:
        op = ts.child_by_field_name("operator")
        operands = [ts.child_by_field_name(f) for f in fields]
        if op is None or any(o is None for o in operands):
            return self.raw(ts)
        return self.new(kind, ts, self.text(op), [self.expression(o) for o in operands])

    def paren(self, ts: TSNode) -> int:
        kids = _named(ts)
        if len(kids) != 1:
            return self.raw(ts)
        inner = self.expression(kids[0])
        prev = ts.prev_sibling
        if prev is not None and prev.type == "comment":
            info = parse_jsdoc(self.text(prev))
            if info is not None and info.type is not None:
                nid = self.new("CAST", ts, "", [inner])
                self.arena[nid].props["cast_type"] = info.type
                return nid
        return self.new("PAREN", ts, "", [inner])

    def property(self, ts: TSNode) -> int | None:
        if ts.type != "pair":
            return self.raw(ts)
        key = ts.child_by_field_name("key")
        value = ts.child_by_field_name("value")
        if key is None or value is None or key.type not in ("property_identifier", "string", "number"):
            return self.raw(ts)
        return self.new("STRING_KEY", ts, self.text(key), [self.expression(value)])


def _inline_type(comment: str) -> str | None:
    """Type text of an inline `/** T */` parameter annotation."""
    if not is_jsdoc(comment):
        return None
    lines = jsdoc_lines(comment)
    if len(lines) != 1 or lines[0].startswith("@"):
        return None
    return lines[0].strip() or None
