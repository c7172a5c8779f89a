"""Type conversion and annotation.

Moves the Closure type information held in JSDoc onto the tree as
TypeScript syntax: declared types on names, parameters and functions,
type aliases for typedefs, interfaces for @interface/@record classes,
class fields for constructor assignments, and ambient declarations inside
`declare namespace` blocks.
"""

from __future__ import annotations

import re
from typing import Callable

from ..ast import DECLARATION_KINDS, Arena, Pos
from ..frontend.comments import CommentMap
from ..frontend.jsdoc import JsDocInfo, TypeParser
from ..options import Options

LITERAL_KINDS: frozenset[str] = frozenset({"STRING", "NUMBER", "TRUE", "FALSE", "NULL"})

_RAW_RETURN = re.compile(r"\breturn\s+[^;\s}]")


def is_simple_literal(arena: Arena, nid: int | None) -> bool:
    """Literals that can move from a constructor body to a field initializer."""
    kind = arena.kind(nid)
    if kind in LITERAL_KINDS:
        return True
    if kind in ("ARRAYLIT", "OBJECTLIT"):
        return not arena[nid].children
    if kind == "UNARYOP" and arena[nid].string == "-":
        return arena.kind(arena.first_child(nid)) == "NUMBER"
    return False


def has_value_return(arena: Arena, body: int | None) -> bool:
    """True if body returns a value, ignoring nested functions."""
    if body is None:
        return False
    stack = [body]
    while stack:
        nid = stack.pop()
        node = arena[nid]
        if node.kind == "RETURN" and node.children:
            return True
        if node.kind == "RAW" and _RAW_RETURN.search(node.string):
            return True
        for c in node.children:
            if arena.kind(c) != "FUNCTION":
                stack.append(c)
    return False


def in_ambient_context(arena: Arena, nid: int) -> bool:
    return arena.enclosing(nid, "DECLARE") is not None


class TypeAnnotationPass:
    """Attaches TypeScript types and shapes declarations from JSDoc."""

    def __init__(
        self,
        arena: Arena,
        comments: CommentMap,
        options: Options,
        type_rewrite: Callable[[str], dict[str, str]] | None = None,
    ) -> None:
        self.arena = arena
        self.comments = comments
        self.options = options
        self.type_rewrite = type_rewrite
        self._resolver: Callable[[str], str] | None = None

    def process(self, src_root: int) -> None:
        for script in self.arena.children(src_root):
            self._resolver = self._make_resolver(script)
            self._convert_file(script)
        self._resolver = None

    # -----------------------------------------------------------------------
    # type names
    # -----------------------------------------------------------------------

    def _make_resolver(self, script: int) -> Callable[[str], str]:
        aliases: dict[str, str] = dict(self.arena[script].props.get("scope_aliases", {}))  # type: ignore[arg-type]
        rewrite = self.type_rewrite(self.arena[script].string) if self.type_rewrite else {}
        renames = {k: v for k, v in self.options.externs_map.items() if k != "any"}

        def resolve(name: str) -> str:
            head, dot, tail = name.partition(".")
            if head in aliases:
                name = aliases[head] + dot + tail
            if name in rewrite:
                name = rewrite[name]
            else:
                for ns, local in rewrite.items():
                    if name.startswith(ns + "."):
                        name = local + name[len(ns) :]
                        break
            return renames.get(name, name)

        return resolve

    def parse_type(self, text: str | None, pos: Pos | None = None) -> tuple[int, bool]:
        return TypeParser(self.arena, self._resolver, pos).parse(text)

    # -----------------------------------------------------------------------
    # per file
    # -----------------------------------------------------------------------

    def _convert_file(self, script: int) -> None:
        arena = self.arena
        for elements in [n for n in arena.post_order(script) if arena.kind(n) == "NAMESPACE_ELEMENTS"]:
            for stmt in arena.children(elements):
                self._make_ambient(stmt)
        if self.options.declare_only:
            for stmt in arena.children(script):
                self._declare_top_level(stmt)
        nodes = arena.post_order(script)
        for nid in nodes:
            if arena.kind(nid) == "CLASS" and arena.parent(nid) is not None:
                self._convert_class(nid)
        for nid in arena.post_order(script):
            match arena.kind(nid):
                case "FUNCTION":
                    self._annotate_function(nid)
                case "VAR" | "LET" | "CONST":
                    self._annotate_declaration(nid)
                case "MEMBER_VARIABLE_DEF":
                    self._annotate_member_variable(nid)
                case "MEMBER_FUNCTION_DEF":
                    self._annotate_member_function(nid)
                case "CAST":
                    self._annotate_cast(nid)
                case _:
                    pass
        for nid in arena.post_order(script):
            if arena.parent(nid) is not None and in_ambient_context(arena, nid):
                self._strip_ambient(nid)

    # -----------------------------------------------------------------------
    # ambient declarations
    # -----------------------------------------------------------------------

    def _make_ambient(self, stmt: int) -> None:
        """Turn a namespace element into a declaration TypeScript accepts in `declare namespace`."""
        arena = self.arena
        if arena.kind(stmt) != "EXPR_RESULT":
            return
        expr = arena.first_child(stmt)
        jsdoc = arena[stmt].jsdoc
        if arena.kind(expr) == "NAME":
            if jsdoc is not None and jsdoc.typedef is not None:
                self._to_type_alias(stmt, arena[expr].string, jsdoc.typedef)
                return
            arena[stmt].kind = "CONST" if jsdoc is not None and jsdoc.is_const else "LET"
            return
        if arena.kind(expr) != "ASSIGN" or arena.kind(arena.first_child(expr)) != "NAME":
            return
        target = arena.first_child(expr)
        value = arena.second_child(expr)
        if arena.kind(value) == "FUNCTION" and not arena[value].props.get("arrow"):
            arena.detach(value)
            arena[arena.first_child(value)].string = arena[target].string
            arena[value].jsdoc = jsdoc
            arena.replace(stmt, value)
            self.comments.move(stmt, value)
            return
        arena.detach(expr)
        arena.detach(target)
        arena.append(target, arena.detach(value))
        arena[stmt].kind = "CONST" if jsdoc is not None and jsdoc.is_const else "LET"
        arena.append(stmt, target)

    def _declare_top_level(self, stmt: int) -> None:
        arena = self.arena
        if arena.kind(stmt) not in ("CLASS", "FUNCTION", "VAR", "LET", "CONST"):
            return
        declare = arena.new("DECLARE", "", pos=arena[stmt].pos, source_file=arena[stmt].source_file)
        arena.replace(stmt, declare)
        arena.append(declare, stmt)
        self.comments.move(stmt, declare)

    def _strip_ambient(self, nid: int) -> None:
        """Ambient code has no bodies and only literal const initializers."""
        arena = self.arena
        node = arena[nid]
        match node.kind:
            case "FUNCTION":
                body = arena.last_child(nid)
                if arena.kind(body) == "BLOCK":
                    replacement = arena.new("EMPTY", pos=arena[body].pos, source_file=node.source_file)
                    arena.replace(body, replacement)
            case "MEMBER_VARIABLE_DEF":
                for c in arena.children(nid):
                    arena.detach(c)
            case "NAME":
                parent = arena.parent(nid)
                init = arena.first_child(nid)
                if init is None or arena.kind(parent) not in DECLARATION_KINDS:
                    return
                constant = arena.kind(parent) == "CONST" or node.props.get("constant")
                if constant and is_simple_literal(arena, init):
                    return
                if node.declared_type is None and arena.kind(init) != "FUNCTION":
                    node.declared_type = self._guess_type(init)
                arena.detach(init)
            case "DEFAULT_VALUE":
                name = arena.first_child(nid)
                arena.detach(name)
                arena[name].props["optional"] = True
                arena.replace(nid, name)
            case _:
                pass

    def _guess_type(self, init: int) -> int:
        kind = {"STRING": "STRING_TYPE", "NUMBER": "NUMBER_TYPE", "TRUE": "BOOLEAN_TYPE", "FALSE": "BOOLEAN_TYPE"}
        return self.arena.new(kind.get(self.arena[init].kind, "ANY_TYPE"), pos=self.arena[init].pos)

    def _to_type_alias(self, stmt: int, name: str, typedef: str) -> None:
        arena = self.arena
        for c in arena.children(stmt):
            arena.detach(c)
        node = arena[stmt]
        node.kind = "TYPE_ALIAS"
        node.string = name
        node.declared_type = self.parse_type(typedef, node.pos)[0]

    # -----------------------------------------------------------------------
    # classes
    # -----------------------------------------------------------------------

    def _class_jsdoc(self, cls: int) -> JsDocInfo | None:
        arena = self.arena
        if arena[cls].jsdoc is not None:
            return arena[cls].jsdoc
        parent = arena.parent(cls)
        if arena.kind(parent) == "NAME":
            return arena[arena.parent(parent)].jsdoc if arena.parent(parent) is not None else None
        if arena.kind(parent) == "DECLARE":
            return arena[parent].jsdoc
        return None

    def _convert_class(self, cls: int) -> None:
        arena = self.arena
        jsdoc = self._class_jsdoc(cls)
        members = arena.last_child(cls)
        ctor_def = None
        for m in arena.children(members):
            if arena.kind(m) == "MEMBER_FUNCTION_DEF" and arena[m].string == "constructor":
                ctor_def = m
        if ctor_def is not None:
            self._extract_fields(members, ctor_def)
        if jsdoc is None:
            return
        if jsdoc.templates:
            arena[cls].props["templates"] = list(jsdoc.templates)
        if jsdoc.implements:
            arena[cls].props["implements"] = [self.parse_type(t, arena[cls].pos)[0] for t in jsdoc.implements]
        if jsdoc.is_interface or jsdoc.is_record:
            self._to_interface(cls, ctor_def, jsdoc)

    def _extract_fields(self, members: int, ctor_def: int) -> None:
        """Declare the fields a constructor assigns on `this`."""
        arena = self.arena
        ctor = arena.first_child(ctor_def)
        params = arena.second_child(ctor)
        body = arena.last_child(ctor)
        if arena.kind(body) != "BLOCK":
            return
        declared = {arena[m].string for m in arena.children(members) if arena.kind(m) == "MEMBER_VARIABLE_DEF"}
        fields: list[int] = []
        for stmt in arena.children(body):
            if arena.kind(stmt) != "EXPR_RESULT":
                continue
            expr = arena.first_child(stmt)
            value: int | None = None
            if arena.kind(expr) == "ASSIGN":
                target = arena.first_child(expr)
                value = arena.second_child(expr)
            else:
                target = expr
            qname = arena.qualified_name(target) or ""
            if not qname.startswith("this.") or qname.count(".") != 1:
                continue
            name = arena[target].string
            if name in declared:
                continue
            declared.add(name)
            jsdoc = arena[stmt].jsdoc
            param = self._matching_param(params, value, name)
            if param is not None and jsdoc is not None and (jsdoc.visibility or jsdoc.is_const):
                arena[param].props["access"] = jsdoc.visibility or "public"
                if jsdoc.is_const:
                    arena[param].props["constant"] = True
                if jsdoc.type is not None and arena[param].declared_type is None:
                    arena[param].declared_type, _ = self.parse_type(jsdoc.type, arena[param].pos)
                arena.detach(stmt)
                continue
            field = arena.new("MEMBER_VARIABLE_DEF", name, pos=arena[stmt].pos, source_file=arena[stmt].source_file)
            if jsdoc is not None:
                if jsdoc.type is not None:
                    arena[field].declared_type, optional = self.parse_type(jsdoc.type, arena[stmt].pos)
                    if optional:
                        arena[field].props["optional"] = True
                if jsdoc.visibility:
                    arena[field].props["access"] = jsdoc.visibility
                if jsdoc.is_const:
                    arena[field].props["constant"] = True
            self.comments.move(stmt, field)
            if value is None:
                arena.detach(stmt)
            elif is_simple_literal(arena, value) and jsdoc is not None:
                arena.append(field, arena.detach(value))
                arena.detach(stmt)
            fields.append(field)
        for field in reversed(fields):
            first = arena.first_child(members)
            if first is None:
                arena.append(members, field)
            else:
                arena.insert_before(first, field)

    def _matching_param(self, params: int | None, value: int | None, name: str) -> int | None:
        arena = self.arena
        if params is None or arena.kind(value) != "NAME" or arena[value].string != name:
            return None
        for p in arena.children(params):
            if arena.kind(p) == "NAME" and arena[p].string == name:
                return p
            if arena.kind(p) == "DEFAULT_VALUE" and arena[arena.first_child(p)].string == name:
                return p
        return None

    def _to_interface(self, cls: int, ctor_def: int | None, jsdoc: JsDocInfo) -> None:
        arena = self.arena
        arena[cls].kind = "INTERFACE"
        superclass = arena.second_child(cls)
        if arena.kind(superclass) == "EMPTY" and jsdoc.extends:
            arena.replace(superclass, self.parse_type(jsdoc.extends, arena[cls].pos)[0])
        if ctor_def is not None:
            arena.detach(ctor_def)
        for member in arena.children(arena.last_child(cls)):
            if arena.kind(member) == "MEMBER_FUNCTION_DEF":
                fn = arena.first_child(member)
                body = arena.last_child(fn)
                if arena.kind(body) == "BLOCK":
                    replacement = arena.new("EMPTY", pos=arena[body].pos, source_file=arena[body].source_file)
                    arena.replace(body, replacement)
            elif arena.kind(member) == "MEMBER_VARIABLE_DEF":
                for c in arena.children(member):
                    arena.detach(c)

    # -----------------------------------------------------------------------
    # annotations
    # -----------------------------------------------------------------------

    def _function_jsdoc(self, fn: int) -> JsDocInfo | None:
        arena = self.arena
        if arena[fn].jsdoc is not None:
            return arena[fn].jsdoc
        parent = arena.parent(fn)
        match arena.kind(parent):
            case "MEMBER_FUNCTION_DEF" | "STRING_KEY":
                return arena[parent].jsdoc
            case "NAME":
                grand = arena.parent(parent)
                return arena[grand].jsdoc if grand is not None else None
            case "ASSIGN":
                grand = arena.parent(parent)
                if arena.kind(grand) == "EXPR_RESULT":
                    return arena[grand].jsdoc
            case "DECLARE":
                return arena[parent].jsdoc
            case _:
                pass
        return None

    def _annotate_function(self, fn: int) -> None:
        arena = self.arena
        jsdoc = self._function_jsdoc(fn)
        params = arena.second_child(fn)
        for p in arena.children(params) if params is not None else []:
            self._annotate_param(p, jsdoc)
        parent = arena.parent(fn)
        if arena.kind(parent) == "MEMBER_FUNCTION_DEF" and (
            arena[parent].string == "constructor" or arena[parent].props.get("accessor") == "set"
        ):
            return
        body = arena.last_child(fn)
        if jsdoc is not None and jsdoc.return_type is not None:
            arena[fn].declared_type, _ = self.parse_type(jsdoc.return_type, arena[fn].pos)
        elif arena[fn].props.get("arrow") and arena.kind(body) != "BLOCK":
            return
        elif arena.kind(parent) in ("CALL", "NEW"):
            return
        elif not has_value_return(arena, body):
            void = arena.new("VOID_TYPE", pos=arena[fn].pos)
            if arena[fn].props.get("async"):
                void = arena.new("NAMED_TYPE", "Promise", [void], pos=arena[fn].pos)
            arena[fn].declared_type = void

    def _annotate_param(self, param: int, jsdoc: JsDocInfo | None) -> None:
        arena = self.arena
        name = param if arena.kind(param) == "NAME" else arena.first_child(param)
        if arena.kind(param) not in ("NAME", "DEFAULT_VALUE") or name is None:
            return
        text = arena[param].props.get("inline_type")
        if jsdoc is not None and arena[name].string in jsdoc.params:
            text = jsdoc.params[arena[name].string]
        if text is None:
            return
        typ, optional = self.parse_type(str(text), arena[param].pos)
        if arena[typ].props.get("rest"):
            arena[name].props["rest"] = True
        arena[name].declared_type = typ
        if optional and arena.kind(param) == "NAME":
            arena[name].props["optional"] = True

    def _annotate_declaration(self, decl: int) -> None:
        arena = self.arena
        jsdoc = arena[decl].jsdoc
        names = arena.children(decl)
        if jsdoc is None:
            if arena.kind(decl) == "CONST":
                for n in names:
                    arena[n].props["constant"] = True
            return
        if jsdoc.typedef is not None and len(names) == 1 and not arena[names[0]].children:
            self._to_type_alias(decl, arena[names[0]].string, jsdoc.typedef)
            return
        for n in names:
            if arena.kind(n) != "NAME":
                continue
            if jsdoc.is_const or arena.kind(decl) == "CONST":
                arena[n].props["constant"] = True
            if jsdoc.type is not None and len(names) == 1 and arena[n].declared_type is None:
                arena[n].declared_type, _ = self.parse_type(jsdoc.type, arena[n].pos)
            elif jsdoc.enum_type is not None and arena.kind(arena.first_child(n)) != "OBJECTLIT":
                arena[n].declared_type, _ = self.parse_type(jsdoc.enum_type, arena[n].pos)

    def _annotate_member_variable(self, nid: int) -> None:
        jsdoc = self.arena[nid].jsdoc
        if jsdoc is None:
            return
        node = self.arena[nid]
        if jsdoc.type is not None and node.declared_type is None:
            node.declared_type, optional = self.parse_type(jsdoc.type, node.pos)
            if optional:
                node.props["optional"] = True
        if jsdoc.visibility:
            node.props["access"] = jsdoc.visibility
        if jsdoc.is_const:
            node.props["constant"] = True

    def _annotate_member_function(self, nid: int) -> None:
        jsdoc = self.arena[nid].jsdoc
        if jsdoc is not None and jsdoc.visibility:
            self.arena[nid].props["access"] = jsdoc.visibility

    def _annotate_cast(self, nid: int) -> None:
        node = self.arena[nid]
        text = node.props.get("cast_type")
        if text is not None and node.declared_type is None:
            node.declared_type, _ = self.parse_type(str(text), node.pos)
