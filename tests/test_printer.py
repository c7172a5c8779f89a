"""Tests for the generic printer and the TypeScript override layer."""

import pytest

from tsmigrate.ast import Arena
from tsmigrate.backend.printer import CodeBuffer, CodePrinter
from tsmigrate.backend.typescript import (
    TypeScriptPrinter,
    count_leading_breaks,
    reconcile_leading_newlines,
)
from tsmigrate.frontend.comments import CommentMap


def ts(arena: Arena, nid: int, comments: CommentMap | None = None, externs_map: dict[str, str] | None = None) -> str:
    return TypeScriptPrinter(arena, comments or CommentMap(), externs_map).print_file(nid)


def plain(arena: Arena, nid: int) -> str:
    """Default emission only, with no override layer."""
    printer = CodePrinter(arena)

    def add(c: int) -> None:
        printer.emit(c, add)

    add(nid)
    return printer.out.getvalue()


def typed(arena: Arena, kind, string: str, typ: int) -> int:
    nid = arena.new(kind, string)
    arena[nid].declared_type = typ
    return nid


def _fn_type(arena: Arena) -> int:
    fn = arena.new("FUNCTION_TYPE", "", [arena.new("STRING_TYPE")])
    arena[fn].declared_type = arena.new("NUMBER_TYPE")
    return fn


def index_signature(arena: Arena) -> int:
    key = typed(arena, "NAME", "key", arena.new("STRING_TYPE"))
    sig = arena.new("INDEX_SIGNATURE", "", [key])
    arena[sig].declared_type = arena.new("NUMBER_TYPE")
    return sig


# --- CodeBuffer ---


def test_buffer_newline_swallowed_at_line_start() -> None:
    out = CodeBuffer()
    out.newline()
    out.write("a")
    out.newline()
    out.newline()
    out.write("b")
    assert out.getvalue() == "a\nb\n"


def test_buffer_synthetic_break() -> None:
    out = CodeBuffer()
    out.synthetic_break()
    out.write("a {")
    out.newline()
    out.synthetic_break()
    out.write("b")
    out.synthetic_break()
    out.newline()
    out.synthetic_break()
    out.synthetic_break()
    out.write("c")
    assert out.getvalue() == " \na {\nb\n\nc\n"


def test_buffer_block_text_reindents() -> None:
    out = CodeBuffer()
    out.indent()
    out.write_block_text("/**\n     * Doc.\n     */", 4)
    assert out.getvalue() == "  /**\n   * Doc.\n   */\n"


def test_buffer_empty() -> None:
    assert CodeBuffer().getvalue() == ""


# --- overrides ---


def test_new_without_arguments(arena: Arena) -> None:
    nid = arena.new("NEW", "", [arena.new("NAME", "Foo")])
    assert ts(arena, nid) == "new Foo()\n"
    assert plain(arena, nid) == "new Foo\n"


def test_new_with_arguments(arena: Arena) -> None:
    nid = arena.new("NEW", "", [arena.new("NAME", "Foo"), arena.new("NUMBER", "1")])
    assert ts(arena, nid) == "new Foo(1)\n"


def test_function_type_in_union(arena: Arena) -> None:
    union = arena.new("UNION_TYPE", "", [_fn_type(arena), arena.new("NULL_TYPE")])
    assert ts(arena, union) == "((p1: string) => number)|null\n"


def test_function_type_alone(arena: Arena) -> None:
    assert ts(arena, _fn_type(arena)) == "(p1: string) => number\n"


def test_index_signature(arena: Arena) -> None:
    sig = index_signature(arena)
    assert ts(arena, sig) == "{[key:string]:number}\n"
    assert plain(arena, sig) == "{[key: string]: number}\n"


def test_undefined_type(arena: Arena) -> None:
    nid = arena.new("UNDEFINED_TYPE")
    assert ts(arena, nid) == "undefined\n"
    assert plain(arena, nid) == "void\n"


def test_cast(arena: Arena) -> None:
    cast = typed(arena, "CAST", "", arena.new("NUMBER_TYPE"))
    arena.append(cast, arena.new("NAME", "x"))
    assert ts(arena, cast) == "(x as number)\n"
    assert plain(arena, cast) == "x\n"


def test_any_alias(arena: Arena) -> None:
    nid = arena.new("ANY_TYPE")
    assert ts(arena, nid) == "any\n"
    assert ts(arena, nid, externs_map={"any": "unknown"}) == "unknown\n"


def test_parameter_property(arena: Arena) -> None:
    param = typed(arena, "NAME", "x", arena.new("NUMBER_TYPE"))
    arena[param].props["access"] = "protected"
    arena[param].props["constant"] = True
    fn = arena.new("FUNCTION", "", [arena.new("NAME"), arena.new("PARAM_LIST", "", [param]), arena.new("BLOCK")])
    member = arena.new("MEMBER_FUNCTION_DEF", "constructor", [fn])
    assert ts(arena, member).strip() == "constructor(protected readonly x: number) {}"


def test_export_type_alias(arena: Arena) -> None:
    alias = typed(arena, "TYPE_ALIAS", "T", arena.new("STRING_TYPE"))
    export = arena.new("EXPORT", "", [alias])
    assert ts(arena, export).strip() == "export type T = string;"
    assert plain(arena, export) == "export type T = string;;\n"


def test_export_declaration_not_doubled(arena: Arena) -> None:
    name = arena.new("NAME", "x", [arena.new("NUMBER", "1")])
    export = arena.new("EXPORT", "", [arena.new("CONST", "", [name])])
    assert ts(arena, export).strip() == "export const x = 1;"


# --- layout ---


def test_member_variable_initializer(arena: Arena) -> None:
    field = arena.new("MEMBER_VARIABLE_DEF", "x", [arena.new("NUMBER", "1")])
    arena[field].props["access"] = "private"
    arena[field].declared_type = arena.new("NUMBER_TYPE")
    cls = arena.new("CLASS", "", [arena.new("NAME", "A"), arena.new("EMPTY"), arena.new("CLASS_MEMBERS", "", [field])])
    assert ts(arena, cls) == " \nclass A {\n  private x: number = 1;\n}\n"


def test_declared_namespace(arena: Arena) -> None:
    stmt = arena.new("EXPR_RESULT", "", [arena.new("NAME", "b")])
    ns = arena.new("NAMESPACE", "", [arena.new("NAME", "a"), arena.new("NAMESPACE_ELEMENTS", "", [stmt])])
    declare = arena.new("DECLARE", "", [ns])
    assert ts(arena, declare) == "declare namespace a {\n  b;\n}\n"


def _two_functions(arena: Arena) -> tuple[int, int, int]:
    f = arena.new("FUNCTION", "", [arena.new("NAME", "f"), arena.new("PARAM_LIST"), arena.new("BLOCK")])
    g = arena.new("FUNCTION", "", [arena.new("NAME", "g"), arena.new("PARAM_LIST"), arena.new("BLOCK")])
    script = arena.new("SCRIPT", "t.js", [f, g])
    return (script, f, g)


def test_blank_line_between_functions(arena: Arena) -> None:
    script, _, _ = _two_functions(arena)
    assert ts(arena, script) == " \nfunction f() {}\n\nfunction g() {}\n"


def test_comment_replaces_blank_line(arena: Arena) -> None:
    script, _, g = _two_functions(arena)
    comments = CommentMap()
    comments.put(g, "// g")
    assert ts(arena, script, comments) == " \nfunction f() {}\n// g\nfunction g() {}\n"


def test_parent_comment_replaces_blank_line(arena: Arena) -> None:
    script, _, g = _two_functions(arena)
    wrapper = arena.new("EXPR_RESULT")
    arena.replace(g, wrapper)
    arena.append(wrapper, g)
    comments = CommentMap()
    comments.put(wrapper, "// g")
    assert ts(arena, script, comments) == " \nfunction f() {}\n// g\nfunction g() {};\n"


def test_commented_placeholder_replaces_blank_line(arena: Arena) -> None:
    script, _, g = _two_functions(arena)
    placeholder = arena.new("EMPTY")
    arena.insert_before(g, placeholder)
    comments = CommentMap()
    comments.put(placeholder, "// note")
    assert ts(arena, script, comments) == " \nfunction f() {}\n// note\nfunction g() {}\n"
    comments = CommentMap()
    assert ts(arena, script, comments) == " \nfunction f() {}\n\nfunction g() {}\n"


def test_arrow_object_body(arena: Arena) -> None:
    fn = arena.new("FUNCTION", "", [arena.new("NAME"), arena.new("PARAM_LIST"), arena.new("OBJECTLIT")])
    arena[fn].props["arrow"] = True
    assert ts(arena, fn).strip() == "() => ({})"


def test_rest_parameter_and_array_of_union(arena: Arena) -> None:
    union = arena.new("UNION_TYPE", "", [arena.new("STRING_TYPE"), arena.new("NUMBER_TYPE")])
    rest = typed(arena, "NAME", "xs", union)
    arena[rest].props["rest"] = True
    params = arena.new("PARAM_LIST", "", [rest])
    assert ts(arena, params) == "...xs: (string|number)[]\n"


def test_unknown_kind_raises(arena: Arena) -> None:
    nid = arena.new("NAME", "x")
    arena[nid].kind = "BOGUS"  # type: ignore[assignment]
    with pytest.raises(ValueError, match="BOGUS"):
        plain(arena, nid)


# --- leading newlines ---


def test_count_leading_breaks() -> None:
    assert count_leading_breaks("\n \nx") == 2
    assert count_leading_breaks("x\n") == 0


def test_reconcile_leading_newlines() -> None:
    assert reconcile_leading_newlines("x", " \nfoo") == "foo"
    assert reconcile_leading_newlines("\n\nx", " \nfoo") == "\nfoo"
    assert reconcile_leading_newlines("\nx", "foo") == "foo"
