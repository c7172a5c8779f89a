"""Tests for the rewrite engine and the structural and style rule sets."""

from tsmigrate.ast import Arena, dump
from tsmigrate.middleend.engine import namespace_of, traverse, wrap_in_namespace
from tsmigrate.middleend.externs import ExternConversion
from tsmigrate.middleend.style import StyleFix, uses_own_binding


def _convert(arena: Arena, parse, source: str) -> str:
    root, script = parse(source)
    traverse(arena, root, ExternConversion())
    return dump(arena, script)


# --- engine ---


class Recorder:
    def __init__(self) -> None:
        self.kinds: list[str] = []

    def visit(self, arena: Arena, nid: int, parent: int | None) -> None:
        self.kinds.append(arena[nid].kind)


def test_post_order_visits(arena: Arena, parse) -> None:
    root, _ = parse("var x = 1;")
    recorder = Recorder()
    traverse(arena, root, recorder)
    assert recorder.kinds == ["NUMBER", "NAME", "VAR", "SCRIPT", "ROOT"]


class DetachNext:
    """Detaches the statement after the first one it sees."""

    def __init__(self) -> None:
        self.visited: list[str] = []

    def visit(self, arena: Arena, nid: int, parent: int | None) -> None:
        node = arena[nid]
        self.visited.append(node.kind + ":" + node.string)
        if node.kind == "EXPR_RESULT" and parent is not None and len(arena[parent].children) > 1:
            siblings = arena.children(parent)
            if siblings[0] == nid:
                arena.detach(siblings[1])


def test_detached_nodes_are_skipped(arena: Arena, parse) -> None:
    root, _ = parse("first;\nsecond;")
    rules = DetachNext()
    traverse(arena, root, rules)
    assert "NAME:second" not in rules.visited
    assert "NAME:first" in rules.visited


class Rename:
    def __init__(self) -> None:
        self.seen: list[str] = []

    def visit(self, arena: Arena, nid: int, parent: int | None) -> None:
        node = arena[nid]
        if node.kind == "NAME":
            self.seen.append(node.string)
            if node.string == "x":
                arena.replace(nid, arena.new("NAME", "y"))


def test_created_nodes_are_not_visited(arena: Arena, parse) -> None:
    root, script = parse("x;")
    rules = Rename()
    traverse(arena, root, rules)
    assert rules.seen == ["x"]
    assert dump(arena, script) == "SCRIPT:test.js(EXPR_RESULT(NAME:y))"


def test_namespace_of(arena: Arena, parse) -> None:
    _, script = parse("a.b.c = 1;\nthis.x = 1;\nexports.y = 1;\na.prototype.m = 1;")
    stmts = arena.children(script)
    targets = [arena.first_child(arena.first_child(s)) for s in stmts]
    assert [namespace_of(arena, t, s) for t, s in zip(targets, stmts)] == ["a.b", "", "", ""]


def test_wrap_in_namespace(arena: Arena, parse) -> None:
    _, script = parse("c;")
    stmt = arena.first_child(script)
    declare = wrap_in_namespace(arena, stmt, "a.b")
    assert arena.parent(declare) == script
    assert dump(arena, script) == "SCRIPT:test.js(DECLARE(NAMESPACE(NAME:a.b NAMESPACE_ELEMENTS(EXPR_RESULT(NAME:c)))))"


# --- structural rules ---


def test_empty_object_var_removed(arena: Arena, parse) -> None:
    assert _convert(arena, parse, "var ns = {};") == "SCRIPT:test.js"


def test_empty_object_assign_removed(arena: Arena, parse) -> None:
    assert _convert(arena, parse, "a.b = {};") == "SCRIPT:test.js"


def test_empty_object_on_this_kept(arena: Arena, parse) -> None:
    result = _convert(arena, parse, "this.x = {};")
    assert result == "SCRIPT:test.js(EXPR_RESULT(ASSIGN(GETPROP:x(THIS) OBJECTLIT)))"


def test_class_assignment_becomes_declaration(arena: Arena, parse) -> None:
    result = _convert(arena, parse, "a.b.MyClass = class { method() {} };")
    assert result == (
        "SCRIPT:test.js(DECLARE(NAMESPACE(NAME:a.b NAMESPACE_ELEMENTS("
        "CLASS(NAME:MyClass EMPTY CLASS_MEMBERS(MEMBER_FUNCTION_DEF:method(FUNCTION(NAME PARAM_LIST EMPTY))))))))"
    )


def test_value_assignment_wrapped(arena: Arena, parse) -> None:
    result = _convert(arena, parse, "a.b.c = 5;")
    assert result == (
        "SCRIPT:test.js(DECLARE(NAMESPACE(NAME:a.b NAMESPACE_ELEMENTS(EXPR_RESULT(ASSIGN(NAME:c NUMBER:5))))))"
    )


def test_bare_name_wrapped(arena: Arena, parse) -> None:
    result = _convert(arena, parse, "a.b.c;")
    assert result == "SCRIPT:test.js(DECLARE(NAMESPACE(NAME:a.b NAMESPACE_ELEMENTS(EXPR_RESULT(NAME:c)))))"


def test_wrapped_once(arena: Arena, parse) -> None:
    root, script = parse("a.b.c = 5;")
    traverse(arena, root, ExternConversion())
    traverse(arena, root, ExternConversion())
    assert dump(arena, script).count("NAMESPACE(") == 1


def test_non_member_function_body_kept(arena: Arena, parse) -> None:
    assert _convert(arena, parse, "function f() {}") == "SCRIPT:test.js(FUNCTION(NAME:f PARAM_LIST BLOCK))"


def test_untouched_statements(arena: Arena, parse) -> None:
    for source in [
        "this.x = 1;",
        "x = 5;",
        "a.prototype.foo = function() {};",
        "foo().bar = 1;",
        "function f() { a.b.c = 1; }",
    ]:
        root, script = parse(source)
        before = dump(arena, script)
        traverse(arena, root, ExternConversion())
        assert dump(arena, script) == before, source


# --- style rules ---


def test_var_becomes_let_or_const(arena: Arena, parse) -> None:
    root, script = parse("var a = 1, b = 2;\nvar c = 3;\nvar d;")
    first, second, third = arena.children(script)
    for n in arena.children(first):
        arena[n].props["constant"] = True
    arena[arena.first_child(third)].props["constant"] = True
    traverse(arena, root, StyleFix())
    assert [arena.kind(s) for s in (first, second, third)] == ["CONST", "LET", "LET"]


def test_callback_becomes_arrow(arena: Arena, parse) -> None:
    root, script = parse("items.forEach(function(item) { log(item); });")
    traverse(arena, root, StyleFix())
    fn = [n for n in arena.post_order(script) if arena.kind(n) == "FUNCTION"][0]
    assert arena[fn].props.get("arrow")


def test_callback_using_this_stays_function(arena: Arena, parse) -> None:
    root, script = parse("el.on(function() { this.x = 1; });\nel.on(function named() {});\n(function() {})();")
    traverse(arena, root, StyleFix())
    fns = [n for n in arena.post_order(script) if arena.kind(n) == "FUNCTION"]
    assert len(fns) == 3
    assert not any(arena[fn].props.get("arrow") for fn in fns)


def test_uses_own_binding_ignores_nested_functions(arena: Arena, parse) -> None:
    _, script = parse("f(function() { g(function() { return arguments; }); });\nf(function() { g(() => this); });")
    fns = [arena.second_child(arena.first_child(s)) for s in arena.children(script)]
    assert [arena.kind(fn) for fn in fns] == ["FUNCTION", "FUNCTION"]
    assert not uses_own_binding(arena, fns[0])
    assert uses_own_binding(arena, fns[1])
