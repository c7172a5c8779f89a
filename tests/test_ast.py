"""Tests for the arena syntax tree."""

import pytest

from tsmigrate.ast import Arena, TreeError, dump, split_qualified_name


def test_append_sets_parent(arena: Arena) -> None:
    block = arena.new("BLOCK")
    stmt = arena.new("EMPTY")
    arena.append(block, stmt)
    assert arena.parent(stmt) == block
    assert arena.children(block) == [stmt]


def test_attach_with_parent_raises(arena: Arena) -> None:
    a = arena.new("BLOCK")
    b = arena.new("BLOCK")
    stmt = arena.new("EMPTY")
    arena.append(a, stmt)
    with pytest.raises(TreeError):
        arena.append(b, stmt)
    with pytest.raises(TreeError):
        arena.insert_before(stmt, stmt)


def test_detach_then_reattach(arena: Arena) -> None:
    a = arena.new("BLOCK")
    b = arena.new("BLOCK")
    stmt = arena.new("EMPTY")
    arena.append(a, stmt)
    arena.append(b, arena.detach(stmt))
    assert arena.children(a) == []
    assert arena.parent(stmt) == b


def test_replace_keeps_slot(arena: Arena) -> None:
    first = arena.new("EMPTY")
    old = arena.new("NAME", "x")
    last = arena.new("EMPTY")
    block = arena.new("BLOCK", children=[first, old, last])
    new = arena.new("NAME", "y")
    arena.replace(old, new)
    assert arena.children(block) == [first, new, last]
    assert arena.parent(old) is None


def test_replace_detached_raises(arena: Arena) -> None:
    with pytest.raises(TreeError):
        arena.replace(arena.new("EMPTY"), arena.new("EMPTY"))


def test_children_is_a_copy(arena: Arena) -> None:
    stmt = arena.new("EMPTY")
    block = arena.new("BLOCK", children=[stmt])
    kids = arena.children(block)
    kids.clear()
    assert arena.children(block) == [stmt]


def test_previous_and_insert_before(arena: Arena) -> None:
    second = arena.new("NAME", "b")
    block = arena.new("BLOCK", children=[second])
    first = arena.new("NAME", "a")
    arena.insert_before(second, first)
    assert arena.previous(second) == first
    assert arena.previous(first) is None
    assert arena.previous(block) is None


def test_qualified_names(arena: Arena) -> None:
    chain = arena.build_qualified("a.b.C")
    assert arena.qualified_name(chain) == "a.b.C"
    assert dump(arena, chain) == "GETPROP:C(GETPROP:b(NAME:a))"
    this = arena.new("GETPROP", "x", [arena.new("THIS")])
    assert arena.qualified_name(this) == "this.x"
    call = arena.new("GETPROP", "bar", [arena.new("CALL", children=[arena.new("NAME", "foo")])])
    assert arena.qualified_name(call) is None


def test_split_qualified_name() -> None:
    assert split_qualified_name("a.b.C") == ("a.b", "C")
    assert split_qualified_name("C") == ("", "C")
    assert split_qualified_name(None) == ("", "")


def test_post_order_and_enclosing(arena: Arena) -> None:
    x = arena.new("NAME", "x")
    one = arena.new("NUMBER", "1")
    assign = arena.new("ASSIGN", children=[x, one])
    stmt = arena.new("EXPR_RESULT", children=[assign])
    script = arena.new("SCRIPT", "t.js", [stmt])
    assert arena.post_order(script) == [x, one, assign, stmt, script]
    assert arena.enclosing(one, "SCRIPT") == script
    assert arena.enclosing(one, "CLASS") is None


def test_dump_shows_declared_type(arena: Arena) -> None:
    name = arena.new("NAME", "x")
    arena[name].declared_type = arena.new("NUMBER_TYPE")
    assert dump(arena, name) == "NAME:x<NUMBER_TYPE>"
