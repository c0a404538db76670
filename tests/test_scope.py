"""Tests for scope insertion, lookup and rendering."""

import pytest
from gscope.analysis.scope import (
    Scope, is_exported,
    num_entries, is_empty, index, lookup, lookup_parent, scope_string,
)
from gscope.analysis.objects import Package, Const, Var, Func, TypeName


def _pkg(path):
    return Package(path, path.rsplit("/", 1)[-1], Scope())


class TestAbsentScope:
    def test_absent_behaves_like_empty(self):
        p = _pkg("p")
        assert num_entries(None) == 0
        assert is_empty(None)
        assert index(None, None, "x") is None
        assert index(None, p, "x") is None
        assert lookup(None, p, "x") is None
        assert lookup_parent(None, "x") is None

    def test_empty_scope_matches_absent(self):
        s = Scope()
        p = _pkg("p")
        assert num_entries(s) == s.num_entries() == 0
        assert is_empty(s) and s.is_empty()
        assert s.index(None, "x") is None
        assert s.lookup(p, "x") is None
        assert s.lookup_parent("x") is None

    def test_absent_rendering(self):
        assert scope_string(None) == "scope {}\n"


class TestInsert:
    def test_insertion_order_preserved(self):
        p = _pkg("p")
        s = Scope()
        objs = [Var(name, p) for name in ("c", "a", "b", "Z")]
        for obj in objs:
            assert s.insert(obj) is None
        assert s.num_entries() == 4
        assert not s.is_empty()
        assert [s.at(i) for i in range(4)] == objs
        assert list(s) == objs

    def test_conflict_returns_original(self):
        p = _pkg("p")
        s = Scope()
        first = Const("pi", p)
        second = Const("pi", p)
        assert s.insert(first) is None
        assert s.insert(second) is first
        assert s.num_entries() == 1
        assert s.at(0) is first
        assert second.parent is None

    def test_insert_records_owner(self):
        p = _pkg("p")
        s = Scope()
        obj = Func("f", p)
        assert obj.parent is None
        s.insert(obj)
        assert obj.parent is s

    def test_owner_is_never_reassigned(self):
        p = _pkg("p")
        owner, other = Scope(), Scope()
        obj = Func("F", p)
        owner.insert(obj)
        assert other.insert(obj) is None
        assert other.lookup(None, "F") is obj
        assert obj.parent is owner

    def test_scenario_b(self):
        s0 = Scope()
        p = _pkg("p")
        a = Var("a", p)
        a2 = Var("a", p)
        s0.insert(a)
        assert s0.insert(a2) is a
        assert s0.num_entries() == 1


class TestIdentity:
    def test_is_exported(self):
        assert is_exported("Pi")
        assert is_exported("Ä")
        assert not is_exported("pi")
        assert not is_exported("_X")
        assert not is_exported("")

    def test_unexported_names_from_different_packages_differ(self):
        a, b, c = _pkg("a"), _pkg("b"), _pkg("c")
        s = Scope()
        xa, xb = Var("x", a), Var("x", b)
        assert s.insert(xa) is None
        assert s.insert(xb) is None
        assert s.num_entries() == 2
        assert s.lookup(c, "x") is None
        assert s.lookup(a, "x") is xa
        assert s.lookup(b, "x") is xb
        assert s.index(b, "x") == 1

    def test_unqualified_lookup_takes_first(self):
        a, b = _pkg("a"), _pkg("b")
        s = Scope()
        xa, xb = Var("x", a), Var("x", b)
        s.insert(xa)
        s.insert(xb)
        assert s.lookup(None, "x") is xa
        assert s.index(None, "x") == 0

    def test_exported_names_match_any_qualifier(self):
        a, b, c = _pkg("a"), _pkg("b"), _pkg("c")
        s = Scope()
        xa = Var("X", a)
        s.insert(xa)
        assert s.lookup(c, "X") is xa
        assert s.insert(Var("X", b)) is xa
        assert s.num_entries() == 1

    def test_same_origin_matches_only_its_own_object(self):
        a, b = _pkg("a"), _pkg("b")
        s = Scope()
        xa = Var("x", a)
        s.insert(xa)
        assert s.lookup(a, "x") is xa
        assert s.lookup(b, "x") is None

    def test_universe_objects_have_empty_path(self):
        p = _pkg("p")
        s = Scope()
        true = Const("true", None)
        s.insert(true)
        assert s.lookup(None, "true") is true
        assert s.lookup(p, "true") is None
        assert s.lookup(_pkg(""), "true") is true

    def test_spelling_matters(self):
        p = _pkg("p")
        s = Scope()
        s.insert(Var("value", p))
        assert s.lookup(p, "Value") is None
        assert s.lookup(None, "valu") is None


class TestLookupParent:
    def test_shadowing(self):
        p = _pkg("p")
        outer = Scope()
        inner = Scope(outer)
        x_outer = Var("x", p)
        outer.insert(x_outer)
        assert inner.lookup_parent("x") is x_outer
        x_inner = Var("x", p)
        inner.insert(x_inner)
        assert inner.lookup_parent("x") is x_inner
        assert outer.lookup_parent("x") is x_outer

    def test_exhausted_chain(self):
        p = _pkg("p")
        root = Scope()
        root.insert(Var("y", p))
        s = root
        for _ in range(100):
            s = Scope(s)
        assert s.lookup_parent("x") is None
        assert s.lookup_parent("y") is root.at(0)

    def test_parent_link(self):
        root = Scope()
        child = Scope(root)
        assert root.parent is None
        assert child.parent is root

    def test_scenario_a(self):
        math, p = _pkg("math"), _pkg("p")
        s0 = Scope()
        a = Const("pi", math)
        s0.insert(a)
        s1 = Scope(s0)
        b = Const("pi", p)
        s1.insert(b)
        assert s1.lookup_parent("pi") is b
        assert s0.lookup(p, "pi") is None
        assert s0.lookup(math, "pi") is a


class TestAt:
    def test_out_of_range(self):
        s = Scope()
        s.insert(Var("x", _pkg("p")))
        with pytest.raises(IndexError):
            s.at(1)
        with pytest.raises(IndexError):
            s.at(-1)


class TestString:
    def test_entries_rendered_in_order(self):
        p = _pkg("p")
        s = Scope(comment="package p")
        s.insert(Const("pi", p))
        s.insert(Func("Sin", p))
        s.insert(TypeName("T", p))
        assert str(s) == f"scope {s.id} package p {{\n\tpi\tConst\n\tSin\tFunc\n\tT\tTypeName\n}}\n"

    def test_empty_scope(self):
        s = Scope()
        assert scope_string(s) == f"scope {s.id} {{\n}}\n"

    def test_ids_are_distinct(self):
        a, b = Scope(), Scope()
        assert a.id != b.id
        assert b.id > a.id
