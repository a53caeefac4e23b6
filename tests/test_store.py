"""Tests for ReactiveStore reads and writes."""

import datetime

import pytest

from deepstore import (
    CANCEL,
    DELETE,
    ROOT,
    EqualityRegistry,
    ReactiveStore,
    UsageError,
    autorun,
    shallow,
)


class TestGet:
    def test_root(self):
        s = ReactiveStore({"a": 1})
        assert s.get() == {"a": 1}
        assert s.get(ROOT) is s.data

    def test_nested(self):
        s = ReactiveStore({"a": {"b": [10, {"c": "x"}]}})
        assert s.get("a.b.0") == 10
        assert s.get("a.b.1.c") == "x"

    def test_missing_is_none(self):
        s = ReactiveStore({"a": 1})
        assert s.get("z") is None
        assert s.get("a.b.c") is None

    def test_list_tokens(self):
        s = ReactiveStore([1, 2])
        assert s.get("1") == 2
        assert s.get("5") is None
        assert s.get("x") is None
        assert s.get("-1") is None

    def test_reads_share_one_handle(self):
        s = ReactiveStore({"a": 1})
        handles = []

        def read():
            s.get("a")
            s.get("a")
            handles.append(s._root_node.sub_deps["a"].value_dep)

        autorun(read)
        s.assign("a", 2)
        assert len(handles) == 2
        assert handles[0] is handles[1]

    def test_untracked_read_builds_no_nodes(self):
        s = ReactiveStore({"a": {"b": 1}})
        assert s.get("a.b") == 1
        assert s._root_node.sub_deps == {}

    def test_reactive_false(self):
        s = ReactiveStore({"a": 1})
        log = []
        autorun(lambda: log.append(s.get("a", reactive=False)))
        s.assign("a", 2)
        assert log == [1]

    def test_tracks_paths_that_do_not_exist_yet(self):
        s = ReactiveStore({})
        log = []
        autorun(lambda: log.append(s.get("a.b.c")))
        s.assign("a.b.c", 5)
        assert log == [None, 5]


class TestHas:
    def test_basic(self):
        s = ReactiveStore({"a": {"b": 0}, "n": None})
        assert s.has("a.b") is True
        assert s.has("n") is False
        assert s.has("x.y") is False
        assert s.has() is True

    def test_reacts_to_existence_only(self):
        s = ReactiveStore({"a": 1})
        log = []
        autorun(lambda: log.append(s.has("a")))
        s.assign("a", 2)
        assert log == [True]
        s.delete("a")
        assert log == [True, False]
        s.assign("a", 3)
        assert log == [True, False, True]

    def test_equal_container_replacement_is_silent(self):
        s = ReactiveStore({"p": {"a": 1}})
        log = []
        autorun(lambda: log.append(("has", s.has("p"))))
        autorun(lambda: log.append(("get", s.get("p"))))
        autorun(lambda: log.append(("has.a", s.has("p.a"))))
        autorun(lambda: log.append(("get.a", s.get("p.a"))))
        before = list(log)
        s.assign("p", {"a": 1})
        assert log == before
        assert s.get("p") == {"a": 1}

    def test_none_under_missing_key_is_not_a_change(self):
        s = ReactiveStore({"a": {}})
        exists_log = []
        value_log = []
        autorun(lambda: exists_log.append(s.has("a.b")))
        autorun(lambda: value_log.append(s.get("a.b")))
        s.assign("a.b", None)
        assert exists_log == [False]
        assert value_log == [None]
        assert s.get("a") == {"b": None}

    def test_intermediate_creation_flips_existence(self):
        s = ReactiveStore({})
        log = []
        autorun(lambda: log.append(s.has("c.d")))
        s.assign("c.d.e", True)
        assert log == [False, True]


class TestEquals:
    def test_basic(self):
        s = ReactiveStore({"mode": "edit", "n": 1})
        assert s.equals("mode", "edit") is True
        assert s.equals("mode", "view") is False
        assert s.equals("missing", None) is True
        assert s.equals("n", True) is False

    def test_functions_compare(self):
        s = ReactiveStore({"f": len})
        assert s.equals("f", len) is True
        assert s.equals("f", max) is False

    def test_rejects_containers(self):
        s = ReactiveStore({"mode": "edit"})
        with pytest.raises(UsageError):
            s.equals("mode", {"a": 1})
        with pytest.raises(UsageError):
            s.equals("mode", [1])

    def test_only_flipping_interests_rerun(self):
        s = ReactiveStore({"mode": "edit"})
        runs = {"edit": 0, "view": 0, "admin": 0}

        def watcher(mode):
            def run():
                s.equals("mode", mode)
                runs[mode] += 1

            return run

        for mode in list(runs):
            autorun(watcher(mode))
        assert runs == {"edit": 1, "view": 1, "admin": 1}

        s.assign("mode", "view")
        assert runs == {"edit": 2, "view": 2, "admin": 1}

        s.assign("mode", "other")
        assert runs == {"edit": 2, "view": 3, "admin": 1}


class TestAssign:
    def test_same_reference_wakes_child_set_to_none(self):
        inner = {"x": 1}
        s = ReactiveStore({"a": inner})
        values = []
        present = []
        autorun(lambda: values.append(s.get("a.x")))
        autorun(lambda: present.append(s.has("a.x")))
        inner["x"] = None
        s.assign("a", inner)
        assert values == [1, None]
        assert present == [True, False]

    def test_creates_intermediates(self):
        s = ReactiveStore({})
        s.assign("a.b.c", 1)
        assert s.data == {"a": {"b": {"c": 1}}}

    def test_mapping(self):
        s = ReactiveStore({})
        s.assign({"a.b": 1, "c.d.e": True})
        assert s.get("a.b") == 1
        assert s.get("c") == {"d": {"e": True}}

    def test_get_after_assign(self):
        s = ReactiveStore({})
        for value in (0, "", "text", 2.5, [1, 2], {"x": 1}, {1, 2}):
            s.assign("p.q", value)
            assert s.get("p.q") == value

    def test_replaces_non_container_intermediate(self):
        s = ReactiveStore({"a": 5})
        s.assign("a.b", 1)
        assert s.data == {"a": {"b": 1}}

    def test_coerces_non_container_root(self):
        s = ReactiveStore(5)
        s.assign("a", 1)
        assert s.data == {"a": 1}

    def test_assign_root(self):
        s = ReactiveStore({"a": 1})
        s.assign(ROOT, [1])
        assert s.data == [1]

    def test_list_indices(self):
        s = ReactiveStore({"items": [1, 2]})
        s.assign("items.1", 20)
        s.assign("items.2", 30)
        s.assign("items.4", 50)
        assert s.get("items") == [1, 20, 30, None, 50]

    def test_non_numeric_list_token_is_ignored(self):
        s = ReactiveStore({"items": [1]})
        s.assign("items.x", 1)
        s.assign("items.x.y", 1)
        assert s.data == {"items": [1]}

    def test_cancel_keeps_prior_value(self):
        s = ReactiveStore({"a": 1})
        s.assign("a", CANCEL)
        assert s.get("a") == 1

    def test_delete_sentinel(self):
        s = ReactiveStore({"a": 1, "b": 2})
        s.assign("a", DELETE)
        assert s.data == {"b": 2}

    def test_requires_value(self):
        s = ReactiveStore({})
        with pytest.raises(UsageError):
            s.assign("a")

    def test_path_must_be_string(self):
        s = ReactiveStore({})
        with pytest.raises(UsageError):
            s.assign(5, 1)

    def test_structurally_equal_replacement_is_silent(self):
        s = ReactiveStore({"a": {"x": 1}})
        log = []
        autorun(lambda: log.append(s.get("a")))
        s.assign("a", {"x": 1})
        assert len(log) == 1
        s.assign("a", {"x": 2})
        assert len(log) == 2

    def test_same_reference_is_assumed_changed(self):
        inner = {"x": 1}
        s = ReactiveStore({"a": inner})
        log = []
        autorun(lambda: log.append(s.get("a.x")))
        inner["x"] = 2
        s.assign("a", inner)
        assert log == [1, 2]

    def test_ancestor_woken_by_descendant_write(self):
        s = ReactiveStore({"a": {"b": {"c": 1}}})
        log = []
        autorun(lambda: log.append(s.get("a")))
        s.assign("a.b.c", 2)
        assert len(log) == 2
        s.assign("a.b.c", 2)
        assert len(log) == 2

    def test_sibling_not_woken(self):
        s = ReactiveStore({"a": 1, "b": 1})
        log = []
        autorun(lambda: log.append(s.get("b")))
        s.assign("a", 2)
        assert log == [1]

    def test_self_referential_values_terminate(self):
        s = ReactiveStore({})
        log = []
        autorun(lambda: log.append(s.get("a.self.self.value")))

        old = {"value": 1}
        old["self"] = old
        s.assign("a", old)
        assert log == [None, 1]

        new = {"value": 1}
        new["self"] = new
        s.assign("a", new)
        assert len(log) == 3
        assert log[-1] == 1

    def test_scenario(self):
        s = ReactiveStore({})
        log = []
        autorun(lambda: log.append(s.get("a")))

        s.assign({"a.b": 1, "c.d.e": True})
        assert s.get("a.b") == 1
        assert s.get("c") == {"d": {"e": True}}
        assert len(log) == 2

        s.delete("a.b", "c.d.e")
        assert s.data == {"a": {}, "c": {"d": {}}}
        assert len(log) == 3


class TestDelete:
    def test_round_trip(self):
        s = ReactiveStore({})
        s.assign("a.b", 1)
        s.delete("a.b")
        assert s.has("a.b") is False
        assert s.get("a.b") is None

    def test_missing_paths_are_noops(self):
        s = ReactiveStore({"a": 1})
        log = []
        autorun(lambda: log.append(s.get()))
        s.delete("x", "a.b.c")
        assert len(log) == 1
        assert s.data == {"a": 1}

    def test_non_container_root_is_skipped(self):
        s = ReactiveStore(5)
        s.delete("a")
        assert s.data == 5

    def test_deleted_subtree_wakes_descendants(self):
        s = ReactiveStore({"a": {"b": {"c": 1}}})
        log = []
        autorun(lambda: log.append(s.has("a.b.c")))
        s.delete("a")
        assert log == [True, False]

    def test_list_item_shifts_later_indices(self):
        s = ReactiveStore({"items": ["a", "b", "c"]})
        seen = []
        autorun(lambda: seen.append(s.get("items.1")))
        s.delete("items.0")
        assert s.get("items") == ["b", "c"]
        assert seen == ["b", "c"]


class TestSetAndClear:
    def test_set_wakes_changed_paths_only(self):
        s = ReactiveStore({"a": 1, "b": 2})
        a_log, b_log = [], []
        autorun(lambda: a_log.append(s.get("a")))
        autorun(lambda: b_log.append(s.get("b")))
        s.set({"a": 1, "b": 3})
        assert a_log == [1]
        assert b_log == [2, 3]

    def test_set_from_primitive_wakes_dormant_paths(self):
        s = ReactiveStore(None)
        log = []
        autorun(lambda: log.append(s.get("x.y")))
        s.set({"x": {"y": 1}})
        assert log == [None, 1]

    def test_root_reader(self):
        s = ReactiveStore()
        log = []
        autorun(lambda: log.append(s.get()))
        s.set(None)
        assert log == [None]
        s.set({"test": {"deep": True}})
        assert len(log) == 2

    def test_clear_dict(self):
        s = ReactiveStore({"a": {"b": 1}})
        log = []
        autorun(lambda: log.append(s.get("a.b")))
        s.clear()
        assert s.data == {}
        assert log == [1, None]

    def test_clear_list(self):
        s = ReactiveStore([1, 2])
        s.clear()
        assert s.data == []

    def test_clear_leaf(self):
        s = ReactiveStore(5)
        s.clear()
        assert s.data is None


class TestLeafEquality:
    def test_equal_sets_are_silent(self):
        s = ReactiveStore({"tags": {"a", "b"}})
        log = []
        autorun(lambda: log.append(s.get("tags")))
        s.assign("tags", {"b", "a"})
        assert len(log) == 1
        s.assign("tags", {"a"})
        assert len(log) == 2

    def test_equal_dates_are_silent(self):
        s = ReactiveStore({"when": datetime.date(2024, 1, 1)})
        log = []
        autorun(lambda: log.append(s.get("when")))
        s.assign("when", datetime.date(2024, 1, 1))
        assert len(log) == 1

    def test_unregistered_type_always_changes(self):
        class Point:
            pass

        s = ReactiveStore({"p": Point()})
        log = []
        autorun(lambda: log.append(s.get("p")))
        s.assign("p", Point())
        assert len(log) == 2

    def test_registries_are_per_store(self):
        class Point:
            def __init__(self, x):
                self.x = x

        registry = EqualityRegistry()
        registry.register(Point, lambda old, new: isinstance(new, Point) and old.x == new.x)
        custom = ReactiveStore({"p": Point(1)}, equality=registry)
        default = ReactiveStore({"p": Point(1)})
        custom_log, default_log = [], []
        autorun(lambda: custom_log.append(custom.get("p")))
        autorun(lambda: default_log.append(default.get("p")))

        custom.assign("p", Point(1))
        default.assign("p", Point(1))
        assert len(custom_log) == 1
        assert len(default_log) == 2
        assert custom.equality is registry

    def test_shallow_values_are_leaves(self):
        s = ReactiveStore({"cfg": shallow({"x": 1})})
        log = []
        autorun(lambda: log.append(s.get("cfg")))
        assert s.get("cfg.x") is None
        s.assign("cfg", shallow({"x": 1}))
        assert len(log) == 2
