"""Tests for path-scoped list operations."""

import pytest

from form_adapter.engine import ListOperator


@pytest.mark.unit
class TestListOperator:
    """Test delegation to the engine's list primitives."""

    def test_append(self, bridge, engine):
        bridge.get_list_operator("items").append({"x": 1})

        assert engine.calls[-1] == ("list_append", "items", {"x": 1})
        assert bridge.get_value("items") == [{"x": 1}, {"x": 1}]

    def test_insert_remove(self, bridge, engine):
        ops = bridge.get_list_operator("items")

        ops.insert(0, {"x": 0})
        ops.remove(1)

        assert engine.calls[-2:] == [("list_insert", "items", 0, {"x": 0}), ("list_remove", "items", 1)]
        assert bridge.get_value("items") == [{"x": 0}]

    def test_move_and_swap(self, bridge, engine):
        ops = bridge.get_list_operator("items")
        ops.append({"x": 2})
        ops.append({"x": 3})

        ops.move(0, 2)
        assert bridge.get_value("items") == [{"x": 2}, {"x": 3}, {"x": 1}]

        ops.swap(0, 1)
        assert bridge.get_value("items") == [{"x": 3}, {"x": 2}, {"x": 1}]
        assert engine.calls[-1] == ("list_swap", "items", 0, 1)

    def test_replace_and_clear(self, bridge, engine):
        ops = bridge.get_list_operator("items")

        ops.replace(0, {"x": 9})
        assert bridge.get_value("items") == [{"x": 9}]

        ops.clear()
        assert bridge.get_value("items") == []
        assert engine.calls[-1] == ("list_clear", "items")

    def test_engine_errors_propagate(self, bridge):
        with pytest.raises(IndexError):
            bridge.get_list_operator("items").remove(5)

    def test_structure_change_refreshes_render_tree(self, bridge):
        before = bridge.get_render_tree()

        bridge.get_list_operator("items").append({"x": 2})

        rows = bridge.get_render_tree()["children"][2]["children"]
        assert bridge.get_render_tree() is not before
        assert [row[0]["path"] for row in rows] == ["items.0.x", "items.1.x"]

    def test_operator_after_destroy_is_noop(self, bridge, engine):
        ops = bridge.get_list_operator("items")
        bridge.destroy()

        assert ops.append({"x": 2}) is None
        assert ("list_append", "items", {"x": 2}) not in engine.calls

    def test_forwards_to_any_target(self):
        calls = []

        class Target:
            def list_append(self, path, row):
                calls.append((path, row))
                return "appended"

        ops = ListOperator(Target(), "rows")

        assert ops.append(1) == "appended"
        assert calls == [("rows", 1)]
        assert repr(ops) == "ListOperator(path='rows')"
