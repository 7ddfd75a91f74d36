"""Pytest configuration and fixtures."""

import copy
import os
from typing import Any, Callable, Optional

import pytest

from form_adapter.bridge import FormStateBridge
from form_adapter.components import (
    ComponentRegistry,
    ValueTransformer,
    define_date_component,
    define_field_component,
    define_form_component,
    define_layout_component,
    define_list_component,
)
from form_adapter.core import get_settings
from form_adapter.handlers import FieldEventHandler


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["FORM_ADAPTER_LOG_LEVEL"] = "DEBUG"
    os.environ["FORM_ADAPTER_ENABLE_BATCH"] = "false"
    os.environ["FORM_ADAPTER_BATCH_DELAY_MS"] = "16"
    get_settings.cache_clear()


# ============================================================================
# Fake Engine
# ============================================================================

def _parse_path(path: str) -> list[Any]:
    return [int(part) if part.isdigit() else part for part in path.split(".") if part]


def _get_in(data: Any, parts: list[Any]) -> Any:
    for part in parts:
        if isinstance(data, list):
            data = data[part] if isinstance(part, int) and part < len(data) else None
        elif isinstance(data, dict):
            data = data.get(part)
        else:
            return None
    return data


def _set_in(data: Any, parts: list[Any], value: Any) -> Any:
    """Copy only the containers along ``parts``; siblings keep their identity."""
    if not parts:
        return value
    head, rest = parts[0], parts[1:]
    if isinstance(data, list):
        updated = list(data)
        updated[head] = _set_in(updated[head], rest, value)
        return updated
    updated = dict(data or {})
    updated[head] = _set_in(updated.get(head), rest, value)
    return updated


class FakeEngine:
    """
    In-memory engine for tests.

    Writes copy only the containers along the written path, so untouched
    subtrees keep their identity. Every change is announced twice: an
    immediate-phase event, then a computed-phase event.
    """

    def __init__(self, schema: dict[str, Any], model: Optional[dict[str, Any]] = None):
        self.schema = schema
        self.initial_model = copy.deepcopy(model or {})
        self.model = copy.deepcopy(model or {})
        self.listeners: list[Callable[[Any], None]] = []
        self.calls: list[tuple] = []
        self.events: list[dict[str, Any]] = []
        self.destroyed = False
        self.validation_result: Any = True
        self.flush_waits = 0
        self.fail_updates: Optional[Exception] = None
        self.render_tree = self._build_tree()
        self._batch = 0

    # Reads

    def get_value(self, path: Optional[str] = None) -> Any:
        if not path:
            return self.model
        return _get_in(self.model, _parse_path(path))

    def get_render_tree(self) -> dict[str, Any]:
        return self.render_tree

    def on_value_change(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    # Writes

    def update_value(self, path_or_updates: Any, value: Any = None) -> None:
        self.calls.append(("update_value", path_or_updates, value))
        if self.fail_updates is not None:
            raise self.fail_updates

        updates = path_or_updates if isinstance(path_or_updates, dict) else {path_or_updates: value}
        changes = []
        for path, new_value in updates.items():
            parts = _parse_path(path)
            changes.append((path, _get_in(self.model, parts), new_value))
            self.model = _set_in(self.model, parts, new_value)
        self._emit([{"kind": "value", "path": p, "prevValue": old, "nextValue": new} for p, old, new in changes])

    def set_form_schema(self, schema: dict[str, Any]) -> None:
        self.calls.append(("set_form_schema", schema))
        self.schema = schema
        self.render_tree = self._build_tree()

    def reset(self, target: Any = None) -> None:
        self.calls.append(("reset", target))
        if isinstance(target, dict):
            self.model = copy.deepcopy(target)
        else:
            self.model = copy.deepcopy(self.initial_model)
        self.render_tree = self._build_tree()

    def validate(self, paths: Optional[list[str]] = None) -> Any:
        self.calls.append(("validate", paths))
        return self.validation_result

    async def wait_flush(self) -> None:
        self.flush_waits += 1

    # Lists

    def _list(self, path: str) -> list:
        value = self.get_value(path)
        return list(value) if isinstance(value, list) else []

    def _replace_list(self, path: str, rows: list, reason: str) -> None:
        self.model = _set_in(self.model, _parse_path(path), rows)
        self.render_tree = self._build_tree()
        self._emit([{"kind": "structure", "path": path, "reason": reason}])

    def list_append(self, path: str, row: Any) -> None:
        self.calls.append(("list_append", path, row))
        rows = self._list(path)
        rows.append(row)
        self._replace_list(path, rows, "add")

    def list_insert(self, path: str, index: int, row: Any) -> None:
        self.calls.append(("list_insert", path, index, row))
        rows = self._list(path)
        if not 0 <= index <= len(rows):
            raise IndexError(f"insert index {index} out of range")
        rows.insert(index, row)
        self._replace_list(path, rows, "add")

    def list_remove(self, path: str, index: int) -> None:
        self.calls.append(("list_remove", path, index))
        rows = self._list(path)
        if not 0 <= index < len(rows):
            raise IndexError(f"remove index {index} out of range")
        del rows[index]
        self._replace_list(path, rows, "remove")

    def list_move(self, path: str, from_index: int, to_index: int) -> None:
        self.calls.append(("list_move", path, from_index, to_index))
        rows = self._list(path)
        rows.insert(to_index, rows.pop(from_index))
        self._replace_list(path, rows, "move")

    def list_swap(self, path: str, a: int, b: int) -> None:
        self.calls.append(("list_swap", path, a, b))
        rows = self._list(path)
        rows[a], rows[b] = rows[b], rows[a]
        self._replace_list(path, rows, "move")

    def list_replace(self, path: str, index: int, row: Any) -> None:
        self.calls.append(("list_replace", path, index, row))
        rows = self._list(path)
        rows[index] = row
        self._replace_list(path, rows, "replace")

    def list_clear(self, path: str) -> None:
        self.calls.append(("list_clear", path))
        self._replace_list(path, [], "remove")

    def destroy(self) -> None:
        self.calls.append(("destroy",))
        self.destroyed = True
        self.listeners.clear()

    # Helpers

    def emit(self, event: Any) -> None:
        """Deliver a raw event to every listener."""
        for listener in list(self.listeners):
            listener(event)

    def _emit(self, changes: list[dict[str, Any]]) -> None:
        self._batch += 1
        batch_id = f"batch-{self._batch}"
        for phase in ("immediate", "computed"):
            for change in changes:
                event = {
                    "path": change["path"],
                    "event": {k: v for k, v in change.items() if k != "path"},
                    "batchId": batch_id,
                    "phase": phase,
                }
                self.events.append(event)
                self.emit(event)

    def _build_tree(self) -> dict[str, Any]:
        return {
            "type": "form",
            "path": "",
            "computed": {"ifShow": True, "show": True},
            "children": [self._build_node(node) for node in self.schema.get("children", [])],
        }

    def _build_node(self, node: dict[str, Any], prefix: str = "") -> dict[str, Any]:
        path = f"{prefix}{node['prop']}" if "prop" in node else node.get("path", "")
        built = {
            "type": node["type"],
            "path": path,
            "computed": {
                "ifShow": True,
                "show": True,
                "disabled": False,
                "readonly": False,
                "required": False,
                **node.get("computed", {}),
            },
        }
        for key in ("component", "componentProps", "formItemProps", "validators", "label"):
            if key in node:
                built[key] = node[key]

        if node["type"] == "list":
            rows = self.get_value(path)
            count = len(rows) if isinstance(rows, list) else 0
            built["children"] = [
                [self._build_node(child, f"{path}.{index}.") for child in node.get("items", [])]
                for index in range(count)
            ]
        elif "children" in node:
            built["children"] = [self._build_node(child, prefix) for child in node["children"]]
        return built


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def form_schema():
    """Schema with fields, a layout and a list."""
    return {
        "type": "form",
        "children": [
            {
                "type": "layout",
                "component": "Row",
                "children": [
                    {"type": "field", "prop": "user.name", "component": "Input", "label": "Name"},
                    {"type": "field", "prop": "user.age", "component": "NumberInput"},
                ],
            },
            {"type": "field", "prop": "address.city", "component": "Input"},
            {
                "type": "list",
                "prop": "items",
                "component": "Table",
                "items": [{"type": "field", "prop": "x", "component": "NumberInput"}],
            },
        ],
    }


@pytest.fixture
def initial_model():
    return {
        "user": {"name": "Ada", "age": 36},
        "address": {"city": "London"},
        "items": [{"x": 1}],
    }


@pytest.fixture
def engines():
    """Every engine created by ``engine_factory``."""
    return []


@pytest.fixture
def engine_factory(engines):
    def factory(schema, model=None):
        engine = FakeEngine(schema, model)
        engines.append(engine)
        return engine

    return factory


@pytest.fixture
def bridge(form_schema, initial_model, engine_factory):
    """Unbatched bridge over a FakeEngine."""
    bridge = FormStateBridge(form_schema, initial_model, engine_factory=engine_factory, enable_batch=False)
    yield bridge
    bridge.destroy()


@pytest.fixture
def engine(bridge):
    return bridge.engine


# ============================================================================
# Component Fixtures
# ============================================================================

class Widget:
    """Stand-in render target."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"Widget({self.name})"


def _explode(value):
    raise ValueError("cannot convert")


@pytest.fixture
def registry():
    """Registry with one component of every kind."""
    registry = ComponentRegistry()
    registry.register_batch(
        [
            define_field_component("Input", Widget("Input"), default_props={"clearable": True}),
            define_field_component("NumberInput", Widget("NumberInput"), value_kind="number"),
            define_field_component("Switch", Widget("Switch"), value_kind="boolean"),
            define_field_component("Select", Widget("Select"), value_kind="array"),
            define_date_component("DatePicker", Widget("DatePicker")),
            define_field_component(
                "Broken",
                Widget("Broken"),
                value_kind="custom",
                value_transformer=ValueTransformer(_explode, _explode),
            ),
            define_layout_component("Row", Widget("Row")),
            define_list_component("Table", Widget("Table")),
            define_form_component("Form", Widget("Form")),
        ]
    )
    return registry


@pytest.fixture
def handler(bridge, registry):
    """Unbatched event handler."""
    handler = FieldEventHandler(bridge, registry, enable_batch=False)
    yield handler
    handler.destroy()


@pytest.fixture
def fake_engine_cls():
    """The FakeEngine class, for tests that build engines directly."""
    return FakeEngine


@pytest.fixture
def settings():
    """Test settings."""
    return get_settings()
