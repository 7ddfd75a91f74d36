"""Tests for definition shortcuts, merging and event resolution."""

import pytest

from form_adapter.components import (
    BUILTIN_TRANSFORMERS,
    CanonicalEvent,
    DEFAULT_EVENT_MAPPING,
    FieldDefinition,
    ListDefinition,
    ValueKind,
    define_boolean_component,
    define_date_component,
    define_field_component,
    define_form_component,
    define_input_component,
    define_layout_component,
    define_list_component,
    define_number_component,
    define_select_component,
    definitions_from_map,
    merge_component_props,
    merge_definition,
    native_event,
    needs_wrapper,
    normalize_components,
    resolve_event_mapping,
    wrap_with_common_props,
)
from form_adapter.core import RegistrationError


@pytest.mark.unit
class TestShortcuts:
    """Test define_* helpers."""

    def test_field_attaches_builtin_transformer(self):
        definition = define_field_component("Input", "input")

        assert isinstance(definition, FieldDefinition)
        assert definition.value_kind is ValueKind.STRING
        assert definition.value_transformer is BUILTIN_TRANSFORMERS[ValueKind.STRING]
        assert definition.needs_wrapper is True

    @pytest.mark.parametrize(
        "factory,kind",
        [
            (define_input_component, ValueKind.STRING),
            (define_number_component, ValueKind.NUMBER),
            (define_date_component, ValueKind.DATE),
            (define_boolean_component, ValueKind.BOOLEAN),
        ],
    )
    def test_typed_shortcuts(self, factory, kind):
        definition = factory("W", "w")
        assert definition.value_kind is kind
        assert definition.value_transformer is BUILTIN_TRANSFORMERS[kind]

    def test_select_multiple(self):
        assert define_select_component("S", "s").value_kind is ValueKind.STRING
        assert define_select_component("M", "m", multiple=True).value_kind is ValueKind.ARRAY

    def test_event_alias_normalized(self):
        """Test onChange-style keys map to canonical events."""
        definition = define_field_component("Input", "input", event_mapping={"onChange": "change", "blur": "leave"})
        assert definition.event_mapping == {"change": "change", "blur": "leave"}

    def test_canonical_enum_key(self):
        definition = define_field_component("Input", "input", event_mapping={CanonicalEvent.FOCUS: "enter"})
        assert definition.event_mapping == {"focus": "enter"}

    def test_containers(self):
        assert define_layout_component("Row", "div").kind == "layout"
        assert define_form_component("Form", "form").kind == "form"

        table = define_list_component("Table", "table", default_props={"border": True})
        assert isinstance(table, ListDefinition)
        assert table.default_props == {"border": True}
        assert table.needs_wrapper is False

    def test_invalid_shortcut_raises_registration_error(self):
        with pytest.raises(RegistrationError) as exc_info:
            define_field_component("Input", None)
        assert exc_info.value.field == "render_target"

    def test_extra_fields_rejected(self):
        with pytest.raises(RegistrationError) as exc_info:
            normalize_components([{"name": "Input", "render_target": "input", "colour": "red"}])
        assert exc_info.value.field == "colour"

    def test_normalize_components(self):
        existing = define_layout_component("Row", "div")
        definitions = normalize_components([existing, {"name": "Input", "render_target": "input"}])

        assert definitions[0] is existing
        assert isinstance(definitions[1], FieldDefinition)

    def test_definitions_from_map(self):
        definitions = definitions_from_map({"Input": "input", "Select": "select"})
        assert [d.name for d in definitions] == ["Input", "Select"]
        assert all(d.kind == "field" for d in definitions)


@pytest.mark.unit
class TestMerging:
    """Test merge helpers."""

    def test_merge_definition_merges_dicts(self):
        base = define_field_component(
            "Input", "input", default_props={"size": "small", "clearable": True}, event_mapping={"change": "input"}
        )

        merged = merge_definition(base, {"default_props": {"size": "large"}, "event_mapping": {"onBlur": "leave"}})

        assert merged.default_props == {"size": "large", "clearable": True}
        assert merged.event_mapping == {"change": "input", "blur": "leave"}
        assert base.default_props == {"size": "small", "clearable": True}
        assert merged.render_target == "input"

    def test_merge_definition_new_value_kind(self):
        base = define_field_component("Input", "input")
        merged = merge_definition(base, {"value_kind": "number"})

        assert merged.value_kind is ValueKind.NUMBER
        assert merged.value_transformer is BUILTIN_TRANSFORMERS[ValueKind.NUMBER]

    def test_merge_definition_keeps_render_target_identity(self):
        target = object()
        base = define_field_component("Input", target)
        assert merge_definition(base, {"needs_wrapper": False}).render_target is target

    def test_merge_definition_invalid(self):
        base = define_field_component("Input", "input")
        with pytest.raises(RegistrationError):
            merge_definition(base, {"render_target": None})

    def test_wrap_with_common_props(self):
        base = define_field_component("Input", "input", default_props={"size": "small"})
        wrapped = wrap_with_common_props(base, {"size": "default", "clearable": True})

        assert wrapped.default_props == {"size": "small", "clearable": True}

    def test_merge_component_props(self):
        assert merge_component_props({"a": 1}, None, {"a": 2, "b": 3}) == {"a": 2, "b": 3}
        assert merge_component_props() == {}


@pytest.mark.unit
class TestEventResolution:
    """Test canonical to native event names."""

    def test_defaults(self):
        definition = define_field_component("Input", "input")
        assert resolve_event_mapping(definition) == DEFAULT_EVENT_MAPPING
        assert native_event(definition, "change") == "update:modelValue"

    def test_overrides(self):
        definition = define_field_component("Input", "input", event_mapping={"change": "input"})
        assert native_event(definition, CanonicalEvent.CHANGE) == "input"
        assert native_event(definition, "onBlur") == "blur"

    def test_unknown_event(self):
        definition = define_field_component("Input", "input")
        with pytest.raises(ValueError):
            native_event(definition, "hover")

    def test_needs_wrapper(self):
        assert needs_wrapper(define_field_component("Input", "input")) is True
        assert needs_wrapper(define_field_component("Bare", "input", needs_wrapper=False)) is False
        assert needs_wrapper(define_layout_component("Row", "div")) is False
