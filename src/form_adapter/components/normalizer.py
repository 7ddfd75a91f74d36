"""
Component Normalization
Shortcuts for building definitions and resolving their props and events.
"""

from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from .transformers import ValueKind, ValueTransformer
from .types import (
    BaseComponentDefinition,
    CanonicalEvent,
    ComponentKind,
    DEFAULT_EVENT_MAPPING,
    FieldDefinition,
    normalize_event_key,
    parse_definition,
    registration_error,
)


def _build(data: dict[str, Any]) -> BaseComponentDefinition:
    try:
        return parse_definition(data)
    except ValidationError as e:
        raise registration_error(e, data) from e


def _definition_data(definition: BaseComponentDefinition) -> dict[str, Any]:
    # Attribute access keeps transformer and render target references intact
    return {name: getattr(definition, name) for name in type(definition).model_fields}


# ============================================================================
# Definition shortcuts
# ============================================================================


def define_field_component(
    name: str,
    render_target: Any,
    *,
    value_kind: ValueKind | str = ValueKind.STRING,
    value_transformer: Optional[ValueTransformer] = None,
    default_props: Optional[dict[str, Any]] = None,
    event_mapping: Optional[dict[str, str]] = None,
    needs_wrapper: bool = True,
) -> BaseComponentDefinition:
    """
    Define a field component.

    The built-in transformer for ``value_kind`` is attached unless an explicit
    transformer is given or the kind is ``custom``.

    Raises:
        RegistrationError: Invalid definition
    """
    return _build(
        {
            "kind": ComponentKind.FIELD.value,
            "name": name,
            "render_target": render_target,
            "value_kind": value_kind,
            "value_transformer": value_transformer,
            "default_props": default_props or {},
            "event_mapping": event_mapping or {},
            "needs_wrapper": needs_wrapper,
        }
    )


def define_input_component(name: str, render_target: Any, **options: Any) -> BaseComponentDefinition:
    """Text-like field (string values)."""
    return define_field_component(name, render_target, value_kind=ValueKind.STRING, **options)


def define_select_component(
    name: str, render_target: Any, multiple: bool = False, **options: Any
) -> BaseComponentDefinition:
    """Select field; multi-selects hold arrays."""
    kind = ValueKind.ARRAY if multiple else ValueKind.STRING
    return define_field_component(name, render_target, value_kind=kind, **options)


def define_date_component(name: str, render_target: Any, **options: Any) -> BaseComponentDefinition:
    return define_field_component(name, render_target, value_kind=ValueKind.DATE, **options)


def define_number_component(name: str, render_target: Any, **options: Any) -> BaseComponentDefinition:
    return define_field_component(name, render_target, value_kind=ValueKind.NUMBER, **options)


def define_boolean_component(name: str, render_target: Any, **options: Any) -> BaseComponentDefinition:
    """Checkbox or switch field."""
    return define_field_component(name, render_target, value_kind=ValueKind.BOOLEAN, **options)


def _define_container(
    kind: ComponentKind,
    name: str,
    render_target: Any,
    default_props: Optional[dict[str, Any]],
    event_mapping: Optional[dict[str, str]],
) -> BaseComponentDefinition:
    return _build(
        {
            "kind": kind.value,
            "name": name,
            "render_target": render_target,
            "default_props": default_props or {},
            "event_mapping": event_mapping or {},
            "needs_wrapper": False,
        }
    )


def define_layout_component(
    name: str,
    render_target: Any,
    default_props: Optional[dict[str, Any]] = None,
    event_mapping: Optional[dict[str, str]] = None,
) -> BaseComponentDefinition:
    return _define_container(ComponentKind.LAYOUT, name, render_target, default_props, event_mapping)


def define_list_component(
    name: str,
    render_target: Any,
    default_props: Optional[dict[str, Any]] = None,
    event_mapping: Optional[dict[str, str]] = None,
) -> BaseComponentDefinition:
    return _define_container(ComponentKind.LIST, name, render_target, default_props, event_mapping)


def define_form_component(
    name: str,
    render_target: Any,
    default_props: Optional[dict[str, Any]] = None,
    event_mapping: Optional[dict[str, str]] = None,
) -> BaseComponentDefinition:
    return _define_container(ComponentKind.FORM, name, render_target, default_props, event_mapping)


def normalize_components(items: Iterable[Any]) -> list[BaseComponentDefinition]:
    """
    Validate definitions given as models or mappings.

    Mappings without a ``kind`` are treated as fields.

    Raises:
        RegistrationError: First invalid definition
    """
    definitions = []
    for item in items:
        if isinstance(item, BaseComponentDefinition):
            definitions.append(item)
        else:
            definitions.append(_build({"kind": ComponentKind.FIELD.value, **item}))
    return definitions


def definitions_from_map(components: Mapping[str, Any]) -> list[BaseComponentDefinition]:
    """Build plain field definitions from a ``{name: render_target}`` mapping."""
    return [
        _build({"kind": ComponentKind.FIELD.value, "name": name, "render_target": target})
        for name, target in components.items()
    ]


# ============================================================================
# Merging
# ============================================================================


def merge_definition(
    base: BaseComponentDefinition, overrides: Mapping[str, Any]
) -> BaseComponentDefinition:
    """
    Create a new definition from ``base`` with ``overrides`` applied.

    ``default_props`` and ``event_mapping`` are merged key by key; every other
    field is replaced. The base definition is left untouched.

    Raises:
        RegistrationError: Merged definition is invalid
    """
    data = _definition_data(base)
    overrides = dict(overrides)

    props = overrides.pop("default_props", None) or {}
    events = overrides.pop("event_mapping", None) or {}
    data["default_props"] = {**base.default_props, **props}
    data["event_mapping"] = {**base.event_mapping, **events}

    # A new value kind picks its own built-in transformer
    if "value_kind" in overrides and "value_transformer" not in overrides:
        data["value_transformer"] = None

    data.update(overrides)
    return _build(data)


def wrap_with_common_props(
    definition: BaseComponentDefinition, common_props: Mapping[str, Any]
) -> BaseComponentDefinition:
    """Add props underneath the definition's own defaults."""
    return definition.model_copy(
        update={"default_props": {**common_props, **definition.default_props}}
    )


def merge_component_props(*layers: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge prop layers left to right; later layers win, ``None`` layers are skipped."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


# ============================================================================
# Resolution
# ============================================================================


def resolve_event_mapping(definition: BaseComponentDefinition) -> dict[str, str]:
    """Full canonical → native mapping, defaults filled in."""
    return {**DEFAULT_EVENT_MAPPING, **definition.event_mapping}


def native_event(definition: BaseComponentDefinition, event: CanonicalEvent | str) -> str:
    """Native event name a widget emits for a canonical event."""
    return resolve_event_mapping(definition)[normalize_event_key(event)]


def needs_wrapper(definition: BaseComponentDefinition) -> bool:
    """Only fields are wrapped, and only when they ask for it."""
    return isinstance(definition, FieldDefinition) and definition.needs_wrapper
