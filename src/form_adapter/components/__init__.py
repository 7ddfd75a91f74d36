"""Component definitions, value transformers and the registry."""

from .transformers import (
    ValueKind,
    ValueTransformer,
    BUILTIN_TRANSFORMERS,
    transformer_for,
    to_component_value,
    from_component_value,
)
from .types import (
    ComponentKind,
    CanonicalEvent,
    DEFAULT_EVENT_MAPPING,
    BaseComponentDefinition,
    FieldDefinition,
    LayoutDefinition,
    ListDefinition,
    FormDefinition,
    ComponentDefinition,
    ComponentPreset,
    RuleConverter,
    parse_definition,
)
from .normalizer import (
    define_field_component,
    define_input_component,
    define_select_component,
    define_date_component,
    define_number_component,
    define_boolean_component,
    define_layout_component,
    define_list_component,
    define_form_component,
    normalize_components,
    definitions_from_map,
    merge_definition,
    wrap_with_common_props,
    merge_component_props,
    resolve_event_mapping,
    native_event,
    needs_wrapper,
)
from .registry import ComponentRegistry, create_component_registry

__all__ = [
    # Transformers
    "ValueKind",
    "ValueTransformer",
    "BUILTIN_TRANSFORMERS",
    "transformer_for",
    "to_component_value",
    "from_component_value",
    # Types
    "ComponentKind",
    "CanonicalEvent",
    "DEFAULT_EVENT_MAPPING",
    "BaseComponentDefinition",
    "FieldDefinition",
    "LayoutDefinition",
    "ListDefinition",
    "FormDefinition",
    "ComponentDefinition",
    "ComponentPreset",
    "RuleConverter",
    "parse_definition",
    # Normalization
    "define_field_component",
    "define_input_component",
    "define_select_component",
    "define_date_component",
    "define_number_component",
    "define_boolean_component",
    "define_layout_component",
    "define_list_component",
    "define_form_component",
    "normalize_components",
    "definitions_from_map",
    "merge_definition",
    "wrap_with_common_props",
    "merge_component_props",
    "resolve_event_mapping",
    "native_event",
    "needs_wrapper",
    # Registry
    "ComponentRegistry",
    "create_component_registry",
]
