"""
Component Type Definitions
Tagged component definitions and presets with strong typing
"""

from enum import Enum
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    InstanceOf,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from ..core.errors import RegistrationError
from .transformers import ValueKind, ValueTransformer, transformer_for


class ComponentKind(str, Enum):
    """Component categories."""

    FIELD = "field"
    LAYOUT = "layout"
    LIST = "list"
    FORM = "form"


class CanonicalEvent(str, Enum):
    """Widget-independent event names."""

    CHANGE = "change"
    INPUT = "input"
    FOCUS = "focus"
    BLUR = "blur"


# Native event names used when a definition does not map an event
DEFAULT_EVENT_MAPPING: dict[str, str] = {
    CanonicalEvent.CHANGE.value: "update:modelValue",
    CanonicalEvent.INPUT.value: "input",
    CanonicalEvent.FOCUS.value: "focus",
    CanonicalEvent.BLUR.value: "blur",
}

# Handler-style keys (onChange) accepted as aliases
_EVENT_ALIASES = {f"on{event.value.capitalize()}": event.value for event in CanonicalEvent}

RuleConverter = Callable[[Any, dict[str, Any], Any], list]


def normalize_event_key(key: str) -> str:
    """
    Map ``change``/``onChange``/``CanonicalEvent.CHANGE`` to ``change``.

    Raises:
        ValueError: Not a canonical event
    """
    if isinstance(key, CanonicalEvent):
        return key.value
    key = _EVENT_ALIASES.get(key, key)
    if key not in DEFAULT_EVENT_MAPPING:
        allowed = ", ".join(DEFAULT_EVENT_MAPPING)
        raise ValueError(f"unknown event '{key}' (expected one of: {allowed})")
    return key


class BaseComponentDefinition(BaseModel):
    """Fields shared by every component definition."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Unique component name")
    render_target: Any = Field(..., description="Opaque widget handle used by the host")
    default_props: dict[str, Any] = Field(default_factory=dict)
    event_mapping: dict[str, str] = Field(default_factory=dict)
    needs_wrapper: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    @field_validator("render_target")
    @classmethod
    def validate_render_target(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("render target is required")
        return v

    @field_validator("event_mapping", mode="before")
    @classmethod
    def validate_event_mapping(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        return {normalize_event_key(key): native for key, native in v.items()}

    def clone(self) -> "BaseComponentDefinition":
        """Copy with independent prop and event-mapping dicts."""
        return self.model_copy(
            update={
                "default_props": dict(self.default_props),
                "event_mapping": dict(self.event_mapping),
            }
        )


class FieldDefinition(BaseComponentDefinition):
    """Input widget bound to one value path."""

    kind: Literal["field"] = "field"
    needs_wrapper: bool = True
    value_kind: Optional[ValueKind] = None
    value_transformer: Optional[InstanceOf[ValueTransformer]] = None

    @model_validator(mode="before")
    @classmethod
    def attach_builtin_transformer(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        kind = data.get("value_kind")
        if kind is None or data.get("value_transformer") is not None:
            return data
        try:
            transformer = transformer_for(kind)
        except ValueError:
            # Reported by field validation
            return data
        return {**data, "value_transformer": transformer}

    @field_validator("value_transformer", mode="before")
    @classmethod
    def coerce_transformer(cls, v: Any) -> Any:
        if isinstance(v, tuple) and len(v) == 2:
            return ValueTransformer(*v)
        return v


class LayoutDefinition(BaseComponentDefinition):
    """Container that arranges child nodes."""

    kind: Literal["layout"] = "layout"


class ListDefinition(BaseComponentDefinition):
    """Repeating container bound to a list path."""

    kind: Literal["list"] = "list"


class FormDefinition(BaseComponentDefinition):
    """Root form container."""

    kind: Literal["form"] = "form"


ComponentDefinition = Annotated[
    Union[FieldDefinition, LayoutDefinition, ListDefinition, FormDefinition],
    Field(discriminator="kind"),
]

_definition_adapter: TypeAdapter = TypeAdapter(ComponentDefinition)


def parse_definition(data: Any) -> BaseComponentDefinition:
    """
    Validate a definition model or mapping into a tagged definition.

    Raises:
        pydantic.ValidationError: Invalid definition
    """
    if isinstance(data, BaseComponentDefinition):
        return data
    return _definition_adapter.validate_python(data)


def registration_error(exc: ValidationError, data: Any) -> RegistrationError:
    """Turn the first pydantic error into a RegistrationError naming the field."""
    first = exc.errors()[0]
    if first["type"].startswith("union_tag"):
        field = "kind"
    else:
        parts = [part for part in first["loc"] if isinstance(part, str)]
        # Discriminated unions prefix the location with the tag
        if len(parts) > 1 and parts[0] in ComponentKind._value2member_map_:
            parts = parts[1:]
        field = parts[0] if parts else None

    if isinstance(data, dict):
        name = data.get("name")
    else:
        name = getattr(data, "name", None)

    message = f"Invalid component definition '{name}'"
    if field:
        message += f" ({field})"
    return RegistrationError(f"{message}: {first['msg']}", field=field, name=name)


class ComponentPreset(BaseModel):
    """A named bundle of definitions for one component library."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    components: list[ComponentDefinition] = Field(default_factory=list)
    wrapper: Any = Field(default=None, description="Form-item render target")
    rule_converter: Optional[RuleConverter] = None
    theme: Any = None
    setup: Optional[Callable[[], Any]] = None
