"""
Engine Contract
What the bridge consumes from a schema-driven form engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol, TypedDict, runtime_checkable


class ChangeKind(str, Enum):
    """What changed."""

    VALUE = "value"
    STRUCTURE = "structure"


class ChangePhase(str, Enum):
    """Notification phase. Only settled (computed) state is mirrored."""

    IMMEDIATE = "immediate"
    COMPUTED = "computed"


_EVENT_KEYS = {"kind", "prevValue", "prev_value", "nextValue", "next_value"}


@dataclass(frozen=True)
class ChangeEvent:
    """Change notification emitted by the engine."""

    path: str
    kind: ChangeKind = ChangeKind.VALUE
    phase: Optional[ChangePhase] = None
    prev_value: Any = None
    next_value: Any = None
    batch_id: Optional[str] = None
    detail: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_immediate(self) -> bool:
        return self.phase is ChangePhase.IMMEDIATE

    @classmethod
    def coerce(cls, raw: Any) -> "ChangeEvent":
        """
        Build an event from either the flat shape or the engine's nested shape.

        Nested: ``{"path", "event": {"kind", "prevValue", "nextValue", ...}, "batchId", "phase"}``

        Raises:
            TypeError: Not a mapping or ChangeEvent
            ValueError: Unknown kind or phase
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, Mapping):
            raise TypeError(f"Expected a change event mapping, got {type(raw).__name__}")

        nested = raw.get("event")
        source = nested if isinstance(nested, Mapping) else raw

        phase = raw.get("phase")
        return cls(
            path=raw.get("path", ""),
            kind=ChangeKind(source.get("kind", ChangeKind.VALUE.value)),
            phase=ChangePhase(phase) if phase is not None else None,
            prev_value=source.get("prevValue", source.get("prev_value")),
            next_value=source.get("nextValue", source.get("next_value")),
            batch_id=raw.get("batchId", raw.get("batch_id")),
            detail={k: v for k, v in source.items() if k not in _EVENT_KEYS} if nested else {},
        )


class ComputedState(TypedDict, total=False):
    """Control attributes after evaluation by the engine."""

    required: bool
    disabled: bool
    readonly: bool
    ifShow: bool
    show: bool
    componentProps: dict[str, Any]
    formItemProps: dict[str, Any]


class RenderNode(TypedDict, total=False):
    """
    One node of the engine's render tree.

    Keys follow the engine's wire format. ``children`` of a list node is a
    list of rows, each row a list of nodes.
    """

    type: str
    prop: str
    path: str
    component: str
    componentProps: dict[str, Any]
    formItemProps: dict[str, Any]
    formProps: dict[str, Any]
    computed: ComputedState
    children: list[Any]
    validators: list[Callable[..., Any]]
    required: Any
    disabled: Any
    readonly: Any
    ifShow: Any
    show: Any
    label: str
    defaultValue: Any


@dataclass(frozen=True)
class FieldError:
    """One validation failure."""

    path: str
    message: str
    code: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation run."""

    ok: bool
    errors: tuple[FieldError, ...] = ()
    error_by_path: dict[str, list[FieldError]] = field(default_factory=dict, compare=False)
    destroyed: bool = False

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def for_destroyed(cls) -> "ValidationResult":
        """Result returned when validating after teardown."""
        return cls(
            ok=False,
            errors=(FieldError(path="", message="Engine is destroyed"),),
            destroyed=True,
        )

    @classmethod
    def from_engine(cls, raw: Any) -> "ValidationResult":
        """
        Normalize an engine result.

        Accepts ``True``, a ValidationResult, or a mapping
        ``{"ok": False, "errors": [...], "errorByPath": {...}}``.
        """
        if isinstance(raw, cls):
            return raw
        if raw is True or raw is None:
            return cls.success()
        if not isinstance(raw, Mapping):
            raise TypeError(f"Unexpected validation result: {type(raw).__name__}")

        errors = tuple(_field_error(item) for item in raw.get("errors", ()))
        by_path_raw = raw.get("errorByPath", raw.get("error_by_path"))
        if by_path_raw is None:
            by_path: dict[str, list[FieldError]] = {}
            for error in errors:
                by_path.setdefault(error.path, []).append(error)
        else:
            by_path = {
                path: [_field_error(item) for item in items] for path, items in by_path_raw.items()
            }

        return cls(ok=bool(raw.get("ok", not errors)), errors=errors, error_by_path=by_path)


def _field_error(item: Any) -> FieldError:
    if isinstance(item, FieldError):
        return item
    return FieldError(path=item.get("path", ""), message=item.get("message", ""), code=item.get("code"))


@runtime_checkable
class FormEngine(Protocol):
    """
    Schema-driven form engine.

    Snapshots returned by ``get_render_tree`` and ``get_value`` are immutable
    and structurally shared: unchanged subtrees keep their references.
    ``wait_flush`` is optional and checked with ``getattr``.
    """

    def get_value(self, path: Optional[str] = None) -> Any:
        ...

    def update_value(self, path_or_updates: Any, value: Any = None) -> None:
        ...

    def get_render_tree(self) -> RenderNode:
        ...

    def on_value_change(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        ...

    def set_form_schema(self, schema: Any) -> None:
        ...

    def reset(self, target: Any = None) -> None:
        ...

    def validate(self, paths: Optional[list[str]] = None) -> Any:
        ...

    def list_append(self, path: str, row: Any) -> Any:
        ...

    def list_insert(self, path: str, index: int, row: Any) -> Any:
        ...

    def list_remove(self, path: str, index: int) -> Any:
        ...

    def list_move(self, path: str, from_index: int, to_index: int) -> Any:
        ...

    def list_swap(self, path: str, a: int, b: int) -> Any:
        ...

    def list_replace(self, path: str, index: int, row: Any) -> Any:
        ...

    def list_clear(self, path: str) -> Any:
        ...

    def destroy(self) -> None:
        ...


EngineFactory = Callable[[Any, Optional[dict[str, Any]]], FormEngine]
