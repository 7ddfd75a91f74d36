"""Engine contract and list façade."""

from .protocol import (
    FormEngine,
    EngineFactory,
    ChangeEvent,
    ChangeKind,
    ChangePhase,
    RenderNode,
    ComputedState,
    FieldError,
    ValidationResult,
)
from .list_operator import ListOperator, ListTarget

__all__ = [
    "FormEngine",
    "EngineFactory",
    "ChangeEvent",
    "ChangeKind",
    "ChangePhase",
    "RenderNode",
    "ComputedState",
    "FieldError",
    "ValidationResult",
    "ListOperator",
    "ListTarget",
]
