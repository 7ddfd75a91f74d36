"""
form-adapter
Reactive bridge between a schema-driven form engine and UI runtimes.
"""

from .core import (
    Settings,
    get_settings,
    configure_logging,
    get_logger,
    FormAdapterError,
    RegistrationError,
    TransformError,
    BridgeDestroyedError,
    UpdateBatcher,
    PendingUpdate,
    BatchState,
    aggregate,
)
from .monitoring import MetricsCollector, metrics_collector
from .components import (
    ComponentKind,
    CanonicalEvent,
    ComponentDefinition,
    FieldDefinition,
    LayoutDefinition,
    ListDefinition,
    FormDefinition,
    ComponentPreset,
    ComponentRegistry,
    ValueKind,
    ValueTransformer,
    transformer_for,
    to_component_value,
    from_component_value,
    define_field_component,
    define_layout_component,
    define_list_component,
    define_form_component,
    merge_definition,
)
from .engine import FormEngine, ChangeEvent, ChangeKind, ChangePhase, ValidationResult, ListOperator
from .bridge import (
    FormStateBridge,
    Snapshot,
    ObservableState,
    ObservableSink,
    ShallowRef,
    RefSink,
    ExternalStoreBinding,
)
from .handlers import FieldEventHandler
from .rendering import NodeResolver, ResolvedNode
from .adapter import FormAdapter

__version__ = "0.1.0"

__all__ = [
    # Core
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "FormAdapterError",
    "RegistrationError",
    "TransformError",
    "BridgeDestroyedError",
    "UpdateBatcher",
    "PendingUpdate",
    "BatchState",
    "aggregate",
    # Monitoring
    "MetricsCollector",
    "metrics_collector",
    # Components
    "ComponentKind",
    "CanonicalEvent",
    "ComponentDefinition",
    "FieldDefinition",
    "LayoutDefinition",
    "ListDefinition",
    "FormDefinition",
    "ComponentPreset",
    "ComponentRegistry",
    "ValueKind",
    "ValueTransformer",
    "transformer_for",
    "to_component_value",
    "from_component_value",
    "define_field_component",
    "define_layout_component",
    "define_list_component",
    "define_form_component",
    "merge_definition",
    # Engine
    "FormEngine",
    "ChangeEvent",
    "ChangeKind",
    "ChangePhase",
    "ValidationResult",
    "ListOperator",
    # Bridge
    "FormStateBridge",
    "Snapshot",
    "ObservableState",
    "ObservableSink",
    "ShallowRef",
    "RefSink",
    "ExternalStoreBinding",
    # Handlers & rendering
    "FieldEventHandler",
    "NodeResolver",
    "ResolvedNode",
    "FormAdapter",
]
