"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .logging_config import configure_logging, get_logger, LogContext
from .errors import FormAdapterError, RegistrationError, TransformError, BridgeDestroyedError
from .tracing import trace_operation, traced
from .batch import UpdateBatcher, PendingUpdate, BatchState, aggregate


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # Errors
    "FormAdapterError",
    "RegistrationError",
    "TransformError",
    "BridgeDestroyedError",
    # Tracing
    "trace_operation",
    "traced",
    # Batching
    "UpdateBatcher",
    "PendingUpdate",
    "BatchState",
    "aggregate",
]
