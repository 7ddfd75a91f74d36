"""Widget event handlers."""

from .events import FieldEventHandler, BatchItem, ErrorCallback, FieldHook

__all__ = ["FieldEventHandler", "BatchItem", "ErrorCallback", "FieldHook"]
