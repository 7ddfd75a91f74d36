"""Field Event Handler."""

from typing import Any, Callable, Iterable, Mapping, Optional, TypedDict

from returns.pipeline import is_successful

from ..bridge.state import FormStateBridge
from ..components.registry import ComponentRegistry
from ..components.transformers import from_component_value
from ..core.batch import PendingUpdate, UpdateBatcher, aggregate
from ..core.config import get_settings
from ..core.errors import TransformError
from ..core.logging_config import get_logger
from ..monitoring.metrics import metrics_collector

logger = get_logger(__name__)

ErrorCallback = Callable[[Exception, str, Any], None]
FieldHook = Callable[[str, Any], None]


class BatchItem(TypedDict, total=False):
    """One entry of ``batch_update``."""

    path: str
    value: Any
    component: str


class FieldEventHandler:
    """
    Translates widget events into engine writes.

    Widget values pass through the component's transformer before they reach
    the bridge. Transform failures suppress the write and are reported via
    ``on_transform_error(error, path, value)``; engine failures are reported
    via ``on_update_error(error, path, value)``.
    """

    def __init__(
        self,
        bridge: FormStateBridge,
        registry: ComponentRegistry,
        *,
        enable_batch: Optional[bool] = None,
        batch_delay: Optional[float] = None,
        on_transform_error: Optional[ErrorCallback] = None,
        on_update_error: Optional[ErrorCallback] = None,
        on_focus: Optional[FieldHook] = None,
        on_blur: Optional[FieldHook] = None,
    ) -> None:
        self.bridge: Optional[FormStateBridge] = bridge
        self.registry: Optional[ComponentRegistry] = registry
        self.on_transform_error = on_transform_error
        self.on_update_error = on_update_error
        self.on_focus = on_focus
        self.on_blur = on_blur
        self._destroyed = False

        if enable_batch is None:
            enable_batch = get_settings().enable_batch
        self._batcher: Optional[UpdateBatcher] = (
            UpdateBatcher(self._apply_batch, delay=batch_delay) if enable_batch else None
        )

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def batcher(self) -> Optional[UpdateBatcher]:
        return self._batcher

    # ------------------------------------------------------------------
    # Field events
    # ------------------------------------------------------------------

    def handle_field_change(self, path: str, raw_value: Any, component_name: str) -> None:
        """
        Transform a widget value and write it to the bridge.

        Args:
            path: Field path
            raw_value: Value emitted by the widget
            component_name: Registered component that emitted it
        """
        if self._warn_if_destroyed("handle_field_change", path):
            return

        definition = self.registry.get(component_name)
        if definition is None:
            if get_settings().warn_on_missing_component:
                logger.warning("component_not_found", component=component_name, path=path)
            return

        result = from_component_value(definition, raw_value, path)
        if not is_successful(result):
            self._report_transform_error(result.failure(), path, raw_value)
            return

        self._write(path, result.unwrap())

    def handle_field_focus(self, path: str, event: Any = None) -> None:
        """Run the focus hook; engine state is untouched."""
        if self._warn_if_destroyed("handle_field_focus", path):
            return
        self._run_hook(self.on_focus, "focus", path, event)

    def handle_field_blur(self, path: str, event: Any = None) -> None:
        """Run the blur hook; engine state is untouched."""
        if self._warn_if_destroyed("handle_field_blur", path):
            return
        self._run_hook(self.on_blur, "blur", path, event)

    # ------------------------------------------------------------------
    # List events
    # ------------------------------------------------------------------

    def handle_list_add(self, path: str, initial_row: Any = None) -> None:
        row = {} if initial_row is None else initial_row
        self._list_operation("list_add", path, row, lambda op: op.append(row))

    def handle_list_insert(self, path: str, index: int, row: Any = None) -> None:
        row = {} if row is None else row
        self._list_operation(
            "list_insert", path, {"index": index, "row": row}, lambda op: op.insert(index, row)
        )

    def handle_list_remove(self, path: str, index: int) -> None:
        self._list_operation("list_remove", path, index, lambda op: op.remove(index))

    def handle_list_move(self, path: str, from_index: int, to_index: int) -> None:
        self._list_operation(
            "list_move",
            path,
            {"from": from_index, "to": to_index},
            lambda op: op.move(from_index, to_index),
        )

    def _list_operation(self, operation: str, path: str, value: Any, apply: Callable) -> None:
        if self._warn_if_destroyed(operation, path):
            return

        try:
            self._flush_pending()
            apply(self.bridge.get_list_operator(path))
        except Exception as e:
            self._report_update_error(e, path, value, operation)

    # ------------------------------------------------------------------
    # Aggregate writes
    # ------------------------------------------------------------------

    def batch_update(self, items: Iterable[BatchItem | Mapping[str, Any]]) -> None:
        """
        Transform several values and apply them as one write.

        A single transform failure suppresses the whole write.
        """
        if self._warn_if_destroyed("batch_update"):
            return

        updates: dict[str, Any] = {}
        for item in items:
            path, value = item["path"], item.get("value")
            component = item.get("component")
            if not component:
                updates[path] = value
                continue

            definition = self.registry.get(component)
            if definition is None:
                logger.warning("component_not_found", component=component, path=path)
                updates[path] = value
                continue

            result = from_component_value(definition, value, path)
            if not is_successful(result):
                self._report_transform_error(result.failure(), path, value)
                return
            updates[path] = result.unwrap()

        if not updates:
            return

        try:
            self._flush_pending()
            self.bridge.update_value(updates)
        except Exception as e:
            self._report_update_error(e, "", updates, "batch_update")

    def flush(self) -> None:
        """Apply pending batched writes now."""
        if self._warn_if_destroyed("flush"):
            return
        if self._batcher is not None:
            self._batcher.flush()

    def destroy(self) -> None:
        """Cancel pending writes and release references. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True

        if self._batcher is not None:
            self._batcher.destroy()
            self._batcher = None
        self.bridge = None
        self.registry = None
        self.on_focus = None
        self.on_blur = None
        logger.debug("event_handler_released")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write(self, path: str, value: Any) -> None:
        if self._batcher is not None:
            self._batcher.add(path, value)
            return

        try:
            self.bridge.update_value(path, value)
        except Exception as e:
            self._report_update_error(e, path, value, "update")

    def _apply_batch(self, updates: list[PendingUpdate]) -> None:
        values = aggregate(updates)
        try:
            self.bridge.update_value(values)
        except Exception as e:
            # The batcher logs and re-raises; only the callback is owed here
            metrics_collector.record_update_error("batch_flush")
            self._invoke(self.on_update_error, e, "", values)
            raise

    def _flush_pending(self) -> None:
        if self._batcher is not None and self._batcher.has_pending():
            self._batcher.flush()

    def _report_transform_error(self, error: TransformError, path: str, value: Any) -> None:
        logger.warning("field_change_suppressed", path=path, component=error.component_name)
        self._invoke(self.on_transform_error, error, path, value)

    def _report_update_error(self, error: Exception, path: str, value: Any, operation: str) -> None:
        metrics_collector.record_update_error(operation)
        logger.error("update_failed", operation=operation, path=path, error=str(error), exc_info=True)
        self._invoke(self.on_update_error, error, path, value)

    def _invoke(self, callback: Optional[ErrorCallback], error: Exception, path: str, value: Any) -> None:
        if callback is None:
            return
        try:
            callback(error, path, value)
        except Exception as e:
            metrics_collector.record_listener_error("error_callback")
            logger.error("error_callback_failed", path=path, error=str(e), exc_info=True)

    def _run_hook(self, hook: Optional[FieldHook], name: str, path: str, event: Any) -> None:
        if hook is None:
            return
        try:
            hook(path, event)
        except Exception as e:
            metrics_collector.record_listener_error(name)
            logger.error("hook_failed", hook=name, path=path, error=str(e), exc_info=True)

    def _warn_if_destroyed(self, operation: str, path: Optional[str] = None) -> bool:
        if self._destroyed:
            logger.warning("event_handler_destroyed", operation=operation, path=path)
            return True
        return False
