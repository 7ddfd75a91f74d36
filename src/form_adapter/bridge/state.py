"""
Reactive State Bridge
Owns one form engine and mirrors its settled snapshots to reactive runtimes.
"""

import inspect
import itertools
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol

from ..core.batch import PendingUpdate, UpdateBatcher, aggregate
from ..core.config import get_settings
from ..core.errors import BridgeDestroyedError
from ..core.logging_config import LogContext, get_logger
from ..core.tracing import trace_operation
from ..engine.list_operator import ListOperator
from ..engine.protocol import ChangeEvent, EngineFactory, FormEngine, ValidationResult
from ..monitoring.metrics import metrics_collector

logger = get_logger(__name__)

Listener = Callable[[], None]

_bridge_ids = itertools.count(1)


@dataclass(frozen=True)
class Snapshot:
    """
    Settled engine state.

    Both attributes are the exact objects the engine returned; the bridge
    never copies them, so untouched subtrees keep their identity.
    """

    render_tree: Any
    value_model: Any

    def value_at(self, path: Optional[str]) -> Any:
        """Read a dotted path (``items.0.x``) from the mirrored model; missing segments give None."""
        data = self.value_model
        if not path:
            return data
        for part in path.split("."):
            if isinstance(data, Mapping):
                data = data.get(part)
            elif isinstance(data, (list, tuple)) and part.isdigit() and int(part) < len(data):
                data = data[int(part)]
            else:
                return None
        return data


class SnapshotSink(Protocol):
    """Push-style runtime container."""

    def write(self, snapshot: Snapshot) -> None:
        ...


class FormStateBridge:
    """
    Bridge between a form engine and a reactive runtime.

    The mirrored snapshot only changes on computed-phase (or phase-less)
    change events and on host-initiated ``set_form_schema``/``reset``.
    Immediate-phase events are ignored because the render tree has not been
    recomputed yet.

    Pull runtimes use ``subscribe``/``get_snapshot``; push runtimes attach a
    sink with ``attach_sink``.
    """

    def __init__(
        self,
        schema: Any,
        model: Optional[dict[str, Any]] = None,
        *,
        engine_factory: EngineFactory,
        enable_batch: Optional[bool] = None,
        batch_delay: Optional[float] = None,
    ):
        """
        Create the engine and capture the initial snapshot.

        Args:
            schema: Form schema handed to the engine
            model: Optional initial model
            engine_factory: ``(schema, model) -> FormEngine``
            enable_batch: Coalesce writes (defaults to settings)
            batch_delay: Batch window in seconds (defaults to settings)
        """
        self.bridge_id = f"bridge-{next(_bridge_ids)}"
        self._destroyed = False
        self._listeners: dict[Listener, None] = {}
        self._sinks: list[SnapshotSink] = []

        self._engine: FormEngine = engine_factory(schema, model)
        self._snapshot = Snapshot(self._engine.get_render_tree(), self._engine.get_value())
        self._unsubscribe = self._engine.on_value_change(self._handle_change)

        if enable_batch is None:
            enable_batch = get_settings().enable_batch
        self._batcher: Optional[UpdateBatcher] = (
            UpdateBatcher(self._apply_batch, delay=batch_delay) if enable_batch else None
        )

        metrics_collector.bridge_created()
        logger.debug("bridge_created", bridge=self.bridge_id, batching=enable_batch)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def engine(self) -> FormEngine:
        """
        The owned engine.

        Raises:
            BridgeDestroyedError: Bridge was destroyed
        """
        if self._destroyed:
            raise BridgeDestroyedError(f"{self.bridge_id} is destroyed")
        return self._engine

    @property
    def current_snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def batcher(self) -> Optional[UpdateBatcher]:
        return self._batcher

    def get_snapshot(self) -> Snapshot:
        """Current snapshot; the same object until something settles."""
        return self._snapshot

    def get_render_tree(self) -> Any:
        return self._snapshot.render_tree

    def get_model(self) -> Any:
        return self._snapshot.value_model

    def get_value(self, path: Optional[str] = None) -> Any:
        """
        Read the whole model or one path.

        Raises:
            BridgeDestroyedError: Reading a path after destroy
        """
        if not path:
            if self._destroyed:
                return self._snapshot.value_model
            return self._engine.get_value()
        return self.engine.get_value(path)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a zero-argument listener.

        Returns:
            Unsubscribe callable
        """
        if self._destroyed:
            logger.warning("bridge_destroyed", bridge=self.bridge_id, operation="subscribe")
            return lambda: None

        self._listeners[listener] = None

        def unsubscribe() -> None:
            self._listeners.pop(listener, None)

        return unsubscribe

    def attach_sink(self, sink: SnapshotSink) -> Callable[[], None]:
        """
        Attach a push-style sink; it receives the current snapshot at once.

        Returns:
            Detach callable
        """
        if self._destroyed:
            logger.warning("bridge_destroyed", bridge=self.bridge_id, operation="attach_sink")
            return lambda: None

        self._sinks.append(sink)
        sink.write(self._snapshot)

        def detach() -> None:
            if sink in self._sinks:
                self._sinks.remove(sink)

        return detach

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_value(self, path_or_updates: str | Mapping[str, Any], value: Any = None) -> None:
        """
        Write one path, or several paths as one aggregate write.

        With batching enabled the write joins the current window.
        """
        if self._warn_if_destroyed("update_value"):
            return

        if isinstance(path_or_updates, Mapping):
            if self._batcher is not None:
                self._batcher.add_many(path_or_updates)
            else:
                self._engine.update_value(dict(path_or_updates))
            return

        if self._batcher is not None:
            self._batcher.add(path_or_updates, value)
        else:
            self._engine.update_value(path_or_updates, value)

    def set_form_schema(self, schema: Any) -> None:
        """Swap the schema and refresh the mirror right away."""
        if self._warn_if_destroyed("set_form_schema"):
            return

        with trace_operation("set_form_schema", bridge=self.bridge_id):
            self._flush_pending()
            self._engine.set_form_schema(schema)
            self._refresh("schema")

    def reset(self, target: Any = None) -> None:
        """
        Reset the engine and refresh the mirror right away.

        Pending batched writes are discarded.

        Args:
            target: None for the initial model, ``"default"`` for schema
                defaults, or a model to reset to
        """
        if self._warn_if_destroyed("reset"):
            return

        with trace_operation("reset", bridge=self.bridge_id):
            if self._batcher is not None:
                self._batcher.cancel()
            self._engine.reset(target)
            self._refresh("reset")

    async def validate(self, paths: Optional[list[str]] = None) -> ValidationResult:
        """
        Validate the whole form or selected paths.

        Pending batched writes are applied first.
        """
        if self._warn_if_destroyed("validate"):
            return ValidationResult.for_destroyed()

        with trace_operation("validate", bridge=self.bridge_id, paths=paths):
            self._flush_pending()
            result = self._engine.validate(paths)
            if inspect.isawaitable(result):
                result = await result
            return ValidationResult.from_engine(result)

    def flush(self) -> None:
        """Apply pending batched writes now."""
        if self._warn_if_destroyed("flush"):
            return
        if self._batcher is not None:
            self._batcher.flush()

    async def wait_flush(self) -> None:
        """Apply pending batched writes, then wait for the engine to settle."""
        if self._destroyed:
            return

        self.flush()
        wait = getattr(self._engine, "wait_flush", None)
        if callable(wait):
            result = wait()
            if inspect.isawaitable(result):
                await result

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def get_list_operator(self, path: str) -> ListOperator:
        return ListOperator(self, path)

    def list_append(self, path: str, row: Any) -> Any:
        if self._warn_if_destroyed("list_append", path):
            return None
        self._flush_pending()
        return self._engine.list_append(path, row)

    def list_insert(self, path: str, index: int, row: Any) -> Any:
        if self._warn_if_destroyed("list_insert", path):
            return None
        self._flush_pending()
        return self._engine.list_insert(path, index, row)

    def list_remove(self, path: str, index: int) -> Any:
        if self._warn_if_destroyed("list_remove", path):
            return None
        self._flush_pending()
        return self._engine.list_remove(path, index)

    def list_move(self, path: str, from_index: int, to_index: int) -> Any:
        if self._warn_if_destroyed("list_move", path):
            return None
        self._flush_pending()
        return self._engine.list_move(path, from_index, to_index)

    def list_swap(self, path: str, a: int, b: int) -> Any:
        if self._warn_if_destroyed("list_swap", path):
            return None
        self._flush_pending()
        return self._engine.list_swap(path, a, b)

    def list_replace(self, path: str, index: int, row: Any) -> Any:
        if self._warn_if_destroyed("list_replace", path):
            return None
        self._flush_pending()
        return self._engine.list_replace(path, index, row)

    def list_clear(self, path: str) -> Any:
        if self._warn_if_destroyed("list_clear", path):
            return None
        self._flush_pending()
        return self._engine.list_clear(path)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def destroy(self) -> None:
        """Release the engine, listeners, sinks and pending writes. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True

        if self._batcher is not None:
            self._batcher.destroy()
        self._unsubscribe()
        self._listeners.clear()
        self._sinks.clear()
        self._engine.destroy()

        metrics_collector.bridge_destroyed()
        logger.debug("bridge_destroyed", bridge=self.bridge_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _handle_change(self, raw: Any) -> None:
        if self._destroyed:
            return

        try:
            event = ChangeEvent.coerce(raw)
        except (TypeError, ValueError) as e:
            # Unrecognized payloads are treated as settled
            logger.warning("change_event_invalid", bridge=self.bridge_id, error=str(e))
        else:
            if event.is_immediate:
                metrics_collector.record_skipped_event(event.phase.value)
                return

        self._refresh("engine_event")

    def _refresh(self, source: str) -> None:
        render_tree = self._engine.get_render_tree()
        value_model = self._engine.get_value()

        current = self._snapshot
        if render_tree is not current.render_tree or value_model is not current.value_model:
            self._snapshot = Snapshot(render_tree, value_model)

        metrics_collector.record_snapshot_refresh(source)
        with LogContext(bridge=self.bridge_id, source=source):
            self._write_sinks()
            self._notify()

    def _write_sinks(self) -> None:
        snapshot = self._snapshot
        for sink in list(self._sinks):
            try:
                sink.write(snapshot)
            except Exception as e:
                metrics_collector.record_listener_error("sink")
                logger.error("sink_write_failed", sink=type(sink).__name__, error=str(e), exc_info=True)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                metrics_collector.record_listener_error("listener")
                logger.error("listener_failed", error=str(e), exc_info=True)

    def _apply_batch(self, updates: list[PendingUpdate]) -> None:
        self._engine.update_value(aggregate(updates))

    def _flush_pending(self) -> None:
        if self._batcher is not None and self._batcher.has_pending():
            self._batcher.flush()

    def _warn_if_destroyed(self, operation: str, path: Optional[str] = None) -> bool:
        if self._destroyed:
            logger.warning("bridge_destroyed", bridge=self.bridge_id, operation=operation, path=path)
            return True
        return False
