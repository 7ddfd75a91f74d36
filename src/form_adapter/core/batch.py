"""Time-windowed update batching with last-write-wins coalescing."""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from .config import get_settings
from .logging_config import get_logger
from ..monitoring.metrics import metrics_collector

logger = get_logger(__name__)


class BatchState(str, Enum):
    """Batcher lifecycle states."""

    IDLE = "idle"
    PENDING = "pending"


@dataclass(frozen=True)
class PendingUpdate:
    """A queued write for one path."""

    path: str
    value: Any


FlushHandler = Callable[[list[PendingUpdate]], None]


def aggregate(updates: Iterable[PendingUpdate]) -> dict[str, Any]:
    """Build a ``{path: value}`` aggregate write (later entries win)."""
    return {update.path: update.value for update in updates}


class UpdateBatcher:
    """
    Coalesces writes issued within one time window into a single flush.

    Writes to the same path collapse to the most recent value. When the
    window closes (or ``flush()`` is called) every queued path is handed to
    ``on_flush`` in one call, so consumers never observe a partially applied
    window.

    Examples:
        >>> batcher = UpdateBatcher(lambda updates: engine.update_value(aggregate(updates)))
        >>> batcher.add("user.name", "Ada")
        >>> batcher.add("user.name", "Grace")
        >>> batcher.flush()  # one write: {"user.name": "Grace"}
    """

    def __init__(
        self,
        on_flush: FlushHandler,
        delay: float | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        """
        Initialize batcher.

        Args:
            on_flush: Receives the drained updates, once per window
            delay: Window length in seconds (defaults to settings, one frame)
            loop: Event loop for the timer (defaults to the running loop)
        """
        if delay is None:
            delay = get_settings().batch_delay
        if delay <= 0:
            raise ValueError("delay must be positive")

        self.on_flush = on_flush
        self.delay = delay
        self._loop = loop

        self._pending: dict[str, Any] = {}
        self._callbacks: dict[Callable[[], None], None] = {}
        self._waiters: list[asyncio.Future] = []
        self._timer: asyncio.TimerHandle | None = None
        self._state = BatchState.IDLE
        self._destroyed = False

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def pending_count(self) -> int:
        """Number of distinct queued paths."""
        return len(self._pending)

    def has_pending(self) -> bool:
        return bool(self._pending)

    def pending_paths(self) -> list[str]:
        return list(self._pending)

    def add(self, path: str, value: Any, callback: Callable[[], None] | None = None) -> None:
        """
        Queue a write, replacing any queued value for the same path.

        Args:
            path: Target path
            value: New value
            callback: Invoked once after the window is flushed
        """
        if self._destroyed:
            logger.warning("batcher_destroyed", operation="add", path=path)
            return

        self._pending[path] = value
        if callback is not None:
            self._callbacks[callback] = None
        self._arm()

    def add_many(
        self, updates: Mapping[str, Any], callback: Callable[[], None] | None = None
    ) -> None:
        """Queue several writes under the current window."""
        if self._destroyed:
            logger.warning("batcher_destroyed", operation="add_many", paths=list(updates))
            return

        self._pending.update(updates)
        if callback is not None:
            self._callbacks[callback] = None
        if self._pending:
            self._arm()

    def flush(self) -> None:
        """
        Apply every queued write now, as one aggregate call.

        Raises:
            Exception: Whatever ``on_flush`` raised (logged once, queue already cleared)
        """
        self._cancel_timer()
        self._state = BatchState.IDLE

        waiters, self._waiters = self._waiters, []
        if not self._pending:
            self._resolve(waiters)
            return

        updates = [PendingUpdate(path, value) for path, value in self._pending.items()]
        callbacks = list(self._callbacks)
        self._pending.clear()
        self._callbacks.clear()

        start = time.perf_counter()
        try:
            self.on_flush(updates)
        except Exception as e:
            metrics_collector.record_batch_flush("error", len(updates), time.perf_counter() - start)
            logger.error(
                "batch_flush_failed",
                error=str(e),
                paths=[update.path for update in updates],
                exc_info=True,
            )
            raise
        else:
            metrics_collector.record_batch_flush("success", len(updates), time.perf_counter() - start)
            logger.debug("batch_flushed", size=len(updates))
        finally:
            self._run_callbacks(callbacks)
            self._resolve(waiters)

    def cancel(self) -> None:
        """Discard queued writes and callbacks without applying them."""
        self._cancel_timer()
        self._state = BatchState.IDLE
        self._pending.clear()
        self._callbacks.clear()
        waiters, self._waiters = self._waiters, []
        self._resolve(waiters)

    clear = cancel

    def destroy(self) -> None:
        """Cancel pending work and refuse further writes. Safe to call repeatedly."""
        if self._destroyed:
            return
        self.cancel()
        self._destroyed = True

    async def wait(self) -> None:
        """Return once the current window has been applied or discarded."""
        if not self._pending:
            return

        loop = asyncio.get_running_loop()
        if self._timer is None:
            # Queued outside a running loop; arm the window now
            self._timer = loop.call_later(self.delay, self._on_timer)

        future = loop.create_future()
        self._waiters.append(future)
        await future

    def _arm(self) -> None:
        if self._state is BatchState.PENDING:
            return

        self._state = BatchState.PENDING
        loop = self._resolve_loop()
        if loop is None:
            logger.debug("batch_timer_unavailable", reason="no running event loop")
            return
        self._timer = loop.call_later(self.delay, self._on_timer)

    def _resolve_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None and not self._loop.is_closed():
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _on_timer(self) -> None:
        self._timer = None
        try:
            self.flush()
        except Exception:
            # Already logged by flush(); nothing upstream to re-raise to
            return

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _run_callbacks(self, callbacks: list[Callable[[], None]]) -> None:
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                metrics_collector.record_listener_error("batch_callback")
                logger.error("batch_callback_failed", error=str(e), exc_info=True)

    @staticmethod
    def _resolve(waiters: list[asyncio.Future]) -> None:
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
