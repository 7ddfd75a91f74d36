"""
Runtime Sinks
Thin containers that mirror bridge snapshots in the style of each runtime.
"""

from typing import Any, Callable, Optional

from ..core.logging_config import get_logger
from ..monitoring.metrics import metrics_collector
from .state import FormStateBridge, Snapshot

logger = get_logger(__name__)

Watcher = Callable[[str, Any, Any], None]


def _run_watchers(watchers: list, source: str, *args: Any) -> None:
    for watcher in list(watchers):
        try:
            watcher(*args)
        except Exception as e:
            metrics_collector.record_listener_error(source)
            logger.error("watcher_failed", source=source, error=str(e), exc_info=True)


# ============================================================================
# Observable object (Vue 2 style)
# ============================================================================


class ObservableState:
    """
    Mutable observable with ``render_tree`` and ``value_model`` attributes.

    Assigning a different object notifies watchers with
    ``(attribute, new, old)``; assigning the same object does nothing.
    """

    _fields = ("render_tree", "value_model")

    def __init__(self, render_tree: Any = None, value_model: Any = None) -> None:
        object.__setattr__(self, "_watchers", [])
        object.__setattr__(self, "render_tree", render_tree)
        object.__setattr__(self, "value_model", value_model)

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in self._fields:
            raise AttributeError(f"{type(self).__name__} has no observable attribute '{name}'")

        old = getattr(self, name)
        if old is value:
            return
        object.__setattr__(self, name, value)
        _run_watchers(self._watchers, "observable", name, value, old)

    def watch(self, watcher: Watcher) -> Callable[[], None]:
        """Register a watcher; returns a callable that removes it."""
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch


class ObservableSink:
    """Writes snapshots into an ObservableState."""

    def __init__(self, state: Optional[ObservableState] = None) -> None:
        self.state = state if state is not None else ObservableState()

    def write(self, snapshot: Snapshot) -> None:
        self.state.render_tree = snapshot.render_tree
        self.state.value_model = snapshot.value_model


# ============================================================================
# Shallow refs (Vue 3 style)
# ============================================================================


class ShallowRef:
    """
    Reference cell compared by identity.

    Setting ``value`` to a different object notifies watchers with
    ``(new, old)``; ``trigger()`` notifies unconditionally.
    """

    def __init__(self, value: Any = None) -> None:
        self._value = value
        self._watchers: list[Callable[[Any, Any], None]] = []

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new: Any) -> None:
        old = self._value
        if old is new:
            return
        self._value = new
        _run_watchers(self._watchers, "ref", new, old)

    def trigger(self) -> None:
        _run_watchers(self._watchers, "ref", self._value, self._value)

    def watch(self, watcher: Callable[[Any, Any], None]) -> Callable[[], None]:
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def __repr__(self) -> str:
        return f"ShallowRef({self._value!r})"


class RefSink:
    """Writes snapshots into two shallow refs."""

    def __init__(self) -> None:
        self.render_tree = ShallowRef()
        self.value_model = ShallowRef()

    def write(self, snapshot: Snapshot) -> None:
        # Model first so render watchers see the matching model
        self.value_model.value = snapshot.value_model
        self.render_tree.value = snapshot.render_tree


# ============================================================================
# External store (React useSyncExternalStore style)
# ============================================================================


class ExternalStoreBinding:
    """
    Subscription driven by snapshot identity.

    ``on_store_change`` runs only when ``get_snapshot()`` returns a different
    object than the one last seen, matching how ``useSyncExternalStore``
    decides to re-render.
    """

    def __init__(self, bridge: FormStateBridge, on_store_change: Callable[[], None]) -> None:
        self.bridge = bridge
        self.on_store_change = on_store_change
        self.last_snapshot: Optional[Snapshot] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def connected(self) -> bool:
        return self._unsubscribe is not None

    def connect(self) -> "ExternalStoreBinding":
        if self._unsubscribe is None:
            self.last_snapshot = self.bridge.get_snapshot()
            self._unsubscribe = self.bridge.subscribe(self._handle_change)
        return self

    def disconnect(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def get_snapshot(self) -> Snapshot:
        return self.bridge.get_snapshot()

    def _handle_change(self) -> None:
        snapshot = self.bridge.get_snapshot()
        if snapshot is self.last_snapshot:
            return
        self.last_snapshot = snapshot
        self.on_store_change()
