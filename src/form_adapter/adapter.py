"""
Form Adapter
Wires a registry, a bridge and an event handler into one form instance.
"""

import inspect
from typing import Any, Callable, Iterable, Mapping, Optional

from .bridge.state import FormStateBridge, Snapshot
from .components.registry import ComponentRegistry
from .components.types import BaseComponentDefinition, ComponentPreset
from .core.logging_config import get_logger
from .core.tracing import traced
from .engine.list_operator import ListOperator
from .engine.protocol import EngineFactory, ValidationResult
from .handlers.events import ErrorCallback, FieldEventHandler, FieldHook
from .rendering.resolver import NodeResolver, ResolvedNode

logger = get_logger(__name__)

Components = ComponentPreset | Mapping[str, Any] | Iterable[BaseComponentDefinition | Mapping[str, Any]]


def _is_preset(components: Any) -> bool:
    if isinstance(components, ComponentPreset):
        return True
    return isinstance(components, Mapping) and "components" in components


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class FormAdapter:
    """
    One form: registry, bridge and event handler with host callbacks.

    Use ``FormAdapter.create`` when the preset has an async setup.
    """

    def __init__(
        self,
        schema: Any,
        model: Optional[dict[str, Any]] = None,
        *,
        engine_factory: EngineFactory,
        components: Optional[Components] = None,
        registry: Optional[ComponentRegistry] = None,
        enable_batch: Optional[bool] = None,
        batch_delay: Optional[float] = None,
        on_change: Optional[Callable[[dict[str, Any]], None]] = None,
        on_validate: Optional[Callable[[ValidationResult], Any]] = None,
        on_submit: Optional[Callable[[Any], Any]] = None,
        on_ready: Optional[Callable[[FormStateBridge], None]] = None,
        on_transform_error: Optional[ErrorCallback] = None,
        on_update_error: Optional[ErrorCallback] = None,
        on_focus: Optional[FieldHook] = None,
        on_blur: Optional[FieldHook] = None,
    ) -> None:
        self.registry = registry if registry is not None else ComponentRegistry()
        if components is not None:
            if _is_preset(components):
                self.registry.register_preset(components)
            else:
                self.registry.register_batch(components)

        self.on_change = on_change
        self.on_validate = on_validate
        self.on_submit = on_submit
        self.errors: Optional[ValidationResult] = None
        self.loading = False

        # Widget edits are coalesced by the handler; host writes drain them before reaching the bridge
        self.bridge = FormStateBridge(schema, model, engine_factory=engine_factory, enable_batch=False)
        self.handler = FieldEventHandler(
            self.bridge,
            self.registry,
            enable_batch=enable_batch,
            batch_delay=batch_delay,
            on_transform_error=on_transform_error,
            on_update_error=on_update_error,
            on_focus=on_focus,
            on_blur=on_blur,
        )
        self.resolver = NodeResolver(self.bridge, self.registry, self.handler)

        logger.info(
            "form_adapter_ready",
            bridge=self.bridge.bridge_id,
            components=len(self.registry),
            preset=self.registry.preset_name,
        )
        if on_ready is not None:
            on_ready(self.bridge)

    @classmethod
    async def create(
        cls,
        schema: Any,
        model: Optional[dict[str, Any]] = None,
        *,
        components: Optional[Components] = None,
        registry: Optional[ComponentRegistry] = None,
        **options: Any,
    ) -> "FormAdapter":
        """Build an adapter, awaiting an async preset setup before anything registers."""
        registry = registry if registry is not None else ComponentRegistry()
        if components is not None:
            if _is_preset(components):
                await registry.register_preset_async(components)
            else:
                registry.register_batch(components)
        return cls(schema, model, registry=registry, **options)

    @property
    def destroyed(self) -> bool:
        return self.bridge.destroyed

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def get_value(self, path: Optional[str] = None) -> Any:
        return self.bridge.get_value(path)

    def get_snapshot(self) -> Snapshot:
        return self.bridge.get_snapshot()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.bridge.subscribe(listener)

    def update_value(self, path: str, value: Any) -> None:
        """Write one path after pending widget edits; ``on_change`` fires once applied."""
        if self._warn_if_destroyed("update_value", path):
            return
        self.handler.flush()
        self.bridge.update_value(path, value)
        if self.on_change is not None:
            self.on_change({"path": path, "value": value})

    def update_values(self, values: Mapping[str, Any]) -> None:
        """Apply several values as one write; ``on_change`` fires per path."""
        if self._warn_if_destroyed("update_values"):
            return
        self.handler.flush()
        self.bridge.update_value(values)
        if self.on_change is not None:
            for path, value in values.items():
                self.on_change({"path": path, "value": value})

    def set_form_schema(self, schema: Any) -> None:
        if self._warn_if_destroyed("set_form_schema"):
            return
        self.handler.flush()
        self.bridge.set_form_schema(schema)

    def reset(self, target: Any = None) -> None:
        if self._warn_if_destroyed("reset"):
            return
        self.handler.flush()
        self.bridge.reset(target)
        self.errors = None

    def get_list_operator(self, path: str) -> ListOperator:
        """Operator whose changes land after pending widget edits on row paths."""
        return ListOperator(self, path)

    def list_append(self, path: str, row: Any) -> Any:
        self._drain()
        return self.bridge.list_append(path, row)

    def list_insert(self, path: str, index: int, row: Any) -> Any:
        self._drain()
        return self.bridge.list_insert(path, index, row)

    def list_remove(self, path: str, index: int) -> Any:
        self._drain()
        return self.bridge.list_remove(path, index)

    def list_move(self, path: str, from_index: int, to_index: int) -> Any:
        self._drain()
        return self.bridge.list_move(path, from_index, to_index)

    def list_swap(self, path: str, a: int, b: int) -> Any:
        self._drain()
        return self.bridge.list_swap(path, a, b)

    def list_replace(self, path: str, index: int, row: Any) -> Any:
        self._drain()
        return self.bridge.list_replace(path, index, row)

    def list_clear(self, path: str) -> Any:
        self._drain()
        return self.bridge.list_clear(path)

    def resolve_tree(self) -> Optional[ResolvedNode]:
        return self.resolver.resolve_tree()

    # ------------------------------------------------------------------
    # Validation & submit
    # ------------------------------------------------------------------

    async def validate(self, paths: Optional[list[str]] = None) -> ValidationResult:
        """Validate, store ``errors`` (None when valid) and call ``on_validate``."""
        self._drain()
        self.loading = True
        try:
            result = await self.bridge.validate(paths)
        finally:
            self.loading = False

        self.errors = None if result.ok else result
        if self.on_validate is not None:
            await _maybe_await(self.on_validate(result))
        return result

    async def submit(self) -> bool:
        """
        Validate, then hand the model to ``on_submit``.

        Returns:
            Whether validation passed
        """
        result = await self.validate()
        if not result.ok:
            logger.info("form_submit_blocked", errors=len(result.errors))
            return False

        if self.on_submit is not None:
            self.loading = True
            try:
                await _maybe_await(self.on_submit(self.bridge.get_model()))
            finally:
                self.loading = False
        return True

    async def flush(self) -> None:
        """Apply pending widget edits and wait for the engine to settle."""
        self.handler.flush()
        await self.bridge.wait_flush()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_component(self, definition: BaseComponentDefinition | Mapping[str, Any]) -> BaseComponentDefinition:
        return self.registry.register(definition)

    @traced("register_components")
    def register_components(self, definitions: Iterable[BaseComponentDefinition | Mapping[str, Any]]) -> None:
        self.registry.register_batch(definitions)

    def destroy(self) -> None:
        """Destroy the handler, then the bridge. Idempotent."""
        self.handler.destroy()
        self.bridge.destroy()

    def _drain(self) -> None:
        if not self.handler.destroyed:
            self.handler.flush()

    def _warn_if_destroyed(self, operation: str, path: Optional[str] = None) -> bool:
        if self.destroyed:
            logger.warning("bridge_destroyed", bridge=self.bridge.bridge_id, operation=operation, path=path)
            return True
        return False
