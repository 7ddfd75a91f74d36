"""
Component Registry
Name-keyed store of component definitions for one adapter instance
"""

import inspect
from typing import Any, Iterable, Iterator, Optional

from pydantic import ValidationError

from ..core.errors import RegistrationError
from ..core.logging_config import get_logger
from .types import (
    BaseComponentDefinition,
    ComponentKind,
    ComponentPreset,
    parse_definition,
    registration_error,
)

logger = get_logger(__name__)


class ComponentRegistry:
    """
    Registry of component definitions.

    Owned by one bridge or adapter; there is no process-wide registry.
    Registering a name twice replaces the earlier definition.
    """

    def __init__(self) -> None:
        self.components: dict[str, BaseComponentDefinition] = {}
        self.preset: Optional[ComponentPreset] = None

    @property
    def preset_name(self) -> Optional[str]:
        """Name of the most recently registered preset."""
        return self.preset.name if self.preset else None

    def register(self, definition: BaseComponentDefinition | dict[str, Any]) -> BaseComponentDefinition:
        """
        Register a component definition.

        Args:
            definition: Definition model or mapping with a ``kind`` tag

        Returns:
            The validated definition

        Raises:
            RegistrationError: Missing name, unknown kind or missing render target
        """
        try:
            validated = parse_definition(definition)
        except ValidationError as e:
            error = registration_error(e, definition)
            logger.error("component_invalid", name=error.name, field=error.field, error=str(error))
            raise error from e

        if validated.name in self.components:
            logger.debug("component_replaced", name=validated.name)

        self.components[validated.name] = validated
        logger.debug("component_registered", name=validated.name, kind=validated.kind)
        return validated

    def register_batch(self, definitions: Iterable[BaseComponentDefinition | dict[str, Any]]) -> None:
        """Register definitions in order; the first failure aborts the rest."""
        for definition in definitions:
            self.register(definition)

    def register_preset(self, preset: ComponentPreset | dict[str, Any]) -> None:
        """
        Run a preset's synchronous setup, then register its components.

        Raises:
            RegistrationError: Invalid preset, or setup is asynchronous
        """
        preset = self._parse_preset(preset)

        if preset.setup is not None:
            if inspect.iscoroutinefunction(preset.setup):
                raise RegistrationError(
                    f"Preset '{preset.name}' has an async setup; use register_preset_async",
                    field="setup",
                    name=preset.name,
                )
            result = preset.setup()
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise RegistrationError(
                    f"Preset '{preset.name}' setup returned an awaitable; use register_preset_async",
                    field="setup",
                    name=preset.name,
                )

        self._install_preset(preset)

    async def register_preset_async(self, preset: ComponentPreset | dict[str, Any]) -> None:
        """Await a preset's setup (sync or async), then register its components."""
        preset = self._parse_preset(preset)

        if preset.setup is not None:
            result = preset.setup()
            if inspect.isawaitable(result):
                await result

        self._install_preset(preset)

    def _parse_preset(self, preset: ComponentPreset | dict[str, Any]) -> ComponentPreset:
        if isinstance(preset, ComponentPreset):
            return preset
        try:
            return ComponentPreset.model_validate(preset)
        except ValidationError as e:
            first = e.errors()[0]
            loc = [str(part) for part in first["loc"]]
            name = preset.get("name") if isinstance(preset, dict) else None
            raise RegistrationError(
                f"Invalid preset '{name}' ({'.'.join(loc)}): {first['msg']}",
                field=loc[0] if loc else None,
                name=name,
            ) from e

    def _install_preset(self, preset: ComponentPreset) -> None:
        self.register_batch(preset.components)
        self.preset = preset
        logger.info("preset_registered", preset=preset.name, components=len(preset.components))

    def get(self, name: str) -> Optional[BaseComponentDefinition]:
        """Get definition by name, or None."""
        return self.components.get(name)

    def has(self, name: str) -> bool:
        return name in self.components

    def get_by_kind(self, kind: ComponentKind | str) -> list[BaseComponentDefinition]:
        """All definitions of one kind (order is not guaranteed)."""
        kind = ComponentKind(kind)
        return [d for d in self.components.values() if d.kind == kind.value]

    def get_all(self) -> list[BaseComponentDefinition]:
        return list(self.components.values())

    def get_names(self) -> list[str]:
        return list(self.components)

    def unregister(self, name: str) -> bool:
        """Remove a definition; returns whether it existed."""
        if name not in self.components:
            return False
        del self.components[name]
        logger.debug("component_unregistered", name=name)
        return True

    def clear(self) -> None:
        self.components.clear()
        self.preset = None

    def get_stats(self) -> dict[str, Any]:
        """
        Get registry statistics.

        Returns:
            ``{"total": n, "by_kind": {"field": n, "layout": n, "list": n, "form": n}}``
        """
        by_kind = {kind.value: 0 for kind in ComponentKind}
        for definition in self.components.values():
            by_kind[definition.kind] += 1
        return {"total": len(self.components), "by_kind": by_kind}

    def clone(self) -> "ComponentRegistry":
        """Independent copy; mutating either registry never affects the other."""
        cloned = ComponentRegistry()
        cloned.components = {name: d.clone() for name, d in self.components.items()}
        cloned.preset = self.preset
        return cloned

    def merge(self, other: "ComponentRegistry", overwrite: bool = False) -> None:
        """
        Copy definitions from another registry.

        Args:
            other: Source registry
            overwrite: Replace definitions whose names already exist
        """
        for name, definition in other.components.items():
            if overwrite or name not in self.components:
                self.components[name] = definition.clone()

    def __contains__(self, name: object) -> bool:
        return name in self.components

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[BaseComponentDefinition]:
        return iter(list(self.components.values()))


def create_component_registry(
    definitions: Iterable[BaseComponentDefinition | dict[str, Any]] = (),
) -> ComponentRegistry:
    """Create a registry, optionally pre-populated."""
    registry = ComponentRegistry()
    registry.register_batch(definitions)
    return registry
