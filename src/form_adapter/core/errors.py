"""Adapter error taxonomy."""

from typing import Any


class FormAdapterError(Exception):
    """Base class for adapter errors."""

    pass


class RegistrationError(FormAdapterError):
    """A component definition or preset failed validation."""

    def __init__(self, message: str, field: str | None = None, name: str | None = None):
        super().__init__(message)
        self.field = field
        self.name = name


class TransformError(FormAdapterError):
    """A value transformer raised while converting a value."""

    def __init__(
        self,
        message: str,
        component_name: str | None = None,
        value: Any = None,
        path: str | None = None,
    ):
        super().__init__(message)
        self.component_name = component_name
        self.value = value
        self.path = path


class BridgeDestroyedError(FormAdapterError):
    """Operation needs a live bridge."""

    pass
