"""
Value Transformers
Bidirectional mapping between engine values and widget values.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from returns.result import Result, Success, Failure

from ..core.errors import TransformError
from ..core.logging_config import get_logger
from ..monitoring.metrics import metrics_collector

logger = get_logger(__name__)


class ValueKind(str, Enum):
    """Built-in value kinds for field components."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    DATE = "date"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ValueTransformer:
    """
    Pair of pure conversions between the engine and a widget.

    ``from_component(to_component(v))`` is expected to be semantically
    equivalent to ``v``, and ``to_component(None)`` must never return ``None``.
    """

    to_component: Callable[[Any], Any]
    from_component: Callable[[Any], Any]


# ============================================================================
# Built-in conversions
# ============================================================================


def _string_to_component(value: Any) -> Any:
    return "" if value is None else value


def _string_from_component(value: Any) -> Any:
    if value is None or value == "":
        return None
    return value


def _number_to_component(value: Any) -> Any:
    return "" if value is None else value


def _number_from_component(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
    else:
        return None

    if isinstance(number, float) and math.isnan(number):
        return None
    return number


def _boolean_to_component(value: Any) -> bool:
    if isinstance(value, str):
        return value in ("true", "1")
    return bool(value)


def _array_to_component(value: Any) -> list:
    return value if isinstance(value, list) else []


def _array_from_component(value: Any) -> list:
    return value if isinstance(value, list) else []


def _parse_iso(text: str) -> date | datetime:
    """Parse an ISO-8601 string; date-only strings stay dates."""
    if len(text) == 10 and "T" not in text:
        return date.fromisoformat(text)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _format_iso(value: date | datetime) -> str:
    if not isinstance(value, datetime):
        return value.isoformat()
    if value.tzinfo is None:
        return value.isoformat()
    utc = value.astimezone(timezone.utc)
    return utc.isoformat().replace("+00:00", "Z")


def _date_to_component(value: Any) -> Any:
    if value is None or value == "":
        return ""
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str):
        return _parse_iso(value.strip())
    raise TypeError(f"Cannot convert {type(value).__name__} to a date")


def _date_from_component(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return _format_iso(value)
    if isinstance(value, str):
        return value
    raise TypeError(f"Cannot convert {type(value).__name__} to an ISO string")


BUILTIN_TRANSFORMERS: dict[ValueKind, ValueTransformer] = {
    ValueKind.STRING: ValueTransformer(_string_to_component, _string_from_component),
    ValueKind.NUMBER: ValueTransformer(_number_to_component, _number_from_component),
    ValueKind.BOOLEAN: ValueTransformer(_boolean_to_component, bool),
    ValueKind.ARRAY: ValueTransformer(_array_to_component, _array_from_component),
    ValueKind.DATE: ValueTransformer(_date_to_component, _date_from_component),
}


def transformer_for(kind: ValueKind | str) -> Optional[ValueTransformer]:
    """
    Get the built-in transformer for a value kind.

    Args:
        kind: Value kind (``custom`` has no built-in transformer)

    Returns:
        Transformer or None

    Raises:
        ValueError: Unknown kind
    """
    return BUILTIN_TRANSFORMERS.get(ValueKind(kind))


# ============================================================================
# Application
# ============================================================================


def _apply(
    definition: Any,
    value: Any,
    direction: str,
    path: str | None,
) -> Result[Any, TransformError]:
    transformer: Optional[ValueTransformer] = getattr(definition, "value_transformer", None)
    if transformer is None:
        return Success(value)

    convert = transformer.to_component if direction == "to_component" else transformer.from_component
    try:
        return Success(convert(value))
    except Exception as e:
        metrics_collector.record_transform_error(direction)
        logger.warning(
            "transform_failed",
            component=definition.name,
            direction=direction,
            path=path,
            error=str(e),
        )
        error = TransformError(
            f"{direction} failed for {definition.name}: {e}",
            component_name=definition.name,
            value=value,
            path=path,
        )
        error.__cause__ = e
        return Failure(error)


def to_component_value(
    definition: Any, value: Any, path: str | None = None
) -> Result[Any, TransformError]:
    """
    Convert an engine value for display by a widget.

    Args:
        definition: Component definition (transformer is optional)
        value: Engine value
        path: Field path, for error context

    Returns:
        Success(widget value) or Failure(TransformError)
    """
    return _apply(definition, value, "to_component", path)


def from_component_value(
    definition: Any, value: Any, path: str | None = None
) -> Result[Any, TransformError]:
    """
    Convert a widget value to the engine representation.

    Args:
        definition: Component definition (transformer is optional)
        value: Raw widget value
        path: Field path, for error context

    Returns:
        Success(engine value) or Failure(TransformError)
    """
    return _apply(definition, value, "from_component", path)
