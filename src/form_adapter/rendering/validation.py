"""
Validation helpers shared by presets.

A field is validated only while it is rendered, visible and enabled.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

ValidatorFn = Callable[..., Any]


@dataclass(frozen=True)
class ValidationContext:
    """Everything a rule converter needs for one field."""

    required: bool
    validators: list[ValidatorFn] = field(default_factory=list)
    should_validate: bool = True


def should_validate_field(computed: Optional[Mapping[str, Any]]) -> bool:
    """
    Check whether a field takes part in validation.

    Args:
        computed: The node's computed control attributes

    Returns:
        False when ``ifShow`` or ``show`` is False, or ``disabled`` is True
    """
    computed = computed or {}
    if computed.get("ifShow") is False:
        return False
    if computed.get("show") is False:
        return False
    if computed.get("disabled") is True:
        return False
    return True


def extract_required(node: Mapping[str, Any], computed: Optional[Mapping[str, Any]]) -> Optional[bool]:
    """Required flag, or None when the field is not validated."""
    if not should_validate_field(computed):
        return None
    return bool((computed or {}).get("required", False))


def extract_validators(node: Mapping[str, Any], computed: Optional[Mapping[str, Any]]) -> list[ValidatorFn]:
    """Node validators, or an empty list when the field is not validated."""
    if not should_validate_field(computed):
        return []
    return list(node.get("validators") or [])


def build_validation_context(
    node: Mapping[str, Any], computed: Optional[Mapping[str, Any]]
) -> ValidationContext:
    should_validate = should_validate_field(computed)
    return ValidationContext(
        required=should_validate and bool((computed or {}).get("required", False)),
        validators=list(node.get("validators") or []) if should_validate else [],
        should_validate=should_validate,
    )
