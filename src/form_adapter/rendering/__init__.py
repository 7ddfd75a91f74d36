"""Render-node resolution and validation helpers."""

from .resolver import NodeResolver, ResolvedNode
from .validation import (
    ValidationContext,
    should_validate_field,
    extract_required,
    extract_validators,
    build_validation_context,
)

__all__ = [
    "NodeResolver",
    "ResolvedNode",
    "ValidationContext",
    "should_validate_field",
    "extract_required",
    "extract_validators",
    "build_validation_context",
]
