"""Required-field validation."""

import math
from typing import Any, Mapping

from .models import CalculatorDefinition, ValidationResult


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return True


def validate(definition: CalculatorDefinition, bundle: Mapping[str, Any]) -> ValidationResult:
    """Check that every required input is present and finite."""
    missing = [key for key in definition.required_keys if not _present(bundle.get(key))]
    return ValidationResult(ok=not missing, missing=missing)
