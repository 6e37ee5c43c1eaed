"""Base class for policy validators.

This module defines the abstract base class every kind-specific validator
implements, plus the coercion helpers used to read raw form values.
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Union

from policy_config import PolicyKind

from .result import ValidationResult

Number = Union[int, float]


def coerce_number(value: Any) -> Number:
    """Read a numeric form value.

    None, empty strings, booleans and anything unparsable become NaN so they
    fail the finiteness checks downstream.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return math.nan
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def coerce_text(value: Any) -> str:
    """Read a text form value, trimmed; missing values become ''."""
    if value is None:
        return ""
    return str(value).strip()


def coerce_list(value: Any) -> List[Any]:
    """Read a multi-select form value; anything but a list becomes []."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def is_positive(value: Number) -> bool:
    """Whether value is a finite number greater than zero.

    Integers too large to convert to a float count as not finite.
    """
    try:
        return math.isfinite(value) and value > 0
    except OverflowError:
        return False


class PolicyValidator(ABC):
    """Abstract base class for policy validators.

    A validator maps a raw, possibly incomplete draft to a ValidationResult.
    It never raises for bad input; every problem becomes an error token.
    """

    kind: PolicyKind

    @abstractmethod
    def validate(self, raw: Mapping[str, Any]) -> ValidationResult:
        """Validate and normalize a raw draft.

        Args:
            raw: Draft config as edited by the operator

        Returns:
            ValidationResult holding the normalized config or the error tokens
        """
        pass

    def _result(self, config: Dict[str, Any], errors: List[str]) -> ValidationResult:
        if errors:
            return ValidationResult(kind=self.kind, errors=errors)
        return ValidationResult(kind=self.kind, config=config)
