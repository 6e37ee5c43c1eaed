"""Validation result model.

This module defines the data structure returned when a raw draft is checked:
either a normalized config or a non-empty list of field-error tokens.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from policy_config import PolicyConfig, PolicyKind, parse_config


@dataclass
class ValidationResult:
    """Result of validating a raw policy draft.

    Attributes:
        kind: Policy kind the draft was validated as
        config: Normalized config, set only when validation passed
        errors: Field-error tokens in the order they were found; tokens may
            repeat when several rules fail the same check
    """

    kind: PolicyKind
    config: Optional[Dict[str, Any]] = None
    errors: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate that exactly one of config and errors is set."""
        if self.config is None and not self.errors:
            raise ValueError("A validation result needs either a config or errors")
        if self.config is not None and self.errors:
            raise ValueError("A validation result cannot carry both a config and errors")

    @property
    def is_valid(self) -> bool:
        """Whether the draft passed validation."""
        return self.config is not None

    def as_model(self) -> PolicyConfig:
        """Typed view of the normalized config.

        Raises:
            ValueError: If validation failed
        """
        if self.config is None:
            raise ValueError(f"Draft is invalid: {', '.join(self.errors)}")
        return parse_config(self.kind, self.config)
