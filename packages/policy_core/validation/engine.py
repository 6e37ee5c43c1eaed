"""Validation engine that resolves a validator by policy kind.

The lifecycle controller, the HTTP client and the local policy service all
validate through this module, so both policy kinds share one entry point.
"""

import logging
from typing import Any, Dict, Mapping, Type, Union

from policy_config import PolicyKind

from ..metrics import VALIDATION_ERRORS, VALIDATIONS
from .base import PolicyValidator
from .result import ValidationResult
from .validators import EscalationPolicyValidator, SlaPolicyValidator

logger = logging.getLogger(__name__)


class ValidationEngine:
    """Engine for validating policy drafts of any kind."""

    # Mapping of policy kinds to validator classes
    VALIDATOR_CLASSES: Dict[PolicyKind, Type[PolicyValidator]] = {
        PolicyKind.SLA: SlaPolicyValidator,
        PolicyKind.ESCALATION: EscalationPolicyValidator,
    }

    def __init__(self) -> None:
        """Initialize one validator per policy kind."""
        self._validators: Dict[PolicyKind, PolicyValidator] = {
            kind: validator_class() for kind, validator_class in self.VALIDATOR_CLASSES.items()
        }

    def get_validator(self, kind: Union[PolicyKind, str]) -> PolicyValidator:
        """Get the validator for a policy kind.

        Raises:
            ValueError: If the kind is not supported
        """
        return self._validators[PolicyKind(kind)]

    def validate(self, kind: Union[PolicyKind, str], raw: Mapping[str, Any]) -> ValidationResult:
        """Validate a raw draft of the given kind.

        Args:
            kind: Policy kind of the draft
            raw: Draft config as edited by the operator

        Returns:
            ValidationResult with the normalized config or the error tokens

        Raises:
            ValueError: If the kind is not supported
        """
        validator = self.get_validator(kind)
        result = validator.validate(raw)

        kind_label = validator.kind.value
        if result.is_valid:
            VALIDATIONS.labels(kind=kind_label, result="valid").inc()
        else:
            VALIDATIONS.labels(kind=kind_label, result="invalid").inc()
            for token in result.errors:
                VALIDATION_ERRORS.labels(kind=kind_label, field=token).inc()
            logger.info("Draft %s policy failed validation: %s", kind_label, result.errors)

        return result


_default_engine = ValidationEngine()


def validate_config(kind: Union[PolicyKind, str], raw: Mapping[str, Any]) -> ValidationResult:
    """Validate a raw draft with the shared engine."""
    return _default_engine.validate(kind, raw)
