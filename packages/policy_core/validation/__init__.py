"""Policy draft validation."""

from .base import PolicyValidator
from .engine import ValidationEngine, validate_config
from .result import ValidationResult
from .validators import EscalationPolicyValidator, SlaPolicyValidator

__all__ = [
    "EscalationPolicyValidator",
    "PolicyValidator",
    "SlaPolicyValidator",
    "ValidationEngine",
    "ValidationResult",
    "validate_config",
]
