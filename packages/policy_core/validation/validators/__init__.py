"""Kind-specific policy validators."""

from .escalation import EscalationPolicyValidator
from .sla import SlaPolicyValidator

__all__ = [
    "EscalationPolicyValidator",
    "SlaPolicyValidator",
]
