"""Escalation policy validator.

Checks every rule of an escalation draft and keeps only the fields that
apply to each rule's trigger and behavior.
"""

from typing import Any, Dict, List, Mapping

from policy_config import (
    EscalationBehavior,
    EscalationSeverity,
    EscalationTrigger,
    NotificationChannel,
    PolicyKind,
)

from ..base import PolicyValidator, coerce_list, coerce_number, coerce_text, is_positive
from ..result import ValidationResult

_TRIGGERS = {t.value for t in EscalationTrigger}
_BEHAVIORS = {b.value for b in EscalationBehavior}
_SEVERITIES = {s.value for s in EscalationSeverity}
_CHANNELS = {c.value for c in NotificationChannel}


class EscalationPolicyValidator(PolicyValidator):
    """Validator for escalation policy drafts.

    Errors from all rules go into one list in rule order, so the same token
    can appear once per failing rule.
    """

    kind = PolicyKind.ESCALATION

    def validate(self, raw: Mapping[str, Any]) -> ValidationResult:
        """Validate and normalize an escalation draft."""
        if not isinstance(raw, Mapping):
            raw = {}

        raw_rules = raw.get("rules")
        if not isinstance(raw_rules, list):
            raw_rules = []

        errors: List[str] = []
        if not raw_rules:
            errors.append("rules")

        rules = [self._check_rule(rule, errors) for rule in raw_rules]

        return self._result({"rules": rules}, errors)

    @staticmethod
    def _check_rule(raw: Any, errors: List[str]) -> Dict[str, Any]:
        """Normalize one rule, appending its error tokens to errors."""
        if not isinstance(raw, Mapping):
            raw = {}

        trigger = coerce_text(raw.get("trigger"))
        behavior = coerce_text(raw.get("behavior"))
        severity = coerce_text(raw.get("severity"))
        recipients = [coerce_text(r) for r in coerce_list(raw.get("recipients"))]
        recipients = [r for r in recipients if r]
        channels = [coerce_text(c) for c in coerce_list(raw.get("channels"))]
        channels = [c for c in channels if c]

        rule: Dict[str, Any] = {"trigger": trigger}

        if trigger not in _TRIGGERS:
            errors.append("trigger")

        if trigger == EscalationTrigger.PERCENTAGE_ELAPSED.value:
            percentage = coerce_number(raw.get("percentage"))
            if not is_positive(percentage) or percentage > 100:
                errors.append("percentage")
            rule["percentage"] = percentage

        if trigger == EscalationTrigger.INACTIVITY.value:
            inactivity_minutes = coerce_number(raw.get("inactivity_minutes"))
            if not is_positive(inactivity_minutes):
                errors.append("inactivity")
            rule["inactivity_minutes"] = inactivity_minutes

        if not recipients:
            errors.append("recipients")
        if not channels or any(c not in _CHANNELS for c in channels):
            errors.append("channels")

        if behavior not in _BEHAVIORS:
            errors.append("behavior")
        if severity not in _SEVERITIES:
            errors.append("severity")

        rule.update(
            {
                "recipients": recipients,
                "channels": channels,
                "behavior": behavior,
                "severity": severity,
            }
        )

        if behavior == EscalationBehavior.AUTO.value:
            feature_flag = coerce_text(raw.get("feature_flag"))
            if not feature_flag:
                errors.append("feature_flag")
            rule["feature_flag"] = feature_flag

        return rule
