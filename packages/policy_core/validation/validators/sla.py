"""SLA policy validator.

Checks priorities and working hours of an SLA draft and produces the
normalized config the SLA clock consumes.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from policy_config import ALL_DAYS, PolicyKind, WorkingHoursMode

from ..base import PolicyValidator, coerce_number, coerce_text, is_positive
from ..result import ValidationResult

_CLOCK_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SlaPolicyValidator(PolicyValidator):
    """Validator for SLA policy drafts.

    Error tokens:
        priorities: no priorities configured
        priority_key: a priority has an empty key
        duplicate_priority_key: two priorities share a key
        first_response_minutes / resolution_minutes: target is not a positive number
        working_hours: business hours are incomplete or malformed
    """

    kind = PolicyKind.SLA

    def validate(self, raw: Mapping[str, Any]) -> ValidationResult:
        """Validate and normalize an SLA draft."""
        if not isinstance(raw, Mapping):
            raw = {}

        errors: List[str] = []

        raw_priorities = raw.get("priorities")
        if not isinstance(raw_priorities, list):
            raw_priorities = []

        priorities = [self._normalize_priority(p) for p in raw_priorities]

        if not priorities:
            errors.append("priorities")

        for priority in priorities:
            if not priority["key"]:
                errors.append("priority_key")
            if not is_positive(priority["first_response_minutes"]):
                errors.append("first_response_minutes")
            if not is_positive(priority["resolution_minutes"]):
                errors.append("resolution_minutes")

        keys = [p["key"] for p in priorities if p["key"]]
        if len(keys) != len(set(keys)):
            errors.append("duplicate_priority_key")

        working_hours = self._normalize_working_hours(raw.get("working_hours"))
        if working_hours is None:
            errors.append("working_hours")

        return self._result({"working_hours": working_hours, "priorities": priorities}, errors)

    @staticmethod
    def _normalize_priority(raw: Any) -> Dict[str, Any]:
        if not isinstance(raw, Mapping):
            raw = {}
        return {
            "key": coerce_text(raw.get("key")),
            "first_response_minutes": coerce_number(raw.get("first_response_minutes")),
            "resolution_minutes": coerce_number(raw.get("resolution_minutes")),
        }

    @staticmethod
    def _normalize_working_hours(raw: Any) -> Optional[Dict[str, Any]]:
        """Return normalized working hours, or None when they are invalid."""
        if raw is None:
            return {"mode": WorkingHoursMode.ALWAYS.value}
        if not isinstance(raw, Mapping):
            return None

        mode = coerce_text(raw.get("mode"))
        if mode in ("", WorkingHoursMode.ALWAYS.value):
            return {"mode": WorkingHoursMode.ALWAYS.value}
        if mode != WorkingHoursMode.BUSINESS_HOURS.value:
            return None

        timezone = coerce_text(raw.get("timezone"))
        start = coerce_text(raw.get("start"))
        end = coerce_text(raw.get("end"))
        if not timezone or not start or not end:
            return None
        if not _CLOCK_TIME.match(start) or not _CLOCK_TIME.match(end):
            return None

        days = raw.get("days")
        if days is None:
            days = list(ALL_DAYS)
        elif not isinstance(days, list) or not all(
            isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6 for d in days
        ):
            return None

        return {
            "mode": WorkingHoursMode.BUSINESS_HOURS.value,
            "timezone": timezone,
            "start": start,
            "end": end,
            "days": list(days),
        }
