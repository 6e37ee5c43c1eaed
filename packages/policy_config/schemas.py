"""Configuration schemas for SLA and escalation policies.

This module defines the Pydantic models for policy templates, policy versions
and the two kinds of policy configuration. Raw drafts are checked by the
validators in ``policy_core.validation``; the typed config models here describe
the normalized shape those validators produce.
"""

import copy
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

ALL_DAYS: List[int] = [0, 1, 2, 3, 4, 5, 6]


class PolicyKind(str, Enum):
    """Kind of policy a template governs."""

    SLA = "sla"
    ESCALATION = "escalation"


class VersionStatus(str, Enum):
    """Lifecycle status of a policy version."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class WorkingHoursMode(str, Enum):
    """How the SLA clock counts time."""

    ALWAYS = "24x7"
    BUSINESS_HOURS = "business_hours"


class EscalationTrigger(str, Enum):
    """Condition that fires an escalation rule."""

    PERCENTAGE_ELAPSED = "percentage_elapsed"
    BREACH = "breach"
    INACTIVITY = "inactivity"


class EscalationBehavior(str, Enum):
    """Effect of a fired escalation rule."""

    NOTIFY = "notify"
    AUTO = "auto"


class EscalationSeverity(str, Enum):
    """Severity attached to an escalation notification."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class NotificationChannel(str, Enum):
    """Channel an escalation notification is delivered on."""

    IN_APP = "in_app"
    EMAIL = "email"


class WorkingHours(BaseModel):
    """Working hours used by the SLA clock."""

    mode: WorkingHoursMode = Field(
        default=WorkingHoursMode.ALWAYS,
        description="Either round-the-clock or business hours",
    )
    timezone: Optional[str] = Field(default=None, description="IANA timezone name")
    start: Optional[str] = Field(default=None, description="Start of day, HH:MM")
    end: Optional[str] = Field(default=None, description="End of day, HH:MM")
    days: Optional[List[int]] = Field(
        default=None,
        description="Working weekdays, 0 through 6",
    )


class Priority(BaseModel):
    """Response and resolution targets for one ticket priority."""

    key: str = Field(..., description="Priority key, unique within the policy")
    first_response_minutes: float = Field(..., gt=0)
    resolution_minutes: float = Field(..., gt=0)

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate key is not empty."""
        if not v or not v.strip():
            raise ValueError("Priority key cannot be empty")
        return v.strip()


class SlaConfig(BaseModel):
    """Normalized SLA policy configuration."""

    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    priorities: List[Priority] = Field(..., min_length=1)


class EscalationRule(BaseModel):
    """A single escalation rule."""

    trigger: EscalationTrigger
    percentage: Optional[float] = Field(default=None, gt=0, le=100)
    inactivity_minutes: Optional[float] = Field(default=None, gt=0)
    recipients: List[str] = Field(..., min_length=1, description="Role keys to notify")
    channels: List[NotificationChannel] = Field(..., min_length=1)
    behavior: EscalationBehavior
    severity: EscalationSeverity
    feature_flag: Optional[str] = Field(
        default=None,
        description="Feature flag toggled by automatic rules",
    )


class EscalationConfig(BaseModel):
    """Normalized escalation policy configuration."""

    rules: List[EscalationRule] = Field(..., min_length=1)


PolicyConfig = Union[SlaConfig, EscalationConfig]


class PolicyTemplate(BaseModel):
    """A named, scoped container for successive policy versions."""

    id: str
    name: str
    description: Optional[str] = None
    scope_type: str = Field(default="global", description="Scope the policy applies to")
    scope_value: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class PolicyVersion(BaseModel):
    """A snapshot of policy configuration under a template.

    ``config`` is kept exactly as the store returns it; use ``parse_config``
    for a typed view of a validated config.
    """

    id: str
    template: str
    version: int
    status: VersionStatus = VersionStatus.DRAFT
    config: Dict[str, Any] = Field(default_factory=dict)
    created_by_id: Optional[str] = None
    created_by_label: Optional[str] = None
    published_at: Optional[datetime] = None
    published_by_id: Optional[str] = None
    published_by_label: Optional[str] = None
    created_at: datetime

    @property
    def is_draft(self) -> bool:
        """Whether this version can still be edited."""
        return self.status == VersionStatus.DRAFT


class SimulationResult(BaseModel):
    """Outcome of a dry run; ``results`` is passed through uninterpreted."""

    count: int = 0
    results: List[Any] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "SimulationResult":
        """Build a result from whatever the store sent back.

        Args:
            payload: Decoded response body

        Returns:
            SimulationResult; unexpected shapes yield an empty result list
        """
        if not isinstance(payload, dict):
            return cls(count=0, results=[])

        results = payload.get("results")
        if not isinstance(results, list):
            results = []

        count = payload.get("count")
        if isinstance(count, bool) or not isinstance(count, int):
            count = len(results)

        return cls(count=count, results=results)


_ITEM_COLLECTIONS: Dict[PolicyKind, str] = {
    PolicyKind.SLA: "priorities",
    PolicyKind.ESCALATION: "rules",
}

_CONFIG_MODELS = {
    PolicyKind.SLA: SlaConfig,
    PolicyKind.ESCALATION: EscalationConfig,
}


def empty_config(kind: Union[PolicyKind, str]) -> Dict[str, Any]:
    """Return the starting config for a new draft of the given kind."""
    kind = PolicyKind(kind)
    if kind == PolicyKind.SLA:
        return {"working_hours": {"mode": WorkingHoursMode.ALWAYS.value}, "priorities": []}
    return {"rules": []}


def blank_item(kind: Union[PolicyKind, str]) -> Dict[str, Any]:
    """Return the empty entry appended when an operator adds a rule."""
    kind = PolicyKind(kind)
    if kind == PolicyKind.SLA:
        return {"key": "", "first_response_minutes": "", "resolution_minutes": ""}
    return {"trigger": "", "recipients": [], "channels": [], "behavior": "", "severity": ""}


def item_collection(kind: Union[PolicyKind, str]) -> str:
    """Name of the editable list inside a config of the given kind."""
    return _ITEM_COLLECTIONS[PolicyKind(kind)]


def parse_config(kind: Union[PolicyKind, str], config: Dict[str, Any]) -> PolicyConfig:
    """Build the typed view of a normalized config.

    Args:
        kind: Policy kind the config belongs to
        config: Normalized config dictionary

    Returns:
        SlaConfig or EscalationConfig

    Raises:
        pydantic.ValidationError: If the config does not match the typed schema
    """
    model = _CONFIG_MODELS[PolicyKind(kind)]
    return model.model_validate(copy.deepcopy(config))
