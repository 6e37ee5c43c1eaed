"""Service Operations Console - Policy Configuration Package."""

from .loader import (
    ClientSettings,
    ConfigurationError,
    load_policy_document,
    load_settings_from_dict,
    load_settings_from_env,
    load_settings_from_yaml,
)
from .schemas import (
    ALL_DAYS,
    EscalationBehavior,
    EscalationConfig,
    EscalationRule,
    EscalationSeverity,
    EscalationTrigger,
    NotificationChannel,
    PolicyConfig,
    PolicyKind,
    PolicyTemplate,
    PolicyVersion,
    Priority,
    SimulationResult,
    SlaConfig,
    VersionStatus,
    WorkingHours,
    WorkingHoursMode,
    blank_item,
    empty_config,
    item_collection,
    parse_config,
)

__version__ = "0.1.0"

__all__ = [
    "ALL_DAYS",
    "ClientSettings",
    "ConfigurationError",
    "EscalationBehavior",
    "EscalationConfig",
    "EscalationRule",
    "EscalationSeverity",
    "EscalationTrigger",
    "NotificationChannel",
    "PolicyConfig",
    "PolicyKind",
    "PolicyTemplate",
    "PolicyVersion",
    "Priority",
    "SimulationResult",
    "SlaConfig",
    "VersionStatus",
    "WorkingHours",
    "WorkingHoursMode",
    "blank_item",
    "empty_config",
    "item_collection",
    "load_policy_document",
    "load_settings_from_dict",
    "load_settings_from_env",
    "load_settings_from_yaml",
    "parse_config",
]
