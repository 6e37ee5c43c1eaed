"""Tests for the validation engine."""

import pytest
from policy_config import PolicyKind
from policy_core.validation import (
    EscalationPolicyValidator,
    SlaPolicyValidator,
    ValidationEngine,
    validate_config,
)


class TestValidationEngine:
    """Tests for ValidationEngine class."""

    def test_get_validator_by_kind(self):
        """Test resolving validators by kind or kind value."""
        engine = ValidationEngine()

        assert isinstance(engine.get_validator(PolicyKind.SLA), SlaPolicyValidator)
        assert isinstance(engine.get_validator("escalation"), EscalationPolicyValidator)

    def test_unknown_kind(self):
        """Test that an unknown kind raises ValueError."""
        engine = ValidationEngine()

        with pytest.raises(ValueError):
            engine.get_validator("billing")

    def test_validate_dispatches_by_kind(self):
        """Test the same draft is judged by the kind's validator."""
        engine = ValidationEngine()

        sla_result = engine.validate(PolicyKind.SLA, {"rules": []})
        escalation_result = engine.validate(PolicyKind.ESCALATION, {"rules": []})

        assert sla_result.errors == ["priorities"]
        assert escalation_result.errors == ["rules"]

    def test_valid_result_kind(self):
        """Test the result records the kind it was validated as."""
        result = validate_config(
            "sla",
            {"priorities": [{"key": "VIP", "first_response_minutes": 5, "resolution_minutes": 60}]},
        )

        assert result.is_valid
        assert result.kind == PolicyKind.SLA

    def test_invalid_draft_is_logged(self, caplog):
        """Test validation failures are logged with their tokens."""
        with caplog.at_level("INFO", logger="policy_core.validation.engine"):
            validate_config(PolicyKind.ESCALATION, {"rules": []})

        assert "failed validation" in caplog.text
        assert "rules" in caplog.text
