"""Tests for the escalation policy validator."""

import pytest
from policy_core.validation import EscalationPolicyValidator


@pytest.fixture
def validator():
    """Create an escalation validator."""
    return EscalationPolicyValidator()


def _rule(**overrides):
    rule = {
        "trigger": "breach",
        "recipients": ["ops"],
        "channels": ["in_app"],
        "behavior": "notify",
        "severity": "high",
    }
    rule.update(overrides)
    return rule


class TestEscalationValidation:
    """Tests for EscalationPolicyValidator.validate."""

    def test_empty_rules(self, validator):
        """Test that an empty rule list fails once."""
        result = validator.validate({"rules": []})

        assert result.errors == ["rules"]
        assert result.config is None

    def test_auto_breach_rule(self, validator):
        """Test an automatic breach rule normalizes to itself."""
        rule = _rule(behavior="auto", severity="critical", feature_flag="escalate_v2")

        result = validator.validate({"rules": [rule]})

        assert result.is_valid
        assert result.config == {"rules": [rule]}
        assert "percentage" not in result.config["rules"][0]
        assert "inactivity_minutes" not in result.config["rules"][0]

    def test_empty_inactivity(self, validator):
        """Test an inactivity rule without minutes fails."""
        rule = _rule(
            trigger="inactivity",
            inactivity_minutes="",
            recipients=["admin"],
            channels=["email"],
            severity="low",
        )

        result = validator.validate({"rules": [rule]})

        assert result.errors == ["inactivity"]

    def test_inactivity_coerced(self, validator):
        """Test inactivity minutes are coerced to a number."""
        result = validator.validate(
            {"rules": [_rule(trigger="inactivity", inactivity_minutes="45")]}
        )

        assert result.config["rules"][0]["inactivity_minutes"] == 45
        assert "percentage" not in result.config["rules"][0]

    @pytest.mark.parametrize("percentage", [0.5, 1, "50", 100, "100"])
    def test_percentage_in_range(self, validator, percentage):
        """Test percentages in (0, 100] pass."""
        result = validator.validate(
            {"rules": [_rule(trigger="percentage_elapsed", percentage=percentage)]}
        )

        assert result.is_valid
        assert result.config["rules"][0]["percentage"] == float(percentage)

    @pytest.mark.parametrize("percentage", [0, 101, float("nan"), "", None, "half", -5])
    def test_percentage_out_of_range(self, validator, percentage):
        """Test percentages outside (0, 100] fail."""
        result = validator.validate(
            {"rules": [_rule(trigger="percentage_elapsed", percentage=percentage)]}
        )

        assert result.errors == ["percentage"]

    def test_non_percentage_trigger_drops_percentage(self, validator):
        """Test stray fields are stripped for other triggers."""
        result = validator.validate(
            {"rules": [_rule(percentage=50, inactivity_minutes=10, feature_flag="x")]}
        )

        assert result.config["rules"][0] == _rule()

    @pytest.mark.parametrize("feature_flag", ["", "   ", None])
    def test_auto_requires_feature_flag(self, validator, feature_flag):
        """Test automatic rules fail without a feature flag."""
        result = validator.validate(
            {"rules": [_rule(behavior="auto", feature_flag=feature_flag)]}
        )

        assert result.errors == ["feature_flag"]

    def test_auto_feature_flag_trimmed(self, validator):
        """Test the feature flag is trimmed."""
        result = validator.validate(
            {"rules": [_rule(behavior="auto", feature_flag="  escalate_v2 ")]}
        )

        assert result.config["rules"][0]["feature_flag"] == "escalate_v2"

    def test_notify_ignores_feature_flag(self, validator):
        """Test notify rules pass without a feature flag."""
        result = validator.validate({"rules": [_rule(feature_flag="")]})

        assert result.is_valid

    @pytest.mark.parametrize(
        "overrides,token",
        [
            ({"trigger": "  "}, "trigger"),
            ({"trigger": "sometimes"}, "trigger"),
            ({"recipients": []}, "recipients"),
            ({"recipients": ["  "]}, "recipients"),
            ({"recipients": "ops"}, "recipients"),
            ({"channels": []}, "channels"),
            ({"channels": ["sms"]}, "channels"),
            ({"behavior": ""}, "behavior"),
            ({"severity": None}, "severity"),
            ({"severity": "urgent"}, "severity"),
        ],
    )
    def test_invalid_rule_fields(self, validator, overrides, token):
        """Test each invalid rule field yields its token."""
        result = validator.validate({"rules": [_rule(**overrides)]})

        assert result.errors == [token]

    def test_errors_accumulate_across_rules(self, validator):
        """Test tokens from several rules are kept in order, with duplicates."""
        result = validator.validate(
            {
                "rules": [
                    _rule(recipients=[]),
                    _rule(),
                    _rule(recipients=[], severity=""),
                ]
            }
        )

        assert result.errors == ["recipients", "recipients", "severity"]

    def test_blank_rule(self, validator):
        """Test a freshly added blank rule reports every missing field."""
        blank = {"trigger": "", "recipients": [], "channels": [], "behavior": "", "severity": ""}

        result = validator.validate({"rules": [blank]})

        assert result.errors == ["trigger", "recipients", "channels", "behavior", "severity"]

    def test_recipients_trimmed(self, validator):
        """Test recipient role keys are trimmed and blanks dropped."""
        result = validator.validate({"rules": [_rule(recipients=[" ops ", "", "supervisor"])]})

        assert result.config["rules"][0]["recipients"] == ["ops", "supervisor"]

    def test_normalization_is_idempotent(self, validator):
        """Test re-validating a normalized config returns it unchanged."""
        draft = {
            "rules": [
                _rule(trigger="percentage_elapsed", percentage="75", inactivity_minutes="3"),
                _rule(
                    trigger="inactivity",
                    inactivity_minutes="30",
                    behavior="auto",
                    feature_flag=" auto_reassign ",
                ),
            ]
        }

        first = validator.validate(draft)
        second = validator.validate(first.config)

        assert second.config == first.config

    def test_oversized_inactivity(self, validator):
        """Test an inactivity value beyond float range fails instead of raising."""
        result = validator.validate(
            {"rules": [_rule(trigger="inactivity", inactivity_minutes="1" + "0" * 400)]}
        )

        assert result.errors == ["inactivity"]

    def test_oversized_percentage(self, validator):
        """Test a percentage beyond float range fails instead of raising."""
        result = validator.validate(
            {"rules": [_rule(trigger="percentage_elapsed", percentage=10**400)]}
        )

        assert result.errors == ["percentage"]

    def test_typed_view(self, validator):
        """Test the typed view of a valid result."""
        result = validator.validate({"rules": [_rule(channels=["email", "in_app"])]})

        model = result.as_model()
        assert [c.value for c in model.rules[0].channels] == ["email", "in_app"]
