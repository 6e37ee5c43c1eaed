"""Tests for settings and policy document loaders."""

import pytest
from policy_config import (
    ClientSettings,
    ConfigurationError,
    PolicyKind,
    load_policy_document,
    load_settings_from_dict,
    load_settings_from_env,
    load_settings_from_yaml,
)


class TestClientSettings:
    """Tests for ClientSettings model."""

    def test_defaults(self):
        """Test default settings."""
        settings = ClientSettings()

        assert settings.base_url == "http://localhost:8000"
        assert settings.timeout_seconds == 10.0
        assert settings.token_env_var == "POLICY_SERVICE_TOKEN"
        assert settings.api_token is None

    def test_trailing_slash_stripped(self):
        """Test that the base URL loses its trailing slash."""
        settings = ClientSettings(base_url="https://ops.example.com/bff/admin/service/ras/")

        assert settings.base_url == "https://ops.example.com/bff/admin/service/ras"

    def test_get_token_reads_environment(self, monkeypatch):
        """Test reading the credential from the configured variable."""
        monkeypatch.setenv("MY_TOKEN", "secret")
        settings = ClientSettings(token_env_var="MY_TOKEN")

        assert settings.get_token() == "secret"

    def test_get_token_missing(self, monkeypatch):
        """Test that an unset variable yields None."""
        monkeypatch.delenv("POLICY_SERVICE_TOKEN", raising=False)

        assert ClientSettings().get_token() is None


class TestLoadSettings:
    """Tests for the settings loaders."""

    def test_load_from_yaml(self, tmp_path):
        """Test loading settings from a YAML file."""
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text(
            """
base_url: https://ops.example.com
timeout_seconds: 3
"""
        )

        settings = load_settings_from_yaml(settings_file)

        assert settings.base_url == "https://ops.example.com"
        assert settings.timeout_seconds == 3

    def test_file_not_found(self):
        """Test that FileNotFoundError is raised for a missing file."""
        with pytest.raises(FileNotFoundError) as exc_info:
            load_settings_from_yaml("/nonexistent/path/settings.yaml")

        assert "not found" in str(exc_info.value)

    def test_invalid_yaml_syntax(self, tmp_path):
        """Test that ConfigurationError is raised for invalid YAML."""
        settings_file = tmp_path / "invalid.yaml"
        settings_file.write_text('base_url: "http://x\ntimeout_seconds: [1\n')

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_yaml(settings_file)

        assert "Failed to parse YAML" in str(exc_info.value)

    def test_empty_file(self, tmp_path):
        """Test that an empty file raises ConfigurationError."""
        settings_file = tmp_path / "empty.yaml"
        settings_file.write_text("")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_yaml(settings_file)

        assert "empty" in str(exc_info.value)

    def test_invalid_values(self):
        """Test that bad values raise ConfigurationError."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_dict({"base_url": "ftp://example.com"})

        assert "validation failed" in str(exc_info.value)

    def test_load_from_env(self, monkeypatch):
        """Test loading settings from POLICY_SERVICE_* variables."""
        monkeypatch.setenv("POLICY_SERVICE_URL", "https://ops.example.com/")
        monkeypatch.setenv("POLICY_SERVICE_TIMEOUT", "2.5")
        monkeypatch.setenv("POLICY_SERVICE_API_TOKEN", "local-token")

        settings = load_settings_from_env()

        assert settings.base_url == "https://ops.example.com"
        assert settings.timeout_seconds == 2.5
        assert settings.api_token == "local-token"

    def test_load_from_env_defaults(self, monkeypatch):
        """Test that unset variables keep the defaults."""
        for name in ("POLICY_SERVICE_URL", "POLICY_SERVICE_TIMEOUT", "POLICY_SERVICE_API_TOKEN"):
            monkeypatch.delenv(name, raising=False)

        assert load_settings_from_env() == ClientSettings()

    def test_load_from_env_bad_timeout(self, monkeypatch):
        """Test that a non-numeric timeout raises ConfigurationError."""
        monkeypatch.setenv("POLICY_SERVICE_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError):
            load_settings_from_env()


class TestLoadPolicyDocument:
    """Tests for load_policy_document function."""

    def test_load_escalation_document(self, tmp_path):
        """Test loading an escalation policy document."""
        document = tmp_path / "escalation.yaml"
        document.write_text(
            """
kind: escalation
config:
  rules:
    - trigger: breach
      recipients: [ops]
      channels: [in_app]
      behavior: notify
      severity: high
"""
        )

        kind, config = load_policy_document(document)

        assert kind == PolicyKind.ESCALATION
        assert config["rules"][0]["trigger"] == "breach"

    def test_missing_config_is_empty(self, tmp_path):
        """Test that a document without config yields an empty dict."""
        document = tmp_path / "sla.yaml"
        document.write_text("kind: sla\n")

        kind, config = load_policy_document(document)

        assert kind == PolicyKind.SLA
        assert config == {}

    def test_unknown_kind(self, tmp_path):
        """Test that an unknown kind raises ConfigurationError."""
        document = tmp_path / "billing.yaml"
        document.write_text("kind: billing\nconfig: {}\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_policy_document(document)

        assert "not supported" in str(exc_info.value)

    def test_config_must_be_mapping(self, tmp_path):
        """Test that a list config raises ConfigurationError."""
        document = tmp_path / "sla.yaml"
        document.write_text("kind: sla\nconfig: [1, 2]\n")

        with pytest.raises(ConfigurationError):
            load_policy_document(document)
