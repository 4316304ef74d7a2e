"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from photo_notifier.config import (
    AppConfig,
    ConfigurationError,
    LogFormat,
    MetricsBackend,
    load_config,
    load_environment_config,
    parse_app_config,
)
from photo_notifier.config.validators import check_for_warnings

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config.example.yaml"


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_example_config(self, full_env):
        app_config, env_config = load_config(EXAMPLE_CONFIG)

        assert app_config.channels.email.max_photos == 6
        assert app_config.channels.chat.max_photos == 3
        assert app_config.channels.chat.api_url == "https://www.wasenderapi.com"
        assert app_config.processing.parallel_channels is True
        assert app_config.metrics.backend == MetricsBackend.LOG.value
        assert app_config.logging.format == LogFormat.KEY_VALUE.value
        assert env_config.whatsapp_api_key == "wa-key-abcdef"

    def test_partial_config_uses_defaults(self, full_env, tmp_path):
        path = write_config(
            tmp_path,
            """
channels:
  chat:
    max_photos: 1
metrics:
  backend: cloudwatch
""",
        )

        app_config, _ = load_config(path)

        assert app_config.channels.chat.max_photos == 1
        assert app_config.channels.chat.send_timeout == 15.0
        assert app_config.channels.email.enabled is True
        assert app_config.aws.region == "ap-south-1"
        assert app_config.metrics.backend == "cloudwatch"

    def test_no_config_file_uses_defaults(self, full_env, tmp_path):
        full_env.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config == AppConfig()

    def test_config_path_from_environment(self, full_env, tmp_path):
        path = write_config(tmp_path, "contact:\n  support_email: help@example.com\n")
        full_env.setenv("NOTIFIER_CONFIG", str(path))

        app_config, _ = load_config()

        assert app_config.contact.support_email == "help@example.com"

    def test_explicit_missing_file(self, full_env):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(Path("nonexistent.yaml"))

    def test_empty_file(self, full_env, tmp_path):
        with pytest.raises(ConfigurationError, match="empty"):
            load_config(write_config(tmp_path, ""))

    def test_invalid_yaml(self, full_env, tmp_path):
        with pytest.raises(ConfigurationError, match="parse YAML"):
            load_config(write_config(tmp_path, "channels: [unclosed\n"))

    def test_non_mapping_file(self, full_env, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(write_config(tmp_path, "- just\n- a list\n"))


class TestSchemaValidation:
    """Pydantic validation errors are collected into ConfigurationError."""

    def test_invalid_values_are_reported(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_app_config(
                {
                    "channels": {"chat": {"max_photos": 50, "default_country_code": "abc"}},
                    "metrics": {"backend": "statsd"},
                }
            )

        error = exc_info.value
        assert error.message == "Configuration validation failed"
        assert len(error.errors) >= 3
        assert any("max_photos" in line for line in error.errors)
        assert any("backend" in line for line in error.errors)
        assert "Suggestions:" in str(error)

    def test_delay_window_must_be_ordered(self):
        with pytest.raises(ConfigurationError, match="pre_send_delay_max"):
            parse_app_config({"channels": {"chat": {"pre_send_delay_min": 5, "pre_send_delay_max": 1}}})

    def test_at_least_one_channel(self):
        with pytest.raises(ConfigurationError, match="At least one channel"):
            parse_app_config(
                {"channels": {"email": {"enabled": False}, "chat": {"enabled": False}}}
            )

    def test_config_is_frozen(self):
        config = AppConfig()

        with pytest.raises(Exception):
            config.processing.parallel_channels = False


class TestEnvironmentConfig:
    """Tests for environment variable loading."""

    def test_full_environment(self, full_env):
        env = load_environment_config()

        assert env.gmail_user == "sender@example.com"
        assert env.from_email == "sender@example.com"
        assert env.gmail_refresh_token == "refresh-token-789"
        assert env.database_url.startswith("sqlite:///")
        assert env.debug_logging is False

    def test_missing_credentials_collected(self, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        errors = exc_info.value.errors
        assert len(errors) == 5
        assert any("GMAIL_REFRESH_TOKEN" in line for line in errors)
        assert any("WHATSAPP_API_KEY" in line for line in errors)

    def test_disabled_channel_credentials_not_required(self, clean_env):
        clean_env.setenv("WHATSAPP_API_KEY", "wa-key")

        env = load_environment_config(email_enabled=False, chat_enabled=True)

        assert env.gmail_user is None
        assert env.database_url == "sqlite:///./data/notifier.db"

    def test_invalid_sender_address(self, full_env):
        full_env.setenv("FROM_EMAIL", "not-an-address")

        with pytest.raises(ConfigurationError, match="FROM_EMAIL"):
            load_environment_config()

    def test_invalid_log_level(self, full_env):
        full_env.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ConfigurationError, match="Invalid LOG_LEVEL"):
            load_environment_config()

    def test_optional_overrides(self, full_env):
        full_env.setenv("LOG_LEVEL", "warning")
        full_env.setenv("AWS_REGION", "eu-west-1")
        full_env.setenv("ENABLE_DEBUG_LOGGING", "TRUE")
        full_env.setenv("FROM_EMAIL", "photos@example.com")

        env = load_environment_config()

        assert env.log_level == "WARNING"
        assert env.aws_region == "eu-west-1"
        assert env.debug_logging is True
        assert env.from_email == "photos@example.com"

    def test_repr_hides_secrets(self, full_env):
        text = repr(load_environment_config())

        assert "wa-key-abcdef" not in text
        assert "client-secret-456" not in text
        assert "refresh-token-789" not in text


class TestConfigWarnings:
    """Tests for non-fatal configuration warnings."""

    def test_defaults_have_no_warnings(self):
        assert check_for_warnings({}) == []

    def test_delay_longer_than_send_timeout(self):
        warnings = check_for_warnings(
            {"channels": {"chat": {"pre_send_delay_max": 20, "send_timeout": 15}}}
        )

        assert any("send_timeout" in w for w in warnings)

    def test_warnings_are_emitted_on_load(self, full_env, tmp_path):
        path = write_config(tmp_path, "processing:\n  max_concurrent_records: 16\n")

        with pytest.warns(UserWarning, match="rate limits"):
            load_config(path)
