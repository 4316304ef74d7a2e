"""Tests for runtime wiring and the queue-function handler."""

from unittest.mock import patch

import pytest

from photo_notifier import handler as handler_module
from photo_notifier.channels.chat_channel import ChatChannel
from photo_notifier.channels.email_channel import EmailChannel
from photo_notifier.config.environment import EnvironmentConfig
from photo_notifier.config.models import AppConfig
from photo_notifier.domain.models import Channel
from photo_notifier.metrics.sinks import CloudWatchMetricsSink, LogMetricsSink, NullMetricsSink
from photo_notifier.runtime import (
    apply_environment_overrides,
    build_channels,
    build_metrics_sink,
    build_runtime,
    resolve_log_level,
)
from tests.helpers import make_record


def env_config(**overrides):
    values = {
        "gmail_user": "sender@example.com",
        "gmail_client_id": "client-id-123",
        "gmail_client_secret": "client-secret-456",
        "gmail_refresh_token": "refresh-token-789",
        "whatsapp_api_key": "wa-key-abcdef",
        "database_url": "sqlite:///:memory:",
    }
    values.update(overrides)
    return EnvironmentConfig(**values)


class TestResolveLogLevel:
    def test_config_level_by_default(self):
        app = AppConfig.model_validate({"logging": {"level": "WARNING"}})

        assert resolve_log_level(app, env_config()) == "WARNING"

    def test_environment_beats_config(self):
        app = AppConfig.model_validate({"logging": {"level": "WARNING"}})

        assert resolve_log_level(app, env_config(log_level="ERROR")) == "ERROR"

    def test_override_beats_environment(self):
        assert resolve_log_level(AppConfig(), env_config(log_level="ERROR"), "info") == "INFO"

    def test_debug_logging_forces_debug(self):
        assert resolve_log_level(AppConfig(), env_config(debug_logging=True), "ERROR") == "DEBUG"

        app = AppConfig.model_validate({"logging": {"debug": True}})
        assert resolve_log_level(app, env_config()) == "DEBUG"


class TestApplyEnvironmentOverrides:
    def test_no_overrides_returns_same_config(self):
        app = AppConfig()

        assert apply_environment_overrides(app, env_config()) is app

    def test_region_and_debug_overrides(self):
        app = apply_environment_overrides(
            AppConfig(), env_config(aws_region="eu-west-1", debug_logging=True)
        )

        assert app.aws.region == "eu-west-1"
        assert app.logging.debug is True


class TestBuildChannels:
    def test_both_channels_email_first(self):
        channels = build_channels(AppConfig(), env_config())

        assert [type(c) for c in channels] == [EmailChannel, ChatChannel]
        for channel in channels:
            channel.close()

    def test_disabled_chat_is_not_built(self):
        app = AppConfig.model_validate({"channels": {"chat": {"enabled": False}}})

        channels = build_channels(app, env_config(whatsapp_api_key=None))

        assert [c.channel for c in channels] == [Channel.EMAIL]


class TestBuildMetricsSink:
    def test_disabled(self):
        app = AppConfig.model_validate({"metrics": {"enabled": False}})

        assert isinstance(build_metrics_sink(app), NullMetricsSink)

    def test_log_backend_by_default(self):
        assert isinstance(build_metrics_sink(AppConfig()), LogMetricsSink)

    def test_cloudwatch_backend(self):
        app = AppConfig.model_validate(
            {
                "aws": {"region": "eu-west-1", "endpoint_url": "http://localhost:4566"},
                "metrics": {"backend": "cloudwatch"},
            }
        )

        with patch("photo_notifier.metrics.sinks.boto3") as boto3:
            sink = build_metrics_sink(app)

        assert isinstance(sink, CloudWatchMetricsSink)
        boto3.client.assert_called_once_with(
            "cloudwatch", region_name="eu-west-1", endpoint_url="http://localhost:4566"
        )



def test_build_runtime_wires_orchestrator(fake_channels, settings):
    runtime = build_runtime(settings, env_config())
    try:
        assert runtime.orchestrator.repository is runtime.repository
        assert runtime.dispatcher.orchestrator is runtime.orchestrator
        assert set(runtime.orchestrator.channels) == {Channel.EMAIL, Channel.CHAT}
    finally:
        runtime.close()

    assert all(channel.closed for channel in fake_channels)


class TestHandler:
    @pytest.fixture(autouse=True)
    def handler_runtime(self, fake_channels, settings):
        with patch.object(
            handler_module, "load_config", return_value=(settings, env_config())
        ), patch.object(handler_module, "setup_logging"):
            yield
        handler_module.reset_runtime()

    def test_processes_records_and_reports_failures(self, fake_channels):
        event = {"Records": [make_record("m-1"), {"messageId": "m-2", "body": "not json"}]}

        response = handler_module.handler(event)

        assert response["batchItemFailures"] == [{"itemIdentifier": "m-2"}]
        assert response["summary"]["totalMessages"] == 2
        assert response["summary"]["emailsSent"] == 1
        assert len(fake_channels[0].calls) == 1

    def test_runtime_is_reused_across_invocations(self):
        first = handler_module.get_runtime()

        handler_module.handler({"Records": []})

        assert handler_module.get_runtime() is first

    def test_empty_event(self):
        response = handler_module.handler({})

        assert response["batchItemFailures"] == []
        assert response["summary"]["totalMessages"] == 0
