"""Shared pytest fixtures."""

from unittest.mock import patch

import pytest

from photo_notifier.config.models import AppConfig
from photo_notifier.domain.models import Channel
from photo_notifier.logging.context import clear_log_context
from photo_notifier.persistence import DeliveryRecordRepository, close_database, init_database
from tests.helpers import FakeChannel

ENV_VARS = (
    "GMAIL_USER",
    "GMAIL_CLIENT_ID",
    "GMAIL_CLIENT_SECRET",
    "GMAIL_REFRESH_TOKEN",
    "FROM_EMAIL",
    "WHATSAPP_API_KEY",
    "DATABASE_URL",
    "LOG_LEVEL",
    "AWS_REGION",
    "ENABLE_DEBUG_LOGGING",
    "NOTIFIER_CONFIG",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the notifier reads from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def full_env(clean_env, tmp_path):
    """Environment with credentials for both channels and a temp database."""
    clean_env.setenv("GMAIL_USER", "sender@example.com")
    clean_env.setenv("GMAIL_CLIENT_ID", "client-id-123")
    clean_env.setenv("GMAIL_CLIENT_SECRET", "client-secret-456")
    clean_env.setenv("GMAIL_REFRESH_TOKEN", "refresh-token-789")
    clean_env.setenv("WHATSAPP_API_KEY", "wa-key-abcdef")
    clean_env.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'notifier.db'}")
    return clean_env


@pytest.fixture
def database():
    """Fresh in-memory delivery store."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def repository(database):
    return DeliveryRecordRepository()


@pytest.fixture
def settings():
    """Default configuration with the chat pre-send delay disabled."""
    return AppConfig.model_validate(
        {
            "channels": {
                "chat": {"pre_send_delay_min": 0, "pre_send_delay_max": 0, "attachment_delay": 0}
            },
            "processing": {"parallel_channels": False},
        }
    )


@pytest.fixture(autouse=True)
def reset_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def fake_channels():
    """Runtime wiring with scripted email and chat senders."""
    channels = [FakeChannel(Channel.EMAIL), FakeChannel(Channel.CHAT)]
    with patch("photo_notifier.runtime.build_channels", return_value=channels):
        yield channels
