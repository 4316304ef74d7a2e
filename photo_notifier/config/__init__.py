"""Configuration management module for the photo match notifier."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config
from .models import (
    AppConfig,
    AwsConfig,
    ChannelsConfig,
    ChatChannelConfig,
    ContactConfig,
    EmailChannelConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MetricsBackend,
    MetricsConfig,
    ProcessingConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "AwsConfig",
    "ChannelsConfig",
    "EmailChannelConfig",
    "ChatChannelConfig",
    "ContactConfig",
    "ProcessingConfig",
    "MetricsConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    "MetricsBackend",
    # Exceptions
    "ConfigurationError",
]
