"""Environment variable loading and validation.

Credentials never live in the YAML file; they are read from the process
environment (or a .env file loaded by the CLI).
"""

import os
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

_TRUTHY = {"1", "true", "yes", "on"}
_VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        gmail_user: Optional[str] = None,
        gmail_client_id: Optional[str] = None,
        gmail_client_secret: Optional[str] = None,
        gmail_refresh_token: Optional[str] = None,
        from_email: Optional[str] = None,
        whatsapp_api_key: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        aws_region: Optional[str] = None,
        debug_logging: bool = False,
    ):
        self.gmail_user = gmail_user
        self.gmail_client_id = gmail_client_id
        self.gmail_client_secret = gmail_client_secret
        self.gmail_refresh_token = gmail_refresh_token
        self.from_email = from_email or gmail_user
        self.whatsapp_api_key = whatsapp_api_key
        self.database_url = database_url or "sqlite:///./data/notifier.db"
        self.log_level = log_level
        self.aws_region = aws_region
        self.debug_logging = debug_logging

    def __repr__(self) -> str:
        # Secrets stay out of reprs and tracebacks
        return (
            f"EnvironmentConfig(gmail_user={self.gmail_user!r}, "
            f"from_email={self.from_email!r}, database_url={self.database_url!r}, "
            f"whatsapp_api_key={'SET' if self.whatsapp_api_key else 'NOT SET'})"
        )


def load_environment_config(
    email_enabled: bool = True, chat_enabled: bool = True
) -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Required when the email channel is enabled:
    - GMAIL_USER, GMAIL_CLIENT_ID, GMAIL_CLIENT_SECRET, GMAIL_REFRESH_TOKEN

    Required when the chat channel is enabled:
    - WHATSAPP_API_KEY

    Optional:
    - FROM_EMAIL: Sender address (defaults to GMAIL_USER)
    - DATABASE_URL: Delivery store URL (default: sqlite:///./data/notifier.db)
    - LOG_LEVEL: Override log level
    - AWS_REGION: Override the configured AWS region
    - ENABLE_DEBUG_LOGGING: "true" to log full job payloads

    Args:
        email_enabled: Whether Gmail credentials are required
        chat_enabled: Whether the WhatsApp API key is required

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    gmail_user = os.getenv("GMAIL_USER")
    gmail_client_id = os.getenv("GMAIL_CLIENT_ID")
    gmail_client_secret = os.getenv("GMAIL_CLIENT_SECRET")
    gmail_refresh_token = os.getenv("GMAIL_REFRESH_TOKEN")
    from_email = os.getenv("FROM_EMAIL")
    whatsapp_api_key = os.getenv("WHATSAPP_API_KEY")
    database_url = os.getenv("DATABASE_URL")
    log_level = os.getenv("LOG_LEVEL")
    aws_region = os.getenv("AWS_REGION")
    debug_logging = os.getenv("ENABLE_DEBUG_LOGGING", "").strip().lower() in _TRUTHY

    if email_enabled:
        for name, value in (
            ("GMAIL_USER", gmail_user),
            ("GMAIL_CLIENT_ID", gmail_client_id),
            ("GMAIL_CLIENT_SECRET", gmail_client_secret),
            ("GMAIL_REFRESH_TOKEN", gmail_refresh_token),
        ):
            if not value:
                errors.append(f"Missing required environment variable: {name}")

        for name, value in (("GMAIL_USER", gmail_user), ("FROM_EMAIL", from_email)):
            if value and not _is_valid_email(value):
                errors.append(f"Invalid email address format in {name}: '{value}'")

    if chat_enabled and not whatsapp_api_key:
        errors.append(
            "Missing required environment variable: WHATSAPP_API_KEY "
            "(required when the chat channel is enabled)"
        )

    if log_level and log_level.upper() not in _VALID_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(_VALID_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Disable a channel in config.yaml if its credentials are unavailable",
                "Check that sender email addresses are valid",
            ],
        )

    return EnvironmentConfig(
        gmail_user=gmail_user,
        gmail_client_id=gmail_client_id,
        gmail_client_secret=gmail_client_secret,
        gmail_refresh_token=gmail_refresh_token,
        from_email=from_email,
        whatsapp_api_key=whatsapp_api_key,
        database_url=database_url,
        log_level=log_level.upper() if log_level else None,
        aws_region=aws_region,
        debug_logging=debug_logging,
    )


def _is_valid_email(email: str) -> bool:
    """Validate a sender address with email-validator (no DNS lookups)."""
    try:
        validate_email(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False
