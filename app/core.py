"""Application configuration and settings management.

This module defines the application settings loaded from environment
variables and provides helper functions for accessing cached settings,
email configuration and logging setup.
"""

import logging
from functools import lru_cache
from typing import List

from fastapi_mail import ConnectionConfig
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        DB_TIMEOUT_SECONDS: How long a request waits for the store before
            failing with a retryable error.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        LOG_LEVEL: Root log level name.
        BCRYPT_ROUNDS: Work factor for password hashing.
        SMTP_FROM_EMAIL: Sender email address for outgoing emails.
        SMTP_USER: SMTP username.
        SMTP_PASSWORD: SMTP password.
        SMTP_PORT: SMTP server port.
        SMTP_HOST: SMTP server host.
        MAIL_SUPPRESS_SEND: When 1, messages are built but never delivered.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    DATABASE_URL: str = "sqlite:///./app.db"
    DB_TIMEOUT_SECONDS: float = 5.0
    ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    BCRYPT_ROUNDS: int = 12
    SMTP_FROM_EMAIL: str = "noreply@example.com"
    SMTP_USER: str = "user"
    SMTP_PASSWORD: str = "password"
    SMTP_PORT: int = 1025
    SMTP_HOST: str = "localhost"
    MAIL_SUPPRESS_SEND: int = 0


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()


def get_mail_config() -> ConnectionConfig:
    """Create and return email configuration for FastAPI-Mail.

    Returns:
        ConnectionConfig: Configured email connection settings.
    """

    settings = get_settings()
    return ConnectionConfig(
        MAIL_USERNAME=settings.SMTP_USER,
        MAIL_PASSWORD=settings.SMTP_PASSWORD,
        MAIL_FROM=settings.SMTP_FROM_EMAIL,
        MAIL_PORT=settings.SMTP_PORT,
        MAIL_SERVER=settings.SMTP_HOST,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=True,
        SUPPRESS_SEND=settings.MAIL_SUPPRESS_SEND,
    )


def configure_logging() -> None:
    """Configure the root logger from ``LOG_LEVEL``.

    Safe to call more than once; handlers are only installed the first time.
    """

    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
