"""
Application configuration management for mailforge.

This module provides configuration loading from environment variables
and TOML configuration files, with type-safe settings classes.
"""

import codecs
import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..__version__ import __version__
from .exceptions import InvalidConfigError, MissingConfigError

DEFAULT_SOCKET_TIMEOUT_MS = 60000


def normalize_charset(charset: str) -> str:
    """
    Validate a charset name and return it lower-cased.

    Raises:
        ValueError: If Python has no codec for the charset.
    """
    try:
        codecs.lookup(charset)
    except LookupError:
        raise ValueError(f"Unknown charset: {charset}")
    return charset.lower()


class MailSettings(BaseSettings):
    """Defaults applied to every new message builder."""

    model_config = SettingsConfigDict(
        env_prefix="MAILFORGE_MAIL_",
        extra="ignore",
    )

    hostname: Optional[str] = Field(None, description="SMTP server host name")
    smtp_port: int = Field(default=25, ge=1, le=65535, description="SMTP port")
    ssl_smtp_port: int = Field(
        default=465, ge=1, le=65535, description="SMTP port used with SSL on connect"
    )
    socket_connection_timeout: int = Field(
        default=DEFAULT_SOCKET_TIMEOUT_MS,
        gt=0,
        description="Socket connection timeout in milliseconds",
    )
    socket_timeout: int = Field(
        default=DEFAULT_SOCKET_TIMEOUT_MS,
        gt=0,
        description="Socket read timeout in milliseconds",
    )
    ssl_on_connect: bool = Field(
        default=False, description="Open the SMTP connection over SSL/TLS"
    )
    start_tls_enabled: bool = Field(default=False, description="Use STARTTLS if offered")
    start_tls_required: bool = Field(default=False, description="Fail without STARTTLS")
    ssl_check_server_identity: bool = Field(
        default=False, description="Verify the server certificate host name"
    )
    username: Optional[str] = Field(None, description="SMTP login user")
    password: Optional[str] = Field(None, description="SMTP login password")
    default_from: Optional[str] = Field(
        None, description="Sender used when a message sets no From address"
    )
    bounce_address: Optional[str] = Field(
        None, description="Envelope sender receiving bounces"
    )
    charset: str = Field(default="utf-8", description="Charset for text bodies")
    x_mailer: str = Field(
        default=f"mailforge/{__version__}", description="X-Mailer header value"
    )
    debug: bool = Field(default=False, description="Enable SMTP debug output")

    @field_validator("charset")
    @classmethod
    def validate_charset(cls, v: str) -> str:
        """Validate that the charset is known to Python."""
        return normalize_charset(v)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="MAILFORGE_LOG_",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MAILFORGE_",
        extra="ignore",
    )

    mail: MailSettings = Field(default_factory=MailSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml(cls, path: str | Path) -> "Settings":
        """
        Load settings from a TOML configuration file.

        Args:
            path: Path to the TOML configuration file.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            MissingConfigError: If the file does not exist.
            InvalidConfigError: If the file cannot be parsed.
        """
        path = Path(path)
        if not path.exists():
            raise MissingConfigError("MAILFORGE_CONFIG_FILE", {"path": str(path)})

        try:
            with open(path, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise InvalidConfigError(
                config_key="config_file",
                value=str(path),
                reason=f"Failed to parse TOML: {e}",
            )

        try:
            return cls._from_dict(config_data)
        except ValidationError as e:
            raise InvalidConfigError(
                config_key="config_file",
                value=str(path),
                reason=f"Invalid settings: {e.error_count()} validation error(s)",
            ) from e

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Create settings from a dictionary.

        Args:
            data: Configuration dictionary.

        Returns:
            Settings instance.
        """
        settings_kwargs: dict[str, Any] = {}

        if "mail" in data:
            settings_kwargs["mail"] = MailSettings(**data["mail"])

        if "logging" in data:
            settings_kwargs["logging"] = LoggingSettings(**data["logging"])

        return cls(**settings_kwargs)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings.

    Settings are read from the TOML file named by MAILFORGE_CONFIG_FILE
    when it exists, otherwise from environment variables.

    Returns:
        Settings instance.
    """
    config_file = os.getenv("MAILFORGE_CONFIG_FILE")

    if config_file and Path(config_file).exists():
        settings = Settings.from_toml(config_file)
    else:
        settings = Settings()

    return settings


def reload_settings() -> Settings:
    """
    Reload settings, clearing the cache.

    Returns:
        Fresh Settings instance.
    """
    get_settings.cache_clear()
    return get_settings()
