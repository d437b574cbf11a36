"""Configuration settings for the ZIM certificate API client.

This module defines the configuration settings for the API client core,
including the backend base URL, transport timeouts, retry policy
defaults and session storage. Settings are loaded from environment
variables and .env files.

Settings are loaded once at startup with :func:`load_settings` and
passed explicitly to the client; nothing in the package reads a
module-global settings instance.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError


class ClientSettings(BaseSettings):
    """Application settings loaded from environment variables.

    :param api_base_url: Base URL of the certificate backend API
    :type api_base_url: str
    :param request_timeout: Per-attempt timeout in seconds
    :type request_timeout: float
    :param max_retries: Retries after the first attempt
    :type max_retries: int
    :param retry_base_delay: Base delay in seconds for exponential backoff
    :type retry_base_delay: float
    :param retry_max_delay: Optional cap on a single backoff delay
    :type retry_max_delay: Optional[float]
    :param retry_jitter: Randomize backoff delays by +/-20%
    :type retry_jitter: bool
    :param respect_retry_after: Honor Retry-After headers on retryable responses
    :type respect_retry_after: bool
    :param access_token: Static bearer token for environment-based sessions
    :type access_token: Optional[str]
    :param session_file: Path of a file-backed session store
    :type session_file: Optional[Path]
    :param session_encryption_key: Fernet key for encrypting the session file
    :type session_encryption_key: Optional[str]
    :param organization_id: Default organization for scoped queries
    :type organization_id: str
    :param log_level: Logging level for the application
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
        populate_by_name=True,
    )

    # Backend
    api_base_url: str = Field(
        "http://localhost:4000/api",
        validation_alias=AliasChoices("ZIMCERT_API_URL", "VITE_API_URL", "api_base_url"),
        description="Base URL of the certificate backend API",
    )

    # Transport
    request_timeout: float = Field(30.0, description="Per-attempt timeout in seconds")
    max_connections: int = Field(20, description="Maximum pooled connections")
    max_keepalive_connections: int = Field(
        10, description="Maximum idle keep-alive connections"
    )
    http2: bool = Field(False, description="Enable HTTP/2 (requires the h2 extra)")

    # Retry policy
    max_retries: int = Field(3, description="Retries after the first attempt")
    retry_base_delay: float = Field(
        1.0, description="Base delay in seconds for exponential backoff"
    )
    retry_max_delay: Optional[float] = Field(
        None, description="Upper bound for a single backoff delay"
    )
    retry_jitter: bool = Field(False, description="Randomize backoff delays")
    respect_retry_after: bool = Field(
        True, description="Honor Retry-After headers on retryable responses"
    )

    # Session
    access_token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("ZIMCERT_ACCESS_TOKEN", "access_token"),
        description="Bearer token for environment-based sessions",
    )
    session_file: Optional[Path] = Field(
        None,
        validation_alias=AliasChoices("ZIMCERT_SESSION_FILE", "session_file"),
        description="Path of a file-backed session store",
    )
    session_encryption_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "ZIMCERT_SESSION_ENCRYPTION_KEY", "session_encryption_key"
        ),
        description="Fernet key used to encrypt the session file at rest",
    )

    # Domain defaults
    organization_id: str = Field(
        "org-university",
        validation_alias=AliasChoices("ZIMCERT_ORG_ID", "organization_id"),
        description="Default organization for scoped queries",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths join predictably.

        :param v: The configured base URL
        :type v: str
        :return: Base URL without trailing slash
        :rtype: str
        """
        v = v.strip()
        if not v:
            raise ValueError("api_base_url must not be empty")
        return v.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Reject non-positive timeouts."""
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("max_retries", "retry_base_delay")
    @classmethod
    def validate_non_negative(cls, v):
        """Reject negative retry counts and delays."""
        if v < 0:
            raise ValueError("retry settings must not be negative")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        """Accept lowercase level names from the environment."""
        return v.upper() if isinstance(v, str) else v


def load_settings(**overrides) -> ClientSettings:
    """Load settings from the environment, applying explicit overrides.

    Invalid configuration is reported as a
    :class:`~zimcert_client.exceptions.ConfigurationError`.

    :param overrides: Field values taking precedence over the environment
    :return: Validated settings
    :rtype: ClientSettings
    :raises ConfigurationError: If validation fails
    """
    try:
        return ClientSettings(**overrides)
    except ValidationError as e:
        first = e.errors()[0]
        setting = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ConfigurationError(
            f"Invalid client configuration: {first.get('msg')}", setting=setting
        ) from e
