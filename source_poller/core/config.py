"""Transport configuration loaded from environment variables.

Every value has a sensible default so a poller can be wired up without
any environment at all; deployments override them through environment
variables.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range.  This catches bad configuration at startup
    rather than on the first poll.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from source_poller import __version__
from source_poller.core.exceptions import ValidationError

DEFAULT_API_BASE_URL = "https://api.stripe.com"
DEFAULT_REQUEST_TIMEOUT_S = 10.0
DEFAULT_USER_AGENT = f"source-poller/{__version__}"


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Immutable configuration for the HTTP status transport.

    Attributes:
        api_base_url: Scheme and host of the sources API (no trailing path).
        request_timeout_s: Per-request timeout in seconds.
        user_agent: ``User-Agent`` header sent with every request.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> TransportConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``SOURCE_API_TIMEOUT_S=abc``).
        """
        config = cls(
            api_base_url=os.getenv("SOURCE_API_BASE_URL", DEFAULT_API_BASE_URL),
            request_timeout_s=float(
                os.getenv("SOURCE_API_TIMEOUT_S", str(DEFAULT_REQUEST_TIMEOUT_S))
            ),
            user_agent=os.getenv("SOURCE_API_USER_AGENT", DEFAULT_USER_AGENT),
        )
        validate(config)
        return config


def validate(config: TransportConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.api_base_url:
        raise ConfigValidationError(
            "SOURCE_API_BASE_URL",
            config.api_base_url,
            "must not be empty",
        )

    if not config.api_base_url.startswith(("http://", "https://")):
        raise ConfigValidationError(
            "SOURCE_API_BASE_URL",
            config.api_base_url,
            "must start with http:// or https://",
        )

    if config.request_timeout_s <= 0:
        raise ConfigValidationError(
            "SOURCE_API_TIMEOUT_S",
            config.request_timeout_s,
            "must be > 0 (seconds)",
        )

    if not config.user_agent:
        raise ConfigValidationError(
            "SOURCE_API_USER_AGENT",
            config.user_agent,
            "must not be empty",
        )
