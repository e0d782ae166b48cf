"""Tests for transport configuration.

Covers:
- Default values
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from source_poller import __version__
from source_poller.core.config import ConfigValidationError, TransportConfig

_ENV_KEYS = ("SOURCE_API_BASE_URL", "SOURCE_API_TIMEOUT_S", "SOURCE_API_USER_AGENT")


def _clean_env() -> dict[str, str]:
    return {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}


class TestTransportConfigDefaults:
    """Verify default configuration values."""

    def test_default_base_url(self) -> None:
        assert TransportConfig().api_base_url == "https://api.stripe.com"

    def test_default_timeout(self) -> None:
        assert TransportConfig().request_timeout_s == 10.0

    def test_default_user_agent(self) -> None:
        assert TransportConfig().user_agent == f"source-poller/{__version__}"

    def test_frozen(self) -> None:
        cfg = TransportConfig()
        with pytest.raises(AttributeError):
            cfg.api_base_url = "https://other.test"  # type: ignore[misc]


class TestTransportConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        env = {
            "SOURCE_API_BASE_URL": "http://localhost:12111",
            "SOURCE_API_TIMEOUT_S": "2.5",
            "SOURCE_API_USER_AGENT": "checkout-app/3.1",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = TransportConfig.from_env()

        assert cfg.api_base_url == "http://localhost:12111"
        assert cfg.request_timeout_s == 2.5
        assert cfg.user_agent == "checkout-app/3.1"

    def test_defaults_when_env_missing(self) -> None:
        with patch.dict(os.environ, _clean_env(), clear=True):
            cfg = TransportConfig.from_env()
        assert cfg == TransportConfig()

    def test_non_numeric_timeout_raises_value_error(self) -> None:
        with (
            patch.dict(os.environ, {"SOURCE_API_TIMEOUT_S": "soon"}, clear=False),
            pytest.raises(ValueError, match="could not convert"),
        ):
            TransportConfig.from_env()


class TestTransportConfigValidation:
    """Fail-fast validation of out-of-range values."""

    @pytest.mark.parametrize("timeout", ["0", "-1"])
    def test_non_positive_timeout(self, timeout: str) -> None:
        with (
            patch.dict(os.environ, {"SOURCE_API_TIMEOUT_S": timeout}, clear=False),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            TransportConfig.from_env()
        assert exc_info.value.key == "SOURCE_API_TIMEOUT_S"

    def test_empty_base_url(self) -> None:
        with (
            patch.dict(os.environ, {"SOURCE_API_BASE_URL": ""}, clear=False),
            pytest.raises(ConfigValidationError, match="must not be empty"),
        ):
            TransportConfig.from_env()

    def test_base_url_without_scheme(self) -> None:
        with (
            patch.dict(os.environ, {"SOURCE_API_BASE_URL": "api.stripe.com"}, clear=False),
            pytest.raises(ConfigValidationError, match="http:// or https://"),
        ):
            TransportConfig.from_env()

    def test_empty_user_agent(self) -> None:
        with (
            patch.dict(os.environ, {"SOURCE_API_USER_AGENT": ""}, clear=False),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            TransportConfig.from_env()
        assert exc_info.value.value == ""

    def test_error_is_validation_category(self) -> None:
        err = ConfigValidationError("SOURCE_API_TIMEOUT_S", -1, "must be > 0")
        assert err.category == "validation"
        assert err.stage == "config"
        assert err.code == "CONFIG_VALIDATION_FAILED"
        assert "SOURCE_API_TIMEOUT_S=-1" in str(err)
