"""
Unit Tests for Settings and Logging Configuration.
"""

from unittest.mock import patch

import pytest
import structlog
from pydantic import ValidationError

from docpush.config.settings import PushSettings, Settings, get_settings
from docpush.observability.logging import (
    LogContext,
    PushIdContext,
    add_log_context,
    add_push_id,
    add_service_info,
    censor_sensitive_data,
    configure_from_settings,
)


class TestSettings:
    """Test cases for environment-driven settings."""

    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.push.max_tries == 12
        assert settings.push.base_delay_seconds == 5.0
        assert settings.push.max_batch_size == 5000
        assert settings.consumer.timeout_seconds == 30.0
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, test_settings) -> None:
        assert test_settings.push.max_tries == 3
        assert test_settings.push.base_delay_seconds == 0.01
        assert test_settings.push.feed_name == "testfeed"
        assert test_settings.consumer.feed_url == "http://consumer.test/xmlfeed"

    def test_log_level_normalized(self) -> None:
        with patch.dict("os.environ", {"LOG_LEVEL": "debug"}):
            assert Settings(_env_file=None).log_level == "DEBUG"

    @pytest.mark.parametrize(
        "env",
        [{"PUSH_MAX_TRIES": "-1"}, {"PUSH_MAX_BATCH_SIZE": "0"}, {"PUSH_BASE_DELAY_SECONDS": "-2"}],
    )
    def test_invalid_push_settings(self, env: dict) -> None:
        with patch.dict("os.environ", env), pytest.raises(ValidationError):
            PushSettings()

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestLogProcessors:
    """Test cases for the structlog processors."""

    def test_push_id_bound_inside_context(self) -> None:
        with PushIdContext("abc123") as push_id:
            event = add_push_id(None, "info", {"event": "x"})

        assert push_id == "abc123"
        assert event["push_id"] == "abc123"
        assert "push_id" not in add_push_id(None, "info", {"event": "x"})

    def test_generated_push_id(self) -> None:
        with PushIdContext() as push_id:
            assert len(push_id) == 12

    def test_log_context(self) -> None:
        with LogContext(feed="f1"):
            assert add_log_context(None, "info", {})["feed"] == "f1"
        assert add_log_context(None, "info", {}) == {}

    def test_service_info(self) -> None:
        assert add_service_info("svc")(None, "info", {})["service"] == "svc"

    def test_censor_sensitive_data(self) -> None:
        event = censor_sensitive_data(
            None, "info", {"api_key": "k", "nested": {"password": "p"}, "doc": "d"}
        )

        assert event["api_key"] == "***REDACTED***"
        assert event["nested"]["password"] == "***REDACTED***"
        assert event["doc"] == "d"

    def test_configure_from_settings(self, test_settings) -> None:
        try:
            configure_from_settings(test_settings)
            assert structlog.is_configured()
        finally:
            structlog.reset_defaults()
