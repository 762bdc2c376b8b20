"""
Unit tests for log_operation and Settings.
"""

import pytest

from employee_api.settings import Settings
from employee_api.utils import log_operation


class Worker:
    @log_operation
    async def succeed(self, value, bypass=False):
        return value * 2

    @log_operation
    async def fail(self):
        raise KeyError("missing")


@pytest.mark.asyncio
async def test_log_operation_returns_result():
    assert await Worker().succeed(21) == 42


@pytest.mark.asyncio
async def test_log_operation_reraises_unchanged():
    with pytest.raises(KeyError):
        await Worker().fail()


def test_log_operation_preserves_name():
    assert Worker.succeed.__name__ == "succeed"


def test_settings_defaults():
    settings = Settings()

    assert settings.retry_max_attempts == 3
    assert settings.retry_initial_delay == 1.0
    assert settings.retry_max_delay == 5.0
    assert settings.cache_ttl_seconds == 60.0
    assert settings.cache_max_size == 1000
    assert settings.upstream_connect_timeout == 3.0


def test_settings_from_environment():
    settings = Settings.model_validate(
        {"CACHE_TTL_SECONDS": "5", "CACHE_DEBUG": "true", "UNRELATED": "x"}
    )

    assert settings.cache_ttl_seconds == 5.0
    assert settings.cache_debug is True
