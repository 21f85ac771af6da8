from __future__ import annotations

import pytest
from pydantic import ValidationError

from netmon.config import DEFAULT_CORS_ORIGINS, Settings


def test_defaults_match_dashboard_constants() -> None:
    settings = Settings()
    assert settings.tick_interval == 0.1
    assert settings.sample_interval == 1.0
    assert (settings.max_packets, settings.max_alerts, settings.max_samples) == (1000, 100, 60)
    assert settings.alert_probability == 0.02
    assert settings.cors_origins == DEFAULT_CORS_ORIGINS
    assert settings.autostart is False


def test_from_env_reads_prefixed_variables() -> None:
    settings = Settings.from_env(
        {
            "NETMON_PORT": "9000",
            "NETMON_AUTOSTART": "true",
            "NETMON_SEED": "42",
            "NETMON_CORS_ORIGINS": "http://a.example, http://b.example",
            "NETMON_LOG_LEVEL": "DEBUG",
            "NETMON_UNKNOWN": "ignored",
            "PORT": "1",
        }
    )
    assert settings.port == 9000
    assert settings.autostart is True
    assert settings.seed == 42
    assert settings.cors_origins == ["http://a.example", "http://b.example"]
    assert settings.log_level == "debug"


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings.from_env({"NETMON_MAX_PACKETS": "0"})
    with pytest.raises(ValidationError):
        Settings(log_level="loud")
