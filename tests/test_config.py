"""
Tests for RecursiveSignalConfig validation and env-driven settings.
"""

from __future__ import annotations

import pytest

from backend_signals.chain_engine.models import (
    DEFAULT_SIGNAL_TRIGGERS,
    RecursiveSignalConfig,
    SignalType,
)
from backend_signals.config import get_settings
from backend_signals.config.env import (
    ENV_CACHE_TTL_SEC,
    ENV_CONCURRENCY,
    ENV_MAX_DEPTH,
    ENV_MIN_CONFIDENCE,
    get_cache_ttl_sec,
)
from backend_signals.core.exceptions import ConfigurationError

_ENV_VARS = (
    "SIGNAL_CHAIN_MAX_DEPTH",
    "SIGNAL_CHAIN_MIN_CONFIDENCE",
    "SIGNAL_CHAIN_CORRELATION_THRESHOLD",
    "SIGNAL_CHAIN_CACHE_TTL_SEC",
    "SIGNAL_CHAIN_CONCURRENCY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_default_config_matches_documented_values():
    config = RecursiveSignalConfig.default()
    assert config.max_depth == 3
    assert config.min_confidence == 0.5
    assert config.correlation_threshold == 0.6
    assert config.signal_triggers == DEFAULT_SIGNAL_TRIGGERS
    assert config.triggers_for(SignalType.EXPANSION) == (
        SignalType.EQUIPMENT,
        SignalType.PERMIT,
        SignalType.HIRING,
    )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_depth": -1},
        {"max_depth": 1.5},
        {"max_depth": True},
        {"min_confidence": -0.1},
        {"min_confidence": 1.01},
        {"correlation_threshold": -0.5},
        {"correlation_threshold": float("nan")},
        {"signal_triggers": {"hiring": ["warehouse"]}},
        {"signal_triggers": {"drone": ["hiring"]}},
        {"signal_triggers": {"hiring": "expansion"}},
    ],
)
def test_invalid_config_is_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        RecursiveSignalConfig(**kwargs)


def test_string_triggers_are_normalized():
    config = RecursiveSignalConfig(signal_triggers={"hiring": ["expansion", "Equipment"]})
    assert config.signal_triggers == {
        SignalType.HIRING: (SignalType.EXPANSION, SignalType.EQUIPMENT)
    }
    assert config.triggers_for(SignalType.PERMIT) == ()


def test_with_overrides_keeps_unset_fields():
    config = RecursiveSignalConfig.default().with_overrides(max_depth=5, min_confidence=None)
    assert config.max_depth == 5
    assert config.min_confidence == 0.5
    with pytest.raises(ConfigurationError):
        RecursiveSignalConfig.default().with_overrides(max_depth=-2)
    with pytest.raises(ConfigurationError):
        RecursiveSignalConfig.default().with_overrides(depth=2)


def test_config_to_dict_uses_plain_values():
    out = RecursiveSignalConfig.default().to_dict()
    assert out["signal_triggers"]["hiring"] == ["expansion", "equipment"]


def test_settings_defaults():
    settings = get_settings()
    assert settings.signal_config.max_depth == 3
    assert settings.cache_ttl_sec is None
    assert settings.concurrency == 4


def test_settings_read_env_overrides(monkeypatch):
    monkeypatch.setenv(ENV_MAX_DEPTH, "2")
    monkeypatch.setenv(ENV_MIN_CONFIDENCE, "0.65")
    monkeypatch.setenv(ENV_CACHE_TTL_SEC, "300")
    monkeypatch.setenv(ENV_CONCURRENCY, "8")
    settings = get_settings()
    assert settings.signal_config.max_depth == 2
    assert settings.signal_config.min_confidence == 0.65
    assert settings.cache_ttl_sec == 300.0
    assert settings.concurrency == 8


@pytest.mark.parametrize(
    "name,value",
    [
        (ENV_MAX_DEPTH, "three"),
        (ENV_MAX_DEPTH, "-1"),
        (ENV_MIN_CONFIDENCE, "2"),
        (ENV_CONCURRENCY, "0"),
        (ENV_CACHE_TTL_SEC, "-5"),
    ],
)
def test_malformed_env_raises(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        get_settings()


def test_zero_ttl_means_no_expiry(monkeypatch):
    monkeypatch.setenv(ENV_CACHE_TTL_SEC, "0")
    assert get_cache_ttl_sec() is None
