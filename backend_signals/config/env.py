"""
Environment variable loading and validation for the signal engine.

- SIGNAL_CHAIN_MAX_DEPTH: recursion bound (default 3)
- SIGNAL_CHAIN_MIN_CONFIDENCE: minimum signal / relationship confidence (default 0.5)
- SIGNAL_CHAIN_CORRELATION_THRESHOLD: minimum correlation score (default 0.6)
- SIGNAL_CHAIN_CACHE_TTL_SEC: chain cache TTL; unset or 0 = no expiry
- SIGNAL_CHAIN_CONCURRENCY: worker threads for cluster analysis (default 4)
- Loads .env from project root when available.

Malformed values raise ConfigurationError; they are never replaced by defaults.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from backend_signals.core.exceptions import ConfigurationError

# Project root: config is backend_signals/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

ENV_MAX_DEPTH = "SIGNAL_CHAIN_MAX_DEPTH"
ENV_MIN_CONFIDENCE = "SIGNAL_CHAIN_MIN_CONFIDENCE"
ENV_CORRELATION_THRESHOLD = "SIGNAL_CHAIN_CORRELATION_THRESHOLD"
ENV_CACHE_TTL_SEC = "SIGNAL_CHAIN_CACHE_TTL_SEC"
ENV_CONCURRENCY = "SIGNAL_CHAIN_CONCURRENCY"

DEFAULT_CONCURRENCY = 4


def load_signals_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def _raw(name: str) -> str | None:
    raw = (os.getenv(name) or "").strip()
    return raw or None


def get_env_int(name: str) -> int | None:
    raw = _raw(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", env=name) from None


def get_env_float(name: str) -> float | None:
    raw = _raw(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", env=name) from None


def get_max_depth() -> int | None:
    load_signals_env()
    return get_env_int(ENV_MAX_DEPTH)


def get_min_confidence() -> float | None:
    load_signals_env()
    return get_env_float(ENV_MIN_CONFIDENCE)


def get_correlation_threshold() -> float | None:
    load_signals_env()
    return get_env_float(ENV_CORRELATION_THRESHOLD)


def get_cache_ttl_sec() -> float | None:
    """TTL in seconds, or None for no expiry (unset or 0)."""
    load_signals_env()
    ttl = get_env_float(ENV_CACHE_TTL_SEC)
    if ttl is None or ttl == 0:
        return None
    if ttl < 0:
        raise ConfigurationError(f"{ENV_CACHE_TTL_SEC} must be >= 0, got {ttl}", env=ENV_CACHE_TTL_SEC)
    return ttl


def get_concurrency() -> int:
    load_signals_env()
    value = get_env_int(ENV_CONCURRENCY)
    if value is None:
        return DEFAULT_CONCURRENCY
    if value < 1:
        raise ConfigurationError(f"{ENV_CONCURRENCY} must be >= 1, got {value}", env=ENV_CONCURRENCY)
    return value
