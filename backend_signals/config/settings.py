"""
Engine settings resolved from the environment.

get_settings() combines the documented RecursiveSignalConfig defaults with
any SIGNAL_CHAIN_* overrides and validates the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from backend_signals.chain_engine.models import RecursiveSignalConfig
from backend_signals.config.env import (
    DEFAULT_CONCURRENCY,
    get_cache_ttl_sec,
    get_concurrency,
    get_correlation_threshold,
    get_max_depth,
    get_min_confidence,
)


@dataclass
class EngineSettings:
    """Settings for building a SignalChainDetector and its default config."""

    signal_config: RecursiveSignalConfig = field(default_factory=RecursiveSignalConfig)
    cache_ttl_sec: float | None = None
    concurrency: int = DEFAULT_CONCURRENCY


def get_settings() -> EngineSettings:
    """
    Return the current engine settings.

    Raises:
        ConfigurationError: an env value is malformed or out of range.
    """
    signal_config = RecursiveSignalConfig.default().with_overrides(
        max_depth=get_max_depth(),
        min_confidence=get_min_confidence(),
        correlation_threshold=get_correlation_threshold(),
    )
    return EngineSettings(
        signal_config=signal_config,
        cache_ttl_sec=get_cache_ttl_sec(),
        concurrency=get_concurrency(),
    )
