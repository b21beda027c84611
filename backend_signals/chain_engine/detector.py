"""
SignalChainDetector: entry point for chain detection, clustering and prediction.

Constructed from a snapshot of entities. Holds the read-only signal index and
the chain cache; everything else is delegated to the builder, cluster
analyzer and predictor modules. Unknown entity ids resolve to empty results.
Invalid configs raise ConfigurationError before any work is done.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Iterable, Mapping

from backend_signals.chain_engine.chain_builder import ChainBuilder
from backend_signals.chain_engine.chain_cache import ChainCache, ChainCacheKey
from backend_signals.chain_engine.cluster_analyzer import ClusterAnalysis, analyze_signal_clusters
from backend_signals.chain_engine.models import Entity, RecursiveSignalConfig, SignalChain
from backend_signals.chain_engine.predictor import SignalPrediction, predict_next_signals
from backend_signals.chain_engine.signal_index import SignalIndex
from backend_signals.core.cancellation import CancellationToken
from backend_signals.core.exceptions import ConfigurationError, OperationCancelled
from backend_signals.signals_logging import bind_entity, get_logger

logger = get_logger(__name__)


def config_cache_key(config: RecursiveSignalConfig) -> str:
    return json.dumps(config.to_dict(), sort_keys=True)


class SignalChainDetector:
    """
    Detects growth-signal chains over an in-memory entity snapshot.

    Thread-safe: the index is immutable and swapped whole on refresh(); the
    cache computes each (entity, signal-set version, config) at most once.
    """

    def __init__(
        self,
        entities: Iterable[Entity | Mapping[str, Any]],
        *,
        cache_ttl_sec: float | None = None,
        concurrency: int | None = None,
    ) -> None:
        if cache_ttl_sec is not None and cache_ttl_sec <= 0:
            raise ConfigurationError(
                f"cache_ttl_sec must be > 0, got {cache_ttl_sec}", field="cache_ttl_sec"
            )
        if concurrency is not None and concurrency < 1:
            raise ConfigurationError(
                f"concurrency must be >= 1, got {concurrency}", field="concurrency"
            )
        self._index = SignalIndex(entities)
        self._index_lock = threading.Lock()
        self._cache = ChainCache(ttl_sec=cache_ttl_sec)
        self._concurrency = concurrency

    @staticmethod
    def default_config() -> RecursiveSignalConfig:
        return RecursiveSignalConfig.default()

    @property
    def index(self) -> SignalIndex:
        return self._index

    @property
    def cache(self) -> ChainCache:
        return self._cache

    def _check_config(self, config: RecursiveSignalConfig) -> RecursiveSignalConfig:
        if not isinstance(config, RecursiveSignalConfig):
            raise ConfigurationError(
                f"Expected RecursiveSignalConfig, got {type(config).__name__}"
            )
        try:
            config.validate()
        except ConfigurationError as e:
            logger.warning("signal_engine_config_invalid", error=e.message, **e.details)
            raise
        return config

    def detect_signal_chains(
        self,
        entity_id: str,
        config: RecursiveSignalConfig,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[SignalChain]:
        """
        Chains rooted at each of the entity's signals, strongest first.

        Args:
            entity_id: Entity to scan; unknown ids return [].
            config: Validated detection config.
            cancel_token: Optional; checked on every expansion step.

        Returns:
            Non-empty chains sorted by non-increasing chain_strength, as a
            fresh list over the cached chains.
        """
        self._check_config(config)
        index = self._index
        entity = index.get_entity(entity_id)
        if entity is None:
            return []
        version = index.version_of(entity_id) or ""
        key = ChainCacheKey(entity_id, version, config_cache_key(config))
        log = bind_entity(entity_id, __name__)

        def _compute() -> list[SignalChain]:
            started = time.perf_counter()
            chains = ChainBuilder(
                entity_id,
                entity.growth_signals,
                config,
                version=version,
                cancel_token=cancel_token,
            ).build_all()
            log.info(
                "signal_chains_detected",
                signal_count=len(entity.growth_signals),
                chain_count=len(chains),
                max_depth=config.max_depth,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return chains

        try:
            return list(self._cache.get_or_compute(key, _compute))
        except OperationCancelled as e:
            log.warning("signal_engine_cancelled", operation="detect_signal_chains", reason=e.details.get("reason"))
            raise

    def analyze_signal_clusters(
        self,
        config: RecursiveSignalConfig,
        *,
        cancel_token: CancellationToken | None = None,
        concurrency: int | None = None,
    ) -> ClusterAnalysis:
        self._check_config(config)
        return analyze_signal_clusters(
            self._index,
            lambda eid: self.detect_signal_chains(eid, config, cancel_token=cancel_token),
            cancel_token=cancel_token,
            concurrency=concurrency or self._concurrency,
        )

    def predict_next_signals(
        self,
        entity_id: str,
        config: RecursiveSignalConfig,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[SignalPrediction]:
        self._check_config(config)
        try:
            return predict_next_signals(self._index, entity_id, config, cancel_token=cancel_token)
        except OperationCancelled as e:
            bind_entity(entity_id, __name__).warning(
                "signal_engine_cancelled", operation="predict_next_signals", reason=e.details.get("reason")
            )
            raise

    def invalidate(self, entity_id: str) -> int:
        """Drop cached chains for one entity; returns entries removed."""
        return self._cache.invalidate(entity_id)

    def clear_cache(self) -> None:
        self._cache.clear()

    def refresh(self, entities: Iterable[Entity | Mapping[str, Any]]) -> int:
        """
        Replace the snapshot. Cached chains of entities whose signals changed
        (or that disappeared) are pruned; returns the number pruned.
        """
        new_index = SignalIndex(entities)
        with self._index_lock:
            self._index = new_index
        live = {eid: new_index.version_of(eid) or "" for eid in new_index.entity_ids()}
        pruned = self._cache.prune(live)
        logger.info(
            "signal_index_refreshed",
            entity_count=len(new_index),
            cache_entries_pruned=pruned,
        )
        return pruned
