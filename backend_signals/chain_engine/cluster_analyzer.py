"""
Signal cluster analysis: recurring chain shapes across a population.

Every entity's chains (through the chain cache) are keyed by the sorted,
de-duplicated set of signal types they contain, e.g. "equipment+expansion+hiring".
Each key collects the contributing entities plus frequency and mean
total_confidence. Clustering is chain-derived: entities with no qualifying
chains contribute nothing.

Entities are independent and side-effect free, so they are fanned out to a
thread pool; results are merged in snapshot order so output is deterministic.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

from backend_signals.chain_engine.models import Entity, SignalChain, SignalType
from backend_signals.chain_engine.signal_index import SignalIndex
from backend_signals.core.cancellation import CancellationToken, check_cancelled
from backend_signals.core.exceptions import OperationCancelled
from backend_signals.signals_logging import get_logger

logger = get_logger(__name__)

KEY_SEPARATOR = "+"
DEFAULT_CONCURRENCY = 4


@dataclass
class ChainPattern:
    """Aggregate of every chain sharing one signal-type combination."""

    signal_combination: list[SignalType]
    frequency: int
    avg_confidence: float
    entities: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_combination": [t.value for t in self.signal_combination],
            "frequency": self.frequency,
            "avg_confidence": round(self.avg_confidence, 4),
            "entities": list(self.entities),
        }


@dataclass
class ClusterAnalysis:
    """clusters: combination key -> entities (once per matching chain); patterns: by frequency desc."""

    clusters: dict[str, list[Entity]] = field(default_factory=dict)
    patterns: list[ChainPattern] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "clusters": {k: [e.id for e in v] for k, v in self.clusters.items()},
            "patterns": [p.to_dict() for p in self.patterns],
        }


def combination_key(chain: SignalChain) -> str:
    return KEY_SEPARATOR.join(t.value for t in chain.signal_types())


@dataclass
class _PatternAccumulator:
    frequency: int = 0
    total_confidence: float = 0.0
    entities: list[str] = field(default_factory=list)


def _collect(
    entities: list[Entity],
    entity_chains: Callable[[Entity], list[SignalChain]],
    workers: int,
) -> list[list[SignalChain]]:
    if workers == 1 or len(entities) <= 1:
        return [entity_chains(entity) for entity in entities]
    per_entity: list[list[SignalChain]] = []
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures: list[Future[list[SignalChain]]] = [
            executor.submit(entity_chains, e) for e in entities
        ]
        try:
            for fut in futures:
                per_entity.append(fut.result())
        except BaseException:
            for fut in futures:
                fut.cancel()
            raise
    return per_entity


def analyze_signal_clusters(
    index: SignalIndex,
    chains_for: Callable[[str], list[SignalChain]],
    *,
    cancel_token: CancellationToken | None = None,
    concurrency: int | None = None,
) -> ClusterAnalysis:
    """
    Group every entity's chains by signal-type combination.

    Args:
        index: Snapshot of entities to scan, in snapshot order.
        chains_for: entity_id -> chains (normally the detector's cached lookup).
        cancel_token: Checked before each entity; pending work is cancelled
            and OperationCancelled raised when it fires.
        concurrency: Worker threads; 1 runs inline.

    Returns:
        ClusterAnalysis with clusters and patterns sorted by frequency (desc,
        ties in first-seen order).
    """
    entities = list(index)
    workers = max(1, concurrency or DEFAULT_CONCURRENCY)

    def _entity_chains(entity: Entity) -> list[SignalChain]:
        check_cancelled(cancel_token)
        return chains_for(entity.id)

    try:
        per_entity = _collect(entities, _entity_chains, workers)
    except OperationCancelled as e:
        logger.warning(
            "signal_engine_cancelled",
            operation="analyze_signal_clusters",
            reason=e.details.get("reason"),
            entity_count=len(entities),
        )
        raise

    clusters: dict[str, list[Entity]] = {}
    accumulators: dict[str, _PatternAccumulator] = {}
    for entity, chains in zip(entities, per_entity):
        for chain in chains:
            key = combination_key(chain)
            clusters.setdefault(key, []).append(entity)
            acc = accumulators.setdefault(key, _PatternAccumulator())
            acc.frequency += 1
            acc.total_confidence += chain.total_confidence
            acc.entities.append(entity.id)

    patterns = [
        ChainPattern(
            signal_combination=[SignalType(t) for t in key.split(KEY_SEPARATOR)],
            frequency=acc.frequency,
            avg_confidence=acc.total_confidence / acc.frequency,
            entities=acc.entities,
        )
        for key, acc in accumulators.items()
    ]
    patterns.sort(key=lambda p: p.frequency, reverse=True)

    logger.info(
        "signal_clusters_analyzed",
        entity_count=len(entities),
        cluster_count=len(clusters),
        top_pattern=KEY_SEPARATOR.join(t.value for t in patterns[0].signal_combination) if patterns else None,
    )
    return ClusterAnalysis(clusters=clusters, patterns=patterns)
