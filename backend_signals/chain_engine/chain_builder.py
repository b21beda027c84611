"""
Chain builder: bounded recursive expansion from a root growth signal.

From each signal the builder follows three kinds of edges inside the same
entity:

- trigger edges (config.signal_triggers): recorded and recursed into,
  grandchildren flattened into the same list;
- correlation edges (signals within +/-30 days): recorded, not recursed;
- implication edges (IMPLICATION_RULES, same day or later): recorded, not recursed.

Cycle safety comes from a path-local visited set. Each branch gets its own
frozenset, so sibling branches may rediscover the same signal, and a signal
can appear in one chain more than once under different relationships.
Recursion is bounded by config.max_depth.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Sequence

from backend_signals.chain_engine.models import (
    ChainedSignal,
    GrowthSignal,
    RecursiveSignalConfig,
    RelationshipType,
    SignalChain,
)
from backend_signals.chain_engine.relationships import (
    correlation,
    relationship_confidence,
    within_correlation_window,
)
from backend_signals.chain_engine.rules import IMPLICATION_RULES
from backend_signals.core.cancellation import CancellationToken, check_cancelled
from backend_signals.signals_logging import get_logger

logger = get_logger(__name__)


def path_label(signal: GrowthSignal, depth: int) -> str:
    return f"{signal.type.value}@depth{depth}"


def build_chain_id(entity_id: str, root_signal_id: str, version: str) -> str:
    """Deterministic for a given entity signal-set version."""
    h = hashlib.sha256(f"{entity_id}|{root_signal_id}|{version}".encode()).hexdigest()[:12]
    return f"chain_{entity_id}_{root_signal_id}_{h}"


def build_chain(
    entity_id: str,
    root_signal: GrowthSignal,
    chained_signals: list[ChainedSignal],
    discovery_path: list[str],
    *,
    version: str = "",
    detected_at: datetime | None = None,
) -> SignalChain:
    """
    Aggregate a root and its chained signals into a SignalChain.

    Each chained signal is weighted by 1 / (depth + 1) so deeper discoveries
    count less. chain_strength also multiplies by the chained signal's own
    confidence; total_confidence does not. Both are averaged over n + 1
    (root included).
    """
    total_confidence = root_signal.confidence
    chain_strength = root_signal.confidence
    for chained in chained_signals:
        depth_weight = 1.0 / (chained.depth + 1)
        total_confidence += chained.confidence * depth_weight
        chain_strength += chained.signal.confidence * chained.confidence * depth_weight
    n = len(chained_signals) + 1
    return SignalChain(
        id=build_chain_id(entity_id, root_signal.id, version),
        entity_id=entity_id,
        root_signal=root_signal,
        chained_signals=chained_signals,
        total_confidence=total_confidence / n,
        chain_strength=chain_strength / n,
        discovery_path=discovery_path,
        detected_at=detected_at or datetime.now(timezone.utc),
    )


class ChainBuilder:
    """Expands chains for one entity's signals under one config."""

    def __init__(
        self,
        entity_id: str,
        signals: Sequence[GrowthSignal],
        config: RecursiveSignalConfig,
        *,
        version: str = "",
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self.entity_id = entity_id
        self.signals = tuple(signals)
        self.config = config
        self.version = version
        self.cancel_token = cancel_token

    def build_all(self) -> list[SignalChain]:
        """One chain per root signal, empty chains dropped, strongest first."""
        chains: list[SignalChain] = []
        for root in self.signals:
            chain = self.expand(root, [], 0, frozenset())
            if chain.chained_signals:
                chains.append(chain)
                logger.debug(
                    "signal_chain_built",
                    entity_id=self.entity_id,
                    root_signal_id=root.id,
                    chained_count=len(chain.chained_signals),
                    chain_strength=round(chain.chain_strength, 4),
                )
        chains.sort(key=lambda c: c.chain_strength, reverse=True)
        return chains

    def expand(
        self,
        current: GrowthSignal,
        path: list[str],
        depth: int,
        visited: frozenset[str],
    ) -> SignalChain:
        check_cancelled(self.cancel_token)
        if depth >= self.config.max_depth or current.id in visited:
            return self._chain(current, [], path)

        visited = visited | {current.id}
        path = path + [path_label(current, depth)]

        chained: list[ChainedSignal] = []
        chained.extend(self._trigger_edges(current, path, depth, visited))
        chained.extend(self._correlation_edges(current, depth, visited))
        chained.extend(self._implication_edges(current, depth, visited))
        return self._chain(current, chained, path)

    def _chain(
        self, root: GrowthSignal, chained: list[ChainedSignal], path: list[str]
    ) -> SignalChain:
        return build_chain(self.entity_id, root, chained, path, version=self.version)

    def _trigger_edges(
        self,
        current: GrowthSignal,
        path: list[str],
        depth: int,
        visited: frozenset[str],
    ) -> list[ChainedSignal]:
        cfg = self.config
        found: list[ChainedSignal] = []
        for triggered_type in cfg.triggers_for(current.type):
            candidates = [
                s
                for s in self.signals
                if s.type is triggered_type
                and s.id not in visited
                and s.confidence >= cfg.min_confidence
            ]
            for candidate in candidates:
                conf = relationship_confidence(current, candidate, RelationshipType.TRIGGERED_BY)
                if conf < cfg.min_confidence:
                    continue
                found.append(
                    ChainedSignal(
                        signal=candidate,
                        depth=depth + 1,
                        parent_signal_id=current.id,
                        relationship_type=RelationshipType.TRIGGERED_BY,
                        confidence=conf,
                    )
                )
                sub_chain = self.expand(candidate, path, depth + 1, visited)
                found.extend(sub_chain.chained_signals)
        return found

    def _correlation_edges(
        self,
        current: GrowthSignal,
        depth: int,
        visited: frozenset[str],
    ) -> list[ChainedSignal]:
        cfg = self.config
        found: list[ChainedSignal] = []
        for s in self.signals:
            if s.id == current.id or s.id in visited:
                continue
            if not within_correlation_window(current, s) or s.confidence < cfg.min_confidence:
                continue
            score = correlation(current, s)
            if score >= cfg.correlation_threshold:
                found.append(
                    ChainedSignal(
                        signal=s,
                        depth=depth + 1,
                        parent_signal_id=current.id,
                        relationship_type=RelationshipType.CORRELATED_WITH,
                        confidence=score,
                    )
                )
        return found

    def _implication_edges(
        self,
        current: GrowthSignal,
        depth: int,
        visited: frozenset[str],
    ) -> list[ChainedSignal]:
        cfg = self.config
        found: list[ChainedSignal] = []
        for implied_type in IMPLICATION_RULES.get(current.type, ()):
            for s in self.signals:
                if s.type is not implied_type or s.id in visited:
                    continue
                if s.confidence < cfg.min_confidence:
                    continue
                if s.detected_date < current.detected_date:
                    continue
                conf = relationship_confidence(current, s, RelationshipType.IMPLIES)
                if conf >= cfg.min_confidence:
                    found.append(
                        ChainedSignal(
                            signal=s,
                            depth=depth + 1,
                            parent_signal_id=current.id,
                            relationship_type=RelationshipType.IMPLIES,
                            confidence=conf,
                        )
                    )
        return found
