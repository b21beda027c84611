"""
Signal index: read-only entity id -> ordered growth signals.

Built once from a snapshot. The ingestion side owns refresh: a new snapshot
means a new index. Each entity carries a signal-set version (content hash of
its signals) so the chain cache can tell a refreshed entity from an
unchanged one.
"""

from __future__ import annotations

import hashlib
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from backend_signals.chain_engine.models import Entity, GrowthSignal
from backend_signals.core.exceptions import SignalValidationError
from backend_signals.signals_logging import get_logger

logger = get_logger(__name__)


def signal_set_version(signals: Iterable[GrowthSignal]) -> str:
    """Deterministic 16-char fingerprint of an entity's signals (order-sensitive)."""
    h = hashlib.sha256()
    for s in signals:
        h.update(
            f"{s.id}|{s.type.value}|{s.confidence!r}|{s.detected_date.isoformat()}\n".encode()
        )
    return h.hexdigest()[:16]


def coerce_entity(item: Entity | Mapping[str, Any]) -> Entity:
    if isinstance(item, Entity):
        return item
    if isinstance(item, Mapping):
        return Entity.from_dict(item)
    raise SignalValidationError(f"Unsupported entity record: {type(item).__name__}")


class SignalIndex:
    """Immutable lookup over a snapshot of entities, in snapshot order."""

    def __init__(self, entities: Iterable[Entity | Mapping[str, Any]]) -> None:
        ordered: dict[str, Entity] = {}
        for item in entities:
            entity = coerce_entity(item)
            if entity.id in ordered:
                raise SignalValidationError(
                    f"Duplicate entity id in snapshot: {entity.id}", entity_id=entity.id
                )
            ordered[entity.id] = entity
        self._entities: Mapping[str, Entity] = MappingProxyType(ordered)
        self._versions: Mapping[str, str] = MappingProxyType(
            {eid: signal_set_version(e.growth_signals) for eid, e in ordered.items()}
        )
        logger.info(
            "signal_index_built",
            entity_count=len(ordered),
            signal_count=sum(len(e.growth_signals) for e in ordered.values()),
        )

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def entity_ids(self) -> list[str]:
        return list(self._entities)

    def get_entity(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def signals_for(self, entity_id: str) -> tuple[GrowthSignal, ...]:
        """Ordered signals for an entity; empty tuple for unknown ids."""
        entity = self._entities.get(entity_id)
        return entity.growth_signals if entity is not None else ()

    def version_of(self, entity_id: str) -> str | None:
        return self._versions.get(entity_id)
