"""
Pytest fixtures for signal engine tests: signal factory and small populations.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from backend_signals.chain_engine.models import Entity, GrowthSignal, SignalType

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_signal(
    signal_id: str,
    signal_type: str | SignalType,
    day: float = 0,
    confidence: float = 0.9,
    score: float = 50.0,
) -> GrowthSignal:
    """GrowthSignal detected `day` days after BASE_DATE."""
    return GrowthSignal(
        id=signal_id,
        type=SignalType(signal_type),
        description=f"{signal_type} signal {signal_id}",
        confidence=confidence,
        score=score,
        detected_date=BASE_DATE + timedelta(days=day),
    )


def make_entity(entity_id: str, *signals: GrowthSignal) -> Entity:
    return Entity(id=entity_id, growth_signals=signals)


@pytest.fixture
def signal_factory():
    return make_signal


@pytest.fixture
def hiring_expansion_entity() -> Entity:
    """hiring@day0 (0.9) followed by expansion@day20 (0.8)."""
    return make_entity(
        "acme",
        make_signal("h1", "hiring", day=0, confidence=0.9),
        make_signal("x1", "expansion", day=20, confidence=0.8),
    )


@pytest.fixture
def population(hiring_expansion_entity) -> list[Entity]:
    """Two entities with the same hiring->expansion shape plus one single-signal entity."""
    return [
        hiring_expansion_entity,
        make_entity(
            "bolt",
            make_signal("h2", "hiring", day=3, confidence=0.9),
            make_signal("x2", "expansion", day=23, confidence=0.8),
        ),
        make_entity("corner_cafe", make_signal("p3", "permit", day=5, confidence=0.7)),
    ]
