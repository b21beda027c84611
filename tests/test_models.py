"""
Tests for snapshot parsing into GrowthSignal / Entity and the signal index.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from backend_signals.chain_engine.models import Entity, GrowthSignal, SignalType
from backend_signals.chain_engine.signal_index import SignalIndex, signal_set_version
from backend_signals.core.exceptions import SignalValidationError
from tests.conftest import make_entity, make_signal


def test_growth_signal_from_camel_case_record():
    signal = GrowthSignal.from_dict({
        "id": "sig-1",
        "type": "permit",
        "description": "Building permit filed",
        "detectedDate": "2024-03-05T12:00:00Z",
        "sourceUrl": "https://example.com/permit",
        "score": 72,
        "confidence": 0.85,
    })
    assert signal.type is SignalType.PERMIT
    assert signal.detected_date == datetime(2024, 3, 5, 12, tzinfo=timezone.utc)
    assert signal.source_url == "https://example.com/permit"
    assert signal.to_dict()["type"] == "permit"


def test_naive_and_date_only_values_are_utc():
    signal = GrowthSignal.from_dict(
        {"id": "s", "type": "hiring", "confidence": 0.5, "detected_date": "2024-02-01"}
    )
    assert signal.detected_date.tzinfo is not None
    assert signal.detected_date == datetime(2024, 2, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "record",
    [
        {"id": "s", "type": "merger", "confidence": 0.5, "detectedDate": "2024-01-01"},
        {"id": "s", "type": "hiring", "confidence": 1.5, "detectedDate": "2024-01-01"},
        {"id": "s", "type": "hiring", "confidence": 0.5, "detectedDate": "yesterday"},
        {"id": "s", "type": "hiring", "detectedDate": "2024-01-01"},
        {"id": "s", "type": "hiring", "confidence": 0.5},
    ],
)
def test_malformed_signal_records_raise(record):
    with pytest.raises(SignalValidationError):
        GrowthSignal.from_dict(record)


def test_entity_from_dict_and_signal_types():
    entity = Entity.from_dict({
        "id": "acme",
        "growth_signals": [
            {"id": "a", "type": "hiring", "confidence": 0.7, "detected_date": "2024-01-01"},
            {"id": "b", "type": "hiring", "confidence": 0.6, "detected_date": "2024-01-03"},
        ],
    })
    assert [s.id for s in entity.growth_signals] == ["a", "b"]
    assert entity.signal_types == frozenset({SignalType.HIRING})


def test_signal_index_lookups(population):
    index = SignalIndex(population)
    assert len(index) == 3
    assert index.entity_ids() == ["acme", "bolt", "corner_cafe"]
    assert [s.id for s in index.signals_for("acme")] == ["h1", "x1"]
    assert index.signals_for("missing") == ()
    assert index.get_entity("missing") is None
    assert index.version_of("acme") == signal_set_version(population[0].growth_signals)


def test_signal_index_rejects_duplicate_ids(hiring_expansion_entity):
    with pytest.raises(SignalValidationError):
        SignalIndex([hiring_expansion_entity, hiring_expansion_entity])


def test_version_changes_with_signal_set():
    base = make_entity("acme", make_signal("h1", "hiring"))
    grown = make_entity("acme", make_signal("h1", "hiring"), make_signal("x1", "expansion", day=3))
    assert signal_set_version(base.growth_signals) != signal_set_version(grown.growth_signals)
    assert signal_set_version(base.growth_signals) == signal_set_version(
        make_entity("acme", make_signal("h1", "hiring")).growth_signals
    )
