"""
Tests for relationship scoring: synergy, correlation, relationship confidence.
"""

from __future__ import annotations

import pytest

from backend_signals.chain_engine.models import RelationshipType, SignalType
from backend_signals.chain_engine.relationships import (
    correlation,
    days_between,
    relationship_confidence,
    synergy,
)
from backend_signals.chain_engine.rules import (
    DEFAULT_SYNERGY,
    IMPLICATION_RULES,
    SYNERGY_MATRIX,
    validate_rule_tables,
)
from backend_signals.core.exceptions import ConfigurationError
from tests.conftest import make_signal


def test_synergy_lookup_and_default():
    """Known pairs come from the matrix; same-type pairs fall back to 0.3."""
    assert synergy(SignalType.HIRING, SignalType.EXPANSION) == 0.9
    assert synergy(SignalType.CONTRACT, SignalType.PERMIT) == 0.5
    assert synergy(SignalType.HIRING, SignalType.HIRING) == DEFAULT_SYNERGY


def test_correlation_formula():
    """0.4 * proximity + 0.3 * confidence similarity + 0.3 * synergy."""
    s1 = make_signal("h1", "hiring", day=0, confidence=0.9)
    s2 = make_signal("x1", "expansion", day=20, confidence=0.8)
    expected = 0.4 * (1 - 20 / 30) + 0.3 * (1 - 0.1) + 0.3 * 0.9
    assert correlation(s1, s2) == pytest.approx(expected)
    assert correlation(s2, s1) == pytest.approx(expected)


def test_correlation_capped_and_no_time_credit_past_window():
    same_day = correlation(
        make_signal("a", "hiring", day=0, confidence=0.9),
        make_signal("b", "expansion", day=0, confidence=0.9),
    )
    assert same_day <= 1.0
    far = correlation(
        make_signal("a", "hiring", day=0, confidence=0.9),
        make_signal("b", "expansion", day=45, confidence=0.9),
    )
    assert far == pytest.approx(0.3 * 1.0 + 0.3 * 0.9)


def test_triggered_by_boost_is_capped():
    """Base 0.85 boosted by 1.2 then capped at 1.0."""
    s1 = make_signal("h1", "hiring", day=0, confidence=0.9)
    s2 = make_signal("x1", "expansion", day=20, confidence=0.8)
    assert relationship_confidence(s1, s2, RelationshipType.TRIGGERED_BY) == 1.0


def test_relationship_kind_accepts_plain_strings():
    s1 = make_signal("h1", "hiring", day=0, confidence=0.9)
    s2 = make_signal("x1", "expansion", day=20, confidence=0.8)
    assert relationship_confidence(s1, s2, "triggered_by") == 1.0
    assert relationship_confidence(s1, s2, "implies") == pytest.approx(0.765)
    assert relationship_confidence(s1, s2, "correlated_with") == pytest.approx(0.85)
    with pytest.raises(ValueError):
        relationship_confidence(s1, s2, "caused_by")


def test_triggered_by_reverse_order_penalized():
    s1 = make_signal("h1", "hiring", day=20, confidence=0.9)
    s2 = make_signal("x1", "expansion", day=0, confidence=0.8)
    assert relationship_confidence(s1, s2, RelationshipType.TRIGGERED_BY) == pytest.approx(0.425)


def test_triggered_by_same_instant_penalized():
    s1 = make_signal("h1", "hiring", day=5, confidence=0.6)
    s2 = make_signal("x1", "expansion", day=5, confidence=0.6)
    assert relationship_confidence(s1, s2, RelationshipType.TRIGGERED_BY) == pytest.approx(0.3)


def test_triggered_by_outside_window_unchanged():
    s1 = make_signal("h1", "hiring", day=0, confidence=0.6)
    s2 = make_signal("x1", "expansion", day=100, confidence=0.6)
    assert relationship_confidence(s1, s2, RelationshipType.TRIGGERED_BY) == pytest.approx(0.6)


def test_correlated_and_implies_adjustments():
    s1 = make_signal("h1", "hiring", day=0, confidence=0.9)
    s2 = make_signal("x1", "expansion", day=20, confidence=0.8)
    assert relationship_confidence(s1, s2, RelationshipType.CORRELATED_WITH) == pytest.approx(0.85)
    assert relationship_confidence(s1, s2, RelationshipType.IMPLIES) == pytest.approx(0.765)


def test_days_between_is_fractional():
    s1 = make_signal("a", "hiring", day=0)
    s2 = make_signal("b", "hiring", day=1.5)
    assert days_between(s1, s2) == pytest.approx(1.5)


def test_rule_tables_cover_every_signal_type():
    for signal_type in SignalType:
        assert signal_type in SYNERGY_MATRIX
        assert signal_type in IMPLICATION_RULES
    assert IMPLICATION_RULES[SignalType.EQUIPMENT] == ()


def test_validate_rule_tables_rejects_incomplete_table():
    partial = {k: v for k, v in SYNERGY_MATRIX.items() if k is not SignalType.PERMIT}
    with pytest.raises(ConfigurationError):
        validate_rule_tables(synergy=partial)


def test_validate_rule_tables_rejects_out_of_range_score():
    bad = {k: dict(v) for k, v in SYNERGY_MATRIX.items()}
    bad[SignalType.HIRING][SignalType.PERMIT] = 1.5
    with pytest.raises(ConfigurationError):
        validate_rule_tables(synergy=bad)
