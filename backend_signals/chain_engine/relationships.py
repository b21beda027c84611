"""
Relationship scoring between two growth signals.

Pure functions, no state. Three relationship kinds:
- triggered_by: directional; later signals inside the trigger window are
  boosted, signals that do not come later are penalized.
- correlated_with: time-windowed similarity (proximity, confidence
  similarity, type synergy).
- implies: conservative discount on the base confidence.
"""

from __future__ import annotations

from backend_signals.chain_engine.models import GrowthSignal, RelationshipType, SignalType
from backend_signals.chain_engine.rules import DEFAULT_SYNERGY, SYNERGY_MATRIX

CORRELATION_WINDOW_DAYS = 30.0
"""Signals further apart than this are never correlated."""

TRIGGER_WINDOW_DAYS = 90.0
"""A later signal within this many days gets the trigger timing boost."""

TRIGGER_TIMING_BOOST = 1.2
TRIGGER_REVERSED_PENALTY = 0.5
IMPLICATION_DISCOUNT = 0.9

CORRELATION_WEIGHT_TIME = 0.4
CORRELATION_WEIGHT_CONFIDENCE = 0.3
CORRELATION_WEIGHT_SYNERGY = 0.3

_SECONDS_PER_DAY = 86400.0


def days_between(s1: GrowthSignal, s2: GrowthSignal) -> float:
    """Absolute gap in (fractional) days between two detections."""
    return abs((s2.detected_date - s1.detected_date).total_seconds()) / _SECONDS_PER_DAY


def within_correlation_window(s1: GrowthSignal, s2: GrowthSignal) -> bool:
    return days_between(s1, s2) <= CORRELATION_WINDOW_DAYS


def synergy(type_a: SignalType, type_b: SignalType) -> float:
    """Compatibility of two signal types from the static matrix."""
    return SYNERGY_MATRIX.get(type_a, {}).get(type_b, DEFAULT_SYNERGY)


def correlation(s1: GrowthSignal, s2: GrowthSignal) -> float:
    """
    Correlation strength in [0, 1].

    0.4 * time proximity (linear decay to 0 at 30 days)
    + 0.3 * confidence similarity
    + 0.3 * type synergy, capped at 1.0.
    """
    time_proximity = max(0.0, 1.0 - days_between(s1, s2) / CORRELATION_WINDOW_DAYS)
    confidence_similarity = 1.0 - abs(s1.confidence - s2.confidence)
    score = (
        time_proximity * CORRELATION_WEIGHT_TIME
        + confidence_similarity * CORRELATION_WEIGHT_CONFIDENCE
        + synergy(s1.type, s2.type) * CORRELATION_WEIGHT_SYNERGY
    )
    return min(score, 1.0)


def relationship_confidence(
    s1: GrowthSignal,
    s2: GrowthSignal,
    kind: RelationshipType | str,
) -> float:
    """
    Confidence that s1 -> s2 holds for the given relationship kind.

    Base is the mean of both signal confidences. For triggered_by, s2 must be
    strictly later than s1: within TRIGGER_WINDOW_DAYS it is boosted, later
    than that it is left as is, and same instant or earlier is penalized.
    Result capped at 1.0.
    """
    kind = RelationshipType(kind)
    confidence = (s1.confidence + s2.confidence) / 2.0
    if kind is RelationshipType.TRIGGERED_BY:
        if s2.detected_date > s1.detected_date:
            if days_between(s1, s2) <= TRIGGER_WINDOW_DAYS:
                confidence *= TRIGGER_TIMING_BOOST
        else:
            confidence *= TRIGGER_REVERSED_PENALTY
    elif kind is RelationshipType.IMPLIES:
        confidence *= IMPLICATION_DISCOUNT
    return min(confidence, 1.0)
