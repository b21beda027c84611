"""
Next-signal prediction for one entity.

For every signal type the entity has not shown yet, probability is built from:
- trigger evidence: each existing signal whose trigger list contains the
  candidate adds confidence * 0.3;
- synergy: each existing signal with synergy > 0.6 adds synergy * 0.2;
- history: fraction of similar peers (type-set similarity > 0.5) that also
  show the candidate, times 0.3.
Capped at 1.0; only candidates above 0.3 are returned, most likely first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from backend_signals.chain_engine.models import (
    ALL_SIGNAL_TYPES,
    GrowthSignal,
    RecursiveSignalConfig,
    SignalType,
)
from backend_signals.chain_engine.relationships import synergy
from backend_signals.chain_engine.signal_index import SignalIndex
from backend_signals.core.cancellation import CancellationToken, check_cancelled
from backend_signals.signals_logging import get_logger

logger = get_logger(__name__)

TRIGGER_WEIGHT = 0.3
SYNERGY_WEIGHT = 0.2
SYNERGY_MIN = 0.6
HISTORICAL_WEIGHT = 0.3
PEER_SIMILARITY_MIN = 0.5
PREDICTION_MIN_PROBABILITY = 0.3


@dataclass
class SignalPrediction:
    """One predicted signal type with the evidence that produced it."""

    signal_type: SignalType
    probability: float
    reasoning: str
    based_on: list[GrowthSignal] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_type": self.signal_type.value,
            "probability": round(self.probability, 4),
            "reasoning": self.reasoning,
            "based_on": [s.id for s in self.based_on],
        }


def type_set_similarity(a: frozenset[SignalType], b: frozenset[SignalType]) -> float:
    """|a & b| / max(|a|, |b|); 0 when both are empty."""
    denom = max(len(a), len(b))
    if denom == 0:
        return 0.0
    return len(a & b) / denom


def historical_probability(
    index: SignalIndex,
    entity_id: str,
    current_types: frozenset[SignalType],
    target: SignalType,
    *,
    cancel_token: CancellationToken | None = None,
) -> float:
    """Share of similar peers (excluding entity_id) that already show target."""
    peers = 0
    matches = 0
    for other in index:
        if other.id == entity_id:
            continue
        check_cancelled(cancel_token)
        other_types = other.signal_types
        if type_set_similarity(current_types, other_types) > PEER_SIMILARITY_MIN:
            peers += 1
            if target in other_types:
                matches += 1
    return matches / peers if peers else 0.0


def predict_next_signals(
    index: SignalIndex,
    entity_id: str,
    config: RecursiveSignalConfig,
    *,
    cancel_token: CancellationToken | None = None,
) -> list[SignalPrediction]:
    """Predictions for entity_id, highest probability first; [] for unknown ids."""
    entity = index.get_entity(entity_id)
    if entity is None:
        return []

    current_types = entity.signal_types
    predictions: list[SignalPrediction] = []

    for candidate in ALL_SIGNAL_TYPES:
        if candidate in current_types:
            continue
        probability = 0.0
        based_on: list[GrowthSignal] = []
        reasons: list[str] = []

        for signal in entity.growth_signals:
            if candidate in config.triggers_for(signal.type):
                probability += signal.confidence * TRIGGER_WEIGHT
                based_on.append(signal)
                reasons.append(
                    f"{signal.type.value} signal (confidence: {signal.confidence}) "
                    f"often triggers {candidate.value}"
                )
            syn = synergy(signal.type, candidate)
            if syn > SYNERGY_MIN:
                probability += syn * SYNERGY_WEIGHT
                reasons.append(f"Strong synergy with {signal.type.value} ({syn:.2f})")

        probability += (
            historical_probability(
                index, entity_id, current_types, candidate, cancel_token=cancel_token
            )
            * HISTORICAL_WEIGHT
        )

        if probability > PREDICTION_MIN_PROBABILITY:
            predictions.append(
                SignalPrediction(
                    signal_type=candidate,
                    probability=min(probability, 1.0),
                    reasoning="; ".join(reasons),
                    based_on=based_on,
                )
            )

    predictions.sort(key=lambda p: p.probability, reverse=True)
    logger.info(
        "signal_predictions_computed",
        entity_id=entity_id,
        prediction_count=len(predictions),
        signal_types=[p.signal_type.value for p in predictions],
    )
    return predictions
