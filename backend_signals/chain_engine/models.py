"""
Data models for the chain engine: growth signals, entities, chains, config.

Signals and entities are immutable snapshot inputs; chains are derived,
read-only outputs that hold references to the signals they were built from.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

from backend_signals.core.exceptions import ConfigurationError, SignalValidationError


class SignalType(str, Enum):
    HIRING = "hiring"
    PERMIT = "permit"
    CONTRACT = "contract"
    EXPANSION = "expansion"
    EQUIPMENT = "equipment"


class RelationshipType(str, Enum):
    TRIGGERED_BY = "triggered_by"
    CORRELATED_WITH = "correlated_with"
    IMPLIES = "implies"


ALL_SIGNAL_TYPES: tuple[SignalType, ...] = (
    SignalType.HIRING,
    SignalType.EXPANSION,
    SignalType.EQUIPMENT,
    SignalType.PERMIT,
    SignalType.CONTRACT,
)
"""Candidate order used by the predictor."""

DEFAULT_MAX_DEPTH = 3
DEFAULT_MIN_CONFIDENCE = 0.5
DEFAULT_CORRELATION_THRESHOLD = 0.6

DEFAULT_SIGNAL_TRIGGERS: dict[SignalType, tuple[SignalType, ...]] = {
    SignalType.HIRING: (SignalType.EXPANSION, SignalType.EQUIPMENT),
    SignalType.EXPANSION: (SignalType.EQUIPMENT, SignalType.PERMIT, SignalType.HIRING),
    SignalType.EQUIPMENT: (SignalType.HIRING,),
    SignalType.PERMIT: (SignalType.EQUIPMENT, SignalType.EXPANSION),
    SignalType.CONTRACT: (SignalType.HIRING, SignalType.EXPANSION),
}


def parse_signal_type(value: Any) -> SignalType:
    """Coerce a string or SignalType; raise SignalValidationError for unknown types."""
    if isinstance(value, SignalType):
        return value
    try:
        return SignalType(str(value).strip().lower())
    except ValueError:
        raise SignalValidationError(f"Unknown signal type: {value!r}", signal_type=value) from None


def parse_detected_date(value: Any) -> datetime:
    """ISO-8601 string or datetime -> timezone-aware datetime (naive treated as UTC)."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            raise SignalValidationError(f"Invalid detected date: {value!r}", detected_date=value) from None
    else:
        raise SignalValidationError(f"Invalid detected date: {value!r}", detected_date=value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class GrowthSignal:
    """
    One detected business event for an entity.

    confidence is in [0, 1]; score is the ingestion collaborator's raw score
    and is carried through untouched.
    """

    id: str
    type: SignalType
    description: str
    confidence: float
    score: float
    detected_date: datetime
    source_url: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise SignalValidationError("Growth signal id is required")
        if not isinstance(self.type, SignalType):
            object.__setattr__(self, "type", parse_signal_type(self.type))
        if not isinstance(self.detected_date, datetime) or self.detected_date.tzinfo is None:
            object.__setattr__(self, "detected_date", parse_detected_date(self.detected_date))
        conf = float(self.confidence)
        if math.isnan(conf) or not 0.0 <= conf <= 1.0:
            raise SignalValidationError(
                f"Signal confidence must be in [0, 1], got {self.confidence!r}",
                signal_id=self.id,
            )
        object.__setattr__(self, "confidence", conf)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GrowthSignal:
        """Build from a snapshot record; accepts camelCase or snake_case keys."""
        try:
            signal_id = data["id"]
            signal_type = data["type"]
            confidence = data["confidence"]
        except KeyError as e:
            raise SignalValidationError(f"Growth signal missing field {e.args[0]!r}") from None
        detected = data.get("detectedDate", data.get("detected_date"))
        return cls(
            id=str(signal_id),
            type=parse_signal_type(signal_type),
            description=str(data.get("description") or ""),
            confidence=confidence,
            score=float(data.get("score") or 0.0),
            detected_date=parse_detected_date(detected),
            source_url=data.get("sourceUrl", data.get("source_url")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "description": self.description,
            "confidence": self.confidence,
            "score": self.score,
            "detected_date": self.detected_date.isoformat(),
            "source_url": self.source_url,
        }


@dataclass(frozen=True)
class Entity:
    """A business entity (prospect) and its signals in detection order."""

    id: str
    growth_signals: tuple[GrowthSignal, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise SignalValidationError("Entity id is required")
        if not isinstance(self.growth_signals, tuple):
            object.__setattr__(self, "growth_signals", tuple(self.growth_signals))

    @property
    def signal_types(self) -> frozenset[SignalType]:
        return frozenset(s.type for s in self.growth_signals)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Entity:
        if "id" not in data:
            raise SignalValidationError("Entity missing field 'id'")
        raw_signals = data.get("growthSignals", data.get("growth_signals")) or []
        return cls(
            id=str(data["id"]),
            growth_signals=tuple(GrowthSignal.from_dict(s) for s in raw_signals),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "growth_signals": [s.to_dict() for s in self.growth_signals],
        }


@dataclass(frozen=True)
class ChainedSignal:
    """A signal reached from a parent signal through one relationship."""

    signal: GrowthSignal
    depth: int
    parent_signal_id: str
    relationship_type: RelationshipType
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal": self.signal.to_dict(),
            "depth": self.depth,
            "parent_signal_id": self.parent_signal_id,
            "relationship_type": self.relationship_type.value,
            "confidence": round(self.confidence, 4),
        }


@dataclass
class SignalChain:
    """
    Root signal plus everything discovered from it.

    chained_signals is a flat traversal list, not a tree; depth and
    parent_signal_id encode the tree position. The same signal may appear
    more than once when reached through different relationships or branches.
    """

    id: str
    entity_id: str
    root_signal: GrowthSignal
    chained_signals: list[ChainedSignal]
    total_confidence: float
    chain_strength: float
    discovery_path: list[str]
    detected_at: datetime

    def signal_types(self) -> list[SignalType]:
        """Sorted, de-duplicated signal types across root and chained signals."""
        types = {self.root_signal.type}
        types.update(c.signal.type for c in self.chained_signals)
        return sorted(types, key=lambda t: t.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entity_id": self.entity_id,
            "root_signal": self.root_signal.to_dict(),
            "chained_signals": [c.to_dict() for c in self.chained_signals],
            "total_confidence": round(self.total_confidence, 4),
            "chain_strength": round(self.chain_strength, 4),
            "discovery_path": list(self.discovery_path),
            "detected_at": self.detected_at.isoformat(),
        }


def _normalize_triggers(
    triggers: Mapping[Any, Iterable[Any]],
) -> dict[SignalType, tuple[SignalType, ...]]:
    out: dict[SignalType, tuple[SignalType, ...]] = {}
    for source, targets in triggers.items():
        try:
            src = parse_signal_type(source)
            if isinstance(targets, (str, SignalType)):
                raise ConfigurationError(
                    f"signal_triggers[{source!r}] must be a list of signal types",
                    field="signal_triggers",
                )
            out[src] = tuple(parse_signal_type(t) for t in targets)
        except SignalValidationError as e:
            raise ConfigurationError(
                f"signal_triggers contains an unknown signal type: {e.message}",
                field="signal_triggers",
            ) from e
    return out


@dataclass
class RecursiveSignalConfig:
    """
    Tuning for chain detection, clustering and prediction.

    Values are validated on construction and rejected when out of range;
    nothing is clamped.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    correlation_threshold: float = DEFAULT_CORRELATION_THRESHOLD
    signal_triggers: dict[SignalType, tuple[SignalType, ...]] = field(
        default_factory=lambda: dict(DEFAULT_SIGNAL_TRIGGERS)
    )

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check every field and normalize signal_triggers in place."""
        if not isinstance(self.signal_triggers, Mapping):
            raise ConfigurationError(
                "signal_triggers must be a mapping of signal type to signal types",
                field="signal_triggers",
            )
        self.signal_triggers = _normalize_triggers(self.signal_triggers)
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise ConfigurationError(
                f"max_depth must be an integer, got {self.max_depth!r}", field="max_depth"
            )
        if self.max_depth < 0:
            raise ConfigurationError(
                f"max_depth must be >= 0, got {self.max_depth}", field="max_depth"
            )
        for name in ("min_confidence", "correlation_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}", field=name)
            if math.isnan(value) or not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}", field=name)

    def triggers_for(self, signal_type: SignalType) -> tuple[SignalType, ...]:
        return self.signal_triggers.get(signal_type, ())

    @classmethod
    def default(cls) -> RecursiveSignalConfig:
        return cls()

    def with_overrides(self, **overrides: Any) -> RecursiveSignalConfig:
        """Return a new validated config; None values keep the current setting."""
        unknown = set(overrides) - {"max_depth", "min_confidence", "correlation_threshold", "signal_triggers"}
        if unknown:
            raise ConfigurationError(
                f"Unknown config field(s): {', '.join(sorted(unknown))}", fields=sorted(unknown)
            )
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_depth": self.max_depth,
            "min_confidence": self.min_confidence,
            "correlation_threshold": self.correlation_threshold,
            "signal_triggers": {
                k.value: [t.value for t in v] for k, v in self.signal_triggers.items()
            },
        }
