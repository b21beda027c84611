"""
Static relationship rule tables: synergy matrix, implication rules.

These are configuration data rather than logic. validate_rule_tables() runs at
import and fails fast if a table references an unknown type, is missing a
signal type, or holds an out-of-range score.
"""

from __future__ import annotations

from typing import Mapping

from backend_signals.chain_engine.models import (
    ALL_SIGNAL_TYPES,
    DEFAULT_SIGNAL_TRIGGERS,
    SignalType,
)
from backend_signals.core.exceptions import ConfigurationError

H = SignalType.HIRING
X = SignalType.EXPANSION
E = SignalType.EQUIPMENT
P = SignalType.PERMIT
C = SignalType.CONTRACT

DEFAULT_SYNERGY = 0.3
"""Synergy for pairs missing from the matrix (including same-type pairs)."""

SYNERGY_MATRIX: dict[SignalType, dict[SignalType, float]] = {
    H: {X: 0.9, E: 0.8, C: 0.7, P: 0.6},
    X: {H: 0.9, E: 0.8, P: 0.9, C: 0.6},
    E: {X: 0.8, H: 0.7, P: 0.7, C: 0.5},
    P: {X: 0.9, E: 0.7, H: 0.6, C: 0.5},
    C: {H: 0.8, X: 0.7, E: 0.6, P: 0.5},
}

# Hiring needs space/equipment; expansion needs equipment and permits;
# permits lead to equipment; contracts drive hiring and expansion.
IMPLICATION_RULES: dict[SignalType, tuple[SignalType, ...]] = {
    H: (X, E),
    X: (E, P),
    P: (E,),
    C: (H, X),
    E: (),
}


def _require_all_types(name: str, table: Mapping[SignalType, object]) -> None:
    missing = [t.value for t in ALL_SIGNAL_TYPES if t not in table]
    if missing:
        raise ConfigurationError(f"{name} is missing signal types: {missing}", table=name)
    extra = [k for k in table if not isinstance(k, SignalType)]
    if extra:
        raise ConfigurationError(f"{name} has non-SignalType keys: {extra}", table=name)


def validate_rule_tables(
    synergy: Mapping[SignalType, Mapping[SignalType, float]] = SYNERGY_MATRIX,
    implications: Mapping[SignalType, tuple[SignalType, ...]] = IMPLICATION_RULES,
    triggers: Mapping[SignalType, tuple[SignalType, ...]] = DEFAULT_SIGNAL_TRIGGERS,
) -> None:
    """Check every table covers all signal types and all values are well-formed."""
    _require_all_types("SYNERGY_MATRIX", synergy)
    for source, row in synergy.items():
        for target, score in row.items():
            if not isinstance(target, SignalType):
                raise ConfigurationError(
                    f"SYNERGY_MATRIX[{source.value}] has non-SignalType key {target!r}",
                    table="SYNERGY_MATRIX",
                )
            if not 0.0 <= score <= 1.0:
                raise ConfigurationError(
                    f"SYNERGY_MATRIX[{source.value}][{target.value}] out of range: {score}",
                    table="SYNERGY_MATRIX",
                )
    for name, table in (("IMPLICATION_RULES", implications), ("DEFAULT_SIGNAL_TRIGGERS", triggers)):
        _require_all_types(name, table)
        for source, targets in table.items():
            bad = [t for t in targets if not isinstance(t, SignalType)]
            if bad:
                raise ConfigurationError(
                    f"{name}[{source.value}] has unknown targets: {bad}", table=name
                )


validate_rule_tables()
