"""
Chain engine package: recursive growth-signal chain detection.

Consumes a snapshot of entities and their growth signals, discovers
triggered / correlated / implied relationships, scores them into signal
chains, clusters recurring chain shapes and predicts next signals.
"""

from backend_signals.chain_engine.models import (
    ChainedSignal,
    Entity,
    GrowthSignal,
    RecursiveSignalConfig,
    RelationshipType,
    SignalChain,
    SignalType,
)
from backend_signals.chain_engine.relationships import (
    correlation,
    relationship_confidence,
    synergy,
)
from backend_signals.chain_engine.chain_builder import ChainBuilder, build_chain
from backend_signals.chain_engine.chain_cache import ChainCache, ChainCacheKey
from backend_signals.chain_engine.signal_index import SignalIndex
from backend_signals.chain_engine.cluster_analyzer import (
    ChainPattern,
    ClusterAnalysis,
    analyze_signal_clusters,
)
from backend_signals.chain_engine.predictor import (
    SignalPrediction,
    historical_probability,
    predict_next_signals,
)
from backend_signals.chain_engine.detector import SignalChainDetector

__all__ = [
    "ChainedSignal",
    "Entity",
    "GrowthSignal",
    "RecursiveSignalConfig",
    "RelationshipType",
    "SignalChain",
    "SignalType",
    "correlation",
    "relationship_confidence",
    "synergy",
    "ChainBuilder",
    "build_chain",
    "ChainCache",
    "ChainCacheKey",
    "SignalIndex",
    "ChainPattern",
    "ClusterAnalysis",
    "analyze_signal_clusters",
    "SignalPrediction",
    "historical_probability",
    "predict_next_signals",
    "SignalChainDetector",
]
