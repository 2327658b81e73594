"""Deterministic strategy engine: resolver, scoring stages, assembler, pipeline."""
from .pipeline import StrategyPipeline
from .resolver import ProfileResolver, validate_profile
from .weights import DEFAULT_WEIGHTS, StrategyWeights, load_weights

__all__ = [
    "StrategyPipeline",
    "ProfileResolver",
    "validate_profile",
    "StrategyWeights",
    "DEFAULT_WEIGHTS",
    "load_weights",
]
