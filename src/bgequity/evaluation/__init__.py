"""Exact equity evaluation."""

from bgequity.evaluation.evaluator import (
    CacheInfo,
    Equities,
    Evaluator,
    EvaluatorConfig,
    Tree,
    best_for,
)

__all__ = [
    "CacheInfo",
    "Equities",
    "Evaluator",
    "EvaluatorConfig",
    "Tree",
    "best_for",
]
