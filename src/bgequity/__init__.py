"""
bgequity - exact match equity for backgammon positions by full game-tree enumeration.
"""

__version__ = "0.1.0"

# Core exports
from bgequity.core.types import (
    Action,
    GameState,
    MoveSequence,
    MoveStep,
    Player,
)
from bgequity.core.game import GameController
from bgequity.evaluation.evaluator import Equities, Evaluator

__all__ = [
    "Action",
    "Equities",
    "Evaluator",
    "GameController",
    "GameState",
    "MoveSequence",
    "MoveStep",
    "Player",
]
