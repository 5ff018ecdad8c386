"""Core game logic and data structures."""

from bgequity.core.types import (
    Action,
    ActionKind,
    Dice,
    GameResult,
    GameState,
    MoveSequence,
    MoveStep,
    Player,
    Point,
)
from bgequity.core.board import Position
from bgequity.core.cube import CubeState, MatchState
from bgequity.core.game import GameController

__all__ = [
    "Action",
    "ActionKind",
    "CubeState",
    "Dice",
    "GameController",
    "GameResult",
    "GameState",
    "MatchState",
    "MoveSequence",
    "MoveStep",
    "Player",
    "Point",
    "Position",
]
