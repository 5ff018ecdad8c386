"""Doubling cube and match play.

This module implements:
- Cube state management (level, ownership, pending offer)
- Cube decision rules (can_double under the Crawford rule and level cap)
- Match score tracking with the Crawford rule
- The match equity table used at the leaves of the exact evaluator
"""

from dataclasses import dataclass, replace
from typing import Optional
import numpy as np

from bgequity.core.errors import UnsupportedMatchLengthError
from bgequity.core.types import Player


# ==============================================================================
# CUBE STATE
# ==============================================================================

DEFAULT_MAX_LEVEL = 10


@dataclass(frozen=True)
class CubeState:
    """Doubling cube state.

    Attributes:
        owner: Player who may redouble, None while centered
        level: Number of doublings taken; the cube shows 2 ** level
        offered: A double has been offered and awaits a pass/take answer
        max_level: Highest level the cube may reach
    """
    owner: Optional[Player] = None
    level: int = 0
    offered: bool = False
    max_level: int = DEFAULT_MAX_LEVEL

    def __post_init__(self):
        """Validate cube state."""
        assert self.level >= 0, f"Invalid cube level: {self.level}"
        assert self.max_level >= 0, f"Invalid max level: {self.max_level}"

    @property
    def value(self) -> int:
        """Current stake multiplier."""
        return 1 << self.level

    def reach_max(self) -> bool:
        """True once the cube cannot be turned any further."""
        return self.level >= self.max_level

    def double(self, player: Player) -> "CubeState":
        """Offer a double: the opponent now holds the decision (and the cube if taken)."""
        return replace(self, owner=player.opponent(), offered=True)

    def take(self) -> "CubeState":
        """Accept the pending double."""
        return replace(self, offered=False, level=self.level + 1)


def initial_cube(max_level: int = DEFAULT_MAX_LEVEL) -> CubeState:
    """Create initial cube state (centered, value 1)."""
    return CubeState(max_level=max_level)


# ==============================================================================
# MATCH PLAY
# ==============================================================================


@dataclass(frozen=True)
class MatchState:
    """Match score.

    Attributes:
        length: Points needed to win the match
        white_score: Points won by White (clamped at length)
        black_score: Points won by Black (clamped at length)
        crawford: The current game is the Crawford game
    """
    length: int = 1
    white_score: int = 0
    black_score: int = 0
    crawford: bool = False

    def __post_init__(self):
        """Validate match state."""
        assert self.length >= 1, f"Invalid match length: {self.length}"
        assert 0 <= self.white_score <= self.length, f"Invalid white score: {self.white_score}"
        assert 0 <= self.black_score <= self.length, f"Invalid black score: {self.black_score}"

    def score(self, player: Player) -> int:
        return self.white_score if player == Player.WHITE else self.black_score

    def away(self, player: Player) -> int:
        """Points ``player`` still needs."""
        return self.length - self.score(player)


def new_match(target_points: int) -> MatchState:
    """Create a new match to ``target_points``."""
    return MatchState(length=target_points)


def match_winner(match: MatchState) -> Optional[Player]:
    """Get the match winner, or None if the match is not over."""
    if match.white_score >= match.length:
        return Player.WHITE
    if match.black_score >= match.length:
        return Player.BLACK
    return None


def is_match_over(match: MatchState) -> bool:
    """Check if either player has reached the target score."""
    return match_winner(match) is not None


def update_match_score(
    match: MatchState,
    game_winner: Player,
    points: int,
) -> MatchState:
    """Update match score after a game.

    Scores are clamped at the match length. Also handles Crawford rule
    transitions:
    - The game after a player first reaches match point - 1 is Crawford
    - The Crawford flag clears once that game is over

    Args:
        match: Current match state
        game_winner: Who won the game
        points: Points won (cube_value * game_multiplier)

    Returns:
        Updated MatchState
    """
    not_reached = (
        match.white_score < match.length - 1
        and match.black_score < match.length - 1
    )

    new_white = match.white_score
    new_black = match.black_score
    if game_winner == Player.WHITE:
        new_white = min(new_white + points, match.length)
    else:
        new_black = min(new_black + points, match.length)

    new_crawford = False
    if not match.crawford and not_reached:
        new_crawford = (
            new_white == match.length - 1 or new_black == match.length - 1
        )

    return MatchState(
        length=match.length,
        white_score=new_white,
        black_score=new_black,
        crawford=new_crawford,
    )


def is_crawford_game(match: MatchState) -> bool:
    """Check if the current game is a Crawford game (cube disabled)."""
    return match.crawford


# ==============================================================================
# CUBE RULES
# ==============================================================================


def can_double(cube: CubeState, player: Player) -> bool:
    """Check if a player can offer a double, ignoring the match score.

    A player can double if the cube is centered or theirs, and it has not
    reached its maximum level.
    """
    if cube.reach_max():
        return False
    return cube.owner is None or cube.owner == player


def can_double_in_match(
    cube: CubeState,
    player: Player,
    match: MatchState,
) -> bool:
    """Check if doubling is allowed considering match context.

    Doubling is disabled in the Crawford game.
    """
    if is_crawford_game(match):
        return False
    return can_double(cube, player)


def game_points(finish: int, cube: CubeState) -> int:
    """Points won in a game: finish class (1, 2 or 3) times the cube value."""
    return finish * cube.value


# ==============================================================================
# MATCH EQUITY TABLE
# ==============================================================================

MAX_MATCH_LENGTH = 5

# Rockwell-Kazaross match equity table, rounded to two places.
# MET[i][j] = probability that White wins the match when White needs i+1
# points and Black needs j+1 points.
_MATCH_EQUITY_TABLE = np.array([
    # Black needs: 1    2     3     4     5
    [0.50, 0.68, 0.75, 0.81, 0.84],  # White needs 1
    [0.32, 0.50, 0.57, 0.63, 0.66],  # White needs 2
    [0.25, 0.43, 0.50, 0.56, 0.59],  # White needs 3
    [0.19, 0.37, 0.44, 0.50, 0.53],  # White needs 4
    [0.16, 0.34, 0.41, 0.47, 0.50],  # White needs 5
], dtype=np.float64)

# Post-Crawford: chance of the player needing 1 point against an opponent
# needing i+1 points, when the cube is live again.
_POST_CRAWFORD = np.array([0.50, 0.51, 0.68, 0.69, 0.81], dtype=np.float64)


def match_winning_chance(match: MatchState) -> float:
    """Probability that White wins the match from this score.

    Args:
        match: Current match state

    Returns:
        1.0 or 0.0 for a finished match, the table value otherwise

    Raises:
        UnsupportedMatchLengthError: For an unfinished match longer than 5
    """
    winner = match_winner(match)
    if winner is not None:
        return 1.0 if winner == Player.WHITE else 0.0

    if match.length > MAX_MATCH_LENGTH:
        raise UnsupportedMatchLengthError(
            f"Match length {match.length} exceeds the supported {MAX_MATCH_LENGTH}"
        )

    white_away = match.away(Player.WHITE)
    black_away = match.away(Player.BLACK)
    if white_away == 1 and not match.crawford:
        return float(_POST_CRAWFORD[black_away - 1])
    if black_away == 1 and not match.crawford:
        return 1.0 - float(_POST_CRAWFORD[white_away - 1])
    return float(_MATCH_EQUITY_TABLE[white_away - 1][black_away - 1])


def match_equity(match: MatchState) -> float:
    """Signed match equity from White's side, in [-1, 1].

    +1 is a certain White match win, -1 a certain Black one.
    """
    return 2.0 * match_winning_chance(match) - 1.0
