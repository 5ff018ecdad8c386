"""Core type definitions for bgequity.

This module defines the small value types shared by the position model, the
game controller and the evaluator: players, move steps and sequences,
actions, game results and controller states.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple


# ==============================================================================
# PLAYERS AND DICE
# ==============================================================================

# Type aliases
Point = int  # 0=goal, 1-24=points, 25=bar (mover-relative)
Dice = Tuple[int, int]  # (die1, die2) where 1 <= die1, die2 <= 6


class Player(Enum):
    """Player colors."""
    WHITE = "white"
    BLACK = "black"

    def opponent(self) -> "Player":
        """Return the opponent player."""
        return Player.BLACK if self == Player.WHITE else Player.WHITE

    @property
    def sign(self) -> int:
        """Sign used for this player's checkers in a position slot."""
        return 1 if self == Player.WHITE else -1

    def __str__(self) -> str:
        return self.value


# ==============================================================================
# MOVES
# ==============================================================================

@dataclass(frozen=True)
class MoveStep:
    """A single checker movement, in mover-relative coordinates.

    Attributes:
        from_point: Starting point (1-24, or 25 for the bar)
        to_point: Ending point (1-24, or 0 for bearing off)
        hits_opponent: Whether this step hits an opponent blot
    """
    from_point: Point
    to_point: Point
    hits_opponent: bool = False

    def __post_init__(self):
        """Validate move step."""
        assert 1 <= self.from_point <= 25, f"Invalid from_point: {self.from_point}"
        assert 0 <= self.to_point < self.from_point, f"Invalid to_point: {self.to_point}"

    @property
    def distance(self) -> int:
        """Number of pips covered by this step."""
        return self.from_point - self.to_point


@dataclass(frozen=True, eq=False)
class MoveSequence:
    """An ordered list of steps played with one roll.

    Equality, hashing and ordering ignore the order the steps were played in:
    two sequences are equal when their steps sorted by descending from-point
    (then to-point) are the same.
    """
    steps: Tuple[MoveStep, ...] = ()

    def canonical(self) -> Tuple[Tuple[int, int], ...]:
        """Steps as (-from, to) pairs in normalized order."""
        return tuple(sorted((-s.from_point, s.to_point) for s in self.steps))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MoveSequence):
            return NotImplemented
        return self.canonical() == other.canonical()

    def __lt__(self, other: "MoveSequence") -> bool:
        return self.canonical() < other.canonical()

    def __hash__(self) -> int:
        return hash(self.canonical())

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def is_dance(self) -> bool:
        """True for the empty sequence played when no checker can move."""
        return not self.steps

    def notation(self) -> str:
        """Render in standard notation, e.g. ``"24/23 13/11"`` or ``"6/4*/3"``.

        Steps of one checker that follow each other are chained with slashes;
        an intermediate point is only shown when the checker hit there.
        """
        pending = sorted(self.steps, key=lambda s: (-s.from_point, s.to_point))
        parts = []
        while pending:
            step = pending.pop(0)
            text = str(step.from_point)
            prev, last_hit = step.to_point, step.hits_opponent
            j = 0
            while j < len(pending):
                nxt = pending[j]
                if nxt.from_point != prev:
                    j += 1
                    continue
                pending.pop(j)
                if last_hit:
                    text += f"/{prev}*"
                prev, last_hit = nxt.to_point, nxt.hits_opponent
            text += f"/{prev}" + ("*" if last_hit else "")
            parts.append(text)
        return " ".join(parts)

    @staticmethod
    def from_notation(text: str, dice: Dice) -> "MoveSequence":
        """Re-derive the steps of a move written in standard notation.

        Hops longer than a single die are split using the dice, larger die
        first. A hop onto point 0 may use a die larger than the distance.

        Args:
            text: Move notation as produced by :meth:`notation`
            dice: Roll the move was played with

        Returns:
            MoveSequence with one step per die used

        Raises:
            ValueError: If the notation cannot be played with these dice
        """
        remaining = [dice[0]] * 4 if dice[0] == dice[1] else list(dice)
        steps: List[MoveStep] = []
        for token in text.split():
            points = token.split("/")
            start = int(points[0])
            for hop in points[1:]:
                hit = hop.endswith("*")
                end = int(hop.rstrip("*"))
                hop_steps = _split_hop(start, end, remaining)
                last = hop_steps[-1]
                hop_steps[-1] = MoveStep(last.from_point, last.to_point, hit)
                steps.extend(hop_steps)
                start = end
        return MoveSequence(tuple(steps))

    def __str__(self) -> str:
        return self.notation() or "dance"


def _split_hop(start: int, end: int, remaining: List[int]) -> List[MoveStep]:
    """Break one hop into single-die steps, consuming dice from ``remaining``."""
    steps = []
    while start != end:
        distance = start - end
        if distance in remaining:
            die = distance
        elif end == 0 and remaining and max(remaining) > distance:
            die = min(d for d in remaining if d > distance)
            distance = start
        else:
            smaller = [d for d in remaining if d < distance]
            if not smaller:
                raise ValueError(f"Cannot play {start}/{end} with dice {remaining}")
            die = max(smaller)
            distance = die
        remaining.remove(die)
        steps.append(MoveStep(start, start - distance))
        start -= distance
    return steps


DANCE = MoveSequence()


# ==============================================================================
# ACTIONS
# ==============================================================================

class ActionKind(Enum):
    """Tags for the action variants."""
    INITIAL_ROLL = "initial_roll"
    ROLL = "roll"
    MOVE = "move"
    DECLINE_DOUBLE = "decline_double"
    OFFER_DOUBLE = "offer_double"
    PASS_CUBE = "pass_cube"
    TAKE_CUBE = "take_cube"
    RESET = "reset"
    NONE = "none"  # search placeholder, never legal


@dataclass(frozen=True)
class Action:
    """Something a player (or chance) does to the game.

    Attributes:
        kind: Which variant this is
        dice: Dice for INITIAL_ROLL and ROLL
        move: Checker play for MOVE
    """
    kind: ActionKind
    dice: Optional[Dice] = None
    move: Optional[MoveSequence] = None

    def __post_init__(self):
        """Validate payloads."""
        if self.kind in (ActionKind.INITIAL_ROLL, ActionKind.ROLL):
            assert self.dice is not None, f"{self.kind} needs dice"
            assert all(1 <= d <= 6 for d in self.dice), f"Invalid dice: {self.dice}"
        if self.kind == ActionKind.MOVE:
            assert self.move is not None, "MOVE needs a move sequence"

    @staticmethod
    def initial_roll(dice: Dice) -> "Action":
        return Action(ActionKind.INITIAL_ROLL, dice=tuple(dice))

    @staticmethod
    def roll(dice: Dice) -> "Action":
        return Action(ActionKind.ROLL, dice=tuple(dice))

    @staticmethod
    def play(move: MoveSequence) -> "Action":
        return Action(ActionKind.MOVE, move=move)

    def __str__(self) -> str:
        if self.kind == ActionKind.INITIAL_ROLL:
            return f"InitialRoll({self.dice[0]}-{self.dice[1]})"
        if self.kind == ActionKind.ROLL:
            return f"Roll({self.dice[0]}-{self.dice[1]})"
        if self.kind == ActionKind.MOVE:
            return f"Move({self.move})"
        return _ACTION_NAMES[self.kind]


_ACTION_NAMES: Dict[ActionKind, str] = {
    ActionKind.DECLINE_DOUBLE: "DeclineDouble",
    ActionKind.OFFER_DOUBLE: "OfferDouble",
    ActionKind.PASS_CUBE: "PassCube",
    ActionKind.TAKE_CUBE: "TakeCube",
    ActionKind.RESET: "Reset",
    ActionKind.NONE: "NoAction",
}

DECLINE_DOUBLE = Action(ActionKind.DECLINE_DOUBLE)
OFFER_DOUBLE = Action(ActionKind.OFFER_DOUBLE)
PASS_CUBE = Action(ActionKind.PASS_CUBE)
TAKE_CUBE = Action(ActionKind.TAKE_CUBE)
RESET = Action(ActionKind.RESET)
NO_ACTION = Action(ActionKind.NONE)


def moves_to_actions(moves: Sequence[MoveSequence]) -> List[Action]:
    """Wrap checker plays as MOVE actions."""
    return [Action.play(m) for m in moves]


# ==============================================================================
# GAME FLOW
# ==============================================================================

@dataclass(frozen=True)
class GameResult:
    """Outcome of a single game.

    Attributes:
        winner: Which player won
        points: Points won (1=single, 2=gammon, 3=backgammon, times the cube)
    """
    winner: Player
    points: int

    def __post_init__(self):
        """Validate outcome."""
        assert self.points >= 1, f"Points must be positive, got {self.points}"


class GameState(Enum):
    """Controller states, derived from the controller's fields."""
    INIT = "init"
    TO_DOUBLE = "to_double"
    TO_ROLL = "to_roll"
    DOUBLED = "doubled"
    TO_MOVE = "to_move"
    END = "end"
    MATCH_END = "match_end"
