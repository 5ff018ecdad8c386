"""Position representation and checker-play rules.

This module implements the checker side of the game:
- Position construction and mirroring
- Legality queries and mutation primitives (move, hit)
- Move generation with deduplication and the "play as much as possible" rule
- Game-finish detection (single, gammon, backgammon)

Slot layout (28 signed counts, positive = White, negative = Black):

    0       this player's goal (borne-off checkers)
    1-24    board points, 1-6 being this player's home board
    25      this player's bar
    26      opponent's goal
    27      opponent's bar

Stored positions are in White's coordinates: White moves from 24 down to 1
and off onto slot 0. Black's view is obtained with ``reversed(Player.BLACK)``,
which mirrors the points and swaps the goal/bar pairs, so move generation is
always written as if the mover travels toward decreasing indices.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

from bgequity.core.errors import IllegalMoveError
from bgequity.core.types import DANCE, Dice, MoveSequence, MoveStep, Player, Point
from bgequity.core.dice import die_orderings


NUM_SLOTS = 28
BOARD_SIZE = 26
GOAL = 0
BAR = 25
OPP_GOAL = 26
OPP_BAR = 27
HOME_BOARD = 6
NUM_CHECKERS = 15

# Standard start, White's coordinates
_STARTING_SLOTS = [
    0, -2, 0, 0, 0, 0, 5, 0, 3, 0, 0, 0, -5,
    5, 0, 0, 0, -3, 0, -5, 0, 0, 0, 0, 2, 0,
    0, 0,
]


# ==============================================================================
# POSITION
# ==============================================================================

@dataclass(eq=False)
class Position:
    """Checker placement on the 28 slots.

    Attributes:
        slots: Signed checker counts (length 28)
    """
    slots: NDArray[np.int32] = field(default_factory=lambda: np.zeros(NUM_SLOTS, dtype=np.int32))

    def __post_init__(self):
        """Validate slot array."""
        self.slots = np.asarray(self.slots, dtype=np.int32)
        assert self.slots.shape == (NUM_SLOTS,), f"slots must have length {NUM_SLOTS}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return bool(np.array_equal(self.slots, other.slots))

    def copy(self) -> "Position":
        """Create a copy of the position."""
        return Position(self.slots.copy())

    # --------------------------------------------------------------------------
    # Mirroring
    # --------------------------------------------------------------------------

    def reverse(self) -> "Position":
        """Mirror points 1..24 and swap goal/bar pairs with the opponent's."""
        slots = np.zeros(NUM_SLOTS, dtype=np.int32)
        slots[1:BAR] = self.slots[BAR - 1:0:-1]
        slots[BAR] = self.slots[OPP_BAR]
        slots[GOAL] = self.slots[OPP_GOAL]
        slots[OPP_BAR] = self.slots[BAR]
        slots[OPP_GOAL] = self.slots[GOAL]
        return Position(slots)

    def reversed(self, player: Player) -> "Position":
        """View of the position from ``player``'s side."""
        if player == Player.WHITE:
            return self.copy()
        return self.reverse()

    # --------------------------------------------------------------------------
    # Slot access
    # --------------------------------------------------------------------------

    def get(self, slot: int) -> Optional[Tuple[Player, int]]:
        """Owner and checker count of a slot, or None when it is empty."""
        count = int(self.slots[slot])
        if count > 0:
            return Player.WHITE, count
        if count < 0:
            return Player.BLACK, -count
        return None

    def owner(self, slot: int) -> Optional[Player]:
        """Owner of a slot, or None when it is empty."""
        occupant = self.get(slot)
        return occupant[0] if occupant else None

    def set(self, slot: int, player: Player, count: int) -> None:
        """Put ``count`` checkers of ``player`` on a slot (mutates position).

        Raises:
            IllegalMoveError: If ``count`` is outside 0..15
        """
        if not 0 <= count <= NUM_CHECKERS:
            raise IllegalMoveError(f"Invalid checker count: {count}")
        self.slots[slot] = player.sign * count

    def add(self, slot: int, player: Player, delta: int) -> None:
        """Add ``delta`` checkers of ``player`` to a slot (mutates position)."""
        self.slots[slot] += player.sign * delta

    # --------------------------------------------------------------------------
    # Legality and mutation
    # --------------------------------------------------------------------------

    def hittable(self, slot: int, player: Player) -> bool:
        """True if the slot holds exactly one opposing checker."""
        occupant = self.get(slot)
        return occupant is not None and occupant[0] != player and occupant[1] == 1

    def hit(self, slot: int, player: Player) -> None:
        """Send the opposing blot on ``slot`` to the opponent's bar."""
        if not self.hittable(slot, player):
            raise IllegalMoveError(f"{player} cannot hit on {slot}")
        self.set(slot, player.opponent(), 0)
        self.add(OPP_BAR, player.opponent(), 1)

    def movable(self, from_point: int, to_point: int, player: Player) -> bool:
        """True if a checker of ``player`` may go from one slot to another.

        The source must hold a checker of ``player``. The target must be
        empty, owned by ``player``, or an opposing blot.
        """
        if self.owner(from_point) != player:
            return False
        occupant = self.get(to_point)
        if occupant is None:
            return True
        owner, count = occupant
        return owner == player or count == 1

    def mov(self, from_point: int, to_point: int, player: Player) -> None:
        """Move one checker, hitting a blot on the target if there is one."""
        if not self.movable(from_point, to_point, player):
            raise IllegalMoveError(f"{player} cannot move {from_point}/{to_point}")
        if self.hittable(to_point, player):
            self.hit(to_point, player)
        self.add(from_point, player, -1)
        self.add(to_point, player, 1)

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------

    def has_checkers_in_play(self, player: Player) -> bool:
        """True if ``player`` has any checker on the board or on the bar."""
        return any(self.owner(i) == player for i in range(BAR, GOAL, -1))

    def backman(self, player: Player) -> Point:
        """Highest slot, scanning from the bar down, holding a checker of ``player``."""
        for i in range(BAR, GOAL, -1):
            if self.owner(i) == player:
                return i
        raise IllegalMoveError(f"{player} has no checkers left outside the goal")

    def checker_total(self, player: Player) -> int:
        """Checkers of ``player`` across every slot, goal and bar included."""
        sign = player.sign
        return int(sum(c * sign for c in self.slots if c * sign > 0))

    def goal(self, player: Player) -> int:
        """How ``player`` has finished the game.

        Returns:
            0 if not finished, 1 for a single game, 2 for a gammon (the
            opponent has borne off nothing), 3 for a backgammon (and the
            opponent still has a checker on the bar or in ``player``'s home
            board)
        """
        view = self.reversed(player)
        if view.has_checkers_in_play(player):
            return 0
        if view.get(OPP_GOAL) is not None:
            return 1
        opponent = player.opponent()
        if view.owner(OPP_BAR) == opponent:
            return 3
        if any(view.owner(i) == opponent for i in range(1, HOME_BOARD + 1)):
            return 3
        return 2

    # --------------------------------------------------------------------------
    # Move enumeration
    # --------------------------------------------------------------------------

    def listup(self, dice: Sequence[int], player: Player) -> List[MoveSequence]:
        """Enumerate the move sequences playing ``dice`` in the given order.

        The position must already be in ``player``'s coordinates. A sequence
        stops early when the next die cannot be played; duplicates across
        branches are left for the caller to remove.
        """
        if not dice or not self.has_checkers_in_play(player):
            return [DANCE]
        d, rest = dice[0], dice[1:]
        backman = self.backman(player)
        on_bar = self.owner(BAR) == player
        sequences = []
        for i in range(BAR, GOAL, -1):
            if on_bar and i != BAR:
                continue
            # the rearmost checker may bear off with a larger die
            if i == backman and backman <= HOME_BOARD and i < d:
                d = backman
            # no bearing off before every checker is home
            if backman > HOME_BOARD and i == d:
                continue
            if i < d:
                continue
            if self.movable(i, i - d, player):
                step = MoveStep(i, i - d, self.hittable(i - d, player))
                branch = self.copy()
                branch.mov(i, i - d, player)
                for tail in branch.listup(rest, player):
                    sequences.append(MoveSequence((step,) + tail.steps))
        if not sequences:
            return [DANCE]
        return sequences


# ==============================================================================
# POSITION CONSTRUCTION
# ==============================================================================

def initial_position() -> Position:
    """Create the standard backgammon starting position.

    Standard setup, each side on its own points:
    2 on the 24-point, 5 on the 13, 3 on the 8 and 5 on the 6.
    """
    return Position(np.array(_STARTING_SLOTS, dtype=np.int32))


def empty_position() -> Position:
    """Create a position with no checkers."""
    return Position()


# ==============================================================================
# MOVE GENERATION
# ==============================================================================

def unique_moves(moves: Sequence[MoveSequence]) -> List[MoveSequence]:
    """Collapse sequences that read the same in notation.

    For each notation the smallest sequence in canonical order is kept.
    The result is sorted.
    """
    by_notation: Dict[str, MoveSequence] = {}
    for move in moves:
        key = move.notation()
        kept = by_notation.get(key)
        if kept is None or move < kept:
            by_notation[key] = move
    return sorted(by_notation.values())


def filter_moves(moves: Sequence[MoveSequence]) -> List[MoveSequence]:
    """Apply the rule that as much of the roll as possible must be played.

    Only sequences using the most dice survive. When only one die can be
    played, the largest distance must be moved. If nothing can be played the
    result is the single empty sequence.
    """
    if not moves:
        return [DANCE]
    max_moves = max(len(m) for m in moves)
    if max_moves == 0:
        return [DANCE]
    use_all = [m for m in moves if len(m) == max_moves]
    if max_moves == 1:
        max_roll = max(m.steps[0].distance for m in use_all)
        return [m for m in use_all if m.steps[0].distance == max_roll]
    return use_all


def generate_moves(position: Position, player: Player, dice: Dice) -> List[MoveSequence]:
    """Generate all legal plays of ``dice`` for ``player``.

    Args:
        position: Position in White's coordinates
        player: Player to move
        dice: Rolled dice

    Returns:
        Sorted legal move sequences, in ``player``'s coordinates
    """
    view = position.reversed(player)
    candidates: List[MoveSequence] = []
    for ordering in die_orderings(dice):
        candidates.extend(view.listup(ordering, player))
    return filter_moves(unique_moves(candidates))


def apply_move(position: Position, player: Player, move: MoveSequence) -> Position:
    """Play a move sequence and return the new position.

    Args:
        position: Position in White's coordinates
        player: Player making the move
        move: Steps in ``player``'s coordinates

    Returns:
        New position in White's coordinates
    """
    view = position.reversed(player)
    for step in move:
        view.mov(step.from_point, step.to_point, player)
    return view.reversed(player)


# ==============================================================================
# POSITION QUERIES
# ==============================================================================

def pip_count(position: Position, player: Player) -> int:
    """Calculate pip count for a player.

    Pip count = sum of (point_number x num_checkers) in the player's own
    coordinates, with the bar counting as 25.
    """
    view = position.reversed(player)
    total = 0
    for point in range(1, BAR + 1):
        if view.owner(point) == player:
            total += point * abs(int(view.slots[point]))
    return total


def checkers_on_bar(position: Position, player: Player) -> int:
    """Get number of checkers on the bar for a player."""
    slot = BAR if player == Player.WHITE else OPP_BAR
    return abs(int(position.slots[slot]))


def checkers_borne_off(position: Position, player: Player) -> int:
    """Get number of checkers borne off for a player."""
    slot = GOAL if player == Player.WHITE else OPP_GOAL
    return abs(int(position.slots[slot]))


# ==============================================================================
# BOARD DISPLAY (for debugging)
# ==============================================================================

def board_to_string(position: Position) -> str:
    """Convert position to a simple per-point table.

    Args:
        position: Position to display (White's coordinates)

    Returns:
        Multi-line text
    """
    lines = []
    lines.append(f"White pip count: {pip_count(position, Player.WHITE)}")
    lines.append(f"Black pip count: {pip_count(position, Player.BLACK)}")
    for player in (Player.WHITE, Player.BLACK):
        lines.append(
            f"{player.name.title()} on bar: {checkers_on_bar(position, player)}, "
            f"borne off: {checkers_borne_off(position, player)}"
        )
    lines.append("")

    lines.append("Point | White | Black")
    lines.append("------+-------+------")

    names = {GOAL: "OFF W", BAR: "BAR W", OPP_GOAL: "OFF B", OPP_BAR: "BAR B"}
    for slot in [BAR] + list(range(24, 0, -1)) + [GOAL, OPP_BAR, OPP_GOAL]:
        occupant = position.get(slot)
        white = occupant[1] if occupant and occupant[0] == Player.WHITE else 0
        black = occupant[1] if occupant and occupant[0] == Player.BLACK else 0
        name = names.get(slot, f"{slot:2d}   ")
        lines.append(f"{name}|  {white:2d}   |  {black:2d}")

    return "\n".join(lines)
