"""Canonical text encoding of a full game state.

Format::

    XGID=<board>:<level>:<owner>:<player>:<dice>:<wscore>:<bscore>:<crawford>:<length>:<max_level>[:<result>]

- board: one character per slot, slots 0..26 then 27 (see ``board.py``).
  ``A``-``O`` are 1-15 White checkers, ``a``-``o`` 1-15 Black checkers,
  ``-`` an empty slot. Shorter strings are accepted; the two goal slots are
  always recomputed as 15 minus the checkers found elsewhere.
- owner: ``1`` White, ``-1`` Black, ``0`` centered.
- player: ``1`` White, ``0`` Black, empty when nobody is to act.
- dice: two digits when dice are on the board, ``D`` while a double is
  offered, ``R`` when a roll is pending that the owner/player pair does not
  imply, ``N`` when no roll is pending although it does, empty otherwise.
  With an empty field the pending roll is derived as
  ``owner == opponent(player)``, the situation right after a take.
- result: only present once a game is decided; signed points, positive for
  White.

The string is the controller's identity: two states serialize identically
exactly when they behave identically, which makes it the evaluator's cache key.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from bgequity.core.board import GOAL, NUM_CHECKERS, NUM_SLOTS, OPP_GOAL, Position
from bgequity.core.cube import CubeState, MatchState
from bgequity.core.errors import InvalidStateStringError
from bgequity.core.types import Dice, GameResult, GameState, Player

if TYPE_CHECKING:
    from bgequity.core.game import GameController


PREFIX = "XGID="


@dataclass
class XgidFields:
    """Decoded contents of a state string."""
    position: Position
    cube: CubeState
    player: Optional[Player]
    dice: Optional[Dice]
    awaiting_roll: bool
    match: MatchState
    result: Optional[GameResult]


# ==============================================================================
# ENCODING
# ==============================================================================


def _slot_char(position: Position, slot: int) -> str:
    occupant = position.get(slot)
    if occupant is None:
        return "-"
    player, count = occupant
    base = "A" if player == Player.WHITE else "a"
    return chr(ord(base) + count - 1)


def _implied_roll(cube: CubeState, player: Optional[Player]) -> bool:
    """Whether a pending roll follows from the cube owner and player alone."""
    return player is not None and cube.owner == player.opponent()


def to_xgid(game: "GameController") -> str:
    """Serialize a controller to its canonical state string."""
    board = "".join(_slot_char(game.position, slot) for slot in range(NUM_SLOTS))

    cube = game.cube
    owner = {Player.WHITE: "1", Player.BLACK: "-1", None: "0"}[cube.owner]
    player = {Player.WHITE: "1", Player.BLACK: "0", None: ""}[game.player]

    state = game.state()
    implied = _implied_roll(cube, game.player)
    if state == GameState.TO_MOVE:
        dice = f"{game.dice[0]}{game.dice[1]}"
    elif state == GameState.DOUBLED:
        dice = "D"
    elif game.awaiting_roll and not implied:
        dice = "R"
    elif not game.awaiting_roll and implied:
        dice = "N"
    else:
        dice = ""

    match = game.match
    fields = [
        board,
        str(cube.level),
        owner,
        player,
        dice,
        str(match.white_score),
        str(match.black_score),
        "1" if match.crawford else "0",
        str(match.length),
        str(cube.max_level),
    ]
    if game.result is not None:
        sign = 1 if game.result.winner == Player.WHITE else -1
        fields.append(str(sign * game.result.points))
    return PREFIX + ":".join(fields)


# ==============================================================================
# DECODING
# ==============================================================================


def _parse_board(text: str) -> Position:
    if len(text) > NUM_SLOTS:
        raise InvalidStateStringError(f"Board field too long: {text!r}")
    position = Position()
    for slot, char in enumerate(text):
        if char == "-":
            continue
        if "A" <= char <= "O":
            position.set(slot, Player.WHITE, ord(char) - ord("A") + 1)
        elif "a" <= char <= "o":
            position.set(slot, Player.BLACK, ord(char) - ord("a") + 1)
        else:
            raise InvalidStateStringError(f"Bad board character {char!r} at slot {slot}")

    for player, goal in ((Player.WHITE, GOAL), (Player.BLACK, OPP_GOAL)):
        if position.get(goal) is not None and position.owner(goal) != player:
            raise InvalidStateStringError(f"Slot {goal} holds the wrong color")
        elsewhere = position.checker_total(player) - abs(int(position.slots[goal]))
        if elsewhere > NUM_CHECKERS:
            raise InvalidStateStringError(f"{player} has {elsewhere} checkers")
        position.set(goal, player, NUM_CHECKERS - elsewhere)
    return position


def _parse_int(text: str, name: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise InvalidStateStringError(f"Bad {name} field: {text!r}") from None


def parse_xgid(text: str) -> XgidFields:
    """Decode a state string into its fields.

    Raises:
        InvalidStateStringError: If the string is malformed
    """
    if text.startswith(PREFIX):
        text = text[len(PREFIX):]
    fields = text.split(":")
    if len(fields) not in (10, 11):
        raise InvalidStateStringError(f"Expected 10 or 11 fields, got {len(fields)}")

    position = _parse_board(fields[0])

    owners = {"1": Player.WHITE, "-1": Player.BLACK, "0": None}
    if fields[2] not in owners:
        raise InvalidStateStringError(f"Bad cube owner field: {fields[2]!r}")
    players = {"1": Player.WHITE, "0": Player.BLACK, "": None}
    if fields[3] not in players:
        raise InvalidStateStringError(f"Bad player field: {fields[3]!r}")
    player = players[fields[3]]

    code = fields[4]
    dice = None
    if len(code) == 2 and code.isdigit():
        dice = (int(code[0]), int(code[1]))
        if not all(1 <= d <= 6 for d in dice):
            raise InvalidStateStringError(f"Bad dice field: {code!r}")
    elif code not in ("", "D", "R", "N"):
        raise InvalidStateStringError(f"Bad dice field: {code!r}")
    if fields[7] not in ("0", "1"):
        raise InvalidStateStringError(f"Bad crawford field: {fields[7]!r}")

    level = _parse_int(fields[1], "cube level")
    max_level = _parse_int(fields[9], "max level")
    if level < 0 or max_level < 0:
        raise InvalidStateStringError(
            f"Cube levels must be non-negative, got {level} and max {max_level}"
        )
    length = _parse_int(fields[8], "match length")
    if length < 1:
        raise InvalidStateStringError(f"Match length must be at least 1, got {length}")
    white_score = _parse_int(fields[5], "white score")
    black_score = _parse_int(fields[6], "black score")
    for score in (white_score, black_score):
        if not 0 <= score <= length:
            raise InvalidStateStringError(
                f"Score {score} outside 0..{length} for match length {length}"
            )

    cube = CubeState(
        owner=owners[fields[2]],
        level=level,
        offered=code == "D",
        max_level=max_level,
    )
    match = MatchState(
        length=length,
        white_score=white_score,
        black_score=black_score,
        crawford=fields[7] == "1",
    )

    if code == "R":
        awaiting_roll = True
    elif code == "":
        awaiting_roll = _implied_roll(cube, player)
    else:
        awaiting_roll = False

    result = None
    if len(fields) == 11:
        points = _parse_int(fields[10], "result")
        if points == 0:
            raise InvalidStateStringError("Result field must be non-zero")
        winner = Player.WHITE if points > 0 else Player.BLACK
        result = GameResult(winner=winner, points=abs(points))

    return XgidFields(
        position=position,
        cube=cube,
        player=player,
        dice=dice,
        awaiting_roll=awaiting_roll,
        match=match,
        result=result,
    )
