"""Game and match controller.

The controller aggregates the position, dice, cube, match score and the
player to act, and exposes the game as a finite-state machine: ``state()``
says where the game is, ``actions()`` lists what may happen next and
``act()`` applies one of them.

State is never stored; it is derived from the fields on every query:

    MATCH_END  the match has a winner
    END        the single game is decided
    TO_MOVE    dice are on the board
    DOUBLED    a double awaits pass/take
    TO_ROLL    the player to act must roll
    TO_DOUBLE  a player is to act and may double before rolling
    INIT       nobody is to act yet (before the opening roll)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from bgequity.core.board import (
    Position,
    apply_move,
    board_to_string,
    generate_moves,
    initial_position,
)
from bgequity.core.cube import (
    DEFAULT_MAX_LEVEL,
    CubeState,
    MatchState,
    can_double_in_match,
    game_points,
    initial_cube,
    is_match_over,
    new_match,
    update_match_score,
)
from bgequity.core.dice import ALL_DICE_ROLLS, dice_to_string, initial_rolls
from bgequity.core.errors import IllegalActionError
from bgequity.core.types import (
    DECLINE_DOUBLE,
    OFFER_DOUBLE,
    PASS_CUBE,
    RESET,
    TAKE_CUBE,
    Action,
    ActionKind,
    Dice,
    GameResult,
    GameState,
    MoveSequence,
    Player,
    moves_to_actions,
)
from bgequity.core.xgid import parse_xgid, to_xgid

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class GameController:
    """Full game state, mutated only through :meth:`act`.

    Attributes:
        position: Checker placement (White's coordinates)
        dice: Dice on the board, None before rolling
        cube: Doubling cube
        awaiting_roll: The player to act has declined to double and must roll
        player: Player to act, None before the opening roll and after a game
        match: Match score
        result: Outcome of the current game once decided
    """
    position: Position = field(default_factory=initial_position)
    dice: Optional[Dice] = None
    cube: CubeState = field(default_factory=initial_cube)
    awaiting_roll: bool = False
    player: Optional[Player] = None
    match: MatchState = field(default_factory=MatchState)
    result: Optional[GameResult] = None

    # ==========================================================================
    # CONSTRUCTION
    # ==========================================================================

    @classmethod
    def new(
        cls,
        match_length: int = 1,
        max_cube_level: int = DEFAULT_MAX_LEVEL,
    ) -> "GameController":
        """Start a match from the standard position, before the opening roll."""
        return cls(cube=initial_cube(max_cube_level), match=new_match(match_length))

    @classmethod
    def from_xgid(cls, text: str) -> "GameController":
        """Build a controller from its canonical state string."""
        fields = parse_xgid(text)
        return cls(
            position=fields.position,
            dice=fields.dice,
            cube=fields.cube,
            awaiting_roll=fields.awaiting_roll,
            player=fields.player,
            match=fields.match,
            result=fields.result,
        )

    def clone(self) -> "GameController":
        """Independent copy; only the position is mutable and gets copied."""
        return replace(self, position=self.position.copy())

    # ==========================================================================
    # IDENTITY
    # ==========================================================================

    def key(self) -> str:
        """Canonical state string, also used as the evaluator's cache key."""
        return to_xgid(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameController):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    def state(self) -> GameState:
        """Derive the current state from the fields."""
        if is_match_over(self.match):
            return GameState.MATCH_END
        if self.result is not None:
            return GameState.END
        if self.dice is not None:
            return GameState.TO_MOVE
        if self.cube.offered:
            return GameState.DOUBLED
        if self.awaiting_roll:
            return GameState.TO_ROLL
        if self.player is not None:
            return GameState.TO_DOUBLE
        return GameState.INIT

    def can_double(self) -> bool:
        """True if the player to act may offer the cube now."""
        if self.player is None:
            return False
        return can_double_in_match(self.cube, self.player, self.match)

    def legal_moves(self) -> List[MoveSequence]:
        """Legal checker plays for the dice on the board."""
        if self.state() != GameState.TO_MOVE:
            raise IllegalActionError(f"No moves to play in state {self.state().value}")
        return generate_moves(self.position, self.player, self.dice)

    def find_move(self, notation: str) -> MoveSequence:
        """Look up the legal move written as ``notation`` (e.g. ``"13/11 6/5"``)."""
        for move in self.legal_moves():
            if move.notation() == notation:
                return move
        raise IllegalActionError(f"{notation!r} is not a legal move for {self.dice}")

    def actions(self) -> List[Action]:
        """Enumerate every action legal in the current state."""
        state = self.state()
        if state == GameState.INIT:
            return [Action.initial_roll(d) for d in initial_rolls()]
        if state == GameState.TO_ROLL:
            return [Action.roll(d) for d in ALL_DICE_ROLLS]
        if state == GameState.TO_MOVE:
            return moves_to_actions(self.legal_moves())
        if state == GameState.TO_DOUBLE:
            if self.can_double():
                return [OFFER_DOUBLE, DECLINE_DOUBLE]
            return [DECLINE_DOUBLE]
        if state == GameState.DOUBLED:
            return [PASS_CUBE, TAKE_CUBE]
        if state == GameState.END:
            return [RESET]
        return []

    # ==========================================================================
    # TRANSITIONS
    # ==========================================================================

    def act(self, action: Action, strict: bool = True) -> None:
        """Apply an action.

        Args:
            action: Action to apply
            strict: Check a MOVE against the generated legal moves. Callers
                that took the action from :meth:`actions` may skip this.

        Raises:
            IllegalActionError: If the action is not legal in this state
        """
        kind = action.kind
        if kind == ActionKind.INITIAL_ROLL:
            self._initial_roll(action.dice)
        elif kind == ActionKind.ROLL:
            self._roll(action.dice)
        elif kind == ActionKind.MOVE:
            self._move(action.move, strict)
        elif kind == ActionKind.DECLINE_DOUBLE:
            self._decline_double()
        elif kind == ActionKind.OFFER_DOUBLE:
            self._offer_double()
        elif kind == ActionKind.PASS_CUBE:
            self._pass()
        elif kind == ActionKind.TAKE_CUBE:
            self._take()
        elif kind == ActionKind.RESET:
            self._reset()
        else:
            raise IllegalActionError(f"{action} cannot be applied to a game")

    def _require(self, expected: GameState, action: str) -> None:
        state = self.state()
        if state != expected:
            raise IllegalActionError(f"Cannot {action} in state {state.value}")

    def _initial_roll(self, dice: Dice) -> None:
        self._require(GameState.INIT, "make the opening roll")
        white_die, black_die = dice
        if white_die == black_die:
            raise IllegalActionError(f"Opening roll {dice} is a tie and must be re-rolled")
        self.dice = dice
        self.player = Player.WHITE if white_die > black_die else Player.BLACK

    def _roll(self, dice: Dice) -> None:
        self._require(GameState.TO_ROLL, "roll")
        self.dice = dice
        self.awaiting_roll = False

    def _move(self, move: MoveSequence, strict: bool) -> None:
        self._require(GameState.TO_MOVE, "move")
        if strict and move not in self.legal_moves():
            raise IllegalActionError(f"{move} is not a legal move for {self.dice}")
        mover = self.player
        self.position = apply_move(self.position, mover, move)
        self.dice = None
        self.player = mover.opponent()
        self._check_end()

    def _decline_double(self) -> None:
        self._require(GameState.TO_DOUBLE, "decline to double")
        self.awaiting_roll = True

    def _offer_double(self) -> None:
        self._require(GameState.TO_DOUBLE, "double")
        if not self.can_double():
            raise IllegalActionError(f"{self.player} cannot double now")
        self.cube = self.cube.double(self.player)
        self.player = self.player.opponent()

    def _pass(self) -> None:
        self._require(GameState.DOUBLED, "pass")
        self.result = GameResult(winner=self.player.opponent(), points=self.cube.value)
        self.cube = replace(self.cube, offered=False)
        self._game_end()

    def _take(self) -> None:
        self._require(GameState.DOUBLED, "take")
        self.cube = self.cube.take()
        self.player = self.player.opponent()
        self.awaiting_roll = True

    def _reset(self) -> None:
        """Start the next game of the match from the standard position."""
        self._require(GameState.END, "reset")
        self.position = initial_position()
        self.dice = None
        self.cube = initial_cube(self.cube.max_level)
        self.awaiting_roll = False
        self.player = None
        self.result = None
        logger.debug("Next game, score %d-%d", self.match.white_score, self.match.black_score)

    def _check_end(self) -> None:
        for player in (Player.WHITE, Player.BLACK):
            finish = self.position.goal(player)
            if finish > 0:
                self.result = GameResult(winner=player, points=game_points(finish, self.cube))
                self._game_end()
                return

    def _game_end(self) -> None:
        self.player = None
        self.match = update_match_score(self.match, self.result.winner, self.result.points)
        logger.debug(
            "%s wins %d point(s), score %d-%d",
            self.result.winner,
            self.result.points,
            self.match.white_score,
            self.match.black_score,
        )

    # ==========================================================================
    # DISPLAY
    # ==========================================================================

    def __str__(self) -> str:
        lines = [f"State: {self.state().value}"]
        if self.player is not None:
            lines.append(f"Player to act: {self.player}")
        if self.dice is not None:
            lines.append(f"Dice: {dice_to_string(self.dice)}")
        lines.append(f"Cube: {self.cube.value} (owner: {self.cube.owner or 'centered'})")
        lines.append(
            f"Score: {self.match.white_score}-{self.match.black_score} "
            f"(match to {self.match.length}{', Crawford' if self.match.crawford else ''})"
        )
        if self.result is not None:
            lines.append(f"Result: {self.result.winner} wins {self.result.points}")
        lines.append(board_to_string(self.position))
        return "\n".join(lines)
