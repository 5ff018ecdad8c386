"""Tests for the game controller state machine."""

import pytest
from bgequity.core.board import BAR, NUM_CHECKERS, initial_position
from bgequity.core.errors import IllegalActionError
from bgequity.core.game import GameController
from bgequity.core.types import (
    DECLINE_DOUBLE,
    OFFER_DOUBLE,
    PASS_CUBE,
    RESET,
    TAKE_CUBE,
    Action,
    ActionKind,
    GameState,
    MoveSequence,
    MoveStep,
    Player,
)


MINIMAL_BOARD = "-A" + "-" * 22 + "a-"


def play(game, notation):
    game.act(Action.play(game.find_move(notation)))


def opening(game, dice=(2, 1), notation="13/11 6/5"):
    """Opening roll and White's reply."""
    game.act(Action.initial_roll(dice))
    play(game, notation)


# ==============================================================================
# STATE DERIVATION
# ==============================================================================


class TestStates:
    """Tests for state() and actions() in each state."""

    def test_new_game(self, new_game):
        assert new_game.state() == GameState.INIT
        assert new_game.player is None
        assert new_game.position == initial_position()
        actions = new_game.actions()
        assert len(actions) == 30
        assert all(a.kind == ActionKind.INITIAL_ROLL for a in actions)

    def test_initial_roll_white_starts(self, new_game):
        new_game.act(Action.initial_roll((2, 1)))
        assert new_game.state() == GameState.TO_MOVE
        assert new_game.player == Player.WHITE
        assert new_game.dice == (2, 1)
        assert len(new_game.actions()) == 15

    def test_initial_roll_black_starts(self, new_game):
        new_game.act(Action.initial_roll((1, 2)))
        assert new_game.player == Player.BLACK
        assert new_game.state() == GameState.TO_MOVE

    def test_initial_roll_tie(self, new_game):
        with pytest.raises(IllegalActionError):
            new_game.act(Action.initial_roll((3, 3)))
        assert new_game.state() == GameState.INIT

    def test_to_double_after_move(self, new_game):
        opening(new_game)
        assert new_game.player == Player.BLACK
        assert new_game.state() == GameState.TO_DOUBLE
        assert new_game.actions() == [OFFER_DOUBLE, DECLINE_DOUBLE]

    def test_decline_then_roll(self, new_game):
        opening(new_game)
        new_game.act(DECLINE_DOUBLE)
        assert new_game.state() == GameState.TO_ROLL
        assert len(new_game.actions()) == 21
        new_game.act(Action.roll((6, 4)))
        assert new_game.state() == GameState.TO_MOVE
        assert new_game.dice == (6, 4)

    def test_no_moves_outside_to_move(self, new_game):
        with pytest.raises(IllegalActionError):
            new_game.legal_moves()


# ==============================================================================
# CUBE ACTIONS
# ==============================================================================


class TestCubeActions:
    """Tests for offer, take and pass."""

    def test_offer(self, new_game):
        opening(new_game)
        new_game.act(OFFER_DOUBLE)
        assert new_game.state() == GameState.DOUBLED
        assert new_game.player == Player.WHITE
        assert new_game.actions() == [PASS_CUBE, TAKE_CUBE]

    def test_take(self, new_game):
        opening(new_game)
        new_game.act(OFFER_DOUBLE)
        new_game.act(TAKE_CUBE)
        assert new_game.cube.value == 2
        assert new_game.cube.owner == Player.WHITE
        assert not new_game.cube.offered
        assert new_game.player == Player.BLACK
        assert new_game.state() == GameState.TO_ROLL

    def test_pass_ends_single_point_match(self, new_game):
        opening(new_game)
        new_game.act(OFFER_DOUBLE)
        new_game.act(PASS_CUBE)
        assert new_game.result.winner == Player.BLACK
        assert new_game.result.points == 1
        assert not new_game.cube.offered
        assert new_game.state() == GameState.MATCH_END
        assert new_game.actions() == []

    def test_pass_in_longer_match(self):
        game = GameController.new(match_length=3)
        opening(game)
        game.act(OFFER_DOUBLE)
        game.act(PASS_CUBE)
        assert game.state() == GameState.END
        assert game.match.black_score == 1
        assert game.actions() == [RESET]

    def test_opponent_owned_cube(self, new_game):
        opening(new_game)
        new_game.act(OFFER_DOUBLE)
        new_game.act(TAKE_CUBE)
        new_game.act(Action.roll((3, 1)))
        play(new_game, "8/5 6/5")

        # White owns the cube and may redouble
        assert new_game.state() == GameState.TO_DOUBLE
        assert new_game.actions() == [OFFER_DOUBLE, DECLINE_DOUBLE]
        new_game.act(DECLINE_DOUBLE)
        new_game.act(Action.roll((4, 2)))
        play(new_game, "8/4 6/4")

        # Black may not double a cube White owns
        assert new_game.state() == GameState.TO_DOUBLE
        assert new_game.actions() == [DECLINE_DOUBLE]
        assert new_game.key().split(":")[4] == "N"
        assert GameController.from_xgid(new_game.key()) == new_game
        with pytest.raises(IllegalActionError):
            new_game.act(OFFER_DOUBLE)

    def test_crawford_game_has_no_double(self):
        game = GameController.from_xgid(
            "XGID=-b----E-C---eE---c-e----B---:0:0:1::2:0:1:3:10"
        )
        assert game.state() == GameState.TO_DOUBLE
        assert game.actions() == [DECLINE_DOUBLE]

    def test_max_level_has_no_double(self):
        game = GameController.from_xgid(
            "XGID=-b----E-C---eE---c-e----B---:2:1:1::0:0:0:5:2"
        )
        assert game.state() == GameState.TO_DOUBLE
        assert not game.can_double()
        assert game.actions() == [DECLINE_DOUBLE]


# ==============================================================================
# CHECKER PLAY AND GAME END
# ==============================================================================


class TestCheckerPlay:
    """Tests for moves, hits and finishing a game."""

    def test_hit_sends_checker_to_bar(self, new_game):
        opening(new_game, notation="24/22 24/23")
        new_game.act(DECLINE_DOUBLE)
        new_game.act(Action.roll((2, 1)))
        play(new_game, "6/3*")
        assert new_game.position.get(BAR) == (Player.WHITE, 1)
        assert new_game.player == Player.WHITE

    def test_find_move_unknown(self, new_game):
        new_game.act(Action.initial_roll((2, 1)))
        with pytest.raises(IllegalActionError):
            new_game.find_move("24/18")

    def test_strict_move_check(self, new_game):
        new_game.act(Action.initial_roll((2, 1)))
        illegal = MoveSequence((MoveStep(24, 18),))
        with pytest.raises(IllegalActionError):
            new_game.act(Action.play(illegal))

    def test_action_in_wrong_state(self, new_game):
        with pytest.raises(IllegalActionError):
            new_game.act(Action.roll((2, 1)))
        with pytest.raises(IllegalActionError):
            new_game.act(TAKE_CUBE)
        with pytest.raises(IllegalActionError):
            new_game.act(RESET)

    def test_bear_off_wins(self):
        game = GameController.from_xgid(f"XGID={MINIMAL_BOARD}:0:0:1:11:0:0:0:1:10")
        assert [m.notation() for m in game.legal_moves()] == ["1/0"]
        play(game, "1/0")
        assert game.result.winner == Player.WHITE
        assert game.result.points == 1
        assert game.state() == GameState.MATCH_END

    def test_gammon_with_cube(self):
        board = "-A" + "-" * 22 + "o-"
        game = GameController.from_xgid(f"XGID={board}:1:-1:1:11:0:0:0:5:10")
        play(game, "1/0")
        assert game.result.points == 4
        assert game.match.white_score == 4
        assert game.match.crawford
        assert game.state() == GameState.END

    def test_backgammon(self):
        board = "-A-o"
        game = GameController.from_xgid(f"XGID={board}:0:0:1:11:0:0:0:5:10")
        play(game, "1/0")
        assert game.result.points == 3

    def test_black_win_uses_cube(self):
        board = "-" * 23 + "Aa-"
        game = GameController.from_xgid(f"XGID={board}:1:1:0:11:0:0:0:5:10")
        play(game, "1/0")
        assert game.result.winner == Player.BLACK
        assert game.result.points == 2
        assert game.match.black_score == 2

    def test_reset(self):
        game = GameController.new(match_length=3, max_cube_level=4)
        opening(game)
        game.act(OFFER_DOUBLE)
        game.act(PASS_CUBE)
        game.act(RESET)
        assert game.state() == GameState.INIT
        assert game.position == initial_position()
        assert game.cube.level == 0
        assert game.cube.max_level == 4
        assert game.result is None
        assert game.match.black_score == 1


# ==============================================================================
# IDENTITY AND PLAYOUT
# ==============================================================================


class TestIdentity:
    """Tests for clone/key/equality."""

    def test_clone_is_independent(self, new_game):
        clone = new_game.clone()
        clone.act(Action.initial_roll((2, 1)))
        play(clone, "13/11 6/5")
        assert new_game.state() == GameState.INIT
        assert new_game.position == initial_position()

    def test_equal_states_hash_equal(self, new_game):
        other = GameController.new()
        assert other == new_game
        assert hash(other) == hash(new_game)
        other.act(Action.initial_roll((2, 1)))
        assert other != new_game

    def test_str(self, new_game):
        text = str(new_game)
        assert "State: init" in text
        assert "White pip count: 167" in text


class TestRandomPlayout:
    """Random games through the controller keep every invariant."""

    def _roll(self, rng):
        die1, die2 = rng.integers(1, 7, size=2)
        return (int(die1), int(die2))

    def _step(self, game, rng):
        state = game.state()
        if state == GameState.INIT:
            while True:
                dice = self._roll(rng)
                if dice[0] != dice[1]:
                    break
            game.act(Action.initial_roll(dice))
        elif state == GameState.TO_ROLL:
            game.act(Action.roll(self._roll(rng)))
        elif state == GameState.DOUBLED:
            game.act(TAKE_CUBE)
        else:
            actions = game.actions()
            game.act(actions[int(rng.integers(len(actions)))])

    @pytest.mark.parametrize("match_length", [1, 3])
    def test_playout(self, rng, match_length):
        game = GameController.new(match_length=match_length, max_cube_level=2)
        for _ in range(20_000):
            if game.state() == GameState.MATCH_END:
                break
            self._step(game, rng)
            assert game.position.checker_total(Player.WHITE) == NUM_CHECKERS
            assert game.position.checker_total(Player.BLACK) == NUM_CHECKERS
            assert GameController.from_xgid(game.key()).key() == game.key()
        assert game.state() == GameState.MATCH_END
