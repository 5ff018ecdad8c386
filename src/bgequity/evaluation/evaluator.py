"""Exact equity evaluation by exhaustive game-tree search.

Every state reachable from the evaluated one is visited once: results are
memoized by canonical state string, so the work is bounded by the number of
distinct reachable states rather than the raw branching factor.

The search is a plain depth-first recursion, so it only terminates on acyclic
game trees (races, or contact positions where no hit can recur). When a state
is reached again while its own evaluation is still in progress, the
evaluation stops with CyclicPositionError.

Node types:
- INIT, END, MATCH_END: leaves, valued from the match equity table.
- TO_ROLL: chance node, probability-weighted average over the 21 rolls.
- TO_DOUBLE, DOUBLED, TO_MOVE: decision nodes for the player to act.

Equity is signed from White's side throughout, so White maximizes and Black
minimizes.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from bgequity.core.cube import match_equity
from bgequity.core.dice import ALL_DICE_ROLLS, DICE_PROBABILITIES
from bgequity.core.errors import CyclicPositionError
from bgequity.core.game import GameController
from bgequity.core.types import (
    DECLINE_DOUBLE,
    NO_ACTION,
    OFFER_DOUBLE,
    PASS_CUBE,
    RESET,
    TAKE_CUBE,
    Action,
    GameState,
    Player,
)

logger = logging.getLogger(__name__)

_LEAF_STATES = (GameState.INIT, GameState.END, GameState.MATCH_END)


# ==============================================================================
# RESULT TYPES
# ==============================================================================


@dataclass
class Equities:
    """Evaluation of one state.

    Attributes:
        actions: Each legal action with the equity of the state it leads to
        equity: Equity of the state itself
    """
    actions: List[Tuple[Action, float]]
    equity: float


@dataclass
class EvaluatorConfig:
    """Configuration for the exact evaluator.

    Attributes:
        recursion_limit: Minimum Python recursion limit while evaluating;
            every ply costs a few frames
        log_cache_stats: Log cache size and hit rate after each evaluation
    """
    recursion_limit: int = 20_000
    log_cache_stats: bool = True


@dataclass
class CacheInfo:
    """Memo table statistics."""
    size: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


@dataclass
class Tree:
    """Explored subtree materialized from the evaluator's cache.

    Attributes:
        root: State at this node
        children: Each action with the subtree it leads to
        equity: Equity of ``root``
    """
    root: GameController
    children: List[Tuple[Action, "Tree"]] = field(default_factory=list)
    equity: float = 0.0

    def render(self, max_depth: int, depth: int = 0) -> str:
        """Indented text listing of the tree down to ``max_depth`` action levels."""
        indent = "  " * depth
        lines = [f"{indent}{self.root.key()} {self.equity:+.4f}"]
        if depth < max_depth:
            for action, subtree in self.children:
                lines.append(f"{indent} {action}")
                lines.append(subtree.render(max_depth, depth + 1))
        return "\n".join(lines)


def best_for(player: Player, candidates: List[Tuple[Action, float]]) -> Tuple[Action, float]:
    """Pick the candidate best for ``player``: highest equity for White, lowest for Black."""
    if player == Player.WHITE:
        return max(candidates, key=lambda c: c[1])
    return min(candidates, key=lambda c: c[1])


# ==============================================================================
# EVALUATOR
# ==============================================================================


class Evaluator:
    """Memoized exact solver.

    The cache belongs to this instance, is keyed by the canonical state
    string, and is never evicted. Not safe for concurrent use.

    Args:
        config: Evaluator configuration
    """

    def __init__(self, config: Optional[EvaluatorConfig] = None):
        self.config = config or EvaluatorConfig()
        self._table: Dict[str, Equities] = {}
        # Keys on the current recursion path
        self._in_progress: Set[str] = set()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._table)

    def cache_info(self) -> CacheInfo:
        return CacheInfo(size=len(self._table), hits=self._hits, misses=self._misses)

    def lookup(self, game: GameController) -> Optional[Equities]:
        """Cached evaluation of a state, if it has been computed."""
        return self._table.get(game.key())

    def evaluate(self, game: GameController) -> Equities:
        """Compute the equity of every legal action and of the state.

        The Python recursion limit is raised to ``config.recursion_limit`` for
        the duration of the call and restored afterwards.

        Args:
            game: State to evaluate (not modified)

        Returns:
            Equities for ``game``

        Raises:
            UnsupportedMatchLengthError: If a leaf's match is too long for the
                match equity table
            CyclicPositionError: If a state recurs inside its own game tree
        """
        old_limit = sys.getrecursionlimit()
        if old_limit < self.config.recursion_limit:
            sys.setrecursionlimit(self.config.recursion_limit)
        try:
            equities = self._eval(game)
        finally:
            sys.setrecursionlimit(old_limit)
        if self.config.log_cache_stats:
            info = self.cache_info()
            logger.debug(
                "Evaluated %s: equity %+.4f, %d cached states, hit rate %.1f%%",
                game.key(),
                equities.equity,
                info.size,
                100.0 * info.hit_rate,
            )
        return equities

    def best_action(self, game: GameController) -> Tuple[Action, float]:
        """Optimal action for the player to act and its equity.

        Only decision states have a best action; chance and leaf states raise
        ValueError.
        """
        state = game.state()
        if state not in (GameState.TO_DOUBLE, GameState.DOUBLED, GameState.TO_MOVE):
            raise ValueError(f"No decision to make in state {state.value}")
        return best_for(game.player, self.evaluate(game).actions)

    # --------------------------------------------------------------------------
    # Recursion
    # --------------------------------------------------------------------------

    def _eval(self, game: GameController) -> Equities:
        key = game.key()
        cached = self._table.get(key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1
        if key in self._in_progress:
            raise CyclicPositionError(f"State recurs while being evaluated: {key}")

        self._in_progress.add(key)
        try:
            state = game.state()
            if state == GameState.INIT:
                equities = self._eval_init(game)
            elif state in (GameState.END, GameState.MATCH_END):
                equities = self._eval_end(game)
            elif state == GameState.TO_DOUBLE:
                equities = self._eval_to_double(game)
            elif state == GameState.TO_ROLL:
                equities = self._eval_to_roll(game)
            elif state == GameState.DOUBLED:
                equities = self._eval_doubled(game)
            else:
                equities = self._eval_move(game)
        finally:
            self._in_progress.discard(key)

        self._table[key] = equities
        return equities

    def _child(self, game: GameController, action: Action) -> float:
        child = game.clone()
        child.act(action, strict=False)
        return self._eval(child).equity

    def _eval_init(self, game: GameController) -> Equities:
        return Equities([], match_equity(game.match))

    def _eval_end(self, game: GameController) -> Equities:
        equity = match_equity(game.match)
        action = RESET if game.state() == GameState.END else NO_ACTION
        return Equities([(action, equity)], equity)

    def _eval_to_double(self, game: GameController) -> Equities:
        no_double = self._child(game, DECLINE_DOUBLE)
        actions = [(DECLINE_DOUBLE, no_double)]
        if not game.can_double():
            return Equities(actions, no_double)
        actions.append((OFFER_DOUBLE, self._child(game, OFFER_DOUBLE)))
        return Equities(actions, best_for(game.player, actions)[1])

    def _eval_to_roll(self, game: GameController) -> Equities:
        actions = []
        total = 0.0
        for dice in ALL_DICE_ROLLS:
            action = Action.roll(dice)
            equity = self._child(game, action)
            total += DICE_PROBABILITIES[dice] * equity
            actions.append((action, equity))
        return Equities(actions, total)

    def _eval_doubled(self, game: GameController) -> Equities:
        actions = [
            (PASS_CUBE, self._child(game, PASS_CUBE)),
            (TAKE_CUBE, self._child(game, TAKE_CUBE)),
        ]
        return Equities(actions, best_for(game.player, actions)[1])

    def _eval_move(self, game: GameController) -> Equities:
        actions = [(action, self._child(game, action)) for action in game.actions()]
        return Equities(actions, best_for(game.player, actions)[1])

    # --------------------------------------------------------------------------
    # Tree export
    # --------------------------------------------------------------------------

    def gen_tree(self, game: GameController, max_depth: Optional[int] = None) -> Tree:
        """Materialize the explored subtree below ``game`` from the cache.

        No new evaluation happens: ``game`` must have been evaluated.

        Args:
            game: Root state
            max_depth: Number of action levels to expand (None for all)

        Raises:
            KeyError: If a state in the subtree is not cached
        """
        state = game.state()
        if state in _LEAF_STATES:
            return Tree(root=game.clone(), equity=match_equity(game.match))
        cached = self._table.get(game.key())
        if cached is None:
            raise KeyError(f"State not evaluated: {game.key()}")
        if max_depth == 0:
            return Tree(root=game.clone(), equity=cached.equity)

        next_depth = None if max_depth is None else max_depth - 1
        children = []
        for action, _ in cached.actions:
            child = game.clone()
            child.act(action, strict=False)
            children.append((action, self.gen_tree(child, next_depth)))
        return Tree(root=game.clone(), children=children, equity=cached.equity)
