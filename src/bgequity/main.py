"""Command-line entrypoint for bgequity.

Evaluates one canonical state string and prints the equity of every legal
action, the equity of the state and, optionally, the explored tree.
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from bgequity import __version__
from bgequity.core.errors import BackgammonError
from bgequity.core.game import GameController
from bgequity.evaluation.evaluator import Evaluator


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="bgequity",
        description="Exact backgammon equity by full game-tree enumeration",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"bgequity {__version__}",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=0,
        help="Print the explored tree to this many action levels (0 = no tree)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log game results and cache statistics",
    )
    parser.add_argument(
        "xgid",
        help="State to evaluate, e.g. 'XGID=-A----------------------a-:0:0:1:11:0:0:0:1:10'",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint used by the `bgequity` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        game = GameController.from_xgid(args.xgid)
        evaluator = Evaluator()
        equities = evaluator.evaluate(game)
    except BackgammonError as exc:
        parser.exit(2, f"bgequity: error: {exc}\n")

    print(game)
    print()
    for action, equity in equities.actions:
        print(f"{str(action):<32} {equity:+.4f}")
    print(f"Equity: {equities.equity:+.4f}")

    if args.depth > 0:
        print()
        print(evaluator.gen_tree(game, args.depth).render(args.depth))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
