"""Filler player binary: read a turn, decide, write the reply.

Usage:
    # Run under the game VM (reads stdin, writes stdout)
    filler-ai --profile aggressive-expansion --time-budget-ms 200

    # Same thing without installing the console script
    python -m filler --profile defensive --log-level DEBUG

stdout is the protocol channel, so all logging goes to stderr. Settings not
given on the command line fall back to ``FILLER_*`` environment variables
(see :meth:`filler.models.EngineConfig.from_env`).
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TextIO

from .ai.evaluation_cache import EvaluationCache
from .ai.heuristic_ai import HeuristicAI
from .ai.heuristic_weights import load_trained_profiles_if_available
from .board_manager import BoardManager
from .errors import ConfigurationError, ProtocolError
from .models import EngineConfig, StrategyProfile, parse_profile
from .protocol import ProtocolReader, write_decision

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filler-ai",
        description="Heuristic Filler player speaking the VM's stdin/stdout protocol",
    )
    parser.add_argument(
        "--profile",
        type=str,
        choices=[p.value for p in StrategyProfile],
        help="Strategy weight profile (default: FILLER_PROFILE or balanced)",
    )
    parser.add_argument(
        "--time-budget-ms",
        type=int,
        help="Per-turn decision budget in milliseconds (default: unbounded)",
    )
    parser.add_argument(
        "--cache-size",
        type=int,
        help="Maximum entries per evaluation cache tier",
    )
    parser.add_argument(
        "--no-pruning",
        action="store_true",
        help="Fully evaluate every candidate instead of bound pruning",
    )
    parser.add_argument(
        "--weights",
        type=str,
        help="JSON file with tuned weight profiles",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for stderr output",
    )
    return parser


def configure_logging(level: str, stream: TextIO | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        stream=stream or sys.stderr,
    )


def build_engine(args: argparse.Namespace) -> tuple[HeuristicAI, BoardManager]:
    """Create the engine and board manager sharing one evaluation cache."""
    load_trained_profiles_if_available(args.weights)
    config = EngineConfig.from_env(
        profile=parse_profile(args.profile) if args.profile else None,
        time_budget_ms=args.time_budget_ms,
        cache_max_entries=args.cache_size,
        use_pruning=False if args.no_pruning else None,
    )
    cache = EvaluationCache(max_entries=config.cache_max_entries)
    return HeuristicAI(config, cache=cache), BoardManager(cache=cache)


def run(
    reader: ProtocolReader,
    ai: HeuristicAI,
    manager: BoardManager,
    stdout: TextIO,
) -> int:
    """Play every turn in ``reader``; returns the number of turns answered."""
    turns = 0
    for turn in reader:
        board = manager.install(turn.board)
        decision = ai.select_move(board, turn.shape)
        write_decision(stdout, decision)
        turns += 1
        if decision.timed_out:
            logger.warning(
                "Turn %d hit the time budget after %d/%d candidates",
                turns,
                decision.candidates_evaluated,
                decision.candidates_considered,
            )
    return turns


def main(
    argv: list[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        ai, manager = build_engine(args)
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    logger.info(f"Starting Filler AI: {ai!r}")
    reader = ProtocolReader(stdin or sys.stdin)
    try:
        turns = run(reader, ai, manager, stdout or sys.stdout)
    except ProtocolError as e:
        logger.error(f"Bad input: {e.message}, line: {e.line_number}")
        return 1

    logger.info(f"Game over after {turns} turns; cache stats: {ai.cache.stats()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
