"""
Command-line interface for move recommendations.

Example usage:
    # Recommend reinforcements on a freshly dealt classic map
    conquest-recommend --demo --seed 7

    # Recommend attacks for a saved snapshot
    conquest-recommend --state game.json --phase Battle --iterations 2000
"""
import argparse
import logging
import random
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from conquest_ai.core.constants import Phase, is_ai_turn
from conquest_ai.core.maps import create_game
from conquest_ai.core.schema import read_snapshot, snapshot_stage, state_from_dict
from conquest_ai.mcts.agent import Recommendation, recommend
from conquest_ai.mcts.config import MCTSConfig

logger = logging.getLogger("conquest_ai")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recommend moves with Monte Carlo Tree Search")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--state", type=str, help="Path to a JSON game snapshot")
    source.add_argument("--demo", action="store_true", help="Deal a classic map and use it")
    parser.add_argument("--players", type=int, default=3,
                        help="Number of players for --demo (2-6)")
    parser.add_argument("--phase", type=str, default=None,
                        help="Fortify, Battle or 'AI Turn' (defaults to the snapshot's stage)")
    parser.add_argument("--iterations", type=int, default=1000,
                        help="Number of MCTS iterations")
    parser.add_argument("--depth", type=int, default=10, help="Maximum playout depth")
    parser.add_argument("--policy", choices=["proportional", "top_k"], default="proportional",
                        help="Reinforcement allocation policy")
    parser.add_argument("--top-k", type=int, default=3,
                        help="Countries considered by the top_k policy")
    parser.add_argument("--scoring", choices=["mean", "win_rate"], default="mean",
                        help="Exploitation metric used for selection and ranking")
    parser.add_argument("--top", type=int, default=5, help="Number of moves to show")
    parser.add_argument("--workers", type=int, default=1,
                        help="Independent root-parallel searches")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def render(recommendation: Recommendation, console: Console) -> None:
    """Print a recommendation as a table."""
    if not recommendation.moves:
        console.print("No recommendations available.")
        return

    table = Table(title=f"{recommendation.player} - {recommendation.phase.value}")
    table.add_column("#", justify="right")
    table.add_column("Move")
    table.add_column("Score", justify="right")
    table.add_column("Visits", justify="right")
    table.add_column("Win rate", justify="right")
    for idx, ranked in enumerate(recommendation.moves, start=1):
        table.add_row(
            str(idx), str(ranked.move), f"{ranked.score:.2f}",
            str(ranked.visits), f"{ranked.win_rate:.2f}"
        )
    console.print(table)
    console.print(
        f"Score range: {recommendation.min_score:.2f} - {recommendation.max_score:.2f}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the recommender with command-line arguments."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    console = Console()

    if is_ai_turn(args.phase):
        console.print("No recommendations during AI Turn.")
        return 0

    phase = Phase.parse(args.phase) if args.phase is not None else None
    if args.phase is not None and phase is None:
        logger.error("Unknown phase: %s", args.phase)
        return 2

    try:
        config = MCTSConfig(
            iterations=args.iterations,
            max_depth=args.depth,
            allocation_policy=args.policy,
            top_k=args.top_k,
            scoring_mode=args.scoring,
            top_n=args.top,
            num_workers=args.workers,
        )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    if args.demo:
        names = [f"Player {i + 1}" for i in range(args.players)]
        state = create_game(names, random_seed=args.seed)
    else:
        try:
            data = read_snapshot(args.state)
            if is_ai_turn(snapshot_stage(data)):
                console.print("No recommendations during AI Turn.")
                return 0
            state = state_from_dict(data)
        except (OSError, ValueError) as e:
            logger.error("Could not load snapshot %s: %s", args.state, e)
            return 2

    problems = state.ownership_errors()
    for problem in problems:
        logger.warning("Inconsistent snapshot: %s", problem)

    recommendation = recommend(
        state, phase=phase, config=config, rng=random.Random(args.seed),
        progress=args.progress
    )
    render(recommendation, console)
    return 0


if __name__ == "__main__":
    sys.exit(main())
