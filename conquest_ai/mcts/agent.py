"""
Move recommendations from Monte Carlo Tree Search.

This module provides the `recommend` function, which searches from a game
state and ranks the root moves, and the MCTSAgent class, a ready-to-use
advisor that keeps statistics about its searches.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union
import json
import logging
import random

from conquest_ai.core.actions import Move
from conquest_ai.core.constants import Phase
from conquest_ai.core.state import GameState
from conquest_ai.mcts.config import MCTSConfig
from conquest_ai.mcts.search import (
    RootStatistics, mcts_search, parallel_search, root_statistics,
    get_principal_variation
)

logger = logging.getLogger(__name__)


@dataclass
class RankedMove:
    """A recommended move with the statistics it was ranked by."""
    move: Move
    score: float
    visits: int
    total_score: float
    win_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "move": self.move.to_dict(),
            "description": str(self.move),
            "score": self.score,
            "visits": self.visits,
            "total_score": self.total_score,
            "win_rate": self.win_rate,
        }


@dataclass
class Recommendation:
    """
    Ranked moves for one position.

    `min_score` and `max_score` bound the values of every root move (not
    only the returned ones) so a UI can normalise the displayed scores.
    Empty `moves` means no legal move was found.
    """
    phase: Phase
    player: Optional[str]
    moves: List[RankedMove] = field(default_factory=list)
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.moves)

    def __len__(self) -> int:
        return len(self.moves)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "player": self.player,
            "moves": [ranked.to_dict() for ranked in self.moves],
            "min_score": self.min_score,
            "max_score": self.max_score,
        }


def rank_moves(
    entries: List[RootStatistics],
    scoring_mode: str = "mean",
    top_n: int = 5
) -> List[RankedMove]:
    """
    Rank root moves by the exploitation metric used during the search.

    Args:
        entries: Statistics of each root move
        scoring_mode: "mean" or "win_rate"
        top_n: Number of moves to keep

    Returns:
        Best moves first; equal values keep generation order
    """
    ordered = sorted(entries, key=lambda e: e.value(scoring_mode), reverse=True)
    return [
        RankedMove(
            move=entry.move,
            score=entry.value(scoring_mode),
            visits=entry.visits,
            total_score=entry.total_score,
            win_rate=entry.win_rate,
        )
        for entry in ordered[:top_n]
    ]


def recommend(
    state: GameState,
    phase: Union[Phase, str, None] = None,
    iterations: Optional[int] = None,
    config: Optional[MCTSConfig] = None,
    rng: Optional[random.Random] = None,
    top_n: Optional[int] = None,
    progress: bool = False
) -> Recommendation:
    """
    Recommend the best moves for the current player.

    The state is never modified; the search runs on a copy set to `phase`.

    Args:
        state: Current game state
        phase: Phase to search in (defaults to the state's phase)
        iterations: Iteration budget (overrides the config); a budget below
            one searches nothing and gives an empty recommendation
        config: MCTS configuration parameters
        rng: Random source; pass a seeded one for reproducible results
        top_n: Number of moves to return (overrides the config)
        progress: Whether to show a progress bar

    Returns:
        Recommendation with the ranked moves
    """
    config = config or MCTSConfig()
    if iterations is not None:
        if iterations <= 0:
            logger.warning("Iteration budget %d is not positive, no recommendation made", iterations)
            return Recommendation(phase=state.phase, player=state.current_player)
        config = replace(config, iterations=iterations)
    top_n = top_n if top_n is not None else config.top_n
    rng = rng or random.Random()

    search_phase = Phase.parse(phase) if phase is not None else state.phase
    if search_phase is None:
        logger.warning("Unknown phase %r, no recommendation made", phase)
        return Recommendation(phase=state.phase, player=state.current_player)

    root_state = state if search_phase == state.phase else state.with_phase(search_phase)
    player_name = root_state.current_player

    if config.num_workers > 1:
        entries, stats = parallel_search(
            root_state, player_name, config, rng, progress=progress
        )
    else:
        root, stats = mcts_search(root_state, player_name, config, rng, progress=progress)
        entries = root_statistics(root)
        stats["principal_variation"] = [str(m) for m, _ in get_principal_variation(root)]

    recommendation = Recommendation(phase=search_phase, player=player_name, stats=stats)
    if not entries:
        logger.warning("No possible moves found.")
        return recommendation

    values = [entry.value(config.scoring_mode) for entry in entries]
    recommendation.moves = rank_moves(entries, config.scoring_mode, top_n)
    recommendation.min_score = min(values)
    recommendation.max_score = max(values)
    return recommendation


class MCTSAgent:
    """
    Monte Carlo Tree Search advisor.

    This agent runs a search whenever a recommendation is requested and
    keeps statistics about its searches.
    """

    def __init__(
        self,
        config: Optional[MCTSConfig] = None,
        name: str = "MCTS Advisor",
        verbose: bool = False,
        seed: Optional[int] = None
    ):
        """
        Initialize an MCTS agent.

        Args:
            config: MCTS configuration parameters
            name: Name of the agent
            verbose: Whether to print a summary after each search
            seed: Seed for the agent's random source
        """
        self.config = config or MCTSConfig()
        self.name = name
        self.verbose = verbose
        self.rng = random.Random(seed)

        # Statistics from the most recent search
        self.last_stats: Dict[str, Any] = {}
        self.last_recommendation: Optional[Recommendation] = None

        # History of all recommendations
        self.history: List[Recommendation] = []

    def recommend(
        self,
        state: GameState,
        phase: Union[Phase, str, None] = None,
        iterations: Optional[int] = None,
        progress: bool = False
    ) -> Recommendation:
        """
        Recommend moves for the current player.

        Args:
            state: Current game state
            phase: Phase to search in (defaults to the state's phase)
            iterations: Iteration budget (defaults to the config)
            progress: Whether to show a progress bar

        Returns:
            Recommendation with the ranked moves
        """
        recommendation = recommend(
            state, phase=phase, iterations=iterations, config=self.config,
            rng=self.rng, progress=progress
        )
        self.last_stats = recommendation.stats
        self.last_recommendation = recommendation
        self.history.append(recommendation)

        if self.verbose:
            self._print_search_info(recommendation)

        return recommendation

    def best_move(self, state: GameState, phase: Union[Phase, str, None] = None) -> Optional[Move]:
        """Get the single best move, or None if there is nothing to do."""
        recommendation = self.recommend(state, phase)
        return recommendation.moves[0].move if recommendation.moves else None

    def _print_search_info(self, recommendation: Recommendation) -> None:
        """
        Print information about the search.

        Args:
            recommendation: Result of the search
        """
        stats = recommendation.stats
        print(f"\n{self.name} ({recommendation.phase.value}, {recommendation.player})")
        print(f"Iterations: {stats.get('iterations', 0)}")
        print(f"Time: {stats.get('time_elapsed', 0.0):.3f}s")
        print(f"Nodes: {stats.get('node_count', 0)}")

        if not recommendation.moves:
            print("No recommendations available.")
            return

        print("\nTop moves:")
        for i, ranked in enumerate(recommendation.moves):
            print(f"{i+1}. {ranked.move} - {ranked.visits} visits, {ranked.score:.2f} value")

    def reset_statistics(self) -> None:
        """Reset all statistics."""
        self.last_stats = {}
        self.last_recommendation = None
        self.history = []

    def save_statistics(self, filename: str) -> None:
        """
        Save the recommendation history to a JSON file.

        Args:
            filename: Name of the file to save to
        """
        data = {
            "agent_name": self.name,
            "config": self.config.to_dict(),
            "history": [rec.to_dict() for rec in self.history],
            "total_recommendations": len(self.history),
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        return f"{self.name} (MCTS, {self.config.iterations} iterations)"
