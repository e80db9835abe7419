"""
Monte Carlo Tree Search (MCTS) algorithm.

This module implements the core MCTS algorithm with the four standard phases:
1. Selection: Descend from the root by UCT until reaching a node without children
2. Expansion: Attach every generated move of a non-terminal leaf
3. Simulation: Play random moves from one of the new children
4. Backpropagation: Update statistics from that node up to the root

A search runs for a fixed number of iterations on a private copy of the
input state. With more than one worker, independent trees are searched in
separate processes and their root statistics merged (root parallelization).
"""
from __future__ import annotations
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import random
import time

from tqdm import tqdm

from conquest_ai.core.actions import Move
from conquest_ai.core.moves import MoveGenerator
from conquest_ai.core.scoring import score
from conquest_ai.core.state import GameState, is_game_over, winner
from conquest_ai.mcts.config import MCTSConfig
from conquest_ai.mcts.node import MCTSNode, PlayoutResult, finite_or_zero

logger = logging.getLogger(__name__)


@dataclass
class RootStatistics:
    """Accumulated statistics of one root move."""
    move: Move
    visits: int = 0
    total_score: float = 0.0
    wins: int = 0

    @property
    def mean_score(self) -> float:
        if self.visits == 0:
            return 0.0
        return finite_or_zero(self.total_score / self.visits)

    @property
    def win_rate(self) -> float:
        if self.visits == 0:
            return 0.0
        return finite_or_zero(self.wins / self.visits)

    def value(self, scoring_mode: str) -> float:
        return self.win_rate if scoring_mode == "win_rate" else self.mean_score


def mcts_search(
    state: GameState,
    player_name: Optional[str] = None,
    config: Optional[MCTSConfig] = None,
    rng: Optional[random.Random] = None,
    progress: bool = False
) -> Tuple[MCTSNode, Dict[str, Any]]:
    """
    Run Monte Carlo Tree Search from a state.

    This function runs the full MCTS algorithm:
    1. Create a root node from a copy of the state
    2. Repeatedly run selection, expansion, simulation, and backpropagation
    3. Return the root so callers can rank its children

    Args:
        state: Current game state (not modified)
        player_name: Player whose outcome is maximised (defaults to the current player)
        config: MCTS configuration parameters
        rng: Random source for dice, allocation variants and playouts
        progress: Whether to show a progress bar

    Returns:
        Tuple of (root node, search statistics)
    """
    # Use default config if none provided
    if config is None:
        config = MCTSConfig()
    if rng is None:
        rng = random.Random()

    player_name = player_name if player_name is not None else state.current_player
    generator = MoveGenerator.from_config(config)

    # Create the root node
    root = MCTSNode(state=state.clone(), config=config)

    # Track statistics
    stats: Dict[str, Any] = {
        "iterations": 0,
        "max_depth": 0,
        "total_simulation_steps": 0,
        "time_elapsed": 0.0,
        "stopped_early": False,
    }

    start_time = time.time()

    # Main MCTS loop
    for _ in tqdm(range(config.iterations), desc="Searching", disable=not progress, leave=False):
        # Deadline is only checked between iterations
        if config.time_limit is not None and time.time() - start_time > config.time_limit:
            stats["stopped_early"] = True
            logger.info("Time limit reached after %d iterations", stats["iterations"])
            break

        # 1. Selection
        leaf = select_node(root)

        # 2. Expansion
        node_to_explore = expand_node(leaf, generator, rng)

        # 3. Simulation
        result, steps = simulate_game(node_to_explore, player_name, config, generator, rng)

        # 4. Backpropagation
        backpropagate(node_to_explore, result)

        stats["iterations"] += 1
        stats["total_simulation_steps"] += steps
        stats["max_depth"] = max(stats["max_depth"], steps)

    stats["time_elapsed"] = time.time() - start_time
    stats["node_count"] = count_nodes(root)
    stats["root_children"] = len(root.children)
    stats["iterations_per_second"] = stats["iterations"] / max(0.001, stats["time_elapsed"])
    stats["average_simulation_steps"] = stats["total_simulation_steps"] / max(1, stats["iterations"])

    logger.debug(
        "Search finished: %d iterations, %d nodes, %.3fs",
        stats["iterations"], stats["node_count"], stats["time_elapsed"]
    )
    return root, stats


def select_node(root: MCTSNode) -> MCTSNode:
    """
    Descend from the root to a node with no children.

    At each level the child with the highest UCT score is chosen; unvisited
    children score infinity and are therefore tried first.

    Args:
        root: Root node of the MCTS tree

    Returns:
        Leaf of the explored tree
    """
    current = root
    while current.children:
        current = current.select_child()
    return current


def expand_node(node: MCTSNode, generator: MoveGenerator, rng: random.Random) -> MCTSNode:
    """
    Expand a leaf and pick the node to simulate from.

    A non-terminal leaf receives one child per generated move, and a random
    child is returned. Terminal leaves are returned unchanged.

    Args:
        node: Leaf selected by `select_node`
        generator: Move generator
        rng: Random source

    Returns:
        Node to run the simulation from
    """
    if not node.children and not generator.is_terminal(node.state):
        node.expand(generator.generate_moves(node.state, rng))
    if node.children:
        return rng.choice(node.children)
    return node


def simulate_game(
    node: MCTSNode,
    player_name: Optional[str],
    config: MCTSConfig,
    generator: Optional[MoveGenerator] = None,
    rng: Optional[random.Random] = None
) -> Tuple[PlayoutResult, int]:
    """
    Run a random playout from a node.

    With `config.cycle_turns` each ply plays one random move for the current
    phase and then advances the turn (reinforcement, battle, next player),
    stopping when the game is decided. Otherwise the playout stays in the
    current phase and stops once it is exhausted. Either way at most
    `config.max_depth` plies are played.

    Args:
        node: Node to simulate from
        player_name: Player whose outcome is evaluated
        config: MCTS configuration parameters
        generator: Move generator (built from the config if omitted)
        rng: Random source

    Returns:
        Tuple of (simulation result, number of plies)
    """
    generator = generator or MoveGenerator.from_config(config)
    rng = rng or random.Random()
    state = node.state

    steps = 0
    if config.cycle_turns:
        while not is_game_over(state) and steps < config.max_depth:
            moves = generator.legal_moves(state, rng)
            if moves:
                state = generator.apply_move(state, rng.choice(moves), rng)
            state = state.advance_turn()
            steps += 1
    else:
        while not generator.is_terminal(state) and steps < config.max_depth:
            moves = generator.legal_moves(state, rng)
            if not moves:
                break
            state = generator.apply_move(state, rng.choice(moves), rng)
            steps += 1

    return evaluate_state(state, player_name, config), steps


def evaluate_state(state: GameState, player_name: Optional[str], config: MCTSConfig) -> PlayoutResult:
    """
    Turn a final playout state into a result.

    The payoff is the heuristic score for `player_name`. The playout counts
    as a win if the game was decided in that player's favour, or, when it is
    still open, if that player out-scores every other surviving player.

    Args:
        state: State reached by the playout
        player_name: Player to evaluate for
        config: MCTS configuration parameters

    Returns:
        Simulation result
    """
    player_name = player_name if player_name is not None else state.current_player
    own = score(state, player_name, config.weights)

    decided_by = winner(state)
    if decided_by is not None:
        return PlayoutResult(score=own, won=decided_by == player_name)

    if state.get_player(player_name) is None:
        return PlayoutResult(score=own, won=False)

    rivals = [
        score(state, other.name, config.weights)
        for other in state.alive_players if other.name != player_name
    ]
    return PlayoutResult(score=own, won=all(own > rival for rival in rivals))


def backpropagate(node: MCTSNode, result: PlayoutResult) -> None:
    """
    Update statistics up the tree.

    This function implements the backpropagation phase of MCTS.
    It updates the visit count and score for each node in the path
    from the simulated node to the root.

    Args:
        node: Node to start backpropagation from
        result: Simulation result
    """
    current = node
    while current is not None:
        current.update(result)
        current = current.parent


def count_nodes(node: MCTSNode) -> int:
    """
    Count the total number of nodes in the tree.

    Args:
        node: Root node of the tree

    Returns:
        Total number of nodes
    """
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        count += 1
        stack.extend(current.children)
    return count


def get_principal_variation(root: MCTSNode, max_depth: int = 10) -> List[Tuple[Move, float]]:
    """
    Get the principal variation (most visited path) from the root.

    This is useful for analysis and debugging.

    Args:
        root: Root node of the MCTS tree
        max_depth: Maximum depth to explore

    Returns:
        List of (move, value) pairs representing the principal variation
    """
    result = []
    current = root
    depth = 0

    while current.children and depth < max_depth:
        best_child = max(current.children, key=lambda c: c.visits)
        if best_child.move is not None:
            result.append((best_child.move, best_child.exploitation()))
        current = best_child
        depth += 1

    return result


def root_statistics(root: MCTSNode) -> List[RootStatistics]:
    """Collect the statistics of each root child, in generation order."""
    return [
        RootStatistics(move=child.move, visits=child.visits,
                       total_score=child.total_score, wins=child.wins)
        for child in root.children if child.move is not None
    ]


def merge_root_statistics(runs: Sequence[Sequence[RootStatistics]]) -> List[RootStatistics]:
    """
    Merge root statistics from independent searches.

    Statistics of identical moves are summed. Moves keep the order in which
    they were first seen.

    Args:
        runs: Root statistics of each search

    Returns:
        Merged statistics
    """
    merged: Dict[Move, RootStatistics] = {}
    for run in runs:
        for entry in run:
            total = merged.get(entry.move)
            if total is None:
                merged[entry.move] = RootStatistics(
                    move=entry.move, visits=entry.visits,
                    total_score=entry.total_score, wins=entry.wins
                )
            else:
                total.visits += entry.visits
                total.total_score += entry.total_score
                total.wins += entry.wins
    return list(merged.values())


def split_iterations(iterations: int, workers: int) -> List[int]:
    """Split an iteration budget as evenly as possible over workers."""
    workers = max(1, min(workers, iterations))
    base, extra = divmod(iterations, workers)
    return [base + (1 if idx < extra else 0) for idx in range(workers)]


def _search_worker(
    state: GameState,
    player_name: Optional[str],
    config: MCTSConfig,
    seed: int
) -> Tuple[List[RootStatistics], Dict[str, Any]]:
    root, stats = mcts_search(state, player_name, config, random.Random(seed))
    return root_statistics(root), stats


def parallel_search(
    state: GameState,
    player_name: Optional[str] = None,
    config: Optional[MCTSConfig] = None,
    rng: Optional[random.Random] = None,
    progress: bool = False
) -> Tuple[List[RootStatistics], Dict[str, Any]]:
    """
    Search independent trees in worker processes and merge their roots.

    The iteration budget is split across `config.num_workers` trees. Each
    tree gets its own seed drawn from `rng`, so a seeded search remains
    reproducible.

    Args:
        state: Current game state (not modified)
        player_name: Player whose outcome is maximised
        config: MCTS configuration parameters
        rng: Random source used to seed the workers
        progress: Whether to show a progress bar over finished trees

    Returns:
        Tuple of (merged root statistics, combined search statistics)
    """
    config = config or MCTSConfig()
    rng = rng or random.Random()

    budgets = split_iterations(config.iterations, config.num_workers)
    seeds = [rng.getrandbits(32) for _ in budgets]
    configs = [replace(config, iterations=budget, num_workers=1) for budget in budgets]

    logger.info("Root-parallel search over %d workers", len(budgets))
    with ProcessPoolExecutor(max_workers=len(budgets)) as executor:
        results = list(tqdm(
            executor.map(
                _search_worker,
                [state] * len(budgets),
                [player_name] * len(budgets),
                configs,
                seeds,
            ),
            total=len(budgets), desc="Searching", disable=not progress, leave=False
        ))

    merged = merge_root_statistics([root_stats for root_stats, _ in results])
    stats: Dict[str, Any] = {
        "workers": len(budgets),
        "iterations": sum(s["iterations"] for _, s in results),
        "node_count": sum(s["node_count"] for _, s in results),
        "max_depth": max(s["max_depth"] for _, s in results),
        "total_simulation_steps": sum(s["total_simulation_steps"] for _, s in results),
        "time_elapsed": max(s["time_elapsed"] for _, s in results),
        "stopped_early": any(s["stopped_early"] for _, s in results),
        "root_children": len(merged),
    }
    stats["iterations_per_second"] = stats["iterations"] / max(0.001, stats["time_elapsed"])
    stats["average_simulation_steps"] = stats["total_simulation_steps"] / max(1, stats["iterations"])
    return merged, stats
