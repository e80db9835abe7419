"""
Monte Carlo Tree Search Node.

This module defines the MCTSNode class which represents a node in the MCTS tree.
Each node owns a game state snapshot, statistics (visits, score, wins) and
its child nodes. Nodes start unexpanded and become expanded once children
are attached; they never revert.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import math

from conquest_ai.core.actions import Move
from conquest_ai.core.state import GameState
from conquest_ai.mcts.config import MCTSConfig


def finite_or_zero(value: float) -> float:
    """Replace NaN and infinities with 0."""
    return value if math.isfinite(value) else 0.0


@dataclass
class PlayoutResult:
    """Outcome of one simulation: the payoff and whether it counts as a win."""
    score: float
    won: bool = False


class MCTSNode:
    """
    A node in the Monte Carlo Tree Search.

    Each node represents a game state and tracks statistics about
    simulations that pass through it. The parent link is only followed
    during backpropagation and path reconstruction.
    """

    def __init__(
        self,
        state: GameState,
        parent: Optional['MCTSNode'] = None,
        move: Optional[Move] = None,
        config: Optional[MCTSConfig] = None,
    ):
        """
        Initialize an MCTS node.

        Args:
            state: The game state this node represents (owned by the node)
            parent: The parent node (None for root)
            move: The move that led to this state (None for root)
            config: MCTS configuration parameters
        """
        self.state = state
        self.parent = parent
        self.move = move
        self.config = config or MCTSConfig()

        # Node statistics
        self.visits = 0
        self.total_score = 0.0
        self.wins = 0
        self.children: List[MCTSNode] = []

    @property
    def is_expanded(self) -> bool:
        return bool(self.children)

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def mean_score(self) -> float:
        """Average playout score, 0 for an unvisited node."""
        if self.visits == 0:
            return 0.0
        return finite_or_zero(self.total_score / self.visits)

    @property
    def win_rate(self) -> float:
        if self.visits == 0:
            return 0.0
        return finite_or_zero(self.wins / self.visits)

    def exploitation(self) -> float:
        """Exploitation value according to the configured scoring mode."""
        if self.config.scoring_mode == "win_rate":
            return self.win_rate
        return self.mean_score

    def ucb_score(self, child: 'MCTSNode') -> float:
        """
        Calculate the UCT score for a child node.

        UCT = exploitation + exploration_weight * sqrt(ln(parent_visits) / child_visits)

        Args:
            child: Child node to calculate score for

        Returns:
            UCT score (infinite for an unvisited child)
        """
        # Unvisited children are always tried first
        if child.visits == 0:
            return MCTSConfig.INFINITE_VALUE

        exploration = math.sqrt(math.log(max(self.visits, 1)) / child.visits)
        return finite_or_zero(
            child.exploitation() + self.config.exploration_weight * exploration
        )

    def select_child(self) -> 'MCTSNode':
        """
        Select the child with the highest UCT value.

        Ties go to the earliest child.

        Returns:
            Selected child node
        """
        if not self.children:
            raise ValueError("Cannot select child from node with no children")
        return max(self.children, key=self.ucb_score)

    def add_child(self, move: Move, state: GameState) -> 'MCTSNode':
        child = MCTSNode(state=state, parent=self, move=move, config=self.config)
        self.children.append(child)
        return child

    def expand(self, generated: Sequence[Tuple[Move, GameState]]) -> List['MCTSNode']:
        """
        Attach one child per generated (move, state) pair.

        Expanding an already expanded node does nothing.

        Args:
            generated: Output of the move generator for this node's state

        Returns:
            The node's children
        """
        if not self.children:
            for move, state in generated:
                self.add_child(move, state)
        return self.children

    def update(self, result: PlayoutResult) -> None:
        """
        Record one simulation result.

        Args:
            result: Outcome of the simulation
        """
        self.visits += 1
        self.total_score += finite_or_zero(result.score)
        if result.won:
            self.wins += 1

    def path(self) -> List[Move]:
        """Moves from the root down to this node."""
        moves = []
        node = self
        while node is not None and node.move is not None:
            moves.append(node.move)
            node = node.parent
        return list(reversed(moves))

    def __str__(self) -> str:
        """
        Get a string representation of the node.

        Returns:
            String representation
        """
        return (f"MCTSNode(move={self.move}, "
                f"visits={self.visits}, "
                f"score={self.mean_score:.2f}, "
                f"wins={self.wins}, "
                f"children={len(self.children)})")
