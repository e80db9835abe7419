"""
Monte Carlo Tree Search (MCTS) move advisor.

This package recommends moves by searching over possible move sequences.
The MCTS algorithm works by:

1. Selection: Starting from the root node, descend by UCT until reaching a node
   without children.
2. Expansion: Attach every generated move of that node, unless its state is terminal.
3. Simulation: From a random new child, play random moves up to a depth limit
   and score the final state.
4. Backpropagation: Update the statistics of all nodes in the path with the result.

The search can be configured with different iteration budgets, exploration
constants, scoring modes and reinforcement allocation policies.
"""

from conquest_ai.mcts.config import MCTSConfig
from conquest_ai.mcts.node import MCTSNode, PlayoutResult
from conquest_ai.mcts.search import (
    mcts_search,
    parallel_search,
    select_node,
    expand_node,
    simulate_game,
    backpropagate,
    RootStatistics,
    merge_root_statistics,
)
from conquest_ai.mcts.agent import MCTSAgent, Recommendation, RankedMove, recommend

# Default configuration
DEFAULT_CONFIG = MCTSConfig(
    iterations=1000,          # Number of MCTS iterations per recommendation
    max_depth=10,             # Maximum plies per playout
    scoring_mode="mean",      # Rank by mean playout score
    allocation_policy="proportional",
)

__all__ = [
    'MCTSAgent',
    'MCTSNode',
    'MCTSConfig',
    'PlayoutResult',
    'Recommendation',
    'RankedMove',
    'RootStatistics',
    'recommend',
    'mcts_search',
    'parallel_search',
    'select_node',
    'expand_node',
    'simulate_game',
    'backpropagate',
    'merge_root_statistics',
    'DEFAULT_CONFIG',
]
