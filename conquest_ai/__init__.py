"""
Conquest AI - Monte Carlo Tree Search move advisor for territory-conquest games.

This package models a game snapshot (countries, players, continents, phase)
and recommends reinforcement allocations and attacks for the current player.
"""

__version__ = "0.1.0"
__author__ = "Conquest AI Team"

# Make key components available at package level
from conquest_ai.core.constants import Phase
from conquest_ai.core.state import GameState, Country, Continent, Player
from conquest_ai.core.actions import Move, ReinforceMove, AttackMove
from conquest_ai.mcts.agent import recommend, MCTSAgent, Recommendation
from conquest_ai.mcts.config import MCTSConfig

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))
