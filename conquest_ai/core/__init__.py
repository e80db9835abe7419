"""
Conquest AI Core Package

This package contains the game model the search engine works on:
- Game state representation and turn helpers
- Moves (reinforcement allocations and attacks)
- Dice-based combat resolution
- Move generation with pluggable allocation policies
- Heuristic scoring
- Board definitions and JSON snapshots

All core components can be imported directly from this package.
"""

# Constants
from conquest_ai.core.constants import Phase, AI_TURN_STAGE, is_ai_turn

# Game state
from conquest_ai.core.state import (
    Country, Continent, Player, GameState,
    reinforcement_income, is_game_over, winner
)

# Moves
from conquest_ai.core.actions import (
    Move, ReinforceMove, AttackMove, create_move_from_dict
)

# Combat
from conquest_ai.core.combat import resolve_attack, roll_dice

# Move generation
from conquest_ai.core.moves import (
    MoveGenerator, CountryPriority, generate_moves, rank_countries,
    proportional_allocation, allocation_variations, top_k_allocations,
    make_allocation_policy
)

# Scoring
from conquest_ai.core.scoring import ScoringWeights, score, controlled_continents

# Boards and snapshots
from conquest_ai.core.maps import create_game, build_map
from conquest_ai.core.schema import (
    load_state, save_state, read_snapshot, snapshot_stage, state_from_dict, state_to_dict
)

__all__ = [
    # Constants
    'Phase', 'AI_TURN_STAGE', 'is_ai_turn',

    # State
    'Country', 'Continent', 'Player', 'GameState',
    'reinforcement_income', 'is_game_over', 'winner',

    # Moves
    'Move', 'ReinforceMove', 'AttackMove', 'create_move_from_dict',

    # Combat
    'resolve_attack', 'roll_dice',

    # Move generation
    'MoveGenerator', 'CountryPriority', 'generate_moves', 'rank_countries',
    'proportional_allocation', 'allocation_variations', 'top_k_allocations',
    'make_allocation_policy',

    # Scoring
    'ScoringWeights', 'score', 'controlled_continents',

    # Boards and snapshots
    'create_game', 'build_map',
    'load_state', 'save_state', 'read_snapshot', 'snapshot_stage', 'state_from_dict', 'state_to_dict',
]
