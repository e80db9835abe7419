"""
Heuristic evaluation of a game state.

The score rewards territory, army strength and continent control, and
penalises border pressure (owned countries touching enemy countries). It is
used both as the playout payoff and to rank recommendations.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import math

from conquest_ai.core.constants import (
    Phase, TERRITORY_WEIGHT, ARMY_WEIGHT, CONTINENT_WEIGHT, BORDER_WEIGHT
)
from conquest_ai.core.state import GameState, Continent, Player


@dataclass
class ScoringWeights:
    """
    Weights of the evaluation terms.

    `border_phases` lists the phases in which border pressure is penalised.
    `exposed_army` optionally penalises each army unit stationed in a
    country that touches an enemy.
    """
    territory: float = TERRITORY_WEIGHT
    army: float = ARMY_WEIGHT
    continent: float = CONTINENT_WEIGHT
    border: float = BORDER_WEIGHT
    exposed_army: float = 0.0
    border_phases: Tuple[Phase, ...] = field(
        default_factory=lambda: (Phase.REINFORCEMENT, Phase.BATTLE)
    )

    def to_dict(self) -> dict:
        return {
            "territory": self.territory,
            "army": self.army,
            "continent": self.continent,
            "border": self.border,
            "exposed_army": self.exposed_army,
            "border_phases": [phase.value for phase in self.border_phases],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ScoringWeights':
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "border_phases" in values:
            values["border_phases"] = tuple(
                phase for phase in (Phase.parse(p) for p in values["border_phases"])
                if phase is not None
            )
        return cls(**values)


def controlled_continents(state: GameState, player: Player) -> List[Continent]:
    """
    Get the continents whose every member is owned by `player`.

    Args:
        state: Game state
        player: Player to check

    Returns:
        List of controlled continents
    """
    return [c for c in state.continents if state.controls_continent(player, c)]


def score(
    state: GameState,
    player_name: Optional[str] = None,
    weights: Optional[ScoringWeights] = None
) -> float:
    """
    Evaluate a state from one player's point of view.

    Missing players or countries never raise: an unknown player scores 0 and
    unknown areas are ignored.

    Args:
        state: Game state to evaluate
        player_name: Player to score for (defaults to the current player)
        weights: Evaluation weights

    Returns:
        Finite score
    """
    if state is None or not state.players:
        return 0.0
    weights = weights or ScoringWeights()
    player = state.get_player(player_name if player_name is not None else state.current_player)
    if player is None:
        return 0.0

    total_army = 0
    exposed_army = 0
    enemy_borders = 0
    for area in player.areas:
        country = state.get_country(area)
        if country is None:
            continue
        total_army += country.army
        enemies = len(state.enemy_neighbours(country, player.name))
        enemy_borders += enemies
        if enemies:
            exposed_army += country.army

    result = len(player.areas) * weights.territory
    result += total_army * weights.army
    result += len(controlled_continents(state, player)) * weights.continent
    if state.phase in weights.border_phases:
        result -= enemy_borders * weights.border
    result -= exposed_army * weights.exposed_army

    if not math.isfinite(result):
        return 0.0
    return float(result)
