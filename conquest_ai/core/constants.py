"""
Constants for the conquest game.

This module defines the game constants used throughout the engine,
including turn phases, dice limits and reinforcement income rules.
"""
from enum import Enum
from typing import Dict, Final, Optional, Union


class Phase(Enum):
    """Enum representing the phases of a player's turn."""
    REINFORCEMENT = "Fortify"
    BATTLE = "Battle"

    @classmethod
    def parse(cls, value: Union["Phase", str, None]) -> Optional["Phase"]:
        """
        Resolve a phase from an enum member or a (case-insensitive) name.

        Accepts the UI stage names ("Fortify", "Battle") as well as the
        enum names ("REINFORCEMENT", "BATTLE").

        Args:
            value: Phase, string or None

        Returns:
            The matching Phase, or None if the value is not recognised
        """
        if value is None or isinstance(value, Phase):
            return value
        key = str(value).strip().lower()
        return PHASE_ALIASES.get(key)


PHASE_ALIASES: Final[Dict[str, Phase]] = {
    "fortify": Phase.REINFORCEMENT,
    "reinforce": Phase.REINFORCEMENT,
    "reinforcement": Phase.REINFORCEMENT,
    "battle": Phase.BATTLE,
    "attack": Phase.BATTLE,
}

# Stage reported by the UI while automated players move
AI_TURN_STAGE: Final[str] = "AI Turn"


def is_ai_turn(value: object) -> bool:
    """Check whether a stage name marks an automated turn."""
    return isinstance(value, str) and value.strip().lower() == AI_TURN_STAGE.lower()


# Dice
DIE_FACES: Final[int] = 6
MAX_ATTACKER_DICE: Final[int] = 3
MAX_DEFENDER_DICE: Final[int] = 2

# Reinforcement income
MIN_REINFORCEMENTS: Final[int] = 3
TERRITORIES_PER_REINFORCEMENT: Final[int] = 3

# Move generation
PRIORITY_ADJACENCY_WEIGHT: Final[int] = 2
DEFAULT_MAX_VARIATIONS: Final[int] = 1000
DEFAULT_TOP_K: Final[int] = 3
MAX_TOP_K: Final[int] = 4

# Scoring weights
TERRITORY_WEIGHT: Final[float] = 10.0
ARMY_WEIGHT: Final[float] = 2.0
CONTINENT_WEIGHT: Final[float] = 50.0
BORDER_WEIGHT: Final[float] = 5.0
