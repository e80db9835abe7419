"""
Moves for the conquest game.

This module defines the two kinds of move the engine recommends:
- Reinforcing: distributing the whole reserve over owned countries
- Attacking: attacking an adjacent enemy country from an owned one

Moves are immutable and hashable so statistics for the same move can be
merged across independent searches.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple


class Move(ABC):
    """
    Abstract base class for all moves.

    A move only describes what the player does; successor states are built
    by the move generator and the combat resolver.
    """

    @abstractmethod
    def validate(self, game_state) -> bool:
        """
        Validate if the move is legal for the current player.

        Args:
            game_state: Current state of the game

        Returns:
            True if the move is valid, False otherwise
        """

    @abstractmethod
    def to_dict(self) -> Dict:
        """
        Convert the move to a dictionary for serialization.

        Returns:
            Dictionary representation of the move
        """

    @abstractmethod
    def __str__(self) -> str:
        """Human-readable description, as shown to the player."""


@dataclass(frozen=True)
class ReinforceMove(Move):
    """
    Place the whole reserve.

    `allocations` pairs each candidate country with the troops it receives,
    in priority order. Zero allocations are kept so that variants of the
    same allocation line up.
    """
    allocations: Tuple[Tuple[str, int], ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, int]]) -> ReinforceMove:
        return cls(allocations=tuple((name, int(troops)) for name, troops in pairs))

    @property
    def total_troops(self) -> int:
        return sum(troops for _, troops in self.allocations)

    def validate(self, game_state) -> bool:
        player = game_state.current
        if player is None:
            return False
        if any(troops < 0 for _, troops in self.allocations):
            return False
        if self.total_troops != player.reserve:
            return False
        for name, _ in self.allocations:
            country = game_state.get_country(name)
            if country is None or country.owner != player.name:
                return False
        return True

    def to_dict(self) -> Dict:
        return {
            "type": "fortify",
            "allocations": [
                {"country": name, "troops": troops} for name, troops in self.allocations
            ],
        }

    def __str__(self) -> str:
        placed = [
            f"{troops} troop(s) to {name}" for name, troops in self.allocations if troops > 0
        ]
        return "Allocate: " + (", ".join(placed) if placed else "nothing")


@dataclass(frozen=True)
class AttackMove(Move):
    """Attack `target` from `source`. Records the attack, not its outcome."""
    source: str
    target: str

    def validate(self, game_state) -> bool:
        player = game_state.current
        attacking = game_state.get_country(self.source)
        defending = game_state.get_country(self.target)
        if player is None or attacking is None or defending is None:
            return False
        return (
            attacking.owner == player.name
            and attacking.army > 1
            and self.target in attacking.neighbours
            and defending.owner != player.name
        )

    def to_dict(self) -> Dict:
        return {"type": "attack", "from": self.source, "to": self.target}

    def __str__(self) -> str:
        return f"Attack from {self.source} to {self.target}"


def create_move_from_dict(data: Dict) -> Optional[Move]:
    """
    Create a move from its dictionary representation.

    Args:
        data: Dictionary produced by `Move.to_dict`

    Returns:
        Move object, or None if the type is not recognised
    """
    move_type = str(data.get("type", "")).lower()
    if move_type in ("fortify", "reinforce"):
        return ReinforceMove.from_pairs(
            (item["country"], item["troops"]) for item in data.get("allocations", [])
        )
    if move_type == "attack":
        return AttackMove(source=data["from"], target=data["to"])
    return None
