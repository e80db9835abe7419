"""
Game state representation for the conquest game.

This module defines the snapshot the search engine works on:
- Country: a territory with an owner, a garrison and its neighbours
- Continent: a named group of countries granting a control bonus
- Player: a player's owned areas and reserve troops
- GameState: the complete snapshot, with lookups and turn helpers

Every operation that changes a snapshot works on a clone. A state handed to
the engine is treated as read-only.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Any
import copy

from conquest_ai.core.constants import (
    Phase, MIN_REINFORCEMENTS, TERRITORIES_PER_REINFORCEMENT
)


@dataclass
class Country:
    """A territory on the map."""
    name: str
    owner: Optional[str] = None
    army: int = 0
    neighbours: List[str] = field(default_factory=list)


@dataclass
class Continent:
    """
    A group of countries.

    `bonus` is the reinforcement income for holding every member; the
    scorer uses its own fixed control weight.
    """
    name: str
    areas: List[str] = field(default_factory=list)
    bonus: int = 0


@dataclass
class Player:
    """A player, the areas they own and their unplaced reserve."""
    name: str
    areas: List[str] = field(default_factory=list)
    reserve: int = 0
    target_areas: Optional[int] = None  # Victory threshold (None = disabled)

    @property
    def is_alive(self) -> bool:
        return bool(self.areas)


@dataclass
class GameState:
    """
    Complete snapshot of a conquest game.

    Ownership is stored twice: on each Country (`owner`) and on each Player
    (`areas`). The two views must agree; see `ownership_errors`.
    """
    countries: Dict[str, Country] = field(default_factory=dict)
    players: List[Player] = field(default_factory=list)
    current_player: Optional[str] = None
    continents: List[Continent] = field(default_factory=list)
    phase: Phase = Phase.REINFORCEMENT

    def clone(self) -> 'GameState':
        """
        Create a deep copy of the game state.

        Returns:
            Independent copy of the game state
        """
        return copy.deepcopy(self)

    def with_phase(self, phase: Phase) -> 'GameState':
        """Return a clone of this state set to `phase`."""
        new_state = self.clone()
        new_state.phase = phase
        return new_state

    def get_country(self, name: str) -> Optional[Country]:
        return self.countries.get(name)

    def get_player(self, name: Optional[str]) -> Optional[Player]:
        """
        Look up a player by name.

        Args:
            name: Player name

        Returns:
            Player object, or None if no player has that name
        """
        if name is None:
            return None
        for player in self.players:
            if player.name == name:
                return player
        return None

    @property
    def current(self) -> Optional[Player]:
        """The current player, or None if the reference does not resolve."""
        return self.get_player(self.current_player)

    @property
    def alive_players(self) -> List[Player]:
        return [player for player in self.players if player.is_alive]

    def owned_countries(self, player_name: str) -> List[Country]:
        """
        Get the countries owned by a player, in map order.

        Args:
            player_name: Name of the player

        Returns:
            List of owned countries
        """
        return [c for c in self.countries.values() if c.owner == player_name]

    def enemy_neighbours(self, country: Country, player_name: str) -> List[Country]:
        """
        Get the neighbours of `country` not owned by `player_name`.

        Unknown neighbour names are skipped. Unowned countries count as
        enemies.
        """
        enemies = []
        for neighbour_name in country.neighbours:
            neighbour = self.countries.get(neighbour_name)
            if neighbour is not None and neighbour.owner != player_name:
                enemies.append(neighbour)
        return enemies

    def controls_continent(self, player: Player, continent: Continent) -> bool:
        """Check whether `player` owns every member of `continent`."""
        if not continent.areas:
            return False
        owned = set(player.areas)
        return all(area in owned for area in continent.areas)

    def ownership_errors(self) -> List[str]:
        """
        Check the ownership invariant.

        Every entry of a player's `areas` must name a country owned by that
        player, exactly once, and every owned country must appear in its
        owner's `areas`.

        Returns:
            List of human-readable violations (empty if consistent)
        """
        errors = []

        for player in self.players:
            seen: Set[str] = set()
            for area in player.areas:
                if area in seen:
                    errors.append(f"{player.name} lists {area} more than once")
                seen.add(area)
                country = self.countries.get(area)
                if country is None:
                    errors.append(f"{player.name} lists unknown country {area}")
                elif country.owner != player.name:
                    errors.append(
                        f"{player.name} lists {area} but it is owned by {country.owner}"
                    )

        for country in self.countries.values():
            if country.owner is None:
                continue
            owner = self.get_player(country.owner)
            if owner is None:
                errors.append(f"{country.name} is owned by unknown player {country.owner}")
            elif country.name not in owner.areas:
                errors.append(f"{country.name} is missing from {owner.name}'s areas")

        return errors

    def next_player(self) -> Optional[Player]:
        """
        Get the next surviving player after the current one.

        Returns:
            The next player holding at least one area, or None
        """
        if not self.players:
            return None
        start = 0
        for idx, player in enumerate(self.players):
            if player.name == self.current_player:
                start = idx
                break
        count = len(self.players)
        for offset in range(1, count + 1):
            candidate = self.players[(start + offset) % count]
            if candidate.is_alive:
                return candidate
        return None

    def advance_turn(self) -> 'GameState':
        """
        Advance to the next phase of play.

        Reinforcement moves on to Battle for the same player. Battle hands
        the turn to the next surviving player, whose reserve is refilled with
        their reinforcement income.

        Returns:
            New game state
        """
        new_state = self.clone()
        if new_state.phase == Phase.REINFORCEMENT:
            new_state.phase = Phase.BATTLE
            return new_state

        following = new_state.next_player()
        if following is not None:
            new_state.current_player = following.name
            following.reserve = reinforcement_income(new_state, following)
        new_state.phase = Phase.REINFORCEMENT
        return new_state

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the state to a JSON-compatible dictionary.

        Returns:
            Dictionary representation of the state
        """
        from conquest_ai.core.schema import state_to_dict
        return state_to_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameState':
        """
        Create a game state from a dictionary representation.

        Args:
            data: Dictionary in the snapshot format

        Returns:
            GameState object
        """
        from conquest_ai.core.schema import state_from_dict
        return state_from_dict(data)

    def __str__(self) -> str:
        lines = [f"GameState(phase={self.phase.value}, current={self.current_player})"]
        for player in self.players:
            army = sum(
                self.countries[a].army for a in player.areas if a in self.countries
            )
            lines.append(
                f"  {player.name}: {len(player.areas)} areas, {army} armies, "
                f"{player.reserve} in reserve"
            )
        return "\n".join(lines)


def reinforcement_income(state: GameState, player: Player) -> int:
    """
    Calculate the troops a player receives at the start of their turn.

    One troop per three territories (minimum three), plus the bonus of every
    continent the player controls.

    Args:
        state: Game state
        player: Player receiving reinforcements

    Returns:
        Number of reserve troops
    """
    if not player.areas:
        return 0
    income = max(MIN_REINFORCEMENTS, len(player.areas) // TERRITORIES_PER_REINFORCEMENT)
    for continent in state.continents:
        if state.controls_continent(player, continent):
            income += continent.bonus
    return income


def is_game_over(state: GameState) -> bool:
    """
    Check whether the game has been decided.

    The game is over when fewer than two players hold any area, or when a
    player has reached their victory threshold.
    """
    if len(state.alive_players) < 2:
        return True
    return winner(state) is not None


def winner(state: GameState) -> Optional[str]:
    """
    Get the name of the winning player, if any.

    Returns:
        Name of the last surviving player or the first player at or above
        their target, otherwise None
    """
    alive = state.alive_players
    if len(alive) == 1:
        return alive[0].name
    for player in alive:
        if player.target_areas is not None and len(player.areas) >= player.target_areas:
            return player.name
    return None
