"""
Board definitions and game setup.

This module provides the classic 42-territory world map and helpers to deal
it out to players, for demos and tests.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
import random

from conquest_ai.core.constants import Phase
from conquest_ai.core.state import Country, Continent, Player, GameState, reinforcement_income


# (continent, bonus, members)
CLASSIC_CONTINENTS: List[Tuple[str, int, List[str]]] = [
    ("North America", 5, [
        "Alaska", "Northwest Territory", "Greenland", "Alberta", "Ontario",
        "Quebec", "Western United States", "Eastern United States", "Central America",
    ]),
    ("South America", 2, ["Venezuela", "Peru", "Brazil", "Argentina"]),
    ("Europe", 5, [
        "Iceland", "Scandinavia", "Ukraine", "Great Britain", "Northern Europe",
        "Western Europe", "Southern Europe",
    ]),
    ("Africa", 3, [
        "North Africa", "Egypt", "East Africa", "Congo", "South Africa", "Madagascar",
    ]),
    ("Asia", 7, [
        "Ural", "Siberia", "Yakutsk", "Kamchatka", "Irkutsk", "Mongolia", "Japan",
        "Afghanistan", "China", "Middle East", "India", "Siam",
    ]),
    ("Australia", 2, ["Indonesia", "New Guinea", "Western Australia", "Eastern Australia"]),
]

CLASSIC_BORDERS: List[Tuple[str, str]] = [
    ("Alaska", "Northwest Territory"), ("Alaska", "Alberta"), ("Alaska", "Kamchatka"),
    ("Northwest Territory", "Alberta"), ("Northwest Territory", "Ontario"),
    ("Northwest Territory", "Greenland"),
    ("Greenland", "Ontario"), ("Greenland", "Quebec"), ("Greenland", "Iceland"),
    ("Alberta", "Ontario"), ("Alberta", "Western United States"),
    ("Ontario", "Quebec"), ("Ontario", "Western United States"),
    ("Ontario", "Eastern United States"),
    ("Quebec", "Eastern United States"),
    ("Western United States", "Eastern United States"),
    ("Western United States", "Central America"),
    ("Eastern United States", "Central America"),
    ("Central America", "Venezuela"),
    ("Venezuela", "Peru"), ("Venezuela", "Brazil"),
    ("Peru", "Brazil"), ("Peru", "Argentina"),
    ("Brazil", "Argentina"), ("Brazil", "North Africa"),
    ("North Africa", "Egypt"), ("North Africa", "East Africa"), ("North Africa", "Congo"),
    ("North Africa", "Western Europe"), ("North Africa", "Southern Europe"),
    ("Egypt", "East Africa"), ("Egypt", "Southern Europe"), ("Egypt", "Middle East"),
    ("East Africa", "Congo"), ("East Africa", "South Africa"),
    ("East Africa", "Madagascar"), ("East Africa", "Middle East"),
    ("Congo", "South Africa"),
    ("South Africa", "Madagascar"),
    ("Iceland", "Great Britain"), ("Iceland", "Scandinavia"),
    ("Great Britain", "Scandinavia"), ("Great Britain", "Northern Europe"),
    ("Great Britain", "Western Europe"),
    ("Scandinavia", "Northern Europe"), ("Scandinavia", "Ukraine"),
    ("Northern Europe", "Western Europe"), ("Northern Europe", "Southern Europe"),
    ("Northern Europe", "Ukraine"),
    ("Western Europe", "Southern Europe"),
    ("Southern Europe", "Ukraine"), ("Southern Europe", "Middle East"),
    ("Ukraine", "Ural"), ("Ukraine", "Afghanistan"), ("Ukraine", "Middle East"),
    ("Ural", "Siberia"), ("Ural", "China"), ("Ural", "Afghanistan"),
    ("Siberia", "Yakutsk"), ("Siberia", "Irkutsk"), ("Siberia", "Mongolia"),
    ("Siberia", "China"),
    ("Yakutsk", "Kamchatka"), ("Yakutsk", "Irkutsk"),
    ("Kamchatka", "Irkutsk"), ("Kamchatka", "Mongolia"), ("Kamchatka", "Japan"),
    ("Irkutsk", "Mongolia"),
    ("Mongolia", "China"), ("Mongolia", "Japan"),
    ("Afghanistan", "China"), ("Afghanistan", "India"), ("Afghanistan", "Middle East"),
    ("China", "India"), ("China", "Siam"),
    ("Middle East", "India"),
    ("India", "Siam"),
    ("Siam", "Indonesia"),
    ("Indonesia", "New Guinea"), ("Indonesia", "Western Australia"),
    ("New Guinea", "Western Australia"), ("New Guinea", "Eastern Australia"),
    ("Western Australia", "Eastern Australia"),
]

# Starting armies per player, by number of players
STARTING_ARMIES: Dict[int, int] = {2: 40, 3: 35, 4: 30, 5: 25, 6: 20}


def build_map(
    continents: Sequence[Tuple[str, int, Sequence[str]]],
    borders: Sequence[Tuple[str, str]]
) -> Tuple[Dict[str, Country], List[Continent]]:
    """
    Build unowned countries and continents from a board description.

    Borders are undirected; each one is added to both countries.

    Args:
        continents: (name, bonus, members) triples
        borders: Pairs of adjacent country names

    Returns:
        Tuple of (countries by name, continents)
    """
    countries: Dict[str, Country] = {}
    continent_list = []
    for name, bonus, members in continents:
        for member in members:
            countries.setdefault(member, Country(name=member))
        continent_list.append(Continent(name=name, areas=list(members), bonus=bonus))

    for first, second in borders:
        for a, b in ((first, second), (second, first)):
            country = countries.setdefault(a, Country(name=a))
            if b not in country.neighbours:
                country.neighbours.append(b)

    return countries, continent_list


def create_game(
    player_names: Sequence[str] = ("Player 1", "Player 2"),
    random_seed: Optional[int] = None,
    starting_armies: Optional[int] = None,
    phase: Phase = Phase.REINFORCEMENT
) -> GameState:
    """
    Deal the classic map out to players.

    Countries are shuffled and dealt round-robin with one army each; the
    remaining starting armies are then scattered over each player's
    countries. The first player starts with their reinforcement income in
    reserve.

    Args:
        player_names: Names of the players (2-6)
        random_seed: Seed for the deal
        starting_armies: Armies per player (defaults by player count)
        phase: Phase to start in

    Returns:
        A new game state
    """
    if not 2 <= len(player_names) <= 6:
        raise ValueError("Number of players must be between 2 and 6")

    rng = random.Random(random_seed)
    countries, continents = build_map(CLASSIC_CONTINENTS, CLASSIC_BORDERS)
    players = [Player(name=name) for name in player_names]

    names = list(countries)
    rng.shuffle(names)
    for idx, country_name in enumerate(names):
        player = players[idx % len(players)]
        country = countries[country_name]
        country.owner = player.name
        country.army = 1
        player.areas.append(country_name)

    armies = starting_armies or STARTING_ARMIES[len(players)]
    for player in players:
        for _ in range(max(0, armies - len(player.areas))):
            countries[rng.choice(player.areas)].army += 1

    state = GameState(
        countries=countries,
        players=players,
        current_player=players[0].name,
        continents=continents,
        phase=phase,
    )
    players[0].reserve = reinforcement_income(state, players[0])
    return state
