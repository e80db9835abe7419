"""
Move generation for the conquest game.

This module produces the candidate moves for the current player in the
current phase, each paired with the independent successor state it leads to.

Reinforcement candidates come from a pluggable allocation policy:
- "proportional": troops proportional to each country's priority, plus
  random one-troop transfers between countries
- "top_k": every way of splitting the reserve over the K countries with the
  most enemy neighbours

Battle candidates are every attack from an owned country with more than one
army into an adjacent enemy country.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union
import logging
import random

from conquest_ai.core.actions import Move, ReinforceMove, AttackMove
from conquest_ai.core.combat import resolve_attack
from conquest_ai.core.constants import (
    Phase, PRIORITY_ADJACENCY_WEIGHT, DEFAULT_MAX_VARIATIONS, DEFAULT_TOP_K, MAX_TOP_K
)
from conquest_ai.core.state import GameState, is_game_over

logger = logging.getLogger(__name__)

Allocation = List[Tuple[str, int]]
AllocationPolicy = Callable[[List["CountryPriority"], int, random.Random], List[Allocation]]


@dataclass
class CountryPriority:
    """How urgently an owned country wants reinforcements."""
    name: str
    enemy_neighbours: int
    enemy_armies: int

    @property
    def score(self) -> int:
        return PRIORITY_ADJACENCY_WEIGHT * self.enemy_neighbours + self.enemy_armies


def rank_countries(state: GameState, player_name: str) -> List[CountryPriority]:
    """
    Rank a player's countries by reinforcement priority.

    Priority is twice the number of enemy neighbours plus the armies those
    neighbours hold. The sort is stable, so ties keep map order.

    Args:
        state: Game state
        player_name: Player whose countries are ranked

    Returns:
        Priorities, highest first
    """
    ranked = []
    for country in state.owned_countries(player_name):
        enemies = state.enemy_neighbours(country, player_name)
        ranked.append(CountryPriority(
            name=country.name,
            enemy_neighbours=len(enemies),
            enemy_armies=sum(enemy.army for enemy in enemies),
        ))
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked


def proportional_allocation(ranked: Sequence[CountryPriority], reserve: int) -> Allocation:
    """
    Split the reserve in proportion to priority.

    Each country gets the floor of its share; leftover troops are handed out
    one at a time down the ranking (wrapping around) until the reserve is
    used up, so the allocation always sums to `reserve` exactly.

    Args:
        ranked: Priorities, highest first
        reserve: Troops to place

    Returns:
        List of (country, troops) in ranking order
    """
    if not ranked or reserve <= 0:
        return []

    total_score = sum(item.score for item in ranked)
    allocation = []
    for item in ranked:
        troops = (item.score * reserve) // total_score if total_score > 0 else 0
        allocation.append([item.name, troops])

    remaining = reserve - sum(troops for _, troops in allocation)
    idx = 0
    while remaining > 0:
        allocation[idx][1] += 1
        remaining -= 1
        idx = (idx + 1) % len(allocation)

    return [(name, troops) for name, troops in allocation]


def allocation_variations(
    initial: Allocation,
    count: int,
    rng: random.Random
) -> List[Allocation]:
    """
    Sample variants of an allocation by moving single troops around.

    Each attempt copies `initial` and moves one troop from one randomly chosen
    country to a different one. Attempts whose source has no troops are
    skipped and duplicates are dropped, so fewer than `count` allocations may
    come back.

    Args:
        initial: Starting allocation (always returned first)
        count: Maximum number of allocations, including `initial`
        rng: Random source

    Returns:
        Distinct allocations
    """
    variants: Dict[Tuple[Tuple[str, int], ...], Allocation] = {tuple(initial): list(initial)}
    if len(initial) < 2:
        return list(variants.values())

    for _ in range(count - 1):
        giver = rng.randrange(len(initial))
        taker = rng.randrange(len(initial) - 1)
        if taker >= giver:
            taker += 1
        if initial[giver][1] <= 0:
            continue

        variant = list(initial)
        variant[giver] = (initial[giver][0], initial[giver][1] - 1)
        variant[taker] = (initial[taker][0], initial[taker][1] + 1)
        variants.setdefault(tuple(variant), variant)

    return list(variants.values())


def compositions(total: int, parts: int) -> Iterator[Tuple[int, ...]]:
    """
    Enumerate every way of writing `total` as `parts` non-negative integers.

    Yields C(total + parts - 1, parts - 1) tuples in lexicographic order.
    """
    if parts <= 0:
        return
    if parts == 1:
        yield (total,)
        return
    for first in range(total + 1):
        for rest in compositions(total - first, parts - 1):
            yield (first,) + rest


def top_k_allocations(ranked: Sequence[CountryPriority], reserve: int, k: int) -> List[Allocation]:
    """
    Every split of the reserve over the K most exposed countries.

    Countries are ordered by enemy neighbour count; if the player owns fewer
    than K countries all of them are used.

    Args:
        ranked: Priorities of the player's countries
        reserve: Troops to place
        k: Number of countries to consider

    Returns:
        One allocation per composition
    """
    if not ranked or reserve <= 0 or k <= 0:
        return []
    exposed = sorted(ranked, key=lambda item: item.enemy_neighbours, reverse=True)[:k]
    names = [item.name for item in exposed]
    return [list(zip(names, split)) for split in compositions(reserve, len(names))]


def _proportional_policy(max_variations: int) -> AllocationPolicy:
    def policy(ranked, reserve, rng):
        initial = proportional_allocation(ranked, reserve)
        if not initial:
            return []
        return allocation_variations(initial, max_variations, rng)
    return policy


def _top_k_policy(k: int) -> AllocationPolicy:
    def policy(ranked, reserve, rng):
        return top_k_allocations(ranked, reserve, k)
    return policy


def make_allocation_policy(
    name: str,
    max_variations: int = DEFAULT_MAX_VARIATIONS,
    top_k: int = DEFAULT_TOP_K
) -> AllocationPolicy:
    """
    Build an allocation policy by name ("proportional" or "top_k").

    Raises:
        ValueError: If the name is unknown or `top_k` is out of range
    """
    if name == "proportional":
        return _proportional_policy(max_variations)
    if name == "top_k":
        if not 1 <= top_k <= MAX_TOP_K:
            raise ValueError(f"top_k must be between 1 and {MAX_TOP_K}")
        return _top_k_policy(top_k)
    raise ValueError(f"Unknown allocation policy: {name}")


class MoveGenerator:
    """
    Generates legal moves and successor states for the current player.

    The reinforcement allocation strategy is pluggable: pass a policy name
    understood by `make_allocation_policy` or any callable with the
    `AllocationPolicy` signature.
    """

    def __init__(
        self,
        allocation_policy: Union[str, AllocationPolicy] = "proportional",
        max_variations: int = DEFAULT_MAX_VARIATIONS,
        top_k: int = DEFAULT_TOP_K
    ):
        if callable(allocation_policy):
            self.allocation_policy = allocation_policy
        else:
            self.allocation_policy = make_allocation_policy(
                allocation_policy, max_variations=max_variations, top_k=top_k
            )

    @classmethod
    def from_config(cls, config) -> 'MoveGenerator':
        """Create a generator from an MCTSConfig."""
        return cls(
            allocation_policy=config.allocation_policy,
            max_variations=config.max_variations,
            top_k=config.top_k,
        )

    def legal_moves(self, state: GameState, rng: random.Random) -> List[Move]:
        """
        Get all candidate moves for the current player in the current phase.

        Never raises on malformed states; an unresolvable current player
        yields no moves.

        Args:
            state: Game state
            rng: Random source (used for allocation variants)

        Returns:
            List of candidate moves
        """
        player = state.current
        if player is None:
            return []

        if state.phase == Phase.REINFORCEMENT:
            if player.reserve <= 0:
                return []
            ranked = rank_countries(state, player.name)
            return [
                ReinforceMove.from_pairs(allocation)
                for allocation in self.allocation_policy(ranked, player.reserve, rng)
            ]

        if state.phase == Phase.BATTLE:
            return list(self._attacks(state, player.name))

        return []

    def _attacks(self, state: GameState, player_name: str) -> Iterator[AttackMove]:
        for country in state.countries.values():
            if country.owner != player_name or country.army <= 1:
                continue
            for enemy in state.enemy_neighbours(country, player_name):
                yield AttackMove(source=country.name, target=enemy.name)

    def apply_move(self, state: GameState, move: Move, rng: random.Random) -> GameState:
        """
        Build the successor state for one move.

        Args:
            state: Game state (not modified)
            move: Move to apply
            rng: Random source for combat

        Returns:
            New game state
        """
        if isinstance(move, AttackMove):
            _, new_state = resolve_attack(state, move.source, move.target, rng)
            return new_state

        new_state = state.clone()
        if isinstance(move, ReinforceMove):
            for name, troops in move.allocations:
                country = new_state.get_country(name)
                if country is not None:
                    country.army += troops
            player = new_state.current
            if player is not None:
                player.reserve = 0
        return new_state

    def generate_moves(self, state: GameState, rng: random.Random) -> List[Tuple[Move, GameState]]:
        """
        Get every candidate move with the successor state it produces.

        Each successor is an independent copy; siblings share nothing.

        Args:
            state: Game state
            rng: Random source

        Returns:
            List of (move, successor state)
        """
        results = []
        for move in self.legal_moves(state, rng):
            if isinstance(move, AttackMove):
                results.append(resolve_attack(state, move.source, move.target, rng))
            else:
                results.append((move, self.apply_move(state, move, rng)))
        logger.debug("Generated %d %s moves", len(results), state.phase.value)
        return results

    def has_moves(self, state: GameState) -> bool:
        """Check cheaply whether the current phase has any legal move."""
        player = state.current
        if player is None:
            return False
        if state.phase == Phase.REINFORCEMENT:
            return player.reserve > 0 and bool(state.owned_countries(player.name))
        if state.phase == Phase.BATTLE:
            return next(self._attacks(state, player.name), None) is not None
        return False

    def is_terminal(self, state: GameState) -> bool:
        """
        Check whether a state ends the search along this branch.

        A state is terminal when the game is decided or when the current
        phase is exhausted: no reserve left to place (Reinforcement) or no
        country able to attack (Battle).
        """
        return is_game_over(state) or not self.has_moves(state)


def generate_moves(
    state: GameState,
    rng: Optional[random.Random] = None,
    allocation_policy: Union[str, AllocationPolicy] = "proportional",
    **kwargs
) -> List[Tuple[Move, GameState]]:
    """
    Convenience wrapper around `MoveGenerator.generate_moves`.

    Args:
        state: Game state
        rng: Random source (a fresh unseeded one if omitted)
        allocation_policy: Reinforcement policy name or callable
        **kwargs: Extra `MoveGenerator` options (max_variations, top_k)

    Returns:
        List of (move, successor state)
    """
    generator = MoveGenerator(allocation_policy=allocation_policy, **kwargs)
    return generator.generate_moves(state, rng or random.Random())
