"""
Dice-based attack resolution.

An attack is resolved with the classic rule: the attacker rolls up to three
dice (one fewer than the armies in the source country), the defender up to
two. The highest rolls are compared pairwise and each loss removes one army
from the losing side, with ties going to the defender. A defender reduced to
zero armies is captured and the attacker moves in one army per die rolled.
"""
from __future__ import annotations
from typing import List, Tuple
import logging
import random

from conquest_ai.core.constants import DIE_FACES, MAX_ATTACKER_DICE, MAX_DEFENDER_DICE
from conquest_ai.core.actions import AttackMove
from conquest_ai.core.state import GameState

logger = logging.getLogger(__name__)


def attacker_dice(army: int) -> int:
    return max(0, min(army - 1, MAX_ATTACKER_DICE))


def defender_dice(army: int) -> int:
    return max(0, min(army, MAX_DEFENDER_DICE))


def roll_dice(count: int, rng: random.Random) -> List[int]:
    """
    Roll `count` dice.

    Args:
        count: Number of dice
        rng: Random source

    Returns:
        Rolls sorted from highest to lowest
    """
    return sorted((rng.randint(1, DIE_FACES) for _ in range(count)), reverse=True)


def resolve_attack(
    state: GameState,
    source: str,
    target: str,
    rng: random.Random
) -> Tuple[AttackMove, GameState]:
    """
    Resolve one attack from `source` into `target`.

    The input state is not modified. On capture the target changes owner,
    receives as many armies as the attacker rolled dice (taken from the
    source) and both players' area lists are updated before returning.

    Args:
        state: Game state before the attack
        source: Name of the attacking country
        target: Name of the defending country
        rng: Random source for the dice

    Returns:
        Tuple of (move report, resulting game state)
    """
    move = AttackMove(source=source, target=target)
    new_state = state.clone()

    attacking = new_state.get_country(source)
    defending = new_state.get_country(target)
    if attacking is None or defending is None:
        logger.debug("Attack %s -> %s references an unknown country", source, target)
        return move, new_state

    num_attack = attacker_dice(attacking.army)
    if num_attack == 0:
        return move, new_state
    num_defend = defender_dice(defending.army)

    attack_rolls = roll_dice(num_attack, rng)
    defend_rolls = roll_dice(num_defend, rng)

    for attack_roll, defend_roll in zip(attack_rolls, defend_rolls):
        if attack_roll > defend_roll:
            defending.army -= 1
        else:
            attacking.army -= 1

    if defending.army <= 0:
        _capture(new_state, source, target, num_attack)

    return move, new_state


def _capture(state: GameState, source: str, target: str, armies: int) -> None:
    """Transfer `target` to the owner of `source`, moving `armies` in."""
    attacking = state.countries[source]
    defending = state.countries[target]
    previous_owner = defending.owner

    defending.owner = attacking.owner
    defending.army = armies
    attacking.army -= armies

    conqueror = state.get_player(attacking.owner)
    if conqueror is not None and target not in conqueror.areas:
        conqueror.areas.append(target)

    loser = state.get_player(previous_owner)
    if loser is not None and target in loser.areas:
        loser.areas.remove(target)
