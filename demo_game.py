#!/usr/bin/env python
"""
Demonstration script for the MCTS advisor playing every seat.

This script deals the classic map, then lets the advisor pick each player's
reinforcements and attacks for a number of turns, displaying the game state
progression.

Example usage:
    # Three players, five turns each
    python demo_game.py --players 3 --turns 5

    # Quick, reproducible run
    python demo_game.py --iterations 100 --seed 42
"""
import argparse
import random
import time

from conquest_ai.core.constants import Phase
from conquest_ai.core.maps import create_game
from conquest_ai.core.moves import MoveGenerator
from conquest_ai.core.scoring import score
from conquest_ai.core.state import GameState, is_game_over, winner
from conquest_ai.mcts.agent import MCTSAgent
from conquest_ai.mcts.config import MCTSConfig


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Watch the MCTS advisor play itself")
    parser.add_argument("--players", type=int, default=3,
                        help="Number of players (2-6)")
    parser.add_argument("--turns", type=int, default=5,
                        help="Turns per player")
    parser.add_argument("--iterations", type=int, default=300,
                        help="Number of MCTS iterations per decision")
    parser.add_argument("--max-attacks", type=int, default=5,
                        help="Maximum attacks per battle phase")
    parser.add_argument("--policy", choices=["proportional", "top_k"], default="proportional",
                        help="Reinforcement allocation policy")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")
    parser.add_argument("--verbose", action="store_true",
                        help="Print the advisor's search summaries")
    return parser.parse_args()


def display_game_state(state: GameState) -> None:
    """Print a summary line per player."""
    print("\n" + "=" * 60)
    print(f"{state.current_player} - {state.phase.value}")
    print("=" * 60)
    for player in state.players:
        armies = sum(state.countries[a].army for a in player.areas if a in state.countries)
        marker = " (current)" if player.name == state.current_player else ""
        print(f"  {player.name}: {len(player.areas)} areas, {armies} armies, "
              f"score {score(state, player.name):.0f}{marker}")


def play_turn(state: GameState, agent: MCTSAgent, generator: MoveGenerator,
              rng: random.Random, max_attacks: int) -> GameState:
    """Play one player's reinforcement and battle phases."""
    best = agent.best_move(state, Phase.REINFORCEMENT)
    if best is not None:
        print(f"  {best}")
        state = generator.apply_move(state, best, rng)
    state = state.advance_turn()

    for _ in range(max_attacks):
        if is_game_over(state):
            break
        best = agent.best_move(state, Phase.BATTLE)
        if best is None:
            break
        print(f"  {best}")
        state = generator.apply_move(state, best, rng)

    return state.advance_turn()


def run_demo(args) -> None:
    rng = random.Random(args.seed)
    names = [f"Player {i + 1}" for i in range(args.players)]
    state = create_game(names, random_seed=args.seed)

    config = MCTSConfig(iterations=args.iterations, allocation_policy=args.policy)
    agent = MCTSAgent(config=config, verbose=args.verbose, seed=args.seed)
    generator = MoveGenerator.from_config(config)

    display_game_state(state)
    start_time = time.time()
    for _ in range(args.turns * args.players):
        if is_game_over(state):
            break
        print(f"\n{state.current_player}'s turn:")
        state = play_turn(state, agent, generator, rng, args.max_attacks)
        display_game_state(state)

    print(f"\nFinished in {time.time() - start_time:.1f}s")
    decided = winner(state)
    if decided is not None:
        print(f"Winner: {decided}")


def main():
    """Run the demo with command-line arguments."""
    run_demo(parse_args())


if __name__ == "__main__":
    main()
