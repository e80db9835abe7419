#!/usr/bin/env python
"""
Tests for the Monte Carlo Tree Search advisor.
"""
import json
import math
import os
import random
import tempfile
import unittest

from conquest_ai.cli import main
from conquest_ai.core.actions import AttackMove, ReinforceMove
from conquest_ai.core.constants import Phase
from conquest_ai.core.maps import create_game
from conquest_ai.core.moves import MoveGenerator
from conquest_ai.core.schema import state_to_dict
from conquest_ai.core.state import Country, Player, GameState
from conquest_ai.mcts import (
    MCTSAgent, MCTSConfig, MCTSNode, PlayoutResult, RootStatistics,
    backpropagate, expand_node, mcts_search, merge_root_statistics,
    recommend, select_node, simulate_game
)
from conquest_ai.mcts.agent import rank_moves
from conquest_ai.mcts.search import evaluate_state, split_iterations


def small_config(**overrides) -> MCTSConfig:
    """Configuration small enough for unit tests."""
    params = dict(iterations=60, max_depth=4, max_variations=30)
    params.update(overrides)
    return MCTSConfig(**params)


def stuck_state() -> GameState:
    """Battle phase where the current player cannot attack."""
    return GameState(
        countries={
            "X": Country("X", "A", 1, ["Z"]),
            "Z": Country("Z", "B", 4, ["X"]),
        },
        players=[Player("A", ["X"]), Player("B", ["Z"])],
        current_player="A",
        phase=Phase.BATTLE,
    )


class TestMCTSNode(unittest.TestCase):
    """Test case for node statistics and UCT selection."""

    def setUp(self):
        self.state = stuck_state()
        self.root = MCTSNode(self.state)

    def test_unvisited_child_selected_first(self):
        visited = self.root.add_child(AttackMove("X", "Z"), self.state)
        fresh = self.root.add_child(AttackMove("X", "Y"), self.state)
        visited.visits, visited.total_score = 3, 300.0
        self.root.visits = 3
        self.assertEqual(self.root.ucb_score(fresh), math.inf)
        self.assertIs(self.root.select_child(), fresh)

    def test_uct_value(self):
        child = self.root.add_child(AttackMove("X", "Z"), self.state)
        self.root.visits = 10
        child.visits, child.total_score = 4, 20.0
        expected = 5.0 + math.sqrt(2) * math.sqrt(math.log(10) / 4)
        self.assertAlmostEqual(self.root.ucb_score(child), expected)

    def test_ties_go_to_first_child(self):
        first = self.root.add_child(AttackMove("X", "Z"), self.state)
        second = self.root.add_child(AttackMove("X", "Y"), self.state)
        for child in (first, second):
            child.visits, child.total_score = 2, 10.0
        self.root.visits = 4
        self.assertIs(self.root.select_child(), first)

    def test_select_without_children(self):
        with self.assertRaises(ValueError):
            self.root.select_child()

    def test_win_rate_mode(self):
        node = MCTSNode(self.state, config=MCTSConfig(scoring_mode="win_rate"))
        node.update(PlayoutResult(score=40.0, won=True))
        node.update(PlayoutResult(score=10.0, won=False))
        self.assertEqual(node.exploitation(), 0.5)
        self.assertEqual(node.mean_score, 25.0)

    def test_non_finite_scores_ignored(self):
        self.root.update(PlayoutResult(score=float("nan")))
        self.assertEqual(self.root.visits, 1)
        self.assertEqual(self.root.total_score, 0.0)

    def test_backpropagate_to_root(self):
        child = self.root.add_child(AttackMove("X", "Z"), self.state)
        grandchild = child.add_child(AttackMove("X", "Z"), self.state)
        backpropagate(grandchild, PlayoutResult(score=7.0, won=True))
        for node in (self.root, child, grandchild):
            self.assertEqual(node.visits, 1)
            self.assertEqual(node.total_score, 7.0)
            self.assertEqual(node.wins, 1)
        self.assertEqual(grandchild.depth, 2)
        self.assertEqual(len(grandchild.path()), 2)

    def test_expand_once(self):
        generated = [(AttackMove("X", "Z"), self.state), (AttackMove("X", "Y"), self.state)]
        self.root.expand(generated)
        self.root.expand(generated)
        self.assertEqual(len(self.root.children), 2)
        self.assertTrue(self.root.is_expanded)


class TestSearchSteps(unittest.TestCase):
    """Test case for the individual search phases."""

    def test_select_descends_to_leaf(self):
        state = stuck_state()
        root = MCTSNode(state)
        child = root.add_child(AttackMove("X", "Z"), state)
        self.assertIs(select_node(root), child)

    def test_terminal_leaf_not_expanded(self):
        root = MCTSNode(stuck_state())
        node = expand_node(root, MoveGenerator(), random.Random(0))
        self.assertIs(node, root)
        self.assertFalse(root.children)

    def test_expand_returns_new_child(self):
        state = create_game(["A", "B"], random_seed=4, phase=Phase.BATTLE)
        root = MCTSNode(state)
        node = expand_node(root, MoveGenerator(), random.Random(0))
        self.assertIn(node, root.children)

    def test_playout_depth_cap(self):
        state = create_game(["A", "B", "C"], random_seed=6)
        for cycle in (True, False):
            config = small_config(max_depth=3, cycle_turns=cycle)
            result, steps = simulate_game(MCTSNode(state), "A", config, rng=random.Random(1))
            self.assertLessEqual(steps, 3)
            self.assertTrue(math.isfinite(result.score))

    def test_decided_game_counts_as_win(self):
        state = stuck_state()
        state.countries["Z"].owner = "A"
        state.players[0].areas.append("Z")
        state.players[1].areas.clear()
        result = evaluate_state(state, "A", MCTSConfig())
        self.assertTrue(result.won)
        self.assertFalse(evaluate_state(state, "B", MCTSConfig()).won)

    def test_open_game_win_requires_outscoring(self):
        state = stuck_state()
        # A: 10 + 2 - 5 = 7, B: 10 + 8 - 5 = 13
        self.assertFalse(evaluate_state(state, "A", MCTSConfig()).won)
        self.assertTrue(evaluate_state(state, "B", MCTSConfig()).won)

    def test_search_statistics(self):
        state = create_game(["A", "B"], random_seed=2, phase=Phase.BATTLE)
        config = small_config(iterations=25)
        root, stats = mcts_search(state, config=config, rng=random.Random(2))
        self.assertEqual(stats["iterations"], 25)
        self.assertEqual(root.visits, 25)
        self.assertEqual(sum(child.visits for child in root.children), 25)
        self.assertEqual(stats["root_children"], len(root.children))
        self.assertGreater(stats["node_count"], len(root.children))


class TestRootStatistics(unittest.TestCase):

    def test_merge(self):
        first = AttackMove("X", "Z")
        second = AttackMove("Y", "Z")
        merged = merge_root_statistics([
            [RootStatistics(first, 2, 10.0, 1), RootStatistics(second, 1, 3.0, 0)],
            [RootStatistics(AttackMove("X", "Z"), 3, 5.0, 2)],
        ])
        self.assertEqual([entry.move for entry in merged], [first, second])
        self.assertEqual(merged[0].visits, 5)
        self.assertEqual(merged[0].total_score, 15.0)
        self.assertEqual(merged[0].wins, 3)
        self.assertEqual(merged[0].mean_score, 3.0)

    def test_split_iterations(self):
        self.assertEqual(split_iterations(10, 3), [4, 3, 3])
        self.assertEqual(split_iterations(2, 5), [1, 1])
        self.assertEqual(split_iterations(7, 1), [7])

    def test_rank_moves(self):
        entries = [
            RootStatistics(AttackMove("A", "B"), 2, 4.0),
            RootStatistics(AttackMove("C", "D"), 1, 9.0),
            RootStatistics(AttackMove("E", "F"), 4, 8.0),
        ]
        ranked = rank_moves(entries, "mean", top_n=2)
        self.assertEqual([r.move for r in ranked], [AttackMove("C", "D"), AttackMove("A", "B")])
        self.assertEqual([r.score for r in ranked], [9.0, 2.0])


class TestRecommend(unittest.TestCase):
    """Test case for the recommend entry point."""

    def test_ranked_and_bounded(self):
        state = create_game(["A", "B", "C"], random_seed=1)
        result = recommend(state, config=small_config(top_n=3), rng=random.Random(1))
        self.assertTrue(result)
        self.assertLessEqual(len(result), 3)
        scores = [ranked.score for ranked in result.moves]
        self.assertEqual(scores, sorted(scores, reverse=True))
        for value in scores:
            self.assertLessEqual(result.min_score, value)
            self.assertLessEqual(value, result.max_score)
        for ranked in result.moves:
            self.assertIsInstance(ranked.move, ReinforceMove)
            self.assertEqual(ranked.move.total_troops, state.current.reserve)

    def test_reproducible_with_seed(self):
        state = create_game(["A", "B", "C"], random_seed=9, phase=Phase.BATTLE)
        first = recommend(state, config=small_config(), rng=random.Random(123))
        second = recommend(state, config=small_config(), rng=random.Random(123))
        self.assertEqual(
            [(str(r.move), r.score, r.visits) for r in first.moves],
            [(str(r.move), r.score, r.visits) for r in second.moves],
        )

    def test_input_state_untouched(self):
        state = create_game(["A", "B"], random_seed=5)
        before = state_to_dict(state)
        recommend(state, phase="Battle", config=small_config(), rng=random.Random(0))
        recommend(state, phase="Fortify", config=small_config(), rng=random.Random(0))
        self.assertEqual(state_to_dict(state), before)

    def test_phase_override(self):
        state = create_game(["A", "B"], random_seed=3)
        result = recommend(state, phase=Phase.BATTLE, config=small_config(), rng=random.Random(3))
        self.assertEqual(result.phase, Phase.BATTLE)
        self.assertTrue(all(isinstance(r.move, AttackMove) for r in result.moves))
        self.assertEqual(state.phase, Phase.REINFORCEMENT)

    def test_no_moves(self):
        result = recommend(stuck_state(), config=small_config(), rng=random.Random(0))
        self.assertFalse(result)
        self.assertEqual(result.moves, [])
        self.assertIsNone(result.min_score)
        self.assertIsNone(result.max_score)

    def test_unknown_phase(self):
        result = recommend(create_game(random_seed=0), phase="Diplomacy", config=small_config())
        self.assertEqual(result.moves, [])

    def test_win_rate_scores(self):
        state = create_game(["A", "B"], random_seed=7, phase=Phase.BATTLE)
        config = small_config(scoring_mode="win_rate")
        result = recommend(state, config=config, rng=random.Random(7))
        for ranked in result.moves:
            self.assertGreaterEqual(ranked.score, 0.0)
            self.assertLessEqual(ranked.score, 1.0)

    def test_top_k_policy(self):
        state = create_game(["A", "B"], random_seed=8)
        config = small_config(allocation_policy="top_k", top_k=2)
        result = recommend(state, config=config, rng=random.Random(8))
        for ranked in result.moves:
            names = [name for name, _ in ranked.move.allocations]
            self.assertLessEqual(len(names), 2)

    def test_root_parallel(self):
        state = create_game(["A", "B"], random_seed=10, phase=Phase.BATTLE)
        config = small_config(iterations=20, num_workers=2)
        result = recommend(state, config=config, rng=random.Random(10))
        self.assertEqual(result.stats["workers"], 2)
        self.assertEqual(result.stats["iterations"], 20)
        self.assertGreater(result.stats["total_simulation_steps"], 0)
        self.assertIn("average_simulation_steps", result.stats)
        self.assertTrue(result)

    def test_non_positive_budget(self):
        state = create_game(["A", "B"], random_seed=12, phase=Phase.BATTLE)
        for budget in (0, -5):
            result = recommend(state, iterations=budget, rng=random.Random(0))
            self.assertEqual(result.moves, [])
            self.assertIsNone(result.max_score)


class TestMCTSConfig(unittest.TestCase):

    def test_validation(self):
        for bad in (dict(iterations=0), dict(max_depth=0), dict(top_k=5),
                    dict(scoring_mode="median"), dict(allocation_policy="greedy"),
                    dict(exploration_weight=-1.0), dict(time_limit=0)):
            with self.assertRaises(ValueError):
                MCTSConfig(**bad)

    def test_dict_conversion(self):
        config = MCTSConfig.from_dict({"iterations": 50, "weights": {"army": 1.0}, "unknown": 1})
        self.assertEqual(config.iterations, 50)
        self.assertEqual(config.weights.army, 1.0)
        data = config.to_dict()
        self.assertEqual(data["weights"]["army"], 1.0)
        self.assertNotIn("INFINITE_VALUE", data)

    def test_presets(self):
        self.assertLess(MCTSConfig.fast().iterations, MCTSConfig.default().iterations)
        self.assertGreater(MCTSConfig.deep().max_depth, MCTSConfig.default().max_depth)


class TestMCTSAgent(unittest.TestCase):

    def test_best_move_is_legal(self):
        state = create_game(["A", "B"], random_seed=11, phase=Phase.BATTLE)
        agent = MCTSAgent(config=small_config(), seed=11)
        move = agent.best_move(state)
        self.assertIsInstance(move, AttackMove)
        self.assertTrue(move.validate(state))
        self.assertEqual(len(agent.history), 1)
        agent.reset_statistics()
        self.assertEqual(agent.history, [])

    def test_nothing_to_do(self):
        agent = MCTSAgent(config=small_config(), seed=0)
        self.assertIsNone(agent.best_move(stuck_state()))

    def test_save_statistics(self):
        state = create_game(["A", "B"], random_seed=13, phase=Phase.BATTLE)
        agent = MCTSAgent(config=small_config(iterations=20), seed=13)
        agent.recommend(state)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "stats.json")
            agent.save_statistics(path)
            with open(path) as f:
                data = json.load(f)
        self.assertEqual(data["total_recommendations"], 1)
        self.assertEqual(data["config"]["iterations"], 20)
        self.assertEqual(data["history"][0]["phase"], "Battle")
        self.assertTrue(data["history"][0]["moves"])


class TestCommandLine(unittest.TestCase):

    def test_demo(self):
        argv = ["--demo", "--players", "2", "--iterations", "20", "--seed", "1",
                "--policy", "top_k", "--top-k", "2"]
        self.assertEqual(main(argv), 0)

    def test_ai_turn(self):
        self.assertEqual(main(["--demo", "--phase", "AI Turn"]), 0)

    def test_bad_input(self):
        self.assertEqual(main(["--demo", "--phase", "Diplomacy"]), 2)
        self.assertEqual(main(["--demo", "--iterations", "0"]), 2)

    def test_ai_turn_snapshot(self):
        data = state_to_dict(create_game(["A", "B"], random_seed=1))
        data["stage"] = "AI Turn"
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "game.json")
            with open(path, "w") as f:
                json.dump(data, f)
            self.assertEqual(main(["--state", path, "--iterations", "5"]), 0)

    def test_snapshot_from_file(self):
        data = state_to_dict(create_game(["A", "B"], random_seed=2, phase=Phase.BATTLE))
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "game.json")
            with open(path, "w") as f:
                json.dump(data, f)
            self.assertEqual(main(["--state", path, "--iterations", "10"]), 0)

    def test_unreadable_snapshot(self):
        with tempfile.TemporaryDirectory() as tmp:
            missing = os.path.join(tmp, "missing.json")
            self.assertEqual(main(["--state", missing]), 2)

            broken = os.path.join(tmp, "broken.json")
            with open(broken, "w") as f:
                f.write("{not json")
            self.assertEqual(main(["--state", broken]), 2)

            invalid = os.path.join(tmp, "invalid.json")
            with open(invalid, "w") as f:
                json.dump({"stage": "Diplomacy"}, f)
            self.assertEqual(main(["--state", invalid]), 2)

            listed = os.path.join(tmp, "list.json")
            with open(listed, "w") as f:
                json.dump([1, 2], f)
            self.assertEqual(main(["--state", listed]), 2)


if __name__ == "__main__":
    unittest.main()
