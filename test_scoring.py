#!/usr/bin/env python
"""
Tests for the heuristic state evaluation.
"""
import math
import unittest

from conquest_ai.core.constants import Phase
from conquest_ai.core.maps import create_game
from conquest_ai.core.scoring import ScoringWeights, controlled_continents, score
from conquest_ai.core.state import Country, Continent, Player, GameState


def make_state(phase: Phase = Phase.REINFORCEMENT) -> GameState:
    return GameState(
        countries={
            "X": Country("X", "A", 3, ["Z"]),
            "Y": Country("Y", "A", 1, ["Z"]),
            "Z": Country("Z", "B", 5, ["X", "Y"]),
        },
        players=[Player("A", ["X", "Y"]), Player("B", ["Z"])],
        current_player="A",
        continents=[Continent("Mini", ["X", "Y"], bonus=2)],
        phase=phase,
    )


class TestScore(unittest.TestCase):
    """Test case for score()."""

    def test_hand_computed(self):
        state = make_state()
        # 2 territories * 10 + 4 armies * 2 + 1 continent * 50 - 2 borders * 5
        self.assertEqual(score(state, "A"), 68.0)
        # 1 * 10 + 5 * 2 - 2 * 5
        self.assertEqual(score(state, "B"), 10.0)

    def test_defaults_to_current_player(self):
        state = make_state()
        self.assertEqual(score(state), score(state, "A"))

    def test_continent_counted_once(self):
        state = make_state()
        state.continents.append(Continent("Everything", ["X", "Y", "Z"], bonus=9))
        self.assertEqual([c.name for c in controlled_continents(state, state.players[0])], ["Mini"])
        self.assertEqual(score(state, "A"), 68.0)

    def test_losing_a_member_drops_the_bonus(self):
        state = make_state()
        state.countries["Y"].owner = "B"
        state.players[0].areas.remove("Y")
        state.players[1].areas.append("Y")
        # 1 * 10 + 3 * 2 - 1 * 5, no continent
        self.assertEqual(score(state, "A"), 11.0)

    def test_three_member_continent(self):
        def board(owner_of_c):
            return GameState(
                countries={
                    "A": Country("A", "P", 2, ["B", "D"]),
                    "B": Country("B", "P", 2, ["A", "C"]),
                    "C": Country("C", owner_of_c, 2, ["B", "D"]),
                    "D": Country("D", "Q", 2, ["A", "C"]),
                },
                players=[
                    Player("P", [n for n in "ABC" if n != "C" or owner_of_c == "P"]),
                    Player("Q", ["D"] + (["C"] if owner_of_c == "Q" else [])),
                ],
                current_player="P",
            )

        for owner_of_c, bonus in (("P", 50.0), ("Q", 0.0)):
            plain = board(owner_of_c)
            with_continent = board(owner_of_c)
            with_continent.continents.append(Continent("Triad", ["A", "B", "C"]))
            self.assertEqual(plain.ownership_errors(), [])
            self.assertEqual(score(with_continent, "P") - score(plain, "P"), bonus)

    def test_unknown_player(self):
        self.assertEqual(score(make_state(), "nobody"), 0.0)
        self.assertEqual(score(GameState()), 0.0)

    def test_missing_country_ignored(self):
        state = make_state()
        state.players[0].areas.append("Atlantis")
        # The extra entry counts as territory but contributes no armies
        self.assertEqual(score(state, "A"), 78.0)

    def test_border_phases(self):
        state = make_state(Phase.REINFORCEMENT)
        weights = ScoringWeights(border_phases=(Phase.BATTLE,))
        self.assertEqual(score(state, "A", weights), 78.0)
        self.assertEqual(score(state.with_phase(Phase.BATTLE), "A", weights), 68.0)

    def test_exposed_army(self):
        weights = ScoringWeights(exposed_army=1.0)
        self.assertEqual(score(make_state(), "A", weights), 64.0)

    def test_non_finite_is_zero(self):
        weights = ScoringWeights(army=float("inf"), exposed_army=float("inf"))
        self.assertEqual(score(make_state(), "A", weights), 0.0)

    def test_classic_map_scores_are_finite(self):
        state = create_game(["A", "B", "C", "D"], random_seed=2)
        for player in state.players:
            value = score(state, player.name)
            self.assertTrue(math.isfinite(value))


class TestScoringWeights(unittest.TestCase):

    def test_dict_round_trip(self):
        weights = ScoringWeights(territory=1.0, border_phases=(Phase.BATTLE,))
        data = weights.to_dict()
        self.assertEqual(data["border_phases"], ["Battle"])
        self.assertEqual(ScoringWeights.from_dict(data), weights)

    def test_from_dict_ignores_unknown(self):
        weights = ScoringWeights.from_dict({"army": 3.0, "luck": 7})
        self.assertEqual(weights.army, 3.0)
        self.assertEqual(weights.territory, 10.0)


if __name__ == "__main__":
    unittest.main()
