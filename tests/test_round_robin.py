"""Tests for round robin schedule generation."""

from __future__ import annotations

import unittest
from collections import Counter
from itertools import combinations

from bracketeer.errors import DomainValidationError
from bracketeer.tournament.services import TournamentGenerator


def make_teams(count: int) -> list[dict]:
    return [{"id": f"team{i}", "name": f"Team {i}", "seed": i} for i in range(1, count + 1)]


class RoundRobinTestCase(unittest.TestCase):
    """Test case for the circle method scheduler."""

    def test_every_pair_meets_exactly_once(self) -> None:
        for count in range(2, 13):
            with self.subTest(teams=count):
                teams = make_teams(count)
                matches = TournamentGenerator.generate_round_robin(teams)
                self.assertEqual(len(matches), count * (count - 1) // 2)

                pairs = Counter(
                    frozenset((m["homeTeamId"], m["awayTeamId"])) for m in matches
                )
                expected = {frozenset(p) for p in combinations([t["id"] for t in teams], 2)}
                self.assertEqual(set(pairs), expected)
                self.assertTrue(all(n == 1 for n in pairs.values()))

                appearances = Counter(
                    tid for m in matches for tid in (m["homeTeamId"], m["awayTeamId"])
                )
                self.assertTrue(all(appearances[t["id"]] == count - 1 for t in teams))

    def test_no_team_plays_twice_in_a_round(self) -> None:
        for count in range(2, 13):
            with self.subTest(teams=count):
                matches = TournamentGenerator.generate_round_robin(make_teams(count))
                rounds: dict[int, list[str]] = {}
                for m in matches:
                    rounds.setdefault(m["round"], []).extend(
                        [m["homeTeamId"], m["awayTeamId"]]
                    )
                expected_rounds = count - 1 if count % 2 == 0 else count
                self.assertEqual(len(rounds), expected_rounds)
                for teams_in_round in rounds.values():
                    self.assertEqual(len(teams_in_round), len(set(teams_in_round)))

    def test_home_and_away_are_balanced(self) -> None:
        for count in range(2, 13):
            with self.subTest(teams=count):
                matches = TournamentGenerator.generate_round_robin(make_teams(count))
                home = Counter(m["homeTeamId"] for m in matches)
                away = Counter(m["awayTeamId"] for m in matches)
                for team in make_teams(count):
                    diff = home[team["id"]] - away[team["id"]]
                    self.assertLessEqual(abs(diff), 1)

    def test_odd_count_gives_each_team_one_bye_round(self) -> None:
        matches = TournamentGenerator.generate_round_robin(make_teams(5))
        appearances = Counter(
            tid for m in matches for tid in (m["homeTeamId"], m["awayTeamId"])
        )
        # Five rounds, each team sits one of them out
        self.assertTrue(all(n == 4 for n in appearances.values()))
        self.assertFalse(any(m["isBye"] for m in matches))

    def test_match_fields(self) -> None:
        matches = TournamentGenerator.generate_round_robin(make_teams(4))
        first = matches[0]
        self.assertEqual(first["round"], 1)
        self.assertEqual(first["matchNumber"], 1)
        self.assertEqual(first["bracketPosition"], "RR-R1-M1")
        self.assertIsNone(first["nextMatchId"])
        self.assertEqual(first["status"], "Scheduled")

    def test_seeds_are_optional(self) -> None:
        teams = [{"id": f"t{i}", "name": f"Club {i}"} for i in range(4)]
        matches = TournamentGenerator.generate_round_robin(teams)
        self.assertEqual(len(matches), 6)

    def test_requires_two_teams(self) -> None:
        with self.assertRaises(DomainValidationError):
            TournamentGenerator.generate_round_robin(make_teams(1))


if __name__ == "__main__":
    unittest.main()
