"""Tests for standings calculation."""

from __future__ import annotations

import unittest

from bracketeer.errors import NotFoundError
from bracketeer.tournament.models import TournamentConfig
from bracketeer.tournament.utils import (
    CYCLE_REASON,
    TIED_REASON,
    calculate_standings,
    get_tournament_standings,
)
from tests.mock_utils import FirestoreTestCase


def team(team_id: str, name: str, points: int = 0, gf: int = 0, ga: int = 0, **kw) -> dict:
    return {
        "id": team_id,
        "name": name,
        "points": points,
        "goalsFor": gf,
        "goalsAgainst": ga,
        "wins": kw.get("wins", 0),
        "losses": kw.get("losses", 0),
        "ties": kw.get("ties", 0),
    }


def played(home: str, away: str, winner: str | None, status: str = "Completed") -> dict:
    return {
        "homeTeamId": home,
        "awayTeamId": away,
        "winnerTeamId": winner,
        "status": status,
        "isBye": False,
    }


class StandingsTestCase(unittest.TestCase):
    """Test case for calculate_standings."""

    def setUp(self) -> None:
        self.config = TournamentConfig(format="RoundRobin")

    def test_ranked_by_points(self) -> None:
        teams = [
            team("c", "Comets", points=3),
            team("a", "Aces", points=9),
            team("b", "Bears", points=6),
        ]
        result = calculate_standings(teams, [], self.config)
        rows = result["standings"]
        self.assertEqual([r["teamId"] for r in rows], ["a", "b", "c"])
        self.assertEqual([r["rank"] for r in rows], [1, 2, 3])
        self.assertEqual(result["tiedGroups"], [])
        self.assertFalse(any(r["isTied"] for r in rows))
        self.assertIsNone(result["playoffCutoff"])

    def test_head_to_head_beats_goal_differential(self) -> None:
        teams = [team("a", "Aces", points=6, gf=10, ga=2), team("b", "Bears", points=6, gf=4, ga=3)]
        matches = [played("a", "b", "b")]
        rows = calculate_standings(teams, matches, self.config)["standings"]
        self.assertEqual([r["teamId"] for r in rows], ["b", "a"])

    def test_configured_order_is_respected(self) -> None:
        teams = [team("a", "Aces", points=6, gf=10, ga=2), team("b", "Bears", points=6, gf=4, ga=3)]
        matches = [played("a", "b", "b")]
        config = TournamentConfig(tiebreaker_order=["GoalDifferential", "HeadToHead"])
        rows = calculate_standings(teams, matches, config)["standings"]
        self.assertEqual([r["teamId"] for r in rows], ["a", "b"])
        self.assertEqual(rows[0]["goalDifferential"], 8)

    def test_goals_scored_breaks_equal_differential(self) -> None:
        teams = [team("a", "Aces", points=3, gf=2, ga=1), team("b", "Bears", points=3, gf=5, ga=4)]
        rows = calculate_standings(teams, [], self.config)["standings"]
        self.assertEqual([r["teamId"] for r in rows], ["b", "a"])

    def test_three_way_identical_tie(self) -> None:
        teams = [
            team("c", "Comets", points=4, gf=3, ga=3),
            team("a", "Aces", points=4, gf=3, ga=3),
            team("b", "Bears", points=4, gf=3, ga=3),
            team("d", "Ducks", points=1),
        ]
        result = calculate_standings(teams, [], self.config)
        rows = result["standings"]
        self.assertEqual([r["teamId"] for r in rows], ["a", "b", "c", "d"])
        self.assertEqual([r["rank"] for r in rows], [1, 2, 3, 4])
        self.assertEqual(
            result["tiedGroups"], [{"teamIds": ["a", "b", "c"], "reason": TIED_REASON}]
        )
        self.assertEqual([r["isTied"] for r in rows], [True, True, True, False])

    def test_two_way_tie_is_not_a_group(self) -> None:
        teams = [team("b", "Bears", points=3), team("a", "Aces", points=3)]
        result = calculate_standings(teams, [], self.config)
        self.assertEqual([r["teamId"] for r in result["standings"]], ["a", "b"])
        self.assertEqual(result["tiedGroups"], [])

    def test_head_to_head_cycle(self) -> None:
        teams = [
            team("a", "Aces", points=3, gf=1, ga=1),
            team("b", "Bears", points=3, gf=1, ga=1),
            team("c", "Comets", points=3, gf=1, ga=1),
        ]
        matches = [played("a", "b", "a"), played("b", "c", "b"), played("c", "a", "c")]
        result = calculate_standings(teams, matches, self.config)
        self.assertEqual(len(result["tiedGroups"]), 1)
        group = result["tiedGroups"][0]
        self.assertCountEqual(group["teamIds"], ["a", "b", "c"])
        self.assertEqual(group["reason"], CYCLE_REASON)
        self.assertTrue(all(r["isTied"] for r in result["standings"]))

    def test_playoff_cutoff(self) -> None:
        teams = [
            team("a", "Aces", points=9),
            team("b", "Bears", points=6),
            team("c", "Comets", points=3),
        ]
        config = TournamentConfig(playoff_teams_count=2)
        result = calculate_standings(teams, [], config)
        self.assertEqual(result["playoffCutoff"], 2)
        self.assertEqual(
            [r["isPlayoffBound"] for r in result["standings"]], [True, True, False]
        )

    def test_zero_playoff_count_means_no_cutoff(self) -> None:
        config = TournamentConfig(playoff_teams_count=0)
        result = calculate_standings([team("a", "Aces")], [], config)
        self.assertIsNone(result["playoffCutoff"])
        self.assertFalse(result["standings"][0]["isPlayoffBound"])

    def test_games_played(self) -> None:
        teams = [team("a", "Aces"), team("b", "Bears"), team("c", "Comets")]
        matches = [
            played("a", "b", "a"),
            played("a", "c", "c", status="Forfeit"),
            played("b", "c", None, status="Scheduled"),
            {"homeTeamId": "b", "awayTeamId": None, "winnerTeamId": "b",
             "status": "Completed", "isBye": True},
        ]
        rows = {r["teamId"]: r for r in calculate_standings(teams, matches, self.config)["standings"]}
        self.assertEqual(rows["a"]["gamesPlayed"], 2)
        self.assertEqual(rows["b"]["gamesPlayed"], 1)
        self.assertEqual(rows["c"]["gamesPlayed"], 1)

    def test_unknown_tiebreaker_is_ignored(self) -> None:
        teams = [team("a", "Aces", points=3, gf=1), team("b", "Bears", points=3, gf=4)]
        config = TournamentConfig(tiebreaker_order=["CoinToss", "GoalsScored"])
        rows = calculate_standings(teams, [], config)["standings"]
        self.assertEqual([r["teamId"] for r in rows], ["b", "a"])


class TournamentStandingsTestCase(FirestoreTestCase):
    def test_reads_tournament_configuration(self) -> None:
        self.add_tournament("t1", format="RoundRobin", status="InProgress", playoffTeamsCount=1)
        self.add_team("t1", "x", "Xylos", points=3, wins=1, goalsFor=2, goalsAgainst=1)
        self.add_team("t1", "y", "Yaks", points=0, losses=1, goalsFor=1, goalsAgainst=2)
        self.add_team("t2", "z", "Zebras", points=9)
        self.add_match(
            "m1", "t1", homeTeamId="x", awayTeamId="y", homeScore=2, awayScore=1,
            winnerTeamId="x", status="Completed",
        )

        result = get_tournament_standings(self.db, "t1")
        rows = result["standings"]
        self.assertEqual([r["teamId"] for r in rows], ["x", "y"])
        self.assertEqual(rows[0]["teamName"], "Xylos")
        self.assertEqual(rows[0]["gamesPlayed"], 1)
        self.assertTrue(rows[0]["isPlayoffBound"])
        self.assertFalse(rows[1]["isPlayoffBound"])

    def test_missing_tournament(self) -> None:
        with self.assertRaises(NotFoundError):
            get_tournament_standings(self.db, "nope")


if __name__ == "__main__":
    unittest.main()
