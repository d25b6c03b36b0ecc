"""Tests for storing and clearing generated matches."""

from __future__ import annotations

from bracketeer.errors import AuthorizationError, DomainValidationError, NotFoundError
from bracketeer.tournament.services import TournamentService
from tests.mock_utils import FirestoreTestCase


class GenerateBracketTestCase(FirestoreTestCase):
    """Test case for TournamentService generation."""

    def setUp(self) -> None:
        super().setUp()
        self.add_admin("t1", "admin", "Admin")

    def test_single_elimination_is_stored(self) -> None:
        self.add_tournament("t1", format="SingleElimination", status="RegistrationClosed")
        self.add_teams("t1", 5)

        result = TournamentService.generate_bracket(self.db, "t1", "admin")

        stored = self.stored_matches("t1")
        self.assertEqual(len(result), 7)
        self.assertEqual([m["id"] for m in result], [m["id"] for m in stored])
        self.assertEqual(result[0]["homeTeamName"], "Team 1")

        by_id = {m["id"]: m for m in stored}
        for match in stored:
            if match["nextMatchId"]:
                self.assertIn(match["nextMatchId"], by_id)
            self.assertEqual(match["tournamentId"], "t1")

        for i in range(1, 6):
            self.assertEqual(self.team(f"team{i}")["status"], "Active")
        self.assertTrue(self.team("team1")["hasBye"])
        self.assertTrue(self.team("team3")["hasBye"])
        self.assertFalse(self.team("team4")["hasBye"])
        self.assertFalse(self.team("team5")["hasBye"])

    def test_round_robin_is_stored(self) -> None:
        self.add_tournament("t1", format="RoundRobin", status="Open")
        self.add_teams("t1", 4)

        result = TournamentService.generate_bracket(self.db, "t1", "admin")

        self.assertEqual(len(result), 6)
        self.assertEqual(len(self.stored_matches("t1")), 6)
        self.assertTrue(all(m["nextMatchId"] is None for m in result))

    def test_generation_runs_once(self) -> None:
        self.add_tournament("t1", format="RoundRobin", status="Open")
        self.add_teams("t1", 4)
        TournamentService.generate_round_robin_schedule(self.db, "t1", "admin")

        with self.assertRaisesRegex(DomainValidationError, "already has matches"):
            TournamentService.generate_round_robin_schedule(self.db, "t1", "admin")
        self.assertEqual(len(self.stored_matches("t1")), 6)

    def test_generation_requires_pre_competition_status(self) -> None:
        self.add_tournament("t1", status="InProgress")
        self.add_teams("t1", 4)
        with self.assertRaisesRegex(DomainValidationError, "InProgress"):
            TournamentService.generate_bracket(self.db, "t1", "admin")
        self.assertEqual(self.stored_matches("t1"), [])

    def test_invalid_seeds_write_nothing(self) -> None:
        self.add_tournament("t1", status="Draft")
        self.add_team("t1", "a", "Aces", seed=1)
        self.add_team("t1", "b", "Bears", seed=3)
        with self.assertRaises(DomainValidationError):
            TournamentService.generate_bracket(self.db, "t1", "admin")
        self.assertEqual(self.stored_matches("t1"), [])
        self.assertEqual(self.team("a")["status"], "Registered")

    def test_requires_admin(self) -> None:
        self.add_tournament("t1", status="Draft")
        self.add_teams("t1", 4)
        self.add_admin("t1", "scorer", "Scorekeeper")
        with self.assertRaises(AuthorizationError):
            TournamentService.generate_bracket(self.db, "t1", "scorer")

    def test_unknown_format(self) -> None:
        self.add_tournament("t1", format="DoubleElimination", status="Draft")
        with self.assertRaisesRegex(DomainValidationError, "Unknown tournament format"):
            TournamentService.generate_bracket(self.db, "t1", "admin")

    def test_missing_tournament(self) -> None:
        with self.assertRaises(NotFoundError):
            TournamentService.generate_bracket(self.db, "nope", "admin")


class ClearBracketTestCase(FirestoreTestCase):
    def test_clear_removes_matches_and_byes(self) -> None:
        self.add_admin("t1", "admin", "Admin")
        self.add_tournament("t1", status="Draft")
        self.add_teams("t1", 3)
        self.add_tournament("t2", format="RoundRobin", status="Draft")
        self.add_team("t2", "other1", "Other 1")
        self.add_team("t2", "other2", "Other 2")
        self.add_admin("t2", "admin", "Admin")
        TournamentService.generate_bracket(self.db, "t1", "admin")
        TournamentService.generate_bracket(self.db, "t2", "admin")

        deleted = TournamentService.clear_bracket(self.db, "t1", "admin")

        self.assertEqual(deleted, 3)
        self.assertEqual(self.stored_matches("t1"), [])
        self.assertEqual(len(self.stored_matches("t2")), 1)
        self.assertFalse(self.team("team1")["hasBye"])

        # A cleared tournament can be generated again
        TournamentService.generate_bracket(self.db, "t1", "admin")
        self.assertEqual(len(self.stored_matches("t1")), 3)
