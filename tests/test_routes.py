"""Tests for the JSON endpoints of the tournament and match blueprints."""

from __future__ import annotations

from bracketeer import create_app
from tests.mock_utils import FirestoreTestCase

MOCK_USER_ID = "user1"


class RoutesTestCase(FirestoreTestCase):
    """Test case for the HTTP layer."""

    def setUp(self) -> None:
        super().setUp()
        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, "SERVER_NAME": "localhost"}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()

        self.add_tournament("t1", format="SingleElimination", status="Draft")
        self.add_teams("t1", 4)
        self.add_admin("t1", MOCK_USER_ID, "Admin")

    def tearDown(self) -> None:
        self.app_context.pop()
        super().tearDown()

    def _set_session_user(self, user_id: str = MOCK_USER_ID) -> None:
        with self.client.session_transaction() as sess:
            sess["user_id"] = user_id

    def _start(self) -> list[dict]:
        response = self.client.post("/tournaments/t1/generate")
        self.assertEqual(response.status_code, 201)
        for action in ("publish", "close-registration", "start"):
            self.assertEqual(self.client.post(f"/tournaments/t1/{action}").status_code, 200)
        return response.get_json()["matches"]

    def test_login_required(self) -> None:
        response = self.client.post("/tournaments/t1/generate")
        self.assertEqual(response.status_code, 401)

    def test_generate_and_list(self) -> None:
        self._set_session_user()
        matches = self._start()
        self.assertEqual(len(matches), 3)

        response = self.client.get("/tournaments/t1/matches")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m["id"] for m in response.get_json()], [m["id"] for m in matches])

        response = self.client.get(f"/tournaments/t1/matches/{matches[0]['id']}")
        self.assertEqual(response.get_json()["homeTeamName"], "Team 1")

        response = self.client.get(f"/tournaments/t1/matches/{matches[2]['id']}/feeders")
        self.assertEqual(len(response.get_json()), 2)

    def test_enter_score(self) -> None:
        self._set_session_user()
        semi = self._start()[0]

        response = self.client.post(
            f"/tournaments/t1/matches/{semi['id']}/score",
            json={"home_score": 3, "away_score": 1},
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["winnerTeamId"], "team1")
        self.assertEqual(data["advancedToMatchId"], semi["nextMatchId"])

        standings = self.client.get("/tournaments/t1/standings").get_json()
        self.assertEqual(standings["standings"][0]["teamId"], "team1")

    def test_score_form_validation(self) -> None:
        self._set_session_user()
        semi = self._start()[0]
        response = self.client.post(
            f"/tournaments/t1/matches/{semi['id']}/score",
            json={"home_score": -2, "away_score": 1},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("home_score", response.get_json()["errors"])

        response = self.client.post(
            f"/tournaments/t1/matches/{semi['id']}/score", json={"home_score": 2}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("away_score", response.get_json()["errors"])

    def test_tie_without_overtime_is_bad_request(self) -> None:
        self._set_session_user()
        semi = self._start()[0]
        response = self.client.post(
            f"/tournaments/t1/matches/{semi['id']}/score",
            json={"home_score": 2, "away_score": 2},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("overtime winner", response.get_json()["error"])

    def test_forfeit(self) -> None:
        self._set_session_user()
        semi = self._start()[1]
        response = self.client.post(
            f"/tournaments/t1/matches/{semi['id']}/forfeit",
            json={"forfeiting_team_id": "team2", "reason": "Bus broke down"},
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["status"], "Forfeit")
        self.assertEqual(data["winnerTeamName"], "Team 3")

    def test_forbidden_for_user_without_role(self) -> None:
        self._set_session_user("stranger")
        response = self.client.post("/tournaments/t1/generate")
        self.assertEqual(response.status_code, 403)
        self.assertIn("Admin", response.get_json()["error"])

    def test_invalid_transition(self) -> None:
        self._set_session_user()
        response = self.client.post("/tournaments/t1/start")
        self.assertEqual(response.status_code, 400)

    def test_unknown_action(self) -> None:
        self._set_session_user()
        response = self.client.post("/tournaments/t1/explode")
        self.assertEqual(response.status_code, 404)

    def test_missing_tournament(self) -> None:
        self._set_session_user()
        response = self.client.get("/tournaments/nope/standings")
        self.assertEqual(response.status_code, 404)

    def test_clear_bracket(self) -> None:
        self._set_session_user()
        self.client.post("/tournaments/t1/generate")
        response = self.client.delete("/tournaments/t1/matches")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["deleted"], 3)
        self.assertEqual(self.stored_matches("t1"), [])
