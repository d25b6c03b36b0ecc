"""Service layer for team-related operations."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from bracketeer.core.constants import MIN_TEAMS, TEAMS_COLLECTION
from bracketeer.errors import DomainValidationError, NotFoundError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

RECORD_FIELDS = ("wins", "losses", "ties", "points", "goalsFor", "goalsAgainst")


class TeamService:
    """Service class for team-related operations."""

    @staticmethod
    def get_tournament_teams(
        db: Client, tournament_id: str, transaction: Transaction | None = None
    ) -> list[dict[str, Any]]:
        """Fetch every team entered in a tournament."""
        query = db.collection(TEAMS_COLLECTION).where(
            filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
        )
        return [
            {**(doc.to_dict() or {}), "id": doc.id}
            for doc in query.stream(transaction=transaction)
            if doc.exists
        ]

    @staticmethod
    def get_team(
        db: Client, team_id: str, transaction: Transaction | None = None
    ) -> dict[str, Any]:
        """Fetch a single team or raise NotFoundError."""
        doc = cast(
            "DocumentSnapshot",
            db.collection(TEAMS_COLLECTION).document(team_id).get(transaction=transaction),
        )
        if not doc.exists:
            raise NotFoundError(f"Team {team_id} not found.")
        return {**(doc.to_dict() or {}), "id": doc.id}

    @staticmethod
    def validate_team_count(teams: list[dict[str, Any]]) -> None:
        """Require enough teams to play."""
        if len(teams) < MIN_TEAMS:
            raise DomainValidationError(
                f"Tournament must have at least {MIN_TEAMS} teams to generate a bracket."
            )

    @staticmethod
    def validate_seeding(teams: list[dict[str, Any]]) -> None:
        """Require seeds 1..N with no gaps and no duplicates."""
        missing = [t for t in teams if t.get("seed") is None]
        if missing:
            raise DomainValidationError(
                f"All teams must have a seed assigned. "
                f"{len(missing)} team(s) are missing seeds."
            )

        counts = Counter(int(t["seed"]) for t in teams)
        duplicates = sorted(seed for seed, n in counts.items() if n > 1)
        if duplicates:
            raise DomainValidationError(
                f"Duplicate seeds found: {', '.join(str(s) for s in duplicates)}"
            )

        for expected, seed in enumerate(sorted(counts), start=1):
            if seed != expected:
                raise DomainValidationError(
                    f"Seeds must be contiguous starting from 1. Missing seed: {expected}"
                )

    @staticmethod
    def sort_by_seed(teams: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Order teams by seed, unseeded teams last in name order."""
        return sorted(
            teams,
            key=lambda t: (
                t.get("seed") is None,
                t.get("seed") or 0,
                str(t.get("name") or ""),
                t["id"],
            ),
        )

    @staticmethod
    def apply_record_delta(
        team: dict[str, Any], delta: dict[str, int]
    ) -> dict[str, int]:
        """Return the team's record fields after adding ``delta``."""
        return {
            key: int(team.get(key) or 0) + delta.get(key, 0) for key in RECORD_FIELDS
        }
