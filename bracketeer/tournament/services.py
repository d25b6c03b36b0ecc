"""Service layer for tournament business logic."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from bracketeer.auth.services import AuthorizationService, TournamentRole
from bracketeer.core.audit import record_audit_event
from bracketeer.core.constants import (
    FIRESTORE_BATCH_LIMIT,
    FORMAT_ROUND_ROBIN,
    FORMAT_SINGLE_ELIMINATION,
    GENERATION_STATUSES,
    MATCH_COMPLETED,
    MATCH_SCHEDULED,
    MATCHES_COLLECTION,
    TEAM_ACTIVE,
    TEAMS_COLLECTION,
    TOURNAMENTS_COLLECTION,
)
from bracketeer.errors import DomainValidationError, NotFoundError
from bracketeer.teams.services import TeamService
from bracketeer.teams.utils import team_names, with_team_names

from .models import TournamentConfig

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

BYE = None


def _new_match(match_id: str, round_number: int, match_number: int) -> dict[str, Any]:
    return {
        "id": match_id,
        "round": round_number,
        "matchNumber": match_number,
        "bracketPosition": None,
        "homeTeamId": None,
        "awayTeamId": None,
        "homeScore": None,
        "awayScore": None,
        "winnerTeamId": None,
        "status": MATCH_SCHEDULED,
        "isBye": False,
        "nextMatchId": None,
        "forfeitReason": None,
        "forfeitingTeamId": None,
        "scheduledTime": None,
    }


def _default_id() -> str:
    return uuid.uuid4().hex


class TournamentGenerator:
    """Builds match structures for a tournament without touching storage."""

    @staticmethod
    def bracket_size(team_count: int) -> int:
        """Smallest power of two that holds ``team_count`` teams."""
        return 1 << (team_count - 1).bit_length()

    @staticmethod
    def bracket_positions(bracket_size: int) -> list[int]:
        """Seed order of the round-1 slots.

        For 8 slots this is ``[1, 8, 4, 5, 2, 7, 3, 6]``: adjacent slots meet
        in round 1 and seeds 1 and 2 sit in opposite halves.
        """
        positions = [1]
        while len(positions) < bracket_size:
            total = len(positions) * 2 + 1
            positions = [seed for s in positions for seed in (s, total - s)]
        return positions

    @staticmethod
    def round_labels(
        round_number: int, total_rounds: int, team_count: int, match_count: int
    ) -> list[str]:
        """Human labels for the matches of one round."""
        rounds_from_end = total_rounds - round_number
        if rounds_from_end == 0:
            return ["Final"]
        if rounds_from_end == 1 and team_count >= 4:
            return [f"SF{i}" for i in range(1, match_count + 1)]
        if rounds_from_end == 2 and team_count >= 8:
            return [f"QF{i}" for i in range(1, match_count + 1)]
        return [f"R{round_number}-M{i}" for i in range(1, match_count + 1)]

    @staticmethod
    def generate_single_elimination(
        teams: list[dict[str, Any]], new_id: Callable[[], str] = _default_id
    ) -> list[dict[str, Any]]:
        """Build a seeded single-elimination bracket, byes included."""
        TeamService.validate_team_count(teams)
        TeamService.validate_seeding(teams)

        team_count = len(teams)
        size = TournamentGenerator.bracket_size(team_count)
        total_rounds = size.bit_length() - 1
        by_seed = {int(t["seed"]): t for t in teams}

        rounds: list[list[dict[str, Any]]] = []
        slots = size // 2
        for round_number in range(1, total_rounds + 1):
            rounds.append(
                [_new_match(new_id(), round_number, n) for n in range(1, slots + 1)]
            )
            slots //= 2

        for current, following in zip(rounds, rounds[1:]):
            for i, match in enumerate(current):
                match["nextMatchId"] = following[i // 2]["id"]

        positions = TournamentGenerator.bracket_positions(size)
        for i, match in enumerate(rounds[0]):
            home = by_seed.get(positions[2 * i])
            away = by_seed.get(positions[2 * i + 1])
            if home is not None and away is not None:
                match["homeTeamId"] = home["id"]
                match["awayTeamId"] = away["id"]
                continue

            byed = home if home is not None else away
            match.update(
                {
                    "homeTeamId": byed["id"],
                    "isBye": True,
                    "status": MATCH_COMPLETED,
                    "winnerTeamId": byed["id"],
                }
            )
            if len(rounds) > 1:
                slot = "homeTeamId" if i % 2 == 0 else "awayTeamId"
                rounds[1][i // 2][slot] = byed["id"]

        for round_number, matches in enumerate(rounds, start=1):
            labels = TournamentGenerator.round_labels(
                round_number, total_rounds, team_count, len(matches)
            )
            for match, label in zip(matches, labels):
                match["bracketPosition"] = label

        return [match for matches in rounds for match in matches]

    @staticmethod
    def generate_round_robin(
        teams: list[dict[str, Any]], new_id: Callable[[], str] = _default_id
    ) -> list[dict[str, Any]]:
        """Generate round robin pairings using the circle method.

        With an odd team count the bye placeholder takes the fixed position,
        so the team paired with it sits out that round.
        """
        TeamService.validate_team_count(teams)

        ids: list[str | None] = [t["id"] for t in TeamService.sort_by_seed(teams)]
        if len(ids) % 2 != 0:
            ids.insert(0, BYE)

        size = len(ids)
        matches = []
        for round_number in range(1, size):
            match_number = 0
            for k in range(size // 2):
                first, second = ids[k], ids[size - 1 - k]
                if first is BYE or second is BYE:
                    continue
                # Fixed board alternates by round, the others by board number.
                if k == 0:
                    home_first = round_number % 2 == 0
                else:
                    home_first = k % 2 == 1
                home, away = (first, second) if home_first else (second, first)

                match_number += 1
                match = _new_match(new_id(), round_number, match_number)
                match.update(
                    {
                        "homeTeamId": home,
                        "awayTeamId": away,
                        "bracketPosition": f"RR-R{round_number}-M{match_number}",
                    }
                )
                matches.append(match)
            # Keep the first element fixed, rotate the others
            ids = [ids[0], ids[-1]] + ids[1:-1]

        return matches


class TournamentService:
    """Handles match generation and bracket management for tournaments."""

    @staticmethod
    def get_tournament(
        db: Client, tournament_id: str, transaction: Transaction | None = None
    ) -> dict[str, Any]:
        """Fetch a tournament document or raise NotFoundError."""
        doc = cast(
            "DocumentSnapshot",
            db.collection(TOURNAMENTS_COLLECTION)
            .document(tournament_id)
            .get(transaction=transaction),
        )
        if not doc.exists:
            raise NotFoundError("Tournament not found.")
        return {**(doc.to_dict() or {}), "id": doc.id}

    @staticmethod
    def has_matches(
        db: Client, tournament_id: str, transaction: Transaction | None = None
    ) -> bool:
        """Check whether any match exists for the tournament."""
        query = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .limit(1)
        )
        return any(doc.exists for doc in query.stream(transaction=transaction))

    @staticmethod
    def _check_can_generate(config: TournamentConfig) -> None:
        if config.status not in GENERATION_STATUSES:
            raise DomainValidationError(
                f"Cannot generate bracket when tournament is in '{config.status}' "
                f"status. Bracket generation is only allowed in: "
                f"{', '.join(sorted(GENERATION_STATUSES))}"
            )

    @staticmethod
    def _generate_in_transaction(
        transaction: Transaction, db: Client, tournament_id: str, expected_format: str
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """Validate, build, and queue writes for a tournament's matches."""
        tournament = TournamentService.get_tournament(db, tournament_id, transaction)
        config = TournamentConfig.from_dict(tournament)
        TournamentService._check_can_generate(config)

        if TournamentService.has_matches(db, tournament_id, transaction):
            raise DomainValidationError(
                "Tournament already has matches. Clear the bracket first to regenerate."
            )

        teams = TeamService.get_tournament_teams(db, tournament_id, transaction)
        matches_ref = db.collection(MATCHES_COLLECTION)

        def new_id() -> str:
            return str(matches_ref.document().id)

        if expected_format == FORMAT_SINGLE_ELIMINATION:
            matches = TournamentGenerator.generate_single_elimination(teams, new_id)
        else:
            matches = TournamentGenerator.generate_round_robin(teams, new_id)

        byed = {m["homeTeamId"] for m in matches if m["isBye"]}
        for match in matches:
            payload = {k: v for k, v in match.items() if k != "id"}
            payload.update(
                {
                    "tournamentId": tournament_id,
                    "createdAt": firestore.SERVER_TIMESTAMP,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                }
            )
            transaction.set(matches_ref.document(match["id"]), payload)

        teams_ref = db.collection(TEAMS_COLLECTION)
        for team in teams:
            has_bye = team["id"] in byed
            transaction.update(
                teams_ref.document(team["id"]),
                {
                    "status": TEAM_ACTIVE,
                    "hasBye": has_bye,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            team.update({"status": TEAM_ACTIVE, "hasBye": has_bye})

        return matches, teams

    @staticmethod
    def _generate(
        db: Client, tournament_id: str, user_id: str, expected_format: str
    ) -> list[dict[str, Any]]:
        AuthorizationService.require_role(
            db, tournament_id, user_id, TournamentRole.ADMIN
        )
        transaction = db.transaction()
        matches, teams = firestore.transactional(
            TournamentService._generate_in_transaction
        )(transaction, db, tournament_id, expected_format)

        logger.info(
            f"Generated {len(matches)} {expected_format} matches for "
            f"tournament {tournament_id}"
        )
        record_audit_event(
            "GenerateBracket"
            if expected_format == FORMAT_SINGLE_ELIMINATION
            else "GenerateSchedule",
            tournament_id,
            user_id,
            after={"matchCount": len(matches), "format": expected_format},
        )
        names = team_names(teams)
        return [
            {**with_team_names(m, names), "tournamentId": tournament_id}
            for m in sorted(matches, key=lambda m: (m["round"], m["matchNumber"]))
        ]

    @staticmethod
    def generate_single_elimination_bracket(
        db: Client, tournament_id: str, user_id: str
    ) -> list[dict[str, Any]]:
        """Generate and store a seeded single-elimination bracket."""
        return TournamentService._generate(
            db, tournament_id, user_id, FORMAT_SINGLE_ELIMINATION
        )

    @staticmethod
    def generate_round_robin_schedule(
        db: Client, tournament_id: str, user_id: str
    ) -> list[dict[str, Any]]:
        """Generate and store a full round robin schedule."""
        return TournamentService._generate(
            db, tournament_id, user_id, FORMAT_ROUND_ROBIN
        )

    @staticmethod
    def generate_bracket(
        db: Client, tournament_id: str, user_id: str
    ) -> list[dict[str, Any]]:
        """Generate matches according to the tournament's format."""
        tournament = TournamentService.get_tournament(db, tournament_id)
        fmt = tournament.get("format")
        if fmt == FORMAT_SINGLE_ELIMINATION:
            return TournamentService.generate_single_elimination_bracket(
                db, tournament_id, user_id
            )
        if fmt == FORMAT_ROUND_ROBIN:
            return TournamentService.generate_round_robin_schedule(
                db, tournament_id, user_id
            )
        raise DomainValidationError(f"Unknown tournament format: {fmt}")

    @staticmethod
    def clear_bracket(db: Client, tournament_id: str, user_id: str) -> int:
        """Delete every match of a tournament and reset team bye flags."""
        AuthorizationService.require_role(
            db, tournament_id, user_id, TournamentRole.ADMIN
        )
        TournamentService.get_tournament(db, tournament_id)

        match_docs = [
            doc
            for doc in db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
            if doc.exists
        ]
        teams = TeamService.get_tournament_teams(db, tournament_id)

        writes: list[tuple[Any, dict[str, Any] | None]] = [
            (doc.reference, None) for doc in match_docs
        ]
        for team in teams:
            if team.get("hasBye"):
                writes.append(
                    (
                        db.collection(TEAMS_COLLECTION).document(team["id"]),
                        {"hasBye": False, "updatedAt": firestore.SERVER_TIMESTAMP},
                    )
                )

        for start in range(0, len(writes), FIRESTORE_BATCH_LIMIT):
            batch = db.batch()
            for ref, data in writes[start : start + FIRESTORE_BATCH_LIMIT]:
                if data is None:
                    batch.delete(ref)
                else:
                    batch.update(ref, data)
            batch.commit()

        logger.info(f"Cleared {len(match_docs)} matches for tournament {tournament_id}")
        record_audit_event(
            "ClearBracket",
            tournament_id,
            user_id,
            before={"matchCount": len(match_docs)},
            after={"matchCount": 0},
        )
        return len(match_docs)
