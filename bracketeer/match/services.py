"""Service layer for recording tournament match results."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from bracketeer.auth.services import AuthorizationService, TournamentRole
from bracketeer.core.audit import record_audit_event
from bracketeer.core.constants import (
    MATCH_COMPLETED,
    MATCH_FORFEIT,
    MATCHES_COLLECTION,
    STATUS_IN_PROGRESS,
    TEAM_ACTIVE,
    TEAM_ELIMINATED,
    TEAM_WINNER,
    TEAMS_COLLECTION,
)
from bracketeer.errors import DomainValidationError, NotFoundError
from bracketeer.teams.services import TeamService
from bracketeer.teams.utils import team_names, with_team_names
from bracketeer.tournament.models import TournamentConfig
from bracketeer.tournament.services import TournamentService

from .models import ForfeitSubmission, ScoreSubmission

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

RESULT_STATUSES = frozenset({MATCH_COMPLETED, MATCH_FORFEIT})


def has_result(match: dict[str, Any]) -> bool:
    """Whether a match holds a played (non-bye) result."""
    return match.get("status") in RESULT_STATUSES and not match.get("isBye")


def result_deltas(
    match: dict[str, Any], config: TournamentConfig
) -> dict[str, dict[str, int]]:
    """Per-team record changes caused by a match's current result."""
    if not has_result(match):
        return {}

    home, away = match["homeTeamId"], match["awayTeamId"]
    deltas: dict[str, dict[str, int]] = {home: {}, away: {}}

    if match.get("status") == MATCH_COMPLETED:
        home_score = int(match.get("homeScore") or 0)
        away_score = int(match.get("awayScore") or 0)
        deltas[home].update({"goalsFor": home_score, "goalsAgainst": away_score})
        deltas[away].update({"goalsFor": away_score, "goalsAgainst": home_score})

    winner = match.get("winnerTeamId")
    if winner is None:
        for team_id in (home, away):
            deltas[team_id].update({"ties": 1, "points": config.points_tie})
        return deltas

    loser = away if winner == home else home
    deltas[winner].update({"wins": 1, "points": config.points_win})
    deltas[loser].update({"losses": 1, "points": config.points_loss})
    return deltas


def _negate(deltas: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    return {tid: {k: -v for k, v in d.items()} for tid, d in deltas.items()}


def _combine(*all_deltas: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    combined: dict[str, dict[str, int]] = {}
    for deltas in all_deltas:
        for team_id, delta in deltas.items():
            bucket = combined.setdefault(team_id, {})
            for key, value in delta.items():
                bucket[key] = bucket.get(key, 0) + value
    return combined


def next_match_slot(match: dict[str, Any]) -> str:
    """Slot a winner takes in the following match: odd match numbers go home."""
    return "homeTeamId" if (int(match["matchNumber"]) - 1) % 2 == 0 else "awayTeamId"


class MatchResultService:
    """Handles score entry, forfeits, and bracket advancement."""

    @staticmethod
    def _fetch_match(
        db: Client,
        tournament_id: str,
        match_id: str,
        transaction: Transaction | None = None,
    ) -> dict[str, Any]:
        doc = cast(
            "DocumentSnapshot",
            db.collection(MATCHES_COLLECTION)
            .document(match_id)
            .get(transaction=transaction),
        )
        if not doc.exists:
            raise NotFoundError("Match not found.")
        match = {**(doc.to_dict() or {}), "id": doc.id}
        if match.get("tournamentId") != tournament_id:
            raise NotFoundError("Match not found in this tournament.")
        return match

    @staticmethod
    def _check_playable(config: TournamentConfig, match: dict[str, Any]) -> None:
        if config.status != STATUS_IN_PROGRESS:
            raise DomainValidationError(
                f"Results can only be recorded while the tournament is in progress "
                f"(current status: '{config.status}')."
            )
        if match.get("isBye"):
            raise DomainValidationError("Bye matches cannot be scored.")
        if not match.get("homeTeamId") or not match.get("awayTeamId"):
            raise DomainValidationError(
                "Cannot record a result for a match with TBD teams."
            )

    @staticmethod
    def _load(
        transaction: Transaction, db: Client, tournament_id: str, match_id: str
    ) -> dict[str, Any]:
        """Read everything a result write needs, before any write is queued."""
        tournament = TournamentService.get_tournament(db, tournament_id, transaction)
        config = TournamentConfig.from_dict(tournament)
        match = MatchResultService._fetch_match(db, tournament_id, match_id, transaction)
        MatchResultService._check_playable(config, match)

        teams = {
            team_id: TeamService.get_team(db, team_id, transaction)
            for team_id in (match["homeTeamId"], match["awayTeamId"])
        }

        next_match = None
        if config.is_elimination and match.get("nextMatchId"):
            next_doc = cast(
                "DocumentSnapshot",
                db.collection(MATCHES_COLLECTION)
                .document(match["nextMatchId"])
                .get(transaction=transaction),
            )
            if next_doc.exists:
                next_match = {**(next_doc.to_dict() or {}), "id": next_doc.id}
            else:
                logger.warning(
                    f"Match {match_id} points at missing next match "
                    f"{match['nextMatchId']}"
                )

        return {
            "config": config,
            "match": match,
            "teams": teams,
            "next_match": next_match,
        }

    @staticmethod
    def _elimination_statuses(
        match: dict[str, Any],
        prior_winner: str | None,
        winner: str,
        is_final: bool,
    ) -> dict[str, str]:
        loser = match["awayTeamId"] if winner == match["homeTeamId"] else match["homeTeamId"]
        statuses = {loser: TEAM_ELIMINATED}
        if is_final:
            statuses[winner] = TEAM_WINNER
        elif prior_winner is not None and prior_winner != winner:
            statuses[winner] = TEAM_ACTIVE
        return statuses

    @staticmethod
    def _write_result(
        transaction: Transaction,
        db: Client,
        loaded: dict[str, Any],
        updates: dict[str, Any],
    ) -> tuple[dict[str, Any], str | None]:
        """Queue match, team, and advancement writes for a new result.

        The prior result, if any, is reversed in the same set of team
        updates before the new one is applied.
        """
        config: TournamentConfig = loaded["config"]
        match: dict[str, Any] = loaded["match"]
        teams: dict[str, dict[str, Any]] = loaded["teams"]
        next_match: dict[str, Any] | None = loaded["next_match"]

        prior_winner = match.get("winnerTeamId") if has_result(match) else None
        updated = {**match, **updates}
        winner = updated.get("winnerTeamId")

        advance_to = None
        if config.is_elimination and next_match is not None:
            slot = next_match_slot(match)
            if (
                prior_winner is not None
                and prior_winner != winner
                and has_result(next_match)
            ):
                raise DomainValidationError(
                    "Cannot change the winner of this match because the next match "
                    "already has a result."
                )
            if next_match.get(slot) != winner or prior_winner is None:
                advance_to = next_match["id"]

        deltas = _combine(_negate(result_deltas(match, config)), result_deltas(updated, config))

        statuses: dict[str, str] = {}
        if config.is_elimination and winner is not None:
            is_final = not match.get("nextMatchId")
            statuses = MatchResultService._elimination_statuses(
                match, prior_winner, winner, is_final
            )

        match_ref = db.collection(MATCHES_COLLECTION).document(match["id"])
        transaction.update(
            match_ref, {**updates, "updatedAt": firestore.SERVER_TIMESTAMP}
        )

        teams_ref = db.collection(TEAMS_COLLECTION)
        for team_id, team in teams.items():
            team_updates: dict[str, Any] = dict(
                TeamService.apply_record_delta(team, deltas.get(team_id, {}))
            )
            if team_id in statuses:
                team_updates["status"] = statuses[team_id]
            team_updates["updatedAt"] = firestore.SERVER_TIMESTAMP
            transaction.update(teams_ref.document(team_id), team_updates)
            team.update(team_updates)

        if advance_to is not None:
            transaction.update(
                db.collection(MATCHES_COLLECTION).document(advance_to),
                {
                    next_match_slot(match): winner,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )

        return updated, advance_to

    @staticmethod
    def _winner_for_scores(
        config: TournamentConfig, match: dict[str, Any], submission: ScoreSubmission
    ) -> str | None:
        home, away = match["homeTeamId"], match["awayTeamId"]
        if not submission.is_tied:
            return home if submission.home_score > submission.away_score else away
        if not config.is_elimination:
            return None
        if not submission.overtime_winner_id:
            raise DomainValidationError(
                "Tied scores in an elimination match require an overtime winner."
            )
        if submission.overtime_winner_id not in (home, away):
            raise DomainValidationError(
                "Overtime winner must be one of the teams in this match."
            )
        return submission.overtime_winner_id

    @staticmethod
    def _enter_score_in_transaction(
        transaction: Transaction,
        db: Client,
        tournament_id: str,
        match_id: str,
        submission: ScoreSubmission,
    ) -> tuple[dict[str, Any], dict[str, Any], str | None, dict[str, Any]]:
        loaded = MatchResultService._load(transaction, db, tournament_id, match_id)
        match = loaded["match"]
        prior = dict(match)
        winner = MatchResultService._winner_for_scores(loaded["config"], match, submission)
        updated, advance_to = MatchResultService._write_result(
            transaction,
            db,
            loaded,
            {
                "homeScore": submission.home_score,
                "awayScore": submission.away_score,
                "winnerTeamId": winner,
                "status": MATCH_COMPLETED,
                "forfeitReason": None,
                "forfeitingTeamId": None,
            },
        )
        return updated, loaded["teams"], advance_to, prior

    @staticmethod
    def _forfeit_in_transaction(
        transaction: Transaction,
        db: Client,
        tournament_id: str,
        match_id: str,
        submission: ForfeitSubmission,
    ) -> tuple[dict[str, Any], dict[str, Any], str | None, dict[str, Any]]:
        loaded = MatchResultService._load(transaction, db, tournament_id, match_id)
        match = loaded["match"]
        prior = dict(match)
        home, away = match["homeTeamId"], match["awayTeamId"]
        if submission.forfeiting_team_id not in (home, away):
            raise DomainValidationError(
                "Forfeiting team must be one of the teams in this match."
            )
        winner = away if submission.forfeiting_team_id == home else home
        updated, advance_to = MatchResultService._write_result(
            transaction,
            db,
            loaded,
            {
                "homeScore": None,
                "awayScore": None,
                "winnerTeamId": winner,
                "status": MATCH_FORFEIT,
                "forfeitReason": submission.reason,
                "forfeitingTeamId": submission.forfeiting_team_id,
            },
        )
        return updated, loaded["teams"], advance_to, prior

    @staticmethod
    def _result_summary(match: dict[str, Any]) -> dict[str, Any]:
        return {
            key: match.get(key)
            for key in (
                "status",
                "homeScore",
                "awayScore",
                "winnerTeamId",
                "forfeitingTeamId",
            )
        }

    @staticmethod
    def _finish(
        tournament_id: str,
        user_id: str,
        action: str,
        result: tuple[dict[str, Any], dict[str, Any], str | None, dict[str, Any]],
    ) -> dict[str, Any]:
        updated, teams, advance_to, prior = result
        logger.info(
            f"{action} on match {updated['id']} of tournament {tournament_id}: "
            f"winner={updated.get('winnerTeamId')}"
        )
        record_audit_event(
            action,
            tournament_id,
            user_id,
            before=MatchResultService._result_summary(prior),
            after=MatchResultService._result_summary(updated),
        )
        response = with_team_names(updated, team_names(teams.values()))
        response["advancedToMatchId"] = advance_to
        return response

    @staticmethod
    def enter_score(
        db: Client,
        tournament_id: str,
        match_id: str,
        submission: ScoreSubmission,
        user_id: str,
    ) -> dict[str, Any]:
        """Record or correct the score of a match."""
        AuthorizationService.require_role(
            db, tournament_id, user_id, TournamentRole.SCOREKEEPER
        )
        submission.validate()

        transaction = db.transaction()
        result = firestore.transactional(
            MatchResultService._enter_score_in_transaction
        )(transaction, db, tournament_id, match_id, submission)

        action = "EditScore" if has_result(result[3]) else "EnterScore"
        return MatchResultService._finish(tournament_id, user_id, action, result)

    @staticmethod
    def forfeit_match(
        db: Client,
        tournament_id: str,
        match_id: str,
        submission: ForfeitSubmission,
        user_id: str,
    ) -> dict[str, Any]:
        """Award a match to the opponent of the forfeiting team."""
        AuthorizationService.require_role(
            db, tournament_id, user_id, TournamentRole.SCOREKEEPER
        )
        transaction = db.transaction()
        result = firestore.transactional(MatchResultService._forfeit_in_transaction)(
            transaction, db, tournament_id, match_id, submission
        )
        return MatchResultService._finish(tournament_id, user_id, "ForfeitMatch", result)

    @staticmethod
    def get_match(db: Client, tournament_id: str, match_id: str) -> dict[str, Any]:
        """Fetch a single match with team names resolved."""
        match = MatchResultService._fetch_match(db, tournament_id, match_id)
        names = team_names(TeamService.get_tournament_teams(db, tournament_id))
        return with_team_names(match, names)

    @staticmethod
    def list_matches(db: Client, tournament_id: str) -> list[dict[str, Any]]:
        """Fetch every match of a tournament ordered by round and number."""
        TournamentService.get_tournament(db, tournament_id)
        docs = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        )
        names = team_names(TeamService.get_tournament_teams(db, tournament_id))
        matches = [
            with_team_names({**(doc.to_dict() or {}), "id": doc.id}, names)
            for doc in docs
            if doc.exists
        ]
        return sorted(matches, key=lambda m: (m.get("round", 0), m.get("matchNumber", 0)))

    @staticmethod
    def get_feeder_matches(
        db: Client, tournament_id: str, match_id: str
    ) -> list[dict[str, Any]]:
        """Matches whose winners advance into ``match_id``."""
        MatchResultService._fetch_match(db, tournament_id, match_id)
        return [
            m
            for m in MatchResultService.list_matches(db, tournament_id)
            if m.get("nextMatchId") == match_id
        ]
