"""Tournament lifecycle state transitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from bracketeer.auth.services import AuthorizationService, TournamentRole
from bracketeer.core.audit import record_audit_event
from bracketeer.core.constants import (
    FORMAT_SINGLE_ELIMINATION,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_DRAFT,
    STATUS_IN_PROGRESS,
    STATUS_OPEN,
    STATUS_POSTPONED,
    STATUS_REGISTRATION_CLOSED,
    TEAM_WINNER,
    TOURNAMENTS_COLLECTION,
)
from bracketeer.errors import DomainValidationError

from .models import TournamentConfig
from .services import TournamentService
from .utils import calculate_standings, fetch_tournament_matches, fetch_tournament_teams

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class TournamentStateMachine:
    """Valid tournament status transitions and their audit action names."""

    TRANSITIONS: dict[str, dict[str, str]] = {
        STATUS_DRAFT: {STATUS_OPEN: "Publish", STATUS_CANCELLED: "Cancel"},
        STATUS_OPEN: {
            STATUS_REGISTRATION_CLOSED: "CloseRegistration",
            STATUS_CANCELLED: "Cancel",
        },
        STATUS_REGISTRATION_CLOSED: {
            STATUS_IN_PROGRESS: "Start",
            STATUS_CANCELLED: "Cancel",
        },
        STATUS_IN_PROGRESS: {
            STATUS_COMPLETED: "Complete",
            STATUS_POSTPONED: "Postpone",
            STATUS_CANCELLED: "Cancel",
        },
        STATUS_POSTPONED: {STATUS_IN_PROGRESS: "Resume", STATUS_CANCELLED: "Cancel"},
        STATUS_COMPLETED: {},
        STATUS_CANCELLED: {},
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        return to_status in cls.TRANSITIONS.get(from_status, {})

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        if not cls.can_transition(from_status, to_status):
            raise DomainValidationError(
                f"Cannot transition tournament from '{from_status}' to '{to_status}'"
            )

    @classmethod
    def action_for(cls, from_status: str, to_status: str) -> str:
        return cls.TRANSITIONS.get(from_status, {}).get(to_status, "Unknown")


class TournamentLifecycleService:
    """Moves tournaments through their lifecycle."""

    @staticmethod
    def _find_champion(db: Client, tournament: dict[str, Any]) -> str | None:
        """Pick the bracket winner, or the standings leader for league play."""
        teams = fetch_tournament_teams(db, tournament["id"])
        config = TournamentConfig.from_dict(tournament)
        if config.format == FORMAT_SINGLE_ELIMINATION:
            for team in teams:
                if team.get("status") == TEAM_WINNER:
                    return str(team["id"])
            return None
        matches = fetch_tournament_matches(db, tournament["id"])
        rows = calculate_standings(teams, matches, config)["standings"]
        return rows[0]["teamId"] if rows else None

    @staticmethod
    def transition(
        db: Client, tournament_id: str, user_id: str, to_status: str
    ) -> dict[str, Any]:
        """Move a tournament to ``to_status`` if the state machine allows it."""
        AuthorizationService.require_role(
            db, tournament_id, user_id, TournamentRole.ADMIN
        )
        tournament = TournamentService.get_tournament(db, tournament_id)
        from_status = tournament.get("status") or STATUS_DRAFT
        TournamentStateMachine.validate_transition(from_status, to_status)

        updates: dict[str, Any] = {
            "status": to_status,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        if to_status == STATUS_COMPLETED:
            updates["winnerTeamId"] = TournamentLifecycleService._find_champion(
                db, tournament
            )
        db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).update(updates)

        action = TournamentStateMachine.action_for(from_status, to_status)
        logger.info(f"Tournament {tournament_id}: {action} ({from_status} -> {to_status})")
        record_audit_event(
            action,
            tournament_id,
            user_id,
            before={"status": from_status},
            after={"status": to_status},
        )
        tournament.update({k: v for k, v in updates.items() if k != "updatedAt"})
        return tournament

    @staticmethod
    def publish(db: Client, tournament_id: str, user_id: str) -> dict[str, Any]:
        return TournamentLifecycleService.transition(db, tournament_id, user_id, STATUS_OPEN)

    @staticmethod
    def close_registration(db: Client, tournament_id: str, user_id: str) -> dict[str, Any]:
        return TournamentLifecycleService.transition(
            db, tournament_id, user_id, STATUS_REGISTRATION_CLOSED
        )

    @staticmethod
    def start(db: Client, tournament_id: str, user_id: str) -> dict[str, Any]:
        return TournamentLifecycleService.transition(
            db, tournament_id, user_id, STATUS_IN_PROGRESS
        )

    @staticmethod
    def complete(db: Client, tournament_id: str, user_id: str) -> dict[str, Any]:
        return TournamentLifecycleService.transition(
            db, tournament_id, user_id, STATUS_COMPLETED
        )

    @staticmethod
    def postpone(db: Client, tournament_id: str, user_id: str) -> dict[str, Any]:
        return TournamentLifecycleService.transition(
            db, tournament_id, user_id, STATUS_POSTPONED
        )

    @staticmethod
    def resume(db: Client, tournament_id: str, user_id: str) -> dict[str, Any]:
        return TournamentLifecycleService.transition(
            db, tournament_id, user_id, STATUS_IN_PROGRESS
        )

    @staticmethod
    def cancel(db: Client, tournament_id: str, user_id: str) -> dict[str, Any]:
        return TournamentLifecycleService.transition(
            db, tournament_id, user_id, STATUS_CANCELLED
        )
