"""Tournament role lookup and permission checks."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, cast

from firebase_admin import firestore

from bracketeer.core.constants import (
    ORGANIZATION_ADMINS_COLLECTION,
    TOURNAMENT_ADMINS_COLLECTION,
    TOURNAMENTS_COLLECTION,
)
from bracketeer.errors import AuthorizationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class TournamentRole(enum.IntEnum):
    """Tournament roles, ordered by privilege."""

    NONE = 0
    SCOREKEEPER = 1
    ADMIN = 2
    OWNER = 3

    @classmethod
    def from_name(cls, name: str | None) -> TournamentRole:
        """Parse a stored role name such as ``"Admin"``."""
        if not name:
            return cls.NONE
        try:
            return cls[name.upper()]
        except KeyError:
            logger.warning(f"Unknown tournament role: {name}")
            return cls.NONE

    @property
    def label(self) -> str:
        """Role name as stored in Firestore."""
        return self.name.capitalize()


class AuthorizationService:
    """Resolves a user's role on a tournament."""

    @staticmethod
    def _is_org_admin_for_tournament(
        db: Client, tournament_id: str, user_id: str
    ) -> bool:
        """Check whether the user administers the tournament's organization."""
        t_doc = cast(
            "DocumentSnapshot",
            db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get(),
        )
        if not t_doc.exists:
            return False
        org_id = (t_doc.to_dict() or {}).get("organizationId")
        if not org_id:
            return False

        admins = (
            db.collection(ORGANIZATION_ADMINS_COLLECTION)
            .where(filter=firestore.FieldFilter("organizationId", "==", org_id))
            .where(filter=firestore.FieldFilter("userId", "==", user_id))
            .stream()
        )
        return any(doc.exists for doc in admins)

    @staticmethod
    def _get_tournament_role(
        db: Client, tournament_id: str, user_id: str
    ) -> TournamentRole:
        """Return the role from the active admin record, if any."""
        admins = (
            db.collection(TOURNAMENT_ADMINS_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .where(filter=firestore.FieldFilter("userId", "==", user_id))
            .stream()
        )
        best = TournamentRole.NONE
        for doc in admins:
            data = doc.to_dict() or {}
            if data.get("removedAt") is not None:
                continue
            best = max(best, TournamentRole.from_name(data.get("role")))
        return best

    @staticmethod
    def get_role(db: Client, tournament_id: str, user_id: str | None) -> TournamentRole:
        """Get the effective role of a user on a tournament."""
        if not user_id:
            return TournamentRole.NONE
        if AuthorizationService._is_org_admin_for_tournament(db, tournament_id, user_id):
            return TournamentRole.OWNER
        return AuthorizationService._get_tournament_role(db, tournament_id, user_id)

    @staticmethod
    def has_role(
        db: Client, tournament_id: str, user_id: str | None, minimum: TournamentRole
    ) -> bool:
        """Check that the user holds at least ``minimum``."""
        return AuthorizationService.get_role(db, tournament_id, user_id) >= minimum

    @staticmethod
    def require_role(
        db: Client, tournament_id: str, user_id: str | None, minimum: TournamentRole
    ) -> TournamentRole:
        """Return the user's role or raise if it is below ``minimum``."""
        role = AuthorizationService.get_role(db, tournament_id, user_id)
        if role < minimum:
            logger.info(
                f"User {user_id} denied on tournament {tournament_id}: "
                f"needs {minimum.label}, has {role.label}"
            )
            raise AuthorizationError(
                f"This action requires the {minimum.label} role on this tournament."
            )
        return role

    # Permission checks
    @staticmethod
    def can_enter_scores(db: Client, tournament_id: str, user_id: str | None) -> bool:
        return AuthorizationService.has_role(
            db, tournament_id, user_id, TournamentRole.SCOREKEEPER
        )

    @staticmethod
    def can_manage_schedule(db: Client, tournament_id: str, user_id: str | None) -> bool:
        return AuthorizationService.has_role(
            db, tournament_id, user_id, TournamentRole.ADMIN
        )

    @staticmethod
    def can_manage_teams(db: Client, tournament_id: str, user_id: str | None) -> bool:
        return AuthorizationService.has_role(
            db, tournament_id, user_id, TournamentRole.ADMIN
        )

    @staticmethod
    def can_manage_admins(db: Client, tournament_id: str, user_id: str | None) -> bool:
        return AuthorizationService.has_role(
            db, tournament_id, user_id, TournamentRole.OWNER
        )

    @staticmethod
    def can_delete_tournament(
        db: Client, tournament_id: str, user_id: str | None
    ) -> bool:
        return AuthorizationService.has_role(
            db, tournament_id, user_id, TournamentRole.OWNER
        )

    @staticmethod
    def can_transfer_ownership(
        db: Client, tournament_id: str, user_id: str | None
    ) -> bool:
        return AuthorizationService.has_role(
            db, tournament_id, user_id, TournamentRole.OWNER
        )
