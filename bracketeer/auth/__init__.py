"""Authorization gate for tournament operations."""

from .services import AuthorizationService, TournamentRole

__all__ = ["AuthorizationService", "TournamentRole"]
