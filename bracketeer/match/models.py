"""Data models for the match blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from bracketeer.core.types import FirestoreDocument
from bracketeer.errors import DomainValidationError


class Match(FirestoreDocument, total=False):
    """A tournament match document in Firestore."""

    tournamentId: str
    round: int
    matchNumber: int
    bracketPosition: str
    homeTeamId: str | None
    awayTeamId: str | None
    homeScore: int | None
    awayScore: int | None
    winnerTeamId: str | None
    status: str
    isBye: bool
    nextMatchId: str | None
    forfeitReason: str | None
    forfeitingTeamId: str | None
    scheduledTime: Any

    # UI and calculated fields
    homeTeamName: str | None
    awayTeamName: str | None
    winnerTeamName: str | None
    advancedToMatchId: str | None


@dataclass
class ScoreSubmission:
    """A score entry for a single match."""

    home_score: int
    away_score: int
    overtime_winner_id: Optional[str] = None

    def validate(self) -> None:
        """Validate the submission for obvious errors."""
        if self.home_score < 0 or self.away_score < 0:
            raise DomainValidationError("Scores cannot be negative.")

    @property
    def is_tied(self) -> bool:
        """Whether both sides scored the same."""
        return self.home_score == self.away_score


@dataclass
class ForfeitSubmission:
    """A forfeit declaration for a single match."""

    forfeiting_team_id: str
    reason: Optional[str] = None
