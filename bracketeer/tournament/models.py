"""Data models for the tournament blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypedDict

from bracketeer.core.constants import (
    DEFAULT_POINTS_LOSS,
    DEFAULT_POINTS_TIE,
    DEFAULT_POINTS_WIN,
    DEFAULT_TIEBREAKER_ORDER,
    ELIMINATION_FORMATS,
    FORMAT_SINGLE_ELIMINATION,
    STATUS_DRAFT,
)
from bracketeer.core.types import FirestoreDocument


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    format: str
    status: str
    organizationId: str | None
    pointsWin: int
    pointsTie: int
    pointsLoss: int
    tiebreakerOrder: list[str]
    playoffTeamsCount: int | None
    winnerTeamId: str | None


class StandingsRow(TypedDict):
    """A single ranked row of the standings table."""

    teamId: str
    teamName: str
    rank: int
    wins: int
    losses: int
    ties: int
    points: int
    goalsFor: int
    goalsAgainst: int
    goalDifferential: int
    gamesPlayed: int
    isPlayoffBound: bool
    isTied: bool


class TiedGroup(TypedDict):
    """Teams that no configured tiebreaker can order."""

    teamIds: list[str]
    reason: str


class Standings(TypedDict):
    """The full standings payload for a tournament."""

    standings: list[StandingsRow]
    tiedGroups: list[TiedGroup]
    playoffCutoff: int | None


@dataclass
class TournamentConfig:
    """Competition settings read from a tournament document."""

    format: str = FORMAT_SINGLE_ELIMINATION
    status: str = STATUS_DRAFT
    points_win: int = DEFAULT_POINTS_WIN
    points_tie: int = DEFAULT_POINTS_TIE
    points_loss: int = DEFAULT_POINTS_LOSS
    tiebreaker_order: list[str] = field(
        default_factory=lambda: list(DEFAULT_TIEBREAKER_ORDER)
    )
    playoff_teams_count: int | None = None
    organization_id: str | None = None

    @property
    def is_elimination(self) -> bool:
        """Whether losing a match eliminates a team."""
        return self.format in ELIMINATION_FORMATS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TournamentConfig:
        """Build a config from a raw tournament document, applying defaults."""

        def _int(key: str, default: int) -> int:
            value = data.get(key)
            return default if value is None else int(value)

        order = data.get("tiebreakerOrder") or list(DEFAULT_TIEBREAKER_ORDER)
        return cls(
            format=data.get("format") or FORMAT_SINGLE_ELIMINATION,
            status=data.get("status") or STATUS_DRAFT,
            points_win=_int("pointsWin", DEFAULT_POINTS_WIN),
            points_tie=_int("pointsTie", DEFAULT_POINTS_TIE),
            points_loss=_int("pointsLoss", DEFAULT_POINTS_LOSS),
            tiebreaker_order=list(order),
            playoff_teams_count=data.get("playoffTeamsCount"),
            organization_id=data.get("organizationId"),
        )
