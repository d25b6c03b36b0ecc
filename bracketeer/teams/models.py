"""Data models for tournament teams."""

from __future__ import annotations

from bracketeer.core.types import FirestoreDocument


class Team(FirestoreDocument, total=False):
    """A team document in Firestore."""

    tournamentId: str
    name: str
    seed: int | None
    status: str  # Registered/Active/Eliminated/Winner
    hasBye: bool

    # Cumulative record
    wins: int
    losses: int
    ties: int
    points: int
    goalsFor: int
    goalsAgainst: int
