"""The match blueprint."""

from flask import Blueprint

bp = Blueprint(
    "match", __name__, url_prefix="/tournaments/<string:tournament_id>/matches"
)

from . import routes  # noqa: E402, F401
from .models import ForfeitSubmission, Match, ScoreSubmission  # noqa: E402
from .services import MatchResultService  # noqa: E402

__all__ = [
    "ForfeitSubmission",
    "Match",
    "MatchResultService",
    "ScoreSubmission",
    "routes",
]
