"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/tournaments")

from . import routes  # noqa: E402, F401
from .lifecycle import TournamentLifecycleService, TournamentStateMachine  # noqa: E402
from .models import Standings, Tournament, TournamentConfig  # noqa: E402
from .services import TournamentGenerator, TournamentService  # noqa: E402

__all__ = [
    "Standings",
    "Tournament",
    "TournamentConfig",
    "TournamentGenerator",
    "TournamentLifecycleService",
    "TournamentService",
    "TournamentStateMachine",
    "routes",
]
