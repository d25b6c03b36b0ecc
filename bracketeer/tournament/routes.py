"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from bracketeer.auth.decorators import login_required

from . import bp
from .lifecycle import TournamentLifecycleService
from .services import TournamentService
from .utils import get_tournament_standings

LIFECYCLE_ACTIONS = {
    "publish": TournamentLifecycleService.publish,
    "close-registration": TournamentLifecycleService.close_registration,
    "start": TournamentLifecycleService.start,
    "complete": TournamentLifecycleService.complete,
    "postpone": TournamentLifecycleService.postpone,
    "resume": TournamentLifecycleService.resume,
    "cancel": TournamentLifecycleService.cancel,
}


@bp.route("/<string:tournament_id>", methods=["GET"])
@login_required
def view_tournament(tournament_id: str) -> Any:
    """Return a tournament document."""
    db = firestore.client()
    return jsonify(TournamentService.get_tournament(db, tournament_id))


@bp.route("/<string:tournament_id>/generate", methods=["POST"])
@login_required
def generate_bracket(tournament_id: str) -> Any:
    """Generate matches for the tournament's format."""
    db = firestore.client()
    matches = TournamentService.generate_bracket(db, tournament_id, g.user_id)
    return jsonify({"matches": matches}), 201


@bp.route("/<string:tournament_id>/matches", methods=["DELETE"])
@login_required
def clear_bracket(tournament_id: str) -> Any:
    """Delete every generated match."""
    db = firestore.client()
    deleted = TournamentService.clear_bracket(db, tournament_id, g.user_id)
    return jsonify({"deleted": deleted})


@bp.route("/<string:tournament_id>/standings", methods=["GET"])
@login_required
def standings(tournament_id: str) -> Any:
    """Return the ranked standings table."""
    db = firestore.client()
    return jsonify(get_tournament_standings(db, tournament_id))


@bp.route("/<string:tournament_id>/<string:action>", methods=["POST"])
@login_required
def change_status(tournament_id: str, action: str) -> Any:
    """Apply a lifecycle action such as ``publish`` or ``start``."""
    handler = LIFECYCLE_ACTIONS.get(action)
    if handler is None:
        current_app.logger.warning(f"Unknown tournament action: {action}")
        return jsonify({"error": f"Unknown action '{action}'."}), 404
    db = firestore.client()
    return jsonify(handler(db, tournament_id, g.user_id))
