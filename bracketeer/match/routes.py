"""Routes for the match blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g, jsonify, request
from werkzeug.datastructures import MultiDict

from bracketeer.auth.decorators import login_required

from . import bp
from .forms import ForfeitForm, ScoreForm
from .models import ForfeitSubmission, ScoreSubmission
from .services import MatchResultService


def _submitted_data() -> MultiDict:
    """Form fields from a form post or a JSON body."""
    if request.form:
        return request.form
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    return MultiDict({k: str(v) for k, v in payload.items() if v is not None})


def _form_errors(form: Any) -> Any:
    return jsonify({"error": "Invalid submission.", "errors": form.errors}), 400


@bp.route("", methods=["GET"])
@login_required
def list_matches(tournament_id: str) -> Any:
    """List every match of a tournament."""
    db = firestore.client()
    return jsonify(MatchResultService.list_matches(db, tournament_id))


@bp.route("/<string:match_id>", methods=["GET"])
@login_required
def view_match(tournament_id: str, match_id: str) -> Any:
    """Return a single match."""
    db = firestore.client()
    return jsonify(MatchResultService.get_match(db, tournament_id, match_id))


@bp.route("/<string:match_id>/feeders", methods=["GET"])
@login_required
def feeder_matches(tournament_id: str, match_id: str) -> Any:
    """Return the matches that feed into a match."""
    db = firestore.client()
    return jsonify(MatchResultService.get_feeder_matches(db, tournament_id, match_id))


@bp.route("/<string:match_id>/score", methods=["POST"])
@login_required
def enter_score(tournament_id: str, match_id: str) -> Any:
    """Record or correct a match score."""
    form = ScoreForm(formdata=_submitted_data(), meta={"csrf": False})
    if not form.validate():
        return _form_errors(form)

    submission = ScoreSubmission(
        home_score=form.home_score.data,
        away_score=form.away_score.data,
        overtime_winner_id=form.overtime_winner_id.data or None,
    )
    db = firestore.client()
    match = MatchResultService.enter_score(
        db, tournament_id, match_id, submission, g.user_id
    )
    return jsonify(match)


@bp.route("/<string:match_id>/forfeit", methods=["POST"])
@login_required
def forfeit_match(tournament_id: str, match_id: str) -> Any:
    """Record a forfeit."""
    form = ForfeitForm(formdata=_submitted_data(), meta={"csrf": False})
    if not form.validate():
        return _form_errors(form)

    submission = ForfeitSubmission(
        forfeiting_team_id=form.forfeiting_team_id.data,
        reason=form.reason.data or None,
    )
    db = firestore.client()
    match = MatchResultService.forfeit_match(
        db, tournament_id, match_id, submission, g.user_id
    )
    return jsonify(match)
