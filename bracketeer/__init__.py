"""Initialize the Flask app and its extensions."""

import json
import logging
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask, jsonify
from flask_wtf.csrf import generate_csrf
from werkzeug.middleware.proxy_fix import ProxyFix

from .extensions import csrf


def _load_credentials(app):
    """Find Firebase credentials: env JSON, then a local file, then ADC."""
    cred = None
    project_id = os.environ.get("FIREBASE_PROJECT_ID")

    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id") or project_id
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id") or project_id
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    if not cred:
        try:
            cred = credentials.ApplicationDefault()
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    return cred, project_id


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        FIREBASE_PROJECT_ID=os.environ.get("FIREBASE_PROJECT_ID"),
        LOG_LEVEL=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
    )

    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        level=app.config["LOG_LEVEL"],
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        cred, project_id = _load_credentials(app)
        if cred and not firebase_admin._apps:
            options = {"projectId": project_id} if project_id else {}
            try:
                firebase_admin.initialize_app(cred, options)
            except ValueError:
                app.logger.info("Firebase app already initialized.")

    csrf.init_app(app)

    from . import tournament as tournament_bp

    app.register_blueprint(tournament_bp.bp)

    from . import match as match_bp

    app.register_blueprint(match_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.route("/csrf-token")
    def csrf_token():
        """Issue a CSRF token for the X-CSRFToken header."""
        return jsonify({"csrfToken": generate_csrf()})

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
