"""Decorators for the auth package."""

from functools import wraps

from flask import g, jsonify, session


def login_required(f):
    """Reject the request unless a user is logged in.

    The acting user's id is exposed to the view as ``g.user_id``.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = session.get("user_id")
        if not user_id:
            return jsonify({"error": "Authentication required."}), 401
        g.user_id = user_id
        return f(*args, **kwargs)

    return decorated_function
