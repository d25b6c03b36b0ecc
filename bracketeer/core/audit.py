"""Audit event emission.

Audit records are written to the ``bracketeer.audit`` logger. Storing them is
left to whatever handler the deployment attaches to that logger.
"""

from __future__ import annotations

import logging
from typing import Any

audit_logger = logging.getLogger("bracketeer.audit")


def record_audit_event(
    action: str,
    tournament_id: str,
    actor_id: str,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Emit a single audit record and return it."""
    event = {
        "action": action,
        "tournamentId": tournament_id,
        "actorId": actor_id,
        "before": before,
        "after": after,
    }
    audit_logger.info(
        "%s on tournament %s by %s", action, tournament_id, actor_id, extra={"audit": event}
    )
    return event
