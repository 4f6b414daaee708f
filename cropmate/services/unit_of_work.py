from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime

from cropmate.extensions import db
from cropmate.models import StatusTransition

logger = logging.getLogger(__name__)


@contextmanager
def transaction():
    """Run a block of writes as one unit: commit on success, rollback on any error."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def record_transition(
    entity_type: str,
    entity_id: int,
    from_status: str | None,
    to_status: str,
    *,
    actor_id: int | None = None,
    reason: str = "",
) -> StatusTransition:
    row = StatusTransition(
        entity_type=entity_type[:32],
        entity_id=int(entity_id),
        from_status=(from_status or "")[:32],
        to_status=(to_status or "")[:32],
        actor_id=int(actor_id) if actor_id is not None else None,
        reason=(reason or "")[:240],
        created_at=datetime.utcnow(),
    )
    db.session.add(row)
    logger.info(
        "status_transition entity=%s id=%s %s->%s actor=%s reason=%s",
        entity_type,
        entity_id,
        from_status or "NONE",
        to_status,
        actor_id,
        reason or "-",
    )
    return row


def transitions_for(entity_type: str, entity_id: int) -> list[StatusTransition]:
    return (
        StatusTransition.query.filter_by(entity_type=entity_type, entity_id=int(entity_id))
        .order_by(StatusTransition.id.asc())
        .all()
    )
