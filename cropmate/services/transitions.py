from __future__ import annotations

from datetime import datetime

from cropmate.models import Delivery, DeliveryRequest, Order
from cropmate.services.errors import ConflictError
from cropmate.services.state_machine import ensure_transition
from cropmate.services.unit_of_work import record_transition


def _advance(model, entity_type: str, row, target: str, *, actor_id=None, reason: str = "",
             values: dict | None = None, where=()) -> str:
    """Check-and-set a status change.

    The UPDATE is filtered on the status we validated against, so a row that
    moved underneath us matches nothing and the caller's transaction is
    abandoned with a ConflictError.
    """
    current = (row.status or "").strip().upper()
    target = ensure_transition(entity_type, current, target)
    changes = {"status": target, "updated_at": datetime.utcnow()}
    changes.update(values or {})

    q = model.query.filter(model.id == row.id, model.status == current)
    for clause in where:
        q = q.filter(clause)
    claimed = q.update(changes, synchronize_session="fetch")
    if not claimed:
        label = entity_type.replace("_", " ").capitalize()
        raise ConflictError(f"{label} {int(row.id)} was modified by another request")

    record_transition(entity_type, int(row.id), current, target, actor_id=actor_id, reason=reason)
    return target


def advance_order(order: Order, target: str, *, actor_id=None, reason: str = "", values: dict | None = None) -> str:
    return _advance(Order, "order", order, target, actor_id=actor_id, reason=reason, values=values)


def advance_delivery(delivery: Delivery, target: str, *, actor_id=None, reason: str = "",
                     values: dict | None = None, where=()) -> str:
    return _advance(Delivery, "delivery", delivery, target, actor_id=actor_id, reason=reason, values=values, where=where)


def advance_request(req: DeliveryRequest, target: str, *, actor_id=None, reason: str = "") -> str:
    return _advance(DeliveryRequest, "delivery_request", req, target, actor_id=actor_id, reason=reason)
