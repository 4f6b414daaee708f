from __future__ import annotations

from cropmate.services.errors import InvalidStateError


class OrderStatus:
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    TERMINAL = {DELIVERED, CANCELLED}
    # Statuses at or past payment confirmation; confirm_payment is a no-op here.
    PAID = {PAYMENT_RECEIVED, READY_FOR_DELIVERY, IN_TRANSIT, DELIVERED}
    ALLOWED = {
        PENDING_PAYMENT: {PAYMENT_RECEIVED, CANCELLED},
        PAYMENT_RECEIVED: {READY_FOR_DELIVERY, CANCELLED},
        READY_FOR_DELIVERY: {IN_TRANSIT, CANCELLED},
        IN_TRANSIT: {DELIVERED, CANCELLED},
        DELIVERED: set(),
        CANCELLED: set(),
    }


class DeliveryStatus:
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    TERMINAL = {DELIVERED, CANCELLED}
    ALLOWED = {
        PENDING: {ACCEPTED, CANCELLED},
        ACCEPTED: {PICKED_UP, CANCELLED},
        PICKED_UP: {IN_TRANSIT, DELIVERED, CANCELLED},
        IN_TRANSIT: {DELIVERED, CANCELLED},
        DELIVERED: set(),
        CANCELLED: set(),
    }


class DeliveryRequestStatus:
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    TERMINAL = {ACCEPTED, REJECTED}
    ALLOWED = {
        PENDING: {ACCEPTED, REJECTED},
        ACCEPTED: set(),
        REJECTED: set(),
    }


_MACHINES = {
    "order": OrderStatus,
    "delivery": DeliveryStatus,
    "delivery_request": DeliveryRequestStatus,
}


def _normalize(value: str | None) -> str:
    return (value or "").strip().upper()


def can_transition(entity_type: str, current: str | None, target: str | None) -> bool:
    machine = _MACHINES[entity_type]
    return _normalize(target) in machine.ALLOWED.get(_normalize(current), set())


def ensure_transition(entity_type: str, current: str | None, target: str | None) -> str:
    """Return the normalized target status or raise InvalidStateError."""
    cur = _normalize(current)
    tgt = _normalize(target)
    if not can_transition(entity_type, cur, tgt):
        label = entity_type.replace("_", " ").capitalize()
        raise InvalidStateError(f"{label} cannot move from {cur or 'NONE'} to {tgt or 'NONE'}")
    return tgt


def require_status(entity_type: str, current: str | None, *expected: str, message: str = "") -> None:
    cur = _normalize(current)
    if cur in {_normalize(s) for s in expected}:
        return
    if not message:
        label = entity_type.replace("_", " ").capitalize()
        message = f"{label} must be {' or '.join(expected)} (current: {cur or 'NONE'})"
    raise InvalidStateError(message)
