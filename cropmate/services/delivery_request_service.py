from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from cropmate.extensions import db
from cropmate.models import Delivery, DeliveryRequest, Order, Role
from cropmate.services.delivery_service import get_delivery
from cropmate.services.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from cropmate.services.state_machine import (
    DeliveryRequestStatus,
    DeliveryStatus,
    OrderStatus,
    require_status,
)
from cropmate.services.transitions import advance_delivery, advance_order, advance_request
from cropmate.services.unit_of_work import record_transition, transaction
from cropmate.utils.auth import require_role

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500
DUPLICATE_REQUEST_MESSAGE = "You have already made a request for this delivery"


def get_delivery_request(request_id: int) -> DeliveryRequest:
    req = db.session.get(DeliveryRequest, int(request_id))
    if req is None:
        raise NotFoundError("Delivery request not found")
    return req


def _customer_request(actor, request_id: int) -> DeliveryRequest:
    req = get_delivery_request(request_id)
    order = req.delivery.order if req.delivery is not None else None
    if order is None or int(order.buyer_id) != int(actor.id):
        raise UnauthorizedError("Unauthorized: this request is not for your order")
    return req


def _parse_fee(value) -> float:
    try:
        fee = float(value)
    except (TypeError, ValueError):
        raise ValidationError("custom_fee must be a number")
    if fee < 0:
        raise ValidationError("custom_fee cannot be negative")
    return fee


@require_role(Role.DRIVER)
def create_delivery_request(actor, delivery_id: int, custom_fee, message: str | None = None) -> DeliveryRequest:
    fee = _parse_fee(custom_fee)
    delivery = get_delivery(delivery_id)
    require_status("delivery", delivery.status, DeliveryStatus.PENDING,
                   message="Delivery is not open for requests")
    require_status("order", delivery.order.status, OrderStatus.READY_FOR_DELIVERY,
                   message="Order must be ready for delivery")

    existing = DeliveryRequest.query.filter_by(delivery_id=int(delivery.id), driver_id=int(actor.id)).first()
    if existing is not None:
        raise ConflictError(DUPLICATE_REQUEST_MESSAGE)

    req = DeliveryRequest(
        delivery_id=int(delivery.id),
        driver_id=int(actor.id),
        custom_fee=fee,
        message=((message or "").strip()[:MAX_MESSAGE_LENGTH] or None),
        status=DeliveryRequestStatus.PENDING,
    )
    try:
        with transaction():
            db.session.add(req)
            db.session.flush()
            record_transition("delivery_request", req.id, None, DeliveryRequestStatus.PENDING,
                              actor_id=actor.id, reason="bid_submitted")
    except IntegrityError as e:
        # uq_delivery_request_driver: a concurrent submission won the insert.
        raise ConflictError(DUPLICATE_REQUEST_MESSAGE) from e

    logger.info("delivery_request_created request_id=%s delivery_id=%s driver_id=%s fee=%.2f",
                req.id, delivery.id, actor.id, fee)
    return req


@require_role(Role.CUSTOMER)
def get_customer_delivery_requests(actor) -> list[DeliveryRequest]:
    return (
        DeliveryRequest.query.join(Delivery, Delivery.id == DeliveryRequest.delivery_id)
        .join(Order, Order.id == Delivery.order_id)
        .filter(
            Order.buyer_id == int(actor.id),
            Delivery.status == DeliveryStatus.PENDING,
            DeliveryRequest.status == DeliveryRequestStatus.PENDING,
        )
        .order_by(DeliveryRequest.created_at.desc(), DeliveryRequest.id.desc())
        .all()
    )


@require_role(Role.DRIVER)
def get_driver_delivery_requests(actor) -> list[DeliveryRequest]:
    return (
        DeliveryRequest.query.filter_by(driver_id=int(actor.id))
        .order_by(DeliveryRequest.created_at.desc(), DeliveryRequest.id.desc())
        .all()
    )


@require_role(Role.CUSTOMER)
def accept_delivery_request(actor, request_id: int) -> DeliveryRequest:
    """Bind the bidding driver to the delivery and close every competing bid.

    All four writes share one transaction; the request and the delivery are
    both flipped with status-guarded updates, so of two racing accepts on the
    same delivery only one can commit.
    """
    req = _customer_request(actor, request_id)
    require_status("delivery_request", req.status, DeliveryRequestStatus.PENDING,
                   message="This request has already been processed")
    delivery = req.delivery
    order = delivery.order
    require_status("delivery", delivery.status, DeliveryStatus.PENDING,
                   message="Delivery already has a driver")

    with transaction():
        advance_request(req, DeliveryRequestStatus.ACCEPTED, actor_id=actor.id, reason="accepted_by_customer")
        siblings = DeliveryRequest.query.filter(
            DeliveryRequest.delivery_id == int(delivery.id),
            DeliveryRequest.id != int(req.id),
            DeliveryRequest.status == DeliveryRequestStatus.PENDING,
        ).all()
        for sibling in siblings:
            advance_request(sibling, DeliveryRequestStatus.REJECTED, actor_id=actor.id, reason="sibling_accepted")
        advance_delivery(
            delivery,
            DeliveryStatus.ACCEPTED,
            actor_id=actor.id,
            reason="request_accepted",
            values={"driver_id": int(req.driver_id)},
            where=(Delivery.driver_id.is_(None),),
        )
        advance_order(order, OrderStatus.IN_TRANSIT, actor_id=actor.id, reason="request_accepted")

    logger.info(
        "delivery_request_accepted request_id=%s delivery_id=%s driver_id=%s rejected=%s",
        req.id, delivery.id, req.driver_id, len(siblings),
    )
    return req


@require_role(Role.CUSTOMER)
def reject_delivery_request(actor, request_id: int) -> DeliveryRequest:
    req = _customer_request(actor, request_id)
    require_status("delivery_request", req.status, DeliveryRequestStatus.PENDING,
                   message="This request has already been processed")
    with transaction():
        advance_request(req, DeliveryRequestStatus.REJECTED, actor_id=actor.id, reason="rejected_by_customer")
    logger.info("delivery_request_rejected request_id=%s delivery_id=%s", req.id, req.delivery_id)
    return req
