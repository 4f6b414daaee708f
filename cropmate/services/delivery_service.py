from __future__ import annotations

import logging
from datetime import datetime

from cropmate.extensions import db
from cropmate.models import Delivery, DeliveryRequest, Order, Role
from cropmate.services.errors import NotFoundError, UnauthorizedError
from cropmate.services.state_machine import (
    DeliveryRequestStatus,
    DeliveryStatus,
    OrderStatus,
    require_status,
)
from cropmate.services.transitions import advance_delivery, advance_order, advance_request
from cropmate.services.unit_of_work import transaction
from cropmate.utils.auth import require_role

logger = logging.getLogger(__name__)


def get_delivery(delivery_id: int) -> Delivery:
    delivery = db.session.get(Delivery, int(delivery_id))
    if delivery is None:
        raise NotFoundError("Delivery not found")
    return delivery


def _assigned_delivery(actor, delivery_id: int) -> Delivery:
    delivery = get_delivery(delivery_id)
    if delivery.driver_id is None or int(delivery.driver_id) != int(actor.id):
        raise UnauthorizedError("Delivery is not assigned to you")
    return delivery


@require_role(Role.DRIVER)
def accept_delivery(actor, delivery_id: int) -> Delivery:
    delivery = get_delivery(delivery_id)
    order = delivery.order
    require_status("delivery", delivery.status, DeliveryStatus.PENDING,
                   message="Delivery is no longer available")
    require_status("order", order.status, OrderStatus.READY_FOR_DELIVERY,
                   message="Order must be ready for delivery")

    with transaction():
        advance_delivery(
            delivery,
            DeliveryStatus.ACCEPTED,
            actor_id=actor.id,
            reason="claimed_by_driver",
            values={"driver_id": int(actor.id)},
            where=(Delivery.driver_id.is_(None),),
        )
        # A direct claim closes bidding on this delivery.
        open_bids = DeliveryRequest.query.filter_by(
            delivery_id=int(delivery.id), status=DeliveryRequestStatus.PENDING
        ).all()
        for bid in open_bids:
            advance_request(bid, DeliveryRequestStatus.REJECTED, actor_id=actor.id, reason="delivery_claimed")
        advance_order(order, OrderStatus.IN_TRANSIT, actor_id=actor.id, reason="driver_assigned")

    logger.info("delivery_accepted delivery_id=%s driver_id=%s order_id=%s", delivery.id, actor.id, order.id)
    return delivery


@require_role(Role.DRIVER)
def pickup_delivery(actor, delivery_id: int) -> Delivery:
    delivery = _assigned_delivery(actor, delivery_id)
    with transaction():
        advance_delivery(
            delivery,
            DeliveryStatus.PICKED_UP,
            actor_id=actor.id,
            reason="picked_up",
            values={"pickup_date": datetime.utcnow()},
            where=(Delivery.driver_id == int(actor.id),),
        )
    logger.info("delivery_picked_up delivery_id=%s driver_id=%s", delivery.id, actor.id)
    return delivery


@require_role(Role.DRIVER)
def complete_delivery(actor, delivery_id: int) -> Delivery:
    delivery = _assigned_delivery(actor, delivery_id)
    order = delivery.order
    with transaction():
        advance_delivery(
            delivery,
            DeliveryStatus.DELIVERED,
            actor_id=actor.id,
            reason="delivered",
            values={"delivery_date": datetime.utcnow()},
            where=(Delivery.driver_id == int(actor.id),),
        )
        advance_order(order, OrderStatus.DELIVERED, actor_id=actor.id, reason="delivered")
    logger.info("delivery_completed delivery_id=%s driver_id=%s order_id=%s", delivery.id, actor.id, order.id)
    return delivery


@require_role(Role.DRIVER)
def get_available_deliveries(actor) -> list[Delivery]:
    return (
        Delivery.query.join(Order, Order.id == Delivery.order_id)
        .filter(
            Delivery.status == DeliveryStatus.PENDING,
            Order.status == OrderStatus.READY_FOR_DELIVERY,
        )
        .order_by(Delivery.created_at.asc(), Delivery.id.asc())
        .all()
    )


@require_role(Role.DRIVER)
def get_driver_deliveries(actor, take: int | None = None) -> list[Delivery]:
    q = Delivery.query.filter_by(driver_id=int(actor.id)).order_by(Delivery.created_at.desc(), Delivery.id.desc())
    if take:
        q = q.limit(int(take))
    return q.all()


@require_role(Role.ADMIN)
def get_all_deliveries(actor) -> list[Delivery]:
    return Delivery.query.order_by(Delivery.created_at.desc(), Delivery.id.desc()).all()
