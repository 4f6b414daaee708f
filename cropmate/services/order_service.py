from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from cropmate.extensions import db
from cropmate.integrations.storage import StorageProvider
from cropmate.models import Crop, Delivery, Order, Role
from cropmate.services.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from cropmate.services.state_machine import DeliveryStatus, OrderStatus, ensure_transition, require_status
from cropmate.services.transitions import advance_delivery, advance_order
from cropmate.services.unit_of_work import record_transition, transaction
from cropmate.services.uploads import upload_proof
from cropmate.utils.auth import require_role, role_of
from cropmate.utils.commission import order_total, split_order_total

logger = logging.getLogger(__name__)

MIN_ADDRESS_LENGTH = 10


def _get_order(order_id: int) -> Order:
    order = db.session.get(Order, int(order_id))
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _farmer_order(actor, order_id: int) -> Order:
    order = _get_order(order_id)
    if order.crop is None or int(order.crop.farmer_id) != int(actor.id):
        raise UnauthorizedError("Order not found or unauthorized")
    return order


def _parse_quantity(value) -> float:
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be a number")
    if quantity < 1:
        raise ValidationError("quantity must be at least 1")
    return quantity


@require_role()
def create_order(actor, *, crop_id: int, quantity, delivery_address: str, payment_proof,
                 storage: StorageProvider | None = None) -> Order:
    crop = db.session.get(Crop, int(crop_id))
    if crop is None:
        raise NotFoundError("Crop not found")

    qty = _parse_quantity(quantity)
    address = (delivery_address or "").strip()
    if len(address) < MIN_ADDRESS_LENGTH:
        raise ValidationError(f"delivery_address must be at least {MIN_ADDRESS_LENGTH} characters")

    # Priced from the crop as it is now; later price edits never touch this order.
    split = split_order_total(order_total(qty, crop.price_per_unit))
    proof_url = upload_proof(payment_proof, kind="order-payments", storage=storage)

    # Inventory is managed by the farmer; ordering does not reserve stock.
    order = Order(
        buyer_id=int(actor.id),
        crop_id=int(crop.id),
        quantity=qty,
        total_price=split["total_price"],
        admin_payment=split["admin_payment"],
        farmer_payment=split["farmer_payment"],
        driver_payment=split["driver_payment"],
        delivery_address=address,
        payment_proof=proof_url,
        status=OrderStatus.PENDING_PAYMENT,
    )
    with transaction():
        db.session.add(order)
        db.session.flush()
        record_transition("order", order.id, None, OrderStatus.PENDING_PAYMENT, actor_id=actor.id, reason="order_created")
    logger.info(
        "order_created order_id=%s buyer_id=%s crop_id=%s total=%.2f",
        order.id, actor.id, crop.id, order.total_price,
    )
    return order


@require_role(Role.FARMER)
def confirm_payment(actor, order_id: int) -> Order:
    order = _farmer_order(actor, order_id)
    if order.status in OrderStatus.PAID:
        # Double submission from the dashboard is expected; nothing to do.
        logger.info("order_payment_confirm_noop order_id=%s status=%s", order.id, order.status)
        return order
    ensure_transition("order", order.status, OrderStatus.PAYMENT_RECEIVED)

    try:
        with transaction():
            advance_order(order, OrderStatus.PAYMENT_RECEIVED, actor_id=actor.id, reason="payment_confirmed")
            delivery = Delivery(order_id=int(order.id), status=DeliveryStatus.PENDING)
            db.session.add(delivery)
            db.session.flush()
            record_transition("delivery", delivery.id, None, DeliveryStatus.PENDING, actor_id=actor.id, reason="payment_confirmed")
    except (ConflictError, IntegrityError):
        db.session.refresh(order)
        if order.status in OrderStatus.PAID:
            logger.info("order_payment_confirm_raced order_id=%s", order.id)
            return order
        raise

    logger.info("order_payment_confirmed order_id=%s farmer_id=%s", order.id, actor.id)
    return order


@require_role(Role.FARMER)
def reject_payment(actor, order_id: int) -> Order:
    order = _farmer_order(actor, order_id)
    require_status("order", order.status, OrderStatus.PENDING_PAYMENT,
                   message="Order is not in pending payment status")
    with transaction():
        order.payment_proof = None
        order.updated_at = datetime.utcnow()
        db.session.add(order)
        record_transition("order", order.id, order.status, order.status, actor_id=actor.id, reason="payment_rejected")
    logger.info("order_payment_rejected order_id=%s farmer_id=%s", order.id, actor.id)
    return order


@require_role(Role.FARMER)
def mark_as_ready_for_delivery(actor, order_id: int) -> Order:
    order = _farmer_order(actor, order_id)
    require_status("order", order.status, OrderStatus.PAYMENT_RECEIVED,
                   message="Order must have payment received first")
    with transaction():
        advance_order(order, OrderStatus.READY_FOR_DELIVERY, actor_id=actor.id, reason="ready_for_delivery")
    logger.info("order_ready_for_delivery order_id=%s", order.id)
    return order


@require_role(Role.FARMER)
def cancel_order(actor, order_id: int) -> Order:
    order = _farmer_order(actor, order_id)
    if order.status in OrderStatus.TERMINAL:
        raise InvalidStateError(f"Order cannot be cancelled in {order.status} status")
    with transaction():
        advance_order(order, OrderStatus.CANCELLED, actor_id=actor.id, reason="cancelled_by_farmer")
        delivery = order.delivery
        if delivery is not None and delivery.status not in DeliveryStatus.TERMINAL:
            advance_delivery(delivery, DeliveryStatus.CANCELLED, actor_id=actor.id, reason="order_cancelled")
    logger.info("order_cancelled order_id=%s farmer_id=%s", order.id, actor.id)
    return order


@require_role()
def get_customer_orders(actor, take: int | None = None) -> list[Order]:
    q = Order.query.filter_by(buyer_id=int(actor.id)).order_by(Order.created_at.desc(), Order.id.desc())
    if take:
        q = q.limit(int(take))
    return q.all()


@require_role(Role.FARMER)
def get_farmer_orders(actor, take: int | None = None) -> list[Order]:
    q = (
        Order.query.join(Crop, Crop.id == Order.crop_id)
        .filter(Crop.farmer_id == int(actor.id))
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    if take:
        q = q.limit(int(take))
    return q.all()


@require_role()
def get_order(actor, order_id: int) -> Order:
    order = _get_order(order_id)
    if role_of(actor) == Role.ADMIN:
        return order
    participants = {int(order.buyer_id)}
    if order.crop is not None:
        participants.add(int(order.crop.farmer_id))
    if order.delivery is not None and order.delivery.driver_id is not None:
        participants.add(int(order.delivery.driver_id))
    if int(actor.id) not in participants:
        raise UnauthorizedError("Order not found or unauthorized")
    return order


@require_role(Role.ADMIN)
def get_all_orders(actor) -> list[Order]:
    return Order.query.order_by(Order.created_at.desc(), Order.id.desc()).all()
