from __future__ import annotations

import logging
from datetime import datetime

from cropmate.extensions import db
from cropmate.integrations.storage import StorageProvider
from cropmate.models import Crop, Delivery, DeliveryRequest, Order, Role
from cropmate.services.delivery_request_service import get_delivery_request
from cropmate.services.errors import UnauthorizedError
from cropmate.services.state_machine import DeliveryRequestStatus, DeliveryStatus, OrderStatus, require_status
from cropmate.services.unit_of_work import transaction
from cropmate.services.uploads import upload_proof
from cropmate.utils.auth import require_role
from cropmate.utils.commission import driver_admin_commission, sum_money

logger = logging.getLogger(__name__)


def accepted_request_for(delivery: Delivery) -> DeliveryRequest | None:
    return DeliveryRequest.query.filter_by(
        delivery_id=int(delivery.id), status=DeliveryRequestStatus.ACCEPTED
    ).first()


def driver_earnings(delivery: Delivery) -> float:
    accepted = accepted_request_for(delivery)
    if accepted is not None:
        return float(accepted.custom_fee or 0.0)
    # Deliveries from before driver bidding existed were paid out of the order
    # split; keep reading that column for them.
    order = delivery.order
    return float(order.driver_payment or 0.0) if order is not None else 0.0


def admin_commission(delivery: Delivery) -> float:
    return driver_admin_commission(driver_earnings(delivery))


def is_commission_paid(delivery: Delivery) -> bool:
    accepted = accepted_request_for(delivery)
    return bool(accepted is not None and accepted.admin_commission_paid)


def ledger_entry(delivery: Delivery) -> dict:
    accepted = accepted_request_for(delivery)
    order = delivery.order
    earnings = driver_earnings(delivery)
    return {
        "delivery_id": int(delivery.id),
        "order_id": int(delivery.order_id),
        "request_id": int(accepted.id) if accepted is not None else None,
        "crop_name": (order.crop.name if order is not None and order.crop is not None else ""),
        "delivery_date": (delivery.delivery_date or delivery.updated_at).isoformat()
        if (delivery.delivery_date or delivery.updated_at) else None,
        "driver_earnings": earnings,
        "admin_commission": driver_admin_commission(earnings),
        "is_paid": bool(accepted is not None and accepted.admin_commission_paid),
        "payment_proof": (accepted.payment_proof if accepted is not None else None),
    }


@require_role(Role.DRIVER)
def submit_driver_admin_payment(actor, request_id: int, proof_file, storage: StorageProvider | None = None) -> DeliveryRequest:
    req = get_delivery_request(request_id)
    if int(req.driver_id) != int(actor.id):
        raise UnauthorizedError("Unauthorized: this request belongs to another driver")
    require_status("delivery_request", req.status, DeliveryRequestStatus.ACCEPTED,
                   message="Commission can only be paid on an accepted request")

    proof_url = upload_proof(proof_file, kind="driver-commissions", storage=storage)
    with transaction():
        req.payment_proof = proof_url
        req.admin_commission_paid = True
        req.updated_at = datetime.utcnow()
        db.session.add(req)
    logger.info("driver_commission_submitted request_id=%s driver_id=%s", req.id, actor.id)
    return req


@require_role(Role.ADMIN)
def approve_driver_commission(actor, request_id: int) -> DeliveryRequest:
    req = get_delivery_request(request_id)
    require_status("delivery_request", req.status, DeliveryRequestStatus.ACCEPTED,
                   message="Commission can only be paid on an accepted request")
    with transaction():
        req.admin_commission_paid = True
        req.updated_at = datetime.utcnow()
        db.session.add(req)
    logger.info("driver_commission_approved request_id=%s admin_id=%s", req.id, actor.id)
    return req


@require_role(Role.ADMIN)
def get_driver_commissions(actor) -> dict:
    rows = (
        DeliveryRequest.query.join(Delivery, Delivery.id == DeliveryRequest.delivery_id)
        .filter(
            DeliveryRequest.status == DeliveryRequestStatus.ACCEPTED,
            Delivery.status == DeliveryStatus.DELIVERED,
        )
        .order_by(DeliveryRequest.updated_at.desc(), DeliveryRequest.id.desc())
        .all()
    )
    items = []
    for req in rows:
        fee = float(req.custom_fee or 0.0)
        delivery = req.delivery
        items.append({
            "id": int(req.id),
            "driver_id": int(req.driver_id),
            "driver_name": (req.driver.name if req.driver else ""),
            "delivery_id": int(req.delivery_id),
            "delivery_date": (delivery.delivery_date or delivery.updated_at).isoformat()
            if (delivery.delivery_date or delivery.updated_at) else None,
            "crop_name": (delivery.order.crop.name if delivery.order and delivery.order.crop else ""),
            "driver_earnings": fee,
            "admin_commission": driver_admin_commission(fee),
            "is_paid": bool(req.admin_commission_paid),
            "payment_proof": req.payment_proof,
        })
    paid = [i["admin_commission"] for i in items if i["is_paid"]]
    pending = [i["admin_commission"] for i in items if not i["is_paid"]]
    return {
        "driver_commissions": items,
        "summary": {
            "total_commissions": sum_money(paid + pending),
            "total_paid_commissions": sum_money(paid),
            "total_pending_commissions": sum_money(pending),
            "total_requests": len(items),
            "paid_requests": len(paid),
            "pending_requests": len(pending),
        },
    }


@require_role(Role.DRIVER)
def get_driver_earnings(actor) -> dict:
    deliveries = (
        Delivery.query.filter_by(driver_id=int(actor.id), status=DeliveryStatus.DELIVERED)
        .order_by(Delivery.updated_at.desc(), Delivery.id.desc())
        .all()
    )
    entries = [ledger_entry(d) for d in deliveries]
    return {
        "deliveries": entries,
        "total_earnings": sum_money(e["driver_earnings"] for e in entries),
        "total_commission": sum_money(e["admin_commission"] for e in entries),
        "unpaid_commission": sum_money(e["admin_commission"] for e in entries if not e["is_paid"]),
    }


def _order_ledger_entry(order: Order) -> dict:
    data = order.to_dict(include_delivery=False)
    data["crop_unit"] = order.crop.unit if order.crop is not None else ""
    data["buyer_name"] = order.buyer.name if order.buyer is not None else ""
    return data


def _order_earnings(query, share: str) -> dict:
    orders = (
        query.filter(Order.status.in_(sorted(OrderStatus.PAID)))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    now = datetime.utcnow()
    this_month = [
        o for o in orders
        if o.created_at is not None and (o.created_at.year, o.created_at.month) == (now.year, now.month)
    ]
    return {
        "orders": [_order_ledger_entry(o) for o in orders],
        "total_orders": len(orders),
        "total_earnings": sum_money(getattr(o, share) for o in orders),
        "monthly_earnings": sum_money(getattr(o, share) for o in this_month),
    }


@require_role(Role.FARMER)
def get_farmer_earnings(actor) -> dict:
    """Farmer share of every paid order for the caller's crops."""
    query = Order.query.join(Crop, Crop.id == Order.crop_id).filter(Crop.farmer_id == int(actor.id))
    return _order_earnings(query, "farmer_payment")


@require_role(Role.ADMIN)
def get_admin_earnings(actor) -> dict:
    """Platform share of every paid order."""
    return _order_earnings(Order.query, "admin_payment")
