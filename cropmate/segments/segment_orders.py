from __future__ import annotations

from flask import Blueprint, jsonify, request

from cropmate.services.errors import ValidationError
from cropmate.services.order_service import (
    cancel_order,
    confirm_payment,
    create_order,
    get_all_orders,
    get_customer_orders,
    get_farmer_orders,
    get_order,
    mark_as_ready_for_delivery,
    reject_payment,
)
from cropmate.utils.auth import current_user

orders_bp = Blueprint("orders_bp", __name__, url_prefix="/api")


def _order_payload(order) -> tuple:
    return jsonify({"ok": True, "order": order.to_dict()}), 200


@orders_bp.post("/orders")
def create():
    # Multipart: the payment proof travels as a file next to the form fields.
    form = request.form.to_dict(flat=True) if request.form else (request.get_json(silent=True) or {})
    try:
        crop_id = int(form.get("crop_id"))
    except (TypeError, ValueError):
        raise ValidationError("crop_id is required")
    order = create_order(
        current_user(),
        crop_id=crop_id,
        quantity=form.get("quantity"),
        delivery_address=form.get("delivery_address") or "",
        payment_proof=request.files.get("payment_proof"),
    )
    return jsonify({"ok": True, "order": order.to_dict()}), 201


@orders_bp.get("/orders/my")
def my_orders():
    rows = get_customer_orders(current_user(), take=request.args.get("take", type=int))
    return jsonify({"ok": True, "items": [o.to_dict() for o in rows]}), 200


@orders_bp.get("/farmer/orders")
def farmer_orders():
    rows = get_farmer_orders(current_user(), take=request.args.get("take", type=int))
    return jsonify({"ok": True, "items": [o.to_dict() for o in rows]}), 200


@orders_bp.get("/admin/orders")
def admin_orders():
    rows = get_all_orders(current_user())
    return jsonify({"ok": True, "items": [o.to_dict() for o in rows]}), 200


@orders_bp.get("/orders/<int:order_id>")
def show(order_id: int):
    return _order_payload(get_order(current_user(), order_id))


@orders_bp.post("/orders/<int:order_id>/confirm-payment")
def confirm(order_id: int):
    return _order_payload(confirm_payment(current_user(), order_id))


@orders_bp.post("/orders/<int:order_id>/reject-payment")
def reject(order_id: int):
    return _order_payload(reject_payment(current_user(), order_id))


@orders_bp.post("/orders/<int:order_id>/ready")
def ready(order_id: int):
    return _order_payload(mark_as_ready_for_delivery(current_user(), order_id))


@orders_bp.post("/orders/<int:order_id>/cancel")
def cancel(order_id: int):
    return _order_payload(cancel_order(current_user(), order_id))
