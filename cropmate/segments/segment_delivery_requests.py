from __future__ import annotations

from flask import Blueprint, jsonify, request

from cropmate.services.commission_service import submit_driver_admin_payment
from cropmate.services.delivery_request_service import (
    accept_delivery_request,
    create_delivery_request,
    get_customer_delivery_requests,
    get_driver_delivery_requests,
    reject_delivery_request,
)
from cropmate.utils.auth import current_user

delivery_requests_bp = Blueprint("delivery_requests_bp", __name__, url_prefix="/api")


@delivery_requests_bp.post("/deliveries/<int:delivery_id>/requests")
def create(delivery_id: int):
    payload = request.get_json(silent=True) or request.form.to_dict(flat=True)
    req = create_delivery_request(
        current_user(),
        delivery_id,
        payload.get("custom_fee"),
        message=payload.get("message"),
    )
    return jsonify({"ok": True, "request": req.to_dict()}), 201


@delivery_requests_bp.get("/customer/delivery-requests")
def customer_index():
    rows = get_customer_delivery_requests(current_user())
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200


@delivery_requests_bp.get("/driver/delivery-requests")
def driver_index():
    rows = get_driver_delivery_requests(current_user())
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200


@delivery_requests_bp.post("/delivery-requests/<int:request_id>/accept")
def accept(request_id: int):
    req = accept_delivery_request(current_user(), request_id)
    return jsonify({"ok": True, "request": req.to_dict()}), 200


@delivery_requests_bp.post("/delivery-requests/<int:request_id>/reject")
def reject(request_id: int):
    req = reject_delivery_request(current_user(), request_id)
    return jsonify({"ok": True, "request": req.to_dict(include_delivery=False)}), 200


@delivery_requests_bp.post("/delivery-requests/<int:request_id>/admin-payment")
def admin_payment(request_id: int):
    req = submit_driver_admin_payment(current_user(), request_id, request.files.get("payment_proof"))
    return jsonify({"ok": True, "request": req.to_dict(include_delivery=False)}), 200
