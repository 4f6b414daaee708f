from __future__ import annotations

from flask import Blueprint, jsonify, request

from cropmate.services.delivery_service import (
    accept_delivery,
    complete_delivery,
    get_all_deliveries,
    get_available_deliveries,
    get_driver_deliveries,
    pickup_delivery,
)
from cropmate.utils.auth import current_user

deliveries_bp = Blueprint("deliveries_bp", __name__, url_prefix="/api")


@deliveries_bp.get("/driver/deliveries/available")
def available():
    rows = get_available_deliveries(current_user())
    return jsonify({"ok": True, "items": [d.to_dict() for d in rows]}), 200


@deliveries_bp.get("/driver/deliveries")
def mine():
    rows = get_driver_deliveries(current_user(), take=request.args.get("take", type=int))
    return jsonify({"ok": True, "items": [d.to_dict() for d in rows]}), 200


@deliveries_bp.get("/admin/deliveries")
def admin_index():
    rows = get_all_deliveries(current_user())
    return jsonify({"ok": True, "items": [d.to_dict() for d in rows]}), 200


@deliveries_bp.post("/deliveries/<int:delivery_id>/accept")
def accept(delivery_id: int):
    delivery = accept_delivery(current_user(), delivery_id)
    return jsonify({"ok": True, "delivery": delivery.to_dict()}), 200


@deliveries_bp.post("/deliveries/<int:delivery_id>/pickup")
def pickup(delivery_id: int):
    delivery = pickup_delivery(current_user(), delivery_id)
    return jsonify({"ok": True, "delivery": delivery.to_dict()}), 200


@deliveries_bp.post("/deliveries/<int:delivery_id>/complete")
def complete(delivery_id: int):
    delivery = complete_delivery(current_user(), delivery_id)
    return jsonify({"ok": True, "delivery": delivery.to_dict()}), 200
