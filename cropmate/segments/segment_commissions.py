from __future__ import annotations

from flask import Blueprint, jsonify

from cropmate.services.commission_service import (
    approve_driver_commission,
    get_admin_earnings,
    get_driver_commissions,
    get_driver_earnings,
    get_farmer_earnings,
)
from cropmate.utils.auth import current_user

commissions_bp = Blueprint("commissions_bp", __name__, url_prefix="/api")


@commissions_bp.get("/driver/earnings")
def driver_earnings():
    return jsonify({"ok": True, **get_driver_earnings(current_user())}), 200


@commissions_bp.get("/farmer/earnings")
def farmer_earnings():
    return jsonify({"ok": True, **get_farmer_earnings(current_user())}), 200


@commissions_bp.get("/admin/earnings")
def admin_earnings():
    return jsonify({"ok": True, **get_admin_earnings(current_user())}), 200


@commissions_bp.get("/admin/driver-commissions")
def admin_index():
    return jsonify({"ok": True, **get_driver_commissions(current_user())}), 200


@commissions_bp.post("/admin/driver-commissions/<int:request_id>/approve")
def approve(request_id: int):
    req = approve_driver_commission(current_user(), request_id)
    return jsonify({"ok": True, "request": req.to_dict(include_delivery=False)}), 200
