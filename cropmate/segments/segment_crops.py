from __future__ import annotations

from flask import Blueprint, jsonify, request

from cropmate.services.crop_service import create_crop, get_crop, list_crops
from cropmate.utils.auth import current_user

crops_bp = Blueprint("crops_bp", __name__, url_prefix="/api")


@crops_bp.post("/crops")
def create():
    payload = request.get_json(silent=True) or request.form.to_dict(flat=True)
    crop = create_crop(
        current_user(),
        name=payload.get("name") or "",
        price_per_unit=payload.get("price_per_unit"),
        available_quantity=payload.get("available_quantity"),
        unit=payload.get("unit") or "",
        category=payload.get("category") or "vegetables",
        description=payload.get("description") or "",
        location=payload.get("location") or "",
        image_url=payload.get("image_url"),
    )
    return jsonify({"ok": True, "crop": crop.to_dict()}), 201


@crops_bp.get("/crops")
def index():
    farmer_id = request.args.get("farmer_id", type=int)
    rows = list_crops(category=request.args.get("category"), farmer_id=farmer_id)
    return jsonify({"ok": True, "items": [c.to_dict() for c in rows]}), 200


@crops_bp.get("/crops/<int:crop_id>")
def show(crop_id: int):
    return jsonify({"ok": True, "crop": get_crop(crop_id).to_dict()}), 200
