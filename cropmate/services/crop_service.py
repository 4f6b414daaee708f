from __future__ import annotations

import logging

from cropmate.extensions import db
from cropmate.models import Crop, CROP_CATEGORIES, Role
from cropmate.services.errors import NotFoundError, ValidationError
from cropmate.utils.auth import require_role

logger = logging.getLogger(__name__)


def _number(value, field: str, *, minimum: float = 0.0) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if parsed < minimum:
        raise ValidationError(f"{field} must be at least {minimum:g}")
    return parsed


@require_role(Role.FARMER)
def create_crop(actor, *, name: str, price_per_unit, available_quantity, unit: str, category: str = "vegetables",
                description: str = "", location: str = "", image_url: str | None = None) -> Crop:
    name = (name or "").strip()
    if len(name) < 2:
        raise ValidationError("name must be at least 2 characters")
    category = (category or "").strip().lower()
    if category not in CROP_CATEGORIES:
        raise ValidationError(f"category must be one of {', '.join(CROP_CATEGORIES)}")
    unit = (unit or "").strip()
    if not unit:
        raise ValidationError("unit is required")
    crop = Crop(
        farmer_id=int(actor.id),
        name=name,
        description=(description or "").strip() or None,
        category=category,
        price_per_unit=_number(price_per_unit, "price_per_unit"),
        available_quantity=_number(available_quantity, "available_quantity"),
        unit=unit,
        location=(location or "").strip() or None,
        image_url=image_url,
        is_available=True,
    )
    db.session.add(crop)
    db.session.commit()
    logger.info("crop_created crop_id=%s farmer_id=%s", crop.id, actor.id)
    return crop


def list_crops(*, category: str | None = None, farmer_id: int | None = None) -> list[Crop]:
    q = Crop.query.filter_by(is_available=True)
    if category:
        q = q.filter(Crop.category == category.strip().lower())
    if farmer_id is not None:
        q = q.filter(Crop.farmer_id == int(farmer_id))
    return q.order_by(Crop.created_at.desc(), Crop.id.desc()).all()


def get_crop(crop_id: int) -> Crop:
    crop = db.session.get(Crop, int(crop_id))
    if crop is None:
        raise NotFoundError("Crop not found")
    return crop
