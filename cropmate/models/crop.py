from datetime import datetime

from cropmate.extensions import db


CROP_CATEGORIES = ("vegetables", "fruits", "grains", "legumes")


class Crop(db.Model):
    __tablename__ = "crops"

    id = db.Column(db.Integer, primary_key=True)
    farmer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(32), nullable=False, default="vegetables")
    price_per_unit = db.Column(db.Float, nullable=False, default=0.0)
    available_quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(32), nullable=False, default="kg")
    location = db.Column(db.String(255), nullable=True)
    image_url = db.Column(db.String(1024), nullable=True)
    is_available = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    farmer = db.relationship("User", lazy="joined")

    def to_dict(self):
        return {
            "id": int(self.id),
            "farmer_id": int(self.farmer_id),
            "farmer_name": (self.farmer.name if self.farmer else ""),
            "name": self.name or "",
            "description": self.description or "",
            "category": self.category or "",
            "price_per_unit": float(self.price_per_unit or 0.0),
            "available_quantity": float(self.available_quantity or 0.0),
            "unit": self.unit or "",
            "location": self.location or "",
            "image_url": self.image_url or "",
            "is_available": bool(self.is_available),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
