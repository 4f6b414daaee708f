from datetime import datetime

from cropmate.extensions import db


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    crop_id = db.Column(db.Integer, db.ForeignKey("crops.id"), nullable=False, index=True)

    quantity = db.Column(db.Float, nullable=False)
    total_price = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(32), nullable=False, default="PENDING_PAYMENT", index=True)
    delivery_address = db.Column(db.String(255), nullable=False, default="")
    payment_proof = db.Column(db.String(1024), nullable=True)

    # Split fixed at creation time
    admin_payment = db.Column(db.Float, nullable=False, default=0.0)
    farmer_payment = db.Column(db.Float, nullable=False, default=0.0)
    driver_payment = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    buyer = db.relationship("User", foreign_keys=[buyer_id])
    crop = db.relationship("Crop")
    delivery = db.relationship("Delivery", back_populates="order", uselist=False)

    def to_dict(self, include_delivery: bool = True):
        data = {
            "id": int(self.id),
            "buyer_id": int(self.buyer_id),
            "crop_id": int(self.crop_id),
            "crop_name": (self.crop.name if self.crop else ""),
            "farmer_id": (int(self.crop.farmer_id) if self.crop else None),
            "quantity": float(self.quantity or 0),
            "total_price": float(self.total_price or 0.0),
            "status": self.status or "",
            "delivery_address": self.delivery_address or "",
            "payment_proof": self.payment_proof,
            "admin_payment": float(self.admin_payment or 0.0),
            "farmer_payment": float(self.farmer_payment or 0.0),
            "driver_payment": float(self.driver_payment or 0.0),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_delivery:
            data["delivery"] = self.delivery.to_dict(include_order=False) if self.delivery else None
        return data
