from datetime import datetime

from cropmate.extensions import db


class DeliveryRequest(db.Model):
    __tablename__ = "delivery_requests"
    __table_args__ = (
        db.UniqueConstraint("delivery_id", "driver_id", name="uq_delivery_request_driver"),
    )

    id = db.Column(db.Integer, primary_key=True)
    delivery_id = db.Column(db.Integer, db.ForeignKey("deliveries.id"), nullable=False, index=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    custom_fee = db.Column(db.Float, nullable=False, default=0.0)
    message = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)  # PENDING|ACCEPTED|REJECTED

    # Admin commission settlement, only mutated on the accepted request
    admin_commission_paid = db.Column(db.Boolean, nullable=False, default=False)
    payment_proof = db.Column(db.String(1024), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    delivery = db.relationship("Delivery", back_populates="requests")
    driver = db.relationship("User", foreign_keys=[driver_id])

    def to_dict(self, include_delivery: bool = True):
        data = {
            "id": int(self.id),
            "delivery_id": int(self.delivery_id),
            "driver_id": int(self.driver_id),
            "driver_name": (self.driver.name if self.driver else ""),
            "custom_fee": float(self.custom_fee or 0.0),
            "message": self.message or "",
            "status": self.status or "",
            "admin_commission_paid": bool(self.admin_commission_paid),
            "payment_proof": self.payment_proof,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_delivery and self.delivery is not None:
            data["delivery"] = self.delivery.to_dict()
        return data
