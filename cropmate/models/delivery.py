from datetime import datetime

from cropmate.extensions import db


class Delivery(db.Model):
    __tablename__ = "deliveries"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, unique=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    status = db.Column(db.String(32), nullable=False, default="PENDING", index=True)
    pickup_date = db.Column(db.DateTime, nullable=True)
    delivery_date = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = db.relationship("Order", back_populates="delivery")
    driver = db.relationship("User", foreign_keys=[driver_id])
    requests = db.relationship("DeliveryRequest", back_populates="delivery")

    def to_dict(self, include_order: bool = True):
        data = {
            "id": int(self.id),
            "order_id": int(self.order_id),
            "driver_id": int(self.driver_id) if self.driver_id is not None else None,
            "driver_name": (self.driver.name if self.driver else None),
            "status": self.status or "",
            "pickup_date": self.pickup_date.isoformat() if self.pickup_date else None,
            "delivery_date": self.delivery_date.isoformat() if self.delivery_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_order and self.order is not None:
            data["order"] = self.order.to_dict(include_delivery=False)
        return data
