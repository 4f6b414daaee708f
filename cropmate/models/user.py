from datetime import datetime

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from cropmate.extensions import db


class Role:
    CUSTOMER = "CUSTOMER"
    FARMER = "FARMER"
    DRIVER = "DRIVER"
    ADMIN = "ADMIN"

    ALL = (CUSTOMER, FARMER, DRIVER, ADMIN)


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False, default="")
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=Role.CUSTOMER)
    address = db.Column(db.String(255), nullable=True)

    # Payout details (farmers and drivers)
    account_name = db.Column(db.String(120), nullable=True)
    account_number = db.Column(db.String(64), nullable=True)
    bank_name = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, raw_password: str) -> None:
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password_hash(self.password_hash, raw_password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role or Role.CUSTOMER,
            "address": self.address or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
