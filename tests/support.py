from __future__ import annotations

import io
import os
import unittest

from cropmate import create_app
from cropmate.extensions import db
from cropmate.models import Crop, Role, User
from cropmate.utils.jwt_utils import create_access_token

_ENV_KEYS = ("CROPMATE_ENV", "SQLALCHEMY_DATABASE_URI", "DATABASE_URL", "STORAGE_PROVIDER")


class MarketplaceTestCase(unittest.TestCase):
    """Fresh in-memory marketplace per test: one customer, one farmer, two drivers, an admin and a crop."""

    def setUp(self):
        self._prev_env = {k: os.getenv(k) for k in _ENV_KEYS}
        os.environ["CROPMATE_ENV"] = "test"
        os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        os.environ["STORAGE_PROVIDER"] = "mock"

        self.app = create_app()
        self.client = self.app.test_client()
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

        self.customer_id = self._make_user("Ada Customer", "customer@cropmate.test", Role.CUSTOMER)
        self.other_customer_id = self._make_user("Obi Customer", "customer2@cropmate.test", Role.CUSTOMER)
        self.farmer_id = self._make_user("Femi Farmer", "farmer@cropmate.test", Role.FARMER)
        self.other_farmer_id = self._make_user("Funke Farmer", "farmer2@cropmate.test", Role.FARMER)
        self.driver_a_id = self._make_user("Dayo Driver", "driver-a@cropmate.test", Role.DRIVER)
        self.driver_b_id = self._make_user("Bola Driver", "driver-b@cropmate.test", Role.DRIVER)
        self.driver_c_id = self._make_user("Chidi Driver", "driver-c@cropmate.test", Role.DRIVER)
        self.admin_id = self._make_user("Admin", "admin@cropmate.test", Role.ADMIN)

        crop = Crop(
            farmer_id=self.farmer_id,
            name="Tomatoes",
            category="vegetables",
            price_per_unit=10.50,
            available_quantity=500,
            unit="kg",
            location="Ibadan",
        )
        db.session.add(crop)
        db.session.commit()
        self.crop_id = int(crop.id)

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()
        for key, value in self._prev_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

    def _make_user(self, name: str, email: str, role: str) -> int:
        u = User(name=name, email=email, role=role)
        u.set_password("Passw0rd!")
        db.session.add(u)
        db.session.commit()
        return int(u.id)

    def user(self, user_id: int) -> User:
        return db.session.get(User, int(user_id))

    def auth(self, user_id: int) -> dict:
        u = self.user(user_id)
        return {"Authorization": f"Bearer {create_access_token(u.id, role=u.role)}"}

    @staticmethod
    def proof(content: bytes = b"bank-transfer-receipt", filename: str = "receipt.png"):
        return (io.BytesIO(content), filename)


class ServiceFlowMixin:
    """Drives an order to a given point through the service layer."""

    def place_order(self, quantity=50, address="12 Market Road, Ibadan"):
        from cropmate.services.order_service import create_order

        return create_order(
            self.user(self.customer_id),
            crop_id=self.crop_id,
            quantity=quantity,
            delivery_address=address,
            payment_proof=b"bank-transfer-receipt",
        )

    def paid_order(self, **kwargs):
        from cropmate.services.order_service import confirm_payment

        order = self.place_order(**kwargs)
        return confirm_payment(self.user(self.farmer_id), order.id)

    def ready_order(self, **kwargs):
        from cropmate.services.order_service import mark_as_ready_for_delivery

        order = self.paid_order(**kwargs)
        return mark_as_ready_for_delivery(self.user(self.farmer_id), order.id)

    def bid(self, driver_id: int, delivery_id: int, fee, message=None):
        from cropmate.services.delivery_request_service import create_delivery_request

        return create_delivery_request(self.user(driver_id), delivery_id, fee, message=message)
