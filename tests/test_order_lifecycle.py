from __future__ import annotations

import unittest

from cropmate.extensions import db
from cropmate.models import Crop, Delivery, DeliveryRequest, Order
from cropmate.services.errors import InvalidStateError, NotFoundError, UnauthorizedError, ValidationError
from cropmate.services.order_service import (
    cancel_order,
    confirm_payment,
    create_order,
    get_all_orders,
    get_customer_orders,
    get_farmer_orders,
    get_order,
    mark_as_ready_for_delivery,
    reject_payment,
)
from cropmate.services.state_machine import DeliveryRequestStatus, DeliveryStatus, OrderStatus
from cropmate.services.unit_of_work import transitions_for
from tests.support import MarketplaceTestCase, ServiceFlowMixin


class CreateOrderTestCase(ServiceFlowMixin, MarketplaceTestCase):
    def test_order_is_priced_and_split_at_creation(self):
        order = self.place_order(quantity=50)
        self.assertEqual(order.status, OrderStatus.PENDING_PAYMENT)
        self.assertEqual(order.total_price, 525.00)
        self.assertEqual(order.admin_payment, 10.50)
        self.assertEqual(order.farmer_payment, 514.50)
        self.assertEqual(order.driver_payment, 0.0)
        self.assertEqual(order.buyer_id, self.customer_id)
        self.assertTrue(order.payment_proof.startswith("https://storage.cropmate.test/cropmate/order-payments/"))
        self.assertIsNone(order.delivery)

        history = transitions_for("order", order.id)
        self.assertEqual([(t.from_status, t.to_status) for t in history], [("", OrderStatus.PENDING_PAYMENT)])

    def test_later_price_change_does_not_reprice_order(self):
        order = self.place_order(quantity=50)
        crop = db.session.get(Crop, self.crop_id)
        crop.price_per_unit = 99.0
        db.session.commit()
        self.assertEqual(db.session.get(Order, order.id).total_price, 525.00)

    def test_inventory_is_not_reserved(self):
        self.place_order(quantity=50)
        self.assertEqual(db.session.get(Crop, self.crop_id).available_quantity, 500)

    def test_unknown_crop(self):
        with self.assertRaises(NotFoundError):
            create_order(
                self.user(self.customer_id),
                crop_id=9999,
                quantity=1,
                delivery_address="12 Market Road, Ibadan",
                payment_proof=b"receipt",
            )
        self.assertEqual(Order.query.count(), 0)

    def test_rejects_bad_quantity_and_short_address(self):
        with self.assertRaises(ValidationError):
            self.place_order(quantity=0)
        with self.assertRaises(ValidationError):
            self.place_order(quantity="many")
        with self.assertRaises(ValidationError):
            self.place_order(address="short")
        self.assertEqual(Order.query.count(), 0)

    def test_payment_proof_is_required(self):
        with self.assertRaises(ValidationError):
            create_order(
                self.user(self.customer_id),
                crop_id=self.crop_id,
                quantity=2,
                delivery_address="12 Market Road, Ibadan",
                payment_proof=None,
            )

    def test_requires_a_session(self):
        with self.assertRaises(UnauthorizedError) as ctx:
            create_order(
                None,
                crop_id=self.crop_id,
                quantity=2,
                delivery_address="12 Market Road, Ibadan",
                payment_proof=b"receipt",
            )
        self.assertEqual(ctx.exception.status, 401)


class PaymentConfirmationTestCase(ServiceFlowMixin, MarketplaceTestCase):
    def test_confirm_creates_pending_delivery(self):
        order = self.place_order()
        order = confirm_payment(self.user(self.farmer_id), order.id)
        self.assertEqual(order.status, OrderStatus.PAYMENT_RECEIVED)
        delivery = Delivery.query.filter_by(order_id=order.id).one()
        self.assertEqual(delivery.status, DeliveryStatus.PENDING)
        self.assertIsNone(delivery.driver_id)

    def test_confirm_twice_is_a_noop(self):
        order = self.place_order()
        confirm_payment(self.user(self.farmer_id), order.id)
        again = confirm_payment(self.user(self.farmer_id), order.id)
        self.assertEqual(again.status, OrderStatus.PAYMENT_RECEIVED)
        self.assertEqual(Delivery.query.filter_by(order_id=order.id).count(), 1)

    def test_confirm_after_ready_is_a_noop(self):
        order = self.ready_order()
        again = confirm_payment(self.user(self.farmer_id), order.id)
        self.assertEqual(again.status, OrderStatus.READY_FOR_DELIVERY)
        self.assertEqual(Delivery.query.count(), 1)

    def test_confirm_cancelled_order_fails(self):
        order = self.place_order()
        cancel_order(self.user(self.farmer_id), order.id)
        with self.assertRaises(InvalidStateError):
            confirm_payment(self.user(self.farmer_id), order.id)

    def test_only_owning_farmer_confirms(self):
        order = self.place_order()
        with self.assertRaises(UnauthorizedError):
            confirm_payment(self.user(self.other_farmer_id), order.id)
        with self.assertRaises(UnauthorizedError):
            confirm_payment(self.user(self.customer_id), order.id)
        self.assertEqual(db.session.get(Order, order.id).status, OrderStatus.PENDING_PAYMENT)

    def test_reject_clears_proof_and_keeps_status(self):
        order = self.place_order()
        order = reject_payment(self.user(self.farmer_id), order.id)
        self.assertEqual(order.status, OrderStatus.PENDING_PAYMENT)
        self.assertIsNone(order.payment_proof)
        reasons = [t.reason for t in transitions_for("order", order.id)]
        self.assertIn("payment_rejected", reasons)

    def test_reject_after_confirmation_fails(self):
        order = self.paid_order()
        with self.assertRaises(InvalidStateError):
            reject_payment(self.user(self.farmer_id), order.id)


class ReadyAndCancelTestCase(ServiceFlowMixin, MarketplaceTestCase):
    def test_ready_requires_payment(self):
        order = self.place_order()
        with self.assertRaises(InvalidStateError) as ctx:
            mark_as_ready_for_delivery(self.user(self.farmer_id), order.id)
        self.assertIn("payment received", ctx.exception.message)

    def test_ready_after_payment(self):
        order = self.ready_order()
        self.assertEqual(order.status, OrderStatus.READY_FOR_DELIVERY)
        self.assertEqual(order.delivery.status, DeliveryStatus.PENDING)

    def test_cancel_pending_order(self):
        order = self.place_order()
        order = cancel_order(self.user(self.farmer_id), order.id)
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_cancel_also_cancels_open_delivery(self):
        order = self.ready_order()
        delivery_id = order.delivery.id
        self.bid(self.driver_a_id, delivery_id, 15.00)
        cancel_order(self.user(self.farmer_id), order.id)
        self.assertEqual(db.session.get(Delivery, delivery_id).status, DeliveryStatus.CANCELLED)
        # Bids are left as they were; the delivery is what closes.
        self.assertEqual(DeliveryRequest.query.one().status, DeliveryRequestStatus.PENDING)

    def test_cannot_cancel_twice(self):
        order = self.place_order()
        cancel_order(self.user(self.farmer_id), order.id)
        with self.assertRaises(InvalidStateError):
            cancel_order(self.user(self.farmer_id), order.id)


class OrderReadModelTestCase(ServiceFlowMixin, MarketplaceTestCase):
    def test_customer_and_farmer_views(self):
        first = self.place_order(quantity=1)
        second = self.place_order(quantity=2)
        mine = get_customer_orders(self.user(self.customer_id))
        self.assertEqual([o.id for o in mine], [second.id, first.id])
        self.assertEqual(len(get_customer_orders(self.user(self.customer_id), take=1)), 1)
        self.assertEqual(get_customer_orders(self.user(self.other_customer_id)), [])
        self.assertEqual(len(get_farmer_orders(self.user(self.farmer_id))), 2)
        self.assertEqual(get_farmer_orders(self.user(self.other_farmer_id)), [])

    def test_single_order_visible_to_participants_only(self):
        order = self.place_order()
        self.assertEqual(get_order(self.user(self.customer_id), order.id).id, order.id)
        self.assertEqual(get_order(self.user(self.farmer_id), order.id).id, order.id)
        self.assertEqual(get_order(self.user(self.admin_id), order.id).id, order.id)
        with self.assertRaises(UnauthorizedError):
            get_order(self.user(self.other_customer_id), order.id)
        with self.assertRaises(NotFoundError):
            get_order(self.user(self.customer_id), 4242)

    def test_all_orders_is_admin_only(self):
        self.place_order()
        self.assertEqual(len(get_all_orders(self.user(self.admin_id))), 1)
        with self.assertRaises(UnauthorizedError):
            get_all_orders(self.user(self.farmer_id))


if __name__ == "__main__":
    unittest.main()
