from __future__ import annotations

import unittest

from cropmate.extensions import db
from cropmate.models import Delivery, DeliveryRequest, Order
from cropmate.services.delivery_service import (
    accept_delivery,
    complete_delivery,
    get_all_deliveries,
    get_available_deliveries,
    get_driver_deliveries,
    pickup_delivery,
)
from cropmate.services.errors import ConflictError, InvalidStateError, UnauthorizedError
from cropmate.services.state_machine import DeliveryRequestStatus, DeliveryStatus, OrderStatus
from cropmate.services.unit_of_work import transitions_for
from tests.support import MarketplaceTestCase, ServiceFlowMixin


class DirectClaimTestCase(ServiceFlowMixin, MarketplaceTestCase):
    def test_driver_claims_ready_delivery(self):
        order = self.ready_order()
        delivery = accept_delivery(self.user(self.driver_a_id), order.delivery.id)
        self.assertEqual(delivery.status, DeliveryStatus.ACCEPTED)
        self.assertEqual(delivery.driver_id, self.driver_a_id)
        self.assertEqual(db.session.get(Order, order.id).status, OrderStatus.IN_TRANSIT)

    def test_claim_closes_open_bids(self):
        order = self.ready_order()
        delivery_id = order.delivery.id
        self.bid(self.driver_b_id, delivery_id, 12.00)
        self.bid(self.driver_c_id, delivery_id, 14.00)
        accept_delivery(self.user(self.driver_a_id), delivery_id)
        statuses = {r.status for r in DeliveryRequest.query.filter_by(delivery_id=delivery_id)}
        self.assertEqual(statuses, {DeliveryRequestStatus.REJECTED})

    def test_claim_requires_ready_order(self):
        order = self.paid_order()
        with self.assertRaises(InvalidStateError):
            accept_delivery(self.user(self.driver_a_id), order.delivery.id)

    def test_second_claim_fails(self):
        order = self.ready_order()
        accept_delivery(self.user(self.driver_a_id), order.delivery.id)
        with self.assertRaises(InvalidStateError):
            accept_delivery(self.user(self.driver_b_id), order.delivery.id)
        self.assertEqual(db.session.get(Delivery, order.delivery.id).driver_id, self.driver_a_id)

    def test_claim_loses_race_against_concurrent_assignment(self):
        order = self.ready_order()
        delivery_id = order.delivery.id
        # Another worker bound a driver but the status write has not landed yet.
        Delivery.query.filter_by(id=delivery_id).update({"driver_id": self.driver_c_id})
        db.session.commit()

        with self.assertRaises(ConflictError):
            accept_delivery(self.user(self.driver_a_id), delivery_id)

        delivery = db.session.get(Delivery, delivery_id)
        self.assertEqual(delivery.driver_id, self.driver_c_id)
        self.assertEqual(delivery.status, DeliveryStatus.PENDING)
        self.assertEqual(db.session.get(Order, order.id).status, OrderStatus.READY_FOR_DELIVERY)
        self.assertEqual([t.to_status for t in transitions_for("delivery", delivery_id)], [DeliveryStatus.PENDING])

    def test_only_drivers_claim(self):
        order = self.ready_order()
        with self.assertRaises(UnauthorizedError):
            accept_delivery(self.user(self.customer_id), order.delivery.id)


class PickupAndCompleteTestCase(ServiceFlowMixin, MarketplaceTestCase):
    def setUp(self):
        super().setUp()
        order = self.ready_order()
        self.order_id = order.id
        self.delivery_id = order.delivery.id
        accept_delivery(self.user(self.driver_a_id), self.delivery_id)

    def test_pickup_then_complete(self):
        delivery = pickup_delivery(self.user(self.driver_a_id), self.delivery_id)
        self.assertEqual(delivery.status, DeliveryStatus.PICKED_UP)
        self.assertIsNotNone(delivery.pickup_date)

        delivery = complete_delivery(self.user(self.driver_a_id), self.delivery_id)
        self.assertEqual(delivery.status, DeliveryStatus.DELIVERED)
        self.assertIsNotNone(delivery.delivery_date)
        self.assertEqual(db.session.get(Order, self.order_id).status, OrderStatus.DELIVERED)

        history = [t.to_status for t in transitions_for("delivery", self.delivery_id)]
        self.assertEqual(history, [
            DeliveryStatus.PENDING,
            DeliveryStatus.ACCEPTED,
            DeliveryStatus.PICKED_UP,
            DeliveryStatus.DELIVERED,
        ])

    def test_cannot_complete_before_pickup(self):
        with self.assertRaises(InvalidStateError):
            complete_delivery(self.user(self.driver_a_id), self.delivery_id)
        self.assertEqual(db.session.get(Order, self.order_id).status, OrderStatus.IN_TRANSIT)

    def test_cannot_pickup_twice(self):
        pickup_delivery(self.user(self.driver_a_id), self.delivery_id)
        with self.assertRaises(InvalidStateError):
            pickup_delivery(self.user(self.driver_a_id), self.delivery_id)

    def test_other_driver_cannot_touch_assignment(self):
        with self.assertRaises(UnauthorizedError):
            pickup_delivery(self.user(self.driver_b_id), self.delivery_id)
        pickup_delivery(self.user(self.driver_a_id), self.delivery_id)
        with self.assertRaises(UnauthorizedError):
            complete_delivery(self.user(self.driver_b_id), self.delivery_id)


class DeliveryReadModelTestCase(ServiceFlowMixin, MarketplaceTestCase):
    def test_available_lists_only_ready_unassigned(self):
        ready = self.ready_order()
        self.paid_order(quantity=3)
        taken = self.ready_order(quantity=4)
        accept_delivery(self.user(self.driver_b_id), taken.delivery.id)

        available = get_available_deliveries(self.user(self.driver_a_id))
        self.assertEqual([d.id for d in available], [ready.delivery.id])

    def test_driver_and_admin_views(self):
        order = self.ready_order()
        accept_delivery(self.user(self.driver_a_id), order.delivery.id)
        self.assertEqual(len(get_driver_deliveries(self.user(self.driver_a_id))), 1)
        self.assertEqual(get_driver_deliveries(self.user(self.driver_b_id)), [])
        self.assertEqual(len(get_all_deliveries(self.user(self.admin_id))), 1)
        with self.assertRaises(UnauthorizedError):
            get_all_deliveries(self.user(self.driver_a_id))


if __name__ == "__main__":
    unittest.main()
