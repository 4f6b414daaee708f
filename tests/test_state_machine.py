from __future__ import annotations

import unittest

from cropmate.services.errors import InvalidStateError
from cropmate.services.state_machine import (
    DeliveryRequestStatus,
    DeliveryStatus,
    OrderStatus,
    can_transition,
    ensure_transition,
    require_status,
)


class StateMachineTestCase(unittest.TestCase):
    def test_order_happy_path_edges(self):
        path = [
            OrderStatus.PENDING_PAYMENT,
            OrderStatus.PAYMENT_RECEIVED,
            OrderStatus.READY_FOR_DELIVERY,
            OrderStatus.IN_TRANSIT,
            OrderStatus.DELIVERED,
        ]
        for cur, nxt in zip(path, path[1:]):
            self.assertTrue(can_transition("order", cur, nxt), f"{cur}->{nxt}")

    def test_order_cannot_skip_payment(self):
        self.assertFalse(can_transition("order", OrderStatus.PENDING_PAYMENT, OrderStatus.READY_FOR_DELIVERY))
        with self.assertRaises(InvalidStateError):
            ensure_transition("order", OrderStatus.PENDING_PAYMENT, OrderStatus.READY_FOR_DELIVERY)

    def test_terminal_statuses_have_no_exits(self):
        for machine, name in ((OrderStatus, "order"), (DeliveryStatus, "delivery"), (DeliveryRequestStatus, "delivery_request")):
            for terminal in machine.TERMINAL:
                for target in machine.ALLOWED:
                    self.assertFalse(can_transition(name, terminal, target), f"{name} {terminal}->{target}")

    def test_every_non_terminal_order_status_can_cancel(self):
        for status in OrderStatus.ALLOWED:
            if status in OrderStatus.TERMINAL:
                continue
            self.assertTrue(can_transition("order", status, OrderStatus.CANCELLED))

    def test_delivery_completes_from_picked_up_or_in_transit(self):
        self.assertTrue(can_transition("delivery", DeliveryStatus.PICKED_UP, DeliveryStatus.DELIVERED))
        self.assertTrue(can_transition("delivery", DeliveryStatus.IN_TRANSIT, DeliveryStatus.DELIVERED))
        self.assertFalse(can_transition("delivery", DeliveryStatus.ACCEPTED, DeliveryStatus.DELIVERED))

    def test_ensure_transition_normalizes_case(self):
        self.assertEqual(ensure_transition("delivery_request", "pending", "accepted"), DeliveryRequestStatus.ACCEPTED)

    def test_require_status_message(self):
        require_status("order", "PAYMENT_RECEIVED", OrderStatus.PAYMENT_RECEIVED)
        with self.assertRaises(InvalidStateError) as ctx:
            require_status("order", "PENDING_PAYMENT", OrderStatus.PAYMENT_RECEIVED)
        self.assertIn("PAYMENT_RECEIVED", ctx.exception.message)
        self.assertEqual(ctx.exception.status, 409)


if __name__ == "__main__":
    unittest.main()
