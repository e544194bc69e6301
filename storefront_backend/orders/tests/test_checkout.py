from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase

from cart.models import CartLine
from cart.services.cart_store import add_line, snapshot_lines
from items.models import Item
from orders.models import ChargeAttempt, Order, OrderLine
from orders.services import checkout_lifecycle as lifecycle
from orders.services.checkout_orchestrator import cart_fingerprint, checkout_cart, price_lines
from orders.services.exceptions import (
    CartAlreadyCheckedOut,
    CartClearFailed,
    CheckoutInProgress,
    PaymentAmbiguous,
    PaymentDeclined,
    PaymentTimeout,
    ReconciliationRequired,
)
from orders.services.reconciliation import resolve_charge_attempt
from orders.tests.stubs import StubGateway
from permissions.exceptions import Unauthenticated, ValidationFailed
from permissions.roles import Principal

User = get_user_model()


class CheckoutPipelineTests(TestCase):
    """
    Checkout pipeline.

    GUARANTEES:
    - Integer pricing, processor amount is the order total
    - Failed charge commits nothing
    - Post-charge failures never re-charge
    - Only the loaded cart lines are cleared
    """

    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com", password="pass")
        self.principal = Principal.for_user(self.user)

        self.seller = User.objects.create_user(email="seller@example.com", password="pass")
        self.shirt = Item.objects.create(user=self.seller, title="Shirt", price=500)
        self.hat = Item.objects.create(user=self.seller, title="Hat", price=1000)
        self.socks = Item.objects.create(user=self.seller, title="Socks", price=300)

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def _fill_cart(self):
        add_line(self.principal, self.shirt.id)
        add_line(self.principal, self.shirt.id)
        add_line(self.principal, self.hat.id)

    def _cart_state(self):
        return sorted(
            CartLine.objects.filter(user=self.user).values_list("item__title", "quantity")
        )

    # --------------------------------------------------
    # PRICING
    # --------------------------------------------------

    def test_cart_prices_to_integer_total_before_charge(self):
        self._fill_cart()

        self.assertEqual(price_lines(snapshot_lines(self.principal)), 2000)

        gateway = StubGateway()
        checkout_cart(self.principal, token="tok_visa", gateway=gateway)

        self.assertEqual(len(gateway.calls), 1)
        self.assertEqual(gateway.calls[0]["amount"], 2000)
        self.assertIsInstance(gateway.calls[0]["amount"], int)

    def test_order_total_is_processor_amount_not_local_total(self):
        self._fill_cart()

        result = checkout_cart(
            self.principal,
            token="tok_visa",
            gateway=StubGateway(amount_charged=1990),
        )

        order = Order.objects.get(pk=result.order.pk)
        self.assertEqual(order.total, 1990)

        attempt = ChargeAttempt.objects.get(order=order)
        self.assertEqual(attempt.amount, 2000)
        self.assertEqual(attempt.amount_charged, 1990)

    def test_idempotency_key_is_the_charge_attempt_id(self):
        self._fill_cart()
        gateway = StubGateway()

        result = checkout_cart(self.principal, token="tok_visa", gateway=gateway, timeout=3)

        attempt = ChargeAttempt.objects.get(order=result.order)
        self.assertEqual(gateway.calls[0]["idempotency_key"], str(attempt.id))
        self.assertEqual(gateway.calls[0]["timeout"], 3)
        self.assertEqual(attempt.status, ChargeAttempt.STATUS_COMPLETED)

    # --------------------------------------------------
    # HAPPY PATH
    # --------------------------------------------------

    def test_successful_checkout_persists_snapshot_lines_and_clears_cart(self):
        self._fill_cart()

        result = checkout_cart(self.principal, token="tok_visa", gateway=StubGateway())

        self.assertEqual(result.state, lifecycle.COMPLETE)
        self.assertEqual(result.warnings, [])
        self.assertEqual(self._cart_state(), [])

        lines = sorted(result.order.items.values_list("title", "price", "quantity"))
        self.assertEqual(lines, [("Hat", 1000, 1), ("Shirt", 500, 2)])
        self.assertEqual(result.order.user_id, self.user.id)
        self.assertEqual(result.order.currency, "USD")
        self.assertTrue(result.order.charge_id.startswith("ch_stub_"))

    def test_item_edits_do_not_change_historical_orders(self):
        self._fill_cart()
        result = checkout_cart(self.principal, token="tok_visa", gateway=StubGateway())

        self.shirt.price = 9999
        self.shirt.title = "Renamed"
        self.shirt.save()
        self.shirt.delete()

        line = OrderLine.objects.get(order=result.order, price=500)
        self.assertEqual(line.title, "Shirt")
        self.assertEqual(line.quantity, 2)

    def test_persisted_order_and_lines_are_immutable(self):
        self._fill_cart()
        result = checkout_cart(self.principal, token="tok_visa", gateway=StubGateway())

        order = Order.objects.get(pk=result.order.pk)
        order.total = 1
        with self.assertRaises(RuntimeError):
            order.save()
        with self.assertRaises(RuntimeError):
            order.delete()

        line = OrderLine.objects.get(order=order, price=500)
        line.price = 1
        with self.assertRaises(RuntimeError):
            line.save()
        with self.assertRaises(RuntimeError):
            line.delete()

        stored = Order.objects.get(pk=order.pk)
        self.assertEqual(stored.total, 2000)
        self.assertEqual(sorted(stored.items.values_list("price", flat=True)), [500, 1000])

    def test_empty_cart_reaches_pricing_with_zero_total(self):
        gateway = StubGateway()

        first = checkout_cart(self.principal, token="tok_visa", gateway=gateway)
        second = checkout_cart(self.principal, token="tok_visa", gateway=gateway)

        self.assertEqual(first.order.total, 0)
        self.assertEqual(second.order.total, 0)
        self.assertEqual(first.order.items.count(), 0)
        self.assertEqual([c["amount"] for c in gateway.calls], [0, 0])
        self.assertIsNone(cart_fingerprint(()))

    # --------------------------------------------------
    # PRE-CHARGE FAILURES
    # --------------------------------------------------

    def test_anonymous_checkout_is_unauthenticated(self):
        gateway = StubGateway()

        with self.assertRaises(Unauthenticated):
            checkout_cart(None, token="tok_visa", gateway=gateway)

        self.assertEqual(gateway.calls, [])

    def test_missing_token_is_validation_failure(self):
        self._fill_cart()

        with self.assertRaises(ValidationFailed):
            checkout_cart(self.principal, token="  ", gateway=StubGateway())

    def test_declined_charge_commits_nothing(self):
        self._fill_cart()
        before = self._cart_state()

        with self.assertRaises(PaymentDeclined) as ctx:
            checkout_cart(
                self.principal,
                token="tok_chargeDeclined",
                gateway=StubGateway(error=PaymentDeclined("Your card was declined.")),
            )

        self.assertEqual(ctx.exception.recovery_state, lifecycle.PRICED)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderLine.objects.count(), 0)
        self.assertEqual(self._cart_state(), before)

        attempt = ChargeAttempt.objects.get(user=self.user)
        self.assertEqual(attempt.status, ChargeAttempt.STATUS_DECLINED)

    def test_declined_snapshot_can_be_resubmitted_with_new_token(self):
        self._fill_cart()

        with self.assertRaises(PaymentDeclined):
            checkout_cart(
                self.principal,
                token="tok_chargeDeclined",
                gateway=StubGateway(error=PaymentDeclined()),
            )

        result = checkout_cart(self.principal, token="tok_visa", gateway=StubGateway())
        self.assertEqual(result.order.total, 2000)

    def test_timeout_before_submission_is_terminal_like_a_decline(self):
        self._fill_cart()
        before = self._cart_state()

        with self.assertRaises(PaymentDeclined) as ctx:
            checkout_cart(
                self.principal,
                token="tok_visa",
                gateway=StubGateway(error=PaymentTimeout()),
            )

        self.assertIsInstance(ctx.exception, PaymentTimeout)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(self._cart_state(), before)

    def test_pending_attempt_for_same_snapshot_is_in_progress(self):
        self._fill_cart()
        lines = snapshot_lines(self.principal)
        ChargeAttempt.objects.create(
            user=self.user,
            fingerprint=cart_fingerprint(lines),
            line_ids=[line.line_id for line in lines],
            amount=2000,
        )
        gateway = StubGateway()

        with self.assertRaises(CheckoutInProgress):
            checkout_cart(self.principal, token="tok_visa", gateway=gateway)

        self.assertEqual(gateway.calls, [])

    # --------------------------------------------------
    # RECONCILIATION
    # --------------------------------------------------

    def test_ambiguous_charge_blocks_recharge_of_same_snapshot(self):
        self._fill_cart()

        with self.assertRaises(ReconciliationRequired) as ctx:
            checkout_cart(
                self.principal,
                token="tok_visa",
                gateway=StubGateway(error=PaymentAmbiguous("connection reset")),
            )

        self.assertIsInstance(ctx.exception, PaymentAmbiguous)
        attempt = ChargeAttempt.objects.get(user=self.user)
        self.assertEqual(attempt.status, ChargeAttempt.STATUS_AMBIGUOUS)
        self.assertEqual(ctx.exception.attempt_id, str(attempt.id))

        retry_gateway = StubGateway()
        with self.assertRaises(ReconciliationRequired):
            checkout_cart(self.principal, token="tok_visa_2", gateway=retry_gateway)

        self.assertEqual(retry_gateway.calls, [])

    def test_unexpected_gateway_error_is_treated_as_ambiguous(self):
        self._fill_cart()

        with self.assertRaises(PaymentAmbiguous):
            checkout_cart(
                self.principal,
                token="tok_visa",
                gateway=StubGateway(error=RuntimeError("socket closed")),
            )

        self.assertEqual(
            ChargeAttempt.objects.get(user=self.user).status,
            ChargeAttempt.STATUS_AMBIGUOUS,
        )

    def test_persistence_failure_after_charge_requires_reconciliation(self):
        self._fill_cart()
        before = self._cart_state()
        gateway = StubGateway()

        with mock.patch.object(Order.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(ReconciliationRequired) as ctx:
                checkout_cart(self.principal, token="tok_visa", gateway=gateway)

        self.assertNotIsInstance(ctx.exception, PaymentAmbiguous)
        self.assertEqual(ctx.exception.recovery_state, lifecycle.CHARGED)
        self.assertTrue(ctx.exception.charge_id.startswith("ch_stub_"))
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderLine.objects.count(), 0)
        self.assertEqual(self._cart_state(), before)

        attempt = ChargeAttempt.objects.get(user=self.user)
        self.assertEqual(attempt.status, ChargeAttempt.STATUS_RECONCILIATION_REQUIRED)
        self.assertEqual(attempt.charge_id, ctx.exception.charge_id)
        self.assertIsNone(attempt.order_id)

        # second invocation for the same snapshot never reaches the processor
        retry_gateway = StubGateway()
        with self.assertRaises(ReconciliationRequired):
            checkout_cart(self.principal, token="tok_visa_2", gateway=retry_gateway)

        self.assertEqual(len(gateway.calls), 1)
        self.assertEqual(retry_gateway.calls, [])

    def test_operator_resolution_reopens_the_snapshot(self):
        self._fill_cart()

        with mock.patch.object(Order.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(ReconciliationRequired) as ctx:
                checkout_cart(self.principal, token="tok_visa", gateway=StubGateway())

        resolve_charge_attempt(ctx.exception.attempt_id, note="refunded", actor="ops")

        result = checkout_cart(self.principal, token="tok_visa_2", gateway=StubGateway())
        self.assertEqual(result.order.total, 2000)

    # --------------------------------------------------
    # CART CLEARING
    # --------------------------------------------------

    def test_line_added_during_checkout_survives(self):
        self._fill_cart()

        def concurrent_add():
            add_line(self.principal, self.socks.id)

        result = checkout_cart(
            self.principal,
            token="tok_visa",
            gateway=StubGateway(on_charge=concurrent_add),
        )

        self.assertEqual(result.order.total, 2000)
        self.assertEqual(self._cart_state(), [("Socks", 1)])

    def test_cart_clear_failure_still_returns_order_with_warning(self):
        self._fill_cart()

        with mock.patch(
            "orders.services.checkout_orchestrator.cart_store.delete_lines",
            side_effect=DatabaseError("database is locked"),
        ):
            result = checkout_cart(self.principal, token="tok_visa", gateway=StubGateway())

        self.assertEqual(result.state, lifecycle.COMPLETE)
        self.assertEqual(len(result.warnings), 1)
        self.assertIsInstance(result.warnings[0], CartClearFailed)
        self.assertTrue(Order.objects.filter(pk=result.order.pk).exists())
        self.assertEqual(len(self._cart_state()), 2)

    def test_stale_cart_after_completed_order_is_not_recharged(self):
        self._fill_cart()

        with mock.patch(
            "orders.services.checkout_orchestrator.cart_store.delete_lines",
            side_effect=DatabaseError("database is locked"),
        ):
            first = checkout_cart(self.principal, token="tok_visa", gateway=StubGateway())

        retry_gateway = StubGateway()
        with self.assertRaises(CartAlreadyCheckedOut) as ctx:
            checkout_cart(self.principal, token="tok_visa_2", gateway=retry_gateway)

        self.assertEqual(ctx.exception.order_id, str(first.order.id))
        self.assertEqual(retry_gateway.calls, [])
        self.assertEqual(self._cart_state(), [])
        self.assertEqual(Order.objects.count(), 1)
