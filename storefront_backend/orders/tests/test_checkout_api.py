from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework.test import APIClient

from cart.models import CartLine
from items.models import Item
from orders.models import ChargeAttempt, Order
from orders.services.exceptions import PaymentAmbiguous, PaymentDeclined
from orders.services.reconciliation import resolve_charge_attempt
from orders.tests.stubs import StubGateway
from permissions.exceptions import ValidationFailed
from users.services.identity import issue_credential

User = get_user_model()

GATEWAY_PATH = "orders.services.checkout_orchestrator.get_payment_gateway"


class CheckoutApiTests(TestCase):
    """
    GUARANTEES:
    - 201 with order + state + warnings on success
    - Error envelope carries code and recovery_state
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="buyer@example.com", password="pass")
        self.item = Item.objects.create(title="Mug", price=1250)
        CartLine.objects.create(user=self.user, item=self.item, quantity=2)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_credential(self.user)}")

    def test_checkout_creates_order(self):
        res = self.client.post("/api/orders/checkout/", {"token": "tok_visa"}, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["state"], "complete")
        self.assertEqual(res.data["warnings"], [])
        self.assertEqual(res.data["order"]["total"], 2500)
        self.assertEqual(res.data["order"]["items"][0]["title"], "Mug")
        self.assertFalse(CartLine.objects.filter(user=self.user).exists())

    def test_token_is_required(self):
        res = self.client.post("/api/orders/checkout/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("token", res.data)

    def test_declined_payment_is_402(self):
        with mock.patch(GATEWAY_PATH, return_value=StubGateway(error=PaymentDeclined("Card declined"))):
            res = self.client.post("/api/orders/checkout/", {"token": "tok_x"}, format="json")

        self.assertEqual(res.status_code, 402)
        self.assertEqual(res.data["error"]["code"], "PAYMENT_DECLINED")
        self.assertEqual(res.data["error"]["message"], "Card declined")
        self.assertEqual(res.data["error"]["recovery_state"], "priced")
        self.assertEqual(Order.objects.count(), 0)

    def test_ambiguous_payment_is_502_with_attempt_id(self):
        with mock.patch(GATEWAY_PATH, return_value=StubGateway(error=PaymentAmbiguous())):
            res = self.client.post("/api/orders/checkout/", {"token": "tok_x"}, format="json")

        attempt = ChargeAttempt.objects.get(user=self.user)
        self.assertEqual(res.status_code, 502)
        self.assertEqual(res.data["error"]["code"], "PAYMENT_AMBIGUOUS")
        self.assertEqual(res.data["error"]["attempt_id"], str(attempt.id))

    def test_anonymous_checkout_is_401(self):
        self.client.credentials()

        res = self.client.post("/api/orders/checkout/", {"token": "tok_visa"}, format="json")

        self.assertEqual(res.status_code, 401)


class ChargeAttemptResolutionTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com", password="pass")
        self.attempt = ChargeAttempt.objects.create(
            user=self.user,
            fingerprint="f" * 64,
            amount=500,
            status=ChargeAttempt.STATUS_RECONCILIATION_REQUIRED,
            charge_id="ch_lost",
        )

    def test_resolution_requires_note(self):
        with self.assertRaises(ValidationFailed):
            resolve_charge_attempt(self.attempt.id, note="  ")

    def test_resolved_attempt_cannot_be_resolved_twice(self):
        resolve_charge_attempt(self.attempt.id, note="refunded ch_lost", actor="ops")

        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ChargeAttempt.STATUS_RESOLVED)
        self.assertEqual(self.attempt.resolution_note, "ops: refunded ch_lost")
        self.assertIsNotNone(self.attempt.resolved_at)

        with self.assertRaises(ValidationFailed):
            resolve_charge_attempt(self.attempt.id, note="again")

    def test_management_command_lists_and_resolves(self):
        out = StringIO()
        call_command("resolve_charge_attempt", "--list", stdout=out)
        self.assertIn(str(self.attempt.id), out.getvalue())

        out = StringIO()
        call_command("resolve_charge_attempt", str(self.attempt.id), "--note", "refunded", stdout=out)
        self.assertIn("resolved", out.getvalue())

        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ChargeAttempt.STATUS_RESOLVED)

    def test_management_command_rejects_unknown_attempt(self):
        with self.assertRaises(CommandError):
            call_command(
                "resolve_charge_attempt",
                "00000000-0000-0000-0000-000000000000",
                "--note",
                "x",
                stdout=StringIO(),
            )
