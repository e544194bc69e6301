from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from cart.models import CartLine
from cart.services.cart_store import add_line, delete_lines, list_lines, remove_line, snapshot_lines
from items.models import Item
from permissions.exceptions import Forbidden, NotFound, Unauthenticated
from permissions.roles import ROLE_ADMIN, ROLE_USER, Principal
from users.services.identity import issue_credential

User = get_user_model()


class CartStoreTests(TestCase):
    """
    GUARANTEES:
    - One line per (user, item); repeat add increments
    - Only the owner removes a line (admins included in "not the owner")
    - delete_lines touches exactly the given ids
    """

    def setUp(self):
        self.alice = User.objects.create_user(email="alice@example.com", password="pass")
        self.bob = User.objects.create_user(
            email="bob@example.com",
            password="pass",
            permissions=[ROLE_USER, ROLE_ADMIN],
        )
        self.alice_p = Principal.for_user(self.alice)
        self.bob_p = Principal.for_user(self.bob)

        self.item = Item.objects.create(title="Lamp", price=4200)
        self.other = Item.objects.create(title="Bulb", price=300)

    def test_add_twice_yields_one_line_with_quantity_two(self):
        first = add_line(self.alice_p, self.item.id)
        second = add_line(self.alice_p, self.item.id)

        self.assertEqual(first.id, second.id)
        self.assertEqual(CartLine.objects.filter(user=self.alice, item=self.item).count(), 1)
        self.assertEqual(CartLine.objects.get(user=self.alice, item=self.item).quantity, 2)

    def test_same_item_in_two_carts_is_two_lines(self):
        add_line(self.alice_p, self.item.id)
        add_line(self.bob_p, self.item.id)

        self.assertEqual(CartLine.objects.filter(item=self.item).count(), 2)

    def test_add_requires_principal(self):
        with self.assertRaises(Unauthenticated):
            add_line(None, self.item.id)

    def test_add_unknown_item_is_not_found(self):
        with self.assertRaises(NotFound):
            add_line(self.alice_p, "3f2b8a0e-1111-4a4a-9c9c-000000000000")

        with self.assertRaises(NotFound):
            add_line(self.alice_p, "garbage")

    def test_remove_by_owner(self):
        line = add_line(self.alice_p, self.item.id)

        remove_line(self.alice_p, line.id)

        self.assertFalse(CartLine.objects.filter(pk=line.id).exists())

    def test_remove_by_non_owner_is_forbidden_even_for_admin(self):
        line = add_line(self.alice_p, self.item.id)

        with self.assertRaises(Forbidden):
            remove_line(self.bob_p, line.id)

        self.assertTrue(CartLine.objects.filter(pk=line.id).exists())

    def test_remove_missing_line_is_not_found(self):
        with self.assertRaises(NotFound):
            remove_line(self.alice_p, "3f2b8a0e-1111-4a4a-9c9c-000000000000")

    def test_list_lines_reads_live_item_price(self):
        add_line(self.alice_p, self.item.id)
        self.item.price = 5000
        self.item.save()

        (line,) = list(list_lines(self.alice_p))
        self.assertEqual(line.item.price, 5000)

    def test_snapshot_lines_are_detached_values(self):
        add_line(self.alice_p, self.item.id)
        add_line(self.alice_p, self.item.id)

        (snap,) = snapshot_lines(self.alice_p)
        self.item.price = 1
        self.item.save()

        self.assertEqual(snap.price, 4200)
        self.assertEqual(snap.quantity, 2)
        self.assertEqual(snap.subtotal, 8400)
        with self.assertRaises(AttributeError):
            snap.price = 10

    def test_delete_lines_only_touches_given_owned_ids(self):
        keep = add_line(self.alice_p, self.other.id)
        drop = add_line(self.alice_p, self.item.id)
        bobs = add_line(self.bob_p, self.item.id)

        deleted = delete_lines(self.alice_p, [drop.id, bobs.id])

        self.assertEqual(deleted, 1)
        self.assertTrue(CartLine.objects.filter(pk=keep.id).exists())
        self.assertTrue(CartLine.objects.filter(pk=bobs.id).exists())
        self.assertFalse(CartLine.objects.filter(pk=drop.id).exists())


class CartApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="alice@example.com", password="pass")
        self.other = User.objects.create_user(email="mallory@example.com", password="pass")
        self.item = Item.objects.create(title="Lamp", price=4200)

    def _login(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_credential(user)}")

    def test_add_and_view_cart(self):
        self._login(self.user)

        self.client.post("/api/cart/lines/", {"item_id": str(self.item.id)}, format="json")
        res = self.client.post("/api/cart/lines/", {"item_id": str(self.item.id)}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["quantity"], 2)

        res = self.client.get("/api/cart/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["lines"]), 1)
        self.assertEqual(res.data["total"], 8400)

    def test_cookie_credential_is_accepted(self):
        self.client.cookies["token"] = issue_credential(self.user)

        res = self.client.get("/api/cart/")

        self.assertEqual(res.status_code, 200)

    def test_remove_other_users_line_is_403(self):
        line = CartLine.objects.create(user=self.user, item=self.item)
        self._login(self.other)

        res = self.client.delete(f"/api/cart/lines/{line.id}/")

        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.data["error"]["code"], "FORBIDDEN")

    def test_anonymous_cart_is_401(self):
        res = self.client.get("/api/cart/")

        self.assertEqual(res.status_code, 401)
