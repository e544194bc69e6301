import uuid

from django.test import SimpleTestCase
from rest_framework.test import APIRequestFactory

from permissions.drf import HasAnyRole, RequiresPrincipal
from permissions.exceptions import Forbidden, Unauthenticated
from permissions.guard import authorize, require, require_owner
from permissions.roles import (
    ITEM_DELETE_ROLES,
    PERMISSION_UPDATE_ROLES,
    ROLE_ADMIN,
    ROLE_ITEMDELETE,
    ROLE_PERMISSIONUPDATE,
    ROLE_USER,
    Principal,
    normalize_roles,
    unknown_roles,
)


def principal(pid="u1", *roles):
    return Principal(id=pid, permissions=frozenset(roles or {ROLE_USER}))


class PermissionGuardTests(SimpleTestCase):
    """
    Pure policy, no database.

    GUARANTEES:
    - ANY-OF role semantics
    - Owner pre-check short-circuits
    - Unauthenticated and Forbidden stay distinct
    """

    # --------------------------------------------------
    # authorize()
    # --------------------------------------------------

    def test_any_single_required_role_suffices(self):
        self.assertTrue(authorize(principal("u1", ROLE_ITEMDELETE), ITEM_DELETE_ROLES))
        self.assertTrue(authorize(principal("u1", ROLE_ADMIN), ITEM_DELETE_ROLES))
        self.assertFalse(authorize(principal("u1", ROLE_USER), ITEM_DELETE_ROLES))

    def test_owner_short_circuits_roles(self):
        self.assertTrue(authorize(principal("u1"), ITEM_DELETE_ROLES, owner_id="u1"))
        self.assertFalse(authorize(principal("u2"), ITEM_DELETE_ROLES, owner_id="u1"))

    def test_empty_requirement_grants_no_role_access(self):
        self.assertFalse(authorize(principal("u1", ROLE_ADMIN), ()))
        self.assertTrue(authorize(principal("u1"), (), owner_id="u1"))

    def test_anonymous_only_when_permitted(self):
        self.assertFalse(authorize(None, ()))
        self.assertTrue(authorize(None, (), allow_anonymous=True))

    # --------------------------------------------------
    # require()
    # --------------------------------------------------

    def test_absent_principal_is_unauthenticated(self):
        with self.assertRaises(Unauthenticated):
            require(None, PERMISSION_UPDATE_ROLES)

    def test_underprivileged_principal_is_forbidden(self):
        with self.assertRaises(Forbidden) as ctx:
            require(principal("u1"), PERMISSION_UPDATE_ROLES, message="nope")

        self.assertEqual(ctx.exception.message, "nope")
        self.assertNotIsInstance(ctx.exception, Unauthenticated)

    def test_privileged_principal_passes(self):
        require(principal("u1", ROLE_PERMISSIONUPDATE), PERMISSION_UPDATE_ROLES)

    def test_require_owner_has_no_role_alternative(self):
        require_owner(principal("u1"), "u1")

        with self.assertRaises(Forbidden):
            require_owner(principal("u2", ROLE_ADMIN), "u1")

        with self.assertRaises(Unauthenticated):
            require_owner(None, "u1")

    # --------------------------------------------------
    # roles
    # --------------------------------------------------

    def test_role_normalization(self):
        self.assertEqual(normalize_roles([" user", "Admin", ""]), frozenset({ROLE_USER, ROLE_ADMIN}))
        self.assertEqual(unknown_roles(["USER", "ROOT"]), {"ROOT"})

    def test_user_pk_matches_primary_key_type(self):
        pk = uuid.uuid4()

        self.assertEqual(principal(str(pk)).user_pk, pk)


class DrfAdapterTests(SimpleTestCase):
    def setUp(self):
        self.factory = APIRequestFactory()

    def _request(self, auth=None):
        request = self.factory.get("/")
        request.auth = auth
        return request

    def test_requires_principal(self):
        self.assertTrue(RequiresPrincipal().has_permission(self._request(principal()), None))

        with self.assertRaises(Unauthenticated):
            RequiresPrincipal().has_permission(self._request(None), None)

    def test_has_any_role_denies_views_without_requirement(self):
        class View:
            required_any_roles = None

        self.assertFalse(HasAnyRole().has_permission(self._request(principal("u1", ROLE_ADMIN)), View()))

    def test_has_any_role(self):
        class View:
            required_any_roles = PERMISSION_UPDATE_ROLES

        self.assertTrue(
            HasAnyRole().has_permission(self._request(principal("u1", ROLE_PERMISSIONUPDATE)), View())
        )
        with self.assertRaises(Forbidden):
            HasAnyRole().has_permission(self._request(principal("u1")), View())
