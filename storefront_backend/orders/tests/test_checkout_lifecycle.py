from django.test import SimpleTestCase

from orders.services import checkout_lifecycle as lifecycle


class CheckoutLifecycleTests(SimpleTestCase):
    """
    GUARANTEES:
    - Only forward transitions in pipeline order
    - Any live state may fail; terminal states never move
    """

    HAPPY_PATH = [
        lifecycle.IDLE,
        lifecycle.CART_LOADED,
        lifecycle.PRICED,
        lifecycle.CHARGED,
        lifecycle.ORDER_PERSISTED,
        lifecycle.CART_CLEARED,
        lifecycle.COMPLETE,
    ]

    def test_happy_path_is_allowed(self):
        for current, nxt in zip(self.HAPPY_PATH, self.HAPPY_PATH[1:]):
            self.assertTrue(lifecycle.can_transition(from_state=current, to_state=nxt))

    def test_order_persisted_may_complete_without_clearing(self):
        self.assertTrue(
            lifecycle.can_transition(from_state=lifecycle.ORDER_PERSISTED, to_state=lifecycle.COMPLETE)
        )

    def test_steps_cannot_be_skipped(self):
        with self.assertRaises(lifecycle.InvalidCheckoutTransitionError):
            lifecycle.validate_transition(from_state=lifecycle.PRICED, to_state=lifecycle.ORDER_PERSISTED)

        with self.assertRaises(lifecycle.InvalidCheckoutTransitionError):
            lifecycle.validate_transition(from_state=lifecycle.IDLE, to_state=lifecycle.CHARGED)

    def test_any_live_state_may_fail(self):
        for state in self.HAPPY_PATH[:-1]:
            self.assertEqual(
                lifecycle.validate_transition(from_state=state, to_state=lifecycle.FAILED),
                lifecycle.FAILED,
            )

    def test_terminal_states_are_final(self):
        for state in (lifecycle.COMPLETE, lifecycle.FAILED):
            self.assertFalse(lifecycle.can_transition(from_state=state, to_state=lifecycle.FAILED))
            self.assertFalse(lifecycle.can_transition(from_state=state, to_state=lifecycle.IDLE))
