"""
CHECKOUT LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed state transitions for one run of the
checkout pipeline.

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

# ============================================================
# DOMAIN ERRORS
# ============================================================


class CheckoutLifecycleError(Exception):
    pass


class InvalidCheckoutTransitionError(CheckoutLifecycleError):
    pass


# ============================================================
# STATE DEFINITIONS
# ============================================================

IDLE = "idle"
CART_LOADED = "cart_loaded"
PRICED = "priced"
CHARGED = "charged"
ORDER_PERSISTED = "order_persisted"
CART_CLEARED = "cart_cleared"
COMPLETE = "complete"
FAILED = "failed"

TERMINAL_STATES = {
    COMPLETE,
    FAILED,
}

ALLOWED_TRANSITIONS = {
    IDLE: {CART_LOADED},
    CART_LOADED: {PRICED},
    PRICED: {CHARGED},
    CHARGED: {ORDER_PERSISTED},
    ORDER_PERSISTED: {CART_CLEARED, COMPLETE},
    CART_CLEARED: {COMPLETE},
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_state: str, to_state: str) -> bool:
    if from_state in TERMINAL_STATES:
        return False

    # any live state may fail
    if to_state == FAILED:
        return True

    return to_state in ALLOWED_TRANSITIONS.get(from_state, set())


def validate_transition(*, from_state: str, to_state: str) -> str:
    if not can_transition(from_state=from_state, to_state=to_state):
        raise InvalidCheckoutTransitionError(
            f"Checkout cannot transition from '{from_state}' to '{to_state}'"
        )
    return to_state
