"""
Appointment status lifecycle.

    pending_payment -> confirmed
    confirmed -> completed | no_show
    pending_payment | confirmed -> cancelled

completed, no_show and cancelled are terminal. Setting the current status again is
allowed (it is how notes are edited without a transition).
"""

PENDING_PAYMENT = "pending_payment"
CONFIRMED = "confirmed"
COMPLETED = "completed"
NO_SHOW = "no_show"
CANCELLED = "cancelled"

STATUSES = (PENDING_PAYMENT, CONFIRMED, COMPLETED, NO_SHOW, CANCELLED)

ALLOWED_TRANSITIONS = {
    PENDING_PAYMENT: {CONFIRMED, CANCELLED},
    CONFIRMED: {COMPLETED, NO_SHOW, CANCELLED},
    COMPLETED: set(),
    NO_SHOW: set(),
    CANCELLED: set(),
}

TERMINAL_STATUSES = {status for status, targets in ALLOWED_TRANSITIONS.items() if not targets}


class InvalidStatusTransition(Exception):
    """Raised when an appointment cannot move from its current status to the requested one"""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change appointment status from {current} to {requested}")


def can_transition(current: str, requested: str) -> bool:
    if requested not in ALLOWED_TRANSITIONS:
        return False
    if current == requested:
        return True
    return requested in ALLOWED_TRANSITIONS.get(current, set())


def assert_transition(current: str, requested: str) -> None:
    if not can_transition(current, requested):
        raise InvalidStatusTransition(current, requested)
