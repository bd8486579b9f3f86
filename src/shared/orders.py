"""Order and replacement vocabulary shared by the backend and the portal client.

Both sides import the status enums and the reason-required policy from here,
so the server and the client agree on which transitions demand a note.
The transition graph itself is owned by the backend (see returns.order.order);
the client never checks graph legality.
"""

import os
from enum import Enum

REASON_REQUIRED_ENV = "REPLACEMENT_REASON_REQUIRED"
WINDOW_DAYS_ENV = "REPLACEMENT_WINDOW_DAYS"

DEFAULT_WINDOW_DAYS = 7
MIN_ISSUE_DESCRIPTION_LENGTH = 10


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class ReplacementStatus(Enum):
    NONE = "none"  # Wire sentinel: no request exists on the order
    PENDING = "pending"
    APPROVED = "approved"
    PICKUP_SCHEDULED = "pickup_scheduled"
    PICKUP_COMPLETED = "pickup_completed"
    REPLACEMENT_PROCESSING = "replacement_processing"
    REPLACEMENT_SHIPPED = "replacement_shipped"
    REPLACEMENT_OUT_FOR_DELIVERY = "replacement_out_for_delivery"
    REPLACEMENT_DELIVERED = "replacement_delivered"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ActorRole(Enum):
    SELLER = "seller"
    SUBADMIN = "subadmin"
    ADMIN = "admin"
    CUSTOMER = "customer"


# Roles allowed to move a replacement request through its lifecycle
REVIEWER_ROLES = frozenset({ActorRole.SELLER, ActorRole.ADMIN})

TERMINAL_REPLACEMENT_STATUSES = frozenset(
    {
        ReplacementStatus.REPLACEMENT_DELIVERED,
        ReplacementStatus.REJECTED,
        ReplacementStatus.CANCELLED,
    }
)

DEFAULT_REASON_REQUIRED = frozenset({ReplacementStatus.REJECTED})


# ---------------------------------------------------------------------------
# Policy helpers
# ---------------------------------------------------------------------------
def parse_statuses(raw: str) -> frozenset[ReplacementStatus]:
    """Parse a comma-separated list of replacement status values.

    Unknown values raise ValueError; ``none`` is never a valid target.
    """
    statuses = set()
    for token in raw.split(","):
        token = token.strip().lower()
        if not token:
            continue
        status = ReplacementStatus(token)
        if status is ReplacementStatus.NONE:
            raise ValueError("'none' cannot require a reason")
        statuses.add(status)
    return frozenset(statuses)


def reason_required_statuses(raw: str | None = None) -> frozenset[ReplacementStatus]:
    """Return the configured set of target statuses that require a note.

    Reads REPLACEMENT_REASON_REQUIRED when ``raw`` is not given. Rejection
    always requires a reason, whatever the configuration says.
    """
    if raw is None:
        raw = os.environ.get(REASON_REQUIRED_ENV, "")
    return DEFAULT_REASON_REQUIRED | parse_statuses(raw)


def requires_reason(status, reason_required=None) -> bool:
    """Whether moving to ``status`` needs a non-empty note."""
    if reason_required is None:
        reason_required = reason_required_statuses()
    try:
        status = ReplacementStatus(status)
    except ValueError:
        return False
    return status in reason_required


def replacement_window_days(raw: str | None = None) -> int:
    """Number of days after delivery during which a customer may ask for a replacement."""
    if raw is None:
        raw = os.environ.get(WINDOW_DAYS_ENV)
    if not raw:
        return DEFAULT_WINDOW_DAYS
    days = int(raw)
    if days < 0:
        raise ValueError(f"{WINDOW_DAYS_ENV} must not be negative")
    return days
