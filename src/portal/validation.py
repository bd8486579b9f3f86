"""Client-side guards run before anything is sent to the server.

Only checks that need no round trip live here. Whether a transition is
legal in the status graph is decided by the server alone.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from portal.errors import ValidationError
from portal.models import Order
from shared.orders import (
    DEFAULT_WINDOW_DAYS,
    MIN_ISSUE_DESCRIPTION_LENGTH,
    OrderStatus,
    ReplacementStatus,
    requires_reason,
)

REASON_REQUIRED = "ReasonRequired"
ALREADY_REQUESTED = "AlreadyRequested"
NOT_DELIVERED = "NotDelivered"
WINDOW_CLOSED = "WindowClosed"
DESCRIPTION_TOO_SHORT = "DescriptionTooShort"
UNKNOWN_ITEM = "UnknownItem"

REJECTION_REASON_MESSAGE = "Please provide a reason for rejecting this request."
REASON_MESSAGE = "Please provide a reason for this decision."


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: str | None = None
    message: str | None = None
    field: str | None = None

    def to_error(self) -> ValidationError:
        return ValidationError(self.message, reason=self.reason, field=self.field)


_PASSED = ValidationResult(ok=True)


def _failed(reason: str, message: str, field: str) -> ValidationResult:
    return ValidationResult(ok=False, reason=reason, message=message, field=field)


def validate(requested_status, notes: str | None, reason_required=None) -> ValidationResult:
    """Check a transition draft against the reason-required guard."""
    if not requires_reason(requested_status, reason_required):
        return _PASSED
    if (notes or "").strip():
        return _PASSED

    status = ReplacementStatus(requested_status)
    message = REJECTION_REASON_MESSAGE if status is ReplacementStatus.REJECTED else REASON_MESSAGE
    return _failed(REASON_REQUIRED, message, "notes")


def window_closes_at(order: Order, window_days: int = DEFAULT_WINDOW_DAYS) -> datetime | None:
    if order.delivered_at is None:
        return None
    return order.delivered_at + timedelta(days=window_days)


def replacement_eligibility(
    order: Order,
    now: datetime | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> ValidationResult:
    """Whether the order can take a replacement request at all."""
    request = order.replacement_request
    if request is not None and (request.used or request.is_active):
        return _failed(ALREADY_REQUESTED, "A replacement has already been requested for this order.", "itemIndex")

    if order.status is not OrderStatus.DELIVERED:
        return _failed(NOT_DELIVERED, "Replacement is available only after the order is delivered.", "itemIndex")

    closes_at = window_closes_at(order, window_days)
    now = now or datetime.now(timezone.utc)
    if closes_at is not None and now > closes_at:
        return _failed(
            WINDOW_CLOSED,
            f"Replacement can only be requested within {window_days} days of delivery.",
            "itemIndex",
        )
    return _PASSED


def validate_replacement_request(
    order: Order,
    item_index: int,
    description: str,
    now: datetime | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> ValidationResult:
    """Pre-check a customer's replacement request against the order snapshot."""
    eligibility = replacement_eligibility(order, now, window_days)
    if not eligibility.ok:
        return eligibility

    if not 0 <= item_index < len(order.items):
        return _failed(UNKNOWN_ITEM, "Select the item you want to replace.", "itemIndex")

    if len((description or "").strip()) < MIN_ISSUE_DESCRIPTION_LENGTH:
        return _failed(
            DESCRIPTION_TOO_SHORT,
            f"Please describe the issue in at least {MIN_ISSUE_DESCRIPTION_LENGTH} characters.",
            "description",
        )

    return _PASSED
