"""Display labels for order and replacement statuses, and courier tracking links."""

from urllib.parse import quote

from shared.orders import OrderStatus, ReplacementStatus

ORDER_STATUS_LABELS = {
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.RETURNED: "Return/Replace",
}

REPLACEMENT_STATUS_LABELS = {
    ReplacementStatus.PENDING: "Pending",
    ReplacementStatus.APPROVED: "Approved",
    ReplacementStatus.PICKUP_SCHEDULED: "Pickup scheduled",
    ReplacementStatus.PICKUP_COMPLETED: "Pickup completed",
    ReplacementStatus.REPLACEMENT_PROCESSING: "Replacement processing",
    ReplacementStatus.REPLACEMENT_SHIPPED: "Replacement shipped",
    ReplacementStatus.REPLACEMENT_OUT_FOR_DELIVERY: "Out for delivery",
    ReplacementStatus.REPLACEMENT_DELIVERED: "Replacement delivered",
    ReplacementStatus.REJECTED: "Rejected",
    ReplacementStatus.CANCELLED: "Cancelled",
}

# Targets offered in the seller's status selector, in display order
SELLER_STATUS_OPTIONS = (
    ReplacementStatus.APPROVED,
    ReplacementStatus.PICKUP_COMPLETED,
    ReplacementStatus.REPLACEMENT_PROCESSING,
    ReplacementStatus.REPLACEMENT_SHIPPED,
    ReplacementStatus.REPLACEMENT_OUT_FOR_DELIVERY,
    ReplacementStatus.REPLACEMENT_DELIVERED,
    ReplacementStatus.REJECTED,
    ReplacementStatus.CANCELLED,
)

TRACKING_BASE_URL = "https://trackcourier.io/track-and-trace"

# (name fragments, trackcourier.io slug)
_COURIER_SLUGS = (
    (("tirupati", "triupati"), "tirupati-courier"),
    (("xpressbees",), "xpressbees-logistics"),
    (("delhivery",), "delhivery-courier"),
)


def order_status_label(status) -> str:
    try:
        return ORDER_STATUS_LABELS[OrderStatus(status)]
    except ValueError:
        return str(status).replace("_", " ").capitalize()


def replacement_status_label(status) -> str:
    try:
        return REPLACEMENT_STATUS_LABELS[ReplacementStatus(status)]
    except (KeyError, ValueError):
        return str(status).replace("_", " ").capitalize()


def tracking_url(courier: str | None, tracking_id: str | None) -> str | None:
    """Public tracking page for a supported courier, or None."""
    if not courier or not tracking_id or not tracking_id.strip():
        return None
    name = courier.strip().lower()
    for fragments, slug in _COURIER_SLUGS:
        if any(fragment in name for fragment in fragments):
            return f"{TRACKING_BASE_URL}/{slug}/{quote(tracking_id.strip(), safe='')}"
    return None
