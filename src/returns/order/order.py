"""Order aggregate (CQRS): the authoritative record of a purchase and its replacement request.

The Order owns an embedded Replacement Request: its own status, the
customer's preferences, the seller-writable shipment metadata and an
append-only history. Every accepted replacement change appends exactly one
history entry, so the current replacement status always equals the status
of the most recent entry.

Fulfillment status (one-directional):
    PROCESSING → CONFIRMED → SHIPPED → OUT_FOR_DELIVERY → DELIVERED
    DELIVERED → RETURNED (only by raising a replacement request)

Replacement State Machine:
    PENDING → APPROVED → PICKUP_SCHEDULED → PICKUP_COMPLETED →
    REPLACEMENT_PROCESSING → REPLACEMENT_SHIPPED →
    REPLACEMENT_OUT_FOR_DELIVERY → REPLACEMENT_DELIVERED
    APPROVED → PICKUP_COMPLETED (pickup without a scheduled slot)
    REPLACEMENT_SHIPPED → REPLACEMENT_DELIVERED
    {PENDING, APPROVED} → REJECTED
    {PENDING, APPROVED, PICKUP_SCHEDULED} → CANCELLED
"""

import json
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from returns.domain import returns
from returns.order.events import (
    OrderPlaced,
    OrderStatusAdvanced,
    ReplacementRequested,
    ReplacementStatusChanged,
)
from shared.orders import (
    MIN_ISSUE_DESCRIPTION_LENGTH,
    TERMINAL_REPLACEMENT_STATUSES,
    ActorRole,
    OrderStatus,
    PaymentStatus,
    ReplacementStatus,
    replacement_window_days,
    requires_reason,
)

# Forward-only fulfillment progression; RETURNED is reached through a replacement request
_ORDER_PROGRESSION = [
    OrderStatus.PROCESSING,
    OrderStatus.CONFIRMED,
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]

REPLACEMENT_TRANSITIONS = {
    ReplacementStatus.PENDING: {
        ReplacementStatus.APPROVED,
        ReplacementStatus.REJECTED,
        ReplacementStatus.CANCELLED,
    },
    ReplacementStatus.APPROVED: {
        ReplacementStatus.PICKUP_SCHEDULED,
        ReplacementStatus.PICKUP_COMPLETED,
        ReplacementStatus.REJECTED,
        ReplacementStatus.CANCELLED,
    },
    ReplacementStatus.PICKUP_SCHEDULED: {
        ReplacementStatus.PICKUP_COMPLETED,
        ReplacementStatus.CANCELLED,
    },
    ReplacementStatus.PICKUP_COMPLETED: {ReplacementStatus.REPLACEMENT_PROCESSING},
    ReplacementStatus.REPLACEMENT_PROCESSING: {ReplacementStatus.REPLACEMENT_SHIPPED},
    ReplacementStatus.REPLACEMENT_SHIPPED: {
        ReplacementStatus.REPLACEMENT_OUT_FOR_DELIVERY,
        ReplacementStatus.REPLACEMENT_DELIVERED,
    },
    ReplacementStatus.REPLACEMENT_OUT_FOR_DELIVERY: {ReplacementStatus.REPLACEMENT_DELIVERED},
    ReplacementStatus.REPLACEMENT_DELIVERED: set(),  # terminal
    ReplacementStatus.REJECTED: set(),  # terminal
    ReplacementStatus.CANCELLED: set(),  # terminal
}


class StaleReplacementState(ValidationError):
    """The actor's view of the replacement status is out of date."""

    def __init__(self, current: ReplacementStatus, expected: ReplacementStatus):
        self.current = current
        self.expected = expected
        super().__init__(
            {
                "expected_status": [
                    f"Replacement request is now {current.value}, not {expected.value}. Reload and try again."
                ]
            }
        )


def _coerce(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError({field_name: [f"Unknown {field_name} '{value}'"]}) from None


def _clean(value):
    """Trim free text; blank strings count as absent."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


_CENT = Decimal("0.01")


def _decimal(value) -> Decimal:
    return Decimal(str(value or 0))


def _to_cents(amount: Decimal) -> Decimal:
    """Round a money amount to the cent, halves away from zero."""
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@returns.value_object(part_of="Order")
class ShippingAddress:
    """Where the order was shipped, captured at checkout and never edited afterwards."""

    name = String(max_length=255)
    line1 = String(max_length=255)
    line2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)
    phone = String(max_length=30)


@returns.value_object(part_of="Order")
class OrderPricing:
    """Financial summary locked at checkout: total = subtotal + shipping + tax - discount."""

    subtotal = Float(default=0.0, min_value=0.0)
    shipping_fee = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)


@returns.value_object(part_of="Order")
class PaymentInfo:
    method = String(max_length=50)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)


@returns.value_object(part_of="Order")
class ReplacementDetails:
    """Core of a replacement request: status plus the snapshot of the contested item."""

    status = String(required=True, choices=ReplacementStatus)
    item_name = String(required=True, max_length=255)
    item_size = String(max_length=50)
    quantity = Integer(default=1, min_value=1)
    issue_description = Text(required=True)
    admin_notes = Text()
    requested_at = DateTime(required=True)


@returns.value_object(part_of="Order")
class ReplacementPreferences:
    """What the customer would like instead. Read-only to sellers."""

    size = String(max_length=50)
    color = String(max_length=50)
    remarks = Text()


@returns.value_object(part_of="Order")
class ReplacementShipment:
    """Courier details for the pickup/replacement shipment. The only seller-writable fields."""

    courier = String(max_length=100)
    tracking_id = String(max_length=255)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@returns.entity(part_of="Order")
class OrderLine:
    """A purchased line item. Immutable once the order is placed."""

    position = Integer(required=True, min_value=0)
    product_ref = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=500)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50)


@returns.entity(part_of="Order")
class ReplacementHistoryEntry:
    """One accepted replacement change. Never edited or removed."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=ReplacementStatus)
    note = Text()
    actor = String(max_length=50)
    at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@returns.aggregate
class Order:
    customer_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PROCESSING.value,
    )
    items = HasMany(OrderLine)
    pricing = ValueObject(OrderPricing)
    payment = ValueObject(PaymentInfo)
    shipping_address = ValueObject(ShippingAddress)
    replacement_request = ValueObject(ReplacementDetails)
    replacement_preferences = ValueObject(ReplacementPreferences)
    replacement_shipment = ValueObject(ReplacementShipment)
    replacement_history = HasMany(ReplacementHistoryEntry)
    replacement_used = Boolean(default=False)
    delivered_at = DateTime()
    placed_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        items_data: list[dict],
        shipping_address: dict | None = None,
        payment: dict | None = None,
        shipping_fee: float = 0.0,
        tax_amount: float = 0.0,
        discount: float = 0.0,
    ):
        """Record an order at checkout completion.

        Args:
            customer_id: The customer placing the order.
            items_data: List of dicts with product_ref, name, price, quantity
                        and optional image and size.
            shipping_address: Dict of ShippingAddress fields.
            payment: Dict with method and status.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        subtotal = _to_cents(sum(_decimal(item["price"]) * int(item["quantity"]) for item in items_data))
        total = _to_cents(subtotal + _decimal(shipping_fee) + _decimal(tax_amount) - _decimal(discount))
        if total < 0:
            raise ValidationError({"pricing": ["Discount cannot exceed the order value"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            status=OrderStatus.PROCESSING.value,
            pricing=OrderPricing(
                subtotal=float(subtotal),
                shipping_fee=shipping_fee,
                tax_amount=tax_amount,
                discount=discount,
                total=float(total),
            ),
            payment=PaymentInfo(**(payment or {})),
            shipping_address=ShippingAddress(**shipping_address) if shipping_address else None,
            placed_at=now,
            updated_at=now,
        )
        for position, item_data in enumerate(items_data):
            order.add_items(OrderLine(position=position, **item_data))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                items=json.dumps(items_data),
                total=float(total),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    def ordered_items(self) -> list:
        return sorted(self.items or [], key=lambda line: line.position)

    def ordered_history(self) -> list:
        """History entries in the order they were appended."""
        return sorted(self.replacement_history or [], key=lambda entry: entry.sequence)

    @property
    def replacement_status(self) -> ReplacementStatus:
        if self.replacement_request is None:
            return ReplacementStatus.NONE
        return ReplacementStatus(self.replacement_request.status)

    # -------------------------------------------------------------------
    # Fulfillment status
    # -------------------------------------------------------------------
    def advance_status(self, target) -> None:
        """Move the order forward along the fulfillment progression."""
        target = _coerce(OrderStatus, target, "status")
        current = OrderStatus(self.status)
        if target is OrderStatus.RETURNED:
            raise ValidationError({"status": ["Orders become returned only through a replacement request"]})
        if current not in _ORDER_PROGRESSION or _ORDER_PROGRESSION.index(target) <= _ORDER_PROGRESSION.index(
            current
        ):
            raise ValidationError({"status": [f"Cannot move order from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.status = target.value
        if target is OrderStatus.DELIVERED:
            self.delivered_at = now
        self.updated_at = now
        self.raise_(
            OrderStatusAdvanced(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                advanced_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Replacement request
    # -------------------------------------------------------------------
    def request_replacement(
        self,
        item_index: int,
        description: str,
        size: str | None = None,
        color: str | None = None,
        remarks: str | None = None,
        now: datetime | None = None,
        window_days: int | None = None,
    ) -> None:
        """Open a replacement request for one delivered line item.

        Allowed once per order, within the replacement window after delivery.
        """
        if self.replacement_used or self.replacement_request is not None:
            raise ValidationError({"replacement_request": ["A replacement can be requested only once per order"]})
        if OrderStatus(self.status) is not OrderStatus.DELIVERED or self.delivered_at is None:
            raise ValidationError({"status": ["A replacement can be requested only after delivery"]})

        now = now or datetime.now(UTC)
        window = replacement_window_days() if window_days is None else window_days
        elapsed = now - self.delivered_at
        if elapsed < timedelta(0) or elapsed > timedelta(days=window):
            raise ValidationError(
                {"replacement_request": [f"Return & replace is available within {window} days after delivery"]}
            )

        description = _clean(description) or ""
        if len(description) < MIN_ISSUE_DESCRIPTION_LENGTH:
            raise ValidationError(
                {"description": [f"Please describe the issue (minimum {MIN_ISSUE_DESCRIPTION_LENGTH} characters)"]}
            )

        lines = self.ordered_items()
        if not 0 <= item_index < len(lines):
            raise ValidationError({"item_index": ["Item not found in this order"]})
        line = lines[item_index]

        self.replacement_request = ReplacementDetails(
            status=ReplacementStatus.PENDING.value,
            item_name=line.name,
            item_size=line.size,
            quantity=line.quantity,
            issue_description=description,
            requested_at=now,
        )
        self.replacement_preferences = ReplacementPreferences(
            size=_clean(size),
            color=_clean(color),
            remarks=_clean(remarks),
        )
        self.replacement_shipment = ReplacementShipment()
        self.replacement_used = True
        self.status = OrderStatus.RETURNED.value
        self._append_history(ReplacementStatus.PENDING, None, ActorRole.CUSTOMER.value, now)
        self.updated_at = now

        self.raise_(
            ReplacementRequested(
                order_id=str(self.id),
                item_name=line.name,
                item_size=line.size,
                quantity=line.quantity,
                issue_description=description,
                requested_at=now,
            )
        )

    def transition_replacement(
        self,
        status,
        notes: str | None = None,
        courier: str | None = None,
        tracking_id: str | None = None,
        actor: str = ActorRole.SELLER.value,
        expected_status=None,
        reason_required=None,
    ) -> None:
        """Apply a seller/admin change to the replacement request.

        Moving to a new status must follow REPLACEMENT_TRANSITIONS. Submitting
        the current status is a shipment/notes update and must change something.
        Either way exactly one history entry is appended.
        """
        request = self.replacement_request
        if request is None:
            raise ValidationError({"replacement_request": ["Order has no active replacement request"]})

        current = ReplacementStatus(request.status)
        if expected_status:
            expected = _coerce(ReplacementStatus, expected_status, "expected_status")
            if expected is not current:
                raise StaleReplacementState(current, expected)

        target = _coerce(ReplacementStatus, status, "status")
        if target is ReplacementStatus.NONE:
            raise ValidationError({"status": ["A replacement request cannot be reset"]})
        if current in TERMINAL_REPLACEMENT_STATUSES:
            raise ValidationError({"status": [f"Replacement request is closed ({current.value})"]})

        note = _clean(notes)
        courier = _clean(courier)
        tracking_id = _clean(tracking_id)

        if requires_reason(target, reason_required) and not note:
            raise ValidationError({"notes": [f"A reason is required when moving to {target.value}"]})

        shipment = self.replacement_shipment
        current_courier = shipment.courier if shipment else None
        current_tracking = shipment.tracking_id if shipment else None
        shipment_changed = (courier is not None and courier != current_courier) or (
            tracking_id is not None and tracking_id != current_tracking
        )

        if target is current:
            if not (note or shipment_changed):
                raise ValidationError({"status": ["Nothing to update"]})
        elif target not in REPLACEMENT_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition replacement from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.replacement_shipment = ReplacementShipment(
            courier=courier or current_courier,
            tracking_id=tracking_id or current_tracking,
        )
        self.replacement_request = ReplacementDetails(
            status=target.value,
            item_name=request.item_name,
            item_size=request.item_size,
            quantity=request.quantity,
            issue_description=request.issue_description,
            admin_notes=note or request.admin_notes,
            requested_at=request.requested_at,
        )
        self._append_history(target, note, actor, now)
        self.updated_at = now

        self.raise_(
            ReplacementStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                note=note,
                courier=self.replacement_shipment.courier,
                tracking_id=self.replacement_shipment.tracking_id,
                actor=actor,
                history_length=len(self.replacement_history),
                changed_at=now,
            )
        )

    def _append_history(self, status: ReplacementStatus, note, actor, at) -> None:
        self.add_replacement_history(
            ReplacementHistoryEntry(
                sequence=len(self.replacement_history or []) + 1,
                status=status.value,
                note=note,
                actor=actor,
                at=at,
            )
        )
