"""Returns domain events: immutable facts about order and replacement state changes.

All events are past tense and versioned.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from returns.domain import returns


@returns.event(part_of="Order")
class OrderPlaced:
    """An order was placed at checkout completion."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of line item dicts
    total = Float(required=True)
    placed_at = DateTime(required=True)


@returns.event(part_of="Order")
class OrderStatusAdvanced:
    """The order's fulfillment status moved forward."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    advanced_at = DateTime(required=True)


@returns.event(part_of="Order")
class ReplacementRequested:
    """A customer raised a return/replace request for a delivered item."""

    __version__ = 1

    order_id = Identifier(required=True)
    item_name = String(required=True)
    item_size = String()
    quantity = Integer(required=True)
    issue_description = Text(required=True)
    requested_at = DateTime(required=True)


@returns.event(part_of="Order")
class ReplacementStatusChanged:
    """A replacement request moved to a new status (or had its shipment updated)."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    note = Text()
    courier = String()
    tracking_id = String()
    actor = String(required=True)
    history_length = Integer(required=True)
    changed_at = DateTime(required=True)
