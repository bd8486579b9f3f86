"""Order placement: command and handler.

Checkout itself (address geocoding, payment simulation) lives outside this
service; it hands over the finished order through PlaceOrder.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, Text
from protean.utils.globals import current_domain

from returns.domain import returns
from returns.order.order import Order


@returns.command(part_of="Order")
class PlaceOrder:
    """Record a completed checkout as an order."""

    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of line item dicts
    shipping_address = Text()  # JSON: ShippingAddress fields
    payment = Text()  # JSON: {"method": ..., "status": ...}
    shipping_fee = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount = Float(default=0.0)


def _load(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


@returns.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.place(
            customer_id=command.customer_id,
            items_data=_load(command.items),
            shipping_address=_load(command.shipping_address),
            payment=_load(command.payment),
            shipping_fee=command.shipping_fee or 0.0,
            tax_amount=command.tax_amount or 0.0,
            discount=command.discount or 0.0,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
