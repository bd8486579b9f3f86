"""Order fulfillment status: command and handler.

The fulfillment axis is separate from the replacement request status; it is
advanced by the order-management surface.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from returns.domain import logger, returns
from returns.order.order import Order


@returns.command(part_of="Order")
class AdvanceOrderStatus:
    """Move an order forward (e.g. shipped → out_for_delivery → delivered)."""

    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@returns.command_handler(part_of=Order)
class AdvanceOrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.advance_status(command.status)
        repo.add(order)
        logger.info("Order status advanced", order_id=str(order.id), status=order.status)
