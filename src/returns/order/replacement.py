"""Replacement requests: commands and handler.

Customers raise a request once per delivered order; sellers and admins move
it through its lifecycle. Every accepted change is committed together with
its history entry.
"""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from returns.domain import logger, returns
from returns.order.order import Order
from shared.orders import ActorRole


@returns.command(part_of="Order")
class RequestReplacement:
    """Raise a return/replace request for one delivered line item."""

    order_id = Identifier(required=True)
    item_index = Integer(required=True, min_value=0)
    description = Text(required=True)
    size = String(max_length=50)
    color = String(max_length=50)
    remarks = Text()


@returns.command(part_of="Order")
class TransitionReplacement:
    """Move a replacement request to a new status, or update its shipment details."""

    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    notes = Text()
    courier = String(max_length=100)
    tracking_id = String(max_length=255)
    expected_status = String(max_length=50)
    actor = String(max_length=50, default=ActorRole.SELLER.value)


@returns.command_handler(part_of=Order)
class ManageReplacementHandler:
    @handle(RequestReplacement)
    def request_replacement(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_replacement(
            item_index=command.item_index,
            description=command.description,
            size=command.size,
            color=command.color,
            remarks=command.remarks,
        )
        repo.add(order)
        logger.info(
            "Replacement requested",
            order_id=str(order.id),
            item_name=order.replacement_request.item_name,
        )

    @handle(TransitionReplacement)
    def transition_replacement(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.replacement_status
        order.transition_replacement(
            status=command.status,
            notes=command.notes,
            courier=command.courier,
            tracking_id=command.tracking_id,
            actor=command.actor,
            expected_status=command.expected_status,
        )
        repo.add(order)
        logger.info(
            "Replacement status changed",
            order_id=str(order.id),
            previous_status=previous.value,
            new_status=order.replacement_status.value,
            actor=command.actor,
        )
