"""BDD tests for customer replacement requests."""

from datetime import timedelta

from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, when

scenarios("features/replacement_request.feature")


@when(
    parsers.cfparse('the customer requests a replacement for item {index:d} because "{description}"'),
    target_fixture="order",
)
def request_replacement(order, index, description, error):
    try:
        order.request_replacement(index, description)
    except ValidationError as exc:
        error["exc"] = exc
    return order


@when(
    parsers.cfparse("the customer requests a replacement {days:d} days after delivery"),
    target_fixture="order",
)
def request_replacement_late(order, days, error):
    try:
        order.request_replacement(
            0,
            "Stitching came apart at the seam",
            now=order.delivered_at + timedelta(days=days),
        )
    except ValidationError as exc:
        error["exc"] = exc
    return order
