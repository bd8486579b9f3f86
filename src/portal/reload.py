"""Order Reload Coordinator.

After every accepted mutation the whole order is fetched again and the
result replaces the local snapshot outright. A failed reload does not undo
the mutation that preceded it.
"""

from portal.api import OrdersApi
from portal.errors import (
    GENERIC_RELOAD_MESSAGE,
    PortalError,
    ReloadError,
    Result,
    StaleStateNotice,
)
from portal.models import Order
from portal.utils.logging import get_logger
from shared.orders import ReplacementStatus

logger = get_logger(__name__)


class OrderReloadCoordinator:
    def __init__(self, api: OrdersApi):
        self.api = api

    async def reload(self, order_id: str) -> Result[Order]:
        try:
            order = await self.api.fetch_order(order_id, fallback=GENERIC_RELOAD_MESSAGE)
        except PortalError as exc:
            logger.warning("Order reload failed", order_id=order_id, error=exc.message)
            return Result.failure(ReloadError(exc.message, cause=exc))

        logger.debug(
            "Order reloaded",
            order_id=order_id,
            replacement_status=order.replacement_status.value,
            history_length=len(order.history),
        )
        return Result.success(order)


def detect_stale(order: Order, expected: ReplacementStatus) -> StaleStateNotice | None:
    """Compare the reloaded status with the one the actor submitted."""
    actual = order.replacement_status
    if actual is expected:
        return None
    return StaleStateNotice(expected=expected.value, actual=actual.value)
