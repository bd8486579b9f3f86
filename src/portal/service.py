"""Replacement Update Service: the only mutation path from the portal.

Sends a request to the server and reports success or failure. It never
touches the local order snapshot and never retries; the caller reloads.
"""

from portal.api import OrdersApi
from portal.errors import PortalError, Result, ValidationError
from portal.models import Order, ReplacementRequestDraft, TransitionRequest
from portal.utils.logging import get_logger

logger = get_logger(__name__)


class ReplacementUpdateService:
    def __init__(self, api: OrdersApi):
        self.api = api

    async def submit_transition(
        self, order_id: str, request: TransitionRequest, snapshot: Order | None = None
    ) -> Result[None]:
        """Send one transition. ``snapshot`` is the order the actor was looking at."""
        if snapshot is not None and not snapshot.has_active_replacement:
            return Result.failure(
                ValidationError("This order has no active replacement request.", reason="NoActiveRequest")
            )

        try:
            await self.api.post_transition(order_id, request)
        except PortalError as exc:
            logger.info(
                "Replacement transition failed",
                order_id=order_id,
                status=request.status.value,
                error=exc.message,
            )
            return Result.failure(exc)

        logger.info("Replacement transition accepted", order_id=order_id, status=request.status.value)
        return Result.success()

    async def request_replacement(self, order_id: str, draft: ReplacementRequestDraft) -> Result[str]:
        try:
            body = await self.api.post_replacement_request(order_id, draft)
        except PortalError as exc:
            logger.info("Replacement request failed", order_id=order_id, error=exc.message)
            return Result.failure(exc)

        logger.info("Replacement requested", order_id=order_id, item_index=draft.item_index)
        return Result.success(body.get("message"))
