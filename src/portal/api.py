"""Thin async wrapper over the Returns HTTP API.

Every call is bounded by a timeout. Transport failures become NetworkError
and refused requests become ServerRejection carrying the server's message
verbatim when it sent one.
"""

import asyncio

import httpx
import pydantic

from portal.errors import (
    GENERIC_FAILURE_MESSAGE,
    TIMEOUT_MESSAGE,
    NetworkError,
    ServerRejection,
)
from portal.models import Order, ReplacementRequestDraft, TransitionRequest
from portal.settings import PortalSettings
from portal.utils.logging import get_logger
from shared.orders import ActorRole

logger = get_logger(__name__)

ROLE_HEADER = "X-Actor-Role"


def extract_message(response: httpx.Response, fallback: str = GENERIC_FAILURE_MESSAGE) -> str:
    """Pull a human-readable message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback

    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message

    detail = body.get("detail")
    if isinstance(detail, str) and detail.strip():
        return detail
    if isinstance(detail, list):
        # FastAPI request validation errors
        parts = [item.get("msg") for item in detail if isinstance(item, dict) and item.get("msg")]
        if parts:
            return "; ".join(parts)
    return fallback


class OrdersApi:
    def __init__(
        self,
        settings: PortalSettings,
        role: ActorRole,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.role = role
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.api_url,
            timeout=httpx.Timeout(self.settings.timeout_seconds),
            headers={ROLE_HEADER: self.role.value},
            transport=self._transport,
        )

    async def _send(self, method: str, path: str, fallback: str, **kwargs) -> dict:
        try:
            async with self._client() as client:
                response = await asyncio.wait_for(
                    client.request(method, path, **kwargs),
                    timeout=self.settings.timeout_seconds,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Request timed out", method=method, path=path, timeout=self.settings.timeout_seconds)
            raise NetworkError(TIMEOUT_MESSAGE) from exc
        except httpx.HTTPError as exc:
            logger.warning("Request failed", method=method, path=path, error=str(exc))
            raise NetworkError(fallback) from exc

        if response.is_error:
            message = extract_message(response, fallback)
            logger.info(
                "Request rejected",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise ServerRejection(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get("success") is False:
            raise ServerRejection(extract_message(response, fallback), status_code=response.status_code)
        return body

    async def fetch_order(self, order_id: str, fallback: str = GENERIC_FAILURE_MESSAGE) -> Order:
        body = await self._send("GET", f"/orders/{order_id}", fallback)
        try:
            return Order.from_api(body)
        except pydantic.ValidationError as exc:
            logger.warning("Malformed order payload", order_id=order_id, errors=exc.error_count())
            raise ServerRejection(fallback) from exc

    async def post_transition(self, order_id: str, request: TransitionRequest) -> dict:
        return await self._send(
            "POST",
            f"/orders/{order_id}/replacement/transition",
            GENERIC_FAILURE_MESSAGE,
            json=request.to_payload(),
        )

    async def post_replacement_request(self, order_id: str, draft: ReplacementRequestDraft) -> dict:
        return await self._send(
            "POST",
            f"/orders/{order_id}/replacement",
            GENERIC_FAILURE_MESSAGE,
            json=draft.to_payload(),
        )

    async def fetch_policy(self) -> dict:
        return await self._send("GET", "/orders/replacement/policy", GENERIC_FAILURE_MESSAGE)
