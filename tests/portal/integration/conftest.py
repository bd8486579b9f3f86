"""Portal-to-backend fixtures: the portal talks to the real Returns API in-process."""

import json

import httpx
import pytest
from fastapi import FastAPI, Request
from portal.settings import PortalSettings
from portal.workflow import ReplacementConsole
from protean import current_domain
from returns.api.errors import register_exception_handlers
from returns.api.routes import order_router
from returns.domain import returns
from returns.order.fulfillment import AdvanceOrderStatus
from returns.order.placement import PlaceOrder
from returns.order.replacement import RequestReplacement

BASE_URL = "http://returns.test"


class RecordingTransport(httpx.AsyncBaseTransport):
    """Forwards to the ASGI app and records every request it sees."""

    def __init__(self, inner: httpx.AsyncBaseTransport):
        self.inner = inner
        self.requests = []
        self.fail_reads = False

    async def handle_async_request(self, request):
        self.requests.append((request.method, request.url.path))
        if self.fail_reads and request.method == "GET":
            raise httpx.ConnectError("backend unavailable", request=request)
        return await self.inner.handle_async_request(request)

    def count(self, method: str) -> int:
        return sum(1 for seen, _ in self.requests if seen == method)


@pytest.fixture(autouse=True)
def _ctx(returns_bed):
    with returns_bed.domain_context():
        yield


@pytest.fixture()
def app():
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with returns.domain_context():
            return await call_next(request)

    app.include_router(order_router)
    register_exception_handlers(app)
    return app


@pytest.fixture()
def transport(app):
    return RecordingTransport(httpx.ASGITransport(app=app))


@pytest.fixture()
def settings(monkeypatch):
    monkeypatch.delenv("REPLACEMENT_REASON_REQUIRED", raising=False)
    return PortalSettings(api_url=BASE_URL, timeout_seconds=5.0)


@pytest.fixture()
def console_for(settings, transport):
    def _console(role):
        return ReplacementConsole(role, settings=settings, transport=transport)

    return _console


def _place_delivered_order():
    order_id = current_domain.process(
        PlaceOrder(
            customer_id="cust-001",
            items=json.dumps(
                [
                    {"product_ref": "prod-tee", "name": "Cotton Tee", "price": 499.0, "quantity": 1, "size": "M"},
                    {"product_ref": "prod-cap", "name": "Denim Cap", "price": 299.0, "quantity": 1},
                ]
            ),
            payment=json.dumps({"method": "upi", "status": "paid"}),
            shipping_fee=50.0,
        ),
        asynchronous=False,
    )
    current_domain.process(AdvanceOrderStatus(order_id=order_id, status="delivered"), asynchronous=False)
    return order_id


@pytest.fixture()
def delivered_order_id():
    return _place_delivered_order()


@pytest.fixture()
def pending_order_id():
    order_id = _place_delivered_order()
    current_domain.process(
        RequestReplacement(order_id=order_id, item_index=0, description="Stitching came apart at the seam"),
        asynchronous=False,
    )
    return order_id
