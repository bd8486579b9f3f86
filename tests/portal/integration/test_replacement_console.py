"""End-to-end replacement workflows: portal console against the real Returns API."""

import asyncio
import json
from decimal import Decimal

import httpx
import pytest
from portal.errors import TIMEOUT_MESSAGE, NetworkError, ReloadError, ServerRejection, ValidationError
from portal.form import Editing, FormBusyError, Idle, Submitting
from portal.roles import READ_ONLY_NOTICE, SUBMIT
from portal.settings import PortalSettings
from portal.validation import REASON_REQUIRED
from portal.workflow import UPDATED_MESSAGE, ReplacementConsole
from protean import current_domain
from returns.order.placement import PlaceOrder
from shared.orders import ActorRole, ReplacementStatus


class TestRejectScenario:
    """Order O1: rejection needs a reason, and the reason lands in the audit trail."""

    @pytest.mark.asyncio
    async def test_reject_without_reason_never_reaches_network(self, console_for, transport, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)
        before = console.order
        posts_before = transport.count("POST")

        console.edit(status="rejected", notes="")
        result = await console.submit()

        assert isinstance(result.error, ValidationError)
        assert result.error.reason == REASON_REQUIRED
        assert transport.count("POST") == posts_before
        assert console.order is before
        assert isinstance(console.form.state, Editing)
        assert console.form.state.focus == "notes"

    @pytest.mark.asyncio
    async def test_reject_with_reason(self, console_for, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)

        console.edit(status="rejected", notes="Item shows signs of use")
        result = await console.submit()

        assert result.ok
        order = console.order
        assert order.replacement_status is ReplacementStatus.REJECTED
        history = order.history
        assert [entry.status for entry in history] == [ReplacementStatus.PENDING, ReplacementStatus.REJECTED]
        assert history[-1].note == "Item shows signs of use"
        assert history[0].at <= history[1].at
        assert console.message == UPDATED_MESSAGE
        assert console.notice is None


class TestApproveScenario:
    """Order O2: approval with courier details needs no note."""

    @pytest.mark.asyncio
    async def test_approve_with_courier(self, console_for, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)

        console.edit(status="approved", courier="Delhivery", tracking_id="AWB123")
        result = await console.submit()

        assert result.ok
        request = console.order.replacement_request
        assert request.replacement_shipment.courier == "Delhivery"
        assert request.replacement_shipment.tracking_id == "AWB123"
        assert len(request.history) == 2
        assert request.history[-1].note is None

    @pytest.mark.asyncio
    async def test_form_is_reseeded_from_reload(self, console_for, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)

        console.edit(status="approved", notes="Pickup tomorrow", courier="Delhivery", tracking_id="AWB123")
        await console.submit()

        assert isinstance(console.form.state, Idle)
        assert console.form.draft.status is ReplacementStatus.APPROVED
        assert console.form.draft.notes == ""
        assert console.form.draft.courier == "Delhivery"
        assert console.form.draft.tracking_id == "AWB123"

    @pytest.mark.asyncio
    async def test_view_offers_tracking_link(self, console_for, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)
        console.edit(status="approved", courier="Delhivery", tracking_id="AWB123")
        await console.submit()

        actions = console.view()
        assert actions.tracking_url == "https://trackcourier.io/track-and-trace/delhivery-courier/AWB123"


class TestAuditMonotonicity:
    @pytest.mark.asyncio
    async def test_history_grows_and_tracks_status(self, console_for, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)

        for status in ("approved", "pickup_completed", "replacement_processing", "replacement_shipped"):
            before = len(console.order.history)
            console.edit(status=status)
            result = await console.submit()
            assert result.ok
            assert len(console.order.history) > before
            assert console.order.history[-1].status is console.order.replacement_status

    @pytest.mark.asyncio
    async def test_illegal_jump_is_rejected_by_server(self, console_for, transport, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)

        console.edit(status="replacement_delivered", notes="Skipping ahead")
        result = await console.submit()

        assert isinstance(result.error, ServerRejection)
        assert "Cannot transition" in result.error.message
        assert transport.count("POST") == 1
        assert len(console.order.history) == 1


class TestReloadReplaces:
    @pytest.mark.asyncio
    async def test_snapshot_is_replaced_not_merged(self, console_for, settings, transport, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)
        previous = console.order

        console.edit(status="approved", notes="Pickup tomorrow")
        await console.submit()

        assert console.order is not previous
        observer = ReplacementConsole(ActorRole.SUBADMIN, settings=settings, transport=transport)
        await observer.load(pending_order_id)
        assert console.order == observer.order

    @pytest.mark.asyncio
    async def test_every_mutation_is_followed_by_a_reload(self, console_for, transport, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)
        transport.requests.clear()

        console.edit(status="approved")
        await console.submit()

        assert transport.requests == [
            ("POST", f"/orders/{pending_order_id}/replacement/transition"),
            ("GET", f"/orders/{pending_order_id}"),
        ]


class TestRoleGating:
    @pytest.mark.asyncio
    async def test_subadmin_cannot_submit(self, console_for, transport, pending_order_id):
        console = console_for(ActorRole.SUBADMIN)
        await console.load(pending_order_id)

        actions = console.view()
        assert actions.control(SUBMIT) is None
        assert actions.notice == READ_ONLY_NOTICE

        posts_before = transport.count("POST")
        result = await console.submit()
        assert isinstance(result.error, ValidationError)
        assert transport.count("POST") == posts_before

    @pytest.mark.asyncio
    async def test_seller_sees_no_transition_ui_without_request(self, console_for, delivered_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(delivered_order_id)

        assert console.view().controls == ()


class TestIdempotentRedisplay:
    @pytest.mark.asyncio
    async def test_loading_twice_renders_same_history(self, console_for, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)
        console.edit(status="approved", notes="Pickup tomorrow")
        await console.submit()

        await console.load(pending_order_id)
        first = console.view().history
        await console.load(pending_order_id)
        second = console.view().history

        assert first == second
        assert [line.status for line in first] == ["approved", "pending"]


class TestConcurrentActors:
    @pytest.mark.asyncio
    async def test_stale_submission_is_rejected_and_fresh_state_shown(self, console_for, pending_order_id):
        seller = console_for(ActorRole.SELLER)
        admin = console_for(ActorRole.ADMIN)
        await seller.load(pending_order_id)
        await admin.load(pending_order_id)

        admin.edit(status="approved")
        assert (await admin.submit()).ok

        seller.edit(status="rejected", notes="Item shows signs of use")
        result = await seller.submit()

        assert isinstance(result.error, ServerRejection)
        assert result.error.is_conflict
        assert seller.order.replacement_status is ReplacementStatus.APPROVED
        assert seller.notice.actual == "approved"
        assert seller.notice.expected == "pending"
        assert seller.form.draft.notes == "Item shows signs of use"
        assert isinstance(seller.form.state, Editing)


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_reload_failure_is_reported_distinctly(self, console_for, transport, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)

        transport.fail_reads = True
        console.edit(status="approved")
        result = await console.submit()

        assert isinstance(result.error, ReloadError)
        assert console.message == UPDATED_MESSAGE

        transport.fail_reads = False
        await console.load(pending_order_id)
        assert console.order.replacement_status is ReplacementStatus.APPROVED

    @pytest.mark.asyncio
    async def test_timeout_surfaces_and_keeps_draft(self, pending_order_id, transport):
        class SlowTransport(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request):
                if request.method == "POST":
                    await asyncio.sleep(2)
                return await transport.handle_async_request(request)

        settings = PortalSettings(api_url="http://returns.test", timeout_seconds=0.2)
        console = ReplacementConsole(ActorRole.SELLER, settings=settings, transport=SlowTransport())
        await console.load(pending_order_id)

        console.edit(status="rejected", notes="Item shows signs of use")
        result = await console.submit()

        assert isinstance(result.error, NetworkError)
        assert result.error.message == TIMEOUT_MESSAGE
        assert isinstance(console.form.state, Editing)
        assert console.form.draft.notes == "Item shows signs of use"
        assert not console.form.is_busy


class TestBusyWhileReloading:
    @pytest.mark.asyncio
    async def test_submit_stays_disabled_until_reload_finishes(self, settings, transport, pending_order_id):
        seen = {}

        class ObservingTransport(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request):
                if request.method == "GET" and transport.count("POST"):
                    seen["busy"] = console.form.is_busy
                    seen["submit_enabled"] = console.view().control(SUBMIT).enabled
                    seen["second"] = await console.submit()
                return await transport.handle_async_request(request)

        console = ReplacementConsole(ActorRole.SELLER, settings=settings, transport=ObservingTransport())
        await console.load(pending_order_id)

        console.edit(status="approved")
        result = await console.submit()

        assert result.ok
        assert seen["busy"] is True
        assert seen["submit_enabled"] is False
        assert isinstance(seen["second"].error, FormBusyError)
        assert transport.count("POST") == 1
        assert console.message == UPDATED_MESSAGE
        assert not console.form.is_busy

    @pytest.mark.asyncio
    async def test_busy_form_refusal_is_a_result(self, console_for, transport, pending_order_id):
        console = console_for(ActorRole.SELLER)
        await console.load(pending_order_id)
        console.form.state = Submitting(console.form.draft)

        result = await console.submit()

        assert not result.ok
        assert isinstance(result.error, FormBusyError)
        assert transport.count("POST") == 0


class TestCustomerRequest:
    @pytest.mark.asyncio
    async def test_customer_raises_request(self, console_for, delivered_order_id):
        console = console_for(ActorRole.CUSTOMER)
        await console.load(delivered_order_id)

        result = await console.request_replacement(1, "Cap arrived with a torn strap", size="L")

        assert result.ok
        assert console.message == "Replacement request sent to support."
        request = console.order.replacement_request
        assert request.status is ReplacementStatus.PENDING
        assert request.item_name == "Denim Cap"
        assert request.replacement_preferences.size == "L"
        assert console.view().history[0].note == "Status updated"

    @pytest.mark.asyncio
    async def test_short_description_is_caught_locally(self, console_for, transport, delivered_order_id):
        console = console_for(ActorRole.CUSTOMER)
        await console.load(delivered_order_id)
        posts_before = transport.count("POST")

        result = await console.request_replacement(0, "torn")

        assert isinstance(result.error, ValidationError)
        assert transport.count("POST") == posts_before

    @pytest.mark.asyncio
    async def test_policy_sync(self, console_for, monkeypatch):
        monkeypatch.setenv("REPLACEMENT_REASON_REQUIRED", "cancelled")
        console = console_for(ActorRole.SELLER)

        result = await console.sync_policy()

        assert result.ok
        assert ReplacementStatus.CANCELLED in console.settings.reason_required
        console.quick_decision("cancelled")
        assert console.form.state.focus == "notes"


class TestSubCentPricing:
    @pytest.mark.asyncio
    async def test_order_with_sub_cent_tax_loads(self, console_for):
        order_id = current_domain.process(
            PlaceOrder(
                customer_id="cust-002",
                items=json.dumps([{"product_ref": "prod-sock", "name": "Socks", "price": 10.0, "quantity": 1}]),
                tax_amount=0.025,
            ),
            asynchronous=False,
        )
        console = console_for(ActorRole.SELLER)

        result = await console.load(order_id)

        assert result.ok
        assert console.order.pricing.total == Decimal("10.03")
