"""Replacement console: one actor working on one order.

Ties the pieces together in the order they run for every action:

    validate → submit (Replacement Update Service) → reload → re-render

The console holds the current order snapshot and replaces it wholesale on
every reload. It never edits the snapshot itself.
"""

import httpx

from portal.api import OrdersApi
from portal.errors import (
    PortalError,
    ReloadError,
    Result,
    ServerRejection,
    StaleStateNotice,
    ValidationError,
)
from portal.form import FormBusyError, ReplacementForm
from portal.models import Order, ReplacementRequestDraft
from portal.reload import OrderReloadCoordinator, detect_stale
from portal.roles import READ_ONLY_NOTICE, ActionSet, render_actions
from portal.service import ReplacementUpdateService
from portal.settings import PortalSettings
from portal.utils.logging import get_logger
from portal.validation import validate_replacement_request
from shared.orders import REVIEWER_ROLES, ActorRole

logger = get_logger(__name__)

UPDATED_MESSAGE = "Replacement request updated"
REQUESTED_MESSAGE = "Replacement request sent to support."


class ReplacementConsole:
    def __init__(
        self,
        role,
        settings: PortalSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.role = ActorRole(role)
        self.settings = settings or PortalSettings.from_env()
        self.api = OrdersApi(self.settings, self.role, transport=transport)
        self.service = ReplacementUpdateService(self.api)
        self.reloader = OrderReloadCoordinator(self.api)
        self.form = ReplacementForm(self.settings.reason_required)

        self.order: Order | None = None
        self.error: PortalError | None = None
        self.notice: StaleStateNotice | None = None
        self.message: str | None = None

    # -------------------------------------------------------------------
    # Loading and display
    # -------------------------------------------------------------------
    async def sync_policy(self) -> Result[PortalSettings]:
        """Adopt the reason-required set and request window published by the server."""
        try:
            policy = await self.api.fetch_policy()
        except PortalError as exc:
            return Result.failure(exc)
        self.settings = self.settings.with_policy(policy)
        self.form.reason_required = self.settings.reason_required
        return Result.success(self.settings)

    async def load(self, order_id: str) -> Result[Order]:
        result = await self.reloader.reload(order_id)
        if not result.ok:
            self.error = result.error
            return result
        self._replace(result.value)
        return result

    def view(self, now=None) -> ActionSet:
        if self.order is None:
            raise ValidationError("No order loaded.", reason="NotLoaded")
        return render_actions(
            self.order,
            self.role,
            form=self.form,
            now=now,
            window_days=self.settings.window_days,
            reason_required=self.settings.reason_required,
        )

    def _replace(self, order: Order) -> None:
        self.order = order
        self.error = None
        self.form.seed(order)

    # -------------------------------------------------------------------
    # Seller/admin transitions
    # -------------------------------------------------------------------
    def edit(self, **changes) -> None:
        self.form.edit(**changes)

    def quick_decision(self, status) -> None:
        self.form.quick_decision(status)

    async def submit(self) -> Result[Order]:
        """Validate, send and reload. Returns the reloaded order on success."""
        if self.order is None:
            return self._fail(ValidationError("No order loaded.", reason="NotLoaded"))
        if self.role not in REVIEWER_ROLES:
            return self._fail(ValidationError(READ_ONLY_NOTICE, reason="ReadOnly"))

        try:
            check = self.form.begin_submit()
        except FormBusyError as exc:
            return self._fail(exc)
        self.message = None
        self.notice = None
        if not check.ok:
            return self._fail(check.to_error())

        order_id = self.order.id
        expected = self.order.replacement_status
        request = self.form.draft.to_request(expected_status=expected)
        submitted = await self.service.submit_transition(order_id, request, snapshot=self.order)

        if not submitted.ok:
            if isinstance(submitted.error, ServerRejection) and submitted.error.is_conflict:
                await self._present_fresh_state(order_id, expected)
            self.form.fail(submitted.error.message)
            self.form.resume()
            return self._fail(submitted.error)

        # The form stays in Submitting until the reload settles.
        self.message = UPDATED_MESSAGE
        reloaded = await self.reloader.reload(order_id)
        self.form.succeed(UPDATED_MESSAGE)
        if not reloaded.ok:
            # The transition is durable; only the refreshed view is missing.
            return self._fail(reloaded.error)

        self._replace(reloaded.value)
        self.notice = detect_stale(self.order, request.status)
        return reloaded

    async def _present_fresh_state(self, order_id: str, expected) -> None:
        reloaded = await self.reloader.reload(order_id)
        if not reloaded.ok:
            return
        # Keep the actor's draft so they can resubmit against the new state.
        self.order = reloaded.value
        self.notice = detect_stale(self.order, expected)

    def _fail(self, error: PortalError) -> Result[Order]:
        self.error = error
        if isinstance(error, ReloadError):
            logger.warning("Reload after update failed", order_id=self.order.id if self.order else None)
        return Result.failure(error)

    # -------------------------------------------------------------------
    # Customer requests
    # -------------------------------------------------------------------
    async def request_replacement(
        self,
        item_index: int,
        description: str,
        size: str | None = None,
        color: str | None = None,
        remarks: str | None = None,
        now=None,
    ) -> Result[Order]:
        self.message = None
        if self.order is None:
            return self._fail(ValidationError("No order loaded.", reason="NotLoaded"))
        if self.role is not ActorRole.CUSTOMER:
            return self._fail(ValidationError("Only customers can request a replacement.", reason="ReadOnly"))

        check = validate_replacement_request(self.order, item_index, description, now, self.settings.window_days)
        if not check.ok:
            return self._fail(check.to_error())

        draft = ReplacementRequestDraft(
            item_index=item_index,
            description=description,
            size=size,
            color=color,
            remarks=remarks,
        )
        requested = await self.service.request_replacement(self.order.id, draft)
        if not requested.ok:
            return self._fail(requested.error)

        self.message = requested.value or REQUESTED_MESSAGE
        reloaded = await self.reloader.reload(self.order.id)
        if not reloaded.ok:
            return self._fail(reloaded.error)
        self._replace(reloaded.value)
        return reloaded
