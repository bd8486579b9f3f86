"""Role View Adapter.

Every role sees the same order data. What differs is the set of controls
offered on top of it, so each role is a RoleView subclass producing an
ActionSet. Adding a role means registering one more view.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from portal.audit import AuditLine, render_history
from portal.form import ReplacementForm
from portal.labels import SELLER_STATUS_OPTIONS, replacement_status_label, tracking_url
from portal.models import Order
from portal.validation import replacement_eligibility
from shared.orders import DEFAULT_WINDOW_DAYS, ActorRole, ReplacementStatus, requires_reason

READ_ONLY_NOTICE = "Replacement workflow is read-only in coordinator view."

# Control names
STATUS_SELECT = "status"
COURIER_INPUT = "courier"
TRACKING_INPUT = "tracking_id"
NOTES_INPUT = "notes"
SUBMIT = "submit"
QUICK_APPROVE = "quick_approve"
QUICK_REJECT = "quick_reject"
REQUEST_REPLACEMENT = "request_replacement"

SUBMITTING_CONTROLS = frozenset({SUBMIT, QUICK_APPROVE, QUICK_REJECT})


@dataclass(frozen=True)
class Control:
    name: str
    label: str
    enabled: bool = True
    required: bool = False
    options: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ActionSet:
    role: ActorRole
    controls: tuple[Control, ...] = ()
    history: tuple[AuditLine, ...] = ()
    notice: str | None = None
    tracking_url: str | None = None

    def control(self, name: str) -> Control | None:
        for control in self.controls:
            if control.name == name:
                return control
        return None

    @property
    def can_mutate(self) -> bool:
        """Whether any enabled control would send a transition."""
        return any(control.enabled for control in self.controls if control.name in SUBMITTING_CONTROLS)


@dataclass
class ViewContext:
    form: ReplacementForm | None = None
    now: datetime | None = None
    window_days: int = DEFAULT_WINDOW_DAYS
    reason_required: frozenset | None = field(default=None)


class RoleView(ABC):
    role: ActorRole

    def render(self, order: Order, context: ViewContext) -> ActionSet:
        shipment = order.replacement_request.replacement_shipment if order.replacement_request else None
        return ActionSet(
            role=self.role,
            controls=tuple(self.controls(order, context)),
            history=tuple(render_history(order, self.role)),
            notice=self.notice(order),
            tracking_url=tracking_url(shipment.courier, shipment.tracking_id) if shipment else None,
        )

    @abstractmethod
    def controls(self, order: Order, context: ViewContext) -> list[Control]: ...

    def notice(self, order: Order) -> str | None:
        return None


class ReviewerView(RoleView):
    """Full transition controls for roles that decide on replacement requests."""

    def controls(self, order: Order, context: ViewContext) -> list[Control]:
        if not order.has_active_replacement:
            return []

        form = context.form
        busy = form.is_busy if form else False
        draft_status = form.draft.status if form else ReplacementStatus.APPROVED
        can_submit = form.can_submit if form else True
        options = tuple((status.value, replacement_status_label(status)) for status in SELLER_STATUS_OPTIONS)

        return [
            Control(QUICK_APPROVE, "Approve request", enabled=not busy),
            Control(QUICK_REJECT, "Reject request", enabled=not busy),
            Control(STATUS_SELECT, "Update status", enabled=not busy, options=options),
            Control(COURIER_INPUT, "Courier partner", enabled=not busy),
            Control(TRACKING_INPUT, "Tracking ID", enabled=not busy),
            Control(
                NOTES_INPUT,
                "Notes",
                enabled=not busy,
                required=requires_reason(draft_status, context.reason_required),
            ),
            Control(SUBMIT, "Saving..." if busy else "Update request", enabled=can_submit),
        ]


class SellerView(ReviewerView):
    role = ActorRole.SELLER


class AdminView(ReviewerView):
    role = ActorRole.ADMIN


class SubadminView(RoleView):
    """Coordinators see everything and change nothing."""

    role = ActorRole.SUBADMIN

    def controls(self, order: Order, context: ViewContext) -> list[Control]:
        return []

    def notice(self, order: Order) -> str | None:
        return READ_ONLY_NOTICE if order.has_active_replacement else None


class CustomerView(RoleView):
    """Customers follow their request and may raise one while the window is open."""

    role = ActorRole.CUSTOMER

    def controls(self, order: Order, context: ViewContext) -> list[Control]:
        eligibility = replacement_eligibility(order, context.now, context.window_days)
        if not eligibility.ok:
            return []
        return [Control(REQUEST_REPLACEMENT, "Return / Replace")]


ROLE_VIEWS: dict[ActorRole, RoleView] = {
    view.role: view for view in (SellerView(), AdminView(), SubadminView(), CustomerView())
}


def render_actions(
    order: Order,
    role,
    form: ReplacementForm | None = None,
    now: datetime | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
    reason_required=None,
) -> ActionSet:
    """Controls and audit lines for ``role`` looking at ``order``."""
    view = ROLE_VIEWS[ActorRole(role)]
    context = ViewContext(
        form=form,
        now=now,
        window_days=window_days,
        reason_required=reason_required if reason_required is not None else (form.reason_required if form else None),
    )
    return view.render(order, context)
