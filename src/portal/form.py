"""Replacement edit form: an explicit state machine over a draft.

    Idle → Editing → Submitting → Succeeded → Idle (on reload)
                                → Failed → Editing

A submission is refused while one is in flight. A failed submission keeps
the draft exactly as the actor left it.
"""

from dataclasses import dataclass, replace

from portal.errors import PortalError
from portal.models import Order, TransitionRequest
from portal.validation import ValidationResult, validate
from shared.orders import ReplacementStatus, requires_reason

DEFAULT_DRAFT_STATUS = ReplacementStatus.APPROVED
QUICK_DECISION_PROMPT = "Add a reason before submitting your decision."


class FormBusyError(PortalError):
    """A submission is already in flight."""

    def __init__(self):
        super().__init__("An update is already in progress.")


@dataclass(frozen=True)
class Draft:
    status: ReplacementStatus = DEFAULT_DRAFT_STATUS
    notes: str = ""
    courier: str = ""
    tracking_id: str = ""

    @classmethod
    def seeded_from(cls, order: Order) -> "Draft":
        """Fresh draft after a (re)load: courier details come from the server, notes start empty."""
        shipment = order.replacement_request.replacement_shipment if order.replacement_request else None
        return cls(
            courier=(shipment.courier or "") if shipment else "",
            tracking_id=(shipment.tracking_id or "") if shipment else "",
        )

    def to_request(self, expected_status: ReplacementStatus | None = None) -> TransitionRequest:
        return TransitionRequest(
            status=self.status,
            notes=self.notes,
            courier=self.courier,
            tracking_id=self.tracking_id,
            expected_status=expected_status,
        )


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Idle:
    draft: Draft


@dataclass(frozen=True)
class Editing:
    draft: Draft
    error: str | None = None
    focus: str | None = None
    prompt: str | None = None


@dataclass(frozen=True)
class Submitting:
    draft: Draft


@dataclass(frozen=True)
class Succeeded:
    draft: Draft
    message: str | None = None


@dataclass(frozen=True)
class Failed:
    draft: Draft
    error: str


FormState = Idle | Editing | Submitting | Succeeded | Failed


class ReplacementForm:
    def __init__(self, reason_required=None):
        self.reason_required = reason_required
        self.state: FormState = Idle(Draft())

    @property
    def draft(self) -> Draft:
        return self.state.draft

    @property
    def is_busy(self) -> bool:
        return isinstance(self.state, Submitting)

    @property
    def can_submit(self) -> bool:
        """Submit is disabled while busy or while a required reason is missing."""
        if self.is_busy:
            return False
        draft = self.draft
        return not (requires_reason(draft.status, self.reason_required) and not draft.notes.strip())

    def seed(self, order: Order) -> None:
        """Reset the form from a freshly loaded order."""
        if self.is_busy:
            raise FormBusyError()
        self.state = Idle(Draft.seeded_from(order))

    def edit(self, **changes) -> None:
        if self.is_busy:
            raise FormBusyError()
        if "status" in changes:
            changes["status"] = ReplacementStatus(changes["status"])
        self.state = Editing(replace(self.draft, **changes))

    def quick_decision(self, status) -> None:
        """Pick a decision from a shortcut button.

        A decision that needs a reason starts with empty notes and puts the
        focus on them.
        """
        if self.is_busy:
            raise FormBusyError()
        status = ReplacementStatus(status)
        if requires_reason(status, self.reason_required):
            self.state = Editing(
                replace(self.draft, status=status, notes=""),
                focus="notes",
                prompt=QUICK_DECISION_PROMPT,
            )
        else:
            self.state = Editing(replace(self.draft, status=status))

    def begin_submit(self) -> ValidationResult:
        """Validate the draft and, if it passes, enter Submitting."""
        if self.is_busy:
            raise FormBusyError()
        draft = self.draft
        result = validate(draft.status, draft.notes, self.reason_required)
        if not result.ok:
            self.state = Editing(draft, error=result.message, focus=result.field)
            return result
        self.state = Submitting(draft)
        return result

    def succeed(self, message: str | None = None) -> None:
        self.state = Succeeded(self.draft, message)

    def fail(self, error: str) -> None:
        self.state = Failed(self.draft, error)

    def resume(self) -> None:
        """Return to editing after a failure, keeping everything the actor typed."""
        if isinstance(self.state, Failed):
            self.state = Editing(self.draft, error=self.state.error)
