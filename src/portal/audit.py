"""Audit trail rendering.

History arrives in append order. It is shown most-recent-first, sorted on
the entry timestamp; entries with equal timestamps keep their relative
append order reversed, so the same snapshot always renders the same way.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from portal.labels import replacement_status_label
from portal.models import HistoryEntry, Order
from shared.orders import ActorRole

DEFAULT_NOTE = "Status updated"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class AuditLine:
    status: str
    label: str
    note: str | None
    actor: str | None
    at: datetime | None


def _timestamp(entry: HistoryEntry) -> datetime:
    if entry.at is None:
        return _EPOCH
    if entry.at.tzinfo is None:
        return entry.at.replace(tzinfo=timezone.utc)
    return entry.at


def ordered_entries(history) -> list[HistoryEntry]:
    """Most recent first; ties broken by append position."""
    indexed = sorted(enumerate(history), key=lambda pair: (_timestamp(pair[1]), pair[0]), reverse=True)
    return [entry for _, entry in indexed]


def render_history(order: Order, role: ActorRole = ActorRole.SELLER) -> list[AuditLine]:
    """Audit lines for display.

    Customers see a generic note where none was recorded; staff roles see
    exactly what was stored.
    """
    lines = []
    for entry in ordered_entries(order.history):
        note = entry.note
        if not note and role is ActorRole.CUSTOMER:
            note = DEFAULT_NOTE
        lines.append(
            AuditLine(
                status=entry.status.value,
                label=replacement_status_label(entry.status),
                note=note,
                actor=entry.actor,
                at=entry.at,
            )
        )
    return lines
