"""Client-side snapshots of the Order aggregate.

Snapshots are immutable and versionless. The portal never edits them in
place: after every mutation the whole Order is re-fetched and replaced.
Field names follow the server's camelCase JSON through aliases.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from shared.orders import OrderStatus, PaymentStatus, ReplacementStatus

_CENT = Decimal("0.01")


class Snapshot(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class OrderItem(Snapshot):
    product_ref: str
    name: str
    image: str | None = None
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    size: str | None = None


class Pricing(Snapshot):
    subtotal: Decimal = Field(Decimal("0"), ge=0)
    shipping_fee: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(Decimal("0"), ge=0)

    @model_validator(mode="after")
    def _total_matches_components(self):
        # Totals arrive rounded to the cent.
        expected = self.subtotal + self.shipping_fee + self.tax_amount - self.discount
        if abs(expected - self.total) > _CENT:
            raise ValueError(f"total {self.total} does not equal subtotal + shipping + tax - discount ({expected})")
        return self


class Payment(Snapshot):
    method: str | None = None
    status: PaymentStatus = PaymentStatus.PENDING

    @field_validator("status", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.lower() if isinstance(value, str) else value


class ShippingAddress(Snapshot):
    name: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None


class ReplacementPreferences(Snapshot):
    size: str | None = None
    color: str | None = None
    remarks: str | None = None


class ReplacementShipment(Snapshot):
    courier: str | None = None
    tracking_id: str | None = None


class HistoryEntry(Snapshot):
    status: ReplacementStatus
    note: str | None = None
    actor: str | None = None
    at: datetime | None = None


class ReplacementRequest(Snapshot):
    status: ReplacementStatus = ReplacementStatus.NONE
    item_name: str | None = None
    item_size: str | None = None
    quantity: int = 1
    issue_description: str | None = None
    replacement_preferences: ReplacementPreferences = Field(default_factory=ReplacementPreferences)
    replacement_shipment: ReplacementShipment = Field(default_factory=ReplacementShipment)
    admin_notes: str | None = None
    requested_at: datetime | None = None
    used: bool = False
    history: tuple[HistoryEntry, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status is not ReplacementStatus.NONE

    @property
    def latest_entry(self) -> HistoryEntry | None:
        return self.history[-1] if self.history else None


class Order(Snapshot):
    id: str
    customer_id: str | None = None
    status: OrderStatus
    items: tuple[OrderItem, ...] = ()
    pricing: Pricing = Field(default_factory=Pricing)
    payment: Payment = Field(default_factory=Payment)
    shipping_address: ShippingAddress | None = None
    replacement_request: ReplacementRequest | None = None
    delivered_at: datetime | None = None
    placed_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.lower() if isinstance(value, str) else value

    @classmethod
    def from_api(cls, payload: dict) -> "Order":
        return cls.model_validate(payload)

    @property
    def replacement_status(self) -> ReplacementStatus:
        if self.replacement_request is None:
            return ReplacementStatus.NONE
        return self.replacement_request.status

    @property
    def has_active_replacement(self) -> bool:
        return self.replacement_request is not None and self.replacement_request.is_active

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        if self.replacement_request is None:
            return ()
        return self.replacement_request.history


@dataclass(frozen=True)
class TransitionRequest:
    """What the actor submits: a target status plus optional note and courier details."""

    status: ReplacementStatus
    notes: str | None = None
    courier: str | None = None
    tracking_id: str | None = None
    expected_status: ReplacementStatus | None = None

    def to_payload(self) -> dict:
        """Wire payload: trimmed text, blank fields dropped."""
        payload = {"status": self.status.value}
        for key, value in (
            ("notes", self.notes),
            ("courier", self.courier),
            ("trackingId", self.tracking_id),
        ):
            value = (value or "").strip()
            if value:
                payload[key] = value
        if self.expected_status is not None:
            payload["expectedStatus"] = self.expected_status.value
        return payload


@dataclass(frozen=True)
class ReplacementRequestDraft:
    """A customer's return/replace request for one line item."""

    item_index: int
    description: str
    size: str | None = None
    color: str | None = None
    remarks: str | None = None

    def to_payload(self) -> dict:
        replacement = {}
        for key, value in (("size", self.size), ("color", self.color), ("remarks", self.remarks)):
            value = (value or "").strip()
            if value:
                replacement[key] = value
        return {
            "itemIndex": self.item_index,
            "description": self.description.strip(),
            "replacement": replacement,
        }
