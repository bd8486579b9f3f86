"""Pydantic API schemas for the Returns domain.

These are the external API contracts, separate from domain commands. JSON
on the wire is camelCase (``trackingId``, ``replacementRequest``); Python
code uses snake_case names.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OrderItemRequest(CamelModel):
    product_ref: str
    name: str
    image: str | None = None
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    size: str | None = None


class ShippingAddressSchema(CamelModel):
    name: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None


class PaymentSchema(CamelModel):
    method: str | None = None
    status: str = "pending"


class PlaceOrderRequest(CamelModel):
    customer_id: str
    items: list[OrderItemRequest]
    shipping_address: ShippingAddressSchema | None = None
    payment: PaymentSchema | None = None
    shipping_fee: float = Field(0.0, ge=0)
    tax_amount: float = Field(0.0, ge=0)
    discount: float = Field(0.0, ge=0)


class AdvanceStatusRequest(CamelModel):
    status: str


class ReplacementPreferencesSchema(CamelModel):
    size: str | None = None
    color: str | None = None
    remarks: str | None = None


class RequestReplacementRequest(CamelModel):
    item_index: int = Field(0, ge=0)
    description: str
    replacement: ReplacementPreferencesSchema = Field(default_factory=ReplacementPreferencesSchema)


class TransitionReplacementRequest(CamelModel):
    status: str
    notes: str | None = None
    courier: str | None = None
    tracking_id: str | None = None
    expected_status: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(CamelModel):
    order_id: str


class SuccessResponse(CamelModel):
    success: bool = True
    message: str | None = None


class OrderItemResponse(CamelModel):
    product_ref: str
    name: str
    image: str | None = None
    price: float
    quantity: int
    size: str | None = None


class PricingResponse(CamelModel):
    subtotal: float
    shipping_fee: float
    tax_amount: float
    discount: float
    total: float


class ReplacementShipmentSchema(CamelModel):
    courier: str | None = None
    tracking_id: str | None = None


class HistoryEntryResponse(CamelModel):
    status: str
    note: str | None = None
    actor: str | None = None
    at: datetime


class ReplacementRequestResponse(CamelModel):
    status: str
    item_name: str
    item_size: str | None = None
    quantity: int = 1
    issue_description: str
    replacement_preferences: ReplacementPreferencesSchema
    replacement_shipment: ReplacementShipmentSchema
    admin_notes: str | None = None
    requested_at: datetime
    used: bool = True
    history: list[HistoryEntryResponse]


class OrderResponse(CamelModel):
    id: str
    customer_id: str
    status: str
    items: list[OrderItemResponse]
    pricing: PricingResponse
    payment: PaymentSchema
    shipping_address: ShippingAddressSchema | None = None
    replacement_request: ReplacementRequestResponse | None = None
    delivered_at: datetime | None = None
    placed_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_aggregate(cls, order) -> "OrderResponse":
        """Build the full order snapshot returned to every client role."""
        replacement = None
        if order.replacement_request is not None:
            request = order.replacement_request
            preferences = order.replacement_preferences
            shipment = order.replacement_shipment
            replacement = ReplacementRequestResponse(
                status=request.status,
                item_name=request.item_name,
                item_size=request.item_size,
                quantity=request.quantity or 1,
                issue_description=request.issue_description,
                replacement_preferences=ReplacementPreferencesSchema(
                    size=preferences.size if preferences else None,
                    color=preferences.color if preferences else None,
                    remarks=preferences.remarks if preferences else None,
                ),
                replacement_shipment=ReplacementShipmentSchema(
                    courier=shipment.courier if shipment else None,
                    tracking_id=shipment.tracking_id if shipment else None,
                ),
                admin_notes=request.admin_notes,
                requested_at=request.requested_at,
                used=bool(order.replacement_used),
                history=[
                    HistoryEntryResponse(
                        status=entry.status,
                        note=entry.note,
                        actor=entry.actor,
                        at=entry.at,
                    )
                    for entry in order.ordered_history()
                ],
            )

        address = order.shipping_address
        pricing = order.pricing
        payment = order.payment
        return cls(
            id=str(order.id),
            customer_id=str(order.customer_id),
            status=order.status,
            items=[
                OrderItemResponse(
                    product_ref=str(line.product_ref),
                    name=line.name,
                    image=line.image,
                    price=line.price,
                    quantity=line.quantity,
                    size=line.size,
                )
                for line in order.ordered_items()
            ],
            pricing=PricingResponse(
                subtotal=pricing.subtotal,
                shipping_fee=pricing.shipping_fee,
                tax_amount=pricing.tax_amount,
                discount=pricing.discount,
                total=pricing.total,
            ),
            payment=PaymentSchema(
                method=payment.method if payment else None,
                status=payment.status if payment else "pending",
            ),
            shipping_address=(
                ShippingAddressSchema(
                    name=address.name,
                    line1=address.line1,
                    line2=address.line2,
                    city=address.city,
                    state=address.state,
                    postal_code=address.postal_code,
                    country=address.country,
                    phone=address.phone,
                )
                if address
                else None
            ),
            replacement_request=replacement,
            delivered_at=order.delivered_at,
            placed_at=order.placed_at,
            updated_at=order.updated_at,
        )


class ReplacementPolicyResponse(CamelModel):
    reason_required: list[str]
    transitions: dict[str, list[str]]
    window_days: int
