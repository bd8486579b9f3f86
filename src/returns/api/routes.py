"""FastAPI routes for the Returns domain."""

import json

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from returns.api.schemas import (
    AdvanceStatusRequest,
    OrderIdResponse,
    OrderResponse,
    PlaceOrderRequest,
    ReplacementPolicyResponse,
    RequestReplacementRequest,
    SuccessResponse,
    TransitionReplacementRequest,
)
from returns.order.fulfillment import AdvanceOrderStatus
from returns.order.order import REPLACEMENT_TRANSITIONS, Order
from returns.order.placement import PlaceOrder
from returns.order.replacement import RequestReplacement, TransitionReplacement
from shared.orders import (
    REVIEWER_ROLES,
    ActorRole,
    reason_required_statuses,
    replacement_window_days,
)

order_router = APIRouter(prefix="/orders", tags=["orders"])


def _actor_role(raw: str) -> ActorRole:
    try:
        return ActorRole(raw.strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown actor role '{raw}'") from None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    """Record a completed checkout as an order."""
    command = PlaceOrder(
        customer_id=body.customer_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        payment=json.dumps(body.payment.model_dump()) if body.payment else None,
        shipping_fee=body.shipping_fee,
        tax_amount=body.tax_amount,
        discount=body.discount,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("/replacement/policy", response_model=ReplacementPolicyResponse)
async def get_replacement_policy() -> ReplacementPolicyResponse:
    """Expose the reason-required set and transition graph so clients share one policy."""
    return ReplacementPolicyResponse(
        reason_required=sorted(status.value for status in reason_required_statuses()),
        transitions={
            source.value: sorted(target.value for target in targets)
            for source, targets in REPLACEMENT_TRANSITIONS.items()
        },
        window_days=replacement_window_days(),
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    """Return the full order aggregate, replacement request and history included."""
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse.from_aggregate(order)


@order_router.put("/{order_id}/status", response_model=SuccessResponse)
async def advance_order_status(order_id: str, body: AdvanceStatusRequest) -> SuccessResponse:
    """Advance the order's fulfillment status."""
    command = AdvanceOrderStatus(order_id=order_id, status=body.status)
    current_domain.process(command, asynchronous=False)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Replacement requests
# ---------------------------------------------------------------------------
@order_router.post("/{order_id}/replacement", status_code=201, response_model=SuccessResponse)
async def request_replacement(
    order_id: str,
    body: RequestReplacementRequest,
    x_actor_role: str = Header(default=ActorRole.CUSTOMER.value),
) -> SuccessResponse:
    """Raise a replacement request. Customers only."""
    role = _actor_role(x_actor_role)
    if role is not ActorRole.CUSTOMER:
        raise HTTPException(status_code=403, detail="Only customers can request a replacement")

    command = RequestReplacement(
        order_id=order_id,
        item_index=body.item_index,
        description=body.description,
        size=body.replacement.size,
        color=body.replacement.color,
        remarks=body.replacement.remarks,
    )
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Replacement request sent to support.")


@order_router.post("/{order_id}/replacement/transition", response_model=SuccessResponse)
async def transition_replacement(
    order_id: str,
    body: TransitionReplacementRequest,
    x_actor_role: str = Header(default=ActorRole.CUSTOMER.value),
) -> SuccessResponse:
    """Move a replacement request through its lifecycle. Sellers and admins only."""
    role = _actor_role(x_actor_role)
    if role not in REVIEWER_ROLES:
        raise HTTPException(status_code=403, detail="Replacement workflow is read-only for this role")

    command = TransitionReplacement(
        order_id=order_id,
        status=body.status,
        notes=body.notes,
        courier=body.courier,
        tracking_id=body.tracking_id,
        expected_status=body.expected_status,
        actor=role.value,
    )
    current_domain.process(command, asynchronous=False)
    return SuccessResponse(message="Replacement request updated")
