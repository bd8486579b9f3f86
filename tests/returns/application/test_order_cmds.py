"""Application tests for order placement and fulfillment advance via domain.process()."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from returns.order.fulfillment import AdvanceOrderStatus
from returns.order.order import Order
from returns.order.placement import PlaceOrder
from shared.orders import OrderStatus


def _items_json():
    return json.dumps(
        [
            {"product_ref": "prod-tee", "name": "Cotton Tee", "price": 499.0, "quantity": 2, "size": "M"},
            {"product_ref": "prod-cap", "name": "Denim Cap", "price": 299.0, "quantity": 1},
        ]
    )


def _place_order(**overrides):
    defaults = {
        "customer_id": "cust-001",
        "items": _items_json(),
        "payment": json.dumps({"method": "upi", "status": "paid"}),
        "shipping_fee": 40.0,
    }
    defaults.update(overrides)
    return current_domain.process(PlaceOrder(**defaults), asynchronous=False)


class TestPlaceOrderFlow:
    def test_returns_order_id(self):
        order_id = _place_order()
        assert order_id is not None

    def test_persists_order(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert str(order.id) == order_id

    def test_persists_items(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert len(order.items) == 2

    def test_persists_pricing(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.pricing.total == 1337.0

    def test_persists_payment(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.payment.status == "paid"

    def test_shipping_address_is_optional(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.shipping_address is None


class TestAdvanceOrderStatusFlow:
    def test_advances_persisted_order(self):
        order_id = _place_order()
        current_domain.process(AdvanceOrderStatus(order_id=order_id, status="shipped"), asynchronous=False)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.SHIPPED.value

    def test_delivery_is_timestamped(self):
        order_id = _place_order()
        current_domain.process(AdvanceOrderStatus(order_id=order_id, status="delivered"), asynchronous=False)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.delivered_at is not None

    def test_backwards_move_is_rejected(self):
        order_id = _place_order()
        current_domain.process(AdvanceOrderStatus(order_id=order_id, status="shipped"), asynchronous=False)
        with pytest.raises(ValidationError):
            current_domain.process(AdvanceOrderStatus(order_id=order_id, status="confirmed"), asynchronous=False)
