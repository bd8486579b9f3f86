"""Order payload builders shared by the portal client tests.

Payloads mirror the JSON served by GET /orders/{id}.
"""

from copy import deepcopy

import pytest

T0 = "2026-03-01T10:00:00+00:00"
T1 = "2026-03-01T12:30:00+00:00"
T2 = "2026-03-02T09:15:00+00:00"

_BASE_ORDER = {
    "id": "O1",
    "customerId": "cust-001",
    "status": "returned",
    "items": [
        {"productRef": "prod-tee", "name": "Cotton Tee", "image": None, "price": 499.0, "quantity": 1, "size": "M"},
    ],
    "pricing": {"subtotal": 499.0, "shippingFee": 50.0, "taxAmount": 0.0, "discount": 0.0, "total": 549.0},
    "payment": {"method": "cod", "status": "paid"},
    "shippingAddress": {"name": "Asha", "line1": "12 MG Road", "city": "Pune"},
    "deliveredAt": "2026-02-27T10:00:00+00:00",
    "replacementRequest": {
        "status": "pending",
        "itemName": "Cotton Tee",
        "itemSize": "M",
        "quantity": 1,
        "issueDescription": "Stitching came apart at the seam",
        "replacementPreferences": {"size": "L", "color": None, "remarks": None},
        "replacementShipment": {"courier": None, "trackingId": None},
        "adminNotes": None,
        "requestedAt": T0,
        "used": True,
        "history": [{"status": "pending", "note": None, "actor": "customer", "at": T0}],
    },
}


def make_order_payload(**overrides) -> dict:
    payload = deepcopy(_BASE_ORDER)
    replacement = overrides.pop("replacement", None)
    payload.update(overrides)
    if replacement is not None:
        payload["replacementRequest"].update(replacement)
    return payload


@pytest.fixture()
def order_payload():
    return make_order_payload
