import pytest

from storefront.schemas.order import OrderStatus
from storefront.services.status import can_transition


@pytest.fixture
async def order_id(client, make_order):
    response = await client.post("/orders", json=make_order())
    return response.json()["orderId"]


@pytest.mark.parametrize(
    "current, new, allowed",
    [
        (OrderStatus.PENDING, OrderStatus.PROCESSING, True),
        (OrderStatus.PROCESSING, OrderStatus.SHIPPED, True),
        (OrderStatus.SHIPPED, OrderStatus.DELIVERED, True),
        (OrderStatus.SHIPPED, OrderStatus.CANCELLED, True),
        (OrderStatus.PENDING, OrderStatus.DELIVERED, False),
        (OrderStatus.DELIVERED, OrderStatus.PENDING, False),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.PROCESSING, False),
        (OrderStatus.PROCESSING, OrderStatus.PROCESSING, True),
    ],
)
def test_transition_table(current, new, allowed):
    assert can_transition(current, new) is allowed


async def test_forward_progression(client, admin_headers, order_id):
    for status in ("Processing", "Shipped", "Delivered"):
        response = await client.put(f"/orders/{order_id}/status", json={"status": status}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == status


async def test_payment_status_updated_when_supplied(client, admin_headers, order_id):
    response = await client.put(
        f"/orders/{order_id}/status",
        json={"status": "Pending", "paymentStatus": "Refunded"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "Pending"
    assert response.json()["paymentStatus"] == "Refunded"


async def test_unknown_status_leaves_order_unchanged(client, admin_headers, order_id):
    response = await client.put(f"/orders/{order_id}/status", json={"status": "Teleported"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["kind"] == "ValidationError"
    stored = (await client.get(f"/orders/{order_id}", headers=admin_headers)).json()
    assert stored["status"] == "Pending"


async def test_backward_transition_is_rejected(client, admin_headers, order_id):
    for status in ("Processing", "Shipped", "Delivered"):
        await client.put(f"/orders/{order_id}/status", json={"status": status}, headers=admin_headers)

    response = await client.put(
        f"/orders/{order_id}/status",
        json={"status": "Pending", "paymentStatus": "Failed"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["details"]["from"] == "Delivered"
    stored = (await client.get(f"/orders/{order_id}", headers=admin_headers)).json()
    assert stored["status"] == "Delivered"
    assert stored["paymentStatus"] == "Pending"


async def test_missing_order(client, admin_headers):
    response = await client.put("/orders/ORD-999/status", json={"status": "Shipped"}, headers=admin_headers)

    assert response.status_code == 404


async def test_status_update_requires_admin(client, user_headers, order_id):
    response = await client.put(f"/orders/{order_id}/status", json={"status": "Shipped"}, headers=user_headers)

    assert response.status_code == 403
