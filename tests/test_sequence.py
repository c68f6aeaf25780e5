import asyncio

import pytest

from storefront.services.sequence import format_identifier, next_identifier, next_value
from storefront.utils.database import AsyncSessionLocal


@pytest.mark.parametrize(
    "prefix, value, expected",
    [
        ("ORD", 1, "ORD-001"),
        ("ORD", 7, "ORD-007"),
        ("CUST", 42, "CUST-042"),
        ("ORD", 999, "ORD-999"),
        ("ORD", 1000, "ORD-1000"),
    ],
)
def test_format_identifier(prefix, value, expected):
    assert format_identifier(prefix, value) == expected


async def test_sequences_start_at_one_and_are_independent(database):
    async with AsyncSessionLocal() as db:
        assert await next_identifier(db, "order") == "ORD-001"
        assert await next_identifier(db, "order") == "ORD-002"
        assert await next_identifier(db, "customer") == "CUST-001"
        assert await next_identifier(db, "order") == "ORD-003"


async def test_concurrent_allocation_never_repeats(database):
    async def allocate():
        async with AsyncSessionLocal() as db:
            return await next_value(db, "order")

    values = await asyncio.gather(*(allocate() for _ in range(12)))

    assert sorted(values) == list(range(1, 13))


async def test_sequential_orders_have_gapless_identifiers(client, make_order):
    ids = []
    for _ in range(5):
        response = await client.post("/orders", json=make_order())
        assert response.status_code == 201
        ids.append(response.json()["orderId"])

    assert ids == ["ORD-001", "ORD-002", "ORD-003", "ORD-004", "ORD-005"]
