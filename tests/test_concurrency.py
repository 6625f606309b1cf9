# tests/test_concurrency.py
import asyncio

import httpx

from storefront import database
from storefront.main import app


async def _order_task(client, product_id, email):
    return await client.post("/api/orders", json={
        "items": [{"product_id": product_id, "quantity": 1}],
        "guest_email": email,
        "shipping_address": "Caracas",
    })


async def _race(product_id):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        return await asyncio.gather(
            _order_task(ac, product_id, "u1@example.com"),
            _order_task(ac, product_id, "u2@example.com"),
        )


def test_concurrent_last_item():
    database.seed()
    database.PRODUCTS[3]["stock_quantity"] = 1

    results = asyncio.run(_race(3))
    statuses = sorted(r.status_code for r in results)
    # one order gets the last unit, the other is rejected
    assert statuses == [201, 409]
    assert database.PRODUCTS[3]["stock_quantity"] == 0
    assert len(database.ORDERS) == 1
