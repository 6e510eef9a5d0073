import uuid

import pytest
from sqlalchemy import func, select

from app.models.order import Order


@pytest.fixture
async def cart(seed):
    """Two instruments and a student: 500 x2 + 50 GST, 300 x1 + 50 GST = 1400."""
    category = await seed.category("Strings")
    violin = await seed.instrument("Violin", price="500", gst="50", category_id=category.id)
    veena = await seed.instrument("Veena", price="300", gst="50", category_id=category.id)
    user = await seed.user()
    return {"violin": violin, "veena": veena, "user": user}


def order_payload(cart, total, **overrides):
    payload = {
        "customer": str(cart["user"].id),
        "customerModel": "User",
        "items": [
            {"instrumentId": str(cart["violin"].id), "quantity": 2, "price": 500},
            {"instrumentId": str(cart["veena"].id), "quantity": 1, "price": 300},
        ],
        "total": total,
        "address": {"line1": "12 MG Road", "city": "Bengaluru", "pincode": "560001"},
        "paymentMethod": "upi",
    }
    payload.update(overrides)
    return payload


async def count_orders(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(Order.id)))).scalar()


async def test_create_order_with_matching_total(client, cart):
    response = await client.post("/api/order", json=order_payload(cart, 1400))

    assert response.status_code == 201
    order = response.json()["data"]
    assert order["total"] == 1400
    assert order["status"] == "processing"
    assert order["order_number"].startswith("ORD-")
    assert [item["item_total"] for item in order["items"]] == [1050, 350]
    assert order["items"][0]["instrument_name"] == "Violin"
    assert order["items"][0]["category"] == "Strings"
    assert order["customer"]["name"] == "Asha"
    assert [h["status"] for h in order["status_history"]] == ["processing"]


async def test_total_mismatch_creates_nothing(client, cart, session_factory):
    response = await client.post("/api/order", json=order_payload(cart, 1399))

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Total amount mismatch"
    assert body["calculated_total"] == 1400
    assert body["provided_total"] == 1399
    assert await count_orders(session_factory) == 0


async def test_structural_errors_are_all_reported(client):
    response = await client.post("/api/order", json={"customerModel": "Admin", "items": []})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert "Customer is required" in body["errors"]
    assert "Order must contain at least one item" in body["errors"]
    assert "Total must be greater than 0" in body["errors"]
    assert "Address is required" in body["errors"]
    assert any(e.startswith("Customer model must be one of") for e in body["errors"])


async def test_item_errors_are_numbered(client, cart):
    payload = order_payload(cart, 1400, items=[
        {"instrumentId": str(cart["violin"].id), "quantity": 1},
        {"quantity": -1},
        {"instrumentId": "not-an-id", "price": -5},
    ])

    response = await client.post("/api/order", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid order items"
    assert body["errors"] == [
        "Item 2: instrumentId is required",
        "Item 2: quantity must be a positive integer",
        "Item 3: instrumentId is invalid",
        "Item 3: price must be a non-negative number",
    ]


async def test_unknown_customer(client, cart):
    response = await client.post(
        "/api/order",
        json=order_payload(cart, 1400, customer=str(uuid.uuid4())),
    )
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


async def test_teacher_can_order(client, cart, seed):
    teacher = await seed.teacher()
    response = await client.post(
        "/api/order",
        json=order_payload(cart, 1400, customer=str(teacher.id), customerModel="Teacher"),
    )
    assert response.status_code == 201
    assert response.json()["data"]["customer"]["model"] == "Teacher"


async def test_out_of_stock_instrument(client, cart, seed):
    flute = await seed.instrument("Flute", price="200", in_stock=False)
    payload = order_payload(cart, 200, items=[{"instrumentId": str(flute.id), "quantity": 1}])

    response = await client.post("/api/order", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Instrument is out of stock: Flute"


async def test_update_status_records_history_once(client, cart):
    created = (await client.post("/api/order", json=order_payload(cart, 1400))).json()["data"]
    url = f"/api/order/{created['id']}"

    shipped = await client.put(url, json={"status": "shipped", "trackingNumber": "TRK1", "updatedBy": "store"})
    assert shipped.status_code == 200
    data = shipped.json()["data"]
    assert data["status"] == "shipped"
    assert data["tracking_number"] == "TRK1"
    assert [h["status"] for h in data["status_history"]] == ["processing", "shipped"]
    assert data["status_history"][-1]["changed_by"] == "store"

    again = await client.put(url, json={"status": "shipped"})
    assert len(again.json()["data"]["status_history"]) == 2

    invalid = await client.put(url, json={"status": "lost"})
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid status"


async def test_cancel_is_a_soft_delete(client, cart):
    created = (await client.post("/api/order", json=order_payload(cart, 1400))).json()["data"]

    response = await client.delete(f"/api/order/{created['id']}", params={"cancelledBy": "admin"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "cancelled"
    assert data["is_active"] is False
    assert data["cancelled_by"] == "admin"

    listed = await client.get("/api/order")
    assert listed.json()["data"] == []
    with_inactive = await client.get("/api/order", params={"includeInactive": "true"})
    assert len(with_inactive.json()["data"]) == 1


async def test_list_orders_pagination_and_filters(client, cart):
    for _ in range(3):
        assert (await client.post("/api/order", json=order_payload(cart, 1400))).status_code == 201

    page = await client.get("/api/order", params={"page": 1, "limit": 2})
    body = page.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {
        "current_page": 1,
        "total_pages": 2,
        "total_items": 3,
        "limit": 2,
        "has_next_page": True,
        "has_prev_page": False,
    }

    by_customer = await client.get("/api/order", params={"customer": str(cart["user"].id), "customerModel": "User"})
    assert by_customer.json()["pagination"]["total_items"] == 3

    bad_status = await client.get("/api/order", params={"status": "lost"})
    assert bad_status.status_code == 400


async def test_get_missing_order(client):
    response = await client.get(f"/api/order/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["message"] == "Order not found"


async def test_order_stats(client, cart):
    await client.post("/api/order", json=order_payload(cart, 1400))
    created = (await client.post("/api/order", json=order_payload(cart, 1400))).json()["data"]
    await client.put(f"/api/order/{created['id']}", json={"status": "delivered"})

    response = await client.get("/api/order/stats/overview")

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total_orders"] == 2
    assert stats["total_revenue"] == 2800
    assert {s["status"]: s["count"] for s in stats["by_status"]} == {"processing": 1, "delivered": 1}
    assert len(stats["trend"]) == 12
    assert stats["trend"][-1]["count"] == 2
    assert stats["top_categories"][0] == {"category": "Strings", "quantity": 6, "revenue": 2800}
    assert stats["by_customer_type"] == [{"customer_model": "User", "count": 2, "total_amount": 2800}]

    daily = await client.get("/api/order/stats/overview", params={"groupBy": "day"})
    assert len(daily.json()["data"]["trend"]) == 30


async def test_reopening_a_cancelled_order_restores_it(client, cart):
    created = (await client.post("/api/order", json=order_payload(cart, 1400))).json()["data"]
    url = f"/api/order/{created['id']}"
    await client.delete(url, params={"cancelledBy": "admin"})

    reopened = await client.put(url, json={"status": "processing", "updatedBy": "store"})

    data = reopened.json()["data"]
    assert data["status"] == "processing"
    assert data["is_active"] is True
    assert data["cancelled_at"] is None
    assert data["cancelled_by"] is None
    assert [h["status"] for h in data["status_history"]] == ["processing", "cancelled", "processing"]
    listed = await client.get("/api/order")
    assert [o["id"] for o in listed.json()["data"]] == [created["id"]]


async def test_cancelling_through_update_hides_the_order(client, cart):
    created = (await client.post("/api/order", json=order_payload(cart, 1400))).json()["data"]

    response = await client.put(f"/api/order/{created['id']}", json={"status": "cancelled", "updatedBy": "store"})

    data = response.json()["data"]
    assert data["is_active"] is False
    assert data["cancelled_by"] == "store"
    assert (await client.get("/api/order")).json()["data"] == []


async def test_repeated_reads_return_identical_order(client, cart):
    created = (await client.post("/api/order", json=order_payload(cart, 1400))).json()["data"]
    url = f"/api/order/{created['id']}"

    first = await client.get(url)
    second = await client.get(url)

    assert first.status_code == 200
    assert first.json() == second.json()
    assert first.json()["data"]["items"] == created["items"]


async def test_wrongly_typed_item_fields_are_itemized(client, cart):
    payload = order_payload(cart, 1400, items=[
        {"instrumentId": str(cart["violin"].id), "quantity": "two"},
        {"quantity": 1},
        {"instrumentId": str(cart["veena"].id), "quantity": 1.5, "price": "free"},
    ])

    response = await client.post("/api/order", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid order items"
    assert body["errors"] == [
        "Item 1: quantity must be a positive integer",
        "Item 2: instrumentId is required",
        "Item 3: quantity must be a positive integer",
        "Item 3: price must be a non-negative number",
    ]


async def test_wrongly_typed_total_is_reported_with_other_errors(client, cart):
    payload = order_payload(cart, total="abc", address=None)

    response = await client.post("/api/order", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert body["errors"] == ["Total must be greater than 0", "Address is required"]


async def test_numeric_strings_are_accepted(client, cart):
    payload = order_payload(cart, "1400", items=[
        {"instrumentId": str(cart["violin"].id), "quantity": "2", "price": "500"},
        {"instrumentId": str(cart["veena"].id), "quantity": 1, "price": 300},
    ])

    response = await client.post("/api/order", json=payload)

    assert response.status_code == 201
    assert response.json()["data"]["total"] == 1400
