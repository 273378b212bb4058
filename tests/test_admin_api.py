import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.models.category import Category
from app.models.order import Order
from app.models.product import Product


def make_order(session, status="Processing", total=100.0, user_id="user-1", created_at=None, **kwargs):
    order = Order(
        user_id=user_id,
        items=[
            {
                "product_id": "p1",
                "quantity": 2,
                "price": total / 2,
                "name": "Desk Lamp",
                "image_url": "/uploads/1-lamp.png",
                "color": "black",
            }
        ],
        shipping_info={
            "name": "Ada Customer",
            "address": "1 Main St",
            "contact": "555-0100",
            "city": "Springfield",
            "postal_code": "12345",
        },
        delivery_type="normal",
        gift_options={"wrapping": False, "message": ""},
        total_amount=total,
        status=status,
        created_at=created_at or datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc),
        **kwargs,
    )
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


def make_product(session, name, stock, category="lighting"):
    product = Product(
        name=name,
        price=10,
        category=category,
        description="desc",
        stock=stock,
        available_quantity=stock,
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


# ----- Order status -----


@pytest.mark.parametrize("new_status", ["Processing", "Shipped", "Delivered", "Cancelled"])
def test_update_order_status(client, session, new_status):
    order = make_order(session)

    response = client.put(
        f"/api/admin/orders/{order.id}/status", json={"status": new_status}
    )

    assert response.status_code == 200
    assert response.json()["order"] == {"id": str(order.id), "status": new_status}
    session.refresh(order)
    assert order.status == new_status


@pytest.mark.parametrize("bad_status", ["Pending", "shipped", "", "Refunded"])
def test_invalid_order_status_is_rejected_and_not_stored(client, session, bad_status):
    order = make_order(session, status="Shipped")

    response = client.put(
        f"/api/admin/orders/{order.id}/status", json={"status": bad_status}
    )

    assert response.status_code == 400
    assert "Invalid status" in response.json()["error"]
    session.refresh(order)
    assert order.status == "Shipped"


def test_order_status_requires_status_field(client, session):
    order = make_order(session)

    response = client.put(f"/api/admin/orders/{order.id}/status", json={})

    assert response.status_code == 400
    assert "error" in response.json()


def test_order_status_malformed_id_is_400(client):
    response = client.put("/api/admin/orders/not-an-id/status", json={"status": "Shipped"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid order id"}


def test_order_status_unknown_order_is_404(client):
    response = client.put(
        f"/api/admin/orders/{uuid.uuid4()}/status", json={"status": "Shipped"}
    )

    assert response.status_code == 404


# ----- Order listing -----


def test_list_orders_newest_first_with_filter(client, session):
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    older = make_order(session, created_at=base)
    newer = make_order(session, status="Delivered", created_at=base + timedelta(days=1))

    listed = client.get("/api/admin/orders").json()
    assert [o["id"] for o in listed] == [str(newer.id), str(older.id)]
    assert listed[0]["shipping_info"]["city"] == "Springfield"
    assert listed[0]["items"][0]["quantity"] == 2

    delivered = client.get("/api/admin/orders", params={"status": "Delivered"}).json()
    assert [o["id"] for o in delivered] == [str(newer.id)]


def test_list_orders_rejects_unknown_status_filter(client):
    assert client.get("/api/admin/orders", params={"status": "Pending"}).status_code == 400


def test_get_order(client, session):
    order = make_order(session, order_notes="Leave at the door")

    response = client.get(f"/api/admin/orders/{order.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["order_notes"] == "Leave at the door"
    assert body["gift_options"] == {"wrapping": False, "message": ""}


# ----- Stats -----


def test_order_stats(client, session):
    make_order(session, status="Processing", total=10)
    make_order(session, status="Processing", total=20)
    make_order(session, status="Delivered", total=30)
    make_order(session, status="Cancelled", total=1000)

    stats = client.get("/api/admin/orders-stats").json()

    assert stats == {
        "total": 4,
        "processing": 2,
        "shipped": 0,
        "delivered": 1,
        "cancelled": 1,
        "total_revenue": 60.0,
    }


def test_overview(client, session):
    make_order(session, total=50, user_id="a", created_at=datetime(2024, 4, 3, tzinfo=timezone.utc))
    make_order(session, total=150, user_id="b", created_at=datetime(2024, 5, 3, tzinfo=timezone.utc))
    make_order(session, total=100, user_id="b", created_at=datetime(2024, 5, 20, tzinfo=timezone.utc))
    make_order(session, status="Cancelled", total=999, user_id="c", created_at=datetime(2024, 5, 21, tzinfo=timezone.utc))
    low = make_product(session, "Almost gone", stock=2)
    make_product(session, "Plenty", stock=50)
    session.add(Category(name="lighting"))
    session.commit()

    overview = client.get("/api/admin/overview").json()

    assert overview["counts"] == {
        "orders": 4,
        "products": 2,
        "categories": 1,
        "customers": 3,
        "revenue": 300.0,
    }
    assert overview["low_stock_threshold"] == 5
    assert overview["low_stock"] == [{"id": str(low.id), "name": "Almost gone", "stock": 2}]
    assert overview["orders_by_status"] == {"Processing": 3, "Cancelled": 1}
    assert overview["monthly_sales"] == [
        {
            "month": "2024-04",
            "total_revenue": 50.0,
            "order_count": 1,
            "customer_count": 1,
            "avg_order_value": 50.0,
        },
        {
            "month": "2024-05",
            "total_revenue": 250.0,
            "order_count": 2,
            "customer_count": 1,
            "avg_order_value": 125.0,
        },
    ]
    recent = overview["recent_orders"]
    assert len(recent) == 4
    assert recent[0]["status"] == "Cancelled"
    assert recent[0]["customer_name"] == "Ada Customer"
    assert recent[0]["item_count"] == 1


def test_overview_threshold_override(client, session):
    make_product(session, "Mid", stock=8)

    overview = client.get("/api/admin/overview", params={"low_stock_threshold": 10}).json()

    assert [p["name"] for p in overview["low_stock"]] == ["Mid"]
    assert overview["low_stock_threshold"] == 10


def test_orphan_categories(client, session):
    session.add(Category(name="lighting"))
    session.commit()
    make_product(session, "Lamp", stock=3, category="lighting")
    make_product(session, "Desk", stock=3, category="desks")

    report = client.get("/api/admin/catalog/orphan-categories").json()

    assert report["orphaned"] == ["desks"]
    assert report["category_names"] == ["lighting"]
