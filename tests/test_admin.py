"""Admin guard and admin panel tests."""
import pytest

from marketdesk import db
from marketdesk.models import Order, OrderItem, OrderStatus


ADMIN_ROUTES = [
    ("get", "/api/admin/users"),
    ("get", "/api/admin/orders"),
    ("get", "/api/admin/stats"),
    ("post", "/api/products"),
    ("post", "/api/posts/dispatch"),
]


@pytest.mark.parametrize("method,url", ADMIN_ROUTES)
def test_admin_route_without_token_is_401(client, method, url):
    response = getattr(client, method)(url, json={})
    assert response.status_code == 401
    assert response.get_json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.parametrize("method,url", ADMIN_ROUTES)
def test_admin_route_with_non_admin_token_is_403(client, user_headers, method, url):
    response = getattr(client, method)(url, json={}, headers=user_headers)
    assert response.status_code == 403
    assert response.get_json()["error"]["code"] == "FORBIDDEN"


def test_admin_route_with_garbage_token_is_401(client):
    response = client.get("/api/admin/users", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_admin_can_list_users(client, admin_headers, user):
    response = client.get("/api/admin/users", headers=admin_headers)
    assert response.status_code == 200
    emails = {u["email"] for u in response.get_json()}
    assert user.email in emails


def test_login_of_admin_carries_claim(client, admin):
    token = client.post(
        "/api/login", json={"email": admin.email, "password": "correct-horse"}
    ).get_json()["access_token"]
    response = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_promote_user(client, admin_headers, user):
    response = client.put(f"/api/admin/users/{user.id}", json={"is_admin": True}, headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["is_admin"] is True


def test_admin_cannot_demote_self(client, admin, admin_headers):
    response = client.put(f"/api/admin/users/{admin.id}", json={"is_admin": False}, headers=admin_headers)
    assert response.status_code == 400


def test_promote_requires_boolean(client, admin_headers, user):
    response = client.put(f"/api/admin/users/{user.id}", json={"is_admin": "yes"}, headers=admin_headers)
    assert response.status_code == 400


def test_promote_unknown_user_is_404(client, admin_headers):
    response = client.put("/api/admin/users/999", json={"is_admin": True}, headers=admin_headers)
    assert response.status_code == 404


@pytest.fixture
def paid_order(user, product):
    order = Order(user_id=user.id, status=OrderStatus.PAID, currency="usd")
    order.items.append(
        OrderItem(product_id=product.id, product_name=product.name, unit_price_cents=1400, quantity=2)
    )
    order.compute_total()
    db.session.add(order)
    db.session.commit()
    return order


def test_list_orders_filtered_by_status(client, admin_headers, paid_order):
    response = client.get("/api/admin/orders?status=paid", headers=admin_headers)
    assert response.status_code == 200
    assert [o["id"] for o in response.get_json()] == [paid_order.id]
    assert client.get("/api/admin/orders?status=pending", headers=admin_headers).get_json() == []


def test_list_orders_unknown_status(client, admin_headers):
    response = client.get("/api/admin/orders?status=lost", headers=admin_headers)
    assert response.status_code == 400


def test_ship_paid_order(client, admin_headers, paid_order):
    response = client.put(f"/api/admin/orders/{paid_order.id}", json={"status": "shipped"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["status"] == "shipped"


def test_cannot_mark_order_paid_by_hand(client, admin_headers, user):
    order = Order(user_id=user.id, status=OrderStatus.PENDING, total_cents=0)
    db.session.add(order)
    db.session.commit()
    response = client.put(f"/api/admin/orders/{order.id}", json={"status": "paid"}, headers=admin_headers)
    assert response.status_code == 400


def test_stats(client, admin_headers, paid_order, make_product):
    make_product(name="Sold out", stock=0)
    response = client.get("/api/admin/stats", headers=admin_headers)
    body = response.get_json()
    assert response.status_code == 200
    assert body["revenue_cents"] == 2800
    assert body["orders"] == {"paid": 1}
    assert body["products"] == 2
    assert body["out_of_stock"] == 1
    assert body["users"] == 2
