"""API tests for order placement, listing, detail and cancellation."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from bookstore.core.auth import create_access_token
from bookstore.core.config import settings
from bookstore.core.database import get_db
from bookstore.core.errors import InvariantViolationError
from bookstore.main import app
from bookstore.models.cart_item import CartItem
from bookstore.models.order import Order
from bookstore.models.user import UserRole
from bookstore.models.user_coupon import UserCoupon, UserCouponStatus
from bookstore.services import order_service
from tests.conftest import (
    add_cart_item,
    auth_headers,
    delete_book,
    grant_coupon,
    make_book,
    make_coupon,
    make_user,
)


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def user(db_session):
    return make_user(db_session, "buyer@test.com")


@pytest.fixture
def headers(user):
    return auth_headers(user)


@pytest.fixture
def books(db_session):
    return make_book(db_session, "Book A", 10000), make_book(db_session, "Book B", 5000)


@pytest.fixture
def cart(db_session, user, books):
    book_a, book_b = books
    add_cart_item(db_session, user, book_a.id, 2)
    add_cart_item(db_session, user, book_b.id, 1)


def _place(client, headers, **body):
    return client.post("/orders", json=body or None, headers=headers)


class TestPlaceOrder:
    def test_without_coupon(self, client, headers, cart):
        response = _place(client, headers)

        assert response.status_code == 200
        data = response.json()
        assert data["subtotalAmount"] == 25000
        assert data["couponDiscount"] == 0
        assert data["totalAmount"] == 25000
        assert data["itemsCount"] == 2
        assert data["couponId"] is None
        assert data["orderId"] > 0

    def test_with_coupon(self, client, db_session, user, headers, cart):
        coupon = make_coupon(db_session, discount_rate=10)
        grant = grant_coupon(db_session, user, coupon)

        response = _place(client, headers, coupon_id=coupon.id)

        assert response.status_code == 200
        data = response.json()
        assert data["couponDiscount"] == 2500
        assert data["totalAmount"] == 22500
        assert data["couponId"] == coupon.id

        db_session.expire_all()
        assert db_session.get(UserCoupon, grant.id).status == UserCouponStatus.USED.value

    def test_cart_is_emptied(self, client, db_session, user, headers, cart):
        _place(client, headers)

        assert client.get("/carts/me", headers=headers).json()["total_elements"] == 0

        db_session.expire_all()
        active = (
            db_session.query(CartItem)
            .filter(CartItem.user_id == user.id, CartItem.is_active.is_(True))
            .count()
        )
        assert active == 0

    def test_empty_cart(self, client, headers):
        response = _place(client, headers)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "EMPTY_CART"
        assert body["status"] == 400
        assert body["path"] == "/orders"
        assert "timestamp" in body
        assert "message" in body

    def test_deleted_book(self, client, db_session, headers, books, cart):
        delete_book(db_session, books[1])

        response = _place(client, headers)

        assert response.status_code == 400
        assert response.json()["code"] == "BOOK_NOT_FOUND"
        assert response.json()["details"] == {"book_ids": [books[1].id]}

    def test_expired_coupon(self, client, db_session, user, headers, cart):
        now = datetime.now(UTC)
        coupon = make_coupon(
            db_session,
            valid_from=now - timedelta(days=3),
            valid_until=now - timedelta(days=1),
        )
        grant_coupon(db_session, user, coupon)

        response = _place(client, headers, coupon_id=coupon.id)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_COUPON"
        db_session.expire_all()
        assert db_session.query(Order).count() == 0

    def test_coupon_reuse_rejected(self, client, db_session, user, headers, cart):
        coupon = make_coupon(db_session)
        grant_coupon(db_session, user, coupon)
        assert _place(client, headers, coupon_id=coupon.id).status_code == 200

        db_session.query(CartItem).filter(CartItem.user_id == user.id).update(
            {CartItem.is_active: True}
        )
        db_session.commit()

        response = _place(client, headers, coupon_id=coupon.id)
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_COUPON"

    @pytest.mark.parametrize("coupon_id", [0, -1, "abc"])
    def test_invalid_coupon_id(self, client, headers, cart, coupon_id):
        response = client.post("/orders", json={"coupon_id": coupon_id}, headers=headers)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_FAILED"
        assert "coupon_id" in body["details"]

    def test_requires_auth(self, client, cart):
        response = client.post("/orders")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_cookie_token(self, client, user, cart):
        client.cookies.set(
            settings.ACCESS_COOKIE_NAME, create_access_token(user.id, UserRole.USER)
        )

        response = client.post("/orders")

        assert response.status_code == 200

    def test_garbage_token(self, client, cart):
        response = client.post("/orders", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_invariant_violation_hides_message(self, client, headers, cart, monkeypatch):
        def corrupt_snapshot(cart_items, books):
            raise InvariantViolationError("Book 7 has price -250")

        monkeypatch.setattr(order_service, "snapshot_lines", corrupt_snapshot)

        response = _place(client, headers)

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_SERVER_ERROR"
        assert body["message"] == "Internal server error"


class TestListOrders:
    def test_lists_own_orders(self, client, db_session, headers, cart):
        _place(client, headers)
        other = make_user(db_session, "other@test.com")

        response = client.get("/orders", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_elements"] == 1
        assert data["total_pages"] == 1
        assert data["page"] == 1
        assert data["sort"] == "created_at,DESC"
        assert response.headers["X-Total-Count"] == "1"
        assert data["content"][0]["total_amount"] == 25000

        other_response = client.get("/orders", headers=auth_headers(other))
        assert other_response.json()["total_elements"] == 0

    def test_sort_and_pagination(self, client, db_session, user, headers, books):
        for quantity in (1, 3, 2):
            add_cart_item(db_session, user, books[0].id, quantity)
            _place(client, headers)
            db_session.query(CartItem).filter(CartItem.user_id == user.id).delete()
            db_session.commit()

        response = client.get(
            "/orders", params={"sort": "total_amount,ASC", "size": 2}, headers=headers
        )

        data = response.json()
        assert data["sort"] == "total_amount,ASC"
        assert data["total_elements"] == 3
        assert data["total_pages"] == 2
        assert [o["total_amount"] for o in data["content"]] == [10000, 20000]

        page_two = client.get(
            "/orders",
            params={"sort": "total_amount,ASC", "size": 2, "page": 2},
            headers=headers,
        ).json()
        assert [o["total_amount"] for o in page_two["content"]] == [30000]

    def test_unknown_sort_field_falls_back(self, client, headers):
        response = client.get("/orders", params={"sort": "password,ASC"}, headers=headers)

        assert response.json()["sort"] == "created_at,DESC"

    def test_filter_by_status(self, client, headers, cart):
        order_id = _place(client, headers).json()["orderId"]
        client.delete(f"/orders/{order_id}", headers=headers)

        created = client.get("/orders", params={"status": "CREATED"}, headers=headers)
        cancelled = client.get("/orders", params={"status": "CANCELLED"}, headers=headers)

        assert created.json()["total_elements"] == 0
        assert cancelled.json()["total_elements"] == 1


class TestOrderDetail:
    def test_detail_with_items_and_redemption(self, client, db_session, user, headers, cart):
        coupon = make_coupon(db_session, discount_rate=20)
        grant_coupon(db_session, user, coupon)
        order_id = _place(client, headers, coupon_id=coupon.id).json()["orderId"]

        response = client.get(f"/orders/detail/{order_id}", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == order_id
        assert data["status"] == "CREATED"
        assert [i["title_snapshot"] for i in data["items"]] == ["Book A", "Book B"]
        assert data["redemption"] == {"coupon_id": coupon.id, "amount_discounted": 5000}

    def test_items_sorted(self, client, headers, cart):
        order_id = _place(client, headers).json()["orderId"]

        response = client.get(
            f"/orders/detail/{order_id}",
            params={"sort": "line_total,ASC"},
            headers=headers,
        )

        assert [i["line_total"] for i in response.json()["items"]] == [5000, 20000]

    def test_other_users_order_is_404(self, client, db_session, headers, cart):
        order_id = _place(client, headers).json()["orderId"]
        other = make_user(db_session, "other@test.com")

        response = client.get(f"/orders/detail/{order_id}", headers=auth_headers(other))

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_invalid_id(self, client, headers):
        response = client.get("/orders/detail/0", headers=headers)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"


class TestCancelOrder:
    def test_cancel(self, client, headers, cart):
        order_id = _place(client, headers).json()["orderId"]

        response = client.delete(f"/orders/{order_id}", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"id": order_id, "status": "CANCELLED"}

    def test_cancel_twice(self, client, headers, cart):
        order_id = _place(client, headers).json()["orderId"]
        client.delete(f"/orders/{order_id}", headers=headers)

        response = client.delete(f"/orders/{order_id}", headers=headers)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATE"

    def test_cancel_missing(self, client, headers):
        response = client.delete("/orders/999", headers=headers)

        assert response.status_code == 404
