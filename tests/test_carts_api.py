"""API tests for the shopping cart."""

import pytest
from fastapi.testclient import TestClient

from bookstore.core.database import get_db
from bookstore.main import app
from tests.conftest import auth_headers, make_book, make_user


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
def headers(db_session):
    return auth_headers(make_user(db_session, "cart@test.com"))


@pytest.fixture
def book(db_session):
    return make_book(db_session, "Refactoring", 4200)


@pytest.fixture
def cheap_book(db_session):
    return make_book(db_session, "Pamphlet", 300)


def _add(client, headers, book_id, quantity=1):
    return client.post("/carts", json={"book_id": book_id, "quantity": quantity}, headers=headers)


class TestCart:
    def test_add_item(self, client, headers, book):
        response = _add(client, headers, book.id, 2)

        assert response.status_code == 201
        data = response.json()
        assert data["book"] == {"id": book.id, "title": "Refactoring", "price": 4200}
        assert data["quantity"] == 2
        assert data["total_price"] == 8400

    def test_adding_again_accumulates(self, client, headers, book):
        _add(client, headers, book.id, 2)

        response = _add(client, headers, book.id, 3)

        assert response.json()["quantity"] == 5

    def test_add_missing_book(self, client, headers):
        response = _add(client, headers, 999)

        assert response.status_code == 404

    def test_add_zero_quantity(self, client, headers, book):
        response = _add(client, headers, book.id, 0)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"

    def test_list_my_cart(self, client, headers, book, cheap_book):
        _add(client, headers, book.id, 1)
        _add(client, headers, cheap_book.id, 4)

        response = client.get(
            "/carts/me", params={"sort": "book_price,ASC"}, headers=headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_elements"] == 2
        assert data["sort"] == "book_price,ASC"
        assert [i["book"]["title"] for i in data["content"]] == ["Pamphlet", "Refactoring"]

    def test_update_quantity(self, client, headers, book):
        item_id = _add(client, headers, book.id).json()["cart_item_id"]

        response = client.put(f"/carts/{item_id}", json={"quantity": 7}, headers=headers)

        assert response.status_code == 200
        assert response.json()["quantity"] == 7

    def test_cannot_touch_other_users_item(self, client, db_session, headers, book):
        item_id = _add(client, headers, book.id).json()["cart_item_id"]
        other = auth_headers(make_user(db_session, "other@test.com"))

        response = client.put(f"/carts/{item_id}", json={"quantity": 2}, headers=other)

        assert response.status_code == 404

    def test_remove_item(self, client, headers, book):
        item_id = _add(client, headers, book.id).json()["cart_item_id"]

        assert client.delete(f"/carts/{item_id}", headers=headers).status_code == 204
        assert client.get("/carts/me", headers=headers).json()["total_elements"] == 0

    def test_readding_removed_item_resets_quantity(self, client, headers, book):
        item_id = _add(client, headers, book.id, 5).json()["cart_item_id"]
        client.delete(f"/carts/{item_id}", headers=headers)

        response = _add(client, headers, book.id, 1)

        assert response.json()["cart_item_id"] == item_id
        assert response.json()["quantity"] == 1

    def test_clear_cart(self, client, headers, book, cheap_book):
        _add(client, headers, book.id)
        _add(client, headers, cheap_book.id)

        assert client.delete("/carts", headers=headers).status_code == 204
        assert client.get("/carts/me", headers=headers).json()["total_elements"] == 0

    def test_requires_auth(self, client):
        assert client.get("/carts/me").status_code == 401
