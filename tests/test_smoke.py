"""Smoke tests: the app boots and the uniform error envelope is wired."""

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from bookstore.core.errors import (
    bookstore_error_handler,
    unhandled_exception_handler,
)
from bookstore.main import app


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_openapi_lists_routes(client):
    paths = client.get("/openapi.json").json()["paths"]

    assert "/orders" in paths
    assert "/orders/detail/{order_id}" in paths
    assert "/coupons/refresh" in paths
    assert "/carts/me" in paths


def test_unknown_route_uses_envelope(client):
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "NOT_FOUND"
    assert body["path"] == "/does-not-exist"


def test_unexpected_error_is_generic_500():
    broken = FastAPI()
    broken.add_exception_handler(Exception, unhandled_exception_handler)

    @broken.get("/boom")
    async def boom() -> None:
        raise RuntimeError("db password is hunter2")

    response = TestClient(broken, raise_server_exceptions=False).get("/boom")

    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error"
    assert "hunter2" not in response.text


def test_bookstore_handler_is_registered():
    assert app.exception_handlers[Exception] is unhandled_exception_handler
    assert bookstore_error_handler in app.exception_handlers.values()
