"""Shared test fixtures for all test modules."""

import contextlib
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import bookstore.models  # noqa: F401  (registers all tables on Base.metadata)
from bookstore.core import database as db_module
from bookstore.core.auth import create_access_token
from bookstore.core.database import Base
from bookstore.models.book import Book
from bookstore.models.cart_item import CartItem
from bookstore.models.coupon import Coupon, CouponStatus
from bookstore.models.user import User, UserRole
from bookstore.models.user_coupon import UserCoupon, UserCouponStatus

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


# ---------------------------------------------------------------------------
# Factories shared by service and API tests
# ---------------------------------------------------------------------------


def make_user(db: Session, email: str, role: UserRole = UserRole.USER) -> User:
    user = User(email=email, name=email.split("@")[0], role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_book(db: Session, title: str, price: int) -> Book:
    book = Book(title=title, price=price)
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


def set_book_price(db: Session, book: Book, price: int) -> None:
    book.price = price
    db.commit()


def delete_book(db: Session, book: Book) -> None:
    book.is_deleted = True
    book.deleted_at = datetime.now(UTC)
    db.commit()


def add_cart_item(db: Session, user: User, book_id: int, quantity: int) -> CartItem:
    item = CartItem(user_id=user.id, book_id=book_id, quantity=quantity, is_active=True)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def make_coupon(
    db: Session,
    discount_rate: int = 10,
    status: CouponStatus = CouponStatus.ACTIVE,
    valid_from: datetime | None = None,
    valid_until: datetime | None = None,
    name: str | None = "Test coupon",
) -> Coupon:
    now = datetime.now(UTC)
    coupon = Coupon(
        name=name,
        discount_rate=discount_rate,
        valid_from=valid_from or now - timedelta(days=1),
        valid_until=valid_until or now + timedelta(days=1),
        status=status.value,
    )
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    return coupon


def grant_coupon(db: Session, user: User, coupon: Coupon) -> UserCoupon:
    grant = UserCoupon(
        user_id=user.id,
        coupon_id=coupon.id,
        status=UserCouponStatus.ISSUED.value,
        issued_at=datetime.now(UTC),
    )
    db.add(grant)
    db.commit()
    db.refresh(grant)
    return grant


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, UserRole(user.role))}"}
