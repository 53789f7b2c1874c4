"""Order placement and cancellation.

``place_order`` converts a user's active cart into an order in a single
transaction: line items snapshot title and price, at most one coupon grant is
redeemed, and the cart lines that were ordered are deactivated. Any failure
rolls the whole transaction back.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from bookstore.core.errors import (
    BookNotFoundError,
    EmptyCartError,
    InvalidCouponError,
    InvalidStateError,
    InvariantViolationError,
    NotFoundError,
)
from bookstore.models.book import Book
from bookstore.models.cart_item import CartItem
from bookstore.models.order import Order, OrderStatus
from bookstore.models.order_item import OrderItem
from bookstore.models.shared import as_utc, utc_now
from bookstore.models.user_coupon import UserCoupon
from bookstore.repositories.book_repository import BookRepository
from bookstore.repositories.cart_item_repository import CartItemRepository
from bookstore.repositories.order_repository import OrderRepository
from bookstore.repositories.user_coupon_repository import UserCouponRepository

logger = logging.getLogger(__name__)


@dataclass
class LineSnapshot:
    """A cart line frozen at order time."""

    book_id: int
    title: str
    quantity: int
    unit_price: int

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_price


@dataclass
class PlacedOrder:
    """Result of a successful checkout."""

    order_id: int
    subtotal_amount: int
    coupon_discount: int
    total_amount: int
    item_count: int
    coupon_id: int | None


def snapshot_lines(cart_items: list[CartItem], books: dict[int, Book]) -> list[LineSnapshot]:
    """Freeze cart lines against the current catalog.

    Raises:
        InvariantViolationError: a price is negative or a quantity is not a
            positive integer. Cart validation should make this impossible.
    """
    lines = []
    for item in cart_items:
        book = books[item.book_id]  # type: ignore[index]
        quantity = item.quantity
        unit_price = book.price
        if not isinstance(quantity, int) or quantity <= 0:
            raise InvariantViolationError(f"Cart item {item.id} has quantity {quantity!r}")
        if not isinstance(unit_price, int) or unit_price < 0:
            raise InvariantViolationError(f"Book {book.id} has price {unit_price!r}")
        lines.append(
            LineSnapshot(
                book_id=book.id,  # type: ignore[arg-type]
                title=book.title,  # type: ignore[arg-type]
                quantity=quantity,
                unit_price=unit_price,
            )
        )
    return lines


def calculate_discount(subtotal_amount: int, discount_rate: int) -> int:
    """Percentage discount, floored to the minor currency unit."""
    if not 0 < discount_rate <= 100:
        raise InvariantViolationError(f"Discount rate {discount_rate!r} out of range")
    return subtotal_amount * discount_rate // 100


class OrderService:
    """Service owning the order transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.book_repo = BookRepository(db)
        self.cart_repo = CartItemRepository(db)
        self.order_repo = OrderRepository(db)
        self.user_coupon_repo = UserCouponRepository(db)

    def place_order(
        self,
        user_id: int,
        coupon_id: int | None = None,
        now: datetime | None = None,
    ) -> PlacedOrder:
        """Turn the user's active cart into an order, optionally redeeming a coupon.

        Args:
            user_id: The authenticated user placing the order.
            coupon_id: Coupon to redeem; ``None`` means no discount requested.
            now: Clock override for the coupon validity check.

        Returns:
            PlacedOrder summary of the committed order.

        Raises:
            EmptyCartError: The user has no active cart items.
            BookNotFoundError: A cart line references a missing or deleted book.
            InvalidCouponError: No redeemable grant for ``coupon_id``.
            InvariantViolationError: Corrupt price, quantity or discount data.
        """
        now = as_utc(now) if now else utc_now()
        try:
            placed = self._place_order(user_id, coupon_id, now)
            self.db.commit()
        except Exception as exc:
            self.db.rollback()
            logger.warning(
                "Order placement for user %s rolled back: %s",
                user_id,
                getattr(exc, "code", type(exc).__name__),
            )
            raise

        logger.info(
            "Order %s placed by user %s: subtotal=%d discount=%d total=%d",
            placed.order_id,
            user_id,
            placed.subtotal_amount,
            placed.coupon_discount,
            placed.total_amount,
        )
        return placed

    def _place_order(self, user_id: int, coupon_id: int | None, now: datetime) -> PlacedOrder:
        cart_items = self.cart_repo.get_active_for_update(user_id)
        if not cart_items:
            raise EmptyCartError()

        book_ids = {item.book_id for item in cart_items}
        books = self.book_repo.get_many(book_ids)  # type: ignore[arg-type]
        if len(books) < len(book_ids):
            raise BookNotFoundError(
                details={"book_ids": sorted(book_ids - books.keys())}  # type: ignore[operator]
            )

        lines = snapshot_lines(cart_items, books)
        subtotal_amount = sum(line.line_total for line in lines)

        grant: UserCoupon | None = None
        coupon_discount = 0
        if coupon_id is not None:
            grant = self.user_coupon_repo.find_redeemable_for_update(user_id, coupon_id, now)
            if grant is None:
                raise InvalidCouponError()
            coupon_discount = calculate_discount(subtotal_amount, grant.coupon.discount_rate)

        total_amount = subtotal_amount - coupon_discount
        if total_amount < 0:
            raise InvariantViolationError(
                f"Negative total {total_amount} (subtotal {subtotal_amount})"
            )

        order = self.order_repo.add_order(
            user_id=user_id,
            subtotal_amount=subtotal_amount,
            coupon_discount=coupon_discount,
            total_amount=total_amount,
            items=[
                OrderItem(
                    book_id=line.book_id,
                    title_snapshot=line.title,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in lines
            ],
        )

        if grant is not None:
            # Only the transaction that flips the grant records the redemption.
            if self.user_coupon_repo.mark_used(grant.id, now) != 1:  # type: ignore[arg-type]
                raise InvalidCouponError()
            self.order_repo.add_redemption(
                order_id=order.id,  # type: ignore[arg-type]
                coupon_id=grant.coupon_id,  # type: ignore[arg-type]
                user_coupon_id=grant.id,  # type: ignore[arg-type]
                amount_discounted=coupon_discount,
            )

        self.cart_repo.deactivate_items(user_id, [item.id for item in cart_items])  # type: ignore[misc]

        return PlacedOrder(
            order_id=order.id,  # type: ignore[arg-type]
            subtotal_amount=subtotal_amount,
            coupon_discount=coupon_discount,
            total_amount=total_amount,
            item_count=len(lines),
            coupon_id=grant.coupon_id if grant is not None else None,  # type: ignore[arg-type]
        )

    def cancel_order(self, user_id: int, order_id: int) -> Order:
        """Cancel one of the user's orders.

        Only CREATED orders can be cancelled. Cart lines are not restored and
        a redeemed coupon grant stays USED.
        """
        order = self.order_repo.get_for_user_for_update(order_id, user_id)
        if order is None:
            self.db.rollback()
            raise NotFoundError("Order not found")
        if order.status != OrderStatus.CREATED.value:
            self.db.rollback()
            raise InvalidStateError("Only CREATED orders can be cancelled")

        order.status = OrderStatus.CANCELLED.value  # type: ignore[assignment]
        order.updated_at = utc_now()  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(order)
        logger.info("Order %s cancelled by user %s", order_id, user_id)
        return order
