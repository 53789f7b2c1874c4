"""CartItem repository for data access."""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from bookstore.core.sorting import SortSpec, apply_sort
from bookstore.models.book import Book
from bookstore.models.cart_item import CartItem
from bookstore.models.shared import utc_now

CART_SORT_FIELDS = {
    "created_at": CartItem.created_at,
    "quantity": CartItem.quantity,
    "book_price": Book.price,
}


class CartItemRepository:
    """Repository for CartItem model."""

    def __init__(self, db: Session):
        self.db = db

    def get_page(
        self,
        user_id: int,
        sort: SortSpec,
        skip: int = 0,
        limit: int = 20,
    ) -> list[CartItem]:
        """Get a page of a user's active cart items."""
        query = (
            self.db.query(CartItem)
            .join(Book, Book.id == CartItem.book_id)
            .filter(CartItem.user_id == user_id, CartItem.is_active.is_(True))
        )
        query = apply_sort(query, sort, CART_SORT_FIELDS)
        return query.offset(skip).limit(limit).all()

    def count_active(self, user_id: int) -> int:
        return (
            self.db.query(func.count(CartItem.id))
            .filter(CartItem.user_id == user_id, CartItem.is_active.is_(True))
            .scalar()
            or 0
        )

    def get_active_for_update(self, user_id: int) -> list[CartItem]:
        """Lock and return all active cart items of a user.

        Must be called inside the caller's transaction; the lock is held
        until it commits or rolls back.
        """
        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.is_active.is_(True))
            .order_by(CartItem.id.asc())
            .with_for_update(of=CartItem)
            .all()
        )

    def get_active_item(self, user_id: int, cart_item_id: int) -> CartItem | None:
        return (
            self.db.query(CartItem)
            .filter(
                CartItem.id == cart_item_id,
                CartItem.user_id == user_id,
                CartItem.is_active.is_(True),
            )
            .first()
        )

    def add(self, user_id: int, book_id: int, quantity: int) -> CartItem:
        """Add a book, accumulating quantity on an existing (even inactive) row."""
        item = (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.book_id == book_id)
            .with_for_update(of=CartItem)
            .first()
        )
        if item is None:
            item = CartItem(user_id=user_id, book_id=book_id, quantity=quantity, is_active=True)
            self.db.add(item)
        elif item.is_active:
            item.quantity += quantity  # type: ignore[assignment]
        else:
            item.quantity = quantity  # type: ignore[assignment]
            item.is_active = True  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(item)
        return item

    def set_quantity(self, item: CartItem, quantity: int) -> CartItem:
        item.quantity = quantity  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(item)
        return item

    def deactivate(self, item: CartItem) -> None:
        item.is_active = False  # type: ignore[assignment]
        self.db.commit()

    def deactivate_all(self, user_id: int) -> int:
        """Deactivate every active item of a user and commit."""
        count = self.deactivate_items(user_id, None)
        self.db.commit()
        return count

    def deactivate_items(self, user_id: int, item_ids: list[int] | None) -> int:
        """Deactivate active items without committing.

        Restricted to ``item_ids`` when given, so rows added after the
        caller's read are left alone.
        """
        query = self.db.query(CartItem).filter(
            CartItem.user_id == user_id, CartItem.is_active.is_(True)
        )
        if item_ids is not None:
            query = query.filter(CartItem.id.in_(item_ids))
        return query.update(
            {CartItem.is_active: False, CartItem.updated_at: utc_now()},
            synchronize_session=False,
        )
