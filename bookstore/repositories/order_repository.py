"""Order repository for data access."""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from bookstore.core.sorting import SortSpec, apply_sort
from bookstore.models.order import Order, OrderStatus
from bookstore.models.order_coupon import OrderCoupon
from bookstore.models.order_item import OrderItem

ORDER_SORT_FIELDS = {
    "created_at": Order.created_at,
    "total_amount": Order.total_amount,
}

ORDER_ITEM_SORT_FIELDS = {
    "id": OrderItem.id,
    "unit_price": OrderItem.unit_price,
    "quantity": OrderItem.quantity,
    "line_total": OrderItem.line_total,
}


class OrderRepository:
    """Repository for Order, OrderItem and OrderCoupon models."""

    def __init__(self, db: Session):
        self.db = db

    def _for_user(self, user_id: int, status: OrderStatus | None):  # type: ignore[no-untyped-def]
        query = self.db.query(Order).filter(Order.user_id == user_id)
        if status:
            query = query.filter(Order.status == status.value)
        return query

    def get_page(
        self,
        user_id: int,
        sort: SortSpec,
        skip: int = 0,
        limit: int = 20,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        query = apply_sort(self._for_user(user_id, status), sort, ORDER_SORT_FIELDS)
        return query.order_by(Order.id.desc()).offset(skip).limit(limit).all()

    def count(self, user_id: int, status: OrderStatus | None = None) -> int:
        return self._for_user(user_id, status).with_entities(func.count(Order.id)).scalar() or 0

    def get_for_user(self, order_id: int, user_id: int) -> Order | None:
        """Get an order owned by ``user_id``, with its redemption record."""
        return (
            self.db.query(Order)
            .options(selectinload(Order.redemption))
            .filter(Order.id == order_id, Order.user_id == user_id)
            .first()
        )

    def get_for_user_for_update(self, order_id: int, user_id: int) -> Order | None:
        return (
            self.db.query(Order)
            .filter(Order.id == order_id, Order.user_id == user_id)
            .with_for_update()
            .first()
        )

    def get_items(self, order_id: int, sort: SortSpec) -> list[OrderItem]:
        query = self.db.query(OrderItem).filter(OrderItem.order_id == order_id)
        return apply_sort(query, sort, ORDER_ITEM_SORT_FIELDS).all()

    def add_order(
        self,
        user_id: int,
        subtotal_amount: int,
        coupon_discount: int,
        total_amount: int,
        items: list[OrderItem],
    ) -> Order:
        """Stage an order with its items and flush to obtain its ID."""
        order = Order(
            user_id=user_id,
            subtotal_amount=subtotal_amount,
            coupon_discount=coupon_discount,
            total_amount=total_amount,
            status=OrderStatus.CREATED.value,
        )
        order.items = items
        self.db.add(order)
        self.db.flush()
        return order

    def add_redemption(
        self,
        order_id: int,
        coupon_id: int,
        user_coupon_id: int,
        amount_discounted: int,
    ) -> OrderCoupon:
        redemption = OrderCoupon(
            order_id=order_id,
            coupon_id=coupon_id,
            user_coupon_id=user_coupon_id,
            amount_discounted=amount_discounted,
        )
        self.db.add(redemption)
        self.db.flush()
        return redemption
