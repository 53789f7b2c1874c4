"""Order model. Amounts are integers in the minor currency unit."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from bookstore.core.database import Base


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    CANCELLED = "CANCELLED"


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("coupon_discount >= 0", name="ck_orders_discount_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    subtotal_amount = Column(Integer, nullable=False)
    coupon_discount = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.CREATED.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    redemption = relationship(
        "OrderCoupon",
        back_populates="order",
        cascade="all, delete-orphan",
        uselist=False,
    )
