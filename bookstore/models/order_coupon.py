"""OrderCoupon model: audit record of a coupon redeemed by an order."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import relationship

from bookstore.core.database import Base


class OrderCoupon(Base):
    __tablename__ = "order_coupons"

    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True
    )
    coupon_id = Column(
        Integer, ForeignKey("coupons.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_coupon_id = Column(
        Integer, ForeignKey("user_coupons.id", ondelete="RESTRICT"), nullable=False, unique=True
    )
    amount_discounted = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="redemption")
