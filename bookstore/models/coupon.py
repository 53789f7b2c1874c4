"""Coupon model for percentage discounts with a validity window."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func

from bookstore.core.database import Base


class CouponStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ENDED = "ENDED"


class Coupon(Base):
    """Coupon definition.

    ``status`` caches whether ``now`` lies inside ``[valid_from, valid_until]``.
    It is advanced by the refresh sweep or by an admin, never inferred on read.
    """

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint(
            "discount_rate >= 1 AND discount_rate <= 100", name="ck_coupons_discount_rate"
        ),
        CheckConstraint("valid_from < valid_until", name="ck_coupons_valid_window"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=True)
    discount_rate = Column(Integer, nullable=False)
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=CouponStatus.SCHEDULED.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
