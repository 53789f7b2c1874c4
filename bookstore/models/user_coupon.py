"""UserCoupon model: a coupon granted to one user, consumable once."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from bookstore.core.database import Base
from bookstore.models.shared import utc_now


class UserCouponStatus(str, Enum):
    ISSUED = "ISSUED"
    USED = "USED"


class UserCoupon(Base):
    __tablename__ = "user_coupons"
    __table_args__ = (
        UniqueConstraint("user_id", "coupon_id", name="uq_user_coupons_user_coupon"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    coupon_id = Column(
        Integer, ForeignKey("coupons.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status = Column(String(10), nullable=False, default=UserCouponStatus.ISSUED.value)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    used_at = Column(DateTime(timezone=True), nullable=True)

    coupon = relationship("Coupon", lazy="joined")
