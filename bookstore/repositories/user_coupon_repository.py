"""UserCoupon (grant) repository for data access."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from bookstore.models.coupon import Coupon, CouponStatus
from bookstore.models.shared import utc_now
from bookstore.models.user_coupon import UserCoupon, UserCouponStatus


class UserCouponRepository:
    """Repository for UserCoupon model."""

    def __init__(self, db: Session):
        self.db = db

    def _for_user(self, user_id: int, status: UserCouponStatus | None):  # type: ignore[no-untyped-def]
        query = self.db.query(UserCoupon).filter(UserCoupon.user_id == user_id)
        if status:
            query = query.filter(UserCoupon.status == status.value)
        return query

    def get_by_user(
        self,
        user_id: int,
        skip: int = 0,
        limit: int = 20,
        status: UserCouponStatus | None = None,
    ) -> list[UserCoupon]:
        """Get a user's grants, newest first."""
        return (
            self._for_user(user_id, status)
            .order_by(UserCoupon.issued_at.desc(), UserCoupon.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_user(self, user_id: int, status: UserCouponStatus | None = None) -> int:
        return (
            self._for_user(user_id, status).with_entities(func.count(UserCoupon.id)).scalar()
            or 0
        )

    def granted_user_ids(self, coupon_id: int, user_ids: list[int]) -> set[int]:
        """Return which of ``user_ids`` already hold a grant for the coupon."""
        if not user_ids:
            return set()
        rows = (
            self.db.query(UserCoupon.user_id)
            .filter(UserCoupon.coupon_id == coupon_id, UserCoupon.user_id.in_(user_ids))
            .all()
        )
        return {row.user_id for row in rows}

    def create_many(self, coupon_id: int, user_ids: list[int]) -> list[UserCoupon]:
        """Insert ISSUED grants without committing."""
        now = utc_now()
        grants = [
            UserCoupon(
                user_id=user_id,
                coupon_id=coupon_id,
                status=UserCouponStatus.ISSUED.value,
                issued_at=now,
            )
            for user_id in user_ids
        ]
        self.db.add_all(grants)
        self.db.flush()
        return grants

    def find_redeemable_for_update(
        self, user_id: int, coupon_id: int, now: datetime
    ) -> UserCoupon | None:
        """Lock the user's ISSUED grant for an ACTIVE coupon valid at ``now``.

        The row lock serializes concurrent redemptions of the same grant; a
        second transaction waits, then no longer matches ``status = ISSUED``.
        """
        return (
            self.db.query(UserCoupon)
            .join(Coupon, Coupon.id == UserCoupon.coupon_id)
            .filter(
                UserCoupon.user_id == user_id,
                UserCoupon.coupon_id == coupon_id,
                UserCoupon.status == UserCouponStatus.ISSUED.value,
                Coupon.status == CouponStatus.ACTIVE.value,
                Coupon.valid_from <= now,
                Coupon.valid_until >= now,
            )
            .with_for_update(of=UserCoupon)
            .first()
        )

    def mark_used(self, user_coupon_id: int, used_at: datetime) -> int:
        """Flip an ISSUED grant to USED without committing.

        Returns the number of rows changed: 1 on success, 0 if the grant was
        no longer ISSUED.
        """
        return (
            self.db.query(UserCoupon)
            .filter(
                UserCoupon.id == user_coupon_id,
                UserCoupon.status == UserCouponStatus.ISSUED.value,
            )
            .update(
                {UserCoupon.status: UserCouponStatus.USED.value, UserCoupon.used_at: used_at},
                synchronize_session=False,
            )
        )
