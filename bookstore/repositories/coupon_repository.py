"""Coupon repository for data access."""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from bookstore.models.coupon import Coupon, CouponStatus
from bookstore.schemas.coupon import CouponCreate


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, status: CouponStatus | None, q: str | None):  # type: ignore[no-untyped-def]
        query = self.db.query(Coupon)
        if status:
            query = query.filter(Coupon.status == status.value)
        if q:
            query = query.filter(Coupon.name.like(f"%{q}%"))
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        status: CouponStatus | None = None,
        q: str | None = None,
    ) -> list[Coupon]:
        """Get all coupons with optional filters."""
        query = self._filtered(status, q)
        return query.order_by(Coupon.created_at.desc(), Coupon.id.desc()).offset(skip).limit(limit).all()

    def count(self, status: CouponStatus | None = None, q: str | None = None) -> int:
        return self._filtered(status, q).with_entities(func.count(Coupon.id)).scalar() or 0

    def get_by_id(self, coupon_id: int) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def create(self, data: CouponCreate) -> Coupon:
        """Create a new coupon."""
        coupon = Coupon(
            name=data.name,
            discount_rate=data.discount_rate,
            valid_from=data.valid_from,
            valid_until=data.valid_until,
            status=data.status.value,
        )
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def save(self, coupon: Coupon) -> Coupon:
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def lock_due_for_activation(self, now: datetime) -> list[Coupon]:
        """Lock SCHEDULED coupons whose validity window contains ``now``."""
        return (
            self.db.query(Coupon)
            .filter(
                Coupon.status == CouponStatus.SCHEDULED.value,
                Coupon.valid_from <= now,
                Coupon.valid_until >= now,
            )
            .order_by(Coupon.id.asc())
            .with_for_update()
            .all()
        )

    def lock_due_for_ending(self, now: datetime) -> list[Coupon]:
        """Lock ACTIVE coupons whose validity window closed before ``now``."""
        return (
            self.db.query(Coupon)
            .filter(
                Coupon.status == CouponStatus.ACTIVE.value,
                Coupon.valid_until < now,
            )
            .order_by(Coupon.id.asc())
            .with_for_update()
            .all()
        )

    def bulk_set_status(self, coupon_ids: list[int], status: CouponStatus) -> int:
        """Set status on the given coupons without committing."""
        if not coupon_ids:
            return 0
        return (
            self.db.query(Coupon)
            .filter(Coupon.id.in_(coupon_ids))
            .update({Coupon.status: status.value}, synchronize_session=False)
        )
