"""Coupon registry: lifecycle sweep, bulk grants and admin maintenance."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookstore.core.errors import (
    DuplicateResourceError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from bookstore.models.coupon import Coupon, CouponStatus
from bookstore.models.shared import as_utc, utc_now
from bookstore.repositories.coupon_repository import CouponRepository
from bookstore.repositories.user_coupon_repository import UserCouponRepository
from bookstore.repositories.user_repository import UserRepository
from bookstore.schemas.coupon import CouponCreate, CouponUpdate

logger = logging.getLogger(__name__)

REQUIRED_COUPON_FIELDS = ("discount_rate", "valid_from", "valid_until")


@dataclass
class RefreshResult:
    """Transitions applied by one status sweep."""

    executed_at: datetime
    activated_ids: list[int] = field(default_factory=list)
    ended_ids: list[int] = field(default_factory=list)


@dataclass
class AssignResult:
    """Partition of the requested user IDs after a bulk grant."""

    assigned: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    invalid: list[int] = field(default_factory=list)


class CouponService:
    """Service for coupon lifecycle and grant management."""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.user_coupon_repo = UserCouponRepository(db)
        self.user_repo = UserRepository(db)

    def get_coupon(self, coupon_id: int) -> Coupon:
        coupon = self.coupon_repo.get_by_id(coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    def refresh_statuses(self, now: datetime | None = None) -> RefreshResult:
        """Advance coupon statuses to match ``now`` in one transaction.

        SCHEDULED coupons whose window contains ``now`` become ACTIVE; ACTIVE
        coupons whose window has closed become ENDED. PAUSED coupons are left
        for an admin to move.
        """
        now = as_utc(now) if now else utc_now()
        result = RefreshResult(executed_at=now)
        try:
            to_activate = self.coupon_repo.lock_due_for_activation(now)
            result.activated_ids = [c.id for c in to_activate]  # type: ignore[misc]
            self.coupon_repo.bulk_set_status(result.activated_ids, CouponStatus.ACTIVE)

            to_end = self.coupon_repo.lock_due_for_ending(now)
            result.ended_ids = [c.id for c in to_end]  # type: ignore[misc]
            self.coupon_repo.bulk_set_status(result.ended_ids, CouponStatus.ENDED)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if result.activated_ids or result.ended_ids:
            logger.info(
                "Coupon sweep: %d activated, %d ended",
                len(result.activated_ids),
                len(result.ended_ids),
            )
        return result

    def assign_to_users(self, coupon_id: int, user_ids: list[int]) -> AssignResult:
        """Grant a coupon to many users, skipping unknown users and existing grants.

        Partial overlap is never an error; the result tells which IDs were
        assigned, skipped (already granted) or invalid (no such user).
        """
        self.get_coupon(coupon_id)
        requested = list(dict.fromkeys(user_ids))

        # A concurrent grant can win the unique constraint between our read
        # and insert; re-partition once against the committed state.
        for attempt in range(2):
            result = self._partition(coupon_id, requested)
            try:
                if result.assigned:
                    self.user_coupon_repo.create_many(coupon_id, result.assigned)
                self.db.commit()
                break
            except IntegrityError as exc:
                self.db.rollback()
                if attempt == 1:
                    raise DuplicateResourceError("Coupon grants changed concurrently") from exc

        logger.info(
            "Coupon %s assigned to %d users (%d skipped, %d invalid)",
            coupon_id,
            len(result.assigned),
            len(result.skipped),
            len(result.invalid),
        )
        return result

    def _partition(self, coupon_id: int, user_ids: list[int]) -> AssignResult:
        existing = self.user_repo.existing_ids(user_ids)
        granted = self.user_coupon_repo.granted_user_ids(coupon_id, user_ids)
        result = AssignResult()
        for user_id in user_ids:
            if user_id not in existing:
                result.invalid.append(user_id)
            elif user_id in granted:
                result.skipped.append(user_id)
            else:
                result.assigned.append(user_id)
        return result

    def create_coupon(self, data: CouponCreate) -> Coupon:
        coupon = self.coupon_repo.create(data)
        logger.info("Coupon %s created (%s%%, %s)", coupon.id, coupon.discount_rate, coupon.status)
        return coupon

    def update_coupon(self, coupon_id: int, data: CouponUpdate) -> Coupon:
        """Apply a partial update, keeping ``valid_from < valid_until``.

        Only fields present in the request change; ``name`` may be set to null.
        """
        coupon = self.get_coupon(coupon_id)
        update_data = data.model_dump(exclude_unset=True)

        cleared = [k for k in REQUIRED_COUPON_FIELDS if k in update_data and update_data[k] is None]
        if cleared:
            raise ValidationFailedError(
                "Required fields cannot be cleared",
                details={key: "must not be null" for key in cleared},
            )

        valid_from = update_data.get("valid_from", coupon.valid_from)
        valid_until = update_data.get("valid_until", coupon.valid_until)
        if as_utc(valid_from) >= as_utc(valid_until):  # type: ignore[arg-type]
            raise ValidationFailedError(
                "Invalid validity window",
                details={"valid_until": "valid_from must be earlier than valid_until"},
            )

        for key, value in update_data.items():
            setattr(coupon, key, value)
        return self.coupon_repo.save(coupon)

    def change_status(self, coupon_id: int, status: CouponStatus) -> Coupon:
        """Explicit admin transition. ENDED is terminal."""
        coupon = self.get_coupon(coupon_id)
        if coupon.status == CouponStatus.ENDED.value and status != CouponStatus.ENDED:
            raise InvalidStateError("Ended coupons cannot be reopened")
        coupon.status = status.value  # type: ignore[assignment]
        logger.info("Coupon %s status set to %s", coupon_id, status.value)
        return self.coupon_repo.save(coupon)
