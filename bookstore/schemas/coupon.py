"""Coupon and UserCoupon schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bookstore.models.coupon import CouponStatus
from bookstore.models.shared import as_utc
from bookstore.models.user_coupon import UserCouponStatus


class CouponCreate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    discount_rate: int = Field(ge=1, le=100)
    valid_from: datetime
    valid_until: datetime
    status: CouponStatus = CouponStatus.SCHEDULED

    @field_validator("valid_from", "valid_until")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_window(self) -> "CouponCreate":
        if self.valid_from >= self.valid_until:
            raise ValueError("valid_from must be earlier than valid_until")
        return self


class CouponUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    discount_rate: int | None = Field(default=None, ge=1, le=100)
    valid_from: datetime | None = None
    valid_until: datetime | None = None

    @field_validator("valid_from", "valid_until")
    @classmethod
    def normalize_to_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class CouponStatusUpdate(BaseModel):
    status: CouponStatus


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    discount_rate: int
    valid_from: datetime
    valid_until: datetime
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CouponPageResponse(BaseModel):
    content: list[CouponResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class UserCouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    coupon_id: int
    status: str
    issued_at: datetime
    used_at: datetime | None = None
    coupon: CouponResponse


class UserCouponPageResponse(BaseModel):
    content: list[UserCouponResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class CouponRefreshResponse(BaseModel):
    """Outcome of a coupon status sweep."""

    activated: int
    ended: int
    activated_ids: list[int]
    ended_ids: list[int]
    executed_at: datetime


class CouponAssignRequest(BaseModel):
    user_ids: list[int] = Field(min_length=1)


class CouponAssignResponse(BaseModel):
    assigned: list[int]
    skipped: list[int]
    invalid: list[int]
