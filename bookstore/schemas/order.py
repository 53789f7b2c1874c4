"""Order schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OrderCreate(BaseModel):
    coupon_id: int | None = Field(default=None, gt=0)


class OrderPlacedResponse(BaseModel):
    """Summary returned by checkout."""

    orderId: int
    subtotalAmount: int
    couponDiscount: int
    totalAmount: int
    itemsCount: int
    couponId: int | None = None


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    book_id: int
    title_snapshot: str
    quantity: int
    unit_price: int
    line_total: int


class OrderRedemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    coupon_id: int
    amount_discounted: int


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    subtotal_amount: int
    coupon_discount: int
    total_amount: int
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderDetailResponse(OrderResponse):
    items: list[OrderItemResponse]
    redemption: OrderRedemptionResponse | None = None


class OrderPageResponse(BaseModel):
    content: list[OrderResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
    sort: str


class OrderCancelResponse(BaseModel):
    id: int
    status: str
