from bookstore.schemas.cart import (
    CartBook,
    CartItemAdd,
    CartItemResponse,
    CartItemUpdate,
    CartPageResponse,
)
from bookstore.schemas.coupon import (
    CouponAssignRequest,
    CouponAssignResponse,
    CouponCreate,
    CouponPageResponse,
    CouponRefreshResponse,
    CouponResponse,
    CouponStatusUpdate,
    CouponUpdate,
    UserCouponPageResponse,
    UserCouponResponse,
)
from bookstore.schemas.order import (
    OrderCancelResponse,
    OrderCreate,
    OrderDetailResponse,
    OrderItemResponse,
    OrderPageResponse,
    OrderPlacedResponse,
    OrderRedemptionResponse,
    OrderResponse,
)

__all__ = [
    "CartBook",
    "CartItemAdd",
    "CartItemResponse",
    "CartItemUpdate",
    "CartPageResponse",
    "CouponAssignRequest",
    "CouponAssignResponse",
    "CouponCreate",
    "CouponPageResponse",
    "CouponRefreshResponse",
    "CouponResponse",
    "CouponStatusUpdate",
    "CouponUpdate",
    "OrderCancelResponse",
    "OrderCreate",
    "OrderDetailResponse",
    "OrderItemResponse",
    "OrderPageResponse",
    "OrderPlacedResponse",
    "OrderRedemptionResponse",
    "OrderResponse",
    "UserCouponPageResponse",
    "UserCouponResponse",
]
