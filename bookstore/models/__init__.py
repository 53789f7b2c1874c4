from bookstore.models.book import Book
from bookstore.models.cart_item import CartItem
from bookstore.models.coupon import Coupon, CouponStatus
from bookstore.models.order import Order, OrderStatus
from bookstore.models.order_coupon import OrderCoupon
from bookstore.models.order_item import OrderItem
from bookstore.models.user import User, UserRole, UserStatus
from bookstore.models.user_coupon import UserCoupon, UserCouponStatus

__all__ = [
    "Book",
    "CartItem",
    "Coupon",
    "CouponStatus",
    "Order",
    "OrderCoupon",
    "OrderItem",
    "OrderStatus",
    "User",
    "UserCoupon",
    "UserCouponStatus",
    "UserRole",
    "UserStatus",
]
