"""Order API endpoints."""

from fastapi import APIRouter, Body, Depends, Path, Query, Response
from sqlalchemy.orm import Session

from bookstore.core.auth import Principal, get_current_principal
from bookstore.core.database import get_db
from bookstore.core.errors import NotFoundError
from bookstore.core.pagination import PageParams, page_params
from bookstore.core.sorting import parse_sort
from bookstore.models.order import OrderStatus
from bookstore.repositories.order_repository import (
    ORDER_ITEM_SORT_FIELDS,
    ORDER_SORT_FIELDS,
    OrderRepository,
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
from bookstore.services.order_service import OrderService

router = APIRouter()


@router.post(
    "",
    response_model=OrderPlacedResponse,
    summary="Place order from cart",
    responses={
        400: {"description": "Empty cart, missing book or invalid coupon"},
        401: {"description": "Unauthorized"},
    },
)
async def place_order(
    data: OrderCreate | None = Body(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> OrderPlacedResponse:
    """Convert the caller's active cart into an order."""
    coupon_id = data.coupon_id if data else None
    placed = OrderService(db).place_order(principal.user_id, coupon_id)
    return OrderPlacedResponse(
        orderId=placed.order_id,
        subtotalAmount=placed.subtotal_amount,
        couponDiscount=placed.coupon_discount,
        totalAmount=placed.total_amount,
        itemsCount=placed.item_count,
        couponId=placed.coupon_id,
    )


@router.get(
    "",
    response_model=OrderPageResponse,
    summary="List my orders",
    responses={401: {"description": "Unauthorized"}},
)
async def list_orders(
    response: Response,
    pagination: PageParams = Depends(page_params),
    sort: str | None = Query(default=None),
    status: OrderStatus | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> OrderPageResponse:
    """List the caller's orders, newest first by default."""
    repo = OrderRepository(db)
    sort_spec = parse_sort(sort, ORDER_SORT_FIELDS)
    total = repo.count(principal.user_id, status)
    orders = repo.get_page(
        principal.user_id,
        sort_spec,
        skip=pagination.offset,
        limit=pagination.size,
        status=status,
    )
    response.headers["X-Total-Count"] = str(total)
    return OrderPageResponse(
        content=[OrderResponse.model_validate(o) for o in orders],
        page=pagination.page,
        size=pagination.size,
        total_elements=total,
        total_pages=pagination.total_pages(total),
        sort=str(sort_spec),
    )


@router.get(
    "/detail/{order_id}",
    response_model=OrderDetailResponse,
    summary="Get my order",
    responses={
        400: {"description": "Invalid order id"},
        401: {"description": "Unauthorized"},
        404: {"description": "Order not found"},
    },
)
async def get_order(
    order_id: int = Path(gt=0),
    sort: str | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> OrderDetailResponse:
    """Get one of the caller's orders with its line items."""
    repo = OrderRepository(db)
    order = repo.get_for_user(order_id, principal.user_id)
    if not order:
        raise NotFoundError("Order not found")

    items = repo.get_items(order_id, parse_sort(sort, ORDER_ITEM_SORT_FIELDS, default="id,ASC"))
    return OrderDetailResponse(
        **OrderResponse.model_validate(order).model_dump(),
        items=[OrderItemResponse.model_validate(i) for i in items],
        redemption=(
            OrderRedemptionResponse.model_validate(order.redemption) if order.redemption else None
        ),
    )


@router.delete(
    "/{order_id}",
    response_model=OrderCancelResponse,
    summary="Cancel my order",
    responses={
        400: {"description": "Invalid order id or order is not CREATED"},
        401: {"description": "Unauthorized"},
        404: {"description": "Order not found"},
    },
)
async def cancel_order(
    order_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> OrderCancelResponse:
    """Cancel a CREATED order. The coupon grant and cart are not restored."""
    order = OrderService(db).cancel_order(principal.user_id, order_id)
    return OrderCancelResponse(id=order.id, status=order.status)  # type: ignore[arg-type]
