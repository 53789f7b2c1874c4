"""Cart API endpoints."""

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.orm import Session

from bookstore.core.auth import Principal, get_current_principal
from bookstore.core.database import get_db
from bookstore.core.errors import NotFoundError
from bookstore.core.pagination import PageParams, page_params
from bookstore.core.sorting import parse_sort
from bookstore.models.cart_item import CartItem
from bookstore.repositories.book_repository import BookRepository
from bookstore.repositories.cart_item_repository import CART_SORT_FIELDS, CartItemRepository
from bookstore.schemas.cart import (
    CartBook,
    CartItemAdd,
    CartItemResponse,
    CartItemUpdate,
    CartPageResponse,
)

router = APIRouter()


def _to_response(item: CartItem) -> CartItemResponse:
    book = item.book
    return CartItemResponse(
        cart_item_id=item.id,  # type: ignore[arg-type]
        book=CartBook(id=book.id, title=book.title, price=book.price),
        quantity=item.quantity,  # type: ignore[arg-type]
        total_price=item.quantity * book.price,  # type: ignore[operator]
        added_at=item.created_at,  # type: ignore[arg-type]
    )


@router.get(
    "/me",
    response_model=CartPageResponse,
    summary="Get my cart",
    responses={401: {"description": "Unauthorized"}},
)
async def get_my_cart(
    response: Response,
    pagination: PageParams = Depends(page_params),
    sort: str | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> CartPageResponse:
    """List the caller's active cart items."""
    repo = CartItemRepository(db)
    sort_spec = parse_sort(sort, CART_SORT_FIELDS)
    total = repo.count_active(principal.user_id)
    items = repo.get_page(
        principal.user_id, sort_spec, skip=pagination.offset, limit=pagination.size
    )
    response.headers["X-Total-Count"] = str(total)
    return CartPageResponse(
        content=[_to_response(i) for i in items],
        page=pagination.page,
        size=pagination.size,
        total_elements=total,
        total_pages=pagination.total_pages(total),
        sort=str(sort_spec),
    )


@router.post(
    "",
    response_model=CartItemResponse,
    status_code=201,
    summary="Add book to cart",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Unauthorized"},
        404: {"description": "Book not found"},
    },
)
async def add_to_cart(
    data: CartItemAdd,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> CartItemResponse:
    """Add a book to the cart; adding it again increases the quantity."""
    if not BookRepository(db).get_by_id(data.book_id):
        raise NotFoundError("Book not found")
    item = CartItemRepository(db).add(principal.user_id, data.book_id, data.quantity)
    return _to_response(item)


@router.put(
    "/{cart_item_id}",
    response_model=CartItemResponse,
    summary="Change cart item quantity",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Unauthorized"},
        404: {"description": "Cart item not found"},
    },
)
async def update_cart_item(
    data: CartItemUpdate,
    cart_item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> CartItemResponse:
    """Set the quantity of one of the caller's active cart items."""
    repo = CartItemRepository(db)
    item = repo.get_active_item(principal.user_id, cart_item_id)
    if not item:
        raise NotFoundError("Cart item not found")
    return _to_response(repo.set_quantity(item, data.quantity))


@router.delete(
    "/{cart_item_id}",
    status_code=204,
    summary="Remove cart item",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Cart item not found"},
    },
)
async def remove_cart_item(
    cart_item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> None:
    """Remove (deactivate) one of the caller's cart items."""
    repo = CartItemRepository(db)
    item = repo.get_active_item(principal.user_id, cart_item_id)
    if not item:
        raise NotFoundError("Cart item not found")
    repo.deactivate(item)


@router.delete(
    "",
    status_code=204,
    summary="Clear my cart",
    responses={401: {"description": "Unauthorized"}},
)
async def clear_cart(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> None:
    """Deactivate every item in the caller's cart."""
    CartItemRepository(db).deactivate_all(principal.user_id)
