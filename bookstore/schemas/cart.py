"""Cart schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class CartItemAdd(BaseModel):
    book_id: int = Field(gt=0)
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(BaseModel):
    quantity: int = Field(gt=0)


class CartBook(BaseModel):
    id: int
    title: str
    price: int


class CartItemResponse(BaseModel):
    cart_item_id: int
    book: CartBook
    quantity: int
    total_price: int
    added_at: datetime | None = None


class CartPageResponse(BaseModel):
    content: list[CartItemResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
    sort: str
