"""Book catalog model. Prices are integers in the minor currency unit."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, func

from bookstore.core.database import Base


class Book(Base):
    __tablename__ = "books"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_books_price_non_negative"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(150), nullable=False)
    price = Column(Integer, nullable=False)

    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
