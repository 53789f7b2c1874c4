"""Book catalog repository (read side used by carts and checkout)."""

from sqlalchemy.orm import Session

from bookstore.models.book import Book


class BookRepository:
    """Repository for Book model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, book_id: int) -> Book | None:
        """Get a non-deleted book by ID."""
        return (
            self.db.query(Book)
            .filter(Book.id == book_id, Book.is_deleted.is_(False))
            .first()
        )

    def get_many(self, book_ids: set[int]) -> dict[int, Book]:
        """Fetch non-deleted books by ID set, keyed by ID.

        Missing or deleted books are simply absent from the result.
        """
        if not book_ids:
            return {}
        books = (
            self.db.query(Book)
            .filter(Book.id.in_(book_ids), Book.is_deleted.is_(False))
            .all()
        )
        return {book.id: book for book in books}  # type: ignore[misc]
