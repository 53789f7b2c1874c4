"""User repository for data access."""

from sqlalchemy.orm import Session

from bookstore.models.user import User, UserStatus


class UserRepository:
    """Repository for User model."""

    def __init__(self, db: Session):
        self.db = db

    def get_active_by_id(self, user_id: int) -> User | None:
        """Get a user that can authenticate: ACTIVE and not deleted."""
        return (
            self.db.query(User)
            .filter(
                User.id == user_id,
                User.status == UserStatus.ACTIVE.value,
                User.is_deleted.is_(False),
            )
            .first()
        )

    def existing_ids(self, user_ids: list[int]) -> set[int]:
        """Return the subset of ``user_ids`` that belong to non-deleted users."""
        if not user_ids:
            return set()
        rows = (
            self.db.query(User.id)
            .filter(User.id.in_(user_ids), User.is_deleted.is_(False))
            .all()
        )
        return {row.id for row in rows}
