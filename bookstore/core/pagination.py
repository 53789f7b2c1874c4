"""Page/size pagination shared by list endpoints."""

from dataclasses import dataclass
from math import ceil

from fastapi import Query

from bookstore.core.config import settings


@dataclass(frozen=True)
class PageParams:
    page: int
    size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    def total_pages(self, total: int) -> int:
        return ceil(total / self.size) if total else 0


def page_params(
    page: int = Query(default=1, ge=1),
    size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1),
) -> PageParams:
    """FastAPI dependency: clamp ``size`` to the configured maximum."""
    return PageParams(page=page, size=min(size, settings.MAX_PAGE_SIZE))
