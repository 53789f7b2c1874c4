"""Shared sorting utilities for repository queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query


@dataclass(frozen=True)
class SortSpec:
    """A resolved, allow-listed sort: API field name plus direction."""

    field: str
    direction: str

    def __str__(self) -> str:
        return f"{self.field},{self.direction}"


def parse_sort(
    sort: str | None,
    allowed_fields: dict[str, Any],
    default: str = "created_at,DESC",
) -> SortSpec:
    """Parse a ``"field,DIR"`` sort string against an allow list.

    Args:
        sort: Raw sort query value, e.g. ``"total_amount,ASC"``.
        allowed_fields: Mapping of API field name to the column to order by.
        default: Fallback sort, used when ``sort`` is empty or names an
            unknown field.

    Returns:
        The resolved SortSpec. Directions other than ``ASC`` become ``DESC``.
    """
    default_field, _, default_dir = default.partition(",")
    fallback = SortSpec(default_field, "ASC" if default_dir.upper() == "ASC" else "DESC")

    if not sort or not sort.strip():
        return fallback

    field, _, direction = sort.strip().partition(",")
    field = field.strip()
    if field not in allowed_fields:
        return fallback

    return SortSpec(field, "ASC" if direction.strip().upper() == "ASC" else "DESC")


def apply_sort(
    query: Query,  # type: ignore[type-arg]
    spec: SortSpec,
    allowed_fields: dict[str, Any],
) -> Query:  # type: ignore[type-arg]
    """Apply a resolved SortSpec to a SQLAlchemy query."""
    column = allowed_fields[spec.field]
    order_func = asc if spec.direction == "ASC" else desc
    return query.order_by(order_func(column))
