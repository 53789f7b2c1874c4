"""Coupon API endpoints."""

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.orm import Session

from bookstore.core.auth import Principal, get_current_principal, require_admin
from bookstore.core.database import get_db
from bookstore.core.pagination import PageParams, page_params
from bookstore.models.coupon import Coupon, CouponStatus
from bookstore.models.user_coupon import UserCouponStatus
from bookstore.repositories.coupon_repository import CouponRepository
from bookstore.repositories.user_coupon_repository import UserCouponRepository
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
from bookstore.services.coupon_service import CouponService

router = APIRouter()


@router.post(
    "",
    response_model=CouponResponse,
    status_code=201,
    summary="Create coupon",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Unauthorized"},
        403: {"description": "Admin role required"},
    },
)
async def create_coupon(
    data: CouponCreate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> Coupon:
    """Create a new coupon."""
    return CouponService(db).create_coupon(data)


@router.get(
    "",
    response_model=CouponPageResponse,
    summary="List coupons",
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Admin role required"}},
)
async def list_coupons(
    response: Response,
    pagination: PageParams = Depends(page_params),
    status: CouponStatus | None = None,
    q: str | None = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> CouponPageResponse:
    """List coupons with optional status filter and name search."""
    repo = CouponRepository(db)
    total = repo.count(status=status, q=q)
    coupons = repo.get_all(skip=pagination.offset, limit=pagination.size, status=status, q=q)
    response.headers["X-Total-Count"] = str(total)
    return CouponPageResponse(
        content=[CouponResponse.model_validate(c) for c in coupons],
        page=pagination.page,
        size=pagination.size,
        total_elements=total,
        total_pages=pagination.total_pages(total),
    )


@router.get(
    "/me",
    response_model=UserCouponPageResponse,
    summary="List my coupons",
    responses={401: {"description": "Unauthorized"}},
)
async def list_my_coupons(
    response: Response,
    pagination: PageParams = Depends(page_params),
    status: UserCouponStatus | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> UserCouponPageResponse:
    """List coupon grants held by the caller."""
    repo = UserCouponRepository(db)
    total = repo.count_by_user(principal.user_id, status)
    grants = repo.get_by_user(
        principal.user_id, skip=pagination.offset, limit=pagination.size, status=status
    )
    response.headers["X-Total-Count"] = str(total)
    return UserCouponPageResponse(
        content=[UserCouponResponse.model_validate(g) for g in grants],
        page=pagination.page,
        size=pagination.size,
        total_elements=total,
        total_pages=pagination.total_pages(total),
    )


@router.patch(
    "/refresh",
    response_model=CouponRefreshResponse,
    summary="Refresh coupon statuses",
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Admin role required"}},
)
async def refresh_coupons(
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> CouponRefreshResponse:
    """Activate coupons whose window has opened and end those whose window closed."""
    result = CouponService(db).refresh_statuses()
    return CouponRefreshResponse(
        activated=len(result.activated_ids),
        ended=len(result.ended_ids),
        activated_ids=result.activated_ids,
        ended_ids=result.ended_ids,
        executed_at=result.executed_at,
    )


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Get coupon",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Admin role required"},
        404: {"description": "Coupon not found"},
    },
)
async def get_coupon(
    coupon_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> Coupon:
    """Get a coupon by ID."""
    return CouponService(db).get_coupon(coupon_id)


@router.put(
    "/{coupon_id}",
    response_model=CouponResponse,
    summary="Update coupon",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Unauthorized"},
        403: {"description": "Admin role required"},
        404: {"description": "Coupon not found"},
    },
)
async def update_coupon(
    data: CouponUpdate,
    coupon_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> Coupon:
    """Update a coupon's name, rate or validity window."""
    return CouponService(db).update_coupon(coupon_id, data)


@router.patch(
    "/{coupon_id}/status",
    response_model=CouponResponse,
    summary="Change coupon status",
    responses={
        400: {"description": "Transition not allowed"},
        401: {"description": "Unauthorized"},
        403: {"description": "Admin role required"},
        404: {"description": "Coupon not found"},
    },
)
async def change_coupon_status(
    data: CouponStatusUpdate,
    coupon_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> Coupon:
    """Set a coupon's status explicitly, e.g. to pause or resume it."""
    return CouponService(db).change_status(coupon_id, data.status)


@router.post(
    "/{coupon_id}",
    response_model=CouponAssignResponse,
    summary="Assign coupon to users",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Unauthorized"},
        403: {"description": "Admin role required"},
        404: {"description": "Coupon not found"},
        409: {"description": "Concurrent grant conflict"},
    },
)
async def assign_coupon(
    data: CouponAssignRequest,
    coupon_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> CouponAssignResponse:
    """Grant a coupon to many users; existing grants and unknown users are reported."""
    result = CouponService(db).assign_to_users(coupon_id, data.user_ids)
    return CouponAssignResponse(
        assigned=result.assigned,
        skipped=result.skipped,
        invalid=result.invalid,
    )
