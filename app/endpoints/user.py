from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import RoleEnum
from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.user import UserList, UserProfileUpdate, UserPublic, UserStats
from app.services.user import user_service
from app.utils import deps

router = APIRouter()


@router.get("/profile", response_model=APIResponse[UserPublic])
def read_profile(current_user: User = Depends(deps.get_current_user)):
    return APIResponse(message="User profile fetched successfully", data=user_service.get_profile(current_user))


@router.put("/profile", response_model=APIResponse[UserPublic])
def update_profile(
    *,
    db: Session = Depends(deps.get_transactional_db),
    profile_in: UserProfileUpdate,
    current_user: User = Depends(deps.get_current_user)
):
    profile = user_service.update_profile(db, profile_in=profile_in, current_user=current_user)
    return APIResponse(message="Profile updated successfully", data=profile)


@router.get("/stats", response_model=APIResponse[UserStats])
def get_user_stats(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    stats = user_service.get_user_stats(db, current_user=current_user)
    return APIResponse(message="User statistics retrieved successfully", data=stats)


@router.get("/search", response_model=APIResponse[UserList])
def search_users(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
    q: Optional[str] = Query(None, max_length=100),
    role: Optional[RoleEnum] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
):
    users = user_service.search_users(db, current_user=current_user, q=q, role=role, page=page, limit=limit)
    return APIResponse(message="Users retrieved successfully", data=users)
