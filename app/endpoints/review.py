from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import MAX_RATING, MIN_RATING, ReviewSortEnum
from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.review import PlatformRatingStats, RatingStats, Review, ReviewCreate, ReviewList, ReviewUpdate
from app.services.review import review_service
from app.utils import deps

# Mounted under /courses
router = APIRouter()

# Mounted under /reviews
reviews_router = APIRouter()


@router.get("/{course_id}/reviews", response_model=APIResponse[ReviewList])
def get_course_reviews(
    course_id: UUID,
    db: Session = Depends(deps.get_db),
    current_user: Optional[User] = Depends(deps.get_optional_user),
    sort: ReviewSortEnum = ReviewSortEnum.NEWEST,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.MAX_PAGE_SIZE)
):
    reviews = review_service.get_course_reviews(
        db, course_id=course_id, sort=sort, page=page, limit=limit, current_user=current_user
    )
    return APIResponse(message="Reviews retrieved successfully", data=reviews)


@router.post("/{course_id}/reviews", response_model=APIResponse[Review], status_code=status.HTTP_201_CREATED)
def add_review(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    review_in: ReviewCreate,
    current_user: User = Depends(deps.get_current_user)
):
    review = review_service.add_review(db, course_id=course_id, review_in=review_in, current_user=current_user)
    return APIResponse(message="Review added successfully", data=review)


@router.put("/{course_id}/reviews/{review_id}", response_model=APIResponse[Review])
def update_review(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    review_id: UUID,
    review_in: ReviewUpdate,
    current_user: User = Depends(deps.get_current_user)
):
    review = review_service.update_review(
        db, course_id=course_id, review_id=review_id, review_in=review_in, current_user=current_user
    )
    return APIResponse(message="Review updated successfully", data=review)


@router.delete("/{course_id}/reviews/{review_id}", response_model=APIResponse[Review])
def delete_review(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    review_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    review = review_service.delete_review(db, course_id=course_id, review_id=review_id, current_user=current_user)
    return APIResponse(message="Review deleted successfully", data=review)


@router.get("/{course_id}/my-review", response_model=APIResponse[Optional[Review]])
def get_my_review(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    review = review_service.get_my_review(db, course_id=course_id, current_user=current_user)
    message = "Review retrieved successfully" if review else "You have not reviewed this course"
    return APIResponse(message=message, data=review)


@router.get("/{course_id}/rating-stats", response_model=APIResponse[RatingStats])
def get_course_rating_stats(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    stats = review_service.get_course_rating_stats(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Rating statistics retrieved successfully", data=stats)


@reviews_router.get("/", response_model=APIResponse[ReviewList])
def search_reviews(
    db: Session = Depends(deps.get_db),
    course_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
    min_rating: Optional[int] = Query(None, ge=MIN_RATING, le=MAX_RATING),
    max_rating: Optional[int] = Query(None, ge=MIN_RATING, le=MAX_RATING),
    sort: ReviewSortEnum = ReviewSortEnum.NEWEST,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.MAX_PAGE_SIZE)
):
    reviews = review_service.search_reviews(
        db,
        course_id=course_id,
        user_id=user_id,
        min_rating=min_rating,
        max_rating=max_rating,
        sort=sort,
        page=page,
        limit=limit,
    )
    return APIResponse(message="Reviews retrieved successfully", data=reviews)


@reviews_router.get("/stats", response_model=APIResponse[RatingStats])
def get_rating_stats(
    db: Session = Depends(deps.get_db),
    course_id: UUID = Query(...),
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    stats = review_service.get_course_rating_stats(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Rating statistics retrieved successfully", data=stats)


@reviews_router.get("/platform-stats", response_model=APIResponse[PlatformRatingStats])
def get_platform_rating_stats(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    stats = review_service.get_platform_rating_stats(db, current_user=current_user)
    return APIResponse(message="Platform rating statistics retrieved successfully", data=stats)


@reviews_router.get("/course/{course_id}", response_model=APIResponse[ReviewList])
def get_reviews_for_course(
    course_id: UUID,
    db: Session = Depends(deps.get_db),
    current_user: Optional[User] = Depends(deps.get_optional_user),
    sort: ReviewSortEnum = ReviewSortEnum.NEWEST,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.MAX_PAGE_SIZE)
):
    reviews = review_service.get_course_reviews(
        db, course_id=course_id, sort=sort, page=page, limit=limit, current_user=current_user
    )
    return APIResponse(message="Reviews retrieved successfully", data=reviews)


@reviews_router.get("/user/{user_id}", response_model=APIResponse[ReviewList])
def get_user_reviews(
    user_id: UUID,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.MAX_PAGE_SIZE)
):
    reviews = review_service.search_reviews(db, user_id=user_id, page=page, limit=limit)
    return APIResponse(message="User reviews retrieved successfully", data=reviews)
