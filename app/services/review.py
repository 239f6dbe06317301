import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.constants import ReviewSortEnum
from app.core.exceptions import Forbidden, NotFound, ValidationError
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.review import review as crud_review
from app.models.review import Review as ReviewModel
from app.models.user import User
from app.schemas.pagination import Pagination
from app.schemas.review import (
    PlatformRatingStats,
    RatingStats,
    Review,
    ReviewCreate,
    ReviewList,
    ReviewUpdate,
)
from app.services.course import course_service
from app.services.course_aggregate import course_aggregate_service
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


class ReviewService:

    def _get_course_review_or_404(self, db: Session, course_id: UUID, review_id: UUID) -> ReviewModel:
        review = crud_review.get(db, id=review_id)
        if not review or review.course_id != course_id:
            raise NotFound("Review not found.")
        return review

    def add_review(self, db: Session, course_id: UUID, review_in: ReviewCreate, current_user: User) -> Review:
        course = course_service.get_visible_course(db, course_id, current_user)

        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=current_user.id, course_id=course.id)
        if enrollment is None or not enrollment.grants_access:
            raise Forbidden("You must be enrolled in this course to review it.")

        new_review = course_aggregate_service.add_review(
            db, course=course, user=current_user, rating=review_in.rating, comment=review_in.comment
        )
        logger.info(f"Review {new_review.id} added to course {course.id}")
        return Review.model_validate(new_review)

    def update_review(
        self, db: Session, course_id: UUID, review_id: UUID, review_in: ReviewUpdate, current_user: User
    ) -> Review:
        course = course_service.get_course_or_404(db, course_id)
        review = self._get_course_review_or_404(db, course.id, review_id)
        permission_helper.require_review_owner(current_user, review)

        update_data = review_in.model_dump(exclude_unset=True)
        if "rating" in update_data and update_data["rating"] is None:
            raise ValidationError("Rating cannot be empty.")

        updated = course_aggregate_service.update_review(db, course=course, review=review, review_in=update_data)
        return Review.model_validate(updated)

    def delete_review(self, db: Session, course_id: UUID, review_id: UUID, current_user: User) -> Review:
        course = course_service.get_course_or_404(db, course_id)
        review = self._get_course_review_or_404(db, course.id, review_id)
        permission_helper.require_review_owner(current_user, review, allow_admin=True)

        removed = course_aggregate_service.remove_review(db, course=course, review=review)
        logger.info(f"Review {review.id} removed from course {course.id} by {current_user.id}")
        return Review.model_validate(removed)

    def get_course_reviews(
        self, db: Session, course_id: UUID, sort: ReviewSortEnum, page: int, limit: int, current_user: Optional[User]
    ) -> ReviewList:
        course = course_service.get_visible_course(db, course_id, current_user)
        reviews, total = crud_review.get_by_course(
            db, course_id=course.id, sort=sort, skip=(page - 1) * limit, limit=limit
        )
        return ReviewList(
            reviews=[Review.model_validate(r) for r in reviews],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    def get_my_review(self, db: Session, course_id: UUID, current_user: User) -> Optional[Review]:
        course = course_service.get_course_or_404(db, course_id)
        review = crud_review.get_by_user_and_course(db, user_id=current_user.id, course_id=course.id)
        return Review.model_validate(review) if review else None

    def search_reviews(
        self,
        db: Session,
        *,
        course_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
        min_rating: Optional[int] = None,
        max_rating: Optional[int] = None,
        sort: ReviewSortEnum = ReviewSortEnum.NEWEST,
        page: int = 1,
        limit: int = 10,
    ) -> ReviewList:
        if min_rating is not None and max_rating is not None and min_rating > max_rating:
            raise ValidationError("min_rating cannot be greater than max_rating")
        reviews, total = crud_review.search(
            db,
            course_id=course_id,
            user_id=user_id,
            min_rating=min_rating,
            max_rating=max_rating,
            sort=sort,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return ReviewList(
            reviews=[Review.model_validate(r) for r in reviews],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    def get_course_rating_stats(self, db: Session, course_id: UUID, current_user: Optional[User] = None) -> RatingStats:
        course = course_service.get_visible_course(db, course_id, current_user)
        return RatingStats(**crud_review.get_course_rating_stats(db, course_id=course.id))

    def get_platform_rating_stats(self, db: Session, current_user: User) -> PlatformRatingStats:
        permission_helper.require_admin(current_user)
        return PlatformRatingStats(**crud_review.get_platform_rating_stats(db))


review_service = ReviewService()
