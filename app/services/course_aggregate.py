"""Keeps the denormalized fields on a course row in step with its child tables.

``rating``, ``total_ratings``, ``total_enrollments`` and the embedded
``lessons``/``reviews`` snapshots are derived data. Every write that touches a
review, lesson or enrollment goes through this service inside the caller's
transaction so the row and the aggregate commit (or roll back) together.

Two concurrent review writes on the same course may each recompute the
rating before seeing the other's row; the next write on that course
recomputes from scratch and corrects it.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateReview
from app.crud.course import course as crud_course
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.crud.review import review as crud_review
from app.models.course import Course
from app.models.lesson import Lesson
from app.models.review import Review
from app.models.user import User
from app.schemas.review import ReviewUpdate

logger = logging.getLogger(__name__)


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def lesson_snapshot(lesson: Lesson) -> Dict[str, Any]:
    return {
        "id": str(lesson.id),
        "title": lesson.title,
        "lesson_type": lesson.lesson_type.value,
        "duration": lesson.duration,
        "order": lesson.order,
        "is_free": lesson.is_free,
        "is_published": lesson.is_published,
    }


def review_snapshot(review: Review) -> Dict[str, Any]:
    return {
        "id": str(review.id),
        "user_id": str(review.user_id),
        "user_name": review.user.name if review.user else None,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": _isoformat(review.created_at),
    }


class CourseAggregateService:

    def recalculate_rating(self, db: Session, course: Course) -> Course:
        stats = crud_review.get_course_rating_stats(db, course_id=course.id)
        course.rating = stats["average_rating"]
        course.total_ratings = stats["total_ratings"]
        db.add(course)
        db.flush()
        logger.info(f"Course {course.id} rating recalculated: {course.rating} over {course.total_ratings} reviews")
        return course

    def refresh_reviews_snapshot(self, db: Session, course: Course) -> Course:
        reviews = crud_review.get_all_for_course(db, course_id=course.id)
        course.reviews = [review_snapshot(r) for r in reviews]
        db.add(course)
        db.flush()
        return course

    def refresh_lessons_snapshot(self, db: Session, course: Course) -> Course:
        lessons = crud_lesson.get_by_course(db, course_id=course.id)
        course.lessons = [lesson_snapshot(l) for l in lessons]
        db.add(course)
        db.flush()
        return course

    def _refresh_reviews(self, db: Session, course: Course) -> None:
        self.refresh_reviews_snapshot(db, course)
        self.recalculate_rating(db, course)

    def add_review(self, db: Session, *, course: Course, user: User, rating: int, comment: Optional[str]) -> Review:
        if crud_review.get_by_user_and_course(db, user_id=user.id, course_id=course.id):
            logger.warning(f"User {user.id} attempted a second review on course {course.id}")
            raise DuplicateReview()

        new_review = crud_review.create(
            db, obj_in={"user_id": user.id, "course_id": course.id, "rating": rating, "comment": comment}
        )
        self._refresh_reviews(db, course)
        return new_review

    def update_review(
        self, db: Session, *, course: Course, review: Review, review_in: Union[ReviewUpdate, Dict[str, Any]]
    ) -> Review:
        updated = crud_review.update(db, db_obj=review, obj_in=review_in)
        self._refresh_reviews(db, course)
        return updated

    def remove_review(self, db: Session, *, course: Course, review: Review) -> Review:
        removed = crud_review.delete(db, db_obj=review)
        self._refresh_reviews(db, course)
        return removed

    def update_enrollment_count(self, db: Session, *, course: Course, increment: bool) -> Course:
        crud_course.increment_enrollments(db, course_id=course.id, delta=1 if increment else -1)
        db.expire(course, ["total_enrollments"])
        logger.info(f"Course {course.id} enrollment count {'incremented' if increment else 'decremented'}")
        return course

    def recalculate_enrollment_count(self, db: Session, course: Course) -> Course:
        course.total_enrollments = crud_enrollment.count_non_cancelled(db, course_id=course.id)
        db.add(course)
        db.flush()
        return course

    def reconcile(self, db: Session, course: Course) -> Dict[str, Any]:
        """Recompute every derived field on ``course`` from the child tables."""
        before = {
            "rating": course.rating,
            "total_ratings": course.total_ratings,
            "total_enrollments": course.total_enrollments,
            "lessons": len(course.lessons or []),
            "reviews": len(course.reviews or []),
        }
        self.refresh_lessons_snapshot(db, course)
        self._refresh_reviews(db, course)
        self.recalculate_enrollment_count(db, course)
        after = {
            "rating": course.rating,
            "total_ratings": course.total_ratings,
            "total_enrollments": course.total_enrollments,
            "lessons": len(course.lessons),
            "reviews": len(course.reviews),
        }
        if before != after:
            logger.warning(f"Course {course.id} aggregates drifted and were repaired: {before} -> {after}")
        else:
            logger.info(f"Course {course.id} aggregates already consistent")
        return {"course_id": str(course.id), "before": before, "after": after, "changed": before != after}

    def reconcile_all(self, db: Session) -> List[Dict[str, Any]]:
        reports = []
        for course_id in crud_course.list_ids(db):
            course = crud_course.get(db, id=course_id)
            reports.append(self.reconcile(db, course))
        repaired = sum(1 for r in reports if r["changed"])
        logger.info(f"Reconciled {len(reports)} courses, {repaired} repaired")
        return reports


course_aggregate_service = CourseAggregateService()
