import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.constants import CourseCategoryEnum, CourseSortFieldEnum, CourseStatusEnum, EnrollmentStatusEnum
from app.core.exceptions import Forbidden, NotFound, ValidationError
from app.crud.course import course as crud_course
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.crud.review import review as crud_review
from app.models.course import Course as CourseModel
from app.models.enrollment import Enrollment as EnrollmentModel
from app.models.user import User
from app.schemas.course import (
    CategoryCount,
    Course as CourseSchema,
    CourseCreate,
    CourseList,
    CourseStats,
    CourseUpdate,
    InstructorCourseSummary,
    InstructorStats,
    normalize_category,
)
from app.schemas.pagination import Pagination
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


class CourseService:

    def _to_schema(self, course: CourseModel, enrollment: Optional[EnrollmentModel] = None) -> CourseSchema:
        schema = CourseSchema.model_validate(course)
        if enrollment is not None:
            schema.is_enrolled = enrollment.grants_access
            schema.user_enrollment_status = enrollment.status
            schema.user_progress = enrollment.progress
        return schema

    def _with_enrollments(self, db: Session, courses: List[CourseModel], current_user: Optional[User]) -> List[CourseSchema]:
        if current_user is None or not courses:
            return [self._to_schema(c) for c in courses]
        statuses = crud_enrollment.get_statuses_for_courses(
            db, user_id=current_user.id, course_ids=[c.id for c in courses]
        )
        results = []
        for c in courses:
            schema = self._to_schema(c)
            status = statuses.get(str(c.id))
            if status is not None:
                schema.is_enrolled = status != EnrollmentStatusEnum.CANCELLED
                schema.user_enrollment_status = status
            results.append(schema)
        return results

    def get_course_or_404(self, db: Session, course_id: UUID) -> CourseModel:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise NotFound("Course not found.")
        return course

    def get_visible_course(self, db: Session, course_id: UUID, current_user: Optional[User]) -> CourseModel:
        """Drafts and archived courses exist only for their owner and admins."""
        course = self.get_course_or_404(db, course_id)
        if not permission_helper.can_view_course(current_user, course):
            raise NotFound("Course not found.")
        return course

    def get_managed_course(self, db: Session, course_id: UUID, current_user: User) -> CourseModel:
        course = self.get_course_or_404(db, course_id)
        permission_helper.require_course_management_permission(current_user, course)
        return course

    def create_course(self, db: Session, course_in: CourseCreate, current_user: User) -> CourseSchema:
        permission_helper.require_instructor_or_admin(current_user, "Only instructors can create courses.")

        course_data = course_in.model_dump()
        course_data["instructor_id"] = current_user.id
        if not permission_helper.is_admin(current_user):
            course_data["featured"] = False
        if course_data["status"] == CourseStatusEnum.PUBLISHED:
            # a brand new course has no lessons yet
            raise ValidationError("Course must have at least one lesson before publishing.")

        new_course = crud_course.create(db, obj_in=course_data)
        logger.info(f"Course {new_course.id} created by {current_user.id}")
        return self._to_schema(new_course)

    def list_courses(
        self,
        db: Session,
        *,
        filters: Dict[str, Any],
        sort_by: CourseSortFieldEnum,
        order: str,
        page: int,
        limit: int,
        current_user: Optional[User] = None,
    ) -> CourseList:
        filters = dict(filters)
        if filters.get("category") is not None:
            try:
                filters["category"] = normalize_category(filters["category"])
            except ValueError as exc:
                raise ValidationError(str(exc))
        status = filters.get("status") or CourseStatusEnum.PUBLISHED
        filters["status"] = status

        if status != CourseStatusEnum.PUBLISHED and not permission_helper.is_admin(current_user):
            # unpublished listings are scoped to the caller's own courses
            if current_user is None:
                raise Forbidden("Only published courses can be listed anonymously.")
            if filters.get("instructor_id") not in (None, current_user.id):
                raise Forbidden("You can only list your own unpublished courses.")
            filters["instructor_id"] = current_user.id

        if filters.get("min_price") is not None and filters.get("max_price") is not None:
            if filters["min_price"] > filters["max_price"]:
                raise ValidationError("min_price cannot be greater than max_price")

        courses, total = crud_course.get_filtered(
            db, filters=filters, sort_by=sort_by, order=order, skip=(page - 1) * limit, limit=limit
        )
        return CourseList(
            courses=self._with_enrollments(db, courses, current_user),
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    def get_course(self, db: Session, course_id: UUID, current_user: Optional[User]) -> CourseSchema:
        course = self.get_visible_course(db, course_id, current_user)
        enrollment = None
        if current_user is not None:
            enrollment = crud_enrollment.get_by_user_and_course(db, user_id=current_user.id, course_id=course.id)
        return self._to_schema(course, enrollment)

    def update_course(self, db: Session, course_id: UUID, course_in: CourseUpdate, current_user: User) -> CourseSchema:
        course = self.get_managed_course(db, course_id, current_user)

        update_data = course_in.model_dump(exclude_unset=True)
        for field in ("title", "description", "category", "level", "price", "language", "duration", "status", "featured"):
            if field in update_data and update_data[field] is None:
                update_data.pop(field)
        if "featured" in update_data and not permission_helper.is_admin(current_user):
            raise Forbidden("Only admins can feature courses.")
        new_status = update_data.get("status")
        if new_status == CourseStatusEnum.PUBLISHED and course.status != CourseStatusEnum.PUBLISHED:
            self._check_publishable(db, course, thumbnail=update_data.get("thumbnail", course.thumbnail))
            update_data["published_at"] = datetime.now(timezone.utc)

        updated_course = crud_course.update(db, db_obj=course, obj_in=update_data)
        logger.info(f"Course {course.id} updated by {current_user.id}: {sorted(update_data)}")
        return self._to_schema(updated_course)

    def delete_course(self, db: Session, course_id: UUID, current_user: User) -> CourseSchema:
        course = self.get_managed_course(db, course_id, current_user)

        active = crud_enrollment.count_by_status(db, course_id=course.id)[EnrollmentStatusEnum.ACTIVE.value]
        if active:
            raise ValidationError(f"Cannot delete course with {active} active enrollment(s).")

        for lesson in crud_lesson.get_by_course(db, course_id=course.id):
            crud_lesson.delete(db, db_obj=lesson)
        deleted_course = crud_course.delete(db, db_obj=course)
        logger.info(f"Course {course.id} deleted by {current_user.id}")
        return self._to_schema(deleted_course)

    def _check_publishable(self, db: Session, course: CourseModel, thumbnail: Optional[str]) -> None:
        if not crud_lesson.get_by_course(db, course_id=course.id):
            raise ValidationError("Course must have at least one lesson before publishing.")
        if not thumbnail:
            raise ValidationError("Course must have a thumbnail before publishing.")

    def publish_course(self, db: Session, course_id: UUID, current_user: User) -> CourseSchema:
        course = self.get_managed_course(db, course_id, current_user)
        if course.status == CourseStatusEnum.PUBLISHED:
            raise ValidationError("Course is already published.")
        self._check_publishable(db, course, thumbnail=course.thumbnail)

        updated = crud_course.update(
            db,
            db_obj=course,
            obj_in={"status": CourseStatusEnum.PUBLISHED, "published_at": datetime.now(timezone.utc)},
        )
        logger.info(f"Course {course.id} published")
        return self._to_schema(updated)

    def unpublish_course(self, db: Session, course_id: UUID, current_user: User) -> CourseSchema:
        course = self.get_managed_course(db, course_id, current_user)
        if course.status != CourseStatusEnum.PUBLISHED:
            raise ValidationError("Course is not published.")
        updated = crud_course.update(db, db_obj=course, obj_in={"status": CourseStatusEnum.DRAFT})
        logger.info(f"Course {course.id} unpublished")
        return self._to_schema(updated)

    def get_featured_courses(self, db: Session, limit: int, current_user: Optional[User]) -> List[CourseSchema]:
        return self._with_enrollments(db, crud_course.get_featured(db, limit=limit), current_user)

    def get_trending_courses(self, db: Session, limit: int, current_user: Optional[User]) -> List[CourseSchema]:
        return self._with_enrollments(db, crud_course.get_trending(db, limit=limit), current_user)

    def get_courses_by_category(
        self, db: Session, category: str, page: int, limit: int, current_user: Optional[User]
    ) -> CourseList:
        return self.list_courses(
            db,
            filters={"category": category, "status": CourseStatusEnum.PUBLISHED},
            sort_by=CourseSortFieldEnum.CREATED_AT,
            order="desc",
            page=page,
            limit=limit,
            current_user=current_user,
        )

    def get_categories(self, db: Session) -> List[CategoryCount]:
        counts = crud_course.count_published_by_category(db)
        return [CategoryCount(category=c, count=counts.get(c, 0)) for c in CourseCategoryEnum]

    def get_instructor_courses(
        self, db: Session, current_user: User, status: Optional[CourseStatusEnum], page: int, limit: int
    ) -> CourseList:
        permission_helper.require_instructor_or_admin(current_user)
        courses, total = crud_course.get_by_instructor(
            db, instructor_id=current_user.id, status=status, skip=(page - 1) * limit, limit=limit
        )
        return CourseList(
            courses=[self._to_schema(c) for c in courses],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    def get_instructor_stats(self, db: Session, current_user: User) -> InstructorStats:
        permission_helper.require_instructor_or_admin(current_user)
        courses = crud_course.get_all_by_instructor(db, instructor_id=current_user.id)

        rated = [c for c in courses if c.total_ratings]
        average_rating = round(sum(c.rating for c in rated) / len(rated), 2) if rated else 0.0
        top_courses = sorted(courses, key=lambda c: c.total_enrollments, reverse=True)[:5]
        return InstructorStats(
            total_courses=len(courses),
            published_courses=sum(1 for c in courses if c.status == CourseStatusEnum.PUBLISHED),
            draft_courses=sum(1 for c in courses if c.status == CourseStatusEnum.DRAFT),
            total_students=sum(c.total_enrollments for c in courses),
            total_revenue=round(sum(c.price * c.total_enrollments for c in courses), 2),
            average_rating=average_rating,
            total_reviews=sum(c.total_ratings for c in courses),
            top_courses=[InstructorCourseSummary.model_validate(c) for c in top_courses],
        )

    def get_course_stats(self, db: Session, course_id: UUID, current_user: User) -> CourseStats:
        course = self.get_managed_course(db, course_id, current_user)
        lesson_counts = crud_lesson.count_for_course(db, course_id=course.id)
        rating_stats = crud_review.get_course_rating_stats(db, course_id=course.id)
        return CourseStats(
            course_id=course.id,
            total_enrollments=course.total_enrollments,
            enrollments_by_status=crud_enrollment.count_by_status(db, course_id=course.id),
            average_progress=crud_enrollment.average_progress(db, course_id=course.id),
            revenue=round(course.price * course.total_enrollments, 2),
            total_lessons=lesson_counts["total"],
            published_lessons=lesson_counts["published"],
            rating=course.rating,
            total_ratings=course.total_ratings,
            rating_distribution=rating_stats["rating_distribution"],
        )


course_service = CourseService()
