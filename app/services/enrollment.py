import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.constants import ENROLLMENT_TRANSITIONS, EnrollmentStatusEnum
from app.core.exceptions import Conflict, DuplicateEnrollment, Forbidden, NotFound, ValidationError
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.models.enrollment import Enrollment as EnrollmentModel
from app.models.user import User
from app.schemas.enrollment import (
    BatchEnrollmentCheck,
    CourseProgress,
    CourseStudent,
    CourseStudentList,
    EnrolledCourse,
    EnrolledCourseList,
    Enrollment,
    EnrollmentCheck,
    EnrollmentCreate,
    EnrollmentProgressUpdate,
)
from app.schemas.lesson import LessonProgressUpdate
from app.schemas.pagination import Pagination
from app.services.course import course_service
from app.services.course_aggregate import course_aggregate_service
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


def calculate_progress(completed_lessons: Iterable[str], published_lesson_ids: Iterable[str]) -> int:
    """Percentage of the course's published lessons found in ``completed_lessons``."""
    published = set(published_lesson_ids)
    if not published:
        return 0
    done = published.intersection(completed_lessons)
    return round(len(done) / len(published) * 100)


class EnrollmentService:

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _transition(self, enrollment: EnrollmentModel, target: EnrollmentStatusEnum) -> None:
        current = EnrollmentStatusEnum(enrollment.status)
        if target not in ENROLLMENT_TRANSITIONS[current]:
            raise ValidationError(f"Cannot change enrollment from {current.value} to {target.value}.")
        enrollment.status = target

    def _get_enrollment_or_404(self, db: Session, course_id: UUID, user: User) -> EnrollmentModel:
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user.id, course_id=course_id)
        if not enrollment:
            raise NotFound("You are not enrolled in this course.")
        return enrollment

    def _require_active(self, db: Session, course_id: UUID, user: User) -> EnrollmentModel:
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=user.id, course_id=course_id)
        if not enrollment or not enrollment.is_active:
            raise Forbidden("You must be actively enrolled in this course.")
        return enrollment

    def _to_progress(self, db: Session, enrollment: EnrollmentModel) -> CourseProgress:
        published = crud_lesson.get_ids(db, course_id=enrollment.course_id, published_only=True)
        completed = list(enrollment.completed_lessons or [])
        return CourseProgress(
            course_id=enrollment.course_id,
            status=enrollment.status,
            progress=enrollment.progress,
            completed_lessons=completed,
            total_lessons=len(published),
            completed_count=len(set(published).intersection(completed)),
            current_lesson_id=enrollment.current_lesson_id,
            watch_time=enrollment.watch_time,
            last_accessed_at=enrollment.last_accessed_at,
            completed_at=enrollment.completed_at,
        )

    def enroll(self, db: Session, course_id: UUID, enrollment_in: EnrollmentCreate, current_user: User) -> Enrollment:
        course = course_service.get_course_or_404(db, course_id)

        if permission_helper.is_course_owner(current_user, course):
            raise ValidationError("Instructors cannot enroll in their own courses.")
        if not course.is_published:
            raise ValidationError("Course is not available for enrollment.")

        existing = crud_enrollment.get_by_user_and_course(db, user_id=current_user.id, course_id=course.id)
        if existing is not None and existing.status == EnrollmentStatusEnum.ACTIVE:
            logger.warning(f"Duplicate enrollment attempt by {current_user.id} on course {course.id}")
            raise DuplicateEnrollment()
        if existing is not None and existing.status == EnrollmentStatusEnum.COMPLETED:
            raise Conflict("You have already completed this course.")

        already_paid = existing is not None and existing.price_paid >= course.price
        if course.price > 0 and not already_paid and not enrollment_in.payment_method_id:
            raise ValidationError("A payment method is required for paid courses.")

        now = self._now()
        if existing is not None:
            self._transition(existing, EnrollmentStatusEnum.ACTIVE)
            existing.last_accessed_at = now
            existing.completed_at = None
            if not already_paid:
                existing.price_paid = course.price
            enrollment = crud_enrollment.update(db, db_obj=existing, obj_in={})
            logger.info(f"Enrollment {enrollment.id} reactivated")
        else:
            enrollment = crud_enrollment.create(
                db,
                obj_in={
                    "user_id": current_user.id,
                    "course_id": course.id,
                    "status": EnrollmentStatusEnum.ACTIVE,
                    "price_paid": course.price,
                    "completed_lessons": [],
                    "enrolled_at": now,
                    "last_accessed_at": now,
                },
            )
            logger.info(f"User {current_user.id} enrolled in course {course.id}")

        course_aggregate_service.update_enrollment_count(db, course=course, increment=True)
        return Enrollment.model_validate(enrollment)

    def cancel(self, db: Session, course_id: UUID, current_user: User) -> Enrollment:
        course = course_service.get_course_or_404(db, course_id)
        enrollment = self._get_enrollment_or_404(db, course.id, current_user)
        if not enrollment.is_active:
            raise ValidationError("Enrollment is not active.")

        self._transition(enrollment, EnrollmentStatusEnum.CANCELLED)
        enrollment = crud_enrollment.update(db, db_obj=enrollment, obj_in={})
        course_aggregate_service.update_enrollment_count(db, course=course, increment=False)
        logger.info(f"Enrollment {enrollment.id} cancelled")
        return Enrollment.model_validate(enrollment)

    def complete(self, db: Session, enrollment: EnrollmentModel) -> EnrollmentModel:
        self._transition(enrollment, EnrollmentStatusEnum.COMPLETED)
        enrollment.progress = 100
        enrollment.completed_at = self._now()
        logger.info(f"Enrollment {enrollment.id} completed")
        return crud_enrollment.update(db, db_obj=enrollment, obj_in={})

    def update_progress(
        self,
        db: Session,
        enrollment: EnrollmentModel,
        completed_lessons: List[UUID],
        current_lesson_id: Optional[UUID] = None,
    ) -> EnrollmentModel:
        """Merge newly completed lessons and recompute progress from the course's lessons."""
        if not enrollment.is_active:
            raise Forbidden("You must be actively enrolled in this course.")

        course_lessons = set(crud_lesson.get_ids(db, course_id=enrollment.course_id))
        requested = {str(lesson_id) for lesson_id in completed_lessons}
        unknown = requested - course_lessons
        if unknown:
            raise ValidationError("Some lessons do not belong to this course.", details={"lesson_ids": sorted(unknown)})
        if current_lesson_id is not None and str(current_lesson_id) not in course_lessons:
            raise ValidationError("Current lesson does not belong to this course.")

        # the completed set only ever grows
        merged = list(enrollment.completed_lessons or [])
        merged.extend(sorted(requested.difference(merged)))
        enrollment.completed_lessons = merged
        if current_lesson_id is not None:
            enrollment.current_lesson_id = current_lesson_id
        enrollment.last_accessed_at = self._now()

        published = crud_lesson.get_ids(db, course_id=enrollment.course_id, published_only=True)
        enrollment.progress = calculate_progress(merged, published)
        enrollment = crud_enrollment.update(db, db_obj=enrollment, obj_in={})

        if enrollment.progress >= 100:
            enrollment = self.complete(db, enrollment)
        return enrollment

    def update_course_progress(
        self, db: Session, course_id: UUID, progress_in: EnrollmentProgressUpdate, current_user: User
    ) -> CourseProgress:
        course = course_service.get_course_or_404(db, course_id)
        enrollment = self._require_active(db, course.id, current_user)
        enrollment = self.update_progress(
            db, enrollment, progress_in.completed_lessons, progress_in.current_lesson_id
        )
        return self._to_progress(db, enrollment)

    def record_lesson_progress(
        self, db: Session, course_id: UUID, lesson_id: UUID, progress_in: LessonProgressUpdate, current_user: User
    ) -> CourseProgress:
        course = course_service.get_course_or_404(db, course_id)
        enrollment = self._require_active(db, course.id, current_user)
        lesson = crud_lesson.get_for_course(db, course_id=course.id, lesson_id=lesson_id)
        if not lesson:
            raise NotFound("Lesson not found.")

        enrollment.watch_time = (enrollment.watch_time or 0) + progress_in.watch_time
        completed = [lesson.id] if progress_in.completed else []
        enrollment = self.update_progress(db, enrollment, completed, current_lesson_id=lesson.id)
        return self._to_progress(db, enrollment)

    def check_enrollment(self, db: Session, course_id: UUID, current_user: User) -> EnrollmentCheck:
        course = course_service.get_course_or_404(db, course_id)
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=current_user.id, course_id=course.id)
        if enrollment is None:
            return EnrollmentCheck(is_enrolled=False)
        return EnrollmentCheck(is_enrolled=enrollment.grants_access, enrollment=Enrollment.model_validate(enrollment))

    def check_enrollments(self, db: Session, course_ids: List[UUID], current_user: User) -> BatchEnrollmentCheck:
        statuses = crud_enrollment.get_statuses_for_courses(db, user_id=current_user.id, course_ids=course_ids)
        return BatchEnrollmentCheck(enrollments={str(cid): statuses.get(str(cid)) for cid in course_ids})

    def get_my_courses(
        self, db: Session, current_user: User, status: Optional[EnrollmentStatusEnum], page: int, limit: int
    ) -> EnrolledCourseList:
        enrollments, total = crud_enrollment.get_by_user(
            db, user_id=current_user.id, status=status, skip=(page - 1) * limit, limit=limit
        )
        return EnrolledCourseList(
            enrollments=[EnrolledCourse.model_validate(e) for e in enrollments],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    def get_course_progress(self, db: Session, course_id: UUID, current_user: User) -> CourseProgress:
        course = course_service.get_course_or_404(db, course_id)
        enrollment = self._get_enrollment_or_404(db, course.id, current_user)
        return self._to_progress(db, enrollment)

    def get_course_students(
        self,
        db: Session,
        course_id: UUID,
        current_user: User,
        status: Optional[EnrollmentStatusEnum],
        page: int,
        limit: int,
    ) -> CourseStudentList:
        course = course_service.get_managed_course(db, course_id, current_user)
        enrollments, total = crud_enrollment.get_by_course(
            db, course_id=course.id, status=status, skip=(page - 1) * limit, limit=limit
        )
        return CourseStudentList(
            students=[CourseStudent.model_validate(e) for e in enrollments],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )


enrollment_service = EnrollmentService()
