import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import Forbidden, NotFound
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.models.course import Course
from app.models.lesson import Lesson as LessonModel
from app.models.user import User
from app.schemas.lesson import Lesson, LessonCreate, LessonList, LessonUpdate
from app.services.course import course_service
from app.services.course_aggregate import course_aggregate_service
from app.utils.permission import PermissionHelper

logger = logging.getLogger(__name__)


class LessonService:

    def _can_access_all(self, db: Session, course: Course, current_user: Optional[User]) -> bool:
        if current_user is None:
            return False
        enrollment = crud_enrollment.get_by_user_and_course(db, user_id=current_user.id, course_id=course.id)
        return PermissionHelper.can_view_all_lessons(current_user, course, enrollment)

    def _get_lesson_or_404(self, db: Session, course: Course, lesson_id: UUID) -> LessonModel:
        lesson = crud_lesson.get_for_course(db, course_id=course.id, lesson_id=lesson_id)
        if not lesson:
            raise NotFound("Lesson not found.")
        return lesson

    def create_lesson(self, db: Session, course_id: UUID, lesson_in: LessonCreate, current_user: User) -> Lesson:
        course = course_service.get_managed_course(db, course_id, current_user)

        lesson_data = lesson_in.model_dump()
        if lesson_data["order"] is None:
            lesson_data["order"] = crud_lesson.next_order(db, course_id=course.id)
        lesson_data["course_id"] = course.id

        new_lesson = crud_lesson.create(db, obj_in=lesson_data)
        course_aggregate_service.refresh_lessons_snapshot(db, course)
        logger.info(f"Lesson {new_lesson.id} added to course {course.id}")
        return Lesson.model_validate(new_lesson)

    def get_lessons(self, db: Session, course_id: UUID, current_user: Optional[User]) -> LessonList:
        course = course_service.get_visible_course(db, course_id, current_user)
        can_access_all = self._can_access_all(db, course, current_user)

        if can_access_all:
            lessons = crud_lesson.get_by_course(db, course_id=course.id)
        else:
            lessons = crud_lesson.get_by_course(db, course_id=course.id, published_only=True, free_only=True)

        return LessonList(
            lessons=[Lesson.model_validate(l) for l in lessons],
            can_access_all=can_access_all,
            total_lessons=len(lessons),
        )

    def get_lesson(self, db: Session, course_id: UUID, lesson_id: UUID, current_user: Optional[User]) -> Lesson:
        course = course_service.get_visible_course(db, course_id, current_user)
        lesson = self._get_lesson_or_404(db, course, lesson_id)
        if not self._can_access_all(db, course, current_user):
            if not lesson.is_published:
                raise NotFound("Lesson not found.")
            if not lesson.is_free:
                raise Forbidden("Enroll in this course to access this lesson.")
        return Lesson.model_validate(lesson)

    def update_lesson(self, db: Session, course_id: UUID, lesson_id: UUID, lesson_in: LessonUpdate, current_user: User) -> Lesson:
        course = course_service.get_managed_course(db, course_id, current_user)
        lesson = self._get_lesson_or_404(db, course, lesson_id)

        update_data = lesson_in.model_dump(exclude_unset=True)
        for field in ("title", "lesson_type", "duration", "order", "is_free", "is_published", "attachments"):
            if field in update_data and update_data[field] is None:
                update_data.pop(field)

        updated_lesson = crud_lesson.update(db, db_obj=lesson, obj_in=update_data)
        course_aggregate_service.refresh_lessons_snapshot(db, course)
        return Lesson.model_validate(updated_lesson)

    def delete_lesson(self, db: Session, course_id: UUID, lesson_id: UUID, current_user: User) -> Lesson:
        course = course_service.get_managed_course(db, course_id, current_user)
        lesson = self._get_lesson_or_404(db, course, lesson_id)

        crud_lesson.delete(db, db_obj=lesson)
        course_aggregate_service.refresh_lessons_snapshot(db, course)
        logger.info(f"Lesson {lesson.id} removed from course {course.id}")
        return Lesson.model_validate(lesson)

lesson_service = LessonService()
