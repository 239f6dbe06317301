from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Any, List, Optional

from app.crud.base import CRUDBase
from app.models.lesson import Lesson
from app.schemas.lesson import LessonCreate, LessonUpdate

class CRUDLesson(CRUDBase[Lesson, LessonCreate, LessonUpdate]):

    def get_for_course(self, db: Session, *, course_id: Any, lesson_id: Any) -> Optional[Lesson]:
        return self._query_active(db).filter(Lesson.id == lesson_id, Lesson.course_id == course_id).first()

    def get_by_course(self, db: Session, *, course_id: Any, published_only: bool = False, free_only: bool = False) -> List[Lesson]:
        query = self._query_active(db).filter(Lesson.course_id == course_id)
        if published_only:
            query = query.filter(Lesson.is_published.is_(True))
        if free_only:
            query = query.filter(Lesson.is_free.is_(True))
        return query.order_by(Lesson.order, Lesson.created_at).all()

    def get_ids(self, db: Session, *, course_id: Any, published_only: bool = False) -> List[str]:
        query = db.query(Lesson.id).filter(Lesson.course_id == course_id, Lesson.deleted_at.is_(None))
        if published_only:
            query = query.filter(Lesson.is_published.is_(True))
        return [str(row.id) for row in query.all()]

    def next_order(self, db: Session, *, course_id: Any) -> int:
        current = (
            db.query(func.max(Lesson.order))
            .filter(Lesson.course_id == course_id, Lesson.deleted_at.is_(None))
            .scalar()
        )
        return 0 if current is None else current + 1

    def count_for_course(self, db: Session, *, course_id: Any) -> dict:
        base = self._query_active(db).filter(Lesson.course_id == course_id)
        return {
            "total": base.count(),
            "published": base.filter(Lesson.is_published.is_(True)).count(),
        }

lesson = CRUDLesson(Lesson)
