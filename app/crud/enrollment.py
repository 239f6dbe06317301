from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from typing import Any, Dict, List, Optional, Tuple

from app.core.constants import EnrollmentStatusEnum
from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.schemas.enrollment import EnrollmentCreate, EnrollmentProgressUpdate


class CRUDEnrollment(CRUDBase[Enrollment, EnrollmentCreate, EnrollmentProgressUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(Enrollment).options(
            selectinload(Enrollment.user),
            selectinload(Enrollment.course).selectinload(Course.instructor),
        )

    def get_by_user_and_course(self, db: Session, *, user_id: Any, course_id: Any) -> Optional[Enrollment]:
        return (
            self._query_active(db)
            .filter(Enrollment.user_id == user_id)
            .filter(Enrollment.course_id == course_id)
            .first()
        )

    def get_by_user(
        self,
        db: Session,
        *,
        user_id: Any,
        status: Optional[EnrollmentStatusEnum] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Enrollment], int]:
        query = (
            self._query_active(db)
            .join(Course, Course.id == Enrollment.course_id)
            .filter(Enrollment.user_id == user_id, Course.deleted_at.is_(None))
        )
        if status is not None:
            query = query.filter(Enrollment.status == status)
        else:
            query = query.filter(Enrollment.status != EnrollmentStatusEnum.CANCELLED)
        total = query.count()
        enrollments = (
            query.order_by(Enrollment.last_accessed_at.desc(), Enrollment.enrolled_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return enrollments, total

    def get_by_course(
        self, db: Session, *, course_id: Any, status: Optional[EnrollmentStatusEnum] = None, skip: int = 0, limit: int = 10
    ) -> Tuple[List[Enrollment], int]:
        query = self._query_active(db).filter(Enrollment.course_id == course_id)
        if status is not None:
            query = query.filter(Enrollment.status == status)
        total = query.count()
        enrollments = query.order_by(Enrollment.enrolled_at.desc()).offset(skip).limit(limit).all()
        return enrollments, total

    def get_statuses_for_courses(self, db: Session, *, user_id: Any, course_ids: List[Any]) -> Dict[str, EnrollmentStatusEnum]:
        if not course_ids:
            return {}
        rows = (
            db.query(Enrollment.course_id, Enrollment.status)
            .filter(Enrollment.user_id == user_id, Enrollment.course_id.in_(course_ids))
            .all()
        )
        return {str(course_id): status for course_id, status in rows}

    def count_non_cancelled(self, db: Session, *, course_id: Any) -> int:
        return (
            db.query(func.count(Enrollment.id))
            .filter(Enrollment.course_id == course_id, Enrollment.status != EnrollmentStatusEnum.CANCELLED)
            .scalar()
        )

    def count_by_status(self, db: Session, *, course_id: Any) -> Dict[str, int]:
        rows = (
            db.query(Enrollment.status, func.count(Enrollment.id))
            .filter(Enrollment.course_id == course_id)
            .group_by(Enrollment.status)
            .all()
        )
        counts = {s.value: 0 for s in EnrollmentStatusEnum}
        for status, count in rows:
            counts[EnrollmentStatusEnum(status).value] = count
        return counts

    def average_progress(self, db: Session, *, course_id: Any) -> float:
        result = (
            db.query(func.avg(Enrollment.progress))
            .filter(Enrollment.course_id == course_id, Enrollment.status != EnrollmentStatusEnum.CANCELLED)
            .scalar()
        )
        return round(float(result), 2) if result else 0.0


enrollment = CRUDEnrollment(Enrollment)
