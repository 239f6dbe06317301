import json

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import Text, or_, func, case, type_coerce
from typing import Any, Dict, List, Optional, Tuple

from app.core.constants import CourseStatusEnum, CourseSortFieldEnum, CourseCategoryEnum
from app.crud.base import CRUDBase
from app.models.course import Course
from app.schemas.course import CourseCreate, CourseUpdate

SORT_COLUMNS = {
    CourseSortFieldEnum.CREATED_AT: Course.created_at,
    CourseSortFieldEnum.UPDATED_AT: Course.updated_at,
    CourseSortFieldEnum.TITLE: Course.title,
    CourseSortFieldEnum.PRICE: Course.price,
    CourseSortFieldEnum.RATING: Course.rating,
    CourseSortFieldEnum.TOTAL_ENROLLMENTS: Course.total_enrollments,
}


class CRUDCourse(CRUDBase[Course, CourseCreate, CourseUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(Course).options(selectinload(Course.instructor))

    def get_filtered(
        self,
        db: Session,
        *,
        filters: Dict[str, Any],
        sort_by: CourseSortFieldEnum = CourseSortFieldEnum.CREATED_AT,
        order: str = "desc",
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Course], int]:
        query = self._query_active(db)

        if filters.get("status") is not None:
            query = query.filter(Course.status == filters["status"])
        if filters.get("category") is not None:
            query = query.filter(Course.category == filters["category"])
        if filters.get("level") is not None:
            query = query.filter(Course.level == filters["level"])
        if filters.get("featured") is not None:
            query = query.filter(Course.featured.is_(filters["featured"]))
        if filters.get("instructor_id") is not None:
            query = query.filter(Course.instructor_id == filters["instructor_id"])
        if filters.get("min_price") is not None:
            query = query.filter(Course.price >= filters["min_price"])
        if filters.get("max_price") is not None:
            query = query.filter(Course.price <= filters["max_price"])
        if filters.get("is_free") is True:
            query = query.filter(Course.price == 0)
        elif filters.get("is_free") is False:
            query = query.filter(Course.price > 0)
        if filters.get("language"):
            query = query.filter(func.lower(Course.language) == filters["language"].strip().lower())
        if filters.get("search"):
            pattern = f"%{filters['search'].strip()}%"
            query = query.filter(or_(Course.title.ilike(pattern), Course.description.ilike(pattern)))
        for tag in filters.get("tags") or []:
            # match the raw serialized array, encoded the same way JSONText writes it
            query = query.filter(type_coerce(Course.tags, Text).ilike(f"%{json.dumps(tag)}%"))

        total = query.count()

        column = SORT_COLUMNS[sort_by]
        ordering = column.asc() if order == "asc" else column.desc()
        courses = query.order_by(ordering, Course.id).offset(skip).limit(limit).all()
        return courses, total

    def get_featured(self, db: Session, *, limit: int = 6) -> List[Course]:
        return (
            self._query_active(db)
            .filter(Course.status == CourseStatusEnum.PUBLISHED, Course.featured.is_(True))
            .order_by(Course.rating.desc(), Course.total_enrollments.desc())
            .limit(limit)
            .all()
        )

    def get_trending(self, db: Session, *, limit: int = 10) -> List[Course]:
        return (
            self._query_active(db)
            .filter(Course.status == CourseStatusEnum.PUBLISHED)
            .order_by(Course.total_enrollments.desc(), Course.rating.desc())
            .limit(limit)
            .all()
        )

    def get_by_instructor(
        self, db: Session, *, instructor_id: Any, status: Optional[CourseStatusEnum] = None, skip: int = 0, limit: int = 10
    ) -> Tuple[List[Course], int]:
        query = self._query_active(db).filter(Course.instructor_id == instructor_id)
        if status is not None:
            query = query.filter(Course.status == status)
        total = query.count()
        courses = query.order_by(Course.created_at.desc(), Course.id).offset(skip).limit(limit).all()
        return courses, total

    def get_all_by_instructor(self, db: Session, *, instructor_id: Any) -> List[Course]:
        return self._query_active(db).filter(Course.instructor_id == instructor_id).all()

    def get_by_ids(self, db: Session, *, ids: List[Any]) -> List[Course]:
        if not ids:
            return []
        return self._query_active(db).filter(Course.id.in_(ids)).all()

    def count_published_by_category(self, db: Session) -> Dict[CourseCategoryEnum, int]:
        rows = (
            db.query(Course.category, func.count(Course.id))
            .filter(Course.deleted_at.is_(None), Course.status == CourseStatusEnum.PUBLISHED)
            .group_by(Course.category)
            .all()
        )
        return {CourseCategoryEnum(category): count for category, count in rows}

    def increment_enrollments(self, db: Session, *, course_id: Any, delta: int) -> None:
        """Atomically shift total_enrollments by ``delta``, never below zero."""
        new_total = Course.total_enrollments + delta
        (
            db.query(Course)
            .filter(Course.id == course_id)
            .update(
                {Course.total_enrollments: case((new_total < 0, 0), else_=new_total)},
                synchronize_session=False,
            )
        )

    def list_ids(self, db: Session) -> List[Any]:
        return [row.id for row in db.query(Course.id).filter(Course.deleted_at.is_(None)).all()]


course = CRUDCourse(Course)
