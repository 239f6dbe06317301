from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func, case
from typing import Any, Dict, List, Optional, Tuple

from app.core.constants import ReviewSortEnum
from app.crud.base import CRUDBase
from app.models.review import Review
from app.schemas.review import ReviewCreate, ReviewUpdate

REVIEW_ORDERING = {
    ReviewSortEnum.NEWEST: (Review.created_at.desc(),),
    ReviewSortEnum.OLDEST: (Review.created_at.asc(),),
    ReviewSortEnum.RATING: (Review.rating.desc(), Review.created_at.desc()),
}


def _rating_aggregates(query) -> Dict[str, Any]:
    """Average, count and 1-5 histogram in a single pass."""
    row = query.with_entities(
        func.avg(Review.rating).label("average"),
        func.count(Review.id).label("total"),
        *[
            func.sum(case((Review.rating == star, 1), else_=0)).label(f"star_{star}")
            for star in range(1, 6)
        ],
    ).one()
    return {
        "average_rating": round(float(row.average), 2) if row.average is not None else 0.0,
        "total_ratings": row.total or 0,
        "rating_distribution": {star: int(getattr(row, f"star_{star}") or 0) for star in range(1, 6)},
    }


class CRUDReview(CRUDBase[Review, ReviewCreate, ReviewUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(Review).options(selectinload(Review.user))

    def get_by_user_and_course(self, db: Session, *, user_id: Any, course_id: Any) -> Optional[Review]:
        return (
            self._query_active(db)
            .filter(Review.user_id == user_id)
            .filter(Review.course_id == course_id)
            .first()
        )

    def get_all_for_course(self, db: Session, *, course_id: Any) -> List[Review]:
        return (
            self._query_active(db)
            .filter(Review.course_id == course_id)
            .order_by(Review.created_at.desc())
            .all()
        )

    def get_by_course(
        self,
        db: Session,
        *,
        course_id: Any,
        sort: ReviewSortEnum = ReviewSortEnum.NEWEST,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Review], int]:
        query = self._query_active(db).filter(Review.course_id == course_id)
        total = query.count()
        reviews = query.order_by(*REVIEW_ORDERING[sort]).offset(skip).limit(limit).all()
        return reviews, total

    def search(
        self,
        db: Session,
        *,
        course_id: Any = None,
        user_id: Any = None,
        min_rating: Optional[int] = None,
        max_rating: Optional[int] = None,
        sort: ReviewSortEnum = ReviewSortEnum.NEWEST,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Review], int]:
        query = self._query_active(db)
        if course_id is not None:
            query = query.filter(Review.course_id == course_id)
        if user_id is not None:
            query = query.filter(Review.user_id == user_id)
        if min_rating is not None:
            query = query.filter(Review.rating >= min_rating)
        if max_rating is not None:
            query = query.filter(Review.rating <= max_rating)
        total = query.count()
        reviews = query.order_by(*REVIEW_ORDERING[sort]).offset(skip).limit(limit).all()
        return reviews, total

    def get_course_rating_stats(self, db: Session, *, course_id: Any) -> Dict[str, Any]:
        query = db.query(Review).filter(Review.course_id == course_id, Review.deleted_at.is_(None))
        return _rating_aggregates(query)

    def get_platform_rating_stats(self, db: Session) -> Dict[str, Any]:
        query = db.query(Review).filter(Review.deleted_at.is_(None))
        stats = _rating_aggregates(query)
        stats["unique_reviewers"] = query.with_entities(func.count(func.distinct(Review.user_id))).scalar() or 0
        stats["reviewed_courses"] = query.with_entities(func.count(func.distinct(Review.course_id))).scalar() or 0
        return stats


review = CRUDReview(Review)
