from typing import Dict, Optional, List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from app.core.constants import RoleEnum
from app.crud.base import CRUDBase
from app.models.user import User
from app.schemas.user import UserProfileUpdate


class CRUDUser(CRUDBase[User, dict, UserProfileUpdate]):

    def get_by_email(self, db: Session, *, email: str) -> User | None:
        return self._query_active(db).filter(func.lower(User.email) == email.lower()).first()

    def search(
        self,
        db: Session,
        *,
        q: Optional[str] = None,
        role: Optional[RoleEnum] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[User], int]:
        query = self._query_active(db)
        if q:
            pattern = f"%{q.strip()}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if role:
            query = query.filter(User.role == role)
        total = query.count()
        users = query.order_by(User.created_at.desc()).offset(skip).limit(limit).all()
        return users, total

    def count_by_role(self, db: Session) -> Dict[str, int]:
        rows = (
            db.query(User.role, func.count(User.id))
            .filter(User.deleted_at.is_(None))
            .group_by(User.role)
            .all()
        )
        counts = {r.value: 0 for r in RoleEnum}
        for role, count in rows:
            counts[RoleEnum(role).value] = count
        return counts

    def count_verified(self, db: Session) -> int:
        return self._query_active(db).filter(User.is_verified.is_(True)).count()


user = CRUDUser(User)
