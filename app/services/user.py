import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.pagination import Pagination
from app.schemas.user import UserList, UserProfileUpdate, UserPublic, UserStats
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)

class UserService:

    def get_profile(self, current_user: User) -> UserPublic:
        return UserPublic.model_validate(current_user)

    def update_profile(self, db: Session, profile_in: UserProfileUpdate, current_user: User) -> UserPublic:
        # current_user may come from a different session than ``db``
        user = crud_user.get(db, id=current_user.id)
        update_data = profile_in.model_dump(exclude_unset=True)
        if update_data.get("name") is None:
            update_data.pop("name", None)
        updated_user = crud_user.update(db, db_obj=user, obj_in=update_data)
        logger.info(f"User {user.id} updated profile fields {sorted(update_data)}")
        return UserPublic.model_validate(updated_user)

    def get_user_stats(self, db: Session, current_user: User) -> UserStats:
        permission_helper.require_admin(current_user)
        by_role = crud_user.count_by_role(db)
        return UserStats(
            total_users=sum(by_role.values()),
            by_role=by_role,
            verified_users=crud_user.count_verified(db),
        )

    def search_users(
        self,
        db: Session,
        current_user: User,
        q: Optional[str],
        role: Optional[RoleEnum],
        page: int,
        limit: int,
    ) -> UserList:
        permission_helper.require_admin(current_user)
        users, total = crud_user.search(db, q=q, role=role, skip=(page - 1) * limit, limit=limit)
        return UserList(
            users=[UserPublic.model_validate(u) for u in users],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

user_service = UserService()
