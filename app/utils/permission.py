from typing import Optional

from app.core.constants import RoleEnum
from app.core.exceptions import Forbidden
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.review import Review
from app.models.user import User


class PermissionHelper:
    @staticmethod
    def is_admin(user: Optional[User]) -> bool:
        return user is not None and user.role == RoleEnum.ADMIN

    @staticmethod
    def is_instructor(user: Optional[User]) -> bool:
        return user is not None and user.role == RoleEnum.INSTRUCTOR

    @staticmethod
    def is_student(user: Optional[User]) -> bool:
        return user is not None and user.role == RoleEnum.STUDENT

    @staticmethod
    def is_course_owner(user: Optional[User], course: Course) -> bool:
        return user is not None and user.id == course.instructor_id

    @staticmethod
    def can_manage_course(user: Optional[User], course: Course) -> bool:
        return PermissionHelper.is_admin(user) or PermissionHelper.is_course_owner(user, course)

    @staticmethod
    def can_view_course(user: Optional[User], course: Course) -> bool:
        if course.is_published:
            return True
        return PermissionHelper.can_manage_course(user, course)

    @staticmethod
    def can_view_all_lessons(user: Optional[User], course: Course, enrollment: Optional[Enrollment]) -> bool:
        if PermissionHelper.can_manage_course(user, course):
            return True
        return enrollment is not None and enrollment.grants_access

    @staticmethod
    def require_instructor_or_admin(user: User, error_message: str = "Only instructors can perform this action."):
        if not (PermissionHelper.is_instructor(user) or PermissionHelper.is_admin(user)):
            raise Forbidden(error_message)

    @staticmethod
    def require_admin(user: User):
        if not PermissionHelper.is_admin(user):
            raise Forbidden("Admin access required.")

    @staticmethod
    def require_course_management_permission(user: User, course: Course):
        if not PermissionHelper.can_manage_course(user, course):
            raise Forbidden("You do not have permission to manage this course.")

    @staticmethod
    def require_review_owner(user: User, review: Review, allow_admin: bool = False):
        if user.id == review.user_id:
            return
        if allow_admin and PermissionHelper.is_admin(user):
            return
        raise Forbidden("You can only modify your own reviews.")


permission_helper = PermissionHelper()
