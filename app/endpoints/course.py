from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import CourseLevelEnum, CourseSortFieldEnum, CourseStatusEnum
from app.models.user import User
from app.schemas.course import CategoryCount, Course, CourseCreate, CourseList, CourseStats, CourseUpdate, InstructorStats
from app.schemas.response import APIResponse
from app.services.course import course_service
from app.utils import deps
from app.utils.sanitize import parse_array

router = APIRouter()


@router.post("/", response_model=APIResponse[Course], status_code=status.HTTP_201_CREATED)
def create_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_in: CourseCreate,
    current_user: User = Depends(deps.get_current_user)
):
    new_course = course_service.create_course(db, course_in=course_in, current_user=current_user)
    return APIResponse(message="Course created successfully", data=new_course)


@router.get("/", response_model=APIResponse[CourseList])
def get_courses(
    db: Session = Depends(deps.get_db),
    current_user: Optional[User] = Depends(deps.get_optional_user),
    category: Optional[str] = None,
    level: Optional[CourseLevelEnum] = None,
    course_status: Optional[CourseStatusEnum] = Query(None, alias="status"),
    featured: Optional[bool] = None,
    instructor_id: Optional[UUID] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    is_free: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=200),
    tags: Optional[str] = Query(None, description="Comma separated tags"),
    language: Optional[str] = None,
    sort_by: CourseSortFieldEnum = CourseSortFieldEnum.CREATED_AT,
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
):
    filters = {
        "category": category,
        "level": level,
        "status": course_status,
        "featured": featured,
        "instructor_id": instructor_id,
        "min_price": min_price,
        "max_price": max_price,
        "is_free": is_free,
        "search": search,
        "tags": parse_array(tags),
        "language": language,
    }
    courses = course_service.list_courses(
        db, filters=filters, sort_by=sort_by, order=order, page=page, limit=limit, current_user=current_user
    )
    return APIResponse(message="Courses retrieved successfully", data=courses)


@router.get("/featured", response_model=APIResponse[List[Course]])
def get_featured_courses(
    db: Session = Depends(deps.get_db),
    current_user: Optional[User] = Depends(deps.get_optional_user),
    limit: int = Query(6, ge=1, le=50)
):
    courses = course_service.get_featured_courses(db, limit=limit, current_user=current_user)
    return APIResponse(message="Featured courses retrieved successfully", data=courses)


@router.get("/trending", response_model=APIResponse[List[Course]])
def get_trending_courses(
    db: Session = Depends(deps.get_db),
    current_user: Optional[User] = Depends(deps.get_optional_user),
    limit: int = Query(10, ge=1, le=50)
):
    courses = course_service.get_trending_courses(db, limit=limit, current_user=current_user)
    return APIResponse(message="Trending courses retrieved successfully", data=courses)


@router.get("/categories", response_model=APIResponse[List[CategoryCount]])
def get_categories(db: Session = Depends(deps.get_db)):
    categories = course_service.get_categories(db)
    return APIResponse(message="Categories retrieved successfully", data=categories)


@router.get("/category/{category}", response_model=APIResponse[CourseList])
def get_courses_by_category(
    category: str,
    db: Session = Depends(deps.get_db),
    current_user: Optional[User] = Depends(deps.get_optional_user),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
):
    courses = course_service.get_courses_by_category(
        db, category=category, page=page, limit=limit, current_user=current_user
    )
    return APIResponse(message="Courses retrieved successfully", data=courses)


@router.get("/instructor/my-courses", response_model=APIResponse[CourseList])
def get_instructor_courses(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
    course_status: Optional[CourseStatusEnum] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
):
    courses = course_service.get_instructor_courses(
        db, current_user=current_user, status=course_status, page=page, limit=limit
    )
    return APIResponse(message="Your courses retrieved successfully", data=courses)


@router.get("/instructor/stats", response_model=APIResponse[InstructorStats])
def get_instructor_stats(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    stats = course_service.get_instructor_stats(db, current_user=current_user)
    return APIResponse(message="Instructor statistics retrieved successfully", data=stats)


@router.get("/{course_id}", response_model=APIResponse[Course])
def read_course(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    course = course_service.get_course(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course retrieved successfully", data=course)


@router.put("/{course_id}", response_model=APIResponse[Course])
def update_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    course_in: CourseUpdate,
    current_user: User = Depends(deps.get_current_user)
):
    updated_course = course_service.update_course(db, course_id=course_id, course_in=course_in, current_user=current_user)
    return APIResponse(message="Course updated successfully", data=updated_course)


@router.delete("/{course_id}", response_model=APIResponse[Course])
def delete_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    deleted_course = course_service.delete_course(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course deleted successfully", data=deleted_course)


@router.put("/{course_id}/publish", response_model=APIResponse[Course])
def publish_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    course = course_service.publish_course(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course published successfully", data=course)


@router.put("/{course_id}/unpublish", response_model=APIResponse[Course])
def unpublish_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    course = course_service.unpublish_course(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course unpublished successfully", data=course)


@router.get("/{course_id}/stats", response_model=APIResponse[CourseStats])
def get_course_stats(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    stats = course_service.get_course_stats(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course statistics retrieved successfully", data=stats)
