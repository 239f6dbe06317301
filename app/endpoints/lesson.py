from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.lesson import Lesson, LessonCreate, LessonList, LessonUpdate
from app.schemas.response import APIResponse
from app.services.lesson import lesson_service
from app.utils import deps

router = APIRouter()


@router.post("/{course_id}/lessons", response_model=APIResponse[Lesson], status_code=status.HTTP_201_CREATED)
def create_lesson(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    lesson_in: LessonCreate,
    current_user: User = Depends(deps.get_current_user)
):
    lesson = lesson_service.create_lesson(db, course_id=course_id, lesson_in=lesson_in, current_user=current_user)
    return APIResponse(message="Lesson added successfully", data=lesson)


@router.get("/{course_id}/lessons", response_model=APIResponse[LessonList])
def get_lessons(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    lessons = lesson_service.get_lessons(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Lessons retrieved successfully", data=lessons)


@router.get("/{course_id}/lessons/{lesson_id}", response_model=APIResponse[Lesson])
def get_lesson(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    lesson_id: UUID,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    lesson = lesson_service.get_lesson(db, course_id=course_id, lesson_id=lesson_id, current_user=current_user)
    return APIResponse(message="Lesson retrieved successfully", data=lesson)


@router.put("/{course_id}/lessons/{lesson_id}", response_model=APIResponse[Lesson])
def update_lesson(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    lesson_id: UUID,
    lesson_in: LessonUpdate,
    current_user: User = Depends(deps.get_current_user)
):
    lesson = lesson_service.update_lesson(
        db, course_id=course_id, lesson_id=lesson_id, lesson_in=lesson_in, current_user=current_user
    )
    return APIResponse(message="Lesson updated successfully", data=lesson)


@router.delete("/{course_id}/lessons/{lesson_id}", response_model=APIResponse[Lesson])
def delete_lesson(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    lesson_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    lesson = lesson_service.delete_lesson(db, course_id=course_id, lesson_id=lesson_id, current_user=current_user)
    return APIResponse(message="Lesson deleted successfully", data=lesson)
