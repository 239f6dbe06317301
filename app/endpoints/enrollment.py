from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import EnrollmentStatusEnum
from app.models.user import User
from app.schemas.enrollment import (
    BatchEnrollmentCheck,
    BatchEnrollmentCheckRequest,
    CourseProgress,
    CourseStudentList,
    EnrolledCourseList,
    Enrollment,
    EnrollmentCheck,
    EnrollmentCreate,
    EnrollmentProgressUpdate,
)
from app.schemas.lesson import LessonProgressUpdate
from app.schemas.response import APIResponse
from app.services.enrollment import enrollment_service
from app.utils import deps

router = APIRouter()


@router.post("/check-enrollments", response_model=APIResponse[BatchEnrollmentCheck])
def check_enrollments(
    *,
    db: Session = Depends(deps.get_db),
    check_in: BatchEnrollmentCheckRequest,
    current_user: User = Depends(deps.get_current_user)
):
    result = enrollment_service.check_enrollments(db, course_ids=check_in.course_ids, current_user=current_user)
    return APIResponse(message="Enrollment statuses retrieved successfully", data=result)


@router.get("/enrolled/my-courses", response_model=APIResponse[EnrolledCourseList])
def get_my_courses(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
    enrollment_status: Optional[EnrollmentStatusEnum] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
):
    courses = enrollment_service.get_my_courses(
        db, current_user=current_user, status=enrollment_status, page=page, limit=limit
    )
    return APIResponse(message="Enrolled courses retrieved successfully", data=courses)


@router.post("/{course_id}/enroll", response_model=APIResponse[Enrollment], status_code=status.HTTP_201_CREATED)
def enroll_in_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    enrollment_in: Optional[EnrollmentCreate] = None,
    current_user: User = Depends(deps.get_current_user)
):
    enrollment = enrollment_service.enroll(
        db, course_id=course_id, enrollment_in=enrollment_in or EnrollmentCreate(), current_user=current_user
    )
    return APIResponse(message="Successfully enrolled in course", data=enrollment)


@router.delete("/{course_id}/unenroll", response_model=APIResponse[Enrollment])
def unenroll_from_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    enrollment = enrollment_service.cancel(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Successfully unenrolled from course", data=enrollment)


@router.get("/{course_id}/check-enrollment", response_model=APIResponse[EnrollmentCheck])
def check_enrollment(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    result = enrollment_service.check_enrollment(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Enrollment status retrieved successfully", data=result)


@router.get("/{course_id}/progress", response_model=APIResponse[CourseProgress])
def get_course_progress(
    *,
    db: Session = Depends(deps.get_db),
    course_id: UUID,
    current_user: User = Depends(deps.get_current_user)
):
    progress = enrollment_service.get_course_progress(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course progress retrieved successfully", data=progress)


@router.put("/{course_id}/progress", response_model=APIResponse[CourseProgress])
def update_course_progress(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    progress_in: EnrollmentProgressUpdate,
    current_user: User = Depends(deps.get_current_user)
):
    progress = enrollment_service.update_course_progress(
        db, course_id=course_id, progress_in=progress_in, current_user=current_user
    )
    return APIResponse(message="Course progress updated successfully", data=progress)


@router.put("/{course_id}/lessons/{lesson_id}/progress", response_model=APIResponse[CourseProgress])
def update_lesson_progress(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: UUID,
    lesson_id: UUID,
    progress_in: LessonProgressUpdate,
    current_user: User = Depends(deps.get_current_user)
):
    progress = enrollment_service.record_lesson_progress(
        db, course_id=course_id, lesson_id=lesson_id, progress_in=progress_in, current_user=current_user
    )
    return APIResponse(message="Lesson progress updated successfully", data=progress)


@router.get("/{course_id}/enrolled-students", response_model=APIResponse[CourseStudentList])
def get_enrolled_students(
    course_id: UUID,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
    enrollment_status: Optional[EnrollmentStatusEnum] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
):
    students = enrollment_service.get_course_students(
        db, course_id=course_id, current_user=current_user, status=enrollment_status, page=page, limit=limit
    )
    return APIResponse(message="Enrolled students retrieved successfully", data=students)
