from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID

from app.core.constants import EnrollmentStatusEnum
from app.schemas.pagination import Pagination
from app.schemas.user import UserSummary


class EnrollmentCreate(BaseModel):
    payment_method_id: Optional[str] = None


class EnrollmentProgressUpdate(BaseModel):
    completed_lessons: List[UUID] = Field(default_factory=list)
    current_lesson_id: Optional[UUID] = None


class Enrollment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    status: EnrollmentStatusEnum
    progress: int
    completed_lessons: List[str] = Field(default_factory=list)
    current_lesson_id: Optional[UUID] = None
    watch_time: int
    price_paid: float
    enrolled_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class EnrollmentCheck(BaseModel):
    is_enrolled: bool
    enrollment: Optional[Enrollment] = None


class BatchEnrollmentCheckRequest(BaseModel):
    course_ids: List[UUID] = Field(..., min_length=1, max_length=100)


class BatchEnrollmentCheck(BaseModel):
    enrollments: Dict[str, Optional[EnrollmentStatusEnum]]


class EnrolledCourseSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    thumbnail: Optional[str] = None
    instructor: Optional[UserSummary] = None
    lessons: list = Field(default_factory=list)
    rating: float
    total_enrollments: int


class EnrolledCourse(Enrollment):
    course: EnrolledCourseSummary


class EnrolledCourseList(BaseModel):
    enrollments: List[EnrolledCourse]
    pagination: Pagination


class CourseProgress(BaseModel):
    course_id: UUID
    status: EnrollmentStatusEnum
    progress: int
    completed_lessons: List[str]
    total_lessons: int
    completed_count: int
    current_lesson_id: Optional[UUID] = None
    watch_time: int
    last_accessed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CourseStudent(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user: UserSummary
    status: EnrollmentStatusEnum
    progress: int
    enrolled_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CourseStudentList(BaseModel):
    students: List[CourseStudent]
    pagination: Pagination
