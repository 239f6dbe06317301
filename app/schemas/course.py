from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID

from app.core.constants import (
    CATEGORY_ALIASES,
    CourseCategoryEnum,
    CourseLevelEnum,
    CourseStatusEnum,
    EnrollmentStatusEnum,
    MAX_COURSE_PRICE,
)
from app.schemas.pagination import Pagination
from app.schemas.user import InstructorSummary
from app.utils.sanitize import sanitize_text, parse_array

ARRAY_FIELDS = ("requirements", "what_you_will_learn", "target_audience", "tags")


def normalize_category(value: Any) -> Any:
    if isinstance(value, str):
        key = value.strip().lower()
        if key not in CATEGORY_ALIASES:
            raise ValueError(f"Invalid category '{value}'")
        return CATEGORY_ALIASES[key]
    return value


def _check_length(value: Optional[str], field: str, minimum: int, maximum: int) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not minimum <= len(stripped) <= maximum:
        raise ValueError(f"{field} must be between {minimum} and {maximum} characters")
    return sanitize_text(stripped, max_length=maximum)


class CourseBase(BaseModel):
    title: str
    description: str
    category: CourseCategoryEnum
    level: CourseLevelEnum = Field(default=CourseLevelEnum.BEGINNER)
    price: float = Field(0, ge=0, le=MAX_COURSE_PRICE)
    language: str = Field("English", max_length=50)
    duration: int = Field(0, ge=0)
    thumbnail: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    what_you_will_learn: List[str] = Field(default_factory=list)
    target_audience: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @field_validator("title")
    def validate_title(cls, v):
        return _check_length(v, "Title", 3, 200)

    @field_validator("description")
    def validate_description(cls, v):
        return _check_length(v, "Description", 10, 5000)

    @field_validator("category", mode="before")
    def validate_category(cls, v):
        return normalize_category(v)

    @field_validator(*ARRAY_FIELDS, mode="before")
    def coerce_arrays(cls, v):
        return parse_array(v)

    @field_validator("language")
    def clean_language(cls, v):
        return sanitize_text(v, max_length=50)


class CourseCreate(CourseBase):
    status: CourseStatusEnum = CourseStatusEnum.DRAFT
    featured: bool = False


class CourseUpdate(CourseBase):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[CourseCategoryEnum] = None
    level: Optional[CourseLevelEnum] = None
    price: Optional[float] = Field(None, ge=0, le=MAX_COURSE_PRICE)
    language: Optional[str] = Field(None, max_length=50)
    duration: Optional[int] = Field(None, ge=0)
    requirements: Optional[List[str]] = None
    what_you_will_learn: Optional[List[str]] = None
    target_audience: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    status: Optional[CourseStatusEnum] = None
    featured: Optional[bool] = None


class Course(BaseModel):
    id: UUID
    title: str
    description: str
    thumbnail: Optional[str] = None
    category: CourseCategoryEnum
    level: CourseLevelEnum
    price: float
    language: str
    duration: int
    requirements: List[str] = Field(default_factory=list)
    what_you_will_learn: List[str] = Field(default_factory=list)
    target_audience: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    instructor_id: UUID
    instructor: Optional[InstructorSummary] = None
    status: CourseStatusEnum
    featured: bool
    lessons: List[Dict[str, Any]] = Field(default_factory=list)
    reviews: List[Dict[str, Any]] = Field(default_factory=list)
    rating: float = 0
    total_ratings: int = 0
    total_enrollments: int = 0
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Filled in for authenticated callers
    is_enrolled: bool = False
    user_enrollment_status: Optional[EnrollmentStatusEnum] = None
    user_progress: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def is_free(self) -> bool:
        return self.price == 0


class CourseList(BaseModel):
    courses: List[Course]
    pagination: Pagination


class CategoryCount(BaseModel):
    category: CourseCategoryEnum
    count: int


class CourseStats(BaseModel):
    course_id: UUID
    total_enrollments: int
    enrollments_by_status: Dict[str, int]
    average_progress: float
    revenue: float
    total_lessons: int
    published_lessons: int
    rating: float
    total_ratings: int
    rating_distribution: Dict[int, int]


class InstructorCourseSummary(BaseModel):
    id: UUID
    title: str
    total_enrollments: int
    rating: float

    model_config = ConfigDict(from_attributes=True)


class InstructorStats(BaseModel):
    total_courses: int
    published_courses: int
    draft_courses: int
    total_students: int
    total_revenue: float
    average_rating: float
    total_reviews: int
    top_courses: List[InstructorCourseSummary]


class AggregateSnapshot(BaseModel):
    rating: float
    total_ratings: int
    total_enrollments: int
    lessons: int
    reviews: int


class ReconcileReport(BaseModel):
    course_id: UUID
    before: AggregateSnapshot
    after: AggregateSnapshot
    changed: bool
