from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from app.core.constants import LessonTypeEnum
from app.utils.sanitize import sanitize_text, parse_array


class LessonBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    content: Optional[str] = None
    video_url: Optional[str] = None
    lesson_type: LessonTypeEnum = LessonTypeEnum.VIDEO
    duration: int = Field(0, ge=0)
    order: Optional[int] = Field(None, ge=0)
    is_free: bool = False
    is_published: bool = False
    thumbnail: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)

    @field_validator("title")
    def clean_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Title cannot be empty")
        return sanitize_text(v, max_length=200)

    @field_validator("description")
    def clean_description(cls, v):
        return sanitize_text(v)

    @field_validator("attachments", mode="before")
    def coerce_attachments(cls, v):
        return parse_array(v)


class LessonCreate(LessonBase):
    pass


class LessonUpdate(LessonBase):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    lesson_type: Optional[LessonTypeEnum] = None
    duration: Optional[int] = Field(None, ge=0)
    is_free: Optional[bool] = None
    is_published: Optional[bool] = None
    attachments: Optional[List[str]] = None


class Lesson(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    video_url: Optional[str] = None
    lesson_type: LessonTypeEnum
    duration: int
    order: int
    is_free: bool
    is_published: bool
    thumbnail: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LessonProgressUpdate(BaseModel):
    completed: bool = False
    watch_time: int = Field(0, ge=0, description="Seconds watched since the last report")


class LessonList(BaseModel):
    lessons: List[Lesson]
    can_access_all: bool
    total_lessons: int
