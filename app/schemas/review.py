from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from uuid import UUID

from app.core.constants import MIN_RATING, MAX_RATING, MAX_REVIEW_COMMENT_LENGTH
from app.schemas.pagination import Pagination
from app.schemas.user import UserSummary
from app.utils.sanitize import sanitize_text


class ReviewBase(BaseModel):
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = Field(None, max_length=MAX_REVIEW_COMMENT_LENGTH)

    @field_validator("comment")
    def clean_comment(cls, v):
        return sanitize_text(v) or None


class ReviewCreate(ReviewBase):
    pass


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = Field(None, max_length=MAX_REVIEW_COMMENT_LENGTH)

    @field_validator("comment")
    def clean_comment(cls, v):
        return sanitize_text(v)


class Review(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    rating: int
    comment: Optional[str] = None
    user: Optional[UserSummary] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ReviewList(BaseModel):
    reviews: List[Review]
    pagination: Pagination


class RatingStats(BaseModel):
    average_rating: float
    total_ratings: int
    rating_distribution: Dict[int, int]


class PlatformRatingStats(RatingStats):
    unique_reviewers: int
    reviewed_courses: int
