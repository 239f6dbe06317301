from pydantic import BaseModel, EmailStr, field_validator, ConfigDict, model_validator, Field
from typing import Optional, Any, Dict, List
from datetime import datetime
from uuid import UUID

from app.core.constants import RoleEnum
from app.schemas.pagination import Pagination
from app.utils.sanitize import sanitize_text

class UserSummary(BaseModel):
    """Compact user shape embedded in courses, reviews and rosters."""
    id: UUID
    name: str
    avatar: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

class InstructorSummary(UserSummary):
    bio: Optional[str] = None

class UserPublic(BaseModel):
    """Main user schema for reading user data. Credential fields never leave the service."""
    id: UUID
    name: str
    email: EmailStr
    role: RoleEnum
    avatar: Optional[str] = None
    bio: Optional[str] = None
    auth_provider: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class UserProfileUpdate(BaseModel):
    """Schema for updating a user's profile."""
    name: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=1000)

    @field_validator("name")
    def not_empty(cls, v):
        if v is not None and len(v.strip()) < 2:
            raise ValueError("Name must be at least 2 characters")
        return sanitize_text(v, max_length=100)

    @field_validator("bio")
    def clean_bio(cls, v):
        return sanitize_text(v)

    @model_validator(mode='before')
    @classmethod
    def at_least_one_value(cls, data: Any):
        if isinstance(data, dict) and not any(v is not None for v in data.values()):
            raise ValueError("At least one field must be provided for update")
        return data

class UserStats(BaseModel):
    total_users: int
    by_role: Dict[str, int]
    verified_users: int

class UserList(BaseModel):
    users: List[UserPublic]
    pagination: Pagination
