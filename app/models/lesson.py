import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, Text, Uuid
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base, JSONText
from app.core.constants import LessonTypeEnum

class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    video_url = Column(String, nullable=True)
    lesson_type = Column(Enum(LessonTypeEnum), nullable=False, default=LessonTypeEnum.VIDEO)
    duration = Column(Integer, nullable=False, default=0)  # minutes
    order = Column(Integer, nullable=False, default=0)
    is_free = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=False)
    thumbnail = Column(String, nullable=True)
    attachments = Column(JSONText, nullable=False, default=list)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    course = relationship("Course", back_populates="lesson_rows")

    @hybrid_property
    def is_active(self):
        return self.deleted_at is None

    @is_active.expression
    def is_active(cls):
        return cls.deleted_at.is_(None)
