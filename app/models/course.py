import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, Float, Text, Uuid, CheckConstraint
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base, JSONText
from app.core.constants import CourseLevelEnum, CourseCategoryEnum, CourseStatusEnum

class Course(Base):
    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), index=True, nullable=False)
    description = Column(Text, nullable=False)
    thumbnail = Column(String, nullable=True)
    category = Column(Enum(CourseCategoryEnum), nullable=False, index=True)
    level = Column(Enum(CourseLevelEnum), nullable=False, default=CourseLevelEnum.BEGINNER)
    price = Column(Float, nullable=False, default=0)
    language = Column(String(50), nullable=False, default="English")
    duration = Column(Integer, nullable=False, default=0)  # minutes
    requirements = Column(JSONText, nullable=False, default=list)
    what_you_will_learn = Column(JSONText, nullable=False, default=list)
    target_audience = Column(JSONText, nullable=False, default=list)
    tags = Column(JSONText, nullable=False, default=list)
    instructor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(CourseStatusEnum), nullable=False, default=CourseStatusEnum.DRAFT, index=True)
    featured = Column(Boolean, nullable=False, default=False)

    # Denormalized snapshots and aggregates, rebuilt from the child tables
    lessons = Column(JSONText, nullable=False, default=list)
    reviews = Column(JSONText, nullable=False, default=list)
    rating = Column(Float, nullable=False, default=0)
    total_ratings = Column(Integer, nullable=False, default=0)
    total_enrollments = Column(Integer, nullable=False, default=0)

    published_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_courses_price_non_negative"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_courses_rating_range"),
        CheckConstraint("total_enrollments >= 0", name="ck_courses_total_enrollments_non_negative"),
    )

    instructor = relationship("User", back_populates="courses")
    lesson_rows = relationship("Lesson", back_populates="course", order_by="Lesson.order")
    enrollment_rows = relationship("Enrollment", back_populates="course")
    review_rows = relationship("Review", back_populates="course")

    @hybrid_property
    def is_active(self):
        return self.deleted_at is None

    @is_active.expression
    def is_active(cls):
        return cls.deleted_at.is_(None)

    @property
    def is_free(self):
        return not self.price

    @property
    def is_published(self):
        return self.status == CourseStatusEnum.PUBLISHED
