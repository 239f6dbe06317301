import uuid

from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, Enum as SQLEnum, Uuid, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base, JSONText
from app.core.constants import EnrollmentStatusEnum

class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, index=True)
    status = Column(SQLEnum(EnrollmentStatusEnum), nullable=False, default=EnrollmentStatusEnum.ACTIVE)
    progress = Column(Integer, nullable=False, default=0)
    completed_lessons = Column(JSONText, nullable=False, default=list)
    current_lesson_id = Column(Uuid, ForeignKey("lessons.id"), nullable=True)
    watch_time = Column(Integer, nullable=False, default=0)  # seconds
    price_paid = Column(Float, nullable=False, default=0)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='uq_enrollments_user_course'),
        CheckConstraint('progress >= 0 AND progress <= 100', name='ck_enrollments_progress_range'),
    )

    user = relationship("User", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollment_rows")

    @property
    def is_active(self):
        return self.status == EnrollmentStatusEnum.ACTIVE

    @property
    def grants_access(self):
        return self.status in (EnrollmentStatusEnum.ACTIVE, EnrollmentStatusEnum.COMPLETED)
