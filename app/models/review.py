import uuid

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Uuid, Index, CheckConstraint, func, text
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from app.core.database import Base


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    # One live review per user and course; soft-deleted rows do not count
    __table_args__ = (
        Index(
            'uq_reviews_user_course_active',
            'user_id', 'course_id',
            unique=True,
            postgresql_where=text('deleted_at IS NULL'),
            sqlite_where=text('deleted_at IS NULL'),
        ),
        CheckConstraint('rating >= 1 AND rating <= 5', name='ck_reviews_rating_range'),
    )

    user = relationship("User", back_populates="reviews")
    course = relationship("Course", back_populates="review_rows")

    @hybrid_property
    def is_active(self):
        return self.deleted_at is None

    @is_active.expression
    def is_active(cls):
        return cls.deleted_at.is_(None)
