# app/models/curriculum.py
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class Curriculum(Base):
    __tablename__ = "curricula"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    department_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="CASCADE"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    total_credits: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    courses: Mapped[list["CurriculumCourse"]] = relationship("CurriculumCourse", back_populates="curriculum", cascade="all, delete-orphan")


class CurriculumCourse(Base):
    """Placement of a course in a curriculum at (year, semester)"""
    __tablename__ = "curriculum_courses"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    curriculum_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("curricula.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)  # 1 or 2
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    curriculum: Mapped["Curriculum"] = relationship("Curriculum", back_populates="courses")
    course: Mapped["Course"] = relationship("Course")

    @property
    def ordinal(self) -> int:
        return self.year * 2 + self.semester - 2

    __table_args__ = (
        Index("uq_curriculum_course", "curriculum_id", "course_id", unique=True),
        CheckConstraint("year >= 1", name="ck_curriculum_course_year"),
        CheckConstraint("semester IN (1, 2)", name="ck_curriculum_course_semester"),
    )
