# app/models/course.py - Courses and the prerequisite edges between them
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class Course(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False, index=True)
    name_en: Mapped[str] = mapped_column(String(128), nullable=False)
    name_ar: Mapped[str | None] = mapped_column(String(128))
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False, default="CORE")  # CORE|ELECTIVE|GENERAL
    # NULL means open to students of every department
    department_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    department: Mapped["Department | None"] = relationship("Department")
    prerequisites: Mapped[list["Prerequisite"]] = relationship(
        "Prerequisite",
        foreign_keys="Prerequisite.course_id",
        back_populates="course",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("credits > 0", name="ck_course_credits"),
        CheckConstraint("category IN ('CORE','ELECTIVE','GENERAL')", name="ck_course_category"),
    )


class Prerequisite(Base):
    """Directed edge: ``course`` requires ``prerequisite``"""
    __tablename__ = "prerequisites"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    prerequisite_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="PREREQUISITE")  # PREREQUISITE|COREQUISITE

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    course: Mapped["Course"] = relationship("Course", foreign_keys=[course_id], back_populates="prerequisites")
    prerequisite: Mapped["Course"] = relationship("Course", foreign_keys=[prerequisite_id])

    __table_args__ = (
        Index("uq_prerequisite_edge", "course_id", "prerequisite_id", unique=True),
        CheckConstraint("course_id <> prerequisite_id", name="ck_prerequisite_not_self"),
        CheckConstraint("type IN ('PREREQUISITE','COREQUISITE')", name="ck_prerequisite_type"),
    )
