# app/models/grading.py - Grading scheme, scores, published final grades and the letter scale
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Float, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class GradeComponent(Base):
    """A weighted piece of a section's grading scheme, e.g. Midterm 30/30"""
    __tablename__ = "grade_components"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    section_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)  # percentage points
    max_score: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    section: Mapped["Section"] = relationship("Section", back_populates="grade_components")
    grades: Mapped[list["Grade"]] = relationship("Grade", back_populates="component", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("weight >= 0 AND weight <= 100", name="ck_grade_component_weight"),
        CheckConstraint("max_score > 0", name="ck_grade_component_max_score"),
    )


class Grade(Base):
    __tablename__ = "grades"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    enrollment_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False, index=True)
    component_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("grade_components.id", ondelete="CASCADE"), nullable=False, index=True)
    score: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    enrollment: Mapped["Enrollment"] = relationship("Enrollment", back_populates="grades")
    component: Mapped["GradeComponent"] = relationship("GradeComponent", back_populates="grades")

    __table_args__ = (
        Index("uq_grade_enrollment_component", "enrollment_id", "component_id", unique=True),
        CheckConstraint("score >= 0", name="ck_grade_score"),
    )


class FinalGrade(Base):
    """Derived at publish time; never authored directly"""
    __tablename__ = "final_grades"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    enrollment_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("enrollments.id", ondelete="CASCADE"), unique=True, nullable=False)
    letter_grade: Mapped[str] = mapped_column(String(4), nullable=False)
    grade_point: Mapped[float] = mapped_column(Float, nullable=False)
    total_score: Mapped[float] = mapped_column(Float, nullable=False)  # weighted percentage
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")
    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    enrollment: Mapped["Enrollment"] = relationship("Enrollment", back_populates="final_grade")

    __table_args__ = (
        CheckConstraint("status IN ('DRAFT','PUBLISHED')", name="ck_final_grade_status"),
    )


class GradeScale(Base):
    """Percentage band -> letter grade and grade points"""
    __tablename__ = "grade_scales"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    letter_grade: Mapped[str] = mapped_column(String(4), unique=True, nullable=False)
    min_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    gpa_points: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        CheckConstraint("min_percentage >= 0 AND min_percentage <= 100", name="ck_grade_scale_min"),
        CheckConstraint("gpa_points >= 0 AND gpa_points <= 4", name="ck_grade_scale_points"),
    )
