# app/models/gpa.py - Materialised GPA aggregates, recomputed from completed enrollments
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Float, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class TermGPA(Base):
    __tablename__ = "term_gpas"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    term_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("academic_terms.id", ondelete="CASCADE"), nullable=False, index=True)
    gpa: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    credits_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credits_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    calculated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    student: Mapped["Student"] = relationship("Student", back_populates="term_gpas")
    term: Mapped["AcademicTerm"] = relationship("AcademicTerm")

    __table_args__ = (
        Index("uq_term_gpa_student_term", "student_id", "term_id", unique=True),
    )


class CumulativeGPA(Base):
    __tablename__ = "cumulative_gpas"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), unique=True, nullable=False)
    cgpa: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    academic_standing: Mapped[str] = mapped_column(String(24), nullable=False, default="GOOD_STANDING")

    calculated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    student: Mapped["Student"] = relationship("Student", back_populates="cumulative_gpa")

    __table_args__ = (
        CheckConstraint(
            "academic_standing IN ('GOOD_STANDING','ACADEMIC_WARNING','ACADEMIC_PROBATION')",
            name="ck_cumulative_gpa_standing"
        ),
    )
