# app/models/academic.py - Batches (cohorts) and their academic terms
from __future__ import annotations
import uuid
from datetime import date, datetime
from sqlalchemy import (
    String, Integer, ForeignKey, Date, DateTime, Index, CheckConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class Batch(Base):
    __tablename__ = "batches"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(64), nullable=False)  # "Batch 2025"
    year: Mapped[int] = mapped_column(Integer, nullable=False)  # admission year
    # NULL until the cohort specialises
    department_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    curriculum_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("curricula.id", ondelete="SET NULL"), nullable=True)

    # Credit-load policy per term
    min_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    max_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=18)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    terms: Mapped[list["AcademicTerm"]] = relationship("AcademicTerm", back_populates="batch", cascade="all, delete-orphan")
    students: Mapped[list["Student"]] = relationship("Student", back_populates="batch")
    department: Mapped["Department | None"] = relationship("Department")
    curriculum: Mapped["Curriculum | None"] = relationship("Curriculum")

    __table_args__ = (
        Index("uq_batch_name_year", "name", "year", unique=True),
        CheckConstraint("min_credits >= 0 AND max_credits >= min_credits", name="ck_batch_credit_limits"),
    )


class AcademicTerm(Base):
    __tablename__ = "academic_terms"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("batches.id", ondelete="CASCADE"),
        index=True,
        nullable=False
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)  # "Fall 2025"
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="FALL")  # FALL|SPRING|SUMMER
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="INACTIVE")  # ACTIVE|INACTIVE|COMPLETED
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    registration_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    registration_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    batch: Mapped["Batch"] = relationship("Batch", back_populates="terms")
    sections: Mapped[list["Section"]] = relationship("Section", back_populates="term")

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"

    def registration_open(self, now: datetime) -> bool:
        return self.registration_start <= now <= self.registration_end

    __table_args__ = (
        CheckConstraint("status IN ('ACTIVE','INACTIVE','COMPLETED')", name="ck_academic_term_status"),
        CheckConstraint("type IN ('FALL','SPRING','SUMMER')", name="ck_academic_term_type"),
        CheckConstraint("start_date <= end_date", name="ck_academic_term_dates"),
        CheckConstraint("registration_start <= registration_end", name="ck_academic_term_registration"),
    )
