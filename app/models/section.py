# app/models/section.py - Course offerings within a term, their faculty and weekly slots
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class FacultyMember(Base):
    __tablename__ = "faculty"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True)
    department_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    name_en: Mapped[str] = mapped_column(String(128), nullable=False)
    name_ar: Mapped[str | None] = mapped_column(String(128))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    sections: Mapped[list["Section"]] = relationship("Section", back_populates="faculty")


class Section(Base):
    __tablename__ = "sections"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False, index=True)
    term_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("academic_terms.id", ondelete="RESTRICT"), nullable=False, index=True)
    faculty_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True, index=True)
    code: Mapped[str] = mapped_column(String(16), nullable=False)  # "01"
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    course: Mapped["Course"] = relationship("Course")
    term: Mapped["AcademicTerm"] = relationship("AcademicTerm", back_populates="sections")
    faculty: Mapped["FacultyMember | None"] = relationship("FacultyMember", back_populates="sections")
    schedules: Mapped[list["Schedule"]] = relationship(
        "Schedule",
        back_populates="section",
        cascade="all, delete-orphan"
    )
    enrollments: Mapped[list["Enrollment"]] = relationship("Enrollment", back_populates="section")
    grade_components: Mapped[list["GradeComponent"]] = relationship(
        "GradeComponent",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="GradeComponent.created_at"
    )

    __table_args__ = (
        Index("uq_section_code_per_course_term", "course_id", "term_id", "code", unique=True),
        CheckConstraint("capacity > 0", name="ck_section_capacity"),
    )


class Schedule(Base):
    """One weekly meeting slot; times are zero-padded "HH:MM" strings"""
    __tablename__ = "schedules"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    section_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    day: Mapped[int] = mapped_column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    room: Mapped[str | None] = mapped_column(String(32))

    section: Mapped["Section"] = relationship("Section", back_populates="schedules")

    __table_args__ = (
        CheckConstraint("day >= 0 AND day <= 6", name="ck_schedule_day"),
        CheckConstraint("start_time < end_time", name="ck_schedule_times"),
    )
