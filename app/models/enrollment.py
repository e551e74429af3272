# app/models/enrollment.py - Student registrations against sections and their status history
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, ForeignKey, DateTime, CheckConstraint, Index, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

ENROLLMENT_STATUSES = ("ENROLLED", "DROPPED", "WITHDRAWN", "COMPLETED")
# A student holds at most one of these per section
ACTIVE_ENROLLMENT_STATUSES = ("ENROLLED", "COMPLETED")

_ACTIVE_WHERE = text("status IN ('ENROLLED','COMPLETED')")

class Enrollment(Base):
    """
    Enrollment links a student to one section.

    Lifecycle: ENROLLED -> DROPPED | WITHDRAWN | COMPLETED. Grades, attendance
    and the final grade hang off the enrollment and go with it.
    """
    __tablename__ = "enrollments"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ENROLLED")
    enrolled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    dropped_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    student: Mapped["Student"] = relationship("Student", back_populates="enrollments")
    section: Mapped["Section"] = relationship("Section", back_populates="enrollments")
    grades: Mapped[list["Grade"]] = relationship("Grade", back_populates="enrollment", cascade="all, delete-orphan")
    final_grade: Mapped["FinalGrade | None"] = relationship(
        "FinalGrade", back_populates="enrollment", uselist=False, cascade="all, delete-orphan"
    )
    attendances: Mapped[list["Attendance"]] = relationship("Attendance", back_populates="enrollment", cascade="all, delete-orphan")
    status_events: Mapped[list["EnrollmentStatusEvent"]] = relationship(
        "EnrollmentStatusEvent",
        back_populates="enrollment",
        cascade="all, delete-orphan",
        order_by="EnrollmentStatusEvent.created_at"
    )

    def transition(self, new_status: str, reason: str | None = None, at: datetime | None = None) -> "EnrollmentStatusEvent":
        """Change status and record the event"""
        event = EnrollmentStatusEvent(
            prev_status=self.status,
            new_status=new_status,
            reason=reason,
            created_at=at or datetime.utcnow(),
        )
        self.status = new_status
        self.status_events.append(event)
        return event

    __table_args__ = (
        # One ENROLLED/COMPLETED enrollment per student per section
        Index(
            "uq_active_enrollment_student_section",
            "student_id", "section_id",
            unique=True,
            postgresql_where=_ACTIVE_WHERE,
            sqlite_where=_ACTIVE_WHERE,
        ),
        Index("ix_enrollments_section_status", "section_id", "status"),
        CheckConstraint("status IN ('ENROLLED','DROPPED','WITHDRAWN','COMPLETED')", name="ck_enrollment_status"),
    )


class EnrollmentStatusEvent(Base):
    __tablename__ = "enrollment_status_events"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    enrollment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("enrollments.id", ondelete="CASCADE"),
        index=True,
        nullable=False
    )
    prev_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    new_status: Mapped[str] = mapped_column(String(16), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(256), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    enrollment: Mapped["Enrollment"] = relationship("Enrollment", back_populates="status_events")

    __table_args__ = (
        CheckConstraint("new_status IN ('ENROLLED','DROPPED','WITHDRAWN','COMPLETED')", name="ck_enrollment_event_status"),
    )
