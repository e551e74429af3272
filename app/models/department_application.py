# app/models/department_application.py
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Float, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class DepartmentApplication(Base):
    """A student's single request to join a department; resubmission reuses the row"""
    __tablename__ = "department_applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), unique=True, nullable=False)
    department_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_gpa: Mapped[float] = mapped_column(Float, nullable=False)  # CGPA snapshot at submission
    statement: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")
    rejection_reason: Mapped[str | None] = mapped_column(String(512))

    submitted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime)
    processed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    student: Mapped["Student"] = relationship("Student", back_populates="department_application")
    department: Mapped["Department"] = relationship("Department")

    __table_args__ = (
        CheckConstraint("status IN ('PENDING','APPROVED','REJECTED','WITHDRAWN')", name="ck_department_application_status"),
    )
