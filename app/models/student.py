# app/models/student.py
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class Student(Base):
    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True)
    student_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name_en: Mapped[str] = mapped_column(String(128), nullable=False)
    name_ar: Mapped[str | None] = mapped_column(String(128))
    batch_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("batches.id", ondelete="RESTRICT"), nullable=False, index=True)
    department_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ACTIVE")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    batch: Mapped["Batch"] = relationship("Batch", back_populates="students")
    department: Mapped["Department | None"] = relationship("Department", back_populates="students")
    enrollments: Mapped[list["Enrollment"]] = relationship("Enrollment", back_populates="student", cascade="all, delete-orphan")
    cumulative_gpa: Mapped["CumulativeGPA | None"] = relationship("CumulativeGPA", back_populates="student", uselist=False, cascade="all, delete-orphan")
    term_gpas: Mapped[list["TermGPA"]] = relationship("TermGPA", back_populates="student", cascade="all, delete-orphan")
    department_application: Mapped["DepartmentApplication | None"] = relationship(
        "DepartmentApplication", back_populates="student", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("status IN ('ACTIVE','SUSPENDED','GRADUATED','WITHDRAWN')", name="ck_student_status"),
    )
