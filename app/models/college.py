# app/models/college.py - Colleges and the departments students specialise into
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Float, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base

class College(Base):
    __tablename__ = "colleges"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    name_en: Mapped[str] = mapped_column(String(128), nullable=False)
    name_ar: Mapped[str | None] = mapped_column(String(128))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    departments: Mapped[list["Department"]] = relationship("Department", back_populates="college", cascade="all, delete-orphan")


class Department(Base):
    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    college_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("colleges.id", ondelete="CASCADE"), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    name_en: Mapped[str] = mapped_column(String(128), nullable=False)
    name_ar: Mapped[str | None] = mapped_column(String(128))

    # Department-selection policy
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    min_gpa: Mapped[float] = mapped_column(Float, nullable=False, default=2.0)
    selection_year: Mapped[int] = mapped_column(Integer, nullable=False, default=2)  # study year applications open

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    college: Mapped["College"] = relationship("College", back_populates="departments")
    students: Mapped[list["Student"]] = relationship("Student", back_populates="department")

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="ck_department_capacity"),
        CheckConstraint("min_gpa >= 0 AND min_gpa <= 4", name="ck_department_min_gpa"),
    )
