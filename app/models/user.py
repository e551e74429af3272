# app/models/user.py - User accounts and their single system role
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.models.base import Base
from app.core.permissions import permission_checker
import enum

class UserRole(str, enum.Enum):
    """System-wide user roles"""
    SUPER_ADMIN = "SUPER_ADMIN"  # Everything
    ADMIN = "ADMIN"              # Registrar staff
    FACULTY = "FACULTY"          # Teaches and grades sections
    TA = "TA"                    # Assists faculty with grading and attendance
    STUDENT = "STUDENT"          # Registers and views own records

class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=UserRole.STUDENT.value)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('SUPER_ADMIN','ADMIN','FACULTY','TA','STUDENT')", name="ck_user_role"),
    )

    def has_role(self, role: str) -> bool:
        """Check if user has a specific role"""
        return self.role == role

    def has_any_role(self, roles: list[str]) -> bool:
        """Check if user has any of the specified roles"""
        return self.role in roles

    def is_admin(self) -> bool:
        """Check if user has admin privileges"""
        return self.has_any_role(["SUPER_ADMIN", "ADMIN"])

    def can(self, permission: str) -> bool:
        """Check the role table for a permission"""
        return permission_checker.has_permission(self.role, permission)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
