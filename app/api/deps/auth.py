# app/api/deps/auth.py - Bearer authentication and permission-based authorization
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from sqlalchemy import select
from app.core.db import get_db
from app.core.errors import ForbiddenError
from app.core.permissions import Permission, PermissionChecker, permission_checker
from app.core.security import decode_token
from app.models.section import FacultyMember, Section
from app.models.student import Student
from app.models.user import User
from uuid import UUID
from typing import Dict, Any

security = HTTPBearer()

def get_permission_checker() -> PermissionChecker:
    """Dependency seam for the role table; override in tests if needed"""
    return permission_checker

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Decode JWT and return user + claims.
    Returns: {"user": User, "claims": dict}
    """
    claims = decode_token(credentials.credentials)

    user_id_str = claims.get("sub")
    if not user_id_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing user ID"
        )

    try:
        user_uuid = UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    user = db.execute(
        select(User).where(User.id == user_uuid)
    ).scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account deactivated"
        )

    return {
        "user": user,
        "claims": claims
    }

def require_permission(permission: str):
    """
    Create a dependency that requires a permission from the role table.
    Usage: @router.post("/", dependencies=[Depends(require_permission(Permission.GRADES_PUBLISH))])
    """
    def permission_dependency(
        ctx: Dict[str, Any] = Depends(get_current_user),
        checker: PermissionChecker = Depends(get_permission_checker)
    ) -> Dict[str, Any]:
        checker.require(ctx["user"].role, permission)
        return ctx
    return permission_dependency

def require_any_permission(*permissions: str):
    """Like require_permission, passing when the role holds any of ``permissions``"""
    def permission_dependency(
        ctx: Dict[str, Any] = Depends(get_current_user),
        checker: PermissionChecker = Depends(get_permission_checker)
    ) -> Dict[str, Any]:
        role = ctx["user"].role
        if not any(checker.has_permission(role, p) for p in permissions):
            raise ForbiddenError("Insufficient permissions")
        return ctx
    return permission_dependency

def can_override(ctx: Dict[str, Any], checker: PermissionChecker = permission_checker) -> bool:
    """Whether the caller may bypass registration windows"""
    return checker.has_permission(ctx["user"].role, Permission.REGISTRATION_OVERRIDE)

def ensure_student_access(db: Session, ctx: Dict[str, Any], student_id: UUID) -> None:
    """
    Students may only act on their own record; staff roles pass through.

    Raises:
        ForbiddenError: A STUDENT caller targeting someone else
    """
    user = ctx["user"]
    if not user.has_role("STUDENT"):
        return

    own = db.execute(
        select(Student.id).where(Student.user_id == user.id)
    ).scalar_one_or_none()
    if own != student_id:
        raise ForbiddenError("Students can only access their own records")

def ensure_section_access(
    db: Session,
    ctx: Dict[str, Any],
    section_id: UUID,
    checker: PermissionChecker = permission_checker
) -> None:
    """
    Faculty and TAs may only act on sections they teach; roles with
    institution-wide grade access pass through.

    Raises:
        ForbiddenError: The caller does not teach the section
    """
    user = ctx["user"]
    if checker.has_permission(user.role, Permission.GRADES_VIEW_ALL):
        return

    section = db.get(Section, section_id)
    if section is None:
        return  # the service reports the missing section

    teacher = db.execute(
        select(FacultyMember.user_id).where(FacultyMember.id == section.faculty_id)
    ).scalar_one_or_none()
    if teacher is None or teacher != user.id:
        raise ForbiddenError("You can only manage sections you teach")

def resolve_student_id(db: Session, ctx: Dict[str, Any], student_id: UUID | None) -> UUID:
    """The explicit student id, or the caller's own student record"""
    if student_id is not None:
        ensure_student_access(db, ctx, student_id)
        return student_id

    own = db.execute(
        select(Student.id).where(Student.user_id == ctx["user"].id)
    ).scalar_one_or_none()
    if own is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="student_id is required"
        )
    return own

