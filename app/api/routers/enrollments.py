# app/api/routers/enrollments.py - Registration, drop/withdraw and schedule endpoints
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from uuid import UUID
import logging

from app.core.db import get_db
from app.core.errors import ForbiddenError
from app.core.permissions import Permission
from app.api.deps.auth import (
    get_current_user,
    require_permission,
    require_any_permission,
    can_override,
    ensure_section_access,
    ensure_student_access,
    resolve_student_id,
)
from app.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentDrop,
    EnrollmentOut,
    EnrollmentStatusEventOut,
    EnrollmentValidationRequest,
    EnrollmentValidationResult,
    EnrollmentWithdraw,
    RosterEntryOut,
    StudentScheduleOut,
)
from app.services.enrollment_service import EnrollmentService

logger = logging.getLogger(__name__)
router = APIRouter()

def _check_override(ctx: Dict[str, Any], requested: bool) -> None:
    if requested and not can_override(ctx):
        raise ForbiddenError("Overriding registration rules requires registration.override")

@router.post("/validate", response_model=EnrollmentValidationResult)
async def validate_enrollment(
    payload: EnrollmentValidationRequest,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.REGISTRATION_ENROLL)),
    db: Session = Depends(get_db)
):
    """Dry-run every registration rule without enrolling"""
    ensure_student_access(db, ctx, payload.student_id)
    _check_override(ctx, payload.skip_time_check)
    return EnrollmentService(db).validate_enrollment(
        payload.student_id, payload.section_id, skip_time_check=payload.skip_time_check
    )

@router.post("/", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    payload: EnrollmentCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.REGISTRATION_ENROLL)),
    db: Session = Depends(get_db)
):
    """Enroll a student in a section"""
    ensure_student_access(db, ctx, payload.student_id)
    _check_override(ctx, payload.bypass_validation)

    enrollment = EnrollmentService(db).enroll_student(
        payload.student_id, payload.section_id, bypass_validation=payload.bypass_validation
    )
    logger.info(f"Enrollment {enrollment.id} created by {ctx['user'].email}")
    return enrollment

@router.get("/", response_model=List[EnrollmentOut])
async def list_enrollments(
    student_id: Optional[UUID] = None,
    section_id: Optional[UUID] = None,
    term_id: Optional[UUID] = None,
    status: Optional[str] = None,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.STUDENTS_VIEW_ALL)),
    db: Session = Depends(get_db)
):
    return EnrollmentService(db).list_enrollments(
        student_id=student_id, section_id=section_id, term_id=term_id, status=status
    )

@router.get("/schedule", response_model=StudentScheduleOut)
async def get_schedule(
    term_id: UUID,
    student_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """A student's ENROLLED sections and weekly slots for a term"""
    student_id = resolve_student_id(db, ctx, student_id)
    return EnrollmentService(db).get_student_schedule(student_id, term_id)

@router.get("/sections/{section_id}/roster", response_model=List[RosterEntryOut])
async def get_roster(
    section_id: UUID,
    ctx: Dict[str, Any] = Depends(require_any_permission(
        Permission.STUDENTS_VIEW_ALL, Permission.STUDENTS_VIEW_MY_COURSES
    )),
    db: Session = Depends(get_db)
):
    ensure_section_access(db, ctx, section_id)
    return EnrollmentService(db).get_section_roster(section_id)

@router.post("/{enrollment_id}/drop", response_model=EnrollmentOut)
async def drop_enrollment(
    enrollment_id: UUID,
    payload: EnrollmentDrop = EnrollmentDrop(),
    ctx: Dict[str, Any] = Depends(require_permission(Permission.REGISTRATION_DROP)),
    db: Session = Depends(get_db)
):
    """Drop an ENROLLED course while the registration window is open"""
    service = EnrollmentService(db)
    enrollment = service.get_enrollment(enrollment_id)
    ensure_student_access(db, ctx, enrollment.student_id)
    _check_override(ctx, payload.bypass_time_check)

    return service.drop_enrollment(
        enrollment_id, bypass_time_check=payload.bypass_time_check, reason=payload.reason
    )

@router.post("/{enrollment_id}/withdraw", response_model=EnrollmentOut)
async def withdraw_enrollment(
    enrollment_id: UUID,
    payload: EnrollmentWithdraw,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.REGISTRATION_OVERRIDE)),
    db: Session = Depends(get_db)
):
    """Administrative withdrawal after the drop window"""
    return EnrollmentService(db).withdraw_enrollment(enrollment_id, payload.reason)

@router.get("/{enrollment_id}/events", response_model=List[EnrollmentStatusEventOut])
async def get_status_events(
    enrollment_id: UUID,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    enrollment = EnrollmentService(db).get_enrollment(enrollment_id)
    ensure_student_access(db, ctx, enrollment.student_id)
    return enrollment.status_events
