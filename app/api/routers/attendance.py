# app/api/routers/attendance.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from uuid import UUID
from datetime import date

from app.core.db import get_db
from app.core.permissions import Permission
from app.api.deps.auth import require_permission, ensure_section_access, ensure_student_access
from app.models.attendance import Attendance
from app.models.enrollment import Enrollment
from app.schemas.attendance import (
    AttendanceCreate,
    AttendanceOut,
    AttendanceStats,
    AttendanceUpdate,
    SectionAttendanceOut,
)
from app.services.attendance_service import AttendanceService

router = APIRouter()

def _ensure_teaches_enrollment(db: Session, ctx: Dict[str, Any], enrollment_id: UUID) -> None:
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is not None:
        ensure_section_access(db, ctx, enrollment.section_id)

@router.post("/", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    payload: AttendanceCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.ATTENDANCE_MANAGE)),
    db: Session = Depends(get_db)
):
    _ensure_teaches_enrollment(db, ctx, payload.enrollment_id)
    return AttendanceService(db).mark_attendance(
        payload.enrollment_id, payload.session_date, payload.status, payload.excuse
    )

@router.patch("/{attendance_id}", response_model=AttendanceOut)
async def update_attendance(
    attendance_id: UUID,
    payload: AttendanceUpdate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.ATTENDANCE_MANAGE)),
    db: Session = Depends(get_db)
):
    record = db.get(Attendance, attendance_id)
    if record is not None:
        _ensure_teaches_enrollment(db, ctx, record.enrollment_id)
    return AttendanceService(db).update_attendance(attendance_id, payload.status, payload.excuse)

@router.delete("/{attendance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(
    attendance_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.ATTENDANCE_MANAGE)),
    db: Session = Depends(get_db)
):
    record = db.get(Attendance, attendance_id)
    if record is not None:
        _ensure_teaches_enrollment(db, ctx, record.enrollment_id)
    AttendanceService(db).delete_attendance(attendance_id)

@router.get("/enrollments/{enrollment_id}/stats", response_model=AttendanceStats)
async def get_attendance_stats(
    enrollment_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.ATTENDANCE_VIEW)),
    db: Session = Depends(get_db)
):
    stats = AttendanceService(db).get_attendance_stats(enrollment_id)
    ensure_student_access(db, ctx, db.get(Enrollment, enrollment_id).student_id)
    return stats

@router.get("/sections/{section_id}", response_model=SectionAttendanceOut)
async def get_section_attendance(
    section_id: UUID,
    session_date: Optional[date] = None,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.ATTENDANCE_MANAGE)),
    db: Session = Depends(get_db)
):
    ensure_section_access(db, ctx, section_id)
    return AttendanceService(db).get_section_attendance(section_id, session_date)
