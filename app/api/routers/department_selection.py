# app/api/routers/department_selection.py - Department eligibility and applications
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from uuid import UUID

from app.core.db import get_db
from app.core.permissions import Permission
from app.api.deps.auth import get_current_user, require_permission, resolve_student_id
from app.schemas.department_selection import (
    ApplicationDecision,
    ApplicationStatistics,
    DepartmentApplicationCreate,
    DepartmentApplicationOut,
    DepartmentEligibility,
    StudentEligibilityStatus,
)
from app.services.department_selection_service import DepartmentSelectionService

router = APIRouter()

@router.get("/departments", response_model=List[DepartmentEligibility])
async def get_available_departments(
    student_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    student_id = resolve_student_id(db, ctx, student_id)
    return DepartmentSelectionService(db).get_available_departments(student_id)

@router.get("/eligibility", response_model=StudentEligibilityStatus)
async def get_eligibility(
    student_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    student_id = resolve_student_id(db, ctx, student_id)
    return DepartmentSelectionService(db).get_student_eligibility(student_id)

@router.post("/applications", response_model=DepartmentApplicationOut, status_code=status.HTTP_201_CREATED)
async def apply_to_department(
    payload: DepartmentApplicationCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SPECIALIZATION_SELECT)),
    db: Session = Depends(get_db)
):
    student_id = resolve_student_id(db, ctx, payload.student_id)
    return DepartmentSelectionService(db).apply_to_department(
        student_id, payload.department_id, payload.statement
    )

@router.post("/applications/{application_id}/withdraw", response_model=DepartmentApplicationOut)
async def withdraw_application(
    application_id: UUID,
    student_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SPECIALIZATION_SELECT)),
    db: Session = Depends(get_db)
):
    student_id = resolve_student_id(db, ctx, student_id)
    return DepartmentSelectionService(db).withdraw_application(student_id, application_id)

@router.get("/applications", response_model=List[DepartmentApplicationOut])
async def list_applications(
    status: Optional[str] = None,
    department_id: Optional[UUID] = None,
    batch_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SPECIALIZATION_ASSIGN)),
    db: Session = Depends(get_db)
):
    return DepartmentSelectionService(db).list_applications(
        status=status, department_id=department_id, batch_id=batch_id
    )

@router.post("/applications/{application_id}/process", response_model=DepartmentApplicationOut)
async def process_application(
    application_id: UUID,
    payload: ApplicationDecision,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SPECIALIZATION_ASSIGN)),
    db: Session = Depends(get_db)
):
    return DepartmentSelectionService(db).process_application(
        application_id, payload.status, ctx["user"].id, payload.rejection_reason
    )

@router.get("/statistics", response_model=ApplicationStatistics)
async def get_statistics(
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SPECIALIZATION_ASSIGN)),
    db: Session = Depends(get_db)
):
    return DepartmentSelectionService(db).get_statistics()
