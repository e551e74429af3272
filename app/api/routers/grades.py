# app/api/routers/grades.py - Grade components, scores, publication, GPA and transcripts
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from uuid import UUID
import logging

from app.core.db import get_db
from app.core.permissions import Permission
from app.api.deps.auth import (
    get_current_user,
    require_permission,
    require_any_permission,
    ensure_section_access,
    ensure_student_access,
    resolve_student_id,
)
from app.models.enrollment import Enrollment
from app.models.grading import GradeComponent
from app.schemas.grading import (
    GPACalculation,
    GradeComponentCreate,
    GradeComponentOut,
    GradeComponentUpdate,
    GradeOut,
    GradeOverviewEntry,
    GradeRecord,
    GradeSheetOut,
    PublishResult,
    TranscriptOut,
)
from app.services.grading_service import GradingService

logger = logging.getLogger(__name__)
router = APIRouter()

_can_grade = require_any_permission(Permission.GRADES_CREATE, Permission.GRADES_UPDATE)

def _ensure_owner_of(db: Session, ctx: Dict[str, Any], model, obj_id: UUID) -> None:
    """Section access check through a component or enrollment; missing rows fall through to a 404"""
    obj = db.get(model, obj_id)
    if obj is not None:
        ensure_section_access(db, ctx, obj.section_id)

# Components

@router.post("/components", response_model=GradeComponentOut, status_code=status.HTTP_201_CREATED)
async def create_component(
    payload: GradeComponentCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.GRADES_CREATE)),
    db: Session = Depends(get_db)
):
    ensure_section_access(db, ctx, payload.section_id)
    return GradingService(db).create_component(
        payload.section_id, payload.name, payload.weight, payload.max_score
    )

@router.get("/components", response_model=List[GradeComponentOut])
async def list_components(
    section_id: UUID,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return GradingService(db).list_components(section_id)

@router.patch("/components/{component_id}", response_model=GradeComponentOut)
async def update_component(
    component_id: UUID,
    payload: GradeComponentUpdate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.GRADES_UPDATE)),
    db: Session = Depends(get_db)
):
    _ensure_owner_of(db, ctx, GradeComponent, component_id)
    return GradingService(db).update_component(component_id, **payload.model_dump(exclude_unset=True))

@router.delete("/components/{component_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_component(
    component_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.GRADES_UPDATE)),
    db: Session = Depends(get_db)
):
    _ensure_owner_of(db, ctx, GradeComponent, component_id)
    GradingService(db).delete_component(component_id)

# Scores

@router.post("/", response_model=GradeOut)
async def record_grade(
    payload: GradeRecord,
    ctx: Dict[str, Any] = Depends(_can_grade),
    db: Session = Depends(get_db)
):
    """Insert or overwrite one component score"""
    _ensure_owner_of(db, ctx, Enrollment, payload.enrollment_id)
    return GradingService(db).record_grade(payload.enrollment_id, payload.component_id, payload.score)

@router.get("/enrollments/{enrollment_id}", response_model=GradeSheetOut)
async def get_grade_sheet(
    enrollment_id: UUID,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    sheet = GradingService(db).get_student_grades(enrollment_id)
    ensure_student_access(db, ctx, db.get(Enrollment, enrollment_id).student_id)
    return sheet

@router.post("/sections/{section_id}/publish", response_model=PublishResult)
async def publish_final_grades(
    section_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.GRADES_PUBLISH)),
    db: Session = Depends(get_db)
):
    ensure_section_access(db, ctx, section_id)
    result = GradingService(db).publish_final_grades(section_id)
    logger.info(f"Section {section_id} published by {ctx['user'].email}")
    return result

# GPA and transcripts

@router.post("/gpa/calculate", response_model=GPACalculation)
async def calculate_gpa(
    student_id: UUID,
    term_id: UUID,
    ctx: Dict[str, Any] = Depends(require_any_permission(
        Permission.GRADES_VIEW_ALL, Permission.GRADES_PUBLISH
    )),
    db: Session = Depends(get_db)
):
    return GradingService(db).calculate_student_gpa(student_id, term_id)

@router.get("/transcript", response_model=TranscriptOut)
async def get_transcript(
    student_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    student_id = resolve_student_id(db, ctx, student_id)
    return GradingService(db).get_student_transcript(student_id)

@router.get("/overview", response_model=List[GradeOverviewEntry])
async def get_grade_overview(
    student_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    student_id = resolve_student_id(db, ctx, student_id)
    return GradingService(db).get_student_grade_overview(student_id)
