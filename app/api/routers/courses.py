# app/api/routers/courses.py - Prerequisite graph and curriculum placement
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any
from uuid import UUID

from app.core.db import get_db
from app.core.permissions import Permission
from app.api.deps.auth import get_current_user, require_permission
from app.schemas.catalog import (
    CurriculumCourseCreate,
    CurriculumCourseOut,
    CurriculumValidation,
    PrerequisiteCreate,
    PrerequisiteNode,
    PrerequisiteOut,
)
from app.services.catalog_service import CatalogService

router = APIRouter()

@router.post("/{course_id}/prerequisites", response_model=PrerequisiteOut, status_code=status.HTTP_201_CREATED)
async def add_prerequisite(
    course_id: UUID,
    payload: PrerequisiteCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.COURSES_UPDATE)),
    db: Session = Depends(get_db)
):
    return CatalogService(db).add_prerequisite(course_id, payload.prerequisite_id, payload.type)

@router.delete("/{course_id}/prerequisites/{prerequisite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_prerequisite(
    course_id: UUID,
    prerequisite_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.COURSES_UPDATE)),
    db: Session = Depends(get_db)
):
    CatalogService(db).remove_prerequisite(course_id, prerequisite_id)

@router.get("/{course_id}/prerequisites/tree", response_model=PrerequisiteNode)
async def get_prerequisite_tree(
    course_id: UUID,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return CatalogService(db).get_prerequisite_tree(course_id)

@router.post("/curricula/{curriculum_id}/courses", response_model=CurriculumCourseOut, status_code=status.HTTP_201_CREATED)
async def add_curriculum_course(
    curriculum_id: UUID,
    payload: CurriculumCourseCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.COURSES_UPDATE)),
    db: Session = Depends(get_db)
):
    return CatalogService(db).add_curriculum_course(
        curriculum_id, payload.course_id, payload.year, payload.semester, payload.is_required
    )

@router.get("/curricula/{curriculum_id}/validate", response_model=CurriculumValidation)
async def validate_curriculum(
    curriculum_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.COURSES_VIEW_ALL)),
    db: Session = Depends(get_db)
):
    return CatalogService(db).validate_curriculum(curriculum_id)
