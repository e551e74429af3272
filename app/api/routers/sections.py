# app/api/routers/sections.py - Section offerings and weekly schedule slots
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from uuid import UUID

from app.core.db import get_db
from app.core.permissions import Permission
from app.api.deps.auth import get_current_user, require_permission
from app.schemas.catalog import ScheduleCreate, ScheduleOut, SectionCreate, SectionOut
from app.services.section_service import SectionService

router = APIRouter()

@router.get("/", response_model=List[SectionOut])
async def list_sections(
    term_id: Optional[UUID] = None,
    course_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SectionService(db).list_sections(term_id=term_id, course_id=course_id)

@router.post("/", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
async def create_section(
    payload: SectionCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SECTIONS_MANAGE)),
    db: Session = Depends(get_db)
):
    return SectionService(db).create_section(
        payload.course_id, payload.term_id, payload.code, payload.capacity, payload.faculty_id
    )

@router.delete("/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_section(
    section_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SECTIONS_MANAGE)),
    db: Session = Depends(get_db)
):
    SectionService(db).delete_section(section_id)

@router.get("/{section_id}/schedules", response_model=List[ScheduleOut])
async def list_schedules(
    section_id: UUID,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SectionService(db).list_schedules(section_id)

@router.post("/{section_id}/schedules", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
async def add_schedule(
    section_id: UUID,
    payload: ScheduleCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SECTIONS_MANAGE)),
    db: Session = Depends(get_db)
):
    return SectionService(db).add_schedule(
        section_id, payload.day, payload.start_time, payload.end_time, payload.room
    )

@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SECTIONS_MANAGE)),
    db: Session = Depends(get_db)
):
    SectionService(db).delete_schedule(schedule_id)

@router.patch("/{section_id}/capacity", response_model=SectionOut)
async def update_capacity(
    section_id: UUID,
    capacity: int = Body(..., embed=True, gt=0),
    ctx: Dict[str, Any] = Depends(require_permission(Permission.SECTIONS_MANAGE)),
    db: Session = Depends(get_db)
):
    """Capacity may not drop below the number currently enrolled"""
    return SectionService(db).update_capacity(section_id, capacity)
