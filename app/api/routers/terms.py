# app/api/routers/terms.py - Academic term management
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from uuid import UUID

from app.core.db import get_db
from app.core.permissions import Permission
from app.api.deps.auth import get_current_user, require_permission
from app.schemas.academic import AcademicTermCreate, AcademicTermOut, AcademicTermUpdate
from app.services.term_service import TermService

router = APIRouter()

@router.get("/", response_model=List[AcademicTermOut])
async def list_terms(
    batch_id: Optional[UUID] = None,
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return TermService(db).list_terms(batch_id)

@router.post("/", response_model=AcademicTermOut, status_code=status.HTTP_201_CREATED)
async def create_term(
    payload: AcademicTermCreate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.TERMS_MANAGE)),
    db: Session = Depends(get_db)
):
    return TermService(db).create_term(**payload.model_dump())

@router.patch("/{term_id}", response_model=AcademicTermOut)
async def update_term(
    term_id: UUID,
    payload: AcademicTermUpdate,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.TERMS_MANAGE)),
    db: Session = Depends(get_db)
):
    return TermService(db).update_term(term_id, **payload.model_dump(exclude_unset=True))

@router.post("/{term_id}/activate", response_model=AcademicTermOut)
async def activate_term(
    term_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.TERMS_MANAGE)),
    db: Session = Depends(get_db)
):
    """Make this the batch's only ACTIVE term"""
    return TermService(db).activate_term(term_id)

@router.delete("/{term_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_term(
    term_id: UUID,
    ctx: Dict[str, Any] = Depends(require_permission(Permission.TERMS_MANAGE)),
    db: Session = Depends(get_db)
):
    TermService(db).delete_term(term_id)
