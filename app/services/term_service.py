# app/services/term_service.py - Academic terms within a batch
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from app.core.errors import NotFoundError, ConstraintViolationError, InvalidStateError
from app.models.academic import Batch, AcademicTerm
from app.models.section import Section

logger = logging.getLogger(__name__)

TERM_STATUSES = ("ACTIVE", "INACTIVE", "COMPLETED")
TERM_TYPES = ("FALL", "SPRING", "SUMMER")


class TermService:
    """
    Terms in a batch never overlap in [start_date, end_date], and at most
    one of them is ACTIVE.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_term(self, term_id: UUID) -> AcademicTerm:
        term = self.db.get(AcademicTerm, term_id)
        if not term:
            raise NotFoundError("Term", term_id)
        return term

    def list_terms(self, batch_id: Optional[UUID] = None) -> List[AcademicTerm]:
        query = select(AcademicTerm)
        if batch_id:
            query = query.where(AcademicTerm.batch_id == batch_id)
        return list(self.db.execute(query.order_by(AcademicTerm.start_date)).scalars().all())

    def _check_values(self, values: Dict[str, Any]) -> None:
        if values["status"] not in TERM_STATUSES:
            raise ConstraintViolationError(f"Status must be one of {list(TERM_STATUSES)}")
        if values["type"] not in TERM_TYPES:
            raise ConstraintViolationError(f"Type must be one of {list(TERM_TYPES)}")
        if values["start_date"] > values["end_date"]:
            raise ConstraintViolationError("Start date must not be after end date")
        if values["registration_start"] > values["registration_end"]:
            raise ConstraintViolationError("Registration start must not be after registration end")

    def _check_overlap(self, batch_id: UUID, start: date, end: date, exclude_id: Optional[UUID] = None) -> None:
        query = select(AcademicTerm).where(
            AcademicTerm.batch_id == batch_id,
            AcademicTerm.start_date <= end,
            AcademicTerm.end_date >= start
        )
        if exclude_id:
            query = query.where(AcademicTerm.id != exclude_id)

        clash = self.db.execute(query.limit(1)).scalar_one_or_none()
        if clash:
            raise ConstraintViolationError(f"Term dates overlap with {clash.name}")

    def _deactivate_siblings(self, term: AcademicTerm) -> None:
        siblings = self.db.execute(
            select(AcademicTerm).where(
                AcademicTerm.batch_id == term.batch_id,
                AcademicTerm.status == "ACTIVE",
                AcademicTerm.id != term.id
            )
        ).scalars().all()
        for sibling in siblings:
            sibling.status = "INACTIVE"
            logger.info(f"Term deactivated: {sibling.name} (batch {term.batch_id})")

    def create_term(
        self,
        batch_id: UUID,
        name: str,
        start_date: date,
        end_date: date,
        registration_start: datetime,
        registration_end: datetime,
        type: str = "FALL",
        status: str = "INACTIVE"
    ) -> AcademicTerm:
        if not self.db.get(Batch, batch_id):
            raise NotFoundError("Batch", batch_id)

        values = {
            "type": type,
            "status": status,
            "start_date": start_date,
            "end_date": end_date,
            "registration_start": registration_start,
            "registration_end": registration_end,
        }
        self._check_values(values)
        self._check_overlap(batch_id, start_date, end_date)

        term = AcademicTerm(batch_id=batch_id, name=name.strip(), **values)
        self.db.add(term)
        self.db.flush()

        if term.status == "ACTIVE":
            self._deactivate_siblings(term)

        self.db.commit()
        self.db.refresh(term)

        logger.info(f"Term created: {term.name} ({term.status}) in batch {batch_id}")
        return term

    def update_term(self, term_id: UUID, **changes) -> AcademicTerm:
        """Apply the given non-None fields after re-checking ranges and overlap"""
        term = self.get_term(term_id)

        updates = {k: v for k, v in changes.items() if v is not None}
        unknown = set(updates) - {"name", "type", "status", "start_date", "end_date", "registration_start", "registration_end"}
        if unknown:
            raise ConstraintViolationError(f"Unknown term fields: {sorted(unknown)}")

        values = {
            "type": updates.get("type", term.type),
            "status": updates.get("status", term.status),
            "start_date": updates.get("start_date", term.start_date),
            "end_date": updates.get("end_date", term.end_date),
            "registration_start": updates.get("registration_start", term.registration_start),
            "registration_end": updates.get("registration_end", term.registration_end),
        }
        self._check_values(values)

        if "start_date" in updates or "end_date" in updates:
            self._check_overlap(term.batch_id, values["start_date"], values["end_date"], exclude_id=term.id)

        for key, value in values.items():
            setattr(term, key, value)
        if "name" in updates:
            term.name = updates["name"].strip()

        if term.status == "ACTIVE":
            self._deactivate_siblings(term)

        self.db.commit()
        self.db.refresh(term)

        logger.info(f"Term updated: {term.name} fields={sorted(updates)}")
        return term

    def activate_term(self, term_id: UUID) -> AcademicTerm:
        term = self.get_term(term_id)
        if term.status == "COMPLETED":
            raise InvalidStateError("Cannot activate a completed term")
        return self.update_term(term_id, status="ACTIVE")

    def delete_term(self, term_id: UUID) -> None:
        term = self.get_term(term_id)

        section_count = self.db.execute(
            select(func.count(Section.id)).where(Section.term_id == term.id)
        ).scalar_one()
        if section_count:
            raise ConstraintViolationError(f"Cannot delete term with {section_count} section(s)")

        self.db.delete(term)
        self.db.commit()
        logger.info(f"Term deleted: {term.name}")
