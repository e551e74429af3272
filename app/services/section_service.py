# app/services/section_service.py - Section offerings and their weekly slots
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from typing import List, Optional
from uuid import UUID
import logging

from app.core.errors import NotFoundError, ConstraintViolationError, InvalidStateError
from app.models.academic import AcademicTerm
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.section import FacultyMember, Section, Schedule
from app.services.schedule import is_valid_time, slots_conflict, sort_slots

logger = logging.getLogger(__name__)


class SectionService:
    def __init__(self, db: Session):
        self.db = db

    def get_section(self, section_id: UUID) -> Section:
        section = self.db.get(Section, section_id)
        if not section:
            raise NotFoundError("Section", section_id)
        return section

    def list_sections(self, term_id: Optional[UUID] = None, course_id: Optional[UUID] = None) -> List[Section]:
        query = select(Section)
        if term_id:
            query = query.where(Section.term_id == term_id)
        if course_id:
            query = query.where(Section.course_id == course_id)
        return list(self.db.execute(query.order_by(Section.code)).scalars().all())

    def create_section(
        self,
        course_id: UUID,
        term_id: UUID,
        code: str,
        capacity: int,
        faculty_id: Optional[UUID] = None
    ) -> Section:
        if not self.db.get(Course, course_id):
            raise NotFoundError("Course", course_id)
        if not self.db.get(AcademicTerm, term_id):
            raise NotFoundError("Term", term_id)
        if faculty_id and not self.db.get(FacultyMember, faculty_id):
            raise NotFoundError("Faculty member", faculty_id)

        if capacity <= 0:
            raise ConstraintViolationError("Capacity must be positive")

        code = code.strip()
        duplicate = self.db.execute(
            select(Section.id).where(
                Section.course_id == course_id,
                Section.term_id == term_id,
                Section.code == code
            )
        ).first()
        if duplicate:
            raise ConstraintViolationError(f"Section {code} already exists for this course and term")

        section = Section(
            course_id=course_id,
            term_id=term_id,
            faculty_id=faculty_id,
            code=code,
            capacity=capacity,
        )
        self.db.add(section)
        self.db.commit()
        self.db.refresh(section)

        logger.info(f"Section created: {section.course.code}-{code} capacity {capacity}")
        return section

    def update_capacity(self, section_id: UUID, capacity: int) -> Section:
        section = self.get_section(section_id)
        if capacity <= 0:
            raise ConstraintViolationError("Capacity must be positive")

        enrolled = self.db.execute(
            select(func.count(Enrollment.id)).where(
                Enrollment.section_id == section.id,
                Enrollment.status == "ENROLLED"
            )
        ).scalar_one()
        if capacity < enrolled:
            raise ConstraintViolationError(f"Capacity cannot be below current enrollment ({enrolled})")

        section.capacity = capacity
        self.db.commit()
        self.db.refresh(section)
        return section

    def add_schedule(
        self,
        section_id: UUID,
        day: int,
        start_time: str,
        end_time: str,
        room: Optional[str] = None
    ) -> Schedule:
        """
        Add a weekly slot. Slots of the same section may not overlap each other.

        Raises:
            ConstraintViolationError: Day outside 0-6, malformed time, start not
                before end, or overlap with another slot of this section
        """
        section = self.get_section(section_id)

        if day < 0 or day > 6:
            raise ConstraintViolationError("Day must be between 0 (Sunday) and 6 (Saturday)")
        if not is_valid_time(start_time) or not is_valid_time(end_time):
            raise ConstraintViolationError("Times must be zero-padded HH:MM")
        if start_time >= end_time:
            raise ConstraintViolationError("Start time must be before end time")

        slot = Schedule(day=day, start_time=start_time, end_time=end_time, room=room)
        for existing in section.schedules:
            if slots_conflict(slot, existing):
                raise ConstraintViolationError(
                    f"Slot overlaps {existing.start_time}-{existing.end_time} on day {existing.day}"
                )

        section.schedules.append(slot)
        self.db.commit()
        self.db.refresh(slot)

        logger.info(f"Schedule added to section {section.id}: day {day} {start_time}-{end_time}")
        return slot

    def list_schedules(self, section_id: UUID) -> List[Schedule]:
        return sort_slots(self.get_section(section_id).schedules)

    def delete_schedule(self, schedule_id: UUID) -> None:
        slot = self.db.get(Schedule, schedule_id)
        if not slot:
            raise NotFoundError("Schedule", schedule_id)

        slot.section.schedules.remove(slot)
        self.db.commit()
        logger.info(f"Schedule deleted: {schedule_id}")

    def delete_section(self, section_id: UUID) -> None:
        section = self.get_section(section_id)

        enrolled = self.db.execute(
            select(func.count(Enrollment.id)).where(
                Enrollment.section_id == section.id,
                Enrollment.status.in_(["ENROLLED", "COMPLETED"])
            )
        ).scalar_one()
        if enrolled:
            raise InvalidStateError(f"Cannot delete section with {enrolled} active enrollment(s)")

        # Dropped/withdrawn history goes with the section
        history = self.db.execute(
            select(Enrollment).where(Enrollment.section_id == section.id)
        ).scalars().all()
        for enrollment in history:
            self.db.delete(enrollment)
        self.db.delete(section)
        self.db.commit()
        logger.info(f"Section deleted: {section_id}")
