# app/services/enrollment_service.py - Registration rules and enrollment lifecycle
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, func
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID
import logging

from app.core.errors import (
    NotFoundError,
    EnrollmentValidationError,
    InvalidStateError,
)
from app.models.enrollment import Enrollment
from app.models.section import Section
from app.models.student import Student
from app.models.course import Course
from app.models.academic import AcademicTerm
from app.schemas.enrollment import (
    EnrollmentValidationResult,
    ScheduleEntryOut,
    ScheduleSlotOut,
    StudentScheduleOut,
    RosterEntryOut,
)
from app.services.schedule import find_conflicts, sort_slots

logger = logging.getLogger(__name__)

SECTION_FULL = "Section is full"
ALREADY_ENROLLED = "Already enrolled in this section"


class EnrollmentService:
    """
    Decides whether a student may register for a section and applies the
    resulting state transitions.

    ``clock`` returns naive UTC datetimes, matching what the models store.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_enrollment(
        self,
        student_id: UUID,
        section_id: UUID,
        skip_time_check: bool = False
    ) -> EnrollmentValidationResult:
        """
        Run every registration rule and report all failures together.

        Read-only: safe to call for UI pre-checks.

        Args:
            student_id: Student UUID
            section_id: Section UUID
            skip_time_check: Ignore the registration window (admin override)

        Returns:
            EnrollmentValidationResult with ``valid`` and the error list
        """
        errors: List[str] = []

        student = self.db.get(Student, student_id)
        if not student:
            errors.append("Student not found")
            return EnrollmentValidationResult(valid=False, errors=errors)

        if student.status != "ACTIVE":
            errors.append("Student is not active")

        section = self.db.get(Section, section_id)
        if not section:
            errors.append("Section not found")
            return EnrollmentValidationResult(valid=False, errors=errors)

        course = section.course
        term = section.term

        # Department gating; courses without a department are open to all
        if course.department_id:
            if not student.department_id:
                errors.append(
                    "You must have a department assigned to register for department-specific courses"
                )
            elif student.department_id != course.department_id:
                errors.append(
                    f"This course is only available for students in the {course.department.name_en} department"
                )

        if self._has_active_enrollment(student.id, section.id):
            errors.append(ALREADY_ENROLLED)

        if not skip_time_check:
            now = self.clock()
            if now < term.registration_start:
                errors.append("Registration has not started yet")
            if now > term.registration_end:
                errors.append("Registration period has ended")

        if self.count_enrolled(section.id) >= section.capacity:
            errors.append(SECTION_FULL)

        held = self._held_enrollments(student.id, section)

        # Credit load for this term
        current_credits = sum(e.section.course.credits for e in held)
        max_credits = student.batch.max_credits
        if current_credits + course.credits > max_credits:
            errors.append(f"Exceeds maximum credits ({max_credits})")

        # Prerequisites: any COMPLETED enrollment in the prerequisite course counts
        for edge in course.prerequisites:
            if edge.type != "PREREQUISITE":
                continue
            if not self._has_completed_course(student.id, edge.prerequisite_id):
                required = edge.prerequisite
                errors.append(f"Missing prerequisite: {required.code} - {required.name_en}")

        # Weekly slot clashes with the rest of this term's schedule
        held_slots = [
            (e.section.course.code, slot)
            for e in held
            for slot in e.section.schedules
        ]
        for code, day in find_conflicts(section.schedules, held_slots):
            errors.append(f"Schedule conflict with {code} on day {day}")

        if errors:
            logger.info(
                f"Enrollment validation failed for student {student.student_code} "
                f"section {section.id}: {errors}"
            )

        return EnrollmentValidationResult(valid=not errors, errors=errors)

    def count_enrolled(self, section_id: UUID) -> int:
        return self.db.execute(
            select(func.count(Enrollment.id)).where(
                Enrollment.section_id == section_id,
                Enrollment.status == "ENROLLED"
            )
        ).scalar_one()

    def _has_active_enrollment(self, student_id: UUID, section_id: UUID) -> bool:
        existing = self.db.execute(
            select(Enrollment.id).where(
                Enrollment.student_id == student_id,
                Enrollment.section_id == section_id,
                Enrollment.status.in_(["ENROLLED", "COMPLETED"])
            ).limit(1)
        ).first()
        return existing is not None

    def _has_completed_course(self, student_id: UUID, course_id: UUID) -> bool:
        completed = self.db.execute(
            select(Enrollment.id)
            .join(Section, Enrollment.section_id == Section.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.status == "COMPLETED",
                Section.course_id == course_id
            ).limit(1)
        ).first()
        return completed is not None

    def _held_enrollments(self, student_id: UUID, section: Section) -> List[Enrollment]:
        """The student's other ENROLLED enrollments in the section's term"""
        return list(self.db.execute(
            select(Enrollment)
            .join(Section, Enrollment.section_id == Section.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.status == "ENROLLED",
                Section.term_id == section.term_id,
                Enrollment.section_id != section.id
            )
        ).scalars().all())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def enroll_student(
        self,
        student_id: UUID,
        section_id: UUID,
        bypass_validation: bool = False
    ) -> Enrollment:
        """
        Register a student in a section.

        The section row is locked for the duration of the check-and-insert,
        and the seat count is re-read after the insert so a concurrent
        registration can never push the section past capacity.

        Args:
            bypass_validation: Skip the registration-window check (admin override)

        Raises:
            EnrollmentValidationError: Any rule failed; carries every message
        """
        # Serialise registrations for this section
        self.db.execute(
            select(Section.id).where(Section.id == section_id).with_for_update()
        )

        result = self.validate_enrollment(student_id, section_id, skip_time_check=bypass_validation)
        if not result.valid:
            self.db.rollback()
            raise EnrollmentValidationError(result.errors)

        section = self.db.get(Section, section_id)
        enrollment = Enrollment(
            student_id=student_id,
            section_id=section_id,
            enrolled_at=self.clock(),
        )
        enrollment.transition("ENROLLED", reason="Registered", at=enrollment.enrolled_at)
        self.db.add(enrollment)

        try:
            self.db.flush()
        except IntegrityError:
            # Partial unique index: a concurrent request won the same seat
            self.db.rollback()
            raise EnrollmentValidationError([ALREADY_ENROLLED])

        if self.count_enrolled(section_id) > section.capacity:
            self.db.rollback()
            logger.warning(f"Capacity race detected on section {section_id}; enrollment rolled back")
            raise EnrollmentValidationError([SECTION_FULL])

        self.db.commit()
        self.db.refresh(enrollment)

        logger.info(
            f"Enrollment created: student {student_id} in section {section_id}"
            f"{' (override)' if bypass_validation else ''}"
        )
        return enrollment

    def get_enrollment(self, enrollment_id: UUID) -> Enrollment:
        enrollment = self.db.get(Enrollment, enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)
        return enrollment

    def drop_enrollment(
        self,
        enrollment_id: UUID,
        bypass_time_check: bool = False,
        reason: Optional[str] = None
    ) -> Enrollment:
        """
        ENROLLED -> DROPPED, only while registration is open unless overridden.

        Raises:
            NotFoundError: Unknown enrollment
            InvalidStateError: Not ENROLLED, or the drop window has closed
        """
        enrollment = self.get_enrollment(enrollment_id)

        if enrollment.status != "ENROLLED":
            raise InvalidStateError("Can only drop enrolled courses")

        now = self.clock()
        if not bypass_time_check and now > enrollment.section.term.registration_end:
            raise InvalidStateError("Drop period has ended")

        enrollment.transition("DROPPED", reason=reason or "Dropped", at=now)
        enrollment.dropped_at = now

        self.db.commit()
        self.db.refresh(enrollment)

        logger.info(f"Enrollment dropped: {enrollment.id} (section {enrollment.section_id})")
        return enrollment

    def withdraw_enrollment(self, enrollment_id: UUID, reason: str) -> Enrollment:
        """
        Administrative ENROLLED -> WITHDRAWN, allowed after the drop window.

        Raises:
            NotFoundError: Unknown enrollment
            InvalidStateError: Not ENROLLED
        """
        enrollment = self.get_enrollment(enrollment_id)

        if enrollment.status != "ENROLLED":
            raise InvalidStateError("Can only withdraw from enrolled courses")

        now = self.clock()
        enrollment.transition("WITHDRAWN", reason=reason, at=now)
        enrollment.dropped_at = now

        self.db.commit()
        self.db.refresh(enrollment)

        logger.info(f"Enrollment withdrawn: {enrollment.id} reason='{reason}'")
        return enrollment

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def get_student_schedule(self, student_id: UUID, term_id: UUID) -> StudentScheduleOut:
        """ENROLLED sections for a term, ordered by course code, slots by (day, start)"""
        if not self.db.get(Student, student_id):
            raise NotFoundError("Student", student_id)
        if not self.db.get(AcademicTerm, term_id):
            raise NotFoundError("Term", term_id)

        enrollments = self.db.execute(
            select(Enrollment)
            .join(Section, Enrollment.section_id == Section.id)
            .join(Course, Section.course_id == Course.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.status == "ENROLLED",
                Section.term_id == term_id
            )
            .order_by(Course.code)
        ).scalars().all()

        entries = []
        for e in enrollments:
            section = e.section
            entries.append(ScheduleEntryOut(
                enrollment_id=e.id,
                section_id=section.id,
                section_code=section.code,
                course_code=section.course.code,
                course_name=section.course.name_en,
                credits=section.course.credits,
                faculty_name=section.faculty.name_en if section.faculty else None,
                slots=[ScheduleSlotOut.model_validate(s) for s in sort_slots(section.schedules)],
            ))

        return StudentScheduleOut(
            student_id=student_id,
            term_id=term_id,
            total_credits=sum(entry.credits for entry in entries),
            entries=entries,
        )

    def get_section_roster(self, section_id: UUID) -> List[RosterEntryOut]:
        if not self.db.get(Section, section_id):
            raise NotFoundError("Section", section_id)

        rows = self.db.execute(
            select(Enrollment, Student)
            .join(Student, Enrollment.student_id == Student.id)
            .where(
                Enrollment.section_id == section_id,
                Enrollment.status == "ENROLLED"
            )
            .order_by(Student.student_code)
        ).all()

        return [
            RosterEntryOut(
                enrollment_id=enrollment.id,
                student_id=student.id,
                student_code=student.student_code,
                student_name=student.name_en,
                enrolled_at=enrollment.enrolled_at,
            )
            for enrollment, student in rows
        ]

    def list_enrollments(
        self,
        student_id: Optional[UUID] = None,
        section_id: Optional[UUID] = None,
        term_id: Optional[UUID] = None,
        status: Optional[str] = None
    ) -> List[Enrollment]:
        query = select(Enrollment)

        if term_id:
            query = query.join(Section, Enrollment.section_id == Section.id).where(Section.term_id == term_id)
        if student_id:
            query = query.where(Enrollment.student_id == student_id)
        if section_id:
            query = query.where(Enrollment.section_id == section_id)
        if status:
            query = query.where(Enrollment.status == status)

        return list(self.db.execute(query.order_by(Enrollment.enrolled_at)).scalars().all())
