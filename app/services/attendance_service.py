# app/services/attendance_service.py
from sqlalchemy.orm import Session
from sqlalchemy import select
from datetime import date
from typing import Optional
from uuid import UUID
import logging

from app.core.errors import NotFoundError, ConstraintViolationError, InvalidStateError
from app.models.attendance import Attendance
from app.models.enrollment import Enrollment
from app.models.section import Section
from app.models.student import Student
from app.schemas.attendance import AttendanceStats, SectionAttendanceEntry, SectionAttendanceOut

logger = logging.getLogger(__name__)

ATTENDANCE_STATUSES = ("PRESENT", "ABSENT", "EXCUSED")


class AttendanceService:
    """Per-session presence records keyed by enrollment"""

    def __init__(self, db: Session):
        self.db = db

    def _get_attendance(self, attendance_id: UUID) -> Attendance:
        record = self.db.get(Attendance, attendance_id)
        if not record:
            raise NotFoundError("Attendance record", attendance_id)
        return record

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in ATTENDANCE_STATUSES:
            raise ConstraintViolationError(f"Status must be one of {list(ATTENDANCE_STATUSES)}")

    def mark_attendance(
        self,
        enrollment_id: UUID,
        session_date: date,
        status: str,
        excuse: Optional[str] = None
    ) -> Attendance:
        enrollment = self.db.get(Enrollment, enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)

        if enrollment.status != "ENROLLED":
            raise InvalidStateError("Can only mark attendance for enrolled students")

        self._check_status(status)

        existing = self.db.execute(
            select(Attendance.id).where(
                Attendance.enrollment_id == enrollment.id,
                Attendance.session_date == session_date
            )
        ).first()
        if existing:
            raise ConstraintViolationError("Attendance already marked for this session")

        record = Attendance(
            enrollment_id=enrollment.id,
            session_date=session_date,
            status=status,
            excuse=excuse,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"Attendance marked: enrollment {enrollment.id} {session_date} {status}")
        return record

    def update_attendance(
        self,
        attendance_id: UUID,
        status: Optional[str] = None,
        excuse: Optional[str] = None
    ) -> Attendance:
        record = self._get_attendance(attendance_id)

        if status is not None:
            self._check_status(status)
            record.status = status
        if excuse is not None:
            record.excuse = excuse

        self.db.commit()
        self.db.refresh(record)
        return record

    def delete_attendance(self, attendance_id: UUID) -> None:
        record = self._get_attendance(attendance_id)
        self.db.delete(record)
        self.db.commit()
        logger.info(f"Attendance deleted: {attendance_id}")

    def get_attendance_stats(self, enrollment_id: UUID) -> AttendanceStats:
        if not self.db.get(Enrollment, enrollment_id):
            raise NotFoundError("Enrollment", enrollment_id)

        statuses = self.db.execute(
            select(Attendance.status).where(Attendance.enrollment_id == enrollment_id)
        ).scalars().all()

        total = len(statuses)
        present = statuses.count("PRESENT")
        return AttendanceStats(
            enrollment_id=enrollment_id,
            total_sessions=total,
            present=present,
            absent=statuses.count("ABSENT"),
            excused=statuses.count("EXCUSED"),
            attendance_rate=(present / total * 100) if total else 0.0,
        )

    def get_section_attendance(self, section_id: UUID, session_date: Optional[date] = None) -> SectionAttendanceOut:
        if not self.db.get(Section, section_id):
            raise NotFoundError("Section", section_id)

        query = (
            select(Attendance, Student)
            .join(Enrollment, Attendance.enrollment_id == Enrollment.id)
            .join(Student, Enrollment.student_id == Student.id)
            .where(Enrollment.section_id == section_id)
        )
        if session_date:
            query = query.where(Attendance.session_date == session_date)

        rows = self.db.execute(
            query.order_by(Attendance.session_date.desc(), Student.student_code)
        ).all()

        return SectionAttendanceOut(
            section_id=section_id,
            session_date=session_date,
            records=[
                SectionAttendanceEntry(
                    attendance_id=record.id,
                    enrollment_id=record.enrollment_id,
                    student_code=student.student_code,
                    student_name=student.name_en,
                    session_date=record.session_date,
                    status=record.status,
                    excuse=record.excuse,
                )
                for record, student in rows
            ],
        )
