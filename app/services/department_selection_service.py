# app/services/department_selection_service.py - Eligibility and the one-application-per-student workflow
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID
import logging

from app.core.errors import (
    NotFoundError,
    ConstraintViolationError,
    InvalidStateError,
    ForbiddenError,
)
from app.models.college import Department
from app.models.department_application import DepartmentApplication
from app.models.gpa import TermGPA
from app.models.student import Student
from app.schemas.department_selection import (
    ApplicationStatistics,
    DepartmentEligibility,
    EligibilityReasons,
    StudentEligibilityStatus,
)
from app.services.standing import AcademicStandingPolicy, GOOD_STANDING, load_standing_policy

logger = logging.getLogger(__name__)

NO_SEATS = "No seats available in this department"


class DepartmentSelectionService:
    """
    Students apply once to join a department, gated by CGPA, seats, study
    year and academic standing. Standing comes from the shared policy.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.clock = clock

    def _get_student(self, student_id: UUID) -> Student:
        student = self.db.get(Student, student_id)
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    def _get_application(self, application_id: UUID) -> DepartmentApplication:
        application = self.db.get(DepartmentApplication, application_id)
        if not application:
            raise NotFoundError("Application", application_id)
        return application

    def _current_year(self, student_id: UUID) -> int:
        # Two terms per study year
        completed_terms = self.db.execute(
            select(func.count(TermGPA.id)).where(TermGPA.student_id == student_id)
        ).scalar_one()
        return completed_terms // 2 + 1

    def _enrolled_count(self, department_id: UUID) -> int:
        return self.db.execute(
            select(func.count(Student.id)).where(
                Student.department_id == department_id,
                Student.status == "ACTIVE"
            )
        ).scalar_one()

    def _gpa_and_standing(self, student: Student):
        """CGPA and its standing under the current policy, not the label cached on the row"""
        cumulative = student.cumulative_gpa
        if cumulative is None:
            return 0.0, GOOD_STANDING
        return cumulative.cgpa, load_standing_policy(self.db).classify(cumulative.cgpa)

    def get_available_departments(self, student_id: UUID) -> List[DepartmentEligibility]:
        student = self._get_student(student_id)
        current_year = self._current_year(student.id)
        gpa, standing = self._gpa_and_standing(student)
        pending = student.department_application is not None and student.department_application.status == "PENDING"

        departments = self.db.execute(select(Department).order_by(Department.code)).scalars().all()

        result = []
        for dept in departments:
            enrolled = self._enrolled_count(dept.id)
            available = dept.capacity - enrolled
            reasons = EligibilityReasons(
                has_minimum_gpa=gpa >= dept.min_gpa,
                has_available_seats=available > 0,
                is_correct_year=current_year >= dept.selection_year,
                has_no_existing_department=student.department_id is None,
                has_no_pending_application=not pending,
                is_good_academic_standing=AcademicStandingPolicy.may_apply_for_department(standing),
            )
            result.append(DepartmentEligibility(
                department_id=dept.id,
                department_code=dept.code,
                department_name_en=dept.name_en,
                department_name_ar=dept.name_ar,
                college_name_en=dept.college.name_en,
                min_gpa=dept.min_gpa,
                capacity=dept.capacity,
                enrolled_count=enrolled,
                available_seats=available,
                is_eligible=all(reasons.model_dump().values()),
                eligibility_reasons=reasons,
            ))
        return result

    def get_student_eligibility(self, student_id: UUID) -> StudentEligibilityStatus:
        student = self._get_student(student_id)
        gpa, standing = self._gpa_and_standing(student)

        has_department = student.department_id is not None
        pending = student.department_application is not None and student.department_application.status == "PENDING"
        standing_ok = AcademicStandingPolicy.may_apply_for_department(standing)

        reasons = []
        if has_department:
            reasons.append("You already have a department")
        if pending:
            reasons.append("You have an application under review")
        if gpa == 0:
            reasons.append("No cumulative GPA has been calculated")
        if not standing_ok:
            reasons.append("Your academic standing does not allow applying")

        return StudentEligibilityStatus(
            can_apply=not reasons,
            student_gpa=gpa,
            current_year=self._current_year(student.id),
            has_department=has_department,
            has_pending_application=pending,
            academic_standing=standing,
            reasons=reasons,
        )

    def get_student_application(self, student_id: UUID) -> Optional[DepartmentApplication]:
        return self._get_student(student_id).department_application

    def apply_to_department(
        self,
        student_id: UUID,
        department_id: UUID,
        statement: Optional[str] = None
    ) -> DepartmentApplication:
        """
        Submit (or resubmit) the student's single application.

        The department row is locked while seats are counted.

        Raises:
            InvalidStateError: Already has a department or a pending application
            ConstraintViolationError: No seats, GPA below minimum, or standing
                does not allow applying
        """
        student = self._get_student(student_id)

        if student.department_id:
            raise InvalidStateError("You already have a department")

        application = student.department_application
        if application and application.status == "PENDING":
            raise InvalidStateError("You already have an application under review")

        department = self.db.execute(
            select(Department).where(Department.id == department_id).with_for_update()
        ).scalar_one_or_none()
        if not department:
            raise NotFoundError("Department", department_id)

        if department.capacity - self._enrolled_count(department.id) <= 0:
            raise ConstraintViolationError(NO_SEATS)

        gpa, standing = self._gpa_and_standing(student)
        if gpa < department.min_gpa:
            raise ConstraintViolationError(
                f"Minimum cumulative GPA required: {department.min_gpa}. Your current GPA: {gpa:.2f}"
            )
        if not AcademicStandingPolicy.may_apply_for_department(standing):
            raise ConstraintViolationError("Your academic standing does not allow applying")

        now = self.clock()
        if application is None:
            application = DepartmentApplication(student_id=student.id)
            student.department_application = application
        application.department_id = department.id
        application.student_gpa = gpa
        application.statement = statement
        application.status = "PENDING"
        application.submitted_at = now
        application.processed_at = None
        application.processed_by = None
        application.rejection_reason = None

        self.db.commit()
        self.db.refresh(application)

        logger.info(f"Department application submitted: {student.student_code} -> {department.code} (GPA {gpa:.2f})")
        return application

    def withdraw_application(self, student_id: UUID, application_id: UUID) -> DepartmentApplication:
        student = self._get_student(student_id)
        application = self._get_application(application_id)

        if application.student_id != student.id:
            raise ForbiddenError("This application belongs to another student")
        if application.status != "PENDING":
            raise InvalidStateError("Cannot withdraw an application that has already been processed")

        application.status = "WITHDRAWN"
        self.db.commit()
        self.db.refresh(application)

        logger.info(f"Department application withdrawn: {application.id}")
        return application

    def process_application(
        self,
        application_id: UUID,
        decision: str,
        admin_user_id: UUID,
        rejection_reason: Optional[str] = None
    ) -> DepartmentApplication:
        """
        Approve or reject a PENDING application. Approval re-checks seats
        under the department lock and assigns the student.
        """
        application = self._get_application(application_id)

        if decision not in ("APPROVED", "REJECTED"):
            raise ConstraintViolationError("Decision must be APPROVED or REJECTED")
        if application.status != "PENDING":
            raise InvalidStateError("This application has already been processed")

        if decision == "APPROVED":
            department = self.db.execute(
                select(Department).where(Department.id == application.department_id).with_for_update()
            ).scalar_one()
            if department.capacity - self._enrolled_count(department.id) <= 0:
                self.db.rollback()
                raise ConstraintViolationError(NO_SEATS)
            application.student.department_id = department.id

        application.status = decision
        application.processed_at = self.clock()
        application.processed_by = admin_user_id
        application.rejection_reason = rejection_reason if decision == "REJECTED" else None

        self.db.commit()
        self.db.refresh(application)

        logger.info(f"Department application {application.id} {decision.lower()} by {admin_user_id}")
        return application

    def list_applications(
        self,
        status: Optional[str] = None,
        department_id: Optional[UUID] = None,
        batch_id: Optional[UUID] = None
    ) -> List[DepartmentApplication]:
        query = select(DepartmentApplication)
        if status:
            query = query.where(DepartmentApplication.status == status)
        if department_id:
            query = query.where(DepartmentApplication.department_id == department_id)
        if batch_id:
            query = query.join(Student, DepartmentApplication.student_id == Student.id).where(Student.batch_id == batch_id)

        return list(self.db.execute(
            query.order_by(DepartmentApplication.submitted_at.desc())
        ).scalars().all())

    def get_statistics(self) -> ApplicationStatistics:
        rows = self.db.execute(
            select(Department.code, DepartmentApplication.status, func.count(DepartmentApplication.id))
            .join(Department, DepartmentApplication.department_id == Department.id)
            .group_by(Department.code, DepartmentApplication.status)
        ).all()

        totals = {"PENDING": 0, "APPROVED": 0, "REJECTED": 0, "WITHDRAWN": 0}
        by_department = {}
        for code, status, count in rows:
            totals[status] = totals.get(status, 0) + count
            by_department.setdefault(code, {})[status] = count

        return ApplicationStatistics(
            total=sum(totals.values()),
            pending=totals["PENDING"],
            approved=totals["APPROVED"],
            rejected=totals["REJECTED"],
            withdrawn=totals["WITHDRAWN"],
            by_department=by_department,
        )
