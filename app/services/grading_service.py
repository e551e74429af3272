# app/services/grading_service.py - Component scores, final grade publication, GPA and transcripts
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import UUID
import logging

from app.core.errors import (
    NotFoundError,
    InvalidStateError,
    ConstraintViolationError,
)
from app.models.academic import AcademicTerm
from app.models.enrollment import Enrollment
from app.models.gpa import TermGPA, CumulativeGPA
from app.models.grading import GradeComponent, Grade, FinalGrade
from app.models.section import Section
from app.models.student import Student
from app.schemas.grading import (
    ComponentScoreOut,
    FinalGradeOut,
    GPACalculation,
    GradeOverviewEntry,
    GradeSheetOut,
    PublishFailure,
    PublishResult,
    TranscriptCourse,
    TranscriptOut,
    TranscriptTerm,
)
from app.services.grade_scale import load_grade_scale, weighted_percentage
from app.services.standing import load_standing_policy

logger = logging.getLogger(__name__)


def _gpa(points: float, credits: int) -> float:
    return points / credits if credits > 0 else 0.0


class GradingService:
    """Service class for grading schemes, final grades and GPA aggregates"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # Grade components
    # ------------------------------------------------------------------

    def _get_section(self, section_id: UUID) -> Section:
        section = self.db.get(Section, section_id)
        if not section:
            raise NotFoundError("Section", section_id)
        return section

    def _get_component(self, component_id: UUID) -> GradeComponent:
        component = self.db.get(GradeComponent, component_id)
        if not component:
            raise NotFoundError("Grade component", component_id)
        return component

    @staticmethod
    def _check_component_values(weight: float, max_score: float) -> None:
        if weight < 0 or weight > 100:
            raise ConstraintViolationError("Weight must be between 0 and 100")
        if max_score <= 0:
            raise ConstraintViolationError("Max score must be positive")

    def create_component(self, section_id: UUID, name: str, weight: float, max_score: float) -> GradeComponent:
        section = self._get_section(section_id)
        self._check_component_values(weight, max_score)

        component = GradeComponent(
            section_id=section.id,
            name=name.strip(),
            weight=weight,
            max_score=max_score,
        )
        self.db.add(component)
        self.db.commit()
        self.db.refresh(component)

        total_weight = sum(c.weight for c in self.list_components(section.id))
        if total_weight > 100:
            logger.warning(f"Section {section.id} component weights now total {total_weight}")

        logger.info(f"Grade component created: '{component.name}' ({weight}/{max_score}) in section {section.id}")
        return component

    def update_component(
        self,
        component_id: UUID,
        name: Optional[str] = None,
        weight: Optional[float] = None,
        max_score: Optional[float] = None
    ) -> GradeComponent:
        """
        Raises:
            ConstraintViolationError: Values out of range, or a lower max score
                than a score already recorded against the component
        """
        component = self._get_component(component_id)

        new_weight = component.weight if weight is None else weight
        new_max = component.max_score if max_score is None else max_score
        self._check_component_values(new_weight, new_max)

        if max_score is not None and max_score < component.max_score:
            highest = self.db.execute(
                select(func.max(Grade.score)).where(Grade.component_id == component.id)
            ).scalar()
            if highest is not None and highest > max_score:
                raise ConstraintViolationError(
                    f"Max score cannot be lower than an existing score ({highest})"
                )

        if name is not None:
            component.name = name.strip()
        component.weight = new_weight
        component.max_score = new_max

        self.db.commit()
        self.db.refresh(component)
        return component

    def delete_component(self, component_id: UUID) -> None:
        component = self._get_component(component_id)

        published = self.db.execute(
            select(func.count(Enrollment.id)).where(
                Enrollment.section_id == component.section_id,
                Enrollment.status == "COMPLETED"
            )
        ).scalar_one()
        if published:
            raise InvalidStateError("Cannot delete a component of a section with published grades")

        self.db.delete(component)
        self.db.commit()
        logger.info(f"Grade component deleted: {component_id}")

    def list_components(self, section_id: UUID) -> List[GradeComponent]:
        self._get_section(section_id)
        return self._components(section_id)

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def record_grade(self, enrollment_id: UUID, component_id: UUID, score: float) -> Grade:
        """
        Insert or overwrite the score for (enrollment, component).

        Takes the section lock so a score cannot slip in while the section
        is being published.

        Raises:
            NotFoundError: Unknown enrollment or component
            InvalidStateError: Enrollment is not ENROLLED
            ConstraintViolationError: Score out of range, or the component
                belongs to another section
        """
        enrollment = self.db.get(Enrollment, enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)
        component = self._get_component(component_id)

        self.db.execute(
            select(Section.id).where(Section.id == enrollment.section_id).with_for_update()
        )
        self.db.refresh(enrollment)

        if enrollment.status != "ENROLLED":
            raise InvalidStateError("Can only grade enrolled students")

        if component.section_id != enrollment.section_id:
            raise ConstraintViolationError("Grade component does not belong to this enrollment's section")

        if score < 0:
            raise ConstraintViolationError("Score cannot be negative")
        if score > component.max_score:
            raise ConstraintViolationError(f"Score cannot exceed max score of {component.max_score}")

        grade = self.db.execute(
            select(Grade).where(
                Grade.enrollment_id == enrollment.id,
                Grade.component_id == component.id
            )
        ).scalar_one_or_none()

        if grade:
            grade.score = score
        else:
            grade = Grade(enrollment_id=enrollment.id, component_id=component.id, score=score)
            self.db.add(grade)

        self.db.commit()
        self.db.refresh(grade)

        logger.info(f"Grade recorded: enrollment {enrollment.id} component '{component.name}' = {score}")
        return grade

    def _scores_for(self, enrollment: Enrollment) -> Dict[UUID, float]:
        rows = self.db.execute(
            select(Grade.component_id, Grade.score).where(Grade.enrollment_id == enrollment.id)
        ).all()
        return {component_id: score for component_id, score in rows}

    def _components(self, section_id: UUID) -> List[GradeComponent]:
        return list(self.db.execute(
            select(GradeComponent)
            .where(GradeComponent.section_id == section_id)
            .order_by(GradeComponent.created_at)
        ).scalars().all())

    def get_student_grades(self, enrollment_id: UUID) -> GradeSheetOut:
        """In-progress grade sheet; ungraded components report ``score=None``"""
        enrollment = self.db.get(Enrollment, enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)

        section = enrollment.section
        scores = self._scores_for(enrollment)

        components = []
        section_components = self._components(section.id)
        for component in section_components:
            score = scores.get(component.id)
            components.append(ComponentScoreOut(
                component_id=component.id,
                name=component.name,
                weight=component.weight,
                max_score=component.max_score,
                score=score,
                contribution=None if score is None else (score / component.max_score) * component.weight,
            ))

        final = enrollment.final_grade
        return GradeSheetOut(
            enrollment_id=enrollment.id,
            section_id=section.id,
            course_code=section.course.code,
            course_name=section.course.name_en,
            status=enrollment.status,
            components=components,
            total_weighted_score=weighted_percentage(section_components, scores),
            final_grade=FinalGradeOut.model_validate(final) if final else None,
        )

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def publish_final_grades(self, section_id: UUID) -> PublishResult:
        """
        Compute and publish the final grade of every ENROLLED enrollment in
        the section, moving each to COMPLETED.

        Each enrollment runs in its own savepoint: a failure is logged and
        reported in ``failed`` while the others still publish. Enrollments
        that are already COMPLETED with a published grade are reported in
        ``skipped`` and left untouched.
        """
        self.db.execute(
            select(Section.id).where(Section.id == section_id).with_for_update()
        )
        section = self._get_section(section_id)

        scale = load_grade_scale(self.db)
        components = self._components(section.id)
        result = PublishResult(section_id=section.id)

        enrollments = self.db.execute(
            select(Enrollment)
            .where(
                Enrollment.section_id == section.id,
                Enrollment.status.in_(["ENROLLED", "COMPLETED"])
            )
            .order_by(Enrollment.enrolled_at)
        ).scalars().all()

        now = self.clock()
        for enrollment in enrollments:
            if enrollment.status == "COMPLETED":
                if enrollment.final_grade and enrollment.final_grade.status == "PUBLISHED":
                    result.skipped.append(enrollment.id)
                    continue
                # COMPLETED without a published grade: republish its grade below

            enrollment_id = enrollment.id
            try:
                with self.db.begin_nested():
                    percentage = weighted_percentage(components, self._scores_for(enrollment))
                    band = scale.lookup(percentage)

                    final = enrollment.final_grade
                    if final is None:
                        final = FinalGrade(enrollment_id=enrollment.id)
                        enrollment.final_grade = final
                    final.letter_grade = band.letter
                    final.grade_point = band.points
                    final.total_score = percentage
                    final.status = "PUBLISHED"
                    final.published_at = now

                    if enrollment.status != "COMPLETED":
                        enrollment.transition("COMPLETED", reason="Final grade published", at=now)
                    self.db.flush()
                result.published.append(enrollment_id)
            except Exception as e:
                logger.exception(f"Failed to publish final grade for enrollment {enrollment_id}: {e}")
                result.failed.append(PublishFailure(enrollment_id=enrollment_id, error=str(e)))

        self.db.commit()

        logger.info(
            f"Published section {section.id}: {len(result.published)} published, "
            f"{len(result.failed)} failed, {len(result.skipped)} skipped"
        )

        if result.published:
            student_ids = self.db.execute(
                select(Enrollment.student_id).where(Enrollment.id.in_(result.published))
            ).scalars().all()
            for student_id in sorted(set(student_ids), key=str):
                self.calculate_student_gpa(student_id, section.term_id)

        return result

    # ------------------------------------------------------------------
    # GPA
    # ------------------------------------------------------------------

    def _completed_enrollments(self, student_id: UUID, term_id: Optional[UUID] = None) -> List[Enrollment]:
        query = (
            select(Enrollment)
            .join(Section, Enrollment.section_id == Section.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.status == "COMPLETED"
            )
        )
        if term_id:
            query = query.where(Section.term_id == term_id)
        return list(self.db.execute(query).scalars().all())

    @staticmethod
    def _aggregate(enrollments: List[Enrollment]):
        """Returns (grade points x credits, attempted credits, earned credits)"""
        points = 0.0
        attempted = 0
        earned = 0
        for enrollment in enrollments:
            credits = enrollment.section.course.credits
            attempted += credits
            final = enrollment.final_grade
            if final and final.grade_point > 0:
                earned += credits
                points += final.grade_point * credits
        return points, attempted, earned

    def calculate_student_gpa(self, student_id: UUID, term_id: UUID) -> GPACalculation:
        """
        Recompute TermGPA(student, term) and CumulativeGPA(student) from the
        COMPLETED enrollments. Idempotent: running it again over the same
        completed set yields the same rows.
        """
        # Serialise recomputation per student
        self.db.execute(select(Student.id).where(Student.id == student_id).with_for_update())
        student = self.db.get(Student, student_id)
        if not student:
            raise NotFoundError("Student", student_id)
        if not self.db.get(AcademicTerm, term_id):
            raise NotFoundError("Term", term_id)

        term_points, term_attempted, term_earned = self._aggregate(
            self._completed_enrollments(student.id, term_id)
        )
        term_gpa = _gpa(term_points, term_attempted)

        term_row = self.db.execute(
            select(TermGPA).where(TermGPA.student_id == student.id, TermGPA.term_id == term_id)
        ).scalar_one_or_none()

        if term_attempted > 0:
            if term_row is None:
                term_row = TermGPA(student_id=student.id, term_id=term_id)
                self.db.add(term_row)
            term_row.gpa = term_gpa
            term_row.credits_earned = term_earned
            term_row.credits_attempted = term_attempted
            term_row.calculated_at = self.clock()
        elif term_row is not None:
            # Nothing completed in this term any more
            self.db.delete(term_row)

        total_points, total_attempted, _ = self._aggregate(self._completed_enrollments(student.id))
        cgpa = _gpa(total_points, total_attempted)
        standing = load_standing_policy(self.db).classify(cgpa)

        cumulative = student.cumulative_gpa
        if cumulative is None:
            cumulative = CumulativeGPA(student_id=student.id)
            student.cumulative_gpa = cumulative
        cumulative.cgpa = cgpa
        cumulative.total_credits = total_attempted
        cumulative.academic_standing = standing
        cumulative.calculated_at = self.clock()

        self.db.commit()

        logger.info(
            f"GPA recomputed for {student.student_code}: term {term_gpa:.3f}, "
            f"cumulative {cgpa:.3f} ({standing})"
        )

        return GPACalculation(
            student_id=student.id,
            term_id=term_id,
            term_gpa=term_gpa,
            credits_earned=term_earned,
            credits_attempted=term_attempted,
            cumulative_gpa=cgpa,
            total_credits=total_attempted,
            academic_standing=standing,
        )

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def get_student_transcript(self, student_id: UUID) -> TranscriptOut:
        """COMPLETED courses grouped by term (oldest first) with computed and stored GPAs"""
        student = self.db.get(Student, student_id)
        if not student:
            raise NotFoundError("Student", student_id)

        enrollments = self.db.execute(
            select(Enrollment)
            .join(Section, Enrollment.section_id == Section.id)
            .join(AcademicTerm, Section.term_id == AcademicTerm.id)
            .where(
                Enrollment.student_id == student.id,
                Enrollment.status == "COMPLETED"
            )
            .order_by(AcademicTerm.start_date, Enrollment.enrolled_at)
        ).scalars().all()

        stored = {
            row.term_id: row.gpa
            for row in self.db.execute(
                select(TermGPA).where(TermGPA.student_id == student.id)
            ).scalars().all()
        }

        grouped: "OrderedDict[UUID, List[Enrollment]]" = OrderedDict()
        for enrollment in enrollments:
            grouped.setdefault(enrollment.section.term_id, []).append(enrollment)

        terms = []
        for term_id, term_enrollments in grouped.items():
            points, attempted, earned = self._aggregate(term_enrollments)
            courses = []
            for e in term_enrollments:
                final = e.final_grade
                courses.append(TranscriptCourse(
                    course_code=e.section.course.code,
                    course_name=e.section.course.name_en,
                    credits=e.section.course.credits,
                    letter_grade=final.letter_grade if final else "N/A",
                    grade_point=final.grade_point if final else 0.0,
                ))
            terms.append(TranscriptTerm(
                term_id=term_id,
                term_name=term_enrollments[0].section.term.name,
                courses=courses,
                computed_gpa=_gpa(points, attempted),
                credits_attempted=attempted,
                credits_earned=earned,
                stored_gpa=stored.get(term_id),
            ))

        total_points, total_attempted, _ = self._aggregate(list(enrollments))
        cgpa = _gpa(total_points, total_attempted)

        return TranscriptOut(
            student_id=student.id,
            student_code=student.student_code,
            student_name=student.name_en,
            batch_name=student.batch.name if student.batch else None,
            department_name=student.department.name_en if student.department else None,
            terms=terms,
            cumulative_gpa=cgpa,
            total_credits=total_attempted,
            academic_standing=load_standing_policy(self.db).classify(cgpa) if enrollments else None,
        )

    def get_student_grade_overview(self, student_id: UUID) -> List[GradeOverviewEntry]:
        """Live weighted totals and provisional letters for ENROLLED and COMPLETED courses"""
        student = self.db.get(Student, student_id)
        if not student:
            raise NotFoundError("Student", student_id)

        scale = load_grade_scale(self.db, seed_if_empty=False)
        enrollments = self.db.execute(
            select(Enrollment).where(
                Enrollment.student_id == student.id,
                Enrollment.status.in_(["ENROLLED", "COMPLETED"])
            ).order_by(Enrollment.enrolled_at)
        ).scalars().all()

        overview = []
        for e in enrollments:
            section = e.section
            final = e.final_grade
            if final and final.status == "PUBLISHED":
                total, letter, points = final.total_score, final.letter_grade, final.grade_point
            else:
                total = weighted_percentage(self._components(section.id), self._scores_for(e))
                band = scale.lookup(total)
                letter, points = band.letter, band.points

            overview.append(GradeOverviewEntry(
                enrollment_id=e.id,
                course_code=section.course.code,
                course_name=section.course.name_en,
                credits=section.course.credits,
                term_name=section.term.name,
                status=e.status,
                total_weighted_score=total,
                letter_grade=letter,
                grade_point=points,
                is_published=bool(final and final.status == "PUBLISHED"),
            ))
        return overview
