# app/services/catalog_service.py - Prerequisite edges and curriculum placement rules
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Dict, List, Optional, Set
from uuid import UUID
import logging

from app.core.errors import NotFoundError, ConstraintViolationError
from app.models.course import Course, Prerequisite
from app.models.curriculum import Curriculum, CurriculumCourse
from app.schemas.catalog import (
    CurriculumSummary,
    CurriculumValidation,
    PrerequisiteNode,
)
from app.services.prerequisite_graph import build_graph, would_create_cycle

logger = logging.getLogger(__name__)

PREREQUISITE_TYPES = ("PREREQUISITE", "COREQUISITE")


class CatalogService:
    """Reference-data rules: acyclic prerequisites and curriculum sequencing"""

    def __init__(self, db: Session):
        self.db = db

    def _get_course(self, course_id: UUID) -> Course:
        course = self.db.get(Course, course_id)
        if not course:
            raise NotFoundError("Course", course_id)
        return course

    def _get_curriculum(self, curriculum_id: UUID) -> Curriculum:
        curriculum = self.db.get(Curriculum, curriculum_id)
        if not curriculum:
            raise NotFoundError("Curriculum", curriculum_id)
        return curriculum

    def _prerequisite_graph(self):
        edges = self.db.execute(
            select(Prerequisite.course_id, Prerequisite.prerequisite_id)
        ).all()
        return build_graph(edges)

    # ------------------------------------------------------------------
    # Prerequisites
    # ------------------------------------------------------------------

    def add_prerequisite(
        self,
        course_id: UUID,
        prerequisite_id: UUID,
        type: str = "PREREQUISITE"
    ) -> Prerequisite:
        """
        Add the edge ``course requires prerequisite``.

        Raises:
            NotFoundError: Either course is unknown
            ConstraintViolationError: Self reference, duplicate edge, unknown
                type, or the edge would close a cycle
        """
        course = self._get_course(course_id)
        required = self._get_course(prerequisite_id)

        if type not in PREREQUISITE_TYPES:
            raise ConstraintViolationError(f"Prerequisite type must be one of {list(PREREQUISITE_TYPES)}")

        if course.id == required.id:
            raise ConstraintViolationError("A course cannot be a prerequisite of itself")

        duplicate = self.db.execute(
            select(Prerequisite.id).where(
                Prerequisite.course_id == course.id,
                Prerequisite.prerequisite_id == required.id
            )
        ).first()
        if duplicate:
            raise ConstraintViolationError(f"{required.code} is already a prerequisite of {course.code}")

        if would_create_cycle(self._prerequisite_graph(), (course.id, required.id)):
            raise ConstraintViolationError(
                f"Adding {required.code} as a prerequisite of {course.code} would create a circular dependency"
            )

        edge = Prerequisite(prerequisite_id=required.id, type=type)
        course.prerequisites.append(edge)
        self.db.commit()
        self.db.refresh(edge)

        logger.info(f"Prerequisite added: {course.code} requires {required.code} ({type})")
        return edge

    def remove_prerequisite(self, course_id: UUID, prerequisite_id: UUID) -> None:
        course = self._get_course(course_id)
        edge = next((p for p in course.prerequisites if p.prerequisite_id == prerequisite_id), None)
        if not edge:
            raise NotFoundError("Prerequisite", prerequisite_id)

        course.prerequisites.remove(edge)
        self.db.commit()
        logger.info(f"Prerequisite removed from {course.code}: {prerequisite_id}")

    def get_prerequisite_tree(self, course_id: UUID) -> PrerequisiteNode:
        """Nested prerequisite chain rooted at the course"""
        course = self._get_course(course_id)
        return self._build_node(course, None, set())

    def _build_node(self, course: Course, edge_type: Optional[str], path: Set[UUID]) -> PrerequisiteNode:
        node = PrerequisiteNode(course_id=course.id, code=course.code, name=course.name_en, type=edge_type)
        # The graph is acyclic; ``path`` guards against rows written around the API
        path = path | {course.id}
        for edge in sorted(course.prerequisites, key=lambda p: p.prerequisite.code):
            if edge.prerequisite_id in path:
                continue
            node.prerequisites.append(self._build_node(edge.prerequisite, edge.type, path))
        return node

    # ------------------------------------------------------------------
    # Curriculum
    # ------------------------------------------------------------------

    def add_curriculum_course(
        self,
        curriculum_id: UUID,
        course_id: UUID,
        year: int,
        semester: int,
        is_required: bool = True
    ) -> CurriculumCourse:
        """
        Place a course in a curriculum.

        Every PREREQUISITE of the course already placed must sit in a
        strictly earlier (year, semester); every placed course that depends
        on this one must sit strictly later.
        """
        curriculum = self._get_curriculum(curriculum_id)
        course = self._get_course(course_id)

        if semester not in (1, 2):
            raise ConstraintViolationError("Semester must be 1 or 2")
        if year < 1:
            raise ConstraintViolationError("Year must be at least 1")

        placed = {cc.course_id: cc for cc in curriculum.courses}
        if course.id in placed:
            raise ConstraintViolationError(f"{course.code} is already in this curriculum")

        ordinal = year * 2 + semester - 2

        for edge in course.prerequisites:
            if edge.type != "PREREQUISITE":
                continue
            before = placed.get(edge.prerequisite_id)
            if before and before.ordinal >= ordinal:
                raise ConstraintViolationError(
                    f"Prerequisite {edge.prerequisite.code} must be placed before {course.code}"
                )

        for dependent in self.db.execute(
            select(Prerequisite).where(
                Prerequisite.prerequisite_id == course.id,
                Prerequisite.type == "PREREQUISITE"
            )
        ).scalars().all():
            after = placed.get(dependent.course_id)
            if after and after.ordinal <= ordinal:
                raise ConstraintViolationError(
                    f"{course.code} must be placed before its dependent {dependent.course.code}"
                )

        placement = CurriculumCourse(
            course_id=course.id,
            year=year,
            semester=semester,
            is_required=is_required,
        )
        curriculum.courses.append(placement)
        self.db.commit()
        self.db.refresh(placement)

        logger.info(f"Curriculum {curriculum.name}: placed {course.code} at year {year} semester {semester}")
        return placement

    def validate_curriculum(self, curriculum_id: UUID) -> CurriculumValidation:
        """Credit total against the declared figure, plus sequencing of every placement"""
        curriculum = self._get_curriculum(curriculum_id)
        placements = list(curriculum.courses)
        by_course: Dict[UUID, CurriculumCourse] = {cc.course_id: cc for cc in placements}

        errors: List[str] = []
        warnings: List[str] = []

        placed_credits = sum(cc.course.credits for cc in placements)
        if placed_credits != curriculum.total_credits:
            errors.append(
                f"Total credits mismatch: placed {placed_credits}, declared {curriculum.total_credits}"
            )

        for cc in sorted(placements, key=lambda c: (c.ordinal, c.course.code)):
            for edge in cc.course.prerequisites:
                if edge.type != "PREREQUISITE":
                    continue
                before = by_course.get(edge.prerequisite_id)
                if before is None:
                    warnings.append(
                        f"{cc.course.code} requires {edge.prerequisite.code}, which is not in this curriculum"
                    )
                elif before.ordinal >= cc.ordinal:
                    errors.append(
                        f"{cc.course.code} (year {cc.year}, semester {cc.semester}) is placed before or with its "
                        f"prerequisite {edge.prerequisite.code} (year {before.year}, semester {before.semester})"
                    )

        required = sum(1 for cc in placements if cc.is_required)
        summary = CurriculumSummary(
            total_courses=len(placements),
            placed_credits=placed_credits,
            declared_credits=curriculum.total_credits,
            required_courses=required,
            elective_courses=len(placements) - required,
        )

        return CurriculumValidation(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            summary=summary,
        )
