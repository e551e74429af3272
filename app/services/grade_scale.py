# app/services/grade_scale.py - Percentage to letter/points mapping backed by the grade_scales table
from typing import Iterable, List, NamedTuple, Optional
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.grading import GradeScale

logger = logging.getLogger(__name__)


class GradeBand(NamedTuple):
    letter: str
    min_percentage: float
    points: float


# Seed rows for an empty grade_scales table. Descending, first match wins.
DEFAULT_GRADE_BANDS = (
    GradeBand("A+", 95.0, 4.0),
    GradeBand("A", 90.0, 4.0),
    GradeBand("B+", 85.0, 3.5),
    GradeBand("B", 80.0, 3.0),
    GradeBand("C+", 75.0, 2.5),
    GradeBand("C", 70.0, 2.0),
    GradeBand("D+", 65.0, 1.5),
    GradeBand("D", 60.0, 1.0),
    GradeBand("F", 0.0, 0.0),
)

FAILING_BAND = GradeBand("F", 0.0, 0.0)


class GradeScaleTable:
    """Immutable, ordered view of the configured bands"""

    def __init__(self, bands: Iterable[GradeBand]):
        self.bands: List[GradeBand] = sorted(bands, key=lambda b: b.min_percentage, reverse=True)

    def lookup(self, percentage: float) -> GradeBand:
        for band in self.bands:
            if percentage >= band.min_percentage:
                return band
        return FAILING_BAND


def seed_default_grade_scale(db: Session) -> int:
    """Insert the default bands when the table is empty. Returns rows added."""
    existing = db.execute(select(GradeScale.id).limit(1)).first()
    if existing:
        return 0

    for band in DEFAULT_GRADE_BANDS:
        db.add(GradeScale(
            letter_grade=band.letter,
            min_percentage=band.min_percentage,
            gpa_points=band.points,
        ))
    db.flush()
    logger.info(f"Seeded default grade scale ({len(DEFAULT_GRADE_BANDS)} bands)")
    return len(DEFAULT_GRADE_BANDS)


def load_grade_scale(db: Session, seed_if_empty: bool = True) -> GradeScaleTable:
    """Read the grade_scales table, seeding the defaults first if asked"""
    if seed_if_empty:
        seed_default_grade_scale(db)

    rows = db.execute(select(GradeScale)).scalars().all()
    if not rows:
        return GradeScaleTable(DEFAULT_GRADE_BANDS)

    return GradeScaleTable(
        GradeBand(row.letter_grade, row.min_percentage, row.gpa_points) for row in rows
    )


def weighted_percentage(components, scores: dict) -> float:
    """
    Sum of (score / max_score) * weight over a section's components.

    ``scores`` maps component id to score; missing components count as 0.
    """
    total = 0.0
    for component in components:
        score: Optional[float] = scores.get(component.id)
        if score is None:
            continue
        total += (score / component.max_score) * component.weight
    return total
