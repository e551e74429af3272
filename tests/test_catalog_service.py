# tests/test_catalog_service.py
import pytest

from app.core.errors import ConstraintViolationError, NotFoundError
from app.models import Curriculum, Prerequisite
from app.services.catalog_service import CatalogService


@pytest.fixture
def catalog(db):
    return CatalogService(db)


@pytest.fixture
def curriculum(db, uni):
    curriculum = Curriculum(name="CS 2025", department_id=uni.cs.id, total_credits=10)
    db.add(curriculum)
    db.commit()
    return curriculum


def test_add_and_remove_prerequisite(catalog, db, uni):
    edge = catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)
    assert (edge.course_id, edge.prerequisite_id, edge.type) == (
        uni.courses.cs201.id, uni.courses.cs101.id, "PREREQUISITE"
    )

    catalog.remove_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)
    assert db.query(Prerequisite).count() == 0

    with pytest.raises(NotFoundError):
        catalog.remove_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)


def test_self_prerequisite_rejected(catalog, uni):
    with pytest.raises(ConstraintViolationError, match="cannot be a prerequisite of itself"):
        catalog.add_prerequisite(uni.courses.cs101.id, uni.courses.cs101.id)


def test_duplicate_edge_rejected(catalog, uni):
    catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)

    with pytest.raises(ConstraintViolationError, match="already a prerequisite"):
        catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id, type="COREQUISITE")


def test_unknown_type_rejected(catalog, uni):
    with pytest.raises(ConstraintViolationError):
        catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id, type="RECOMMENDED")


def test_cycle_rejected_and_nothing_written(catalog, db, uni):
    catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)
    catalog.add_prerequisite(uni.courses.cs301.id, uni.courses.cs201.id)

    with pytest.raises(ConstraintViolationError, match="circular dependency"):
        catalog.add_prerequisite(uni.courses.cs101.id, uni.courses.cs301.id)

    assert db.query(Prerequisite).count() == 2


def test_prerequisite_tree(catalog, uni):
    catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)
    catalog.add_prerequisite(uni.courses.cs301.id, uni.courses.cs201.id)
    catalog.add_prerequisite(uni.courses.cs301.id, uni.courses.math101.id, type="COREQUISITE")

    tree = catalog.get_prerequisite_tree(uni.courses.cs301.id)

    assert tree.code == "CS301" and tree.type is None
    assert [(n.code, n.type) for n in tree.prerequisites] == [("CS201", "PREREQUISITE"), ("MATH101", "COREQUISITE")]
    assert [n.code for n in tree.prerequisites[0].prerequisites] == ["CS101"]


def test_curriculum_enforces_sequencing(catalog, curriculum, uni):
    catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)
    catalog.add_curriculum_course(curriculum.id, uni.courses.cs101.id, year=1, semester=1)

    with pytest.raises(ConstraintViolationError, match="Prerequisite CS101 must be placed before CS201"):
        catalog.add_curriculum_course(curriculum.id, uni.courses.cs201.id, year=1, semester=1)

    placement = catalog.add_curriculum_course(curriculum.id, uni.courses.cs201.id, year=1, semester=2)
    assert placement.ordinal == 2


def test_curriculum_checks_dependents_placed_first(catalog, curriculum, uni):
    catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)
    catalog.add_curriculum_course(curriculum.id, uni.courses.cs201.id, year=1, semester=2)

    with pytest.raises(ConstraintViolationError, match="must be placed before its dependent CS201"):
        catalog.add_curriculum_course(curriculum.id, uni.courses.cs101.id, year=2, semester=1)


def test_curriculum_rejects_bad_slot_and_duplicates(catalog, curriculum, uni):
    with pytest.raises(ConstraintViolationError, match="Semester must be 1 or 2"):
        catalog.add_curriculum_course(curriculum.id, uni.courses.cs101.id, year=1, semester=3)

    catalog.add_curriculum_course(curriculum.id, uni.courses.cs101.id, year=1, semester=1)
    with pytest.raises(ConstraintViolationError, match="already in this curriculum"):
        catalog.add_curriculum_course(curriculum.id, uni.courses.cs101.id, year=2, semester=1)


def test_validate_curriculum(catalog, curriculum, uni):
    catalog.add_prerequisite(uni.courses.cs201.id, uni.courses.cs101.id)
    catalog.add_prerequisite(uni.courses.cs301.id, uni.courses.math101.id)
    catalog.add_curriculum_course(curriculum.id, uni.courses.cs101.id, year=1, semester=1)
    catalog.add_curriculum_course(curriculum.id, uni.courses.cs201.id, year=1, semester=2)
    catalog.add_curriculum_course(curriculum.id, uni.courses.cs301.id, year=2, semester=1, is_required=False)

    result = catalog.validate_curriculum(curriculum.id)

    assert not result.is_valid
    assert result.errors == ["Total credits mismatch: placed 9, declared 10"]
    assert result.warnings == ["CS301 requires MATH101, which is not in this curriculum"]
    assert (result.summary.total_courses, result.summary.required_courses, result.summary.elective_courses) == (3, 2, 1)


def test_matching_curriculum_is_valid(catalog, db, curriculum, uni):
    curriculum.total_credits = 6
    db.commit()
    catalog.add_curriculum_course(curriculum.id, uni.courses.cs101.id, year=1, semester=1)
    catalog.add_curriculum_course(curriculum.id, uni.courses.cs201.id, year=1, semester=1)

    assert catalog.validate_curriculum(curriculum.id).is_valid
