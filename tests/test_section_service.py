# tests/test_section_service.py
import uuid

import pytest

from app.core.errors import ConstraintViolationError, InvalidStateError, NotFoundError
from app.models import Enrollment, Section
from app.services.enrollment_service import EnrollmentService
from app.services.section_service import SectionService


@pytest.fixture
def sections(db):
    return SectionService(db)


def test_create_section(sections, uni):
    section = sections.create_section(uni.courses.cs101.id, uni.fall.id, " 02 ", capacity=25, faculty_id=uni.faculty.id)

    assert (section.code, section.capacity) == ("02", 25)
    assert [s.code for s in sections.list_sections(term_id=uni.fall.id, course_id=uni.courses.cs101.id)] == ["01", "02"]


def test_create_section_rejects_duplicates_and_bad_capacity(sections, uni):
    with pytest.raises(ConstraintViolationError, match="already exists"):
        sections.create_section(uni.courses.cs101.id, uni.fall.id, "01", capacity=25)
    with pytest.raises(ConstraintViolationError, match="Capacity must be positive"):
        sections.create_section(uni.courses.cs101.id, uni.fall.id, "03", capacity=0)
    with pytest.raises(NotFoundError):
        sections.create_section(uuid.UUID(int=5), uni.fall.id, "03", capacity=10)


def test_same_code_allowed_in_another_term(sections, uni):
    section = sections.create_section(uni.courses.cs201.id, uni.spring.id, "01", capacity=10)
    assert section.term_id == uni.spring.id


def test_add_schedule_validation(sections, uni):
    section_id = uni.sections.cs201.id

    with pytest.raises(ConstraintViolationError, match="Day must be between"):
        sections.add_schedule(section_id, 7, "08:00", "09:00")
    with pytest.raises(ConstraintViolationError, match="HH:MM"):
        sections.add_schedule(section_id, 2, "8:00", "09:00")
    with pytest.raises(ConstraintViolationError, match="Start time must be before end time"):
        sections.add_schedule(section_id, 2, "09:00", "09:00")
    with pytest.raises(ConstraintViolationError, match="Slot overlaps 10:00-11:30 on day 1"):
        sections.add_schedule(section_id, 1, "11:00", "12:00")


def test_schedules_listed_in_week_order(sections, uni):
    section_id = uni.sections.cs201.id
    sections.add_schedule(section_id, 1, "11:30", "12:30", room="Lab 2")  # touches the existing slot
    sections.add_schedule(section_id, 0, "14:00", "15:00")

    assert [(s.day, s.start_time) for s in sections.list_schedules(section_id)] == [
        (0, "14:00"), (1, "10:00"), (1, "11:30")
    ]


def test_delete_schedule(sections, uni):
    slot = sections.add_schedule(uni.sections.cs201.id, 5, "10:00", "11:00")

    sections.delete_schedule(slot.id)

    assert [s.day for s in sections.list_schedules(uni.sections.cs201.id)] == [1]
    with pytest.raises(NotFoundError):
        sections.delete_schedule(slot.id)


def test_capacity_cannot_drop_below_enrollment(sections, db, clock, uni):
    enrollments = EnrollmentService(db, clock=clock)
    enrollments.enroll_student(uni.students.alice.id, uni.sections.cs101.id)
    enrollments.enroll_student(uni.students.bob.id, uni.sections.cs101.id)

    with pytest.raises(ConstraintViolationError, match=r"below current enrollment \(2\)"):
        sections.update_capacity(uni.sections.cs101.id, 1)

    assert sections.update_capacity(uni.sections.cs101.id, 2).capacity == 2


def test_delete_section_guarded_by_active_enrollments(sections, db, clock, uni):
    enrollments = EnrollmentService(db, clock=clock)
    enrollment = enrollments.enroll_student(uni.students.alice.id, uni.sections.cs201.id)

    with pytest.raises(InvalidStateError, match="1 active enrollment"):
        sections.delete_section(uni.sections.cs201.id)

    enrollments.drop_enrollment(enrollment.id)
    sections.delete_section(uni.sections.cs201.id)

    assert db.get(Section, uni.sections.cs201.id) is None
    assert db.query(Enrollment).filter_by(section_id=uni.sections.cs201.id).count() == 0
