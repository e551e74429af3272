# tests/test_department_selection_service.py
import pytest

from app.core.errors import ConstraintViolationError, ForbiddenError, InvalidStateError
from app.models import CumulativeGPA, TermGPA
from app.services.department_selection_service import NO_SEATS, DepartmentSelectionService


@pytest.fixture
def selection(db, clock):
    return DepartmentSelectionService(db, clock=clock)


@pytest.fixture
def give_cgpa(db):
    def _give(student, cgpa, standing="GOOD_STANDING"):
        student.cumulative_gpa = CumulativeGPA(cgpa=cgpa, total_credits=30, academic_standing=standing)
        db.commit()
    return _give


def test_available_departments(selection, give_cgpa, uni):
    give_cgpa(uni.students.alice, 2.3)

    departments = {d.department_code: d for d in selection.get_available_departments(uni.students.alice.id)}

    assert list(departments) == ["CS", "MATH"]
    assert not departments["CS"].is_eligible
    assert not departments["CS"].eligibility_reasons.has_minimum_gpa
    assert departments["MATH"].is_eligible
    assert (departments["MATH"].available_seats, departments["MATH"].college_name_en) == (1, "Engineering")


def test_selection_year_uses_completed_terms(selection, db, give_cgpa, uni):
    give_cgpa(uni.students.alice, 3.2)
    uni.cs.selection_year = 2
    db.commit()

    cs = selection.get_available_departments(uni.students.alice.id)[0]
    assert not cs.eligibility_reasons.is_correct_year

    db.add_all([
        TermGPA(student_id=uni.students.alice.id, term_id=uni.spring.id, gpa=3.2, credits_attempted=15, credits_earned=15),
        TermGPA(student_id=uni.students.alice.id, term_id=uni.fall.id, gpa=3.2, credits_attempted=15, credits_earned=15),
    ])
    db.commit()

    assert selection.get_student_eligibility(uni.students.alice.id).current_year == 2
    assert selection.get_available_departments(uni.students.alice.id)[0].is_eligible


def test_eligibility_without_gpa(selection, uni):
    status = selection.get_student_eligibility(uni.students.carol.id)

    assert not status.can_apply
    assert status.reasons == ["No cumulative GPA has been calculated"]
    assert (status.current_year, status.academic_standing) == (1, "GOOD_STANDING")


def test_apply_and_no_second_pending(selection, give_cgpa, uni):
    give_cgpa(uni.students.alice, 3.0)

    application = selection.apply_to_department(uni.students.alice.id, uni.cs.id, statement="I like compilers")

    assert (application.status, application.student_gpa) == ("PENDING", 3.0)
    assert selection.get_student_eligibility(uni.students.alice.id).reasons == ["You have an application under review"]
    with pytest.raises(InvalidStateError, match="under review"):
        selection.apply_to_department(uni.students.alice.id, uni.math.id)


def test_gpa_below_minimum(selection, give_cgpa, uni):
    give_cgpa(uni.students.alice, 2.2)

    with pytest.raises(ConstraintViolationError, match="Minimum cumulative GPA required: 2.5. Your current GPA: 2.20"):
        selection.apply_to_department(uni.students.alice.id, uni.cs.id)


def test_standing_checked_against_live_policy(selection, db, give_cgpa, uni):
    # Cached label says good standing, but 1.9 is probation under the default policy
    give_cgpa(uni.students.alice, 1.9, standing="GOOD_STANDING")
    uni.math.min_gpa = 0.0
    db.commit()

    with pytest.raises(ConstraintViolationError, match="academic standing"):
        selection.apply_to_department(uni.students.alice.id, uni.math.id)


def test_eligibility_views_agree_with_live_policy(selection, db, give_cgpa, uni):
    give_cgpa(uni.students.alice, 1.9, standing="GOOD_STANDING")
    uni.math.min_gpa = 0.0
    db.commit()

    status = selection.get_student_eligibility(uni.students.alice.id)
    assert not status.can_apply
    assert status.academic_standing == "ACADEMIC_PROBATION"
    assert status.reasons == ["Your academic standing does not allow applying"]

    math = {d.department_code: d for d in selection.get_available_departments(uni.students.alice.id)}["MATH"]
    assert not math.eligibility_reasons.is_good_academic_standing
    assert not math.is_eligible


def test_full_department_rejects_applications(selection, db, give_cgpa, uni):
    uni.students.carol.department_id = uni.math.id
    db.commit()
    give_cgpa(uni.students.alice, 3.0)

    with pytest.raises(ConstraintViolationError, match=NO_SEATS):
        selection.apply_to_department(uni.students.alice.id, uni.math.id)


def test_student_with_department_cannot_apply(selection, db, give_cgpa, uni):
    uni.students.alice.department_id = uni.cs.id
    db.commit()
    give_cgpa(uni.students.alice, 3.0)

    with pytest.raises(InvalidStateError, match="already have a department"):
        selection.apply_to_department(uni.students.alice.id, uni.math.id)


def test_approval_assigns_and_rechecks_seats(selection, give_cgpa, uni):
    give_cgpa(uni.students.alice, 3.0)
    give_cgpa(uni.students.bob, 3.1)
    first = selection.apply_to_department(uni.students.alice.id, uni.math.id)
    second = selection.apply_to_department(uni.students.bob.id, uni.math.id)

    approved = selection.process_application(first.id, "APPROVED", uni.users.admin.id)
    assert approved.status == "APPROVED"
    assert approved.processed_by == uni.users.admin.id
    assert uni.students.alice.department_id == uni.math.id

    with pytest.raises(ConstraintViolationError, match=NO_SEATS):
        selection.process_application(second.id, "APPROVED", uni.users.admin.id)
    assert selection.get_student_application(uni.students.bob.id).status == "PENDING"

    with pytest.raises(InvalidStateError, match="already been processed"):
        selection.process_application(first.id, "REJECTED", uni.users.admin.id, rejection_reason="late")


def test_rejected_student_may_resubmit(selection, give_cgpa, uni):
    give_cgpa(uni.students.alice, 3.0)
    application = selection.apply_to_department(uni.students.alice.id, uni.cs.id)
    rejected = selection.process_application(application.id, "REJECTED", uni.users.admin.id, rejection_reason="Quota")
    assert rejected.rejection_reason == "Quota"

    again = selection.apply_to_department(uni.students.alice.id, uni.math.id)

    assert again.id == application.id
    assert (again.status, again.department_id, again.rejection_reason) == ("PENDING", uni.math.id, None)


def test_withdraw(selection, give_cgpa, uni):
    give_cgpa(uni.students.alice, 3.0)
    application = selection.apply_to_department(uni.students.alice.id, uni.cs.id)

    with pytest.raises(ForbiddenError):
        selection.withdraw_application(uni.students.bob.id, application.id)

    assert selection.withdraw_application(uni.students.alice.id, application.id).status == "WITHDRAWN"
    with pytest.raises(InvalidStateError):
        selection.withdraw_application(uni.students.alice.id, application.id)


def test_listing_and_statistics(selection, give_cgpa, uni):
    give_cgpa(uni.students.alice, 3.0)
    give_cgpa(uni.students.bob, 3.0)
    first = selection.apply_to_department(uni.students.alice.id, uni.cs.id)
    selection.apply_to_department(uni.students.bob.id, uni.math.id)
    selection.process_application(first.id, "APPROVED", uni.users.admin.id)

    assert [a.student_id for a in selection.list_applications(status="PENDING")] == [uni.students.bob.id]
    assert len(selection.list_applications(department_id=uni.cs.id, batch_id=uni.batch.id)) == 1

    stats = selection.get_statistics()
    assert (stats.total, stats.pending, stats.approved, stats.rejected) == (2, 1, 1, 0)
    assert stats.by_department == {"CS": {"APPROVED": 1}, "MATH": {"PENDING": 1}}
