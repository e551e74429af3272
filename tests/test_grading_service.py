# tests/test_grading_service.py
import pytest

from app.core.errors import ConstraintViolationError, InvalidStateError
from app.models import CumulativeGPA, Grade, SystemSetting, TermGPA
from app.services import grading_service as grading_module
from app.services.enrollment_service import EnrollmentService
from app.services.grading_service import GradingService
from app.services.standing import STANDING_SETTING_KEY


@pytest.fixture
def grading(db, clock):
    return GradingService(db, clock=clock)


@pytest.fixture
def enroll(db, clock):
    service = EnrollmentService(db, clock=clock)
    return lambda student, section: service.enroll_student(student.id, section.id)


@pytest.fixture
def finals(grading, uni):
    """Single 100-point component on CS101 and a 50-point one on HUM101"""
    return {
        "cs101": grading.create_component(uni.sections.cs101.id, "Final", weight=100, max_score=100),
        "hum101": grading.create_component(uni.sections.hum101.id, "Exam", weight=100, max_score=50),
    }


def test_record_then_read_back(grading, enroll, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)
    midterm = grading.create_component(uni.sections.cs101.id, "Midterm", weight=30, max_score=30)
    final = grading.create_component(uni.sections.cs101.id, "Final", weight=70, max_score=100)

    grading.record_grade(enrollment.id, midterm.id, 24)
    sheet = grading.get_student_grades(enrollment.id)

    scores = {c.name: c.score for c in sheet.components}
    assert scores == {"Midterm": 24, "Final": None}
    assert sheet.total_weighted_score == pytest.approx(24.0)
    assert sheet.final_grade is None

    grading.record_grade(enrollment.id, final.id, 80)
    assert grading.get_student_grades(enrollment.id).total_weighted_score == pytest.approx(24.0 + 56.0)


def test_recording_again_overwrites(grading, enroll, db, finals, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)

    grading.record_grade(enrollment.id, finals["cs101"].id, 40)
    grading.record_grade(enrollment.id, finals["cs101"].id, 75)

    assert db.query(Grade).filter_by(enrollment_id=enrollment.id).count() == 1
    assert grading.get_student_grades(enrollment.id).components[0].score == 75


def test_score_bounds(grading, enroll, finals, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)

    with pytest.raises(ConstraintViolationError, match="Score cannot exceed max score of 100"):
        grading.record_grade(enrollment.id, finals["cs101"].id, 100.5)
    with pytest.raises(ConstraintViolationError, match="Score cannot be negative"):
        grading.record_grade(enrollment.id, finals["cs101"].id, -1)

    grading.record_grade(enrollment.id, finals["cs101"].id, 100)


def test_component_from_another_section_rejected(grading, enroll, finals, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)

    with pytest.raises(ConstraintViolationError):
        grading.record_grade(enrollment.id, finals["hum101"].id, 10)


def test_only_enrolled_work_is_graded(grading, enroll, db, clock, finals, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)
    EnrollmentService(db, clock=clock).drop_enrollment(enrollment.id)

    with pytest.raises(InvalidStateError, match="Can only grade enrolled students"):
        grading.record_grade(enrollment.id, finals["cs101"].id, 50)


def test_publish_assigns_letters_and_completes(grading, enroll, finals, uni):
    alice = enroll(uni.students.alice, uni.sections.cs101)
    bob = enroll(uni.students.bob, uni.sections.cs101)
    grading.record_grade(alice.id, finals["cs101"].id, 95)
    grading.record_grade(bob.id, finals["cs101"].id, 59.999)

    result = grading.publish_final_grades(uni.sections.cs101.id)

    assert set(result.published) == {alice.id, bob.id}
    assert result.failed == [] and result.skipped == []
    assert (alice.status, alice.final_grade.letter_grade, alice.final_grade.grade_point) == ("COMPLETED", "A+", 4.0)
    assert (bob.final_grade.letter_grade, bob.final_grade.grade_point) == ("F", 0.0)
    assert alice.final_grade.status == "PUBLISHED"
    assert [e.new_status for e in alice.status_events] == ["ENROLLED", "COMPLETED"]


def test_ungraded_components_count_as_zero_when_published(grading, enroll, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)
    quiz = grading.create_component(uni.sections.cs101.id, "Quiz", weight=40, max_score=10)
    grading.create_component(uni.sections.cs101.id, "Final", weight=60, max_score=100)
    grading.record_grade(enrollment.id, quiz.id, 10)

    grading.publish_final_grades(uni.sections.cs101.id)

    assert enrollment.final_grade.total_score == pytest.approx(40.0)
    assert enrollment.final_grade.letter_grade == "F"


def test_publish_twice_is_a_noop(grading, enroll, finals, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)
    grading.record_grade(enrollment.id, finals["cs101"].id, 88)
    grading.publish_final_grades(uni.sections.cs101.id)
    first = (enrollment.final_grade.letter_grade, enrollment.final_grade.grade_point)

    again = grading.publish_final_grades(uni.sections.cs101.id)

    assert again.published == []
    assert again.skipped == [enrollment.id]
    assert (enrollment.final_grade.letter_grade, enrollment.final_grade.grade_point) == first == ("B+", 3.5)
    assert [e.new_status for e in enrollment.status_events] == ["ENROLLED", "COMPLETED"]


def test_one_failure_does_not_block_siblings(grading, enroll, monkeypatch, finals, uni):
    alice = enroll(uni.students.alice, uni.sections.cs101)
    bob = enroll(uni.students.bob, uni.sections.cs101)
    grading.record_grade(alice.id, finals["cs101"].id, 91)

    real = grading_module.weighted_percentage

    def flaky(components, scores):
        if not scores:
            raise ValueError("no scores on file")
        return real(components, scores)

    monkeypatch.setattr(grading_module, "weighted_percentage", flaky)

    result = grading.publish_final_grades(uni.sections.cs101.id)

    assert result.published == [alice.id]
    assert [f.enrollment_id for f in result.failed] == [bob.id]
    assert "no scores on file" in result.failed[0].error
    assert alice.status == "COMPLETED"
    assert bob.status == "ENROLLED"


def test_grading_locked_after_publish(grading, enroll, finals, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)
    grading.publish_final_grades(uni.sections.cs101.id)

    with pytest.raises(InvalidStateError):
        grading.record_grade(enrollment.id, finals["cs101"].id, 100)
    with pytest.raises(InvalidStateError):
        grading.delete_component(finals["cs101"].id)


def test_component_max_cannot_drop_below_recorded_score(grading, enroll, finals, uni):
    enrollment = enroll(uni.students.alice, uni.sections.cs101)
    grading.record_grade(enrollment.id, finals["cs101"].id, 80)

    with pytest.raises(ConstraintViolationError):
        grading.update_component(finals["cs101"].id, max_score=50)

    updated = grading.update_component(finals["cs101"].id, name="Final exam", max_score=80)
    assert (updated.name, updated.max_score) == ("Final exam", 80)


def _publish_two_courses(grading, enroll, finals, uni, hum_score):
    cs = enroll(uni.students.alice, uni.sections.cs101)
    hum = enroll(uni.students.alice, uni.sections.hum101)
    grading.record_grade(cs.id, finals["cs101"].id, 90)
    grading.record_grade(hum.id, finals["hum101"].id, hum_score)
    grading.publish_final_grades(uni.sections.cs101.id)
    grading.publish_final_grades(uni.sections.hum101.id)


def test_gpa_worked_example(grading, enroll, db, finals, uni):
    # CS101: 3 credits at 90% (A, 4.0); HUM101: 4 credits at 70% (C, 2.0)
    _publish_two_courses(grading, enroll, finals, uni, hum_score=35)

    calc = grading.calculate_student_gpa(uni.students.alice.id, uni.fall.id)

    assert calc.term_gpa == pytest.approx(20 / 7)
    assert calc.cumulative_gpa == pytest.approx(20 / 7)
    assert (calc.credits_attempted, calc.credits_earned, calc.total_credits) == (7, 7, 7)
    assert calc.academic_standing == "GOOD_STANDING"

    term_row = db.query(TermGPA).filter_by(student_id=uni.students.alice.id, term_id=uni.fall.id).one()
    assert term_row.gpa == pytest.approx(20 / 7)


def test_failed_course_counts_as_attempted_not_earned(grading, enroll, finals, uni):
    _publish_two_courses(grading, enroll, finals, uni, hum_score=20)

    calc = grading.calculate_student_gpa(uni.students.alice.id, uni.fall.id)

    assert calc.term_gpa == pytest.approx(12 / 7)
    assert (calc.credits_attempted, calc.credits_earned) == (7, 3)
    assert calc.academic_standing == "ACADEMIC_PROBATION"


def test_standing_policy_comes_from_system_settings(grading, enroll, db, finals, uni):
    db.add(SystemSetting(key=STANDING_SETTING_KEY, value={"probation_below": 1.5, "warning_below": 1.75}))
    db.commit()

    _publish_two_courses(grading, enroll, finals, uni, hum_score=20)

    assert grading.calculate_student_gpa(uni.students.alice.id, uni.fall.id).academic_standing == "ACADEMIC_WARNING"


def test_invalid_standing_setting_falls_back_to_defaults(grading, enroll, db, finals, uni):
    db.add(SystemSetting(key=STANDING_SETTING_KEY, value={"probation_below": 3.0, "warning_below": 1.0}))
    db.commit()

    _publish_two_courses(grading, enroll, finals, uni, hum_score=20)

    assert grading.calculate_student_gpa(uni.students.alice.id, uni.fall.id).academic_standing == "ACADEMIC_PROBATION"


def test_recompute_is_idempotent(grading, enroll, db, finals, uni):
    _publish_two_courses(grading, enroll, finals, uni, hum_score=35)

    first = grading.calculate_student_gpa(uni.students.alice.id, uni.fall.id)
    second = grading.calculate_student_gpa(uni.students.alice.id, uni.fall.id)

    assert first == second
    assert db.query(TermGPA).filter_by(student_id=uni.students.alice.id).count() == 1
    assert db.query(CumulativeGPA).filter_by(student_id=uni.students.alice.id).count() == 1


def test_cumulative_spans_terms(grading, enroll, complete_course, finals, uni):
    complete_course(uni.students.alice, uni.sections.cs101_past, letter="D", points=1.0, total=61.0)
    hum = enroll(uni.students.alice, uni.sections.hum101)
    grading.record_grade(hum.id, finals["hum101"].id, 50)
    grading.publish_final_grades(uni.sections.hum101.id)

    calc = grading.calculate_student_gpa(uni.students.alice.id, uni.fall.id)

    assert calc.term_gpa == pytest.approx(4.0)
    assert calc.cumulative_gpa == pytest.approx((1.0 * 3 + 4.0 * 4) / 7)


def test_term_without_completions_stores_no_row(grading, db, uni):
    calc = grading.calculate_student_gpa(uni.students.carol.id, uni.fall.id)

    assert calc.term_gpa == 0.0
    assert calc.credits_attempted == 0
    assert db.query(TermGPA).filter_by(student_id=uni.students.carol.id).count() == 0


def test_empty_transcript(grading, uni):
    transcript = grading.get_student_transcript(uni.students.carol.id)

    assert transcript.terms == []
    assert transcript.cumulative_gpa == 0.0
    assert transcript.academic_standing is None
    assert transcript.batch_name == "Batch 2025"


def test_transcript_groups_terms_oldest_first(grading, enroll, complete_course, finals, uni):
    complete_course(uni.students.alice, uni.sections.cs101_past, letter="B", points=3.0, total=82.0)
    hum = enroll(uni.students.alice, uni.sections.hum101)
    grading.record_grade(hum.id, finals["hum101"].id, 35)
    grading.publish_final_grades(uni.sections.hum101.id)

    transcript = grading.get_student_transcript(uni.students.alice.id)

    assert [t.term_name for t in transcript.terms] == ["Spring 2025", "Fall 2025"]
    spring, fall = transcript.terms
    assert [(c.course_code, c.letter_grade) for c in spring.courses] == [("CS101", "B")]
    assert spring.stored_gpa is None
    assert fall.computed_gpa == pytest.approx(2.0)
    assert fall.stored_gpa == pytest.approx(2.0)
    assert transcript.cumulative_gpa == pytest.approx((3.0 * 3 + 2.0 * 4) / 7)
    assert transcript.academic_standing == "ACADEMIC_WARNING"


def test_overview_shows_provisional_and_published(grading, enroll, finals, uni):
    cs = enroll(uni.students.alice, uni.sections.cs101)
    hum = enroll(uni.students.alice, uni.sections.hum101)
    grading.record_grade(cs.id, finals["cs101"].id, 77)
    grading.record_grade(hum.id, finals["hum101"].id, 45)
    grading.publish_final_grades(uni.sections.hum101.id)

    overview = {entry.course_code: entry for entry in grading.get_student_grade_overview(uni.students.alice.id)}

    assert (overview["CS101"].letter_grade, overview["CS101"].is_published) == ("C+", False)
    assert (overview["HUM101"].letter_grade, overview["HUM101"].is_published) == ("A", True)
