# tests/conftest.py - In-memory database and a small university to run the services against
import os

# Settings validate on import; give them a throwaway environment first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-characters")
os.environ["ENV"] = "test"

from datetime import date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import configure_sqlite_engine
from app.models import (
    Base,
    AcademicTerm,
    Batch,
    College,
    Course,
    Department,
    Enrollment,
    FacultyMember,
    FinalGrade,
    Schedule,
    Section,
    Student,
    User,
)
from app.services.grade_scale import seed_default_grade_scale

# Inside the Fall 2025 registration window
NOW = datetime(2025, 9, 10, 12, 0)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite_engine(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _section(course, term, code, capacity, slots, faculty=None):
    return Section(
        course=course,
        term=term,
        faculty=faculty,
        code=code,
        capacity=capacity,
        schedules=[Schedule(day=day, start_time=start, end_time=end, room="R1") for day, start, end in slots],
    )


@pytest.fixture
def uni(db):
    """
    One college with two departments, a batch with a finished spring term
    and an open fall term, and a handful of courses and sections.
    """
    college = College(code="ENG", name_en="Engineering")
    cs = Department(college=college, code="CS", name_en="Computer Science", capacity=2, min_gpa=2.5, selection_year=1)
    math = Department(college=college, code="MATH", name_en="Mathematics", capacity=1, min_gpa=2.0, selection_year=1)

    batch = Batch(name="Batch 2025", year=2025, min_credits=0, max_credits=18)

    spring = AcademicTerm(
        batch=batch,
        name="Spring 2025",
        type="SPRING",
        status="COMPLETED",
        start_date=date(2025, 2, 1),
        end_date=date(2025, 6, 15),
        registration_start=datetime(2025, 1, 15),
        registration_end=datetime(2025, 2, 10),
    )
    fall = AcademicTerm(
        batch=batch,
        name="Fall 2025",
        type="FALL",
        status="ACTIVE",
        start_date=date(2025, 9, 1),
        end_date=date(2026, 1, 15),
        registration_start=datetime(2025, 9, 1),
        registration_end=datetime(2025, 9, 20),
    )

    users = SimpleNamespace(
        alice=User(email="alice@uni.test", full_name="Alice Adams", role="STUDENT"),
        bob=User(email="bob@uni.test", full_name="Bob Brown", role="STUDENT"),
        admin=User(email="registrar@uni.test", full_name="Registrar", role="ADMIN"),
        faculty=User(email="prof@uni.test", full_name="Prof. Ada", role="FACULTY"),
    )
    db.add_all([college, batch, *vars(users).values()])
    db.flush()

    faculty = FacultyMember(name_en="Prof. Ada", user_id=users.faculty.id, department_id=cs.id)

    cs101 = Course(code="CS101", name_en="Intro to Programming", credits=3)
    cs201 = Course(code="CS201", name_en="Data Structures", credits=3)
    math101 = Course(code="MATH101", name_en="Calculus I", credits=4)
    hum101 = Course(code="HUM101", name_en="Academic Writing", credits=4, category="GENERAL")
    cs301 = Course(code="CS301", name_en="Operating Systems", credits=3, department=cs)

    # day 0 = Sunday
    sections = SimpleNamespace(
        cs101_past=_section(cs101, spring, "01", 30, [(0, "08:00", "09:30")], faculty),
        cs101=_section(cs101, fall, "01", 30, [(0, "08:00", "09:30"), (2, "08:00", "09:30")], faculty),
        cs201=_section(cs201, fall, "01", 30, [(1, "10:00", "11:30")], faculty),
        math101=_section(math101, fall, "01", 1, [(0, "09:00", "10:30")]),
        hum101=_section(hum101, fall, "01", 30, [(3, "13:00", "15:00")]),
        cs301=_section(cs301, fall, "01", 30, [(4, "08:00", "09:00")]),
    )

    students = SimpleNamespace(
        alice=Student(student_code="S001", name_en="Alice Adams", batch=batch, user_id=users.alice.id),
        bob=Student(student_code="S002", name_en="Bob Brown", batch=batch, user_id=users.bob.id),
        carol=Student(student_code="S003", name_en="Carol Chen", batch=batch),
    )

    db.add_all([faculty, *vars(sections).values(), *vars(students).values()])
    db.flush()
    seed_default_grade_scale(db)
    db.commit()

    return SimpleNamespace(
        college=college,
        cs=cs,
        math=math,
        batch=batch,
        spring=spring,
        fall=fall,
        courses=SimpleNamespace(cs101=cs101, cs201=cs201, math101=math101, hum101=hum101, cs301=cs301),
        sections=sections,
        students=students,
        users=users,
        faculty=faculty,
    )


@pytest.fixture
def complete_course(db):
    """Record a COMPLETED enrollment with a published final grade, bypassing the engine"""
    def _complete(student, section, letter="A", points=4.0, total=92.0):
        enrollment = Enrollment(student_id=student.id, section_id=section.id, enrolled_at=datetime(2025, 2, 1))
        enrollment.transition("ENROLLED", reason="Registered")
        enrollment.transition("COMPLETED", reason="Final grade published")
        enrollment.final_grade = FinalGrade(
            letter_grade=letter,
            grade_point=points,
            total_score=total,
            status="PUBLISHED",
            published_at=datetime(2025, 6, 20),
        )
        db.add(enrollment)
        db.commit()
        return enrollment
    return _complete
