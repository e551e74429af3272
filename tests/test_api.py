# tests/test_api.py - HTTP surface: auth, permission checks and error bodies
import pytest
from fastapi.testclient import TestClient

from app.core.db import get_db
from app.core.security import create_access_token
from app.main import app
from app.models import FacultyMember, User
from app.services.enrollment_service import EnrollmentService
from app.services.grading_service import GradingService


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(user):
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def test_root(client):
    assert client.get("/").json()["message"] == "University Registrar API"


def test_missing_token_rejected(client, uni):
    response = client.get("/api/grades/transcript")
    assert response.status_code in (401, 403)


def test_garbage_token_rejected(client, uni):
    response = client.get("/api/grades/transcript", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_student_reads_own_transcript(client, uni):
    response = client.get("/api/grades/transcript", headers=auth(uni.users.alice))

    assert response.status_code == 200
    body = response.json()
    assert (body["student_code"], body["terms"]) == ("S001", [])


def test_student_cannot_read_someone_else(client, uni):
    response = client.get(
        "/api/grades/transcript",
        params={"student_id": str(uni.students.bob.id)},
        headers=auth(uni.users.alice),
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Students can only access their own records"}


def test_failed_registration_lists_every_error(client, uni):
    # The fall registration window closed on 2025-09-20
    response = client.post(
        "/api/enrollments/",
        json={"student_id": str(uni.students.alice.id), "section_id": str(uni.sections.cs101.id)},
        headers=auth(uni.users.alice),
    )

    assert response.status_code == 422
    assert response.json()["errors"] == ["Registration period has ended"]


def test_student_cannot_bypass_rules(client, uni):
    response = client.post(
        "/api/enrollments/",
        json={
            "student_id": str(uni.students.alice.id),
            "section_id": str(uni.sections.cs101.id),
            "bypass_validation": True,
        },
        headers=auth(uni.users.alice),
    )

    assert response.status_code == 403


def test_admin_override_enrolls(client, uni):
    response = client.post(
        "/api/enrollments/",
        json={
            "student_id": str(uni.students.alice.id),
            "section_id": str(uni.sections.cs101.id),
            "bypass_validation": True,
        },
        headers=auth(uni.users.admin),
    )

    assert response.status_code == 201
    assert response.json()["status"] == "ENROLLED"

    roster = client.get(f"/api/enrollments/sections/{uni.sections.cs101.id}/roster", headers=auth(uni.users.admin))
    assert [r["student_code"] for r in roster.json()] == ["S001"]


def test_permission_table_guards_grading(client, uni):
    payload = {"section_id": str(uni.sections.cs101.id), "name": "Final", "weight": 100, "max_score": 100}

    assert client.post("/api/grades/components", json=payload, headers=auth(uni.users.admin)).status_code == 403

    created = client.post("/api/grades/components", json=payload, headers=auth(uni.users.faculty))
    assert created.status_code == 201
    assert created.json()["name"] == "Final"


def test_domain_errors_map_to_status_codes(client, uni):
    response = client.post(
        f"/api/courses/{uni.courses.cs101.id}/prerequisites",
        json={"prerequisite_id": str(uni.courses.cs101.id)},
        headers=auth(uni.users.admin),
    )

    assert response.status_code == 400
    assert "cannot be a prerequisite of itself" in response.json()["detail"]


@pytest.fixture
def other_professor(db, uni):
    user = User(email="grace@uni.test", full_name="Prof. Grace", role="FACULTY")
    db.add(user)
    db.flush()
    db.add(FacultyMember(name_en="Prof. Grace", user_id=user.id, department_id=uni.cs.id))
    db.commit()
    return user


def test_faculty_limited_to_sections_they_teach(client, other_professor, uni):
    cs101 = uni.sections.cs101.id
    payload = {"section_id": str(cs101), "name": "Quiz", "weight": 10, "max_score": 10}
    denied = [
        client.post(f"/api/grades/sections/{cs101}/publish", headers=auth(other_professor)),
        client.post("/api/grades/components", json=payload, headers=auth(other_professor)),
        client.get(f"/api/enrollments/sections/{cs101}/roster", headers=auth(other_professor)),
        client.get(f"/api/attendance/sections/{cs101}", headers=auth(other_professor)),
    ]

    assert [r.status_code for r in denied] == [403] * 4
    assert denied[0].json() == {"detail": "You can only manage sections you teach"}

    published = client.post(f"/api/grades/sections/{cs101}/publish", headers=auth(uni.users.faculty))
    assert published.status_code == 200
    assert published.json() == {"published": [], "failed": [], "skipped": []}


def test_faculty_cannot_touch_another_sections_scores(client, db, clock, other_professor, uni):
    enrollment = EnrollmentService(db, clock=clock).enroll_student(uni.students.alice.id, uni.sections.cs101.id)
    component = GradingService(db).create_component(uni.sections.cs101.id, "Final", weight=100, max_score=100)

    score = {"enrollment_id": str(enrollment.id), "component_id": str(component.id), "score": 90}
    assert client.post("/api/grades/", json=score, headers=auth(other_professor)).status_code == 403
    assert client.delete(f"/api/grades/components/{component.id}", headers=auth(other_professor)).status_code == 403

    assert client.post("/api/grades/", json=score, headers=auth(uni.users.faculty)).status_code == 200


def test_unstaffed_section_closed_to_faculty(client, uni):
    response = client.get(f"/api/enrollments/sections/{uni.sections.math101.id}/roster", headers=auth(uni.users.faculty))
    assert response.status_code == 403

    admin = client.get(f"/api/enrollments/sections/{uni.sections.math101.id}/roster", headers=auth(uni.users.admin))
    assert admin.status_code == 200
