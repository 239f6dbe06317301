import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from app.core.constants import EnrollmentStatusEnum, RoleEnum
from app.models.enrollment import Enrollment
from app.models.review import Review
from app.services.course_aggregate import course_aggregate_service
import main


class AggregateWriteFailed(RuntimeError):
    pass


def _fail(*args, **kwargs):
    raise AggregateWriteFailed("aggregate write failed")


@pytest.fixture
def failing_client(client: TestClient):
    # same dependency overrides as `client`, but 500s come back as responses
    return TestClient(main.app, raise_server_exceptions=False)


def test_enrollment_row_rolls_back_with_failed_counter(failing_client: TestClient, db_session: Session, monkeypatch, user_factory, course_factory, token_for):
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))
    student = user_factory(RoleEnum.STUDENT)
    monkeypatch.setattr(course_aggregate_service, "update_enrollment_count", _fail)

    r = failing_client.post(f"/api/courses/{course.id}/enroll", headers=token_for(student))
    assert r.status_code == 500
    assert r.json()["success"] is False

    assert db_session.query(Enrollment).count() == 0
    db_session.refresh(course)
    assert course.total_enrollments == 0


def test_cancel_rolls_back_with_failed_counter(failing_client: TestClient, db_session: Session, monkeypatch, user_factory, course_factory, enrollment_factory, token_for):
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))
    student = user_factory(RoleEnum.STUDENT)
    enrollment = enrollment_factory(student, course)
    monkeypatch.setattr(course_aggregate_service, "update_enrollment_count", _fail)

    r = failing_client.delete(f"/api/courses/{course.id}/unenroll", headers=token_for(student))
    assert r.status_code == 500

    db_session.refresh(enrollment)
    db_session.refresh(course)
    assert enrollment.status == EnrollmentStatusEnum.ACTIVE
    assert course.total_enrollments == 1


def test_review_row_rolls_back_with_failed_rating_recompute(failing_client: TestClient, db_session: Session, monkeypatch, user_factory, course_factory, enrollment_factory, token_for):
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))
    student = user_factory(RoleEnum.STUDENT)
    enrollment_factory(student, course)
    monkeypatch.setattr(course_aggregate_service, "recalculate_rating", _fail)

    r = failing_client.post(f"/api/courses/{course.id}/reviews", headers=token_for(student), json={"rating": 5})
    assert r.status_code == 500

    assert db_session.query(Review).count() == 0
    db_session.refresh(course)
    assert course.rating == 0
    assert course.total_ratings == 0
    assert course.reviews == []

    monkeypatch.undo()
    r = failing_client.post(f"/api/courses/{course.id}/reviews", headers=token_for(student), json={"rating": 5})
    assert r.status_code == 201
    db_session.refresh(course)
    assert course.total_ratings == 1
