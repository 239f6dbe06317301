from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from tests.helpers.asserts import api_call, assert_error
from app.core.constants import EnrollmentStatusEnum
from app.crud.review import review as crud_review


def test_reconcile_repairs_drifted_course(client: TestClient, db_session: Session, instructor, student, admin, course_factory, lesson_factory, enrollment_factory, token_for):
    course = course_factory(instructor)
    lesson_factory(course)
    enrollment_factory(student, course)
    crud_review.create(db_session, obj_in={"user_id": student.id, "course_id": course.id, "rating": 4})

    # Simulate a crash between a row write and its aggregate update
    course.total_enrollments = 7
    course.lessons = []
    db_session.commit()

    body = api_call(client, "POST", f"/api/admin/courses/{course.id}/reconcile", headers=token_for(admin))
    report = body["data"]
    assert report["changed"] is True
    assert report["before"]["total_enrollments"] == 7
    assert report["after"] == {"rating": 4.0, "total_ratings": 1, "total_enrollments": 1, "lessons": 1, "reviews": 1}

    body = api_call(client, "POST", f"/api/admin/courses/{course.id}/reconcile", headers=token_for(admin))
    assert body["data"]["changed"] is False


def test_reconcile_all_courses(client: TestClient, db_session: Session, instructor, student, admin, course_factory, enrollment_factory, token_for):
    drifted = course_factory(instructor, title="Drifted")
    course_factory(instructor, title="Clean")
    enrollment_factory(student, drifted, status=EnrollmentStatusEnum.CANCELLED)
    drifted.total_enrollments = 3
    db_session.commit()

    body = api_call(client, "POST", "/api/admin/courses/reconcile", headers=token_for(admin))
    assert len(body["data"]) == 2
    assert body["message"] == "Reconciled 2 courses, 1 repaired"

    db_session.refresh(drifted)
    assert drifted.total_enrollments == 0


def test_reconcile_is_admin_only(client: TestClient, instructor, course_factory, token_for):
    course = course_factory(instructor)
    body = api_call(client, "POST", f"/api/admin/courses/{course.id}/reconcile", headers=token_for(instructor), expected_status=403)
    assert_error(body, "FORBIDDEN")
