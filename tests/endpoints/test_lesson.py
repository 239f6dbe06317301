from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from tests.helpers.asserts import api_call, assert_error
from app.core.constants import CourseStatusEnum, EnrollmentStatusEnum, RoleEnum


def test_owner_adds_lessons_in_order(client: TestClient, db_session: Session, instructor, course_factory, token_for):
    course = course_factory(instructor, status=CourseStatusEnum.DRAFT)
    headers = token_for(instructor)

    first = api_call(client, "POST", f"/api/courses/{course.id}/lessons", headers=headers, json={"title": "Welcome", "is_published": True}, expected_status=201)
    second = api_call(client, "POST", f"/api/courses/{course.id}/lessons", headers=headers, json={"title": "Setup", "duration": 12}, expected_status=201)
    assert first["data"]["order"] == 0
    assert second["data"]["order"] == 1
    assert second["data"]["lesson_type"] == "video"

    db_session.refresh(course)
    assert [l["title"] for l in course.lessons] == ["Welcome", "Setup"]


def test_non_owner_cannot_add_lesson(client: TestClient, instructor, user_factory, course_factory, token_for):
    course = course_factory(instructor)
    intruder = user_factory(RoleEnum.INSTRUCTOR)

    body = api_call(client, "POST", f"/api/courses/{course.id}/lessons", headers=token_for(intruder), json={"title": "Nope"}, expected_status=403)
    assert_error(body, "FORBIDDEN")


def test_anonymous_sees_only_free_published_lessons(client: TestClient, instructor, course_factory, lesson_factory):
    course = course_factory(instructor)
    lesson_factory(course, title="Preview", is_free=True)
    lesson_factory(course, title="Paid")
    lesson_factory(course, title="Unpublished preview", is_free=True, is_published=False)

    body = api_call(client, "GET", f"/api/courses/{course.id}/lessons")
    assert [l["title"] for l in body["data"]["lessons"]] == ["Preview"]
    assert body["data"]["can_access_all"] is False
    assert body["data"]["total_lessons"] == 1


def test_enrolled_student_sees_all_lessons(client: TestClient, instructor, student, course_factory, lesson_factory, enrollment_factory, token_for):
    course = course_factory(instructor)
    lesson_factory(course, title="Preview", is_free=True)
    lesson_factory(course, title="Paid")
    enrollment_factory(student, course)

    body = api_call(client, "GET", f"/api/courses/{course.id}/lessons", headers=token_for(student))
    assert body["data"]["can_access_all"] is True
    assert [l["title"] for l in body["data"]["lessons"]] == ["Preview", "Paid"]


def test_completed_enrollment_keeps_lesson_access(client: TestClient, instructor, student, course_factory, lesson_factory, enrollment_factory, token_for):
    course = course_factory(instructor)
    paid = lesson_factory(course, title="Paid")
    enrollment_factory(student, course, status=EnrollmentStatusEnum.COMPLETED, progress=100)

    body = api_call(client, "GET", f"/api/courses/{course.id}/lessons/{paid.id}", headers=token_for(student))
    assert body["data"]["title"] == "Paid"


def test_cancelled_enrollment_loses_lesson_access(client: TestClient, instructor, student, course_factory, lesson_factory, enrollment_factory, token_for):
    course = course_factory(instructor)
    paid = lesson_factory(course, title="Paid")
    enrollment_factory(student, course, status=EnrollmentStatusEnum.CANCELLED)

    body = api_call(client, "GET", f"/api/courses/{course.id}/lessons/{paid.id}", headers=token_for(student), expected_status=403)
    assert_error(body, "FORBIDDEN")


def test_free_lesson_is_readable_without_enrollment(client: TestClient, instructor, course_factory, lesson_factory):
    course = course_factory(instructor)
    preview = lesson_factory(course, title="Preview", is_free=True)
    hidden = lesson_factory(course, title="Hidden", is_free=True, is_published=False)

    body = api_call(client, "GET", f"/api/courses/{course.id}/lessons/{preview.id}")
    assert body["data"]["id"] == str(preview.id)
    api_call(client, "GET", f"/api/courses/{course.id}/lessons/{hidden.id}", expected_status=404)


def test_update_and_delete_lesson_refresh_snapshot(client: TestClient, db_session: Session, instructor, course_factory, lesson_factory, token_for):
    course = course_factory(instructor)
    lesson = lesson_factory(course, title="Draft title")
    headers = token_for(instructor)

    body = api_call(client, "PUT", f"/api/courses/{course.id}/lessons/{lesson.id}", headers=headers, json={"title": "Final title", "is_free": True})
    assert body["data"]["title"] == "Final title"
    assert body["data"]["is_free"] is True
    db_session.refresh(course)
    assert course.lessons[0]["title"] == "Final title"

    api_call(client, "DELETE", f"/api/courses/{course.id}/lessons/{lesson.id}", headers=headers)
    db_session.refresh(course)
    assert course.lessons == []
    api_call(client, "GET", f"/api/courses/{course.id}/lessons/{lesson.id}", headers=headers, expected_status=404)


def test_lesson_from_another_course_is_not_found(client: TestClient, instructor, course_factory, lesson_factory, token_for):
    course = course_factory(instructor)
    other = course_factory(instructor, title="Other course")
    foreign = lesson_factory(other)

    api_call(client, "GET", f"/api/courses/{course.id}/lessons/{foreign.id}", headers=token_for(instructor), expected_status=404)


def test_lesson_title_must_fit_once_escaped(client: TestClient, instructor, course_factory, token_for):
    course = course_factory(instructor)
    headers = token_for(instructor)

    body = api_call(client, "POST", f"/api/courses/{course.id}/lessons", headers=headers, json={"title": "&" * 41}, expected_status=400)
    assert_error(body, "VALIDATION_ERROR")
    body = api_call(client, "POST", f"/api/courses/{course.id}/lessons", headers=headers, json={"title": "&" * 40}, expected_status=201)
    assert body["data"]["title"] == "&amp;" * 40
