from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from tests.helpers.asserts import api_call, assert_error
from app.core.constants import CourseCategoryEnum, CourseStatusEnum, RoleEnum

COURSE_PAYLOAD = {
    "title": "Python for Data",
    "description": "Pandas, plotting and a little statistics.",
    "category": "data-science",
    "level": "beginner",
    "price": 49.99,
    "thumbnail": "https://cdn.test/python.png",
    "tags": ["python", "data"],
}


def test_instructor_creates_draft_course(client: TestClient, instructor, token_for):
    body = api_call(client, "POST", "/api/courses/", headers=token_for(instructor), json=COURSE_PAYLOAD, expected_status=201)
    data = body["data"]
    assert body["success"] is True
    assert data["status"] == "draft"
    assert data["instructor_id"] == str(instructor.id)
    assert data["instructor"]["name"] == instructor.name
    assert data["rating"] == 0
    assert data["total_enrollments"] == 0
    assert data["is_free"] is False
    assert data["tags"] == ["python", "data"]


def test_student_cannot_create_course(client: TestClient, student, token_for):
    body = api_call(client, "POST", "/api/courses/", headers=token_for(student), json=COURSE_PAYLOAD, expected_status=403)
    assert_error(body, "FORBIDDEN")


def test_create_course_requires_auth(client: TestClient):
    body = api_call(client, "POST", "/api/courses/", json=COURSE_PAYLOAD, expected_status=401)
    assert_error(body, "UNAUTHORIZED")


def test_create_course_accepts_category_alias_and_text_arrays(client: TestClient, instructor, token_for):
    payload = dict(COURSE_PAYLOAD, category="Web-Development", requirements="A laptop\nCuriosity")
    body = api_call(client, "POST", "/api/courses/", headers=token_for(instructor), json=payload, expected_status=201)
    assert body["data"]["category"] == "web"
    assert body["data"]["requirements"] == ["A laptop", "Curiosity"]


def test_create_course_rejects_invalid_input(client: TestClient, instructor, token_for):
    headers = token_for(instructor)
    body = api_call(client, "POST", "/api/courses/", headers=headers, json=dict(COURSE_PAYLOAD, category="cooking"), expected_status=400)
    assert_error(body, "VALIDATION_ERROR")
    assert body["error"]["details"]["validation_errors"]

    api_call(client, "POST", "/api/courses/", headers=headers, json=dict(COURSE_PAYLOAD, title="ab"), expected_status=400)
    api_call(client, "POST", "/api/courses/", headers=headers, json=dict(COURSE_PAYLOAD, price=-5), expected_status=400)


def test_only_admin_can_feature_a_course(client: TestClient, instructor, admin, token_for):
    body = api_call(client, "POST", "/api/courses/", headers=token_for(instructor), json=dict(COURSE_PAYLOAD, featured=True), expected_status=201)
    assert body["data"]["featured"] is False

    course_id = body["data"]["id"]
    api_call(client, "PUT", f"/api/courses/{course_id}", headers=token_for(instructor), json={"featured": True}, expected_status=403)
    body = api_call(client, "PUT", f"/api/courses/{course_id}", headers=token_for(admin), json={"featured": True})
    assert body["data"]["featured"] is True


def test_list_courses_returns_only_published_by_default(client: TestClient, instructor, course_factory):
    course_factory(instructor, title="Published course")
    course_factory(instructor, title="Draft course", status=CourseStatusEnum.DRAFT)

    body = api_call(client, "GET", "/api/courses/")
    titles = [c["title"] for c in body["data"]["courses"]]
    assert titles == ["Published course"]
    assert body["data"]["pagination"]["total"] == 1


def test_list_unpublished_courses_is_scoped(client: TestClient, instructor, user_factory, course_factory, token_for):
    other = user_factory(RoleEnum.INSTRUCTOR)
    course_factory(instructor, title="Mine", status=CourseStatusEnum.DRAFT)
    course_factory(other, title="Theirs", status=CourseStatusEnum.DRAFT)

    body = api_call(client, "GET", "/api/courses/", params={"status": "draft"}, expected_status=403)
    assert_error(body, "FORBIDDEN")

    body = api_call(client, "GET", "/api/courses/", headers=token_for(instructor), params={"status": "draft"})
    assert [c["title"] for c in body["data"]["courses"]] == ["Mine"]


def test_list_courses_filters(client: TestClient, instructor, course_factory):
    course_factory(instructor, title="Free Python", price=0, tags=["python"])
    course_factory(instructor, title="Paid Python", price=30, tags=["python", "advanced"])
    course_factory(instructor, title="Paid Design", price=80, tags=["figma"])

    body = api_call(client, "GET", "/api/courses/", params={"is_free": "true"})
    assert [c["title"] for c in body["data"]["courses"]] == ["Free Python"]

    body = api_call(client, "GET", "/api/courses/", params={"min_price": 10, "max_price": 50})
    assert [c["title"] for c in body["data"]["courses"]] == ["Paid Python"]

    body = api_call(client, "GET", "/api/courses/", params={"search": "python", "sort_by": "price", "order": "asc"})
    assert [c["title"] for c in body["data"]["courses"]] == ["Free Python", "Paid Python"]

    body = api_call(client, "GET", "/api/courses/", params={"tags": "advanced"})
    assert [c["title"] for c in body["data"]["courses"]] == ["Paid Python"]


def test_list_courses_rejects_inverted_price_range(client: TestClient):
    body = api_call(client, "GET", "/api/courses/", params={"min_price": 50, "max_price": 10}, expected_status=400)
    assert_error(body, "VALIDATION_ERROR")


def test_list_courses_paginates(client: TestClient, instructor, course_factory):
    for price in range(5):
        course_factory(instructor, title=f"Course {price}", price=price)

    body = api_call(client, "GET", "/api/courses/", params={"limit": 2, "page": 2, "sort_by": "price", "order": "asc"})
    assert [c["title"] for c in body["data"]["courses"]] == ["Course 2", "Course 3"]
    pagination = body["data"]["pagination"]
    assert pagination["total"] == 5
    assert pagination["pages"] == 3
    assert pagination["has_next"] is True
    assert pagination["has_prev"] is True


def test_draft_course_is_hidden_from_other_users(client: TestClient, instructor, student, course_factory, token_for):
    draft = course_factory(instructor, status=CourseStatusEnum.DRAFT)

    api_call(client, "GET", f"/api/courses/{draft.id}", expected_status=404)
    api_call(client, "GET", f"/api/courses/{draft.id}", headers=token_for(student), expected_status=404)
    body = api_call(client, "GET", f"/api/courses/{draft.id}", headers=token_for(instructor))
    assert body["data"]["id"] == str(draft.id)


def test_read_course_reports_caller_enrollment(client: TestClient, instructor, student, course_factory, enrollment_factory, token_for):
    course = course_factory(instructor)
    enrollment_factory(student, course)

    body = api_call(client, "GET", f"/api/courses/{course.id}", headers=token_for(student))
    assert body["data"]["is_enrolled"] is True
    assert body["data"]["user_enrollment_status"] == "active"
    assert body["data"]["user_progress"] == 0


def test_unknown_course_returns_not_found(client: TestClient):
    body = api_call(client, "GET", "/api/courses/00000000-0000-0000-0000-000000000000", expected_status=404)
    assert_error(body, "NOT_FOUND")


def test_non_owner_cannot_update_course(client: TestClient, instructor, user_factory, course_factory, token_for):
    course = course_factory(instructor)
    intruder = user_factory(RoleEnum.INSTRUCTOR)

    body = api_call(client, "PUT", f"/api/courses/{course.id}", headers=token_for(intruder), json={"title": "Hijacked"}, expected_status=403)
    assert_error(body, "FORBIDDEN")


def test_owner_updates_course(client: TestClient, instructor, course_factory, token_for):
    course = course_factory(instructor)
    body = api_call(client, "PUT", f"/api/courses/{course.id}", headers=token_for(instructor), json={"title": "Renamed course", "price": 15})
    assert body["data"]["title"] == "Renamed course"
    assert body["data"]["price"] == 15


def test_delete_course_blocked_by_active_enrollments(client: TestClient, db_session: Session, instructor, student, course_factory, enrollment_factory, lesson_factory, token_for):
    course = course_factory(instructor)
    lesson = lesson_factory(course)
    enrollment_factory(student, course)

    body = api_call(client, "DELETE", f"/api/courses/{course.id}", headers=token_for(instructor), expected_status=400)
    assert_error(body, "VALIDATION_ERROR")

    empty = course_factory(instructor, title="Nobody enrolled")
    api_call(client, "DELETE", f"/api/courses/{empty.id}", headers=token_for(instructor))
    api_call(client, "GET", f"/api/courses/{empty.id}", headers=token_for(instructor), expected_status=404)

    db_session.refresh(lesson)
    assert lesson.deleted_at is None


def test_publish_requires_lesson_and_thumbnail(client: TestClient, instructor, course_factory, lesson_factory, token_for):
    headers = token_for(instructor)
    course = course_factory(instructor, status=CourseStatusEnum.DRAFT, thumbnail=None)

    body = api_call(client, "PUT", f"/api/courses/{course.id}/publish", headers=headers, expected_status=400)
    assert "lesson" in body["message"]

    lesson_factory(course)
    body = api_call(client, "PUT", f"/api/courses/{course.id}/publish", headers=headers, expected_status=400)
    assert "thumbnail" in body["message"]

    api_call(client, "PUT", f"/api/courses/{course.id}", headers=headers, json={"thumbnail": "https://cdn.test/t.png"})
    body = api_call(client, "PUT", f"/api/courses/{course.id}/publish", headers=headers)
    assert body["data"]["status"] == "published"
    assert body["data"]["published_at"] is not None

    body = api_call(client, "PUT", f"/api/courses/{course.id}/unpublish", headers=headers)
    assert body["data"]["status"] == "draft"


def test_categories_count_published_courses(client: TestClient, instructor, course_factory):
    course_factory(instructor, category=CourseCategoryEnum.DESIGN)
    course_factory(instructor, category=CourseCategoryEnum.DESIGN)
    course_factory(instructor, category=CourseCategoryEnum.MUSIC, status=CourseStatusEnum.DRAFT)

    body = api_call(client, "GET", "/api/courses/categories")
    counts = {c["category"]: c["count"] for c in body["data"]}
    assert counts["design"] == 2
    assert counts["music"] == 0

    body = api_call(client, "GET", "/api/courses/category/design")
    assert body["data"]["pagination"]["total"] == 2

    api_call(client, "GET", "/api/courses/category/cooking", expected_status=400)


def test_featured_and_trending(client: TestClient, instructor, student, course_factory, enrollment_factory):
    featured = course_factory(instructor, title="Featured", featured=True)
    popular = course_factory(instructor, title="Popular")
    enrollment_factory(student, popular)

    body = api_call(client, "GET", "/api/courses/featured")
    assert [c["id"] for c in body["data"]] == [str(featured.id)]

    body = api_call(client, "GET", "/api/courses/trending")
    assert body["data"][0]["id"] == str(popular.id)
    assert body["data"][0]["total_enrollments"] == 1


def test_instructor_courses_and_stats(client: TestClient, instructor, student, course_factory, enrollment_factory, token_for):
    paid = course_factory(instructor, title="Paid", price=20)
    course_factory(instructor, title="Draft", status=CourseStatusEnum.DRAFT)
    enrollment_factory(student, paid)

    body = api_call(client, "GET", "/api/courses/instructor/my-courses", headers=token_for(instructor))
    assert body["data"]["pagination"]["total"] == 2

    body = api_call(client, "GET", "/api/courses/instructor/stats", headers=token_for(instructor))
    stats = body["data"]
    assert stats["total_courses"] == 2
    assert stats["published_courses"] == 1
    assert stats["draft_courses"] == 1
    assert stats["total_students"] == 1
    assert stats["total_revenue"] == 20

    api_call(client, "GET", "/api/courses/instructor/stats", headers=token_for(student), expected_status=403)


def test_course_stats_for_owner_only(client: TestClient, instructor, student, course_factory, enrollment_factory, lesson_factory, token_for):
    course = course_factory(instructor, price=10)
    lesson_factory(course)
    lesson_factory(course, is_published=False)
    enrollment_factory(student, course)

    body = api_call(client, "GET", f"/api/courses/{course.id}/stats", headers=token_for(instructor))
    stats = body["data"]
    assert stats["total_enrollments"] == 1
    assert stats["enrollments_by_status"]["active"] == 1
    assert stats["total_lessons"] == 2
    assert stats["published_lessons"] == 1
    assert stats["revenue"] == 10

    api_call(client, "GET", f"/api/courses/{course.id}/stats", headers=token_for(student), expected_status=403)


def test_title_length_is_checked_after_escaping(client: TestClient, instructor, token_for):
    headers = token_for(instructor)

    # 199 characters typed, 349 once every "&" becomes "&amp;"
    body = api_call(client, "POST", "/api/courses/", headers=headers, json={**COURSE_PAYLOAD, "title": "R&D " * 50}, expected_status=400)
    assert_error(body, "VALIDATION_ERROR")
    api_call(client, "POST", "/api/courses/", headers=headers, json={**COURSE_PAYLOAD, "language": "&" * 20}, expected_status=400)

    body = api_call(client, "POST", "/api/courses/", headers=headers, json={**COURSE_PAYLOAD, "title": "R&D " * 20}, expected_status=201)
    title = body["data"]["title"]
    assert title == ("R&amp;D " * 20).strip()
    assert len(title) <= 200


def test_tag_filter_matches_escaped_and_combined_tags(client: TestClient, instructor, token_for):
    headers = token_for(instructor)
    api_call(client, "POST", "/api/courses/", headers=headers, json={**COURSE_PAYLOAD, "title": "Team Q&A", "tags": ["Q&A", "python"]}, expected_status=201)
    api_call(client, "POST", "/api/courses/", headers=headers, json={**COURSE_PAYLOAD, "title": "Only Python", "tags": ["python"]}, expected_status=201)

    body = api_call(client, "GET", "/api/courses/", headers=headers, params={"status": "draft", "tags": "Q&A,python"})
    assert [c["title"] for c in body["data"]["courses"]] == ["Team Q&amp;A"]

    body = api_call(client, "GET", "/api/courses/", headers=headers, params={"status": "draft", "tags": "python", "sort_by": "title", "order": "asc"})
    assert [c["title"] for c in body["data"]["courses"]] == ["Only Python", "Team Q&amp;A"]


def test_status_update_applies_publish_rules(client: TestClient, instructor, course_factory, lesson_factory, token_for):
    headers = token_for(instructor)
    body = api_call(client, "POST", "/api/courses/", headers=headers, json={**COURSE_PAYLOAD, "status": "published"}, expected_status=400)
    assert "lesson" in body["message"]

    course = course_factory(instructor, status=CourseStatusEnum.DRAFT, thumbnail=None)
    body = api_call(client, "PUT", f"/api/courses/{course.id}", headers=headers, json={"status": "published"}, expected_status=400)
    assert "lesson" in body["message"]

    lesson_factory(course)
    body = api_call(client, "PUT", f"/api/courses/{course.id}", headers=headers, json={"status": "published"}, expected_status=400)
    assert "thumbnail" in body["message"]

    body = api_call(client, "PUT", f"/api/courses/{course.id}", headers=headers, json={"status": "published", "thumbnail": "https://cdn.test/t.png"})
    assert body["data"]["status"] == "published"
    assert body["data"]["published_at"] is not None
