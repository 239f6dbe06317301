import uuid
import pytest
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.config import Settings
from app.core.constants import EnrollmentStatusEnum, RoleEnum
from app.core.exceptions import Conflict, DuplicateReview, NotFound, ValidationError, translate_integrity_error
from app.crud.course import course as crud_course
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.review import review as crud_review
from app.services.course_aggregate import course_aggregate_service
from app.services.enrollment import calculate_progress


def test_unparseable_json_columns_read_as_empty(db_session: Session, user_factory, course_factory):
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR), tags=["kept"])
    db_session.execute(
        text("UPDATE courses SET tags = :bad, lessons = :obj WHERE id = :id"),
        {"bad": "{not json", "obj": '{"a": 1}', "id": course.id.hex},
    )
    db_session.commit()
    db_session.expire_all()

    reloaded = crud_course.get(db_session, id=course.id)
    assert reloaded.tags == []
    assert reloaded.lessons == []


def test_enrollment_counter_never_goes_negative(db_session: Session, user_factory, course_factory):
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))

    course_aggregate_service.update_enrollment_count(db_session, course=course, increment=False)
    assert course.total_enrollments == 0

    course_aggregate_service.update_enrollment_count(db_session, course=course, increment=True)
    course_aggregate_service.update_enrollment_count(db_session, course=course, increment=True)
    assert course.total_enrollments == 2


def test_duplicate_active_review_is_rejected_by_service(db_session: Session, user_factory, course_factory):
    student = user_factory()
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))
    course_aggregate_service.add_review(db_session, course=course, user=student, rating=5, comment=None)

    with pytest.raises(DuplicateReview):
        course_aggregate_service.add_review(db_session, course=course, user=student, rating=2, comment=None)


def test_partial_unique_index_backs_review_uniqueness(db_session: Session, user_factory, course_factory):
    student = user_factory()
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))
    crud_review.create(db_session, obj_in={"user_id": student.id, "course_id": course.id, "rating": 3})

    with pytest.raises(IntegrityError) as exc_info:
        crud_review.create(db_session, obj_in={"user_id": student.id, "course_id": course.id, "rating": 4})
    assert isinstance(translate_integrity_error(exc_info.value), Conflict)
    db_session.rollback()

    first = crud_review.create(db_session, obj_in={"user_id": student.id, "course_id": course.id, "rating": 3})
    crud_review.delete(db_session, db_obj=first)
    again = crud_review.create(db_session, obj_in={"user_id": student.id, "course_id": course.id, "rating": 4})
    assert again.id != first.id


def test_unique_enrollment_constraint(db_session: Session, user_factory, course_factory):
    student = user_factory()
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))
    crud_enrollment.create(db_session, obj_in={"user_id": student.id, "course_id": course.id, "status": EnrollmentStatusEnum.CANCELLED})

    with pytest.raises(IntegrityError) as exc_info:
        crud_enrollment.create(db_session, obj_in={"user_id": student.id, "course_id": course.id})
    assert isinstance(translate_integrity_error(exc_info.value), Conflict)


def test_foreign_key_violation_maps_to_not_found(db_session: Session, user_factory):
    student = user_factory()

    with pytest.raises(IntegrityError) as exc_info:
        crud_enrollment.create(db_session, obj_in={"user_id": student.id, "course_id": uuid.uuid4()})
    assert isinstance(translate_integrity_error(exc_info.value), NotFound)


def test_check_constraint_maps_to_validation_error(db_session: Session, user_factory, course_factory):
    student = user_factory()
    course = course_factory(user_factory(RoleEnum.INSTRUCTOR))

    with pytest.raises(IntegrityError) as exc_info:
        crud_review.create(db_session, obj_in={"user_id": student.id, "course_id": course.id, "rating": 9})
    assert isinstance(translate_integrity_error(exc_info.value), ValidationError)


@pytest.mark.parametrize(
    "completed,published,expected",
    [
        ([], [], 0),
        (["a"], [], 0),
        (["a"], ["a", "b", "c"], 33),
        (["a", "b"], ["a", "b", "c"], 67),
        (["a", "b", "stale"], ["a", "b"], 100),
    ],
)
def test_calculate_progress(completed, published, expected):
    assert calculate_progress(completed, published) == expected


def test_derived_database_url_names_the_psycopg2_driver():
    settings = Settings(DATABASE_URL="", DATABASE_HOST="db", DATABASE_PORT="5432", DATABASE_NAME="courses")
    assert settings.DATABASE_URL.startswith("postgresql+psycopg2://")
    assert make_url(settings.DATABASE_URL).get_driver_name() == "psycopg2"
    assert settings.DATABASE_URL.endswith("@db:5432/courses")
