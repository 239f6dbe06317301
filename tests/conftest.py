import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import uuid
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from app.core.database import Base, get_db
from app.core.constants import CourseCategoryEnum, CourseStatusEnum, EnrollmentStatusEnum, RoleEnum
from app.core.security import create_access_token
from app.crud.course import course as crud_course
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.crud.user import user as crud_user
from app.services.course_aggregate import course_aggregate_service
from app.utils import deps as deps_utils
import main


@pytest.fixture(scope="session")
def database_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(database_engine):
    Base.metadata.create_all(bind=database_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        Base.metadata.drop_all(bind=database_engine)

@pytest.fixture(scope="function")
def client(db_session):
    def _transactional_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = _transactional_db
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def user_factory(db_session):
    def _user_factory(role: RoleEnum = RoleEnum.STUDENT, name: str = "Test User", email: str = None):
        user = crud_user.create(
            db_session,
            obj_in={
                "name": name,
                "email": email or f"{role.value}-{uuid.uuid4().hex[:8]}@test.com",
                "role": role,
                "is_verified": True,
            },
        )
        db_session.commit()
        return user
    return _user_factory

@pytest.fixture
def instructor(user_factory):
    return user_factory(RoleEnum.INSTRUCTOR, name="Ada Instructor")

@pytest.fixture
def student(user_factory):
    return user_factory(RoleEnum.STUDENT, name="Sam Student")

@pytest.fixture
def admin(user_factory):
    return user_factory(RoleEnum.ADMIN, name="Alex Admin")

@pytest.fixture
def token_for(client):
    """Bearer headers for a user; depends on ``client`` so the app is wired first."""
    return auth_headers


@pytest.fixture
def course_factory(db_session):
    def _course_factory(instructor, **overrides):
        data = {
            "title": "Intro to Testing",
            "description": "Learn how to write tests that matter.",
            "category": CourseCategoryEnum.PROGRAMMING,
            "price": 0,
            "thumbnail": "https://cdn.test/thumb.png",
            "instructor_id": instructor.id,
            "status": CourseStatusEnum.PUBLISHED,
            "tags": [],
        }
        data.update(overrides)
        course = crud_course.create(db_session, obj_in=data)
        db_session.commit()
        return course
    return _course_factory

@pytest.fixture
def lesson_factory(db_session):
    def _lesson_factory(course, **overrides):
        data = {
            "course_id": course.id,
            "title": "Lesson",
            "order": crud_lesson.next_order(db_session, course_id=course.id),
            "is_published": True,
            "is_free": False,
        }
        data.update(overrides)
        lesson = crud_lesson.create(db_session, obj_in=data)
        course_aggregate_service.refresh_lessons_snapshot(db_session, course)
        db_session.commit()
        return lesson
    return _lesson_factory

@pytest.fixture
def enrollment_factory(db_session):
    def _enrollment_factory(user, course, status: EnrollmentStatusEnum = EnrollmentStatusEnum.ACTIVE, **overrides):
        data = {
            "user_id": user.id,
            "course_id": course.id,
            "status": status,
            "price_paid": course.price,
            "completed_lessons": [],
        }
        data.update(overrides)
        enrollment = crud_enrollment.create(db_session, obj_in=data)
        if status != EnrollmentStatusEnum.CANCELLED:
            course_aggregate_service.update_enrollment_count(db_session, course=course, increment=True)
        db_session.commit()
        return enrollment
    return _enrollment_factory
