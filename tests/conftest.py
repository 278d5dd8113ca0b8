from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from classroom.core.database import get_supabase
from classroom.main import app
from classroom.services.assignment_catalog import AssignmentCatalog
from classroom.services.blob_store import BlobStore
from classroom.services.course_directory import CourseDirectory
from classroom.services.submission_ledger import SubmissionLedger
from classroom.utils import timeutil

from fakes import FakeSupabase


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def courses(db) -> CourseDirectory:
    return CourseDirectory(db)


@pytest.fixture
def catalog(db, courses) -> AssignmentCatalog:
    return AssignmentCatalog(db, courses)


@pytest.fixture
def ledger(db, courses, catalog) -> SubmissionLedger:
    return SubmissionLedger(db, courses, catalog)


@pytest.fixture
def blob_store(db) -> BlobStore:
    return BlobStore(db, bucket="test-bucket")


@pytest.fixture
def client(db):
    app.dependency_overrides[get_supabase] = lambda: db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def freeze_time(monkeypatch):
    """Pin timeutil.utcnow to the given ISO timestamp."""
    def freeze(iso: str):
        moment = timeutil.parse_timestamp(iso)
        monkeypatch.setattr(timeutil, "utcnow", lambda: moment)
        return moment
    return freeze


@pytest.fixture
def make_course(courses):
    def make(**overrides):
        fields = {
            "title": "Intro to Biology",
            "description": "Cells, genetics and evolution for beginners",
            "instructor_id": "teacher-1",
            "instructor_name": "Dr. Rivera",
            "category": "science",
            "level": "beginner",
            "duration": 30,
            "max_students": 3,
            "tags": ["biology"],
        }
        fields.update(overrides)
        return courses.create_course(fields)
    return make


@pytest.fixture
def make_assignment(catalog):
    def make(course, **overrides):
        fields = {
            "course_id": course["id"],
            "title": "Cell diagram",
            "description": "Label every organelle in the diagram",
            "due_date": (timeutil.utcnow() + timedelta(days=7)).isoformat(),
            "max_points": 100,
            "assignment_type": "homework",
            "created_by": "teacher-1",
            "submission_format": "text",
        }
        fields.update(overrides)
        return catalog.create(fields)
    return make


@pytest.fixture
def enrolled_student(courses):
    def enroll(course, student_id="student-1", name="Ada Lovelace", email="ada@example.com"):
        courses.enroll_student(course["id"], student_id, name, email)
        return {"student_id": student_id, "student_name": name, "student_email": email}
    return enroll
