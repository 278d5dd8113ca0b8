import pytest

from classroom.core.errors import (
    AssignmentRefDuplicate,
    AssignmentRefNotFound,
    CourseFull,
    CourseNotFound,
    DuplicateEnrollment,
)


def test_create_course_starts_empty(make_course):
    course = make_course()

    assert course["current_enrollments"] == 0
    assert course["enrolled_students"] == []
    assert course["assignments"] == []
    assert course["is_active"] is True
    assert course["created_at"] == course["updated_at"]


def test_list_active_courses_newest_first(courses, make_course, freeze_time):
    freeze_time("2024-01-01T00:00:00Z")
    older = make_course(title="Older course")
    freeze_time("2024-02-01T00:00:00Z")
    newer = make_course(title="Newer course")
    make_course(title="Hidden course", is_active=False)

    ids = [c["id"] for c in courses.list_active_courses()]

    assert ids == [newer["id"], older["id"]]


def test_enroll_student_writes_all_three_records(db, courses, make_course):
    course = make_course()

    enrollment = courses.enroll_student(course["id"], "s1", "Ada Lovelace", "ada@example.com")

    assert enrollment["status"] == "enrolled"
    assert enrollment["progress"] == 0

    stored = courses.get_course(course["id"])
    assert stored["current_enrollments"] == 1
    assert [s["student_id"] for s in stored["enrolled_students"]] == ["s1"]

    student = courses.get_student("s1")
    assert student["name"] == "Ada Lovelace"
    assert student["enrolled_courses"] == [
        {"course_id": course["id"], "course_name": course["title"], "enrolled_at": enrollment["enrolled_at"]}
    ]


def test_enroll_unknown_course(courses):
    with pytest.raises(CourseNotFound):
        courses.enroll_student("missing", "s1", "Ada", "ada@example.com")


def test_capacity_is_checked_before_duplicate(courses, make_course):
    course = make_course(max_students=1)
    courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")

    # s1 is already enrolled, but the full course wins
    with pytest.raises(CourseFull):
        courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")

    with pytest.raises(CourseFull) as exc:
        courses.enroll_student(course["id"], "s2", "Grace", "grace@example.com")
    assert exc.value.message == "Course is full"


def test_full_course_rejection_leaves_state_unchanged(db, courses, make_course):
    course = make_course(max_students=1)
    courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")
    before = courses.get_course(course["id"])

    with pytest.raises(CourseFull):
        courses.enroll_student(course["id"], "s2", "Grace", "grace@example.com")

    after = courses.get_course(course["id"])
    assert after == before
    assert after["current_enrollments"] == 1
    assert len(after["enrolled_students"]) == 1
    assert len(db.rows("enrollments")) == 1
    assert courses.get_student("s2") is None
    assert [s["id"] for s in db.rows("students")] == ["s1"]


def test_duplicate_enrollment_rejected(db, courses, make_course):
    course = make_course(max_students=5)
    courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")

    with pytest.raises(DuplicateEnrollment):
        courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")

    assert courses.get_course(course["id"])["current_enrollments"] == 1
    assert len(db.rows("enrollments")) == 1


def test_duplicate_detected_from_embedded_list(db, courses, make_course):
    course = make_course(max_students=5)
    courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")
    db.tables["enrollments"].clear()

    with pytest.raises(DuplicateEnrollment):
        courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")


def test_student_record_failure_does_not_fail_enrollment(db, courses, make_course):
    course = make_course()
    db.fail("students", "insert")

    enrollment = courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")

    assert enrollment["student_id"] == "s1"
    assert courses.get_course(course["id"])["current_enrollments"] == 1
    assert courses.get_student("s1") is None


def test_second_course_appends_to_student(courses, make_course):
    first = make_course(title="First course")
    second = make_course(title="Second course")

    courses.enroll_student(first["id"], "s1", "Ada", "ada@example.com")
    courses.enroll_student(second["id"], "s1", "Ada", "ada@example.com")

    names = [c["course_name"] for c in courses.get_student("s1")["enrolled_courses"]]
    assert names == ["First course", "Second course"]


def test_list_enrolled_students_only_enrolled_status(db, courses, make_course):
    course = make_course()
    courses.enroll_student(course["id"], "s1", "Ada", "ada@example.com")
    courses.enroll_student(course["id"], "s2", "Grace", "grace@example.com")
    db.tables["enrollments"][1]["status"] = "dropped"

    students = courses.list_enrolled_students(course["id"])

    assert [s["student_id"] for s in students] == ["s1"]


def test_legacy_enrolled_courses_are_migrated_on_read(db, courses, make_course):
    course = make_course(title="Chemistry 101")
    db.tables["enrollments"] = [{
        "id": "e1",
        "course_id": course["id"],
        "student_id": "s1",
        "enrolled_at": "2023-09-01T00:00:00+00:00",
        "status": "enrolled",
    }]
    db.tables["students"] = [{
        "id": "s1",
        "name": "Ada",
        "email": "ada@example.com",
        "enrolled_courses": [course["id"], "gone-course"],
        "is_active": True,
        "created_at": "2023-01-01T00:00:00+00:00",
    }]

    student = courses.get_student("s1")

    assert student["enrolled_courses"] == [
        {"course_id": course["id"], "course_name": "Chemistry 101", "enrolled_at": "2023-09-01T00:00:00+00:00"}
    ]
    # persisted, so a raw read sees the new shape too
    assert isinstance(db.rows("students")[0]["enrolled_courses"][0], dict)


def test_legacy_migration_falls_back_to_student_created_at(db, courses, make_course):
    course = make_course()
    db.tables["students"] = [{
        "id": "s1",
        "name": "Ada",
        "enrolled_courses": [course["id"]],
        "is_active": True,
        "created_at": "2023-01-01T00:00:00+00:00",
    }]

    student = courses.get_student("s1")

    assert student["enrolled_courses"][0]["enrolled_at"] == "2023-01-01T00:00:00+00:00"


def test_list_all_students_sorted_by_name(db, courses):
    db.tables["students"] = [
        {"id": "2", "name": "Zed", "is_active": True},
        {"id": "1", "name": "Amy", "is_active": True},
        {"id": "3", "name": "Bob", "is_active": False},
    ]

    assert [s["name"] for s in courses.list_all_students()] == ["Amy", "Zed"]


class TestAssignmentReferences:
    def test_add_then_update_then_remove(self, courses, make_course):
        course = make_course()
        ref = {"assignment_id": "a1", "title": "Essay", "due_date": "2030-01-01T00:00:00+00:00",
               "assignment_type": "essay", "max_points": 10}

        courses.add_assignment_to_course(course["id"], ref)
        courses.update_assignment_in_course(course["id"], "a1", {"title": "Long essay", "description": "ignored"})

        refs = courses.get_course(course["id"])["assignments"]
        assert refs == [{**ref, "title": "Long essay"}]

        courses.remove_assignment_from_course(course["id"], "a1")
        assert courses.get_course(course["id"])["assignments"] == []

    def test_duplicate_reference(self, courses, make_course):
        course = make_course()
        ref = {"assignment_id": "a1", "title": "Essay", "due_date": "2030-01-01",
               "assignment_type": "essay", "max_points": 10}
        courses.add_assignment_to_course(course["id"], ref)

        with pytest.raises(AssignmentRefDuplicate):
            courses.add_assignment_to_course(course["id"], ref)

    def test_missing_reference(self, courses, make_course):
        course = make_course()

        with pytest.raises(AssignmentRefNotFound):
            courses.update_assignment_in_course(course["id"], "nope", {"title": "x"})
        with pytest.raises(AssignmentRefNotFound):
            courses.remove_assignment_from_course(course["id"], "nope")

    def test_missing_course(self, courses):
        with pytest.raises(CourseNotFound):
            courses.add_assignment_to_course("nope", {"assignment_id": "a1"})
