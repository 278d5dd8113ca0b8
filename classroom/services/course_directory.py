"""
Course directory: courses, enrollments and student records.

Enrollment facts live in three places: the `enrollments` row, the course's embedded
`enrolled_students` list and the student's `enrolled_courses` list. They are written
one after another without a transaction; the student upsert is best-effort.
"""

import logging
import uuid
from typing import Any

from classroom.core.errors import (
    AssignmentRefDuplicate,
    AssignmentRefNotFound,
    CourseFull,
    CourseNotFound,
    DuplicateEnrollment,
)
from classroom.utils import timeutil

logger = logging.getLogger(__name__)

ASSIGNMENT_REF_FIELDS = ("title", "due_date", "assignment_type", "max_points")


def _first(result) -> dict | None:
    return result.data[0] if result.data else None


class CourseDirectory:
    def __init__(self, db):
        self.db = db

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------
    def list_active_courses(self) -> list[dict]:
        result = (
            self.db.table("courses")
            .select("*")
            .eq("is_active", True)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data

    def get_course(self, course_id: str) -> dict | None:
        result = self.db.table("courses").select("*").eq("id", course_id).limit(1).execute()
        return _first(result)

    def create_course(self, fields: dict[str, Any]) -> dict:
        now = timeutil.now_iso()
        course = {
            **fields,
            "id": str(uuid.uuid4()),
            "current_enrollments": 0,
            "enrolled_students": [],
            "assignments": [],
            "created_at": now,
            "updated_at": now,
        }
        course.setdefault("is_active", True)
        course.setdefault("tags", [])
        result = self.db.table("courses").insert(course).execute()
        return _first(result) or course

    def _save_course(self, course: dict) -> dict:
        course["updated_at"] = timeutil.now_iso()
        values = {k: v for k, v in course.items() if k != "id"}
        result = self.db.table("courses").update(values).eq("id", course["id"]).execute()
        return _first(result) or course

    # ------------------------------------------------------------------
    # Enrollment
    # ------------------------------------------------------------------
    def get_enrollment(self, course_id: str, student_id: str) -> dict | None:
        result = (
            self.db.table("enrollments")
            .select("*")
            .eq("course_id", course_id)
            .eq("student_id", student_id)
            .limit(1)
            .execute()
        )
        return _first(result)

    def enroll_student(self, course_id: str, student_id: str, student_name: str, student_email: str) -> dict:
        course = self.get_course(course_id)
        if not course:
            raise CourseNotFound()

        if course.get("current_enrollments", 0) >= course["max_students"]:
            raise CourseFull()

        if self.get_enrollment(course_id, student_id):
            raise DuplicateEnrollment()

        enrolled = course.get("enrolled_students") or []
        if any(s.get("student_id") == student_id for s in enrolled):
            raise DuplicateEnrollment()

        now = timeutil.now_iso()
        enrollment = {
            "id": str(uuid.uuid4()),
            "course_id": course_id,
            "student_id": student_id,
            "student_name": student_name,
            "student_email": student_email,
            "enrolled_at": now,
            "status": "enrolled",
            "progress": 0,
        }
        self.db.table("enrollments").insert(enrollment).execute()

        # The enrollment row is already written; a failure below leaves it orphaned.
        course["enrolled_students"] = enrolled + [
            {"student_id": student_id, "student_name": student_name, "enrolled_at": now}
        ]
        course["current_enrollments"] = course.get("current_enrollments", 0) + 1
        self._save_course(course)

        try:
            self._upsert_student(student_id, student_name, student_email, course, now)
        except Exception:
            logger.exception("Failed to update student record %s after enrolling in %s", student_id, course_id)

        return enrollment

    def list_enrolled_students(self, course_id: str) -> list[dict]:
        result = (
            self.db.table("enrollments")
            .select("*")
            .eq("course_id", course_id)
            .eq("status", "enrolled")
            .execute()
        )
        return result.data

    # ------------------------------------------------------------------
    # Embedded assignment references
    # ------------------------------------------------------------------
    def add_assignment_to_course(self, course_id: str, ref: dict) -> dict:
        course = self.get_course(course_id)
        if not course:
            raise CourseNotFound()
        refs = course.get("assignments") or []
        if any(r.get("assignment_id") == ref["assignment_id"] for r in refs):
            raise AssignmentRefDuplicate()
        course["assignments"] = refs + [ref]
        return self._save_course(course)

    def update_assignment_in_course(self, course_id: str, assignment_id: str, fields: dict) -> dict:
        course = self.get_course(course_id)
        if not course:
            raise CourseNotFound()
        refs = course.get("assignments") or []
        for i, ref in enumerate(refs):
            if ref.get("assignment_id") == assignment_id:
                refs[i] = {**ref, **{k: v for k, v in fields.items() if k in ASSIGNMENT_REF_FIELDS}}
                break
        else:
            raise AssignmentRefNotFound()
        course["assignments"] = refs
        return self._save_course(course)

    def remove_assignment_from_course(self, course_id: str, assignment_id: str) -> dict:
        course = self.get_course(course_id)
        if not course:
            raise CourseNotFound()
        refs = course.get("assignments") or []
        remaining = [r for r in refs if r.get("assignment_id") != assignment_id]
        if len(remaining) == len(refs):
            raise AssignmentRefNotFound()
        course["assignments"] = remaining
        return self._save_course(course)

    # ------------------------------------------------------------------
    # Students
    # ------------------------------------------------------------------
    def _read_student(self, student_id: str) -> dict | None:
        result = self.db.table("students").select("*").eq("id", student_id).limit(1).execute()
        return _first(result)

    def _save_student(self, student: dict) -> dict:
        student["updated_at"] = timeutil.now_iso()
        values = {k: v for k, v in student.items() if k != "id"}
        result = self.db.table("students").update(values).eq("id", student["id"]).execute()
        return _first(result) or student

    def _upsert_student(self, student_id: str, name: str, email: str, course: dict, enrolled_at: str) -> dict:
        entry = {"course_id": course["id"], "course_name": course.get("title", ""), "enrolled_at": enrolled_at}
        student = self._read_student(student_id)

        if student is None:
            now = timeutil.now_iso()
            student = {
                "id": student_id,
                "name": name,
                "email": email,
                "enrolled_courses": [entry],
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            }
            result = self.db.table("students").insert(student).execute()
            return _first(result) or student

        if self._has_legacy_courses(student):
            student = self._migrate_enrolled_courses(student)

        courses = student.get("enrolled_courses") or []
        if any(c.get("course_id") == course["id"] for c in courses):
            return student
        student["enrolled_courses"] = courses + [entry]
        return self._save_student(student)

    @staticmethod
    def _has_legacy_courses(student: dict) -> bool:
        return any(isinstance(c, str) for c in student.get("enrolled_courses") or [])

    def _migrate_enrolled_courses(self, student: dict) -> dict:
        """Rewrite a bare list of course ids into {course_id, course_name, enrolled_at} entries."""
        migrated = []
        for entry in student.get("enrolled_courses") or []:
            if not isinstance(entry, str):
                migrated.append(entry)
                continue
            course = self.get_course(entry)
            if not course:
                logger.warning("Dropping unknown course %s from student %s", entry, student["id"])
                continue
            enrollment = self.get_enrollment(entry, student["id"])
            enrolled_at = (
                (enrollment or {}).get("enrolled_at")
                or student.get("created_at")
                or timeutil.now_iso()
            )
            migrated.append({"course_id": entry, "course_name": course.get("title", ""), "enrolled_at": enrolled_at})

        student["enrolled_courses"] = migrated
        return self._save_student(student)

    def get_student(self, student_id: str) -> dict | None:
        student = self._read_student(student_id)
        if student and self._has_legacy_courses(student):
            student = self._migrate_enrolled_courses(student)
        return student

    def list_all_students(self) -> list[dict]:
        result = (
            self.db.table("students")
            .select("*")
            .eq("is_active", True)
            .order("name")
            .execute()
        )
        return result.data
