"""
Assignment catalog. Each assignment belongs to a course and is mirrored into the
course's `assignments` list as a short reference; that mirror is kept in sync on a
best-effort basis.
"""

import logging
import uuid
from typing import Any

from classroom.core.errors import AssignmentNotFound, CourseNotFound
from classroom.services.course_directory import ASSIGNMENT_REF_FIELDS, CourseDirectory
from classroom.utils import timeutil

logger = logging.getLogger(__name__)


def assignment_reference(assignment: dict) -> dict:
    return {
        "assignment_id": assignment["id"],
        "title": assignment["title"],
        "due_date": assignment["due_date"],
        "assignment_type": assignment["assignment_type"],
        "max_points": assignment["max_points"],
    }


class AssignmentCatalog:
    def __init__(self, db, courses: CourseDirectory | None = None):
        self.db = db
        self.courses = courses or CourseDirectory(db)

    def list_for_course(self, course_id: str) -> list[dict]:
        result = (
            self.db.table("assignments")
            .select("*")
            .eq("course_id", course_id)
            .eq("is_active", True)
            .order("due_date")
            .execute()
        )
        return result.data

    def list_all(self) -> list[dict]:
        result = (
            self.db.table("assignments")
            .select("*")
            .eq("is_active", True)
            .order("due_date")
            .execute()
        )
        return result.data

    def get_by_id(self, assignment_id: str) -> dict | None:
        result = self.db.table("assignments").select("*").eq("id", assignment_id).limit(1).execute()
        return result.data[0] if result.data else None

    def create(self, fields: dict[str, Any], assignment_id: str | None = None) -> dict:
        """Persist a new assignment, then push its reference into the owning course.

        `assignment_id` lets callers pre-allocate the id (attachments are uploaded
        under it before the row exists).
        """
        if not self.courses.get_course(fields["course_id"]):
            raise CourseNotFound()

        now = timeutil.now_iso()
        assignment = {
            **fields,
            "id": assignment_id or str(uuid.uuid4()),
            "due_date": timeutil.to_iso(fields["due_date"]),
            "submission_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        assignment.setdefault("is_active", True)

        result = self.db.table("assignments").insert(assignment).execute()
        created = result.data[0] if result.data else assignment

        try:
            self.courses.add_assignment_to_course(created["course_id"], assignment_reference(created))
        except Exception:
            logger.exception("Failed to add assignment %s to course %s", created["id"], created["course_id"])

        return created

    def update(self, assignment_id: str, partial: dict[str, Any]) -> dict:
        existing = self.get_by_id(assignment_id)
        if not existing:
            raise AssignmentNotFound()

        changes = {k: v for k, v in partial.items() if k != "id"}
        if "due_date" in changes:
            changes["due_date"] = timeutil.to_iso(changes["due_date"])
        changes["updated_at"] = timeutil.now_iso()

        result = self.db.table("assignments").update(changes).eq("id", assignment_id).execute()
        updated = result.data[0] if result.data else {**existing, **changes}

        ref_changes = {
            k: updated[k] for k in ASSIGNMENT_REF_FIELDS if k in changes and existing.get(k) != updated.get(k)
        }
        if ref_changes:
            try:
                self.courses.update_assignment_in_course(existing["course_id"], assignment_id, ref_changes)
            except Exception:
                logger.exception("Failed to sync assignment %s into course %s", assignment_id, existing["course_id"])

        return updated

    def delete(self, assignment_id: str) -> None:
        """Soft delete; the course reference is removed best-effort."""
        existing = self.update(assignment_id, {"is_active": False})
        try:
            self.courses.remove_assignment_from_course(existing["course_id"], assignment_id)
        except Exception:
            logger.exception("Failed to remove assignment %s from course %s", assignment_id, existing["course_id"])
