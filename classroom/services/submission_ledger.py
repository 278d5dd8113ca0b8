"""
Submission ledger: creating, listing, grading and retiring submissions.

Creation rules, in order:
    1. assignment exists and is active
    2. owning course exists
    3. student is in the course's enrolled_students
    4. text/file content matches the assignment's submission_format
    5. repeat submissions only when allow_multiple_submissions is set
    6. late submissions only when allow_late_submissions is set

Status moves freely between submitted/graded/returned/resubmitted unless
ENFORCE_STATUS_TRANSITIONS is switched on.
"""

import logging
import uuid
from typing import Any, Optional

from classroom.core.config import settings
from classroom.core.errors import (
    AssignmentNotFound,
    CourseNotFound,
    FormatRequirementFailed,
    GradeOutOfRange,
    InvalidStatusTransition,
    LateSubmissionNotAllowed,
    MultipleSubmissionsNotAllowed,
    NotEnrolled,
    SubmissionNotFound,
)
from classroom.services.assignment_catalog import AssignmentCatalog
from classroom.services.course_directory import CourseDirectory
from classroom.utils import timeutil

logger = logging.getLogger(__name__)

SUBMISSION_STATUSES = ("submitted", "graded", "returned", "resubmitted")

ALLOWED_TRANSITIONS = {
    "submitted": {"graded"},
    "graded": {"returned"},
    "returned": {"resubmitted"},
    "resubmitted": {"submitted"},
}


def is_late(submitted_at, due_date) -> bool:
    return timeutil.parse_timestamp(submitted_at) > timeutil.parse_timestamp(due_date)


def check_submission_format(submission_format: str, text: Optional[str], attachments: Optional[list]) -> None:
    has_text = bool(text and text.strip())
    has_files = bool(attachments)

    if submission_format == "text":
        if not has_text:
            raise FormatRequirementFailed("Text submission is required for this assignment")
    elif submission_format == "file":
        if not has_files:
            raise FormatRequirementFailed("File submission is required for this assignment")
    elif submission_format == "both":
        if not has_text and not has_files:
            raise FormatRequirementFailed("Either text or file submission is required for this assignment")
    else:
        raise FormatRequirementFailed("Invalid submission format specified in assignment")


class SubmissionLedger:
    def __init__(self, db, courses: CourseDirectory | None = None, assignments: AssignmentCatalog | None = None):
        self.db = db
        self.courses = courses or CourseDirectory(db)
        self.assignments = assignments or AssignmentCatalog(db, self.courses)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_submission(self, data: dict[str, Any], submission_id: str | None = None) -> dict:
        assignment = self.assignments.get_by_id(data["assignment_id"])
        if not assignment or not assignment.get("is_active"):
            raise AssignmentNotFound("Assignment not found or inactive")

        course = self.courses.get_course(assignment["course_id"])
        if not course:
            raise CourseNotFound()

        enrolled = course.get("enrolled_students") or []
        if not any(s.get("student_id") == data["student_id"] for s in enrolled):
            raise NotEnrolled()

        attachments = data.get("attachments") or []
        check_submission_format(assignment.get("submission_format"), data.get("submission_text"), attachments)

        submission_number = self._next_submission_number(assignment, data["student_id"])

        submitted_at = timeutil.now_iso()
        late = is_late(submitted_at, assignment["due_date"])
        if late and not assignment.get("allow_late_submissions"):
            raise LateSubmissionNotAllowed()

        submission = {
            "id": submission_id or str(uuid.uuid4()),
            "assignment_id": assignment["id"],
            "course_id": assignment["course_id"],
            "student_id": data["student_id"],
            "student_name": data["student_name"],
            "student_email": data["student_email"],
            "submission_text": data.get("submission_text"),
            "attachments": attachments,
            "submitted_at": submitted_at,
            "is_late": late,
            "status": "submitted",
            "submission_number": submission_number,
            "max_points": assignment["max_points"],
            "created_at": submitted_at,
            "updated_at": submitted_at,
            "is_active": True,
        }
        result = self.db.table("submissions").insert(submission).execute()
        created = result.data[0] if result.data else submission

        self.refresh_submission_count(assignment["id"])

        logger.info("Created submission %s for assignment %s", created["id"], assignment["id"])
        return created

    def _next_submission_number(self, assignment: dict, student_id: str) -> int:
        result = (
            self.db.table("submissions")
            .select("submission_number")
            .eq("assignment_id", assignment["id"])
            .eq("student_id", student_id)
            .eq("is_active", True)
            .order("submission_number", desc=True)
            .limit(1)
            .execute()
        )
        if not result.data:
            return 1
        if not assignment.get("allow_multiple_submissions"):
            raise MultipleSubmissionsNotAllowed()
        return result.data[0]["submission_number"] + 1

    def refresh_submission_count(self, assignment_id: str) -> None:
        """Best-effort: recount active submissions onto the assignment."""
        try:
            result = (
                self.db.table("submissions")
                .select("id", count="exact")
                .eq("assignment_id", assignment_id)
                .eq("is_active", True)
                .execute()
            )
            count = result.count if result.count is not None else len(result.data)
            if self.assignments.get_by_id(assignment_id):
                self.assignments.update(assignment_id, {"submission_count": count})
                logger.info("Assignment %s submission count is now %d", assignment_id, count)
        except Exception:
            logger.exception("Failed to refresh submission count for assignment %s", assignment_id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_assignment_submissions(
        self,
        assignment_id: str,
        page: int = 1,
        limit: int | None = None,
        status: str | None = None,
    ) -> dict:
        page = max(page or 1, 1)
        limit = max(limit or settings.DEFAULT_PAGE_SIZE, 1)
        offset = (page - 1) * limit

        query = (
            self.db.table("submissions")
            .select("*", count="exact")
            .eq("assignment_id", assignment_id)
            .eq("is_active", True)
        )
        if status:
            query = query.eq("status", status)

        result = query.order("submitted_at", desc=True).range(offset, offset + limit - 1).execute()
        total = result.count if result.count is not None else len(result.data)
        return {"submissions": result.data, "total": total, "page": page, "limit": limit}

    def get_submission_by_id(self, submission_id: str) -> dict | None:
        result = (
            self.db.table("submissions")
            .select("*")
            .eq("id", submission_id)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    def get_student_submissions(self, student_id: str, course_id: str | None = None) -> list[dict]:
        query = self.db.table("submissions").select("*").eq("student_id", student_id).eq("is_active", True)
        if course_id:
            query = query.eq("course_id", course_id)
        return query.order("submitted_at", desc=True).execute().data

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def _write(self, submission_id: str, changes: dict) -> dict:
        changes["updated_at"] = timeutil.now_iso()
        result = self.db.table("submissions").update(changes).eq("id", submission_id).execute()
        return result.data[0] if result.data else changes

    def grade_submission(self, submission_id: str, grade: float, graded_by: str, feedback: str | None = None) -> dict:
        submission = self.get_submission_by_id(submission_id)
        if not submission:
            raise SubmissionNotFound()

        max_points = submission["max_points"]
        if grade < 0 or grade > max_points:
            raise GradeOutOfRange(f"Grade must be between 0 and {max_points:g}")

        updated = self._write(submission_id, {
            "grade": grade,
            "feedback": feedback,
            "graded_at": timeutil.now_iso(),
            "graded_by": graded_by,
            "status": "graded",
        })
        logger.info("Graded submission %s with score %s/%s", submission_id, grade, max_points)
        return {**submission, **updated}

    def update_status(self, submission_id: str, status: str) -> dict:
        if status not in SUBMISSION_STATUSES:
            raise InvalidStatusTransition(
                "Invalid status. Must be: submitted, graded, returned, or resubmitted"
            )

        submission = self.get_submission_by_id(submission_id)
        if not submission:
            raise SubmissionNotFound()

        current = submission.get("status")
        if (
            settings.ENFORCE_STATUS_TRANSITIONS
            and status != current
            and status not in ALLOWED_TRANSITIONS.get(current, set())
        ):
            raise InvalidStatusTransition(f"Cannot move submission from '{current}' to '{status}'")

        updated = self._write(submission_id, {"status": status})
        return {**submission, **updated}

    def delete_submission(self, submission_id: str) -> None:
        submission = self.get_submission_by_id(submission_id)
        if not submission:
            raise SubmissionNotFound()

        self._write(submission_id, {"is_active": False})
        self.refresh_submission_count(submission["assignment_id"])
        logger.info("Deleted submission %s", submission_id)
