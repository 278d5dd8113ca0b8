"""
Submissions router: lookup, grading, status changes, soft delete and attachment links.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from classroom.core.config import settings
from classroom.core.dependencies import get_blob_store, get_submission_ledger
from classroom.core.errors import SubmissionNotFound
from classroom.schemas.assignments import SubmissionGrade, SubmissionStatusUpdate
from classroom.services.attachment_flow import submission_attachment_url
from classroom.services.blob_store import BlobStore
from classroom.services.submission_ledger import SubmissionLedger
from classroom.utils.response import MAX_PAGE_SIZE, list_response, pagination, success_response

router = APIRouter(prefix="/api/submissions", tags=["Submissions"])


def _require(ledger: SubmissionLedger, submission_id: str) -> dict:
    submission = ledger.get_submission_by_id(submission_id)
    if not submission:
        raise SubmissionNotFound()
    return submission


@router.get("/student")
async def list_student_submissions(
    student_id: str | None = None,
    course_id: str | None = None,
    ledger: SubmissionLedger = Depends(get_submission_ledger),
):
    if not student_id:
        raise HTTPException(status_code=400, detail="student_id query parameter is required")
    return list_response(ledger.get_student_submissions(student_id, course_id))


@router.get("/assignment")
async def list_assignment_submissions_by_query(
    assignment_id: str | None = None,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE),
    status: str | None = None,
    ledger: SubmissionLedger = Depends(get_submission_ledger),
):
    if not assignment_id:
        raise HTTPException(status_code=400, detail="assignment_id query parameter is required")
    result = ledger.get_assignment_submissions(assignment_id, page=page, limit=limit, status=status)
    return success_response(
        data=result["submissions"],
        pagination=pagination(result["total"], result["page"], result["limit"]),
    )


@router.get("/details")
async def get_submission_by_query(
    submission_id: str | None = None,
    ledger: SubmissionLedger = Depends(get_submission_ledger),
):
    if not submission_id:
        raise HTTPException(status_code=400, detail="submission_id query parameter is required")
    return success_response(data=_require(ledger, submission_id))


@router.get("/{submission_id}")
async def get_submission(submission_id: str, ledger: SubmissionLedger = Depends(get_submission_ledger)):
    return success_response(data=_require(ledger, submission_id))


@router.post("/{submission_id}/grade")
async def grade_submission(
    submission_id: str,
    body: SubmissionGrade,
    ledger: SubmissionLedger = Depends(get_submission_ledger),
):
    graded = ledger.grade_submission(submission_id, body.grade, body.graded_by, body.feedback)
    return success_response(data=graded, message="Submission graded successfully")


@router.put("/{submission_id}/status")
async def update_submission_status(
    submission_id: str,
    body: SubmissionStatusUpdate,
    ledger: SubmissionLedger = Depends(get_submission_ledger),
):
    updated = ledger.update_status(submission_id, body.status)
    return success_response(data=updated, message="Submission status updated successfully")


@router.delete("/{submission_id}")
async def delete_submission(submission_id: str, ledger: SubmissionLedger = Depends(get_submission_ledger)):
    ledger.delete_submission(submission_id)
    return success_response(message="Submission deleted successfully")


@router.get("/{submission_id}/attachments/{filename}/download-url")
async def get_attachment_download_url(
    submission_id: str,
    filename: str,
    ledger: SubmissionLedger = Depends(get_submission_ledger),
    blob_store: BlobStore = Depends(get_blob_store),
):
    submission = _require(ledger, submission_id)
    expires = settings.DOWNLOAD_URL_EXPIRY_MINUTES
    url = submission_attachment_url(blob_store, submission, filename, expires)
    return success_response(data={
        "download_url": url,
        "filename": filename,
        "expires_in_minutes": expires,
        "submission_id": submission_id,
        "assignment_id": submission["assignment_id"],
        "student_name": submission["student_name"],
    })
