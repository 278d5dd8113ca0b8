"""
Agent router: JSON-only variants for callers that cannot send multipart bodies.
Files travel as base64 strings: {filename, mime_type, data, size?}.
"""

from fastapi import APIRouter, Depends

from classroom.core.config import settings
from classroom.core.dependencies import get_assignment_catalog, get_blob_store, get_submission_ledger
from classroom.core.errors import AssignmentNotFound, SubmissionNotFound
from classroom.schemas.assignments import (
    AssignmentAttachmentUrlRequest,
    AssignmentCreateWithFiles,
    SubmissionAttachmentUrlRequest,
    SubmissionCreateWithFiles,
    TextSubmissionCreate,
)
from classroom.services.assignment_catalog import AssignmentCatalog
from classroom.services.attachment_flow import (
    assignment_attachment_url,
    create_assignment_with_files,
    create_submission_with_files,
    submission_attachment_url,
)
from classroom.services.blob_store import BlobStore, FileUpload
from classroom.services.submission_ledger import SubmissionLedger, check_submission_format
from classroom.utils.response import success_response

router = APIRouter(prefix="/api/ai", tags=["Agent"])


def _decode(items) -> list[FileUpload]:
    return [FileUpload.from_base64(f.filename, f.mime_type, f.data, f.size) for f in items or []]


def _submission_summary(submission: dict) -> dict:
    return {
        "submission_id": submission["id"],
        "assignment_id": submission["assignment_id"],
        "status": submission["status"],
        "submitted_at": submission["submitted_at"],
        "is_late": submission["is_late"],
        "submission_number": submission["submission_number"],
    }


@router.post("/assignments/create-with-files", status_code=201)
async def create_assignment_with_encoded_files(
    body: AssignmentCreateWithFiles,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    blob_store: BlobStore = Depends(get_blob_store),
):
    files = _decode(body.attachments)
    fields = body.model_dump(mode="json", exclude_none=True, exclude={"attachments"})
    assignment = await create_assignment_with_files(assignments, blob_store, fields, files)
    return success_response(
        data=assignment,
        message="Assignment created successfully with attachments",
        attachments_uploaded=len(files),
    )


@router.post("/assignments/get-download-url")
async def get_assignment_attachment_url(
    body: AssignmentAttachmentUrlRequest,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    blob_store: BlobStore = Depends(get_blob_store),
):
    assignment = assignments.get_by_id(body.assignment_id)
    if not assignment:
        raise AssignmentNotFound()

    expires = settings.DOWNLOAD_URL_EXPIRY_MINUTES
    url = assignment_attachment_url(blob_store, assignment, body.filename, expires)
    return success_response(data={
        "download_url": url,
        "filename": body.filename,
        "expires_in_minutes": expires,
        "assignment_id": body.assignment_id,
        "assignment_title": assignment["title"],
    })


@router.post("/submissions/create", status_code=201)
async def create_text_submission(
    body: TextSubmissionCreate,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    ledger: SubmissionLedger = Depends(get_submission_ledger),
):
    assignment = assignments.get_by_id(body.assignment_id)
    if not assignment:
        raise AssignmentNotFound()
    # text-only endpoint: a file-only assignment can never be satisfied here
    check_submission_format(assignment.get("submission_format"), body.submission_text, [])

    submission = ledger.create_submission(body.model_dump(mode="json"))
    return success_response(
        data={**_submission_summary(submission), "submission_text": submission["submission_text"]},
        message="Submission created successfully",
    )


@router.post("/submissions/create-with-files", status_code=201)
async def create_submission_with_encoded_files(
    body: SubmissionCreateWithFiles,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    ledger: SubmissionLedger = Depends(get_submission_ledger),
    blob_store: BlobStore = Depends(get_blob_store),
):
    assignment = assignments.get_by_id(body.assignment_id)
    if not assignment:
        raise AssignmentNotFound()

    files = _decode(body.attachments)
    # reject before anything is uploaded
    check_submission_format(assignment.get("submission_format"), body.submission_text, files)

    data = body.model_dump(mode="json", exclude_none=True, exclude={"attachments"})
    submission = await create_submission_with_files(ledger, blob_store, assignment, data, files)
    return success_response(
        data={**_submission_summary(submission), "attachments_uploaded": len(files)},
        message="Submission created successfully with attachments",
    )


@router.post("/submissions/get-download-url")
async def get_submission_attachment_url(
    body: SubmissionAttachmentUrlRequest,
    ledger: SubmissionLedger = Depends(get_submission_ledger),
    blob_store: BlobStore = Depends(get_blob_store),
):
    submission = ledger.get_submission_by_id(body.submission_id)
    if not submission:
        raise SubmissionNotFound()

    expires = settings.DOWNLOAD_URL_EXPIRY_MINUTES
    url = submission_attachment_url(blob_store, submission, body.filename, expires)
    return success_response(data={
        "download_url": url,
        "filename": body.filename,
        "expires_in_minutes": expires,
        "submission_id": body.submission_id,
        "assignment_id": submission["assignment_id"],
        "student_name": submission["student_name"],
    })
