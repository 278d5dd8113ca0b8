"""
Assignments router: catalog reads, creation (JSON or multipart with `attachments`),
updates, soft delete, student submission and the per-assignment submission list.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from classroom.core.config import settings
from classroom.core.dependencies import get_assignment_catalog, get_blob_store, get_submission_ledger
from classroom.core.errors import AssignmentNotFound
from classroom.schemas.assignments import AssignmentCreate, AssignmentUpdate, SubmissionCreate
from classroom.services.assignment_catalog import AssignmentCatalog
from classroom.services.attachment_flow import (
    assignment_attachment_url,
    create_assignment_with_files,
    create_submission_with_files,
)
from classroom.services.blob_store import BlobStore
from classroom.services.submission_ledger import SubmissionLedger
from classroom.utils.payload import read_payload
from classroom.utils.response import MAX_PAGE_SIZE, list_response, pagination, success_response

router = APIRouter(prefix="/api/assignments", tags=["Assignments"])


def _require(assignments: AssignmentCatalog, assignment_id: str) -> dict:
    assignment = assignments.get_by_id(assignment_id)
    if not assignment:
        raise AssignmentNotFound()
    return assignment


@router.get("")
async def list_assignments(assignments: AssignmentCatalog = Depends(get_assignment_catalog)):
    return list_response(assignments.list_all())


@router.get("/course")
async def list_course_assignments_by_query(
    course_id: str | None = None,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
):
    if not course_id:
        raise HTTPException(status_code=400, detail="course_id query parameter is required")
    return list_response(assignments.list_for_course(course_id))


@router.get("/details")
async def get_assignment_by_query(
    assignment_id: str | None = None,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
):
    if not assignment_id:
        raise HTTPException(status_code=400, detail="assignment_id query parameter is required")
    return success_response(data=_require(assignments, assignment_id))


@router.post("/create", status_code=201)
async def create_assignment(
    request: Request,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    blob_store: BlobStore = Depends(get_blob_store),
):
    fields, files = await read_payload(request)
    body = AssignmentCreate.model_validate(fields)
    assignment = await create_assignment_with_files(
        assignments, blob_store, body.model_dump(mode="json", exclude_none=True), files
    )
    return success_response(
        data=assignment,
        message="Assignment created successfully",
        attachments_uploaded=len(files),
    )


@router.get("/{assignment_id}")
async def get_assignment(assignment_id: str, assignments: AssignmentCatalog = Depends(get_assignment_catalog)):
    return success_response(data=_require(assignments, assignment_id))


@router.patch("/{assignment_id}")
async def update_assignment(
    assignment_id: str,
    body: AssignmentUpdate,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
):
    assignment = assignments.update(assignment_id, body.model_dump(mode="json", exclude_unset=True))
    return success_response(data=assignment, message="Assignment updated successfully")


@router.delete("/{assignment_id}")
async def delete_assignment(assignment_id: str, assignments: AssignmentCatalog = Depends(get_assignment_catalog)):
    assignments.delete(assignment_id)
    return success_response(message="Assignment deleted successfully")


@router.post("/{assignment_id}/submit", status_code=201)
async def submit_assignment(
    assignment_id: str,
    request: Request,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    ledger: SubmissionLedger = Depends(get_submission_ledger),
    blob_store: BlobStore = Depends(get_blob_store),
):
    fields, files = await read_payload(request)
    body = SubmissionCreate.model_validate(fields)
    assignment = _require(assignments, assignment_id)

    submission = await create_submission_with_files(
        ledger, blob_store, assignment, body.model_dump(mode="json", exclude_none=True), files
    )
    return success_response(
        data=submission,
        message="Submission created successfully",
        attachments_uploaded=len(files),
    )


@router.get("/{assignment_id}/submissions")
async def list_assignment_submissions(
    assignment_id: str,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE),
    status: str | None = None,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    ledger: SubmissionLedger = Depends(get_submission_ledger),
):
    assignment = _require(assignments, assignment_id)
    result = ledger.get_assignment_submissions(assignment_id, page=page, limit=limit, status=status)
    return success_response(
        data=result["submissions"],
        pagination=pagination(result["total"], result["page"], result["limit"]),
        assignment_info={
            "title": assignment["title"],
            "due_date": assignment["due_date"],
            "max_points": assignment["max_points"],
            "submission_format": assignment["submission_format"],
        },
    )


@router.get("/{assignment_id}/attachments/{filename}/download-url")
async def get_attachment_download_url(
    assignment_id: str,
    filename: str,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
    blob_store: BlobStore = Depends(get_blob_store),
):
    assignment = _require(assignments, assignment_id)
    expires = settings.DOWNLOAD_URL_EXPIRY_MINUTES
    url = assignment_attachment_url(blob_store, assignment, filename, expires)
    return success_response(data={
        "download_url": url,
        "filename": filename,
        "expires_in_minutes": expires,
        "assignment_id": assignment_id,
        "assignment_title": assignment["title"],
    })
