"""
Record creation with attachments, and attachment download links.

Ids are allocated before upload so that blobs land under the folder of the record
that ends up owning them. If the record cannot be created, the uploaded blobs are
removed again.
"""

import logging
import uuid

from classroom.core.errors import AttachmentNotFound
from classroom.services.assignment_catalog import AssignmentCatalog
from classroom.services.blob_store import BlobStore, FileUpload, folder_path
from classroom.services.submission_ledger import SubmissionLedger

logger = logging.getLogger(__name__)


async def create_assignment_with_files(
    catalog: AssignmentCatalog,
    blob_store: BlobStore,
    fields: dict,
    files: list[FileUpload],
) -> dict:
    assignment_id = str(uuid.uuid4())
    uploaded = []
    if files:
        folder = folder_path("assignment", fields["course_id"], assignment_id)
        uploaded = await blob_store.upload_many(files, folder)
        fields["attachments"] = (fields.get("attachments") or []) + [u["upload_url"] for u in uploaded]

    try:
        return catalog.create(fields, assignment_id=assignment_id)
    except Exception:
        if uploaded:
            blob_store.cleanup([u["blob_name"] for u in uploaded])
        raise


async def create_submission_with_files(
    ledger: SubmissionLedger,
    blob_store: BlobStore,
    assignment: dict,
    data: dict,
    files: list[FileUpload],
) -> dict:
    submission_id = str(uuid.uuid4())
    uploaded = []
    if files:
        folder = folder_path("submission", assignment["course_id"], submission_id)
        uploaded = await blob_store.upload_many(files, folder)
        data["attachments"] = (data.get("attachments") or []) + uploaded

    data["assignment_id"] = assignment["id"]
    try:
        return ledger.create_submission(data, submission_id=submission_id)
    except Exception:
        if uploaded:
            blob_store.cleanup([u["blob_name"] for u in uploaded])
        raise


def assignment_attachment_url(blob_store: BlobStore, assignment: dict, filename: str, expires_in_minutes: int) -> str:
    url = next((u for u in assignment.get("attachments") or [] if filename in u), None)
    if url is None:
        raise AttachmentNotFound("Attachment not found in this assignment")

    blob_name = blob_store.blob_name_from_url(url)
    if blob_name is None:
        blob_name = f"{folder_path('assignment', assignment['course_id'], assignment['id'])}/{filename}"
    return blob_store.generate_download_url(blob_name, expires_in_minutes)


def submission_attachment_url(blob_store: BlobStore, submission: dict, filename: str, expires_in_minutes: int) -> str:
    attachment = next(
        (
            a for a in submission.get("attachments") or []
            if filename in (a.get("filename"), a.get("original_filename"))
        ),
        None,
    )
    if attachment is None:
        raise AttachmentNotFound("Attachment not found in this submission")

    blob_name = attachment.get("blob_name") or blob_store.blob_name_from_url(attachment.get("upload_url", ""))
    if blob_name is None:
        folder = folder_path("submission", submission["course_id"], submission["id"])
        blob_name = f"{folder}/{attachment['filename']}"
    return blob_store.generate_download_url(blob_name, expires_in_minutes)
