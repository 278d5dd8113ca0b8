"""
Request body helpers for endpoints that accept either JSON or multipart/form-data.
"""

from fastapi import HTTPException, Request
from starlette.datastructures import UploadFile

from classroom.core.errors import UploadRejected
from classroom.services.blob_store import FileUpload

ATTACHMENTS_FIELD = "attachments"


async def read_payload(request: Request) -> tuple[dict, list[FileUpload]]:
    """Return (fields, files). JSON bodies never carry files."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        fields, files = {}, []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key != ATTACHMENTS_FIELD:
                    raise UploadRejected(f"Unexpected field. Expected field name: {ATTACHMENTS_FIELD}")
                if not value.filename:
                    continue
                files.append(FileUpload(
                    filename=value.filename,
                    mime_type=value.content_type or "application/octet-stream",
                    data=await value.read(),
                ))
            else:
                fields[key] = value
        return fields, files

    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON or multipart/form-data")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body, []
