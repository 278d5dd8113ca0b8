"""
Blob attachment store on top of a Supabase Storage bucket.

Upload results use the same shape as submission attachments:
    {id, filename, original_filename, file_size, mime_type, upload_url, uploaded_at, blob_name}

upload_url is the bucket's public object URL. Access control goes through
generate_download_url, which signs a read-only, time-limited link.
"""

import asyncio
import base64
import binascii
import logging
import uuid
from dataclasses import dataclass, field

from classroom.core.config import settings
from classroom.core.errors import InternalFailure, UploadRejected
from classroom.utils import timeutil

logger = logging.getLogger(__name__)

MB = 1024 * 1024

ALLOWED_MIME_TYPES = [
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
    # Images
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    # Archives
    "application/zip",
    "application/x-rar-compressed",
    # Code files
    "text/javascript",
    "text/typescript",
    "text/html",
    "text/css",
    "application/json",
]


@dataclass
class FileUpload:
    """An in-memory file waiting to be stored."""

    filename: str
    mime_type: str
    data: bytes
    declared_size: int | None = None

    @property
    def size(self) -> int:
        # declared size never understates the payload
        return max(self.declared_size or 0, len(self.data))

    @classmethod
    def from_base64(cls, filename: str, mime_type: str, data: str, size: int | None = None) -> "FileUpload":
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise UploadRejected(f"Attachment '{filename}' is not valid base64 data")
        return cls(filename=filename, mime_type=mime_type, data=raw, declared_size=size)


@dataclass
class ValidationOptions:
    max_file_size: int = field(default_factory=lambda: settings.MAX_UPLOAD_SIZE_MB * MB)
    allowed_mime_types: list[str] = field(default_factory=lambda: list(ALLOWED_MIME_TYPES))
    max_files: int = field(default_factory=lambda: settings.MAX_UPLOAD_FILES)


def folder_path(kind: str, course_id: str, entity_id: str) -> str:
    """Deterministic folder for an attachment, bucketed by the current year/month."""
    now = timeutil.utcnow()
    year, month = now.year, f"{now.month:02d}"
    if kind in ("assignment", "submission"):
        return f"{kind}s/{year}/{month}/{course_id}/{entity_id}"
    return f"general/{year}/{month}"


class BlobStore:
    def __init__(self, client, bucket: str | None = None):
        self.client = client
        self.bucket_name = bucket or settings.STORAGE_BUCKET

    @property
    def bucket(self):
        return self.client.storage.from_(self.bucket_name)

    def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            self.client.storage.get_bucket(self.bucket_name)
        except Exception:
            self.client.storage.create_bucket(self.bucket_name)
            logger.info("Created storage bucket '%s'", self.bucket_name)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self, file: FileUpload, options: ValidationOptions | None = None) -> tuple[bool, str | None]:
        options = options or ValidationOptions()

        if file.size > options.max_file_size:
            return False, (
                f"File size ({file.size / MB:.2f}MB) exceeds maximum allowed size "
                f"({options.max_file_size / MB:.2f}MB)"
            )

        if file.mime_type not in options.allowed_mime_types:
            return False, (
                f"File type '{file.mime_type}' is not allowed. "
                f"Allowed types: {', '.join(options.allowed_mime_types)}"
            )

        return True, None

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------
    def upload(self, file: FileUpload, folder: str = "general", options: ValidationOptions | None = None) -> dict:
        ok, reason = self.validate(file, options)
        if not ok:
            raise UploadRejected(reason)

        extension = file.filename.rsplit(".", 1)[-1] if "." in file.filename else ""
        file_id = str(uuid.uuid4())
        filename = f"{file_id}.{extension}"
        blob_name = f"{folder}/{filename}"
        uploaded_at = timeutil.now_iso()

        try:
            self.bucket.upload(
                path=blob_name,
                file=file.data,
                file_options={
                    "content-type": file.mime_type,
                    "upsert": "false",
                    "metadata": {
                        "originalFilename": file.filename,
                        "uploadedAt": uploaded_at,
                        "fileId": file_id,
                    },
                },
            )
        except Exception as e:
            logger.exception("Error uploading %s as %s", file.filename, blob_name)
            raise InternalFailure(f"Failed to upload file: {e}")

        logger.info("Uploaded %s as %s", file.filename, blob_name)
        return {
            "id": file_id,
            "filename": filename,
            "original_filename": file.filename,
            "file_size": len(file.data),
            "mime_type": file.mime_type,
            "upload_url": self.bucket.get_public_url(blob_name),
            "uploaded_at": uploaded_at,
            "blob_name": blob_name,
        }

    async def upload_many(
        self,
        files: list[FileUpload],
        folder: str = "general",
        options: ValidationOptions | None = None,
    ) -> list[dict]:
        """Upload all files concurrently; one failure fails the batch."""
        options = options or ValidationOptions()
        if len(files) > options.max_files:
            raise UploadRejected(
                f"Too many files. Maximum allowed: {options.max_files}, received: {len(files)}"
            )

        results = await asyncio.gather(
            *(asyncio.to_thread(self.upload, f, folder, options) for f in files),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            uploaded = [r["blob_name"] for r in results if isinstance(r, dict)]
            if uploaded:
                self.cleanup(uploaded)
            raise failures[0]
        return results

    # ------------------------------------------------------------------
    # Download / inspection
    # ------------------------------------------------------------------
    def generate_download_url(self, blob_name: str, expires_in_minutes: int | None = None) -> str:
        expires_in_minutes = expires_in_minutes or settings.DOWNLOAD_URL_EXPIRY_MINUTES
        try:
            signed = self.bucket.create_signed_url(blob_name, expires_in_minutes * 60)
        except Exception:
            logger.exception("Error generating download URL for %s", blob_name)
            raise InternalFailure("Failed to generate download URL")
        url = signed.get("signedURL") or signed.get("signedUrl")
        if not url:
            raise InternalFailure("Failed to generate download URL")
        return url

    def blob_name_from_url(self, url: str) -> str | None:
        marker = f"/{self.bucket_name}/"
        if marker not in url:
            return None
        return url.split(marker, 1)[1].split("?", 1)[0]

    def _find(self, blob_name: str) -> dict | None:
        folder, _, name = blob_name.rpartition("/")
        entries = self.bucket.list(folder, {"search": name})
        for entry in entries or []:
            if entry.get("name") == name:
                return entry
        return None

    def file_exists(self, blob_name: str) -> bool:
        try:
            return self._find(blob_name) is not None
        except Exception:
            logger.exception("Error checking existence of %s", blob_name)
            return False

    def get_file_metadata(self, blob_name: str) -> dict:
        entry = self._find(blob_name)
        if entry is None:
            raise InternalFailure("Failed to get file metadata")
        meta = entry.get("metadata") or {}
        return {
            "filename": blob_name,
            "content_length": meta.get("size"),
            "content_type": meta.get("mimetype"),
            "last_modified": meta.get("lastModified") or entry.get("updated_at"),
            "metadata": meta,
        }

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def delete(self, blob_name: str) -> None:
        self.delete_many([blob_name])

    def delete_many(self, blob_names: list[str]) -> None:
        if not blob_names:
            return
        try:
            self.bucket.remove(blob_names)
        except Exception as e:
            logger.exception("Error deleting %s", blob_names)
            raise InternalFailure(f"Failed to delete file: {e}")
        logger.info("Deleted %d attachment(s)", len(blob_names))

    def cleanup(self, blob_names: list[str]) -> None:
        """Best-effort delete used after a request fails past the upload step."""
        try:
            self.delete_many(blob_names)
        except InternalFailure:
            logger.warning("Attachment cleanup failed for %s", blob_names)
