"""
Pydantic schemas for assignments and submissions.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from classroom.utils import timeutil

AssignmentType = Literal["homework", "quiz", "exam", "project", "essay"]
SubmissionFormat = Literal["text", "file", "both"]
SubmissionStatus = Literal["submitted", "graded", "returned", "resubmitted"]


# ---- Assignment ----
class AssignmentCreate(BaseModel):
    course_id: str
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=2000)
    instructions: Optional[str] = Field(None, max_length=5000)
    due_date: datetime
    max_points: float = Field(..., gt=0)
    assignment_type: AssignmentType
    is_active: bool = True
    created_by: str
    attachments: Optional[List[str]] = None
    submission_format: SubmissionFormat
    allow_late_submissions: bool = False
    allow_multiple_submissions: bool = False

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: datetime) -> datetime:
        if timeutil.parse_timestamp(value) <= timeutil.utcnow():
            raise ValueError("due_date must be in the future")
        return value


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    instructions: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[datetime] = None
    max_points: Optional[float] = Field(None, gt=0)
    assignment_type: Optional[AssignmentType] = None
    is_active: Optional[bool] = None
    attachments: Optional[List[str]] = None
    submission_format: Optional[SubmissionFormat] = None
    allow_late_submissions: Optional[bool] = None
    allow_multiple_submissions: Optional[bool] = None

    @field_validator(
        "title",
        "description",
        "due_date",
        "max_points",
        "assignment_type",
        "submission_format",
        "is_active",
        "allow_late_submissions",
        "allow_multiple_submissions",
        mode="before",
    )
    @classmethod
    def not_null(cls, value):
        # omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


# ---- Base64 files ----
class EncodedFile(BaseModel):
    filename: str
    mime_type: str
    data: str  # base64
    size: Optional[int] = None


class AssignmentCreateWithFiles(AssignmentCreate):
    attachments: Optional[List[EncodedFile]] = None


class AttachmentUrlRequest(BaseModel):
    filename: str


class AssignmentAttachmentUrlRequest(AttachmentUrlRequest):
    assignment_id: str


class SubmissionAttachmentUrlRequest(AttachmentUrlRequest):
    submission_id: str


# ---- Submission ----
class SubmissionAttachment(BaseModel):
    id: str
    filename: str
    original_filename: str
    file_size: int = Field(..., gt=0)
    mime_type: str
    upload_url: str
    uploaded_at: datetime
    blob_name: Optional[str] = None


class SubmissionCreate(BaseModel):
    student_id: str
    student_name: str = Field(..., min_length=2, max_length=100)
    student_email: EmailStr
    submission_text: Optional[str] = Field(None, max_length=10000)
    attachments: Optional[List[SubmissionAttachment]] = None


class TextSubmissionCreate(BaseModel):
    assignment_id: str
    student_id: str
    student_name: str = Field(..., min_length=2, max_length=100)
    student_email: EmailStr
    submission_text: str = Field(..., min_length=1, max_length=10000)


class SubmissionCreateWithFiles(BaseModel):
    assignment_id: str
    student_id: str
    student_name: str = Field(..., min_length=2, max_length=100)
    student_email: EmailStr
    submission_text: Optional[str] = Field(None, max_length=10000)
    attachments: Optional[List[EncodedFile]] = None


class SubmissionGrade(BaseModel):
    grade: float = Field(..., ge=0)
    feedback: Optional[str] = Field(None, max_length=5000)
    graded_by: str


class SubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus
