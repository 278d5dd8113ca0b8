"""
FastAPI dependencies that build the services for a request.

Everything hangs off get_supabase, so overriding that one dependency swaps the
whole persistence layer.
"""

from fastapi import Depends

from classroom.core.database import get_supabase
from classroom.services.assignment_catalog import AssignmentCatalog
from classroom.services.blob_store import BlobStore
from classroom.services.course_directory import CourseDirectory
from classroom.services.submission_ledger import SubmissionLedger


def get_course_directory(db=Depends(get_supabase)) -> CourseDirectory:
    return CourseDirectory(db)


def get_assignment_catalog(
    db=Depends(get_supabase),
    courses: CourseDirectory = Depends(get_course_directory),
) -> AssignmentCatalog:
    return AssignmentCatalog(db, courses)


def get_submission_ledger(
    db=Depends(get_supabase),
    courses: CourseDirectory = Depends(get_course_directory),
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
) -> SubmissionLedger:
    return SubmissionLedger(db, courses, assignments)


def get_blob_store(db=Depends(get_supabase)) -> BlobStore:
    return BlobStore(db)
