"""
Service error taxonomy.

Services raise these; the handlers registered in classroom.main turn them into the
standard {success, data, message} envelope with the status code carried by the class.
Anything that is not a ServiceError is treated as an internal failure.
"""

from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ---- Not found ----
class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class CourseNotFound(NotFoundError):
    default_message = "Course not found"


class AssignmentNotFound(NotFoundError):
    default_message = "Assignment not found"


class SubmissionNotFound(NotFoundError):
    default_message = "Submission not found"


class StudentNotFound(NotFoundError):
    default_message = "Student not found"


class AssignmentRefNotFound(NotFoundError):
    default_message = "Assignment reference not found in course"


class AttachmentNotFound(NotFoundError):
    default_message = "Attachment not found"


# ---- Business rules ----
class CapacityExceeded(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Course is full"


class DuplicateEnrollment(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Student already enrolled in this course"


class AssignmentRefDuplicate(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Assignment reference already exists in course"


class NotEnrolled(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Student not enrolled in this course"


class FormatRequirementFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Submission does not match the assignment's submission format"


class MultipleSubmissionsNotAllowed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Multiple submissions are not allowed for this assignment"


class LateSubmissionNotAllowed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Late submissions are not allowed for this assignment"


class GradeOutOfRange(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Grade is out of range"


class InvalidStatusTransition(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid submission status transition"


class UploadRejected(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Upload rejected"


class InternalFailure(ServiceError):
    pass


CourseFull = CapacityExceeded
AlreadyEnrolled = DuplicateEnrollment
