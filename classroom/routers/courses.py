"""
Courses router: catalog, enrollment, enrolled students, per-course assignments.
Query-parameter variants (/students, /enroll) are declared before the /{course_id} routes.
"""

from fastapi import APIRouter, Depends, HTTPException

from classroom.core.dependencies import get_assignment_catalog, get_course_directory
from classroom.core.errors import CourseNotFound
from classroom.schemas.assignments import AssignmentCreate
from classroom.schemas.courses import CourseCreate, CourseEnrollmentCreate, EnrollmentCreate
from classroom.services.assignment_catalog import AssignmentCatalog
from classroom.services.course_directory import CourseDirectory
from classroom.utils.response import list_response, success_response

router = APIRouter(prefix="/api/courses", tags=["Courses"])


@router.get("")
async def list_courses(courses: CourseDirectory = Depends(get_course_directory)):
    return list_response(courses.list_active_courses())


@router.post("", status_code=201)
async def create_course(
    body: CourseCreate,
    courses: CourseDirectory = Depends(get_course_directory),
):
    course = courses.create_course(body.model_dump(mode="json"))
    return success_response(data=course, message="Course created successfully")


@router.get("/students")
async def list_enrolled_students_by_query(
    course_id: str | None = None,
    courses: CourseDirectory = Depends(get_course_directory),
):
    if not course_id:
        raise HTTPException(status_code=400, detail="course_id query parameter is required")
    return list_response(courses.list_enrolled_students(course_id))


@router.post("/enroll", status_code=201)
async def enroll_by_body(
    body: CourseEnrollmentCreate,
    courses: CourseDirectory = Depends(get_course_directory),
):
    enrollment = courses.enroll_student(body.course_id, body.student_id, body.student_name, body.student_email)
    return success_response(data=enrollment, message="Successfully enrolled in course")


@router.get("/{course_id}")
async def get_course(course_id: str, courses: CourseDirectory = Depends(get_course_directory)):
    course = courses.get_course(course_id)
    if not course:
        raise CourseNotFound()
    return success_response(data=course)


@router.post("/{course_id}/enroll", status_code=201)
async def enroll(
    course_id: str,
    body: EnrollmentCreate,
    courses: CourseDirectory = Depends(get_course_directory),
):
    enrollment = courses.enroll_student(course_id, body.student_id, body.student_name, body.student_email)
    return success_response(data=enrollment, message="Successfully enrolled in course")


@router.get("/{course_id}/students")
async def list_enrolled_students(course_id: str, courses: CourseDirectory = Depends(get_course_directory)):
    return list_response(courses.list_enrolled_students(course_id))


@router.get("/{course_id}/assignments")
async def list_course_assignments(
    course_id: str,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
):
    return list_response(assignments.list_for_course(course_id))


@router.post("/{course_id}/assignments", status_code=201)
async def create_course_assignment(
    course_id: str,
    body: dict,
    assignments: AssignmentCatalog = Depends(get_assignment_catalog),
):
    fields = AssignmentCreate.model_validate({**body, "course_id": course_id})
    assignment = assignments.create(fields.model_dump(mode="json", exclude_none=True))
    return success_response(data=assignment, message="Assignment created successfully")
