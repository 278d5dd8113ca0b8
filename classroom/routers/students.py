"""
Students router. Reads go through CourseDirectory.get_student, which upgrades
legacy enrolled_courses lists on the way out.
"""

from fastapi import APIRouter, Depends, HTTPException

from classroom.core.dependencies import get_course_directory
from classroom.core.errors import StudentNotFound
from classroom.services.course_directory import CourseDirectory
from classroom.utils.response import list_response, success_response

router = APIRouter(prefix="/api/students", tags=["Students"])


@router.get("")
async def list_students(courses: CourseDirectory = Depends(get_course_directory)):
    return list_response(courses.list_all_students())


@router.get("/profile")
async def get_student_by_query(
    student_id: str | None = None,
    courses: CourseDirectory = Depends(get_course_directory),
):
    if not student_id:
        raise HTTPException(status_code=400, detail="student_id query parameter is required")
    return await get_student(student_id, courses)


@router.get("/{student_id}")
async def get_student(student_id: str, courses: CourseDirectory = Depends(get_course_directory)):
    student = courses.get_student(student_id)
    if not student:
        raise StudentNotFound()
    return success_response(data=student)
