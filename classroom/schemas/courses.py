"""
Pydantic schemas for courses, enrollment and students.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    instructor_id: str
    instructor_name: str
    category: str
    level: Literal["beginner", "intermediate", "advanced"]
    duration: float = Field(..., gt=0)
    max_students: int = Field(..., gt=0)
    is_active: bool = True
    tags: List[str] = []
    syllabus: Optional[List[str]] = None
    prerequisites: Optional[List[str]] = None


class EnrollmentCreate(BaseModel):
    student_id: str
    student_name: str
    student_email: EmailStr


class CourseEnrollmentCreate(EnrollmentCreate):
    course_id: str
