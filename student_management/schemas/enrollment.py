from datetime import datetime
from pydantic import BaseModel
from typing import List

from student_management.schemas.course import CourseSummary
from student_management.schemas.student import StudentSummary


class EnrollmentCreate(BaseModel):
    student_id: int
    course_id: int


class EnrollmentRead(BaseModel):
    student_id: int
    course_id: int
    enrolled_on: datetime

    class Config:
        from_attributes = True


class EnrollmentDetail(EnrollmentRead):
    student: StudentSummary
    course: CourseSummary


class StudentEnrollment(EnrollmentRead):
    """An enrollment seen from the student side."""
    course: CourseSummary


class CourseEnrollment(EnrollmentRead):
    """An enrollment seen from the course side."""
    student: StudentSummary


class StudentCourses(BaseModel):
    student: StudentSummary
    courses: List[CourseSummary]


class EnrollmentStatistics(BaseModel):
    total_enrollments: int
    total_students: int
    total_courses: int
    unique_enrolled_students: int
    unique_enrolled_courses: int
    average_enrollments_per_student: float
    average_enrollments_per_course: float
