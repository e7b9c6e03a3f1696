from fastapi import APIRouter, Depends, Body, Request, Response, status
from sqlalchemy.orm import Session

from student_management.dependencies.auth import require_admin
from student_management.dependencies.db import get_db
from student_management.schemas.common import ErrorResponse, MessageResponse
from student_management.schemas.enrollment import (
    EnrollmentCreate, EnrollmentRead, EnrollmentDetail,
    StudentEnrollment, CourseEnrollment, StudentCourses, EnrollmentStatistics
)
from student_management.services import enrollment_service

router = APIRouter()


@router.get("", response_model=list[EnrollmentDetail], summary="List all enrollments")
def get_enrollments(db: Session = Depends(get_db)):
    return enrollment_service.list_enrollments(db)


@router.get("/statistics", response_model=EnrollmentStatistics, summary="Enrollment statistics")
def get_statistics(db: Session = Depends(get_db)):
    """
    Averages are taken over students (or courses) that have at least one
    enrollment, and are 0 when there are none.
    """
    return enrollment_service.statistics(db)


@router.get("/grouped", response_model=list[StudentCourses], summary="Courses grouped by student")
def get_courses_for_students(db: Session = Depends(get_db)):
    """
    Only students with at least one enrollment are listed.
    """
    return enrollment_service.group_by_student(db)


@router.get("/student/{student_id}", response_model=list[StudentEnrollment], summary="Enrollments of a student")
def get_student_enrollments(student_id: int, db: Session = Depends(get_db)):
    return enrollment_service.list_enrollments_for_student(db, student_id)


@router.get("/course/{course_id}", response_model=list[CourseEnrollment], summary="Enrollments in a course")
def get_course_enrollments(course_id: int, db: Session = Depends(get_db)):
    return enrollment_service.list_enrollments_for_course(db, course_id)


@router.post(
    "",
    response_model=EnrollmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a student in a course (Admin)",
    responses={400: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)]
)
def create_enrollment(
    request: Request,
    response: Response,
    enrollment_in: EnrollmentCreate = Body(...),
    db: Session = Depends(get_db)
):
    """
    Rejected with 400 listing every problem found: unknown student, unknown
    course, already enrolled.
    """
    enrollment = enrollment_service.enroll(db, enrollment_in.student_id, enrollment_in.course_id)
    response.headers["Location"] = str(
        request.url_for("get_student_enrollments", student_id=enrollment.student_id)
    )
    return enrollment


@router.delete(
    "/{student_id}/{course_id}",
    response_model=MessageResponse,
    summary="Remove an enrollment (Admin)",
    dependencies=[Depends(require_admin)]
)
def delete_enrollment(student_id: int, course_id: int, db: Session = Depends(get_db)):
    enrollment_service.unenroll(db, student_id, course_id)
    return MessageResponse(message="Enrollment deleted successfully")
