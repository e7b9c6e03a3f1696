from fastapi import APIRouter, Depends, Body, Request, Response, status
from sqlalchemy.orm import Session

from student_management.dependencies.auth import require_admin
from student_management.dependencies.db import get_db
from student_management.schemas.common import ErrorResponse, MessageResponse
from student_management.schemas.course import CourseRead
from student_management.schemas.student import StudentCreate, StudentRead, StudentUpdate, StudentUpdateResponse
from student_management.services import student_service

router = APIRouter()


@router.get("", response_model=list[StudentRead], summary="List all students")
def get_students(db: Session = Depends(get_db)):
    return student_service.list_students(db)


@router.get("/{student_id}", response_model=StudentRead, summary="Get a student")
def get_student(student_id: int, db: Session = Depends(get_db)):
    return student_service.get_student(db, student_id)


@router.post(
    "",
    response_model=StudentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a student (Admin)",
    responses={400: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)]
)
def create_student(
    request: Request,
    response: Response,
    student_in: StudentCreate = Body(...),
    db: Session = Depends(get_db)
):
    """
    The student number must not be used by another student. `user_id`
    optionally links the record to an existing login account.
    """
    student = student_service.create_student(db, student_in)
    response.headers["Location"] = str(request.url_for("get_student", student_id=student.id))
    return student


@router.put(
    "/{student_id}",
    response_model=StudentUpdateResponse,
    summary="Update a student (Admin)",
    responses={400: {"model": ErrorResponse}, 409: {"model": MessageResponse}},
    dependencies=[Depends(require_admin)]
)
def update_student(
    student_id: int,
    student_in: StudentUpdate = Body(...),
    db: Session = Depends(get_db)
):
    student = student_service.update_student(db, student_id, student_in)
    return StudentUpdateResponse(message="Student updated successfully", student=student)


@router.delete(
    "/{student_id}",
    response_model=MessageResponse,
    summary="Delete a student (Admin)",
    dependencies=[Depends(require_admin)]
)
def delete_student(student_id: int, db: Session = Depends(get_db)):
    """
    Also removes every enrollment of the student.
    """
    student_service.delete_student(db, student_id)
    return MessageResponse(message="Student deleted successfully")


@router.get("/{student_id}/courses", response_model=list[CourseRead], summary="Courses a student is enrolled in")
def get_student_courses(student_id: int, db: Session = Depends(get_db)):
    return student_service.list_student_courses(db, student_id)
