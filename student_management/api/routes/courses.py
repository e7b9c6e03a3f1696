from fastapi import APIRouter, Depends, Body, Request, Response, status
from sqlalchemy.orm import Session

from student_management.dependencies.auth import require_admin
from student_management.dependencies.db import get_db
from student_management.schemas.common import MessageResponse
from student_management.schemas.course import CourseCreate, CourseRead, CourseUpdate, CourseUpdateResponse
from student_management.schemas.student import StudentRead
from student_management.services import course_service

router = APIRouter()


@router.get("", response_model=list[CourseRead], summary="List all courses")
def get_courses(db: Session = Depends(get_db)):
    return course_service.list_courses(db)


@router.get("/{course_id}", response_model=CourseRead, summary="Get a course")
def get_course(course_id: int, db: Session = Depends(get_db)):
    """
    Returns 404 when the course does not exist.
    """
    return course_service.get_course(db, course_id)


@router.post(
    "",
    response_model=CourseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a course (Admin)",
    dependencies=[Depends(require_admin)]
)
def create_course(
    request: Request,
    response: Response,
    course_in: CourseCreate = Body(...),
    db: Session = Depends(get_db)
):
    course = course_service.create_course(db, course_in)
    response.headers["Location"] = str(request.url_for("get_course", course_id=course.id))
    return course


@router.put(
    "/{course_id}",
    response_model=CourseUpdateResponse,
    summary="Update a course (Admin)",
    responses={409: {"model": MessageResponse}},
    dependencies=[Depends(require_admin)]
)
def update_course(
    course_id: int,
    course_in: CourseUpdate = Body(...),
    db: Session = Depends(get_db)
):
    """
    The body id must equal the path id. Sending the `version` read earlier
    makes the update fail with 409 if someone else changed the course since.
    """
    course = course_service.update_course(db, course_id, course_in)
    return CourseUpdateResponse(message="Course updated successfully", course=course)


@router.delete(
    "/{course_id}",
    response_model=MessageResponse,
    summary="Delete a course (Admin)",
    dependencies=[Depends(require_admin)]
)
def delete_course(course_id: int, db: Session = Depends(get_db)):
    """
    Also removes every enrollment in the course.
    """
    course_service.delete_course(db, course_id)
    return MessageResponse(message="Course deleted successfully")


@router.get("/{course_id}/students", response_model=list[StudentRead], summary="Students enrolled in a course")
def get_course_students(course_id: int, db: Session = Depends(get_db)):
    return course_service.list_course_students(db, course_id)
