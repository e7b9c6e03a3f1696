import logging
from typing import List

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from student_management.core.exceptions import NotFoundError, IdMismatchError, ConcurrencyConflictError
from student_management.models.course import Course
from student_management.models.enrollment import Enrollment
from student_management.models.student import Student
from student_management.schemas.course import CourseCreate, CourseUpdate

logger = logging.getLogger(__name__)


def list_courses(db: Session) -> List[Course]:
    logger.info("Getting all courses")
    return db.query(Course).order_by(Course.id).all()


def get_course(db: Session, course_id: int) -> Course:
    logger.info(f"Getting course with ID: {course_id}")
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        logger.warning(f"Course with ID {course_id} not found")
        raise NotFoundError("Course", course_id)
    return course


def course_exists(db: Session, course_id: int) -> bool:
    return db.query(Course.id).filter(Course.id == course_id).first() is not None


def create_course(db: Session, course_in: CourseCreate) -> Course:
    logger.info(f"Creating new course: {course_in.title}")
    course = Course(code=course_in.code, title=course_in.title, credits=course_in.credits)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def update_course(db: Session, course_id: int, course_in: CourseUpdate) -> Course:
    if course_id != course_in.id:
        raise IdMismatchError(course_id, course_in.id)

    course = get_course(db, course_id)
    if course_in.version is not None and course_in.version != course.version:
        raise ConcurrencyConflictError("Course", course_id)

    logger.info(f"Updating course with ID: {course_id}")
    course.code = course_in.code
    course.title = course_in.title
    course.credits = course_in.credits
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        if not course_exists(db, course_id):
            raise NotFoundError("Course", course_id)
        raise ConcurrencyConflictError("Course", course_id)
    db.refresh(course)
    return course


def delete_course(db: Session, course_id: int) -> None:
    """Delete a course together with all of its enrollments."""
    course = get_course(db, course_id)
    logger.info(f"Deleting course with ID: {course_id} ({len(course.enrollments)} enrollments)")
    db.delete(course)
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        if not course_exists(db, course_id):
            raise NotFoundError("Course", course_id)
        raise ConcurrencyConflictError("Course", course_id)


def list_course_students(db: Session, course_id: int) -> List[Student]:
    logger.info(f"Getting students enrolled in course with ID: {course_id}")
    if not course_exists(db, course_id):
        raise NotFoundError("Course", course_id)
    return (
        db.query(Student)
        .join(Enrollment, Enrollment.student_id == Student.id)
        .filter(Enrollment.course_id == course_id)
        .order_by(Student.id)
        .all()
    )


def count_courses(db: Session) -> int:
    return db.query(Course).count()
