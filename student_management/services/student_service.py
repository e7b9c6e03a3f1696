# /student_management/services/student_service.py
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from student_management.core.exceptions import (
    NotFoundError, ValidationError, IdMismatchError, ConcurrencyConflictError
)
from student_management.models.course import Course
from student_management.models.enrollment import Enrollment
from student_management.models.student import Student
from student_management.models.user import User
from student_management.schemas.student import StudentCreate, StudentUpdate

logger = logging.getLogger(__name__)


def list_students(db: Session) -> List[Student]:
    logger.info("Getting all students")
    return db.query(Student).order_by(Student.id).all()


def get_student(db: Session, student_id: int) -> Student:
    logger.info(f"Getting student with ID: {student_id}")
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        logger.warning(f"Student with ID {student_id} not found")
        raise NotFoundError("Student", student_id)
    return student


def student_exists(db: Session, student_id: int) -> bool:
    return db.query(Student.id).filter(Student.id == student_id).first() is not None


def _check_unique_fields(db: Session, student_in: StudentCreate, exclude_id: int | None = None) -> None:
    errors = {}

    # duplicate student number check
    same_number = db.query(Student.id).filter(Student.student_number == student_in.student_number)
    if exclude_id is not None:
        same_number = same_number.filter(Student.id != exclude_id)
    if same_number.first():
        errors["student_number"] = f"Student number {student_in.student_number} is already in use."

    if student_in.user_id is not None:
        if not db.query(User.id).filter(User.id == student_in.user_id).first():
            errors["user_id"] = f"Account with ID {student_in.user_id} does not exist."
        else:
            linked = db.query(Student.id).filter(Student.user_id == student_in.user_id)
            if exclude_id is not None:
                linked = linked.filter(Student.id != exclude_id)
            if linked.first():
                errors["user_id"] = f"Account with ID {student_in.user_id} is already linked to another student."

    if errors:
        raise ValidationError(errors)


def create_student(db: Session, student_in: StudentCreate) -> Student:
    _check_unique_fields(db, student_in)

    logger.info(f"Creating new student: {student_in.full_name}")
    student = Student(
        full_name=student_in.full_name,
        student_number=student_in.student_number,
        email=student_in.email,
        user_id=student_in.user_id,
    )
    db.add(student)
    try:
        db.commit()
    except IntegrityError:
        # lost a race on a unique column or the account link
        db.rollback()
        _check_unique_fields(db, student_in)
        raise
    db.refresh(student)
    return student


def update_student(db: Session, student_id: int, student_in: StudentUpdate) -> Student:
    if student_id != student_in.id:
        raise IdMismatchError(student_id, student_in.id)

    student = get_student(db, student_id)
    if student_in.version is not None and student_in.version != student.version:
        raise ConcurrencyConflictError("Student", student_id)
    _check_unique_fields(db, student_in, exclude_id=student_id)

    logger.info(f"Updating student with ID: {student_id}")
    student.full_name = student_in.full_name
    student.student_number = student_in.student_number
    student.email = student_in.email
    student.user_id = student_in.user_id
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        if not student_exists(db, student_id):
            raise NotFoundError("Student", student_id)
        raise ConcurrencyConflictError("Student", student_id)
    except IntegrityError:
        db.rollback()
        _check_unique_fields(db, student_in, exclude_id=student_id)
        raise
    db.refresh(student)
    return student


def delete_student(db: Session, student_id: int) -> None:
    """Delete a student together with all of its enrollments."""
    student = get_student(db, student_id)
    logger.info(f"Deleting student with ID: {student_id} ({len(student.enrollments)} enrollments)")
    db.delete(student)
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        if not student_exists(db, student_id):
            raise NotFoundError("Student", student_id)
        raise ConcurrencyConflictError("Student", student_id)


def list_student_courses(db: Session, student_id: int) -> List[Course]:
    logger.info(f"Getting courses for student with ID: {student_id}")
    if not student_exists(db, student_id):
        raise NotFoundError("Student", student_id)
    return (
        db.query(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .filter(Enrollment.student_id == student_id)
        .order_by(Course.id)
        .all()
    )


def count_students(db: Session) -> int:
    return db.query(Student).count()
