"""Enrollment rules: who may be enrolled where, and reporting over enrollments.

``enroll`` collects every problem with a request before giving up, so a form
can show "unknown student" and "unknown course" together. The store's
composite primary key is the real uniqueness guarantee; the checks made here
before inserting are only a fast path, and an ``IntegrityError`` on commit is
translated back into the same errors.
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import func, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from student_management.core.exceptions import (
    NotFoundError,
    EnrollmentProblem,
    EnrollmentRejectedError,
    UnknownStudentError,
    UnknownCourseError,
    DuplicateEnrollmentError,
)
from student_management.models.course import Course
from student_management.models.enrollment import Enrollment
from student_management.models.student import Student
from student_management.schemas.course import CourseSummary
from student_management.schemas.enrollment import EnrollmentStatistics, StudentCourses
from student_management.schemas.student import StudentSummary
from student_management.services.course_service import course_exists
from student_management.services.student_service import student_exists

logger = logging.getLogger(__name__)


def _is_enrolled(db: Session, student_id: int, course_id: int) -> bool:
    return db.query(Enrollment.student_id).filter(
        Enrollment.student_id == student_id,
        Enrollment.course_id == course_id
    ).first() is not None


def find_enrollment_problems(db: Session, student_id: int, course_id: int) -> List[EnrollmentProblem]:
    """Run every enrollment check and return all failures (empty if none)."""
    problems: List[EnrollmentProblem] = []
    if not student_exists(db, student_id):
        problems.append(UnknownStudentError(student_id))
    if not course_exists(db, course_id):
        problems.append(UnknownCourseError(course_id))
    if _is_enrolled(db, student_id, course_id):
        problems.append(DuplicateEnrollmentError(student_id, course_id))
    return problems


def enroll(db: Session, student_id: int, course_id: int) -> Enrollment:
    problems = find_enrollment_problems(db, student_id, course_id)
    if problems:
        logger.info(
            f"Rejected enrollment for student {student_id} in course {course_id}: "
            f"{[p.code for p in problems]}"
        )
        raise EnrollmentRejectedError(problems)

    logger.info(f"Creating enrollment for student {student_id} in course {course_id}")
    enrollment = Enrollment(
        student_id=student_id,
        course_id=course_id,
        enrolled_on=datetime.now(timezone.utc)
    )
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError:
        # another request got between the checks and the insert
        db.rollback()
        problems = find_enrollment_problems(db, student_id, course_id)
        if not problems:
            raise
        logger.info(f"Enrollment for student {student_id} in course {course_id} lost a race: {[p.code for p in problems]}")
        raise EnrollmentRejectedError(problems)
    db.refresh(enrollment)
    return enrollment


def get_enrollment(db: Session, student_id: int, course_id: int) -> Enrollment:
    enrollment = (
        db.query(Enrollment)
        .options(joinedload(Enrollment.student), joinedload(Enrollment.course))
        .filter(Enrollment.student_id == student_id, Enrollment.course_id == course_id)
        .first()
    )
    if not enrollment:
        raise NotFoundError(
            "Enrollment",
            (student_id, course_id),
            message=f"Enrollment not found for student {student_id} in course {course_id}",
        )
    return enrollment


def unenroll(db: Session, student_id: int, course_id: int) -> None:
    logger.info(f"Deleting enrollment for student {student_id} in course {course_id}")
    enrollment = get_enrollment(db, student_id, course_id)
    db.delete(enrollment)
    db.commit()


def list_enrollments(db: Session) -> List[Enrollment]:
    logger.info("Getting all enrollments")
    return (
        db.query(Enrollment)
        .options(joinedload(Enrollment.student), joinedload(Enrollment.course))
        .order_by(Enrollment.student_id, Enrollment.course_id)
        .all()
    )


def list_enrollments_for_student(db: Session, student_id: int) -> List[Enrollment]:
    logger.info(f"Getting enrollments for student with ID: {student_id}")
    if not student_exists(db, student_id):
        raise NotFoundError("Student", student_id)
    return (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course))
        .filter(Enrollment.student_id == student_id)
        .order_by(Enrollment.course_id)
        .all()
    )


def list_enrollments_for_course(db: Session, course_id: int) -> List[Enrollment]:
    logger.info(f"Getting enrollments for course with ID: {course_id}")
    if not course_exists(db, course_id):
        raise NotFoundError("Course", course_id)
    return (
        db.query(Enrollment)
        .options(joinedload(Enrollment.student))
        .filter(Enrollment.course_id == course_id)
        .order_by(Enrollment.student_id)
        .all()
    )


def group_by_student(db: Session) -> List[StudentCourses]:
    """Courses of every student that has at least one enrollment."""
    grouped: dict[int, StudentCourses] = {}
    for enrollment in list_enrollments(db):
        if enrollment.student is None:
            continue
        entry = grouped.get(enrollment.student.id)
        if entry is None:
            entry = StudentCourses(student=StudentSummary.model_validate(enrollment.student), courses=[])
            grouped[enrollment.student.id] = entry
        if enrollment.course is not None:
            entry.courses.append(CourseSummary.model_validate(enrollment.course))
    return list(grouped.values())


def _average(total: int, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    return round(total / denominator, 2)


def statistics(db: Session) -> EnrollmentStatistics:
    """Counts and averages; averages divide by students/courses that have enrollments."""
    logger.info("Getting enrollment statistics")
    total_enrollments = db.query(func.count()).select_from(Enrollment).scalar()
    total_students = db.query(func.count(Student.id)).scalar()
    total_courses = db.query(func.count(Course.id)).scalar()
    unique_students = db.query(func.count(distinct(Enrollment.student_id))).scalar()
    unique_courses = db.query(func.count(distinct(Enrollment.course_id))).scalar()

    return EnrollmentStatistics(
        total_enrollments=total_enrollments,
        total_students=total_students,
        total_courses=total_courses,
        unique_enrolled_students=unique_students,
        unique_enrolled_courses=unique_courses,
        average_enrollments_per_student=_average(total_enrollments, unique_students),
        average_enrollments_per_course=_average(total_enrollments, unique_courses),
    )


def count_enrollments(db: Session) -> int:
    return db.query(Enrollment).count()
