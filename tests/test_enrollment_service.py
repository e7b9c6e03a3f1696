import pytest

from student_management.core.exceptions import (
    DuplicateEnrollmentError,
    EnrollmentRejectedError,
    NotFoundError,
    UnknownCourseError,
    UnknownStudentError,
)
from student_management.dependencies.db import SessionLocal
from student_management.models.course import Course
from student_management.models.enrollment import Enrollment
from student_management.models.student import Student
from student_management.services import course_service, enrollment_service, student_service


@pytest.fixture
def ann_and_cs101(db):
    db.add(Student(id=1, full_name="Ann", student_number="S0001", email="ann@university.edu"))
    db.add(Course(id=10, code="CS101", title="Intro to Programming", credits=3))
    db.commit()


def test_enroll_twice_is_rejected_as_duplicate(db, ann_and_cs101):
    """
    The same pair can only be enrolled once; the second attempt reports a duplicate
    """
    enrollment = enrollment_service.enroll(db, 1, 10)
    assert enrollment.student_id == 1
    assert enrollment.course_id == 10
    assert enrollment.enrolled_on is not None

    with pytest.raises(EnrollmentRejectedError) as exc_info:
        enrollment_service.enroll(db, 1, 10)
    assert exc_info.value.has(DuplicateEnrollmentError)
    assert len(exc_info.value.problems) == 1
    assert db.query(Enrollment).count() == 1


def test_statistics_after_single_enrollment(db, ann_and_cs101):
    enrollment_service.enroll(db, 1, 10)
    with pytest.raises(EnrollmentRejectedError):
        enrollment_service.enroll(db, 1, 10)

    stats = enrollment_service.statistics(db)
    assert stats.total_enrollments == 1
    assert stats.total_students == 1
    assert stats.total_courses == 1
    assert stats.unique_enrolled_students == 1
    assert stats.unique_enrolled_courses == 1
    assert stats.average_enrollments_per_student == 1.0
    assert stats.average_enrollments_per_course == 1.0


def test_statistics_on_empty_store_are_zero(db):
    stats = enrollment_service.statistics(db)
    assert stats.total_enrollments == 0
    assert stats.total_students == 0
    assert stats.total_courses == 0
    assert stats.unique_enrolled_students == 0
    assert stats.unique_enrolled_courses == 0
    assert stats.average_enrollments_per_student == 0.0
    assert stats.average_enrollments_per_course == 0.0


def test_statistics_divide_by_enrolled_students_only(db, ann_and_cs101):
    """
    Students without enrollments do not dilute the per-student average
    """
    db.add(Student(id=2, full_name="Ben", student_number="S0002", email="ben@university.edu"))
    db.add(Student(id=3, full_name="Cho", student_number="S0003", email="cho@university.edu"))
    db.add(Course(id=11, code="CS102", title="Data Structures", credits=4))
    db.add(Course(id=12, code="MA101", title="Calculus", credits=4))
    db.commit()

    enrollment_service.enroll(db, 1, 10)
    enrollment_service.enroll(db, 1, 11)
    enrollment_service.enroll(db, 2, 10)

    stats = enrollment_service.statistics(db)
    assert stats.total_enrollments == 3
    assert stats.total_students == 3
    assert stats.unique_enrolled_students == 2
    assert stats.unique_enrolled_courses == 2
    assert stats.average_enrollments_per_student == 1.5
    assert stats.average_enrollments_per_course == 1.5


def test_unknown_student_is_rejected_without_creating_a_row(db, ann_and_cs101):
    with pytest.raises(EnrollmentRejectedError) as exc_info:
        enrollment_service.enroll(db, 99, 10)

    problems = exc_info.value.problems
    assert [type(p) for p in problems] == [UnknownStudentError]
    assert problems[0].field == "student_id"
    assert db.query(Enrollment).count() == 0


def test_all_problems_are_reported_together(db):
    with pytest.raises(EnrollmentRejectedError) as exc_info:
        enrollment_service.enroll(db, 99, 98)

    error = exc_info.value
    assert error.has(UnknownStudentError)
    assert error.has(UnknownCourseError)
    assert not error.has(DuplicateEnrollmentError)
    assert {p.code for p in error.problems} == {"unknown_student", "unknown_course"}


def test_unenroll_removes_the_pair(db, ann_and_cs101):
    enrollment_service.enroll(db, 1, 10)
    enrollment_service.unenroll(db, 1, 10)

    assert db.query(Enrollment).count() == 0
    # enrolling again after removal is allowed
    enrollment_service.enroll(db, 1, 10)
    assert db.query(Enrollment).count() == 1


def test_unenroll_missing_pair_is_not_found(db, ann_and_cs101):
    with pytest.raises(NotFoundError) as exc_info:
        enrollment_service.unenroll(db, 1, 10)
    assert str(exc_info.value) == "Enrollment not found for student 1 in course 10"


def test_deleting_student_removes_their_enrollments(db, ann_and_cs101):
    db.add(Course(id=11, code="CS102", title="Data Structures", credits=4))
    db.commit()
    enrollment_service.enroll(db, 1, 10)
    enrollment_service.enroll(db, 1, 11)

    student_service.delete_student(db, 1)

    assert db.query(Enrollment).count() == 0
    assert course_service.count_courses(db) == 2


def test_deleting_course_removes_its_enrollments(db, ann_and_cs101):
    db.add(Student(id=2, full_name="Ben", student_number="S0002", email="ben@university.edu"))
    db.commit()
    enrollment_service.enroll(db, 1, 10)
    enrollment_service.enroll(db, 2, 10)

    course_service.delete_course(db, 10)

    assert db.query(Enrollment).count() == 0
    assert student_service.count_students(db) == 2


def test_group_by_student_skips_students_without_courses(db, ann_and_cs101):
    db.add(Student(id=2, full_name="Ben", student_number="S0002", email="ben@university.edu"))
    db.add(Course(id=11, code="CS102", title="Data Structures", credits=4))
    db.commit()
    enrollment_service.enroll(db, 1, 10)
    enrollment_service.enroll(db, 1, 11)

    groups = enrollment_service.group_by_student(db)

    assert len(groups) == 1
    assert groups[0].student.full_name == "Ann"
    assert [course.code for course in groups[0].courses] == ["CS101", "CS102"]


def test_enrollments_for_missing_student_is_not_found(db):
    with pytest.raises(NotFoundError):
        enrollment_service.list_enrollments_for_student(db, 42)
    with pytest.raises(NotFoundError):
        enrollment_service.list_enrollments_for_course(db, 42)


def test_enrollment_date_cannot_be_changed(db, ann_and_cs101):
    enrollment = enrollment_service.enroll(db, 1, 10)
    with pytest.raises(ValueError):
        enrollment.enrolled_on = enrollment.enrolled_on.replace(year=2000)


def test_duplicate_caught_by_the_store_is_reported_like_the_check(db, ann_and_cs101, monkeypatch):
    """
    A pair inserted between the checks and the commit still comes back as a duplicate
    """
    real_find = enrollment_service.find_enrollment_problems
    calls = []

    def other_writer_wins(*args):
        calls.append(args)
        if len(calls) == 1:
            other = SessionLocal()
            try:
                other.add(Enrollment(student_id=1, course_id=10))
                other.commit()
            finally:
                other.close()
            return []
        return real_find(*args)

    monkeypatch.setattr(enrollment_service, "find_enrollment_problems", other_writer_wins)

    with pytest.raises(EnrollmentRejectedError) as exc_info:
        enrollment_service.enroll(db, 1, 10)
    assert exc_info.value.has(DuplicateEnrollmentError)
    assert len(calls) == 2
    assert db.query(Enrollment).count() == 1
