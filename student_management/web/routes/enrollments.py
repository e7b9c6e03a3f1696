from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from student_management.core.exceptions import EnrollmentRejectedError
from student_management.dependencies.db import get_db
from student_management.dependencies.web import require_web_admin, verify_csrf
from student_management.services import course_service, enrollment_service, student_service
from student_management.web.templating import flash, parse_optional_int, redirect, render

router = APIRouter(include_in_schema=False)


def _enroll_form(request: Request, db: Session, selected: dict, errors: dict | None = None, status_code: int = 200):
    return render(request, "enrollments/enroll.html", {
        "students": student_service.list_students(db),
        "courses": course_service.list_courses(db),
        "selected": selected,
        "errors": errors or {},
    }, status_code)


@router.get("", response_class=HTMLResponse)
def enrollment_index_page(request: Request, db: Session = Depends(get_db)):
    return render(request, "enrollments/index.html", {"enrollments": enrollment_service.list_enrollments(db)})


@router.get("/enroll", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def enroll_page(request: Request, db: Session = Depends(get_db)):
    return _enroll_form(request, db, {})


@router.post("/enroll", response_class=HTMLResponse, dependencies=[Depends(require_web_admin), Depends(verify_csrf)])
def enroll_submit(
    request: Request,
    student_id: str = Form(""),
    course_id: str = Form(""),
    db: Session = Depends(get_db)
):
    selected = {"student_id": student_id, "course_id": course_id}
    errors = {}
    try:
        parsed_student_id = parse_optional_int(student_id)
    except ValueError:
        parsed_student_id = None
    try:
        parsed_course_id = parse_optional_int(course_id)
    except ValueError:
        parsed_course_id = None
    if parsed_student_id is None:
        errors["student_id"] = "Select a student."
    if parsed_course_id is None:
        errors["course_id"] = "Select a course."
    if errors:
        return _enroll_form(request, db, selected, errors, 400)

    try:
        enrollment_service.enroll(db, parsed_student_id, parsed_course_id)
    except EnrollmentRejectedError as e:
        # every problem goes on the form, the duplicate one under the form-level key
        errors = {problem.field: str(problem) for problem in e.problems}
        return _enroll_form(request, db, selected, errors, 400)
    flash(request, "Student enrolled.")
    return redirect("/enrollments")


@router.get("/student/{student_id}", response_class=HTMLResponse)
def student_courses_page(request: Request, student_id: int, db: Session = Depends(get_db)):
    student = student_service.get_student(db, student_id)
    enrollments = enrollment_service.list_enrollments_for_student(db, student_id)
    return render(request, "enrollments/student_courses.html", {"student": student, "enrollments": enrollments})


@router.get("/courses-for-student", response_class=HTMLResponse)
def courses_for_student_page(request: Request, db: Session = Depends(get_db)):
    return render(request, "enrollments/courses_for_student.html", {"groups": enrollment_service.group_by_student(db)})


@router.get("/delete/{student_id}/{course_id}", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def unenroll_page(request: Request, student_id: int, course_id: int, db: Session = Depends(get_db)):
    enrollment = enrollment_service.get_enrollment(db, student_id, course_id)
    return render(request, "enrollments/delete.html", {"enrollment": enrollment})


@router.post(
    "/delete/{student_id}/{course_id}",
    response_class=HTMLResponse,
    dependencies=[Depends(require_web_admin), Depends(verify_csrf)]
)
def unenroll_submit(request: Request, student_id: int, course_id: int, db: Session = Depends(get_db)):
    enrollment_service.unenroll(db, student_id, course_id)
    flash(request, "Enrollment removed.")
    return redirect("/enrollments")
