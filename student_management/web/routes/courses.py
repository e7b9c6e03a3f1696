from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from student_management.core.exceptions import IdMismatchError, ConcurrencyConflictError
from student_management.dependencies.db import get_db
from student_management.dependencies.web import require_web_admin, verify_csrf
from student_management.schemas.course import CourseCreate, CourseUpdate
from student_management.services import course_service, enrollment_service
from student_management.web.templating import flash, form_errors, redirect, render

router = APIRouter(include_in_schema=False)

admin_form_post = [Depends(require_web_admin), Depends(verify_csrf)]


@router.get("", response_class=HTMLResponse)
def course_index_page(request: Request, db: Session = Depends(get_db)):
    return render(request, "courses/index.html", {"courses": course_service.list_courses(db)})


@router.get("/create", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def course_create_page(request: Request):
    return render(request, "courses/form.html", {"course": {}, "mode": "create"})


@router.post("/create", response_class=HTMLResponse, dependencies=admin_form_post)
def course_create_submit(
    request: Request,
    code: str = Form(""),
    title: str = Form(""),
    credits: str = Form(""),
    db: Session = Depends(get_db)
):
    values = {"code": code, "title": title, "credits": credits}
    try:
        course = course_service.create_course(db, CourseCreate(**values))
    except PydanticValidationError as e:
        return render(request, "courses/form.html", {"course": values, "mode": "create", "errors": form_errors(e)}, 400)
    flash(request, f"Course {course.code} created.")
    return redirect("/courses")


@router.get("/{course_id}", response_class=HTMLResponse)
def course_detail_page(request: Request, course_id: int, db: Session = Depends(get_db)):
    course = course_service.get_course(db, course_id)
    enrollments = enrollment_service.list_enrollments_for_course(db, course_id)
    return render(request, "courses/detail.html", {"course": course, "enrollments": enrollments})


@router.get("/{course_id}/edit", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def course_edit_page(request: Request, course_id: int, db: Session = Depends(get_db)):
    course = course_service.get_course(db, course_id)
    return render(request, "courses/form.html", {"course": course, "mode": "edit"})


@router.post("/{course_id}/edit", response_class=HTMLResponse, dependencies=admin_form_post)
def course_edit_submit(
    request: Request,
    course_id: int,
    id: str = Form(""),
    version: str = Form(""),
    code: str = Form(""),
    title: str = Form(""),
    credits: str = Form(""),
    db: Session = Depends(get_db)
):
    values = {"id": id, "version": version, "code": code, "title": title, "credits": credits}

    def rerender(errors: dict):
        return render(request, "courses/form.html", {"course": values, "mode": "edit", "errors": errors}, 400)

    try:
        course_in = CourseUpdate(**{**values, "version": version.strip() or None})
        course = course_service.update_course(db, course_id, course_in)
    except PydanticValidationError as e:
        return rerender(form_errors(e))
    except IdMismatchError as e:
        return rerender({"": str(e)})
    except ConcurrencyConflictError:
        return rerender({"": "This course was changed by someone else. Reload the page and try again."})
    flash(request, f"Course {course.code} updated.")
    return redirect("/courses")


@router.get("/{course_id}/delete", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def course_delete_page(request: Request, course_id: int, db: Session = Depends(get_db)):
    course = course_service.get_course(db, course_id)
    return render(request, "courses/delete.html", {"course": course, "enrollment_count": len(course.enrollments)})


@router.post("/{course_id}/delete", response_class=HTMLResponse, dependencies=admin_form_post)
def course_delete_submit(request: Request, course_id: int, db: Session = Depends(get_db)):
    course_service.delete_course(db, course_id)
    flash(request, "Course deleted.")
    return redirect("/courses")
