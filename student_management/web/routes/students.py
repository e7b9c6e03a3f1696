from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from student_management.core.exceptions import ValidationError, IdMismatchError, ConcurrencyConflictError
from student_management.dependencies.db import get_db
from student_management.dependencies.web import require_web_admin, verify_csrf
from student_management.schemas.student import StudentCreate, StudentUpdate
from student_management.services import enrollment_service, student_service
from student_management.web.templating import flash, form_errors, redirect, render

router = APIRouter(include_in_schema=False)

admin_form_post = [Depends(require_web_admin), Depends(verify_csrf)]


def _form_values(full_name: str, student_number: str, email: str, user_id: str) -> dict:
    return {"full_name": full_name, "student_number": student_number, "email": email, "user_id": user_id}


@router.get("", response_class=HTMLResponse)
def student_index_page(request: Request, db: Session = Depends(get_db)):
    return render(request, "students/index.html", {"students": student_service.list_students(db)})


@router.get("/create", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def student_create_page(request: Request):
    return render(request, "students/form.html", {"student": {}, "mode": "create"})


@router.post("/create", response_class=HTMLResponse, dependencies=admin_form_post)
def student_create_submit(
    request: Request,
    full_name: str = Form(""),
    student_number: str = Form(""),
    email: str = Form(""),
    user_id: str = Form(""),
    db: Session = Depends(get_db)
):
    values = _form_values(full_name, student_number, email, user_id)
    try:
        student_in = StudentCreate(**{**values, "user_id": user_id.strip() or None})
        student = student_service.create_student(db, student_in)
    except PydanticValidationError as e:
        return render(request, "students/form.html", {"student": values, "mode": "create", "errors": form_errors(e)}, 400)
    except ValidationError as e:
        return render(request, "students/form.html", {"student": values, "mode": "create", "errors": e.errors}, 400)
    flash(request, f"Student {student.full_name} created.")
    return redirect("/students")


@router.get("/{student_id}", response_class=HTMLResponse)
def student_detail_page(request: Request, student_id: int, db: Session = Depends(get_db)):
    student = student_service.get_student(db, student_id)
    enrollments = enrollment_service.list_enrollments_for_student(db, student_id)
    return render(request, "students/detail.html", {"student": student, "enrollments": enrollments})


@router.get("/{student_id}/edit", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def student_edit_page(request: Request, student_id: int, db: Session = Depends(get_db)):
    student = student_service.get_student(db, student_id)
    return render(request, "students/form.html", {"student": student, "mode": "edit"})


@router.post("/{student_id}/edit", response_class=HTMLResponse, dependencies=admin_form_post)
def student_edit_submit(
    request: Request,
    student_id: int,
    id: str = Form(""),
    version: str = Form(""),
    full_name: str = Form(""),
    student_number: str = Form(""),
    email: str = Form(""),
    user_id: str = Form(""),
    db: Session = Depends(get_db)
):
    values = {**_form_values(full_name, student_number, email, user_id), "id": id, "version": version}

    def rerender(errors: dict):
        return render(request, "students/form.html", {"student": values, "mode": "edit", "errors": errors}, 400)

    try:
        student_in = StudentUpdate(**{**values, "user_id": user_id.strip() or None, "version": version.strip() or None})
        student = student_service.update_student(db, student_id, student_in)
    except PydanticValidationError as e:
        return rerender(form_errors(e))
    except ValidationError as e:
        return rerender(e.errors)
    except IdMismatchError as e:
        return rerender({"": str(e)})
    except ConcurrencyConflictError:
        return rerender({"": "This student was changed by someone else. Reload the page and try again."})
    flash(request, f"Student {student.full_name} updated.")
    return redirect("/students")


@router.get("/{student_id}/delete", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def student_delete_page(request: Request, student_id: int, db: Session = Depends(get_db)):
    student = student_service.get_student(db, student_id)
    return render(request, "students/delete.html", {"student": student, "enrollment_count": len(student.enrollments)})


@router.post("/{student_id}/delete", response_class=HTMLResponse, dependencies=admin_form_post)
def student_delete_submit(request: Request, student_id: int, db: Session = Depends(get_db)):
    student_service.delete_student(db, student_id)
    flash(request, "Student deleted.")
    return redirect("/students")
