from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from student_management.dependencies.db import get_db
from student_management.services.course_service import count_courses
from student_management.services.enrollment_service import count_enrollments
from student_management.services.student_service import count_students
from student_management.web.templating import render

router = APIRouter()


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def home_page(request: Request, db: Session = Depends(get_db)):
    return render(request, "home.html", {
        "total_students": count_students(db),
        "total_courses": count_courses(db),
        "total_enrollments": count_enrollments(db),
    })
