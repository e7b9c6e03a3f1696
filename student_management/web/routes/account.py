import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from student_management.core.exceptions import AuthenticationError, DuplicateAccountError, PasswordPolicyError
from student_management.dependencies.db import get_db
from student_management.dependencies.web import SESSION_USER_KEY, require_web_admin, verify_csrf
from student_management.models.user import User
from student_management.schemas.auth import AdminCreateUserRequest, RegisterRequest
from student_management.services import account_service
from student_management.web.templating import flash, form_errors, redirect, render

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)


def _safe_next(next_url: str | None) -> str:
    # only same-site paths, never "//host" or absolute urls
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/"


def _sign_in(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    request.session["user_email"] = user.email
    request.session["user_roles"] = user.role_names


def _account_errors(e: Exception) -> dict:
    if isinstance(e, PasswordPolicyError):
        return {"password": str(e)}
    if isinstance(e, DuplicateAccountError):
        return {"email": str(e)}
    return form_errors(e)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, next: str = "/"):
    return render(request, "account/login.html", {"email": "", "next": _safe_next(next)})


@router.post("/login", response_class=HTMLResponse, dependencies=[Depends(verify_csrf)])
def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/"),
    db: Session = Depends(get_db)
):
    try:
        user = account_service.authenticate(db, email, password)
    except AuthenticationError as e:
        return render(request, "account/login.html", {"email": email, "next": _safe_next(next), "errors": {"": str(e)}}, 400)
    _sign_in(request, user)
    return redirect(_safe_next(next))


@router.post("/logout", dependencies=[Depends(verify_csrf)])
def logout_submit(request: Request):
    request.session.clear()
    flash(request, "Signed out.")
    return redirect("/")


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request):
    return render(request, "account/register.html", {"email": ""})


@router.post("/register", response_class=HTMLResponse, dependencies=[Depends(verify_csrf)])
def register_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    db: Session = Depends(get_db)
):
    try:
        req = RegisterRequest(email=email, password=password, confirm_password=confirm_password)
        user = account_service.register_user(db, req.email, req.password, account_service.STUDENT_ROLE)
    except (PydanticValidationError, PasswordPolicyError, DuplicateAccountError) as e:
        return render(request, "account/register.html", {"email": email, "errors": _account_errors(e)}, 400)
    _sign_in(request, user)
    flash(request, "Account created.")
    return redirect("/")


@router.get("/create-user", response_class=HTMLResponse, dependencies=[Depends(require_web_admin)])
def create_user_page(request: Request):
    return render(request, "account/create_user.html", {"email": "", "role": account_service.STUDENT_ROLE, "roles": account_service.ROLES})


@router.post("/create-user", response_class=HTMLResponse, dependencies=[Depends(require_web_admin), Depends(verify_csrf)])
def create_user_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    role: str = Form(account_service.STUDENT_ROLE),
    db: Session = Depends(get_db)
):
    try:
        req = AdminCreateUserRequest(email=email, password=password, role=role)
        user = account_service.register_user(db, req.email, req.password, req.role)
    except (PydanticValidationError, PasswordPolicyError, DuplicateAccountError) as e:
        return render(request, "account/create_user.html", {
            "email": email, "role": role, "roles": account_service.ROLES, "errors": _account_errors(e)
        }, 400)
    flash(request, f"Account {user.email} created with role {role}.")
    return redirect("/")
