"""Jinja2 rendering helpers shared by the HTML routes."""

from pathlib import Path

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError

from student_management.core.config import settings
from student_management.core.csrf import generate_csrf_token
from student_management.services.account_service import ADMIN_ROLE

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

FLASH_KEY = "_flashes"


def flash(request: Request, message: str, category: str = "success") -> None:
    flashes = list(request.session.get(FLASH_KEY, []))
    flashes.append([category, message])
    request.session[FLASH_KEY] = flashes


def render(request: Request, template_name: str, context: dict | None = None, status_code: int = 200):
    context = dict(context or {})
    context.setdefault("errors", {})
    context["csrf_token"] = generate_csrf_token(request.session)
    context["flashes"] = request.session.pop(FLASH_KEY, [])
    context["signed_in_email"] = request.session.get("user_email")
    context["is_admin"] = settings.AUTH_DISABLED or ADMIN_ROLE in request.session.get("user_roles", [])
    return templates.TemplateResponse(request, template_name, context, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    # 303 so the browser follows a form POST with a GET
    return RedirectResponse(url=url, status_code=303)


def form_errors(exc: PydanticValidationError) -> dict[str, str]:
    """Field name -> first message, from a pydantic validation error."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error["loc"] else ""
        errors.setdefault(field, error["msg"])
    return errors


def parse_optional_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)
