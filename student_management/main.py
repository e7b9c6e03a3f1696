# /student_management/main.py
import logging
import time
from logging.handlers import RotatingFileHandler
from contextlib import asynccontextmanager
from urllib.parse import quote

import anyio.to_thread
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

# --- Core / Config ---
from student_management.core.config import settings
from student_management.core.exceptions import (
    StudentManagementError, NotFoundError, ValidationError, IdMismatchError,
    ConcurrencyConflictError, EnrollmentRejectedError, AuthenticationError,
    DuplicateAccountError, PasswordPolicyError, AccountError, ConfigurationError
)
from student_management.dependencies.db import SessionLocal, init_db
from student_management.dependencies.web import LoginRequiredError
from student_management.services.bootstrap import seed_identity
from student_management.web.templating import redirect, render

# --- API Routers ---
from student_management.api.routes import auth as auth_router
from student_management.api.routes import admin as admin_router
from student_management.api.routes import students as students_router
from student_management.api.routes import courses as courses_router
from student_management.api.routes import enrollments as enrollments_router

# --- HTML Routers ---
from student_management.web.routes import home as home_pages
from student_management.web.routes import account as account_pages
from student_management.web.routes import students as student_pages
from student_management.web.routes import courses as course_pages
from student_management.web.routes import enrollments as enrollment_pages


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    force=True
)
if settings.LOG_FILE:
    file_handler = RotatingFileHandler(settings.LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    logging.getLogger().addHandler(file_handler)

logger = logging.getLogger(__name__)


def check_authorization_settings() -> None:
    if not settings.AUTH_DISABLED:
        return
    if settings.ENVIRONMENT.lower() not in ("development", "local"):
        raise ConfigurationError(
            f"AUTH_DISABLED is only allowed in development, not in '{settings.ENVIRONMENT}'"
        )
    logger.warning("AUTH_DISABLED is set: role checks are OFF. Never deploy with this setting.")


# --- Lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    check_authorization_settings()

    # route handlers run in the worker pool; size it to the connections they can hold
    limiter = anyio.to_thread.current_default_thread_limiter()
    limiter.total_tokens = settings.DB_POOL_SIZE + settings.DB_MAX_OVERFLOW

    init_db()
    db = SessionLocal()
    try:
        seed_identity(db, settings.ADMIN_EMAIL, settings.ADMIN_INITIAL_PASSWORD)
    finally:
        db.close()
    logger.info("Startup complete")

    yield


# --- FastAPI App Instance ---
app = FastAPI(
    title="Student Management API",
    description="Students, courses and enrollments with Admin/Student roles.",
    lifespan=lifespan
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(
        f"Request processed: {request.method} {request.url.path} - {response.status_code} in {process_time:.4f} secs"
    )
    return response


app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY, same_site="lax")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handlers ---
def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api")


def _error_response(request: Request, status_code: int, message: str, errors: list | None = None):
    if _is_api(request):
        payload = {"message": message}
        if errors is not None:
            payload["errors"] = errors
        return JSONResponse(status_code=status_code, content=payload)
    return render(request, "error.html", {"status_code": status_code, "message": message}, status_code)


def _domain_status(exc: StudentManagementError) -> tuple[int, list | None]:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, None
    if isinstance(exc, EnrollmentRejectedError):
        return status.HTTP_400_BAD_REQUEST, [
            {"code": p.code, "field": p.field, "message": str(p)} for p in exc.problems
        ]
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST, [
            {"field": field, "message": message} for field, message in exc.errors.items()
        ]
    if isinstance(exc, IdMismatchError):
        return status.HTTP_400_BAD_REQUEST, None
    if isinstance(exc, PasswordPolicyError):
        return status.HTTP_400_BAD_REQUEST, [{"field": "password", "message": m} for m in exc.failures]
    if isinstance(exc, ConcurrencyConflictError):
        return status.HTTP_409_CONFLICT, None
    if isinstance(exc, DuplicateAccountError):
        return status.HTTP_409_CONFLICT, None
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED, None
    if isinstance(exc, AccountError):
        return status.HTTP_400_BAD_REQUEST, None
    return status.HTTP_500_INTERNAL_SERVER_ERROR, None


@app.exception_handler(StudentManagementError)
async def domain_error_handler(request: Request, exc: StudentManagementError):
    status_code, errors = _domain_status(exc)
    if status_code >= 500:
        logger.error(f"Unhandled application error on {request.method} {request.url.path}: {exc!r}")
    return _error_response(request, status_code, str(exc), errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]}
        for error in exc.errors()
    ]
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if _is_api(request):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)
    return render(request, "error.html", {"status_code": exc.status_code, "message": exc.detail}, exc.status_code)


@app.exception_handler(LoginRequiredError)
async def login_required_handler(request: Request, exc: LoginRequiredError):
    return redirect(f"/account/login?next={quote(exc.next_url)}")


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Store failure on {request.method} {request.url.path} (path params {request.path_params})")
    return _error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable. Please try again later.")


# --- Routes ---
app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(admin_router.router, prefix="/api/admin", tags=["admin"])
app.include_router(students_router.router, prefix="/api/students", tags=["students"])
app.include_router(courses_router.router, prefix="/api/courses", tags=["courses"])
app.include_router(enrollments_router.router, prefix="/api/enrollments", tags=["enrollments"])

app.include_router(home_pages.router)
app.include_router(account_pages.router, prefix="/account")
app.include_router(student_pages.router, prefix="/students")
app.include_router(course_pages.router, prefix="/courses")
app.include_router(enrollment_pages.router, prefix="/enrollments")
