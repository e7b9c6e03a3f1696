import logging

from fastapi import Depends, Form, HTTPException, Request, status
from sqlalchemy.orm import Session

from student_management.core.config import settings
from student_management.core.csrf import validate_csrf_token
from student_management.dependencies.db import get_db
from student_management.models.user import User
from student_management.services.account_service import ADMIN_ROLE, get_user

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


class LoginRequiredError(Exception):
    """Raised by page dependencies when a browser user has to sign in first."""

    def __init__(self, next_url: str):
        self.next_url = next_url
        super().__init__(next_url)


def get_session_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    user = get_user(db, user_id)
    if user is None:
        # account removed while the cookie was still around
        request.session.pop(SESSION_USER_KEY, None)
    return user


def require_web_admin(request: Request, user: User | None = Depends(get_session_user)) -> User | None:
    if settings.AUTH_DISABLED:
        return None
    if user is None:
        raise LoginRequiredError(request.url.path)
    if not user.has_role(ADMIN_ROLE):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
    return user


def verify_csrf(request: Request, csrf_token: str = Form("")) -> None:
    if not validate_csrf_token(request.session, csrf_token):
        logger.warning(f"Rejected form post without a valid anti-forgery token: {request.method} {request.url.path}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid anti-forgery token.")
