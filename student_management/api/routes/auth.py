import logging

from fastapi import APIRouter, Depends, Body, status
from sqlalchemy.orm import Session

from student_management.dependencies.auth import get_current_user
from student_management.dependencies.db import get_db
from student_management.models.user import User
from student_management.schemas.auth import (
    RegisterRequest, LoginRequest, LoginResponse,
    TokenRefreshRequest, TokenResponse, UserRead
)
from student_management.services import account_service
from student_management.services.token_service import (
    create_access_token, create_refresh_token, rotate_refresh_token
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a student account"
)
def register(req: RegisterRequest = Body(...), db: Session = Depends(get_db)):
    """
    Self-registration always grants the Student role. Admin accounts are
    created through `/api/admin/users`.
    """
    user = account_service.register_user(db, req.email, req.password, account_service.STUDENT_ROLE)
    return account_service.to_user_read(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in (issue tokens)",
    description="Checks the bcrypt password hash and issues an access token and a refresh token."
)
def login(req: LoginRequest = Body(...), db: Session = Depends(get_db)):
    user = account_service.authenticate(db, req.email, req.password)
    return LoginResponse(
        id=user.id,
        email=user.email,
        roles=user.role_names,
        access_token=create_access_token(user),
        refresh_token=create_refresh_token(db, user),
        message="Successfully logged in."
    )


@router.post("/refresh", response_model=TokenResponse, summary="Rotate a refresh token")
def refresh(req: TokenRefreshRequest = Body(...), db: Session = Depends(get_db)):
    """
    The refresh token is single use: it is revoked and a new pair is issued.
    """
    _, access_token, refresh_token = rotate_refresh_token(db, req.refresh_token)
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


@router.get("/me", response_model=UserRead, summary="Current account")
def me(user: User = Depends(get_current_user)):
    return account_service.to_user_read(user)
