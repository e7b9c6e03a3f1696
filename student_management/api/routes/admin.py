from fastapi import APIRouter, Depends, Body, status
from sqlalchemy.orm import Session

from student_management.dependencies.auth import require_admin
from student_management.dependencies.db import get_db
from student_management.schemas.auth import AdminCreateUserRequest, UserRead
from student_management.services import account_service

router = APIRouter(
    dependencies=[Depends(require_admin)]
)


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED, summary="Create an account (Admin)")
def create_user(req: AdminCreateUserRequest = Body(...), db: Session = Depends(get_db)):
    """
    Creates a login account with the chosen role (Admin or Student).
    """
    user = account_service.register_user(db, req.email, req.password, req.role)
    return account_service.to_user_read(user)


@router.get("/users", response_model=list[UserRead], summary="List accounts (Admin)")
def list_users(db: Session = Depends(get_db)):
    return [account_service.to_user_read(u) for u in account_service.list_users(db)]
