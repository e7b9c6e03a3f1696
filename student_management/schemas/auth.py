from pydantic import BaseModel, EmailStr, model_validator
from typing import Optional, List, Literal


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("The password and confirmation password do not match.")
        return self


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenRefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    id: int
    email: str
    roles: List[str]
    message: Optional[str] = None


class AdminCreateUserRequest(BaseModel):
    email: EmailStr
    password: str
    role: Literal["Admin", "Student"] = "Student"


class UserRead(BaseModel):
    id: int
    email: str
    roles: List[str]
    student_id: Optional[int] = None
