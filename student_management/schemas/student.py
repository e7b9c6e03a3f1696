# /student_management/schemas/student.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class StudentBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    student_number: str = Field(..., min_length=1, max_length=20)
    email: EmailStr
    user_id: Optional[int] = None

    class Config:
        str_strip_whitespace = True


class StudentCreate(StudentBase):
    pass


class StudentUpdate(StudentBase):
    id: int
    # when sent, the update only applies if the stored version still matches
    version: Optional[int] = None


class StudentRead(BaseModel):
    id: int
    full_name: str
    student_number: str
    email: str
    user_id: Optional[int] = None
    version: int

    class Config:
        from_attributes = True


class StudentSummary(BaseModel):
    id: int
    full_name: str
    student_number: str
    email: str

    class Config:
        from_attributes = True


class StudentUpdateResponse(BaseModel):
    message: str
    student: StudentRead
