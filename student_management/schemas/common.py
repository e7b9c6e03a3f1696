from pydantic import BaseModel
from typing import Optional, List


class MessageResponse(BaseModel):
    message: str


class FieldError(BaseModel):
    field: str
    message: str
    code: Optional[str] = None


class ErrorResponse(BaseModel):
    message: str
    errors: List[FieldError] = []
