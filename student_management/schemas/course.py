from pydantic import BaseModel, Field
from typing import Optional


class CourseBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=10)
    title: str = Field(..., min_length=1, max_length=100)
    credits: int = Field(..., ge=1, le=10)

    class Config:
        str_strip_whitespace = True


class CourseCreate(CourseBase):
    pass


class CourseUpdate(CourseBase):
    id: int
    version: Optional[int] = None


class CourseRead(BaseModel):
    id: int
    code: str
    title: str
    credits: int
    version: int

    class Config:
        from_attributes = True


class CourseSummary(BaseModel):
    id: int
    code: str
    title: str
    credits: int

    class Config:
        from_attributes = True


class CourseUpdateResponse(BaseModel):
    message: str
    course: CourseRead
