from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from student_management.db.base import Base

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(10), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    credits = Column(Integer, nullable=False)
    version = Column(Integer, nullable=False)

    enrollments = relationship(
        "Enrollment",
        back_populates="course",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Course {self.code}>"
