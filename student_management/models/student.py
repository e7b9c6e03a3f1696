# /student_management/models/student.py
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from student_management.db.base import Base

class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    student_number = Column(String(20), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=False)
    # optional link to the login principal that owns this record
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True)
    version = Column(Integer, nullable=False)

    user = relationship("User", back_populates="student")
    enrollments = relationship(
        "Enrollment",
        back_populates="student",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Student {self.student_number}>"
