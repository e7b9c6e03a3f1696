from datetime import datetime, timezone
from sqlalchemy import Column, Integer, ForeignKey, DateTime
from sqlalchemy.orm import relationship, validates
from student_management.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Enrollment(Base):
    __tablename__ = "enrollments"

    # the composite key is what makes a (student, course) pair unique
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True, index=True)
    enrolled_on = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    student = relationship("Student", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")

    @validates("enrolled_on")
    def _keep_enrolled_on(self, key, value):
        if self.enrolled_on is not None and value != self.enrolled_on:
            raise ValueError("enrolled_on cannot change once set")
        return value
