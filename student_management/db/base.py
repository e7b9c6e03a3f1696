from sqlalchemy.ext.declarative import declarative_base

Base = declarative_base()
import student_management.models.user
import student_management.models.token
import student_management.models.student
import student_management.models.course
import student_management.models.enrollment
