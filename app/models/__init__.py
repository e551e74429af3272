# app/models/__init__.py - Import all models so SQLAlchemy can discover them

from app.models.base import Base

from app.models.user import User, UserRole
from app.models.college import College, Department
from app.models.course import Course, Prerequisite
from app.models.curriculum import Curriculum, CurriculumCourse
from app.models.academic import Batch, AcademicTerm
from app.models.student import Student
from app.models.section import FacultyMember, Section, Schedule
from app.models.enrollment import Enrollment, EnrollmentStatusEvent
from app.models.grading import GradeComponent, Grade, FinalGrade, GradeScale
from app.models.gpa import TermGPA, CumulativeGPA
from app.models.attendance import Attendance
from app.models.department_application import DepartmentApplication
from app.models.system_settings import SystemSetting

__all__ = [
    "Base",
    "User",
    "UserRole",
    "College",
    "Department",
    "Course",
    "Prerequisite",
    "Curriculum",
    "CurriculumCourse",
    "Batch",
    "AcademicTerm",
    "Student",
    "FacultyMember",
    "Section",
    "Schedule",
    "Enrollment",
    "EnrollmentStatusEvent",
    "GradeComponent",
    "Grade",
    "FinalGrade",
    "GradeScale",
    "TermGPA",
    "CumulativeGPA",
    "Attendance",
    "DepartmentApplication",
    "SystemSetting",
]
