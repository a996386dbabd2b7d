# Re-export all models for convenient imports
from app.models.user import User, UserRole
from app.models.college_management import (
    Department,
    Subject,
    Teacher,
    Student,
    CourseClass,
    ClassEnrollment,
    EnrollmentStatus,
    Announcement,
    ACTIVE_ENROLLMENT_STATUSES,
)
from app.models.attendance import Attendance, AttendanceStatus
from app.models.marks_management import Mark, EXAM_TYPE_ORDER, DEFAULT_TOTAL_MARKS

__all__ = [
    # Accounts
    "User",
    "UserRole",
    # Reference data and profiles
    "Department",
    "Subject",
    "Teacher",
    "Student",
    # Classes
    "CourseClass",
    "ClassEnrollment",
    "EnrollmentStatus",
    "ACTIVE_ENROLLMENT_STATUSES",
    "Announcement",
    # Attendance
    "Attendance",
    "AttendanceStatus",
    # Marks
    "Mark",
    "EXAM_TYPE_ORDER",
    "DEFAULT_TOTAL_MARKS",
]
