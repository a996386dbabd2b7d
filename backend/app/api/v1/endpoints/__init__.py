# API endpoints
from . import (
    auth,
    departments,
    subjects,
    teachers,
    students,
    classes,
    enrollments,
    attendance,
    marks,
    analytics,
    performance,
    announcements,
    health,
)

__all__ = [
    "auth",
    "departments",
    "subjects",
    "teachers",
    "students",
    "classes",
    "enrollments",
    "attendance",
    "marks",
    "analytics",
    "performance",
    "announcements",
    "health",
]
