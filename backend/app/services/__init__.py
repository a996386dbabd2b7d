from app.services.identity_service import Actor, IdentityService, identity_service
from app.services.scope_service import Scoped
from app.services.auth_service import AuthService, auth_service
from app.services.directory_service import DirectoryService, directory_service
from app.services.class_service import ClassService, class_service
from app.services.enrollment_service import EnrollmentService, enrollment_service
from app.services.attendance_service import AttendanceService, attendance_service
from app.services.marks_service import MarksService, marks_service
from app.services.performance_service import PerformanceService, performance_service
from app.services.announcement_service import AnnouncementService, announcement_service

__all__ = [
    # Identity and scope
    "Actor",
    "IdentityService",
    "identity_service",
    "Scoped",
    # Accounts and reference data
    "AuthService",
    "auth_service",
    "DirectoryService",
    "directory_service",
    # Classes and enrollment
    "ClassService",
    "class_service",
    "EnrollmentService",
    "enrollment_service",
    # Records
    "AttendanceService",
    "attendance_service",
    "MarksService",
    "marks_service",
    # Derived views
    "PerformanceService",
    "performance_service",
    "AnnouncementService",
    "announcement_service",
]
