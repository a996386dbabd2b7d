# Pydantic schemas
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    AccountOut,
    TeacherRegister,
    StudentRegister,
)
from app.schemas.college import (
    DepartmentCreate,
    SubjectCreate,
    ClassCreate,
    AnnouncementCreate,
)
from app.schemas.attendance import (
    AttendanceRecordIn,
    AttendanceBatch,
    AttendanceSingle,
)
from app.schemas.marks import MarkCreate, MarkUpdate

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "AccountOut",
    "TeacherRegister",
    "StudentRegister",
    # College
    "DepartmentCreate",
    "SubjectCreate",
    "ClassCreate",
    "AnnouncementCreate",
    # Attendance
    "AttendanceRecordIn",
    "AttendanceBatch",
    "AttendanceSingle",
    # Marks
    "MarkCreate",
    "MarkUpdate",
]
