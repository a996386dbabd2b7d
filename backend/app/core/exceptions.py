"""
Custom Exceptions for the College Management API
================================================

Every failure the core reports to a caller is one of these. The API layer
turns them into ``{"message": ..., "code": ...}`` with the matching status.

Usage:
    from app.core.exceptions import ValidationError, ResourceNotFoundError

    if score > total_marks:
        raise ValidationError("Score cannot exceed total marks.", field="score")

    if not enrollment:
        raise ResourceNotFoundError("Enrollment")
"""

from typing import Optional, Any, Dict


class CollegeError(Exception):
    """Base exception for all errors surfaced to API callers"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "message": self.message,
            "code": self.code,
        }
        if self.details:
            body["details"] = self.details
        return body


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(CollegeError):
    """Input was malformed, missing or out of range"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION", details=details)


class SundayAttendanceError(ValidationError):
    """Attendance is a working-day concept"""

    def __init__(self, date_value: Any):
        super().__init__("Attendance cannot be recorded on a Sunday.", field="date")
        self.details["date"] = str(date_value)


class ScoreOutOfRangeError(ValidationError):
    """Score must stay within 0..total_marks"""

    def __init__(self, message: str = "Score cannot exceed total marks."):
        super().__init__(message, field="score")


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(CollegeError):
    """No usable session token"""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHENTICATED")


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid"""

    def __init__(self):
        super().__init__("Invalid token")


class TokenExpiredError(AuthenticationError):
    """JWT token has expired"""

    def __init__(self):
        super().__init__("Token has expired")


class InvalidCredentialsError(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid credentials.")


class AuthorizationError(CollegeError):
    """Authenticated, but the operation is outside the caller's scope"""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="FORBIDDEN")


class ProfileNotFoundError(AuthorizationError):
    """Account has a role but no matching profile row"""

    def __init__(self, profile: str):
        super().__init__(f"{profile} profile not found.")
        self.details["profile"] = profile.lower()


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(CollegeError):
    """Referenced entity is absent, or present but outside the caller's scope"""

    status_code = 404

    def __init__(self, resource_type: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} not found.",
            code="NOT_FOUND",
            details={"resource_type": resource_type}
        )


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(CollegeError):
    """Request clashes with existing state"""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class DuplicateEnrollmentError(ConflictError):
    def __init__(self):
        super().__init__("Enrollment already exists.")


class EmailInUseError(ConflictError):
    def __init__(self):
        super().__init__("Email already in use.")


class RollNumberInUseError(ConflictError):
    def __init__(self):
        super().__init__("Roll number already in use.")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: CollegeError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return error.to_dict()
