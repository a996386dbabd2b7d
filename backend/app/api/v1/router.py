from fastapi import APIRouter
from app.api.v1.endpoints import (
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

api_router = APIRouter()

api_router.include_router(health.router)

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(departments.router, prefix="/departments", tags=["Departments"])
api_router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
api_router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(classes.router, prefix="/classes", tags=["Classes"])
api_router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])

# These own both top-level and /classes/{class_id}/... paths
api_router.include_router(attendance.router, tags=["Attendance"])
api_router.include_router(marks.router, tags=["Marks"])
api_router.include_router(announcements.router, tags=["Announcements"])

api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
api_router.include_router(performance.router, prefix="/performance", tags=["Performance"])
