from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.college_management import EnrollmentStatus
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.services.enrollment_service import enrollment_service, enrollment_to_dict
from app.services.identity_service import Actor

router = APIRouter()

DECIDERS = (UserRole.TEACHER, UserRole.HOD)


@router.get("/requests")
async def list_pending_requests(
    actor: Actor = Depends(get_actor(*DECIDERS)),
    db: AsyncSession = Depends(get_db)
):
    """Pending requests for the caller's classes (teacher) or department (HOD)"""
    return {"requests": await enrollment_service.list_requests(db, actor)}


@router.get("/approved")
async def list_approved_enrollments(
    actor: Actor = Depends(get_actor(*DECIDERS)),
    db: AsyncSession = Depends(get_db)
):
    return {"enrollments": await enrollment_service.list_approved(db, actor)}


@router.get("/mine")
async def list_my_classes(
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"classes": await enrollment_service.list_mine(db, actor, EnrollmentStatus.APPROVED)}


@router.get("/pending")
async def list_my_pending(
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"requests": await enrollment_service.list_mine(db, actor, EnrollmentStatus.PENDING)}


@router.post("/{enrollment_id}/approve")
async def approve_enrollment(
    enrollment_id: str,
    actor: Actor = Depends(get_actor(*DECIDERS)),
    db: AsyncSession = Depends(get_db)
):
    result = await enrollment_service.approve(db, actor, enrollment_id)
    return {"enrollment": enrollment_to_dict(result.unwrap("Enrollment"))}


@router.post("/{enrollment_id}/reject")
async def reject_enrollment(
    enrollment_id: str,
    actor: Actor = Depends(get_actor(*DECIDERS)),
    db: AsyncSession = Depends(get_db)
):
    result = await enrollment_service.reject(db, actor, enrollment_id)
    return {"enrollment": enrollment_to_dict(result.unwrap("Enrollment"))}
