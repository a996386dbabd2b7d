from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.services.directory_service import directory_service
from app.services.identity_service import Actor

router = APIRouter()

STAFF = (UserRole.TEACHER, UserRole.HOD, UserRole.ADMIN)


@router.get("")
async def list_students(
    actor: Actor = Depends(get_actor(*STAFF)),
    db: AsyncSession = Depends(get_db)
):
    """Teacher: own approved students. HOD: department. Admin: everyone."""
    return {"students": await directory_service.list_students(db, actor)}


@router.get("/me")
async def my_student_profile(
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"student": await directory_service.my_student_profile(db, actor)}


@router.get("/{student_id}")
async def get_student(
    student_id: str,
    actor: Actor = Depends(get_actor(*STAFF)),
    db: AsyncSession = Depends(get_db)
):
    return {"student": await directory_service.get_student(db, actor, student_id)}
