from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.services.directory_service import directory_service
from app.services.identity_service import Actor

router = APIRouter()


@router.get("/me")
async def my_teacher_profile(
    actor: Actor = Depends(get_actor(UserRole.TEACHER, UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return {"teacher": await directory_service.my_teacher_profile(db, actor)}
