from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.services.identity_service import Actor
from app.services.marks_service import marks_service

router = APIRouter()


@router.get("/subjects/hardest")
async def hardest_subjects(
    actor: Actor = Depends(get_actor(UserRole.ADMIN, UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    """Lowest average score first; HODs see their department only"""
    return {"subjects": await marks_service.subject_difficulty(db, actor)}
