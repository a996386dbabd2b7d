from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.schemas.college import AnnouncementCreate
from app.services.announcement_service import announcement_service
from app.services.identity_service import Actor

router = APIRouter()


@router.post("/classes/{class_id}/announcements", status_code=status.HTTP_201_CREATED)
async def create_announcement(
    class_id: str,
    data: AnnouncementCreate,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    return {"announcement": await announcement_service.create(db, actor, class_id, data)}


@router.get("/classes/{class_id}/announcements")
async def list_class_announcements(
    class_id: str,
    actor: Actor = Depends(get_actor()),
    db: AsyncSession = Depends(get_db)
):
    return {"announcements": await announcement_service.list_for_class(db, actor, class_id)}


@router.get("/announcements")
async def list_my_announcements(
    actor: Actor = Depends(get_actor()),
    db: AsyncSession = Depends(get_db)
):
    """Announcements across every class the caller can see, newest first"""
    return {"announcements": await announcement_service.list_visible(db, actor)}
