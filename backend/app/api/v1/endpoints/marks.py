"""
Marks Endpoints
- Recording and correcting marks (teacher)
- Role-scoped listings
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.schemas.marks import MarkCreate, MarkUpdate
from app.services.identity_service import Actor
from app.services.marks_service import marks_service

router = APIRouter()


@router.post("/marks", status_code=status.HTTP_201_CREATED)
async def create_mark(
    data: MarkCreate,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    mark = await marks_service.create(db, actor, data)
    return {"mark": marks_service.to_dict(mark)}


@router.get("/marks")
async def list_marks(
    actor: Actor = Depends(get_actor(UserRole.TEACHER, UserRole.HOD, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    """Admin: all marks. HOD: department. Teacher: marks they recorded or own."""
    return {"marks": await marks_service.list_marks(db, actor)}


@router.get("/marks/me")
async def list_my_marks(
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"marks": await marks_service.list_mine(db, actor)}


@router.get("/marks/{mark_id}")
async def get_mark(
    mark_id: str,
    actor: Actor = Depends(get_actor()),
    db: AsyncSession = Depends(get_db)
):
    return {"mark": await marks_service.get(db, actor, mark_id)}


@router.put("/marks/{mark_id}")
async def update_mark(
    mark_id: str,
    data: MarkUpdate,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    result = await marks_service.update(db, actor, mark_id, data.score, data.total_marks)
    return {"mark": marks_service.to_dict(result.unwrap("Mark"))}


@router.post("/classes/{class_id}/marks", status_code=status.HTTP_201_CREATED)
async def create_class_mark(
    class_id: str,
    data: MarkCreate,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    mark = await marks_service.create(db, actor, data, class_id=class_id)
    return {"mark": marks_service.to_dict(mark)}


@router.get("/classes/{class_id}/marks")
async def list_class_marks(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.TEACHER, UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return {"marks": await marks_service.list_for_class(db, actor, class_id)}


@router.get("/classes/{class_id}/my-marks")
async def list_my_class_marks(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"marks": await marks_service.list_mine_for_class(db, actor, class_id)}
