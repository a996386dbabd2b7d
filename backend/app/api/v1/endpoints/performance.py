from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.services.identity_service import Actor
from app.services.performance_service import performance_service

router = APIRouter()


@router.get("/me")
async def my_performance(
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return await performance_service.my_performance(db, actor)


@router.get("/me/trend")
async def my_trend(
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    return {"trend": await performance_service.my_trend(db, actor)}


@router.get("/class/{class_id}")
async def class_performance(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.TEACHER, UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return await performance_service.class_performance(db, actor, class_id)


@router.get("/department")
async def department_performance(
    actor: Actor = Depends(get_actor(UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return {"classes": await performance_service.department_performance(db, actor)}
