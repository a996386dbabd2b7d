from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_actor
from app.schemas.college import ClassCreate
from app.services.class_service import class_service
from app.services.enrollment_service import enrollment_service, enrollment_to_dict
from app.services.identity_service import Actor

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_class(
    data: ClassCreate,
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    course_class = await class_service.create_class(db, actor, data)
    return {"class": class_service.to_dict(course_class)}


@router.get("")
async def list_available_classes(
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """Classes the student can still ask to join"""
    return {"classes": await class_service.list_available(db, actor)}


@router.get("/mine")
async def list_my_classes(
    actor: Actor = Depends(get_actor(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    return {"classes": await class_service.list_mine(db, actor)}


@router.get("/department")
async def list_department_classes(
    actor: Actor = Depends(get_actor(UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return {"classes": await class_service.list_department(db, actor)}


@router.get("/department/stats")
async def department_stats(
    actor: Actor = Depends(get_actor(UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return await class_service.department_stats(db, actor)


@router.post("/{class_id}/join", status_code=status.HTTP_201_CREATED)
async def join_class(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """Ask to join a class; the request stays pending until decided"""
    enrollment = await enrollment_service.request(db, actor, class_id)
    return {"enrollment": enrollment_to_dict(enrollment)}


@router.get("/{class_id}/students")
async def list_class_students(
    class_id: str,
    actor: Actor = Depends(get_actor(UserRole.TEACHER, UserRole.HOD)),
    db: AsyncSession = Depends(get_db)
):
    return {"students": await class_service.list_roster(db, actor, class_id)}
