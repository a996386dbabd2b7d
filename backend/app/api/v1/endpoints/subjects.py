from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_current_account, require_roles
from app.schemas.college import SubjectCreate
from app.services.directory_service import directory_service

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.TEACHER, UserRole.HOD, UserRole.ADMIN))],
)
async def create_subject(data: SubjectCreate, db: AsyncSession = Depends(get_db)):
    return await directory_service.create_subject(db, data)


@router.get("", dependencies=[Depends(get_current_account)])
async def list_subjects(db: AsyncSession = Depends(get_db)):
    return {"subjects": await directory_service.list_subjects(db)}


@router.get("/{subject_id}", dependencies=[Depends(get_current_account)])
async def get_subject(subject_id: str, db: AsyncSession = Depends(get_db)):
    return await directory_service.get_subject(db, subject_id)
