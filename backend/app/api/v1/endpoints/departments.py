from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_current_account, require_roles
from app.schemas.college import DepartmentCreate
from app.services.directory_service import directory_service

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def create_department(data: DepartmentCreate, db: AsyncSession = Depends(get_db)):
    return await directory_service.create_department(db, data)


@router.get("", dependencies=[Depends(get_current_account)])
async def list_departments(db: AsyncSession = Depends(get_db)):
    return {"departments": await directory_service.list_departments(db)}
