from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limiter import auth_rate_limit
from app.modules.auth.dependencies import CurrentAccount, get_current_account
from app.schemas.auth import LoginRequest, LoginResponse, TeacherRegister, StudentRegister
from app.services.auth_service import auth_service, account_to_dict

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email + password for a session token (valid for one hour)"""
    return await auth_service.login(db, credentials.email, credentials.password)


@router.get("/me")
async def me(
    account: CurrentAccount = Depends(get_current_account),
    db: AsyncSession = Depends(get_db)
):
    user = await auth_service.get_account(db, account.id)
    return {"user": account_to_dict(user)}


@router.post("/register/teacher", status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
async def register_teacher(
    request: Request,
    data: TeacherRegister,
    db: AsyncSession = Depends(get_db)
):
    """Create a teacher account with its profile"""
    return await auth_service.register_teacher(db, data)


@router.post("/register/student", status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
async def register_student(
    request: Request,
    data: StudentRegister,
    db: AsyncSession = Depends(get_db)
):
    """Create a student account with its profile"""
    return await auth_service.register_student(db, data)
