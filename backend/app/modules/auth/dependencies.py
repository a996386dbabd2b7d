from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.logging_config import set_account_id
from app.core.security import decode_token
from app.models.user import UserRole
from app.services.identity_service import Actor, identity_service

# auto_error=False: a missing header must be a 401, not FastAPI's default 403
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentAccount:
    """Claims of a verified session token"""
    id: str
    role: UserRole
    email: Optional[str] = None


async def get_current_account(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentAccount:
    """
    Get the authenticated account from the bearer token.

    The role is taken from the token as issued; the datastore is not
    consulted, so a failed check here never costs a query.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    account_id = payload.get("sub")
    if not account_id:
        raise AuthenticationError("Invalid token payload")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise AuthenticationError("Invalid token payload")

    # Rate limiter keys and log lines pick these up
    request.state.account_id = account_id
    set_account_id(account_id)

    return CurrentAccount(id=account_id, role=role, email=payload.get("email"))


def require_roles(*roles: UserRole) -> Callable:
    """
    Role gate for a route.

    Usage:
        @router.get("/department", dependencies=[Depends(require_roles(UserRole.HOD))])
    """
    allowed = frozenset(roles)

    async def _check(account: CurrentAccount = Depends(get_current_account)) -> CurrentAccount:
        if account.role not in allowed:
            raise AuthorizationError()
        return account

    return _check


def get_actor(*roles: UserRole) -> Callable:
    """
    Role gate plus identity resolution.

    Resolves the caller's teacher/student/department ids once per request.
    Without ``roles`` every authenticated role is accepted.

    Usage:
        @router.post("/{class_id}/attendance")
        async def record(actor: Actor = Depends(get_actor(UserRole.TEACHER)), ...):
    """
    gate = require_roles(*roles) if roles else get_current_account

    async def _resolve(
        account: CurrentAccount = Depends(gate),
        db: AsyncSession = Depends(get_db),
    ) -> Actor:
        return await identity_service.resolve_actor(db, account.id, account.role)

    return _resolve
