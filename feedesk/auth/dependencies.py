from typing import Dict
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.models import Role, User
from feedesk.auth.schemas import CurrentUser
from feedesk.auth.security import decode_access_token
from feedesk.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the signed-in operator, their tenant and their role permissions from the token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        claims = decode_access_token(token)
        user_id = UUID(claims.get("user_id") or claims.get("sub") or "")
        tenant_id = UUID(claims.get("tenant_id") or "")
    except (JWTError, ValueError, TypeError, AttributeError):
        raise credentials_exception

    user = (
        await db.execute(select(User).where(User.id == user_id, User.tenant_id == tenant_id))
    ).scalar_one_or_none()
    if not user or user.status != "ACTIVE":
        raise credentials_exception

    # A tenant may override a role's permissions with its own Role row
    role = (
        await db.execute(select(Role).where(Role.tenant_id == tenant_id, Role.name == user.role))
    ).scalar_one_or_none()
    permissions: Dict[str, Dict[str, bool]] = dict(role.permissions or {}) if role else {}

    return CurrentUser(
        id=user.id,
        tenant_id=user.tenant_id,
        role=user.role,
        permissions=permissions,
    )
