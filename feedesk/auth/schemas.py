from datetime import datetime
from typing import Dict
from uuid import UUID

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserInfo(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    role: str


class TenantInfo(BaseModel):
    id: UUID
    name: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    tenant: TenantInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated operator for RBAC checks.
    tenant_id and id are passed explicitly to every service call.
    """

    id: UUID
    tenant_id: UUID
    role: str
    permissions: Dict[str, Dict[str, bool]]
