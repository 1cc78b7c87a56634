from typing import Dict

from fastapi import Depends, HTTPException, status

from feedesk.auth.dependencies import get_current_user
from feedesk.auth.schemas import CurrentUser

ADMIN_ROLES = ("SUPER_ADMIN", "ADMIN")

# Used when the tenant has no Role row for the operator's role.
DEFAULT_ROLE_PERMISSIONS: Dict[str, Dict[str, Dict[str, bool]]] = {
    "BURSAR": {"fees": {"read": True, "create": True, "update": True}},
    "CASHIER": {"fees": {"read": True, "create": True, "update": False}},
}


def has_permission(current_user: CurrentUser, module: str, action: str) -> bool:
    if current_user.role in ADMIN_ROLES:
        return True
    permissions = current_user.permissions or DEFAULT_ROLE_PERMISSIONS.get(current_user.role, {})
    return bool(permissions.get(module, {}).get(action, False))


def check_permission(module: str, action: str):
    """
    Dependency factory to enforce a specific permission.

    Example:
        Depends(check_permission("fees", "create"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> None:
        if not has_permission(current_user, module, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )

    return _checker
