"""
Security guards for role-based access control.

Every mutating route declares a coarse allow-list of roles; requests from
other roles are rejected before any controller code runs.
"""

from typing import List
from fastapi import Depends
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.models.enums import UserRole
from backend.app.core.dependencies import get_current_user


def authorize(identity: dict, allowed_roles: List[UserRole]) -> bool:
    """
    Check whether an authenticated identity may perform an operation.

    Args:
        identity: Decoded token payload (must carry "role")
        allowed_roles: Roles permitted on the route

    Returns:
        True if the identity's role is in allowed_roles
    """
    role_str = identity.get("role") if identity else None
    if not role_str:
        return False

    try:
        role = UserRole(role_str)
    except ValueError:
        return False

    return role in allowed_roles


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/trips")
        async def create_trip(current_user: dict = Depends(require_role([UserRole.DISPATCHER]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        InsufficientPermissionsError (403) if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        if not authorize(current_user, allowed_roles):
            raise InsufficientPermissionsError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}",
                details={"role": current_user.get("role")}
            )

        return current_user

    return role_checker


def require_fleet_manager(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for Fleet Manager-only endpoints.

    Args:
        current_user: Authenticated user from JWT

    Returns:
        User payload if Fleet Manager, raises 403 otherwise
    """
    if current_user.get("role") != UserRole.FLEET_MANAGER.value:
        raise InsufficientPermissionsError(
            "Fleet Manager access required",
            details={"role": current_user.get("role")}
        )

    return current_user
