"""
Security guards for role-based access control.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from freight_backend.app.models.enums import UserRole
from freight_backend.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/invoices")
        async def create_invoice(current_user: dict = Depends(require_role(FINANCE_ROLES))):
            ...

    Raises:
        HTTPException 403 if the token's role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


# Role groups shared by the routers
FINANCE_ROLES = [UserRole.ADMIN, UserRole.ACCOUNTS]
OPERATIONS_ROLES = [UserRole.ADMIN, UserRole.OPERATIONS]
READ_ROLES = [UserRole.ADMIN, UserRole.ACCOUNTS, UserRole.OPERATIONS]
