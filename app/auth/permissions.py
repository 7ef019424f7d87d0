"""
Role and studio based authorization for the ledger endpoints.
"""

from enum import Enum
from typing import List, Optional

from fastapi import Depends, HTTPException, status

from app.auth.jwt_handler import verify_jwt_token


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    STUDIO_OWNER = "STUDIO_OWNER"
    CUSTOMER = "CUSTOMER"


STUDIO_STAFF = [UserRole.ADMIN.value, UserRole.STUDIO_OWNER.value]


def get_current_user(allowed_roles: Optional[List[str]] = None):
    """
    Dependency factory to create a get_current_user dependency with role checking.

    Args:
        allowed_roles: List of role strings that are allowed to access the endpoint.
                      If None, any authenticated user can access.

    Example:
        @router.post("/customers/{customer_id}/sessions")
        def add_block(current_user=Depends(get_current_user(STUDIO_STAFF))):
            ...
    """
    def dependency(current_user_data=Depends(verify_jwt_token)):
        if not current_user_data:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required"
            )

        if allowed_roles is None:
            return current_user_data

        user_role = current_user_data.get("role")
        if not user_role:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User role not found"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {allowed_roles}, your role: {user_role}"
            )

        return current_user_data

    return dependency


def ensure_studio_access(current_user: dict, studio_id: int, customer_id: Optional[int] = None) -> None:
    """
    Admins reach every studio, owners only their own, customers only themselves.
    """
    role = current_user.get("role")
    if role == UserRole.ADMIN.value:
        return
    if role == UserRole.STUDIO_OWNER.value and current_user.get("studio_id") == studio_id:
        return
    if (
        role == UserRole.CUSTOMER.value
        and customer_id is not None
        and current_user.get("id") == customer_id
        and current_user.get("studio_id") == studio_id
    ):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized for this studio")
