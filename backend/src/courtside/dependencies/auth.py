"""
Authentication Dependencies
FastAPI dependencies resolving the request-scoped auth context
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from courtside.database import get_db
from courtside.models.user import User, UserRole
from courtside.utils.auth import decode_access_token

# Security scheme
security = HTTPBearer(auto_error=False)

SYSTEM_ROLE = "system"


@dataclass(frozen=True)
class AuthContext:
    """
    Who is acting on a request. Passed explicitly into services.
    role is a UserRole value, or "system" for background jobs.
    """

    user_id: Optional[UUID]
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_system(self) -> bool:
        return self.role == SYSTEM_ROLE

    @classmethod
    def for_user(cls, user: User) -> "AuthContext":
        role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
        return cls(user_id=user.id, role=role)

    @classmethod
    def system(cls) -> "AuthContext":
        return cls(user_id=None, role=SYSTEM_ROLE)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from JWT token

    Args:
        credentials: Bearer token from request header
        db: Database session

    Returns:
        User: Current authenticated user

    Raises:
        HTTPException: If authentication fails
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(credentials.credentials)

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account",
        )

    return user


def require_role(*allowed_roles: UserRole):
    """
    Dependency factory to check if user has required role

    Usage:
        @router.get("/manage", dependencies=[Depends(require_role(UserRole.ADMIN))])
    """

    async def role_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_checker
