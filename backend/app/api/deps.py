"""
Quiz Platform - API Dependencies
FastAPI dependencies for authentication and authorization
"""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.agents.examiner import ExaminerAgent, get_examiner_agent
from app.ai.agents.feedback import FeedbackAgent, get_feedback_agent
from app.core.database import get_db
from app.core.exceptions import ForbiddenError
from app.core.identity import Identity
from app.core.security import verify_token
from app.models.user import User, UserRole
from app.services.auth import AuthService

# Security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        HTTPException: If token is missing or invalid, or user not found
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = verify_token(credentials.credentials, token_type="access")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_service = AuthService(db)
    user = await auth_service.get_user_by_id(user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    return user


async def get_identity(
    current_user: Annotated[User, Depends(get_current_user)],
) -> Identity:
    """The caller as (user_id, role), the form services take."""
    return Identity.of(current_user)


def require_role(*roles: UserRole):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/quizzes")
        async def create(identity: Identity = Depends(require_role(UserRole.TEACHER, UserRole.ADMIN))):
            ...
    """
    async def role_checker(
        identity: Annotated[Identity, Depends(get_identity)],
    ) -> Identity:
        if identity.role not in roles:
            raise ForbiddenError(
                f"Insufficient permissions. Required: {[r.value for r in roles]}",
                code="INSUFFICIENT_ROLE",
            )
        return identity

    return role_checker


# Type aliases for common dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentIdentity = Annotated[Identity, Depends(get_identity)]
StaffIdentity = Annotated[Identity, Depends(require_role(UserRole.TEACHER, UserRole.ADMIN))]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Feedback = Annotated[FeedbackAgent, Depends(get_feedback_agent)]
Examiner = Annotated[ExaminerAgent, Depends(get_examiner_agent)]
