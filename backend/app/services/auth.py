"""
Quiz Platform - Authentication Service
Business logic for user registration, login, and token management
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AppError, ConflictError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    hash_token,
    verify_password,
    verify_token,
)
from app.models.user import RefreshToken, User, UserRole
from app.schemas.user import TokenResponse, UserCreate

logger = logging.getLogger(__name__)


class AuthenticationError(AppError):
    """Base authentication error."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""
    default_code = "INVALID_CREDENTIALS"


class AccountLockedError(AuthenticationError):
    """Account is locked due to failed attempts."""
    status_code = status.HTTP_423_LOCKED
    default_code = "ACCOUNT_LOCKED"


class TokenError(AuthenticationError):
    """Token validation error."""
    default_code = "INVALID_TOKEN"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AuthService:
    """Service for authentication operations."""

    MAX_FAILED_ATTEMPTS = 5
    LOCKOUT_DURATION_MINUTES = 30

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, user_data: UserCreate) -> User:
        """
        Register a new student or teacher.

        Raises:
            ConflictError: If email already exists
        """
        email = user_data.email.lower()
        existing = await self.db.execute(
            select(User).where(User.email == email)
        )
        if existing.scalar_one_or_none():
            raise ConflictError("Email already registered", code="EMAIL_TAKEN")

        user = User(
            email=email,
            hashed_password=get_password_hash(user_data.password),
            name=user_data.name,
            role=UserRole(user_data.role).value,
        )

        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("Registered %s account %s", user.role, user.id)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            AccountLockedError: If account is locked
        """
        result = await self.db.execute(
            select(User).where(User.email == email.lower())
        )
        user = result.scalar_one_or_none()

        if not user or not user.is_active:
            raise InvalidCredentialsError("Invalid email or password")

        now = datetime.now(timezone.utc)
        if user.locked_until and _as_utc(user.locked_until) > now:
            remaining = (_as_utc(user.locked_until) - now).seconds // 60
            raise AccountLockedError(
                f"Account locked. Try again in {remaining} minutes."
            )

        if not verify_password(password, user.hashed_password):
            user.failed_login_attempts += 1

            if user.failed_login_attempts >= self.MAX_FAILED_ATTEMPTS:
                user.locked_until = now + timedelta(minutes=self.LOCKOUT_DURATION_MINUTES)
                logger.warning("Locked account %s after %d failed logins", user.id, user.failed_login_attempts)

            # The caller's session rolls back on error, so persist the counter now
            await self.db.commit()
            raise InvalidCredentialsError("Invalid email or password")

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = now
        await self.db.flush()

        return user

    async def create_tokens(self, user: User) -> TokenResponse:
        """Create access and refresh tokens for a user and store the refresh token hash."""
        role_value = user.role.value if hasattr(user.role, "value") else user.role
        access_token = create_access_token(subject=str(user.id), role=role_value)
        refresh_token = create_refresh_token(subject=str(user.id))

        self.db.add(RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=datetime.now(timezone.utc) + timedelta(
                days=settings.REFRESH_TOKEN_EXPIRE_DAYS
            ),
        ))
        await self.db.flush()

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )

    async def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """
        Rotate tokens: the presented refresh token is revoked and a new pair issued.

        Raises:
            TokenError: If refresh token is invalid or expired
        """
        user_id = verify_token(refresh_token, token_type="refresh")
        if not user_id:
            raise TokenError("Invalid refresh token")

        result = await self.db.execute(
            select(RefreshToken).where(
                RefreshToken.token_hash == hash_token(refresh_token),
                RefreshToken.revoked_at.is_(None)
            )
        )
        token_record = result.scalar_one_or_none()

        if not token_record or token_record.is_expired:
            raise TokenError("Refresh token expired or revoked")

        user = await self.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise TokenError("User not found or inactive")

        token_record.revoked_at = datetime.now(timezone.utc)

        return await self.create_tokens(user)

    async def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token. Unknown tokens are ignored."""
        result = await self.db.execute(
            select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
        )
        token_record = result.scalar_one_or_none()

        if token_record:
            token_record.revoked_at = datetime.now(timezone.utc)
            await self.db.flush()

    async def get_user_by_id(self, user_id: str | uuid.UUID) -> User | None:
        """Get user by ID."""
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None

        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()
