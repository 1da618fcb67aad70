"""
Quiz Platform - Authentication API Routes
Endpoints for registration, login, token refresh, and logout
"""
from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.common import Envelope
from app.schemas.user import (
    TokenRefresh,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from app.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=Envelope[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a student or teacher account. Admin accounts are provisioned by the seed script.",
)
async def register(
    user_data: UserCreate,
    db: DbSession,
):
    """Register a new user account."""
    auth_service = AuthService(db)
    user = await auth_service.register_user(user_data)
    return Envelope(data=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=Envelope[TokenResponse],
    summary="Authenticate user",
    description="Login with email and password to receive access and refresh tokens. "
                "Five failed attempts lock the account for 30 minutes.",
)
async def login(
    credentials: UserLogin,
    db: DbSession,
):
    """Authenticate user and return tokens."""
    auth_service = AuthService(db)
    user = await auth_service.authenticate(
        email=credentials.email,
        password=credentials.password,
    )
    return Envelope(data=await auth_service.create_tokens(user))


@router.post(
    "/refresh",
    response_model=Envelope[TokenResponse],
    summary="Refresh access token",
    description="Use a valid refresh token to obtain new access and refresh tokens.",
)
async def refresh_token(
    token_data: TokenRefresh,
    db: DbSession,
):
    """Rotate the refresh token and issue a new pair."""
    auth_service = AuthService(db)
    return Envelope(data=await auth_service.refresh_tokens(token_data.refresh_token))


@router.post(
    "/logout",
    response_model=Envelope[None],
    summary="Logout user",
    description="Revoke the refresh token to end the session.",
)
async def logout(
    token_data: TokenRefresh,
    db: DbSession,
):
    """Logout by revoking refresh token."""
    auth_service = AuthService(db)
    await auth_service.logout(token_data.refresh_token)
    return Envelope(message="Logged out")


@router.get(
    "/me",
    response_model=Envelope[UserResponse],
    summary="Get current user",
    description="Get the currently authenticated user's profile.",
)
async def get_current_user_profile(
    current_user: CurrentUser,
):
    """Get current user profile."""
    return Envelope(data=UserResponse.model_validate(current_user))
