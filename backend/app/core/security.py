"""
Quiz Platform - Security Module
JWT handling, password hashing and attempt start tokens
"""
import secrets
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 32 bytes -> 256 bits of entropy, hex encoded
START_TOKEN_BYTES = 32


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def hash_token(token: str) -> str:
    """Digest used to store refresh tokens at rest."""
    return sha256(token.encode()).hexdigest()


def _encode(subject: str, token_type: str, expire: datetime, claims: dict[str, Any] | None = None) -> str:
    to_encode = {
        "sub": subject,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": token_type,
    }
    if claims:
        to_encode.update(claims)
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(
    subject: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The user ID
        role: The user's role, copied into the ``role`` claim
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return _encode(str(subject), "access", expire, {"role": role})


def create_refresh_token(subject: str) -> str:
    """Create a JWT refresh token with longer expiration."""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    # jti keeps two refresh tokens minted in the same second distinct
    return _encode(str(subject), "refresh", expire, {"jti": secrets.token_hex(8)})


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token, returning None when invalid."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def verify_token(token: str, token_type: str = "access") -> str | None:
    """
    Verify a token and return the subject if valid.

    Args:
        token: The JWT token to verify
        token_type: Expected token type ("access" or "refresh")

    Returns:
        User ID (subject) if valid, None otherwise
    """
    payload = decode_token(token)
    if payload is None or payload.get("type") != token_type:
        return None
    return payload.get("sub")


def new_start_token() -> str:
    """One-time secret handed out when an attempt is started or resumed."""
    return secrets.token_hex(START_TOKEN_BYTES)


def start_token_matches(expected: str | None, supplied: str | None) -> bool:
    """Constant-time comparison; a missing value on either side never matches."""
    if not expected or not supplied:
        return False
    return secrets.compare_digest(expected, supplied)
