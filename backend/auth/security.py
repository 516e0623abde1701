"""
Security utilities for password hashing and JWT access tokens.

This module provides cryptographic functions for:
- Password hashing using Argon2id (memory-hard, GPU-resistant)
- JWT access token creation and verification
"""

import logging
import secrets
import os
from datetime import timedelta
from typing import Optional, Dict, Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from errors import AuthError
from time_utils import expiry_from_now, utc_now

logger = logging.getLogger(__name__)


def is_production_like() -> bool:
    """
    Check if the current environment is production-like (production or staging).

    Returns:
        True if ENVIRONMENT is "production" or "staging", False otherwise
    """
    env = os.environ.get("ENVIRONMENT", "development").lower()
    return env in ("production", "staging")


# Password hashing configuration using Argon2id
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

# JWT configuration
SECRET_KEY = os.environ.get("JWT_SECRET_KEY")
if not SECRET_KEY:
    if is_production_like():
        raise ValueError(
            "JWT_SECRET_KEY environment variable is required in production. "
            "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
        )
    else:
        SECRET_KEY = "dev-insecure-key-" + secrets.token_urlsafe(32)
        logger.warning(
            "JWT_SECRET_KEY not set! Using temporary development key. "
            "Tokens will not survive a restart. Set JWT_SECRET_KEY for real deployments."
        )

ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

SUPPORTED_ALGORITHMS = ["HS256", "HS384", "HS512"]
if ALGORITHM not in SUPPORTED_ALGORITHMS:
    logger.warning(
        f"Unsupported JWT_ALGORITHM={ALGORITHM}. Using HS256. "
        f"Supported: {', '.join(SUPPORTED_ALGORITHMS)}"
    )
    ALGORITHM = "HS256"

# Default lifetime is seven days
DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 7 * 24 * 60

try:
    ACCESS_TOKEN_EXPIRE_MINUTES = int(
        os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", str(DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES))
    )
    if ACCESS_TOKEN_EXPIRE_MINUTES < 1 or ACCESS_TOKEN_EXPIRE_MINUTES > 30 * 24 * 60:
        logger.warning(
            f"ACCESS_TOKEN_EXPIRE_MINUTES={ACCESS_TOKEN_EXPIRE_MINUTES} is outside safe range (1-43200). "
            f"Using default of {DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES} minutes."
        )
        ACCESS_TOKEN_EXPIRE_MINUTES = DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES
except ValueError:
    logger.warning(
        f"Invalid ACCESS_TOKEN_EXPIRE_MINUTES value in environment. "
        f"Using default of {DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES} minutes."
    )
    ACCESS_TOKEN_EXPIRE_MINUTES = DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string

    Example:
        >>> hashed = hash_password("my_secure_password")
        >>> verify_password("my_secure_password", hashed)
        True
    """
    logger.debug("Hashing password")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Returns:
        True if password matches, False otherwise
    """
    is_valid = pwd_context.verify(plain_password, hashed_password)
    logger.debug(f"Password verification result: {is_valid}")
    return is_valid


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token (must include "sub")
        expires_delta: Optional custom expiration time; may be negative in tests

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token({"sub": "1", "username": "alice"})
    """
    to_encode = data.copy()

    if expires_delta is not None:
        expire = utc_now() + expires_delta
    else:
        expire = expiry_from_now(ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})

    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    logger.debug(f"Access token created for sub={data.get('sub')}, expires at: {expire}")
    return encoded_jwt


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        AuthError: EXPIRED_TOKEN when the signature is valid but expired,
            INVALID_TOKEN for anything else that does not verify
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.info("JWT verification failed: token expired")
        raise AuthError(AuthError.EXPIRED_TOKEN)
    except JWTError as e:
        logger.info(f"JWT verification failed: {str(e)}")
        raise AuthError(AuthError.INVALID_TOKEN)

    if payload.get("type") != "access":
        logger.info(f"Invalid token type: {payload.get('type')}")
        raise AuthError(AuthError.INVALID_TOKEN)

    return payload
