"""
FastAPI dependencies for authentication.

Resolves the bearer token on each request into an Identity. Route handlers
pass that Identity to the services; the raw token never goes further.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from errors import AuthError
from models import User
from auth.identity import Identity
from auth.security import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches our own AuthError handling
security = HTTPBearer(auto_error=False)


def authenticate(token: Optional[str], db: Session) -> Identity:
    """
    Resolve a raw bearer token into the caller's Identity.

    Raises:
        AuthError: MISSING_TOKEN, INVALID_TOKEN or EXPIRED_TOKEN
    """
    if not token:
        logger.info("No authentication credentials provided")
        raise AuthError(AuthError.MISSING_TOKEN)

    payload = decode_access_token(token)

    # Malformed tokens should be 401, not 500
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.info(f"Invalid user_id format in token: {payload.get('sub')}")
        raise AuthError(AuthError.INVALID_TOKEN)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.info(f"User not found for id: {user_id}")
        raise AuthError(AuthError.INVALID_TOKEN)

    logger.debug(f"User authenticated via JWT: {user.username}")
    return Identity(user_id=user.id, username=user.username)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Identity:
    """
    Extract and validate the current user from the Authorization header.

    Example:
        @app.get("/api/protected")
        def protected_route(identity: Identity = Depends(get_current_user)):
            return {"user_id": identity.user_id}
    """
    token = credentials.credentials if credentials else None
    return authenticate(token, db)
