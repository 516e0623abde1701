"""
Authentication API endpoints.

This module provides REST API endpoints for:
- User registration
- Login (returns a bearer access token)
- Current user lookup
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import schemas
from database import get_db
from errors import AuthError, ValidationError
from models import User
from auth.dependencies import get_current_user
from auth.identity import Identity
from auth.security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

USERNAME_TAKEN = "This username is already in use."


def _username_taken() -> ValidationError:
    return ValidationError(
        USERNAME_TAKEN,
        details=[{"field": "username", "message": USERNAME_TAKEN}],
    )


@router.post(
    "/register",
    response_model=schemas.ApiResponse[schemas.UserData],
    status_code=status.HTTP_201_CREATED,
)
def register(request: schemas.RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new user account.

    Raises:
        ValidationError: 400 if the username is already registered
    """
    logger.info(f"Registration attempt for username: {request.username}")

    existing_user = db.query(User).filter(User.username == request.username).first()
    if existing_user:
        logger.info(f"Registration failed: username already exists: {request.username}")
        raise _username_taken()

    new_user = User(username=request.username, password_hash=hash_password(request.password))
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        db.rollback()
        raise _username_taken()
    db.refresh(new_user)

    logger.info(f"User registered successfully: {new_user.username} (ID: {new_user.id})")
    return {"success": True, "data": {"user": new_user}}


@router.post("/login", response_model=schemas.ApiResponse[schemas.LoginData])
def login(request: schemas.LoginRequest, db: Session = Depends(get_db)):
    """
    Login with username and password.

    Unknown usernames and wrong passwords produce the same 401 so the
    endpoint cannot be used to enumerate accounts.
    """
    logger.info(f"Login attempt for username: {request.username}")

    user = db.query(User).filter(User.username == request.username).first()
    if not user:
        logger.info(f"Login failed: user not found: {request.username}")
        raise AuthError(AuthError.INVALID_CREDENTIALS)

    if not verify_password(request.password, user.password_hash):
        logger.info(f"Login failed: invalid password: {request.username}")
        raise AuthError(AuthError.INVALID_CREDENTIALS)

    token = create_access_token({"sub": str(user.id), "username": user.username})

    logger.info(f"User logged in successfully: {user.username} (ID: {user.id})")
    return {"success": True, "data": {"token": token, "user": user}}


@router.get("/me", response_model=schemas.ApiResponse[schemas.UserData])
def me(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == identity.user_id).first()
    return {"success": True, "data": {"user": user}}
