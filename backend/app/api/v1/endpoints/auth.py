"""
Authentication API endpoints.

Provides login and current-user endpoints. Accounts are provisioned by the
seed script; there is no self-registration.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.auth import UserLogin, TokenResponse, UserResponse
from backend.app.core.exceptions import AuthenticationError, ResourceNotFoundError
from backend.app.core.security import verify_password
from backend.app.core.jwt import create_access_token
from backend.app.core.dependencies import get_current_user

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("fleetops.auth")


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    The token carries the user's id and role; the role is re-read from the
    database on every request.
    """
    result = await db.execute(
        select(User).where(User.email == credentials.email)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login for %s", credentials.email)
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    jwt_payload = {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value
    }

    access_token = create_access_token(data=jwt_payload)
    logger.info("User %s logged in as %s", user.id, user.role.value)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        name=user.name,
        email=user.email,
        role=user.role
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Requires valid JWT token in Authorization header.
    """
    user = await db.get(User, current_user.get("user_id"))

    if not user:
        raise ResourceNotFoundError("User", current_user.get("user_id"))

    return UserResponse.model_validate(user)
