"""
Shared helpers for API tests.
"""

from backend.app.core.jwt import create_access_token
from backend.app.models.user import User


def token_for(user: User) -> str:
    return create_access_token(data={"sub": user.email, "user_id": user.id, "role": user.role.value})


def auth(user: User) -> dict:
    """Bearer header for a user."""
    return {"Authorization": f"Bearer {token_for(user)}"}
