"""
Authentication dependencies.

Every report endpoint resolves the calling athlete here, before any
report data is read.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from core.database import get_db
from core.exceptions import ForbiddenError, UnauthorizedError
from core.security import decode_access_token
from models import Athlete

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Athlete:
    """
    Get the current authenticated athlete from JWT token.

    Raises UnauthorizedError if token is invalid or athlete not found.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token payload")

    try:
        user_id_uuid = UUID(user_id)
    except ValueError:
        raise UnauthorizedError("Invalid user ID format")

    user = db.query(Athlete).filter(Athlete.id == user_id_uuid).first()
    if not user:
        raise UnauthorizedError("User not found")

    if getattr(user, "is_blocked", False):
        raise ForbiddenError("Account is blocked")

    return user
