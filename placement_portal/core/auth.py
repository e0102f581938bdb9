"""
Authentication Utility - JWT handling.

Login and password handling live in the auth service; this module only
turns a bearer token into an Actor.

Provides:
- JWT token creation/verification
- FastAPI dependencies for protected routes
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from placement_portal.core.config import get_settings
from placement_portal.db.mongodb import get_database
from placement_portal.schemas.schemas import Actor, UserRole
from placement_portal.services.mongo_service import UserService

settings = get_settings()

# Bearer token extractor
bearer_scheme = HTTPBearer()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token. Expects `sub` (user id) and `role` claims."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Database = Depends(get_database)
) -> Actor:
    """
    FastAPI dependency - Get current authenticated user as an Actor.

    The role comes from the user record, not from the token, so a role
    change takes effect without re-issuing tokens.

    Usage:
        @router.get("/protected")
        async def route(actor: Actor = Depends(get_current_actor)):
            return actor
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # Verify user exists
    user = UserService(db).get_by_id(user_id)
    if not user:
        raise credentials_exception

    try:
        role = UserRole(user.get("role", UserRole.student.value))
    except ValueError:
        raise HTTPException(status_code=403, detail="Unknown role")

    return Actor(id=str(user["_id"]), role=role)


async def get_current_officer(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency - Require placement officer or admin."""
    if not actor.is_officer:
        raise HTTPException(status_code=403, detail="Placement officers only")
    return actor
