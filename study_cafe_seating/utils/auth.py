"""
Authentication utilities for JWT token management and caller identity.

The seating service does not own user accounts. Callers present a bearer
token issued by the surrounding platform whose ``sub`` claim is the actor id
and whose ``role`` claim decides whether the actor is staff.
"""

import enum
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from ..config import get_settings


class ActorRole(str, enum.Enum):
    """Capability of the caller as far as seating is concerned."""
    STUDENT = "student"
    STAFF = "staff"


# Platform roles that may manage fixed seats and center settings
STAFF_ROLES = {"staff", "teacher", "principal", "admin"}


class Actor(BaseModel):
    """The authenticated caller of an operation."""
    id: str
    role: ActorRole = ActorRole.STUDENT

    @property
    def is_staff(self) -> bool:
        return self.role == ActorRole.STAFF


class TokenData(BaseModel):
    """Token data model for JWT payload."""
    actor_id: Optional[str] = None
    role: Optional[str] = None


class Token(BaseModel):
    """Token response model."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


def role_capability(role: Optional[str]) -> ActorRole:
    """Map a platform role claim onto the seating capability."""
    if role and role.lower() in STAFF_ROLES:
        return ActorRole.STAFF
    return ActorRole.STUDENT


def create_access_token(
    actor_id: str,
    role: str = ActorRole.STUDENT.value,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        actor_id: Value of the ``sub`` claim
        role: Platform role of the actor
        expires_delta: Optional custom expiration time

    Returns:
        The encoded JWT token
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    to_encode = {"sub": actor_id, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[TokenData]:
    """
    Verify and decode a JWT token.

    Args:
        token: The JWT token to verify

    Returns:
        TokenData if token is valid, None otherwise
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    actor_id = payload.get("sub")
    if actor_id is None:
        return None

    return TokenData(actor_id=str(actor_id), role=payload.get("role"))
