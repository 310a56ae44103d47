"""
FastAPI dependencies for authentication and authorization.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth import Actor, role_capability, verify_token
from .logging_config import log_security_event


# HTTP Bearer token scheme
security = HTTPBearer()


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """
    Get the calling actor from the bearer token.

    Args:
        credentials: HTTP Bearer credentials

    Returns:
        The authenticated actor

    Raises:
        HTTPException: If the token is invalid
    """
    token_data = verify_token(credentials.credentials)
    if token_data is None or token_data.actor_id is None:
        log_security_event("invalid_token", {"scheme": credentials.scheme})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Actor(id=token_data.actor_id, role=role_capability(token_data.role))


async def get_current_staff(
    actor: Actor = Depends(get_current_actor)
) -> Actor:
    """
    Get the calling actor, requiring staff capability.

    Raises:
        HTTPException: If the actor is not staff
    """
    if not actor.is_staff:
        log_security_event("staff_required", {"actor_id": actor.id})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return actor


def require_staff():
    """
    Dependency for requiring staff permissions.

    Returns:
        Dependency that ensures the current actor is staff
    """
    return get_current_staff
