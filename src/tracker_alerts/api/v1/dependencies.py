"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tracker_alerts.core.security import decode_access_token
from tracker_alerts.db.session import get_db
from tracker_alerts.models import User, UserAccess
from tracker_alerts.services.access import Principal
from tracker_alerts.services.alert_store import AlertStore

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid, the user is unknown or blocked
    """
    try:
        user_id = decode_access_token(credentials.credentials)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if user.user_access <= UserAccess.NO_ACCESS:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_principal(user: CurrentUserDep) -> Principal:
    """Build the acting principal for the authenticated user."""
    return Principal.for_user(user)


PrincipalDep = Annotated[Principal, Depends(get_principal)]


def require_administrator(principal: PrincipalDep) -> Principal:
    """Reject callers without administrator access."""
    if not principal.is_administrator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return principal


AdminDep = Annotated[Principal, Depends(require_administrator)]


def get_alert_store(db: SessionDep) -> AlertStore:
    """Get an AlertStore bound to the request's session."""
    return AlertStore(db)


AlertStoreDep = Annotated[AlertStore, Depends(get_alert_store)]
