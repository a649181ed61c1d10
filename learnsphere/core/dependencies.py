import logging
from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.security import jwt_manager, token_blacklist
from learnsphere.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _resolve_user(token: str, db: Session) -> User:
    payload = jwt_manager.verify_token(token, "access")

    if "user_id" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: Not a valid user token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if token_blacklist.is_blacklisted(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == payload.get("user_id")).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user"
        )

    return user


def get_session_context(
    credentials: HTTPAuthorizationCredentials = Security(security),
    db: Session = Depends(get_db),
) -> SessionContext:
    """
    Dependency that requires a valid Bearer token and returns the request's
    session context (user + role).
    Raises 401 Unauthorized if the token is missing, invalid, or the user is not found.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _resolve_user(credentials.credentials, db)
    return SessionContext(user=user, role=Role(user.role), token=credentials.credentials)


def get_optional_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> Optional[SessionContext]:
    """
    Returns the session context if a valid token is provided, or None otherwise.
    Anonymous visitors can still browse the catalog.
    """
    if not credentials:
        return None

    try:
        user = _resolve_user(credentials.credentials, db)
    except HTTPException:
        return None

    return SessionContext(user=user, role=Role(user.role), token=credentials.credentials)


def require_roles(*roles: Role):
    """
    Dependency factory restricting an endpoint to the given roles.
    Usage: Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN))
    """

    def role_checker(
        ctx: SessionContext = Depends(get_session_context),
    ) -> SessionContext:
        if ctx.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {allowed}",
            )
        return ctx

    return role_checker
