# learnsphere/services/auth.py
import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from learnsphere.core.decorator import DBException
from learnsphere.core.hasher import PasswordHelper
from learnsphere.core.repository import Repository
from learnsphere.core.security import jwt_manager, token_blacklist
from learnsphere.models.user import User
from learnsphere.schemas.auth import (
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self):
        self.password_helper = PasswordHelper()

    def signup(self, request: SignupRequest, db: Session) -> AuthResponse:
        """Register a learner or instructor and sign them in"""
        users = Repository(db, User)
        email = request.email.lower()

        if users.first(email=email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An account with this email already exists",
            )

        try:
            user = users.create(
                email=email,
                name=request.name,
                hashed_password=self.password_helper.hash_password(request.password),
                role=request.role,
                last_login=datetime.utcnow(),
            )
        except DBException as e:
            # Lost a race against a concurrent signup with the same email
            if e.status_code == status.HTTP_409_CONFLICT:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="An account with this email already exists",
                )
            raise

        logger.info(f"✅ New {user.role} registered: {user.email}")
        return self._issue_tokens(user)

    def login(self, request: LoginRequest, db: Session) -> AuthResponse:
        user = Repository(db, User).first(email=request.email.lower())

        if not user or not self.password_helper.check_password(
            request.password, user.hashed_password
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is disabled",
            )

        Repository(db, User).update(user, last_login=datetime.utcnow())
        logger.info(f"User login successful: {user.email}")

        return self._issue_tokens(user, remember_me=request.remember_me)

    def refresh_token(self, refresh_token: str, db: Session) -> AuthResponse:
        """
        Exchange a refresh token for a new token pair.
        The old refresh token is revoked.
        """
        if token_blacklist.is_blacklisted(refresh_token):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has been revoked",
            )

        payload = jwt_manager.verify_token(refresh_token, "refresh")
        user = Repository(db, User).get(payload.get("user_id"))

        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive",
            )

        self._revoke(refresh_token)
        logger.info(f"Token refreshed for user: {user.id}")

        return self._issue_tokens(user)

    def logout(self, token: str) -> Dict[str, Any]:
        """Logout by blacklisting the access token until it expires"""
        self._revoke(token)
        logger.info("User logged out")
        return {"success": True, "message": "Logout successful"}

    def _revoke(self, token: str) -> None:
        expires_at = jwt_manager.get_token_expiration(token)
        ttl = None
        if expires_at:
            ttl = int((expires_at - datetime.utcnow()).total_seconds())
            if ttl <= 0:
                return
        if not token_blacklist.add_token(token, ttl):
            logger.warning("Failed to blacklist token, but continuing with logout")

    def _issue_tokens(self, user: User, remember_me: bool = False) -> AuthResponse:
        access_token, refresh_token = jwt_manager.create_token_pair(user, remember_me)
        return AuthResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            user=UserResponse.model_validate(user),
        )


auth_service = AuthService()
