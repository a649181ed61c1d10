# core/security.py
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException, status
from jose import JWTError, jwt

from learnsphere.core.cache import get_redis_client
from learnsphere.core.config import settings
from learnsphere.models.user import User

logger = logging.getLogger(__name__)


class JWTManager:
    """JWT token management for authentication"""

    def __init__(self):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.user_token_expire = timedelta(days=settings.jwt_user_expiration)
        self.refresh_token_expire = timedelta(days=settings.jwt_refresh_expiration)
        self.admin_token_expire = timedelta(days=settings.jwt_admin_expiration)
        self.issuer = settings.jwt_issuer

    def create_access_token(
        self,
        user: User,
        remember_me: bool = False,
        custom_expiration: Optional[timedelta] = None,
    ) -> str:
        """
        Create JWT access token for user

        Args:
            user: User model instance
            remember_me: Extend token lifetime if True
            custom_expiration: Override default expiration

        Returns:
            JWT access token string
        """
        try:
            if custom_expiration:
                expire = datetime.utcnow() + custom_expiration
            elif remember_me:
                expire = datetime.utcnow() + timedelta(days=30)
            elif user.role == "admin":
                expire = datetime.utcnow() + self.admin_token_expire
            else:
                expire = datetime.utcnow() + self.user_token_expire

            payload = {
                "sub": str(user.id),
                "user_id": user.id,
                "role": user.role,
                "email": user.email,
                "exp": int(expire.timestamp()),
                "iat": int(datetime.utcnow().timestamp()),
                "iss": self.issuer,
                "type": "access",
                "jti": uuid.uuid4().hex,
            }

            token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
            logger.info(f"Access token created for user: {user.id}")

            return token

        except Exception as e:
            logger.error(f"Failed to create access token: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create access token",
            )

    def create_refresh_token(self, user: User, remember_me: bool = False) -> str:
        """Create JWT refresh token for user"""
        try:
            if remember_me:
                expire = datetime.utcnow() + timedelta(days=90)
            else:
                expire = datetime.utcnow() + self.refresh_token_expire

            # Minimal payload
            payload = {
                "sub": str(user.id),
                "user_id": user.id,
                "exp": int(expire.timestamp()),
                "iat": int(datetime.utcnow().timestamp()),
                "iss": self.issuer,
                "type": "refresh",
                "jti": uuid.uuid4().hex,
            }

            token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
            logger.info(f"Refresh token created for user: {user.id}")

            return token

        except Exception as e:
            logger.error(f"Failed to create refresh token: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create refresh token",
            )

    def create_token_pair(self, user: User, remember_me: bool = False) -> Tuple[str, str]:
        """
        Create both access and refresh tokens

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = self.create_access_token(user=user, remember_me=remember_me)
        refresh_token = self.create_refresh_token(user, remember_me)

        return access_token, refresh_token

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Verify and decode JWT token
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": True},
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if payload.get("type") != token_type:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token type. Expected {token_type}",
            )

        if payload.get("iss") != self.issuer:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token issuer",
            )

        return payload

    def get_token_expiration(self, token: str) -> Optional[datetime]:
        """Token expiration datetime or None if invalid"""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

        exp_timestamp = payload.get("exp")
        if exp_timestamp:
            # Naive UTC, comparable with datetime.utcnow()
            return datetime.fromtimestamp(exp_timestamp, tz=timezone.utc).replace(tzinfo=None)
        return None


class TokenBlacklist:
    """Token blacklist management using Redis"""

    def __init__(self, redis_client=None):
        self.redis_client = redis_client
        self._memory_blacklist = set()  # Fallback for when Redis is unavailable

    def add_token(self, token: str, ttl: Optional[int] = None) -> bool:
        """
        Add token to blacklist

        Args:
            token: JWT token to blacklist
            ttl: Time to live in seconds (optional)

        Returns:
            True if successfully added, False otherwise
        """
        try:
            if self.redis_client:
                ttl = ttl or int(
                    timedelta(days=settings.jwt_refresh_expiration).total_seconds()
                )
                return bool(self.redis_client.setex(f"blacklist:{token}", ttl, "1"))
            else:
                # Fallback to memory (not recommended for production)
                self._memory_blacklist.add(token)
                return True

        except Exception as e:
            logger.error(f"Failed to blacklist token: {e}")
            return False

    def is_blacklisted(self, token: str) -> bool:
        try:
            if self.redis_client:
                return bool(self.redis_client.get(f"blacklist:{token}"))
            else:
                return token in self._memory_blacklist

        except Exception as e:
            logger.error(f"Failed to check token blacklist: {e}")
            return False


# Global instances
jwt_manager = JWTManager()

token_blacklist = TokenBlacklist(get_redis_client())
