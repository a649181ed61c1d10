from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_session_context
from learnsphere.core.limiter import limiter
from learnsphere.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    SignupRequest,
    UserResponse,
)
from learnsphere.services.auth import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def signup(
    request: Request, signup_in: SignupRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    """Create a learner or instructor account"""
    return auth_service.signup(signup_in, db)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(
    request: Request, login_in: LoginRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    return auth_service.login(login_in, db)


@router.post("/refresh", response_model=AuthResponse)
def refresh_token(
    refresh_in: RefreshTokenRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    """Refresh access token using refresh token"""
    return auth_service.refresh_token(refresh_in.refresh_token, db)


@router.post("/logout")
def logout(ctx: Annotated[SessionContext, Depends(get_session_context)]) -> dict:
    """Logout current user"""
    return auth_service.logout(ctx.token)


@router.get("/me", response_model=UserResponse)
def get_me(ctx: Annotated[SessionContext, Depends(get_session_context)]):
    return ctx.user
