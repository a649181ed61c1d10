from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from learnsphere.core.context import Role, SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_session_context, require_roles
from learnsphere.schemas.auth import UserResponse
from learnsphere.schemas.user import (
    ActivityItem,
    BackofficeUser,
    InstructorStats,
    LeaderboardResponse,
    UserListResponse,
    UserProfileUpdate,
    UserStatusUpdate,
)
from learnsphere.services.user import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}},
)


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Top learners by points.
    Public endpoint.
    """
    return {"users": UserService(db).get_leaderboard(limit)}


@router.get("/profile", response_model=UserResponse)
def get_profile(ctx: SessionContext = Depends(get_session_context)):
    return ctx.user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    profile_in: UserProfileUpdate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return UserService(db).update_profile(ctx, profile_in)


@router.post("/profile/picture", response_model=UserResponse)
async def upload_profile_picture(
    image: UploadFile = File(...),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return await UserService(db).upload_profile_picture(ctx, image)


@router.get("/stats", response_model=InstructorStats)
def get_stats(
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """
    Course statistics.
    Instructors get their own courses, admins the whole catalog.
    """
    return UserService(db).get_instructor_stats(None if ctx.is_admin else ctx.user_id)


@router.get("/activity", response_model=List[ActivityItem])
def get_activity(
    limit: int = Query(10, ge=1, le=50),
    ctx: SessionContext = Depends(require_roles(Role.INSTRUCTOR, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Recent enrollments and reviews"""
    return UserService(db).get_recent_activity(
        None if ctx.is_admin else ctx.user_id, limit
    )


# ==================== Admin Endpoints ====================


@router.get("/", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    role: Optional[str] = Query(None, pattern="^(learner|instructor|admin)$"),
    search: Optional[str] = Query(None, description="Search by name or email"),
    ctx: SessionContext = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    users, pagination = UserService(db).get_users(page, size, role, search)
    return {"users": users, **pagination}


@router.get("/backoffice", response_model=List[BackofficeUser])
def list_backoffice_users(
    ctx: SessionContext = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """All instructors and admins"""
    return UserService(db).get_backoffice_users()


@router.patch("/{user_id}/status", response_model=UserResponse)
def set_user_status(
    user_id: int,
    status_in: UserStatusUpdate,
    ctx: SessionContext = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return UserService(db).set_active(user_id, status_in.is_active, ctx)
