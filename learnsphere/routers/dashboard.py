from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnsphere.core.context import SessionContext
from learnsphere.core.database import get_db
from learnsphere.core.dependencies import get_session_context
from learnsphere.schemas.dashboard import Dashboard
from learnsphere.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/", response_model=Dashboard)
def get_dashboard(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Home summary for the signed-in user's role"""
    return DashboardService(db).build(ctx)
