"""Роуты /dashboard: сводка склада (только для склада)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.modules.assets.dependencies import get_db, require_reviewer
from backend.modules.assets.schemas.dashboard import DashboardStatsOut
from backend.modules.assets.services import dashboard as service

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(require_reviewer)],
)


@router.get("/stats", response_model=DashboardStatsOut)
def dashboard_stats(db: Session = Depends(get_db)) -> DashboardStatsOut:
    return service.dashboard_stats(db)
