from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, reports, schemas
from ..auth_dependencies import get_current_active_user
from ..dependencies import get_db

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"]
)


@router.get("/stats", response_model=schemas.DashboardStats)
def read_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    """Today's front-office counters with day-over-day change"""
    return reports.get_dashboard_stats(db)


@router.get("/activities", response_model=List[schemas.Activity])
def read_recent_activities(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return reports.get_recent_activities(db)
