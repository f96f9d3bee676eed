from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_front_desk_user
from ..dependencies import get_db, get_pagination, get_date_range, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/travel-logs",
    tags=["Travel Logs"],
    responses={404: {"description": "Not found"}}
)


def _get_travel_log_or_404(db: Session, travel_log_id: int) -> models.TravelLog:
    db_log = crud.get_travel_log(db, travel_log_id)
    if db_log is None:
        raise ResourceNotFoundException("Travel log", travel_log_id)
    return db_log


@router.get("/", response_model=schemas.Page[schemas.TravelLog])
def read_travel_logs(
    status: Optional[models.TravelStatus] = None,
    employee_id: Optional[int] = None,
    search: Optional[str] = Depends(get_search),
    date_range: dict = Depends(get_date_range),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return crud.get_travel_logs(db, status=status, search=search, employee_id=employee_id, **date_range, **pagination)


@router.post("/", response_model=schemas.TravelLog, status_code=status.HTTP_201_CREATED)
def log_departure(
    travel_in: schemas.TravelLogCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return crud.create_travel_log(db, travel_in, actor_id=current_user.id)


@router.post("/mark-delayed", response_model=schemas.DelayedSweepResult)
def mark_delayed_travel_logs(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    """Flag departed trips that are past their expected return"""
    return {"updated": crud.mark_overdue_travel_logs(db, actor_id=current_user.id)}


@router.get("/{travel_log_id}", response_model=schemas.TravelLog)
def read_travel_log(
    travel_log_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_travel_log_or_404(db, travel_log_id)


@router.patch("/{travel_log_id}", response_model=schemas.TravelLog)
def update_travel_log(
    travel_log_id: int,
    travel_in: schemas.TravelLogUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_log = _get_travel_log_or_404(db, travel_log_id)
    return crud.update_travel_log(db, db_log, travel_in, actor_id=current_user.id)


@router.post("/{travel_log_id}/return", response_model=schemas.TravelLog)
def record_return(
    travel_log_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    db_log = _get_travel_log_or_404(db, travel_log_id)
    return crud.record_travel_return(db, db_log, actor_id=current_user.id)


@router.delete("/{travel_log_id}", response_model=schemas.TravelLog)
def delete_travel_log(
    travel_log_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_log = _get_travel_log_or_404(db, travel_log_id)
    return crud.delete_travel_log(db, db_log, actor_id=current_user.id)
