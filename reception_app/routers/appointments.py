from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_front_desk_user
from ..dependencies import get_db, get_pagination, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"],
    responses={404: {"description": "Not found"}}
)

STATUS_FILTER_PATTERN = "^(all|" + "|".join(s.value for s in models.AppointmentStatus) + ")$"


def _get_appointment_or_404(db: Session, appointment_id: int) -> models.Appointment:
    db_appointment = crud.get_appointment(db, appointment_id)
    if db_appointment is None:
        raise ResourceNotFoundException("Appointment", appointment_id)
    return db_appointment


@router.get("/", response_model=schemas.Page[schemas.Appointment])
def read_appointments(
    status: Optional[str] = Query(None, pattern=STATUS_FILTER_PATTERN, description="Appointment status or 'all'"),
    day: Optional[date] = Query(None, alias="date", description="Only appointments scheduled on this day"),
    employee_id: Optional[int] = None,
    upcoming: bool = Query(False, description="Only future confirmed or scheduled appointments"),
    search: Optional[str] = Depends(get_search),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    """Appointments ordered by scheduled time, earliest first"""
    return crud.get_appointments(
        db, status=status, day=day, employee_id=employee_id,
        search=search, upcoming=upcoming, **pagination
    )


@router.post("/", response_model=schemas.Appointment, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_in: schemas.AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    return crud.create_appointment(db, appointment_in, actor_id=current_user.id)


@router.get("/{appointment_id}", response_model=schemas.Appointment)
def read_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_appointment_or_404(db, appointment_id)


@router.patch("/{appointment_id}", response_model=schemas.Appointment)
def update_appointment(
    appointment_id: int,
    appointment_in: schemas.AppointmentUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_appointment = _get_appointment_or_404(db, appointment_id)
    return crud.update_appointment(db, db_appointment, appointment_in, actor_id=current_user.id)


@router.post("/{appointment_id}/actions", response_model=schemas.Appointment)
def apply_appointment_action(
    appointment_id: int,
    action_in: schemas.AppointmentActionRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    """
    Move an appointment through its lifecycle.

    confirm, schedule, check-in, check-out, cancel and no-show. Invalid
    transitions return 409.
    """
    db_appointment = _get_appointment_or_404(db, appointment_id)
    return crud.apply_appointment_action(db, db_appointment, action_in.action, actor_id=current_user.id)


@router.delete("/{appointment_id}", response_model=schemas.Appointment)
def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_appointment = _get_appointment_or_404(db, appointment_id)
    return crud.delete_appointment(db, db_appointment, actor_id=current_user.id)
