from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_front_desk_user
from ..dependencies import get_db, get_pagination, get_date_range, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/phone-calls",
    tags=["Phone Calls"],
    responses={404: {"description": "Not found"}}
)


def _get_call_or_404(db: Session, call_id: int) -> models.PhoneCall:
    db_call = crud.get_phone_call(db, call_id)
    if db_call is None:
        raise ResourceNotFoundException("Phone call", call_id)
    return db_call


@router.get("/", response_model=schemas.Page[schemas.PhoneCall])
def read_phone_calls(
    employee_id: Optional[int] = None,
    search: Optional[str] = Depends(get_search),
    date_range: dict = Depends(get_date_range),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return crud.get_phone_calls(db, search=search, employee_id=employee_id, **date_range, **pagination)


@router.post("/", response_model=schemas.PhoneCall, status_code=status.HTTP_201_CREATED)
def log_phone_call(
    call_in: schemas.PhoneCallCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    """Duration is derived from start and end time."""
    return crud.create_phone_call(db, call_in, actor_id=current_user.id)


@router.get("/{call_id}", response_model=schemas.PhoneCall)
def read_phone_call(
    call_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_call_or_404(db, call_id)


@router.patch("/{call_id}", response_model=schemas.PhoneCall)
def update_phone_call(
    call_id: int,
    call_in: schemas.PhoneCallUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_call = _get_call_or_404(db, call_id)
    return crud.update_phone_call(db, db_call, call_in, actor_id=current_user.id)


@router.delete("/{call_id}", response_model=schemas.PhoneCall)
def delete_phone_call(
    call_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_call = _get_call_or_404(db, call_id)
    return crud.delete_phone_call(db, db_call, actor_id=current_user.id)
