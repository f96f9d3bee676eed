from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_front_desk_user
from ..dependencies import get_db, get_pagination, get_date_range, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/parcels",
    tags=["Parcels"],
    responses={404: {"description": "Not found"}}
)


def _get_parcel_or_404(db: Session, parcel_id: int) -> models.ParcelLog:
    db_parcel = crud.get_parcel(db, parcel_id)
    if db_parcel is None:
        raise ResourceNotFoundException("Parcel", parcel_id)
    return db_parcel


@router.get("/", response_model=schemas.Page[schemas.ParcelLog])
def read_parcels(
    status: Optional[models.ParcelStatus] = None,
    recipient_id: Optional[int] = None,
    search: Optional[str] = Depends(get_search),
    date_range: dict = Depends(get_date_range),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return crud.get_parcels(db, status=status, search=search, recipient_id=recipient_id, **date_range, **pagination)


@router.post("/", response_model=schemas.ParcelLog, status_code=status.HTTP_201_CREATED)
def receive_parcel(
    parcel_in: schemas.ParcelLogCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    return crud.create_parcel(db, parcel_in, actor_id=current_user.id)


@router.get("/{parcel_id}", response_model=schemas.ParcelLog)
def read_parcel(
    parcel_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_parcel_or_404(db, parcel_id)


@router.patch("/{parcel_id}", response_model=schemas.ParcelLog)
def update_parcel(
    parcel_id: int,
    parcel_in: schemas.ParcelLogUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_parcel = _get_parcel_or_404(db, parcel_id)
    return crud.update_parcel(db, db_parcel, parcel_in, actor_id=current_user.id)


@router.post("/{parcel_id}/collect", response_model=schemas.ParcelLog)
def collect_parcel(
    parcel_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_parcel = _get_parcel_or_404(db, parcel_id)
    return crud.collect_parcel(db, db_parcel, actor_id=current_user.id)


@router.post("/{parcel_id}/return", response_model=schemas.ParcelLog)
def return_parcel_to_sender(
    parcel_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_parcel = _get_parcel_or_404(db, parcel_id)
    return crud.return_parcel(db, db_parcel, actor_id=current_user.id)


@router.delete("/{parcel_id}", response_model=schemas.ParcelLog)
def delete_parcel(
    parcel_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_parcel = _get_parcel_or_404(db, parcel_id)
    return crud.delete_parcel(db, db_parcel, actor_id=current_user.id)
