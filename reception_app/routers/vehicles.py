from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_security_user
from ..dependencies import get_db, get_pagination, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/vehicles",
    tags=["Vehicles"],
    responses={404: {"description": "Not found"}}
)


def _get_vehicle_or_404(db: Session, vehicle_id: int) -> models.Vehicle:
    db_vehicle = crud.get_vehicle(db, vehicle_id)
    if db_vehicle is None:
        raise ResourceNotFoundException("Vehicle", vehicle_id)
    return db_vehicle


@router.get("/", response_model=schemas.Page[schemas.Vehicle])
def read_vehicles(
    vehicle_type: Optional[models.VehicleType] = None,
    parked: Optional[bool] = None,
    search: Optional[str] = Depends(get_search),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    """Gate log, most recent entry first"""
    return crud.get_vehicles(db, search=search, vehicle_type=vehicle_type, parked=parked, **pagination)


@router.get("/mileage-summary", response_model=schemas.FleetMileageSummary)
def read_fleet_mileage_summary(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return crud.get_fleet_mileage_summary(db)


@router.post("/", response_model=schemas.Vehicle, status_code=status.HTTP_201_CREATED)
def register_vehicle_entry(
    vehicle_in: schemas.VehicleCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_security_user)
):
    return crud.create_vehicle(db, vehicle_in, actor_id=current_user.id)


@router.get("/{vehicle_id}", response_model=schemas.Vehicle)
def read_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_vehicle_or_404(db, vehicle_id)


@router.patch("/{vehicle_id}", response_model=schemas.Vehicle)
def update_vehicle(
    vehicle_id: int,
    vehicle_in: schemas.VehicleUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_security_user)
):
    db_vehicle = _get_vehicle_or_404(db, vehicle_id)
    return crud.update_vehicle(db, db_vehicle, vehicle_in, actor_id=current_user.id)


@router.post("/{vehicle_id}/check-out", response_model=schemas.Vehicle)
def check_out_vehicle(
    vehicle_id: int,
    movement: Optional[schemas.VehicleMovement] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_security_user)
):
    """Record the exit, optionally with the odometer reading at the gate"""
    db_vehicle = _get_vehicle_or_404(db, vehicle_id)
    mileage = movement.mileage if movement else None
    return crud.check_out_vehicle(db, db_vehicle, mileage=mileage, actor_id=current_user.id)


@router.post("/{vehicle_id}/check-in", response_model=schemas.Vehicle)
def check_in_vehicle(
    vehicle_id: int,
    movement: Optional[schemas.VehicleMovement] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_security_user)
):
    db_vehicle = _get_vehicle_or_404(db, vehicle_id)
    mileage = movement.mileage if movement else None
    return crud.check_in_vehicle(db, db_vehicle, mileage=mileage, actor_id=current_user.id)


@router.get("/{vehicle_id}/mileage", response_model=List[schemas.MileageRecord])
def read_mileage_history(
    vehicle_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    _get_vehicle_or_404(db, vehicle_id)
    return crud.get_mileage_records(db, vehicle_id)


@router.post("/{vehicle_id}/mileage", response_model=schemas.MileageRecord, status_code=status.HTTP_201_CREATED)
def record_mileage(
    vehicle_id: int,
    reading_in: schemas.MileageReading,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_security_user)
):
    db_vehicle = _get_vehicle_or_404(db, vehicle_id)
    return crud.record_mileage(db, db_vehicle, reading_in.reading, actor_id=current_user.id)


@router.post("/{vehicle_id}/service", response_model=schemas.Vehicle)
def mark_vehicle_serviced(
    vehicle_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_security_user)
):
    db_vehicle = _get_vehicle_or_404(db, vehicle_id)
    return crud.mark_vehicle_serviced(db, db_vehicle, actor_id=current_user.id)


@router.delete("/{vehicle_id}", response_model=schemas.Vehicle)
def delete_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_security_user)
):
    db_vehicle = _get_vehicle_or_404(db, vehicle_id)
    return crud.delete_vehicle(db, db_vehicle, actor_id=current_user.id)
