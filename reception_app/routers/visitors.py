from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_staff_user
from ..dependencies import get_db, get_pagination, get_date_range, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/visitors",
    tags=["Visitors"],
    responses={404: {"description": "Not found"}}
)


def _get_visitor_or_404(db: Session, visitor_id: int) -> models.Visitor:
    db_visitor = crud.get_visitor(db, visitor_id)
    if db_visitor is None:
        raise ResourceNotFoundException("Visitor", visitor_id)
    return db_visitor


@router.get("/", response_model=schemas.Page[schemas.Visitor])
def read_visitors(
    status: Optional[models.VisitorStatus] = None,
    search: Optional[str] = Depends(get_search),
    date_range: dict = Depends(get_date_range),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    """Visitor log, most recent check-in first"""
    return crud.get_visitors(db, status=status, search=search, **date_range, **pagination)


@router.post("/", response_model=schemas.Visitor, status_code=status.HTTP_201_CREATED)
def check_in_new_visitor(
    visitor_in: schemas.VisitorCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_staff_user)
):
    """
    Register a visitor at reception.

    The host may be given as `employee_to_meet_id` or by name; an unknown
    name is kept in the visitor's notes.
    """
    return crud.create_visitor(db, visitor_in, actor_id=current_user.id)


@router.get("/{visitor_id}", response_model=schemas.Visitor)
def read_visitor(
    visitor_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_visitor_or_404(db, visitor_id)


@router.patch("/{visitor_id}", response_model=schemas.Visitor)
def update_visitor(
    visitor_id: int,
    visitor_in: schemas.VisitorUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_staff_user)
):
    db_visitor = _get_visitor_or_404(db, visitor_id)
    return crud.update_visitor(db, db_visitor, visitor_in, actor_id=current_user.id)


@router.post("/{visitor_id}/check-in", response_model=schemas.Visitor)
def check_in_expected_visitor(
    visitor_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_staff_user)
):
    db_visitor = _get_visitor_or_404(db, visitor_id)
    return crud.check_in_visitor(db, db_visitor, actor_id=current_user.id)


@router.post("/{visitor_id}/check-out", response_model=schemas.Visitor)
def check_out_visitor(
    visitor_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_staff_user)
):
    db_visitor = _get_visitor_or_404(db, visitor_id)
    return crud.check_out_visitor(db, db_visitor, actor_id=current_user.id)


@router.delete("/{visitor_id}", response_model=schemas.Visitor)
def delete_visitor(
    visitor_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_staff_user)
):
    db_visitor = _get_visitor_or_404(db, visitor_id)
    return crud.delete_visitor(db, db_visitor, actor_id=current_user.id)
