from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_front_desk_user
from ..config import settings
from ..dependencies import get_db, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
    responses={404: {"description": "Not found"}}
)


def _get_client_or_404(db: Session, client_id: int) -> models.Client:
    db_client = crud.get_client(db, client_id)
    if db_client is None:
        raise ResourceNotFoundException("Client", client_id)
    return db_client


@router.get("/", response_model=schemas.Page[schemas.Client])
def read_clients(
    status: Optional[models.ClientStatus] = None,
    industry: Optional[models.ClientIndustry] = None,
    search: Optional[str] = Depends(get_search),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return crud.get_clients(db, page=page, limit=limit, status=status, industry=industry, search=search)


@router.post("/", response_model=schemas.Client, status_code=status.HTTP_201_CREATED)
def create_client(
    client_in: schemas.ClientCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    return crud.create_client(db, client_in, actor_id=current_user.id)


@router.get("/{client_id}", response_model=schemas.Client)
def read_client(
    client_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_client_or_404(db, client_id)


@router.patch("/{client_id}", response_model=schemas.Client)
def update_client(
    client_id: int,
    client_in: schemas.ClientUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_client = _get_client_or_404(db, client_id)
    return crud.update_client(db, db_client, client_in, actor_id=current_user.id)


@router.delete("/{client_id}", response_model=schemas.Client)
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_front_desk_user)
):
    db_client = _get_client_or_404(db, client_id)
    return crud.delete_client(db, db_client, actor_id=current_user.id)
