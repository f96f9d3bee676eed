from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas, rbac
from ..auth_dependencies import get_current_active_user, get_admin_user
from ..dependencies import get_db, get_pagination, get_search
from ..error_handlers import InsufficientPermissionsException, ResourceNotFoundException

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}}
)


def _get_user_or_404(db: Session, user_id: int) -> models.User:
    db_user = crud.get_user(db, user_id=user_id)
    if db_user is None:
        raise ResourceNotFoundException("User", user_id)
    return db_user


@router.get("/", response_model=schemas.Page[schemas.User])
def read_users(
    role: Optional[models.UserRole] = None,
    search: Optional[str] = Depends(get_search),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_admin_user)
):
    return crud.get_users(db, role=role, search=search, **pagination)


@router.post("/", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_admin_user)
):
    return crud.create_user(db, user_in, actor_id=current_user.id)


@router.get("/{user_id}", response_model=schemas.User)
def read_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    if not rbac.can_view_user(current_user, user_id):
        raise InsufficientPermissionsException(detail={"user_id": user_id})
    return _get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=schemas.User)
def update_user(
    user_id: int,
    user_in: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_admin_user)
):
    db_user = _get_user_or_404(db, user_id)
    return crud.update_user(db, db_user, user_in, actor_id=current_user.id)


@router.delete("/{user_id}", response_model=schemas.User)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_admin_user)
):
    """Accounts are deactivated rather than removed so the audit trail keeps its actors."""
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")
    db_user = _get_user_or_404(db, user_id)
    return crud.deactivate_user(db, db_user, actor_id=current_user.id)
