from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_current_active_user, get_admin_user
from ..config import settings
from ..dependencies import get_db, get_search
from ..error_handlers import ResourceNotFoundException

router = APIRouter(
    prefix="/employees",
    tags=["Employees"],
    responses={404: {"description": "Not found"}}
)


def _get_employee_or_404(db: Session, employee_pk: int) -> models.Employee:
    db_employee = crud.get_employee(db, employee_pk)
    if db_employee is None:
        raise ResourceNotFoundException("Employee", employee_pk)
    return db_employee


@router.get("/", response_model=schemas.Page[schemas.Employee])
def read_employees(
    department: Optional[models.EmployeeDepartment] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Depends(get_search),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    """Company directory, alphabetical"""
    return crud.get_employees(db, page=page, limit=limit, department=department, is_active=is_active, search=search)


@router.get("/available", response_model=List[schemas.Employee])
def read_available_employees(
    department: Optional[models.EmployeeDepartment] = None,
    search: Optional[str] = Depends(get_search),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    """Active employees that can be picked as a host or recipient"""
    return crud.get_available_employees(db, department=department, search=search)


@router.post("/", response_model=schemas.Employee, status_code=status.HTTP_201_CREATED)
def create_employee(
    employee_in: schemas.EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_admin_user)
):
    return crud.create_employee(db, employee_in, actor_id=current_user.id)


@router.get("/{employee_pk}", response_model=schemas.Employee)
def read_employee(
    employee_pk: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return _get_employee_or_404(db, employee_pk)


@router.patch("/{employee_pk}", response_model=schemas.Employee)
def update_employee(
    employee_pk: int,
    employee_in: schemas.EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_admin_user)
):
    db_employee = _get_employee_or_404(db, employee_pk)
    return crud.update_employee(db, db_employee, employee_in, actor_id=current_user.id)


@router.delete("/{employee_pk}", response_model=schemas.Employee)
def delete_employee(
    employee_pk: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_admin_user)
):
    db_employee = _get_employee_or_404(db, employee_pk)
    return crud.delete_employee(db, db_employee, actor_id=current_user.id)
