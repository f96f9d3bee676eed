import logging
import math
from sqlalchemy.orm import Session, selectinload
from typing import Optional, Union
from datetime import date, timedelta, datetime
from fastapi.encoders import jsonable_encoder
from sqlalchemy import or_

from . import models, schemas, auth, constants
from .config import settings
from .models import (
    utcnow, VisitorStatus, TravelStatus, ParcelStatus,
    AppointmentStatus, AppointmentAction,
)
from .error_handlers import (
    ResourceNotFoundException,
    DuplicateResourceException,
    InvalidStateException,
    BusinessRuleException,
    AccountLockedException,
    ResourceInUseException,
)

logger = logging.getLogger(__name__)


# ------------- Query helpers -------------

def paginate(query, page: int = 1, limit: int = 10) -> dict:
    """Apply page/limit to a query and wrap the rows in the list envelope."""
    total = query.order_by(None).count()
    total_pages = math.ceil(total / limit) if limit else 0
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "data": items,
        "pagination": {
            "total_docs": total,
            "total_pages": total_pages,
            "page": page,
            "limit": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
    }


def search_filter(term: str, *columns):
    """Case-insensitive substring match; % and _ in the term match literally"""
    literal = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{literal}%"
    return or_(*[column.ilike(pattern, escape="\\") for column in columns])


def day_bounds(day: date):
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def apply_date_range(query, column, date_from: Optional[date] = None, date_to: Optional[date] = None):
    """Inclusive date range; date_to covers the whole day."""
    if date_from:
        query = query.filter(column >= day_bounds(date_from)[0])
    if date_to:
        query = query.filter(column < day_bounds(date_to)[1])
    return query


# ------------- AuditLog CRUD -------------

def create_audit_log(db: Session, actor_id: Optional[int], entity: str, entity_id: Optional[int], action: str, data: Optional[dict] = None) -> models.AuditLog:
    safe_data = jsonable_encoder(data)
    db_audit_log = models.AuditLog(
        actor_id=actor_id,
        entity=entity,
        entity_id=entity_id,
        action=action,
        data=safe_data
    )
    db.add(db_audit_log)
    db.commit()
    db.refresh(db_audit_log)
    return db_audit_log


def get_audit_logs(
    db: Session,
    page: int = 1,
    limit: int = 10,
    entity: Optional[str] = None,
    action: Optional[str] = None,
    actor_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    query = db.query(models.AuditLog)
    if entity:
        query = query.filter(models.AuditLog.entity == entity)
    if action:
        query = query.filter(models.AuditLog.action == action)
    if actor_id is not None:
        query = query.filter(models.AuditLog.actor_id == actor_id)
    query = apply_date_range(query, models.AuditLog.timestamp, date_from, date_to)
    query = query.order_by(models.AuditLog.timestamp.desc(), models.AuditLog.id.desc())
    return paginate(query, page, limit)


def cleanup_old_audit_logs(db: Session, retention_months: int = 18, actor_id: Optional[int] = None):
    """
    Delete audit log entries older than the retention period.

    Returns a tuple of (deleted count, cutoff timestamp). The purge itself
    is recorded as a new audit entry.
    """
    cutoff = utcnow() - timedelta(days=retention_months * 30)
    deleted = db.query(models.AuditLog).filter(
        models.AuditLog.timestamp < cutoff
    ).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Purged {deleted} audit log entries older than {cutoff.isoformat()}")
    create_audit_log(db, actor_id=actor_id, entity="audit_log", entity_id=None, action=constants.ACTION_PURGE,
                     data={"deleted": deleted, "cutoff": cutoff, "retention_months": retention_months})
    return deleted, cutoff


def _changes(db_obj, update_data: dict) -> dict:
    """Collect {"field": {"old", "new"}} for values that actually differ."""
    changed = {}
    for key, value in update_data.items():
        old = getattr(db_obj, key)
        if old != value:
            changed[key] = {"old": old, "new": value}
    return changed


# ------------- User CRUD -------------

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def get_users(db: Session, page: int = 1, limit: int = 10, role: Optional[models.UserRole] = None,
              search: Optional[str] = None) -> dict:
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)
    if search:
        query = query.filter(search_filter(search, models.User.name, models.User.email))
    return paginate(query.order_by(models.User.name), page, limit)


def create_user(db: Session, user_in: Union[schemas.UserCreate, schemas.UserRegister], actor_id: Optional[int] = None) -> models.User:
    email = user_in.email.strip().lower()
    if get_user_by_email(db, email):
        raise DuplicateResourceException("User", "email", email)

    data = user_in.model_dump(exclude={"password", "email"})
    db_user = models.User(
        **data,
        email=email,
        hashed_password=auth.get_password_hash(user_in.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    create_audit_log(db, actor_id=actor_id or db_user.id, entity="user", entity_id=db_user.id,
                     action=constants.ACTION_CREATE, data={"email": email, "role": db_user.role})
    return db_user


def update_user(db: Session, db_user: models.User, user_in: schemas.UserUpdate, actor_id: Optional[int] = None) -> models.User:
    update_data = user_in.model_dump(exclude_unset=True)

    password = update_data.pop("password", None)
    if "email" in update_data and update_data["email"]:
        email = update_data["email"].strip().lower()
        existing = get_user_by_email(db, email)
        if existing and existing.id != db_user.id:
            raise DuplicateResourceException("User", "email", email)
        update_data["email"] = email

    changed_fields = _changes(db_user, update_data)
    for key, value in update_data.items():
        setattr(db_user, key, value)
    if password:
        db_user.hashed_password = auth.get_password_hash(password)
        changed_fields["password"] = "changed"

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="user", entity_id=db_user.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_user


def deactivate_user(db: Session, db_user: models.User, actor_id: Optional[int] = None) -> models.User:
    db_user.is_active = False
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    create_audit_log(db, actor_id=actor_id, entity="user", entity_id=db_user.id,
                     action=constants.ACTION_UPDATE, data={"is_active": False})
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> Optional[models.User]:
    """
    Check credentials, enforcing the failed-login lockout.

    Returns the user on success and None on bad credentials. Raises
    AccountLockedException while the account is locked.
    """
    user = get_user_by_email(db, email)
    if not user:
        return None

    now = utcnow()
    lock_expired = False
    if user.locked_until is not None:
        if user.locked_until > now:
            logger.info(f"Login attempt for locked account {user.email}")
            raise AccountLockedException(user.locked_until)
        user.locked_until = None
        user.failed_login_attempts = 0
        lock_expired = True

    if not auth.verify_password(password, user.hashed_password):
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        logger.info(f"Failed login for {user.email} ({user.failed_login_attempts}/{settings.max_login_attempts})")
        locked = user.failed_login_attempts >= settings.max_login_attempts
        if locked:
            user.locked_until = now + timedelta(minutes=settings.lockout_duration_minutes)
            user.failed_login_attempts = 0
            logger.warning(f"Account {user.email} locked until {user.locked_until.isoformat()}")
        db.add(user)
        db.commit()
        if locked:
            create_audit_log(db, actor_id=None, entity="user", entity_id=user.id,
                             action=constants.ACTION_LOGIN_LOCKED, data={"locked_until": user.locked_until})
        return None

    if user.failed_login_attempts or lock_expired:
        user.failed_login_attempts = 0
        db.add(user)
        db.commit()
    return user


# ------------- Employee CRUD -------------

def get_employee(db: Session, employee_pk: int) -> Optional[models.Employee]:
    return db.query(models.Employee).filter(models.Employee.id == employee_pk).first()


def get_employee_or_404(db: Session, employee_pk: int) -> models.Employee:
    employee = get_employee(db, employee_pk)
    if employee is None:
        raise ResourceNotFoundException("Employee", employee_pk)
    return employee


def get_employee_by_employee_id(db: Session, employee_id: str) -> Optional[models.Employee]:
    return db.query(models.Employee).filter(models.Employee.employee_id == employee_id).first()


def get_employee_by_name(db: Session, name: str) -> Optional[models.Employee]:
    return db.query(models.Employee).filter(models.Employee.name == name.strip()).first()


def get_employees(
    db: Session,
    page: int = 1,
    limit: int = 50,
    department: Optional[models.EmployeeDepartment] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
) -> dict:
    query = db.query(models.Employee)
    if department:
        query = query.filter(models.Employee.department == department)
    if is_active is not None:
        query = query.filter(models.Employee.is_active == is_active)
    if search:
        query = query.filter(search_filter(search, models.Employee.name, models.Employee.email, models.Employee.employee_id))
    return paginate(query.order_by(models.Employee.name), page, limit)


def get_available_employees(db: Session, department: Optional[models.EmployeeDepartment] = None,
                            search: Optional[str] = None) -> list[models.Employee]:
    """Active employees for host pickers, alphabetical."""
    query = db.query(models.Employee).filter(models.Employee.is_active.is_(True))
    if department:
        query = query.filter(models.Employee.department == department)
    if search:
        query = query.filter(search_filter(search, models.Employee.name, models.Employee.email, models.Employee.employee_id))
    return query.order_by(models.Employee.name).limit(constants.AVAILABLE_EMPLOYEES_LIMIT).all()


def create_employee(db: Session, employee_in: schemas.EmployeeCreate, actor_id: Optional[int] = None) -> models.Employee:
    if get_employee_by_employee_id(db, employee_in.employee_id):
        raise DuplicateResourceException("Employee", "employee_id", employee_in.employee_id)
    db_employee = models.Employee(**employee_in.model_dump())
    db.add(db_employee)
    db.commit()
    db.refresh(db_employee)
    create_audit_log(db, actor_id=actor_id, entity="employee", entity_id=db_employee.id,
                     action=constants.ACTION_CREATE, data=employee_in.model_dump())
    return db_employee


def update_employee(db: Session, db_employee: models.Employee, employee_in: schemas.EmployeeUpdate, actor_id: Optional[int] = None) -> models.Employee:
    update_data = employee_in.model_dump(exclude_unset=True)
    new_code = update_data.get("employee_id")
    if new_code and new_code != db_employee.employee_id and get_employee_by_employee_id(db, new_code):
        raise DuplicateResourceException("Employee", "employee_id", new_code)

    changed_fields = _changes(db_employee, update_data)
    for key, value in update_data.items():
        setattr(db_employee, key, value)
    db.add(db_employee)
    db.commit()
    db.refresh(db_employee)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="employee", entity_id=db_employee.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_employee


# NOT NULL foreign keys to employees; visitors and clients only lose their link
EMPLOYEE_DEPENDENTS = (
    ("phone_calls", models.PhoneCall.employee_id),
    ("travel_logs", models.TravelLog.employee_id),
    ("parcels", models.ParcelLog.recipient_id),
    ("appointments", models.Appointment.employee_to_meet_id),
)


def delete_employee(db: Session, db_employee: models.Employee, actor_id: Optional[int] = None) -> models.Employee:
    employee_pk = db_employee.id
    dependents = {}
    for name, column in EMPLOYEE_DEPENDENTS:
        count = db.query(column).filter(column == employee_pk).count()
        if count:
            dependents[name] = count
    if dependents:
        raise ResourceInUseException("Employee", db_employee.employee_id, dependents)

    db.delete(db_employee)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="employee", entity_id=employee_pk,
                     action=constants.ACTION_DELETE, data={"employee_id": db_employee.employee_id})
    return db_employee


# ------------- Visitor CRUD -------------

def _validate_visit_times(check_in_time: Optional[datetime], check_out_time: Optional[datetime]):
    if check_in_time and check_out_time and check_out_time < check_in_time:
        raise BusinessRuleException("Check-out time cannot be earlier than check-in time")


def get_visitor(db: Session, visitor_id: int) -> Optional[models.Visitor]:
    return db.query(models.Visitor).options(
        selectinload(models.Visitor.employee_to_meet)
    ).filter(models.Visitor.id == visitor_id).first()


def get_visitors(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: Optional[VisitorStatus] = None,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    query = db.query(models.Visitor).options(selectinload(models.Visitor.employee_to_meet))
    if status:
        query = query.filter(models.Visitor.status == status)
    if search:
        query = query.filter(search_filter(search, models.Visitor.name, models.Visitor.company, models.Visitor.phone))
    query = apply_date_range(query, models.Visitor.check_in_time, date_from, date_to)
    return paginate(query.order_by(models.Visitor.check_in_time.desc()), page, limit)


def create_visitor(db: Session, visitor_in: schemas.VisitorCreate, actor_id: Optional[int] = None) -> models.Visitor:
    data = visitor_in.model_dump()
    now = utcnow()

    if data.get("employee_to_meet_id") is not None:
        employee = get_employee_or_404(db, data["employee_to_meet_id"])
        data["employee_to_meet_name"] = data.get("employee_to_meet_name") or employee.name
    elif data.get("employee_to_meet_name"):
        requested = data["employee_to_meet_name"].strip()
        employee = get_employee_by_name(db, requested)
        if employee:
            data["employee_to_meet_id"] = employee.id
        else:
            data["notes"] = f"{constants.REQUESTED_TO_MEET_PREFIX}{requested}. {data.get('notes') or ''}".strip()

    if data.get("check_in_time") is None:
        data["check_in_time"] = now
    if data["status"] == VisitorStatus.CHECKED_OUT and data.get("check_out_time") is None:
        data["check_out_time"] = now
    _validate_visit_times(data["check_in_time"], data.get("check_out_time"))

    db_visitor = models.Visitor(**data)
    db.add(db_visitor)
    db.commit()
    db.refresh(db_visitor)
    logger.info(f"Visitor {db_visitor.name} registered with status {db_visitor.status}")
    create_audit_log(db, actor_id=actor_id, entity="visitor", entity_id=db_visitor.id,
                     action=constants.ACTION_CREATE, data={"name": db_visitor.name, "status": db_visitor.status})
    return db_visitor


def update_visitor(db: Session, db_visitor: models.Visitor, visitor_in: schemas.VisitorUpdate, actor_id: Optional[int] = None) -> models.Visitor:
    update_data = visitor_in.model_dump(exclude_unset=True)
    if update_data.get("employee_to_meet_id") is not None:
        get_employee_or_404(db, update_data["employee_to_meet_id"])
    _validate_visit_times(
        update_data.get("check_in_time", db_visitor.check_in_time),
        update_data.get("check_out_time", db_visitor.check_out_time),
    )

    changed_fields = _changes(db_visitor, update_data)
    for key, value in update_data.items():
        setattr(db_visitor, key, value)

    if db_visitor.status == VisitorStatus.CHECKED_OUT and db_visitor.check_out_time is None:
        db_visitor.check_out_time = utcnow()
    _validate_visit_times(db_visitor.check_in_time, db_visitor.check_out_time)

    db.add(db_visitor)
    db.commit()
    db.refresh(db_visitor)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="visitor", entity_id=db_visitor.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_visitor


def check_out_visitor(db: Session, db_visitor: models.Visitor, actor_id: Optional[int] = None) -> models.Visitor:
    if db_visitor.status == VisitorStatus.CHECKED_OUT:
        raise InvalidStateException("visitor", str(db_visitor.status), "check out")
    db_visitor.status = VisitorStatus.CHECKED_OUT
    db_visitor.check_out_time = utcnow()
    if db_visitor.check_in_time is None:
        db_visitor.check_in_time = db_visitor.check_out_time
    db.add(db_visitor)
    db.commit()
    db.refresh(db_visitor)
    logger.info(f"Visitor {db_visitor.name} checked out")
    create_audit_log(db, actor_id=actor_id, entity="visitor", entity_id=db_visitor.id,
                     action=constants.ACTION_CHECK_OUT, data={"check_out_time": db_visitor.check_out_time})
    return db_visitor


def check_in_visitor(db: Session, db_visitor: models.Visitor, actor_id: Optional[int] = None) -> models.Visitor:
    """Arrival of a pre-registered (expected) visitor."""
    if db_visitor.status != VisitorStatus.EXPECTED:
        raise InvalidStateException("visitor", str(db_visitor.status), "check in")
    db_visitor.status = VisitorStatus.CHECKED_IN
    db_visitor.check_in_time = utcnow()
    db.add(db_visitor)
    db.commit()
    db.refresh(db_visitor)
    logger.info(f"Visitor {db_visitor.name} checked in")
    create_audit_log(db, actor_id=actor_id, entity="visitor", entity_id=db_visitor.id,
                     action=constants.ACTION_CHECK_IN, data={"check_in_time": db_visitor.check_in_time})
    return db_visitor


def delete_visitor(db: Session, db_visitor: models.Visitor, actor_id: Optional[int] = None) -> models.Visitor:
    visitor_id = db_visitor.id
    db.delete(db_visitor)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="visitor", entity_id=visitor_id,
                     action=constants.ACTION_DELETE, data={"name": db_visitor.name})
    return db_visitor


# ------------- Vehicle CRUD -------------

def get_vehicle(db: Session, vehicle_id: int) -> Optional[models.Vehicle]:
    return db.query(models.Vehicle).filter(models.Vehicle.id == vehicle_id).first()


def get_vehicle_by_registration(db: Session, registration_number: str) -> Optional[models.Vehicle]:
    return db.query(models.Vehicle).filter(
        models.Vehicle.registration_number == registration_number.strip().upper()
    ).first()


def get_vehicles(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    vehicle_type: Optional[models.VehicleType] = None,
    parked: Optional[bool] = None,
) -> dict:
    query = db.query(models.Vehicle)
    if search:
        query = query.filter(search_filter(search, models.Vehicle.registration_number, models.Vehicle.owner_name, models.Vehicle.purpose))
    if vehicle_type:
        query = query.filter(models.Vehicle.vehicle_type == vehicle_type)
    if parked is True:
        query = query.filter(models.Vehicle.exit_time.is_(None))
    elif parked is False:
        query = query.filter(models.Vehicle.exit_time.isnot(None))
    return paginate(query.order_by(models.Vehicle.entry_time.desc()), page, limit)


def _append_mileage(db: Session, db_vehicle: models.Vehicle, reading: int, actor_id: Optional[int] = None) -> models.MileageRecord:
    """Add an odometer reading; readings never go backwards."""
    current = db_vehicle.current_mileage
    if current is not None and reading < current:
        raise BusinessRuleException(
            f"Mileage reading {reading} is lower than the current mileage {current}",
            detail={"current_mileage": current, "reading": reading},
        )
    record = models.MileageRecord(
        vehicle_id=db_vehicle.id,
        reading=reading,
        distance=reading - current if current is not None else 0,
        recorded_at=utcnow(),
        recorded_by_id=actor_id,
    )
    db_vehicle.current_mileage = reading
    db.add(record)
    return record


def create_vehicle(db: Session, vehicle_in: schemas.VehicleCreate, actor_id: Optional[int] = None) -> models.Vehicle:
    data = vehicle_in.model_dump()
    data["registration_number"] = data["registration_number"].strip().upper()
    if get_vehicle_by_registration(db, data["registration_number"]):
        raise DuplicateResourceException("Vehicle", "registration number", data["registration_number"])

    initial_mileage = data.pop("current_mileage")
    if data.get("entry_time") is None:
        data["entry_time"] = utcnow()

    db_vehicle = models.Vehicle(**data)
    db.add(db_vehicle)
    db.flush()
    if initial_mileage is not None:
        _append_mileage(db, db_vehicle, initial_mileage, actor_id)
    db.commit()
    db.refresh(db_vehicle)
    logger.info(f"Vehicle {db_vehicle.registration_number} checked in at the gate")
    create_audit_log(db, actor_id=actor_id, entity="vehicle", entity_id=db_vehicle.id,
                     action=constants.ACTION_CREATE,
                     data={"registration_number": db_vehicle.registration_number, "mileage": initial_mileage})
    return db_vehicle


def update_vehicle(db: Session, db_vehicle: models.Vehicle, vehicle_in: schemas.VehicleUpdate, actor_id: Optional[int] = None) -> models.Vehicle:
    update_data = vehicle_in.model_dump(exclude_unset=True)
    if update_data.get("registration_number"):
        registration = update_data["registration_number"].strip().upper()
        existing = get_vehicle_by_registration(db, registration)
        if existing and existing.id != db_vehicle.id:
            raise DuplicateResourceException("Vehicle", "registration number", registration)
        update_data["registration_number"] = registration

    changed_fields = _changes(db_vehicle, update_data)
    for key, value in update_data.items():
        setattr(db_vehicle, key, value)
    if db_vehicle.exit_time and db_vehicle.entry_time and db_vehicle.exit_time < db_vehicle.entry_time:
        raise BusinessRuleException("Exit time cannot be earlier than entry time")

    db.add(db_vehicle)
    db.commit()
    db.refresh(db_vehicle)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="vehicle", entity_id=db_vehicle.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_vehicle


def check_out_vehicle(db: Session, db_vehicle: models.Vehicle, mileage: Optional[int] = None, actor_id: Optional[int] = None) -> models.Vehicle:
    if db_vehicle.exit_time is not None:
        raise InvalidStateException("vehicle", "exited", "check out")
    if mileage is not None:
        _append_mileage(db, db_vehicle, mileage, actor_id)
    db_vehicle.exit_time = utcnow()
    db.add(db_vehicle)
    db.commit()
    db.refresh(db_vehicle)
    logger.info(f"Vehicle {db_vehicle.registration_number} checked out")
    create_audit_log(db, actor_id=actor_id, entity="vehicle", entity_id=db_vehicle.id,
                     action=constants.ACTION_CHECK_OUT, data={"exit_time": db_vehicle.exit_time, "mileage": mileage})
    return db_vehicle


def check_in_vehicle(db: Session, db_vehicle: models.Vehicle, mileage: Optional[int] = None, actor_id: Optional[int] = None) -> models.Vehicle:
    """Re-entry of a known vehicle."""
    if db_vehicle.exit_time is None:
        raise InvalidStateException("vehicle", "parked", "check in")
    if mileage is not None:
        _append_mileage(db, db_vehicle, mileage, actor_id)
    db_vehicle.entry_time = utcnow()
    db_vehicle.exit_time = None
    db.add(db_vehicle)
    db.commit()
    db.refresh(db_vehicle)
    logger.info(f"Vehicle {db_vehicle.registration_number} checked in")
    create_audit_log(db, actor_id=actor_id, entity="vehicle", entity_id=db_vehicle.id,
                     action=constants.ACTION_CHECK_IN, data={"entry_time": db_vehicle.entry_time, "mileage": mileage})
    return db_vehicle


def record_mileage(db: Session, db_vehicle: models.Vehicle, reading: int, actor_id: Optional[int] = None) -> models.MileageRecord:
    record = _append_mileage(db, db_vehicle, reading, actor_id)
    db.add(db_vehicle)
    db.commit()
    db.refresh(record)
    create_audit_log(db, actor_id=actor_id, entity="vehicle", entity_id=db_vehicle.id,
                     action=constants.ACTION_MILEAGE, data={"reading": reading, "distance": record.distance})
    return record


def mark_vehicle_serviced(db: Session, db_vehicle: models.Vehicle, actor_id: Optional[int] = None) -> models.Vehicle:
    db_vehicle.last_service_mileage = db_vehicle.current_mileage or 0
    db_vehicle.last_service_date = utcnow().date()
    db.add(db_vehicle)
    db.commit()
    db.refresh(db_vehicle)
    create_audit_log(db, actor_id=actor_id, entity="vehicle", entity_id=db_vehicle.id,
                     action=constants.ACTION_SERVICE,
                     data={"mileage": db_vehicle.last_service_mileage, "date": db_vehicle.last_service_date})
    return db_vehicle


def get_mileage_records(db: Session, vehicle_id: int) -> list[models.MileageRecord]:
    return db.query(models.MileageRecord).filter(
        models.MileageRecord.vehicle_id == vehicle_id
    ).order_by(models.MileageRecord.recorded_at, models.MileageRecord.id).all()


def get_fleet_mileage_summary(db: Session, today: Optional[date] = None) -> dict:
    vehicles = db.query(models.Vehicle).filter(
        models.Vehicle.current_mileage.isnot(None)
    ).order_by(models.Vehicle.registration_number).all()
    records = db.query(models.MileageRecord.distance).all()

    statuses = [(vehicle, vehicle.get_service_status(today)) for vehicle in vehicles]
    return {
        "total_mileage": sum(vehicle.current_mileage or 0 for vehicle in vehicles),
        "average_distance": round(sum(r.distance for r in records) / len(records), 1) if records else 0.0,
        "vehicles_needing_service": sum(1 for _, s in statuses if s != models.ServiceStatus.NORMAL),
        "vehicles": [
            {
                "id": vehicle.id,
                "registration_number": vehicle.registration_number,
                "current_mileage": vehicle.current_mileage,
                "km_since_service": vehicle.km_since_service,
                "next_service_mileage": vehicle.next_service_mileage,
                "next_service_date": vehicle.next_service_date,
                "service_status": status,
            }
            for vehicle, status in statuses
        ],
    }


def delete_vehicle(db: Session, db_vehicle: models.Vehicle, actor_id: Optional[int] = None) -> models.Vehicle:
    vehicle_id = db_vehicle.id
    db.delete(db_vehicle)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="vehicle", entity_id=vehicle_id,
                     action=constants.ACTION_DELETE, data={"registration_number": db_vehicle.registration_number})
    return db_vehicle


# ------------- Phone Call CRUD -------------

def _apply_call_timing(db_call: models.PhoneCall, duration_hint: Optional[int] = None):
    """Derive duration from end_time, or end_time from a duration hint."""
    if db_call.end_time is not None:
        if db_call.end_time < db_call.start_time:
            raise BusinessRuleException("Call end time cannot be earlier than start time")
        db_call.duration = round((db_call.end_time - db_call.start_time).total_seconds() / 60)
    elif duration_hint is not None:
        db_call.end_time = db_call.start_time + timedelta(minutes=duration_hint)
        db_call.duration = duration_hint
    else:
        db_call.duration = None


def get_phone_call(db: Session, call_id: int) -> Optional[models.PhoneCall]:
    return db.query(models.PhoneCall).options(
        selectinload(models.PhoneCall.employee)
    ).filter(models.PhoneCall.id == call_id).first()


def get_phone_calls(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    employee_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    query = db.query(models.PhoneCall).outerjoin(models.PhoneCall.employee).options(
        selectinload(models.PhoneCall.employee)
    )
    if search:
        query = query.filter(search_filter(
            search,
            models.PhoneCall.caller_name, models.PhoneCall.caller_number,
            models.PhoneCall.purpose, models.Employee.name,
        ))
    if employee_id is not None:
        query = query.filter(models.PhoneCall.employee_id == employee_id)
    query = apply_date_range(query, models.PhoneCall.start_time, date_from, date_to)
    return paginate(query.order_by(models.PhoneCall.start_time.desc()), page, limit)


def create_phone_call(db: Session, call_in: schemas.PhoneCallCreate, actor_id: Optional[int] = None) -> models.PhoneCall:
    data = call_in.model_dump()
    get_employee_or_404(db, data["employee_id"])
    duration_hint = data.pop("duration")
    if data.get("start_time") is None:
        data["start_time"] = utcnow()

    db_call = models.PhoneCall(**data)
    _apply_call_timing(db_call, duration_hint)
    db.add(db_call)
    db.commit()
    db.refresh(db_call)
    create_audit_log(db, actor_id=actor_id, entity="phone_call", entity_id=db_call.id,
                     action=constants.ACTION_CREATE,
                     data={"caller_number": db_call.caller_number, "duration": db_call.duration})
    return db_call


def update_phone_call(db: Session, db_call: models.PhoneCall, call_in: schemas.PhoneCallUpdate, actor_id: Optional[int] = None) -> models.PhoneCall:
    update_data = call_in.model_dump(exclude_unset=True)
    duration_hint = update_data.pop("duration", None)
    if update_data.get("employee_id") is not None:
        get_employee_or_404(db, update_data["employee_id"])

    changed_fields = _changes(db_call, update_data)
    for key, value in update_data.items():
        setattr(db_call, key, value)
    if duration_hint is not None and "end_time" not in update_data:
        db_call.end_time = None
    _apply_call_timing(db_call, duration_hint)

    db.add(db_call)
    db.commit()
    db.refresh(db_call)
    if changed_fields or duration_hint is not None:
        changed_fields["duration"] = db_call.duration
        create_audit_log(db, actor_id=actor_id, entity="phone_call", entity_id=db_call.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_call


def delete_phone_call(db: Session, db_call: models.PhoneCall, actor_id: Optional[int] = None) -> models.PhoneCall:
    call_id = db_call.id
    db.delete(db_call)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="phone_call", entity_id=call_id,
                     action=constants.ACTION_DELETE, data={"caller_number": db_call.caller_number})
    return db_call


# ------------- Travel Log CRUD -------------

def _validate_travel_times(db_log: models.TravelLog):
    if db_log.expected_return and db_log.expected_return < db_log.departure_time:
        raise BusinessRuleException("Expected return cannot be earlier than departure time")
    if db_log.actual_return and db_log.actual_return < db_log.departure_time:
        raise BusinessRuleException("Actual return cannot be earlier than departure time")


def get_travel_log(db: Session, travel_log_id: int) -> Optional[models.TravelLog]:
    return db.query(models.TravelLog).options(
        selectinload(models.TravelLog.employee)
    ).filter(models.TravelLog.id == travel_log_id).first()


def get_travel_logs(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: Optional[TravelStatus] = None,
    search: Optional[str] = None,
    employee_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    query = db.query(models.TravelLog).options(selectinload(models.TravelLog.employee))
    if status:
        query = query.filter(models.TravelLog.status == status)
    if search:
        query = query.filter(search_filter(search, models.TravelLog.destination, models.TravelLog.purpose))
    if employee_id is not None:
        query = query.filter(models.TravelLog.employee_id == employee_id)
    query = apply_date_range(query, models.TravelLog.departure_time, date_from, date_to)
    return paginate(query.order_by(models.TravelLog.departure_time.desc()), page, limit)


def create_travel_log(db: Session, travel_in: schemas.TravelLogCreate, actor_id: Optional[int] = None) -> models.TravelLog:
    data = travel_in.model_dump()
    get_employee_or_404(db, data["employee_id"])
    if data.get("status") is None:
        data["status"] = TravelStatus.RETURNED if data.get("actual_return") else TravelStatus.DEPARTED

    db_log = models.TravelLog(**data)
    _validate_travel_times(db_log)
    db.add(db_log)
    db.commit()
    db.refresh(db_log)
    logger.info(f"Travel log {db_log.id}: employee {db_log.employee_id} departed for {db_log.destination}")
    create_audit_log(db, actor_id=actor_id, entity="travel_log", entity_id=db_log.id,
                     action=constants.ACTION_CREATE, data={"destination": db_log.destination, "status": db_log.status})
    return db_log


def update_travel_log(db: Session, db_log: models.TravelLog, travel_in: schemas.TravelLogUpdate, actor_id: Optional[int] = None) -> models.TravelLog:
    update_data = travel_in.model_dump(exclude_unset=True)
    if update_data.get("employee_id") is not None:
        get_employee_or_404(db, update_data["employee_id"])
    if update_data.get("actual_return") and "status" not in update_data:
        update_data["status"] = TravelStatus.RETURNED

    changed_fields = _changes(db_log, update_data)
    for key, value in update_data.items():
        setattr(db_log, key, value)
    _validate_travel_times(db_log)

    db.add(db_log)
    db.commit()
    db.refresh(db_log)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="travel_log", entity_id=db_log.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_log


def record_travel_return(db: Session, db_log: models.TravelLog, actor_id: Optional[int] = None) -> models.TravelLog:
    if db_log.status == TravelStatus.RETURNED:
        raise InvalidStateException("travel log", str(db_log.status), "record return for")
    db_log.actual_return = utcnow()
    db_log.status = TravelStatus.RETURNED
    db.add(db_log)
    db.commit()
    db.refresh(db_log)
    logger.info(f"Travel log {db_log.id}: employee {db_log.employee_id} returned from {db_log.destination}")
    create_audit_log(db, actor_id=actor_id, entity="travel_log", entity_id=db_log.id,
                     action=constants.ACTION_RETURN, data={"actual_return": db_log.actual_return})
    return db_log


def mark_overdue_travel_logs(db: Session, actor_id: Optional[int] = None) -> int:
    """Move departed trips whose expected return has passed to delayed."""
    overdue = db.query(models.TravelLog).filter(
        models.TravelLog.status == TravelStatus.DEPARTED,
        models.TravelLog.actual_return.is_(None),
        models.TravelLog.expected_return.isnot(None),
        models.TravelLog.expected_return < utcnow(),
    ).all()
    for db_log in overdue:
        db_log.status = TravelStatus.DELAYED
        db.add(db_log)
    db.commit()
    if overdue:
        logger.info(f"Marked {len(overdue)} travel logs as delayed")
        create_audit_log(db, actor_id=actor_id, entity="travel_log", entity_id=None,
                         action=constants.ACTION_DELAY, data={"ids": [db_log.id for db_log in overdue]})
    return len(overdue)


def delete_travel_log(db: Session, db_log: models.TravelLog, actor_id: Optional[int] = None) -> models.TravelLog:
    log_id = db_log.id
    db.delete(db_log)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="travel_log", entity_id=log_id,
                     action=constants.ACTION_DELETE, data={"destination": db_log.destination})
    return db_log


# ------------- Parcel CRUD -------------

def get_parcel(db: Session, parcel_id: int) -> Optional[models.ParcelLog]:
    return db.query(models.ParcelLog).options(
        selectinload(models.ParcelLog.recipient)
    ).filter(models.ParcelLog.id == parcel_id).first()


def get_parcel_by_tracking_number(db: Session, tracking_number: str) -> Optional[models.ParcelLog]:
    return db.query(models.ParcelLog).filter(models.ParcelLog.tracking_number == tracking_number).first()


def get_parcels(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: Optional[ParcelStatus] = None,
    search: Optional[str] = None,
    recipient_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    query = db.query(models.ParcelLog).options(selectinload(models.ParcelLog.recipient))
    if status:
        query = query.filter(models.ParcelLog.status == status)
    if search:
        query = query.filter(search_filter(search, models.ParcelLog.tracking_number, models.ParcelLog.sender, models.ParcelLog.description))
    if recipient_id is not None:
        query = query.filter(models.ParcelLog.recipient_id == recipient_id)
    query = apply_date_range(query, models.ParcelLog.received_at, date_from, date_to)
    return paginate(query.order_by(models.ParcelLog.received_at.desc()), page, limit)


def create_parcel(db: Session, parcel_in: schemas.ParcelLogCreate, actor_id: Optional[int] = None) -> models.ParcelLog:
    data = parcel_in.model_dump()
    get_employee_or_404(db, data["recipient_id"])
    if data.get("tracking_number"):
        data["tracking_number"] = data["tracking_number"].strip()
        if get_parcel_by_tracking_number(db, data["tracking_number"]):
            raise DuplicateResourceException("Parcel", "tracking number", data["tracking_number"])
    else:
        data["tracking_number"] = None
    if data.get("received_at") is None:
        data["received_at"] = utcnow()

    db_parcel = models.ParcelLog(**data, status=ParcelStatus.RECEIVED)
    db.add(db_parcel)
    db.commit()
    db.refresh(db_parcel)
    logger.info(f"Parcel {db_parcel.id} received from {db_parcel.sender}")
    create_audit_log(db, actor_id=actor_id, entity="parcel", entity_id=db_parcel.id,
                     action=constants.ACTION_CREATE, data={"sender": db_parcel.sender, "tracking_number": db_parcel.tracking_number})
    return db_parcel


def update_parcel(db: Session, db_parcel: models.ParcelLog, parcel_in: schemas.ParcelLogUpdate, actor_id: Optional[int] = None) -> models.ParcelLog:
    update_data = parcel_in.model_dump(exclude_unset=True)
    if update_data.get("recipient_id") is not None:
        get_employee_or_404(db, update_data["recipient_id"])
    if update_data.get("tracking_number"):
        tracking = update_data["tracking_number"].strip()
        existing = get_parcel_by_tracking_number(db, tracking)
        if existing and existing.id != db_parcel.id:
            raise DuplicateResourceException("Parcel", "tracking number", tracking)
        update_data["tracking_number"] = tracking

    changed_fields = _changes(db_parcel, update_data)
    for key, value in update_data.items():
        setattr(db_parcel, key, value)
    db.add(db_parcel)
    db.commit()
    db.refresh(db_parcel)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="parcel", entity_id=db_parcel.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_parcel


def collect_parcel(db: Session, db_parcel: models.ParcelLog, actor_id: Optional[int] = None) -> models.ParcelLog:
    if db_parcel.status != ParcelStatus.RECEIVED:
        raise InvalidStateException("parcel", str(db_parcel.status), "collect")
    db_parcel.status = ParcelStatus.COLLECTED
    db_parcel.collected_at = utcnow()
    db.add(db_parcel)
    db.commit()
    db.refresh(db_parcel)
    logger.info(f"Parcel {db_parcel.id} collected")
    create_audit_log(db, actor_id=actor_id, entity="parcel", entity_id=db_parcel.id,
                     action=constants.ACTION_COLLECT, data={"collected_at": db_parcel.collected_at})
    return db_parcel


def return_parcel(db: Session, db_parcel: models.ParcelLog, actor_id: Optional[int] = None) -> models.ParcelLog:
    if db_parcel.status != ParcelStatus.RECEIVED:
        raise InvalidStateException("parcel", str(db_parcel.status), "return")
    db_parcel.status = ParcelStatus.RETURNED
    db.add(db_parcel)
    db.commit()
    db.refresh(db_parcel)
    create_audit_log(db, actor_id=actor_id, entity="parcel", entity_id=db_parcel.id,
                     action=constants.ACTION_RETURN, data={"sender": db_parcel.sender})
    return db_parcel


def delete_parcel(db: Session, db_parcel: models.ParcelLog, actor_id: Optional[int] = None) -> models.ParcelLog:
    parcel_id = db_parcel.id
    db.delete(db_parcel)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="parcel", entity_id=parcel_id,
                     action=constants.ACTION_DELETE, data={"sender": db_parcel.sender})
    return db_parcel


# ------------- Appointment CRUD -------------

OPEN_APPOINTMENT_STATUSES = (
    AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.SCHEDULED,
)

# action -> (statuses it may start from, resulting status)
APPOINTMENT_TRANSITIONS = {
    AppointmentAction.CONFIRM: ((AppointmentStatus.PENDING,), AppointmentStatus.CONFIRMED),
    AppointmentAction.SCHEDULE: ((AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED), AppointmentStatus.SCHEDULED),
    AppointmentAction.CHECK_IN: (OPEN_APPOINTMENT_STATUSES, AppointmentStatus.COMPLETED),
    AppointmentAction.CHECK_OUT: ((AppointmentStatus.COMPLETED,), AppointmentStatus.COMPLETED),
    AppointmentAction.CANCEL: (OPEN_APPOINTMENT_STATUSES, AppointmentStatus.CANCELLED),
    AppointmentAction.NO_SHOW: (OPEN_APPOINTMENT_STATUSES, AppointmentStatus.NO_SHOW),
}


def _apply_appointment_hooks(db_appointment: models.Appointment):
    now = utcnow()
    if db_appointment.visitor_arrived and db_appointment.check_in_time is None:
        db_appointment.check_in_time = now
        db_appointment.status = AppointmentStatus.COMPLETED
    if db_appointment.send_reminder and not db_appointment.reminder_sent:
        db_appointment.reminder_sent = True
        db_appointment.reminder_sent_at = now


def get_appointment(db: Session, appointment_id: int) -> Optional[models.Appointment]:
    return db.query(models.Appointment).options(
        selectinload(models.Appointment.employee_to_meet)
    ).filter(models.Appointment.id == appointment_id).first()


def get_appointments(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    day: Optional[date] = None,
    employee_id: Optional[int] = None,
    search: Optional[str] = None,
    upcoming: bool = False,
) -> dict:
    query = db.query(models.Appointment).options(selectinload(models.Appointment.employee_to_meet))
    if status and status != "all":
        query = query.filter(models.Appointment.status == AppointmentStatus(status))
    if day:
        start, end = day_bounds(day)
        query = query.filter(models.Appointment.scheduled_time >= start, models.Appointment.scheduled_time < end)
    if employee_id is not None:
        query = query.filter(models.Appointment.employee_to_meet_id == employee_id)
    if search:
        query = query.filter(search_filter(
            search,
            models.Appointment.visitor_name, models.Appointment.company,
            models.Appointment.email, models.Appointment.purpose,
        ))
    if upcoming:
        query = query.filter(
            models.Appointment.scheduled_time >= utcnow(),
            models.Appointment.status.in_([AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED]),
        )
    return paginate(query.order_by(models.Appointment.scheduled_time.asc()), page, limit)


def create_appointment(db: Session, appointment_in: schemas.AppointmentCreate, actor_id: Optional[int] = None) -> models.Appointment:
    data = appointment_in.model_dump()
    employee = get_employee_or_404(db, data["employee_to_meet_id"])
    if not data.get("employee_to_meet_text"):
        data["employee_to_meet_text"] = employee.name

    db_appointment = models.Appointment(**data, created_by_id=actor_id, updated_by_id=actor_id)
    _apply_appointment_hooks(db_appointment)
    db.add(db_appointment)
    db.commit()
    db.refresh(db_appointment)
    create_audit_log(db, actor_id=actor_id, entity="appointment", entity_id=db_appointment.id,
                     action=constants.ACTION_CREATE,
                     data={"visitor_name": db_appointment.visitor_name, "scheduled_time": db_appointment.scheduled_time})
    return db_appointment


def update_appointment(db: Session, db_appointment: models.Appointment, appointment_in: schemas.AppointmentUpdate, actor_id: Optional[int] = None) -> models.Appointment:
    update_data = appointment_in.model_dump(exclude_unset=True)
    if update_data.get("employee_to_meet_id") is not None:
        get_employee_or_404(db, update_data["employee_to_meet_id"])

    changed_fields = _changes(db_appointment, update_data)
    for key, value in update_data.items():
        setattr(db_appointment, key, value)
    db_appointment.updated_by_id = actor_id
    _apply_appointment_hooks(db_appointment)

    db.add(db_appointment)
    db.commit()
    db.refresh(db_appointment)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="appointment", entity_id=db_appointment.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_appointment


def apply_appointment_action(db: Session, db_appointment: models.Appointment, action: AppointmentAction, actor_id: Optional[int] = None) -> models.Appointment:
    allowed_from, target = APPOINTMENT_TRANSITIONS[action]
    current = db_appointment.status
    if current not in allowed_from:
        raise InvalidStateException("appointment", str(current), str(action))

    now = utcnow()
    if action == AppointmentAction.CHECK_OUT:
        if db_appointment.check_in_time is None or db_appointment.check_out_time is not None:
            raise InvalidStateException("appointment", str(current), str(action),
                                        detail={"check_in_time": db_appointment.check_in_time,
                                                "check_out_time": db_appointment.check_out_time})
        db_appointment.check_out_time = now
    elif action == AppointmentAction.CHECK_IN:
        db_appointment.visitor_arrived = True
        db_appointment.check_in_time = now

    db_appointment.status = target
    db_appointment.updated_by_id = actor_id
    db.add(db_appointment)
    db.commit()
    db.refresh(db_appointment)
    logger.info(f"Appointment {db_appointment.id}: {action} ({current} -> {target})")
    create_audit_log(db, actor_id=actor_id, entity="appointment", entity_id=db_appointment.id,
                     action=constants.ACTION_STATUS,
                     data={"action": action, "old": current, "new": target})
    return db_appointment


def delete_appointment(db: Session, db_appointment: models.Appointment, actor_id: Optional[int] = None) -> models.Appointment:
    appointment_id = db_appointment.id
    db.delete(db_appointment)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="appointment", entity_id=appointment_id,
                     action=constants.ACTION_DELETE, data={"visitor_name": db_appointment.visitor_name})
    return db_appointment


# ------------- Client CRUD -------------

def get_client(db: Session, client_id: int) -> Optional[models.Client]:
    return db.query(models.Client).options(
        selectinload(models.Client.assigned_employee)
    ).filter(models.Client.id == client_id).first()


def get_clients(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: Optional[models.ClientStatus] = None,
    industry: Optional[models.ClientIndustry] = None,
    search: Optional[str] = None,
) -> dict:
    query = db.query(models.Client).options(selectinload(models.Client.assigned_employee))
    if status:
        query = query.filter(models.Client.status == status)
    if industry:
        query = query.filter(models.Client.industry == industry)
    if search:
        query = query.filter(search_filter(search, models.Client.company_name, models.Client.contact_person, models.Client.email))
    return paginate(query.order_by(models.Client.company_name), page, limit)


def create_client(db: Session, client_in: schemas.ClientCreate, actor_id: Optional[int] = None) -> models.Client:
    data = client_in.model_dump()
    if data.get("assigned_employee_id") is not None:
        get_employee_or_404(db, data["assigned_employee_id"])
    db_client = models.Client(**data)
    db.add(db_client)
    db.commit()
    db.refresh(db_client)
    create_audit_log(db, actor_id=actor_id, entity="client", entity_id=db_client.id,
                     action=constants.ACTION_CREATE, data={"company_name": db_client.company_name})
    return db_client


def update_client(db: Session, db_client: models.Client, client_in: schemas.ClientUpdate, actor_id: Optional[int] = None) -> models.Client:
    update_data = client_in.model_dump(exclude_unset=True)
    if update_data.get("assigned_employee_id") is not None:
        get_employee_or_404(db, update_data["assigned_employee_id"])

    changed_fields = _changes(db_client, update_data)
    for key, value in update_data.items():
        setattr(db_client, key, value)
    db.add(db_client)
    db.commit()
    db.refresh(db_client)
    if changed_fields:
        create_audit_log(db, actor_id=actor_id, entity="client", entity_id=db_client.id,
                         action=constants.ACTION_UPDATE, data=changed_fields)
    return db_client


def delete_client(db: Session, db_client: models.Client, actor_id: Optional[int] = None) -> models.Client:
    client_id = db_client.id
    db.delete(db_client)
    db.commit()
    create_audit_log(db, actor_id=actor_id, entity="client", entity_id=client_id,
                     action=constants.ACTION_DELETE, data={"company_name": db_client.company_name})
    return db_client
