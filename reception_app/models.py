from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum, Text, JSON, DateTime, Date, Float
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import relationship
from datetime import datetime, date, timedelta, timezone
import enum

from .config import settings
from .database import Base
from . import constants


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value):
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def enum_column(enum_cls, name: str, **kwargs) -> Column:
    """Enum column persisted by value ("checked-in") rather than member name."""
    return Column(
        Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e]),
        **kwargs
    )


class UserRole(str, enum.Enum):
    ADMIN = constants.ADMIN_ROLE_CODE
    RECEPTION = constants.RECEPTION_ROLE_CODE
    SECURITY = constants.SECURITY_ROLE_CODE
    EMPLOYEE = constants.EMPLOYEE_ROLE_CODE

    def __str__(self) -> str:
        return self.value


class EmployeeDepartment(str, enum.Enum):
    IT = "it"
    HR = "hr"
    FINANCE = "finance"
    OPERATIONS = "operations"
    SALES = "sales"

    def __str__(self) -> str:
        return self.value


class VisitorStatus(str, enum.Enum):
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    EXPECTED = "expected"

    def __str__(self) -> str:
        return self.value


class VehicleType(str, enum.Enum):
    COMPANY_CAR = "company-car"
    EMPLOYEE_PERSONAL = "employee-personal"
    VISITOR = "visitor"
    DELIVERY = "delivery"

    def __str__(self) -> str:
        return self.value


class ServiceStatus(str, enum.Enum):
    NORMAL = "normal"
    MAINTENANCE = "maintenance"
    OVERDUE = "overdue"

    def __str__(self) -> str:
        return self.value


class TravelStatus(str, enum.Enum):
    DEPARTED = "departed"
    RETURNED = "returned"
    DELAYED = "delayed"

    def __str__(self) -> str:
        return self.value


class SenderType(str, enum.Enum):
    SUPPLIER = "supplier"
    EMPLOYEE = "employee"
    CLIENT = "client"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class ParcelStatus(str, enum.Enum):
    RECEIVED = "received"
    COLLECTED = "collected"
    RETURNED = "returned"

    def __str__(self) -> str:
        return self.value


class AppointmentDepartment(str, enum.Enum):
    IT = "IT"
    SALES = "Sales"
    MARKETING = "Marketing"
    LEGAL = "Legal"
    EXECUTIVE = "Executive"
    HR = "HR"
    FINANCE = "Finance"
    OPERATIONS = "Operations"

    def __str__(self) -> str:
        return self.value


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"

    def __str__(self) -> str:
        return self.value


class AppointmentType(str, enum.Enum):
    MEETING = "meeting"
    INTERVIEW = "interview"
    DELIVERY = "delivery"
    MAINTENANCE = "maintenance"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class AppointmentAction(str, enum.Enum):
    CONFIRM = "confirm"
    SCHEDULE = "schedule"
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    CANCEL = "cancel"
    NO_SHOW = "no-show"

    def __str__(self) -> str:
        return self.value


class ClientIndustry(str, enum.Enum):
    TECHNOLOGY = "technology"
    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    RETAIL = "retail"
    MANUFACTURING = "manufacturing"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"

    def __str__(self) -> str:
        return self.value


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = enum_column(UserRole, "user_role", nullable=False, default=UserRole.EMPLOYEE)
    department = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    audit_logs = relationship("AuditLog", back_populates="actor")

    def __str__(self):
        return f"{self.name} <{self.email}>"

    @property
    def is_locked(self) -> bool:
        return self.locked_until is not None and self.locked_until > utcnow()


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    employee_id = Column(String, unique=True, index=True, nullable=False)
    department = enum_column(EmployeeDepartment, "employee_department", nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    visitors = relationship("Visitor", back_populates="employee_to_meet")
    phone_calls = relationship("PhoneCall", back_populates="employee")
    travel_logs = relationship("TravelLog", back_populates="employee")
    parcels = relationship("ParcelLog", back_populates="recipient")
    appointments = relationship("Appointment", back_populates="employee_to_meet")
    clients = relationship("Client", back_populates="assigned_employee")

    def __str__(self):
        return f"{self.name} ({self.employee_id})"


class Visitor(Base):
    __tablename__ = "visitors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=False)
    company = Column(String, nullable=True)
    purpose = Column(String, nullable=False)
    employee_to_meet_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    employee_to_meet_name = Column(String, nullable=True)
    check_in_time = Column(DateTime, default=utcnow, index=True)
    check_out_time = Column(DateTime, nullable=True)
    status = enum_column(VisitorStatus, "visitor_status", nullable=False, default=VisitorStatus.CHECKED_IN)
    notes = Column(Text, nullable=True)
    badge_number = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    employee_to_meet = relationship("Employee", back_populates="visitors")

    def __str__(self):
        return self.name

    @property
    def duration_minutes(self):
        if self.check_in_time and self.check_out_time:
            return round((self.check_out_time - self.check_in_time).total_seconds() / 60)
        return None


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    registration_number = Column(String, unique=True, index=True, nullable=False)
    vehicle_type = enum_column(VehicleType, "vehicle_type", nullable=False)
    owner_name = Column(String, nullable=False)
    owner_phone = Column(String, nullable=True)
    purpose = Column(String, nullable=True)
    entry_time = Column(DateTime, default=utcnow, index=True)
    exit_time = Column(DateTime, nullable=True)
    current_mileage = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    security_guard = Column(String, default=constants.DEFAULT_SECURITY_GUARD)
    last_service_mileage = Column(Integer, nullable=True)
    last_service_date = Column(Date, nullable=True)

    mileage_records = relationship(
        "MileageRecord",
        back_populates="vehicle",
        cascade="all, delete-orphan",
        order_by="MileageRecord.recorded_at"
    )

    def __str__(self):
        return self.registration_number

    @property
    def is_parked(self) -> bool:
        return self.exit_time is None

    @property
    def km_since_service(self) -> int:
        return (self.current_mileage or 0) - (self.last_service_mileage or 0)

    @property
    def next_service_mileage(self) -> int:
        return (self.last_service_mileage or 0) + settings.service_interval_km

    @property
    def next_service_date(self):
        if self.last_service_date is None:
            return None
        return self.last_service_date + timedelta(days=settings.service_interval_days)

    def get_service_status(self, today: date = None) -> ServiceStatus:
        today = today or utcnow().date()
        due_date = self.next_service_date

        if self.km_since_service >= settings.service_interval_km:
            return ServiceStatus.OVERDUE
        if due_date is not None and today > due_date:
            return ServiceStatus.OVERDUE

        km_left = settings.service_interval_km - self.km_since_service
        if km_left <= settings.service_warning_km:
            return ServiceStatus.MAINTENANCE
        if due_date is not None and (due_date - today).days <= settings.service_warning_days:
            return ServiceStatus.MAINTENANCE
        return ServiceStatus.NORMAL

    @property
    def service_status(self) -> ServiceStatus:
        return self.get_service_status()


class MileageRecord(Base):
    __tablename__ = "mileage_records"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    reading = Column(Integer, nullable=False)
    distance = Column(Integer, nullable=False, default=0)
    recorded_at = Column(DateTime, default=utcnow)
    recorded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    vehicle = relationship("Vehicle", back_populates="mileage_records")


class PhoneCall(Base):
    __tablename__ = "phone_calls"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    caller_name = Column(String, nullable=True)
    caller_number = Column(String, nullable=False)
    purpose = Column(String, nullable=False)
    start_time = Column(DateTime, default=utcnow, index=True)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)
    cost = Column(Float, nullable=True)

    employee = relationship("Employee", back_populates="phone_calls")


class TravelLog(Base):
    __tablename__ = "travel_logs"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    destination = Column(String, nullable=False)
    purpose = Column(String, nullable=False)
    departure_time = Column(DateTime, nullable=False, index=True)
    expected_return = Column(DateTime, nullable=True)
    actual_return = Column(DateTime, nullable=True)
    status = enum_column(TravelStatus, "travel_status", nullable=False, default=TravelStatus.DEPARTED)

    employee = relationship("Employee", back_populates="travel_logs")

    @property
    def is_overdue(self) -> bool:
        return (
            self.status != TravelStatus.RETURNED
            and self.actual_return is None
            and self.expected_return is not None
            and self.expected_return < utcnow()
        )


class ParcelLog(Base):
    __tablename__ = "parcel_logs"

    id = Column(Integer, primary_key=True, index=True)
    tracking_number = Column(String, unique=True, index=True, nullable=True)
    sender = Column(String, nullable=False)
    sender_type = enum_column(SenderType, "sender_type", nullable=False)
    recipient_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    description = Column(String, nullable=False)
    received_at = Column(DateTime, default=utcnow, index=True)
    collected_at = Column(DateTime, nullable=True)
    status = enum_column(ParcelStatus, "parcel_status", nullable=False, default=ParcelStatus.RECEIVED)

    recipient = relationship("Employee", back_populates="parcels")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    visitor_name = Column(String, nullable=False, index=True)
    company = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    purpose = Column(String, nullable=False)
    employee_to_meet_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    employee_to_meet_text = Column(String, nullable=True)
    department = enum_column(AppointmentDepartment, "appointment_department", nullable=False)
    scheduled_time = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=constants.APPOINTMENT_DEFAULT_DURATION)
    status = enum_column(AppointmentStatus, "appointment_status", nullable=False, default=AppointmentStatus.PENDING)
    appointment_type = enum_column(AppointmentType, "appointment_type", nullable=False, default=AppointmentType.MEETING)
    notes = Column(Text, nullable=True)
    visitor_arrived = Column(Boolean, default=False, nullable=False)
    check_in_time = Column(DateTime, nullable=True)
    check_out_time = Column(DateTime, nullable=True)
    send_reminder = Column(Boolean, default=True, nullable=False)
    reminder_sent = Column(Boolean, default=False, nullable=False)
    reminder_sent_at = Column(DateTime, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    employee_to_meet = relationship("Employee", back_populates="appointments")
    created_by = relationship("User", foreign_keys=[created_by_id])
    updated_by = relationship("User", foreign_keys=[updated_by_id])


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False, index=True)
    contact_person = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    address = Column(Text, nullable=True)
    city = Column(String, nullable=True)
    country = Column(String, nullable=True)
    industry = enum_column(ClientIndustry, "client_industry", nullable=True)
    client_since = Column(Date, nullable=True)
    status = enum_column(ClientStatus, "client_status", nullable=False, default=ClientStatus.ACTIVE)
    notes = Column(Text, nullable=True)
    assigned_employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)

    assigned_employee = relationship("Employee", back_populates="clients")

    def __str__(self):
        return self.company_name


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    entity = Column(String, index=True)
    entity_id = Column(Integer, nullable=True)
    action = Column(String, index=True)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    timestamp = Column(DateTime, default=utcnow, index=True)
    data = Column(MutableDict.as_mutable(JSON), nullable=True)

    actor = relationship("User", back_populates="audit_logs")
