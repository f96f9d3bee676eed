from __future__ import annotations
from typing import Optional, List, Any, ClassVar, Generic, Tuple, TypeVar, Dict
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, date

from . import constants
from .models import (
    UserRole, EmployeeDepartment, VisitorStatus, VehicleType, ServiceStatus,
    TravelStatus, SenderType, ParcelStatus, AppointmentDepartment,
    AppointmentStatus, AppointmentType, AppointmentAction, ClientIndustry,
    ClientStatus, to_naive_utc,
)

T = TypeVar("T")


class UTCModel(BaseModel):
    """Normalises incoming datetimes to naive UTC"""

    @field_validator("*", mode="after")
    @classmethod
    def _naive_utc(cls, v):
        return to_naive_utc(v)


class PatchModel(BaseModel):
    """Partial update body. Fields named in ``not_nullable`` may be left out, never sent as null."""

    not_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        nulled = [
            name for name in self.not_nullable
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self


class UTCPatchModel(UTCModel, PatchModel):
    pass


# ------------- Pagination -------------
class Pagination(BaseModel):
    total_docs: int
    total_pages: int
    page: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class Page(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


# ------------- Auth Schemas -------------
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str
    password: str


# ------------- User Schemas -------------
class UserBase(BaseModel):
    email: str
    name: str
    role: UserRole = UserRole.EMPLOYEE
    department: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserRegister(BaseModel):
    email: str
    name: str
    password: str = Field(..., min_length=8)
    department: Optional[str] = None
    phone: Optional[str] = None


class UserUpdate(PatchModel):
    not_nullable = ("email", "name", "role", "is_active")

    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[UserRole] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8)


class User(UserBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ------------- Employee Schemas -------------
class EmployeeBase(BaseModel):
    name: str
    employee_id: str
    department: EmployeeDepartment
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(PatchModel):
    not_nullable = ("name", "employee_id", "department", "is_active")

    name: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[EmployeeDepartment] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class Employee(EmployeeBase):
    id: int

    class Config:
        from_attributes = True


class EmployeeSummary(BaseModel):
    """Simplified employee embedded in log records"""
    id: int
    name: str
    employee_id: str
    department: EmployeeDepartment

    class Config:
        from_attributes = True


# ------------- Visitor Schemas -------------
class VisitorBase(UTCModel):
    name: str
    email: Optional[str] = None
    phone: str
    company: Optional[str] = None
    purpose: str
    employee_to_meet_id: Optional[int] = None
    employee_to_meet_name: Optional[str] = None
    notes: Optional[str] = None
    badge_number: Optional[str] = None


class VisitorCreate(VisitorBase):
    status: VisitorStatus = VisitorStatus.CHECKED_IN
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None


class VisitorUpdate(UTCPatchModel):
    not_nullable = ("name", "phone", "purpose", "status")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    purpose: Optional[str] = None
    employee_to_meet_id: Optional[int] = None
    employee_to_meet_name: Optional[str] = None
    status: Optional[VisitorStatus] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    badge_number: Optional[str] = None


class Visitor(VisitorBase):
    id: int
    status: VisitorStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    employee_to_meet: Optional[EmployeeSummary] = None

    class Config:
        from_attributes = True


# ------------- Vehicle Schemas -------------
class VehicleBase(UTCModel):
    registration_number: str
    vehicle_type: VehicleType
    owner_name: str
    owner_phone: Optional[str] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None
    security_guard: str = constants.DEFAULT_SECURITY_GUARD


class VehicleCreate(VehicleBase):
    entry_time: Optional[datetime] = None
    current_mileage: Optional[int] = Field(None, ge=0)
    last_service_mileage: Optional[int] = Field(None, ge=0)
    last_service_date: Optional[date] = None


class VehicleUpdate(UTCPatchModel):
    not_nullable = ("registration_number", "vehicle_type", "owner_name", "security_guard")

    registration_number: Optional[str] = None
    vehicle_type: Optional[VehicleType] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None
    security_guard: Optional[str] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    last_service_mileage: Optional[int] = Field(None, ge=0)
    last_service_date: Optional[date] = None


class VehicleMovement(BaseModel):
    """Gate movement payload with an optional odometer reading"""
    mileage: Optional[int] = Field(None, ge=0)


class MileageReading(BaseModel):
    reading: int = Field(..., ge=0)


class MileageRecord(BaseModel):
    id: int
    vehicle_id: int
    reading: int
    distance: int
    recorded_at: datetime

    class Config:
        from_attributes = True


class Vehicle(VehicleBase):
    id: int
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    current_mileage: Optional[int] = None
    last_service_mileage: Optional[int] = None
    last_service_date: Optional[date] = None
    is_parked: bool
    km_since_service: int
    next_service_mileage: int
    next_service_date: Optional[date] = None
    service_status: ServiceStatus

    class Config:
        from_attributes = True


class VehicleServiceInfo(BaseModel):
    id: int
    registration_number: str
    current_mileage: Optional[int] = None
    km_since_service: int
    next_service_mileage: int
    next_service_date: Optional[date] = None
    service_status: ServiceStatus

    class Config:
        from_attributes = True


class FleetMileageSummary(BaseModel):
    total_mileage: int
    average_distance: float
    vehicles_needing_service: int
    vehicles: List[VehicleServiceInfo]


# ------------- Phone Call Schemas -------------
class PhoneCallBase(UTCModel):
    employee_id: int
    caller_name: Optional[str] = None
    caller_number: str
    purpose: str
    cost: Optional[float] = Field(None, ge=0)


class PhoneCallCreate(PhoneCallBase):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, description="Used only to derive end_time when it is missing")


class PhoneCallUpdate(UTCPatchModel):
    not_nullable = ("employee_id", "caller_number", "purpose", "start_time")

    employee_id: Optional[int] = None
    caller_name: Optional[str] = None
    caller_number: Optional[str] = None
    purpose: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)


class PhoneCall(PhoneCallBase):
    id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    employee: Optional[EmployeeSummary] = None

    class Config:
        from_attributes = True


# ------------- Travel Log Schemas -------------
class TravelLogBase(UTCModel):
    employee_id: int
    destination: str
    purpose: str
    departure_time: datetime
    expected_return: Optional[datetime] = None


class TravelLogCreate(TravelLogBase):
    actual_return: Optional[datetime] = None
    status: Optional[TravelStatus] = None


class TravelLogUpdate(UTCPatchModel):
    not_nullable = ("employee_id", "destination", "purpose", "departure_time", "status")

    employee_id: Optional[int] = None
    destination: Optional[str] = None
    purpose: Optional[str] = None
    departure_time: Optional[datetime] = None
    expected_return: Optional[datetime] = None
    actual_return: Optional[datetime] = None
    status: Optional[TravelStatus] = None


class TravelLog(TravelLogBase):
    id: int
    actual_return: Optional[datetime] = None
    status: TravelStatus
    is_overdue: bool
    employee: Optional[EmployeeSummary] = None

    class Config:
        from_attributes = True


class DelayedSweepResult(BaseModel):
    updated: int


# ------------- Parcel Schemas -------------
class ParcelLogBase(UTCModel):
    tracking_number: Optional[str] = None
    sender: str
    sender_type: SenderType
    recipient_id: int
    description: str


class ParcelLogCreate(ParcelLogBase):
    received_at: Optional[datetime] = None


class ParcelLogUpdate(UTCPatchModel):
    not_nullable = ("sender", "sender_type", "recipient_id", "description", "received_at")

    tracking_number: Optional[str] = None
    sender: Optional[str] = None
    sender_type: Optional[SenderType] = None
    recipient_id: Optional[int] = None
    description: Optional[str] = None
    received_at: Optional[datetime] = None


class ParcelLog(ParcelLogBase):
    id: int
    received_at: datetime
    collected_at: Optional[datetime] = None
    status: ParcelStatus
    recipient: Optional[EmployeeSummary] = None

    class Config:
        from_attributes = True


# ------------- Appointment Schemas -------------
class AppointmentBase(UTCModel):
    visitor_name: str
    company: str
    email: str
    phone: str
    purpose: str
    employee_to_meet_id: int
    employee_to_meet_text: Optional[str] = None
    department: AppointmentDepartment
    scheduled_time: datetime
    duration: int = Field(
        constants.APPOINTMENT_DEFAULT_DURATION,
        ge=constants.APPOINTMENT_MIN_DURATION,
        le=constants.APPOINTMENT_MAX_DURATION,
    )
    appointment_type: AppointmentType = AppointmentType.MEETING
    notes: Optional[str] = None
    send_reminder: bool = True


class AppointmentCreate(AppointmentBase):
    status: AppointmentStatus = AppointmentStatus.PENDING
    visitor_arrived: bool = False


class AppointmentUpdate(UTCPatchModel):
    not_nullable = (
        "visitor_name", "company", "email", "phone", "purpose", "employee_to_meet_id",
        "department", "scheduled_time", "duration", "status", "appointment_type",
        "visitor_arrived", "send_reminder",
    )

    visitor_name: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    purpose: Optional[str] = None
    employee_to_meet_id: Optional[int] = None
    employee_to_meet_text: Optional[str] = None
    department: Optional[AppointmentDepartment] = None
    scheduled_time: Optional[datetime] = None
    duration: Optional[int] = Field(
        None,
        ge=constants.APPOINTMENT_MIN_DURATION,
        le=constants.APPOINTMENT_MAX_DURATION,
    )
    status: Optional[AppointmentStatus] = None
    appointment_type: Optional[AppointmentType] = None
    notes: Optional[str] = None
    visitor_arrived: Optional[bool] = None
    send_reminder: Optional[bool] = None


class AppointmentActionRequest(BaseModel):
    action: AppointmentAction


class Appointment(AppointmentBase):
    id: int
    status: AppointmentStatus
    visitor_arrived: bool
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    reminder_sent: bool
    reminder_sent_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    updated_by_id: Optional[int] = None
    employee_to_meet: Optional[EmployeeSummary] = None

    class Config:
        from_attributes = True


# ------------- Client Schemas -------------
class ClientBase(BaseModel):
    company_name: str
    contact_person: str
    email: str
    phone: str
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    industry: Optional[ClientIndustry] = None
    client_since: Optional[date] = None
    status: ClientStatus = ClientStatus.ACTIVE
    notes: Optional[str] = None
    assigned_employee_id: Optional[int] = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(PatchModel):
    not_nullable = ("company_name", "contact_person", "email", "phone", "status")

    company_name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    industry: Optional[ClientIndustry] = None
    client_since: Optional[date] = None
    status: Optional[ClientStatus] = None
    notes: Optional[str] = None
    assigned_employee_id: Optional[int] = None


class Client(ClientBase):
    id: int
    assigned_employee: Optional[EmployeeSummary] = None

    class Config:
        from_attributes = True


# ------------- Dashboard Schemas -------------
class StatCard(BaseModel):
    value: int
    change: str


class DashboardStats(BaseModel):
    today_visitors: StatCard
    parked_vehicles: StatCard
    pending_parcels: StatCard
    today_calls: StatCard
    active_travel_logs: StatCard
    security_checks: StatCard


class Activity(BaseModel):
    id: str
    time: str
    activity: str
    type: str
    timestamp: datetime


# ------------- Report Schemas -------------
class CallBucket(BaseModel):
    key: str
    calls: int
    minutes: int
    cost: float


class CallReport(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    total_calls: int
    total_minutes: int
    total_cost: float
    by_department: List[CallBucket]
    by_month: List[CallBucket]


class CountBucket(BaseModel):
    key: str
    count: int


class TravelReport(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    total_trips: int
    by_status: Dict[str, int]
    top_destinations: List[CountBucket]
    by_month: List[CountBucket]
    average_trip_hours: Optional[float] = None


class VisitorReport(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    total_visitors: int
    by_day: List[CountBucket]
    average_visit_minutes: Optional[float] = None
    top_companies: List[CountBucket]


# ------------- AuditLog Schemas -------------
class AuditLog(BaseModel):
    id: int
    entity: str
    entity_id: Optional[int] = None
    action: str
    actor_id: Optional[int] = None
    timestamp: datetime
    data: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class AuditPurgeResult(BaseModel):
    deleted: int
    cutoff: datetime
