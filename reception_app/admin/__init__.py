from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Tuple

from sqladmin import Admin, ModelView
from sqladmin.filters import (
    AllUniqueStringValuesFilter,
    BooleanFilter,
    ForeignKeyFilter,
    get_column_obj,
)
from sqlalchemy.sql.expression import Select
from starlette.requests import Request

from ..config import settings
from ..database import engine
from ..models import (
    User, Employee, Visitor, Vehicle, MileageRecord, PhoneCall,
    TravelLog, ParcelLog, Appointment, Client, AuditLog, utcnow
)
from .auth import AdminAuthBackend


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


# value -> (label, now -> (start, end)); all bounds naive UTC, end exclusive
PERIODS = {
    "today": ("Today", lambda now: (_midnight(now), _midnight(now) + timedelta(days=1))),
    "yesterday": ("Yesterday", lambda now: (_midnight(now) - timedelta(days=1), _midnight(now))),
    "week": ("Last 7 days", lambda now: (now - timedelta(days=7), now)),
    "month": ("Last 30 days", lambda now: (now - timedelta(days=30), now)),
}


class RelativeDateFilter:
    """Sidebar filter narrowing a timestamp column to a period ending now."""

    def __init__(self, column, title: Optional[str] = None, parameter_name: Optional[str] = None):
        name = column.key
        self.column = column
        self.title = title or name.replace("_", " ").title()
        self.parameter_name = parameter_name or name

    async def lookups(self, request: Request, model: Any, run_query: Callable[[Select], Any]) -> List[Tuple[str, str]]:
        return [("", "All")] + [(value, label) for value, (label, _) in PERIODS.items()]

    async def get_filtered_query(self, query: Select, value: Any, model: Any) -> Select:
        period = PERIODS.get(value)
        if period is None:
            return query
        start, end = period[1](utcnow())
        column = get_column_obj(self.column, model)
        return query.filter(column >= start, column < end)


class UserAdmin(ModelView, model=User):
    column_default_sort = 'id'
    column_list = [User.id, User.email, User.name, User.role, User.department, User.is_active, User.locked_until]
    column_searchable_list = [User.email, User.name]
    column_sortable_list = [User.id, User.email, User.name]
    column_filters = [
        BooleanFilter(User.is_active),
        AllUniqueStringValuesFilter(User.role),
    ]
    form_excluded_columns = [User.hashed_password, User.audit_logs, User.created_at]
    can_create = False


class EmployeeAdmin(ModelView, model=Employee):
    column_default_sort = 'name'
    column_list = [Employee.id, Employee.employee_id, Employee.name, Employee.department, Employee.email, Employee.is_active]
    column_searchable_list = [Employee.name, Employee.employee_id, Employee.email]
    column_sortable_list = [Employee.id, Employee.name, Employee.employee_id]
    column_filters = [
        BooleanFilter(Employee.is_active),
        AllUniqueStringValuesFilter(Employee.department),
    ]
    form_excluded_columns = [
        Employee.visitors, Employee.phone_calls, Employee.travel_logs,
        Employee.parcels, Employee.appointments, Employee.clients,
    ]


class VisitorAdmin(ModelView, model=Visitor):
    column_default_sort = [(Visitor.check_in_time, True)]
    column_list = [
        Visitor.id, Visitor.name, Visitor.company, Visitor.phone,
        Visitor.employee_to_meet_name, Visitor.status,
        Visitor.check_in_time, Visitor.check_out_time
    ]
    column_searchable_list = [Visitor.name, Visitor.company, Visitor.phone]
    column_sortable_list = [Visitor.id, Visitor.check_in_time, Visitor.check_out_time]
    column_filters = [
        AllUniqueStringValuesFilter(Visitor.status),
        ForeignKeyFilter(Visitor.employee_to_meet_id, Employee.name, foreign_model=Employee),
        RelativeDateFilter(Visitor.check_in_time, title="Check-in"),
    ]


class VehicleAdmin(ModelView, model=Vehicle):
    column_default_sort = [(Vehicle.entry_time, True)]
    column_list = [
        Vehicle.id, Vehicle.registration_number, Vehicle.vehicle_type, Vehicle.owner_name,
        Vehicle.entry_time, Vehicle.exit_time, Vehicle.current_mileage, Vehicle.last_service_date
    ]
    column_searchable_list = [Vehicle.registration_number, Vehicle.owner_name, Vehicle.purpose]
    column_sortable_list = [Vehicle.id, Vehicle.entry_time, Vehicle.current_mileage]
    column_filters = [
        AllUniqueStringValuesFilter(Vehicle.vehicle_type),
        RelativeDateFilter(Vehicle.entry_time, title="Entry"),
    ]
    form_excluded_columns = [Vehicle.mileage_records]


class MileageRecordAdmin(ModelView, model=MileageRecord):
    column_default_sort = [(MileageRecord.recorded_at, True)]
    column_list = [
        MileageRecord.id, MileageRecord.vehicle_id, MileageRecord.reading,
        MileageRecord.distance, MileageRecord.recorded_at
    ]
    column_filters = [
        ForeignKeyFilter(MileageRecord.vehicle_id, Vehicle.registration_number, foreign_model=Vehicle),
        RelativeDateFilter(MileageRecord.recorded_at, title="Recorded"),
    ]
    can_edit = False
    can_create = False


class PhoneCallAdmin(ModelView, model=PhoneCall):
    column_default_sort = [(PhoneCall.start_time, True)]
    column_list = [
        PhoneCall.id, PhoneCall.employee_id, PhoneCall.caller_name, PhoneCall.caller_number,
        PhoneCall.purpose, PhoneCall.start_time, PhoneCall.duration, PhoneCall.cost
    ]
    column_searchable_list = [PhoneCall.caller_name, PhoneCall.caller_number, PhoneCall.purpose]
    column_sortable_list = [PhoneCall.id, PhoneCall.start_time, PhoneCall.duration, PhoneCall.cost]
    column_filters = [
        ForeignKeyFilter(PhoneCall.employee_id, Employee.name, foreign_model=Employee),
        RelativeDateFilter(PhoneCall.start_time, title="Start"),
    ]
    form_excluded_columns = [PhoneCall.duration]


class TravelLogAdmin(ModelView, model=TravelLog):
    column_default_sort = [(TravelLog.departure_time, True)]
    column_list = [
        TravelLog.id, TravelLog.employee_id, TravelLog.destination, TravelLog.status,
        TravelLog.departure_time, TravelLog.expected_return, TravelLog.actual_return
    ]
    column_searchable_list = [TravelLog.destination, TravelLog.purpose]
    column_sortable_list = [TravelLog.id, TravelLog.departure_time]
    column_filters = [
        AllUniqueStringValuesFilter(TravelLog.status),
        ForeignKeyFilter(TravelLog.employee_id, Employee.name, foreign_model=Employee),
        RelativeDateFilter(TravelLog.departure_time, title="Departure"),
    ]


class ParcelLogAdmin(ModelView, model=ParcelLog):
    column_default_sort = [(ParcelLog.received_at, True)]
    column_list = [
        ParcelLog.id, ParcelLog.tracking_number, ParcelLog.sender, ParcelLog.sender_type,
        ParcelLog.recipient_id, ParcelLog.status, ParcelLog.received_at, ParcelLog.collected_at
    ]
    column_searchable_list = [ParcelLog.tracking_number, ParcelLog.sender, ParcelLog.description]
    column_sortable_list = [ParcelLog.id, ParcelLog.received_at]
    column_filters = [
        AllUniqueStringValuesFilter(ParcelLog.status),
        AllUniqueStringValuesFilter(ParcelLog.sender_type),
        RelativeDateFilter(ParcelLog.received_at, title="Received"),
    ]


class AppointmentAdmin(ModelView, model=Appointment):
    column_default_sort = [(Appointment.scheduled_time, True)]
    column_list = [
        Appointment.id, Appointment.visitor_name, Appointment.company, Appointment.department,
        Appointment.scheduled_time, Appointment.duration, Appointment.status, Appointment.appointment_type
    ]
    column_searchable_list = [Appointment.visitor_name, Appointment.company, Appointment.email, Appointment.purpose]
    column_sortable_list = [Appointment.id, Appointment.scheduled_time]
    column_filters = [
        AllUniqueStringValuesFilter(Appointment.status),
        AllUniqueStringValuesFilter(Appointment.department),
        ForeignKeyFilter(Appointment.employee_to_meet_id, Employee.name, foreign_model=Employee),
        RelativeDateFilter(Appointment.scheduled_time, title="Scheduled"),
    ]
    form_excluded_columns = [
        Appointment.created_by, Appointment.updated_by,
        Appointment.created_at, Appointment.updated_at,
    ]


class ClientAdmin(ModelView, model=Client):
    column_default_sort = 'company_name'
    column_list = [
        Client.id, Client.company_name, Client.contact_person, Client.email,
        Client.industry, Client.status, Client.client_since
    ]
    column_searchable_list = [Client.company_name, Client.contact_person, Client.email]
    column_sortable_list = [Client.id, Client.company_name, Client.client_since]
    column_filters = [
        AllUniqueStringValuesFilter(Client.status),
        AllUniqueStringValuesFilter(Client.industry),
    ]


class AuditLogAdmin(ModelView, model=AuditLog):
    column_default_sort = [(AuditLog.timestamp, True)]
    column_list = [
        AuditLog.id, AuditLog.entity, AuditLog.entity_id, AuditLog.action,
        AuditLog.actor_id, AuditLog.timestamp
    ]
    column_searchable_list = [AuditLog.entity, AuditLog.action]
    column_filters = [
        AllUniqueStringValuesFilter(AuditLog.entity),
        AllUniqueStringValuesFilter(AuditLog.action),
        RelativeDateFilter(AuditLog.timestamp, title="Logged"),
    ]
    column_sortable_list = [AuditLog.id, AuditLog.timestamp]
    can_edit = False
    can_create = False
    can_delete = False


ADMIN_VIEWS = (
    UserAdmin, EmployeeAdmin, VisitorAdmin, VehicleAdmin, MileageRecordAdmin,
    PhoneCallAdmin, TravelLogAdmin, ParcelLogAdmin, AppointmentAdmin,
    ClientAdmin, AuditLogAdmin,
)


def create_admin(app) -> Admin:
    """Mount the admin UI, restricted to admin accounts"""
    admin = Admin(
        app,
        engine,
        title=settings.api_title,
        authentication_backend=AdminAuthBackend(secret_key=settings.secret_key),
    )
    for view in ADMIN_VIEWS:
        admin.add_view(view)
    return admin
