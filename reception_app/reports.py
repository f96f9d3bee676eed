"""
Dashboard figures, period reports and CSV exports.

All calendar arithmetic is done on the UTC day, matching how timestamps
are stored.
"""
import csv
import enum
import io
import logging
from collections import Counter, OrderedDict
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from . import models, constants
from .crud import apply_date_range, day_bounds
from .error_handlers import ResourceNotFoundException
from .models import utcnow, VisitorStatus, TravelStatus, ParcelStatus

logger = logging.getLogger(__name__)


# ------------- Dashboard -------------

def percent_change(today: int, yesterday: int) -> int:
    if yesterday > 0:
        return round((today - yesterday) / yesterday * 100)
    return 100 if today > 0 else 0


def format_change(today: int, yesterday: int) -> str:
    change = percent_change(today, yesterday)
    return f"+{change}%" if change > 0 else f"{change}%"


def _count_between(db: Session, column, start: datetime, end: datetime) -> int:
    return db.query(column).filter(column >= start, column < end).count()


def get_dashboard_stats(db: Session, today: Optional[date] = None) -> dict:
    today = today or utcnow().date()
    today_start, today_end = day_bounds(today)
    yesterday_start, yesterday_end = day_bounds(today - timedelta(days=1))

    visitors_today = _count_between(db, models.Visitor.check_in_time, today_start, today_end)
    visitors_yesterday = _count_between(db, models.Visitor.check_in_time, yesterday_start, yesterday_end)
    calls_today = _count_between(db, models.PhoneCall.start_time, today_start, today_end)
    calls_yesterday = _count_between(db, models.PhoneCall.start_time, yesterday_start, yesterday_end)

    parked = db.query(models.Vehicle).filter(models.Vehicle.exit_time.is_(None)).count()
    pending_parcels = db.query(models.ParcelLog).filter(models.ParcelLog.status == ParcelStatus.RECEIVED).count()
    active_travel = db.query(models.TravelLog).filter(models.TravelLog.status == TravelStatus.DEPARTED).count()
    on_site = db.query(models.Visitor).filter(models.Visitor.status == VisitorStatus.CHECKED_IN).count()

    return {
        "today_visitors": {"value": visitors_today, "change": format_change(visitors_today, visitors_yesterday)},
        "parked_vehicles": {"value": parked, "change": f"{parked} active"},
        "pending_parcels": {"value": pending_parcels, "change": f"{pending_parcels} waiting"},
        "today_calls": {"value": calls_today, "change": format_change(calls_today, calls_yesterday)},
        "active_travel_logs": {"value": active_travel, "change": f"{active_travel} active"},
        "security_checks": {"value": on_site, "change": f"{on_site} total"},
    }


def _activity(kind: str, record_id: int, text: str, timestamp: datetime) -> dict:
    return {
        "id": f"{kind}-{record_id}",
        "time": timestamp.strftime(constants.ACTIVITY_TIME_FORMAT),
        "activity": text,
        "type": kind,
        "timestamp": timestamp,
    }


def _employee_name(employee) -> str:
    return employee.name if employee else "Unknown employee"


def get_recent_activities(db: Session) -> list[dict]:
    """Latest event of the most recent rows of each log, merged newest first."""
    per_source = constants.ACTIVITY_SOURCE_LIMIT
    activities = []

    for visitor in db.query(models.Visitor).order_by(models.Visitor.check_in_time.desc()).limit(per_source):
        if visitor.check_out_time:
            activities.append(_activity("visitor", visitor.id, f"{visitor.name} checked out", visitor.check_out_time))
        elif visitor.check_in_time:
            activities.append(_activity("visitor", visitor.id, f"{visitor.name} checked in", visitor.check_in_time))

    for vehicle in db.query(models.Vehicle).order_by(models.Vehicle.entry_time.desc()).limit(per_source):
        if vehicle.exit_time:
            activities.append(_activity("vehicle", vehicle.id, f"Vehicle {vehicle.registration_number} checked out", vehicle.exit_time))
        elif vehicle.entry_time:
            activities.append(_activity("vehicle", vehicle.id, f"Vehicle {vehicle.registration_number} checked in", vehicle.entry_time))

    for parcel in db.query(models.ParcelLog).order_by(models.ParcelLog.received_at.desc()).limit(per_source):
        if parcel.collected_at:
            activities.append(_activity("parcel", parcel.id, f"Parcel collected from {parcel.sender}", parcel.collected_at))
        else:
            activities.append(_activity("parcel", parcel.id, f"Parcel received from {parcel.sender}", parcel.received_at))

    travel_logs = db.query(models.TravelLog).options(
        selectinload(models.TravelLog.employee)
    ).order_by(models.TravelLog.departure_time.desc()).limit(per_source)
    for travel in travel_logs:
        name = _employee_name(travel.employee)
        if travel.actual_return:
            activities.append(_activity("travel", travel.id, f"{name} returned from {travel.destination}", travel.actual_return))
        else:
            activities.append(_activity("travel", travel.id, f"{name} departed for {travel.destination}", travel.departure_time))

    calls = db.query(models.PhoneCall).options(
        selectinload(models.PhoneCall.employee)
    ).order_by(models.PhoneCall.start_time.desc()).limit(per_source)
    for call in calls:
        caller = call.caller_name or call.caller_number
        activities.append(_activity("call", call.id, f"{_employee_name(call.employee)} made call to {caller}", call.start_time))

    activities.sort(key=lambda a: a["timestamp"], reverse=True)
    return activities[:constants.ACTIVITY_FEED_LIMIT]


# ------------- Period reports -------------

def _month_key(value: datetime) -> str:
    return value.strftime("%Y-%m")


def get_call_report(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None) -> dict:
    query = db.query(models.PhoneCall).options(selectinload(models.PhoneCall.employee))
    calls = apply_date_range(query, models.PhoneCall.start_time, date_from, date_to).order_by(models.PhoneCall.start_time).all()

    by_department = OrderedDict()
    by_month = OrderedDict()
    for call in calls:
        department = str(call.employee.department) if call.employee else "unknown"
        for buckets, key in ((by_department, department), (by_month, _month_key(call.start_time))):
            bucket = buckets.setdefault(key, {"key": key, "calls": 0, "minutes": 0, "cost": 0.0})
            bucket["calls"] += 1
            bucket["minutes"] += call.duration or 0
            bucket["cost"] = round(bucket["cost"] + (call.cost or 0), 2)

    return {
        "date_from": date_from,
        "date_to": date_to,
        "total_calls": len(calls),
        "total_minutes": sum(call.duration or 0 for call in calls),
        "total_cost": round(sum(call.cost or 0 for call in calls), 2),
        "by_department": sorted(by_department.values(), key=lambda b: b["key"]),
        "by_month": list(by_month.values()),
    }


def get_travel_report(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None) -> dict:
    query = apply_date_range(db.query(models.TravelLog), models.TravelLog.departure_time, date_from, date_to)
    trips = query.order_by(models.TravelLog.departure_time).all()

    by_status = {status.value: 0 for status in TravelStatus}
    by_month = Counter()
    destinations = Counter()
    trip_hours = []
    for trip in trips:
        by_status[trip.status.value] += 1
        by_month[_month_key(trip.departure_time)] += 1
        destinations[trip.destination.strip()] += 1
        if trip.actual_return:
            trip_hours.append((trip.actual_return - trip.departure_time).total_seconds() / 3600)

    return {
        "date_from": date_from,
        "date_to": date_to,
        "total_trips": len(trips),
        "by_status": by_status,
        "top_destinations": [
            {"key": name, "count": count}
            for name, count in destinations.most_common(constants.TOP_DESTINATIONS_LIMIT)
        ],
        "by_month": [{"key": key, "count": by_month[key]} for key in sorted(by_month)],
        "average_trip_hours": round(sum(trip_hours) / len(trip_hours), 1) if trip_hours else None,
    }


def get_visitor_report(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None) -> dict:
    query = apply_date_range(db.query(models.Visitor), models.Visitor.check_in_time, date_from, date_to)
    visitors = query.order_by(models.Visitor.check_in_time).all()

    by_day = Counter(visitor.check_in_time.date().isoformat() for visitor in visitors if visitor.check_in_time)
    companies = Counter(visitor.company.strip() for visitor in visitors if visitor.company and visitor.company.strip())
    durations = [visitor.duration_minutes for visitor in visitors if visitor.duration_minutes is not None]

    return {
        "date_from": date_from,
        "date_to": date_to,
        "total_visitors": len(visitors),
        "by_day": [{"key": key, "count": by_day[key]} for key in sorted(by_day)],
        "average_visit_minutes": round(sum(durations) / len(durations), 1) if durations else None,
        "top_companies": [
            {"key": name, "count": count}
            for name, count in companies.most_common(constants.TOP_COMPANIES_LIMIT)
        ],
    }


# ------------- CSV export -------------

def _employee_field(relation: str, field: str = "name"):
    def getter(row):
        related = getattr(row, relation)
        return getattr(related, field) if related else None
    return getter


def _attr(name: str):
    return lambda row: getattr(row, name)


# entity -> (model, timestamp column used for date filtering, [(header, getter), ...])
EXPORTS = {
    "visitors": (models.Visitor, models.Visitor.check_in_time, [
        ("id", _attr("id")),
        ("name", _attr("name")),
        ("email", _attr("email")),
        ("phone", _attr("phone")),
        ("company", _attr("company")),
        ("purpose", _attr("purpose")),
        ("employee_to_meet", lambda v: v.employee_to_meet.name if v.employee_to_meet else v.employee_to_meet_name),
        ("status", _attr("status")),
        ("check_in_time", _attr("check_in_time")),
        ("check_out_time", _attr("check_out_time")),
        ("duration_minutes", _attr("duration_minutes")),
        ("badge_number", _attr("badge_number")),
        ("notes", _attr("notes")),
    ]),
    "vehicles": (models.Vehicle, models.Vehicle.entry_time, [
        ("id", _attr("id")),
        ("registration_number", _attr("registration_number")),
        ("vehicle_type", _attr("vehicle_type")),
        ("owner_name", _attr("owner_name")),
        ("owner_phone", _attr("owner_phone")),
        ("purpose", _attr("purpose")),
        ("entry_time", _attr("entry_time")),
        ("exit_time", _attr("exit_time")),
        ("current_mileage", _attr("current_mileage")),
        ("service_status", _attr("service_status")),
        ("security_guard", _attr("security_guard")),
        ("notes", _attr("notes")),
    ]),
    "phone-calls": (models.PhoneCall, models.PhoneCall.start_time, [
        ("id", _attr("id")),
        ("employee", _employee_field("employee")),
        ("department", _employee_field("employee", "department")),
        ("caller_name", _attr("caller_name")),
        ("caller_number", _attr("caller_number")),
        ("purpose", _attr("purpose")),
        ("start_time", _attr("start_time")),
        ("end_time", _attr("end_time")),
        ("duration", _attr("duration")),
        ("cost", _attr("cost")),
    ]),
    "travel-logs": (models.TravelLog, models.TravelLog.departure_time, [
        ("id", _attr("id")),
        ("employee", _employee_field("employee")),
        ("department", _employee_field("employee", "department")),
        ("destination", _attr("destination")),
        ("purpose", _attr("purpose")),
        ("departure_time", _attr("departure_time")),
        ("expected_return", _attr("expected_return")),
        ("actual_return", _attr("actual_return")),
        ("status", _attr("status")),
    ]),
    "parcels": (models.ParcelLog, models.ParcelLog.received_at, [
        ("id", _attr("id")),
        ("tracking_number", _attr("tracking_number")),
        ("sender", _attr("sender")),
        ("sender_type", _attr("sender_type")),
        ("recipient", _employee_field("recipient")),
        ("description", _attr("description")),
        ("received_at", _attr("received_at")),
        ("collected_at", _attr("collected_at")),
        ("status", _attr("status")),
    ]),
    "appointments": (models.Appointment, models.Appointment.scheduled_time, [
        ("id", _attr("id")),
        ("visitor_name", _attr("visitor_name")),
        ("company", _attr("company")),
        ("email", _attr("email")),
        ("phone", _attr("phone")),
        ("purpose", _attr("purpose")),
        ("employee_to_meet", _employee_field("employee_to_meet")),
        ("department", _attr("department")),
        ("scheduled_time", _attr("scheduled_time")),
        ("duration", _attr("duration")),
        ("status", _attr("status")),
        ("appointment_type", _attr("appointment_type")),
        ("check_in_time", _attr("check_in_time")),
        ("check_out_time", _attr("check_out_time")),
    ]),
}


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def export_csv(db: Session, entity: str, date_from: Optional[date] = None, date_to: Optional[date] = None) -> str:
    """Render one collection as CSV text with a header row."""
    if entity not in EXPORTS:
        raise ResourceNotFoundException("Export", entity)
    model, timestamp_column, columns = EXPORTS[entity]

    query = apply_date_range(db.query(model), timestamp_column, date_from, date_to)
    rows = query.order_by(timestamp_column.desc(), model.id.desc()).all()

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow([_cell(getter(row)) for _, getter in columns])

    logger.info(f"Exported {len(rows)} {entity} rows to CSV")
    return output.getvalue()
