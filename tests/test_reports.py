import csv
import io
from datetime import date, datetime, timedelta

import pytest

from reception_app import models, reports
from reception_app.error_handlers import ResourceNotFoundException
from reception_app.models import (
    ParcelStatus, SenderType, TravelStatus, VehicleType, VisitorStatus,
)

TODAY = date(2024, 5, 10)
AT = datetime(2024, 5, 10, 9, 30)
YESTERDAY_AT = datetime(2024, 5, 9, 15, 0)


@pytest.mark.parametrize(
    "today, yesterday, expected",
    [
        (0, 0, "0%"),
        (5, 0, "+100%"),
        (3, 2, "+50%"),
        (1, 2, "-50%"),
        (2, 2, "0%"),
    ],
)
def test_format_change(today, yesterday, expected):
    assert reports.format_change(today, yesterday) == expected


def _visitor(db, name, check_in, check_out=None, company=None, status=VisitorStatus.CHECKED_IN):
    visitor = models.Visitor(
        name=name, phone="555", purpose="Meeting", company=company,
        check_in_time=check_in, check_out_time=check_out, status=status,
    )
    db.add(visitor)
    db.commit()
    return visitor


def test_dashboard_stats(db, make_employee):
    employee = make_employee()
    _visitor(db, "Today One", AT)
    _visitor(db, "Today Two", AT + timedelta(hours=1), AT + timedelta(hours=2), status=VisitorStatus.CHECKED_OUT)
    _visitor(db, "Yesterday", YESTERDAY_AT)

    db.add_all([
        models.Vehicle(registration_number="IN-1", vehicle_type=VehicleType.VISITOR, owner_name="A", entry_time=AT),
        models.Vehicle(registration_number="OUT-1", vehicle_type=VehicleType.VISITOR, owner_name="B", entry_time=AT, exit_time=AT + timedelta(hours=1)),
        models.ParcelLog(sender="DHL", sender_type=SenderType.SUPPLIER, recipient_id=employee.id, description="Box", received_at=AT),
        models.ParcelLog(sender="UPS", sender_type=SenderType.SUPPLIER, recipient_id=employee.id, description="Box", received_at=AT, status=ParcelStatus.COLLECTED),
        models.PhoneCall(employee_id=employee.id, caller_number="555", purpose="Call", start_time=YESTERDAY_AT),
        models.TravelLog(employee_id=employee.id, destination="Depot", purpose="Audit", departure_time=AT),
    ])
    db.commit()

    stats = reports.get_dashboard_stats(db, today=TODAY)

    assert stats["today_visitors"] == {"value": 2, "change": "+100%"}
    assert stats["parked_vehicles"] == {"value": 1, "change": "1 active"}
    assert stats["pending_parcels"] == {"value": 1, "change": "1 waiting"}
    assert stats["today_calls"] == {"value": 0, "change": "-100%"}
    assert stats["active_travel_logs"] == {"value": 1, "change": "1 active"}
    assert stats["security_checks"] == {"value": 2, "change": "2 total"}


def test_recent_activities_merged_newest_first(db, make_employee):
    employee = make_employee(name="Alice Johnson")
    visitor = _visitor(db, "Jane", AT, AT + timedelta(hours=3), status=VisitorStatus.CHECKED_OUT)
    db.add_all([
        models.Vehicle(registration_number="ABC-1", vehicle_type=VehicleType.VISITOR, owner_name="A", entry_time=AT + timedelta(hours=1)),
        models.PhoneCall(employee_id=employee.id, caller_name="Supplier", caller_number="555", purpose="Call", start_time=AT + timedelta(hours=2)),
        models.TravelLog(employee_id=employee.id, destination="Depot", purpose="Audit", departure_time=AT - timedelta(hours=1)),
    ])
    db.commit()

    activities = reports.get_recent_activities(db)

    assert [a["activity"] for a in activities] == [
        "Jane checked out",
        "Alice Johnson made call to Supplier",
        "Vehicle ABC-1 checked in",
        "Alice Johnson departed for Depot",
    ]
    assert activities[0]["id"] == f"visitor-{visitor.id}"
    assert activities[0]["time"] == "12:30 PM"
    assert activities[0]["type"] == "visitor"


def test_recent_activities_capped(db):
    for i in range(12):
        _visitor(db, f"V{i}", AT + timedelta(minutes=i))
        db.add(models.Vehicle(registration_number=f"R-{i}", vehicle_type=VehicleType.VISITOR, owner_name="A", entry_time=AT + timedelta(minutes=i)))
    db.commit()

    activities = reports.get_recent_activities(db)
    assert len(activities) == 15
    assert activities[0]["timestamp"] == AT + timedelta(minutes=11)


def test_call_report(db, make_employee):
    it_employee = make_employee(department=models.EmployeeDepartment.IT)
    hr_employee = make_employee(department=models.EmployeeDepartment.HR)
    db.add_all([
        models.PhoneCall(employee_id=it_employee.id, caller_number="1", purpose="a", start_time=datetime(2024, 4, 2, 9), duration=10, cost=1.25),
        models.PhoneCall(employee_id=it_employee.id, caller_number="2", purpose="b", start_time=datetime(2024, 5, 3, 9), duration=5, cost=0.5),
        models.PhoneCall(employee_id=hr_employee.id, caller_number="3", purpose="c", start_time=datetime(2024, 5, 4, 9), duration=None),
    ])
    db.commit()

    report = reports.get_call_report(db)
    assert report["total_calls"] == 3
    assert report["total_minutes"] == 15
    assert report["total_cost"] == 1.75
    assert [(b["key"], b["calls"], b["minutes"]) for b in report["by_department"]] == [("hr", 1, 0), ("it", 2, 15)]
    assert [(b["key"], b["calls"]) for b in report["by_month"]] == [("2024-04", 1), ("2024-05", 2)]

    may_only = reports.get_call_report(db, date_from=date(2024, 5, 1), date_to=date(2024, 5, 31))
    assert may_only["total_calls"] == 2


def test_travel_report(db, make_employee):
    employee = make_employee()
    db.add_all([
        models.TravelLog(employee_id=employee.id, destination="Depot", purpose="a", departure_time=datetime(2024, 5, 1, 8),
                         actual_return=datetime(2024, 5, 1, 11), status=TravelStatus.RETURNED),
        models.TravelLog(employee_id=employee.id, destination="Depot ", purpose="b", departure_time=datetime(2024, 5, 2, 8)),
        models.TravelLog(employee_id=employee.id, destination="Airport", purpose="c", departure_time=datetime(2024, 6, 2, 8),
                         status=TravelStatus.DELAYED),
    ])
    db.commit()

    report = reports.get_travel_report(db)
    assert report["total_trips"] == 3
    assert report["by_status"] == {"departed": 1, "returned": 1, "delayed": 1}
    assert report["top_destinations"][0] == {"key": "Depot", "count": 2}
    assert report["by_month"] == [{"key": "2024-05", "count": 2}, {"key": "2024-06", "count": 1}]
    assert report["average_trip_hours"] == 3.0


def test_visitor_report(db):
    _visitor(db, "A", AT, AT + timedelta(minutes=30), company="Acme")
    _visitor(db, "B", AT, AT + timedelta(minutes=60), company="Acme")
    _visitor(db, "C", YESTERDAY_AT, company="Globex")

    report = reports.get_visitor_report(db)
    assert report["total_visitors"] == 3
    assert report["by_day"] == [{"key": "2024-05-09", "count": 1}, {"key": "2024-05-10", "count": 2}]
    assert report["average_visit_minutes"] == 45.0
    assert report["top_companies"][0] == {"key": "Acme", "count": 2}


def test_export_visitors_csv(db):
    _visitor(db, "Jane, Jr.", AT, company="Acme")
    _visitor(db, "Old", datetime(2024, 1, 1, 9), company="Globex")

    content = reports.export_csv(db, "visitors", date_from=date(2024, 5, 1))
    rows = list(csv.reader(io.StringIO(content)))

    assert rows[0][:3] == ["id", "name", "email"]
    assert len(rows) == 2
    assert rows[1][1] == "Jane, Jr."
    assert rows[1][rows[0].index("status")] == "checked-in"
    assert rows[1][rows[0].index("check_in_time")] == "2024-05-10T09:30:00"


def test_export_unknown_entity(db):
    with pytest.raises(ResourceNotFoundException):
        reports.export_csv(db, "invoices")
