from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from reception_app import crud, models, schemas
from reception_app.error_handlers import (
    BusinessRuleException,
    DuplicateResourceException,
    InvalidStateException,
    ResourceNotFoundException,
)
from reception_app.models import ParcelStatus, SenderType, TravelStatus, utcnow

START = datetime(2024, 5, 10, 10, 0)


# == Phone calls ==

def test_call_duration_derived_from_end_time():
    call = models.PhoneCall(start_time=START, end_time=START + timedelta(minutes=12, seconds=40))
    crud._apply_call_timing(call)
    assert call.duration == 13


def test_call_end_time_derived_from_duration_hint():
    call = models.PhoneCall(start_time=START)
    crud._apply_call_timing(call, duration_hint=5)
    assert call.end_time == START + timedelta(minutes=5)
    assert call.duration == 5


def test_open_call_has_no_duration():
    call = models.PhoneCall(start_time=START, duration=7)
    crud._apply_call_timing(call)
    assert call.duration is None


def test_call_ending_before_start_rejected():
    call = models.PhoneCall(start_time=START, end_time=START - timedelta(minutes=1))
    with pytest.raises(BusinessRuleException):
        crud._apply_call_timing(call)


def test_create_and_update_phone_call(db, make_employee):
    employee = make_employee()
    call = crud.create_phone_call(db, schemas.PhoneCallCreate(
        employee_id=employee.id, caller_number="+1-555-0100", purpose="Supplier follow-up",
        start_time=START, duration=10, cost=1.5,
    ))
    assert call.end_time == START + timedelta(minutes=10)
    assert call.duration == 10

    call = crud.update_phone_call(db, call, schemas.PhoneCallUpdate(duration=20))
    assert call.end_time == START + timedelta(minutes=20)
    assert call.duration == 20

    call = crud.update_phone_call(db, call, schemas.PhoneCallUpdate(end_time=START + timedelta(minutes=3)))
    assert call.duration == 3


def test_phone_call_requires_existing_employee(db):
    with pytest.raises(ResourceNotFoundException):
        crud.create_phone_call(db, schemas.PhoneCallCreate(employee_id=99, caller_number="1", purpose="x"))


def test_phone_call_search_matches_employee_name(db, make_employee):
    alice = make_employee(name="Alice Johnson")
    bob = make_employee(name="Bob Stone")
    for employee in (alice, bob):
        crud.create_phone_call(db, schemas.PhoneCallCreate(employee_id=employee.id, caller_number="555", purpose="Call"))

    result = crud.get_phone_calls(db, search="alice")
    assert [c.employee_id for c in result["data"]] == [alice.id]


# == Travel logs ==

def _travel_in(employee_id, **overrides):
    data = {
        "employee_id": employee_id,
        "destination": "Head office",
        "purpose": "Quarterly review",
        "departure_time": START,
        "expected_return": START + timedelta(hours=4),
    }
    data.update(overrides)
    return schemas.TravelLogCreate(**data)


def test_create_travel_log_status(db, make_employee):
    employee = make_employee()
    departed = crud.create_travel_log(db, _travel_in(employee.id))
    assert departed.status == TravelStatus.DEPARTED

    returned = crud.create_travel_log(db, _travel_in(employee.id, actual_return=START + timedelta(hours=2)))
    assert returned.status == TravelStatus.RETURNED


def test_travel_return_before_departure_rejected(db, make_employee):
    employee = make_employee()
    with pytest.raises(BusinessRuleException):
        crud.create_travel_log(db, _travel_in(employee.id, expected_return=START - timedelta(hours=1)))


def test_record_travel_return(db, make_employee):
    employee = make_employee()
    travel = crud.create_travel_log(db, _travel_in(employee.id, departure_time=utcnow() - timedelta(hours=1), expected_return=None))

    travel = crud.record_travel_return(db, travel)
    assert travel.status == TravelStatus.RETURNED
    assert travel.actual_return is not None

    with pytest.raises(InvalidStateException):
        crud.record_travel_return(db, travel)


def test_update_with_actual_return_marks_returned(db, make_employee):
    employee = make_employee()
    travel = crud.create_travel_log(db, _travel_in(employee.id))
    travel = crud.update_travel_log(db, travel, schemas.TravelLogUpdate(actual_return=START + timedelta(hours=3)))
    assert travel.status == TravelStatus.RETURNED


def test_mark_overdue_travel_logs(db, make_employee):
    employee = make_employee()
    now = utcnow()
    overdue = crud.create_travel_log(db, _travel_in(employee.id, departure_time=now - timedelta(hours=5), expected_return=now - timedelta(hours=1)))
    on_time = crud.create_travel_log(db, _travel_in(employee.id, departure_time=now - timedelta(hours=1), expected_return=now + timedelta(hours=3)))
    assert overdue.is_overdue
    assert not on_time.is_overdue

    assert crud.mark_overdue_travel_logs(db) == 1
    db.refresh(overdue)
    db.refresh(on_time)
    assert overdue.status == TravelStatus.DELAYED
    assert on_time.status == TravelStatus.DEPARTED
    assert crud.mark_overdue_travel_logs(db) == 0


# == Parcels ==

def _parcel_in(recipient_id, **overrides):
    data = {
        "tracking_number": "TRK-001",
        "sender": "Office Supplies Ltd",
        "sender_type": SenderType.SUPPLIER,
        "recipient_id": recipient_id,
        "description": "Printer toner",
    }
    data.update(overrides)
    return schemas.ParcelLogCreate(**data)


def test_parcel_lifecycle(db, make_employee):
    recipient = make_employee()
    parcel = crud.create_parcel(db, _parcel_in(recipient.id))
    assert parcel.status == ParcelStatus.RECEIVED
    assert parcel.received_at is not None

    parcel = crud.collect_parcel(db, parcel)
    assert parcel.status == ParcelStatus.COLLECTED
    assert parcel.collected_at is not None

    with pytest.raises(InvalidStateException):
        crud.collect_parcel(db, parcel)
    with pytest.raises(InvalidStateException):
        crud.return_parcel(db, parcel)


def test_parcel_return_to_sender(db, make_employee):
    recipient = make_employee()
    parcel = crud.return_parcel(db, crud.create_parcel(db, _parcel_in(recipient.id)))
    assert parcel.status == ParcelStatus.RETURNED
    assert parcel.collected_at is None


def test_parcel_tracking_number_unique_but_optional(db, make_employee):
    recipient = make_employee()
    crud.create_parcel(db, _parcel_in(recipient.id))
    with pytest.raises(DuplicateResourceException):
        crud.create_parcel(db, _parcel_in(recipient.id))

    first = crud.create_parcel(db, _parcel_in(recipient.id, tracking_number=""))
    second = crud.create_parcel(db, _parcel_in(recipient.id, tracking_number=None))
    assert first.tracking_number is None
    assert second.tracking_number is None


# == Partial updates ==

@pytest.mark.parametrize(
    "schema, field",
    [
        (schemas.PhoneCallUpdate, "start_time"),
        (schemas.PhoneCallUpdate, "employee_id"),
        (schemas.TravelLogUpdate, "departure_time"),
        (schemas.TravelLogUpdate, "status"),
        (schemas.ParcelLogUpdate, "received_at"),
        (schemas.ParcelLogUpdate, "recipient_id"),
        (schemas.VehicleUpdate, "security_guard"),
        (schemas.VehicleUpdate, "registration_number"),
    ],
)
def test_update_schemas_reject_null_required_fields(schema, field):
    with pytest.raises(ValidationError, match=f"{field} cannot be null"):
        schema(**{field: None})


def test_update_schemas_accept_null_optional_fields():
    assert schemas.PhoneCallUpdate(end_time=None).end_time is None
    assert schemas.TravelLogUpdate(actual_return=None).model_fields_set == {"actual_return"}
    assert schemas.ParcelLogUpdate(tracking_number=None).tracking_number is None
