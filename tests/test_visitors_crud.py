from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from reception_app import crud, models, schemas
from reception_app.error_handlers import (
    BusinessRuleException,
    InvalidStateException,
    ResourceNotFoundException,
)
from reception_app.models import VisitorStatus, utcnow


def _visitor_in(**overrides):
    data = {"name": "Jane Visitor", "phone": "+1-555-0199", "purpose": "Interview", "company": "Acme"}
    data.update(overrides)
    return schemas.VisitorCreate(**data)


def test_create_visitor_defaults_to_checked_in_now(db):
    visitor = crud.create_visitor(db, _visitor_in())

    assert visitor.id is not None
    assert visitor.status == VisitorStatus.CHECKED_IN
    assert visitor.check_in_time is not None
    assert visitor.check_out_time is None

    audit = db.query(models.AuditLog).filter(models.AuditLog.entity == "visitor").one()
    assert audit.action == "CREATE"
    assert audit.entity_id == visitor.id


def test_create_visitor_resolves_host_by_name(db, make_employee):
    host = make_employee(name="Alice Johnson")
    visitor = crud.create_visitor(db, _visitor_in(employee_to_meet_name="Alice Johnson"))

    assert visitor.employee_to_meet_id == host.id
    assert visitor.notes is None


def test_create_visitor_keeps_unknown_host_in_notes(db):
    visitor = crud.create_visitor(db, _visitor_in(employee_to_meet_name="Bob Unknown", notes="Bring badge"))

    assert visitor.employee_to_meet_id is None
    assert visitor.notes == "Requested to meet: Bob Unknown. Bring badge"


def test_create_visitor_with_missing_employee_id(db):
    with pytest.raises(ResourceNotFoundException):
        crud.create_visitor(db, _visitor_in(employee_to_meet_id=999))


def test_create_checked_out_visitor_stamps_check_out(db):
    visitor = crud.create_visitor(db, _visitor_in(status=VisitorStatus.CHECKED_OUT))
    assert visitor.check_out_time is not None


def test_check_out_before_check_in_rejected(db):
    check_in = datetime(2024, 5, 10, 10, 0)
    with pytest.raises(BusinessRuleException):
        crud.create_visitor(db, _visitor_in(check_in_time=check_in, check_out_time=check_in - timedelta(minutes=5)))


def test_check_out_visitor_sets_status_and_duration(db):
    visitor = crud.create_visitor(db, _visitor_in(check_in_time=utcnow() - timedelta(minutes=45)))

    visitor = crud.check_out_visitor(db, visitor)

    assert visitor.status == VisitorStatus.CHECKED_OUT
    assert visitor.check_out_time is not None
    assert visitor.duration_minutes == 45


def test_check_out_twice_is_invalid(db):
    visitor = crud.create_visitor(db, _visitor_in())
    crud.check_out_visitor(db, visitor)

    with pytest.raises(InvalidStateException):
        crud.check_out_visitor(db, visitor)


def test_check_in_only_from_expected(db):
    expected = crud.create_visitor(db, _visitor_in(status=VisitorStatus.EXPECTED))
    arrived = crud.check_in_visitor(db, expected)
    assert arrived.status == VisitorStatus.CHECKED_IN

    with pytest.raises(InvalidStateException):
        crud.check_in_visitor(db, arrived)


def test_update_to_checked_out_stamps_time(db):
    visitor = crud.create_visitor(db, _visitor_in())
    visitor = crud.update_visitor(db, visitor, schemas.VisitorUpdate(status=VisitorStatus.CHECKED_OUT))

    assert visitor.check_out_time is not None
    update_entry = db.query(models.AuditLog).filter(models.AuditLog.action == "UPDATE").one()
    assert update_entry.data["status"]["new"] == "checked-out"



def test_update_rejects_check_out_before_check_in(db):
    check_in = datetime(2024, 5, 10, 10, 0)
    visitor = crud.create_visitor(db, _visitor_in(check_in_time=check_in))

    with pytest.raises(BusinessRuleException):
        crud.update_visitor(db, visitor, schemas.VisitorUpdate(check_out_time=check_in - timedelta(minutes=1)))

    assert visitor.check_out_time is None
    assert visitor.status == VisitorStatus.CHECKED_IN


@pytest.mark.parametrize("field", ["name", "phone", "purpose", "status"])
def test_update_rejects_null_for_required_fields(field):
    with pytest.raises(ValidationError):
        schemas.VisitorUpdate(**{field: None})

def test_get_visitors_filters_and_orders(db):
    crud.create_visitor(db, _visitor_in(name="Early", check_in_time=datetime(2024, 5, 9, 9, 0)))
    crud.create_visitor(db, _visitor_in(name="Late", company="Globex", check_in_time=datetime(2024, 5, 10, 16, 0)))
    crud.create_visitor(db, _visitor_in(name="Expected", status=VisitorStatus.EXPECTED, check_in_time=datetime(2024, 5, 10, 9, 0)))

    result = crud.get_visitors(db)
    assert [v.name for v in result["data"]] == ["Late", "Expected", "Early"]
    assert result["pagination"]["total_docs"] == 3

    by_company = crud.get_visitors(db, search="glob")
    assert [v.name for v in by_company["data"]] == ["Late"]

    by_status = crud.get_visitors(db, status=VisitorStatus.EXPECTED)
    assert [v.name for v in by_status["data"]] == ["Expected"]

    by_day = crud.get_visitors(db, date_from=datetime(2024, 5, 10).date(), date_to=datetime(2024, 5, 10).date())
    assert {v.name for v in by_day["data"]} == {"Late", "Expected"}


def test_paginate_envelope(db):
    for i in range(12):
        crud.create_visitor(db, _visitor_in(name=f"Visitor {i}"))

    page = crud.get_visitors(db, page=2, limit=5)
    assert len(page["data"]) == 5
    assert page["pagination"] == {
        "total_docs": 12,
        "total_pages": 3,
        "page": 2,
        "limit": 5,
        "has_next_page": True,
        "has_prev_page": True,
    }
