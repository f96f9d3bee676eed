from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from reception_app import crud, models, schemas
from reception_app.error_handlers import InvalidStateException, ResourceNotFoundException
from reception_app.models import AppointmentAction, AppointmentDepartment, AppointmentStatus, utcnow


def _appointment_in(employee_id, **overrides):
    data = {
        "visitor_name": "Grace Hopper",
        "company": "Navy Labs",
        "email": "grace@navy.test",
        "phone": "+1-555-0142",
        "purpose": "Architecture review",
        "employee_to_meet_id": employee_id,
        "department": AppointmentDepartment.IT,
        "scheduled_time": utcnow() + timedelta(days=1),
    }
    data.update(overrides)
    return schemas.AppointmentCreate(**data)


@pytest.fixture
def host(make_employee):
    return make_employee(name="Alice Johnson")


@pytest.fixture
def desk_user(make_user):
    return make_user(role=models.UserRole.RECEPTION)


def test_create_appointment_defaults(db, host, desk_user):
    appointment = crud.create_appointment(db, _appointment_in(host.id), actor_id=desk_user.id)

    assert appointment.status == AppointmentStatus.PENDING
    assert appointment.duration == 60
    assert appointment.employee_to_meet_text == "Alice Johnson"
    assert appointment.created_by_id == desk_user.id
    assert appointment.updated_by_id == desk_user.id
    assert appointment.reminder_sent
    assert appointment.reminder_sent_at is not None


def test_create_appointment_without_reminder(db, host):
    appointment = crud.create_appointment(db, _appointment_in(host.id, send_reminder=False))
    assert not appointment.reminder_sent
    assert appointment.reminder_sent_at is None


def test_visitor_arrived_on_create_completes_appointment(db, host):
    appointment = crud.create_appointment(db, _appointment_in(host.id, visitor_arrived=True))
    assert appointment.status == AppointmentStatus.COMPLETED
    assert appointment.check_in_time is not None
    assert appointment.check_out_time is None


@pytest.mark.parametrize("duration", [10, 500])
def test_duration_bounds(host, duration):
    with pytest.raises(ValidationError):
        _appointment_in(host.id, duration=duration)



def test_visitor_arrived_via_update_completes_appointment(db, host, desk_user):
    appointment = crud.create_appointment(db, _appointment_in(host.id))
    assert appointment.check_in_time is None

    appointment = crud.update_appointment(
        db, appointment, schemas.AppointmentUpdate(visitor_arrived=True), actor_id=desk_user.id
    )

    assert appointment.status == AppointmentStatus.COMPLETED
    assert appointment.check_in_time is not None
    assert appointment.updated_by_id == desk_user.id


def test_update_rejects_null_schedule():
    with pytest.raises(ValidationError):
        schemas.AppointmentUpdate(scheduled_time=None)
    assert schemas.AppointmentUpdate(notes=None).model_dump(exclude_unset=True) == {"notes": None}

def test_unknown_host_rejected(db):
    with pytest.raises(ResourceNotFoundException):
        crud.create_appointment(db, _appointment_in(999))


def test_confirm_schedule_check_in_and_out(db, host, desk_user):
    appointment = crud.create_appointment(db, _appointment_in(host.id))

    appointment = crud.apply_appointment_action(db, appointment, AppointmentAction.CONFIRM, actor_id=desk_user.id)
    assert appointment.status == AppointmentStatus.CONFIRMED

    appointment = crud.apply_appointment_action(db, appointment, AppointmentAction.SCHEDULE, actor_id=desk_user.id)
    assert appointment.status == AppointmentStatus.SCHEDULED

    appointment = crud.apply_appointment_action(db, appointment, AppointmentAction.CHECK_IN, actor_id=desk_user.id)
    assert appointment.status == AppointmentStatus.COMPLETED
    assert appointment.visitor_arrived
    assert appointment.check_in_time is not None
    assert appointment.check_out_time is None

    appointment = crud.apply_appointment_action(db, appointment, AppointmentAction.CHECK_OUT, actor_id=desk_user.id)
    assert appointment.check_out_time >= appointment.check_in_time
    assert appointment.updated_by_id == desk_user.id

    with pytest.raises(InvalidStateException):
        crud.apply_appointment_action(db, appointment, AppointmentAction.CHECK_OUT)

    status_changes = db.query(models.AuditLog).filter(models.AuditLog.action == "STATUS_CHANGE").count()
    assert status_changes == 4


@pytest.mark.parametrize(
    "action, start_status",
    [
        (AppointmentAction.CONFIRM, AppointmentStatus.CONFIRMED),
        (AppointmentAction.CANCEL, AppointmentStatus.COMPLETED),
        (AppointmentAction.NO_SHOW, AppointmentStatus.CANCELLED),
        (AppointmentAction.CHECK_OUT, AppointmentStatus.PENDING),
        (AppointmentAction.SCHEDULE, AppointmentStatus.SCHEDULED),
    ],
)
def test_invalid_transitions(db, host, action, start_status):
    appointment = crud.create_appointment(db, _appointment_in(host.id, status=start_status))
    with pytest.raises(InvalidStateException):
        crud.apply_appointment_action(db, appointment, action)


def test_cancel_and_no_show_from_open_states(db, host):
    cancelled = crud.apply_appointment_action(
        db, crud.create_appointment(db, _appointment_in(host.id)), AppointmentAction.CANCEL
    )
    assert cancelled.status == AppointmentStatus.CANCELLED

    no_show = crud.apply_appointment_action(
        db, crud.create_appointment(db, _appointment_in(host.id, status=AppointmentStatus.SCHEDULED)), AppointmentAction.NO_SHOW
    )
    assert no_show.status == AppointmentStatus.NO_SHOW


def test_update_sets_updated_by(db, host, desk_user):
    appointment = crud.create_appointment(db, _appointment_in(host.id))
    appointment = crud.update_appointment(db, appointment, schemas.AppointmentUpdate(notes="Parking reserved"), actor_id=desk_user.id)
    assert appointment.notes == "Parking reserved"
    assert appointment.updated_by_id == desk_user.id


def test_get_appointments_filters(db, host, make_employee):
    other = make_employee(name="Bob Stone")
    tomorrow = utcnow() + timedelta(days=1)
    day = datetime(2024, 5, 10, 9, 0)

    crud.create_appointment(db, _appointment_in(host.id, visitor_name="Past", scheduled_time=day))
    crud.create_appointment(db, _appointment_in(host.id, visitor_name="Confirmed", scheduled_time=tomorrow, status=AppointmentStatus.CONFIRMED))
    crud.create_appointment(db, _appointment_in(other.id, visitor_name="Pending", scheduled_time=tomorrow + timedelta(hours=1)))

    assert [a.visitor_name for a in crud.get_appointments(db, status="all")["data"]] == ["Past", "Confirmed", "Pending"]
    assert [a.visitor_name for a in crud.get_appointments(db, status="pending")["data"]] == ["Past", "Pending"]
    assert [a.visitor_name for a in crud.get_appointments(db, day=day.date())["data"]] == ["Past"]
    assert [a.visitor_name for a in crud.get_appointments(db, employee_id=other.id)["data"]] == ["Pending"]
    assert [a.visitor_name for a in crud.get_appointments(db, upcoming=True)["data"]] == ["Confirmed"]
