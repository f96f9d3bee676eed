from datetime import date, timedelta

import pytest

from reception_app import crud, models, schemas
from reception_app.error_handlers import (
    BusinessRuleException,
    DuplicateResourceException,
    InvalidStateException,
)
from reception_app.models import ServiceStatus, VehicleType


TODAY = date(2024, 6, 1)


def _vehicle_in(**overrides):
    data = {
        "registration_number": "abc-123",
        "vehicle_type": VehicleType.COMPANY_CAR,
        "owner_name": "Fleet",
    }
    data.update(overrides)
    return schemas.VehicleCreate(**data)


@pytest.mark.parametrize(
    "current, last_service, expected",
    [
        (5000, 0, ServiceStatus.NORMAL),
        (8999, 0, ServiceStatus.NORMAL),
        (9000, 0, ServiceStatus.MAINTENANCE),
        (10000, 0, ServiceStatus.OVERDUE),
        (25000, 20000, ServiceStatus.NORMAL),
        (None, None, ServiceStatus.NORMAL),
    ],
)
def test_service_status_by_distance(current, last_service, expected):
    vehicle = models.Vehicle(current_mileage=current, last_service_mileage=last_service)
    assert vehicle.get_service_status(TODAY) == expected


@pytest.mark.parametrize(
    "days_since_service, expected",
    [
        (30, ServiceStatus.NORMAL),
        (170, ServiceStatus.MAINTENANCE),
        (180, ServiceStatus.MAINTENANCE),
        (181, ServiceStatus.OVERDUE),
    ],
)
def test_service_status_by_date(days_since_service, expected):
    vehicle = models.Vehicle(
        current_mileage=1000,
        last_service_mileage=0,
        last_service_date=TODAY - timedelta(days=days_since_service),
    )
    assert vehicle.get_service_status(TODAY) == expected


def test_next_service_figures():
    vehicle = models.Vehicle(current_mileage=12500, last_service_mileage=10000, last_service_date=date(2024, 1, 1))
    assert vehicle.km_since_service == 2500
    assert vehicle.next_service_mileage == 20000
    assert vehicle.next_service_date == date(2024, 6, 29)


def test_create_vehicle_uppercases_and_records_initial_mileage(db):
    vehicle = crud.create_vehicle(db, _vehicle_in(current_mileage=1200))

    assert vehicle.registration_number == "ABC-123"
    assert vehicle.current_mileage == 1200
    assert vehicle.is_parked

    records = crud.get_mileage_records(db, vehicle.id)
    assert [(r.reading, r.distance) for r in records] == [(1200, 0)]


def test_duplicate_registration_rejected(db):
    crud.create_vehicle(db, _vehicle_in())
    with pytest.raises(DuplicateResourceException):
        crud.create_vehicle(db, _vehicle_in(registration_number="ABC-123 "))


def test_mileage_readings_track_distance(db):
    vehicle = crud.create_vehicle(db, _vehicle_in(current_mileage=1000))

    record = crud.record_mileage(db, vehicle, 1350)
    assert record.distance == 350
    assert vehicle.current_mileage == 1350

    with pytest.raises(BusinessRuleException):
        crud.record_mileage(db, vehicle, 1200)


def test_gate_movements(db):
    vehicle = crud.create_vehicle(db, _vehicle_in(current_mileage=1000))

    vehicle = crud.check_out_vehicle(db, vehicle, mileage=1010)
    assert not vehicle.is_parked
    assert vehicle.current_mileage == 1010
    with pytest.raises(InvalidStateException):
        crud.check_out_vehicle(db, vehicle)

    vehicle = crud.check_in_vehicle(db, vehicle, mileage=1090)
    assert vehicle.is_parked
    assert vehicle.exit_time is None
    assert vehicle.current_mileage == 1090
    with pytest.raises(InvalidStateException):
        crud.check_in_vehicle(db, vehicle)

    distances = [r.distance for r in crud.get_mileage_records(db, vehicle.id)]
    assert distances == [0, 10, 80]


def test_mark_serviced_resets_counter(db):
    vehicle = crud.create_vehicle(db, _vehicle_in(current_mileage=9800, last_service_mileage=0))
    assert vehicle.get_service_status() == ServiceStatus.MAINTENANCE

    vehicle = crud.mark_vehicle_serviced(db, vehicle)
    assert vehicle.last_service_mileage == 9800
    assert vehicle.km_since_service == 0
    assert vehicle.service_status == ServiceStatus.NORMAL


def test_fleet_mileage_summary(db):
    first = crud.create_vehicle(db, _vehicle_in(registration_number="AAA-1", current_mileage=1000, last_service_mileage=0))
    crud.record_mileage(db, first, 1400)
    crud.create_vehicle(db, _vehicle_in(registration_number="BBB-2", current_mileage=10500, last_service_mileage=0))
    crud.create_vehicle(db, _vehicle_in(registration_number="CCC-3", vehicle_type=VehicleType.VISITOR))

    summary = crud.get_fleet_mileage_summary(db, today=TODAY)

    assert summary["total_mileage"] == 11900
    assert summary["average_distance"] == pytest.approx(133.3)
    assert summary["vehicles_needing_service"] == 1
    assert [v["registration_number"] for v in summary["vehicles"]] == ["AAA-1", "BBB-2"]
    assert summary["vehicles"][1]["service_status"] == ServiceStatus.OVERDUE


def test_parked_filter(db):
    parked = crud.create_vehicle(db, _vehicle_in(registration_number="P-1"))
    gone = crud.create_vehicle(db, _vehicle_in(registration_number="G-1"))
    crud.check_out_vehicle(db, gone)

    assert [v.id for v in crud.get_vehicles(db, parked=True)["data"]] == [parked.id]
    assert [v.id for v in crud.get_vehicles(db, parked=False)["data"]] == [gone.id]
