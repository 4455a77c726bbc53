from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from src.domain.exceptions import ValidationError
from src.domain.models import Driver, DriverTips, TipAggregate, TipEvent


def _payload(**overrides):
    payload = {"driverId": "d1", "amount": 5.5, "eventTime": "2024-01-15T10:30:00Z"}
    payload.update(overrides)
    return payload


def test_tip_event_parses_wire_payload():
    event = TipEvent.parse_payload(_payload())
    assert event.driver_id == "d1"
    assert event.amount == Decimal("5.5")
    assert event.event_time == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


def test_tip_event_coerces_numeric_string_amount():
    event = TipEvent.parse_payload(_payload(amount="5.50"))
    assert event.amount == Decimal("5.50")


def test_tip_event_naive_time_is_utc():
    event = TipEvent.parse_payload(_payload(eventTime="2024-01-15T10:30:00"))
    assert event.event_time.tzinfo is not None
    assert event.event_time.utcoffset().total_seconds() == 0


@pytest.mark.parametrize("amount", [0, -1, "-0.01", "abc", "NaN", None])
def test_tip_event_rejects_non_positive_or_non_numeric_amount(amount):
    with pytest.raises(ValidationError) as excinfo:
        TipEvent.parse_payload(_payload(amount=amount))
    assert any(err["loc"] == ("amount",) for err in excinfo.value.details)


@pytest.mark.parametrize("event_time", ["not-a-date", "", 1705314600, None])
def test_tip_event_rejects_unparseable_time(event_time):
    with pytest.raises(ValidationError):
        TipEvent.parse_payload(_payload(eventTime=event_time))


def test_tip_event_rejects_empty_driver_id():
    with pytest.raises(ValidationError):
        TipEvent.parse_payload(_payload(driverId=""))


def test_tip_event_rejects_missing_fields():
    with pytest.raises(ValidationError) as excinfo:
        TipEvent.parse_payload({"amount": 1})
    missing = {err["loc"][0] for err in excinfo.value.details}
    assert {"driverId", "eventTime"} <= missing


def test_tip_event_rejects_non_object_payload():
    with pytest.raises(ValidationError):
        TipEvent.parse_payload([1, 2, 3])  # type: ignore[arg-type]


def test_tip_aggregate_wire_shape_is_exact():
    agg = TipAggregate(
        driver_id="d1",
        aggregation_key="DAY#2024-01-15",
        total_amount=Decimal("11.00"),
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
        updated_at=datetime(2024, 1, 15, 11, 0, tzinfo=UTC),
    )
    assert agg.to_wire() == {
        "driverId": "d1",
        "aggregationKey": "DAY#2024-01-15",
        "totalAmount": 11.0,
        "updatedAt": "2024-01-15T11:00:00.000Z",
    }


def test_driver_tips_wire_shape_with_absent_buckets():
    assert DriverTips().to_wire() == {"daily": None, "weekly": None}


def test_driver_wire_shape_uses_camel_case():
    driver = Driver(id="d1", firstname="Linda", lastname="Doe", driverLicenseId="12345")
    assert driver.to_wire() == {
        "id": "d1",
        "firstname": "Linda",
        "lastname": "Doe",
        "driverLicenseId": "12345",
    }


@pytest.mark.parametrize("event_time", ["0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00"])
def test_tip_event_rejects_time_outside_utc_range(event_time):
    with pytest.raises(ValidationError) as excinfo:
        TipEvent.parse_payload(_payload(eventTime=event_time))
    assert any(err["loc"] == ("eventTime",) for err in excinfo.value.details)
