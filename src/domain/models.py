"""
Domain models for the driver tips service.

Wire shapes use camelCase; Python code uses the snake_case field names. All
models are frozen so a validated event cannot be mutated on its way through
the processor.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from src.domain.exceptions import ValidationError
from src.utils.time_buckets import as_utc, to_iso

_MODEL_CONFIG = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


class TipEvent(BaseModel):
    """
    One reported tip as consumed from the queue.
    """

    driver_id: str = Field(..., alias="driverId", min_length=1, description="Driver reference.")
    amount: Decimal = Field(..., gt=0, description="Tip amount in currency units.")
    event_time: datetime = Field(..., alias="eventTime", description="When the tip was given.")

    model_config = _MODEL_CONFIG

    @field_validator("event_time", mode="before")
    @classmethod
    def _parse_event_time(cls, value: Any) -> datetime:
        if not isinstance(value, (datetime, str)):
            raise ValueError("eventTime must be a valid ISO 8601 datetime")
        try:
            return as_utc(value)
        except (ValueError, OverflowError) as exc:
            # The UTC instant of e.g. 0001-01-01T00:00:00+01:00 is out of range.
            raise ValueError("eventTime must be a valid ISO 8601 datetime") from exc

    @classmethod
    def parse_payload(cls, payload: Dict[str, Any]) -> "TipEvent":
        """Validate a decoded payload, raising the domain `ValidationError`."""
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid tip event", details=exc.errors(include_url=False, include_context=False)
            ) from exc


class TipAggregate(BaseModel):
    """
    Running tip total for one driver within one day or week bucket.
    """

    driver_id: str = Field(..., alias="driverId")
    aggregation_key: str = Field(..., alias="aggregationKey")
    total_amount: Decimal = Field(..., alias="totalAmount")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = _MODEL_CONFIG

    def to_wire(self) -> Dict[str, Any]:
        return {
            "driverId": self.driver_id,
            "aggregationKey": self.aggregation_key,
            "totalAmount": float(self.total_amount),
            "updatedAt": to_iso(self.updated_at),
        }


class DriverTips(BaseModel):
    daily: Optional[TipAggregate] = None
    weekly: Optional[TipAggregate] = None

    model_config = _MODEL_CONFIG

    def to_wire(self) -> Dict[str, Any]:
        return {
            "daily": self.daily.to_wire() if self.daily else None,
            "weekly": self.weekly.to_wire() if self.weekly else None,
        }


class CreateDriverRequest(BaseModel):
    firstname: str = Field(..., min_length=1)
    lastname: str = Field(..., min_length=1)
    driver_license_id: str = Field(..., alias="driverLicenseId", min_length=1)

    model_config = _MODEL_CONFIG


class Driver(BaseModel):
    id: str
    firstname: str
    lastname: str
    driver_license_id: str = Field(..., alias="driverLicenseId")

    model_config = _MODEL_CONFIG

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


__all__ = [
    "TipEvent",
    "TipAggregate",
    "DriverTips",
    "CreateDriverRequest",
    "Driver",
]
