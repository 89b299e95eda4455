"""Raw telematics payload validated at the normalizer boundary."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator


class InvalidPayloadError(ValueError):
    """Payload is not structurally an event (not an object, or no event type)."""


class RawTelemetryEvent(BaseModel):
    """One event as delivered by the webhook or the spreadsheet poller.

    Accepts camelCase, spreadsheet-header and snake_case keys. Only the event
    type is required; everything else is optional and normalized leniently.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    event_type: str = Field(validation_alias=AliasChoices("eventType", "Event Type", "event_type"))
    serial_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("serialNumber", "Serial Number", "serial_number"))
    driver_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("driverName", "Driver Name", "driver_name", "driverId"))
    fleet_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("fleetNumber", "Fleet Number", "fleet_number", "fleetId"))
    event_date: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("eventDate", "Event Date", "event_date"))
    event_time: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("eventTime", "Event Time", "event_time"))
    severity: Any = None
    points: Any = None
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[str] = Field(default=None, validation_alias=AliasChoices("latitude", "Latitude"))
    longitude: Optional[str] = Field(default=None, validation_alias=AliasChoices("longitude", "Longitude"))

    @field_validator(
        "event_type", "serial_number", "driver_name", "fleet_number", "event_date",
        "event_time", "description", "location", "latitude", "longitude",
        mode="before",
    )
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # Spreadsheets deliver serials, coordinates and dates as numbers
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("event_type")
    @classmethod
    def _require_type(cls, value: Optional[str]) -> str:
        if not value:
            raise ValueError("event type must not be blank")
        return value


def parse_raw_event(payload: Any) -> RawTelemetryEvent:
    """Validate an untyped payload.

    Raises:
        InvalidPayloadError: if the payload is not a mapping or has no usable
            event type. Partial payloads with a type are accepted.
    """
    if isinstance(payload, RawTelemetryEvent):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidPayloadError(
            f"Event payload must be an object, got {type(payload).__name__}"
        )
    try:
        return RawTelemetryEvent.model_validate(dict(payload))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise InvalidPayloadError(f"Invalid event payload: {problems}") from exc
