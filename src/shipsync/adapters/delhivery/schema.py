"""Pydantic models describing the Delhivery package-tracking payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _none_to_blank(value: object) -> object:
    return "" if value is None else value


class DelhiveryBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class StatusPayload(DelhiveryBaseModel):
    status: str = Field(default="", alias="Status")
    status_type: str = Field(default="", alias="StatusType")
    scan_type: str = Field(default="", alias="ScanType")
    instructions: str = Field(default="", alias="Instructions")
    status_date_time: datetime | None = Field(default=None, alias="StatusDateTime")
    status_location: str | None = Field(default=None, alias="StatusLocation")
    status_code: str | None = Field(default=None, alias="StatusCode")

    _normalize_text = field_validator(
        "status", "status_type", "scan_type", "instructions", mode="before"
    )(_none_to_blank)
    _normalize_optional = field_validator(
        "status_date_time", "status_location", "status_code", mode="before"
    )(_blank_to_none)


class ScanDetailPayload(DelhiveryBaseModel):
    scan: str = Field(default="", alias="Scan")
    scan_type: str = Field(default="", alias="ScanType")
    instructions: str = Field(default="", alias="Instructions")
    scan_date_time: datetime | None = Field(default=None, alias="ScanDateTime")
    status_date_time: datetime | None = Field(default=None, alias="StatusDateTime")
    scanned_location: str | None = Field(default=None, alias="ScannedLocation")
    status_code: str | None = Field(default=None, alias="StatusCode")

    _normalize_text = field_validator("scan", "scan_type", "instructions", mode="before")(
        _none_to_blank
    )
    _normalize_optional = field_validator(
        "scan_date_time", "status_date_time", "scanned_location", "status_code", mode="before"
    )(_blank_to_none)


class ScanPayload(DelhiveryBaseModel):
    detail: ScanDetailPayload = Field(default_factory=ScanDetailPayload, alias="ScanDetail")


class ShipmentPayload(DelhiveryBaseModel):
    awb: str | None = Field(default=None, alias="AWB")
    status: StatusPayload = Field(default_factory=StatusPayload, alias="Status")
    origin_receive_date: datetime | None = Field(default=None, alias="OriginRecieveDate")
    destination_receive_date: datetime | None = Field(default=None, alias="DestRecieveDate")
    delivery_date: datetime | None = Field(default=None, alias="DeliveryDate")
    returned_date: datetime | None = Field(default=None, alias="ReturnedDate")
    rto_started_date: datetime | None = Field(default=None, alias="RTOStartedDate")
    reverse_in_transit: bool = Field(default=False, alias="ReverseInTransit")
    promised_delivery_date: datetime | None = Field(default=None, alias="PromisedDeliveryDate")
    expected_delivery_date: datetime | None = Field(default=None, alias="ExpectedDeliveryDate")
    scans: list[ScanPayload] = Field(default_factory=list, alias="Scans")

    _normalize_dates = field_validator(
        "origin_receive_date",
        "destination_receive_date",
        "delivery_date",
        "returned_date",
        "rto_started_date",
        "promised_delivery_date",
        "expected_delivery_date",
        mode="before",
    )(_blank_to_none)

    @field_validator("awb", mode="before")
    @classmethod
    def _coerce_awb(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return _blank_to_none(value)

    @field_validator("reverse_in_transit", mode="before")
    @classmethod
    def _parse_flag(cls, value: object) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1", "yes"}
        return bool(value)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("scans", mode="before")
    @classmethod
    def _default_scans(cls, value: object) -> object:
        return [] if value is None else value


class ShipmentEnvelope(DelhiveryBaseModel):
    shipment: ShipmentPayload | None = Field(default=None, alias="Shipment")


class TrackingResponse(DelhiveryBaseModel):
    shipment_data: list[ShipmentEnvelope] = Field(default_factory=list, alias="ShipmentData")
    error: str | None = Field(default=None, alias="Error")

    @property
    def first_shipment(self) -> ShipmentPayload | None:
        if not self.shipment_data:
            return None
        return self.shipment_data[0].shipment


ShipmentPayloadInput = ShipmentPayload | Mapping[str, object]
