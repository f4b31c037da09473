"""Translate Delhivery payloads into domain shipment records."""

from __future__ import annotations

from shipsync.domain.model import ScanEvent, ShipmentRecord

from .schema import ScanPayload, ShipmentPayload, ShipmentPayloadInput


def _ensure_shipment_payload(payload: ShipmentPayloadInput) -> ShipmentPayload:
    if isinstance(payload, ShipmentPayload):
        return payload
    return ShipmentPayload.model_validate(payload)


def _parse_scan(payload: ScanPayload) -> ScanEvent:
    detail = payload.detail
    return ScanEvent(
        scan_type=detail.scan_type.strip(),
        scan=detail.scan.strip(),
        instructions=detail.instructions.strip(),
        timestamp=detail.scan_date_time or detail.status_date_time,
        location=detail.scanned_location,
        status_code=detail.status_code,
    )


def parse_shipment(tracking_number: str, payload: ShipmentPayloadInput) -> ShipmentRecord:
    shipment = _ensure_shipment_payload(payload)
    status = shipment.status
    return ShipmentRecord(
        tracking_number=shipment.awb or tracking_number,
        status=status.status.strip(),
        status_type=(status.status_type or status.scan_type).strip(),
        instructions=status.instructions.strip(),
        status_timestamp=status.status_date_time,
        status_location=status.status_location,
        status_code=status.status_code,
        dispatched_at=shipment.origin_receive_date,
        destination_received_at=shipment.destination_receive_date,
        delivered_at=shipment.delivery_date,
        returned_at=shipment.returned_date,
        rto_started_at=shipment.rto_started_date,
        reverse_in_transit=shipment.reverse_in_transit,
        promised_delivery_at=shipment.promised_delivery_date,
        expected_delivery_at=shipment.expected_delivery_date,
        scans=tuple(_parse_scan(scan) for scan in shipment.scans),
    )
