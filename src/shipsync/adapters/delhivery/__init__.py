"""Public interface for the Delhivery adapter."""

from __future__ import annotations

from .client import DelhiveryAPIError, DelhiveryTrackingClient
from .schema import ShipmentPayload, TrackingResponse
from .translator import parse_shipment

__all__ = [
    "DelhiveryAPIError",
    "DelhiveryTrackingClient",
    "ShipmentPayload",
    "TrackingResponse",
    "parse_shipment",
]
