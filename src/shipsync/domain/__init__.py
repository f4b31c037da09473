"""Shipment phase classification and ticket reconciliation."""
