"""Booked-date overlap checks and availability lookups."""
