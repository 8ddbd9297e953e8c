"""Cabin booking: seasonal pricing, availability, reservations and search."""
