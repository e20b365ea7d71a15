"""Booking eligibility services."""
