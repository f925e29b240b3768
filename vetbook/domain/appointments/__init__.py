"""Appointments domain - Booking paths, status lifecycle and display projections"""

__all__ = []
