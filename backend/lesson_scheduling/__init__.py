"""Scheduling core for lesson booking: slot search, conflict detection and recurrence expansion."""

__version__ = "0.1.0"
