"""Pomocycle - work/break cycle timer with task attribution and focus statistics."""

__version__ = "0.1.0"
