"""Data layer for the event-booking application."""

__version__ = "1.0.0"
