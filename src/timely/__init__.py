"""Timely - time entry tracking client for the Timely API."""

__version__ = "0.1.0"
