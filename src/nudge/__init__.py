"""Nudge - focus session timer with crash-safe session persistence."""

__version__ = "0.1.0"
