"""Founder Circles: matching, circle lifecycle and trust jobs."""

__version__ = "0.1.0"
