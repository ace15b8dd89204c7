"""Tutoring lesson reports with asynchronous report generation."""

__version__ = "0.1.0"
