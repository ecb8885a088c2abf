"""QCAR accident claim photo checks and PDF claim reports."""

__version__ = "0.1.0"
