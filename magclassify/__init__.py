"""Magnet presence detection and position classification from a
magnetometer plus orientation stream."""

__version__ = "0.1.0"
