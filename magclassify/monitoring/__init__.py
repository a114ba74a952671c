"""Performance monitoring for the sample loop."""

from .metrics import PerformanceMonitor, PerformanceStats

__all__ = ["PerformanceMonitor", "PerformanceStats"]
