"""Source health monitoring."""

from .health_monitor import HealthMonitor, HealthState, SourceHealth

__all__ = [
    "HealthMonitor",
    "HealthState",
    "SourceHealth",
]
