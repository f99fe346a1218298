"""Periodic sample generation."""

from src.schedule.lib import DEFAULT_INTERVAL, SampleScheduler, SchedulerStats

__all__ = [
    "SampleScheduler",
    "SchedulerStats",
    "DEFAULT_INTERVAL",
]
