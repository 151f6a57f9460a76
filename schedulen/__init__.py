"""ScheduleN: scheduling polls with availability tallies and calendar export."""

__version__ = "0.1.0"
