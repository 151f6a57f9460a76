"""HTTP API for ScheduleN."""
