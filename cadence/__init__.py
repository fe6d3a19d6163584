"""cadence — self-rescheduling recurring tasks."""
