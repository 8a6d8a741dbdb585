"""Application layer - timetable services."""
