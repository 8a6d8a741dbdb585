"""Protocols for collaborators of the timetable core."""
