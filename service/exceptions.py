"""
Errors raised by the timetable service layer.
"""
from typing import Optional

from models.schemas import ConflictReport


class SchedulingError(Exception):
    """Base class for timetable scheduling errors."""

    title = "Scheduling Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidIntervalError(SchedulingError, ValueError):
    """A time interval is empty, inverted, or outside the allowed window."""

    title = "Invalid Time Interval"

    def __init__(self, message: str, field: str = "end_time"):
        super().__init__(message)
        self.field = field


class NotFoundError(SchedulingError):
    title = "Not Found"


class DuplicateTimetableError(SchedulingError):
    title = "Duplicate Timetable"


class PeriodConflictError(SchedulingError):
    """A period could not be committed because it overlaps an existing booking."""

    title = "Schedule Conflict"

    def __init__(self, message: str, report: Optional[ConflictReport] = None):
        super().__init__(message)
        self.report = report or ConflictReport(is_available=False, conflicts=[])
