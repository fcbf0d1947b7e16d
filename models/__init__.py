"""
Data models and Pydantic schemas for the timetable API.
"""
from .schemas import (
    TimeInterval,
    BreakTime,
    Period,
    PeriodSlot,
    PeriodInput,
    BreakTimeInput,
    ConflictDetails,
    Conflict,
    ConflictReport,
    AvailabilityRequest,
    TimetableCreateRequest,
    TimetableRecord,
    Timetable,
    ScheduleResponse,
    ErrorMessage,
    Messages,
    ErrorResponse
)

__all__ = [
    "TimeInterval",
    "BreakTime",
    "Period",
    "PeriodSlot",
    "PeriodInput",
    "BreakTimeInput",
    "ConflictDetails",
    "Conflict",
    "ConflictReport",
    "AvailabilityRequest",
    "TimetableCreateRequest",
    "TimetableRecord",
    "Timetable",
    "ScheduleResponse",
    "ErrorMessage",
    "Messages",
    "ErrorResponse"
]
