from pydantic import AfterValidator, BaseModel, Field, PlainSerializer
from typing import Annotated, List, Literal, Optional
from datetime import datetime, time


def _whole_minute_clock_time(value: time) -> time:
    """Reject offset-aware times and sub-minute precision."""
    if value.tzinfo is not None:
        raise ValueError("time must not carry a timezone")
    if value.second or value.microsecond:
        raise ValueError("time must be a whole minute (HH:MM)")
    return value


# Wall-clock time of day, serialized as "HH:MM"
ClockTime = Annotated[
    time,
    AfterValidator(_whole_minute_clock_time),
    PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str),
]

# 1 = Monday ... 7 = Sunday
DayOfWeek = Annotated[int, Field(ge=1, le=7)]

BreakType = Literal["SHORT_BREAK", "LUNCH_BREAK"]
ConflictType = Literal["TEACHER", "CLASSROOM", "BREAK_TIME"]


def minutes_between(start: time, end: time) -> int:
    """Whole minutes from start to end on the same day (negative if inverted)."""
    reference = datetime.min.date()
    delta = datetime.combine(reference, end) - datetime.combine(reference, start)
    return int(delta.total_seconds() // 60)


# ===========================
# Time Models
# ===========================

class TimeInterval(BaseModel):
    """Half-open [start_time, end_time) range on one day of the week"""
    start_time: ClockTime  # HH:MM format, e.g., "09:00"
    end_time: ClockTime
    day_of_week: DayOfWeek


class BreakTime(TimeInterval):
    """Recurring non-teaching window of a timetable"""
    id: Optional[str] = None
    type: BreakType
    timetable_id: Optional[str] = None  # None: applies to any candidate it is checked against


class Period(TimeInterval):
    """Single scheduled teaching slot on one day"""
    id: Optional[str] = None
    teacher_id: str
    classroom_id: str
    subject_id: str
    timetable_id: Optional[str] = None
    duration_in_minutes: Optional[int] = Field(default=None, ge=1)


# ===========================
# Period Input Models
# ===========================

class PeriodSlot(BaseModel):
    """Period as submitted by the period form; may cover several days"""
    start_time: ClockTime
    end_time: ClockTime
    days_of_week: List[DayOfWeek] = Field(min_length=1)
    subject_id: str = Field(min_length=1)
    teacher_id: str = Field(min_length=1)
    classroom_id: str = Field(min_length=1)
    duration_in_minutes: Optional[int] = Field(default=None, ge=1)

    def selected_days(self) -> List[int]:
        """Distinct selected days in ascending order."""
        return sorted(set(self.days_of_week))

    def for_day(self, day_of_week: int, timetable_id: Optional[str] = None,
                period_id: Optional[str] = None) -> Period:
        duration = self.duration_in_minutes
        if duration is None and self.start_time < self.end_time:
            duration = minutes_between(self.start_time, self.end_time)
        return Period(
            id=period_id,
            start_time=self.start_time,
            end_time=self.end_time,
            day_of_week=day_of_week,
            teacher_id=self.teacher_id,
            classroom_id=self.classroom_id,
            subject_id=self.subject_id,
            timetable_id=timetable_id,
            duration_in_minutes=duration,
        )


class PeriodInput(PeriodSlot):
    """Candidate period for an availability check"""
    id: Optional[str] = None
    timetable_id: Optional[str] = None

    def for_day(self, day_of_week: int, timetable_id: Optional[str] = None,
                period_id: Optional[str] = None) -> Period:
        return super().for_day(
            day_of_week,
            timetable_id=timetable_id or self.timetable_id,
            period_id=period_id or self.id,
        )


class BreakTimeInput(BaseModel):
    """Break time as submitted with a new timetable"""
    start_time: ClockTime
    end_time: ClockTime
    day_of_week: DayOfWeek
    type: BreakType


# ===========================
# Conflict Models
# ===========================

class ConflictDetails(BaseModel):
    """The existing booking a candidate overlaps"""
    start_time: ClockTime
    end_time: ClockTime
    day_of_week: int
    entity_id: str  # teacher id, classroom id, or break id


class Conflict(BaseModel):
    type: ConflictType
    details: ConflictDetails
    message: str


class ConflictReport(BaseModel):
    """Result of an availability check"""
    is_available: bool
    conflicts: List[Conflict] = []


# ===========================
# Request Schemas
# ===========================

class AvailabilityRequest(BaseModel):
    """Pre-flight availability check for a (possibly multi-day) period"""
    period: PeriodInput
    break_times: Optional[List[BreakTime]] = None  # None: use the timetable's stored break times
    exclude_period_id: Optional[str] = None


class TimetableCreateRequest(BaseModel):
    """New timetable for one class within a term"""
    term_id: str
    class_id: str
    class_group_id: str
    academic_calendar_id: Optional[str] = None
    start_time: ClockTime  # Daily start time
    end_time: ClockTime    # Daily end time
    break_times: List[BreakTimeInput] = []
    periods: List[PeriodSlot] = []


# ===========================
# Response Schemas
# ===========================

class TimetableRecord(BaseModel):
    """Stored timetable header"""
    id: str
    term_id: str
    class_id: str
    class_group_id: str
    academic_calendar_id: Optional[str] = None
    start_time: ClockTime
    end_time: ClockTime


class Timetable(TimetableRecord):
    """Timetable with its break times and periods"""
    break_times: List[BreakTime] = []
    periods: List[Period] = []


class ScheduleResponse(BaseModel):
    """Weekly schedule of one teacher or classroom within a term"""
    periods: List[Period]
    break_times: List[BreakTime]


class ErrorMessage(BaseModel):
    """Error or warning message"""
    title: str
    message: str


class Messages(BaseModel):
    """Collection of error/warning messages"""
    error_message: List[ErrorMessage] = []


class ErrorResponse(BaseModel):
    """Body returned for domain errors"""
    messages: Messages = Messages()
    conflicts: List[Conflict] = []
