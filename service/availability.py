"""
Period availability checking.

Pure functions that compare a candidate teaching period against a snapshot of
existing teacher bookings, classroom bookings and break times. Nothing here
reads or writes storage; callers fetch the snapshot and decide what to do
with the resulting report.
"""

from datetime import time
from typing import Iterable, List, Optional
import logging

from models.schemas import (
    BreakTime, Conflict, ConflictDetails, ConflictReport, Period, PeriodInput
)
from service.exceptions import InvalidIntervalError

logger = logging.getLogger(__name__)

DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

BREAK_LABELS = {
    "SHORT_BREAK": "short break",
    "LUNCH_BREAK": "lunch break",
}


def day_name(day_of_week: int) -> str:
    return DAY_NAMES.get(day_of_week, f"day {day_of_week}")


def intervals_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open overlap test: [start1, end1) and [start2, end2) share any instant."""
    return start1 < end2 and start2 < end1


def validate_interval(start_time: time, end_time: time, field: str = "end_time") -> None:
    """Raise InvalidIntervalError unless start_time < end_time."""
    if start_time >= end_time:
        raise InvalidIntervalError(
            f"End time ({end_time.strftime('%H:%M')}) must be after "
            f"start time ({start_time.strftime('%H:%M')})",
            field=field,
        )


def _same_slot_periods(
    periods: Iterable[Period],
    day_of_week: int,
    exclude_period_id: Optional[str],
    **match
) -> List[Period]:
    selected = []
    for period in periods:
        if period.day_of_week != day_of_week:
            continue
        if exclude_period_id is not None and period.id == exclude_period_id:
            continue
        if any(getattr(period, attr) != value for attr, value in match.items()):
            continue
        selected.append(period)
    return selected


def _period_conflict(kind: str, booking: Period) -> Conflict:
    window = f"{booking.start_time.strftime('%H:%M')} to {booking.end_time.strftime('%H:%M')}"
    day = day_name(booking.day_of_week)
    if kind == "TEACHER":
        entity_id = booking.teacher_id
        message = f"Teacher already has a class scheduled on {day} from {window}"
    else:
        entity_id = booking.classroom_id
        message = f"Classroom is already booked on {day} from {window}"
    return Conflict(
        type=kind,
        details=ConflictDetails(
            start_time=booking.start_time,
            end_time=booking.end_time,
            day_of_week=booking.day_of_week,
            entity_id=entity_id,
        ),
        message=message,
    )


def _break_conflict(break_time: BreakTime) -> Conflict:
    label = BREAK_LABELS.get(break_time.type, "break")
    return Conflict(
        type="BREAK_TIME",
        details=ConflictDetails(
            start_time=break_time.start_time,
            end_time=break_time.end_time,
            day_of_week=break_time.day_of_week,
            entity_id=break_time.id or "break",
        ),
        message=(
            f"Overlaps the {label} on {day_name(break_time.day_of_week)} from "
            f"{break_time.start_time.strftime('%H:%M')} to {break_time.end_time.strftime('%H:%M')}"
        ),
    )


def check_availability(
    candidate: Period,
    existing_teacher_periods: Iterable[Period],
    existing_classroom_periods: Iterable[Period],
    break_times: Iterable[BreakTime],
    exclude_period_id: Optional[str] = None,
) -> ConflictReport:
    """
    Check a single-day candidate period against existing bookings.

    Args:
        candidate: The period to place. Its ``id``, when set, is excluded
            from the comparison unless ``exclude_period_id`` is given.
        existing_teacher_periods: Periods that may belong to the candidate's teacher
        existing_classroom_periods: Periods that may use the candidate's classroom
        break_times: Break windows; only those of the candidate's timetable
            (or unbound ones) on the same day are considered
        exclude_period_id: Period being edited, never a conflict with itself

    Returns:
        ConflictReport listing every overlapping booking

    Raises:
        InvalidIntervalError: If the candidate's start is not before its end
    """
    validate_interval(candidate.start_time, candidate.end_time)

    if exclude_period_id is None:
        exclude_period_id = candidate.id

    day = candidate.day_of_week
    teacher_periods = _same_slot_periods(
        existing_teacher_periods, day, exclude_period_id, teacher_id=candidate.teacher_id
    )
    classroom_periods = _same_slot_periods(
        existing_classroom_periods, day, exclude_period_id, classroom_id=candidate.classroom_id
    )
    day_breaks = [
        bt for bt in break_times
        if bt.day_of_week == day and bt.timetable_id in (None, candidate.timetable_id)
    ]

    conflicts: List[Conflict] = []
    for kind, bookings in (("TEACHER", teacher_periods), ("CLASSROOM", classroom_periods)):
        for booking in bookings:
            if intervals_overlap(candidate.start_time, candidate.end_time,
                                 booking.start_time, booking.end_time):
                conflicts.append(_period_conflict(kind, booking))

    for break_time in day_breaks:
        if intervals_overlap(candidate.start_time, candidate.end_time,
                             break_time.start_time, break_time.end_time):
            conflicts.append(_break_conflict(break_time))

    return ConflictReport(is_available=not conflicts, conflicts=conflicts)


def check_availability_for_days(
    candidate: PeriodInput,
    existing_teacher_periods: Iterable[Period],
    existing_classroom_periods: Iterable[Period],
    break_times: Iterable[BreakTime],
    exclude_period_id: Optional[str] = None,
) -> ConflictReport:
    """
    Check a multi-day candidate by running one single-day check per selected day.

    The result is available only if every day is available; conflicts from
    all days are reported in day order.
    """
    validate_interval(candidate.start_time, candidate.end_time)

    teacher_periods = list(existing_teacher_periods)
    classroom_periods = list(existing_classroom_periods)
    breaks = list(break_times)

    conflicts: List[Conflict] = []
    for day in candidate.selected_days():
        report = check_availability(
            candidate.for_day(day),
            teacher_periods,
            classroom_periods,
            breaks,
            exclude_period_id=exclude_period_id,
        )
        conflicts.extend(report.conflicts)

    logger.debug(
        f"Availability for teacher {candidate.teacher_id}, classroom {candidate.classroom_id} "
        f"on days {candidate.selected_days()}: {len(conflicts)} conflict(s)"
    )
    return ConflictReport(is_available=not conflicts, conflicts=conflicts)
