"""
Timetable service.

Orchestrates the repository and the availability checker: read-only
pre-flight checks for the period form, and writes that re-run the same
checks under the repository lock so that two submissions which both passed
pre-flight cannot both be committed.
"""

from typing import Iterable, List, Optional
import logging

from models.schemas import (
    BreakTime, ConflictReport, Period, PeriodInput, PeriodSlot, ScheduleResponse,
    Timetable, TimetableCreateRequest, TimetableRecord, minutes_between
)
from service.availability import (
    check_availability_for_days, day_name, intervals_overlap, validate_interval
)
from service.exceptions import (
    DuplicateTimetableError, InvalidIntervalError, NotFoundError, PeriodConflictError
)
from service.repository import TimetableRepository, new_id

logger = logging.getLogger(__name__)


class TimetableService:
    """
    Timetable and period operations backed by a TimetableRepository.
    """

    def __init__(
        self,
        repository: TimetableRepository,
        max_period_duration_minutes: int = 240,
        enforce_operating_hours: bool = True,
    ):
        """
        Initialize the service.

        Args:
            repository: Storage for timetables, periods and break times
            max_period_duration_minutes: Longest period that may be stored
            enforce_operating_hours: If True, periods must lie within the
                timetable's daily start and end time
        """
        self.repository = repository
        self.max_period_duration_minutes = max_period_duration_minutes
        self.enforce_operating_hours = enforce_operating_hours

    # ---------------------------
    # Availability
    # ---------------------------

    def check_availability(
        self,
        candidate: PeriodInput,
        break_times: Optional[List[BreakTime]] = None,
        exclude_period_id: Optional[str] = None,
    ) -> ConflictReport:
        """
        Pre-flight check of a candidate period against the current snapshot.

        Teacher and classroom bookings are scoped to the term of the
        candidate's timetable, or taken from every timetable when the
        candidate has none yet. Without explicit break times, the stored
        break times of the candidate's timetable are used.
        """
        term_id = None
        if candidate.timetable_id:
            term_id = self._require_timetable(candidate.timetable_id).term_id
            if break_times is None:
                break_times = self.repository.list_break_times([candidate.timetable_id])

        return check_availability_for_days(
            candidate,
            self.repository.list_periods(teacher_id=candidate.teacher_id, term_id=term_id),
            self.repository.list_periods(classroom_id=candidate.classroom_id, term_id=term_id),
            break_times or [],
            exclude_period_id=exclude_period_id,
        )

    # ---------------------------
    # Timetables
    # ---------------------------

    def create_timetable(self, request: TimetableCreateRequest) -> Timetable:
        """Create a timetable with its break times and periods, all or nothing."""
        validate_interval(request.start_time, request.end_time)

        with self.repository.transaction() as repo:
            if repo.find_timetable(request.class_id, request.term_id):
                raise DuplicateTimetableError(
                    "A timetable already exists for this class in the selected term"
                )

            record = repo.add_timetable(TimetableRecord(
                id=new_id(),
                term_id=request.term_id,
                class_id=request.class_id,
                class_group_id=request.class_group_id,
                academic_calendar_id=request.academic_calendar_id,
                start_time=request.start_time,
                end_time=request.end_time,
            ))

            for break_input in request.break_times:
                validate_interval(break_input.start_time, break_input.end_time)
                repo.add_break_time(BreakTime(**dict(break_input), timetable_id=record.id))

            for slot in request.periods:
                self._commit_periods(record, slot)

        logger.info(
            f"Created timetable {record.id} for class {record.class_id} in term {record.term_id}"
        )
        return self.get_timetable(record.id)

    def get_timetable(self, timetable_id: str) -> Timetable:
        record = self._require_timetable(timetable_id)
        return Timetable(
            **dict(record),
            break_times=self.repository.list_break_times([record.id]),
            periods=self.repository.list_periods(timetable_id=record.id),
        )

    def list_timetables(self) -> List[Timetable]:
        return [self.get_timetable(record.id) for record in self.repository.list_timetables()]

    def delete_timetable(self, timetable_id: str) -> None:
        if not self.repository.delete_timetable(timetable_id):
            raise NotFoundError(f"Timetable {timetable_id} not found")
        logger.info(f"Deleted timetable {timetable_id}")

    def replace_periods(self, timetable_id: str, slots: Iterable[PeriodSlot]) -> Timetable:
        """Replace every period of a timetable; nothing changes if any slot conflicts."""
        with self.repository.transaction() as repo:
            record = self._require_timetable(timetable_id)
            removed = repo.delete_periods(timetable_id)
            for slot in slots:
                self._commit_periods(record, slot)

        logger.info(f"Replaced {removed} period(s) of timetable {timetable_id}")
        return self.get_timetable(timetable_id)

    # ---------------------------
    # Periods
    # ---------------------------

    def create_period(self, timetable_id: str, slot: PeriodSlot) -> List[Period]:
        """Create one period per selected day, or raise PeriodConflictError."""
        with self.repository.transaction():
            record = self._require_timetable(timetable_id)
            periods = self._commit_periods(record, slot)

        logger.info(
            f"Created {len(periods)} period(s) in timetable {timetable_id} "
            f"for teacher {slot.teacher_id}"
        )
        return periods

    def update_period(self, period_id: str, slot: PeriodSlot) -> List[Period]:
        """
        Replace a period with one period per selected day.

        The first selected day keeps the original period id. The edited
        period never conflicts with itself.
        """
        with self.repository.transaction() as repo:
            existing = repo.get_period(period_id)
            if existing is None:
                raise NotFoundError(f"Period {period_id} not found")
            record = self._require_timetable(existing.timetable_id)

            repo.delete_period(period_id)
            periods = self._commit_periods(
                record, slot, exclude_period_id=period_id, first_period_id=period_id
            )

        logger.info(f"Updated period {period_id} into {len(periods)} period(s)")
        return periods

    def delete_period(self, period_id: str) -> None:
        if not self.repository.delete_period(period_id):
            raise NotFoundError(f"Period {period_id} not found")
        logger.info(f"Deleted period {period_id}")

    # ---------------------------
    # Schedules
    # ---------------------------

    def get_teacher_schedule(self, teacher_id: str, term_id: str) -> ScheduleResponse:
        periods = self.repository.list_periods(teacher_id=teacher_id, term_id=term_id)
        return self._schedule(periods)

    def get_classroom_schedule(self, classroom_id: str, term_id: str) -> ScheduleResponse:
        periods = self.repository.list_periods(classroom_id=classroom_id, term_id=term_id)
        return self._schedule(periods)

    # ---------------------------
    # Helpers
    # ---------------------------

    def _schedule(self, periods: List[Period]) -> ScheduleResponse:
        """Periods plus the break times of the timetables they belong to."""
        timetable_ids = {p.timetable_id for p in periods}
        return ScheduleResponse(
            periods=periods,
            break_times=self.repository.list_break_times(timetable_ids),
        )

    def _require_timetable(self, timetable_id: Optional[str]) -> TimetableRecord:
        record = self.repository.get_timetable(timetable_id) if timetable_id else None
        if record is None:
            raise NotFoundError(f"Timetable {timetable_id} not found")
        return record

    def _validate_slot(self, record: TimetableRecord, slot: PeriodSlot):
        validate_interval(slot.start_time, slot.end_time)

        for field, duration in (
            ("end_time", minutes_between(slot.start_time, slot.end_time)),
            ("duration_in_minutes", slot.duration_in_minutes or 0),
        ):
            if duration > self.max_period_duration_minutes:
                raise InvalidIntervalError(
                    f"Period must not be longer than {self.max_period_duration_minutes} minutes",
                    field=field,
                )

        if self.enforce_operating_hours and (
            slot.start_time < record.start_time or slot.end_time > record.end_time
        ):
            raise InvalidIntervalError(
                f"Period must fall within the timetable's operating hours "
                f"({record.start_time.strftime('%H:%M')} to {record.end_time.strftime('%H:%M')})",
                field="start_time",
            )

    def _commit_periods(
        self,
        record: TimetableRecord,
        slot: PeriodSlot,
        exclude_period_id: Optional[str] = None,
        first_period_id: Optional[str] = None,
    ) -> List[Period]:
        """
        Check a slot against current state and store it. Caller holds the transaction.
        """
        self._validate_slot(record, slot)

        fields = {name: getattr(slot, name) for name in PeriodSlot.model_fields}
        candidate = PeriodInput(**fields, timetable_id=record.id)

        report = check_availability_for_days(
            candidate,
            self.repository.list_periods(teacher_id=slot.teacher_id, term_id=record.term_id),
            self.repository.list_periods(classroom_id=slot.classroom_id, term_id=record.term_id),
            self.repository.list_break_times([record.id]),
            exclude_period_id=exclude_period_id,
        )

        messages = [conflict.message for conflict in report.conflicts]
        for day in candidate.selected_days():
            for booked in self.repository.list_periods(timetable_id=record.id, day_of_week=day):
                if booked.id == exclude_period_id:
                    continue
                if intervals_overlap(slot.start_time, slot.end_time, booked.start_time, booked.end_time):
                    messages.append(
                        f"Time slot conflict on {day_name(day)} at {booked.start_time.strftime('%H:%M')}"
                    )

        if messages:
            logger.warning(
                f"Rejected period for teacher {slot.teacher_id} in timetable {record.id}: "
                f"{'; '.join(messages)}"
            )
            raise PeriodConflictError(
                "; ".join(messages),
                ConflictReport(is_available=False, conflicts=report.conflicts),
            )

        periods = []
        for index, day in enumerate(candidate.selected_days()):
            period_id = first_period_id if index == 0 else None
            periods.append(self.repository.add_period(candidate.for_day(day, period_id=period_id)))
        return periods
