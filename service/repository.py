"""
In-process storage for timetables, periods and break times.

Stands in for the relational store: records live in dictionaries keyed by
generated ids, and every write that must be checked against current state
happens inside ``transaction()``, which serializes writers and rolls back
on error.
"""

from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional
import copy
import logging
import threading
import uuid

from models.schemas import BreakTime, Period, TimetableRecord

logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid.uuid4())


def _schedule_order(item):
    return (item.day_of_week, item.start_time)


class TimetableRepository:
    """Thread-safe in-memory repository."""

    def __init__(self):
        self._lock = threading.RLock()
        self._timetables: Dict[str, TimetableRecord] = {}
        self._periods: Dict[str, Period] = {}
        self._break_times: Dict[str, BreakTime] = {}

    @contextmanager
    def transaction(self) -> Iterator["TimetableRepository"]:
        """Hold the write lock for the block; restore prior state if it raises."""
        with self._lock:
            saved = (
                copy.copy(self._timetables),
                copy.copy(self._periods),
                copy.copy(self._break_times),
            )
            try:
                yield self
            except Exception:
                self._timetables, self._periods, self._break_times = saved
                logger.debug("Transaction rolled back")
                raise

    # ---------------------------
    # Timetables
    # ---------------------------

    def add_timetable(self, record: TimetableRecord) -> TimetableRecord:
        with self._lock:
            self._timetables[record.id] = record
        return record

    def get_timetable(self, timetable_id: str) -> Optional[TimetableRecord]:
        return self._timetables.get(timetable_id)

    def list_timetables(self) -> List[TimetableRecord]:
        with self._lock:
            return list(self._timetables.values())

    def find_timetable(self, class_id: str, term_id: str) -> Optional[TimetableRecord]:
        with self._lock:
            for record in self._timetables.values():
                if record.class_id == class_id and record.term_id == term_id:
                    return record
        return None

    def delete_timetable(self, timetable_id: str) -> bool:
        """Delete a timetable with its periods and break times."""
        with self._lock:
            if self._timetables.pop(timetable_id, None) is None:
                return False
            self.delete_periods(timetable_id)
            for break_id in [b.id for b in self._break_times.values() if b.timetable_id == timetable_id]:
                del self._break_times[break_id]
            return True

    # ---------------------------
    # Break times
    # ---------------------------

    def add_break_time(self, break_time: BreakTime) -> BreakTime:
        stored = break_time.model_copy(update={"id": break_time.id or new_id()})
        with self._lock:
            self._break_times[stored.id] = stored
        return stored

    def list_break_times(self, timetable_ids: Optional[Iterable[str]] = None) -> List[BreakTime]:
        with self._lock:
            items = list(self._break_times.values())
        if timetable_ids is not None:
            wanted = set(timetable_ids)
            items = [b for b in items if b.timetable_id in wanted]
        return sorted(items, key=_schedule_order)

    # ---------------------------
    # Periods
    # ---------------------------

    def add_period(self, period: Period) -> Period:
        stored = period.model_copy(update={"id": period.id or new_id()})
        with self._lock:
            self._periods[stored.id] = stored
        return stored

    def get_period(self, period_id: str) -> Optional[Period]:
        return self._periods.get(period_id)

    def delete_period(self, period_id: str) -> bool:
        with self._lock:
            return self._periods.pop(period_id, None) is not None

    def delete_periods(self, timetable_id: str) -> int:
        with self._lock:
            doomed = [p.id for p in self._periods.values() if p.timetable_id == timetable_id]
            for period_id in doomed:
                del self._periods[period_id]
        return len(doomed)

    def list_periods(
        self,
        teacher_id: Optional[str] = None,
        classroom_id: Optional[str] = None,
        timetable_id: Optional[str] = None,
        day_of_week: Optional[int] = None,
        term_id: Optional[str] = None,
    ) -> List[Period]:
        """List periods matching every given filter, ordered by day then start time."""
        with self._lock:
            items = list(self._periods.values())
            if term_id is not None:
                term_timetables = {t.id for t in self._timetables.values() if t.term_id == term_id}
                items = [p for p in items if p.timetable_id in term_timetables]
        if teacher_id is not None:
            items = [p for p in items if p.teacher_id == teacher_id]
        if classroom_id is not None:
            items = [p for p in items if p.classroom_id == classroom_id]
        if timetable_id is not None:
            items = [p for p in items if p.timetable_id == timetable_id]
        if day_of_week is not None:
            items = [p for p in items if p.day_of_week == day_of_week]
        return sorted(items, key=_schedule_order)
