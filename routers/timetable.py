from typing import List

from fastapi import APIRouter, Depends, Response, status
from models.schemas import (
    AvailabilityRequest, ConflictReport, Period, PeriodSlot, ScheduleResponse,
    Timetable, TimetableCreateRequest
)
from service.repository import TimetableRepository
from service.timetable_service import TimetableService
from config import settings

# Create a router instance
router = APIRouter()

_service = TimetableService(
    TimetableRepository(),
    max_period_duration_minutes=settings.max_period_duration_minutes,
    enforce_operating_hours=settings.enforce_operating_hours,
)


def get_timetable_service() -> TimetableService:
    """Shared service instance; overridden in tests."""
    return _service


@router.post("/timetables/check-availability", response_model=ConflictReport)
async def check_availability(
    request: AvailabilityRequest,
    service: TimetableService = Depends(get_timetable_service),
):
    """
    Check whether a period can be placed on every selected day.

    Conflicts are reported in the body; they are not an error.
    """
    return service.check_availability(
        request.period,
        break_times=request.break_times,
        exclude_period_id=request.exclude_period_id,
    )


@router.post("/timetables", response_model=Timetable, status_code=status.HTTP_201_CREATED)
async def create_timetable(
    request: TimetableCreateRequest,
    service: TimetableService = Depends(get_timetable_service),
):
    """Create a timetable for a class in a term, with its break times and periods."""
    return service.create_timetable(request)


@router.get("/timetables", response_model=List[Timetable])
async def list_timetables(service: TimetableService = Depends(get_timetable_service)):
    return service.list_timetables()


@router.get("/timetables/{timetable_id}", response_model=Timetable)
async def get_timetable(timetable_id: str, service: TimetableService = Depends(get_timetable_service)):
    return service.get_timetable(timetable_id)


@router.delete("/timetables/{timetable_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_timetable(timetable_id: str, service: TimetableService = Depends(get_timetable_service)):
    service.delete_timetable(timetable_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/timetables/{timetable_id}/periods", response_model=Timetable)
async def replace_periods(
    timetable_id: str,
    slots: List[PeriodSlot],
    service: TimetableService = Depends(get_timetable_service),
):
    """Replace all periods of a timetable in one step."""
    return service.replace_periods(timetable_id, slots)


@router.post(
    "/timetables/{timetable_id}/periods",
    response_model=List[Period],
    status_code=status.HTTP_201_CREATED,
)
async def create_period(
    timetable_id: str,
    slot: PeriodSlot,
    service: TimetableService = Depends(get_timetable_service),
):
    """Create one period per selected day, or fail with 409 if any day conflicts."""
    return service.create_period(timetable_id, slot)


@router.put("/periods/{period_id}", response_model=List[Period])
async def update_period(
    period_id: str,
    slot: PeriodSlot,
    service: TimetableService = Depends(get_timetable_service),
):
    return service.update_period(period_id, slot)


@router.delete("/periods/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_period(period_id: str, service: TimetableService = Depends(get_timetable_service)):
    service.delete_period(period_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/teachers/{teacher_id}/schedule", response_model=ScheduleResponse)
async def get_teacher_schedule(
    teacher_id: str,
    term_id: str,
    service: TimetableService = Depends(get_timetable_service),
):
    """Weekly periods of a teacher in a term, with the related break times."""
    return service.get_teacher_schedule(teacher_id, term_id)


@router.get("/classrooms/{classroom_id}/schedule", response_model=ScheduleResponse)
async def get_classroom_schedule(
    classroom_id: str,
    term_id: str,
    service: TimetableService = Depends(get_timetable_service),
):
    """Weekly bookings of a classroom in a term, with the related break times."""
    return service.get_classroom_schedule(classroom_id, term_id)
