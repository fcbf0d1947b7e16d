"""
Test the timetable API with self-contained test data.
"""
import pytest
from fastapi.testclient import TestClient
from main import app
from routers.timetable import get_timetable_service
from service.repository import TimetableRepository
from service.timetable_service import TimetableService


client = TestClient(app)


@pytest.fixture(autouse=True)
def fresh_service():
    """Give every test its own empty repository."""
    service = TimetableService(TimetableRepository())
    app.dependency_overrides[get_timetable_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


# Test data fixtures
def get_timetable_request(class_id="class-1", term_id="term-1"):
    """Return a minimal valid timetable creation request."""
    return {
        "term_id": term_id,
        "class_id": class_id,
        "class_group_id": "group-1",
        "start_time": "08:00",
        "end_time": "16:00",
        "break_times": [
            {"start_time": "10:15", "end_time": "10:30", "day_of_week": 1, "type": "SHORT_BREAK"},
            {"start_time": "12:00", "end_time": "12:45", "day_of_week": 1, "type": "LUNCH_BREAK"}
        ],
        "periods": []
    }


def get_period_slot(start_time="09:00", end_time="10:00", days=None, teacher_id="teacher-x",
                    classroom_id="room-1"):
    """Return a period form submission."""
    return {
        "start_time": start_time,
        "end_time": end_time,
        "days_of_week": days or [1],
        "subject_id": "math",
        "teacher_id": teacher_id,
        "classroom_id": classroom_id
    }


def create_timetable(**kwargs):
    response = client.post("/api/v1/timetables", json=get_timetable_request(**kwargs))
    assert response.status_code == 201
    return response.json()


def test_health_endpoints():
    """Test root and health endpoints."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_create_and_get_timetable():
    """Test timetable creation round trip with HH:MM times."""
    created = create_timetable()

    assert created["start_time"] == "08:00"
    assert [b["type"] for b in created["break_times"]] == ["SHORT_BREAK", "LUNCH_BREAK"]

    response = client.get(f"/api/v1/timetables/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created

    response = client.get("/api/v1/timetables")
    assert [t["id"] for t in response.json()] == [created["id"]]


def test_duplicate_timetable_returns_conflict():
    create_timetable()

    response = client.post("/api/v1/timetables", json=get_timetable_request())

    assert response.status_code == 409
    messages = response.json()["messages"]["error_message"]
    assert messages[0]["title"] == "Duplicate Timetable"


def test_unknown_timetable_returns_not_found():
    response = client.get("/api/v1/timetables/missing")

    assert response.status_code == 404
    assert "missing" in response.json()["messages"]["error_message"][0]["message"]


def test_check_availability_without_conflicts():
    timetable = create_timetable()
    period = dict(get_period_slot("10:30", "11:30", days=[1, 2]), timetable_id=timetable["id"])

    response = client.post("/api/v1/timetables/check-availability", json={"period": period})

    assert response.status_code == 200
    assert response.json() == {"is_available": True, "conflicts": []}


def test_check_availability_reports_conflicts_in_body():
    """Conflicts are a 200 response, not an error."""
    timetable = create_timetable()
    client.post(f"/api/v1/timetables/{timetable['id']}/periods", json=get_period_slot("09:00", "10:00"))
    period = dict(get_period_slot("09:30", "10:30", days=[1, 3], classroom_id="room-2"),
                  timetable_id=timetable["id"])

    response = client.post("/api/v1/timetables/check-availability", json={"period": period})

    assert response.status_code == 200
    data = response.json()
    assert data["is_available"] is False
    assert [c["type"] for c in data["conflicts"]] == ["TEACHER", "BREAK_TIME"]
    assert data["conflicts"][0]["details"] == {
        "start_time": "09:00",
        "end_time": "10:00",
        "day_of_week": 1,
        "entity_id": "teacher-x"
    }


def test_check_availability_with_form_break_times():
    """Break times sent by the form apply before the timetable exists."""
    period = get_period_slot("12:00", "13:00")
    break_times = [{"start_time": "12:30", "end_time": "13:15", "day_of_week": 1, "type": "LUNCH_BREAK"}]

    response = client.post(
        "/api/v1/timetables/check-availability",
        json={"period": period, "break_times": break_times}
    )

    assert response.status_code == 200
    assert response.json()["conflicts"][0]["type"] == "BREAK_TIME"


def test_check_availability_excludes_edited_period():
    timetable = create_timetable()
    created = client.post(f"/api/v1/timetables/{timetable['id']}/periods", json=get_period_slot()).json()
    period = dict(get_period_slot("09:00", "10:00"), timetable_id=timetable["id"])

    response = client.post(
        "/api/v1/timetables/check-availability",
        json={"period": period, "exclude_period_id": created[0]["id"]}
    )

    assert response.json()["is_available"] is True


def test_inverted_interval_returns_validation_error():
    response = client.post(
        "/api/v1/timetables/check-availability",
        json={"period": get_period_slot("11:00", "10:00")}
    )

    assert response.status_code == 422
    assert "End Time" in response.json()["errors"]


def test_invalid_time_format_returns_human_message():
    period = get_period_slot("9 o'clock", "10:00")

    response = client.post("/api/v1/timetables/check-availability", json={"period": period})

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["Period -> Start Time"] == ["Period -> Start Time must be in HH:MM format (e.g., '09:00')."]


def test_missing_days_returns_validation_error():
    period = get_period_slot()
    period["days_of_week"] = []

    response = client.post("/api/v1/timetables/check-availability", json={"period": period})

    assert response.status_code == 422
    assert "Period -> Days" in response.json()["errors"]


def test_create_period_for_multiple_days():
    timetable = create_timetable()

    response = client.post(
        f"/api/v1/timetables/{timetable['id']}/periods",
        json=get_period_slot(days=[3, 1])
    )

    assert response.status_code == 201
    periods = response.json()
    assert [p["day_of_week"] for p in periods] == [1, 3]
    assert all(p["timetable_id"] == timetable["id"] for p in periods)
    assert periods[0]["duration_in_minutes"] == 60


def test_create_period_conflict_returns_409_with_conflicts():
    timetable = create_timetable()
    client.post(f"/api/v1/timetables/{timetable['id']}/periods", json=get_period_slot())

    response = client.post(
        f"/api/v1/timetables/{timetable['id']}/periods",
        json=get_period_slot("09:30", "10:00", teacher_id="teacher-y")
    )

    assert response.status_code == 409
    data = response.json()
    assert data["messages"]["error_message"][0]["title"] == "Schedule Conflict"
    assert [c["type"] for c in data["conflicts"]] == ["CLASSROOM"]


def test_create_period_outside_operating_hours():
    timetable = create_timetable()

    response = client.post(
        f"/api/v1/timetables/{timetable['id']}/periods",
        json=get_period_slot("07:00", "08:30")
    )

    assert response.status_code == 422
    assert "Start Time" in response.json()["errors"]


def test_update_and_delete_period():
    timetable = create_timetable()
    [period] = client.post(f"/api/v1/timetables/{timetable['id']}/periods", json=get_period_slot()).json()

    response = client.put(f"/api/v1/periods/{period['id']}", json=get_period_slot("09:00", "09:45"))
    assert response.status_code == 200
    assert response.json()[0]["id"] == period["id"]
    assert response.json()[0]["end_time"] == "09:45"

    response = client.delete(f"/api/v1/periods/{period['id']}")
    assert response.status_code == 204

    response = client.put(f"/api/v1/periods/{period['id']}", json=get_period_slot())
    assert response.status_code == 404


def test_replace_periods():
    timetable = create_timetable()
    client.post(f"/api/v1/timetables/{timetable['id']}/periods", json=get_period_slot())

    response = client.put(
        f"/api/v1/timetables/{timetable['id']}/periods",
        json=[get_period_slot("13:00", "14:00", days=[2]), get_period_slot("14:00", "15:00", days=[2])]
    )

    assert response.status_code == 200
    assert [(p["day_of_week"], p["start_time"]) for p in response.json()["periods"]] == [
        (2, "13:00"), (2, "14:00")
    ]


def test_delete_timetable():
    timetable = create_timetable()

    response = client.delete(f"/api/v1/timetables/{timetable['id']}")
    assert response.status_code == 204

    response = client.delete(f"/api/v1/timetables/{timetable['id']}")
    assert response.status_code == 404


def test_teacher_and_classroom_schedule():
    timetable = create_timetable()
    client.post(f"/api/v1/timetables/{timetable['id']}/periods", json=get_period_slot(days=[1, 2]))

    response = client.get("/api/v1/teachers/teacher-x/schedule", params={"term_id": "term-1"})
    assert response.status_code == 200
    data = response.json()
    assert len(data["periods"]) == 2
    assert len(data["break_times"]) == 2

    response = client.get("/api/v1/classrooms/room-1/schedule", params={"term_id": "term-1"})
    assert len(response.json()["periods"]) == 2

    response = client.get("/api/v1/classrooms/room-1/schedule")
    assert response.status_code == 422


@pytest.mark.parametrize("start_time", ["09:00Z", "09:00+02:00", "09:00:30"])
def test_clock_times_must_be_plain_whole_minutes(start_time):
    """Timezone offsets and seconds are rejected instead of normalized."""
    period = get_period_slot(start_time, "10:00")

    response = client.post("/api/v1/timetables/check-availability", json={"period": period})

    assert response.status_code == 422
    assert "Period -> Start Time" in response.json()["errors"]


def test_timetable_with_offset_time_is_rejected():
    request = get_timetable_request()
    request["end_time"] = "16:00Z"

    response = client.post("/api/v1/timetables", json=request)

    assert response.status_code == 422
    assert "End Time" in response.json()["errors"]
