def test_time_slot_overlap_rules(client, admin_headers, create_time_slot):
    first = create_time_slot("Morning", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    assert first["startTime"] == "2026-01-05T09:00:00+00:00"
    assert first["display"] == "Morning (9:00 AM - 10:00 AM)"
    assert first["isActive"] is True

    # Touching the end of an existing slot is allowed.
    create_time_slot("Late Morning", "2026-01-05T10:00:00", "2026-01-05T11:00:00")

    clash = client.post(
        "/api/timeslots",
        json={"name": "Clash", "startTime": "2026-01-05T09:30:00", "endTime": "2026-01-05T10:30:00"},
        headers=admin_headers,
    )
    assert clash.status_code == 409
    body = clash.json()
    assert body["success"] is False
    assert body["message"] == "Time slot overlaps with existing time slot"
    assert body["error"]["type"] == "ConflictError"

    listed = client.get("/api/timeslots", headers=admin_headers)
    assert listed.status_code == 200
    assert [item["name"] for item in listed.json()["data"]] == ["Morning", "Late Morning"]


def test_time_slot_offsets_are_normalized_to_utc(client, admin_headers, create_time_slot):
    created = create_time_slot("Offset", "2026-01-05T11:00:00+02:00", "2026-01-05T12:00:00+02:00")
    assert created["startTime"] == "2026-01-05T09:00:00+00:00"
    assert created["endTime"] == "2026-01-05T10:00:00+00:00"

    clash = client.post(
        "/api/timeslots",
        json={"name": "Same instant", "startTime": "2026-01-05T09:15:00Z", "endTime": "2026-01-05T09:45:00Z"},
        headers=admin_headers,
    )
    assert clash.status_code == 409


def test_time_slot_rejects_inverted_interval(client, admin_headers):
    response = client.post(
        "/api/timeslots",
        json={"name": "Backwards", "startTime": "2026-01-05T10:00:00", "endTime": "2026-01-05T09:00:00"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "End time must be after start time"

    empty = client.post(
        "/api/timeslots",
        json={"name": "Empty", "startTime": "2026-01-05T09:00:00", "endTime": "2026-01-05T09:00:00"},
        headers=admin_headers,
    )
    assert empty.status_code == 400


def test_update_time_slot_excludes_itself(client, admin_headers, create_time_slot):
    first = create_time_slot("First", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    second = create_time_slot("Second", "2026-01-05T10:00:00", "2026-01-05T11:00:00")

    widened = client.put(
        f"/api/timeslots/{first['id']}",
        json={"startTime": "2026-01-05T08:30:00"},
        headers=admin_headers,
    )
    assert widened.status_code == 200
    assert widened.json()["data"]["startTime"] == "2026-01-05T08:30:00+00:00"
    assert widened.json()["data"]["endTime"] == "2026-01-05T10:00:00+00:00"

    clash = client.put(
        f"/api/timeslots/{second['id']}",
        json={"name": "Renamed", "startTime": "2026-01-05T09:30:00"},
        headers=admin_headers,
    )
    assert clash.status_code == 409

    unchanged = client.get(f"/api/timeslots/{second['id']}", headers=admin_headers)
    assert unchanged.json()["data"]["name"] == "Second"
    assert unchanged.json()["data"]["startTime"] == "2026-01-05T10:00:00+00:00"

    renamed = client.put(f"/api/timeslots/{second['id']}", json={"name": "Renamed"}, headers=admin_headers)
    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Renamed"

    blank = client.put(f"/api/timeslots/{second['id']}", json={"name": "   "}, headers=admin_headers)
    assert blank.status_code == 400
    assert blank.json()["error"]["type"] == "ValidationError"
    assert client.get(f"/api/timeslots/{second['id']}", headers=admin_headers).json()["data"]["name"] == "Renamed"

    padded = client.put(f"/api/timeslots/{second['id']}", json={"name": "  Late Morning  "}, headers=admin_headers)
    assert padded.json()["data"]["name"] == "Late Morning"


def test_check_overlap_endpoint(client, admin_headers, create_time_slot):
    slot = create_time_slot("Morning", "2026-01-05T09:00:00", "2026-01-05T10:00:00")

    response = client.get(
        "/api/timeslots/check-overlap",
        params={"startTime": "2026-01-05T09:30:00", "endTime": "2026-01-05T11:00:00"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["hasOverlap"] is True
    assert [item["id"] for item in data["overlappingSlots"]] == [slot["id"]]

    excluded = client.get(
        "/api/timeslots/check-overlap",
        params={"startTime": "2026-01-05T09:30:00", "endTime": "2026-01-05T11:00:00", "excludeId": slot["id"]},
        headers=admin_headers,
    )
    assert excluded.json()["data"] == {"hasOverlap": False, "overlappingSlots": []}

    missing = client.get(
        "/api/timeslots/check-overlap",
        params={"startTime": "2026-01-05T09:30:00"},
        headers=admin_headers,
    )
    assert missing.status_code == 400
    assert missing.json()["message"] == "Start time and end time are required"


def test_delete_time_slot_blocked_by_active_schedule(
    client, admin_headers, create_unit, create_time_slot, create_schedule, day_ids
):
    unit = create_unit("CS101")
    used = create_time_slot("Used", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    free = create_time_slot("Free", "2026-01-05T10:00:00", "2026-01-05T11:00:00")
    create_schedule(unit["id"], used["id"], day_ids["Monday"])

    blocked = client.delete(f"/api/timeslots/{used['id']}", headers=admin_headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Cannot delete time slot with active schedules"
    assert client.get(f"/api/timeslots/{used['id']}", headers=admin_headers).status_code == 200

    deleted = client.delete(f"/api/timeslots/{free['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True
    missing = client.get(f"/api/timeslots/{free['id']}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Time slot not found"


def test_delete_time_slot_keeps_inactive_schedule_history(
    client, admin_headers, create_unit, create_time_slot, create_schedule, day_ids
):
    slot = create_time_slot("Morning", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    schedule = create_schedule(create_unit("CS101")["id"], slot["id"], day_ids["Monday"])
    assert client.delete(f"/api/schedules/{schedule['id']}", headers=admin_headers).status_code == 200

    blocked = client.delete(f"/api/timeslots/{slot['id']}", headers=admin_headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Cannot delete time slot referenced by inactive schedules"
    assert blocked.json()["error"]["type"] == "PreconditionError"

    history = client.get(f"/api/schedules/{schedule['id']}", headers=admin_headers)
    assert history.status_code == 200
    assert history.json()["data"]["timeSlot"]["id"] == slot["id"]
    assert history.json()["data"]["isActive"] is False


def test_deactivate_time_slot_guard_and_idempotence(
    client, admin_headers, student_headers, create_unit, create_time_slot, create_schedule, day_ids
):
    unit = create_unit("CS101")
    busy = create_time_slot("Busy", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    idle = create_time_slot("Idle", "2026-01-05T10:00:00", "2026-01-05T11:00:00")
    schedule = create_schedule(unit["id"], busy["id"], day_ids["Tuesday"])

    enrolled = client.post("/api/enrollments", json={"scheduleId": schedule["id"]}, headers=student_headers)
    assert enrolled.status_code == 201

    blocked = client.put(f"/api/timeslots/{busy['id']}/deactivate", headers=admin_headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Cannot deactivate time slot with active enrollments"

    first = client.put(f"/api/timeslots/{idle['id']}/deactivate", headers=admin_headers)
    assert first.status_code == 200
    assert first.json()["data"]["isActive"] is False
    again = client.put(f"/api/timeslots/{idle['id']}/deactivate", headers=admin_headers)
    assert again.status_code == 200

    active_only = client.get("/api/timeslots", headers=admin_headers).json()["data"]
    assert [item["id"] for item in active_only] == [busy["id"]]
    everything = client.get("/api/timeslots", params={"includeInactive": "true"}, headers=admin_headers).json()["data"]
    assert {item["id"] for item in everything} == {busy["id"], idle["id"]}

    # Inactive slots no longer block new intervals.
    create_time_slot("Replacement", "2026-01-05T10:00:00", "2026-01-05T11:00:00")


def test_time_slot_detail_available_and_stats(
    client, admin_headers, create_unit, create_time_slot, create_schedule, day_ids
):
    unit = create_unit("MATH200", title="Linear Algebra")
    morning = create_time_slot("Morning", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    afternoon = create_time_slot("Afternoon", "2026-01-05T13:00:00", "2026-01-05T14:00:00")
    create_schedule(unit["id"], morning["id"], day_ids["Wednesday"], location="Room 4")

    detail = client.get(f"/api/timeslots/{morning['id']}", headers=admin_headers)
    assert detail.status_code == 200
    schedules = detail.json()["data"]["schedules"]
    assert len(schedules) == 1
    assert schedules[0]["unit"]["unitCode"] == "MATH200"
    assert schedules[0]["day"]["name"] == "Wednesday"
    assert schedules[0]["approvedEnrollments"] == 0

    available = client.get(
        "/api/timeslots/available",
        params={"dayId": day_ids["Wednesday"], "semester": "Semester 1", "academicYear": 2026},
        headers=admin_headers,
    )
    assert available.status_code == 200
    by_id = {item["id"]: item for item in available.json()["data"]}
    assert by_id[morning["id"]]["isAvailable"] is False
    assert by_id[afternoon["id"]]["isAvailable"] is True

    other_day = client.get(
        "/api/timeslots/available",
        params={"dayId": day_ids["Thursday"], "semester": "Semester 1", "academicYear": 2026},
        headers=admin_headers,
    )
    assert all(item["isAvailable"] for item in other_day.json()["data"])

    missing = client.get("/api/timeslots/available", params={"semester": "Semester 1"}, headers=admin_headers)
    assert missing.status_code == 400

    stats = client.get("/api/timeslots/stats/usage", headers=admin_headers)
    assert stats.status_code == 200
    data = stats.json()["data"]
    assert data["totalTimeSlots"] == 2
    assert data["usedTimeSlots"] == 1
    assert data["unusedTimeSlots"] == 1
    assert data["utilizationRate"] == 50


def test_time_slot_access_control(client, student_headers):
    assert client.get("/api/timeslots").status_code == 401
    assert client.get("/api/timeslots", headers=student_headers).status_code == 200

    forbidden = client.post(
        "/api/timeslots",
        json={"name": "Morning", "startTime": "2026-01-05T09:00:00", "endTime": "2026-01-05T10:00:00"},
        headers=student_headers,
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["success"] is False
    assert client.get("/api/timeslots/stats/usage", headers=student_headers).status_code == 403


def test_time_slot_path_ids_must_be_positive_integers(client, admin_headers):
    assert client.get("/api/timeslots/abc", headers=admin_headers).status_code == 400
    assert client.get("/api/timeslots/0", headers=admin_headers).status_code == 400
    assert client.get("/api/timeslots/999", headers=admin_headers).status_code == 404
