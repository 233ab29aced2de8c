def test_unit_code_is_normalized_and_unique(client, admin_headers, create_unit):
    unit = create_unit(" cs101 ", title="Intro to Programming")
    assert unit["unitCode"] == "CS101"
    assert unit["isActive"] is True

    duplicate = client.post(
        "/api/units",
        json={"unitCode": "Cs101", "title": "Again", "credits": 6, "capacity": 30},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Unit code already exists"

    bad_credits = client.post(
        "/api/units",
        json={"unitCode": "CS999", "title": "Zero", "credits": 0, "capacity": 30},
        headers=admin_headers,
    )
    assert bad_credits.status_code == 400


def test_list_and_search_units(client, admin_headers, create_unit):
    create_unit("CS101", title="Intro to Programming", credits=6)
    create_unit("MATH200", title="Linear Algebra", credits=12, description="Vectors and matrices")
    create_unit("PHYS150", title="Mechanics", credits=6)

    page = client.get("/api/units", params={"limit": 2}, headers=admin_headers)
    assert page.status_code == 200
    body = page.json()
    assert [item["unitCode"] for item in body["data"]] == ["CS101", "MATH200"]
    assert body["pagination"]["totalItems"] == 3
    assert body["pagination"]["totalPages"] == 2

    six_credit = client.get("/api/units", params={"credits": 6}, headers=admin_headers).json()
    assert {item["unitCode"] for item in six_credit["data"]} == {"CS101", "PHYS150"}
    ranged = client.get("/api/units", params={"minCredits": 7, "maxCredits": 12}, headers=admin_headers).json()
    assert [item["unitCode"] for item in ranged["data"]] == ["MATH200"]

    searched = client.get("/api/units/search", params={"q": "matrices"}, headers=admin_headers)
    assert searched.status_code == 200
    assert [item["unitCode"] for item in searched.json()["data"]] == ["MATH200"]


def test_update_unit(client, admin_headers, create_unit):
    first = create_unit("CS101")
    create_unit("CS102")

    updated = client.put(
        f"/api/units/{first['id']}",
        json={"title": "Programming Fundamentals", "capacity": 45},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["title"] == "Programming Fundamentals"
    assert updated.json()["data"]["capacity"] == 45
    assert updated.json()["data"]["unitCode"] == "CS101"

    taken = client.put(f"/api/units/{first['id']}", json={"unitCode": "cs102"}, headers=admin_headers)
    assert taken.status_code == 409

    assert client.put("/api/units/999", json={"title": "Ghost"}, headers=admin_headers).status_code == 404


def test_unit_detail_and_stats(client, admin_headers, student_headers, create_unit, create_time_slot, create_schedule, day_ids):
    unit = create_unit("CS101", capacity=20)
    slot = create_time_slot("Morning", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    monday = create_schedule(unit["id"], slot["id"], day_ids["Monday"])
    create_schedule(unit["id"], slot["id"], day_ids["Tuesday"], maxCapacity=10)
    wednesday = create_schedule(unit["id"], slot["id"], day_ids["Wednesday"], maxCapacity=1)

    enrollment = client.post("/api/enrollments", json={"scheduleId": monday["id"]}, headers=student_headers)
    assert enrollment.status_code == 201
    approved = client.put(f"/api/enrollments/{enrollment.json()['data']['id']}/approve", headers=admin_headers)
    assert approved.status_code == 200
    seat = client.post("/api/enrollments", json={"scheduleId": wednesday["id"]}, headers=student_headers)
    assert client.put(f"/api/enrollments/{seat.json()['data']['id']}/approve", headers=admin_headers).status_code == 200

    detail = client.get(f"/api/units/{unit['id']}", headers=student_headers)
    assert detail.status_code == 200
    schedules = detail.json()["data"]["schedules"]
    assert [item["day"]["name"] for item in schedules] == ["Monday", "Tuesday", "Wednesday"]
    assert schedules[0]["enrollmentStats"]["approvedEnrollments"] == 1
    assert schedules[0]["enrollmentStats"]["utilizationRate"] == 5
    assert schedules[1]["enrollmentStats"]["capacity"] == 10

    stats = client.get(f"/api/units/{unit['id']}/stats", headers=admin_headers)
    assert stats.status_code == 200
    data = stats.json()["data"]
    assert data["unit"]["unitCode"] == "CS101"
    assert data["stats"]["totalSchedules"] == 3
    assert data["stats"]["totalCapacity"] == 31
    assert data["stats"]["approvedEnrollments"] == 2
    assert data["stats"]["availableSpots"] == 29
    assert data["stats"]["fullSchedules"] == 1
    assert data["stats"]["emptySchedules"] == 1
    assert data["stats"]["utilizationRate"] == 6

    assert client.get(f"/api/units/{unit['id']}/stats", headers=student_headers).status_code == 403


def test_deactivate_unit_guard(client, admin_headers, student_headers, create_unit, create_time_slot, create_schedule, day_ids):
    busy = create_unit("CS101")
    idle = create_unit("CS102")
    slot = create_time_slot("Morning", "2026-01-05T09:00:00", "2026-01-05T10:00:00")
    schedule = create_schedule(busy["id"], slot["id"], day_ids["Monday"])
    client.post("/api/enrollments", json={"scheduleId": schedule["id"]}, headers=student_headers)

    blocked = client.delete(f"/api/units/{busy['id']}", headers=admin_headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Cannot deactivate unit with active enrollments"

    deactivated = client.delete(f"/api/units/{idle['id']}", headers=admin_headers)
    assert deactivated.status_code == 200
    assert deactivated.json()["data"]["isActive"] is False

    listed = client.get("/api/units", headers=admin_headers).json()["data"]
    assert [item["unitCode"] for item in listed] == ["CS101"]

    new_schedule = client.post(
        "/api/schedules",
        json={
            "unitId": idle["id"],
            "timeSlotId": slot["id"],
            "dayId": day_ids["Tuesday"],
            "semester": "Semester 1",
            "academicYear": 2026,
        },
        headers=admin_headers,
    )
    assert new_schedule.status_code == 404
