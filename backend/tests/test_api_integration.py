import pytest

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _upload(client, content, filename="schedule.xlsx"):
    return client.post("/api/upload", files={"file": (filename, content, XLSX)})


def _ids_by_name(client, path):
    return {item["name"]: item["id"] for item in client.get(path).json()}


@pytest.fixture()
def uploaded(client, sample_sheets, make_workbook):
    response = _upload(client, make_workbook(sample_sheets))
    assert response.status_code == 200, response.text
    return response.json()


def test_upload_runs_greedy_schedule_and_persists(client, uploaded):
    assert uploaded["jobState"] == "SOLVED"
    assert uploaded["jobId"].startswith("greedy-")
    assert uploaded["summary"] == {
        "teachers": 2,
        "studentGroups": 2,
        "courses": 3,
        "lessons": 3,
        "timeslots": 3,
        "rooms": 2,
        "teacherAvailabilities": 1,
    }
    assert [slot["id"] for slot in uploaded["data"]["timeslots"]] == ["MONDAY_09:00", "MONDAY_10:00", "TUESDAY_09:00"]
    assert any("Alice" in warning and "every timeslot" in warning for warning in uploaded["warnings"])
    assert uploaded["conflicts"] == []
    assert [slot["startTime"] for slot in uploaded["suggestions"]["Bob"]] == ["09:00", "10:00"]

    classes = client.get("/api/classes/enriched").json()
    placed = sorted((item["teacherName"], item["courseName"], item["day"], item["startTime"]) for item in classes)
    assert placed == [
        ("Alice", "Math", "Monday", "08:00"),
        ("Bob", "Chemistry", "Monday", "10:00"),
        ("Bob", "Physics", "Monday", "09:00"),
    ]
    assert {item["meetingLink"] for item in classes} == {"https://meet.example.com/room-a"}


def test_upload_replaces_entities(client, uploaded):
    assert sorted(_ids_by_name(client, "/api/teachers")) == ["Alice", "Bob"]
    assert sorted(_ids_by_name(client, "/api/student-groups")) == ["Grade 10", "Grade 9"]
    assert sorted(course["code"] for course in client.get("/api/courses").json()) == ["CHEMISTRY", "MATH", "PHYSICS"]

    windows = client.get("/api/teacher-availabilities").json()
    assert [(item["teacher"], item["day"], item["startTime"], item["endTime"]) for item in windows] == [
        ("Bob", "Monday", "09:00", "12:00")
    ]


def test_solve_job_and_solution_lookup(client, uploaded):
    job_id = uploaded["jobId"]

    job = client.get(f"/api/solve/jobs/{job_id}").json()
    assert (job["state"], job["mode"]) == ("SOLVED", "greedy")
    assert job["report"]["created"] == 3
    assert job["report"]["skippedLessons"] == []

    solution = client.get("/api/solution", params={"jobId": job_id}).json()
    assert {lesson["timeslot"] for lesson in solution["lessons"]} == {"MONDAY_08:00", "MONDAY_09:00", "MONDAY_10:00"}
    status_payload = client.get("/api/solution/status", params={"jobId": job_id}).json()
    assert status_payload == {"solverStatus": "NOT_SOLVING"}

    assert client.get("/api/solution").status_code == 400
    assert client.get("/api/solve/jobs/unknown").status_code == 404
    assert client.delete("/api/solve/jobs/unknown").status_code == 404


def test_solve_endpoint_accepts_timetable(client, uploaded):
    response = client.post("/api/solve", json=uploaded["data"])

    assert response.status_code == 202
    job_id = response.json()["jobId"]
    assert client.get(f"/api/solve/jobs/{job_id}").json()["state"] == "SOLVED"
    assert len(client.get("/api/classes").json()) == 3


def test_class_crud_and_conflicts(client, uploaded):
    teachers = _ids_by_name(client, "/api/teachers")
    groups = _ids_by_name(client, "/api/student-groups")
    courses = _ids_by_name(client, "/api/courses")
    payload = {
        "courseId": courses["Math"],
        "teacherId": teachers["Alice"],
        "studentGroupId": groups["Grade 9"],
        "day": "Monday",
        "startTime": "08:30",
        "endTime": "09:30",
    }

    clash = client.post("/api/classes", json=payload)
    assert clash.status_code == 409
    detail = clash.json()["detail"]
    assert detail["conflictInfo"]["hasConflict"] is True
    assert [item["type"] for item in detail["conflictInfo"]["conflicts"]] == ["teacher", "studentGroup", "studentGroup"]

    created = client.post("/api/classes", json={**payload, "day": "Tuesday", "startTime": "10:00", "endTime": "11:00"})
    assert created.status_code == 201
    class_id = created.json()["id"]
    assert created.json()["hasConflict"] is False
    assert client.get(f"/api/classes/{class_id}").json()["day"] == "Tuesday"
    assert len(client.get("/api/classes", params={"day": "Tuesday"}).json()) == 1
    assert len(client.get("/api/classes", params={"teacherId": teachers["Alice"]}).json()) == 2

    moved = client.patch(f"/api/classes/{class_id}", json={"day": "Monday", "startTime": "08:00", "endTime": "09:00"})
    assert moved.status_code == 200
    assert moved.json()["hasConflict"] is True
    assert moved.json()["conflictInfo"]["hasConflict"] is True

    relinked = client.patch(f"/api/classes/{class_id}", json={"meetingLink": "https://meet.example.com/x"})
    assert relinked.json()["meetingLink"] == "https://meet.example.com/x"
    assert relinked.json()["startTime"] == "08:00"

    backwards = client.patch(f"/api/classes/{class_id}", json={"startTime": "12:00"})
    assert backwards.status_code == 400

    assert client.delete(f"/api/classes/{class_id}").status_code == 204
    assert client.get(f"/api/classes/{class_id}").status_code == 404
    assert client.delete(f"/api/classes/{class_id}").status_code == 404


def test_class_payload_validation(client, uploaded):
    teachers = _ids_by_name(client, "/api/teachers")
    groups = _ids_by_name(client, "/api/student-groups")
    courses = _ids_by_name(client, "/api/courses")
    base = {
        "courseId": courses["Math"],
        "teacherId": teachers["Alice"],
        "studentGroupId": groups["Grade 9"],
        "day": "Thursday",
        "startTime": "10:00",
        "endTime": "11:00",
    }

    assert client.post("/api/classes", json={**base, "day": "Sunday"}).status_code == 422
    assert client.post("/api/classes", json={**base, "startTime": "9am"}).status_code == 422
    assert client.post("/api/classes", json={**base, "endTime": "09:00"}).status_code == 422
    assert client.post("/api/classes", json={**base, "courseId": "missing"}).status_code == 404


def test_check_conflicts_and_suggestions(client, uploaded):
    teachers = _ids_by_name(client, "/api/teachers")
    groups = _ids_by_name(client, "/api/student-groups")
    alice_class = next(
        item for item in client.get("/api/classes/enriched").json() if item["teacherName"] == "Alice"
    )

    check = {
        "teacherId": teachers["Alice"],
        "studentGroupId": groups["Grade 10"],
        "day": "Monday",
        "startTime": "08:00",
        "endTime": "09:00",
    }
    result = client.post("/api/classes/check-conflicts", json=check).json()
    assert result["hasConflict"] is True
    assert result["conflicts"][0]["conflictingClassId"] == alice_class["id"]

    excluded = client.post("/api/classes/check-conflicts", json={**check, "excludeClassId": alice_class["id"]}).json()
    assert excluded == {"hasConflict": False, "conflicts": []}

    suggestions = client.post(
        "/api/classes/smart-suggestions",
        json={"teacherId": teachers["Bob"], "studentGroupId": groups["Grade 9"]},
    ).json()
    assert len(suggestions) == 10
    assert all(slot["available"] for slot in suggestions)
    assert (suggestions[0]["day"], suggestions[0]["startTime"]) == ("Monday", "11:00")


def test_teacher_contact_update(client, uploaded):
    alice_id = _ids_by_name(client, "/api/teachers")["Alice"]

    response = client.patch(f"/api/teachers/{alice_id}", json={"email": "alice@example.com", "department": " Science "})
    assert response.status_code == 200
    assert (response.json()["email"], response.json()["department"]) == ("alice@example.com", "Science")

    assert client.patch(f"/api/teachers/{alice_id}", json={"email": "not-an-email"}).status_code == 422
    assert client.patch("/api/teachers/missing", json={"department": "Art"}).status_code == 404


def test_export_and_clear(client, uploaded):
    export = client.get("/api/export/schedule")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert 'filename="timetable-schedule.csv"' in export.headers["content-disposition"]
    lines = export.text.splitlines()
    assert lines[0].startswith("Course Name,Course Code")
    assert len(lines) == 4

    assert client.post("/api/clear").json() == {"message": "All data cleared"}
    assert client.get("/api/classes").json() == []
    assert client.get("/api/teachers").json() == []
    assert client.get("/api/export/schedule").text.splitlines() == [lines[0]]


def test_upload_rejects_bad_files(client, make_workbook, sample_sheets):
    assert _upload(client, b"name,teacher\n", filename="schedule.csv").status_code == 400
    assert _upload(client, b"").status_code == 400

    del sample_sheets["Rooms"]
    missing = _upload(client, make_workbook(sample_sheets))
    assert missing.status_code == 400
    assert missing.json()["details"]["role"] == "Rooms"
