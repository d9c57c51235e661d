from factories import session_payload


def create(client, **overrides):
    return client.post("/sessions", json=session_payload(**overrides))


def test_create_session_assigns_id_status_and_part_of_day(client):
    resp = create(client, startPeriod=6, periodCount=2)
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["id"]
    assert data["status"] == "Pending"
    assert data["session"] == "Afternoon"
    assert data["type"] == "class"
    assert data["teacherId"] == "1"


def test_missing_required_field_is_reported(client):
    resp = create(client, teacherId="")
    assert resp.status_code == 400
    assert "teacher" in resp.json()["detail"]
    assert client.get("/sessions").json() == []


def test_overlapping_room_is_rejected(client):
    assert create(client, startPeriod=1, periodCount=3).status_code == 201
    resp = create(client, startPeriod=3, periodCount=3, teacherId="2", classId="2", subjectId="3")
    assert resp.status_code == 409
    assert "Room A101" in resp.json()["detail"]


def test_touching_sessions_are_accepted(client):
    assert create(client, startPeriod=1, periodCount=3).status_code == 201
    assert create(client, startPeriod=4, periodCount=2).status_code == 201


def test_period_count_is_capped_by_remaining_curriculum(client):
    assert create(client, date="2024-05-06", periodCount=28).status_code == 201
    resp = create(client, date="2024-05-07", periodCount=3)
    assert resp.status_code == 400
    assert "only has 2 periods left" in resp.json()["detail"]
    # exams are not counted against the cap
    assert create(client, date="2024-05-07", periodCount=3, type="exam").status_code == 201


def test_check_endpoint_does_not_store_anything(client):
    create(client)
    resp = client.post("/sessions/check", json=session_payload(teacherId="2", classId="2"))
    assert resp.status_code == 200
    assert resp.json()["hasConflict"] is True
    assert len(client.get("/sessions").json()) == 1


def test_check_endpoint_excludes_the_edited_session(client):
    sid = create(client).json()["id"]
    resp = client.post(f"/sessions/check?exclude_id={sid}", json=session_payload(startPeriod=2))
    assert resp.json() == {"hasConflict": False, "message": ""}


def test_off_frees_the_slot_and_reactivation_is_rechecked(client):
    first = create(client).json()
    resp = client.patch(f"/sessions/{first['id']}", json={"status": "Off"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Off"

    assert create(client, teacherId="2").status_code == 201

    resp = client.patch(f"/sessions/{first['id']}", json={"status": "Makeup"})
    assert resp.status_code == 409


def test_editing_date_and_periods_is_revalidated(client):
    a = create(client, startPeriod=1, periodCount=2).json()
    b = create(client, startPeriod=6, periodCount=2).json()

    resp = client.patch(f"/sessions/{b['id']}", json={"startPeriod": 2})
    assert resp.status_code == 409

    resp = client.patch(f"/sessions/{b['id']}", json={"startPeriod": 3, "date": "2024-05-07"})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["date"] == "2024-05-07"
    # the stored part of day is not re-derived on edit
    assert data["session"] == "Afternoon"
    assert a["id"] != b["id"]


def test_update_and_delete_unknown_session(client):
    assert client.patch("/sessions/nope", json={"status": "Off"}).status_code == 404
    assert client.delete("/sessions/nope").status_code == 404


def test_delete_session(client):
    sid = create(client).json()["id"]
    assert client.delete(f"/sessions/{sid}").status_code == 204
    assert client.get("/sessions").json() == []


def test_copy_session_to_another_slot(client):
    sid = create(client).json()["id"]

    same = client.post(f"/sessions/{sid}/copy", json={"date": "2024-05-06", "startPeriod": 1})
    assert same.status_code == 400

    resp = client.post(f"/sessions/{sid}/copy", json={"date": "2024-05-07", "startPeriod": 7})
    assert resp.status_code == 201, resp.text
    copy = resp.json()
    assert copy["id"] != sid
    assert copy["session"] == "Afternoon"
    assert copy["periodCount"] == 3

    clash = client.post(f"/sessions/{sid}/copy", json={"date": "2024-05-07", "startPeriod": 8})
    assert clash.status_code == 409


def test_week_view_has_derived_status_and_sequence(client):
    create(client, date="2024-05-06", periodCount=3)
    create(client, date="2024-05-08", periodCount=3)
    create(client, date="2024-05-10", periodCount=3)
    create(client, date="2024-05-14", periodCount=3)

    views = client.get("/sessions", params={"class_id": "1", "week_start": "2024-05-06"}).json()
    assert [v["date"] for v in views] == ["2024-05-06", "2024-05-08", "2024-05-10"]
    assert [v["effectiveStatus"] for v in views] == ["Completed", "Ongoing", "Pending"]
    assert [v["status"] for v in views] == ["Pending"] * 3
    assert [v["sequence"]["cumulative"] for v in views] == [3, 6, 9]
    assert views[0]["sequence"]["isFirst"] is True
    assert views[0]["subjectName"] == "Electrical Measurement"
    assert views[0]["totalPeriods"] == 30


def test_deleted_references_render_as_placeholder(client):
    create(client)
    assert client.delete("/teachers/1").status_code == 204
    view = client.get("/sessions").json()[0]
    assert view["teacherName"] == "(deleted)"
    assert view["className"] == "Industrial Electrics (25DC2H8)"


def test_continue_next_week(client):
    create(client, date="2024-05-06", periodCount=3)
    create(client, date="2024-05-08", startPeriod=6, periodCount=2, subjectId="4", teacherId="2", roomId="B2")

    resp = client.post("/sessions/continue-next-week", json={"weekStart": "2024-05-06", "classId": "1"})
    assert resp.status_code == 200, resp.text
    result = resp.json()
    assert result["addedCount"] == 2
    assert result["warnings"] == []
    assert sorted(s["date"] for s in result["added"]) == ["2024-05-13", "2024-05-15"]

    next_week = client.get("/sessions", params={"class_id": "1", "week_start": "2024-05-13"}).json()
    assert len(next_week) == 2

    again = client.post("/sessions/continue-next-week", json={"weekStart": "2024-05-06", "classId": "1"})
    assert again.json()["addedCount"] == 0
