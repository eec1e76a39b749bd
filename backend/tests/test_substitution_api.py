MONDAY = "2026-10-19"
OFFICE = {"X-Actor-Id": "office-1"}


def seed_school(client):
    response = client.put(
        "/api/teachers",
        json=[
            {"id": "aisha", "name": "Aisha", "role": "TEACHER_SECONDARY"},
            {"id": "bilal", "name": "Bilal", "role": "TEACHER_SECONDARY"},
            {"id": "carla", "name": "Carla", "role": "TEACHER_SECONDARY"},
            {"id": "pria", "name": "Pria", "role": "TEACHER_PRIMARY"},
        ],
        headers=OFFICE,
    )
    assert response.status_code == 200

    response = client.put(
        "/api/timetable",
        json=[
            {
                "id": "e-aisha-1",
                "section": "SECONDARY_BOYS",
                "class_name": "8A",
                "day": "Monday",
                "slot": 1,
                "subject": "Maths",
                "teacher_id": "aisha",
            },
            {
                "id": "e-aisha-3",
                "section": "SECONDARY_BOYS",
                "class_name": "9B",
                "day": "Monday",
                "slot": 3,
                "subject": "Science",
                "teacher_id": "aisha",
            },
            {
                "id": "e-bilal-1",
                "section": "SECONDARY_BOYS",
                "class_name": "8B",
                "day": "Monday",
                "slot": 1,
                "subject": "English",
                "teacher_id": "bilal",
            },
        ],
        headers=OFFICE,
    )
    assert response.status_code == 200

    response = client.put(
        "/api/assignments",
        json=[
            {"id": "load-carla", "teacher_id": "carla", "grade": "8", "loads": [{"subject": "Maths", "periods": 12}]},
            {
                "id": "load-bilal",
                "teacher_id": "bilal",
                "grade": "8",
                "loads": [{"subject": "English", "periods": 20}],
                "group_periods": 2,
            },
        ],
    )
    assert response.status_code == 204

    response = client.put(
        "/api/attendance",
        json=[
            {"user_id": "bilal", "date": MONDAY, "check_in": "07:40"},
            {"user_id": "carla", "date": MONDAY, "check_in": "07:25"},
            {"user_id": "pria", "date": MONDAY, "check_in": "07:10"},
            {"user_id": "aisha", "date": MONDAY, "check_in": "MEDICAL"},
        ],
    )
    assert response.status_code == 204


def scan(client):
    response = client.post("/api/substitutions/scan", json={"date": MONDAY}, headers=OFFICE)
    assert response.status_code == 200
    return {item["slot"]: item for item in response.json()["created"]}


def test_scan_rank_and_assign_flow(client):
    seed_school(client)
    created = scan(client)
    assert sorted(created) == [1, 3]
    assert scan(client) == {}

    vacancy_id = created[1]["id"]
    candidates = client.get(f"/api/substitutions/{vacancy_id}/candidates")
    assert candidates.status_code == 200
    ranked = candidates.json()
    assert [item["teacher_id"] for item in ranked] == ["carla", "bilal"]
    assert ranked[0]["selectable"] is True
    assert ranked[1]["cause"] == "occupied"

    assigned = client.post(
        f"/api/substitutions/{vacancy_id}/assign",
        json={"teacher_id": "carla"},
        headers=OFFICE,
    )
    assert assigned.status_code == 200
    body = assigned.json()
    assert body["substitute_teacher_id"] == "carla"
    assert body["is_resolved"] is True

    timetable = client.get("/api/timetable", params={"date": MONDAY})
    shadow = next(item for item in timetable.json() if item["id"] == f"sub-entry-{vacancy_id}")
    assert shadow["is_substitution"] is True
    assert shadow["teacher_id"] == "carla"

    workload = client.get("/api/workload/carla", params={"date": MONDAY})
    assert workload.json()["total"] == 13
    assert workload.json()["proxy"] == 1

    availability = client.get("/api/availability/carla", params={"date": MONDAY, "slot": 1})
    assert availability.json()["available"] is False
    assert availability.json()["conflicting_vacancy_ids"] == [vacancy_id]

    mine = client.get("/api/substitutions/mine", headers={"X-Actor-Id": "carla"})
    assert [item["id"] for item in mine.json()] == [vacancy_id]


def test_rejections_carry_reason_and_ids(client):
    seed_school(client)
    vacancy_id = scan(client)[1]["id"]

    conflict = client.post(f"/api/substitutions/{vacancy_id}/assign", json={"teacher_id": "bilal"})
    assert conflict.status_code == 422
    assert conflict.json()["details"]["reason"] == "slot-conflict"
    assert conflict.json()["details"]["conflicting_entry_ids"] == ["e-bilal-1"]

    wing = client.post(f"/api/substitutions/{vacancy_id}/assign", json={"teacher_id": "pria"})
    assert wing.json()["details"]["reason"] == "ineligible-wing"

    self_cover = client.post(f"/api/substitutions/{vacancy_id}/assign", json={"teacher_id": "aisha"})
    assert self_cover.json()["details"]["reason"] == "absent-is-candidate"

    missing = client.post("/api/substitutions/nope/assign", json={"teacher_id": "carla"})
    assert missing.status_code == 404

    record = client.get(f"/api/substitutions/{vacancy_id}")
    assert record.json()["substitute_teacher_id"] == ""


def test_manual_vacancy_and_listing(client):
    seed_school(client)
    payload = {
        "date": MONDAY,
        "slot": 5,
        "class_name": "10A",
        "subject": "History",
        "section": "SECONDARY_BOYS",
        "absent_teacher_id": "bilal",
    }

    created = client.post("/api/substitutions", json=payload, headers=OFFICE)
    duplicate = client.post("/api/substitutions", json=payload, headers=OFFICE)

    assert created.status_code == 201
    assert created.json()["id"].startswith("manual-")
    assert duplicate.status_code == 200
    assert duplicate.json()["id"] == created.json()["id"]

    listed = client.get("/api/substitutions", params={"date": MONDAY, "section": "SECONDARY_BOYS"})
    assert [item["id"] for item in listed.json()] == [created.json()["id"]]


def test_auto_resolve_and_advisory_intake(client):
    seed_school(client)
    created = scan(client)

    batch = client.post("/api/substitutions/auto-resolve", json={"date": MONDAY, "section": "SECONDARY_BOYS"})
    assert batch.status_code == 200
    assert {item["id"] for item in batch.json()["assigned"]} == {created[1]["id"], created[3]["id"]}

    advisory = client.post(
        "/api/substitutions/suggestions",
        json={"proposals": [{"vacancy_id": created[1]["id"], "teacher_id": "bilal"}]},
    )
    assert advisory.status_code == 200
    assert advisory.json() == [
        {
            "vacancy_id": created[1]["id"],
            "teacher_id": "bilal",
            "applied": False,
            "reason": "slot-conflict",
            "details": advisory.json()[0]["details"],
            "substitution": None,
        }
    ]


def test_suggestions_without_service_or_proposals(client):
    seed_school(client)
    assert client.post("/api/substitutions/suggestions", json={}).status_code == 400
    unconfigured = client.post("/api/substitutions/suggestions", json={"date": MONDAY})
    assert unconfigured.status_code == 500


def test_archive_and_purge_require_confirmation(client):
    seed_school(client)
    created = scan(client)
    vacancy_id = created[1]["id"]

    refused = client.post("/api/substitutions/archive", json={"date": MONDAY, "section": "SECONDARY_BOYS"})
    assert refused.status_code == 428

    archived = client.post(
        "/api/substitutions/archive",
        json={"date": MONDAY, "section": "SECONDARY_BOYS", "confirm": True},
        headers=OFFICE,
    )
    assert sorted(archived.json()["archived"]) == sorted(item["id"] for item in created.values())

    closed = client.post(f"/api/substitutions/{vacancy_id}/assign", json={"teacher_id": "carla"})
    assert closed.status_code == 409

    assert client.get("/api/substitutions", params={"date": MONDAY}).json() == []
    assert len(client.get("/api/substitutions", params={"date": MONDAY, "include_archived": True}).json()) == 2

    assert client.delete(f"/api/substitutions/{vacancy_id}").status_code == 428
    assert client.delete(f"/api/substitutions/{vacancy_id}", params={"confirm": True}).status_code == 204
    assert client.get(f"/api/substitutions/{vacancy_id}").status_code == 404


def test_activity_log_and_notifications(client):
    seed_school(client)
    vacancy_id = scan(client)[1]["id"]
    client.post(f"/api/substitutions/{vacancy_id}/assign", json={"teacher_id": "carla"}, headers=OFFICE)

    logs = client.get("/api/activity/logs", params={"entity_id": vacancy_id})
    assert logs.status_code == 200
    assert [item["action"] for item in logs.json()] == ["substitution.assign"]
    assert logs.json()[0]["actor_id"] == "office-1"

    inbox = client.get("/api/notifications", params={"user_id": "carla"})
    assert inbox.status_code == 200
    assert len(inbox.json()) == 1
    notification_id = inbox.json()[0]["id"]
    read = client.post(f"/api/notifications/{notification_id}/read")
    assert read.json()["is_read"] is True


def test_timetable_clash_is_rejected(client):
    seed_school(client)
    response = client.put(
        "/api/timetable",
        json=[
            {
                "id": "e-dup",
                "section": "SECONDARY_BOYS",
                "class_name": "8A",
                "day": "Monday",
                "slot": 1,
                "subject": "Art",
                "teacher_id": "carla",
            }
        ],
    )
    assert response.status_code == 409
    assert response.json()["details"]["conflicting_entry_id"] == "e-aisha-1"


def test_unknown_teacher_workload_is_not_found(client):
    response = client.get("/api/workload/ghost", params={"date": MONDAY})
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "Teacher"


def test_weekend_dates_are_refused_for_vacancies_and_lessons(client):
    seed_school(client)
    friday = "2026-10-23"

    manual = client.post(
        "/api/substitutions",
        json={
            "date": friday,
            "slot": 1,
            "class_name": "8A",
            "subject": "Maths",
            "section": "SECONDARY_BOYS",
            "absent_teacher_id": "aisha",
        },
    )
    lesson = client.put(
        "/api/timetable",
        json=[
            {
                "id": "e-fri",
                "section": "SECONDARY_BOYS",
                "class_name": "8C",
                "date": friday,
                "slot": 2,
                "subject": "Art",
                "teacher_id": "carla",
            }
        ],
    )

    assert manual.status_code == 422
    assert lesson.status_code == 422
    assert client.get("/api/substitutions", params={"date": friday}).json() == []


def test_timetable_import_cannot_replace_a_substitution_entry(client):
    seed_school(client)
    vacancy_id = scan(client)[1]["id"]
    client.post(f"/api/substitutions/{vacancy_id}/assign", json={"teacher_id": "carla"})

    response = client.put(
        "/api/timetable",
        json=[
            {
                "id": f"sub-entry-{vacancy_id}",
                "section": "SECONDARY_BOYS",
                "class_name": "8A",
                "date": MONDAY,
                "slot": 1,
                "subject": "Maths",
                "teacher_id": "bilal",
                "is_substitution": True,
                "substitution_id": vacancy_id,
            }
        ],
    )

    assert response.status_code == 409
    timetable = client.get("/api/timetable", params={"date": MONDAY}).json()
    shadow = next(item for item in timetable if item["id"] == f"sub-entry-{vacancy_id}")
    assert shadow["teacher_id"] == "carla"
