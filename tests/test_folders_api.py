import threading
import time
from datetime import datetime

from therapydesk.domain.folders import generation
from therapydesk.models import SessionFolder, Student

from .helpers import add_folder, add_session

WEEKLY_MONDAY = [{"dayOfWeek": "monday", "time": "16:00", "duration": 45}]


def create_student(client, name="Mia Jensen"):
    response = client.post("/students", json={"name": name, "parentEmail": "Parent@Example.com"})
    assert response.status_code == 200
    return response.json()


def create_program(client, student_id, name="Spring Program", weeks=12, per_week=1, **extra):
    payload = {
        "studentId": student_id,
        "name": name,
        "totalWeeks": weeks,
        "sessionsPerWeek": per_week,
        "sessionTemplates": WEEKLY_MONDAY,
        "startDate": "2024-01-01",
        **extra,
    }
    response = client.post("/folders/with-sessions", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def list_sessions(client, folder_id, **params):
    response = client.get(f"/folders/{folder_id}/sessions", params=params)
    assert response.status_code == 200
    return response.json()["sessions"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_folder_with_sessions(client):
    student = create_student(client)

    result = create_program(client, student["id"], weeks=12, per_week=2, sessionTemplates=[
        {"dayOfWeek": "monday", "time": "16:00", "duration": 45},
        {"dayOfWeek": "thu", "time": "10:00", "duration": 30},
    ])

    assert result["sessionsCreated"] == 24
    assert result["sessionsFailed"] == 0
    assert result["folder"]["totalSessions"] == 24
    assert result["folder"]["isActive"] is True

    sessions = list_sessions(client, result["folder"]["id"])
    assert [s["sessionNumber"] for s in sessions] == list(range(1, 25))
    assert sessions[0]["status"] == "available"
    assert all(s["status"] == "locked" for s in sessions[1:])


def test_invalid_program_is_rejected(client):
    student = create_student(client)

    response = client.post(
        "/folders/with-sessions",
        json={
            "studentId": student["id"],
            "name": "Too Short",
            "totalWeeks": 0,
            "sessionsPerWeek": 1,
            "sessionTemplates": WEEKLY_MONDAY,
        },
    )

    assert response.status_code == 422
    assert any("Total weeks must be between 1 and 52" in e["msg"] for e in response.json()["detail"])


def test_unknown_student_is_404(client):
    response = client.post("/folders", json={"studentId": 999, "name": "Orphan"})
    assert response.status_code == 404


def test_numbers_restart_in_each_folder(client):
    student = create_student(client)
    first = create_program(client, student["id"], name="Spring Program", weeks=2)
    second = create_program(client, student["id"], name="Summer Program", weeks=2)

    assert second["sessionsCreated"] == 2
    assert [s["sessionNumber"] for s in list_sessions(client, first["folder"]["id"])] == [1, 2]
    assert [s["sessionNumber"] for s in list_sessions(client, second["folder"]["id"])] == [1, 2]


def test_duplicate_number_in_folder_is_409(client):
    student = create_student(client)
    folder = create_program(client, student["id"], weeks=2)["folder"]

    response = client.post(
        f"/folders/{folder['id']}/sessions",
        json={"title": "Extra", "date": "2024-02-01T16:00:00", "sessionNumber": 1},
    )
    assert response.status_code == 409

    response = client.post(
        f"/folders/{folder['id']}/sessions",
        json={"title": "Extra", "date": "2024-02-01T16:00:00"},
    )
    assert response.status_code == 200
    assert response.json()["sessionNumber"] == 3
    assert client.get(f"/folders/{folder['id']}").json()["totalSessions"] == 3


def test_deleting_a_session_keeps_the_gap(client):
    student = create_student(client)
    folder = create_program(client, student["id"], weeks=12)["folder"]
    fifth = next(s for s in list_sessions(client, folder["id"]) if s["sessionNumber"] == 5)

    response = client.delete(f"/sessions/{fifth['id']}")
    assert response.status_code == 200

    folder = client.get(f"/folders/{folder['id']}").json()
    assert folder["totalSessions"] == 11

    sessions = list_sessions(client, folder["id"])
    assert [s["sessionNumber"] for s in sessions] == [1, 2, 3, 4, 6, 7, 8, 9, 10, 11, 12]
    assert [s["displayNumber"] for s in sessions] == list(range(1, 12))


def test_session_listing_order_and_filter(client):
    student = create_student(client)
    folder = create_program(client, student["id"], weeks=4)["folder"]

    newest_first = list_sessions(client, folder["id"], orderDirection="desc", limit=2)
    assert [(s["sessionNumber"], s["displayNumber"]) for s in newest_first] == [(4, 4), (3, 3)]

    available = list_sessions(client, folder["id"], status="available")
    assert [s["sessionNumber"] for s in available] == [1]


def test_completing_a_session_updates_folder_stats(client):
    student = create_student(client)
    folder = create_program(client, student["id"], weeks=3)["folder"]
    first = list_sessions(client, folder["id"])[0]

    response = client.patch(f"/sessions/{first['id']}", json={"status": "completed", "isPaid": True})
    assert response.status_code == 200
    assert response.json()["isPaid"] is True

    folder = client.get(f"/folders/{folder['id']}").json()
    assert (folder["completedSessions"], folder["totalSessions"]) == (1, 3)


def test_saving_a_fetched_session_does_not_escape_twice(client):
    student = create_student(client)
    folder = create_program(client, student["id"], weeks=1)["folder"]
    first = list_sessions(client, folder["id"])[0]

    saved = client.patch(f"/sessions/{first['id']}", json={"title": "Tom & Jerry"}).json()
    assert saved["title"] == "Tom &amp; Jerry"

    resaved = client.patch(f"/sessions/{first['id']}", json={"title": saved["title"]}).json()
    assert resaved["title"] == "Tom &amp; Jerry"


def test_folder_text_is_escaped(client):
    student = create_student(client)
    response = client.post(
        "/folders",
        json={"studentId": student["id"], "name": "<b>Summer</b>", "description": "R & L sounds"},
    )
    assert response.status_code == 200
    folder = response.json()
    assert folder["name"] == "&lt;b&gt;Summer&lt;/b&gt;"
    assert folder["description"] == "R &amp; L sounds"

    updated = client.patch(
        f"/folders/{folder['id']}",
        json={"name": folder["name"], "description": "<script>x</script>"},
    ).json()
    assert updated["name"] == "&lt;b&gt;Summer&lt;/b&gt;"
    assert updated["description"] == "&lt;script&gt;x&lt;/script&gt;"


def test_fill_missing_recreates_only_absent_numbers(client):
    student = create_student(client)
    folder = create_program(client, student["id"], weeks=4)["folder"]
    second = list_sessions(client, folder["id"])[1]
    client.delete(f"/sessions/{second['id']}")

    response = client.post(f"/folders/{folder['id']}/sessions/fill-missing")

    assert response.status_code == 200
    body = response.json()
    assert body["sessionsCreated"] == 1
    assert body["folder"]["totalSessions"] == 4
    restored = list_sessions(client, folder["id"])
    assert [s["sessionNumber"] for s in restored] == [1, 2, 3, 4]
    assert restored[1]["status"] == "locked"


def test_fill_missing_needs_a_schedule(client):
    student = create_student(client)
    folder = client.post("/folders", json={"studentId": student["id"], "name": "Empty"}).json()

    response = client.post(f"/folders/{folder['id']}/sessions/fill-missing")
    assert response.status_code == 400


def test_set_active_switches_the_active_folder(client, db):
    student = create_student(client)
    first = create_program(client, student["id"], name="Spring Program", weeks=1)["folder"]
    second = create_program(client, student["id"], name="Summer Program", weeks=1)["folder"]
    assert second["isActive"] is False

    response = client.post(f"/folders/{second['id']}/set-active")
    assert response.status_code == 200
    assert response.json()["isActive"] is True

    assert client.get(f"/folders/{first['id']}").json()["isActive"] is False
    assert client.get(f"/students/{student['id']}").json()["activeFolderId"] == second["id"]
    active = db.query(SessionFolder).filter(SessionFolder.is_active.is_(True)).all()
    assert [f.id for f in active] == [second["id"]]


def test_create_with_set_active_takes_over(client):
    student = create_student(client)
    first = create_program(client, student["id"], name="Spring Program", weeks=1)["folder"]
    second = create_program(client, student["id"], name="Summer Program", weeks=1, setActive=True)["folder"]

    assert second["isActive"] is True
    assert client.get(f"/folders/{first['id']}").json()["isActive"] is False


def test_delete_folder_with_sessions_requires_cascade(client):
    student = create_student(client)
    folder = create_program(client, student["id"], weeks=3)["folder"]

    response = client.delete(f"/folders/{folder['id']}")
    assert response.status_code == 409

    response = client.delete(f"/folders/{folder['id']}", params={"cascade": "true"})
    assert response.status_code == 200
    assert response.json()["deletedSessions"] == 3

    assert client.get(f"/folders/{folder['id']}").status_code == 404
    assert client.get(f"/students/{student['id']}").json()["activeFolderId"] is None


def test_student_folders_and_dashboard(client):
    student = create_student(client)
    create_program(client, student["id"], name="Spring Program", weeks=2)
    summer = create_program(client, student["id"], name="Summer Program", weeks=3, setActive=True)["folder"]

    listing = client.get(f"/students/{student['id']}/folders").json()
    assert listing["stats"]["totalFolders"] == 2
    assert listing["stats"]["activeFolders"] == 1
    assert listing["stats"]["totalSessions"] == 5

    dashboard = client.get(f"/students/{student['id']}/dashboard").json()
    assert dashboard["student"]["parentEmail"] == "parent@example.com"
    assert dashboard["activeFolder"]["id"] == summer["id"]
    assert [s["displayNumber"] for s in dashboard["sessions"]] == [1, 2, 3]


def test_enforce_active_endpoint_keeps_newest(client, db):
    student = db.get(Student, create_student(client)["id"])
    older = add_folder(db, student, "Autumn Program", is_active=True, created_at=datetime(2024, 1, 1))
    newer = add_folder(db, student, "Winter Program", is_active=True, created_at=datetime(2024, 1, 2))
    add_session(db, student, older, 1)

    response = client.post(f"/students/{student.id}/folders/enforce-active")

    assert response.status_code == 200
    assert response.json()["foldersDeactivated"] == 1
    assert client.get(f"/folders/{older.id}").json()["isActive"] is False
    assert client.get(f"/folders/{newer.id}").json()["isActive"] is True
    assert client.get(f"/students/{student.id}").json()["activeFolderId"] == newer.id


def test_student_name_validation(client):
    response = client.post("/students", json={"name": " A "})
    assert response.status_code == 422

    student = create_student(client)
    response = client.patch(f"/students/{student['id']}", json={"notes": "Prefers mornings"})
    assert response.status_code == 200
    assert response.json()["notes"] == "Prefers mornings"
    assert response.json()["name"] == "Mia Jensen"


def test_dashboard_without_folders(client):
    student = create_student(client)

    dashboard = client.get(f"/students/{student['id']}/dashboard").json()
    assert dashboard["activeFolder"] is None
    assert dashboard["sessions"] == []
    assert dashboard["stats"]["totalFolders"] == 0


def test_health_answers_while_a_batch_is_throttled(client, monkeypatch):
    student = create_student(client)
    monkeypatch.setattr(generation, "SESSION_CREATE_DELAY_MS", 200)
    results = {}

    def run_batch():
        results["batch"] = create_program(client, student["id"], weeks=6)

    batch = threading.Thread(target=run_batch)
    batch.start()
    time.sleep(0.1)

    started = time.monotonic()
    response = client.get("/health")
    elapsed = time.monotonic() - started
    batch.join(timeout=10)

    assert response.status_code == 200
    assert elapsed < 0.5
    assert results["batch"]["sessionsCreated"] == 6
