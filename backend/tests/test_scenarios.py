"""End-to-end scenarios across auth, events and attendance."""
from datetime import timedelta

from eventhub.models.event import Event
from tests.conftest import auth_headers, create_event, future, register_admin, register_user, rsvp


class TestEventLifecycleScenario:
    def test_host_admin_and_outsider(self, client, db):
        a = register_user(client, "Alice")
        b = register_admin(client, db, "Bob Admin")
        c = register_user(client, "Carol")

        start = future(1)
        event = create_event(client, a["access_token"], title="Launch Party", start=start, end=start + timedelta(hours=1))
        event_id = event["event_id"]
        assert client.get(f"/api/events/{event_id}").status_code == 200

        assert rsvp(client, a["access_token"], event_id, "GOING").status_code == 200
        status_a = client.get(f"/api/events/{event_id}/attendance-status", headers=auth_headers(a["access_token"]))
        assert status_a.json()["status"] == "GOING"
        status_c = client.get(f"/api/events/{event_id}/attendance-status", headers=auth_headers(c["access_token"]))
        assert status_c.json()["status"] == "NONE"

        assert client.delete(f"/api/events/{event_id}", headers=auth_headers(b["access_token"])).status_code == 204
        assert client.get(f"/api/events/{event_id}", headers=auth_headers(a["access_token"])).status_code == 404

        private = create_event(client, b["access_token"], title="Board Meeting", visibility="PRIVATE")
        resp = client.put(
            f"/api/events/{private['event_id']}",
            json={"title": "Taken Over"},
            headers=auth_headers(a["access_token"]),
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["status"] == 403
        assert body["error"] == "Forbidden"
        assert body["path"] == f"/api/events/{private['event_id']}"
        assert body["timestamp"]


class TestPastStartScenario:
    def test_nothing_persisted(self, client, db):
        a = register_user(client, "Alice")
        start = future(-2)
        resp = client.post("/api/events", json={
            "title": "Yesterday's News",
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
        }, headers=auth_headers(a["access_token"]))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Start time must be in the future"
        assert db.query(Event).count() == 0


class TestRepeatedRsvpScenario:
    def test_repeat_requests_converge(self, client, db):
        a = register_user(client, "Alice")
        u = register_user(client, "Uma")
        event = create_event(client, a["access_token"])
        for _ in range(3):
            assert rsvp(client, u["access_token"], event["event_id"], "GOING").status_code == 200
        detail = client.get(f"/api/events/{event['event_id']}").json()
        assert detail["attendee_count"] == 1
        assert detail["attendance_breakdown"] == {"GOING": 1}


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_unknown_route_uses_error_body(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json()["path"] == "/api/nowhere"
