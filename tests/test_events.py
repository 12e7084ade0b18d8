def event_body(**overrides):
    body = {
        "title": "Python Meetup",
        "description": "Monthly meetup",
        "type": "meetup",
        "mode": "in-person",
        "location": "Pune",
        "start_date": "2099-01-10T18:00:00Z",
        "end_date": "2099-01-10T21:00:00Z",
        "tags": ["python"],
    }
    body.update(overrides)
    return body


def create_event(client, headers, **overrides):
    return client.post("/api/events", json=event_body(**overrides), headers=headers)


def test_create_requires_authentication(client):
    response = client.post("/api/events", json=event_body())
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_create_event(client, alice):
    response = create_event(client, alice)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["organizer"]["id"] == "user-alice"
    assert data["attendees"] == [{"id": "user-alice", "name": "Alice", "avatar": None}]
    assert data["start_date"] == "2099-01-10T18:00:00"
    assert data["views"] == 0


def test_end_before_start_is_rejected(client, alice):
    response = create_event(client, alice, end_date="2099-01-09T00:00:00Z")
    assert response.status_code == 400


def test_unknown_type_is_rejected(client, alice):
    assert create_event(client, alice, type="party").status_code == 400


def test_status_filters(client, alice):
    create_event(client, alice, title="Past", start_date="2020-01-01T10:00:00", end_date="2020-01-02T10:00:00")
    create_event(client, alice, title="Ongoing", start_date="2020-01-01T10:00:00", end_date="2099-12-31T10:00:00")
    create_event(client, alice, title="Future")

    def titles(status):
        events = client.get("/api/events", params={"status": status}).json()["data"]["events"]
        return sorted(event["title"] for event in events)

    assert titles("past") == ["Past"]
    assert titles("ongoing") == ["Ongoing"]
    assert titles("upcoming") == ["Future"]
    assert titles("all") == ["Future", "Ongoing", "Past"]


def test_type_filter_and_ordering(client, alice):
    create_event(client, alice, title="Later", type="workshop", start_date="2099-03-01T00:00:00", end_date="2099-03-02T00:00:00")
    create_event(client, alice, title="Sooner", type="workshop", start_date="2099-02-01T00:00:00", end_date="2099-02-02T00:00:00")
    create_event(client, alice, title="Talk", type="conference")

    events = client.get("/api/events", params={"type": "workshop"}).json()["data"]["events"]

    assert [event["title"] for event in events] == ["Sooner", "Later"]


def test_upcoming_events(client, alice, fake_redis):
    create_event(client, alice, title="Past", start_date="2020-01-01T10:00:00", end_date="2020-01-02T10:00:00")
    create_event(client, alice, title="Future")

    upcoming = client.get("/api/events/upcoming").json()["data"]
    assert [event["title"] for event in upcoming] == ["Future"]
    assert "events:upcoming" in fake_redis.store

    create_event(client, alice, title="Another")
    assert "events:upcoming" not in fake_redis.store


def test_detail_counts_views(client, alice, fake_redis):
    event_id = create_event(client, alice).json()["data"]["id"]

    assert client.get(f"/api/events/{event_id}").json()["data"]["views"] == 0
    fake_redis.store.clear()
    assert client.get(f"/api/events/{event_id}").json()["data"]["views"] == 1


def test_update_by_organizer_only(client, alice, bob, fake_redis):
    event_id = create_event(client, alice).json()["data"]["id"]
    client.get(f"/api/events/{event_id}")
    client.get("/api/events/upcoming")

    assert client.put(f"/api/events/{event_id}", json={"title": "Hijacked"}, headers=bob).status_code == 403

    response = client.put(f"/api/events/{event_id}", json={"title": "Renamed"}, headers=alice)
    assert response.json()["data"]["title"] == "Renamed"
    assert "events:upcoming" not in fake_redis.store
    assert client.get(f"/api/events/{event_id}").json()["data"]["title"] == "Renamed"


def test_update_rejects_inverted_range(client, alice):
    event_id = create_event(client, alice).json()["data"]["id"]
    response = client.put(f"/api/events/{event_id}", json={"end_date": "2000-01-01T00:00:00"}, headers=alice)
    assert response.status_code == 400


def test_owner_delete_removes_event(client, alice, bob):
    event_id = create_event(client, alice).json()["data"]["id"]
    client.get("/api/events")
    client.get(f"/api/events/{event_id}")

    assert client.delete(f"/api/events/{event_id}", headers=bob).status_code == 403
    assert client.delete(f"/api/events/{event_id}", headers=alice).status_code == 200

    assert client.get(f"/api/events/{event_id}").status_code == 404
    assert client.get("/api/events").json()["data"]["events"] == []


def test_attend_toggles(client, alice, bob):
    event_id = create_event(client, alice).json()["data"]["id"]
    client.get(f"/api/events/{event_id}")

    joined = client.post(f"/api/events/{event_id}/attend", headers=bob).json()["data"]
    assert [a["id"] for a in joined["attendees"]] == ["user-alice", "user-bob"]
    detail = client.get(f"/api/events/{event_id}").json()["data"]
    assert [a["name"] for a in detail["attendees"]] == ["Alice", "Bob"]

    left = client.post(f"/api/events/{event_id}/attend", headers=bob).json()["data"]
    assert [a["id"] for a in left["attendees"]] == ["user-alice"]


def test_update_rejects_null_for_required_fields(client, alice):
    event_id = create_event(client, alice).json()["data"]["id"]

    for field in ("mode", "tags", "title"):
        response = client.put(f"/api/events/{event_id}", json={field: None}, headers=alice)
        assert response.status_code == 400
        assert response.json()["message"] == f"{field} cannot be empty"

    detail = client.get(f"/api/events/{event_id}").json()["data"]
    assert detail["mode"] == "in-person"
    assert detail["tags"] == ["python"]
