from __future__ import annotations

import uuid

from fastapi.testclient import TestClient


def _event_payload(venue_id, **overrides):
    payload = {
        "venue_id": str(venue_id),
        "title": "Open Mic",
        "start_time": "19:30:00",
        "end_time": "22:00:00",
        "pattern": "weekly",
        "weekdays": [1, 3],
        "start_date": "2025-06-02",
        "end_date": "2025-06-30",
    }
    payload.update(overrides)
    return payload


def _create_event(client: TestClient, venue_id, **overrides):
    return client.post("/v1/events", json=_event_payload(venue_id, **overrides))


def test_health_and_request_id(client: TestClient):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers.get("X-Request-ID")

    resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_create_weekly_event(client: TestClient, venue):
    resp = _create_event(client, venue.id)
    assert resp.status_code == 201
    body = resp.json()
    assert body["recurrence_description"] == "Weekly on Monday, Wednesday"
    assert body["instances_created"] == 9

    detail = client.get(f"/v1/events/{body['event_id']}").json()
    assert detail["pattern"] == "weekly"
    assert detail["weekdays"] == [1, 3]
    assert detail["crosses_midnight"] is False
    assert [item["date"] for item in detail["upcoming_instances"]] == [
        "2025-06-16",
        "2025-06-18",
        "2025-06-23",
        "2025-06-25",
        "2025-06-30",
    ]


def test_create_reports_every_validation_error(client: TestClient, venue):
    resp = _create_event(
        client,
        venue.id,
        title="",
        weekdays=None,
        start_date="2025-06-10",
        end_date="2025-06-01",
        max_occurrences=0,
    )
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert set(detail["errors"]) >= {
        "title is required",
        "end_date must be after start_date",
        "max_occurrences must be a positive integer",
        "weekdays is required for weekly events",
    }


def test_create_requires_bound_for_recurring(client: TestClient, venue):
    resp = _create_event(client, venue.id, pattern="daily", end_date=None)
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == [
        "end_date or max_occurrences is required for recurring events"
    ]


def test_create_rejects_unknown_venue_and_tag(client: TestClient, venue):
    resp = _create_event(client, uuid.uuid4())
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "VENUE_NOT_FOUND"

    resp = _create_event(client, venue.id, event_tag_id=str(uuid.uuid4()))
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "TAG_NOT_FOUND"


def test_create_event_crossing_midnight(client: TestClient, venue):
    resp = _create_event(
        client,
        venue.id,
        pattern="none",
        weekdays=None,
        start_date="2025-06-20",
        end_date=None,
        start_time="22:00:00",
        end_time="02:00:00",
    )
    assert resp.status_code == 201
    assert resp.json()["recurrence_description"] == "One-time event"
    assert resp.json()["instances_created"] == 1

    detail = client.get(f"/v1/events/{resp.json()['event_id']}").json()
    assert detail["crosses_midnight"] is True
    assert detail["upcoming_instances"][0]["crosses_midnight"] is True


def test_create_rejects_unordered_times(client: TestClient, venue):
    for start, end in (("12:00:30", "12:00:10"), ("12:00:00", "12:00:00")):
        resp = _create_event(client, venue.id, start_time=start, end_time=end)
        assert resp.status_code == 422
        assert "end_time must be after start_time" in resp.json()["detail"]["errors"]

    resp = _create_event(client, venue.id, start_time="8pm")
    assert resp.status_code == 422
    assert "start_time must be in HH:MM:SS format" in resp.json()["detail"]["errors"]


def test_get_event_lists_at_most_ten_upcoming(client: TestClient, venue, today):
    resp = _create_event(
        client,
        venue.id,
        pattern="daily",
        weekdays=None,
        start_date="2025-06-10",
        end_date=None,
        max_occurrences=30,
    )
    assert resp.json()["instances_created"] == 30

    detail = client.get(f"/v1/events/{resp.json()['event_id']}").json()
    assert detail["recurrence_description"] == "Daily"
    upcoming = detail["upcoming_instances"]
    assert len(upcoming) == 10
    assert upcoming[0]["date"] == today.isoformat()
    assert all(item["date"] >= today.isoformat() for item in upcoming)


def test_get_unknown_event(client: TestClient):
    resp = client.get(f"/v1/events/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "EVENT_NOT_FOUND"


def test_patch_event_resets_future_overrides(client: TestClient, venue):
    event_id = _create_event(client, venue.id).json()["event_id"]
    instances = client.get(
        "/v1/event-instances", params={"event_id": event_id, "upcoming": True}
    ).json()
    first_future = instances["items"][0]["instance_id"]
    client.patch(f"/v1/event-instances/{first_future}", json={"custom_title": "Slam Night"})

    resp = client.patch(f"/v1/events/{event_id}", json={"title": "Open Mic Deluxe"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["event"]["title"] == "Open Mic Deluxe"
    assert body["instances"]["overrides_cleared"] == {"custom_title": 5}
    assert body["instances"]["inserted"] == 0

    instance = client.get(f"/v1/event-instances/{first_future}").json()
    assert instance["title"] == "Open Mic Deluxe"
    assert instance["overridden_fields"] == []


def test_patch_event_regenerates_on_recurrence_change(client: TestClient, venue):
    event_id = _create_event(client, venue.id).json()["event_id"]

    resp = client.patch(f"/v1/events/{event_id}", json={"weekdays": [5]})
    assert resp.status_code == 200
    assert resp.json()["event"]["weekdays"] == [5]
    assert resp.json()["instances"]["deleted"] == 5
    assert resp.json()["instances"]["inserted"] == 2

    detail = client.get(f"/v1/events/{event_id}").json()
    assert detail["recurrence_description"] == "Weekly on Friday"
    assert [item["date"] for item in detail["upcoming_instances"]] == ["2025-06-20", "2025-06-27"]


def test_patch_event_validation(client: TestClient, venue):
    event_id = _create_event(client, venue.id).json()["event_id"]

    resp = client.patch(f"/v1/events/{event_id}", json={})
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == ["at least one field must be provided"]

    resp = client.patch(f"/v1/events/{event_id}", json={"weekdays": [8]})
    assert resp.status_code == 422

    resp = client.patch(f"/v1/events/{uuid.uuid4()}", json={"title": "x"})
    assert resp.status_code == 404


def test_deactivate_hides_event_and_instances(client: TestClient, venue):
    event_id = _create_event(client, venue.id).json()["event_id"]
    instance_id = client.get("/v1/event-instances", params={"event_id": event_id}).json()[
        "items"
    ][0]["instance_id"]

    resp = client.delete(f"/v1/events/{event_id}")
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    assert client.get(f"/v1/events/{event_id}").status_code == 404
    assert client.get(f"/v1/event-instances/{instance_id}").status_code == 404
    assert client.delete(f"/v1/events/{event_id}").status_code == 404


def test_venue_events_listing(client: TestClient, venue):
    _create_event(client, venue.id)
    _create_event(
        client,
        venue.id,
        title="Sunday Roast",
        pattern="daily",
        weekdays=None,
        start_date="2025-06-01",
        end_date=None,
        max_occurrences=40,
    )

    resp = client.get(f"/v1/venues/{venue.id}/events", params={"include_instances": True})
    assert resp.status_code == 200
    body = resp.json()
    assert body["venue_name"] == "The Crooked Tap"
    assert body["count"] == 2
    # newest start_date first
    assert [item["title"] for item in body["items"]] == ["Open Mic", "Sunday Roast"]
    assert all(len(item["upcoming_instances"]) <= 5 for item in body["items"])
    assert len(body["items"][1]["upcoming_instances"]) == 5

    bare = client.get(f"/v1/venues/{venue.id}/events").json()
    assert all(item["upcoming_instances"] == [] for item in bare["items"])

    resp = client.get(f"/v1/venues/{uuid.uuid4()}/events")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "VENUE_NOT_FOUND"


def test_create_rejects_rule_that_never_ends_in_range(client: TestClient, venue):
    resp = _create_event(
        client,
        venue.id,
        pattern="yearly",
        weekdays=None,
        start_date="2024-02-29",
        end_date=None,
        max_occurrences=2000,
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == [
        "recurrence must end within 100 years of start_date"
    ]

    resp = _create_event(
        client,
        venue.id,
        pattern="yearly",
        weekdays=None,
        start_date="2024-02-29",
        end_date=None,
        max_occurrences=5,
    )
    assert resp.status_code == 201
    assert resp.json()["instances_created"] == 5


def test_loose_recurrence_values_are_reported_together(client: TestClient, venue):
    resp = _create_event(client, venue.id, weekdays=["1"], max_occurrences="3")
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert detail["errors"] == [
        "max_occurrences must be a positive integer",
        "weekdays must contain only integers from 0-6 (0=Sunday, 6=Saturday)",
    ]

    resp = _create_event(client, venue.id, max_occurrences=3.0)
    assert resp.json()["detail"]["errors"] == ["max_occurrences must be a positive integer"]

    event_id = _create_event(client, venue.id).json()["event_id"]
    resp = client.patch(f"/v1/events/{event_id}", json={"max_occurrences": "4"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == ["max_occurrences must be a positive integer"]


def test_upcoming_instances_can_skip_cancelled(client: TestClient, venue):
    event_id = _create_event(client, venue.id).json()["event_id"]
    first = client.get(
        "/v1/event-instances", params={"event_id": event_id, "upcoming": True}
    ).json()["items"][0]
    client.patch(f"/v1/event-instances/{first['instance_id']}", json={"is_cancelled": True})

    upcoming = client.get(f"/v1/events/{event_id}").json()["upcoming_instances"]
    assert len(upcoming) == 5
    assert upcoming[0]["is_cancelled"] is True

    upcoming = client.get(
        f"/v1/events/{event_id}", params={"include_cancelled": False}
    ).json()["upcoming_instances"]
    assert [item["date"] for item in upcoming] == [
        "2025-06-18",
        "2025-06-23",
        "2025-06-25",
        "2025-06-30",
    ]

    listing = client.get(
        f"/v1/venues/{venue.id}/events",
        params={"include_instances": True, "include_cancelled": False},
    ).json()
    assert len(listing["items"][0]["upcoming_instances"]) == 4
