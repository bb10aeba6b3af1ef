from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient


def _create_daily(client: TestClient, venue_id, **overrides) -> str:
    payload = {
        "venue_id": str(venue_id),
        "title": "Happy Hour",
        "start_time": "20:00:00",
        "end_time": "23:00:00",
        "pattern": "daily",
        "start_date": "2025-06-13",
        "max_occurrences": 6,
    }
    payload.update(overrides)
    resp = client.post("/v1/events", json=payload)
    assert resp.status_code == 201
    return resp.json()["event_id"]


def _instances(client: TestClient, **params) -> dict:
    resp = client.get("/v1/event-instances", params=params)
    assert resp.status_code == 200
    return resp.json()


def _instance_on(client: TestClient, event_id: str, day: str) -> dict:
    items = _instances(client, event_id=event_id, include_cancelled=True)["items"]
    return next(item for item in items if item["date"] == day)


@pytest.fixture
def event_id(client: TestClient, venue) -> str:
    return _create_daily(client, venue.id)


def test_get_instance_resolves_master_values(client: TestClient, event_id):
    instance = _instance_on(client, event_id, "2025-06-15")
    resp = client.get(f"/v1/event-instances/{instance['instance_id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Happy Hour"
    assert body["start_time"] == "20:00:00"
    assert body["is_cancelled"] is False
    assert body["overridden_fields"] == []


def test_get_unknown_instance(client: TestClient):
    resp = client.get(f"/v1/event-instances/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "INSTANCE_NOT_FOUND"


@pytest.mark.parametrize("value, expected", [(True, True), ("true", True), ("false", False)])
def test_cancel_flag_accepts_bool_or_literal(client: TestClient, event_id, value, expected):
    instance = _instance_on(client, event_id, "2025-06-16")
    resp = client.patch(
        f"/v1/event-instances/{instance['instance_id']}", json={"is_cancelled": value}
    )
    assert resp.status_code == 200
    assert resp.json()["is_cancelled"] is expected


@pytest.mark.parametrize("value", ["yes", 1, "TRUE"])
def test_cancel_flag_rejects_other_values(client: TestClient, event_id, value):
    instance = _instance_on(client, event_id, "2025-06-16")
    resp = client.patch(
        f"/v1/event-instances/{instance['instance_id']}", json={"is_cancelled": value}
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == ["is_cancelled must be a boolean or 'true'/'false'"]


def test_text_override_set_and_cleared(client: TestClient, event_id):
    instance_id = _instance_on(client, event_id, "2025-06-17")["instance_id"]

    resp = client.patch(
        f"/v1/event-instances/{instance_id}",
        json={"custom_title": "  Two for One  ", "custom_description": "Half price pints"},
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Two for One"
    assert resp.json()["description"] == "Half price pints"
    assert sorted(resp.json()["overridden_fields"]) == ["description", "title"]

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"custom_title": "   "})
    assert resp.json()["title"] == "Happy Hour"
    assert resp.json()["overridden_fields"] == ["description"]


def test_text_override_length_limits(client: TestClient, event_id):
    instance_id = _instance_on(client, event_id, "2025-06-17")["instance_id"]
    resp = client.patch(
        f"/v1/event-instances/{instance_id}",
        json={"custom_title": "x" * 256, "custom_external_link": "https://" + "a" * 493},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == [
        "custom_title must be at most 255 characters",
        "custom_external_link must be at most 500 characters",
    ]

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"custom_title": "x" * 255})
    assert resp.status_code == 200


def test_custom_tag_must_exist(client: TestClient, event_id, tag):
    instance_id = _instance_on(client, event_id, "2025-06-17")["instance_id"]

    resp = client.patch(
        f"/v1/event-instances/{instance_id}", json={"custom_tag_id": str(uuid.uuid4())}
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "TAG_NOT_FOUND"

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"custom_tag_id": "nope"})
    assert resp.status_code == 422

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"custom_tag_id": str(tag.id)})
    assert resp.status_code == 200
    assert resp.json()["event_tag_id"] == str(tag.id)


def test_moving_onto_taken_date_conflicts(client: TestClient, event_id):
    instance_id = _instance_on(client, event_id, "2025-06-15")["instance_id"]

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"date": "2025-06-16"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "DUPLICATE_OCCURRENCE"

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"date": "2025-06-25"})
    assert resp.status_code == 200
    assert resp.json()["date"] == "2025-06-25"

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"date": "25/06/2025"})
    assert resp.status_code == 422


def test_time_override_recomputes_midnight(client: TestClient, event_id):
    instance_id = _instance_on(client, event_id, "2025-06-18")["instance_id"]

    resp = client.patch(
        f"/v1/event-instances/{instance_id}", json={"custom_end_time": "01:00:00"}
    )
    assert resp.status_code == 200
    assert resp.json()["end_time"] == "01:00:00"
    assert resp.json()["crosses_midnight"] is True

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"custom_end_time": ""})
    assert resp.status_code == 200
    assert resp.json()["end_time"] == "23:00:00"
    assert resp.json()["crosses_midnight"] is False


def test_time_override_validation(client: TestClient, event_id):
    instance_id = _instance_on(client, event_id, "2025-06-18")["instance_id"]

    resp = client.patch(
        f"/v1/event-instances/{instance_id}",
        json={"custom_start_time": "12:00:30", "custom_end_time": "12:00:10"},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == ["end time must be after start time"]

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={"custom_start_time": "7pm"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == ["custom_start_time must be in HH:MM:SS format"]

    resp = client.patch(f"/v1/event-instances/{instance_id}", json={})
    assert resp.status_code == 422


def test_list_filters(client: TestClient, event_id):
    assert _instances(client, event_id=event_id)["total"] == 6
    assert _instances(client, event_id=event_id, upcoming=True)["total"] == 4

    cancelled = _instance_on(client, event_id, "2025-06-16")["instance_id"]
    client.patch(f"/v1/event-instances/{cancelled}", json={"is_cancelled": True})
    assert _instances(client, event_id=event_id, upcoming=True)["total"] == 3
    assert (
        _instances(client, event_id=event_id, upcoming=True, include_cancelled=True)["total"] == 4
    )

    ranged = _instances(client, event_id=event_id, date_from="2025-06-14", date_to="2025-06-15")
    assert [item["date"] for item in ranged["items"]] == ["2025-06-14", "2025-06-15"]

    page = _instances(client, event_id=event_id, page=2, page_size=2)
    assert page["total"] == 5
    assert [item["date"] for item in page["items"]] == ["2025-06-15", "2025-06-17"]


def test_list_filters_by_effective_tag(client: TestClient, venue, event_id, tag):
    tagged_event = _create_daily(
        client, venue.id, title="Jazz Trio", event_tag_id=str(tag.id), max_occurrences=2
    )
    retagged = _instance_on(client, event_id, "2025-06-18")["instance_id"]
    client.patch(f"/v1/event-instances/{retagged}", json={"custom_tag_id": str(tag.id)})

    items = _instances(client, tag_id=str(tag.id))["items"]
    assert [(item["date"], item["event_id"]) for item in items] == [
        ("2025-06-13", tagged_event),
        ("2025-06-14", tagged_event),
        ("2025-06-18", event_id),
    ]
    assert _instances(client, venue_id=str(venue.id))["total"] == 8


def test_list_rejects_bad_dates(client: TestClient):
    resp = client.get("/v1/event-instances", params={"date_from": "2025-13-01", "date_to": "soon"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["errors"] == [
        "date_from is not a valid calendar date",
        "date_to must be in YYYY-MM-DD format",
    ]
