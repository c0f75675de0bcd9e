import pytest
from fastapi.testclient import TestClient

import app as app_module
from app import app, get_store
import graph
from graph import APOLOGY_RESPONSE, AssistantConfigError
from itinerary_store import seed_store


@pytest.fixture
def store():
    fresh = seed_store()
    app.dependency_overrides[get_store] = lambda: fresh
    yield fresh
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    return TestClient(app)


@pytest.fixture
def persisted(monkeypatch):
    calls = []
    monkeypatch.setattr(app_module, "persist_interaction", lambda *args: calls.append(args))
    return calls


ASSISTANT_HEADERS = ("access-control-allow-origin", "access-control-allow-headers")


def test_options_preflight_returns_empty_body(client):
    response = client.options("/travel-assistant")
    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-headers"] == (
        "authorization, x-client-info, apikey, content-type"
    )


def test_assistant_success(client, monkeypatch, persisted):
    monkeypatch.setattr(app_module, "run_assistant", lambda req: f"Answer to {req.message}")
    response = client.post(
        "/travel-assistant",
        json={"message": "Hi", "itinerary": None, "tripData": None, "selectedDay": 1, "userLocation": None},
        headers={"Authorization": "Bearer user-token"},
    )

    assert response.status_code == 200
    assert response.json() == {"response": "Answer to Hi", "success": True}
    for header in ASSISTANT_HEADERS:
        assert header in response.headers
    assert persisted == [("Bearer user-token", "Hi", "Answer to Hi", 1, 0)]


def test_assistant_failure_envelope(client, monkeypatch, persisted):
    def boom(req):
        raise RuntimeError("Completion API error: 503")

    monkeypatch.setattr(app_module, "run_assistant", boom)
    response = client.post("/travel-assistant", json={"message": "Hi"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Completion API error: 503",
        "response": APOLOGY_RESPONSE,
        "success": False,
    }
    assert response.headers["access-control-allow-origin"] == "*"
    assert persisted == []


def test_assistant_missing_credential(client, monkeypatch, persisted):
    def unconfigured(req):
        raise AssistantConfigError("Google API key not configured")

    monkeypatch.setattr(app_module, "run_assistant", unconfigured)
    response = client.post("/travel-assistant", json={"message": "Hi"})
    assert response.status_code == 500
    assert response.json()["error"] == "Google API key not configured"


def test_assistant_malformed_payload(client, persisted):
    response = client.post("/travel-assistant", content=b"not json",
                           headers={"Content-Type": "application/json"})
    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["response"] == APOLOGY_RESPONSE


def test_assistant_counts_itinerary(client, monkeypatch, persisted):
    monkeypatch.setattr(app_module, "run_assistant", lambda req: "ok")
    itinerary = client.get("/itinerary").json()
    client.post("/travel-assistant", json={"message": "Hi", "itinerary": itinerary, "selectedDay": 2})
    assert persisted[0][4] == 5


def test_get_days(client):
    assert client.get("/itinerary/days").json() == {"days": [1, 2, 3]}


def test_get_day(client):
    body = client.get("/itinerary/days/2").json()
    assert body["day"] == 2
    assert [item["id"] for item in body["items"]] == ["3", "4"]
    assert body["items"][1]["icon"] == "🍽️"
    assert body["items"][0]["isLocked"] is False


def test_reorder_endpoint(client, store):
    response = client.post("/itinerary/days/2/reorder", json={"from_index": 0, "to_index": 1})
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == ["4", "3"]
    assert [item.id for item in store.items_for_day(2)] == ["4", "3"]
    assert [item.id for item in store.items_for_day(1)] == ["1", "2"]


def test_reorder_invalid_index(client):
    response = client.post("/itinerary/days/2/reorder", json={"from_index": 0, "to_index": 5})
    assert response.status_code == 422


def test_reorder_locked_item_conflict(client):
    client.post("/itinerary/items/3/toggle-lock")
    response = client.post("/itinerary/days/2/reorder", json={"from_index": 0, "to_index": 1})
    assert response.status_code == 409


def test_toggle_lock_endpoint(client):
    body = client.post("/itinerary/items/1/toggle-lock").json()
    assert body["toggled"] is True
    assert body["item"]["isLocked"] is True

    body = client.post("/itinerary/items/1/toggle-lock").json()
    assert body["item"]["isLocked"] is False


def test_toggle_lock_unknown_is_silent(client):
    response = client.post("/itinerary/items/nope/toggle-lock")
    assert response.status_code == 200
    assert response.json() == {"toggled": False, "item": None}


def test_add_item_endpoint(client, store):
    response = client.post("/itinerary/items", json={
        "day": 3, "title": "Black River Gorges hike", "time": "15:00", "location": "Black River",
    })
    assert response.status_code == 201
    assert [item.id for item in store.items_for_day(3)][-1] == response.json()["id"]


def test_add_item_bad_time(client):
    response = client.post("/itinerary/items", json={"day": 1, "title": "x", "time": "7pm"})
    assert response.status_code == 422


def test_day_map(client):
    body = client.get("/itinerary/days/2/map").json()
    assert [marker["label"] for marker in body["markers"]] == ["1", "2"]
    assert body["markers"][1]["color"] == "#ea580c"
    assert body["bounds"] is not None


def test_empty_day_map(client):
    body = client.get("/itinerary/days/9/map").json()
    assert body["markers"] == []
    assert body["bounds"] is None


def test_share_link(client):
    url = client.post("/itinerary/share").json()["url"]
    assert "/shared-itinerary/" in url
    assert url.rsplit("/", 1)[1].isdigit()


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"


class EchoLLM:
    """Returns the system prompt so tests can see what the graph serialized."""

    def invoke(self, messages):
        return type("Result", (), {"content": messages[0].content})()


class NoBackend:
    configured = False


@pytest.mark.parametrize("itinerary", [
    [{"id": "1", "day": 2, "title": "Sea Walk"}],
    [{"id": "1", "day": 2, "title": "Sea Walk", "time": "9:00", "location": "Blue Bay",
      "coordinates": [-20.4667, 57.7167], "isLocked": False, "category": "snorkelling"}],
])
def test_assistant_accepts_loose_itinerary_context(client, monkeypatch, persisted, itinerary):
    monkeypatch.setattr(graph, "get_llm", lambda: EchoLLM())
    monkeypatch.setattr(graph, "get_supabase", lambda: NoBackend())

    response = client.post("/travel-assistant", json={
        "message": "Plan my day", "itinerary": itinerary,
        "tripData": None, "selectedDay": 2, "userLocation": None,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "Day 2: Sea Walk at" in body["response"]
    assert "Itinerary Items: 1 planned activities" in body["response"]
    assert persisted[0][4] == 1


def test_day_map_html(client):
    response = client.get("/itinerary/days/2/map.html")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "deck" in response.text.lower()
