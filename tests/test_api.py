"""Tests for the REST API."""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from book_reader.api.main import create_app
from book_reader.api.routers.position import _format_sse, _position_events_generator
from book_reader.models import BookContent, PageMetadata


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def client(session):
    """Client for an app serving a session with fake speech and clock."""
    with TestClient(create_app(session=session)) as client:
        yield client


def _parse_sse(chunk: str) -> tuple[str, dict]:
    event, data = chunk.strip().split("\n")
    return event.removeprefix("event: "), json.loads(data.removeprefix("data: "))


class TestRoot:
    """Tests for service endpoints."""

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, client: TestClient):
        assert client.get("/").json()["version"] == "1.0.0"

    def test_no_session(self):
        """Without a running session the reader endpoints are unavailable."""
        client = TestClient(create_app())
        assert client.get("/api/v1/position").status_code == 503


class TestDocumentEndpoints:
    """Tests for /api/v1/document."""

    def test_outline(self, client: TestClient):
        data = client.get("/api/v1/document").json()

        assert data["document_id"] == "current"
        assert data["paragraph_count"] == 3
        assert [p["sentence_count"] for p in data["paragraphs"]] == [2, 2, 1]
        assert data["paragraphs"][2]["word_count"] == 6

    def test_load(self, client: TestClient):
        client.post("/api/v1/position/move", json={"unit": "paragraph", "direction": "next"})

        response = client.post(
            "/api/v1/document",
            json={"text": "New text. With two sentences.", "title": "New", "document_id": "new"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "New"
        assert data["document_id"] == "new"
        assert data["paragraphs"][0]["preview"] == "New text. With two sentences."
        assert client.get("/api/v1/position").json()["position"]["paragraph_index"] == 0

    def test_load_requires_text(self, client: TestClient):
        assert client.post("/api/v1/document", json={}).status_code == 422


class TestPositionEndpoints:
    """Tests for /api/v1/position."""

    def test_initial_position(self, client: TestClient):
        data = client.get("/api/v1/position").json()

        assert data["position"] == {"paragraph_index": 0, "sentence_index": 0, "word_index": 0}
        assert data["word"] == "The"
        assert data["sentence"] == "The first sentence is here."
        assert data["paragraph"] == "The first sentence is here. The second one follows."
        assert data["is_at_start"] is True
        assert data["is_at_end"] is False

    def test_move(self, client: TestClient):
        client.post("/api/v1/position/move", json={"unit": "sentence", "direction": "next"})
        data = client.post(
            "/api/v1/position/move", json={"unit": "word", "direction": "next"}
        ).json()

        assert data["position"] == {"paragraph_index": 0, "sentence_index": 1, "word_index": 1}
        assert data["word"] == "second"

    def test_move_past_start_is_noop(self, client: TestClient):
        data = client.post(
            "/api/v1/position/move", json={"unit": "word", "direction": "prev"}
        ).json()
        assert data["position"]["word_index"] == 0

    def test_invalid_move(self, client: TestClient):
        response = client.post(
            "/api/v1/position/move", json={"unit": "chapter", "direction": "next"}
        )
        assert response.status_code == 422

    def test_jump_is_clamped(self, client: TestClient):
        data = client.post(
            "/api/v1/position/jump",
            json={"paragraph_index": 50, "sentence_index": -3, "word_index": 99},
        ).json()

        assert data["position"] == {"paragraph_index": 2, "sentence_index": 0, "word_index": 5}
        assert data["is_at_end"] is True
        assert data["word"] == "text!"

    def test_page_without_metadata(self, client: TestClient):
        data = client.post("/api/v1/position/page", json={"page_number": 2}).json()

        assert data["page_number"] is None
        assert data["page_count"] == 0
        assert data["position"]["paragraph_index"] == 0

    def test_events_snapshot(self, client: TestClient):
        with client.stream("GET", "/api/v1/position/events?limit=1") as response:
            assert response.headers["content-type"].startswith("text/event-stream")
            body = "".join(response.iter_text())

        event, data = _parse_sse(body)
        assert event == "snapshot"
        assert data["word"] == "The"


class TestPositionEventStream:
    """Tests for the SSE generator driven directly."""

    def test_snapshot_then_changes(self, session):
        async def scenario():
            events = _position_events_generator(session, limit=2)
            first = await events.__anext__()
            session.next_word()
            second = await events.__anext__()
            with pytest.raises(StopAsyncIteration):
                await events.__anext__()
            return first, second

        first, second = asyncio.run(scenario())

        assert _parse_sse(first)[0] == "snapshot"
        event, data = _parse_sse(second)
        assert event == "position"
        assert data["source"] == "user"
        assert data["word"] == "first"
        assert data["previous"] == {"paragraph_index": 0, "sentence_index": 0, "word_index": 0}
        assert len(session.notifier) == 0

    def test_heartbeat(self, session):
        async def scenario():
            events = _position_events_generator(session, heartbeat_interval=0.01)
            await events.__anext__()
            heartbeat = await events.__anext__()
            await events.aclose()
            return heartbeat

        assert asyncio.run(scenario()) == ": heartbeat\n\n"
        assert len(session.notifier) == 0

    def test_format_sse(self):
        assert _format_sse({"a": 1}, event="position") == 'event: position\ndata: {"a": 1}\n\n'


class TestModesEndpoints:
    """Tests for /api/v1/modes."""

    def test_initial_modes(self, client: TestClient):
        data = client.get("/api/v1/modes").json()

        assert data["mode"] == "manual"
        assert data["autoscroll"]["words_per_minute"] == 200
        assert data["autoscroll"]["delay_ms"] == 300
        assert data["speech"]["state"] == "idle"

    def test_autoscroll_and_speech_exclusive(self, client: TestClient):
        data = client.post(
            "/api/v1/modes/autoscroll", json={"enabled": True, "words_per_minute": 240}
        ).json()
        assert data["mode"] == "autoscroll"
        assert data["autoscroll"]["delay_ms"] == 250

        data = client.post("/api/v1/modes/speech", json={"enabled": True, "voice": "bf_emma"}).json()
        assert data["mode"] == "speech"
        assert data["autoscroll"]["enabled"] is False
        assert data["speech"]["voice"] == "bf_emma"

        data = client.post("/api/v1/modes/speech", json={"enabled": False}).json()
        assert data["mode"] == "manual"
        assert data["speech"]["state"] == "idle"

    @pytest.mark.parametrize("wpm", [50, 505, 1000])
    def test_autoscroll_speed_validation(self, client: TestClient, wpm: int):
        response = client.post(
            "/api/v1/modes/autoscroll", json={"enabled": True, "words_per_minute": wpm}
        )
        assert response.status_code == 422


class TestVoicesEndpoint:
    """Tests for /api/v1/voices."""

    def test_list_all(self, client: TestClient):
        data = client.get("/api/v1/voices").json()

        names = [v["name"] for v in data["voices"]]
        assert "af_heart" in names
        assert set(data["by_language"]) >= {"a", "b"}

    def test_filter(self, client: TestClient):
        data = client.get("/api/v1/voices", params={"language": "b"}).json()

        assert all(v["language_code"] == "b" for v in data["voices"])
        assert data["voices"][0]["language_name"] == "British English"


class TestPageEndpoint:
    """Tests for /api/v1/position/page."""

    @pytest.fixture
    def paged_client(self, session, sample_text):
        session.load_document(BookContent(
            text=sample_text,
            title="Paged",
            format="pdf",
            pages=[PageMetadata(1, 0, 0), PageMetadata(2, 1, 2)],
        ))
        with TestClient(create_app(session=session)) as client:
            yield client

    def test_go_to_page(self, paged_client: TestClient):
        data = paged_client.post("/api/v1/position/page", json={"page_number": 2}).json()

        assert data["position"] == {"paragraph_index": 1, "sentence_index": 0, "word_index": 0}
        assert data["page_number"] == 2
        assert data["page_count"] == 2

    def test_page_number_is_clamped(self, paged_client: TestClient):
        data = paged_client.post("/api/v1/position/page", json={"page_number": 40}).json()
        assert data["page_number"] == 2

    def test_next_and_prev(self, paged_client: TestClient):
        data = paged_client.post("/api/v1/position/page", json={"direction": "next"}).json()
        assert data["page_number"] == 2

        data = paged_client.post("/api/v1/position/page", json={"direction": "prev"}).json()
        assert data["page_number"] == 1

    @pytest.mark.parametrize(
        "body",
        [{}, {"page_number": 1, "direction": "next"}, {"direction": "sideways"}],
    )
    def test_needs_exactly_one_target(self, paged_client: TestClient, body: dict):
        assert paged_client.post("/api/v1/position/page", json=body).status_code == 422
