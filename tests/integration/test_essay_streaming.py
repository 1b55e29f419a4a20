"""Integration tests for streamed essay answers (server-sent events)."""

import asyncio
import json

import pytest

from essay_api.utils.errors import AuthError, UpstreamError
from tests.fakes import make_chunk

HEADERS = {"TOKEN": "sk-caller"}

BODY = {
    "model": "gpt-test",
    "stream": True,
    "messages": [{"question": "Some people think...", "essay": "In my opinion..."}],
}


def parse_frames(text: str) -> list[dict]:
    """Split an SSE body into decoded data payloads."""
    frames = [frame for frame in text.split("\n\n") if frame]
    assert all(frame.startswith("data: ") for frame in frames)
    return [json.loads(frame[len("data: ") :]) for frame in frames]


class TestStreaming:
    """Successful streams."""

    def test_chunks_streamed_in_order(self, client, fake_gateway) -> None:
        response = client.post("/ask", json=BODY, headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"

        frames = parse_frames(response.text)
        assert [frame["choices"][0]["delta"]["content"] for frame in frames] == [
            "Band",
            " 7",
            ".0",
        ]
        assert all(frame["object"] == "chat.completion.chunk" for frame in frames)
        assert [frame["created"] for frame in frames] == [1700000001, 1700000002, 1700000003]

    def test_stream_requested_from_gateway(self, client, fake_gateway) -> None:
        client.post("/ask", json=BODY, headers=HEADERS)

        assert fake_gateway.calls[0]["stream"] is True
        assert fake_gateway.calls[0]["credential"] == "sk-caller"
        assert fake_gateway.streams[0].closed

    def test_empty_stream(self, client, fake_gateway) -> None:
        fake_gateway.chunks = []

        response = client.post("/ask", json=BODY, headers=HEADERS)

        assert response.status_code == 200
        assert response.text == ""


class TestStreamingFailures:
    """Failures before and after the first chunk."""

    def test_failure_before_first_chunk_is_json_error(self, client, fake_gateway) -> None:
        fake_gateway.error = AuthError("Incorrect API key provided")

        response = client.post("/ask", json=BODY, headers=HEADERS)

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/json")
        assert response.json()["error"]["code"] == "AUTH_ERROR"

    def test_failure_after_first_chunk_is_inband_frame(self, client, fake_gateway) -> None:
        fake_gateway.chunks = [make_chunk(1, "Band")]
        fake_gateway.stream_error = UpstreamError("model overloaded")

        response = client.post("/ask", json=BODY, headers=HEADERS)

        assert response.status_code == 200
        frames = parse_frames(response.text)
        assert len(frames) == 2
        assert frames[0]["choices"][0]["delta"]["content"] == "Band"
        assert frames[1] == {
            "error": {
                "message": "model overloaded",
                "type": "UpstreamError",
                "code": "UPSTREAM_ERROR",
            }
        }
        assert fake_gateway.streams[0].closed


class TestClientDisconnect:
    """The upstream stream is released when the client goes away mid-stream."""

    @staticmethod
    def http_scope(body: bytes) -> dict:
        return {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.3"},
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "path": "/ask",
            "raw_path": b"/ask",
            "root_path": "",
            "query_string": b"",
            "headers": [
                (b"host", b"testserver"),
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode()),
                (b"token", b"sk-caller"),
            ],
            "client": ("127.0.0.1", 50000),
            "server": ("testserver", 80),
        }

    @pytest.mark.asyncio
    async def test_disconnect_during_slow_write_closes_upstream(self, app, fake_gateway) -> None:
        fake_gateway.chunks = [make_chunk(i, f"c{i}") for i in range(10)]
        fake_gateway.hang = True
        body = json.dumps(BODY).encode()
        disconnected = asyncio.Event()
        request_delivered = False
        frames_written = 0

        async def receive() -> dict:
            nonlocal request_delivered
            if not request_delivered:
                request_delivered = True
                return {"type": "http.request", "body": body, "more_body": False}
            await disconnected.wait()
            return {"type": "http.disconnect"}

        async def send(message: dict) -> None:
            nonlocal frames_written
            if message["type"] != "http.response.body" or not message.get("body"):
                return
            frames_written += 1
            if frames_written == 1:
                asyncio.get_running_loop().call_later(0.05, disconnected.set)
            else:
                # Client stops reading: the write is still pending when it disconnects
                await asyncio.sleep(0.2)

        await asyncio.wait_for(app(self.http_scope(body), receive, send), timeout=5)

        stream = fake_gateway.streams[0]
        assert stream.closed
        assert stream.close_count == 1
        assert len(stream.events) < 10
