"""Tests for Accept negotiation and response framing."""

from __future__ import annotations

import json

import pytest

from md2word_mcp.dispatcher import DispatchOutcome
from md2word_mcp.transport import Framing, negotiate, render, sse_frame


class TestNegotiate:
    @pytest.mark.parametrize(
        "accept",
        ["text/event-stream", "application/json, text/event-stream", "TEXT/EVENT-STREAM;q=0.9"],
    )
    def test_event_stream_when_accepted(self, accept):
        assert negotiate(accept) is Framing.EVENT_STREAM

    @pytest.mark.parametrize("accept", [None, "", "application/json", "*/*"])
    def test_json_otherwise(self, accept):
        assert negotiate(accept) is Framing.JSON


class TestSseFrame:
    def test_message_frame(self):
        envelope = {"jsonrpc": "2.0", "id": 1, "result": {}}
        frame = sse_frame(envelope)

        assert frame == 'id:1\nevent:message\ndata:{"jsonrpc":"2.0","id":1,"result":{}}\n\n'

    def test_error_frame(self):
        envelope = {"jsonrpc": "2.0", "id": "a", "error": {"code": -32601, "message": "Method not found"}}
        frame = sse_frame(envelope)

        lines = frame.split("\n")
        assert lines[0] == "id:a"
        assert lines[1] == "event:error"
        assert json.loads(lines[2][len("data:"):]) == envelope
        assert frame.endswith("\n\n")

    def test_missing_id_uses_epoch_milliseconds(self):
        frame = sse_frame({"jsonrpc": "2.0", "result": {}}, clock=lambda: 1700000000.123)
        assert frame.startswith("id:1700000000123\n")

    def test_line_breaks_in_id_do_not_split_frame(self):
        envelope = {"jsonrpc": "2.0", "id": "a\nevent:error\r\n", "result": {}}
        frame = sse_frame(envelope)

        lines = frame.split("\n")
        assert lines[0] == "id:aevent:error"
        assert lines[1] == "event:message"
        assert json.loads(lines[2][len("data:"):]) == envelope
        assert frame.count("\n\n") == 1

    def test_non_ascii_kept_verbatim(self):
        frame = sse_frame({"jsonrpc": "2.0", "id": 1, "result": {"text": "Größe"}})
        assert "Größe" in frame


class TestRender:
    def test_notification_has_empty_body(self):
        response = render(DispatchOutcome(204), Framing.EVENT_STREAM)
        assert response.status_code == 204
        assert response.body == b""

    def test_json_framing(self):
        envelope = {"jsonrpc": "2.0", "id": 1, "result": {}}
        response = render(DispatchOutcome(200, envelope), Framing.JSON)

        assert response.status_code == 200
        assert response.media_type == "application/json"
        assert json.loads(response.body) == envelope

    def test_event_stream_framing_keeps_status_and_headers(self):
        envelope = {"jsonrpc": "2.0", "id": 2, "error": {"code": -32601, "message": "Method not found"}}
        response = render(DispatchOutcome(400, envelope), Framing.EVENT_STREAM)

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.body.decode().startswith("id:2\nevent:error\ndata:")
