"""Tests for the SSE module."""

import json

import pytest

from cloudrelay.core.sse import (
    DONE_MARKER,
    detect_sse_stream_error,
    format_sse_data,
    format_sse_event,
    iter_sse_json,
)


async def _lines(*items):
    for item in items:
        yield item


async def _collect(lines):
    return [payload async for payload in iter_sse_json(lines)]


class TestDetectSseStreamError:
    """Tests for SSE stream error detection."""

    def test_returns_none_for_regular_chunk(self):
        """Test that None is returned for a normal payload."""
        assert detect_sse_stream_error({"response": {"candidates": []}}) is None

    def test_returns_none_for_non_dict(self):
        """Test that None is returned for non-dict payloads."""
        assert detect_sse_stream_error("just a string") is None
        assert detect_sse_stream_error(None) is None

    def test_detects_anthropic_style_error(self):
        """Test that an Anthropic-style error event is detected."""
        result = detect_sse_stream_error(
            {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}
        )
        assert result == "SSE stream error: Overloaded"

    def test_detects_google_style_error(self):
        """Test that a Google-style error object is detected with code and status."""
        result = detect_sse_stream_error({
            "error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}
        })
        assert result == "SSE stream error: 429 RESOURCE_EXHAUSTED Quota exceeded"

    def test_ignores_non_dict_error_value(self):
        """Test that a string error field is not treated as an error object."""
        assert detect_sse_stream_error({"error": "text"}) is None


class TestFormatting:
    """Tests for SSE framing."""

    def test_format_sse_data_dict(self):
        """Test that dicts are JSON encoded on a data line."""
        framed = format_sse_data({"a": "é"})
        assert framed == 'data: {"a": "é"}\n\n'.encode("utf-8")

    def test_format_sse_data_done_marker_is_unquoted(self):
        """Test that the [DONE] marker is sent verbatim."""
        assert format_sse_data(DONE_MARKER) == b"data: [DONE]\n\n"

    def test_format_sse_event(self):
        """Test that Anthropic events carry an event line."""
        framed = format_sse_event("message_stop", {"type": "message_stop"})
        text = framed.decode("utf-8")
        assert text.startswith("event: message_stop\ndata: ")
        assert text.endswith("\n\n")
        assert json.loads(text.split("data: ", 1)[1]) == {"type": "message_stop"}


class TestIterSseJson:
    """Tests for decoding data lines into JSON payloads."""

    @pytest.mark.asyncio
    async def test_decodes_events(self):
        """Test that each complete event yields one payload."""
        result = await _collect(_lines('data: {"id": 1}', "", 'data: {"id": 2}', ""))
        assert result == [{"id": 1}, {"id": 2}]

    @pytest.mark.asyncio
    async def test_flushes_trailing_event_without_blank_line(self):
        """Test that an unterminated final event is still decoded."""
        result = await _collect(_lines('data: {"id": 1}', "", 'data: {"id": 2}'))
        assert result == [{"id": 1}, {"id": 2}]

    @pytest.mark.asyncio
    async def test_skips_done_and_invalid_json(self):
        """Test that [DONE] and unparsable payloads are skipped."""
        result = await _collect(_lines("data: {invalid}", "", "data: [DONE]", ""))
        assert result == []

    @pytest.mark.asyncio
    async def test_ignores_other_fields(self):
        """Test that event/id lines and comments are ignored."""
        result = await _collect(
            _lines(": keepalive", "event: message", 'data: {"ok": true}', "")
        )
        assert result == [{"ok": True}]

    @pytest.mark.asyncio
    async def test_joins_multiline_data(self):
        """Test that multi-line data fields are joined before decoding."""
        result = await _collect(_lines('data: {"a":', "data: 1}", ""))
        assert result == [{"a": 1}]
