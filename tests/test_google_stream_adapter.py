"""Tests for the Google chunk -> Anthropic event stream adapter."""

import json

import pytest

from cloudrelay.google import GoogleToMessagesStreamAdapter, adapt_google_stream_to_messages

SIG = "t" * 60


async def _aiter(items):
    for item in items:
        yield item


def _chunk(parts, finish_reason=None, usage=None):
    candidate = {"content": {"role": "model", "parts": parts}}
    if finish_reason:
        candidate["finishReason"] = finish_reason
    response = {"candidates": [candidate]}
    if usage:
        response["usageMetadata"] = usage
    return {"response": response}


async def _collect(adapter, chunks):
    return [event async for event in adapter.adapt_stream(_aiter(chunks))]


class TestGoogleToMessagesStreamAdapter:
    """Tests for GoogleToMessagesStreamAdapter."""

    @pytest.mark.asyncio
    async def test_thinking_text_and_tool_call(self):
        """Test the full event sequence for a thinking turn that calls a tool."""
        adapter = GoogleToMessagesStreamAdapter("claude-sonnet-4-5-thinking", message_id="msg_1")
        events = await _collect(adapter, [
            _chunk([{"text": "Let me ", "thought": True}],
                   usage={"promptTokenCount": 12, "cachedContentTokenCount": 2}),
            _chunk([{"text": "think", "thought": True}]),
            _chunk([{"text": "", "thought": True, "thoughtSignature": SIG}]),
            _chunk([{"text": "Checking."}]),
            _chunk(
                [{"functionCall": {"name": "get_weather", "args": {"city": "Paris"}, "id": "toolu_1"}}],
                finish_reason="TOOL_USE",
                usage={"promptTokenCount": 12, "cachedContentTokenCount": 2, "candidatesTokenCount": 30},
            ),
        ])

        types = [event["type"] for event in events]
        assert types == [
            "message_start",
            "content_block_start",
            "content_block_delta",
            "content_block_delta",
            "content_block_delta",
            "content_block_stop",
            "content_block_start",
            "content_block_delta",
            "content_block_stop",
            "content_block_start",
            "content_block_delta",
            "content_block_stop",
            "message_delta",
            "message_stop",
        ]

        message = events[0]["message"]
        assert message["id"] == "msg_1"
        assert message["usage"]["input_tokens"] == 10
        assert message["usage"]["cache_read_input_tokens"] == 2

        assert events[1]["content_block"] == {"type": "thinking", "thinking": ""}
        assert events[2]["delta"] == {"type": "thinking_delta", "thinking": "Let me "}
        assert events[4] == {
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "signature_delta", "signature": SIG},
        }
        assert events[6]["index"] == 1
        assert events[7]["delta"] == {"type": "text_delta", "text": "Checking."}

        tool_start = events[9]
        assert tool_start["index"] == 2
        assert tool_start["content_block"] == {
            "type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {},
        }
        assert json.loads(events[10]["delta"]["partial_json"]) == {"city": "Paris"}

        assert events[12]["delta"] == {"stop_reason": "tool_use", "stop_sequence": None}
        assert events[12]["usage"] == {
            "input_tokens": 10,
            "output_tokens": 30,
            "cache_read_input_tokens": 2,
        }

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        """Test that an empty source still yields a complete envelope."""
        adapter = GoogleToMessagesStreamAdapter("gemini-2.5-flash")
        events = await _collect(adapter, [])
        assert [event["type"] for event in events] == [
            "message_start",
            "content_block_start",
            "content_block_stop",
            "message_delta",
            "message_stop",
        ]
        assert events[1]["content_block"] == {"type": "text", "text": ""}
        assert events[3]["delta"]["stop_reason"] == "end_turn"

    @pytest.mark.asyncio
    async def test_max_tokens(self):
        """Test that MAX_TOKENS maps to max_tokens."""
        adapter = GoogleToMessagesStreamAdapter("gemini-2.5-flash")
        events = await _collect(adapter, [_chunk([{"text": "partial"}], finish_reason="MAX_TOKENS")])
        assert events[-2]["delta"]["stop_reason"] == "max_tokens"

    @pytest.mark.asyncio
    async def test_stop_with_function_call(self):
        """Test that STOP after a function call still reports end_turn."""
        adapter = GoogleToMessagesStreamAdapter("gemini-2.5-flash")
        events = await _collect(adapter, [
            _chunk([{"functionCall": {"name": "get_weather", "args": {}}}], finish_reason="STOP"),
        ])
        assert events[1]["content_block"]["type"] == "tool_use"
        assert events[-2]["delta"]["stop_reason"] == "end_turn"

    @pytest.mark.asyncio
    async def test_function_call_without_finish_reason(self):
        """Test that a tool call decides the reason when none is reported."""
        adapter = GoogleToMessagesStreamAdapter("gemini-2.5-flash")
        events = await _collect(adapter, [
            _chunk([{"functionCall": {"name": "get_weather", "args": {}}}]),
        ])
        assert events[-2]["delta"]["stop_reason"] == "tool_use"

    @pytest.mark.asyncio
    async def test_source_error_propagates_without_terminal_events(self):
        """Test that a failing source aborts without message_stop."""
        async def failing():
            yield _chunk([{"text": "Hi"}])
            raise RuntimeError("connection reset")

        adapter = GoogleToMessagesStreamAdapter("gemini-2.5-flash")
        seen = []
        with pytest.raises(RuntimeError):
            async for event in adapter.adapt_stream(failing()):
                seen.append(event["type"])
        assert "message_stop" not in seen

    @pytest.mark.asyncio
    async def test_convenience_function(self):
        """Test adapt_google_stream_to_messages."""
        events = [
            event async for event in adapt_google_stream_to_messages(
                "gemini-2.5-flash", _aiter([_chunk([{"text": "Hi"}], finish_reason="STOP")]),
            )
        ]
        assert events[0]["type"] == "message_start"
        assert events[-1] == {"type": "message_stop"}

    def test_tool_signature_kept_when_valid(self):
        """Test that a valid function call signature lands on the tool_use block."""
        adapter = GoogleToMessagesStreamAdapter("gemini-3-pro-preview")
        events = adapter.process_chunk(_chunk([
            {"functionCall": {"name": "run", "args": {}}, "thoughtSignature": SIG},
        ]))
        block = events[1]["content_block"]
        assert block["id"].startswith("toolu_")
        assert block["thoughtSignature"] == SIG

    def test_unsigned_thinking_gets_no_signature_delta(self):
        """Test that a short signature never produces a signature_delta."""
        adapter = GoogleToMessagesStreamAdapter("gemini-3-pro-preview")
        adapter.process_chunk(_chunk([{"text": "x", "thought": True, "thoughtSignature": "short"}]))
        events = adapter.finish()
        assert all(
            event.get("delta", {}).get("type") != "signature_delta" for event in events
        )
