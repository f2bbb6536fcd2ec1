"""Tests for Anthropic -> Google request translation."""

from cloudrelay.core.constants import GEMINI_SKIP_SIGNATURE, INTERLEAVED_THINKING_HINT
from cloudrelay.core.settings import TranslatorSettings
from cloudrelay.google import convert_anthropic_to_google, normalize_tool_name

SIG = "g" * 60


def _request(model="gemini-2.5-flash", **extra):
    request = {
        "model": model,
        "max_tokens": 1024,
        "messages": [{"role": "user", "content": "Hello"}],
    }
    request.update(extra)
    return request


class TestMessages:
    """Tests for message and content block conversion."""

    def test_roles_and_text(self):
        """Test role mapping and plain text content."""
        result = convert_anthropic_to_google(_request(messages=[
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": [{"type": "text", "text": "Hello!"}]},
        ]))
        assert result["contents"] == [
            {"role": "user", "parts": [{"text": "Hi"}]},
            {"role": "model", "parts": [{"text": "Hello!"}]},
        ]

    def test_empty_text_dropped_and_empty_message_skipped(self):
        """Test that empty parts are never sent."""
        result = convert_anthropic_to_google(_request(messages=[
            {"role": "user", "content": [{"type": "text", "text": "  "}]},
            {"role": "user", "content": [{"type": "text", "text": ""}, {"type": "text", "text": "Q"}]},
        ]))
        assert result["contents"] == [{"role": "user", "parts": [{"text": "Q"}]}]

    def test_image_sources(self):
        """Test base64 and URL image sources."""
        result = convert_anthropic_to_google(_request(messages=[{
            "role": "user",
            "content": [
                {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAA"}},
                {"type": "image", "source": {"type": "url", "url": "https://example.com/cat.jpg"}},
                {"type": "document", "source": {"type": "base64", "data": "PDF"}},
            ],
        }]))
        assert result["contents"][0]["parts"] == [
            {"inlineData": {"mimeType": "image/png", "data": "AAA"}},
            {"fileData": {"mimeType": "image/jpeg", "fileUri": "https://example.com/cat.jpg"}},
            {"inlineData": {"mimeType": "application/pdf", "data": "PDF"}},
        ]

    def test_tool_use_and_result_for_claude(self):
        """Test that Claude models get call ids and the tool name on results."""
        result = convert_anthropic_to_google(_request(
            model="claude-sonnet-4-5",
            messages=[
                {"role": "user", "content": "Weather?"},
                {"role": "assistant", "content": [
                    {"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {"city": "Paris"}},
                ]},
                {"role": "user", "content": [
                    {"type": "tool_result", "tool_use_id": "toolu_1", "content": [
                        {"type": "text", "text": "Sunny"}, {"type": "text", "text": "20C"},
                    ]},
                ]},
            ],
        ))
        call = result["contents"][1]["parts"][0]
        assert call == {"functionCall": {"name": "get_weather", "args": {"city": "Paris"}, "id": "toolu_1"}}
        response = result["contents"][2]["parts"][0]["functionResponse"]
        assert response == {"name": "get_weather", "response": {"result": "Sunny\n20C"}, "id": "toolu_1"}

    def test_gemini_tool_use_gets_sentinel_signature(self):
        """Test that a Gemini function call without a signature carries the sentinel."""
        result = convert_anthropic_to_google(_request(
            model="gemini-3-pro-preview",
            messages=[
                {"role": "user", "content": "Go"},
                {"role": "assistant", "content": [
                    {"type": "tool_use", "id": "toolu_1", "name": "run", "input": {}},
                ]},
            ],
        ))
        part = result["contents"][1]["parts"][0]
        assert part["thoughtSignature"] == GEMINI_SKIP_SIGNATURE
        assert "id" not in part["functionCall"]

    def test_gemini_tool_use_keeps_original_signature(self):
        """Test that a preserved signature is replayed."""
        result = convert_anthropic_to_google(_request(
            model="gemini-3-pro-preview",
            messages=[
                {"role": "user", "content": "Go"},
                {"role": "assistant", "content": [
                    {"type": "tool_use", "id": "t", "name": "run", "input": {}, "thoughtSignature": SIG},
                ]},
            ],
        ))
        assert result["contents"][1]["parts"][0]["thoughtSignature"] == SIG

    def test_signed_thinking_replayed_unsigned_dropped(self):
        """Test that only signed thinking reaches the backend, ahead of text."""
        result = convert_anthropic_to_google(_request(
            model="claude-sonnet-4-5-thinking",
            messages=[
                {"role": "user", "content": "Q"},
                {"role": "assistant", "content": [
                    {"type": "text", "text": "Answer"},
                    {"type": "thinking", "thinking": "unsigned", "signature": "x"},
                    {"type": "thinking", "thinking": "signed", "signature": SIG, "cache_control": {}},
                ]},
            ],
        ))
        assert result["contents"][1]["parts"] == [
            {"text": "signed", "thought": True, "thoughtSignature": SIG},
            {"text": "Answer"},
        ]

    def test_gemini_style_thought_stays_a_thought(self):
        """Test that a signed {thought, text, thoughtSignature} block keeps its flag and signature."""
        result = convert_anthropic_to_google(_request(
            model="claude-sonnet-4-5-thinking",
            messages=[
                {"role": "user", "content": "Q"},
                {"role": "assistant", "content": [
                    {"thought": True, "text": "secret reasoning", "thoughtSignature": SIG},
                    {"type": "text", "text": "answer"},
                ]},
            ],
        ))
        assert result["contents"][1]["parts"] == [
            {"text": "secret reasoning", "thought": True, "thoughtSignature": SIG},
            {"text": "answer"},
        ]

    def test_unsigned_gemini_style_thought_dropped(self):
        """Test that an unsigned thought never becomes visible text."""
        result = convert_anthropic_to_google(_request(
            model="gemini-2.5-flash",
            messages=[
                {"role": "user", "content": "Q"},
                {"role": "assistant", "content": [
                    {"thought": True, "text": "secret reasoning", "thoughtSignature": "short"},
                    {"type": "text", "text": "answer"},
                ]},
            ],
        ))
        parts = result["contents"][1]["parts"]
        assert parts == [{"text": "answer"}]

    def test_untyped_block_dropped(self):
        """Test that blocks without a known type are not sent as text."""
        result = convert_anthropic_to_google(_request(messages=[
            {"role": "user", "content": [
                {"text": "stray"},
                {"thought": True, "text": "hidden", "thoughtSignature": "short"},
                {"type": "text", "text": "Hello"},
            ]},
        ]))
        assert result["contents"][0]["parts"] == [{"text": "Hello"}]

    def test_tool_result_string_content(self):
        """Test that string tool results are wrapped."""
        result = convert_anthropic_to_google(_request(messages=[
            {"role": "user", "content": [
                {"type": "tool_result", "tool_use_id": "orphan", "content": "done"},
            ]},
        ]))
        response = result["contents"][0]["parts"][0]["functionResponse"]
        assert response == {"name": "orphan", "response": {"result": "done"}}


class TestSystemAndConfig:
    """Tests for system prompt, generation and thinking config."""

    def test_system_string_and_blocks(self):
        """Test both system prompt forms."""
        as_string = convert_anthropic_to_google(_request(system="Be brief."))
        assert as_string["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
        as_blocks = convert_anthropic_to_google(_request(system=[
            {"type": "text", "text": "A"}, {"type": "text", "text": "B"},
        ]))
        assert as_blocks["systemInstruction"] == {"parts": [{"text": "A"}, {"text": "B"}]}

    def test_interleaved_hint_for_claude_thinking_with_tools(self):
        """Test that the interleaved thinking hint is appended."""
        result = convert_anthropic_to_google(_request(
            model="claude-opus-4-5-thinking",
            system="Be brief.",
            tools=[{"name": "run", "input_schema": {"type": "object", "properties": {"x": {"type": "string"}}}}],
        ))
        assert result["systemInstruction"]["parts"][-1]["text"] == (
            f"Be brief.\n\n{INTERLEAVED_THINKING_HINT}"
        )

    def test_interleaved_hint_seeds_system(self):
        """Test that the hint becomes the system prompt when none exists."""
        result = convert_anthropic_to_google(_request(
            model="claude-opus-4-5-thinking",
            tools=[{"name": "run"}],
        ))
        assert result["systemInstruction"] == {"parts": [{"text": INTERLEAVED_THINKING_HINT}]}

    def test_generation_config(self):
        """Test the 1:1 generation parameter mapping."""
        result = convert_anthropic_to_google(_request(
            model="claude-sonnet-4-5",
            max_tokens=2000,
            temperature=0.5,
            top_p=0.9,
            top_k=40,
            stop_sequences=["END"],
        ))
        assert result["generationConfig"] == {
            "maxOutputTokens": 2000,
            "temperature": 0.5,
            "topP": 0.9,
            "topK": 40,
            "stopSequences": ["END"],
        }

    def test_gemini_max_tokens_clamped(self):
        """Test that Gemini output tokens are capped, not rejected."""
        result = convert_anthropic_to_google(_request(max_tokens=64000))
        assert result["generationConfig"]["maxOutputTokens"] == 16384

    def test_clamp_uses_settings(self):
        """Test that the cap comes from the settings object."""
        settings = TranslatorSettings(gemini_max_output_tokens=1000)
        result = convert_anthropic_to_google(_request(max_tokens=2000), settings)
        assert result["generationConfig"]["maxOutputTokens"] == 1000

    def test_claude_not_clamped(self):
        """Test that Claude models keep large output limits."""
        result = convert_anthropic_to_google(_request(model="claude-sonnet-4-5", max_tokens=64000))
        assert result["generationConfig"]["maxOutputTokens"] == 64000

    def test_claude_thinking_config(self):
        """Test snake_case thinking config with an explicit budget."""
        result = convert_anthropic_to_google(_request(
            model="claude-sonnet-4-5-thinking",
            thinking={"type": "enabled", "budget_tokens": 8000},
        ))
        assert result["generationConfig"]["thinkingConfig"] == {
            "include_thoughts": True,
            "thinking_budget": 8000,
        }

    def test_gemini_thinking_default_budget(self):
        """Test camelCase thinking config with the default budget."""
        result = convert_anthropic_to_google(_request(model="gemini-3-pro-preview"))
        assert result["generationConfig"]["thinkingConfig"] == {
            "includeThoughts": True,
            "thinkingBudget": 16000,
        }

    def test_thinking_disabled(self):
        """Test that an explicit disable suppresses the thinking config."""
        result = convert_anthropic_to_google(_request(
            model="gemini-3-pro-preview", thinking={"type": "disabled"},
        ))
        assert "thinkingConfig" not in result["generationConfig"]

    def test_non_thinking_model(self):
        """Test that non-thinking models get no thinking config."""
        result = convert_anthropic_to_google(_request(model="gemini-2.5-flash"))
        assert "thinkingConfig" not in result["generationConfig"]


class TestTools:
    """Tests for tool declarations and tool choice."""

    def test_declarations_sanitized_for_gemini(self):
        """Test that Gemini declarations use the strict schema pass."""
        result = convert_anthropic_to_google(_request(tools=[{
            "name": "get.weather",
            "description": "Weather lookup",
            "input_schema": {
                "type": "object",
                "additionalProperties": False,
                "properties": {"city": {"type": "string", "format": "email"}},
                "required": ["city", "country"],
            },
        }]))
        assert result["tools"] == [{"functionDeclarations": [{
            "name": "get_weather",
            "description": "Weather lookup",
            "parameters": {
                "type": "object",
                "properties": {"city": {"type": "string"}},
                "required": ["city"],
            },
        }]}]

    def test_openai_shaped_tool(self):
        """Test that OpenAI-shaped tools are accepted."""
        result = convert_anthropic_to_google(_request(
            model="claude-sonnet-4-5",
            tools=[{"type": "function", "function": {"name": "f", "parameters": {}}}],
        ))
        declaration = result["tools"][0]["functionDeclarations"][0]
        assert declaration["name"] == "f"
        assert declaration["parameters"]["required"] == ["reason"]

    def test_tool_choice_mapping(self):
        """Test each tool_choice form."""
        tools = [{"name": "my tool"}]
        cases = {
            "auto": {"mode": "AUTO"},
            "any": {"mode": "ANY"},
            "none": {"mode": "NONE"},
        }
        for choice_type, expected in cases.items():
            result = convert_anthropic_to_google(_request(tools=tools, tool_choice={"type": choice_type}))
            assert result["toolConfig"] == {"functionCallingConfig": expected}

        result = convert_anthropic_to_google(_request(
            tools=tools, tool_choice={"type": "tool", "name": "my tool"},
        ))
        assert result["toolConfig"] == {
            "functionCallingConfig": {"mode": "ANY", "allowedFunctionNames": ["my_tool"]},
        }

    def test_no_tool_config_without_tools(self):
        """Test that tool_choice alone is ignored."""
        result = convert_anthropic_to_google(_request(tool_choice={"type": "any"}))
        assert "toolConfig" not in result
        assert "tools" not in result


class TestNormalizeToolName:
    """Tests for tool name normalization."""

    def test_charset_and_length(self):
        """Test disallowed characters and the 64 character cap."""
        assert normalize_tool_name("a.b c/d") == "a_b_c_d"
        assert len(normalize_tool_name("x" * 100)) == 64
        assert normalize_tool_name("ok-name_1") == "ok-name_1"
