"""Tests for the sequential model fallback state machine."""

import pytest

from core.enums import TerminalPolicy
from core.exceptions import InvalidModelResponse, ModelInvocationError, ModelTimeoutError
from services.model_fallback import (
    CHAT_PROFILE, FOLLOW_UP_PROFILE, ModelFallbackInvoker, extract_message_content
)
from tests.fakes.fake_services import TIMEOUT, ScriptedChatClient

MODELS = ["model-a", "model-b", "model-c"]


def _build(model):
    return {"messages": [{"role": "user", "content": "hi"}]}


class TestExtractMessageContent:
    def test_reads_first_choice(self):
        assert extract_message_content({"choices": [{"message": {"content": "ok"}}]}, "m") == "ok"

    @pytest.mark.parametrize("body", [{}, {"choices": []}, {"choices": [{}]}, None, {"choices": [{"message": {"content": 5}}]}])
    def test_malformed_raises(self, body):
        with pytest.raises(InvalidModelResponse):
            extract_message_content(body, "m")


class TestInvoke:
    @pytest.mark.asyncio
    async def test_first_success_wins(self):
        client = ScriptedChatClient({m: f"from {m}" for m in MODELS})
        result = await ModelFallbackInvoker(client, MODELS).invoke(_build, 1.0, TerminalPolicy.RAISE)
        assert result == "from model-a"
        assert client.calls == ["model-a"]

    @pytest.mark.asyncio
    async def test_timeout_then_success_skips_third(self):
        client = ScriptedChatClient({"model-a": TIMEOUT, "model-b": "second", "model-c": "third"})
        result = await ModelFallbackInvoker(client, MODELS).invoke(_build, 0.05, TerminalPolicy.RAISE)
        assert result == "second"
        assert client.calls == ["model-a", "model-b"]

    @pytest.mark.asyncio
    async def test_malformed_response_advances(self):
        client = ScriptedChatClient({"model-a": {"error": "loading"}, "model-b": "ok", "model-c": "no"})
        result = await ModelFallbackInvoker(client, MODELS).invoke(_build, 1.0, TerminalPolicy.RAISE)
        assert result == "ok"

    @pytest.mark.asyncio
    async def test_all_fail_raise_propagates_last_error(self):
        client = ScriptedChatClient({
            "model-a": RuntimeError("a down"),
            "model-b": RuntimeError("b down"),
            "model-c": ModelInvocationError("c down", model="model-c"),
        })
        with pytest.raises(ModelInvocationError, match="c down"):
            await ModelFallbackInvoker(client, MODELS).invoke(_build, 1.0, TerminalPolicy.RAISE)
        assert client.calls == MODELS

    @pytest.mark.asyncio
    async def test_all_timeout_raises_timeout_error(self):
        client = ScriptedChatClient({m: TIMEOUT for m in MODELS})
        with pytest.raises(ModelTimeoutError) as exc_info:
            await ModelFallbackInvoker(client, MODELS).invoke(_build, 0.02, TerminalPolicy.RAISE)
        assert exc_info.value.model == "model-c"

    @pytest.mark.asyncio
    async def test_all_fail_empty_policy_returns_none(self):
        client = ScriptedChatClient({m: RuntimeError("down") for m in MODELS})
        result = await ModelFallbackInvoker(client, MODELS).invoke(_build, 1.0, TerminalPolicy.EMPTY)
        assert result is None
        assert client.calls == MODELS

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        client = ScriptedChatClient({})
        with pytest.raises(ModelInvocationError):
            await ModelFallbackInvoker(client, []).invoke(_build, 1.0, TerminalPolicy.RAISE)


class TestRun:
    @pytest.mark.asyncio
    async def test_profile_sets_request_body(self):
        client = ScriptedChatClient({m: "ok" for m in MODELS})
        await ModelFallbackInvoker(client, MODELS).run(CHAT_PROFILE, [{"role": "user", "content": "q"}])
        payload = client.payloads[0]
        assert payload["max_tokens"] == 500
        assert payload["temperature"] == 0.7
        assert payload["top_p"] == 0.9
        assert payload["messages"] == [{"role": "user", "content": "q"}]

    def test_profiles_differ_only_in_knobs(self):
        assert CHAT_PROFILE.terminal_policy == TerminalPolicy.RAISE
        assert FOLLOW_UP_PROFILE.terminal_policy == TerminalPolicy.EMPTY
        assert (FOLLOW_UP_PROFILE.timeout, FOLLOW_UP_PROFILE.max_tokens) == (20.0, 300)
