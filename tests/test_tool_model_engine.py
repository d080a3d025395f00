"""
Tests for the OpenRouter tool-calling engine with the HTTP layer stubbed.
"""

import json

import pytest
import requests

from reporank.core.errors import ModelInvocationError, ToolNotUsedError
from reporank.shared import tool_model_engine
from reporank.shared.tool_model_engine import TOOL_NAME, ToolModelEngine
from reporank.tasks.ranking import build_schema


class FakeResponse:

    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("No JSON")
        return self._body


def tool_response(arguments, name=TOOL_NAME):
    return {
        "choices": [{
            "finish_reason": "tool_calls",
            "message": {
                "role": "assistant",
                "tool_calls": [{
                    "id": "call_1",
                    "type": "function",
                    "function": {"name": name, "arguments": arguments},
                }],
            },
        }],
        "usage": {"total_tokens": 120},
    }


@pytest.fixture
def engine():
    return ToolModelEngine(api_key="test-key", model_id="test/model", request_delay=0.0)


@pytest.fixture
def captured(monkeypatch):
    calls = []
    responses = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(tool_model_engine.requests, "post", fake_post)
    return calls, responses


class TestToolModelEngine:

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            ToolModelEngine(api_key="", model_id="test/model")

    def test_invoke_returns_tool_arguments(self, engine, captured, genai_specs):
        calls, responses = captured
        arguments = {"isDeprecated": False, "serviceNames": ["S3"], "hasTests": True}
        responses.append(FakeResponse(body=tool_response(json.dumps(arguments))))
        schema = build_schema(genai_specs)

        result = engine.invoke(schema, "system text", "user text", b"# Readme\nHello")

        assert result == arguments
        assert engine.get_total_tokens() == 120

        payload = calls[0]["json"]
        assert calls[0]["headers"]["Authorization"] == "Bearer test-key"
        assert payload["model"] == "test/model"
        assert payload["temperature"] == 0
        assert payload["max_tokens"] == 2000
        assert payload["messages"][0] == {"role": "system", "content": "system text"}
        assert "user text" in payload["messages"][1]["content"]
        assert "# Readme\nHello" in payload["messages"][1]["content"]
        assert payload["tools"][0]["function"]["name"] == TOOL_NAME
        assert payload["tools"][0]["function"]["parameters"] == schema.to_json_schema()
        assert payload["tool_choice"] == {"type": "function", "function": {"name": TOOL_NAME}}

    def test_dict_arguments_accepted(self, engine):
        assert engine.parse_tool_arguments(tool_response({"hasTests": True})) == {"hasTests": True}

    def test_no_tool_call_raises_tool_not_used(self, engine, captured, genai_specs):
        _, responses = captured
        responses.append(FakeResponse(body={
            "choices": [{"finish_reason": "stop", "message": {"content": "plain text"}}]
        }))

        with pytest.raises(ToolNotUsedError):
            engine.invoke(build_schema(genai_specs), "s", "u", b"readme")

    def test_other_tool_raises_tool_not_used(self, engine):
        with pytest.raises(ToolNotUsedError):
            engine.parse_tool_arguments(tool_response("{}", name="other_tool"))

    def test_http_error(self, engine, captured, genai_specs):
        _, responses = captured
        responses.append(FakeResponse(status_code=500, text="boom"))

        with pytest.raises(ModelInvocationError, match="HTTP 500"):
            engine.invoke(build_schema(genai_specs), "s", "u", b"readme")

    def test_request_exception(self, engine, captured, genai_specs):
        _, responses = captured
        responses.append(requests.ConnectionError("unreachable"))

        with pytest.raises(ModelInvocationError):
            engine.invoke(build_schema(genai_specs), "s", "u", b"readme")

    def test_invalid_json_body(self, engine, captured, genai_specs):
        _, responses = captured
        responses.append(FakeResponse(body=None))

        with pytest.raises(ModelInvocationError):
            engine.invoke(build_schema(genai_specs), "s", "u", b"readme")

    @pytest.mark.parametrize("arguments", ["{not json", "[1, 2]", None])
    def test_malformed_arguments(self, engine, arguments):
        with pytest.raises(ModelInvocationError):
            engine.parse_tool_arguments(tool_response(arguments))

    def test_api_error_payload(self, engine):
        with pytest.raises(ModelInvocationError, match="quota"):
            engine.parse_tool_arguments({"error": {"message": "quota exceeded"}})

    def test_empty_choices(self, engine):
        with pytest.raises(ModelInvocationError):
            engine.parse_tool_arguments({"choices": []})
