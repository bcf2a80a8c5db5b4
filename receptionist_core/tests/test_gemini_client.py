import json

import httpx
import pytest

from receptionist_core.domain.exceptions import (
    ApiError,
    BackendError,
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
)
from receptionist_core.domain.models import ChatSessionConfig
from receptionist_core.providers.gemini_client import GeminiClient


class SettingsStub:
    gemini_api_key = "gemini-test-key"
    http_timeout = 1.0
    gemini_base_url = "https://generativelanguage.googleapis.com/v1beta"


CONFIG = ChatSessionConfig(
    provider="gemini",
    model="receptionist-chat",
    system_instruction="You are the dedicated AI Receptionist for \"Acme Roasters\".",
    temperature=0.6,
)


def sse(payload) -> str:
    return "data: " + json.dumps(payload)


def text_event(text, finish_reason=None):
    candidate = {"content": {"role": "model", "parts": [{"text": text}]}}
    if finish_reason:
        candidate["finishReason"] = finish_reason
    return sse({"candidates": [candidate]})


class FakeResponse:
    def __init__(self, lines, status_code=200, body=""):
        self._lines = list(lines)
        self.status_code = status_code
        self.text = body

    def read(self):
        return self.text.encode("utf-8")

    def iter_lines(self):
        for line in self._lines:
            yield line


class StreamContext:
    def __init__(self, response):
        self._response = response

    def __enter__(self):
        return self._response

    def __exit__(self, *args):
        return False


def install_client(monkeypatch, response, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def stream(self, method, url, **kw):
            if captured is not None:
                captured.append({"method": method, "url": url, **kw})
            return StreamContext(response)

    monkeypatch.setattr("httpx.Client", Client)


def test_missing_api_key():
    class NoKey:
        gemini_api_key = None

    with pytest.raises(ConfigurationError):
        GeminiClient(NoKey())


def test_short_api_key_rejected_at_construction():
    class ShortKey:
        gemini_api_key = "short"

    with pytest.raises(ConfigurationError) as exc:
        GeminiClient(ShortKey())
    assert exc.value.code == "INVALID_API_KEY"


def test_unknown_model():
    client = GeminiClient(SettingsStub())
    with pytest.raises(ConfigurationError):
        client.start_chat(ChatSessionConfig(provider="gemini", model="nope", system_instruction="x"))


def test_stream_yields_text_and_usage(monkeypatch):
    lines = [
        text_event("We're open "),
        "",
        sse({
            "candidates": [{"content": {"role": "model", "parts": [{"text": "until 9pm!"}]}, "finishReason": "STOP"}],
            "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 5, "totalTokenCount": 17},
        }),
    ]
    captured = []
    install_client(monkeypatch, FakeResponse(lines), captured)
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    chunks = list(session.send_message_stream("What time do you close?"))

    assert [c.text for c in chunks] == ["We're open ", "until 9pm!"]
    assert chunks[-1].finish_reason == "STOP"
    assert chunks[-1].usage.total_tokens == 17

    call = captured[0]
    assert call["url"].endswith("/models/gemini-3-flash-preview:streamGenerateContent")
    assert call["params"] == {"alt": "sse"}
    assert call["headers"]["x-goog-api-key"] == "gemini-test-key"
    body = call["json"]
    assert body["systemInstruction"]["parts"][0]["text"] == CONFIG.system_instruction
    assert body["generationConfig"]["temperature"] == 0.6
    assert body["contents"] == [{"role": "user", "parts": [{"text": "What time do you close?"}]}]


def test_history_is_sent_on_next_turn(monkeypatch):
    captured = []
    install_client(monkeypatch, FakeResponse([text_event("Hi!")]), captured)
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    list(session.send_message_stream("Hello"))
    list(session.send_message_stream("Where are you?"))

    assert [(m.role, m.content) for m in session.history] == [
        ("user", "Hello"),
        ("model", "Hi!"),
        ("user", "Where are you?"),
        ("model", "Hi!"),
    ]
    roles = [c["role"] for c in captured[1]["json"]["contents"]]
    assert roles == ["user", "model", "user"]


def test_thought_parts_are_ignored(monkeypatch):
    line = sse({"candidates": [{"content": {"parts": [{"text": "thinking", "thought": True}, {"text": "Answer"}]}}]})
    install_client(monkeypatch, FakeResponse([line]))
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    assert [c.text for c in session.send_message_stream("q")] == ["Answer"]


def test_rate_limit(monkeypatch):
    install_client(monkeypatch, FakeResponse([], status_code=429))
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    with pytest.raises(RateLimitError):
        list(session.send_message_stream("hi"))
    assert session.history == []


def test_api_error_reads_body(monkeypatch):
    install_client(monkeypatch, FakeResponse([], status_code=400, body='{"error": "API key not valid"}'))
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    with pytest.raises(ApiError) as exc:
        list(session.send_message_stream("hi"))
    assert exc.value.http_status == 400
    assert "API key not valid" in exc.value.message


def test_blocked_prompt(monkeypatch):
    install_client(monkeypatch, FakeResponse([sse({"promptFeedback": {"blockReason": "SAFETY"}})]))
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    with pytest.raises(ApiError) as exc:
        list(session.send_message_stream("hi"))
    assert exc.value.code == "BLOCKED"


def test_malformed_payload_after_partial_output(monkeypatch):
    install_client(monkeypatch, FakeResponse([text_event("partial"), "data: {not json"]))
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    received = []
    with pytest.raises(MalformedResponseError):
        for chunk in session.send_message_stream("hi"):
            received.append(chunk.text)
    assert received == ["partial"]
    assert session.history == []


def test_network_error(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def stream(self, *a, **kw):
            raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("httpx.Client", Client)
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    with pytest.raises(NetworkError) as exc:
        list(session.send_message_stream("hi"))
    assert "connection refused" in exc.value.message


@pytest.mark.parametrize(
    "line",
    [
        'data: {"candidates": ["oops"]}',
        'data: {"candidates": [{"content": {"parts": "abc"}}]}',
        'data: {"candidates": [{"content": {"parts": [{"text": 5}]}}]}',
        'data: {"promptFeedback": "x"}',
        'data: {"usageMetadata": ["not", "a", "mapping"]}',
    ],
)
def test_unexpected_payload_shape_is_backend_error(monkeypatch, line):
    install_client(monkeypatch, FakeResponse([text_event("partial"), line]))
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    received = []
    with pytest.raises(BackendError) as exc:
        for chunk in session.send_message_stream("hi"):
            received.append(chunk.text)
    assert isinstance(exc.value, MalformedResponseError)
    assert exc.value.code == "MALFORMED_RESPONSE"
    assert received == ["partial"]
    assert session.history == []


def test_non_data_sse_fields_are_skipped(monkeypatch):
    lines = [
        ": keep-alive",
        "event: message",
        "id: 42",
        "retry: 1000",
        text_event("Hello"),
    ]
    install_client(monkeypatch, FakeResponse(lines))
    session = GeminiClient(SettingsStub()).start_chat(CONFIG)
    assert [c.text for c in session.send_message_stream("hi")] == ["Hello"]
