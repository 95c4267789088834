"""Provider wire-format tests driven through httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from debate_engine.exceptions import PingError
from debate_engine.models import Agent
from debate_engine.types import ProviderType
from models import manager as manager_module
from models.manager import ModelManager
from models.providers import (
    AnthropicProvider,
    CustomProvider,
    GoogleProvider,
    OllamaProvider,
    OpenAIProvider,
    ProviderError,
    ProviderFactory,
    ProviderHTTPError,
    chat_endpoints,
    detect_provider_type,
    frame_prompt,
    resolve_provider_type,
)


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_agent(url: str, **overrides) -> Agent:
    fields = {"name": "tester", "provider_url": url, "model_name": "test-model", "id": 1}
    fields.update(overrides)
    return Agent(**fields)


def chat_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class Recorder:
    """Collects requests and answers them with a user-supplied responder."""

    def __init__(self, responder):
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://host:8000", [
            "http://host:8000/chat/completions",
            "http://host:8000/v1/chat/completions",
            "http://host:8000",
        ]),
        (" http://host:8000/v1/ ", ["http://host:8000/v1/chat/completions"]),
        ("http://host/v1/chat/completions", ["http://host/v1/chat/completions"]),
        ("http://host/api/generate", ["http://host/api/generate"]),
    ],
)
def test_chat_endpoints_priority(url: str, expected: list[str]) -> None:
    assert chat_endpoints(url) == expected


def test_frame_prompt_only_frames_when_context_exists() -> None:
    assert frame_prompt("Argue.", "") == "Argue."
    assert frame_prompt("Argue.", "Round 1 - A (1):\nA") == (
        "Previous context from other agents:\nRound 1 - A (1):\nA\n\nYour task:\nArgue."
    )


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://localhost:11434", ProviderType.OLLAMA),
        ("http://my-ollama-box:8080", ProviderType.OLLAMA),
        ("https://api.openai.com/v1", ProviderType.OPENAI),
        ("https://api.anthropic.com", ProviderType.ANTHROPIC),
        ("https://generativelanguage.googleapis.com/v1beta", ProviderType.GOOGLE),
        ("http://10.0.0.5:5000", ProviderType.CUSTOM),
    ],
)
def test_detect_provider_type(url: str, expected: ProviderType) -> None:
    assert detect_provider_type(url) == expected


def test_explicit_provider_type_wins_over_url() -> None:
    agent = make_agent("https://api.openai.com/v1", provider_type=ProviderType.CUSTOM)
    assert resolve_provider_type(agent) == ProviderType.CUSTOM


def test_factory_rejects_unknown_provider() -> None:
    with pytest.raises(ValueError, match="Unknown provider"):
        ProviderFactory.create_provider("carrier-pigeon", make_client(lambda r: httpx.Response(200)))
    assert "ollama" in ProviderFactory.get_available_providers()


def test_ollama_generate_sends_framed_prompt() -> None:
    recorder = Recorder(lambda request: httpx.Response(200, json={"response": "ollama says"}))
    provider = OllamaProvider(make_client(recorder))
    agent = make_agent("http://localhost:11434/")

    content = asyncio.run(provider.generate(agent, "Argue.", "ctx", timeout=5))

    assert content == "ollama says"
    assert recorder.urls == ["http://localhost:11434/api/generate"]
    body = recorder.body()
    assert body["model"] == "test-model"
    assert body["stream"] is False
    assert body["prompt"].startswith("Previous context from other agents:\nctx")
    assert "authorization" not in recorder.requests[0].headers


def test_openai_probes_endpoints_until_one_answers() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/chat/completions":
            return httpx.Response(200, json=chat_reply("found it"))
        return httpx.Response(404, text="not here")

    recorder = Recorder(responder)
    provider = OpenAIProvider(make_client(recorder))
    agent = make_agent("http://host:8000", api_token="  sk-test  ")

    content = asyncio.run(provider.generate(agent, "Argue.", "", timeout=5))

    assert content == "found it"
    assert recorder.urls == [
        "http://host:8000/chat/completions",
        "http://host:8000/v1/chat/completions",
    ]
    assert recorder.requests[0].headers["authorization"] == "Bearer sk-test"

    messages = recorder.body()["messages"]
    assert messages[0]["role"] == "system"
    assert messages[0]["content"].endswith("Please provide your response to the following:")
    assert messages[1] == {"role": "user", "content": "Argue."}


def test_openai_context_travels_in_system_message() -> None:
    recorder = Recorder(lambda request: httpx.Response(200, json=chat_reply("ok")))
    provider = OpenAIProvider(make_client(recorder))

    asyncio.run(provider.generate(make_agent("https://api.openai.com/v1"), "Argue.", "earlier", timeout=5))

    system = recorder.body()["messages"][0]["content"]
    assert "Here's the context from previous agents:\nearlier" in system


def test_openai_zero_choices_is_an_error() -> None:
    recorder = Recorder(lambda request: httpx.Response(200, json={"choices": []}))
    provider = OpenAIProvider(make_client(recorder))

    with pytest.raises(ProviderError, match="no choices"):
        asyncio.run(provider.generate(make_agent("http://host/v1"), "Argue.", "", timeout=5))


def test_anthropic_uses_vendor_headers_and_first_text_block() -> None:
    reply = {"content": [{"type": "tool_use"}, {"type": "text", "text": "claude says"}]}
    recorder = Recorder(lambda request: httpx.Response(200, json=reply))
    provider = AnthropicProvider(make_client(recorder))
    agent = make_agent("https://api.anthropic.com", api_token="key-123")

    content = asyncio.run(provider.generate(agent, "Argue.", "ctx", timeout=5))

    assert content == "claude says"
    request = recorder.requests[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == "key-123"
    assert request.headers["anthropic-version"] == "2023-06-01"
    assert "authorization" not in request.headers
    body = recorder.body()
    assert body["max_tokens"] == 4000
    assert "critique" in body["system"]


def test_anthropic_ping_treats_400_as_reachable() -> None:
    recorder = Recorder(lambda request: httpx.Response(400, json={"error": "bad request"}))
    provider = AnthropicProvider(make_client(recorder))

    asyncio.run(provider.ping(make_agent("https://api.anthropic.com/v1"), timeout=5))

    assert recorder.urls == ["https://api.anthropic.com/v1/messages"]
    assert recorder.body()["max_tokens"] == 1


def test_anthropic_ping_rejects_server_errors() -> None:
    provider = AnthropicProvider(make_client(lambda request: httpx.Response(500, text="down")))

    with pytest.raises(ProviderHTTPError) as exc_info:
        asyncio.run(provider.ping(make_agent("https://api.anthropic.com"), timeout=5))
    assert exc_info.value.status_code == 500


def test_google_generate_content() -> None:
    reply = {"candidates": [{"content": {"parts": [{"text": "gemini says"}]}}]}
    recorder = Recorder(lambda request: httpx.Response(200, json=reply))
    provider = GoogleProvider(make_client(recorder))
    agent = make_agent(
        "https://generativelanguage.googleapis.com/v1beta",
        model_name="gemini-pro",
        api_token="g-key",
    )

    content = asyncio.run(provider.generate(agent, "Argue.", "", timeout=5))

    assert content == "gemini says"
    request = recorder.requests[0]
    assert str(request.url) == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"
    )
    assert request.headers["x-goog-api-key"] == "g-key"
    assert recorder.body()["generationConfig"] == {"temperature": 0.7, "maxOutputTokens": 4000}


def test_google_without_candidates_is_an_error() -> None:
    provider = GoogleProvider(make_client(lambda request: httpx.Response(200, json={"candidates": []})))

    with pytest.raises(ProviderError, match="No candidates"):
        asyncio.run(provider.generate(make_agent("http://gemini-proxy"), "Argue.", "", timeout=5))


def test_custom_falls_back_to_generic_completion() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        if "messages" in json.loads(request.content):
            return httpx.Response(404, text="no chat here")
        return httpx.Response(200, json={"text": "generic says"})

    recorder = Recorder(responder)
    provider = CustomProvider(make_client(recorder))

    content = asyncio.run(provider.generate(make_agent("http://box:5000/v1"), "Argue.", "", timeout=5))

    assert content == "generic says"
    assert recorder.urls[-1] == "http://box:5000/v1/chat/completions"
    assert recorder.body() == {"prompt": "Argue.", "model": "test-model", "stream": False}


def test_custom_fails_when_nothing_is_extractable() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        if "messages" in json.loads(request.content):
            return httpx.Response(500, text="broken")
        return httpx.Response(200, json={"text": ""})

    provider = CustomProvider(make_client(responder))

    with pytest.raises(ProviderError, match="could not extract content"):
        asyncio.run(provider.generate(make_agent("http://box:5000"), "Argue.", "", timeout=5))


def test_custom_ping_accepts_any_success_status() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/chat/completions":
            return httpx.Response(500)
        return httpx.Response(204)

    recorder = Recorder(responder)
    provider = CustomProvider(make_client(recorder))

    asyncio.run(provider.ping(make_agent("http://box:5000"), timeout=5))

    assert recorder.urls == [
        "http://box:5000/chat/completions",
        "http://box:5000/v1/chat/completions",
    ]
    assert recorder.body() == {"prompt": "hi", "model": "test-model"}


def test_custom_ping_fails_when_no_endpoint_answers() -> None:
    provider = CustomProvider(make_client(lambda request: httpx.Response(503)))

    with pytest.raises(ProviderError, match="no endpoints responded"):
        asyncio.run(provider.ping(make_agent("http://box:5000"), timeout=5))


def test_manager_reports_success_with_latency() -> None:
    client = make_client(lambda request: httpx.Response(200, json={"response": "hello"}))
    manager = ModelManager(client)
    agent = make_agent("http://localhost:11434")

    reply = asyncio.run(manager.call_agent(agent, "Argue.", ""))

    assert reply.success is True
    assert reply.content == "hello"
    assert reply.response_time >= 0
    assert isinstance(manager.provider_for(agent), OllamaProvider)


def test_manager_converts_http_errors_to_failed_replies() -> None:
    client = make_client(lambda request: httpx.Response(500, text="overloaded"))
    manager = ModelManager(client)

    reply = asyncio.run(manager.call_agent(make_agent("http://localhost:11434"), "Argue.", ""))

    assert reply.success is False
    assert reply.timed_out is False
    assert reply.error_message == "API returned status 500: overloaded"


def test_manager_marks_transport_timeouts() -> None:
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    manager = ModelManager(make_client(responder))

    reply = asyncio.run(manager.call_agent(make_agent("http://localhost:11434"), "Argue.", ""))

    assert reply.success is False
    assert reply.timed_out is True
    assert reply.error_message.startswith("Request timed out after")


def test_manager_enforces_its_own_deadline(monkeypatch: pytest.MonkeyPatch) -> None:
    async def responder(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json={"response": "late"})

    monkeypatch.setattr(manager_module, "call_deadline", lambda agent: 0.05)
    manager = ModelManager(make_client(responder))

    reply = asyncio.run(manager.call_agent(make_agent("http://localhost:11434"), "Argue.", ""))

    assert reply.timed_out is True
    assert reply.error_message == "Request timed out after 0.05s"
    assert reply.response_time < 1000


def test_call_deadline_adds_fixed_buffer() -> None:
    agent = make_agent("http://x", timeout_seconds=30)
    assert manager_module.call_deadline(agent) == 40.0


def test_manager_ping_raises_ping_error() -> None:
    manager = ModelManager(make_client(lambda request: httpx.Response(404, text="missing")))

    with pytest.raises(PingError, match="404"):
        asyncio.run(manager.ping(make_agent("http://localhost:11434")))


def test_manager_ping_succeeds_on_200() -> None:
    recorder = Recorder(lambda request: httpx.Response(200, json={"models": []}))
    manager = ModelManager(make_client(recorder))

    asyncio.run(manager.ping(make_agent("https://api.openai.com/v1")))

    assert recorder.urls == ["https://api.openai.com/v1/models"]


def test_manager_turns_undecodable_body_into_failed_reply() -> None:
    client = make_client(lambda request: httpx.Response(200, content=b'{"response": "\xff\xfe"}'))
    manager = ModelManager(client)

    reply = asyncio.run(manager.call_agent(make_agent("http://localhost:11434"), "Argue.", ""))

    assert reply.success is False
    assert reply.timed_out is False
    assert reply.error_message.startswith("Failed to parse response from http://localhost:11434")


@pytest.mark.parametrize(
    "provider_type",
    [ProviderType.OLLAMA, ProviderType.OPENAI, ProviderType.CUSTOM],
)
def test_manager_turns_malformed_url_into_failed_reply(provider_type: ProviderType) -> None:
    recorder = Recorder(lambda request: httpx.Response(200, json={"response": "unreachable"}))
    manager = ModelManager(make_client(recorder))
    agent = make_agent("http://localhost:notaport", provider_type=provider_type)

    reply = asyncio.run(manager.call_agent(agent, "Argue.", ""))

    assert reply.success is False
    assert reply.timed_out is False
    assert reply.error_message
    assert recorder.requests == []


def test_manager_ping_rejects_malformed_url() -> None:
    manager = ModelManager(make_client(lambda request: httpx.Response(200)))

    with pytest.raises(PingError):
        asyncio.run(manager.ping(make_agent("http://localhost:notaport")))


def test_custom_ping_skips_malformed_url() -> None:
    provider = CustomProvider(make_client(lambda request: httpx.Response(200)))

    with pytest.raises(ProviderError, match="no endpoints responded"):
        asyncio.run(provider.ping(make_agent("http://box:notaport"), timeout=5))
