"""Tests for the completion provider adapters."""

import json
from types import SimpleNamespace

import httpx
import pytest

from tubescript.core.config import Settings
from tubescript.features.providers.anthropic_provider import ANTHROPIC_VERSION, AnthropicProvider
from tubescript.features.providers.base import (
    CompletionRequest,
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    error_for_status,
)
from tubescript.features.providers.factory import build_provider
from tubescript.features.providers.gemini_provider import GeminiProvider
from tubescript.features.providers.groq_provider import GroqProvider

REQUEST = CompletionRequest(system="be brief", user="say hi", max_tokens=64)


def anthropic_with(handler) -> AnthropicProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AnthropicProvider("sk-ant-test", client=client)


@pytest.mark.asyncio
async def test_anthropic_joins_text_blocks():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"content": [{"type": "text", "text": "hi "}, {"type": "text", "text": "there"}]})

    text = await anthropic_with(handler).complete(REQUEST)

    assert text == "hi there"
    assert seen["headers"]["x-api-key"] == "sk-ant-test"
    assert seen["headers"]["anthropic-version"] == ANTHROPIC_VERSION
    assert seen["body"]["system"] == "be brief"
    assert seen["body"]["max_tokens"] == 64
    assert seen["body"]["messages"] == [{"role": "user", "content": "say hi"}]


@pytest.mark.asyncio
async def test_anthropic_rate_limit_mapped():
    provider = anthropic_with(lambda request: httpx.Response(429, json={"error": "slow down"}))

    with pytest.raises(ProviderRateLimitError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_anthropic_missing_content_is_response_error():
    provider = anthropic_with(lambda request: httpx.Response(200, json={"id": "msg_1"}))

    with pytest.raises(ProviderResponseError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [{"content": ["not a block"]}, {"content": [None, {"type": "text", "text": "x"}]}, ["not", "an", "object"]],
)
async def test_anthropic_malformed_body_is_response_error(payload):
    provider = anthropic_with(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(ProviderResponseError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_anthropic_without_key_fails_before_network():
    def handler(request):
        raise AssertionError("no request expected")

    provider = AnthropicProvider(None, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(ProviderAuthError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_anthropic_transport_error_mapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderError):
        await anthropic_with(handler).complete(REQUEST)


class FakeGeminiModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def gemini_with(models: FakeGeminiModels) -> GeminiProvider:
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return GeminiProvider("gm-test", client=client)


@pytest.mark.asyncio
async def test_gemini_passes_system_and_budget():
    models = FakeGeminiModels(text="generated")

    text = await gemini_with(models).complete(CompletionRequest(system="sys", user="usr", model="gemini-x", max_tokens=99))

    assert text == "generated"
    call = models.calls[0]
    assert call["model"] == "gemini-x"
    assert call["contents"] == "usr"
    assert call["config"].system_instruction == "sys"
    assert call["config"].max_output_tokens == 99


@pytest.mark.asyncio
async def test_gemini_none_text_is_empty_string():
    assert await gemini_with(FakeGeminiModels(text=None)).complete(REQUEST) == ""


@pytest.mark.asyncio
async def test_gemini_unexpected_error_wrapped():
    with pytest.raises(ProviderError):
        await gemini_with(FakeGeminiModels(error=RuntimeError("socket closed"))).complete(REQUEST)


@pytest.mark.asyncio
async def test_gemini_without_key():
    with pytest.raises(ProviderAuthError):
        await GeminiProvider(None).complete(REQUEST)


class FakeChatModel:
    def __init__(self, content="groq says hi", **kwargs):
        self.kwargs = kwargs
        self.content = content
        self.messages = None

    async def ainvoke(self, messages):
        self.messages = messages
        return SimpleNamespace(content=self.content)


@pytest.mark.asyncio
async def test_groq_builds_model_once_per_budget():
    built = []

    def factory(**kwargs):
        model = FakeChatModel(**kwargs)
        built.append(model)
        return model

    provider = GroqProvider("gsk-test", llm_factory=factory)

    assert await provider.complete(REQUEST) == "groq says hi"
    await provider.complete(REQUEST)

    assert len(built) == 1
    assert built[0].kwargs["max_tokens"] == 64
    assert built[0].kwargs["max_retries"] == 0
    assert [m.content for m in built[0].messages] == ["be brief", "say hi"]


@pytest.mark.asyncio
async def test_groq_none_content_is_response_error():
    provider = GroqProvider("gsk-test", llm_factory=lambda **kwargs: FakeChatModel(content=None))

    with pytest.raises(ProviderResponseError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [[42, "tail"], 17])
async def test_groq_malformed_content_is_response_error(content):
    provider = GroqProvider("gsk-test", llm_factory=lambda **kwargs: FakeChatModel(content=content))

    with pytest.raises(ProviderResponseError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_groq_joins_text_parts():
    content = ["groq ", {"type": "text", "text": "parts"}]
    provider = GroqProvider("gsk-test", llm_factory=lambda **kwargs: FakeChatModel(content=content))

    assert await provider.complete(REQUEST) == "groq parts"


@pytest.mark.asyncio
async def test_groq_without_key():
    with pytest.raises(ProviderAuthError):
        await GroqProvider(None, llm_factory=FakeChatModel).complete(REQUEST)


@pytest.mark.parametrize(
    "status,kind",
    [(401, ProviderAuthError), (403, ProviderAuthError), (429, ProviderRateLimitError), (400, ProviderResponseError)],
)
def test_error_for_status(status, kind):
    assert isinstance(error_for_status(status, "x", "p"), kind)


def test_error_for_status_server_error_is_base():
    err = error_for_status(503, "x", "p")
    assert type(err) is ProviderError
    assert err.status_code == 503


@pytest.mark.parametrize(
    "name,cls",
    [("gemini", GeminiProvider), ("anthropic", AnthropicProvider), ("groq", GroqProvider), ("GROQ", GroqProvider)],
)
def test_factory_selects_provider(name, cls):
    provider = build_provider(Settings(LLM_PROVIDER=name, LLM_TIMEOUT_SECONDS=12))
    assert isinstance(provider, cls)
    assert provider.timeout == 12


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError):
        build_provider(Settings(LLM_PROVIDER="openai"))
