import asyncio
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from api_client import TranslationAPIClient
from errors import ConfigurationError, GenerationTimeoutError, TransportError, ValidationError

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class FakeMessages:
    def __init__(self, result=None, error=None, hang=False):
        self.result = result
        self.error = error
        self.hang = hang
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.hang:
            await asyncio.Event().wait()
        if self.error:
            raise self.error
        return self.result


def message(*texts, stop_reason="end_turn"):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text) for text in texts],
                           stop_reason=stop_reason)


def client_with(messages, **kwargs):
    return TranslationAPIClient(client=SimpleNamespace(messages=messages), **kwargs)


@pytest.mark.asyncio
async def test_generate_returns_text_and_sends_prompt():
    messages = FakeMessages(result=message("[1] Hola", "\n[2] Mundo"))
    client = client_with(messages, model="test-model")

    text = await client.generate("Translate this", temperature=0.1, max_tokens=500)

    assert text == "[1] Hola\n[2] Mundo"
    request = messages.requests[0]
    assert request["model"] == "test-model"
    assert request["temperature"] == 0.1
    assert request["max_tokens"] == 500
    assert request["messages"] == [{"role": "user", "content": "Translate this"}]
    assert "stop_sequences" not in request


@pytest.mark.asyncio
async def test_empty_answer_is_validation_error():
    client = client_with(FakeMessages(result=message("  \n")))

    with pytest.raises(ValidationError):
        await client.generate("Translate this")


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    anthropic.APIConnectionError(request=REQUEST),
    anthropic.RateLimitError("rate limited", response=httpx.Response(429, request=REQUEST), body=None),
    anthropic.AnthropicError("client misconfigured"),
])
async def test_sdk_errors_become_transport_errors(error):
    client = client_with(FakeMessages(error=error))

    with pytest.raises(TransportError):
        await client.generate("Translate this")


@pytest.mark.asyncio
async def test_sdk_timeout_becomes_timeout_error():
    client = client_with(FakeMessages(error=anthropic.APITimeoutError(request=REQUEST)))

    with pytest.raises(GenerationTimeoutError):
        await client.generate("Translate this")


@pytest.mark.asyncio
async def test_hung_request_times_out():
    client = client_with(FakeMessages(hang=True), request_timeout=0.01)

    with pytest.raises(GenerationTimeoutError) as excinfo:
        await client.generate("Translate this")

    assert isinstance(excinfo.value, TimeoutError)


def test_missing_api_key_is_configuration_error(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(ConfigurationError):
        TranslationAPIClient()


def test_explicit_api_key_builds_sdk_client(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    client = TranslationAPIClient(api_key="test-key")

    assert isinstance(client.client, anthropic.AsyncAnthropic)
    assert client.client.api_key == "test-key"


@pytest.mark.asyncio
async def test_explicit_zero_settings_are_kept():
    messages = FakeMessages(result=message("Hola"))
    client = client_with(messages)

    await client.generate("Translate this", temperature=0)

    assert client_with(messages, request_timeout=0).request_timeout == 0
    assert messages.requests[0]["temperature"] == 0
