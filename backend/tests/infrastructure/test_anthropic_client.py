"""Resilient Anthropic Client — retry budget and error mapping.

Design Decisions:
    - messages.create replaced on the wrapped SDK client (no network)
    - Zero backoff delays so retries run instantly
"""

import httpx
import pytest
import anthropic

from qr_redirect.core.errors import AnthropicAPIError
from qr_redirect.infrastructure.anthropic_client import ResilientAnthropicClient

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(cls, status, headers=None):
    response = httpx.Response(status, headers=headers or {}, request=_REQUEST)
    return cls(f"HTTP {status}", response=response, body=None)


class _Usage:
    input_tokens = 12
    output_tokens = 8


class _Message:
    usage = _Usage()
    content = []


class _Messages:

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def create(self, **kwargs):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _client(*results, max_retries=1):
    client = ResilientAnthropicClient(
        api_key="sk-ant-test", max_retries=max_retries,
        base_delay_ms=0, max_delay_ms=0,
    )
    client.client.messages = _Messages(*results)
    return client


async def _call(client):
    return await client.create_message(
        model="test-model", max_tokens=10, system="s",
        messages=[{"role": "user", "content": "hi"}],
    )


async def test_success_first_try():
    client = _client(_Message())
    assert isinstance(await _call(client), _Message)
    assert client.client.messages.calls == 1


async def test_server_error_retried_then_succeeds():
    client = _client(
        _status_error(anthropic.InternalServerError, 500), _Message(),
    )
    assert isinstance(await _call(client), _Message)
    assert client.client.messages.calls == 2


async def test_overloaded_retried():
    client = _client(_status_error(anthropic.APIStatusError, 529), _Message())
    assert isinstance(await _call(client), _Message)


async def test_connection_error_exhausts_budget():
    error = anthropic.APIConnectionError(request=_REQUEST)
    client = _client(error, error)
    with pytest.raises(AnthropicAPIError) as exc:
        await _call(client)
    assert exc.value.api_error_type == "connection_error"
    assert client.client.messages.calls == 2


async def test_rate_limit_after_retries_carries_retry_after():
    error = _status_error(anthropic.RateLimitError, 429, {"retry-after": "0"})
    client = _client(error, error)
    with pytest.raises(AnthropicAPIError) as exc:
        await _call(client)
    assert exc.value.api_error_type == "rate_limit"
    assert exc.value.context.retry_after_ms == 0


async def test_timeout_not_retried():
    client = _client(anthropic.APITimeoutError(request=_REQUEST), _Message())
    with pytest.raises(AnthropicAPIError):
        await _call(client)
    assert client.client.messages.calls == 1


async def test_client_error_not_retried():
    client = _client(_status_error(anthropic.BadRequestError, 400), _Message())
    with pytest.raises(AnthropicAPIError):
        await _call(client)
    assert client.client.messages.calls == 1
