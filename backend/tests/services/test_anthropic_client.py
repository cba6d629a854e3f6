"""Tests: ResilientAnthropicClient — retry, backoff and error mapping.

Invariants:
    - Transient errors are retried up to max_retries, then mapped to AnthropicAPIError
    - Rate limits honour Retry-After
    - Client errors fail immediately without retry
"""

import pytest

from zorgdossier.core.errors import AnthropicAPIError, ErrorContext
from zorgdossier.infrastructure.anthropic_client import ResilientAnthropicClient

from tests.services.mock_anthropic import (
    MockAnthropicClient, bad_request_error, connection_error,
    overloaded_error, rate_limit_error, text_message, timeout_error,
)


def _client(outcomes, max_retries=2):
    client = ResilientAnthropicClient(
        api_key="sk-ant-test", max_retries=max_retries, base_delay_ms=0, max_delay_ms=0,
    )
    client.client = MockAnthropicClient(outcomes)
    return client


async def _text(client):
    return await client.create_text(
        model="claude-test", max_tokens=10, system="sys", prompt="vraag",
        context=ErrorContext(client_id="C-1"),
    )


async def test_create_text_joins_text_blocks():
    client = _client([text_message('{"status": ', '"voldoet"}')])
    assert await _text(client) == '{"status": "voldoet"}'
    call = client.client.messages.calls[0]
    assert call["messages"] == [{"role": "user", "content": "vraag"}]
    assert call["system"] == "sys"


async def test_connection_error_is_retried():
    client = _client([connection_error(), text_message("ok")])
    assert await _text(client) == "ok"
    assert len(client.client.messages.calls) == 2


async def test_connection_error_after_retries_is_mapped():
    client = _client([connection_error()] * 3, max_retries=2)
    with pytest.raises(AnthropicAPIError) as exc_info:
        await _text(client)
    assert exc_info.value.api_error_type == "connection_error"
    assert exc_info.value.context.client_id == "C-1"
    assert len(client.client.messages.calls) == 3


async def test_rate_limit_exhausted_keeps_retry_after():
    client = _client([rate_limit_error("0.002")] * 2, max_retries=1)
    with pytest.raises(AnthropicAPIError) as exc_info:
        await _text(client)
    assert exc_info.value.api_error_type == "rate_limit"
    assert exc_info.value.context.retry_after_ms == 2


async def test_client_error_is_not_retried():
    client = _client([bad_request_error(), text_message("never")])
    with pytest.raises(AnthropicAPIError) as exc_info:
        await _text(client)
    assert exc_info.value.api_error_type == "client_error"
    assert len(client.client.messages.calls) == 1


async def test_close_closes_sdk_client():
    client = _client([])
    await client.close()
    assert client.client.closed is True


async def test_overloaded_is_retried():
    client = _client([overloaded_error(), text_message("ok")])
    assert await _text(client) == "ok"


async def test_timeout_after_retries_keeps_its_kind():
    client = _client([timeout_error()] * 2, max_retries=1)
    with pytest.raises(AnthropicAPIError) as exc_info:
        await _text(client)
    assert exc_info.value.api_error_type == "timeout"
