"""Resilient Anthropic Client — single-shot text completions with retry and error mapping.

Invariants:
    - Rate limits (429) are retried after Retry-After when given, else after backoff
    - Timeouts, connection failures, 5xx and 529 overloaded are retried up to max_retries
    - Other 4xx responses fail on the first attempt
    - Every failure leaves as AnthropicAPIError carrying the caller's ErrorContext

Design Decisions:
    - Failures are classified once (_classify) and the retry loop only reads the
      classification, so adding an error kind never touches the loop
    - SDK-level retries disabled (max_retries=0): this wrapper owns the policy
    - Backoff doubles per attempt, capped, with ±25% jitter
"""

import asyncio
import logging
import random
from dataclasses import dataclass

import anthropic

from zorgdossier.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

OVERLOADED_STATUS = 529


@dataclass(frozen=True)
class _Failure:
    kind: str
    retryable: bool
    retry_after_ms: int | None = None


def retry_after_ms(error: anthropic.APIStatusError) -> int | None:
    """Retry-After header in milliseconds; None when absent or unparseable."""
    value = error.response.headers.get("retry-after") if error.response is not None else None
    try:
        return int(float(value) * 1000) if value else None
    except ValueError:
        return None


def _classify(error: anthropic.APIError) -> _Failure:
    if isinstance(error, anthropic.RateLimitError):
        return _Failure("rate_limit", True, retry_after_ms(error))
    if isinstance(error, anthropic.APITimeoutError):
        return _Failure("timeout", True)
    if isinstance(error, anthropic.APIConnectionError):
        return _Failure("connection_error", True)
    if isinstance(error, anthropic.APIStatusError) and (
        error.status_code >= 500 or error.status_code == OVERLOADED_STATUS
    ):
        return _Failure("connection_error", True)
    return _Failure("client_error", False)


class ResilientAnthropicClient:
    """AsyncAnthropic behind a retry policy; answers prompts with plain text."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 60,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds, max_retries=0,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_text(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        prompt: str,
        context: ErrorContext | None = None,
    ) -> str:
        """One user turn in, the concatenated text blocks of the answer out."""
        request = {
            "model": model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }
        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(**request)
            except anthropic.APIError as e:
                failure = _classify(e)
                if not failure.retryable or attempt >= self.max_retries:
                    raise self._mapped(e, failure, attempt, context) from e
                delay = failure.retry_after_ms or self.backoff_ms(attempt)
                logger.warning(
                    f"Anthropic {failure.kind}, retrying in {delay}ms",
                    extra={"attempt": attempt + 1, "client_id": context and context.client_id},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue

            logger.info(
                "Anthropic completion received",
                extra={
                    "attempt": attempt + 1,
                    "input_tokens": response.usage.input_tokens,
                    "output_tokens": response.usage.output_tokens,
                },
            )
            return "".join(
                block.text for block in response.content
                if getattr(block, "type", None) == "text"
            )

    async def close(self) -> None:
        await self.client.close()

    def backoff_ms(self, attempt: int) -> int:
        delay = min(self.max_delay_ms, self.base_delay_ms * 2 ** attempt)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _mapped(
        self, error: anthropic.APIError, failure: _Failure, attempt: int,
        context: ErrorContext | None,
    ) -> AnthropicAPIError:
        if failure.retryable:
            message = f"Gave up after {attempt + 1} attempts: {error}"
        else:
            message = str(error)
        return AnthropicAPIError(
            message, failure.kind, retry_after_ms=failure.retry_after_ms, context=context,
        )
