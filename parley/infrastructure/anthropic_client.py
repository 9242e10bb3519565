"""Anthropic Analysis Client: the AnalysisCapability backed by AsyncAnthropic.

Invariants:
    - invoke() makes exactly one request; the SDK's own retries are disabled
    - Every request is bounded by timeout_seconds
    - Missing API key fails fast with AnalysisUnavailableError("misconfigured")
    - All SDK failures mapped to AnalysisUnavailableError (core/errors.py)
    - Rate limits surface retry_after_ms so the caller can re-trigger later

Design Decisions:
    - No automatic retry: a re-run costs money and latency, the user re-triggers explicitly
    - Wrapper over raw client: error mapping lives here, not in the Resolution Pipeline
"""

import logging

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    RateLimitError,
    APITimeoutError,
)

from parley.core.errors import AnalysisUnavailableError, ErrorContext

logger = logging.getLogger(__name__)

_OVERLOADED_STATUS = 529


def _is_overloaded(e: APIError) -> bool:
    """Check if error is Anthropic 529 Overloaded."""
    return isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS


class AnthropicAnalysisClient:
    """Sends the analysis prompt to Anthropic and returns the raw text reply."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 2000,
        timeout_seconds: int = 60,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key or "unset",
            timeout=timeout_seconds,
            max_retries=0,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def invoke(self, prompt: str, context: ErrorContext | None = None) -> str:
        """Single-shot completion; returns the concatenated text blocks."""
        if not self.configured:
            raise AnalysisUnavailableError(
                "analysis API key is not set", "misconfigured", context=context,
            )
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except RateLimitError as e:
            raise AnalysisUnavailableError(
                "Rate limit exceeded",
                "rate_limit",
                retry_after_ms=self._extract_retry_after(e),
                context=context,
            )
        except APITimeoutError:
            raise AnalysisUnavailableError(
                "API timeout", "timeout", context=context,
            )
        except APIConnectionError as e:
            raise AnalysisUnavailableError(
                f"Connection error: {e}", "connection_error", context=context,
            )
        except APIError as e:
            if _is_overloaded(e):
                raise AnalysisUnavailableError(
                    "Anthropic API overloaded (529)", "overloaded", context=context,
                )
            raise AnalysisUnavailableError(
                str(e), "client_error", context=context,
            )

        self._log_success(response)
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )

    def _log_success(self, response) -> None:
        usage = response.usage
        logger.info(
            "Anthropic API success",
            extra={
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
            },
        )

    def _extract_retry_after(self, error: RateLimitError) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        try:
            if hasattr(error, "response") and error.response:
                val = error.response.headers.get("retry-after")
                if val:
                    return int(float(val) * 1000)
        except (TypeError, ValueError):
            pass
        return None
