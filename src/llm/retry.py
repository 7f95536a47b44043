# src/llm/retry.py — v2
"""Retry policy with exponential backoff, per error class."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class LLMRetryExhausted(Exception):
    """All retries exhausted for an LLM call."""

    def __init__(self, operation: str, error_type: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"'{operation}' failed after {attempts} attempts ({error_type}): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for a specific error type."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    max_delay_s: float = 10.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(max_retries=3, base_delay_s=2.0),
    "timeout": RetryConfig(max_retries=2, base_delay_s=1.0, backoff_factor=1.0),
    "server_error": RetryConfig(max_retries=3, base_delay_s=1.0),
    "connection": RetryConfig(max_retries=2, base_delay_s=1.0),
}


def classify_error(error: BaseException) -> str:
    """Classify an exception into a retry error type."""
    msg = str(error).lower()
    name = type(error).__name__.lower()

    if isinstance(error, asyncio.TimeoutError) or "timeout" in name or "timed out" in msg:
        return "timeout"
    if "429" in msg or "rate" in msg or "ratelimit" in name:
        return "rate_limit"
    if any(code in msg for code in ("500", "502", "503", "504", "overloaded")):
        return "server_error"
    if "connect" in name or "connection" in msg:
        return "connection"
    return "unknown"


def compute_delay(config: RetryConfig, attempt: int) -> float:
    """Delay before retry number ``attempt`` (0-based), capped at max_delay_s."""
    delay = min(config.base_delay_s * (config.backoff_factor ** attempt), config.max_delay_s)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    operation: str = "llm_call",
    retry_configs: dict[str, RetryConfig] | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any,
) -> Any:
    """Execute an async function with retry logic.

    Errors classified as "unknown" (or with no config) are not retried.

    Raises:
        LLMRetryExhausted: If all retries are exhausted.
    """
    configs = DEFAULT_RETRY_CONFIGS if retry_configs is None else retry_configs
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            error_type = classify_error(e)
            attempts += 1
            config = configs.get(error_type)

            if config is None or attempts > config.max_retries:
                raise LLMRetryExhausted(operation, error_type, attempts, e) from e

            delay = compute_delay(config, attempts - 1)
            logger.warning(
                "'%s' hit %s (attempt %d/%d), retrying in %.1fs",
                operation, error_type, attempts, config.max_retries, delay,
            )
            await sleep(delay)
