# src/llm/provider_chain.py — v1
"""Ordered provider fallback.

ProviderChain is itself a BaseLLMClient: it tries each client in order,
each call bounded by a timeout and retried per llm/retry.py, and returns
the first success. Usage and failure counts are kept per provider. With
rate limits, each attempt first waits for its provider's limiter; that wait
is not counted against the per-attempt timeout.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from pydantic import BaseModel, Field

from seoscope.llm.base_client import BaseLLMClient
from seoscope.llm.models import LLMResponse, Message
from seoscope.llm.rate_limiter import ProviderRateLimits
from seoscope.llm.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


class ProviderChainExhausted(Exception):
    """Every provider in the chain failed."""

    def __init__(self, errors: list[tuple[str, Exception]]):
        self.errors = errors
        detail = "; ".join(f"{name}: {error}" for name, error in errors)
        super().__init__(f"All AI providers failed. Errors: {detail}")


class ProviderChainStats(BaseModel):
    """Counters for one chain instance."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    provider_usage: dict[str, int] = Field(default_factory=dict)
    provider_failures: dict[str, int] = Field(default_factory=dict)
    average_response_ms: float = 0.0


class ProviderChain(BaseLLMClient):
    """Try providers in priority order until one succeeds.

    Args:
        clients: Providers, highest priority first.
        timeout_seconds: Per-attempt timeout.
        retry_configs: Retry policy per error class; defaults to llm/retry.py.
        rate_limits: Optional per-provider throttling.
    """

    def __init__(
        self,
        clients: Sequence[BaseLLMClient],
        timeout_seconds: float = 30.0,
        retry_configs: dict[str, RetryConfig] | None = None,
        rate_limits: ProviderRateLimits | None = None,
    ) -> None:
        if not clients:
            raise ValueError("ProviderChain needs at least one client")
        self._clients = list(clients)
        self._timeout = timeout_seconds
        self._retry_configs = retry_configs
        self._rate_limits = rate_limits
        self._stats = ProviderChainStats()

    @property
    def clients(self) -> list[BaseLLMClient]:
        return list(self._clients)

    @property
    def provider_name(self) -> str:
        return self._clients[0].provider_name

    @property
    def model_name(self) -> str:
        return self._clients[0].model_name

    @property
    def stats(self) -> ProviderChainStats:
        return self._stats.model_copy(deep=True)

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Complete with the first provider that succeeds.

        Raises:
            ProviderChainExhausted: If every provider failed.
        """
        self._stats.total_requests += 1
        start = time.monotonic()
        errors: list[tuple[str, Exception]] = []

        for client in self._clients:
            name = f"{client.provider_name}:{client.model_name}"
            try:
                response = await with_retry(
                    self._call_with_timeout, client, messages, system,
                    max_tokens, temperature, json_mode,
                    operation=name,
                    retry_configs=self._retry_configs,
                )
            except Exception as e:
                cause = e.__cause__ if isinstance(e.__cause__, Exception) else e
                errors.append((name, cause))
                self._bump(self._stats.provider_failures, name)
                logger.warning("Provider %s failed, trying next: %s", name, cause)
                continue

            self._stats.successful_requests += 1
            self._bump(self._stats.provider_usage, name)
            self._record_latency((time.monotonic() - start) * 1000)
            return response

        self._stats.failed_requests += 1
        raise ProviderChainExhausted(errors)

    async def _call_with_timeout(
        self,
        client: BaseLLMClient,
        messages: list[Message],
        system: str | None,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> LLMResponse:
        if self._rate_limits is None:
            return await self._complete_once(
                client, messages, system, max_tokens, temperature, json_mode
            )
        async with self._rate_limits.get(client.provider_name):
            return await self._complete_once(
                client, messages, system, max_tokens, temperature, json_mode
            )

    async def _complete_once(
        self,
        client: BaseLLMClient,
        messages: list[Message],
        system: str | None,
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> LLMResponse:
        return await asyncio.wait_for(
            client.complete(
                messages, system=system, max_tokens=max_tokens,
                temperature=temperature, json_mode=json_mode,
            ),
            timeout=self._timeout,
        )

    def _record_latency(self, elapsed_ms: float) -> None:
        n = self._stats.successful_requests
        previous = self._stats.average_response_ms
        self._stats.average_response_ms = previous + (elapsed_ms - previous) / n

    @staticmethod
    def _bump(counter: dict[str, int], name: str) -> None:
        counter[name] = counter.get(name, 0) + 1
