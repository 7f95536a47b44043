# src/ai/bridge.py — v1
"""AI suggestion bridge.

Renders a prompt from an analysis, asks an LLM client for suggestions and
turns the JSON answer into Recommendations. Parsed suggestion lists are
cached under the ai_generation key of (prompt, model, provider).
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from seoscope.ai.prompts import PromptTemplate, SuggestionType, get_template, render_prompt
from seoscope.cache import keys
from seoscope.llm.models import LLMResponse, Message
from seoscope.scoring.engine import dedupe_recommendations, sort_recommendations
from seoscope.scoring.models import Recommendation

if TYPE_CHECKING:
    from seoscope.cache.base_cache_store import BaseCacheStore
    from seoscope.config.settings import Settings
    from seoscope.llm.base_client import BaseLLMClient
    from seoscope.llm.rate_limiter import ProviderRateLimits
    from seoscope.pipeline.models import AnalysisResult

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)
_PRIORITIES = ("critical", "high", "medium", "low")
_EFFORTS = ("low", "medium", "high")


class SuggestionParseError(ValueError):
    """The provider answer was not a usable suggestions document."""


class BaseSuggestionBridge(ABC):
    """Produces AI recommendations for an analysis."""

    @abstractmethod
    async def suggest(
        self,
        analysis: AnalysisResult,
        suggestion_type: SuggestionType | str,
        template: PromptTemplate | None = None,
    ) -> list[Recommendation]:
        """Return recommendations. May raise or time out."""


class LLMSuggestionBridge(BaseSuggestionBridge):
    """Suggestion bridge backed by a BaseLLMClient.

    Args:
        client: LLM client (or ProviderChain).
        cache_store: Optional cache for parsed suggestion lists.
        timeout_seconds: Bound on a single completion.
        max_suggestions: Maximum suggestions kept per call.
        cache_ttl_seconds: TTL for cached suggestions (None = store default).
        max_tokens: Override the template max_tokens.
        temperature: Override the template temperature.
        rate_limits: Optional per-provider throttling around each completion.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        cache_store: BaseCacheStore | None = None,
        timeout_seconds: float = 30.0,
        max_suggestions: int = 5,
        cache_ttl_seconds: float | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        rate_limits: ProviderRateLimits | None = None,
    ) -> None:
        self._client = client
        self._rate_limits = rate_limits
        self._cache = cache_store
        self._timeout = timeout_seconds
        self._max_suggestions = max_suggestions
        self._cache_ttl = cache_ttl_seconds
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def suggest(
        self,
        analysis: AnalysisResult,
        suggestion_type: SuggestionType | str,
        template: PromptTemplate | None = None,
    ) -> list[Recommendation]:
        """Ask the client for suggestions of one type.

        Raises:
            asyncio.TimeoutError: If the completion exceeds the timeout.
            SuggestionParseError: If the answer cannot be parsed.
        """
        kind = SuggestionType(suggestion_type)
        template = template or get_template(kind)
        prompt = render_prompt(template, analysis, self._max_suggestions)
        cache_key = keys.ai_generation(
            prompt, self._client.model_name, self._client.provider_name
        )

        cached = await self._cache_get(cache_key)
        if cached is not None:
            logger.debug("AI suggestion cache hit for %s", kind.value)
            return [Recommendation.model_validate(item) for item in cached]

        response = await asyncio.wait_for(
            self._complete(prompt, template), timeout=self._timeout
        )
        suggestions = parse_suggestions(
            response.content, kind, limit=self._max_suggestions
        )
        logger.info(
            "AI returned %d %s suggestions (%s:%s)",
            len(suggestions), kind.value, response.provider, response.model,
        )

        await self._cache_set(cache_key, [s.model_dump() for s in suggestions])
        return suggestions

    async def _complete(self, prompt: str, template: PromptTemplate) -> LLMResponse:
        messages = [Message(role="user", content=prompt)]
        kwargs = {
            "system": template.system,
            "max_tokens": self._max_tokens or template.max_tokens,
            "temperature": (
                template.temperature if self._temperature is None else self._temperature
            ),
            "json_mode": True,
        }
        if self._rate_limits is None:
            return await self._client.complete(messages, **kwargs)
        # Queue time counts against the bridge timeout
        async with self._rate_limits.get(self._client.provider_name):
            return await self._client.complete(messages, **kwargs)

    async def _cache_get(self, key: str) -> list[dict[str, Any]] | None:
        if self._cache is None:
            return None
        try:
            return await self._cache.get(key)
        except Exception:
            logger.warning("AI cache read failed for %s", key, exc_info=True)
            return None

    async def _cache_set(self, key: str, value: list[dict[str, Any]]) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(key, value, self._cache_ttl)
        except Exception:
            logger.warning("AI cache write failed for %s", key, exc_info=True)


def parse_suggestions(
    raw: str, suggestion_type: SuggestionType, limit: int | None = None
) -> list[Recommendation]:
    """Parse a ``{"suggestions": [...]}`` answer.

    Markdown code fences are tolerated. Items that are not objects or lack a
    title are dropped; out-of-range fields fall back to defaults.

    Raises:
        SuggestionParseError: If no JSON document can be read.
    """
    text = raw.strip()
    fenced = _FENCE.search(text)
    if fenced:
        text = fenced.group(1).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Last resort: outermost braces in free text
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise SuggestionParseError("AI response is not JSON") from None
        try:
            data = json.loads(text[start:end + 1])
        except json.JSONDecodeError as e:
            raise SuggestionParseError(f"AI response is not JSON: {e}") from e

    items = data.get("suggestions") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise SuggestionParseError("AI response has no 'suggestions' list")

    suggestions: list[Recommendation] = []
    for item in items:
        rec = _to_recommendation(item, suggestion_type)
        if rec is not None:
            suggestions.append(rec)

    suggestions = sort_recommendations(dedupe_recommendations(suggestions))
    return suggestions[:limit] if limit is not None else suggestions


def _to_recommendation(item: Any, suggestion_type: SuggestionType) -> Recommendation | None:
    if not isinstance(item, dict):
        return None
    title = str(item.get("title") or "").strip()
    if not title:
        return None

    priority = str(item.get("priority", "medium")).lower()
    effort = str(item.get("effort", "medium")).lower()
    try:
        confidence = min(1.0, max(0.0, float(item.get("confidence", 0.7))))
    except (TypeError, ValueError):
        confidence = 0.7
    steps = item.get("actionSteps") or item.get("action_steps") or []
    code = item.get("codeExample") or item.get("code_example")

    digest = hashlib.sha256(f"{suggestion_type.value}:{title}".encode()).hexdigest()[:12]
    try:
        return Recommendation(
            id=f"ai-{suggestion_type.value}-{digest}",
            category=suggestion_type.value,
            title=title,
            description=str(item.get("description") or ""),
            action_steps=[str(step) for step in steps] if isinstance(steps, list) else [],
            impact=str(item.get("impact") or ""),
            effort=effort if effort in _EFFORTS else "medium",
            priority=priority if priority in _PRIORITIES else "medium",
            confidence=confidence,
            code_example=str(code) if code else None,
            source="ai",
        )
    except ValidationError:
        logger.debug("Dropping malformed AI suggestion %r", title)
        return None


def create_suggestion_bridge(
    settings: Settings, cache_store: BaseCacheStore | None = None
) -> BaseSuggestionBridge | None:
    """Build the configured bridge, or None when AI is disabled.

    The primary provider comes first; AI_FALLBACK_PROVIDERS follow in order.
    """
    if not settings.ai_enabled:
        return None

    from seoscope.llm.client_factory import create_llm_client
    from seoscope.llm.rate_limiter import create_rate_limits

    rate_limits = create_rate_limits(settings)
    client: BaseLLMClient = create_llm_client(
        settings.ai_provider, settings.ai_model, settings=settings
    )
    fallbacks = settings.ai_fallback_list
    if fallbacks:
        from seoscope.llm.provider_chain import ProviderChain

        client = ProviderChain(
            [client, *(create_llm_client(p, m, settings=settings) for p, m in fallbacks)],
            timeout_seconds=settings.ai_timeout_seconds,
            rate_limits=rate_limits,
        )
        # The chain throttles each provider itself
        rate_limits = None

    return LLMSuggestionBridge(
        client,
        cache_store=cache_store,
        # A chain may try every provider before answering
        timeout_seconds=settings.ai_timeout_seconds * (1 + len(fallbacks)),
        max_suggestions=settings.ai_max_suggestions,
        max_tokens=settings.ai_max_tokens,
        temperature=settings.ai_temperature,
        rate_limits=rate_limits,
    )
