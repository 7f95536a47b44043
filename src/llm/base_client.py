# src/llm/base_client.py — v2
"""Abstract LLM client interface used by the AI suggestion bridge."""

from __future__ import annotations

from abc import ABC, abstractmethod

from seoscope.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Text completion. ``json_mode`` asks the provider for a JSON object."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai, ollama)."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier sent to the provider."""
