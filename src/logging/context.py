# src/logging/context.py — v2
"""Contextual logging support: attach document_id, batch_id and stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set per analysis; asyncio tasks copy the context, so concurrent batch
# items each see their own values.
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Snapshot of the current logging context."""

    document_id: str | None = None
    batch_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        document_id=_document_id.get(),
        batch_id=_batch_id.get(),
        stage=_stage.get(),
    )


def set_document_context(document_id: str | None, batch_id: str | None = None) -> None:
    """Set document-level context (called once per analysis)."""
    _document_id.set(document_id)
    if batch_id is not None:
        _batch_id.set(batch_id)


def set_batch_context(batch_id: str) -> None:
    """Set the batch identifier shared by every item of a batch run."""
    _batch_id.set(batch_id)


def set_stage_context(stage: str | None) -> None:
    """Record the orchestrator stage (analyzing, cached, computing, scored)."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _document_id.set(None)
    _batch_id.set(None)
    _stage.set(None)
