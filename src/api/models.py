# src/api/models.py — v2
"""API-level models: AnalyzeRequest, ApiResponse.

Framework adapters translate their request objects into plain mappings and
send ApiResponse.status_code and ApiResponse.body back to the client.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from seoscope.pipeline.models import ContentMetadata


class AnalyzeRequest(BaseModel):
    """Validated request body for the analyze and generate-all handlers."""

    content: str
    metadata: ContentMetadata | None = None
    fast: bool = False
    suggestion_types: list[str] | None = None


class ApiResponse(BaseModel):
    """Framework-neutral response: status code plus JSON body."""

    status_code: int = 200
    body: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def success(cls, data: Any, status_code: int = 200) -> ApiResponse:
        return cls(status_code=status_code, body=format_api_response(data))

    @classmethod
    def failure(cls, error: str, status_code: int) -> ApiResponse:
        return cls(
            status_code=status_code,
            body=format_api_response(None, success=False, error=error),
        )


def format_api_response(
    data: Any, success: bool = True, error: str | None = None
) -> dict[str, Any]:
    """Uniform envelope: success flag, data or error, ISO timestamp."""
    return {
        "success": success,
        "data": data if success else None,
        "error": error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
