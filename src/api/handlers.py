# src/api/handlers.py — v1
"""Framework-neutral request handlers.

Usage (any web framework):
    response = await handle_analyze(await request.json(), orchestrator)
    return JSONResponse(response.body, status_code=response.status_code)

Client errors (missing content, invalid content) map to 400; anything else
that escapes the orchestrator maps to 500 with a generic message.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from seoscope.api.models import AnalyzeRequest, ApiResponse
from seoscope.pipeline.validation import ContentValidationError

if TYPE_CHECKING:
    from seoscope.pipeline.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)


def _parse_request(request: Any) -> AnalyzeRequest | ApiResponse:
    if not isinstance(request, Mapping):
        return ApiResponse.failure("Request body must be a JSON object", 400)
    content = request.get("content")
    if not content or not isinstance(content, str):
        return ApiResponse.failure("Content is required and must be a string", 400)
    try:
        return AnalyzeRequest.model_validate(dict(request))
    except ValidationError as e:
        return ApiResponse.failure(f"Invalid request: {e.error_count()} error(s)", 400)


async def handle_analyze(
    request: Mapping[str, Any], orchestrator: AnalysisOrchestrator
) -> ApiResponse:
    """Analyze ``request["content"]`` and wrap the result."""
    parsed = _parse_request(request)
    if isinstance(parsed, ApiResponse):
        return parsed

    try:
        config = orchestrator.config.merged(fast=True) if parsed.fast else None
        result = await orchestrator.analyze(parsed.content, config, parsed.metadata)
    except ContentValidationError as e:
        return ApiResponse.failure(str(e), 400)
    except Exception:
        logger.exception("Analyze handler failed")
        return ApiResponse.failure("Failed to analyze content", 500)

    return ApiResponse.success(result.model_dump(mode="json"))


async def handle_generate_all(
    request: Mapping[str, Any],
    orchestrator: AnalysisOrchestrator,
    suggestion_types: Sequence[str] | None = None,
) -> ApiResponse:
    """Analyze content and merge AI suggestions of every requested type.

    Suggestion types come from the argument, then the request body, then
    every known type. AI failures never fail the request.
    """
    parsed = _parse_request(request)
    if isinstance(parsed, ApiResponse):
        return parsed

    types = suggestion_types or parsed.suggestion_types
    try:
        result = await orchestrator.analyze_with_suggestions(
            parsed.content, types, metadata=parsed.metadata
        )
    except ContentValidationError as e:
        return ApiResponse.failure(str(e), 400)
    except Exception:
        logger.exception("Generate-all handler failed")
        return ApiResponse.failure("Failed to generate SEO data", 500)

    ai_count = sum(1 for rec in result.recommendations if rec.source == "ai")
    return ApiResponse.success(
        {
            "analysis": result.model_dump(mode="json"),
            "ai_suggestions": ai_count,
        }
    )
