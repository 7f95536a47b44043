# src/cache/keys.py — v1
"""Deterministic cache keys for content, HTML, AI prompts and analysis results.

Keys have the shape ``seo:<kind>[:<discriminator>...]:<digest>`` where the
digest is a full SHA-256 over every semantic input. Hashing is exact-byte:
no trimming or case folding, so two distinct strings never share a key.
"""

from __future__ import annotations

import hashlib

KEY_PREFIX = "seo"
_SEPARATOR = ":"


def fingerprint(*parts: str) -> str:
    """SHA-256 hex digest over length-prefixed UTF-8 parts.

    The length prefix keeps part boundaries significant:
    ``fingerprint("ab", "c") != fingerprint("a", "bc")``.
    """
    digest = hashlib.sha256()
    for part in parts:
        data = _encode(part)
        digest.update(str(len(data)).encode("ascii"))
        digest.update(b"\x00")
        digest.update(data)
    return digest.hexdigest()


def content_analysis(content: str) -> str:
    """Key for the extracted metrics of a piece of content."""
    return _format_key("content", digest=fingerprint(content))


def html_parsing(html: str) -> str:
    """Key for a parsed HTML document."""
    return _format_key("html", digest=fingerprint(html))


def ai_generation(prompt: str, model: str, provider: str) -> str:
    """Key for an AI completion of ``prompt`` by ``provider``/``model``."""
    return _format_key(
        "ai",
        _segment(provider),
        _segment(model),
        digest=fingerprint(provider, model, prompt),
    )


def seo_result(content: str, serialized_config: str) -> str:
    """Key for a full analysis result of ``content`` under a config."""
    return _format_key("result", digest=fingerprint(content, serialized_config))


class CacheKeyGenerator:
    """Namespace-style access to the key functions."""

    content_analysis = staticmethod(content_analysis)
    html_parsing = staticmethod(html_parsing)
    ai_generation = staticmethod(ai_generation)
    seo_result = staticmethod(seo_result)


def _format_key(kind: str, *discriminators: str, digest: str) -> str:
    return _SEPARATOR.join((KEY_PREFIX, kind, *discriminators, digest))


def _segment(value: str) -> str:
    """Make a discriminator safe to embed between separators."""
    return value.replace(_SEPARATOR, "_")


def _encode(value: str) -> bytes:
    # surrogatepass: lone surrogates from decoded garbage must not raise
    return str(value).encode("utf-8", errors="surrogatepass")
