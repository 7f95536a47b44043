# src/__init__.py — v1
"""seoscope: SEO content analysis with scoring, batching and result caching."""

from seoscope.version import __version__

__all__ = ["__version__"]
