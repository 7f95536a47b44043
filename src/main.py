# src/main.py — v2
"""CLI entry point: analyze and batch commands.

Usage:
    seoscope analyze <file> [--base-url URL] [--fast] [--json] [--suggest TYPE]
    seoscope batch <directory> [--concurrency N] [--fast] [--pattern GLOB] [--json]

Exit codes: 0 success, 1 error, 2 content rejected, 130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from seoscope.version import __version__

if TYPE_CHECKING:
    from seoscope.config.settings import Settings
    from seoscope.pipeline.models import AnalysisResult
    from seoscope.pipeline.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_CONTENT = 2
EXIT_INTERRUPTED = 130


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_ERROR

    from seoscope.config.settings import ConfigurationError, Settings

    try:
        settings = Settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_ERROR


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="seoscope",
        description=f"seoscope v{__version__} - SEO content analyzer",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- analyze ---
    p_analyze = subparsers.add_parser(
        "analyze", help="Analyze a single HTML or text file",
    )
    p_analyze.add_argument("file", type=Path, help="Path to document")
    p_analyze.add_argument(
        "--base-url", default=None,
        help="Page URL used to resolve relative links",
    )
    p_analyze.add_argument(
        "--fast", action="store_true",
        help="Use the fast profile (fewer metrics and rules)",
    )
    p_analyze.add_argument(
        "--json", action="store_true",
        help="Print the full result as JSON",
    )
    p_analyze.add_argument(
        "--suggest", action="append", default=None, metavar="TYPE",
        help="Add AI suggestions of TYPE (repeatable; needs AI_ENABLED=true)",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- batch ---
    p_batch = subparsers.add_parser(
        "batch", help="Analyze every matching file in a directory",
    )
    p_batch.add_argument("directory", type=Path, help="Directory to scan")
    p_batch.add_argument(
        "--concurrency", type=int, default=None,
        help="Maximum analyses in flight (default: BATCH_CONCURRENCY)",
    )
    p_batch.add_argument(
        "--fast", action="store_true",
        help="Use the fast profile for every file",
    )
    p_batch.add_argument(
        "--pattern", default="*.html",
        help='Glob for files to include (default: "*.html")',
    )
    p_batch.add_argument(
        "--json", action="store_true",
        help="Print all results as JSON",
    )
    p_batch.set_defaults(func=_cmd_batch)

    return parser


def build_orchestrator(settings: Settings) -> AnalysisOrchestrator:
    """Wire cache, AI bridge and orchestrator from settings."""
    from seoscope.ai.bridge import create_suggestion_bridge
    from seoscope.cache.cache_factory import create_cache_store
    from seoscope.pipeline.orchestrator import AnalysisOrchestrator

    cache_store = create_cache_store(settings)
    return AnalysisOrchestrator(
        cache_store=cache_store,
        suggestion_bridge=create_suggestion_bridge(settings, cache_store),
        settings=settings,
    )


async def _cmd_analyze(args: argparse.Namespace, settings: Settings) -> int:
    """Execute single-document analysis."""
    from seoscope.pipeline.validation import ContentValidationError

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return EXIT_ERROR

    content = file_path.read_text(encoding="utf-8", errors="replace")
    orchestrator = build_orchestrator(settings)
    changes: dict[str, object] = {}
    if args.base_url:
        changes["base_url"] = args.base_url
    if args.fast:
        changes["fast"] = True
    config = orchestrator.config.merged(**changes) if changes else None

    try:
        if args.suggest:
            result = await orchestrator.analyze_with_suggestions(
                content, args.suggest, config=config
            )
        else:
            result = await orchestrator.analyze(content, config)
    except ContentValidationError as exc:
        logger.error("Content rejected (%s): %s", exc.reason, exc)
        return EXIT_INVALID_CONTENT
    finally:
        if orchestrator.cache_store is not None:
            await orchestrator.cache_store.close()

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        _print_result_summary(file_path.name, result)
    return EXIT_OK


async def _cmd_batch(args: argparse.Namespace, settings: Settings) -> int:
    """Execute batch directory processing."""
    from seoscope.batch.models import BatchItem, summarize

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return EXIT_ERROR

    files = sorted(p for p in directory.rglob(args.pattern) if p.is_file())
    if not files:
        logger.error("No files matching %s in %s", args.pattern, directory)
        return EXIT_ERROR

    items = [
        BatchItem(
            id=str(path.relative_to(directory)),
            content=path.read_text(encoding="utf-8", errors="replace"),
        )
        for path in files
    ]

    def progress(completed: int, total: int) -> None:
        logger.info("Progress: %d/%d", completed, total)

    orchestrator = build_orchestrator(settings)
    try:
        results = await orchestrator.analyze_batch(
            items, concurrency=args.concurrency, fast=args.fast, on_progress=progress,
        )
    finally:
        if orchestrator.cache_store is not None:
            await orchestrator.cache_store.close()

    summary = summarize(results)
    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
    else:
        for r in results:
            if r.ok and r.result is not None:
                print(f"  {r.result.score.overall:3d}  {r.id}")
            else:
                print(f"  ERR  {r.id}: {r.error}")
        print("\nBatch complete:")
        print(f"  Files:      {summary.total}")
        print(f"  Succeeded:  {summary.succeeded}")
        print(f"  Failed:     {summary.failed}")
        if summary.average_score is not None:
            print(f"  Avg score:  {summary.average_score}")
    return EXIT_OK if summary.failed == 0 else EXIT_ERROR


def _print_result_summary(name: str, result: AnalysisResult) -> None:
    """Print a human-readable summary of an AnalysisResult."""
    print(f"\nAnalysis of {name}:")
    print(f"  Score:      {result.score.overall}/100 ({result.meta.mode})")
    for category, score in result.score.breakdown.items():
        print(f"    {category:<12} {score:3d}")
    print(f"  Words:      {result.metrics.word_count}")
    if result.keywords:
        print(f"  Keywords:   {', '.join(result.keywords[:5])}")
    if result.recommendations:
        print("  Recommendations:")
        for rec in result.recommendations:
            marker = "*" if rec.source == "ai" else "-"
            print(f"    {marker} [{rec.priority}] {rec.title}")


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from seoscope.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
