"""Command-line interface for pulselog.

Provides the main entry point for running background capture, running
text recognition on a single image, rebuilding a day's summary from
storage, and exporting, searching or pruning stored activity.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from datetime import date, datetime, timedelta
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_DAYS = 30


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pulselog",
        description="Screen activity journal built from periodic text recognition",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/pulselog.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Capture in the background until interrupted")

    ocr_parser = subparsers.add_parser("ocr", help="Recognize text in an image file")
    ocr_parser.add_argument("image", type=Path, help="PNG or JPEG file")

    summary_parser = subparsers.add_parser("summary", help="Rebuild and print a day's summary")
    summary_parser.add_argument(
        "--date", type=date.fromisoformat, default=None,
        help="Day to summarize as YYYY-MM-DD (default: today)",
    )

    export_parser = subparsers.add_parser("export", help="Export stored activity as JSON or CSV")
    export_parser.add_argument(
        "--from", dest="start", type=date.fromisoformat, default=None,
        help="First day to export as YYYY-MM-DD (default: 30 days ago)",
    )
    export_parser.add_argument(
        "--to", dest="end", type=date.fromisoformat, default=None,
        help="Last day to export as YYYY-MM-DD (default: today)",
    )
    export_parser.add_argument(
        "--what", choices=["sessions", "summaries", "all"], default="all",
        help="Records to export; CSV needs sessions or summaries (default: all)",
    )
    export_parser.add_argument("--format", choices=["json", "csv"], default="json")
    export_parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Write to this file instead of stdout",
    )

    search_parser = subparsers.add_parser("search", help="Find stored sessions by text")
    search_parser.add_argument("query", help="Words that must all appear")
    search_parser.add_argument("--limit", type=int, default=20)

    subparsers.add_parser("prune", help="Delete activity older than the retention windows")


    return parser.parse_args(argv)


def build_engine(settings):
    """Create the recognition engine from settings."""
    from pulselog.recognition.engine import RecognitionEngine
    from pulselog.recognition.tesseract import TesseractBackend

    return RecognitionEngine(
        backend=TesseractBackend(tesseract_cmd=settings.recognition.tesseract_cmd),
        minimum_confidence=settings.recognition.minimum_confidence,
        quality=settings.recognition.quality,
        language_hints=settings.recognition.language_hints,
    )


def build_summarizer(settings):
    """Create the configured day summarizer."""
    if settings.summarizer.backend == "local_llm":
        from pulselog.summarizer.local_llm import LocalLLMSummarizer

        return LocalLLMSummarizer(
            base_url=settings.summarizer.base_url,
            model=settings.summarizer.model,
            api_key=settings.llm_api_key.get_secret_value(),
            max_tokens=settings.summarizer.max_tokens,
        )
    from pulselog.summarizer.heuristic import HeuristicSummarizer

    return HeuristicSummarizer()


def build_pipeline(settings, engine=None, store=None):
    """Wire recognition, classification, aggregation and storage together."""
    from pulselog.aggregation.aggregator import DailyAggregator
    from pulselog.scheduler.pipeline import ActivityPipeline
    from pulselog.session.classifier import SessionClassifier
    from pulselog.storage.sqlite import SqliteStore

    classifier = SessionClassifier(
        idle_threshold=settings.idle_threshold,
        text_merge=settings.session.text_merge,
        max_accumulated_chars=settings.session.max_accumulated_chars,
    )
    return ActivityPipeline(
        engine=engine or build_engine(settings),
        classifier=classifier,
        aggregator=DailyAggregator(top_n=settings.aggregation.top_n),
        store=store or SqliteStore(settings.storage.path),
        summarizer=build_summarizer(settings),
        recognition_timeout=settings.recognition.timeout,
        idle_intervals=settings.idle_threshold_intervals,
    )


def format_summary(summary) -> str:
    """Render a DaySummary for the terminal."""
    from pulselog.utils.formatting import format_duration

    lines = [
        f"Date:          {summary.date.isoformat()}",
        f"Screen time:   {format_duration(summary.total_screen_time)}",
        f"Activities:    {summary.activity_count}",
        f"Productivity:  {int(summary.productivity_score * 100)}%",
    ]
    if summary.top_apps:
        lines.append("Top apps:")
        for usage in summary.top_apps:
            lines.append(
                f"  {usage.app_name:<24} {format_duration(usage.duration):>8}  {usage.category.value}"
            )
    if summary.ai_summary_text:
        lines.append("")
        lines.append(summary.ai_summary_text)
    return "\n".join(lines)


async def _run(settings) -> None:
    """Capture until SIGINT/SIGTERM, then flush and persist the day."""
    from pulselog.capture.foreground import SystemForegroundApp
    from pulselog.capture.screen import ScreenCapture
    from pulselog.scheduler.scheduler import CaptureScheduler

    pipeline = build_pipeline(settings)
    _prune(settings, pipeline.store)
    restored = await pipeline.restore_day()
    if restored:
        logger.info("Continuing today with %d stored sessions", restored)

    scheduler = CaptureScheduler(
        capture=ScreenCapture(monitor_index=settings.capture.monitor_index),
        foreground=SystemForegroundApp(),
        pipeline=pipeline,
        interval=settings.capture.interval,
        excluded_apps=settings.capture.excluded_apps,
        max_pending=settings.capture.max_pending,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))

    try:
        await scheduler.start()
        print(f"Capturing every {scheduler.interval:.0f}s. Press Ctrl+C to stop.")
        try:
            await stop_event.wait()
        finally:
            await scheduler.stop()
            pipeline.refresh_summary()
            await pipeline.wait_for_summary()
            summary = await pipeline.save_day_summary()
            if pipeline.storage_degraded:
                logger.warning(
                    "%d write(s) could not be stored before shutdown", pipeline.store.pending_count
                )
    finally:
        await pipeline.close()
    print()
    print(format_summary(summary))


def _prune(settings, store):
    """Apply the configured retention windows to ``store``."""
    from pulselog.storage.base import StorageUnavailable
    from pulselog.storage.retention import RetentionResult, apply_retention

    try:
        return apply_retention(
            store,
            date.today(),
            session_days=settings.storage.session_retention_days,
            summary_days=settings.storage.summary_retention_days,
        )
    except StorageUnavailable as e:
        logger.warning("Skipping retention, storage unavailable: %s", e)
        return RetentionResult()


async def _ocr(settings, image_path: Path) -> None:
    """Run text recognition on one image file and print the result."""
    from pulselog.domain.models import CapturedFrame

    engine = build_engine(settings)
    frame = CapturedFrame(timestamp=datetime.now(), image_data=image_path.read_bytes())
    result = engine.recognize(frame)

    for obs in result.observations:
        print(f"[{obs.confidence:.2f}] {obs.text}")
    print()
    print(f"Observations: {len(result.observations)}")
    print(f"Language:     {result.detected_language or 'unknown'}")
    print(f"Duration:     {result.processing_duration:.3f}s")


def _export(settings, start: date | None, end: date | None, what: str, fmt: str, output: Path | None) -> None:
    """Write stored sessions and/or summaries for a date range."""
    from pulselog.storage.export import ExportFormat, ExportScope, export_range
    from pulselog.storage.sqlite import SqliteStore

    end = end or date.today()
    start = start or end - timedelta(days=DEFAULT_EXPORT_DAYS - 1)
    store = SqliteStore(settings.storage.path)
    try:
        text = export_range(store, start, end, ExportScope(what), ExportFormat(fmt))
    except ValueError as e:
        print(f"Cannot export: {e}")
        return
    if output is None:
        print(text, end="" if text.endswith("\n") else "\n")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    print(f"Exported {what} for {start}..{end} to {output}")


def _search(settings, query: str, limit: int) -> None:
    """Print stored sessions matching every word of ``query``."""
    from pulselog.storage.sqlite import SqliteStore
    from pulselog.utils.formatting import format_duration, truncate

    sessions = SqliteStore(settings.storage.path).search_sessions(query, limit)
    if not sessions:
        print(f"No sessions match {query!r}")
        return
    for session in sessions:
        print(
            f"{session.start_time:%Y-%m-%d %H:%M}  {session.application_name:<20} "
            f"{format_duration(session.duration):>8}  {truncate(session.title or session.summary, 60)}"
        )


def _prune_command(settings) -> None:
    from pulselog.storage.sqlite import SqliteStore

    result = _prune(settings, SqliteStore(settings.storage.path))
    print(f"Deleted {result.sessions_deleted} session(s) and {result.summaries_deleted} day summary(ies)")


async def _summary(settings, day: date | None) -> None:
    """Recompute a day from storage, summarize it and save the result."""
    from pulselog.aggregation.aggregator import DailyAggregator
    from pulselog.storage.sqlite import SqliteStore

    day = day or date.today()
    store = SqliteStore(settings.storage.path)
    sessions = store.load_sessions(day)
    summary = DailyAggregator.recompute(sessions, day, settings.aggregation.top_n)

    text = await build_summarizer(settings).summarize(sessions, summary)
    if text:
        summary = summary.model_copy(update={"ai_summary_text": text})
    else:
        stored = store.load_day_summary(day)
        if stored is not None:
            summary = summary.model_copy(update={"ai_summary_text": stored.ai_summary_text})
    store.save_day_summary(summary)
    print(format_summary(summary))


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the pulselog CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from pulselog.config.settings import load_settings
    from pulselog.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "run":
        logger.info("Starting background capture")
        asyncio.run(_run(settings))

    elif args.command == "ocr":
        asyncio.run(_ocr(settings, args.image))

    elif args.command == "summary":
        asyncio.run(_summary(settings, args.date))

    elif args.command == "export":
        _export(settings, args.start, args.end, args.what, args.format, args.output)

    elif args.command == "search":
        _search(settings, args.query, args.limit)

    elif args.command == "prune":
        _prune_command(settings)
