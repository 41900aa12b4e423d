"""Application entry point for the tidings signal engine."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from rich.console import Console
from rich.table import Table

import settings
from adapters.console_sink import ConsoleSink, LoggingRescraper
from adapters.jsonl_bridge import JsonLinesSink, JsonLinesWriter, iter_events, start_reader
from core.config import EngineConfig
from core.engine import SignalActor, SignalEngine
from core.timers import LoopScheduler, VirtualScheduler

NAME = "TIDINGS"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _ModeFilter(logging.Filter):
    """Stamps every record with the command the process is running."""

    def __init__(self, mode: str) -> None:
        super().__init__()
        self.mode = mode

    def filter(self, record: logging.LogRecord) -> bool:
        record.mode = self.mode
        return True


def _log_handlers(config: dict, mode: str) -> list[logging.Handler]:
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(mode)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    mode_filter = _ModeFilter(mode)
    handlers: list[logging.Handler] = []

    if config.get("console", True):
        # stderr keeps stdout free for the JSON-lines protocol.
        handlers.append(logging.StreamHandler(sys.stderr))

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/tidings-{mode}.log").format(mode=mode)
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(mode_filter)
    return handlers


def _configure_logging(mode: str) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return
    handlers = _log_handlers(config, mode)
    if handlers:
        level = min(handler.level for handler in handlers)
        logging.basicConfig(level=level, handlers=handlers)


def _settle_seconds(config: EngineConfig) -> float:
    """Long enough for every pending timer to fire after the last event."""

    return max(config.calls.silence_seconds, config.calls.expiry_seconds, config.scrape.delay_seconds) + 1


def replay_file(path: str, config: EngineConfig, console: Console) -> SignalEngine:
    """Replay a recorded JSON-lines signal log on a virtual clock."""

    logger = logging.getLogger(__name__)
    scheduler = VirtualScheduler()
    sink = ConsoleSink(console, config.conversation_url, clock=scheduler.now)
    rescraper = LoggingRescraper()
    engine = SignalEngine(config, sink, rescraper, scheduler)

    with open(path, "r", encoding="utf-8") as handle:
        for at, event in iter_events(handle):
            if at is not None:
                if at < scheduler.now():
                    logger.warning("Event at %.2fs is out of order, processing it at %.2fs", at, scheduler.now())
                else:
                    scheduler.advance_to(at)
            engine.dispatch(event)

    scheduler.advance(_settle_seconds(config))
    engine.stats["rescrape_requests"] = rescraper.requests
    return engine


def _print_summary(console: Console, engine: SignalEngine) -> None:
    table = Table(title="Replay summary")
    table.add_column("Decision")
    table.add_column("Count", justify="right")
    for name, count in sorted(engine.stats.items()):
        table.add_row(name, str(count))
    console.print(table)


def _replay(path: str) -> None:
    _print_banner()
    _configure_logging("replay")
    logger = logging.getLogger(__name__)
    logger.info("Replaying %s", path)

    console = Console()
    engine = replay_file(path, settings.ENGINE_CONFIG, console)
    _print_summary(console, engine)


def _listen() -> None:
    # No banner: stdout carries the protocol.
    _configure_logging("listen")
    logger = logging.getLogger(__name__)

    async def _run_listen() -> None:
        loop = asyncio.get_running_loop()
        config = settings.ENGINE_CONFIG
        writer = JsonLinesWriter(sys.stdout)
        sink = JsonLinesSink(writer, config.conversation_url)
        engine = SignalEngine(config, sink, sink, LoopScheduler(loop))
        actor = SignalActor(engine, loop=loop)
        start_reader(sys.stdin, actor.submit_threadsafe, actor.stop)
        logger.info("Listening for signals on stdin")
        await actor.run()
        logger.info("Input closed, shutting down")

    asyncio.run(_run_listen())


def _check() -> None:
    _print_banner()
    config = settings.ENGINE_CONFIG
    console = Console()

    table = Table(title=f"Effective configuration ({settings.CONFIG_PATH})")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("call keywords", ", ".join(config.calls.keywords))
    table.add_row("call silence / expiry", f"{config.calls.silence_seconds:g}s / {config.calls.expiry_seconds:g}s")
    table.add_row("call banners", "on" if config.calls.notify else "off")
    table.add_row("typing phrases", ", ".join(config.badge.typing_phrases))
    table.add_row("app title markers", ", ".join(config.badge.app_title_markers) or "(any title)")
    table.add_row("notify on badge increase", "on" if config.badge.notify_on_increase else "off")
    table.add_row("sender filter", "on" if config.filter.enabled else "off")
    table.add_row("blocked senders", ", ".join(config.filter.blocked_senders))
    table.add_row("status phrases", ", ".join(config.scrape.status_phrases))
    table.add_row("skip phrases", ", ".join(config.scrape.skip_phrases))
    table.add_row("re-scrape delay", f"{config.scrape.delay_seconds:g}s")
    table.add_row("conversation url", config.conversation_url)
    console.print(table)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="tidings")
    subparsers = parser.add_subparsers(dest="command")

    replay_parser = subparsers.add_parser("replay", help="Replay a recorded JSON-lines signal log")
    replay_parser.add_argument("path", help="Path to the .jsonl log")
    subparsers.add_parser("listen", help="Read signals from stdin and write actions to stdout")
    subparsers.add_parser("check", help="Show the effective configuration")

    args = parser.parse_args(argv)
    if args.command == "replay":
        _replay(args.path)
        return
    if args.command == "check":
        _check()
        return
    if args.command == "listen":
        _listen()
        return
    parser.print_help()


if __name__ == "__main__":
    main()
