import argparse
import asyncio
import logging
import sys
import threading
from contextlib import ExitStack
from dataclasses import replace
from typing import List, Optional

from .config.config import AppConfig, DisplayConfig, create_default_config, load_config, validate_config
from .monitoring.metrics import metrics
from .sources.jsonl_source import JsonLinesEventSource
from .sources.psutil_source import PsutilEventSource
from .table.registry import MetricRegistry
from .utils.errors import SourceError
from .utils.keyboard import KeyToggle, is_interactive
from .utils.logging import setup_logging

logger = logging.getLogger("progress_table")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="progress-table",
        description="Live table of profiling-event rates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              Watch this process via psutil
  %(prog)s --pid 1234 --duration 30     Watch another process for 30 seconds
  %(prog)s --toggle                     Show or hide the table with the space key
  producer | %(prog)s --source jsonl    Read one JSON batch per line from stdin
        """,
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--source", choices=["psutil", "jsonl"], help="Event source")
    parser.add_argument("--pid", type=int, help="Process to observe (psutil source)")
    parser.add_argument("--input", help="JSON lines file, '-' for stdin (jsonl source)")
    parser.add_argument("--interval", type=float, help="Seconds between redraws")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument(
        "--toggle", action="store_true", help="Toggle the table with the space key"
    )
    parser.add_argument(
        "--hide-table", action="store_true", help="Start with the table hidden (implies --toggle)"
    )
    parser.add_argument("--no-summary", action="store_true", help="Skip the final summary")
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config) if args.config else create_default_config()
    if args.source:
        cfg.source.kind = args.source
    if args.pid is not None:
        cfg.source.pid = args.pid
    if args.input:
        cfg.source.path = args.input
    if args.interval is not None:
        cfg.display.refresh_interval = args.interval
    if args.toggle:
        cfg.display.toggle_enabled = True
    if args.hide_table:
        cfg.display.show_table = False
        cfg.display.toggle_enabled = True
    if args.no_summary:
        cfg.display.final_summary = False
    validate_config(cfg)
    return cfg


def keyboard_available(cfg: AppConfig) -> bool:
    """The toggle key is read from stdin, which must be a terminal and not the event stream."""
    if cfg.source.kind == "jsonl" and cfg.source.path == "-":
        return False
    return is_interactive()


def _draw(
    registry: MetricRegistry, display: DisplayConfig, keyboard: Optional[KeyToggle] = None
) -> None:
    if keyboard is not None and keyboard.toggled():
        display.show_table = not display.show_table
    registry.write_table(sys.stderr, display.show_table, display.toggle_enabled)


async def _tick(
    registry: MetricRegistry, display: DisplayConfig, keyboard: Optional[KeyToggle] = None
) -> None:
    while True:
        _draw(registry, display, keyboard)
        await asyncio.sleep(display.refresh_interval)


async def run_table(
    cfg: AppConfig, registry: MetricRegistry, duration: Optional[float] = None
) -> List[BaseException]:
    """Drive the producer and the render ticker until input ends or time runs out.

    Returns the errors that ended the producer or the ticker early.
    """
    loop = asyncio.get_running_loop()
    done = asyncio.Event()
    errors: List[BaseException] = []
    tasks: List[asyncio.Task] = []
    display = replace(cfg.display)

    with ExitStack() as stack:
        keyboard = None
        if display.toggle_enabled:
            if keyboard_available(cfg):
                keyboard = stack.enter_context(KeyToggle())
            else:
                logger.warning("Space key toggle needs an interactive stdin; showing the table")
                display.show_table = True
                display.toggle_enabled = False

        if cfg.source.kind == "psutil":
            source = PsutilEventSource(
                cfg.source.pid, include_system_network=cfg.source.include_system_network
            )
            producer = asyncio.create_task(
                source.run(registry, cfg.source.sample_interval), name="psutil producer"
            )
            producer.add_done_callback(lambda _: done.set())
            tasks.append(producer)
        else:
            jsonl = JsonLinesEventSource(cfg.source.path)

            def _produce() -> None:
                try:
                    jsonl.run(registry)
                except SourceError as e:
                    logger.error("Event source failed: %s", e)
                    errors.append(e)
                finally:
                    loop.call_soon_threadsafe(done.set)

            # Blocking reads on stdin cannot be cancelled, so the thread is a daemon.
            threading.Thread(target=_produce, name="progress-table-producer", daemon=True).start()

        ticker = asyncio.create_task(_tick(registry, display, keyboard), name="render ticker")
        ticker.add_done_callback(lambda _: done.set())
        tasks.append(ticker)
        try:
            await asyncio.wait_for(done.wait(), timeout=duration)
        except asyncio.TimeoutError:
            logger.info("Stopping after %.1fs", duration)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    for task in tasks:
        if task.cancelled() or task.exception() is None:
            continue
        logger.error("%s failed: %s", task.get_name(), task.exception())
        errors.append(task.exception())
    return errors


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``progress-table`` command."""
    args = build_parser().parse_args(argv)
    try:
        cfg = resolve_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"progress-table: {e}", file=sys.stderr)
        return 2

    setup_logging(cfg.logging)
    registry = MetricRegistry()
    errors: List[BaseException] = []
    try:
        errors = asyncio.run(run_table(cfg, registry, args.duration))
    except SourceError as e:
        logger.error("Event source failed: %s", e)
        errors.append(e)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        if sys.stderr.isatty():
            registry.clear_table_output(sys.stderr)
        if cfg.display.final_summary:
            registry.write_final_table(sys.stdout)
        logger.info(
            "Run metrics after %.1fs with %d events: %s",
            registry.elapsed(),
            len(registry),
            metrics.as_dict(),
        )

    if errors:
        print(f"progress-table: {errors[0]}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
