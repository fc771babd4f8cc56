"""Command line interface for the focus/break timer."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Optional, TextIO

from loguru import logger

from . import scheduler
from .clock import SleepClock
from .config import STATE_FILE_NAME, AppConfig
from .log import setup_logger
from .notifier import ConsoleNotifier, SchedulerAnnouncer, Severity
from .storage import JsonFileStorage, MemoryStorage, Storage

logger = logger.bind(module="focusdash.cli")

BANNER = r"""
  __                          _           _
 / _| ___   ___ _   _ ___  __| | __ _ ___| |__
| |_ / _ \ / __| | | / __|/ _` |/ _` / __| '_ \
|  _| (_) | (__| |_| \__ \ (_| | (_| \__ \ | | |
|_|  \___/ \___|\__,_|___/\__,_|\__,_|___/_| |_|
"""

DRY_RUN_INTERVALS = 8

_SETTING_FLAGS = ("focus_minutes", "short_break_minutes", "long_break_minutes", "intervals_before_long")


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run focus and break intervals in your terminal.")
    parser.add_argument("--focus-minutes", type=int, help="minutes per focus interval (saved)")
    parser.add_argument("--short-break-minutes", type=int, help="minutes per short break (saved)")
    parser.add_argument("--long-break-minutes", type=int, help="minutes per long break (saved)")
    parser.add_argument("--intervals-before-long", type=int, help="focus intervals before a long break (saved)")
    parser.add_argument("--intervals", type=non_negative_int, help="how many intervals to run or preview")
    parser.add_argument("--fast", action="store_true", help="treat 1/60 of a real second as one second (handy for demos)")
    parser.add_argument("--dry-run", action="store_true", help="show the upcoming intervals without running timers")
    parser.add_argument("--reset", action="store_true", help="go back to the first focus interval before running")
    parser.add_argument("--no-sound", action="store_true", help="do not ring the bell when an interval completes")
    parser.add_argument("--data-dir", type=Path, help="directory holding the saved state")
    parser.add_argument("--ephemeral", action="store_true", help="keep state in memory only")
    parser.add_argument("--log-level", help="loguru level for stderr output")
    return parser.parse_args(list(argv))


def format_time(seconds: int) -> str:
    minutes, remainder = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{remainder:02d}"


def progress_bar(fraction: float, width: int = 20) -> str:
    filled = int(round(fraction * width))
    return "#" * filled + "-" * (width - filled)


class TerminalRenderer:
    """Redraws a single countdown line on every state change."""

    def __init__(self, sched: scheduler.SessionScheduler, stream: TextIO | None = None):
        self.scheduler = sched
        self.stream = stream or sys.stdout

    def render_line(self, state: scheduler.SchedulerState) -> str:
        duration = self.scheduler.settings.minutes_for(state.interval_type) * 60
        fraction = scheduler.progress_fraction(state.remaining_seconds, duration)
        return (
            f"{state.interval_type.label:<11} {format_time(state.remaining_seconds)} "
            f"[{progress_bar(fraction)}] cycle {state.current_cycle_number}"
        )

    def __call__(self, change: scheduler.StateChange) -> None:
        self.stream.write("\r" + self.render_line(change.state))
        if change.event is scheduler.SchedulerEvent.COMPLETED:
            self.stream.write("\n")
        self.stream.flush()


def print_plan(sched: scheduler.SessionScheduler, count: int, stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    settings = sched.settings
    print("Focus     :", settings.focus_minutes, "minute(s)", file=stream)
    print("Short br. :", settings.short_break_minutes, "minute(s)", file=stream)
    print("Long br.  :", settings.long_break_minutes, "minute(s)", file=stream)
    print("Long every:", settings.intervals_before_long, "focus interval(s)", file=stream)
    print(file=stream)
    print("Upcoming intervals:", file=stream)
    for item in scheduler.preview_plan(settings, sched.state, count):
        minutes = item.duration_seconds // 60
        print(f"- {item.label}: {minutes} minute(s)", file=stream)


def build_storage(args: argparse.Namespace, config: AppConfig, notifier: ConsoleNotifier) -> Storage:
    if args.ephemeral:
        return MemoryStorage()
    path = args.data_dir / STATE_FILE_NAME if args.data_dir else config.storage_path
    return JsonFileStorage(
        path,
        on_error=lambda message: notifier.toast(message, Severity.WARNING),
    )


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    config = AppConfig.from_env()
    setup_logger(args.log_level or config.log_level, config.log_file)

    notifier = ConsoleNotifier(sound_enabled=config.sound_enabled and not args.no_sound)
    storage = build_storage(args, config, notifier)
    clock = SleepClock(second_length=1 / 60 if args.fast else 1.0)
    sched = scheduler.SessionScheduler.create(storage, clock)
    logger.debug(f"Restored {sched.state}")

    SchedulerAnnouncer(notifier).attach(sched)
    if args.reset:
        sched.reset()
    overrides = {name: getattr(args, name) for name in _SETTING_FLAGS if getattr(args, name) is not None}
    if overrides:
        sched.apply_settings(overrides)

    print(BANNER)
    if args.dry_run:
        print_plan(sched, DRY_RUN_INTERVALS if args.intervals is None else args.intervals)
        return

    sched.subscribe(TerminalRenderer(sched))

    print("Press Ctrl+C to pause and exit. Running timers…")
    try:
        for _ in range(1 if args.intervals is None else args.intervals):
            sched.start()
            clock.run()
    except KeyboardInterrupt:
        sched.pause()
        print("\nSession paused. See you next time!")


if __name__ == "__main__":  # pragma: no cover
    main()
