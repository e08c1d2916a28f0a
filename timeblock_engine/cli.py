#!/usr/bin/env python3
"""
Time-block engine CLI.

Usage:
    python -m timeblock_engine plan --tasks tasks.yaml            # Schedule all tasks
    python -m timeblock_engine plan --tasks tasks.yaml --json     # JSON output
    python -m timeblock_engine windows                            # Validate + list windows
    python -m timeblock_engine slots --date 2026-10-19 -d 60      # Free slots on a day
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime

from . import config
from .config_loader import default_time_windows, dump_time_windows, load_tasks, load_time_windows
from .ids import CounterIdGenerator
from .manager import BlockManager
from .models import WEEKDAY_NAMES, TimeWindow
from .observability import configure_logging
from .windows import TimeWindowRegistry

logger = logging.getLogger(__name__)


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _load_windows(path: str | None) -> list[TimeWindow]:
    if path:
        return load_time_windows(path)
    if config.WINDOWS_FILE.exists():
        return load_time_windows(config.WINDOWS_FILE)
    logger.info("No window config found, using built-in defaults")
    return default_time_windows()


def _build_manager(windows_path: str | None) -> BlockManager | None:
    manager = BlockManager(id_generator=CounterIdGenerator())
    result = manager.set_time_windows(_load_windows(windows_path))
    if not result.valid:
        print("Invalid time window configuration:", file=sys.stderr)
        for issue in result.issues:
            print(f"  - {issue}", file=sys.stderr)
        return None
    return manager


def cmd_plan(args) -> int:
    """Reschedule every task in the task file."""
    manager = _build_manager(args.windows)
    if manager is None:
        return 1

    tasks = load_tasks(args.tasks)
    now = datetime.fromisoformat(args.now) if args.now else datetime.now()
    report = manager.reschedule_all(tasks, now)

    if args.json:
        print(
            json.dumps(
                {
                    "summary": report.summary,
                    "scheduled": report.scheduled,
                    "partial": report.partial,
                    "failed": report.failed,
                    "skipped": report.skipped,
                    "results": {tid: r.to_dict() for tid, r in report.results.items()},
                },
                indent=2,
            )
        )
        return 0

    print_header("SCHEDULE")
    rows = []
    for block in sorted(manager.get_scheduled_blocks(), key=lambda b: b.start):
        rows.append(
            [
                block.start.strftime("%a %Y-%m-%d"),
                f"{block.start:%H:%M}-{block.end:%H:%M}",
                block.duration,
                block.task_id,
                block.time_window_id,
            ]
        )
    if rows:
        print_table(["Day", "Time", "Min", "Task", "Window"], rows)
    else:
        print("No blocks scheduled.")

    problems = [(tid, r) for tid, r in report.results.items() if not r.success]
    if problems:
        print_header("NOT FULLY SCHEDULED")
        for task_id, result in problems:
            flag = " (overdue)" if result.overdue else ""
            print(f"  ✗ {task_id}: {result.message}{flag}")

    print(f"\n{report.summary}")
    return 0


def cmd_windows(args) -> int:
    """Validate and list the configured windows."""
    windows = _load_windows(args.windows)
    registry = TimeWindowRegistry()
    result = registry.set_time_windows(windows)

    if not result.valid:
        print("Invalid time window configuration:", file=sys.stderr)
        for issue in result.issues:
            print(f"  - {issue}", file=sys.stderr)
        return 1

    if args.yaml:
        print(dump_time_windows(list(registry.get_time_windows())), end="")
        return 0

    print_header("TIME WINDOWS")
    rows = []
    for window in sorted(registry.get_time_windows(), key=lambda w: w.priority):
        for entry in sorted(window.schedule, key=lambda e: e.day):
            ranges = ", ".join(f"{r.start}-{r.end}" for r in entry.ranges)
            rows.append([window.priority, window.id, WEEKDAY_NAMES[entry.day], ranges])
    print_table(["Prio", "Window", "Day", "Ranges"], rows)
    return 0


def cmd_slots(args) -> int:
    """List free slots on a day."""
    manager = _build_manager(args.windows)
    if manager is None:
        return 1

    day = date.fromisoformat(args.date) if args.date else date.today()
    slots = manager.get_available_time_slots(day, args.duration)

    print_header(f"FREE SLOTS {day.isoformat()}")
    if not slots:
        print("No free slots.")
        return 0

    rows = [
        [f"{start:%H:%M}-{end:%H:%M}", int((end - start).total_seconds() // 60), window_id]
        for start, end, window_id in slots
    ]
    print_table(["Time", "Min", "Window"], rows)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timeblock_engine", description="Time-block scheduling engine"
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    sub = parser.add_subparsers(dest="command", required=True)

    plan = sub.add_parser("plan", help="Schedule every task in a task file")
    plan.add_argument("--tasks", "-t", required=True, help="YAML/JSON file with a 'tasks' list")
    plan.add_argument("--windows", "-w", help="Time window YAML (default: config file)")
    plan.add_argument("--now", help="Current time, ISO format (default: now)")
    plan.add_argument("--json", "-j", action="store_true", help="Output JSON")
    plan.set_defaults(func=cmd_plan)

    windows = sub.add_parser("windows", help="Validate and list time windows")
    windows.add_argument("--windows", "-w", help="Time window YAML (default: config file)")
    windows.add_argument("--yaml", action="store_true", help="Print as YAML")
    windows.set_defaults(func=cmd_windows)

    slots = sub.add_parser("slots", help="Show free slots on a day")
    slots.add_argument("--date", help="Day, YYYY-MM-DD (default: today)")
    slots.add_argument("--duration", "-d", type=int, default=1, help="Minimum slot minutes")
    slots.add_argument("--windows", "-w", help="Time window YAML (default: config file)")
    slots.set_defaults(func=cmd_slots)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, config.LOG_JSON)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
