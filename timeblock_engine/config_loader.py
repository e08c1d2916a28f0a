"""
Config Loader - Read time windows and task lists from YAML.

Window file layout:

    windows:
      - id: work
        name: Work Hours
        color: "#3498db"
        priority: 1
        schedule:
          - day: 1            # 0 = Sunday ... 6 = Saturday
            ranges:
              - {start: "09:00", end: "17:00"}

Task file layout:

    tasks:
      - id: write-report
        estimated_duration: 120
        due_date: 2026-10-21T17:00:00
        priority: 2

Usage:
    from timeblock_engine.config_loader import load_time_windows

    windows = load_time_windows()
    result = registry.set_time_windows(windows)
"""

import logging
from pathlib import Path

import yaml

from . import config
from .models import DaySchedule, Task, TimeRange, TimeWindow

logger = logging.getLogger(__name__)


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping at the top level")
    return data


def load_time_windows(path: str | Path | None = None) -> list[TimeWindow]:
    """
    Load time windows from a YAML config.

    Content (id uniqueness, range format, overlaps) is validated by
    TimeWindowRegistry.set_time_windows, not here.

    Raises:
        FileNotFoundError if the file doesn't exist.
        yaml.YAMLError if the file is invalid YAML.
        ValueError if the file has no 'windows' list or an entry is malformed.
    """
    config_path = Path(path) if path else config.WINDOWS_FILE
    data = _read_yaml(config_path)

    entries = data.get("windows")
    if not isinstance(entries, list):
        raise ValueError(f"{config_path.name} must have a 'windows' list")

    windows = [TimeWindow.from_dict(entry) for entry in entries]
    logger.debug(f"Loaded {len(windows)} time window(s) from {config_path}")
    return windows


def load_tasks(path: str | Path) -> list[Task]:
    """
    Load tasks from a YAML (or JSON) file with a top-level 'tasks' list.

    Raises:
        FileNotFoundError if the file doesn't exist.
        ValueError if the file has no 'tasks' list or an entry is malformed.
    """
    config_path = Path(path)
    data = _read_yaml(config_path)

    entries = data.get("tasks")
    if not isinstance(entries, list):
        raise ValueError(f"{config_path.name} must have a 'tasks' list")

    return [Task.from_dict(entry) for entry in entries]


def default_time_windows() -> list[TimeWindow]:
    """
    Built-in windows used when no config file exists.

    - Work Hours: Monday-Friday 09:00-17:00
    - Personal Time: weekday mornings and evenings, weekends 05:00-23:00
    """
    weekdays = range(1, 6)

    work = TimeWindow(
        id="work",
        name="Work Hours",
        color="#3498db",
        priority=1,
        schedule=tuple(
            DaySchedule(day=d, ranges=(TimeRange("09:00", "17:00"),)) for d in weekdays
        ),
    )

    personal_schedule = [DaySchedule(day=0, ranges=(TimeRange("05:00", "23:00"),))]
    personal_schedule.extend(
        DaySchedule(day=d, ranges=(TimeRange("05:00", "09:00"), TimeRange("17:00", "23:00")))
        for d in weekdays
    )
    personal_schedule.append(DaySchedule(day=6, ranges=(TimeRange("05:00", "23:00"),)))

    personal = TimeWindow(
        id="personal",
        name="Personal Time",
        color="#2ecc71",
        priority=2,
        schedule=tuple(personal_schedule),
    )

    return [work, personal]


def dump_time_windows(windows: list[TimeWindow]) -> str:
    """Serialize windows back into the YAML layout load_time_windows reads."""
    return yaml.safe_dump({"windows": [w.to_dict() for w in windows]}, sort_keys=False)
