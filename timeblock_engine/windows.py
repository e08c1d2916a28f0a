"""
Time Window Registry - The active set of recurring availability windows.

Enforces invariants:
- Window ids are unique and non-empty
- Every range parses as HH:MM with start < end
- Ranges within one weekday entry never overlap

A new set replaces the old one wholesale, and only after it validates.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import TimeRange, TimeWindow, parse_hhmm

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    valid: bool
    issues: list[str] = field(default_factory=list)
    stats: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedWindow:
    """A window's concrete ranges for one weekday."""

    window_id: str
    name: str
    priority: int
    ranges: tuple[TimeRange, ...]


def validate_time_windows(windows: Iterable[TimeWindow]) -> ValidationResult:
    """
    Check a window set against the registry invariants.

    Returns:
        ValidationResult listing every issue found (empty when valid)
    """
    issues = []
    seen_ids = set()
    range_count = 0
    windows = list(windows)

    for index, window in enumerate(windows):
        label = f"window '{window.id}'" if window.id else f"window #{index}"

        if not window.id:
            issues.append(f"{label}: id must not be empty")
        elif window.id in seen_ids:
            issues.append(f"{label}: duplicate id")
        seen_ids.add(window.id)

        if isinstance(window.priority, bool) or not isinstance(window.priority, int):
            issues.append(f"{label}: priority must be an integer, got {window.priority!r}")

        seen_days = set()
        for entry in window.schedule:
            if isinstance(entry.day, bool) or not isinstance(entry.day, int) or not 0 <= entry.day <= 6:
                issues.append(f"{label}: weekday must be 0-6, got {entry.day!r}")
                continue
            if entry.day in seen_days:
                issues.append(f"{label}: weekday {entry.day} listed more than once")
            seen_days.add(entry.day)

            spans = []
            for r in entry.ranges:
                range_count += 1
                try:
                    start = parse_hhmm(r.start)
                    end = parse_hhmm(r.end)
                except ValueError as e:
                    issues.append(f"{label}: {e}")
                    continue
                if start >= end:
                    issues.append(f"{label}: range {r.start}-{r.end} must start before it ends")
                    continue
                spans.append((start, end, r))

            # Ranges of one weekday entry must not overlap
            spans.sort(key=lambda s: s[0])
            for prev, cur in zip(spans, spans[1:]):
                if cur[0] < prev[1]:
                    issues.append(
                        f"{label}: ranges {prev[2].start}-{prev[2].end} and "
                        f"{cur[2].start}-{cur[2].end} overlap on weekday {entry.day}"
                    )

    stats = {
        "windows": len(windows),
        "ranges": range_count,
        "issues": len(issues),
    }
    return ValidationResult(valid=not issues, issues=issues, stats=stats)


class TimeWindowRegistry:
    """
    Holds the recurring availability windows.

    The registry is the sole mutator of the window set; every query returns a
    snapshot of frozen windows.
    """

    def __init__(self, windows: Iterable[TimeWindow] | None = None):
        self._windows: tuple[TimeWindow, ...] = ()
        if windows is not None:
            result = self.set_time_windows(windows)
            if not result.valid:
                raise ValueError(f"Invalid time windows: {'; '.join(result.issues)}")

    def set_time_windows(self, windows: Iterable[TimeWindow]) -> ValidationResult:
        """
        Replace the active window set.

        The new set is validated first; when any window is malformed the whole
        set is rejected and the previous one stays active.

        Returns:
            ValidationResult
        """
        windows = tuple(windows)
        result = validate_time_windows(windows)

        if not result.valid:
            logger.warning(f"Rejected time window set: {len(result.issues)} issue(s)")
            for issue in result.issues:
                logger.debug(f"  - {issue}")
            return result

        self._windows = windows
        logger.info(f"Time windows replaced: {len(windows)} active")
        return result

    def get_time_windows(self) -> tuple[TimeWindow, ...]:
        return self._windows

    def get_time_window(self, window_id: str) -> TimeWindow | None:
        for window in self._windows:
            if window.id == window_id:
                return window
        return None

    def resolve_for_weekday(
        self, day: int, window_ids: Iterable[str] | None = None
    ) -> list[ResolvedWindow]:
        """
        Get the windows active on a weekday with their concrete ranges.

        Args:
            day: Weekday, 0 = Sunday ... 6 = Saturday
            window_ids: Optional restriction to these window ids

        Returns:
            ResolvedWindow list sorted by ascending priority (lower first),
            ties kept in registration order
        """
        allowed = set(window_ids) if window_ids is not None else None
        resolved = []

        for window in self._windows:
            if allowed is not None and window.id not in allowed:
                continue
            entry = window.schedule_for(day)
            if entry is None or not entry.ranges:
                continue
            ranges = tuple(sorted(entry.ranges, key=lambda r: r.start_minutes))
            resolved.append(
                ResolvedWindow(
                    window_id=window.id,
                    name=window.name,
                    priority=window.priority,
                    ranges=ranges,
                )
            )

        resolved.sort(key=lambda w: w.priority)
        return resolved

    def __len__(self) -> int:
        return len(self._windows)
