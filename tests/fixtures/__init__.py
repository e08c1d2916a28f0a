"""
Test fixtures for deterministic scheduling tests.

Everything is pinned to the week of Monday 2026-10-19 so results never depend
on the wall clock.
"""

from .calendar import MONDAY, at, make_block, make_task, make_window

__all__ = ["MONDAY", "at", "make_block", "make_task", "make_window"]
