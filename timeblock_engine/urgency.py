"""
Urgency - Rule-based urgency scoring and schedulability checks.

Urgency is a 0-100 score (higher is more urgent). Hosts normally supply it on
the task; these rules derive one when they don't.
"""

import math
from datetime import datetime

from .models import Task

HOURS_PER_WEEK = 168


def calculate_task_urgency(task: Task, now: datetime) -> int:
    """
    Score how urgent a task is.

    Factors:
    - Time until due (log scale over one week: 24h ~ 37, 1 week ~ 0)
    - Priority (1 adds ~27, 4 adds ~7)
    - Duration vs. remaining time (up to 15 when it needs most of it)
    - Number of split chunks (up to 5)

    Returns:
        Integer urgency 0-100; 100 when overdue, 0 without a due date
    """
    if not task.due_date:
        return 0

    hours_remaining = max(0.0, (task.due_date - now).total_seconds() / 3600)
    if hours_remaining <= 0:
        return 100

    urgency = 100 - (math.log(hours_remaining + 1) / math.log(HOURS_PER_WEEK)) * 100

    # Priority 1 (highest) adds the most
    urgency += (5 - task.priority) * 6.67

    if task.estimated_duration:
        time_ratio = (task.estimated_duration / 60) / hours_remaining
        if time_ratio > 0.5:
            urgency += min(15, time_ratio * 15)

    if task.split_up_block and task.estimated_duration:
        blocks_needed = math.ceil(task.estimated_duration / task.split_up_block)
        urgency += min(5, blocks_needed)

    return max(0, min(100, round(urgency)))


def is_task_schedulable(task: Task) -> bool:
    """A task can be auto-scheduled if it has a due date and duration, is open, and opts in."""
    if not task.due_date or not task.estimated_duration:
        return False
    if task.completed:
        return False
    return task.auto_schedule
