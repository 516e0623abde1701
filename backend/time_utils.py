"""
Time utilities for the Task Tracker application.

This module provides a single source of truth for time operations,
so timestamps and "today" are computed the same way everywhere.
"""

from datetime import date, datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time.
    Single source of truth for "now" throughout the application.

    Returns:
        timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar date in UTC."""
    return utc_now().date()


def is_overdue(due_date: Optional[date], status: str, today: Optional[date] = None) -> bool:
    """
    Check if a task is overdue.

    A task is overdue if it has a due date strictly before today and is
    not completed. Due dates carry no time component, so a task due today
    is not overdue yet.

    Args:
        due_date: The task's due date
        status: The task's status value
        today: Reference date (defaults to the current UTC date)

    Returns:
        True if task is overdue, False otherwise
    """
    if due_date is None or status == "completed":
        return False
    return due_date < (today or utc_today())


def expiry_from_now(minutes: int) -> datetime:
    """
    Calculate an absolute expiry timestamp.

    Args:
        minutes: Lifetime in minutes

    Returns:
        timezone-aware datetime in UTC
    """
    return utc_now() + timedelta(minutes=minutes)
