"""
utils/dates.py — Date formatting and derived task status.

All functions accept a date, a datetime or an ISO string, and take an
optional `now` so callers (and tests) can pin the current moment.
Relative labels use calendar-day differences; overdue/due-soon compare
against the exact moment.

Stored values that are not ISO dates are logged and treated as absent, so
one bad record never breaks a list. Validators parse with strict=True.
"""

import logging
from datetime import date, datetime, timedelta

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = '%b %d, %Y'
SHORT_PATTERN = '%b %d'


def _naive(value):
    """Drop tzinfo after converting aware datetimes to local time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_date(value, strict=False):
    """Parse a date-ish value into a naive datetime, or None when absent.

    Unparseable input raises ValueError with strict=True, otherwise it is
    logged and returns None.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return _naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return _naive(datetime.fromisoformat(text))
    except ValueError:
        if strict:
            raise
        logger.warning("Ignoring unparseable date %r", value)
        return None


def _now(now=None):
    return _naive(now) if now is not None else datetime.now()


def days_between(start, end):
    """Calendar days from `start` to `end` (time of day ignored); None if either is absent."""
    start, end = parse_date(start), parse_date(end)
    if start is None or end is None:
        return None
    return (end.date() - start.date()).days


def format_date(value, pattern=DEFAULT_PATTERN):
    """Render a date with a strftime pattern; '' for absent input."""
    parsed = parse_date(value)
    if parsed is None:
        return ''
    return parsed.strftime(pattern)


def format_relative_date(value, now=None):
    """Today / Tomorrow / Yesterday / In N days / N days ago, else 'Mon DD'."""
    parsed = parse_date(value)
    if parsed is None:
        return ''
    diff = days_between(_now(now), parsed)

    if diff == 0:
        return 'Today'
    if diff == 1:
        return 'Tomorrow'
    if diff == -1:
        return 'Yesterday'
    if 0 < diff <= 7:
        return f'In {diff} days'
    if -7 <= diff < 0:
        return f'{abs(diff)} days ago'
    return format_date(parsed, SHORT_PATTERN)


def is_overdue(value, now=None):
    """True iff the date is strictly before the current moment."""
    parsed = parse_date(value)
    if parsed is None:
        return False
    return parsed < _now(now)


def is_due_soon(value, threshold_days=3, now=None):
    """True iff now < date < now + threshold_days."""
    parsed = parse_date(value)
    if parsed is None:
        return False
    current = _now(now)
    return current < parsed < current + timedelta(days=threshold_days)


# ========================================
# Task status
# ========================================

def task_due_tags(task, now=None):
    """Derived display tags layered on top of the task status."""
    if task.is_completed:
        return []
    if is_overdue(task.due_date, now=now):
        return ['overdue']
    if is_due_soon(task.due_date, now=now):
        return ['due-soon']
    return []


def task_display_status(task, now=None):
    """Status shown in lists and boards.

    An explicit status wins outright. Records without one fall back to
    completed > overdue > due-soon > pending.
    """
    if task.status:
        return task.status
    if task.completed:
        return 'completed'
    tags = task_due_tags(task, now=now)
    return tags[0] if tags else 'pending'


def task_sort_key(task, now=None):
    """Completed last, overdue first, then ascending due date."""
    due = parse_date(task.due_date) or datetime.max
    return (task.is_completed, not is_overdue(task.due_date, now=now), due)


def sort_tasks(tasks, now=None):
    current = _now(now)
    return sorted(tasks, key=lambda t: task_sort_key(t, now=current))


def in_month(value, month, year):
    parsed = parse_date(value)
    return parsed is not None and parsed.month == month and parsed.year == year
