"""
Date Classifier: buckets a due date relative to "today".

Все сравнения по календарным дням, время суток отбрасывается.
Корзины пересекаются (tomorrow обычно входит и в this-week): фильтр
применяется по одной корзине за раз, это не разбиение.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta


class DateBucket(str, enum.Enum):
    """Due-date filter ids."""

    OVERDUE = "overdue"
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEK = "this-week"
    UPCOMING = "upcoming"
    NO_DATE = "no-date"


# Precedence used by classify(): the first matching bucket wins, otherwise upcoming
_CLASSIFY_ORDER = (
    DateBucket.OVERDUE,
    DateBucket.TODAY,
    DateBucket.TOMORROW,
    DateBucket.THIS_WEEK,
)


@dataclass(frozen=True)
class DueLabel:
    """Short presentation label for a due date."""

    text: str
    css_class: str


def as_day(value: date | datetime | None) -> date | None:
    """Strip time of day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def end_of_week(today: date) -> date:
    """
    Last day of the current week (Sunday).

    Weekday numbering starts at Sunday = 0, so on a Sunday the week
    runs to the next Sunday.
    """
    weekday = today.isoweekday() % 7
    return today + timedelta(days=7 - weekday)


def matches_bucket(bucket: DateBucket, due: date | datetime | None, today: date) -> bool:
    """Check a due date against a single bucket."""
    due = as_day(due)
    if bucket == DateBucket.NO_DATE:
        return due is None
    if due is None:
        return False

    if bucket == DateBucket.OVERDUE:
        return due < today
    if bucket == DateBucket.TODAY:
        return due == today
    if bucket == DateBucket.TOMORROW:
        return due == today + timedelta(days=1)
    if bucket == DateBucket.THIS_WEEK:
        return today <= due <= end_of_week(today)
    if bucket == DateBucket.UPCOMING:
        return due > today
    raise ValueError(f"Unknown date bucket: {bucket}")


def classify(due: date | datetime | None, today: date) -> DateBucket:
    """Most specific bucket for a due date (presentation only)."""
    if as_day(due) is None:
        return DateBucket.NO_DATE
    for bucket in _CLASSIFY_ORDER:
        if matches_bucket(bucket, due, today):
            return bucket
    # Всё, что позже конца недели
    return DateBucket.UPCOMING


def due_label(due: date | datetime | None, today: date) -> DueLabel | None:
    """
    Label and style class for a due date.

    Примеры:
        вчера   -> DueLabel("Overdue", "overdue")
        сегодня -> DueLabel("Today", "today")
        15 июня -> DueLabel("Jun 15", "upcoming")
    """
    due = as_day(due)
    if due is None:
        return None

    bucket = classify(due, today)
    if bucket == DateBucket.OVERDUE:
        return DueLabel("Overdue", "overdue")
    if bucket == DateBucket.TODAY:
        return DueLabel("Today", "today")
    if bucket == DateBucket.TOMORROW:
        return DueLabel("Tomorrow", "tomorrow")
    return DueLabel(f"{due:%b} {due.day}", bucket.value)
