from __future__ import annotations

from datetime import date, datetime, time

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


class InvalidDate(ValueError):
    pass


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def coerce_date(value: date | datetime | str) -> date:
    """Return the calendar day for a date, datetime or ``YYYY-MM-DD`` string."""

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        candidate = value.strip()
        try:
            return date.fromisoformat(candidate[:10])
        except ValueError as exc:
            raise InvalidDate(f"Unsupported date value: {value!r}") from exc

    raise InvalidDate(f"Unsupported date value: {value!r}")


def format_storage_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def format_short_date(value: date) -> str:
    """Day/month/two-digit year without zero padding, e.g. ``5/3/24``."""

    return f"{value.day}/{value.month}/{value:%y}"


def days_since(value: date, *, now: datetime | None = None) -> int:
    """Whole days elapsed between midnight of ``value`` and ``now``; 0 means today."""

    reference = now or datetime.now()
    delta = reference - datetime.combine(value, time.min)
    return delta.days


def _coerce_datetime(value: datetime | date | str) -> datetime:
    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, str):
        candidate = value.strip().replace(" ", "T", 1).removesuffix("Z")
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S.%f"):
                try:
                    return datetime.strptime(value, fmt)
                except ValueError:
                    continue

    raise ValueError(f"Unsupported datetime value: {value!r}")


def format_relative_time(value: datetime | date | str, *, now: datetime | None = None) -> str:
    reference = now or datetime.now()
    moment = _coerce_datetime(value)

    if isinstance(value, date) and not isinstance(value, datetime):
        days = (reference.date() - value).days
        if days <= 0:
            return "Today"
    else:
        total_seconds = int((reference - moment).total_seconds())

        if total_seconds < 60:
            return "just now"

        minutes = total_seconds // 60
        if minutes == 1:
            return "1 minute ago"
        if minutes < 60:
            return f"{minutes} minutes ago"

        hours = minutes // 60
        if hours == 1:
            return "1 hour ago"
        if hours < 24:
            return f"{hours} hours ago"

        days = hours // 24

    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"

    weeks = days // 7
    if weeks == 1:
        return "1 week ago"
    if weeks < 5:
        return f"{weeks} weeks ago"

    months = days // 30
    if months == 1:
        return "1 month ago"
    if months < 12:
        return f"{months} months ago"

    years = days // 365
    if years == 1:
        return "1 year ago"
    return f"{years} years ago"
