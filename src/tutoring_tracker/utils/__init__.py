from .time import (
    InvalidDate,
    WEEKDAY_NAMES,
    coerce_date,
    days_since,
    format_relative_time,
    format_short_date,
    format_storage_date,
    weekday_name,
)

__all__ = [
    "WEEKDAY_NAMES",
    "InvalidDate",
    "coerce_date",
    "days_since",
    "format_relative_time",
    "format_short_date",
    "format_storage_date",
    "weekday_name",
]
