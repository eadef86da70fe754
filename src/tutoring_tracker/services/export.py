from __future__ import annotations

import calendar
import csv
import io
import re
from datetime import date
from pathlib import Path
from typing import Iterable

from tutoring_tracker.models import ProgressEntry
from tutoring_tracker.utils.time import format_storage_date

EXPORT_HEADER = (
    "Student Name",
    "Date",
    "Day",
    "Volunteer Name",
    "Class",
    "Topic Taught",
    "Homework",
)

PERIOD_DAILY = "daily"
PERIOD_MONTHLY = "monthly"


def check_delimiter(delimiter: str) -> str:
    """Return ``delimiter`` if it can separate fields, else raise ``ValueError``."""

    if not isinstance(delimiter, str) or len(delimiter) != 1 or delimiter in '"\r\n':
        raise ValueError(f"Export delimiter must be a single character, got {delimiter!r}")
    return delimiter


def to_delimited_text(
    entries: Iterable[ProgressEntry],
    delimiter: str = ",",
    student_filter: str | None = None,
) -> str:
    """Serialize ``entries`` as one row per (student, entry), grouped by student.

    Groups appear in first-seen order and rows within a group run oldest first.
    Every data field is quoted; embedded quotes are doubled.
    """

    check_delimiter(delimiter)
    groups: dict[str, list[ProgressEntry]] = {}
    for entry in entries:
        for student in entry.kids_taught:
            if student_filter and student != student_filter:
                continue
            groups.setdefault(student, []).append(entry)

    buffer = io.StringIO()
    buffer.write(delimiter.join(EXPORT_HEADER) + "\n")

    writer = csv.writer(buffer, delimiter=delimiter, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for student, student_entries in groups.items():
        for entry in sorted(student_entries, key=lambda item: item.date):
            writer.writerow(
                [
                    student,
                    format_storage_date(entry.date),
                    entry.day,
                    entry.volunteer_name or "",
                    entry.class_name,
                    entry.topic_taught,
                    entry.homework or "",
                ]
            )

    return buffer.getvalue()


def period_bounds(anchor: date, period: str) -> tuple[date, date]:
    if period == PERIOD_DAILY:
        return anchor, anchor
    if period == PERIOD_MONTHLY:
        last_day = calendar.monthrange(anchor.year, anchor.month)[1]
        return anchor.replace(day=1), anchor.replace(day=last_day)
    raise ValueError(f"Unknown export period: {period!r}")


def entries_in_period(
    entries: Iterable[ProgressEntry],
    anchor: date,
    period: str = PERIOD_DAILY,
    student_filter: str | None = None,
) -> list[ProgressEntry]:
    start, end = period_bounds(anchor, period)
    selected = [entry for entry in entries if start <= entry.date <= end]
    if student_filter:
        selected = [entry for entry in selected if student_filter in entry.kids_taught]
    return selected


def export_filename(anchor: date, period: str = PERIOD_DAILY, student: str | None = None) -> str:
    period_bounds(anchor, period)
    stamp = anchor.strftime("%Y-%m-%d") if period == PERIOD_DAILY else anchor.strftime("%Y-%m")
    if student:
        slug = re.sub(r"\s+", "_", student.strip())
        return f"{slug}_progress_{stamp}.csv"
    return f"progress_entries_{stamp}.csv"


def write_export(path: Path, text: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8", newline="")
    return path
