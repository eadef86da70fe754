from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable

from tutoring_tracker.models import HomeworkItem, NameCount, ProgressEntry, StudentStats, VolunteerStats
from tutoring_tracker.services.names import NameRegistry
from tutoring_tracker.utils.time import days_since

INACTIVITY_THRESHOLD_DAYS = 14

SORT_BY_SESSIONS = "sessions"
SORT_BY_RECENT = "recent"


def _ranked(counter: Counter) -> list[NameCount]:
    # Counter keeps first-seen order, and sorted() is stable for equal counts.
    ranked = sorted(counter.items(), key=lambda item: item[1], reverse=True)
    return [NameCount(name=name, sessions=count) for name, count in ranked]


def build_student_stats(
    student_name: str,
    entries: Iterable[ProgressEntry],
    *,
    now: datetime | None = None,
) -> StudentStats:
    key = student_name.strip().casefold()
    selected = [entry for entry in entries if any(kid.casefold() == key for kid in entry.kids_taught)]

    stats = StudentStats(student_name=student_name)
    if not selected:
        return stats

    volunteer_counts: Counter = Counter()
    topic_counts: Counter = Counter()
    classes: dict[str, None] = {}
    for entry in selected:
        if entry.volunteer_name:
            volunteer_counts[entry.volunteer_name] += 1
        topic_counts[entry.topic_taught] += 1
        if entry.class_name:
            classes.setdefault(entry.class_name, None)

    homework = [
        HomeworkItem(
            date=entry.date,
            homework=entry.homework,
            volunteer=entry.volunteer_name,
            topic=entry.topic_taught,
        )
        for entry in selected
        if entry.homework and entry.homework.strip()
    ]
    homework.sort(key=lambda item: item.date, reverse=True)

    dates = [entry.date for entry in selected]

    stats.total_sessions = len(selected)
    stats.unique_volunteers = len(volunteer_counts)
    stats.unique_topics = len(topic_counts)
    stats.volunteers = _ranked(volunteer_counts)
    stats.topics = _ranked(topic_counts)
    stats.homework = homework
    stats.classes = list(classes)
    stats.first_session = min(dates)
    stats.last_session = max(dates)
    stats.recent_activity = days_since(stats.last_session, now=now)
    return stats


def _latest_session(volunteer_name: str, entries: Iterable[ProgressEntry]) -> date | None:
    key = volunteer_name.strip().casefold()
    dates = [entry.date for entry in entries if entry.volunteer_name.strip().casefold() == key]
    return max(dates) if dates else None


def is_volunteer_inactive(
    volunteer_name: str,
    entries: Iterable[ProgressEntry],
    threshold_days: int = INACTIVITY_THRESHOLD_DAYS,
    *,
    now: datetime | None = None,
) -> bool:
    """True when the volunteer has no entry on or after ``threshold_days`` ago.

    A session exactly ``threshold_days`` before today still counts as active.
    """

    latest = _latest_session(volunteer_name, entries)
    if latest is None:
        return True
    today = (now or datetime.now()).date()
    return latest < today - timedelta(days=threshold_days)


def build_volunteer_stats(
    entries: Iterable[ProgressEntry],
    sort_key: str = SORT_BY_SESSIONS,
) -> list[VolunteerStats]:
    if sort_key not in (SORT_BY_SESSIONS, SORT_BY_RECENT):
        raise ValueError(f"Unknown sort key: {sort_key!r}")

    registry = NameRegistry()
    days_by_volunteer: dict[str, set[date]] = {}
    for entry in entries:
        if not entry.volunteer_name.strip():
            continue
        name = registry.add(entry.volunteer_name)
        days_by_volunteer.setdefault(name, set()).add(entry.date)

    stats = [
        VolunteerStats(name=name, session_days=len(days), last_session=max(days))
        for name, days in days_by_volunteer.items()
    ]

    if sort_key == SORT_BY_RECENT:
        return sorted(stats, key=lambda item: item.last_session, reverse=True)
    return sorted(stats, key=lambda item: item.session_days, reverse=True)


def inactive_volunteers(
    entries: Iterable[ProgressEntry],
    threshold_days: int = INACTIVITY_THRESHOLD_DAYS,
    *,
    now: datetime | None = None,
) -> list[str]:
    """Canonical names of every known volunteer that has gone inactive."""

    entries = list(entries)
    registry = NameRegistry(entry.volunteer_name for entry in entries)
    return [
        name
        for name in registry
        if is_volunteer_inactive(name, entries, threshold_days, now=now)
    ]
