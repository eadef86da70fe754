from __future__ import annotations

import math
from typing import Iterable, Sequence, TypeVar

from tutoring_tracker.models import ProgressEntry, SearchFilters

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10


def _matches(entry: ProgressEntry, filters: SearchFilters) -> bool:
    term = filters.student_name.strip().casefold()
    if term and not any(term in student.casefold() for student in entry.kids_taught):
        return False

    if filters.class_name and entry.class_name != filters.class_name:
        return False

    if filters.volunteer_name and entry.volunteer_name.casefold() != filters.volunteer_name.casefold():
        return False

    return True


def filter_entries(entries: Iterable[ProgressEntry], filters: SearchFilters) -> list[ProgressEntry]:
    """Return the entries matching every non-empty filter field, in input order."""

    return [entry for entry in entries if _matches(entry, filters)]


def combine(first: SearchFilters, second: SearchFilters) -> SearchFilters:
    """Merge two filters; non-empty fields of ``second`` take precedence."""

    return SearchFilters(
        student_name=second.student_name or first.student_name,
        class_name=second.class_name or first.class_name,
        volunteer_name=second.volunteer_name or first.volunteer_name,
    )


def matching_students(students: Iterable[str], term: str) -> list[str]:
    needle = term.strip().casefold()
    if not needle:
        return list(students)
    return [student for student in students if needle in student.casefold()]


def entries_for_student(entries: Iterable[ProgressEntry], student_name: str) -> list[ProgressEntry]:
    """Entries that taught ``student_name`` (case-insensitive), newest first."""

    key = student_name.strip().casefold()
    selected = [entry for entry in entries if any(kid.casefold() == key for kid in entry.kids_taught)]
    return sorted(selected, key=lambda entry: entry.date, reverse=True)


def paginate(items: Sequence[T], page: int, per_page: int = DEFAULT_PAGE_SIZE) -> tuple[list[T], int]:
    """Return the 1-based ``page`` of ``items`` and the total page count."""

    if per_page < 1:
        raise ValueError("per_page must be positive")
    total_pages = math.ceil(len(items) / per_page)
    page = min(max(page, 1), max(total_pages, 1))
    start = (page - 1) * per_page
    return list(items[start : start + per_page]), total_pages
