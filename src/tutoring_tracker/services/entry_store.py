from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Sequence

from tutoring_tracker.data.tables import Table, TableError
from tutoring_tracker.models import EntrySection, ProgressEntry, fields_to_row
from tutoring_tracker.services.errors import LoadError, ValidationError, WriteError
from tutoring_tracker.services.names import NameRegistry
from tutoring_tracker.utils.time import coerce_date, format_storage_date

_LOGGER = logging.getLogger(__name__)

DEFAULT_FETCH_LIMIT = 100
ENTRY_ORDER = (("date", True), ("created_at", True))


def validate_entry(entry: ProgressEntry) -> None:
    missing: list[str] = []
    if not any(kid.strip() for kid in entry.kids_taught):
        missing.append("at least one student")
    if not entry.class_name.strip():
        missing.append("class")
    if not entry.topic_taught.strip():
        missing.append("topic")
    if not entry.volunteer_name.strip():
        missing.append("volunteer name")
    if missing:
        raise ValidationError("Missing required information: " + ", ".join(missing) + ".")


@dataclass(slots=True)
class SectionFailure:
    index: int
    section: EntrySection
    error: str


@dataclass(slots=True)
class SubmissionResult:
    created: list[ProgressEntry] = field(default_factory=list)
    failed: list[SectionFailure] = field(default_factory=list)
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


class EntryStore:
    """Local cache of the most recent progress entries over a remote table.

    The store is the only writer to the table. The cache is changed only after
    the corresponding remote call has succeeded.
    """

    def __init__(self, table: Table, *, limit: int = DEFAULT_FETCH_LIMIT) -> None:
        self._table = table
        self._limit = limit
        self._entries: list[ProgressEntry] = []
        self._disposed = False
        self.error: str | None = None
        self.loading = False

    @property
    def entries(self) -> list[ProgressEntry]:
        return list(self._entries)

    @property
    def limit(self) -> int:
        return self._limit

    def dispose(self) -> None:
        """Detach the store; results of calls still in flight are discarded."""

        self._disposed = True

    def fetch_entries(self, limit: int | None = None) -> list[ProgressEntry]:
        limit = self._limit if limit is None else limit
        self.loading = True
        try:
            rows = self._table.select(order_by=ENTRY_ORDER, limit=limit)
            entries = [ProgressEntry.from_row(row) for row in rows]
        except (TableError, KeyError, ValueError) as exc:
            _LOGGER.error("Error fetching entries: %s", exc)
            self.loading = False
            if not self._disposed:
                self.error = "Failed to load entries"
            raise LoadError("Failed to load progress entries") from exc

        if self._disposed:
            self.loading = False
            return entries

        self._limit = limit
        self._entries = entries
        self.error = None
        self.loading = False
        return self.entries

    def add_entry(self, entry: ProgressEntry) -> ProgressEntry:
        validate_entry(entry)

        try:
            stored = ProgressEntry.from_row(self._table.insert(entry.to_row()))
        except (TableError, KeyError, ValueError) as exc:
            _LOGGER.error("Error adding entry: %s", exc)
            raise WriteError("Failed to add progress entry") from exc

        _LOGGER.info("Added progress entry %s for %s", stored.id, ", ".join(stored.kids_taught))
        if not self._disposed:
            self._entries = [stored, *self._entries][: self._limit]
        return stored

    def update_entry(self, entry_id: str, **fields: Any) -> ProgressEntry:
        if not fields:
            raise ValidationError("No fields to update.")
        if "kids_taught" in fields and not any(kid.strip() for kid in fields["kids_taught"] or []):
            raise ValidationError("Kids taught cannot be empty.")
        for name in ("class_name", "topic_taught"):
            if name in fields and not (fields[name] or "").strip():
                raise ValidationError(f"{name.replace('_', ' ').capitalize()} cannot be empty.")

        try:
            row = fields_to_row(fields)
        except (KeyError, ValueError) as exc:
            raise ValidationError(str(exc)) from exc

        try:
            stored_row = self._table.update(entry_id, row)
        except TableError as exc:
            _LOGGER.error("Error updating entry %s: %s", entry_id, exc)
            raise WriteError("Failed to update progress entry") from exc

        if stored_row is None:
            _LOGGER.error("Error updating entry %s: no such entry", entry_id)
            raise WriteError(f"Progress entry {entry_id} does not exist")
        updated = ProgressEntry.from_row(stored_row)

        _LOGGER.info("Updated progress entry %s", entry_id)
        if not self._disposed:
            self._entries = [updated if entry.id == entry_id else entry for entry in self._entries]
        return updated

    def delete_entry(self, entry_id: str) -> None:
        try:
            self._table.delete(entry_id)
        except TableError as exc:
            _LOGGER.error("Error deleting entry %s: %s", entry_id, exc)
            raise WriteError("Failed to delete progress entry") from exc

        _LOGGER.info("Deleted progress entry %s", entry_id)
        if not self._disposed:
            self._entries = [entry for entry in self._entries if entry.id != entry_id]

    def clear_entries_before(self, cutoff: date | str) -> int:
        """Delete every entry dated strictly before ``cutoff``; the cutoff day is kept."""

        cutoff_day = coerce_date(cutoff)
        try:
            removed = self._table.delete_before("date", format_storage_date(cutoff_day))
        except TableError as exc:
            _LOGGER.error("Error clearing entries before %s: %s", cutoff_day, exc)
            raise WriteError("Failed to clear progress entries") from exc

        _LOGGER.info("Cleared %d progress entries dated before %s", removed, cutoff_day)
        if not self._disposed:
            self._entries = [entry for entry in self._entries if entry.date >= cutoff_day]
        return removed

    def submit_sections(
        self,
        entry_date: date,
        volunteer_name: str,
        sections: Sequence[EntrySection],
    ) -> SubmissionResult:
        """Create one entry per complete section and report each section's outcome.

        Sections already written stay committed when a later one fails.
        """

        volunteer = volunteer_name.strip()
        if not volunteer:
            raise ValidationError("Please enter the volunteer name.")

        complete = [(index, section) for index, section in enumerate(sections) if section.is_complete()]
        if not complete:
            raise ValidationError(
                "Please fill in at least one complete section with students, class, and topic."
            )

        volunteer = NameRegistry.from_entries(self._entries, attribute="volunteer_name").canonical(volunteer)
        students = self.student_registry()
        result = SubmissionResult(skipped=len(sections) - len(complete))

        pending = [
            (
                index,
                section,
                ProgressEntry(
                    date=entry_date,
                    volunteer_name=volunteer,
                    kids_taught=_dedupe(students.add(kid) for kid in section.kids_taught),
                    class_name=section.class_name.strip(),
                    topic_taught=section.topic_taught.strip(),
                    homework=section.homework.strip(),
                ),
            )
            for index, section in complete
        ]
        # Nothing is written unless every section to be written is valid.
        for _, _, entry in pending:
            validate_entry(entry)

        for index, section, entry in pending:
            try:
                result.created.append(self.add_entry(entry))
            except (WriteError, ValidationError) as exc:
                result.failed.append(SectionFailure(index=index, section=section, error=str(exc)))

        if result.failed:
            _LOGGER.warning(
                "%d of %d sections failed to save", len(result.failed), len(complete)
            )
        return result

    def student_registry(self) -> NameRegistry:
        return NameRegistry.from_entries(self._entries)

    def known_students(self) -> list[str]:
        return sorted(self.student_registry().names(), key=str.casefold)

    def known_classes(self) -> list[str]:
        return sorted({entry.class_name for entry in self._entries if entry.class_name})

    def known_volunteers(self) -> list[str]:
        registry = NameRegistry.from_entries(self._entries, attribute="volunteer_name")
        return sorted(registry.names(), key=str.casefold)


def _dedupe(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        key = name.casefold()
        if name and key not in seen:
            seen.add(key)
            result.append(name)
    return result
