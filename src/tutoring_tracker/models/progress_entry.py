from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional

from tutoring_tracker.utils.time import coerce_date, format_storage_date, weekday_name

# Attribute name -> persisted column name.
ENTRY_COLUMN_MAP: dict[str, str] = {
    "id": "id",
    "date": "date",
    "volunteer_name": "volunteer_name",
    "kids_taught": "kids_taught",
    "class_name": "class",
    "topic_taught": "topic_taught",
    "homework": "homework",
    "created_at": "created_at",
    "updated_at": "updated_at",
}

EDITABLE_FIELDS = frozenset({"date", "volunteer_name", "kids_taught", "class_name", "topic_taught", "homework"})


@dataclass(slots=True)
class ProgressEntry:
    date: date
    kids_taught: list[str]
    class_name: str
    topic_taught: str
    volunteer_name: str = ""
    homework: str = ""
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def day(self) -> str:
        return weekday_name(self.date)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProgressEntry":
        return cls(
            id=row.get("id"),
            date=coerce_date(row["date"]),
            volunteer_name=row.get("volunteer_name") or "",
            kids_taught=list(row.get("kids_taught") or []),
            class_name=row.get("class") or "",
            topic_taught=row.get("topic_taught") or "",
            homework=row.get("homework") or "",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_row(self) -> dict[str, Any]:
        """Insert payload; identifiers and timestamps are assigned by storage."""

        return {
            "date": format_storage_date(self.date),
            "day": self.day,
            "volunteer_name": self.volunteer_name or "",
            "kids_taught": list(self.kids_taught),
            "class": self.class_name,
            "topic_taught": self.topic_taught,
            "homework": self.homework or "",
        }


def fields_to_row(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Map a partial attribute update onto persisted columns.

    A ``date`` change always carries the recomputed ``day`` with it.
    """

    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise KeyError(f"Unknown entry fields: {', '.join(sorted(unknown))}")

    row: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "date":
            day_value = coerce_date(value)
            row["date"] = format_storage_date(day_value)
            row["day"] = weekday_name(day_value)
        elif name == "kids_taught":
            row["kids_taught"] = list(value or [])
        elif name in ("volunteer_name", "homework"):
            row[ENTRY_COLUMN_MAP[name]] = value or ""
        else:
            row[ENTRY_COLUMN_MAP[name]] = value
    return row


@dataclass(slots=True)
class EntrySection:
    """One class/topic block of a multi-section submission."""

    kids_taught: list[str] = field(default_factory=list)
    class_name: str = ""
    topic_taught: str = ""
    homework: str = ""

    def has_students(self) -> bool:
        return any(kid.strip() for kid in self.kids_taught)

    def is_blank(self) -> bool:
        return not (self.has_students() or self.class_name.strip() or self.topic_taught.strip() or self.homework.strip())

    def is_complete(self) -> bool:
        return self.has_students() and bool(self.class_name.strip()) and bool(self.topic_taught.strip())


@dataclass(slots=True, frozen=True)
class SearchFilters:
    student_name: str = ""
    class_name: str = ""
    volunteer_name: str = ""

    def is_empty(self) -> bool:
        return not (self.student_name.strip() or self.class_name or self.volunteer_name)
