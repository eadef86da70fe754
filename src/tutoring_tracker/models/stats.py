from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from tutoring_tracker.utils.time import format_short_date


@dataclass(slots=True, frozen=True)
class NameCount:
    name: str
    sessions: int


@dataclass(slots=True, frozen=True)
class HomeworkItem:
    date: date
    homework: str
    volunteer: str
    topic: str


@dataclass(slots=True)
class StudentStats:
    student_name: str
    total_sessions: int = 0
    unique_volunteers: int = 0
    unique_topics: int = 0
    volunteers: list[NameCount] = field(default_factory=list)
    topics: list[NameCount] = field(default_factory=list)
    homework: list[HomeworkItem] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    recent_activity: int = 0
    first_session: Optional[date] = None
    last_session: Optional[date] = None


@dataclass(slots=True, frozen=True)
class VolunteerStats:
    name: str
    session_days: int
    last_session: date

    @property
    def last_session_label(self) -> str:
        return format_short_date(self.last_session)
