from .kid_profile import KidProfile
from .progress_entry import EntrySection, ProgressEntry, SearchFilters, fields_to_row
from .stats import HomeworkItem, NameCount, StudentStats, VolunteerStats

__all__ = [
    "EntrySection",
    "HomeworkItem",
    "KidProfile",
    "NameCount",
    "ProgressEntry",
    "SearchFilters",
    "StudentStats",
    "VolunteerStats",
    "fields_to_row",
]
