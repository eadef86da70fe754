from .access import AccessGate, AdminControls, SharedSecretVerifier, TokenVerifier
from .entry_store import EntryStore, SectionFailure, SubmissionResult, validate_entry
from .errors import AccessDenied, LoadError, TrackerError, ValidationError, WriteError
from .export import entries_in_period, export_filename, to_delimited_text, write_export
from .filters import combine, entries_for_student, filter_entries, matching_students, paginate
from .names import NameRegistry, normalize
from .profiles import ProfileService, count_with_contacts, search_profiles
from .stats import (
    INACTIVITY_THRESHOLD_DAYS,
    build_student_stats,
    build_volunteer_stats,
    inactive_volunteers,
    is_volunteer_inactive,
)

__all__ = [
    "AccessDenied",
    "AccessGate",
    "AdminControls",
    "EntryStore",
    "INACTIVITY_THRESHOLD_DAYS",
    "LoadError",
    "NameRegistry",
    "ProfileService",
    "SectionFailure",
    "SharedSecretVerifier",
    "SubmissionResult",
    "TokenVerifier",
    "TrackerError",
    "ValidationError",
    "WriteError",
    "build_student_stats",
    "build_volunteer_stats",
    "combine",
    "count_with_contacts",
    "entries_for_student",
    "entries_in_period",
    "export_filename",
    "filter_entries",
    "inactive_volunteers",
    "is_volunteer_inactive",
    "matching_students",
    "normalize",
    "paginate",
    "search_profiles",
    "to_delimited_text",
    "validate_entry",
    "write_export",
]
