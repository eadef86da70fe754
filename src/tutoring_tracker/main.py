from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Sequence

from tutoring_tracker.config import settings as config_module
from tutoring_tracker.data import KID_PROFILES, PROGRESS_ENTRIES, Database, TableError, create_table
from tutoring_tracker.models import EntrySection, SearchFilters
from tutoring_tracker.services import (
    AccessGate,
    AdminControls,
    EntryStore,
    ProfileService,
    SharedSecretVerifier,
    TrackerError,
    build_student_stats,
    build_volunteer_stats,
    entries_in_period,
    export_filename,
    filter_entries,
    is_volunteer_inactive,
    paginate,
    search_profiles,
    to_delimited_text,
    write_export,
)
from tutoring_tracker.utils import coerce_date, format_relative_time

_LOGGER = logging.getLogger(__name__)


def _split_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tutor-log", description="Log and review tutoring sessions.")
    parser.add_argument("--limit", type=int, default=None, help="Number of recent entries to load.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List entries matching the filters.")
    list_parser.add_argument("--student", default="", help="Student name substring.")
    list_parser.add_argument("--class", dest="class_name", default="", help="Exact class label.")
    list_parser.add_argument("--volunteer", default="", help="Volunteer name.")
    list_parser.add_argument("--page", type=int, default=1)

    add_parser = subparsers.add_parser("add", help="Log one or more sections for a session.")
    add_parser.add_argument("--date", default=None, help="Session date (YYYY-MM-DD), defaults to today.")
    add_parser.add_argument("--volunteer", required=True)
    add_parser.add_argument(
        "--section",
        nargs=4,
        action="append",
        required=True,
        metavar=("STUDENTS", "CLASS", "TOPIC", "HOMEWORK"),
        help="Comma separated students, class, topic and homework. Repeat for more sections.",
    )

    report_parser = subparsers.add_parser("report", help="Progress report for one student.")
    report_parser.add_argument("student")

    volunteers_parser = subparsers.add_parser("volunteers", help="Volunteer leaderboard.")
    volunteers_parser.add_argument("--sort", choices=("sessions", "recent"), default="sessions")

    export_parser = subparsers.add_parser("export", help="Export entries as delimited text.")
    export_parser.add_argument("--date", default=None, help="Anchor date (YYYY-MM-DD), defaults to today.")
    export_parser.add_argument("--period", choices=("daily", "monthly"), default="daily")
    export_parser.add_argument("--student", default=None)
    export_parser.add_argument("--output", type=Path, default=None, help="Directory or file to write.")

    profiles_parser = subparsers.add_parser("profiles", help="Student contact profiles.")
    profiles_parser.add_argument("--search", default="")
    profiles_parser.add_argument("--class", dest="class_name", default="all")

    delete_parser = subparsers.add_parser("delete", help="Delete one entry (admin).")
    delete_parser.add_argument("entry_id")
    delete_parser.add_argument("--token", required=True)

    clear_parser = subparsers.add_parser("clear-before", help="Delete entries dated before a day (admin).")
    clear_parser.add_argument("cutoff", help="Entries before this date are removed; the date itself is kept.")
    clear_parser.add_argument("--token", required=True)
    clear_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")

    config_parser = subparsers.add_parser("config", help="Show or change saved preferences.")
    config_parser.add_argument("--fetch-limit", type=int, default=None, help="Entries loaded per command.")
    config_parser.add_argument("--delimiter", default=None, help="Single character separating exported fields.")
    config_parser.add_argument("--backend", choices=("sqlite", "rest"), default=None)
    config_parser.add_argument("--data-dir", default=None, help="Directory holding the database and preferences.")

    return parser


def _parse_day(value: str | None) -> date:
    return coerce_date(value) if value else date.today()


def _cmd_list(store: EntryStore, args: argparse.Namespace) -> int:
    filters = SearchFilters(student_name=args.student, class_name=args.class_name, volunteer_name=args.volunteer)
    page, total_pages = paginate(filter_entries(store.entries, filters), args.page)
    for entry in page:
        print(
            f"{entry.id}  {entry.date:%Y-%m-%d} {entry.day:<9}  {entry.volunteer_name or '-':<15}  "
            f"{entry.class_name:<8}  {', '.join(entry.kids_taught)}: {entry.topic_taught}"
        )
    print(f"Page {min(max(args.page, 1), max(total_pages, 1))} of {max(total_pages, 1)}")
    return 0


def _cmd_add(store: EntryStore, args: argparse.Namespace) -> int:
    sections = [
        EntrySection(kids_taught=_split_names(students), class_name=class_name, topic_taught=topic, homework=homework)
        for students, class_name, topic, homework in args.section
    ]
    result = store.submit_sections(_parse_day(args.date), args.volunteer, sections)
    print(f"{len(result.created)} progress entry(ies) logged.")
    for failure in result.failed:
        print(f"Section {failure.index + 1} failed: {failure.error}", file=sys.stderr)
    return 0 if result.ok else 1


def _cmd_report(store: EntryStore, args: argparse.Namespace) -> int:
    stats = build_student_stats(args.student, store.entries)
    print(f"Progress report: {stats.student_name}")
    print(f"  Total sessions: {stats.total_sessions}")
    print(f"  Volunteers: {stats.unique_volunteers}")
    print(f"  Topics covered: {stats.unique_topics}")
    if stats.last_session is not None:
        print(f"  Last session: {format_relative_time(stats.last_session)} ({stats.recent_activity} days)")
    for item in stats.volunteers:
        print(f"  - {item.name}: {item.sessions} session(s)")
    for item in stats.topics:
        print(f"  * {item.name}: {item.sessions} session(s)")
    for homework in stats.homework:
        print(f"  {homework.date:%Y-%m-%d} [{homework.topic}] {homework.homework}")
    return 0


def _cmd_volunteers(store: EntryStore, args: argparse.Namespace) -> int:
    entries = store.entries
    for item in build_volunteer_stats(entries, args.sort):
        flag = " (inactive)" if is_volunteer_inactive(item.name, entries) else ""
        print(f"{item.name:<20} {item.session_days:>4} day(s)  last {item.last_session_label}{flag}")
    return 0


def _cmd_export(store: EntryStore, args: argparse.Namespace) -> int:
    anchor = _parse_day(args.date)
    selected = entries_in_period(store.entries, anchor, args.period, args.student)
    if not selected:
        print("No progress entries found for the selected period.", file=sys.stderr)
        return 1

    text = to_delimited_text(selected, config_module.settings.export_delimiter, args.student)
    if args.output is None:
        sys.stdout.write(text)
        return 0

    target = args.output
    if target.is_dir():
        target = target / export_filename(anchor, args.period, args.student)
    write_export(target, text)
    print(f"{len(selected)} entries exported to {target}")
    return 0


def _cmd_profiles(service: ProfileService, args: argparse.Namespace) -> int:
    for profile in search_profiles(service.list_profiles(), args.search, args.class_name):
        marker = "" if profile.id else " (not saved)"
        print(f"{profile.name:<20} {profile.classname:<8} {profile.school:<20} {profile.phone}{marker}")
    return 0


def _admin(store: EntryStore, token: str) -> AdminControls:
    gate = AccessGate(SharedSecretVerifier(config_module.settings.admin_access_token))
    gate.unlock(token)
    return AdminControls(store, gate)


def _cmd_delete(store: EntryStore, args: argparse.Namespace) -> int:
    _admin(store, args.token).delete_entry(args.entry_id)
    print(f"Deleted entry {args.entry_id}")
    return 0


def _cmd_clear(store: EntryStore, args: argparse.Namespace) -> int:
    admin = _admin(store, args.token)
    cutoff = coerce_date(args.cutoff)
    if not args.yes:
        answer = input(f"Delete every entry dated before {cutoff:%Y-%m-%d}? This cannot be undone. [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Cancelled.")
            return 1
    removed = admin.clear_entries_before(cutoff)
    print(f"Removed {removed} entries dated before {cutoff:%Y-%m-%d}")
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    changes = {
        "fetch_limit": args.fetch_limit,
        "export_delimiter": args.delimiter,
        "storage_backend": args.backend,
        "app_data_dir": args.data_dir,
    }
    if any(value is not None for value in changes.values()):
        config_module.user_settings_store.update(**changes)
        config_module.refresh_settings_from_store()
        _LOGGER.info("Saved preferences to %s", config_module.user_settings_store.settings_file)

    settings = config_module.settings
    print(f"Data directory: {config_module.APP_DATA_DIR}")
    print(f"Storage backend: {settings.storage_backend}")
    print(f"Database: {settings.database_path}")
    print(f"Fetch limit: {settings.fetch_limit}")
    print(f"Export delimiter: {settings.export_delimiter!r}")
    return 0


COMMANDS = {
    "list": _cmd_list,
    "add": _cmd_add,
    "report": _cmd_report,
    "volunteers": _cmd_volunteers,
    "export": _cmd_export,
    "delete": _cmd_delete,
    "clear-before": _cmd_clear,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = config_module.settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "config":
            return _cmd_config(args)

        database = Database(settings.database_path) if settings.storage_backend == "sqlite" else None
        if database is not None:
            database.initialize()
        entries_table = create_table(settings, PROGRESS_ENTRIES, database=database)

        if args.command == "profiles":
            profiles_table = create_table(settings, KID_PROFILES, database=database)
            return _cmd_profiles(ProfileService(profiles_table, entries_table), args)

        store = EntryStore(entries_table, limit=args.limit or settings.fetch_limit)
        store.fetch_entries()
        return COMMANDS[args.command](store, args)
    except (TrackerError, TableError, ValueError) as exc:
        _LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
