from datetime import date

import pytest

from tutoring_tracker.data import Database, PROGRESS_ENTRIES, SqliteTable, TableError
from tutoring_tracker.models import EntrySection, ProgressEntry
from tutoring_tracker.services import EntryStore, LoadError, ValidationError, WriteError


def _make_table(tmp_path):
    database = Database(tmp_path / "progress.db")
    database.initialize()
    return SqliteTable(database, PROGRESS_ENTRIES)


def _entry(day, kids=("Alice",), volunteer="Sam", class_name="4th", topic="Fractions", homework=""):
    return ProgressEntry(
        date=day,
        kids_taught=list(kids),
        volunteer_name=volunteer,
        class_name=class_name,
        topic_taught=topic,
        homework=homework,
    )


class FlakyTable:
    """Delegates to a real table but fails chosen calls."""

    def __init__(self, table, *, fail_select=False, fail_insert_on=None, fail_delete=False):
        self._table = table
        self.name = table.name
        self.fail_select = fail_select
        self.fail_insert_on = set(fail_insert_on or ())
        self.fail_delete = fail_delete
        self.insert_calls = 0

    def select(self, **kwargs):
        if self.fail_select:
            raise TableError("connection refused")
        return self._table.select(**kwargs)

    def insert(self, row):
        self.insert_calls += 1
        if self.insert_calls in self.fail_insert_on:
            raise TableError("insert rejected")
        return self._table.insert(row)

    def update(self, row_id, values):
        return self._table.update(row_id, values)

    def delete(self, row_id):
        if self.fail_delete:
            raise TableError("delete rejected")
        self._table.delete(row_id)

    def delete_before(self, column, value):
        return self._table.delete_before(column, value)


def test_fetch_orders_by_date_then_creation(tmp_path):
    table = _make_table(tmp_path)
    store = EntryStore(table)

    store.add_entry(_entry(date(2024, 3, 1), topic="First"))
    store.add_entry(_entry(date(2024, 3, 5), topic="Newest day"))
    store.add_entry(_entry(date(2024, 3, 1), topic="Second"))

    fresh = EntryStore(table)
    entries = fresh.fetch_entries()

    assert [entry.topic_taught for entry in entries] == ["Newest day", "Second", "First"]
    assert fresh.error is None
    assert all(entry.id for entry in entries)


def test_fetch_respects_limit(tmp_path):
    table = _make_table(tmp_path)
    store = EntryStore(table)
    for day in range(1, 6):
        store.add_entry(_entry(date(2024, 4, day)))

    entries = store.fetch_entries(limit=3)

    assert [entry.date.day for entry in entries] == [5, 4, 3]
    assert store.limit == 3


def test_fetch_failure_keeps_entries_and_sets_error(tmp_path):
    table = FlakyTable(_make_table(tmp_path))
    store = EntryStore(table)
    store.add_entry(_entry(date(2024, 1, 2)))
    before = store.entries

    table.fail_select = True
    with pytest.raises(LoadError):
        store.fetch_entries()

    assert store.entries == before
    assert store.error == "Failed to load entries"

    table.fail_select = False
    store.fetch_entries()
    assert store.error is None


def test_add_entry_prepends_and_truncates_to_limit(tmp_path):
    store = EntryStore(_make_table(tmp_path))
    store.fetch_entries(limit=2)

    first = store.add_entry(_entry(date(2024, 5, 1), topic="A"))
    second = store.add_entry(_entry(date(2024, 5, 2), topic="B"))
    third = store.add_entry(_entry(date(2024, 5, 3), topic="C"))

    assert [entry.id for entry in store.entries] == [third.id, second.id]
    assert first.id not in {entry.id for entry in store.entries}
    assert third.day == "Friday"


def test_add_entry_validates_before_remote_call(tmp_path):
    table = FlakyTable(_make_table(tmp_path))
    store = EntryStore(table)

    with pytest.raises(ValidationError):
        store.add_entry(_entry(date(2024, 5, 1), kids=()))
    with pytest.raises(ValidationError):
        store.add_entry(_entry(date(2024, 5, 1), volunteer="  "))
    with pytest.raises(ValidationError):
        store.add_entry(_entry(date(2024, 5, 1), topic=""))

    assert table.insert_calls == 0
    assert store.entries == []


def test_add_entry_failure_leaves_cache_unchanged(tmp_path):
    table = FlakyTable(_make_table(tmp_path), fail_insert_on={2})
    store = EntryStore(table)
    store.add_entry(_entry(date(2024, 5, 1)))
    before = store.entries

    with pytest.raises(WriteError):
        store.add_entry(_entry(date(2024, 5, 2)))

    assert store.entries == before


def test_update_entry_recomputes_day_with_date(tmp_path):
    table = _make_table(tmp_path)
    store = EntryStore(table)
    created = store.add_entry(_entry(date(2024, 1, 1)))
    assert created.day == "Monday"

    updated = store.update_entry(created.id, date=date(2024, 1, 3), homework="Page 4")

    assert updated.day == "Wednesday"
    assert updated.homework == "Page 4"
    assert updated.topic_taught == "Fractions"
    assert store.entries[0] == updated

    stored = table.select()[0]
    assert stored["date"] == "2024-01-03"
    assert stored["day"] == "Wednesday"


def test_update_missing_entry_raises_and_keeps_cache(tmp_path):
    store = EntryStore(_make_table(tmp_path))
    store.add_entry(_entry(date(2024, 1, 1)))
    before = store.entries

    with pytest.raises(WriteError):
        store.update_entry("does-not-exist", topic_taught="Decimals")

    assert store.entries == before


def test_update_rejects_unknown_or_empty_fields(tmp_path):
    store = EntryStore(_make_table(tmp_path))
    created = store.add_entry(_entry(date(2024, 1, 1)))

    with pytest.raises(ValidationError):
        store.update_entry(created.id, day="Friday")
    with pytest.raises(ValidationError):
        store.update_entry(created.id, kids_taught=[])


def test_update_rejects_whitespace_only_required_fields(tmp_path):
    table = _make_table(tmp_path)
    store = EntryStore(table)
    created = store.add_entry(_entry(date(2024, 1, 1), kids=("Alice",), class_name="4th", topic="Fractions"))

    with pytest.raises(ValidationError):
        store.update_entry(created.id, kids_taught=["  ", ""])
    with pytest.raises(ValidationError):
        store.update_entry(created.id, class_name="   ")
    with pytest.raises(ValidationError):
        store.update_entry(created.id, topic_taught="\t")

    stored = EntryStore(table).fetch_entries()[0]
    assert stored.kids_taught == ["Alice"]
    assert stored.class_name == "4th"
    assert stored.topic_taught == "Fractions"
    assert store.entries == [created]


def test_delete_entry_removes_locally_and_remotely(tmp_path):
    table = _make_table(tmp_path)
    store = EntryStore(table)
    keep = store.add_entry(_entry(date(2024, 1, 1)))
    drop = store.add_entry(_entry(date(2024, 1, 2)))

    store.delete_entry(drop.id)

    assert [entry.id for entry in store.entries] == [keep.id]
    assert [row["id"] for row in table.select()] == [keep.id]


def test_delete_nonexistent_entry_is_a_no_op(tmp_path):
    store = EntryStore(_make_table(tmp_path))
    store.add_entry(_entry(date(2024, 1, 1)))
    before = store.entries

    store.delete_entry("missing-id")

    assert store.entries == before


def test_delete_failure_raises_write_error(tmp_path):
    table = FlakyTable(_make_table(tmp_path), fail_delete=True)
    store = EntryStore(table)
    created = store.add_entry(_entry(date(2024, 1, 1)))

    with pytest.raises(WriteError):
        store.delete_entry(created.id)

    assert [entry.id for entry in store.entries] == [created.id]


def test_clear_entries_before_keeps_cutoff_day(tmp_path):
    table = _make_table(tmp_path)
    store = EntryStore(table)
    store.add_entry(_entry(date(2024, 5, 31), topic="Old"))
    store.add_entry(_entry(date(2024, 6, 1), topic="Cutoff"))

    removed = store.clear_entries_before("2024-06-01")

    assert removed == 1
    assert [entry.topic_taught for entry in store.entries] == ["Cutoff"]
    assert [row["topic_taught"] for row in table.select()] == ["Cutoff"]


def test_submit_sections_normalizes_names_and_skips_blank_sections(tmp_path):
    store = EntryStore(_make_table(tmp_path))
    store.add_entry(_entry(date(2024, 2, 1), kids=("John",), volunteer="Sam"))

    result = store.submit_sections(
        date(2024, 2, 8),
        " sam ",
        [
            EntrySection(kids_taught=["john", "Mia", "MIA"], class_name="5th", topic_taught="Reading"),
            EntrySection(),
        ],
    )

    assert result.ok
    assert result.skipped == 1
    assert len(result.created) == 1
    created = result.created[0]
    assert created.kids_taught == ["John", "Mia"]
    assert created.volunteer_name == "Sam"
    assert created.day == "Thursday"


def test_submit_sections_skips_section_whose_students_are_blank(tmp_path):
    table = FlakyTable(_make_table(tmp_path))
    store = EntryStore(table)

    result = store.submit_sections(
        date(2024, 2, 8),
        "Sam",
        [
            EntrySection(kids_taught=["Alice"], class_name="4th", topic_taught="Fractions"),
            EntrySection(kids_taught=["   "], class_name="4th", topic_taught="Decimals"),
        ],
    )

    assert result.ok
    assert result.skipped == 1
    assert [entry.topic_taught for entry in result.created] == ["Fractions"]
    assert table.insert_calls == 1


def test_submit_sections_with_only_blank_students_writes_nothing(tmp_path):
    table = FlakyTable(_make_table(tmp_path))
    store = EntryStore(table)

    with pytest.raises(ValidationError):
        store.submit_sections(
            date(2024, 2, 8),
            "Sam",
            [EntrySection(kids_taught=["", "  "], class_name="4th", topic_taught="Decimals")],
        )

    assert table.insert_calls == 0
    assert table.select() == []


def test_submit_sections_reports_partial_failures(tmp_path):
    table = FlakyTable(_make_table(tmp_path), fail_insert_on={2})
    store = EntryStore(table)

    sections = [
        EntrySection(kids_taught=["Alice"], class_name="4th", topic_taught="Maths"),
        EntrySection(kids_taught=["Bob"], class_name="4th", topic_taught="Spelling"),
        EntrySection(kids_taught=["Cara"], class_name="5th", topic_taught="Science"),
    ]
    result = store.submit_sections(date(2024, 2, 8), "Sam", sections)

    assert not result.ok
    assert [entry.topic_taught for entry in result.created] == ["Maths", "Science"]
    assert [failure.index for failure in result.failed] == [1]
    assert len(store.entries) == 2


def test_submit_sections_requires_volunteer_and_complete_section(tmp_path):
    table = FlakyTable(_make_table(tmp_path))
    store = EntryStore(table)
    section = EntrySection(kids_taught=["Alice"], class_name="4th", topic_taught="Maths")

    with pytest.raises(ValidationError):
        store.submit_sections(date(2024, 2, 8), "", [section])
    with pytest.raises(ValidationError):
        store.submit_sections(date(2024, 2, 8), "Sam", [EntrySection(kids_taught=["Alice"], class_name="4th")])

    assert table.insert_calls == 0


def test_disposed_store_ignores_late_results(tmp_path):
    table = _make_table(tmp_path)
    store = EntryStore(table)
    store.add_entry(_entry(date(2024, 1, 1)))
    before = store.entries

    store.dispose()
    store.add_entry(_entry(date(2024, 1, 2)))
    store.fetch_entries()

    assert store.entries == before
    assert len(table.select()) == 2


def test_fetch_after_dispose_clears_loading(tmp_path):
    store = EntryStore(_make_table(tmp_path))
    store.dispose()

    store.fetch_entries()

    assert store.loading is False
    assert store.entries == []


def test_failed_fetch_after_dispose_clears_loading(tmp_path):
    store = EntryStore(FlakyTable(_make_table(tmp_path), fail_select=True))
    store.dispose()

    with pytest.raises(LoadError):
        store.fetch_entries()

    assert store.loading is False
    assert store.error is None


def test_known_names_are_canonical_and_sorted(tmp_path):
    store = EntryStore(_make_table(tmp_path))
    store.add_entry(_entry(date(2024, 1, 1), kids=("zoe", "Adam"), volunteer="sam", class_name="5th"))
    store.add_entry(_entry(date(2024, 1, 2), kids=("Zoe",), volunteer="Sam", class_name="4th"))

    assert store.known_students() == ["Adam", "Zoe"]
    assert store.known_volunteers() == ["Sam"]
    assert store.known_classes() == ["4th", "5th"]
