from datetime import date

import pytest

from tutoring_tracker.models import ProgressEntry
from tutoring_tracker.services import entries_in_period, export_filename, to_delimited_text, write_export

HEADER = "Student Name,Date,Day,Volunteer Name,Class,Topic Taught,Homework"


def _entry(day, kids, topic="Fractions", homework="", volunteer="Sam", class_name="4th"):
    return ProgressEntry(
        date=day,
        kids_taught=list(kids),
        class_name=class_name,
        topic_taught=topic,
        homework=homework,
        volunteer_name=volunteer,
    )


def test_one_row_per_student():
    text = to_delimited_text([_entry(date(2024, 1, 1), ["Alice", "Bob"])])

    lines = text.splitlines()
    assert lines[0] == HEADER
    assert lines[1:] == [
        '"Alice","2024-01-01","Monday","Sam","4th","Fractions",""',
        '"Bob","2024-01-01","Monday","Sam","4th","Fractions",""',
    ]
    assert text.endswith("\n")


def test_groups_by_student_with_rows_in_date_order():
    entries = [
        _entry(date(2024, 1, 10), ["Bob", "Alice"], topic="Later"),
        _entry(date(2024, 1, 2), ["Alice"], topic="Earlier"),
    ]

    rows = to_delimited_text(entries).splitlines()[1:]

    assert [row.split(",")[0] for row in rows] == ['"Bob"', '"Alice"', '"Alice"']
    assert '"Earlier"' in rows[1]
    assert '"Later"' in rows[2]


def test_quotes_are_doubled_and_delimiter_is_configurable():
    entry = _entry(date(2024, 1, 1), ["Alice"], topic='The "tens" place', homework='Say "hi"', volunteer="")

    text = to_delimited_text([entry], delimiter=";")

    assert text.splitlines() == [
        HEADER.replace(",", ";"),
        '"Alice";"2024-01-01";"Monday";"";"4th";"The ""tens"" place";"Say ""hi"""',
    ]


@pytest.mark.parametrize("delimiter", ["", ";;", '"', "\n"])
def test_unusable_delimiter_is_rejected(delimiter):
    with pytest.raises(ValueError):
        to_delimited_text([_entry(date(2024, 1, 1), ["Alice"])], delimiter=delimiter)


def test_student_filter_restricts_rows():
    entries = [_entry(date(2024, 1, 1), ["Alice", "Bob"]), _entry(date(2024, 1, 2), ["Bob"])]

    rows = to_delimited_text(entries, student_filter="Bob").splitlines()[1:]

    assert len(rows) == 2
    assert all(row.startswith('"Bob"') for row in rows)
    assert to_delimited_text([], student_filter="Bob") == HEADER + "\n"


def test_entries_in_period():
    entries = [
        _entry(date(2024, 2, 1), ["Alice"]),
        _entry(date(2024, 2, 29), ["Bob"]),
        _entry(date(2024, 3, 1), ["Alice"]),
    ]

    assert len(entries_in_period(entries, date(2024, 2, 29), "daily")) == 1
    assert len(entries_in_period(entries, date(2024, 2, 10), "monthly")) == 2
    assert len(entries_in_period(entries, date(2024, 2, 10), "monthly", "Alice")) == 1

    with pytest.raises(ValueError):
        entries_in_period(entries, date(2024, 2, 10), "weekly")


def test_export_filename():
    anchor = date(2024, 3, 7)

    assert export_filename(anchor) == "progress_entries_2024-03-07.csv"
    assert export_filename(anchor, "monthly") == "progress_entries_2024-03.csv"
    assert export_filename(anchor, "daily", "Mary  Jane") == "Mary_Jane_progress_2024-03-07.csv"


def test_write_export(tmp_path):
    target = write_export(tmp_path / "out" / "export.csv", HEADER + "\n")

    assert target.read_text(encoding="utf-8") == HEADER + "\n"
