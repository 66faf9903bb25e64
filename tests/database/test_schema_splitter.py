from __future__ import annotations

from pathlib import Path

from attendance_tracker.database.bootstrap import _strip_create_db_and_use, iter_sql_statements

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splits_on_top_level_semicolons():
    sql = "CREATE TABLE a (x INT);\n\nCREATE TABLE b (y INT);  "
    assert list(iter_sql_statements(sql)) == ["CREATE TABLE a (x INT)", "CREATE TABLE b (y INT)"]


def test_semicolons_inside_quotes_are_kept():
    sql = "INSERT INTO t VALUES ('a;b', \"c;d\");\nSELECT `odd;name` FROM t"
    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b', \"c;d\")",
        "SELECT `odd;name` FROM t",
    ]


def test_escaped_quote_does_not_end_string():
    sql = "INSERT INTO t VALUES ('it\\'s; fine');"
    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('it\\'s; fine')"]


def test_line_comments_are_dropped():
    sql = "-- header; with semicolon\nCREATE TABLE a (x INT); -- trailing\n--\nSELECT 1 - -1;"
    assert list(iter_sql_statements(sql)) == ["CREATE TABLE a (x INT)", "SELECT 1 - -1"]


def test_bundled_schema_creates_every_table():
    sql = _strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))
    statements = list(iter_sql_statements(sql))

    assert all(s.startswith("CREATE TABLE IF NOT EXISTS") for s in statements)
    names = [s.split()[5] for s in statements]
    assert names == [
        "attendance_events",
        "attendance_photos",
        "attendance_audio",
        "attendance_calendars",
        "attendance_statistics",
    ]
