#!/usr/bin/env python3
"""Tests for context-sensitive table and column completion."""
import time
import unittest

from vsqlite.core.completion import (
    RULES, Suggestion, complete, current_fragment, filter_has_prefix, match_rule
)
from vsqlite.core.engine import SQLiteEngine
from vsqlite.core.errors import MetadataError


class FakeSchema:
    """Schema source backed by plain dicts."""

    def __init__(self, columns):
        self.columns = columns
        self.column_calls = []

    def table_names(self):
        return list(self.columns)

    def column_names(self, table):
        self.column_calls.append(table)
        if table not in self.columns:
            raise MetadataError(f"no such table: {table}")
        return list(self.columns[table])


class BrokenSchema:
    def table_names(self):
        raise MetadataError("database is locked")

    def column_names(self, table):
        raise MetadataError("database is locked")


def texts(suggestions):
    return [s.text for s in suggestions]


class CompletionRuleTests(unittest.TestCase):
    """One test per rule, plus ordering between overlapping rules."""

    def setUp(self):
        self.schema = FakeSchema({
            "users": ["id", "name", "email"],
            "orders": ["id", "user_id", "total"],
            "user_roles": ["user_id", "role"],
        })

    def test_rule_order(self):
        self.assertEqual([r.name for r in RULES], [
            "schema-arg", "describe-arg", "dotted-column", "select-from",
            "insert-into", "update-set", "update-table", "from-join",
        ])

    def test_select_from(self):
        result = complete("SELECT * FROM us", self.schema)
        self.assertEqual(result, [Suggestion("users", "table"), Suggestion("user_roles", "table")])

    def test_select_from_is_case_insensitive(self):
        self.assertEqual(texts(complete("select * from US", self.schema)), ["users", "user_roles"])

    def test_select_from_empty_prefix_lists_all(self):
        self.assertEqual(texts(complete("SELECT * FROM ", self.schema)),
                         ["users", "orders", "user_roles"])

    def test_insert_into(self):
        self.assertEqual(texts(complete("INSERT INTO o", self.schema)), ["orders"])

    def test_update_table(self):
        self.assertEqual(texts(complete("UPDATE u", self.schema)), ["users", "user_roles"])

    def test_update_set_columns(self):
        result = complete("UPDATE users SET na", self.schema)
        self.assertEqual(result, [Suggestion("name", "column")])

    def test_update_set_after_assignment(self):
        self.assertEqual(texts(complete("UPDATE users SET name = 'x', em", self.schema)), ["email"])

    def test_update_or_replace(self):
        self.assertEqual(texts(complete("UPDATE OR REPLACE users SET ", self.schema)),
                         ["id", "name", "email"])

    def test_update_set_value_may_contain_equals(self):
        self.assertEqual(texts(complete("UPDATE users SET name = a = b, em", self.schema)), ["email"])

    def test_long_update_without_fragment_returns_quickly(self):
        assignments = ", ".join(f"c{i} = {i}" for i in range(30))
        text = f"UPDATE users SET {assignments} WHERE id = ("
        started = time.perf_counter()
        self.assertEqual(complete(text, self.schema), [])
        self.assertLess(time.perf_counter() - started, 1.0)

    def test_long_update_completes_next_column(self):
        assignments = ", ".join(f"c{i} = {i}" for i in range(30))
        started = time.perf_counter()
        result = complete(f"UPDATE users SET {assignments}, na", self.schema)
        self.assertLess(time.perf_counter() - started, 1.0)
        self.assertEqual(texts(result), ["name"])

    def test_join(self):
        text = "SELECT u.id FROM users u JOIN or"
        self.assertEqual(match_rule(text)[0].name, "from-join")
        self.assertEqual(texts(complete(text, self.schema)), ["orders"])

    def test_dotted_column(self):
        self.assertEqual(texts(complete("users.n", self.schema)), ["name"])
        self.assertEqual(texts(complete("SELECT orders.", self.schema)), ["id", "user_id", "total"])

    def test_dotted_column_beats_select_from(self):
        result = complete("SELECT * FROM users.na", self.schema)
        self.assertEqual(match_rule("SELECT * FROM users.na")[0].name, "dotted-column")
        self.assertEqual(result, [Suggestion("name", "column")])

    def test_describe_argument(self):
        self.assertEqual(texts(complete("\\d us", self.schema)), ["users", "user_roles"])

    def test_describe_needs_a_started_name(self):
        self.assertEqual(complete("\\d ", self.schema), [])

    def test_schema_argument(self):
        self.assertEqual(texts(complete(".schema o", self.schema)), ["orders"])
        self.assertEqual(len(complete(".schema ", self.schema)), 3)

    def test_no_rule_matches(self):
        self.assertEqual(complete("SELECT 1", self.schema), [])
        self.assertEqual(complete("", self.schema), [])
        self.assertIsNone(match_rule("PRAGMA foo"))


class CompletionFailureTests(unittest.TestCase):
    """Lookup failures are never surfaced while typing."""

    def test_unknown_table_in_dotted_column(self):
        schema = FakeSchema({"users": ["id"]})
        self.assertEqual(complete("nosuch.x", schema), [])
        self.assertEqual(schema.column_calls, ["nosuch"])

    def test_schema_errors_give_empty_list(self):
        self.assertEqual(complete("SELECT * FROM ", BrokenSchema()), [])
        self.assertEqual(complete("users.", BrokenSchema()), [])


class CompletionWithSQLiteTests(unittest.TestCase):
    """The SQLite engine plugs in as a schema source."""

    def setUp(self):
        self.engine = SQLiteEngine(":memory:")
        self.engine.execute("CREATE TABLE items (id INTEGER PRIMARY KEY AUTOINCREMENT, label TEXT)")
        self.engine.execute("INSERT INTO items (label) VALUES ('a')")

    def tearDown(self):
        self.engine.close()

    def test_internal_tables_are_not_offered(self):
        self.assertEqual(texts(complete("SELECT * FROM ", self.engine)), ["items"])
        self.assertEqual(texts(complete("SELECT * FROM sq", self.engine)), [])

    def test_columns_from_engine(self):
        self.assertEqual(texts(complete("items.", self.engine)), ["id", "label"])


class HelperTests(unittest.TestCase):

    def test_filter_keeps_order(self):
        items = [Suggestion("Beta", "table"), Suggestion("bar", "table"), Suggestion("x", "table")]
        self.assertEqual(texts(filter_has_prefix(items, "B")), ["Beta", "bar"])
        self.assertEqual(len(filter_has_prefix(items, "")), 3)

    def test_current_fragment(self):
        self.assertEqual(current_fragment("SELECT * FROM us"), "us")
        self.assertEqual(current_fragment("users."), "")
        self.assertEqual(current_fragment("users.na"), "na")
        self.assertEqual(current_fragment(""), "")


if __name__ == "__main__":
    unittest.main()
