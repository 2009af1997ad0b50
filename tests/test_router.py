#!/usr/bin/env python3
"""End-to-end tests for the command router against an in-memory SQLite database."""
import io
import itertools
import json
import unittest

from vsqlite.core.engine import Engine, ResultSet, SQLiteEngine
from vsqlite.core.render import RenderMode
from vsqlite.core.router import CommandRouter
from vsqlite.core.session import Session


SCHEMA = [
    "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL DEFAULT 'anon', email TEXT UNIQUE)",
    "CREATE TABLE orders (id INTEGER, user_id INTEGER REFERENCES users(id), total REAL)",
    "CREATE INDEX idx_orders_user ON orders(user_id)",
    "CREATE VIEW big_orders AS SELECT * FROM orders WHERE total > 100",
    "INSERT INTO users (id, name, email) VALUES (1, 'alice', 'a@example.com')",
]


class RouterTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = SQLiteEngine(":memory:")
        for stmt in SCHEMA:
            self.engine.execute(stmt)
        self.session = Session(self.engine)
        self.out = io.StringIO()
        self.router = CommandRouter(self.session, self.out)

    def tearDown(self):
        self.session.close()

    def submit(self, line):
        """Submit one line and return what it printed."""
        self.out.seek(0)
        self.out.truncate(0)
        self.router.submit(line)
        return self.out.getvalue()


class HistoryRecordingTests(RouterTestCase):

    def test_blank_line_is_ignored(self):
        self.assertTrue(self.router.submit("   "))
        self.assertEqual(len(self.session.history), 0)
        self.assertEqual(self.out.getvalue(), "")

    def test_every_other_line_is_recorded_trimmed(self):
        lines = ["  SELECT 1;  ", "\\x", "SELEC oops", "\\d nosuch", ".schema", "exit"]
        for line in lines:
            self.router.submit(line)
        self.assertEqual(self.session.history.entries, [line.strip() for line in lines])

    def test_exit_ends_session(self):
        self.assertFalse(self.router.submit("exit"))
        self.assertTrue(self.router.submit("SELECT 1"))

    def test_submit_all_stops_at_exit(self):
        self.assertFalse(self.router.submit_all(["SELECT 1;", "exit", "SELECT 2;"]))
        self.assertEqual(self.session.history.entries, ["SELECT 1;", "exit"])


class ModeToggleTests(RouterTestCase):

    def test_expanded_toggle_messages(self):
        self.assertEqual(self.submit("\\x"), "Expanded display is now on\n")
        self.assertTrue(self.session.expanded)
        self.assertEqual(self.submit("\\x"), "Expanded display is now off\n")
        self.assertIs(self.session.mode, RenderMode.TABLE)

    def test_json_turns_expanded_off(self):
        self.submit("\\x")
        self.assertEqual(self.submit("\\j"), "JSON output is now on\n")
        self.assertTrue(self.session.json_mode)
        self.assertFalse(self.session.expanded)
        self.assertEqual(self.submit("\\x"), "Expanded display is now on\n")
        self.assertFalse(self.session.json_mode)

    def test_modes_never_both_on(self):
        for seq in itertools.product(["\\x", "\\j"], repeat=4):
            session = Session(self.engine)
            router = CommandRouter(session, io.StringIO())
            for cmd in seq:
                router.submit(cmd)
                self.assertFalse(session.expanded and session.json_mode, seq)

    def test_toggle_surrounded_by_whitespace(self):
        self.assertEqual(self.submit("  \\j  "), "JSON output is now on\n")


class StatementTests(RouterTestCase):

    def test_table_output(self):
        self.assertEqual(self.submit("SELECT 1 AS a, 'x' AS b;"), "a | b\n--+--\n1 | x\n")

    def test_json_output(self):
        self.submit("\\j")
        self.assertEqual(self.submit("SELECT 1 AS a, 'x' AS b;"),
                         '[\n  {\n    "a": 1,\n    "b": "x"\n  }\n]\n')

    def test_expanded_output(self):
        self.submit("\\x")
        text = self.submit("SELECT id, name FROM users")
        self.assertEqual(text.splitlines()[:3], [
            "-[ RECORD 1 ]" + "-" * 24,
            "id   | 1",
            "name | alice",
        ])

    def test_expanded_empty_result(self):
        self.submit("\\x")
        self.assertEqual(self.submit("SELECT * FROM orders"), "No rows found.\n")

    def test_json_from_table_rows(self):
        self.submit("\\j")
        data = json.loads(self.submit("SELECT id, email, NULL AS gone FROM users"))
        self.assertEqual(data, [{"id": 1, "email": "a@example.com", "gone": None}])

    def test_statement_without_rows_prints_nothing(self):
        self.assertEqual(self.submit("INSERT INTO orders VALUES (1, 1, 5.0)"), "")
        self.assertEqual(self.submit("SELECT count(*) AS n FROM orders"), "n\n-\n1\n")

    def test_failing_statement(self):
        text = self.submit("SELEC 1")
        self.assertTrue(text.startswith("Query failed: "), text)
        self.assertIs(self.session.mode, RenderMode.TABLE)

    def test_render_failure_is_reported(self):
        class Boom(Exception):
            pass

        def fetch():
            raise Boom("disk I/O error")

        class FailingEngine(Engine):
            def execute(self, sql):
                return ResultSet(["a"], fetch, (Boom,))

        router = CommandRouter(Session(FailingEngine(":memory:")), self.out)
        router.submit("SELECT a FROM t")
        self.assertEqual(self.out.getvalue(), "Error printing table: disk I/O error\n")

        self.out.seek(0)
        self.out.truncate(0)
        router.session.toggle_json()
        router.submit("SELECT a FROM t")
        self.assertEqual(self.out.getvalue(), "JSON output error: disk I/O error\n")


class DescribeCommandTests(RouterTestCase):

    def test_describe_table(self):
        text = self.submit("\\d users")
        self.assertIn('Table "users"', text)
        self.assertIn("Column | Type    | Collation | Nullable | Default", text)
        self.assertIn("name   | TEXT    |           | no       | 'anon'", text)
        self.assertIn("email  | TEXT    |           | yes      |", text)
        self.assertIn("UNIQUE CONSTRAINT (btree: email)", text)
        self.assertNotIn("Foreign Keys", text)

    def test_describe_with_index_and_foreign_key(self):
        text = self.submit("\\d orders;")
        self.assertIn("idx_orders_user", text)
        self.assertIn("(btree: user_id)", text)
        self.assertIn("Foreign Keys", text)
        self.assertIn("user_id | users    | id", text)

    def test_describe_unknown_table(self):
        self.assertEqual(self.submit("\\d nosuch"), "Schema error: no such table: nosuch\n")

    def test_describe_without_name(self):
        self.assertEqual(self.submit("\\d ;"), "Usage: \\d <table>\n")

    def test_list_relations(self):
        for cmd in ("\\d", "\\d;"):
            text = self.submit(cmd)
            self.assertIn("List of relations", text)
            self.assertIn(f" {'users':<32} | table ", text)
            self.assertIn(f" {'big_orders':<32} | view  ", text)

    def test_list_indexes(self):
        for cmd in ("\\di", "\\di;"):
            text = self.submit(cmd)
            self.assertIn("idx_orders_user | orders", text)
            self.assertNotIn("sqlite_autoindex", text)

    def test_schema_all(self):
        text = self.submit(".schema")
        self.assertIn("CREATE TABLE users", text)
        self.assertIn("CREATE TABLE orders", text)

    def test_schema_one(self):
        text = self.submit(".schema users")
        self.assertIn("CREATE TABLE users", text)
        self.assertNotIn("CREATE TABLE orders", text)

    def test_schema_unknown(self):
        self.assertEqual(self.submit(".schema nope"), "No such table.\n")


if __name__ == "__main__":
    unittest.main()
