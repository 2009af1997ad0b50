"""Command router: classify one submitted line and run it.

Every non-blank line is recorded in history before anything else happens,
so typos and failing statements can be recalled too. Classification is
first-match-wins in this order:

    exit            end the session
    \\x              toggle expanded display
    \\j              toggle JSON output
    \\d <table>      describe a table
    \\d              list tables and views
    \\di             list indexes
    .schema [name]  print stored CREATE statements
    anything else   SQL, passed to the engine untouched
"""
from __future__ import annotations
from typing import Callable, Iterable, Optional, TextIO
import logging
import sys

from vsqlite.core.describe import describe_table, list_relations, list_indexes, print_schema
from vsqlite.core.errors import VSQLiteException
from vsqlite.core.render import RenderMode, render
from vsqlite.core.session import Session
from vsqlite.utils.constants import (
    EXIT_COMMAND, EXPANDED_TOGGLE, JSON_TOGGLE, DESCRIBE_PREFIX, DESCRIBE_COMMANDS,
    INDEX_LIST_COMMANDS, SCHEMA_COMMAND
)

logger = logging.getLogger(__name__)

RENDER_ERROR_MESSAGES = {
    RenderMode.TABLE: "Error printing table",
    RenderMode.EXPANDED: "Error printing expanded",
    RenderMode.JSON: "JSON output error",
}


def on_off(flag: bool) -> str:
    return "on" if flag else "off"


class CommandRouter:
    """Dispatches submitted lines against a :class:`Session`."""

    def __init__(self, session: Session, out: Optional[TextIO] = None):
        self.session = session
        self._out = out

    @property
    def out(self) -> TextIO:
        return self._out or sys.stdout

    def _print(self, msg: str) -> None:
        self.out.write(msg + "\n")

    def submit(self, line: str) -> bool:
        """Handle one line. Returns False when the session should end."""
        query = line.strip()
        if not query:
            return True

        self.session.history.append(query)

        if query == EXIT_COMMAND:
            return False
        if query == EXPANDED_TOGGLE:
            self._print(f"Expanded display is now {on_off(self.session.toggle_expanded())}")
            return True
        if query == JSON_TOGGLE:
            self._print(f"JSON output is now {on_off(self.session.toggle_json())}")
            return True
        if query.startswith(DESCRIBE_PREFIX):
            self._describe(query[len(DESCRIBE_PREFIX):])
            return True
        if query in DESCRIBE_COMMANDS:
            self._guarded(list_relations, "Error")
            return True
        if query in INDEX_LIST_COMMANDS:
            self._guarded(list_indexes, "Error")
            return True
        if query.startswith(SCHEMA_COMMAND):
            args = query.split()[1:]
            self._guarded(lambda engine, out: print_schema(engine, args, out), "Schema query failed")
            return True

        self.execute(query)
        return True

    def _guarded(self, action: Callable[..., None], label: str) -> None:
        try:
            action(self.session.engine, self.out)
        except VSQLiteException as e:
            logger.debug("%s: %s", label, e)
            self._print(f"{label}: {e}")

    def _describe(self, arg: str) -> None:
        table = arg.removesuffix(";").strip()
        if not table:
            self._print("Usage: \\d <table>")
            return
        self._guarded(lambda engine, out: describe_table(engine, table, out), "Schema error")

    def execute(self, sql: str) -> None:
        """Run a statement and render its result in the active mode."""
        try:
            result = self.session.engine.execute(sql)
        except VSQLiteException as e:
            logger.debug("Statement failed: %s", e)
            self._print(f"Query failed: {e}")
            return
        mode = self.session.mode
        try:
            with result:
                render(result, mode, self.out)
        except VSQLiteException as e:
            logger.debug("Render failed: %s", e)
            self._print(f"{RENDER_ERROR_MESSAGES[mode]}: {e}")

    def submit_all(self, lines: Iterable[str]) -> bool:
        """Submit lines in order; returns False once one of them ends the session."""
        for line in lines:
            if not self.submit(line):
                return False
        return True


__all__ = ['CommandRouter', 'on_off']
