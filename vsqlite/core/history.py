"""Persistent command history.

On disk the history is a flat text file where every entry is preceded by a
``---`` line and followed by its (possibly multi-line) text::

    ---
    SELECT 1;
    ---
    SELECT *
    FROM users;

Saving only ever appends, so the file accumulates duplicates across sessions.
They are reconciled when the file is loaded: the most recent occurrence of
each trimmed text survives, blank entries are dropped, and the survivors keep
the relative order of the slots they were found in.

Only ``\\n`` separates lines. Carriage returns, form feeds and Unicode line
separators inside an entry are stored and read back unchanged.
"""
from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Optional, Sequence
import logging
import os

from vsqlite.utils.constants import HISTORY_DELIMITER

logger = logging.getLogger(__name__)

# Picker callback: receives the entries, returns the chosen index or None on cancel
Finder = Callable[[Sequence[str]], Optional[int]]


def parse_history(text: str, delimiter: str = HISTORY_DELIMITER) -> List[str]:
    """Split history file contents into entries, in file order."""
    entries: List[str] = []
    block: List[str] = []
    lines = text.split("\n")
    if lines[-1] == "":
        # Trailing newline of the last entry
        lines.pop()
    for line in lines:
        if line == delimiter or line == delimiter + "\r":
            if block:
                entries.append("\n".join(block))
                block = []
            continue
        block.append(line)
    if block:
        entries.append("\n".join(block))
    return entries


def dedup_history(entries: Sequence[str]) -> List[str]:
    """Keep the most recent occurrence of every trimmed entry, in slot order.

    Scanning runs newest to oldest so the latest duplicate wins; the kept
    entries are then put back in ascending order of their original index.
    Entries that are blank after trimming are discarded.
    """
    seen: Dict[str, int] = {}
    for i in range(len(entries) - 1, -1, -1):
        key = entries[i].strip()
        if not key:
            continue
        if key not in seen:
            seen[key] = i
    return [entries[i] for i in sorted(seen.values())]


def serialize_entry(entry: str, delimiter: str = HISTORY_DELIMITER) -> str:
    text = delimiter + "\n" + entry
    if not entry.endswith("\n"):
        text += "\n"
    return text


class HistoryStore:
    """In-memory history log backed by an append-only file."""

    def __init__(self, path: Optional[str], delimiter: str = HISTORY_DELIMITER):
        self.path = os.path.expanduser(path) if path else None
        self.delimiter = delimiter
        self._entries: List[str] = []

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    def append(self, command: str) -> None:
        self._entries.append(command)

    def extend(self, commands: Iterable[str]) -> None:
        self._entries.extend(commands)

    def load(self) -> List[str]:
        """Read and deduplicate the history file. A missing or unreadable
        file simply means there is no history yet."""
        if not self.path:
            return self.entries
        try:
            with open(self.path, "r", encoding="utf-8", errors="replace", newline="") as f:
                text = f.read()
        except FileNotFoundError:
            logger.debug("No history file at %s", self.path)
            return self.entries
        except OSError as e:
            logger.info("Could not read history file %s: %s", self.path, e)
            return self.entries
        loaded = dedup_history(parse_history(text, self.delimiter))
        self._entries.extend(loaded)
        logger.debug("Loaded %d history entries from %s", len(loaded), self.path)
        return self.entries

    def save(self) -> bool:
        """Append every in-memory entry to the file. Failures are logged and
        otherwise ignored; returns whether anything was written."""
        if not self.path or not self._entries:
            return False
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "a", encoding="utf-8", newline="") as f:
                for entry in self._entries:
                    f.write(serialize_entry(entry, self.delimiter))
        except OSError as e:
            logger.info("Could not save history to %s: %s", self.path, e)
            return False
        logger.debug("Appended %d history entries to %s", len(self._entries), self.path)
        return True

    def fuzzy_pick(self, finder: Finder) -> str:
        """Let ``finder`` choose an entry interactively; empty string on cancel."""
        entries = self.entries
        if not entries:
            return ""
        idx = finder(entries)
        if idx is None or not 0 <= idx < len(entries):
            return ""
        return entries[idx]


__all__ = ['HistoryStore', 'parse_history', 'dedup_history', 'serialize_entry', 'Finder']
