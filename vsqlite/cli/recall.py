"""Modal fuzzy picker over the command history (bound to Ctrl-R)."""
from __future__ import annotations
from typing import Iterable, Optional, Sequence
import logging

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import CompleteEvent, Completer, Completion, FuzzyCompleter
from prompt_toolkit.document import Document

from vsqlite.utils.constants import HISTORY_PROMPT

logger = logging.getLogger(__name__)

# Everything typed into the picker is one fuzzy query, spaces included
WHOLE_INPUT_PATTERN = r"^[\s\S]*"


def _preview(entry: str, width: int = 80) -> str:
    flat = " ↵ ".join(line.strip() for line in entry.splitlines())
    return flat if len(flat) <= width else flat[: width - 1] + "…"


class HistoryCompleter(Completer):
    """Offers every history entry, newest first, replacing the whole input."""

    def __init__(self, entries: Sequence[str]):
        self.entries = list(entries)

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        start = -len(document.text_before_cursor)
        for entry in reversed(self.entries):
            yield Completion(entry, start_position=start, display=_preview(entry))


def history_completer(entries: Sequence[str]) -> FuzzyCompleter:
    """Fuzzy filter over the history. Matches are ordered by where the match
    starts, then by how tight it is; ties keep newest first."""
    return FuzzyCompleter(HistoryCompleter(entries), pattern=WHOLE_INPUT_PATTERN)


def _newest_index(entries: Sequence[str], text: str) -> int:
    # Several slots can hold the same text in-session
    return len(entries) - 1 - list(reversed(entries)).index(text)


def best_match(entries: Sequence[str], query: str) -> Optional[int]:
    """Index of the entry ``query`` selects: an exact entry when one was
    picked from the popup, else the entry the fuzzy filter ranks first."""
    if query in entries:
        return _newest_index(entries, query)
    if not query.strip():
        return None
    completer = history_completer(entries)
    for completion in completer.get_completions(Document(query), CompleteEvent()):
        return _newest_index(entries, completion.text)
    return None


def pick_from_history(entries: Sequence[str]) -> Optional[int]:
    """Run the picker; returns the chosen index, or None when cancelled."""
    if not entries:
        return None
    session: PromptSession = PromptSession(
        completer=history_completer(entries),
        complete_while_typing=True,
    )
    try:
        text = session.prompt(HISTORY_PROMPT, pre_run=lambda: session.default_buffer.start_completion())
    except (EOFError, KeyboardInterrupt):
        return None
    idx = best_match(entries, text)
    logger.debug("History picker returned %r for %r", idx, text)
    return idx
