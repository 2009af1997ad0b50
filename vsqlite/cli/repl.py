r"""Interactive prompt loop for vsqlite.

Built-in commands:
    \x         → toggle expanded display
    \j         → toggle JSON output
    \d [table] → show table schema
    \d         → list all tables/views
    \di        → list all indexes
    .schema    → print stored CREATE statements
    CTRL+R     → fuzzy-search command history
    CTRL+D     → quit
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, TextIO, Union
import logging
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import set_title

from vsqlite.cli.recall import pick_from_history
from vsqlite.core.completion import SchemaSource, complete, current_fragment
from vsqlite.core.history import Finder
from vsqlite.core.router import CommandRouter
from vsqlite.core.session import Session
from vsqlite.utils.constants import PROMPT, WINDOW_TITLE

logger = logging.getLogger(__name__)

BANNER = "Enter SQL statements. Built-in commands:\n" + "\n".join(
    "    " + line.strip() for line in __doc__.splitlines()[3:] if line.strip()
)


class SQLCompleter(Completer):
    """prompt_toolkit adapter around :func:`vsqlite.core.completion.complete`."""

    def __init__(self, schema: SchemaSource):
        self.schema = schema

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor
        fragment = current_fragment(text)
        for s in complete(text, self.schema):
            yield Completion(s.text, start_position=-len(fragment), display_meta=s.description)


@dataclass(frozen=True)
class RecallRequest:
    """Returned by the prompt when Ctrl-R is pressed; carries the text after the cursor."""
    text_after_cursor: str
    text_before_cursor: str


def build_key_bindings() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("c-r")
    def _(event):
        """Ctrl+R: leave the prompt and open the history picker."""
        doc = event.app.current_buffer.document
        event.app.exit(result=RecallRequest(doc.text_after_cursor, doc.text_before_cursor))

    return kb


def splice_recall(request: RecallRequest, selected: str) -> Document:
    """Input buffer after a recall: the pick replaces everything left of the
    cursor and the cursor lands right after it."""
    before = selected or request.text_before_cursor
    return Document(before + request.text_after_cursor, cursor_position=len(before))


def run_piped(router: CommandRouter, lines: Iterable[str]) -> int:
    """Non-interactive mode: feed lines from a pipe or file until exit or EOF."""
    router.submit_all(line.rstrip("\n") for line in lines)
    return 0


def start_repl(session: Session, prompt: str = PROMPT, show_banner: bool = True,
               finder: Finder = pick_from_history, stdin: Optional[TextIO] = None) -> int:
    """Run the client until ``exit`` or end-of-input, then save history."""
    stdin = stdin or sys.stdin
    router = CommandRouter(session)
    try:
        if not stdin.isatty():
            return run_piped(router, stdin)

        if show_banner:
            print(BANNER)
        set_title(WINDOW_TITLE)
        pt_history = InMemoryHistory()
        for entry in session.history:
            pt_history.append_string(entry)
        prompt_session: PromptSession = PromptSession(
            completer=SQLCompleter(session.engine),
            complete_while_typing=True,
            history=pt_history,
            key_bindings=build_key_bindings(),
        )

        default: Union[str, Document] = ""
        while True:
            try:
                line = prompt_session.prompt(prompt, default=default)
            except KeyboardInterrupt:
                default = ""
                continue
            except EOFError:
                break
            default = ""
            if isinstance(line, RecallRequest):
                default = splice_recall(line, session.history.fuzzy_pick(finder))
                continue
            if not router.submit(line):
                break
        return 0
    finally:
        session.history.save()
