"""Context-sensitive table / column completion.

The text left of the cursor is matched against an ordered table of rules,
most specific first. The first rule whose pattern matches decides what gets
suggested; no other rule is consulted. When nothing matches the result is an
empty list, which keeps the suggestion popup quiet while free-form SQL is
being typed.
"""
from __future__ import annotations
from typing import Callable, List, NamedTuple, Pattern, Protocol, Sequence, Tuple
import logging
import re

from vsqlite.core.errors import VSQLiteException

logger = logging.getLogger(__name__)


class SchemaSource(Protocol):
    def table_names(self) -> List[str]: ...
    def column_names(self, table: str) -> List[str]: ...


class Suggestion(NamedTuple):
    text: str
    description: str


Handler = Callable[[re.Match, SchemaSource], List[Suggestion]]


class CompletionRule(NamedTuple):
    name: str
    pattern: Pattern[str]
    handler: Handler


def filter_has_prefix(suggestions: Sequence[Suggestion], prefix: str) -> List[Suggestion]:
    """Case-insensitive prefix filter that keeps the source order."""
    if not prefix:
        return list(suggestions)
    up = prefix.upper()
    return [s for s in suggestions if s.text.upper().startswith(up)]


def table_suggestions(schema: SchemaSource) -> List[Suggestion]:
    try:
        names = schema.table_names()
    except VSQLiteException as e:
        logger.debug("Table lookup failed: %s", e)
        return []
    return [Suggestion(name, "table") for name in names]


def column_suggestions(schema: SchemaSource, table: str) -> List[Suggestion]:
    try:
        names = schema.column_names(table)
    except VSQLiteException as e:
        # Usually a table name that is still being typed
        logger.debug("Column lookup for %r failed: %s", table, e)
        return []
    return [Suggestion(name, "column") for name in names]


def suggest_tables(prefix_group: int) -> Handler:
    def handler(m: re.Match, schema: SchemaSource) -> List[Suggestion]:
        return filter_has_prefix(table_suggestions(schema), m.group(prefix_group))
    return handler


def suggest_columns(table_group: int, prefix_group: int) -> Handler:
    def handler(m: re.Match, schema: SchemaSource) -> List[Suggestion]:
        return filter_has_prefix(column_suggestions(schema, m.group(table_group)),
                                 m.group(prefix_group))
    return handler


def _rx(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


RULES: Tuple[CompletionRule, ...] = (
    CompletionRule("schema-arg", _rx(r'^\.schema\s+(\w*)$'), suggest_tables(1)),
    CompletionRule("describe-arg", _rx(r'^\\d\s+(\w+)$'), suggest_tables(1)),
    CompletionRule("dotted-column", _rx(r'(\w+)\.(\w*)$'), suggest_columns(1, 2)),
    CompletionRule("select-from", _rx(r'\bSELECT\b.*\bFROM\s+(\w*)$'), suggest_tables(1)),
    CompletionRule("insert-into", _rx(r'\bINSERT\s+INTO\s+(\w*)$'), suggest_tables(1)),
    CompletionRule(
        "update-set",
        _rx(r'^UPDATE(?:\s+OR\s+(?:ROLLBACK|ABORT|REPLACE|FAIL|IGNORE))?\s+(\w+)\s+SET\s+'
            r'(?:[^=,]+=[^,]*,)*\s*(\w*)$'),
        suggest_columns(1, 2),
    ),
    CompletionRule("update-table", _rx(r'\bUPDATE\s+(\w*)$'), suggest_tables(1)),
    CompletionRule("from-join", _rx(r'\b(?:FROM|JOIN)\s+(\w*)$'), suggest_tables(1)),
)


def match_rule(text_before_cursor: str,
               rules: Sequence[CompletionRule] = RULES) -> Tuple[CompletionRule, re.Match] | None:
    for rule in rules:
        m = rule.pattern.search(text_before_cursor)
        if m:
            return rule, m
    return None


def complete(text_before_cursor: str, schema: SchemaSource,
             rules: Sequence[CompletionRule] = RULES) -> List[Suggestion]:
    """Suggestions for the text currently left of the cursor."""
    found = match_rule(text_before_cursor, rules)
    if found is None:
        return []
    rule, m = found
    return rule.handler(m, schema)


_FRAGMENT_RE = re.compile(r'\w*$')


def current_fragment(text_before_cursor: str) -> str:
    """The identifier fragment a chosen suggestion replaces."""
    m = _FRAGMENT_RE.search(text_before_cursor)
    return m.group(0) if m else ''


__all__ = [
    'SchemaSource', 'Suggestion', 'CompletionRule', 'RULES', 'complete', 'match_rule',
    'filter_has_prefix', 'suggest_tables', 'suggest_columns', 'current_fragment'
]
