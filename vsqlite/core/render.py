"""Result rendering: psql-style table, expanded (vertical) records, and JSON.

Exactly one mode is active at a time (see :class:`RenderMode`). All three
renderers read the result cursor in a single forward pass.

Known quirks kept on purpose:

* Table mode decides right alignment from the first row only. A column whose
  first value looks numeric stays right-aligned even if later values are text.
* Table mode prints only the header for an empty result, while expanded mode
  prints ``No rows found.``.
"""
from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, TextIO
import json
import logging
import sys

from vsqlite.core.engine import ResultSet
from vsqlite.core.values import format_value, is_numeric, json_value, json_default
from vsqlite.utils.constants import RECORD_RULE_WIDTH, NO_ROWS_MESSAGE
from vsqlite.utils.string_utils import display_width, pad_left, pad_right, split_lines

logger = logging.getLogger(__name__)


class RenderMode(Enum):
    TABLE = "table"
    EXPANDED = "expanded"
    JSON = "json"


def write_grid(headers: Sequence[str], rows: Iterable[Sequence[str]], out: TextIO,
               right_align: Optional[Set[int]] = None) -> None:
    """Write already-formatted cells as a borderless psql-style grid.

    Columns are separated by `` | `` and the header by a ``-+-`` rule. Cells
    containing newlines span several physical lines within their row.
    """
    if not headers:
        return
    right_align = right_align or set()
    header_cells = [split_lines(h) for h in headers]
    body = [[split_lines(v) for v in row] for row in rows]
    widths = [max(display_width(line) for line in cell) for cell in header_cells]
    for row in body:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], max(display_width(line) for line in cell))

    def emit(cells: List[List[str]], align: Set[int]) -> None:
        height = max(len(c) for c in cells)
        for k in range(height):
            parts = []
            for i, cell in enumerate(cells):
                text = cell[k] if k < len(cell) else ''
                parts.append(pad_left(text, widths[i]) if i in align else pad_right(text, widths[i]))
            out.write(' | '.join(parts).rstrip() + '\n')

    emit(header_cells, set())
    out.write('-+-'.join('-' * w for w in widths) + '\n')
    for row in body:
        emit(row, right_align)


def render_table(result: ResultSet, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    if not result.columns:
        return
    headers = [c.lower() for c in result.columns]
    rows = iter(result)
    formatted: List[List[str]] = []
    numeric: Set[int] = set()

    # The first row doubles as the sample for numeric alignment
    first = next(rows, None)
    if first is not None:
        sample = [format_value(v) for v in first]
        formatted.append(sample)
        numeric = {i for i, s in enumerate(sample) if is_numeric(s)}

    for row in rows:
        formatted.append([format_value(v) for v in row])
    write_grid(headers, formatted, out, right_align=numeric)


def render_expanded(result: ResultSet, out: Optional[TextIO] = None) -> bool:
    """Print one vertical block per record. Returns False (after printing
    ``No rows found.``) when the result is empty."""
    out = out or sys.stdout
    cols = result.columns
    # Buffered: label width and record-number width depend on the whole result
    data = [[format_value(v) for v in row] for row in result]
    if not data:
        out.write(NO_ROWS_MESSAGE + '\n')
        return False

    label_width = max((display_width(c) for c in cols), default=0)
    digits = len(str(len(data)))
    for n, row in enumerate(data, start=1):
        out.write(f"-[ RECORD {n:>{digits}} ]{'-' * RECORD_RULE_WIDTH}\n")
        for col, val in zip(cols, row):
            out.write(f"{pad_right(col, label_width)} | {val}\n")
        out.write('\n')
    return True


def render_json(result: ResultSet, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    cols = result.columns
    records = [dict(zip(cols, (json_value(v) for v in row))) for row in result]
    out.write(json.dumps(records, indent=2, ensure_ascii=False, allow_nan=False,
                         default=json_default) + '\n')


RENDERERS: Dict[RenderMode, Callable[[ResultSet, Optional[TextIO]], object]] = {
    RenderMode.TABLE: render_table,
    RenderMode.EXPANDED: render_expanded,
    RenderMode.JSON: render_json,
}


def render(result: ResultSet, mode: RenderMode, out: Optional[TextIO] = None) -> None:
    logger.debug("Rendering %d column(s) in %s mode", len(result.columns), mode.value)
    RENDERERS[mode](result, out)


__all__ = ['RenderMode', 'write_grid', 'render_table', 'render_expanded', 'render_json', 'render', 'RENDERERS']
