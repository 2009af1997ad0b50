"""Cell classification and display formatting for engine-returned values.

Every value coming back from the engine is mapped onto one of six cell kinds.
The table and expanded renderers go through :func:`format_value`; JSON output
goes through :func:`json_value`, which keeps numbers and text native and only
special-cases binary payloads.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict
from decimal import Decimal
import datetime
import math
import numbers

from vsqlite.utils.constants import NULL_MARKER, HEX_PREFIX, TIMESTAMP_FORMAT


class CellKind(Enum):
    NULL = "null"
    BINARY = "binary"
    TEXT = "text"
    NUMBER = "number"
    TIMESTAMP = "timestamp"
    OTHER = "other"


@dataclass(frozen=True)
class Cell:
    """One column's value within one row, tagged with its kind."""
    kind: CellKind
    value: Any

    @classmethod
    def of(cls, raw: Any) -> "Cell":
        return cls(classify(raw), raw)


def classify(raw: Any) -> CellKind:
    if raw is None:
        return CellKind.NULL
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return CellKind.BINARY
    if isinstance(raw, str):
        return CellKind.TEXT
    # bool is an int subclass but is not a number for display purposes
    if isinstance(raw, bool):
        return CellKind.OTHER
    if isinstance(raw, numbers.Number):
        return CellKind.NUMBER
    if isinstance(raw, datetime.datetime):
        return CellKind.TIMESTAMP
    return CellKind.OTHER


def hex_upper(raw: bytes | bytearray | memoryview) -> str:
    return bytes(raw).hex().upper()


def format_timestamp(ts: datetime.datetime) -> str:
    """Full second plus exactly six digits of microseconds."""
    return f"{ts.strftime(TIMESTAMP_FORMAT)}.{ts.microsecond:06d}"


_FORMATTERS: Dict[CellKind, Callable[[Any], str]] = {
    CellKind.NULL: lambda _v: NULL_MARKER,
    CellKind.BINARY: lambda v: HEX_PREFIX + hex_upper(v),
    CellKind.TEXT: str,
    CellKind.NUMBER: str,
    CellKind.TIMESTAMP: format_timestamp,
    CellKind.OTHER: str,
}


def format_cell(cell: Cell) -> str:
    return _FORMATTERS[cell.kind](cell.value)


def format_value(raw: Any) -> str:
    """Display string for a raw engine value (table and expanded modes)."""
    return format_cell(Cell.of(raw))


def is_printable_ascii(raw: bytes | bytearray | memoryview) -> bool:
    return all(32 <= b <= 126 for b in bytes(raw))


def json_value(raw: Any) -> Any:
    """Value to place in a JSON record.

    Binary payloads made only of printable ASCII are emitted as text, anything
    else as ``\\x`` plus uppercase hex. Decimals become JSON numbers. NaN and
    infinities have no JSON literal and are emitted as their display string.
    Other values are returned unchanged and serialized by :func:`json_default`
    when JSON has no native form for them.
    """
    if classify(raw) is CellKind.BINARY:
        data = bytes(raw)
        if is_printable_ascii(data):
            return data.decode("ascii")
        return HEX_PREFIX + hex_upper(data)
    if isinstance(raw, Decimal):
        return float(raw) if raw.is_finite() else format_value(raw)
    if isinstance(raw, float) and not math.isfinite(raw):
        return format_value(raw)
    return raw


def json_default(obj: Any) -> str:
    if isinstance(obj, datetime.datetime):
        return format_timestamp(obj)
    if isinstance(obj, (datetime.date, datetime.time)):
        return obj.isoformat()
    return str(obj)


def is_numeric(text: str) -> bool:
    """Whether ``text`` parses as a float in full, inf and nan included."""
    # float() also accepts surrounding whitespace and digit separators
    if text != text.strip() or "_" in text:
        return False
    try:
        float(text)
    except ValueError:
        return False
    return True


__all__ = [
    'CellKind', 'Cell', 'classify', 'format_cell', 'format_value', 'format_timestamp',
    'json_value', 'json_default', 'is_numeric', 'is_printable_ascii', 'hex_upper'
]
