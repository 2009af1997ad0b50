"""String width helpers for terminal layout."""
from __future__ import annotations
from typing import List
import unicodedata


def display_width(s: str) -> int:
    """Number of terminal cells ``s`` occupies (wide East Asian characters count two)."""
    w = 0
    for ch in s:
        if unicodedata.combining(ch):
            continue
        if unicodedata.east_asian_width(ch) in ('F', 'W'):
            w += 2
        else:
            w += 1
    return w


def pad_right(s: str, width: int) -> str:
    extra = width - display_width(s)
    if extra > 0:
        return s + ' ' * extra
    return s


def pad_left(s: str, width: int) -> str:
    extra = width - display_width(s)
    if extra > 0:
        return ' ' * extra + s
    return s


def split_lines(s: str) -> List[str]:
    """Split a cell value into physical lines; an empty value is one empty line."""
    return s.splitlines() or ['']
