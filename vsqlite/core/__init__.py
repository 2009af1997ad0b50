"""Session core: value formatting, completion, rendering, history and command routing."""

__all__ = []
