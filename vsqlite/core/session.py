"""Interactive session state: active render mode, engine handle and history."""
from __future__ import annotations
from typing import Optional
import logging

from vsqlite.core.engine import Engine
from vsqlite.core.history import HistoryStore
from vsqlite.core.render import RenderMode

logger = logging.getLogger(__name__)


class Session:
    """Everything a running client mutates, in one place.

    Only one render mode is ever active. Turning expanded output on leaves
    JSON off and vice versa; turning either off falls back to the table.
    """

    def __init__(self, engine: Engine, history: Optional[HistoryStore] = None,
                 mode: RenderMode = RenderMode.TABLE):
        self.engine = engine
        self.history = history if history is not None else HistoryStore(None)
        self.mode = mode

    @property
    def expanded(self) -> bool:
        return self.mode is RenderMode.EXPANDED

    @property
    def json_mode(self) -> bool:
        return self.mode is RenderMode.JSON

    def _toggle(self, target: RenderMode) -> bool:
        self.mode = RenderMode.TABLE if self.mode is target else target
        logger.debug("Render mode is now %s", self.mode.value)
        return self.mode is target

    def toggle_expanded(self) -> bool:
        """Flip expanded display; returns the new state."""
        return self._toggle(RenderMode.EXPANDED)

    def toggle_json(self) -> bool:
        """Flip JSON output; returns the new state."""
        return self._toggle(RenderMode.JSON)

    def close(self) -> None:
        self.engine.close()
