from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Dict, Iterable, Iterator, List

from .board import Tile
from .state import GameState

logger = logging.getLogger(__name__)


class GameListener:
    """
    Hooks the engine calls as a game unfolds. Every hook is a no-op here;
    collaborators override the ones they care about.

    Presentation hooks: on_new_game, on_tile_changed, on_moves_changed,
    on_time_changed, on_win. Audio hooks: on_reveal, on_match, on_mismatch,
    on_win, on_reset.
    """

    def on_new_game(self, state: GameState) -> None:
        pass

    def on_tile_changed(self, tile: Tile) -> None:
        pass

    def on_moves_changed(self, moves: int) -> None:
        pass

    def on_time_changed(self, elapsed_seconds: int) -> None:
        pass

    def on_reveal(self, tile: Tile) -> None:
        pass

    def on_match(self, first: Tile, second: Tile) -> None:
        pass

    def on_mismatch(self, first: Tile, second: Tile) -> None:
        pass

    def on_win(self, moves: int, elapsed_seconds: int) -> None:
        pass

    def on_reset(self) -> None:
        pass


class ListenerSet:
    """Fans a hook call out to every listener. A failing listener is logged and skipped."""

    def __init__(self, listeners: Iterable[GameListener] = ()):
        self._listeners: List[GameListener] = list(listeners)

    def add(self, listener: GameListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove(self, listener: GameListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._listeners)

    def __iter__(self) -> Iterator[GameListener]:
        return iter(list(self._listeners))

    def emit(self, hook: str, *args: Any) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, hook)(*args)
            except Exception:
                logger.exception("[listener-error] hook=%s listener=%s", hook, type(listener).__name__)


def tile_to_json(tile: Tile) -> Dict[str, Any]:
    # Hidden tiles never disclose their symbol.
    out: Dict[str, Any] = {"id": int(tile.id), "status": tile.status.value}
    if not tile.is_hidden:
        out["symbol"] = tile.symbol
    return out


class EventLog(GameListener):
    """
    Records presentation events as JSON-ready dicts until a client drains them.

    Counter events (moves, time) only matter by their latest value, so a new
    one replaces the buffered one. The buffer is bounded; when an abandoned
    page stops draining, the oldest events are dropped.
    """

    COLLAPSED = ("moves", "time")

    def __init__(self, max_events: int = 256) -> None:
        self._events: "deque[Dict[str, Any]]" = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def _record(self, event: Dict[str, Any]) -> None:
        with self._lock:
            if event["type"] in self.COLLAPSED:
                for old in self._events:
                    if old["type"] == event["type"]:
                        self._events.remove(old)
                        break
            self._events.append(event)

    def drain(self) -> List[Dict[str, Any]]:
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events

    def on_new_game(self, state: GameState) -> None:
        self._record({"type": "new_game", "tiles": len(state.board)})

    def on_tile_changed(self, tile: Tile) -> None:
        self._record({"type": "tile", **tile_to_json(tile)})

    def on_moves_changed(self, moves: int) -> None:
        self._record({"type": "moves", "moves": int(moves)})

    def on_time_changed(self, elapsed_seconds: int) -> None:
        self._record({"type": "time", "elapsedSeconds": int(elapsed_seconds)})

    def on_mismatch(self, first: Tile, second: Tile) -> None:
        self._record({"type": "mismatch", "tiles": [first.id, second.id]})

    def on_win(self, moves: int, elapsed_seconds: int) -> None:
        self._record({"type": "won", "moves": int(moves), "elapsedSeconds": int(elapsed_seconds)})
