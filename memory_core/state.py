from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple

from .board import Board, Symbol, TileId


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING_SECOND_PICK = "awaiting_second_pick"
    EVALUATING = "evaluating"
    WON = "won"


@dataclass(frozen=True)
class GameState:
    """Represents the dynamic state of one game: the board, the current turn, and the counters."""
    board: Board
    alphabet: Tuple[Symbol, ...]
    phase: Phase = Phase.IDLE
    picks: Tuple[TileId, ...] = ()  # revealed-but-unmatched tiles of this turn, in pick order
    moves: int = 0
    elapsed_seconds: int = 0
    started: bool = False  # True once the first tile of the game has been revealed
    generation: int = 0

    @property
    def locked(self) -> bool:
        return self.phase in (Phase.EVALUATING, Phase.WON)

    @property
    def is_won(self) -> bool:
        return self.phase is Phase.WON

    def evolve(self, **changes) -> 'GameState':
        return replace(self, **changes)
