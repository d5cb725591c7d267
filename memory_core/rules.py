from __future__ import annotations

from enum import Enum
from typing import Sequence, Tuple

from .board import Board, Symbol, TileId, TileStatus
from .state import GameState, Phase


class RevealOutcome(str, Enum):
    IGNORED = "ignored"
    FIRST_PICK = "first_pick"
    MATCH = "match"
    MISMATCH = "mismatch"
    WON = "won"


def initial_state(board: Board, alphabet: Sequence[Symbol], generation: int = 0) -> GameState:
    """Builds the state of a freshly dealt game."""
    return GameState(board=board, alphabet=tuple(alphabet), generation=generation)


def can_reveal(state: GameState, tile_id: TileId) -> bool:
    """True if revealing tile_id would change the game. Raises IndexError for ids off the board."""
    tile = state.board.at(tile_id)
    return not state.locked and tile.is_hidden


def apply_reveal(state: GameState, tile_id: TileId) -> Tuple[GameState, RevealOutcome]:
    """
    Applies a reveal and returns the new state with what happened.
    A second pick is compared synchronously: a match is resolved at once,
    a mismatch leaves the state in EVALUATING until resolve_mismatch.
    """
    if not can_reveal(state, tile_id):
        return state, RevealOutcome.IGNORED

    board = state.board.with_status((tile_id,), TileStatus.REVEALED)
    picks = state.picks + (tile_id,)
    if len(picks) == 1:
        return state.evolve(
            board=board, picks=picks, phase=Phase.AWAITING_SECOND_PICK, started=True,
        ), RevealOutcome.FIRST_PICK

    moves = state.moves + 1
    first, second = picks
    if board.at(first).symbol != board.at(second).symbol:
        return state.evolve(
            board=board, picks=picks, phase=Phase.EVALUATING, moves=moves, started=True,
        ), RevealOutcome.MISMATCH

    board = board.with_status(picks, TileStatus.MATCHED)
    if board.all_matched():
        return state.evolve(
            board=board, picks=(), phase=Phase.WON, moves=moves, started=True,
        ), RevealOutcome.WON
    return state.evolve(
        board=board, picks=(), phase=Phase.IDLE, moves=moves, started=True,
    ), RevealOutcome.MATCH


def resolve_mismatch(state: GameState) -> GameState:
    """Turns a mismatched pair face down again and unlocks the board. No-op outside EVALUATING."""
    if state.phase is not Phase.EVALUATING:
        return state
    board = state.board.with_status(
        [i for i in state.picks if state.board.at(i).status is TileStatus.REVEALED],
        TileStatus.HIDDEN,
    )
    return state.evolve(board=board, picks=(), phase=Phase.IDLE)


def apply_tick(state: GameState) -> GameState:
    """Advances the elapsed-time counter by one second while a started game is still running."""
    if not state.started or state.is_won:
        return state
    return state.evolve(elapsed_seconds=state.elapsed_seconds + 1)
