from __future__ import annotations

import logging
import random
import threading
from typing import Iterable, Optional, Sequence, Tuple

from .board import Symbol, TileId, TileStatus
from .deal import DEFAULT_ALPHABET, deal_board, validate_alphabet
from .events import GameListener, ListenerSet
from .rules import RevealOutcome, apply_reveal, apply_tick, initial_state, resolve_mismatch
from .scheduler import Scheduler, TaskHandle, ThreadingScheduler
from .settings import EngineSettings
from .state import GameState, Phase

logger = logging.getLogger(__name__)


class MatchEngine:
    """
    Turn controller for one memory-match game.

    The engine owns the only mutable reference to the game; everything it
    hands out is an immutable GameState or Tile. Deferred work (the mismatch
    cool-down, the won notification, the elapsed-time tick) goes through the
    scheduler and carries the generation it was scheduled for, so a callback
    that outlives its game does nothing.

    Usage:
        engine = MatchEngine(seed=7)
        engine.add_listener(my_view)
        engine.reveal(0)
        engine.reveal(5)
    """

    def __init__(
        self,
        alphabet: Sequence[Symbol] = DEFAULT_ALPHABET,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[EngineSettings] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        listeners: Iterable[GameListener] = (),
    ):
        self._lock = threading.RLock()
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._settings = settings if settings is not None else EngineSettings()
        self._rng = rng if rng is not None else random.Random(seed)
        self._listeners = ListenerSet(listeners)
        self._alphabet = validate_alphabet(alphabet)
        self._generation = 0
        self._revert_task: Optional[TaskHandle] = None
        self._win_task: Optional[TaskHandle] = None
        self._tick_task: Optional[TaskHandle] = None
        self._state = initial_state(deal_board(self._alphabet, rng=self._rng), self._alphabet)

    # ---------- read-only views ----------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def alphabet(self) -> Tuple[Symbol, ...]:
        return self._alphabet

    def add_listener(self, listener: GameListener) -> None:
        with self._lock:
            self._listeners.add(listener)

    def remove_listener(self, listener: GameListener) -> None:
        with self._lock:
            self._listeners.remove(listener)

    # ---------- operations ----------

    def new_game(self, alphabet: Optional[Sequence[Symbol]] = None) -> GameState:
        """Deals a new shuffled board and clears turn, lock, and counters."""
        with self._lock:
            if alphabet is not None:
                self._alphabet = validate_alphabet(alphabet)
            self._cancel_tasks()
            self._generation += 1
            board = deal_board(self._alphabet, rng=self._rng)
            self._state = initial_state(board, self._alphabet, generation=self._generation)
            logger.debug("[new-game] game=%s tiles=%s", self._generation, len(board))
            self._listeners.emit("on_new_game", self._state)
            self._listeners.emit("on_moves_changed", 0)
            self._listeners.emit("on_time_changed", 0)
            return self._state

    def reset(self) -> GameState:
        """Starts over with the same alphabet, abandoning any pending cool-down or timer."""
        with self._lock:
            self._listeners.emit("on_reset")
            return self.new_game()

    def reveal(self, tile_id: TileId) -> RevealOutcome:
        """
        Flips tile_id face up. Clicks on a locked board or on a tile that is
        already up are ignored. Raises IndexError for ids off the board.
        """
        with self._lock:
            before = self._state
            after, outcome = apply_reveal(before, tile_id)
            if outcome is RevealOutcome.IGNORED:
                logger.debug("[reveal-ignored] game=%s tile=%s phase=%s", before.generation, tile_id, before.phase.value)
                return outcome

            self._state = after
            if not before.started:
                self._start_clock()

            flipped = before.board.at(tile_id).with_status(TileStatus.REVEALED)
            self._listeners.emit("on_tile_changed", flipped)
            self._listeners.emit("on_reveal", flipped)
            logger.debug("[reveal] game=%s tile=%s outcome=%s moves=%s", after.generation, tile_id, outcome.value, after.moves)

            if outcome is RevealOutcome.FIRST_PICK:
                return outcome

            first_id, second_id = before.picks[0], tile_id
            first, second = after.board.at(first_id), after.board.at(second_id)
            if outcome is RevealOutcome.MISMATCH:
                self._listeners.emit("on_moves_changed", after.moves)
                self._listeners.emit("on_mismatch", first, second)
                self._revert_task = self._scheduler.call_later(
                    self._settings.cooldown_seconds,
                    self._end_cooldown,
                    after.generation,
                    after.picks,
                    name=f"cooldown-{after.generation}",
                )
                return outcome

            self._listeners.emit("on_tile_changed", first)
            self._listeners.emit("on_tile_changed", second)
            self._listeners.emit("on_moves_changed", after.moves)
            self._listeners.emit("on_match", first, second)
            if outcome is RevealOutcome.WON:
                self._stop_clock()
                self._win_task = self._scheduler.call_later(
                    self._settings.win_delay_seconds,
                    self._announce_win,
                    after.generation,
                    name=f"win-{after.generation}",
                )
            return outcome

    def close(self) -> None:
        """Cancels every scheduled task. The engine stays readable but nothing fires any more."""
        with self._lock:
            self._cancel_tasks()
            self._generation += 1
            self._state = self._state.evolve(generation=self._generation)

    # ---------- deferred work ----------

    def _end_cooldown(self, generation: int, picks: Tuple[TileId, ...]) -> None:
        with self._lock:
            state = self._state
            if generation != self._generation or state.phase is not Phase.EVALUATING or state.picks != picks:
                logger.info("[timer-abort] task=cooldown game=%s current=%s stale", generation, self._generation)
                return
            self._revert_task = None
            self._state = resolve_mismatch(state)
            for tile_id in picks:
                self._listeners.emit("on_tile_changed", self._state.board.at(tile_id))
            logger.debug("[cooldown-done] game=%s tiles=%s", generation, list(picks))

    def _announce_win(self, generation: int) -> None:
        with self._lock:
            state = self._state
            if generation != self._generation or not state.is_won:
                logger.info("[timer-abort] task=win game=%s current=%s stale", generation, self._generation)
                return
            self._win_task = None
            logger.info("[won] game=%s moves=%s seconds=%s", generation, state.moves, state.elapsed_seconds)
            self._listeners.emit("on_win", state.moves, state.elapsed_seconds)

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            before = self._state
            self._state = apply_tick(before)
            if self._state is not before:
                self._listeners.emit("on_time_changed", self._state.elapsed_seconds)

    def _start_clock(self) -> None:
        if self._tick_task is None:
            self._tick_task = self._scheduler.call_every(
                self._settings.tick_seconds,
                self._tick,
                self._generation,
                name=f"tick-{self._generation}",
            )
            logger.debug("[timer-set] task=tick game=%s interval=%s", self._generation, self._settings.tick_seconds)

    def _stop_clock(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    def _cancel_tasks(self) -> None:
        self._stop_clock()
        for task in (self._revert_task, self._win_task):
            if task is not None:
                task.cancel()
        self._revert_task = None
        self._win_task = None
