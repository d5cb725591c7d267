from __future__ import annotations

import argparse
import time
from typing import Callable, List, Optional

from .board import Tile
from .engine import MatchEngine
from .events import GameListener
from .rules import RevealOutcome
from .scheduler import ManualScheduler
from .settings import EngineSettings
from .state import Phase


class ConsoleReporter(GameListener):
    """Prints the moments a terminal player cares about."""

    def __init__(self, out: Callable[[str], None] = print):
        self._out = out

    def on_match(self, first: Tile, second: Tile) -> None:
        self._out(f"Match! {first.symbol}")

    def on_mismatch(self, first: Tile, second: Tile) -> None:
        self._out(f"No match: {first.symbol} / {second.symbol}")

    def on_win(self, moves: int, elapsed_seconds: int) -> None:
        self._out(f"You won in {moves} moves and {elapsed_seconds}s!")


def play(
    engine: MatchEngine,
    scheduler: ManualScheduler,
    read: Optional[Callable[[str], str]] = None,
    out: Optional[Callable[[str], None]] = None,
    sleep: Optional[Callable[[float], None]] = None,
    clock: Optional[Callable[[], float]] = None,
) -> None:
    """
    Interactive loop. The scheduler's virtual clock follows the wall clock
    between prompts, so the timer and cool-down behave as in the browser.
    """
    read = read or input
    out = out or print
    sleep = sleep or time.sleep
    clock = clock or time.monotonic
    last = clock()

    def catch_up() -> None:
        nonlocal last
        now = clock()
        scheduler.advance(max(0.0, now - last))
        last = now

    settings = engine.settings
    out(engine.state.board.pretty())
    while True:
        catch_up()
        state = engine.state
        if state.phase is Phase.EVALUATING:
            sleep(settings.cooldown_seconds)
            catch_up()
            out(engine.state.board.pretty())
            continue
        if state.is_won:
            sleep(settings.win_delay_seconds)
            catch_up()
            again = read('Play again? [y/N] ').strip().lower()
            catch_up()
            if again not in ('y', 'yes'):
                return
            engine.reset()
            out(engine.state.board.pretty())
            continue

        text = read(f"[moves {state.moves} | {state.elapsed_seconds}s] tile 0-{len(state.board) - 1}, r=reset, q=quit: ").strip().lower()
        # Count the thinking time before the reveal lands
        catch_up()
        if text in ('q', 'quit'):
            return
        if text in ('r', 'reset'):
            engine.reset()
            out(engine.state.board.pretty())
            continue
        try:
            tile_id = int(text)
        except ValueError:
            out('Could not parse. Try again.')
            continue
        try:
            outcome = engine.reveal(tile_id)
        except IndexError:
            out('No such tile. Try again.')
            continue
        if outcome is RevealOutcome.IGNORED:
            out('That tile is already face up.')
            continue
        out(engine.state.board.pretty())


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Memory Match: find all the pairs')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for the deal')
    parser.add_argument('--serve', action='store_true', help='Run the web app instead of the terminal game')
    parser.add_argument('--host', default='127.0.0.1', help='Web app bind address (with --serve)')
    parser.add_argument('--port', type=int, default=5000, help='Web app port (with --serve)')
    args = parser.parse_args(argv)

    if args.serve:
        from app import run_server
        run_server(host=args.host, port=args.port)
        return

    scheduler = ManualScheduler()
    engine = MatchEngine(
        scheduler=scheduler,
        settings=EngineSettings.from_env(),
        seed=args.seed,
        listeners=[ConsoleReporter()],
    )
    try:
        play(engine, scheduler)
    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        engine.close()


if __name__ == '__main__':
    main()
