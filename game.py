from __future__ import annotations

# Facade module that re-exports the Memory Match core.
# The Flask app, the tests, and the CLI import from here; single-responsibility
# modules live under memory_core/*.

# Prefer the package-relative path when imported as part of a package,
# then the top-level one for a plain checkout.
try:
    from .memory_core.board import Board, Symbol, Tile, TileId, TileStatus  # type: ignore
    from .memory_core.deal import DEFAULT_ALPHABET, deal_board, fisher_yates, validate_alphabet  # type: ignore
    from .memory_core.state import GameState, Phase  # type: ignore
    from .memory_core.rules import (  # type: ignore
        RevealOutcome,
        apply_reveal,
        apply_tick,
        can_reveal,
        initial_state,
        resolve_mismatch,
    )
    from .memory_core.scheduler import ManualScheduler, Scheduler, TaskHandle, ThreadingScheduler  # type: ignore
    from .memory_core.events import EventLog, GameListener, ListenerSet, tile_to_json  # type: ignore
    from .memory_core.settings import EngineSettings, env_int  # type: ignore
    from .memory_core.engine import MatchEngine  # type: ignore
    from .memory_core.audio import AudioCues, CLIP_NAMES, render_clip  # type: ignore
    from .memory_core.sessions import Session, SessionManager  # type: ignore
except ImportError:
    from memory_core.board import Board, Symbol, Tile, TileId, TileStatus  # type: ignore
    from memory_core.deal import DEFAULT_ALPHABET, deal_board, fisher_yates, validate_alphabet  # type: ignore
    from memory_core.state import GameState, Phase  # type: ignore
    from memory_core.rules import (  # type: ignore
        RevealOutcome,
        apply_reveal,
        apply_tick,
        can_reveal,
        initial_state,
        resolve_mismatch,
    )
    from memory_core.scheduler import ManualScheduler, Scheduler, TaskHandle, ThreadingScheduler  # type: ignore
    from memory_core.events import EventLog, GameListener, ListenerSet, tile_to_json  # type: ignore
    from memory_core.settings import EngineSettings, env_int  # type: ignore
    from memory_core.engine import MatchEngine  # type: ignore
    from memory_core.audio import AudioCues, CLIP_NAMES, render_clip  # type: ignore
    from memory_core.sessions import Session, SessionManager  # type: ignore


def main() -> None:
    # CLI driver delegated to memory_core.cli
    try:
        from .memory_core.cli import main as _main  # type: ignore
    except ImportError:
        from memory_core.cli import main as _main  # type: ignore
    _main()


if __name__ == '__main__':
    main()
