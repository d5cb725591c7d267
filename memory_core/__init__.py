"""
Memory Match core Python package.

This package contains the data structures and pure-logic helpers behind the
card-pairs game, kept separate from the Flask app so they can be tested
without a browser.
Modules:
- board.py: Tile, TileStatus, Board
- deal.py: alphabet, Fisher-Yates shuffle, dealing
- state.py: Phase, GameState
- rules.py: pure transitions over GameState
- scheduler.py: deferred and periodic tasks
- events.py: listener hooks for presentation and audio
- engine.py: MatchEngine, the stateful controller
- settings.py: timing configuration
- audio.py: procedural sound effects and music
- sessions.py: engine registry for the web app
- cli.py: terminal front-end
"""
