"""
Session registry for the web app.

Each browser tab gets its own engine, identified by an opaque game id.
Sessions live in memory only. A session nobody has looked up for a while
is closed and dropped, and so is the least recently used one when the
registry is full.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .audio import AudioCues
from .board import Symbol
from .deal import DEFAULT_ALPHABET
from .engine import MatchEngine
from .events import EventLog
from .scheduler import Scheduler, ThreadingScheduler
from .settings import EngineSettings

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One player's game: the engine plus the listeners that buffer its output for the page."""
    game_id: str
    engine: MatchEngine
    events: EventLog
    audio: AudioCues
    created_at: float = field(default_factory=time.time)
    last_seen: float = 0.0

    def drain(self) -> Dict[str, Any]:
        return {"events": self.events.drain(), "audio": self.audio.drain()}


class SessionManager:
    """
    Live sessions in least-recently-used order. A lookup refreshes a session;
    sessions not looked up for idle_timeout seconds are closed on the next
    create or get, and the least recently used one goes when the registry is full.
    """

    def __init__(
        self,
        max_sessions: int = 256,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[EngineSettings] = None,
        idle_timeout: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_sessions <= 0:
            raise ValueError("max_sessions must be positive")
        if idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self.scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.settings = settings if settings is not None else EngineSettings()
        self._clock = clock
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()
        self._lock = threading.Lock()

    def create(self, seed: Optional[int] = None, alphabet: Sequence[Symbol] = DEFAULT_ALPHABET) -> Session:
        events = EventLog()
        audio = AudioCues()
        engine = MatchEngine(
            alphabet=alphabet,
            scheduler=self.scheduler,
            settings=self.settings,
            seed=seed,
            listeners=(events, audio),
        )
        session = Session(game_id=uuid.uuid4().hex, engine=engine, events=events, audio=audio)
        self.expire_idle()
        evicted: List[Session] = []
        with self._lock:
            session.last_seen = self._clock()
            self._sessions[session.game_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted.append(self._sessions.popitem(last=False)[1])
        for old in evicted:
            old.engine.close()
            logger.info("[session-evict] game=%s", old.game_id)
        logger.debug("[session-new] game=%s seed=%s", session.game_id, seed)
        return session

    def get(self, game_id: str) -> Optional[Session]:
        self.expire_idle()
        with self._lock:
            session = self._sessions.get(game_id)
            if session is not None:
                session.last_seen = self._clock()
                self._sessions.move_to_end(game_id)
            return session

    def expire_idle(self) -> int:
        """Closes and drops every session idle for longer than idle_timeout. Returns how many went."""
        expired: List[Session] = []
        with self._lock:
            cutoff = self._clock() - self.idle_timeout
            while self._sessions:
                oldest = next(iter(self._sessions.values()))
                if oldest.last_seen > cutoff:
                    break
                expired.append(self._sessions.popitem(last=False)[1])
        for session in expired:
            session.engine.close()
            logger.info("[session-expire] game=%s idle>%ss", session.game_id, self.idle_timeout)
        return len(expired)

    def discard(self, game_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(game_id, None)
        if session is None:
            return False
        session.engine.close()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, game_id: object) -> bool:
        with self._lock:
            return game_id in self._sessions
