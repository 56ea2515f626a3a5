"""
Session Manager - Creates and tracks concurrent scorekeeping sessions.

A session is one table keeping score:
- Created when a front end opens a scoresheet
- Holds an AppContext with its own game store
- Shares the single StatisticsEngine with every other session
- Restores its saved game, if any, when created

Stores:
- memory: everything lives in process memory
- file:   history in <data_dir>/, each game in <data_dir>/sessions/<id>/
"""

from __future__ import annotations
import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from ..config import Settings
from ..engine_core import GameEngine
from ..errors import ValidationError
from ..persistence import JsonFileStore, MemoryStore, PersistenceStore
from ..statistics import StatisticsEngine
from .context import AppContext

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"

_SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@dataclass
class Session:
    """A scorekeeping session and its bookkeeping."""
    session_id: str
    context: AppContext
    created_at: float
    last_active: float = field(default=0.0)

    def touch(self):
        self.last_active = time.time()


class SessionManager:
    """
    Manages scorekeeping sessions.

    Responsibilities:
    - Create sessions with a per-session game store
    - Track active sessions
    - Drop idle sessions
    """

    def __init__(
        self,
        shared_store: PersistenceStore | None = None,
        store_factory: Callable[[str], PersistenceStore] | None = None,
    ):
        self.shared_store = shared_store or MemoryStore()
        self.store_factory = store_factory or (lambda session_id: MemoryStore())
        self.statistics = StatisticsEngine(store=self.shared_store)
        self._sessions: dict[str, Session] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionManager:
        """Build a manager with the store backend chosen in settings."""
        if settings.storage == "memory":
            return cls()

        data_dir = Path(settings.data_dir).expanduser()
        logger.info("Using file storage in %s", data_dir)
        return cls(
            shared_store=JsonFileStore(data_dir),
            store_factory=lambda session_id: JsonFileStore(data_dir / "sessions" / session_id),
        )

    def create_session(self, session_id: str | None = None) -> Session:
        """
        Create a session, restoring its saved game if one exists.

        Raises ValidationError for ids that are not safe as directory names.
        """
        session_id = session_id or uuid.uuid4().hex
        if not _SESSION_ID_PATTERN.match(session_id):
            raise ValidationError(f"Invalid session id '{session_id}'")
        if session_id in self._sessions:
            return self._sessions[session_id]

        context = AppContext(
            game=GameEngine(store=self.store_factory(session_id)),
            statistics=self.statistics,
        )
        if context.game.load_state():
            logger.info("Restored saved game for session %s", session_id)

        now = time.time()
        session = Session(session_id=session_id, context=context, created_at=now, last_active=now)
        self._sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        session = self._sessions.get(session_id)
        if session:
            session.touch()
        return session

    def get_or_create(self, session_id: str) -> Session:
        return self.get_session(session_id) or self.create_session(session_id)

    def end_session(self, session_id: str, discard: bool = False) -> bool:
        """
        Stop tracking a session.

        With discard=True the saved game is cleared too; otherwise it
        is restored the next time a session with this id is created.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if discard:
            session.context.reset()
        return True

    def list_sessions(self) -> list[str]:
        return list(self._sessions.keys())

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """Forget sessions idle for longer than max_age_seconds."""
        cutoff = time.time() - max_age_seconds
        stale = [
            sid for sid, session in self._sessions.items()
            if session.last_active < cutoff
        ]
        for session_id in stale:
            self.end_session(session_id)
        return len(stale)
