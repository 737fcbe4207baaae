"""
In-memory registry of in-flight /endgame sessions.

Session scope: one /endgame invocation. Nothing here survives a restart;
durability starts when the finished scores reach the spreadsheet.
"""

from __future__ import annotations

import asyncio
import itertools
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import config
from app.errors import SessionAlreadyCompleted, SessionNotFound
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


@dataclass
class Session:
    session_id: str
    owner_id: str
    created_at: float
    completed: bool = False
    players: List[str] = field(default_factory=list)
    declared_player_count: Optional[int] = None
    # Recorded at the winner-score step; identifiers echo them back and are
    # checked against these values.
    winner_index: Optional[int] = None
    winner_score: Optional[int] = None


class SessionStore:
    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = float(
            ttl_seconds if ttl_seconds is not None else getattr(config, "SESSION_TTL_SECONDS", 1800)
        )
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._counter = itertools.count(1)

    def __len__(self) -> int:
        return len(self._sessions)

    def active_count(self) -> int:
        """Sessions still reachable through get(); expired-but-unswept ones are not counted."""
        now = self._clock()
        return sum(1 for st in self._sessions.values() if not self._is_expired(st, now))


    def _new_id(self) -> str:
        # counter => unique in-process, random suffix => not guessable
        return f"{next(self._counter):x}{secrets.token_hex(4)}"

    def _is_expired(self, session: Session, now: Optional[float] = None) -> bool:
        now = self._clock() if now is None else now
        return now - session.created_at >= self.ttl_seconds

    def create(self, owner_id: str) -> str:
        sid = self._new_id()
        self._sessions[sid] = Session(session_id=sid, owner_id=str(owner_id), created_at=self._clock())
        logger.debug(f"[Session] created {sid} owner={owner_id}")
        return sid

    def get(self, session_id: str) -> Optional[Session]:
        st = self._sessions.get(str(session_id))
        if st is None or self._is_expired(st):
            return None
        return st

    def mutate(self, session_id: str, fn: Callable[[Session], None]) -> Session:
        st = self.get(session_id)
        if st is None:
            raise SessionNotFound(session_id)
        if st.completed:
            raise SessionAlreadyCompleted(session_id)
        fn(st)
        return st

    def lock(self, session_id: str) -> asyncio.Lock:
        """
        Per-session lock. Hold it around guard-check + mutate so two
        interactions on the same session cannot interleave.
        """
        sid = str(session_id)
        lk = self._locks.get(sid)
        if lk is None:
            lk = asyncio.Lock()
            self._locks[sid] = lk
        return lk

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        stale = [sid for sid, st in self._sessions.items() if self._is_expired(st, now)]
        for sid in stale:
            self._sessions.pop(sid, None)
            lk = self._locks.get(sid)
            if lk is not None and not lk.locked():
                self._locks.pop(sid, None)
        # locks for ids that never made it into the store (e.g. bogus ids)
        for sid in [s for s, lk in self._locks.items() if s not in self._sessions and not lk.locked()]:
            self._locks.pop(sid, None)
        if stale:
            logger.info(f"[Session] swept {len(stale)} expired session(s), {len(self._sessions)} active")
        return len(stale)
