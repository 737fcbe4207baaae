"""
Validation gate applied before every workflow step.
"""

from __future__ import annotations

from typing import Optional

from app.errors import (
    SessionAlreadyCompleted,
    SessionError,
    SessionNotFound,
    SessionOwnerMismatch,
)
from app.session_store import Session, SessionStore


class SessionGuard:
    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def validate(self, session_id: str, actor_id: str) -> Session:
        """
        Returns the live session or raises, checked in this order:
        not found / expired, already completed, owned by someone else.
        """
        st = self.store.get(session_id)
        if st is None:
            raise SessionNotFound(session_id)
        if st.completed:
            raise SessionAlreadyCompleted(session_id)
        if st.owner_id != str(actor_id):
            raise SessionOwnerMismatch(session_id)
        return st

    def check(self, session_id: str, actor_id: str) -> Optional[SessionError]:
        try:
            self.validate(session_id, actor_id)
        except SessionError as e:
            return e
        return None
