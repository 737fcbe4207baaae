"""
Fakes and action builders shared by the tests.
"""

from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional, Sequence

from app.replies import ActionKind, Reply, UserAction
from storage.models import ScoreEntry, build_game_record

SCORING_CHANNEL = 1001
OTHER_CHANNEL = 2002
OWNER = "u1"
INTRUDER = "u2"
GAME_DAY = datetime.date(2026, 10, 18)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePersister:
    def __init__(self, fail: Optional[Exception] = None) -> None:
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []

    async def add_game_scores(self, scores: Sequence[ScoreEntry], session_id: str, logged_by: str):
        if self.fail is not None:
            raise self.fail
        record = build_game_record(scores, game_id=session_id, logged_by=logged_by, today=GAME_DAY)
        self.calls.append({"scores": list(scores), "session_id": session_id, "logged_by": logged_by, "record": record})
        return record


class FakePublisher:
    def __init__(self, fail: Optional[Exception] = None) -> None:
        self.fail = fail
        self.published: List[List[ScoreEntry]] = []

    async def publish(self, scores: Sequence[ScoreEntry]) -> None:
        if self.fail is not None:
            raise self.fail
        self.published.append(list(scores))


class FakeResponder:
    def __init__(self, fail_send: Optional[Exception] = None) -> None:
        self.fail_send = fail_send
        self.sent: List[Reply] = []
        self.followups: List[Reply] = []
        self.late: List[Reply] = []
        self._done = False

    def is_done(self) -> bool:
        return self._done

    async def send(self, reply: Reply) -> None:
        if self._done:
            raise RuntimeError("interaction already responded")
        if self.fail_send is not None:
            err, self.fail_send = self.fail_send, None
            self._done = True
            raise err
        self._done = True
        self.sent.append(reply)

    async def send_followup(self, reply: Reply) -> None:
        self.followups.append(reply)

    async def send_late(self, reply: Reply) -> None:
        self.late.append(reply)


def command(name: str = "endgame", actor: str = OWNER, channel: int = SCORING_CHANNEL, **options) -> UserAction:
    return UserAction(
        kind=ActionKind.COMMAND,
        actor_id=actor,
        actor_name=f"name-{actor}",
        channel_id=channel,
        command=name,
        options=options,
    )


def click(custom_id: str, actor: str = OWNER) -> UserAction:
    return UserAction(kind=ActionKind.CHOICE, actor_id=actor, actor_name=f"name-{actor}", custom_id=custom_id)


def select(custom_id: str, names: List[str], actor: str = OWNER) -> UserAction:
    return UserAction(
        kind=ActionKind.MULTI_SELECT,
        actor_id=actor,
        actor_name=f"name-{actor}",
        custom_id=custom_id,
        selections=list(names),
    )


def submit(custom_id: str, fields: Dict[str, str], actor: str = OWNER) -> UserAction:
    return UserAction(
        kind=ActionKind.FORM,
        actor_id=actor,
        actor_name=f"name-{actor}",
        custom_id=custom_id,
        fields=dict(fields),
    )


def button(reply: Reply, label: str):
    return next(b for b in reply.buttons if b.label == label)


def field_ids_by_label(reply: Reply) -> Dict[str, str]:
    return {f.label: f.custom_id for f in reply.form.fields}
