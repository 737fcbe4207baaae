"""
Step identifiers: the custom_id attached to every button / select / modal the
workflow emits. Discord echoes it back verbatim when the user acts, which is
how a stateless UI layer carries "which step, which session, which resolved
parameters" back to us.

Grammar:
- <tag>|<int param>|...|<session_id>
- tags: cnt, sel, win, wsc, cont, rsc (one per step, see the payload classes)
- params are integers only (counts, player indices, scores)

Player names are NEVER encoded. They can contain any character, are long, and
Discord caps custom_id at 100 chars. Steps carry an index into
Session.players instead and resolve the name at handling time.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Dict, Tuple, Type, Union

import config
from app.errors import MalformedStepId


DELIMITER = "|"
MAX_CUSTOM_ID_LENGTH = 100

# Session ids are generated by SessionStore: lowercase hex only.
_SESSION_ID_RE = re.compile(r"^[0-9a-f]{1,40}$")
_INT_RE = re.compile(r"^-?\d{1,6}$")

WINNER_SCORE_FIELD = "winner_score"
_SCORE_FIELD_PREFIX = "score_"


@dataclass(frozen=True)
class ChooseCount:
    """Player-count button (S0 -> S1)."""

    session_id: str
    count: int


@dataclass(frozen=True)
class SelectPlayers:
    """Member select requiring exactly `count` users (S1 -> S2)."""

    session_id: str
    count: int


@dataclass(frozen=True)
class ChooseWinner:
    """Winner button (S2 -> S3)."""

    session_id: str
    winner_index: int


@dataclass(frozen=True)
class WinnerScoreForm:
    """Winner score modal (S3 -> S4)."""

    session_id: str
    winner_index: int


@dataclass(frozen=True)
class ContinueScores:
    """Confirmation button after the winner score (S4 -> S5)."""

    session_id: str
    winner_index: int
    winner_score: int


@dataclass(frozen=True)
class RemainingScoresForm:
    """Remaining scores modal (S5 -> S6)."""

    session_id: str
    winner_index: int
    winner_score: int


StepPayload = Union[
    ChooseCount,
    SelectPlayers,
    ChooseWinner,
    WinnerScoreForm,
    ContinueScores,
    RemainingScoresForm,
]

# tag -> (payload type, int field names in wire order)
_SCHEMA: Dict[str, Tuple[Type, Tuple[str, ...]]] = {
    "cnt": (ChooseCount, ("count",)),
    "sel": (SelectPlayers, ("count",)),
    "win": (ChooseWinner, ("winner_index",)),
    "wsc": (WinnerScoreForm, ("winner_index",)),
    "cont": (ContinueScores, ("winner_index", "winner_score")),
    "rsc": (RemainingScoresForm, ("winner_index", "winner_score")),
}
_TAG_BY_TYPE = {cls: tag for tag, (cls, _) in _SCHEMA.items()}


def encode(payload: StepPayload) -> str:
    tag = _TAG_BY_TYPE.get(type(payload))
    if tag is None:
        raise TypeError(f"not a step payload: {payload!r}")
    _, fields = _SCHEMA[tag]
    parts = [tag] + [str(int(getattr(payload, f))) for f in fields] + [payload.session_id]
    custom_id = DELIMITER.join(parts)
    if len(custom_id) > MAX_CUSTOM_ID_LENGTH:
        raise ValueError(f"custom_id too long ({len(custom_id)}): {custom_id}")
    return custom_id


def is_step_id(custom_id: str) -> bool:
    """Cheap check used by the router to ignore components we did not emit."""
    tag, sep, _ = (custom_id or "").partition(DELIMITER)
    return bool(sep) and tag in _SCHEMA


def decode(custom_id: str) -> StepPayload:
    """
    Parse and range-check a custom_id. Raises MalformedStepId on anything that
    was not produced by `encode` (unknown tag, wrong arity, non-int params,
    out-of-range count/index).
    """
    if not custom_id or len(custom_id) > MAX_CUSTOM_ID_LENGTH:
        raise MalformedStepId(f"bad custom_id length: {custom_id!r}")

    parts = custom_id.split(DELIMITER)
    tag = parts[0]
    if tag not in _SCHEMA:
        raise MalformedStepId(f"unknown step tag: {custom_id!r}")

    cls, fields = _SCHEMA[tag]
    if len(parts) != len(fields) + 2:
        raise MalformedStepId(f"wrong arity for {tag}: {custom_id!r}")

    session_id = parts[-1]
    if not _SESSION_ID_RE.match(session_id):
        raise MalformedStepId(f"bad session id: {custom_id!r}")

    values = {}
    for name, raw in zip(fields, parts[1:-1]):
        if not _INT_RE.match(raw):
            raise MalformedStepId(f"non-integer {name}: {custom_id!r}")
        values[name] = int(raw)

    min_players = int(getattr(config, "MIN_PLAYERS", 2))
    max_players = int(getattr(config, "MAX_PLAYERS", 6))
    if "count" in values and not (min_players <= values["count"] <= max_players):
        raise MalformedStepId(f"player count out of range: {custom_id!r}")
    if "winner_index" in values and not (0 <= values["winner_index"] < max_players):
        raise MalformedStepId(f"winner index out of range: {custom_id!r}")

    return cls(session_id=session_id, **values)


def score_field_id(player_index: int) -> str:
    return f"{_SCORE_FIELD_PREFIX}{int(player_index)}"
